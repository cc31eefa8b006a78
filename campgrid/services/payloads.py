"""
Normalization of stored records at the persistence boundary.

Saved drafts have been written by several generations of the editor: the
schedule may live under one of several field names and may be stored as JSON
text. Everything is converted here, once, into the canonical shapes the core
works with.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from campgrid.models import Division, Resource, ScheduleVersion
from campgrid.core.logging_config import get_logger
from campgrid.utils.time_utils import parse_timestamp

logger = get_logger(__name__)

# Field names a version's schedule data has been stored under, in lookup order
PAYLOAD_FIELDS = ("schedule_data", "data", "payload", "state", "json", "schedule")

SKELETON_FIELDS = ("manualSkeleton", "skeleton")

# Payload keys that are never bunk rows
_NON_BUNK_KEYS = {
    "scheduleAssignments", "manualSkeleton", "skeleton", "leagueAssignments",
    "unifiedTimes", "divisionTimes", "divisions", "updated_at", "date", "name",
}


def _decode(value: Any) -> Any:
    if isinstance(value, (str, bytes, bytearray)):
        try:
            return json.loads(value)
        except (json.JSONDecodeError, ValueError):
            return None
    return value


def extract_payload(record: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Locate and, where needed, decode a stored version's schedule data."""
    for field_name in PAYLOAD_FIELDS:
        if record.get(field_name) is None:
            continue
        payload = _decode(record[field_name])
        if isinstance(payload, dict):
            return payload
        logger.warning(
            "Version %s: field '%s' is not a readable schedule payload",
            record.get("id"), field_name
        )
        return None
    return None


def _extract_assignments(payload: Dict[str, Any]) -> Dict[str, list]:
    assignments = _decode(payload.get("scheduleAssignments"))
    if not isinstance(assignments, dict):
        assignments = {
            key: value for key, value in payload.items()
            if key not in _NON_BUNK_KEYS
        }
    return {
        str(bunk): list(slots)
        for bunk, slots in assignments.items()
        if isinstance(slots, (list, tuple))
    }


def normalize_version(record: Any) -> Optional[ScheduleVersion]:
    """
    Convert one stored version row into a ScheduleVersion.

    Returns:
        The canonical version, or None when no recognisable payload is present
    """
    if isinstance(record, ScheduleVersion):
        return record
    if not isinstance(record, dict):
        return None

    payload = extract_payload(record)
    if payload is None:
        return None

    skeleton = None
    for field_name in SKELETON_FIELDS:
        candidate = _decode(payload.get(field_name))
        if isinstance(candidate, list) and candidate:
            skeleton = candidate
            break

    league = _decode(payload.get("leagueAssignments"))
    version_id = record.get("id")

    return ScheduleVersion(
        version_id=str(version_id) if version_id is not None else None,
        created_at=parse_timestamp(record.get("created_at") or record.get("createdAt")),
        assignments=_extract_assignments(payload),
        skeleton=skeleton,
        league_assignments=league if isinstance(league, dict) and league else None,
        name=record.get("name"),
    )


def _sort_key(created_at: Optional[datetime]) -> datetime:
    if created_at is None:
        return datetime.min.replace(tzinfo=timezone.utc)
    if created_at.tzinfo is None:
        return created_at.replace(tzinfo=timezone.utc)
    return created_at


def sort_versions(versions: Iterable[ScheduleVersion]) -> List[ScheduleVersion]:
    """Oldest first. Versions without a timestamp keep their relative order, ahead of dated ones."""
    return sorted(versions, key=lambda v: _sort_key(v.created_at))


def normalize_versions(records: Iterable[Any]) -> List[ScheduleVersion]:
    versions = []
    for record in records or []:
        version = normalize_version(record)
        if version is None:
            rid = record.get("id") if isinstance(record, dict) else None
            logger.warning("Skipping version %s: no recognisable schedule payload", rid)
            continue
        versions.append(version)
    return sort_versions(versions)


def normalize_divisions(raw: Any) -> Dict[str, Division]:
    """
    Accept divisions as {name: {...}}, a list of {name: ..., ...} dicts,
    or Division objects. Unreadable items are skipped.
    """
    divisions: Dict[str, Division] = {}
    if isinstance(raw, dict):
        for name, data in raw.items():
            divisions[str(name)] = data if isinstance(data, Division) else Division.from_raw(name, data)
    elif isinstance(raw, (list, tuple)):
        for item in raw:
            if isinstance(item, Division):
                divisions[item.name] = item
            elif isinstance(item, dict) and item.get("name"):
                divisions[str(item["name"])] = Division.from_raw(item["name"], item)
    return divisions


def normalize_resources(raw: Any) -> Dict[str, Resource]:
    """
    Accept resource properties keyed by name, a list of named dicts, or
    Resource objects.
    """
    resources: Dict[str, Resource] = {}
    if isinstance(raw, dict):
        for name, data in raw.items():
            resources[str(name)] = Resource.from_raw(name, data)
    elif isinstance(raw, (list, tuple)):
        for item in raw:
            if isinstance(item, Resource):
                resources[item.name] = item
            elif isinstance(item, dict) and item.get("name"):
                resources[str(item["name"])] = Resource.from_raw(item["name"], item)
    return resources


def resources_from_camp_state(state: Dict[str, Any]) -> Dict[str, Resource]:
    """Activity properties, then fields and special activities not already configured."""
    resources = normalize_resources(state.get("activityProperties") or {})
    app1 = state.get("app1") if isinstance(state.get("app1"), dict) else {}
    for item in list(app1.get("fields") or []) + list(app1.get("specialActivities") or []):
        if isinstance(item, dict) and item.get("name") and item["name"] not in resources:
            resources[str(item["name"])] = Resource.from_raw(item["name"], item)
    return resources
