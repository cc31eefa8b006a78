"""
Time grid construction for the campgrid scheduling core.
Builds the unified day grid and the per-division grids from a skeleton.
"""

from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Tuple

from campgrid.models import Division, SkeletonBlock, TimeSlot
from campgrid.core.config import (
    GRID_INCREMENT_MINUTES, DEFAULT_DAY_START_MIN, DEFAULT_DAY_END_MIN,
    DEGENERATE_SPAN_MINUTES
)
from campgrid.core.logging_config import get_logger
from campgrid.utils.time_utils import format_range, minutes_to_label, parse_time

logger = get_logger(__name__)

__all__ = [
    "parse_time",
    "minutes_to_label",
    "parse_skeleton",
    "build_grid",
    "build_division_grids",
]


def parse_skeleton(skeleton: Optional[Iterable[Any]]) -> List[SkeletonBlock]:
    """Turn stored skeleton records into blocks, dropping anything unreadable."""
    if not skeleton or isinstance(skeleton, (str, bytes, dict)):
        return []
    blocks = []
    for raw in skeleton:
        block = SkeletonBlock.from_raw(raw)
        if block is not None:
            blocks.append(block)
    return blocks


def _iter_bounds(division_bounds: Any) -> Iterable[Tuple[Any, Any]]:
    """
    Yield (start, end) raw values from division bounds given as Division objects,
    camp-state division dicts, or plain (start, end) pairs, in a list or keyed by name.
    """
    if not division_bounds:
        return
    items = division_bounds.values() if isinstance(division_bounds, dict) else division_bounds
    for item in items:
        if isinstance(item, Division):
            yield item.start_time, item.end_time
        elif isinstance(item, dict):
            division = Division.from_raw("", item)
            yield division.start_time, division.end_time
        elif isinstance(item, (tuple, list)) and len(item) == 2:
            yield item[0], item[1]


def build_grid(
    skeleton_blocks: Optional[Iterable[Any]],
    division_bounds: Any = None,
    increment_minutes: int = GRID_INCREMENT_MINUTES
) -> List[TimeSlot]:
    """
    Build the unified fixed-increment grid wide enough for every division.

    The span always covers the default day (9:00 AM to 4:00 PM) and widens
    to the earliest start and latest end found in the skeleton blocks and
    division bounds. Existing unified-grid data is indexed against that span.

    Args:
        skeleton_blocks: Stored skeleton records or SkeletonBlock objects
        division_bounds: Division objects / dicts / (start, end) pairs
        increment_minutes: Width of each slot

    Returns:
        Ordered list of TimeSlot
    """
    if not increment_minutes or increment_minutes <= 0:
        increment_minutes = GRID_INCREMENT_MINUTES

    starts: List[int] = []
    ends: List[int] = []

    for block in parse_skeleton(skeleton_blocks):
        start, end = block.start_min, block.end_min
        if start is not None:
            starts.append(start)
        if end is not None:
            ends.append(end)

    for raw_start, raw_end in _iter_bounds(division_bounds):
        start, end = parse_time(raw_start), parse_time(raw_end)
        if start is not None:
            starts.append(start)
        if end is not None:
            ends.append(end)

    min_time = min([DEFAULT_DAY_START_MIN] + starts)
    max_time = max([DEFAULT_DAY_END_MIN] + ends)

    found = bool(starts or ends)
    if found and max_time <= min_time:
        max_time = min_time + DEGENERATE_SPAN_MINUTES

    grid = [
        TimeSlot(start_min=t, end_min=t + increment_minutes, label=minutes_to_label(t))
        for t in range(min_time, max_time, increment_minutes)
    ]

    if grid:
        logger.info(
            "Grid generated: %d slots (%s - %s)",
            len(grid), grid[0].label, grid[-1].label
        )
    return grid


def _split_names(block: SkeletonBlock) -> Tuple[str, str]:
    if len(block.sub_events) >= 2:
        return block.sub_events[0], block.sub_events[1]
    if "/" in block.event:
        parts = [p.strip() for p in block.event.split("/")]
        return parts[0] or "Activity 1", parts[1] or "Activity 2"
    return "Activity 1", "Activity 2"


def _expand_split_tiles(blocks: List[Tuple[int, int, SkeletonBlock]]) -> List[TimeSlot]:
    """A split tile becomes two slots, one per half, divided at the midpoint."""
    slots = []
    for start, end, block in blocks:
        midpoint = (start + end) // 2
        if block.kind == "split" and start < midpoint < end:
            first, second = _split_names(block)
            slots.append(TimeSlot(start, midpoint, format_range(start, midpoint),
                                  event=first, kind="split_half", split_half=1))
            slots.append(TimeSlot(midpoint, end, format_range(midpoint, end),
                                  event=second, kind="split_half", split_half=2))
        else:
            slots.append(TimeSlot(start, end, format_range(start, end),
                                  event=block.event or "Activity", kind=block.kind))
    return slots


def _consolidate(slots: List[TimeSlot], division_name: str) -> List[TimeSlot]:
    """Keep starts strictly increasing: a block repeating an earlier start is dropped."""
    result: List[TimeSlot] = []
    for slot in sorted(slots, key=lambda s: s.start_min):
        if result and slot.start_min == result[-1].start_min:
            logger.debug(
                "%s: duplicate block at %s, keeping the first",
                division_name, format_range(slot.start_min, slot.end_min)
            )
            continue
        if result and slot.start_min < result[-1].end_min:
            logger.debug(
                "%s: overlapping blocks %s and %s",
                division_name, result[-1], slot
            )
        result.append(slot)
    return result


def _grid_from_bounds(division: Division, increment_minutes: int) -> List[TimeSlot]:
    start, end = division.start_min, division.end_min
    if start is None or end is None or end <= start:
        return []
    return [
        TimeSlot(t, min(t + increment_minutes, end), format_range(t, min(t + increment_minutes, end)))
        for t in range(start, end, increment_minutes)
    ]


def build_division_grids(
    skeleton_blocks: Optional[Iterable[Any]],
    divisions: Optional[Dict[str, Division]] = None,
    increment_minutes: int = GRID_INCREMENT_MINUTES
) -> Dict[str, List[TimeSlot]]:
    """
    Build each division's own variable-length grid from the skeleton.

    Divisions without skeleton blocks fall back to fixed-increment slots over
    their own start/end bounds, or an empty grid when they have none.
    """
    if not increment_minutes or increment_minutes <= 0:
        increment_minutes = GRID_INCREMENT_MINUTES
    divisions = divisions or {}

    by_division: Dict[str, List[Tuple[int, int, SkeletonBlock]]] = defaultdict(list)
    for block in parse_skeleton(skeleton_blocks):
        if not block.division:
            continue
        start, end = block.start_min, block.end_min
        if start is None or end is None or end <= start:
            continue
        by_division[block.division].append((start, end, block))

    grids: Dict[str, List[TimeSlot]] = {}
    for division_name, blocks in by_division.items():
        blocks.sort(key=lambda b: b[0])
        grids[division_name] = _consolidate(_expand_split_tiles(blocks), division_name)

    for division_name, division in divisions.items():
        if division_name not in grids:
            grids[division_name] = _grid_from_bounds(division, increment_minutes)

    logger.debug(
        "Division grids: %s",
        ", ".join(f"{name}={len(slots)}" for name, slots in grids.items())
    )
    return grids
