"""
Configuration constants for the campgrid scheduling core.
All configurable settings are defined here.
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Supabase Configuration
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_KEY = os.getenv("SUPABASE_KEY", os.getenv("SUPABASE_ANON_KEY", ""))
CAMP_ID = os.getenv("CAMP_ID", "")

# Redis connection URL for the Celery worker
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# Table Names
VERSIONS_TABLE = "schedule_versions"
CAMP_STATE_TABLE = "camp_state"
DAILY_SCHEDULES_TABLE = "daily_schedules"

# Time Grid Rules
GRID_INCREMENT_MINUTES = 30
DEFAULT_DAY_START_MIN = 540   # 9:00 AM
DEFAULT_DAY_END_MIN = 960     # 4:00 PM
DEGENERATE_SPAN_MINUTES = 60  # Minimum span when bounds collapse

# Pseudo-resources that never take part in capacity or sharing checks
IGNORED_RESOURCES = [
    "free", "no field", "no game", "unassigned league",
    "lunch", "snacks", "dismissal", "regroup", "free play",
    "mincha", "davening", "lineup", "bus", "swim", "pool",
    "canteen", "gameroom", "game room", "transition", "buffer",
]

# Activities skipped by the same-day repetition check (substring match)
IGNORED_ACTIVITIES = [
    "free", "lunch", "snacks", "dismissal", "regroup", "free play",
    "mincha", "davening", "lineup", "bus", "transition", "buffer",
    "canteen", "gameroom", "game room", "swim", "pool",
]

# Activities every scheduled bunk is expected to have each day
REQUIRED_ACTIVITIES = ["lunch"]

# Resource Sharing Rules
SHARING_NOT_SHARABLE = "not_sharable"
SHARING_SAME_DIVISION = "same_division"
SHARING_CUSTOM = "custom"
SHARING_ALL = "all"

DEFAULT_SHARED_CAPACITY = 2   # custom / same_division without explicit capacity
UNLIMITED_CAPACITY = 999      # "all" without explicit capacity

# Trigger Timing (seconds)
DATE_CHANGE_DEBOUNCE_SECONDS = float(os.getenv("DATE_CHANGE_DEBOUNCE_SECONDS", "0.5"))
HYDRATION_DEBOUNCE_SECONDS = float(os.getenv("HYDRATION_DEBOUNCE_SECONDS", "2.0"))
HYDRATION_TIMEOUT_SECONDS = float(os.getenv("HYDRATION_TIMEOUT_SECONDS", "5.0"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
