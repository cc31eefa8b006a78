class ScheduleError(Exception):
    """Base class for errors raised by the campgrid core."""

    pass


class PersistenceError(ScheduleError):
    """Raised when the persistence collaborator fails to fetch or publish data."""

    pass


class ConfigurationError(ScheduleError):
    """Raised when a store is created without the settings it needs (URL, key, camp id)."""

    pass


# Mapping of custom exceptions to HTTP status codes
CUSTOM_ERRORS = {
    PersistenceError: 502,
    ConfigurationError: 500,
    ScheduleError: 500,
}
