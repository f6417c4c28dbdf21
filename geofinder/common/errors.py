"""Domain errors and failure typing."""


class FinderError(Exception):
    """Base class for proximity finder failures."""

    error_code = "FINDER_ERROR"


class ConfigError(FinderError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class ConstructionError(FinderError):
    """Raised when a region or point source cannot be read; fatal at startup."""

    error_code = "CONSTRUCTION_ERROR"


class InternalConsistencyError(FinderError):
    """Raised when a region index references a record key that does not exist."""

    error_code = "INTERNAL_CONSISTENCY"
