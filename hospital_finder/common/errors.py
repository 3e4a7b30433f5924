"""Domain errors and failure typing."""


class FinderError(Exception):
    """Base class for hospital finder failures."""

    error_code = "FINDER_ERROR"


class ConfigError(FinderError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class ContractError(FinderError):
    """Raised when a record does not satisfy the hospital record contract."""

    error_code = "CONTRACT_ERROR"


class SourceError(FinderError):
    """Raised when a hospital source cannot produce a result set."""

    error_code = "SOURCE_ERROR"


class RecordNotFoundError(FinderError):
    error_code = "RECORD_NOT_FOUND"


class LocationUnavailableError(FinderError):
    """Raised by location providers that cannot produce a position."""

    error_code = "LOCATION_UNAVAILABLE"
