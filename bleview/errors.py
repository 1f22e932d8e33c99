"""Exception types raised by bleview."""


class BLEViewError(RuntimeError):
    """Base class for bleview errors."""
    pass


class DriverError(BLEViewError):
    """Raised when a driver backend cannot be started or used."""
    pass


class ConfigError(ValueError):
    """Raised when configuration values are invalid."""
    pass
