"""
Domain-specific exception hierarchy for the slot engine.
"""


class SlotEngineError(Exception):
    """Base class for all application-level errors."""


class ConfigurationError(SlotEngineError):
    """Raised when a working-hours template entry cannot be interpreted."""


class PreconditionError(SlotEngineError, ValueError):
    """Raised when a caller violates the engine's input contract."""


class DataSourceError(SlotEngineError):
    """Raised when professionals, services or bookings cannot be loaded."""
