from typing import Dict, Optional


class RidepoolError(Exception):
    """Base class for every error raised by the ride engine and its store."""


class ValidationError(RidepoolError):
    """Malformed input. ``errors`` maps a field name to a human readable message."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{field}: {message}" for field, message in self.errors.items()))


class BusinessRuleViolation(RidepoolError):
    """A well-formed request that the booking rules reject (full ride, self-booking, ...)."""

    def __init__(self, reason: str, message: Optional[str] = None):
        self.reason = reason
        super().__init__(message or reason)


class PersistenceError(RidepoolError):
    """The key-value store could not write a value."""
