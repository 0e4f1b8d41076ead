"""Errors raised by the forecast engine and the services around it."""


class ValidationError(ValueError):
    """Malformed or logically inconsistent input. Nothing is applied when raised."""

    def __init__(self, message: str, record_id=None):
        super().__init__(message)
        self.record_id = record_id


class NotFoundError(LookupError):
    """A service operation referenced a record that does not exist."""
