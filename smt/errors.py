"""Domain errors surfaced to API callers."""


class SMTError(Exception):
    """Base class for errors a caller can act on."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SMTError):
    """Caller input is missing or malformed. Never retried."""

    status_code = 400


class NotFoundError(SMTError):
    """A referenced evaluation or catalog entity does not exist."""

    status_code = 404
