class ParleyError(Exception):
    """Base exception for parley domain errors."""

    pass


class NotFoundError(ParleyError):
    """Raised when a discussion, snapshot, branch or restore record is missing."""

    pass


class InvalidArgumentError(ParleyError):
    """Raised when a required argument is missing or malformed."""

    pass


class StorageError(ParleyError):
    """Raised when a record file cannot be read or written."""

    pass
