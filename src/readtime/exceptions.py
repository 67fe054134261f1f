"""Unified exception hierarchy for readtime."""


class ReadTimeError(Exception):
    """Base exception for all readtime errors."""


# Store
class StorageError(ReadTimeError):
    """The persistence medium rejected or failed an operation."""


class ContextTornDownError(StorageError):
    """The store's host runtime was invalidated mid-operation."""


class MalformedRecordError(ReadTimeError):
    """A stored value failed basic shape checks."""
