"""Exception types raised by the notes core."""


class NoteError(Exception):
    """Base class for every error raised by the notes core."""


class ValidationError(NoteError, ValueError):
    """Raised when a note cannot be built from the supplied input."""


class StorageError(NoteError):
    """Raised when the backing store cannot be read or written."""
