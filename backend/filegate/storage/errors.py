from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    UNKNOWN = "unknown"


class StorageError(RuntimeError):
    """
    Base for every failure a storage backend reports.

    Callers branch on `kind` (or on the subclass) without knowing which backend
    produced the error. For UNKNOWN the original exception is chained as
    `__cause__`.
    """

    kind: ErrorKind = ErrorKind.UNKNOWN
    default_message = "storage error"

    def __init__(self, message: str | None = None, *, path: str = ""):
        self.path = path
        super().__init__(message or self.default_message)


class NotFoundError(StorageError):
    kind = ErrorKind.NOT_FOUND
    default_message = "file not found"


class PermissionDeniedError(StorageError):
    kind = ErrorKind.PERMISSION_DENIED
    default_message = "permission denied"


class UnknownStorageError(StorageError):
    kind = ErrorKind.UNKNOWN


class StorageConfigError(RuntimeError):
    pass


def map_os_error(err: OSError, *, path: str = "") -> StorageError:
    """Translate an OS-level failure into one of the storage error kinds."""
    if isinstance(err, (FileNotFoundError, NotADirectoryError)):
        return NotFoundError(path=path)
    if isinstance(err, PermissionError):
        return PermissionDeniedError(path=path)
    wrapped = UnknownStorageError(f"{type(err).__name__}: {err.strerror or err}", path=path)
    wrapped.__cause__ = err
    return wrapped
