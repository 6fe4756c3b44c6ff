"""Storage capability interface shared by every backend.

Upper layers depend only on `Storage` and the error kinds in
`filegate.storage.errors`. The local filesystem backend is the one
implementation that ships; smb, ftp and s3 are configuration-level extension
points that must implement the same protocol.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, BinaryIO, Literal, Protocol, runtime_checkable


BackendName = Literal["local", "smb", "ftp", "s3"]
BACKEND_NAMES: tuple[BackendName, ...] = ("local", "smb", "ftp", "s3")


@dataclass(frozen=True)
class FileEntry:
    name: str
    path: str
    size: int
    is_directory: bool
    modified_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "size": self.size,
            "isDirectory": self.is_directory,
            "modifiedAt": self.modified_at.isoformat(),
        }


@runtime_checkable
class Storage(Protocol):
    """
    Single-path, single-operation file access rooted somewhere.

    Every method raises a `StorageError` subclass on failure, never a raw
    backend exception. `cancel` is advisory: it is honoured only before the
    backend issues its I/O. `list` and `stat` describe symlinks themselves,
    not their targets.
    """

    def list(self, path: str, *, cancel: threading.Event | None = None) -> list[FileEntry]: ...

    def read(self, path: str, *, cancel: threading.Event | None = None) -> BinaryIO:
        """Open `path` for reading. The caller owns the handle and must close it."""
        ...

    def write(self, path: str, stream: BinaryIO, *, cancel: threading.Event | None = None) -> None:
        """Replace the file at `path` with the contents of `stream`, creating parent dirs."""
        ...

    def delete(self, path: str, *, cancel: threading.Event | None = None) -> None: ...

    def stat(self, path: str, *, cancel: threading.Event | None = None) -> FileEntry: ...
