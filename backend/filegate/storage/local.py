from __future__ import annotations

import os
import shutil
import stat as stat_mode
import threading
from concurrent.futures import CancelledError
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO

from filegate.storage.base import FileEntry
from filegate.storage.errors import (
    NotFoundError,
    PermissionDeniedError,
    UnknownStorageError,
    map_os_error,
)
from filegate.storage.paths import relative_to_root, resolve_under_root


COPY_CHUNK_SIZE = 64 * 1024


def _check_cancelled(cancel: threading.Event | None, path: str) -> None:
    if cancel is not None and cancel.is_set():
        raise UnknownStorageError("operation cancelled", path=path) from CancelledError()


class LocalStorage:
    """
    Storage backend on the host filesystem, jailed under a single root.

    The root is resolved to an absolute path and created at construction and
    never changes afterwards. Every call re-validates the caller path against
    it, independent of any checks done further up.
    """

    def __init__(self, root: str | os.PathLike[str]):
        resolved = Path(root).expanduser().resolve()
        try:
            resolved.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise map_os_error(e, path=str(root)) from e
        self._root = str(resolved)

    @property
    def root(self) -> str:
        return self._root

    def __repr__(self) -> str:
        return f"LocalStorage(root={self._root!r})"

    def _resolve(self, path: str) -> str:
        return resolve_under_root(self._root, path)

    def _entry(self, full: str, st: os.stat_result, *, is_dir: bool) -> FileEntry:
        return FileEntry(
            name=os.path.basename(full) if full != self._root else "",
            path=relative_to_root(self._root, full),
            size=st.st_size,
            is_directory=is_dir,
            modified_at=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
        )

    def list(self, path: str, *, cancel: threading.Event | None = None) -> list[FileEntry]:
        full = self._resolve(path)
        _check_cancelled(cancel, path)
        entries: list[FileEntry] = []
        try:
            with os.scandir(full) as it:
                for child in it:
                    is_dir = child.is_dir(follow_symlinks=False)
                    st = child.stat(follow_symlinks=False)
                    entries.append(self._entry(child.path, st, is_dir=is_dir))
        except OSError as e:
            raise map_os_error(e, path=path) from e
        entries.sort(key=lambda e: (not e.is_directory, e.name.lower()))
        return entries

    def read(self, path: str, *, cancel: threading.Event | None = None) -> BinaryIO:
        full = self._resolve(path)
        _check_cancelled(cancel, path)
        try:
            return open(full, "rb")
        except IsADirectoryError as e:
            raise NotFoundError("not a file", path=path) from e
        except OSError as e:
            raise map_os_error(e, path=path) from e

    def write(self, path: str, stream: BinaryIO, *, cancel: threading.Event | None = None) -> None:
        full = self._resolve(path)
        if full == self._root:
            raise PermissionDeniedError("cannot write to the storage root", path=path)
        _check_cancelled(cancel, path)
        try:
            os.makedirs(os.path.dirname(full), exist_ok=True)
            f = open(full, "wb")
        except OSError as e:
            raise map_os_error(e, path=path) from e
        with f:
            try:
                shutil.copyfileobj(stream, f, COPY_CHUNK_SIZE)
            except OSError as e:
                raise UnknownStorageError(f"write file: {e}", path=path) from e

    def delete(self, path: str, *, cancel: threading.Event | None = None) -> None:
        full = self._resolve(path)
        if full == self._root:
            raise PermissionDeniedError("cannot delete the storage root", path=path)
        _check_cancelled(cancel, path)
        try:
            if os.path.isdir(full) and not os.path.islink(full):
                os.rmdir(full)
            else:
                os.remove(full)
        except OSError as e:
            raise map_os_error(e, path=path) from e

    def stat(self, path: str, *, cancel: threading.Event | None = None) -> FileEntry:
        full = self._resolve(path)
        _check_cancelled(cancel, path)
        try:
            st = os.lstat(full)
        except OSError as e:
            raise map_os_error(e, path=path) from e
        return self._entry(full, st, is_dir=stat_mode.S_ISDIR(st.st_mode))

