from __future__ import annotations

import threading
from typing import Any, BinaryIO, Callable, TypeVar

from filegate.logging.ndjson import log_event
from filegate.storage.base import FileEntry, Storage
from filegate.storage.errors import ErrorKind, StorageError


T = TypeVar("T")


def _backend_name(storage: Storage) -> str:
    return type(storage).__name__


def _run(event: str, storage: Storage, path: str, op: Callable[[], T]) -> T:
    try:
        return op()
    except StorageError as e:
        log_event(
            level="error" if e.kind is ErrorKind.UNKNOWN else "warn",
            event="fs.error",
            data={
                "op": event,
                "path": path,
                "backend": _backend_name(storage),
                "kind": e.kind.value,
                "error": str(e),
                "cause": repr(e.__cause__) if e.__cause__ is not None else None,
            },
        )
        raise


def fs_list(storage: Storage, path: str, *, cancel: threading.Event | None = None) -> dict[str, Any]:
    entries = _run("fs.list", storage, path, lambda: storage.list(path, cancel=cancel))
    log_event(
        level="info",
        event="fs.list",
        data={"path": path, "backend": _backend_name(storage), "entries": len(entries)},
    )
    return {"path": path, "entries": [e.to_dict() for e in entries]}


def fs_stat(storage: Storage, path: str, *, cancel: threading.Event | None = None) -> FileEntry:
    entry = _run("fs.stat", storage, path, lambda: storage.stat(path, cancel=cancel))
    log_event(level="debug", event="fs.stat", data={"path": path, "backend": _backend_name(storage)})
    return entry


def fs_read(storage: Storage, path: str, *, cancel: threading.Event | None = None) -> BinaryIO:
    handle = _run("fs.read", storage, path, lambda: storage.read(path, cancel=cancel))
    log_event(level="info", event="fs.read", data={"path": path, "backend": _backend_name(storage)})
    return handle


def fs_write(
    storage: Storage,
    path: str,
    stream: BinaryIO,
    *,
    size: int | None = None,
    cancel: threading.Event | None = None,
) -> None:
    _run("fs.write", storage, path, lambda: storage.write(path, stream, cancel=cancel))
    log_event(
        level="info",
        event="fs.write",
        data={"path": path, "backend": _backend_name(storage), "contentLen": size},
    )


def fs_delete(storage: Storage, path: str, *, cancel: threading.Event | None = None) -> None:
    _run("fs.delete", storage, path, lambda: storage.delete(path, cancel=cancel))
    log_event(level="info", event="fs.delete", data={"path": path, "backend": _backend_name(storage)})
