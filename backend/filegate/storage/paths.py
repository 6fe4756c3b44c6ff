from __future__ import annotations

import os
import posixpath
import re
from urllib.parse import unquote_plus

from filegate.storage.errors import PermissionDeniedError


_MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_REPEATED_SLASH = re.compile(r"/{2,}")


class PathRejectedError(ValueError):
    pass


def percent_decode(value: str) -> str:
    if _MALFORMED_ESCAPE.search(value):
        raise PathRejectedError("invalid path encoding")
    try:
        return unquote_plus(value, errors="strict")
    except UnicodeDecodeError as e:
        raise PathRejectedError("invalid path encoding") from e


def normalize_path(path: str) -> str:
    """
    Lexically clean a slash-separated path.

    Collapses repeated separators, drops `.` segments and any trailing slash:
    "docs//guide/" -> "docs/guide", "./readme.txt" -> "readme.txt".
    Running it twice gives the same result as running it once.
    """
    if not path:
        return path
    return posixpath.normpath(_REPEATED_SLASH.sub("/", path))


def clean_request_path(raw: str) -> str:
    """
    Validate a caller-supplied path before it reaches any storage backend.

    The value is percent-decoded once more than the transport already did, so
    double-encoded traversal ("%252e%252e") is seen as "..". Raises
    PathRejectedError for traversal tokens, null bytes and malformed escapes.
    """
    if raw == "":
        return raw
    decoded = percent_decode(raw)
    if ".." in decoded or "\x00" in decoded:
        raise PathRejectedError("invalid path")
    return normalize_path(decoded)


def resolve_under_root(root: str, requested: str) -> str:
    """
    Map a root-relative path onto an absolute path inside `root`.

    Purely lexical: nothing on disk is consulted. Raises PermissionDeniedError
    unless the cleaned result is `root` or lies beneath it component-wise, so a
    root of /data never admits /data-evil.
    """
    if requested in ("", "/"):
        return root

    rel = requested.replace("/", os.sep).lstrip(os.sep)
    cleaned = os.path.normpath(os.path.join(root, rel))
    try:
        contained = os.path.commonpath([root, cleaned]) == root
    except ValueError:
        # different drives, or relative vs absolute on Windows
        contained = False
    if not contained:
        raise PermissionDeniedError(path=requested)
    return cleaned


def relative_to_root(root: str, full: str) -> str:
    rel = os.path.relpath(full, root)
    if rel == os.curdir:
        return ""
    return rel.replace(os.sep, "/")
