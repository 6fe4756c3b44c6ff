"""Tests for path normalization and the two traversal checks."""

from __future__ import annotations

import os

import pytest

from filegate.storage.errors import ErrorKind, PermissionDeniedError
from filegate.storage.paths import (
    PathRejectedError,
    clean_request_path,
    normalize_path,
    percent_decode,
    relative_to_root,
    resolve_under_root,
)


# ---------------------------------------------------------------------------
# normalize_path
# ---------------------------------------------------------------------------


class TestNormalizePath:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("readme.txt", "readme.txt"),
            ("docs/guide/intro.md", "docs/guide/intro.md"),
            ("docs/guide/", "docs/guide"),
            ("docs//guide", "docs/guide"),
            ("./readme.txt", "readme.txt"),
            ("a/./b/.", "a/b"),
            ("//a///b//", "/a/b"),
            ("/", "/"),
        ],
    )
    def test_cleans(self, raw, expected):
        assert normalize_path(raw) == expected

    def test_empty_passes_through(self):
        assert normalize_path("") == ""

    @pytest.mark.parametrize("raw", ["a//b/", "./x", "/a/./b//c/", ".", "x/y/z", "//"])
    def test_idempotent(self, raw):
        once = normalize_path(raw)
        assert normalize_path(once) == once


# ---------------------------------------------------------------------------
# Boundary guard
# ---------------------------------------------------------------------------


class TestCleanRequestPath:
    @pytest.mark.parametrize(
        "raw",
        [
            "../etc/passwd",
            "/../../../etc/passwd",
            "files/../../../secret",
            "%2e%2e/etc/passwd",
            "%2e%2e%2fetc%2fpasswd",
            "..%2fetc/passwd",
            "%2E%2E",
            "a/..",
        ],
    )
    def test_rejects_traversal(self, raw):
        with pytest.raises(PathRejectedError, match="invalid path"):
            clean_request_path(raw)

    def test_rejects_double_encoded_after_transport_decode(self):
        # "%252e%252e" arrives as "%2e%2e" once the query string is parsed.
        with pytest.raises(PathRejectedError):
            clean_request_path("%2e%2e/secret")

    @pytest.mark.parametrize("raw", ["file\x00.txt", "file%00.txt", "a/%00"])
    def test_rejects_null_byte(self, raw):
        with pytest.raises(PathRejectedError, match="invalid path"):
            clean_request_path(raw)

    @pytest.mark.parametrize("raw", ["%zz", "abc%2", "%", "%c3%28"])
    def test_rejects_bad_encoding(self, raw):
        with pytest.raises(PathRejectedError, match="invalid path encoding"):
            clean_request_path(raw)

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("readme.txt", "readme.txt"),
            ("docs/guide/", "docs/guide"),
            ("docs//guide", "docs/guide"),
            ("./readme.txt", "readme.txt"),
            ("my%20file.txt", "my file.txt"),
            ("dir%2Fsub", "dir/sub"),
        ],
    )
    def test_accepts_and_normalizes(self, raw, expected):
        assert clean_request_path(raw) == expected

    def test_empty_is_root(self):
        assert clean_request_path("") == ""

    def test_single_dots_allowed(self):
        assert clean_request_path("a.b.c/file.tar.gz") == "a.b.c/file.tar.gz"

    def test_rejection_is_value_error(self):
        with pytest.raises(ValueError):
            clean_request_path("..")

    def test_percent_decode_plus_is_space(self):
        assert percent_decode("a+b") == "a b"


# ---------------------------------------------------------------------------
# Backend root jail
# ---------------------------------------------------------------------------


class TestResolveUnderRoot:
    @pytest.fixture
    def jail(self, tmp_path) -> str:
        d = tmp_path / "data"
        d.mkdir()
        return str(d)

    @pytest.mark.parametrize("requested", ["", "/"])
    def test_root_aliases(self, jail, requested):
        assert resolve_under_root(jail, requested) == jail

    def test_nested(self, jail):
        assert resolve_under_root(jail, "a/b.txt") == os.path.join(jail, "a", "b.txt")

    def test_leading_slash_stays_inside(self, jail):
        assert resolve_under_root(jail, "/etc/passwd") == os.path.join(jail, "etc", "passwd")

    def test_inner_dotdot_that_stays_inside(self, jail):
        assert resolve_under_root(jail, "a/../b") == os.path.join(jail, "b")

    @pytest.mark.parametrize(
        "requested",
        ["../../etc/passwd", "/../../etc/passwd", "sub/../../etc/passwd", "..", "a/../.."],
    )
    def test_escape_is_permission_denied(self, jail, requested):
        with pytest.raises(PermissionDeniedError) as exc_info:
            resolve_under_root(jail, requested)
        assert exc_info.value.kind is ErrorKind.PERMISSION_DENIED
        assert exc_info.value.path == requested

    def test_sibling_with_shared_prefix_is_outside(self, jail):
        # root ".../data" must not admit ".../data-evil"
        with pytest.raises(PermissionDeniedError):
            resolve_under_root(jail, "../data-evil/x")

    def test_does_not_touch_disk(self, jail):
        resolved = resolve_under_root(jail, "missing/deeper/file.txt")
        assert not os.path.exists(resolved)


class TestRelativeToRoot:
    def test_root_is_empty(self, tmp_path):
        assert relative_to_root(str(tmp_path), str(tmp_path)) == ""

    def test_slash_separated(self, tmp_path):
        full = os.path.join(str(tmp_path), "a", "b", "c.txt")
        assert relative_to_root(str(tmp_path), full) == "a/b/c.txt"
