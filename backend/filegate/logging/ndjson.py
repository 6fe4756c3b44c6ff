from __future__ import annotations

import json
import os
import threading
import time
from contextvars import ContextVar
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Optional

_lock = threading.Lock()

_LEVELS = {"debug": 10, "info": 20, "warn": 30, "warning": 30, "error": 40}

_settings: dict[str, Any] = {"dir": None, "level": "info"}

request_id_var: ContextVar[Optional[str]] = ContextVar("filegate_request_id", default=None)


def _backend_dir() -> Path:
    # backend/filegate/logging/ndjson.py -> backend/
    return Path(__file__).resolve().parents[2]


def log_dir() -> Path:
    if _settings["dir"]:
        return Path(_settings["dir"])
    p = os.environ.get("FILEGATE_LOG_DIR")
    if p:
        return Path(p)
    return _backend_dir() / "data" / "logs"


def _today_prefix(ts: Optional[float] = None) -> str:
    dt = datetime.fromtimestamp(ts or time.time())
    return dt.strftime("filegate-%Y-%m-%d")


def _int_env(key: str, fallback: int) -> int:
    try:
        return int(os.environ.get(key, str(fallback)))
    except ValueError:
        return fallback


def _max_bytes() -> int:
    return _int_env("FILEGATE_LOG_MAX_BYTES", 50 * 1024 * 1024)


def _retention_days() -> int:
    return _int_env("FILEGATE_LOG_RETENTION_DAYS", 7)


def _enabled(level: str) -> bool:
    threshold = _LEVELS.get(str(_settings["level"]).lower(), 20)
    return _LEVELS.get(level.lower(), 20) >= threshold


def _truncate(v: Any, *, max_len: int = 600) -> Any:
    if v is None:
        return None
    if isinstance(v, str):
        if len(v) <= max_len:
            return v
        return v[:max_len] + f"...(+{len(v) - max_len} chars)"
    if isinstance(v, (int, float, bool)):
        return v
    if isinstance(v, dict):
        out: dict[str, Any] = {}
        for k, vv in list(v.items())[:80]:
            out[str(k)] = _truncate(vv, max_len=max_len)
        if len(v) > 80:
            out["_truncated_keys"] = len(v) - 80
        return out
    if isinstance(v, (list, tuple)):
        items = [_truncate(x, max_len=max_len) for x in v[:80]]
        if len(v) > 80:
            items.append({"_truncated_items": len(v) - 80})
        return items
    return _truncate(str(v), max_len=max_len)


def _pick_log_file(*, ts: Optional[float] = None) -> Path:
    d = log_dir()
    d.mkdir(parents=True, exist_ok=True)
    prefix = _today_prefix(ts)
    base = d / f"{prefix}.ndjson"
    max_b = _max_bytes()

    if not base.exists() or base.stat().st_size < max_b:
        return base

    # Size exceeded; pick next suffix.
    for i in range(1, 1000):
        p = d / f"{prefix}.{i}.ndjson"
        if not p.exists() or p.stat().st_size < max_b:
            return p
    return base


def _prune_old_files() -> None:
    d = log_dir()
    if not d.exists():
        return
    cutoff = datetime.now() - timedelta(days=_retention_days())
    for p in d.glob("filegate-*.ndjson"):
        try:
            if datetime.fromtimestamp(p.stat().st_mtime) < cutoff:
                p.unlink(missing_ok=True)
        except OSError:
            continue


def init_logging(*, level: str = "info", directory: Optional[str] = None) -> None:
    """
    Set the level threshold and log directory, ensure the directory exists and
    prune files past the retention window.
    """
    with _lock:
        _settings["level"] = level
        _settings["dir"] = directory
        try:
            log_dir().mkdir(parents=True, exist_ok=True)
            _prune_old_files()
        except OSError:
            pass


def log_event(
    *,
    level: str,
    event: str,
    data: Optional[dict[str, Any]] = None,
    requestId: Optional[str] = None,
) -> None:
    """
    Append a single structured NDJSON record.

    The request ID defaults to the one bound for the current request. Never pass
    file contents; callers log sizes and paths only.
    """
    if not _enabled(level):
        return
    rec: dict[str, Any] = {
        "ts": int(time.time() * 1000),
        "level": level,
        "event": event,
    }
    rid = requestId or request_id_var.get()
    if rid:
        rec["requestId"] = rid
    if data:
        rec["data"] = _truncate(data)

    line = json.dumps(rec, ensure_ascii=False)
    with _lock:
        try:
            _prune_old_files()
            with open(_pick_log_file(), "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError:
            # Best-effort: never crash a request due to logging.
            pass
