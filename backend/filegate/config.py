from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from filegate.storage.base import BACKEND_NAMES


DEFAULT_MAX_UPLOAD_SIZE = 100 * 1024 * 1024
LOG_LEVELS = ("debug", "info", "warn", "warning", "error")


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class LocalConfig:
    root_path: str = "./data"


@dataclass(frozen=True)
class SMBConfig:
    host: str = ""
    port: str = "445"
    share: str = ""
    user: str = ""
    password: str = field(default="", repr=False)


@dataclass(frozen=True)
class FTPConfig:
    host: str = ""
    port: str = "21"
    user: str = ""
    password: str = field(default="", repr=False)


@dataclass(frozen=True)
class S3Config:
    bucket: str = ""
    region: str = "us-east-1"
    prefix: str = ""


@dataclass(frozen=True)
class Config:
    port: str = "8080"
    log_level: str = "info"
    storage_backend: str = "local"
    max_upload_size: int = DEFAULT_MAX_UPLOAD_SIZE
    local: LocalConfig = field(default_factory=LocalConfig)
    smb: SMBConfig = field(default_factory=SMBConfig)
    ftp: FTPConfig = field(default_factory=FTPConfig)
    s3: S3Config = field(default_factory=S3Config)
    log_dir: Optional[str] = None
    cors_origins: tuple[str, ...] = ("http://localhost:5173",)


def _backend_dir() -> Path:
    # backend/filegate/config.py -> backend/
    return Path(__file__).resolve().parents[1]


def load_dotenvs() -> None:
    """
    Load environment variables from:
    - backend/.env
    - repo-root/.env

    Values already present in the process environment win.
    """
    backend_dir = _backend_dir()
    load_dotenv(backend_dir / ".env")
    load_dotenv(backend_dir.parent / ".env")


def _env_or_default(env: Mapping[str, str], key: str, fallback: str) -> str:
    val = (env.get(key) or "").strip()
    return val or fallback


def _validate_backend(cfg: Config) -> None:
    if cfg.storage_backend == "local":
        if not cfg.local.root_path:
            raise ConfigError("LOCAL_ROOT_PATH is required for local backend")
    elif cfg.storage_backend == "smb":
        if not cfg.smb.host:
            raise ConfigError("SMB_HOST is required for smb backend")
        if not cfg.smb.share:
            raise ConfigError("SMB_SHARE is required for smb backend")
    elif cfg.storage_backend == "ftp":
        if not cfg.ftp.host:
            raise ConfigError("FTP_HOST is required for ftp backend")
    elif cfg.storage_backend == "s3":
        if not cfg.s3.bucket:
            raise ConfigError("S3_BUCKET is required for s3 backend")


def load_config(env: Optional[Mapping[str, str]] = None) -> Config:
    """
    Build a Config from environment variables.

    Raises ConfigError for an unknown STORAGE_BACKEND, a non-numeric or
    non-positive MAX_UPLOAD_SIZE, an out-of-range PORT, an unknown LOG_LEVEL, or
    when the selected backend is missing its required settings.
    """
    env = os.environ if env is None else env

    backend = _env_or_default(env, "STORAGE_BACKEND", "local").lower()
    if backend not in BACKEND_NAMES:
        raise ConfigError(
            f"invalid STORAGE_BACKEND: {backend!r} (must be one of: {', '.join(BACKEND_NAMES)})"
        )

    raw_max = _env_or_default(env, "MAX_UPLOAD_SIZE", str(DEFAULT_MAX_UPLOAD_SIZE))
    try:
        max_upload = int(raw_max)
    except ValueError as e:
        raise ConfigError(f"invalid MAX_UPLOAD_SIZE: {raw_max!r}") from e
    if max_upload <= 0:
        raise ConfigError(f"invalid MAX_UPLOAD_SIZE: {raw_max!r} (must be positive)")

    port = _env_or_default(env, "PORT", "8080")
    if not port.isdigit() or not 0 < int(port) < 65536:
        raise ConfigError(f"invalid PORT: {port!r}")

    log_level = _env_or_default(env, "LOG_LEVEL", "info").lower()
    if log_level not in LOG_LEVELS:
        raise ConfigError(f"invalid LOG_LEVEL: {log_level!r}")

    origins = _env_or_default(env, "FILEGATE_CORS_ORIGINS", "http://localhost:5173").split(",")

    cfg = Config(
        port=port,
        log_level=log_level,
        storage_backend=backend,
        max_upload_size=max_upload,
        local=LocalConfig(root_path=_env_or_default(env, "LOCAL_ROOT_PATH", "./data")),
        smb=SMBConfig(
            host=env.get("SMB_HOST", ""),
            port=_env_or_default(env, "SMB_PORT", "445"),
            share=env.get("SMB_SHARE", ""),
            user=env.get("SMB_USER", ""),
            password=env.get("SMB_PASSWORD", ""),
        ),
        ftp=FTPConfig(
            host=env.get("FTP_HOST", ""),
            port=_env_or_default(env, "FTP_PORT", "21"),
            user=env.get("FTP_USER", ""),
            password=env.get("FTP_PASSWORD", ""),
        ),
        s3=S3Config(
            bucket=env.get("S3_BUCKET", ""),
            region=_env_or_default(env, "S3_REGION", "us-east-1"),
            prefix=env.get("S3_PREFIX", ""),
        ),
        log_dir=env.get("FILEGATE_LOG_DIR") or None,
        cors_origins=tuple(o.strip() for o in origins if o.strip()),
    )
    _validate_backend(cfg)
    return cfg
