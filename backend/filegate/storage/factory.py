from __future__ import annotations

from filegate.config import Config
from filegate.storage.base import Storage
from filegate.storage.errors import StorageConfigError
from filegate.storage.local import LocalStorage


def create_storage(cfg: Config) -> Storage:
    if cfg.storage_backend == "local":
        return LocalStorage(cfg.local.root_path)
    if cfg.storage_backend in ("smb", "ftp", "s3"):
        # TODO: smb/ftp/s3 backends; config for them is already parsed and validated.
        raise StorageConfigError(f"storage backend {cfg.storage_backend!r} is not implemented yet")
    raise StorageConfigError(f"unknown storage backend: {cfg.storage_backend!r}")
