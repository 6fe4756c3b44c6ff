from __future__ import annotations

import argparse

import uvicorn

from filegate.config import ConfigError, load_config, load_dotenvs
from filegate.main import create_app
from filegate.storage.errors import StorageConfigError, StorageError


_UVICORN_LEVELS = {"warn": "warning"}


def main() -> int:
    ap = argparse.ArgumentParser(description="Serve file operations over HTTP from a configured storage backend.")
    ap.add_argument("--host", default="0.0.0.0", help="Interface to bind (default: all).")
    ap.add_argument("--port", type=int, default=None, help="Port to listen on (overrides PORT).")
    args = ap.parse_args()

    load_dotenvs()
    try:
        cfg = load_config()
        app = create_app(cfg)
    except ConfigError as e:
        raise SystemExit(f"config validation failed: {e}") from e
    except (StorageConfigError, StorageError) as e:
        raise SystemExit(f"create storage backend: {e}") from e

    port = args.port if args.port is not None else int(cfg.port)
    uvicorn.run(app, host=args.host, port=port, log_level=_UVICORN_LEVELS.get(cfg.log_level, cfg.log_level))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
