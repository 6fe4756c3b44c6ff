from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from filegate.api.errors import handle_http_exception, handle_storage_error, handle_validation_error
from filegate.api.fs import router as fs_router
from filegate.api.middleware import PathGuardMiddleware, request_context
from filegate.config import Config, load_config, load_dotenvs
from filegate.logging.ndjson import init_logging, log_event
from filegate.storage.base import Storage
from filegate.storage.errors import StorageError
from filegate.storage.factory import create_storage


def create_app(config: Optional[Config] = None, storage: Optional[Storage] = None) -> FastAPI:
    if config is None:
        load_dotenvs()
        config = load_config()
    init_logging(level=config.log_level, directory=config.log_dir)
    if storage is None:
        storage = create_storage(config)

    app = FastAPI(title="Filegate API", version="0.1.0")
    app.state.config = config
    app.state.storage = storage

    # Last added runs first: CORS, then request context, then the path guard.
    app.add_middleware(PathGuardMiddleware)
    app.middleware("http")(request_context)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    app.add_exception_handler(StorageError, handle_storage_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)

    @app.get("/api/health")
    def health() -> dict:
        return {"status": "ok", "backend": config.storage_backend}

    app.include_router(fs_router)

    log_event(
        level="info",
        event="app.startup",
        data={"backend": config.storage_backend, "port": config.port, "storage": repr(storage)},
    )
    return app
