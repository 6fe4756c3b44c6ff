from __future__ import annotations

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from filegate.storage.errors import ErrorKind, StorageError


_STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.PERMISSION_DENIED: 403,
    ErrorKind.UNKNOWN: 500,
}


def error_response(status_code: int, message: str, *, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code, headers=headers)


async def handle_storage_error(request: Request, exc: StorageError) -> JSONResponse:
    status_code = _STATUS_BY_KIND.get(exc.kind, 500)
    # UNKNOWN carries OS details that stay in the logs only.
    message = str(exc) if exc.kind is not ErrorKind.UNKNOWN else "internal storage error"
    return error_response(status_code, message)


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(422, "invalid request parameters")
