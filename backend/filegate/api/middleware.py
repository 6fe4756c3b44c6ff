from __future__ import annotations

import time
import uuid
from urllib.parse import parse_qsl, quote, urlencode

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from filegate.api.errors import error_response
from filegate.logging.ndjson import log_event, request_id_var
from filegate.storage.paths import PathRejectedError, clean_request_path


REQUEST_ID_HEADER = "X-Request-ID"


class PathGuardMiddleware(BaseHTTPMiddleware):
    """
    Screens the `path` query parameter before any route sees it.

    Rejected values get a 400 JSON error and never reach storage; accepted ones
    are replaced in the request with their normalized form.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        # Starlette decodes the query with errors="replace"; keep the undecodable
        # bytes as surrogates instead so a bad `path` is rejected, not rewritten.
        query = request.scope.get("query_string", b"").decode("latin-1")
        params = parse_qsl(query, keep_blank_values=True, errors="surrogateescape")

        raw = next((v for k, v in reversed(params) if k == "path"), "")
        if not raw:
            return await call_next(request)
        try:
            raw.encode("utf-8")
        except UnicodeEncodeError:
            return self._reject(request, quote(raw, errors="surrogateescape"), "invalid path encoding")

        try:
            cleaned = clean_request_path(raw)
        except PathRejectedError as e:
            return self._reject(request, raw, str(e))

        items = [(k, v) for k, v in params if k != "path"]
        items.append(("path", cleaned))
        request.scope["query_string"] = urlencode(items, errors="surrogateescape").encode("latin-1")
        return await call_next(request)

    def _reject(self, request: Request, raw: str, reason: str) -> Response:
        log_event(
            level="warn",
            event="pathguard.reject",
            data={"method": request.method, "route": request.url.path, "path": raw, "reason": reason},
        )
        return error_response(400, reason)


async def request_context(request: Request, call_next: RequestResponseEndpoint) -> Response:
    """
    Bind a request ID, log one `http.request` event per request, and turn
    anything that escapes the routes into a plain 500 JSON error.
    """
    rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    token = request_id_var.set(rid)
    start = time.perf_counter()
    try:
        try:
            response = await call_next(request)
        except Exception as e:  # noqa: BLE001
            log_event(
                level="error",
                event="api.exception",
                data={"method": request.method, "path": str(request.url.path), "error": repr(e)},
            )
            response = error_response(500, "internal server error")
        response.headers[REQUEST_ID_HEADER] = rid
        log_event(
            level="info",
            event="http.request",
            data={
                "method": request.method,
                "path": str(request.url.path),
                "status": response.status_code,
                "durationMs": round((time.perf_counter() - start) * 1000, 3),
            },
        )
        return response
    finally:
        request_id_var.reset(token)
