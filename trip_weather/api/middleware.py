from __future__ import annotations

import time
import uuid

import structlog
import structlog.contextvars
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

log = structlog.get_logger()


class RequestIDMiddleware:
    """Tags each HTTP request with an id and binds it to the logging context.

    An ``x-request-id`` sent by an upstream caller is reused; otherwise a
    fresh one is generated. The id is
    echoed in the response headers and bound through ``structlog.contextvars``
    for the life of the request, so every event logged while serving it,
    including those from concurrent provider lookups, carries it.
    """

    header = b"x-request-id"

    def __init__(self, app):
        self.app = app

    def _incoming_id(self, scope) -> str:
        for name, value in scope.get("headers") or ():
            if name.lower() == self.header and value:
                return value.decode("latin-1")[:64]
        return uuid.uuid4().hex

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return
        request_id = self._incoming_id(scope)
        scope.setdefault("state", {})["request_id"] = request_id

        async def send_wrapper(message):
            if message.get("type") == "http.response.start":
                message.setdefault("headers", []).append((self.header, request_id.encode("latin-1")))
            await send(message)

        structlog.contextvars.bind_contextvars(request_id=request_id)
        start = time.perf_counter()
        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            log.info(
                "request_completed",
                method=scope.get("method", ""),
                path=scope.get("path", ""),
                duration_ms=int((time.perf_counter() - start) * 1000),
            )
            structlog.contextvars.unbind_contextvars("request_id")


def _error_body(request: Request, code: str, message: str) -> dict:
    req_id = getattr(getattr(request, "state", None), "request_id", None) or ""
    return {"error": {"code": code, "message": message, "request_id": req_id}}


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    if exc.status_code == 405:
        code = "method_not_allowed"
    elif exc.status_code == 400:
        code = "bad_request"
    else:
        code = "http_error"
    # x-request-id is added by RequestIDMiddleware
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"{where}: {first.get('msg', 'invalid request')}" if where else first.get("msg", "invalid request")
    log.info("request_rejected", path=request.url.path, errors=len(errors))
    return JSONResponse(status_code=400, content=_error_body(request, "bad_request", message))


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("request_failed", path=request.url.path)
    return JSONResponse(status_code=500, content=_error_body(request, "internal_error", str(exc)))
