"""
Request tracing for the combination API.

Every request carries one request id from the catalog provider's call to the
engine log lines and back: an incoming ``X-Request-ID`` is reused, otherwise
one is minted. Responses get the id, the engine version and the processing
time as headers. Crashes that escape the routers are answered with the same
JSON error shape the application's exception handlers use.
"""

import logging
import re
import time
import uuid
from typing import Callable, Dict

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from .config import ENGINE_VERSION
from .logging_config import safe_log

logger = logging.getLogger("combine_api.middleware")

REQUEST_ID_HEADER = "X-Request-ID"

# Caller-supplied ids end up in log lines; keep them short and printable
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")


def resolve_request_id(request: Request) -> str:
    """Reuse a well-formed incoming request id or mint a new one."""
    incoming = request.headers.get(REQUEST_ID_HEADER, "").strip()
    if incoming and _REQUEST_ID_PATTERN.match(incoming):
        return incoming
    return f"cmb_{uuid.uuid4().hex[:16]}"


def tracing_headers(request_id: str, duration: float) -> Dict[str, str]:
    return {
        REQUEST_ID_HEADER: request_id,
        "X-Engine-Version": ENGINE_VERSION,
        "X-Processing-Time": f"{duration:.4f}",
    }


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Request id propagation, access logging and last-resort error body."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        request_id = resolve_request_id(request)
        request.state.request_id = request_id
        route = f"{request.method} {request.url.path}"
        client_ip = request.client.host if request.client else "unknown"

        logger.info(safe_log(f"[{request_id}] [REQUEST] {route} | client={client_ip}"))

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.perf_counter() - started
            logger.exception(safe_log(
                f"[{request_id}] [CRASH] {route} | {type(e).__name__}: {e} | {duration:.4f}s"
            ))
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Internal server error",
                    "detail": str(e),
                    "status_code": 500,
                    "request_id": request_id
                },
                headers=tracing_headers(request_id, duration)
            )

        duration = time.perf_counter() - started
        response.headers.update(tracing_headers(request_id, duration))

        logger.info(safe_log(
            f"[{request_id}] [RESPONSE] {route} | status={response.status_code} | {duration:.4f}s"
        ))
        return response
