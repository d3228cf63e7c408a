"""
Request middleware: request ids, per-request access log and security headers.
"""

import logging
import time
import uuid
from typing import Any, Callable, Dict

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.config import settings

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
PATH_ID_PARAMS = ("task_id", "employee_id")


def request_context(request: Request) -> Dict[str, Any]:
    """Who is acting on what: request id, principal and the ids named in the path."""
    principal = getattr(request.state, "user", None)
    context = {
        "request_id": getattr(request.state, "request_id", None),
        "user_id": str(principal.id) if principal else None,
        "role": principal.role.value if principal else None,
        "method": request.method,
        "path": request.url.path,
    }
    for name in PATH_ID_PARAMS:
        if name in request.path_params:
            context[name] = request.path_params[name]
    return context


class RequestTrackingMiddleware(BaseHTTPMiddleware):
    """One access log line per request, tagged with the principal once auth has resolved it."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request.state.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"{request.method} {request.url.path} raised {type(exc).__name__}",
                extra=request_context(request)
            )
            raise

        elapsed = time.perf_counter() - started
        response.headers[REQUEST_ID_HEADER] = request.state.request_id
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"

        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} in {elapsed * 1000:.1f}ms",
            extra={**request_context(request), "status_code": response.status_code}
        )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if not settings.debug:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


def add_middleware(app):
    # Last added runs first, so tracking wraps the security headers
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestTrackingMiddleware)
