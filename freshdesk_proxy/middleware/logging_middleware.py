"""
Logging Middleware - one summary line per proxied request

Each line carries the requester id (from the user context) and, for
failed requests, the error kind recorded on request.state by the error
handlers or the user context middleware.
"""
import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Callable
from freshdesk_proxy.utils.logger import get_logger

logger = get_logger(__name__)

QUIET_PREFIX = "/api/v1/health"


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def requester_id(request: Request) -> str:
    """Requester id for log lines; "-" before or without authentication"""
    context = getattr(request.state, "user_context", None)
    if context is None or not context.user_id:
        return "-"
    return context.user_id


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each request once it completes and sets X-Process-Time
    """

    async def dispatch(self, request: Request, call_next: Callable):
        if request.url.path.startswith(QUIET_PREFIX):
            return await call_next(request)

        start = time.perf_counter()
        method = request.method
        path = request.url.path

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                f"✗ {method} {path} crashed ({_elapsed_ms(start)}ms) requester={requester_id(request)}"
            )
            raise

        duration_ms = _elapsed_ms(start)
        error_kind = getattr(request.state, "error_kind", None)
        summary = f"{method} {path} {response.status_code} ({duration_ms}ms) requester={requester_id(request)}"

        if error_kind:
            logger.warning(f"✗ {summary} error={error_kind}")
        else:
            logger.info(f"✓ {summary}")

        response.headers["X-Process-Time"] = str(duration_ms)
        return response
