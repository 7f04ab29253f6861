"""
Centralized exception handling

Maps the TicketProxyError hierarchy to ``{"message": ...}`` responses.
Unexpected failures are logged with full detail and reported as a generic
"Server Error" so internals never reach the browser.
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from freshdesk_proxy.exceptions import ERROR_STATUS_CODE, ErrorKind, TicketProxyError
from freshdesk_proxy.utils.logger import get_logger

logger = get_logger(__name__)

SERVER_ERROR_MESSAGE = "Server Error"
UNEXPECTED_ERROR_KIND = "unexpected"
REQUEST_SOURCES = ("body", "query", "path", "header")


def error_response(message: str) -> JSONResponse:
    return JSONResponse(status_code=ERROR_STATUS_CODE, content={"message": message})


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with the FastAPI app.

    Usage in main.py:
        register_exception_handlers(app)
    """

    @app.exception_handler(TicketProxyError)
    async def ticket_proxy_error_handler(request: Request, exc: TicketProxyError):
        """Domain errors keep their message"""
        request.state.error_kind = exc.kind.value
        log = logger.error if exc.kind == ErrorKind.UPSTREAM_ERROR else logger.warning
        log(
            f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.message}",
            extra={
                "error_kind": exc.kind.value,
                "context": exc.context,
                "path": request.url.path,
                "method": request.method
            }
        )
        return error_response(exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        """Malformed request bodies/params, folded into the same error shape"""
        request.state.error_kind = ErrorKind.INVALID_REQUEST.value
        fields = []
        for error in exc.errors():
            # loc is like ("body", "id", "int"); the field name comes after the source
            names = [str(part) for part in error.get("loc", ()) if part not in REQUEST_SOURCES]
            if names and names[0] not in fields:
                fields.append(names[0])
        logger.warning(f"Request validation failed on {request.url.path}: {exc.errors()}")
        message = f"Invalid {', '.join(fields)}" if fields else "Invalid request"
        return error_response(message)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        """Anything else: log everything, tell the caller nothing"""
        request.state.error_kind = UNEXPECTED_ERROR_KIND
        logger.error(
            f"Unhandled {exc.__class__.__name__} on {request.method} {request.url.path}: {exc}",
            exc_info=exc
        )
        return error_response(SERVER_ERROR_MESSAGE)
