"""
User Context Middleware - Extract and validate the authenticated requester
"""
import json
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Callable
from freshdesk_proxy.exceptions import (
    ERROR_STATUS_CODE,
    InvalidRequestError,
    MissingParametersError,
    TicketProxyError,
)
from freshdesk_proxy.models.schemas import RequestContext
from freshdesk_proxy.utils.logger import get_logger
from freshdesk_proxy.utils.validators import validate_email

logger = get_logger(__name__)

PROTECTED_PREFIX = "/api/v1/freshdesk"

EMAIL_HEADER = "X-User-Email"
USER_ID_HEADER = "X-User-Id"
NAME_HEADER = "X-User-Name"
ATTRIBUTES_HEADER = "X-User-Attributes"


def build_request_context(request: Request) -> RequestContext:
    """
    Build the caller context from the headers set by the fronting app

    Raises:
        MissingParametersError: No email header
        InvalidRequestError: Malformed email or attributes header
    """
    email = (request.headers.get(EMAIL_HEADER) or "").strip()
    if not email:
        raise MissingParametersError(["email"])
    if not validate_email(email):
        raise InvalidRequestError("email")

    attributes = {}
    raw_attributes = request.headers.get(ATTRIBUTES_HEADER)
    if raw_attributes:
        try:
            attributes = json.loads(raw_attributes)
        except json.JSONDecodeError as e:
            raise InvalidRequestError("user attributes") from e
        if not isinstance(attributes, dict):
            raise InvalidRequestError("user attributes")

    return RequestContext(
        email=email,
        user_id=request.headers.get(USER_ID_HEADER) or None,
        name=request.headers.get(NAME_HEADER) or None,
        custom_fields=attributes,
    )


class UserContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware to extract the requester from trusted headers

    Reads:
    1. X-User-Email (required, validated)
    2. X-User-Id (Freshdesk requester id, optional)
    3. X-User-Name and X-User-Attributes (JSON object) for contact creation

    Sets request.state.user_context for downstream use
    """

    async def dispatch(self, request: Request, call_next: Callable):
        """Process request and attach the RequestContext"""

        # Only the ticket proxy routes need a requester
        if not request.url.path.startswith(PROTECTED_PREFIX):
            return await call_next(request)

        try:
            context = build_request_context(request)
        except TicketProxyError as e:
            # Raised before routing, so app exception handlers never see it
            logger.warning(f"Rejected {request.url.path}: {e.message}")
            request.state.error_kind = e.kind.value
            return JSONResponse(
                status_code=ERROR_STATUS_CODE,
                content={"message": e.message}
            )

        request.state.user_context = context
        logger.debug(f"Requester context set | Path: {request.url.path}")

        return await call_next(request)
