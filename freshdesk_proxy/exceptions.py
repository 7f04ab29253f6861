"""
Error taxonomy for the ticket proxy.

Every error the proxy surfaces to a caller carries an ErrorKind so the
HTTP boundary can render it without inspecting the class. Anything that is
not a TicketProxyError is treated as an unexpected failure and reported
as a generic "Server Error".
"""
from enum import Enum
from typing import Iterable, List, Optional


class ErrorKind(str, Enum):
    """Kinds of failure an operation can report"""
    MISSING_PARAMETERS = "missing_parameters"
    INVALID_REQUEST = "invalid_request"
    NOT_FOUND = "not_found"
    UPSTREAM_ERROR = "upstream_error"


class TicketProxyError(Exception):
    """Base exception for all domain errors raised by the proxy."""

    kind: ErrorKind = ErrorKind.UPSTREAM_ERROR

    def __init__(self, message: str, context: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class MissingParametersError(TicketProxyError):
    """Raised when one or more required request fields are absent."""

    kind = ErrorKind.MISSING_PARAMETERS

    def __init__(self, fields: Iterable[str]):
        self.fields: List[str] = list(fields)
        super().__init__(
            f"Missing parameters: {', '.join(self.fields)}",
            context={"fields": self.fields}
        )


class InvalidRequestError(TicketProxyError):
    """Raised when a supplied value is malformed."""

    kind = ErrorKind.INVALID_REQUEST

    def __init__(self, field: str, reason: Optional[str] = None):
        self.field = field
        message = f"Invalid {field}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, context={"field": field})


class NotFoundError(TicketProxyError):
    """Raised when a resource does not exist or does not belong to the caller."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(f"{resource} not found", context={"resource": resource})


class UpstreamError(TicketProxyError):
    """Raised when Freshdesk answers with an unexpected status or cannot be reached."""

    kind = ErrorKind.UPSTREAM_ERROR

    def __init__(
        self,
        message: str = "Helpdesk request failed",
        status_code: Optional[int] = None
    ):
        self.status_code = status_code
        super().__init__(message, context={"status_code": status_code})


# Status used for every error response rendered to the browser client
ERROR_STATUS_CODE = 422
