"""
Pydantic models for the Freshdesk Ticket Proxy

Freshdesk payloads (tickets, conversations, ticket fields) are passed
through as plain dicts; only the values the proxy itself reads or builds
are modelled here.
"""
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Enums
# ============================================================================

class TicketStatus(IntEnum):
    """Freshdesk ticket status codes"""
    OPEN = 2
    PENDING = 3
    RESOLVED = 4
    CLOSED = 5


class TicketPriority(IntEnum):
    """Freshdesk ticket priority codes"""
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    URGENT = 4


OPEN_STATUSES = (TicketStatus.OPEN, TicketStatus.PENDING)
CLOSED_STATUSES = (TicketStatus.RESOLVED, TicketStatus.CLOSED)

# Requesters may only reopen or close their own tickets
REQUESTER_SETTABLE_STATUSES = (TicketStatus.OPEN, TicketStatus.CLOSED)

ORDER_BY_CHOICES = ("created_at", "updated_at")


# ============================================================================
# Request context
# ============================================================================

class RequestContext(BaseModel):
    """
    Authenticated caller for a single proxied request.

    Attributes:
        email: Requester email used to look tickets and contacts up
        user_id: Freshdesk requester id of the caller
        name: Display name used when a contact has to be created
        custom_fields: Profile attributes copied onto a new contact
    """
    model_config = ConfigDict(frozen=True)

    email: str
    user_id: Optional[str] = None
    name: Optional[str] = None
    custom_fields: Dict[str, Any] = Field(default_factory=dict)


# ============================================================================
# Values exchanged with Freshdesk
# ============================================================================

@dataclass(frozen=True)
class Attachment:
    """An uploaded file forwarded to Freshdesk as a multipart part"""
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass(frozen=True)
class UpstreamResult:
    """Raw Freshdesk response body together with its status code"""
    status_code: int
    body: Any


# ============================================================================
# API Models
# ============================================================================

TicketId = Union[int, str]


class ReadTicketRequest(BaseModel):
    """Body of POST /ticket/read"""
    id: Optional[TicketId] = None
    user_id: Optional[TicketId] = None


class UpdateTicketRequest(BaseModel):
    """Body of PUT /tickets/{id}"""
    status: Optional[TicketId] = None
    user_id: Optional[TicketId] = None


class TicketBuckets(BaseModel):
    """Tickets of one page split by open/closed state"""
    open: List[Dict[str, Any]] = Field(default_factory=list)
    close: List[Dict[str, Any]] = Field(default_factory=list)


class InitSettingsResponse(BaseModel):
    """Defaults the browser client boots with"""
    per_page: int
    route: Dict[str, str]
    tickets_per_request: int


class ErrorResponse(BaseModel):
    """Error body returned for every failed request"""
    message: str
