"""
Pydantic models for the Freshdesk Ticket Proxy
"""

from freshdesk_proxy.models.schemas import (
    # Enums
    TicketStatus,
    TicketPriority,
    OPEN_STATUSES,
    CLOSED_STATUSES,
    REQUESTER_SETTABLE_STATUSES,
    ORDER_BY_CHOICES,

    # Request context
    RequestContext,

    # Upstream values
    Attachment,
    UpstreamResult,

    # API Models
    ReadTicketRequest,
    UpdateTicketRequest,
    TicketBuckets,
    InitSettingsResponse,
    ErrorResponse,
)

__all__ = [
    # Enums
    "TicketStatus",
    "TicketPriority",
    "OPEN_STATUSES",
    "CLOSED_STATUSES",
    "REQUESTER_SETTABLE_STATUSES",
    "ORDER_BY_CHOICES",

    # Request context
    "RequestContext",

    # Upstream values
    "Attachment",
    "UpstreamResult",

    # API Models
    "ReadTicketRequest",
    "UpdateTicketRequest",
    "TicketBuckets",
    "InitSettingsResponse",
    "ErrorResponse",
]
