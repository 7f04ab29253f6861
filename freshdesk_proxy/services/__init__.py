"""
Service layer: Freshdesk client and the ticket proxy built on it
"""
from freshdesk_proxy.services.freshdesk import FreshdeskClient, validate_response
from freshdesk_proxy.services.contacts import ContactResolver
from freshdesk_proxy.services.ticket_proxy import TicketProxyService

__all__ = [
    "FreshdeskClient",
    "validate_response",
    "ContactResolver",
    "TicketProxyService",
]
