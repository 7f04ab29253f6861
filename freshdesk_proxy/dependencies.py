"""
FastAPI dependencies

The Freshdesk configuration is built once from settings and is immutable;
routes receive the service and the caller context through Depends so
tests can override either.
"""
from functools import lru_cache

from fastapi import Request

from freshdesk_proxy.config import FreshdeskConfig, get_settings
from freshdesk_proxy.exceptions import MissingParametersError
from freshdesk_proxy.models.schemas import RequestContext
from freshdesk_proxy.services.freshdesk import FreshdeskClient
from freshdesk_proxy.services.ticket_proxy import TicketProxyService


@lru_cache()
def get_freshdesk_config() -> FreshdeskConfig:
    """Immutable client configuration, built on first use"""
    return FreshdeskConfig.from_settings(get_settings())


def get_ticket_service() -> TicketProxyService:
    """Ticket proxy wired to the configured Freshdesk account"""
    client = FreshdeskClient(get_freshdesk_config())
    return TicketProxyService(client, get_settings())


def get_request_context(request: Request) -> RequestContext:
    """Caller context placed on the request by UserContextMiddleware"""
    context = getattr(request.state, "user_context", None)
    if context is None:
        raise MissingParametersError(["email"])
    return context
