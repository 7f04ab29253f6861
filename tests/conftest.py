"""
pytest configuration and shared fixtures
"""
import json
import os
from typing import Any, Dict, List, Optional, Tuple

# Settings are cached on first import; point them at a fake account first
os.environ.setdefault("FRESHDESK_DOMAIN", "test.freshdesk.com")
os.environ.setdefault("FRESHDESK_API_KEY", "test-api-key")

import httpx
import pytest

from freshdesk_proxy.config import FreshdeskConfig, Settings
from freshdesk_proxy.models.schemas import RequestContext
from freshdesk_proxy.services.freshdesk import FreshdeskClient
from freshdesk_proxy.services.ticket_proxy import TicketProxyService

API_PREFIX = "/api/v2"


class FreshdeskStub:
    """
    In-memory Freshdesk: canned responses per (method, path), every
    request recorded in order.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], List[Dict[str, Any]]] = {}
        self.requests: List[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        status_code: int = 200,
        json_body: Any = None,
        headers: Optional[Dict[str, str]] = None
    ) -> None:
        """Queue a response; the last queued response repeats"""
        canned = {"status_code": status_code, "json": json_body, "headers": headers}
        self.routes.setdefault((method, API_PREFIX + path), []).append(canned)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queued = self.routes.get((request.method, request.url.path))
        if not queued:
            return httpx.Response(404, json={"message": "unexpected request"})
        canned = queued.pop(0) if len(queued) > 1 else queued[0]
        return httpx.Response(canned["status_code"], json=canned["json"], headers=canned["headers"])

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, method: Optional[str] = None) -> List[Tuple[str, str]]:
        """(method, path without /api/v2) of every recorded request"""
        return [
            (request.method, request.url.path[len(API_PREFIX):])
            for request in self.requests
            if method is None or request.method == method
        ]

    def last_json(self, method: str, path: str) -> Any:
        for request in reversed(self.requests):
            if request.method == method and request.url.path == API_PREFIX + path:
                return json.loads(request.content)
        raise AssertionError(f"no {method} {path} request recorded")


@pytest.fixture
def freshdesk_config() -> FreshdeskConfig:
    return FreshdeskConfig(
        base_url="https://test.freshdesk.com/api/v2",
        api_key="test-api-key",
        timeout=5.0,
        max_retries=3,
        backoff_base=0.0,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        freshdesk_domain="test.freshdesk.com",
        freshdesk_api_key="test-api-key",
        per_page=10,
        tickets_per_request=50,
    )


@pytest.fixture
def stub() -> FreshdeskStub:
    return FreshdeskStub()


@pytest.fixture
def freshdesk_client(freshdesk_config, stub) -> FreshdeskClient:
    return FreshdeskClient(freshdesk_config, transport=stub.transport)


@pytest.fixture
def ticket_service(freshdesk_client, settings) -> TicketProxyService:
    return TicketProxyService(freshdesk_client, settings)


@pytest.fixture
def context() -> RequestContext:
    return RequestContext(
        email="jane@example.com",
        user_id="101",
        name="Jane Doe",
        custom_fields={"plan": "pro", "site_count": 3},
    )


@pytest.fixture
def anonymous_context() -> RequestContext:
    """Caller whose Freshdesk id is not known to the fronting app"""
    return RequestContext(email="jane@example.com")


@pytest.fixture
def sample_ticket_fields() -> List[Dict[str, Any]]:
    return [
        {"name": "requester", "type": "default_requester",
         "customers_can_edit": True, "required_for_customers": True},
        {"name": "subject", "type": "default_subject",
         "customers_can_edit": True, "required_for_customers": True},
        {"name": "status", "type": "default_status",
         "customers_can_edit": True, "required_for_customers": False,
         "choices": {"2": ["Open", "Being Processed"], "5": ["Closed", "This ticket has been Closed"]}},
        {"name": "priority", "type": "default_priority",
         "customers_can_edit": False, "required_for_customers": False},
        {"name": "company", "type": "default_company",
         "customers_can_edit": True, "required_for_customers": False},
        {"name": "description", "type": "default_description",
         "customers_can_edit": True, "required_for_customers": True},
        {"name": "cf_site_url", "type": "custom_text",
         "customers_can_edit": True, "required_for_customers": True},
        {"name": "cf_internal_code", "type": "custom_text",
         "customers_can_edit": False, "required_for_customers": True},
    ]
