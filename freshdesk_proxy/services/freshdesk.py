"""
Freshdesk API Client

Provides the Freshdesk API v2 calls the ticket proxy needs:
- Ticket listing, detail, creation and status updates
- Conversation fetching and note posting
- Ticket field definitions
- Contact lookup/creation and agent lookup

Every call goes through the same retry loop and the same response
validation gate, so callers never look at raw status codes.
"""
import asyncio
from typing import Any, Dict, List, Optional, Sequence

import httpx

from freshdesk_proxy.config import FreshdeskConfig
from freshdesk_proxy.exceptions import NotFoundError, UpstreamError
from freshdesk_proxy.models.schemas import Attachment, UpstreamResult
from freshdesk_proxy.utils.logger import get_logger
from freshdesk_proxy.utils.validators import is_number

logger = get_logger(__name__)

SUCCESS_STATUS_CODES = (200, 201)
RETRYABLE_STATUS_CODES = (429, 500, 502, 503, 504)
# A POST may already have created the ticket/note/contact unless the
# request provably never reached Freshdesk
IDEMPOTENT_METHODS = ("GET", "PUT")
NOT_SENT_STATUS_CODES = (429,)
NOT_SENT_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout)
MAX_RETRY_AFTER = 30.0
NO_CONTACT_MESSAGE = "There is no contact matching the given email"


def _error_messages(response: httpx.Response) -> List[str]:
    """Collect errors[].message from a Freshdesk error body, if any"""
    if not response.content:
        return []
    try:
        body = response.json()
    except ValueError:
        return []
    if not isinstance(body, dict):
        return []
    errors = body.get("errors") or []
    if not isinstance(errors, list):
        return []
    return [
        error.get("message")
        for error in errors
        if isinstance(error, dict) and error.get("message")
    ]


def validate_response(response: httpx.Response) -> Any:
    """
    Check a Freshdesk response and return its decoded body.

    Args:
        response: Raw httpx response

    Returns:
        Parsed JSON body (None for an empty body)

    Raises:
        NotFoundError: Freshdesk reports no contact for the given email
        UpstreamError: Any other status outside 200/201, or an undecodable body
    """
    if response.status_code not in SUCCESS_STATUS_CODES:
        messages = _error_messages(response)
        if NO_CONTACT_MESSAGE in messages:
            raise NotFoundError("Tickets")
        logger.error(
            f"Freshdesk {response.request.method} {response.request.url.path} "
            f"failed with {response.status_code}: {messages or response.text[:500]}"
        )
        raise UpstreamError(status_code=response.status_code)

    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as e:
        logger.error(f"Freshdesk returned a non-JSON body: {e}")
        raise UpstreamError(status_code=response.status_code) from e


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_form_fields(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Flatten a JSON-style payload into Freshdesk multipart form fields.

    Nested mappings become ``key[name]`` and lists become ``key[]``,
    which is how Freshdesk expects custom_fields and notify_emails when
    a request carries attachments.
    """
    fields: Dict[str, Any] = {}
    for key, value in payload.items():
        if value is None:
            continue
        if isinstance(value, dict):
            for name, nested in value.items():
                if nested is not None:
                    fields[f"{key}[{name}]"] = _form_value(nested)
        elif isinstance(value, (list, tuple)):
            fields[f"{key}[]"] = [_form_value(item) for item in value]
        else:
            fields[key] = _form_value(value)
    return fields


class FreshdeskClient:
    """
    Freshdesk API integration with retry logic and error handling
    """

    def __init__(
        self,
        config: FreshdeskConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.config = config
        self.base_url = config.base_url
        self.api_key = config.api_key
        self.headers = {
            "Accept": "application/json"
        }
        self.timeout = config.timeout
        self.max_retries = max(1, config.max_retries)
        self.backoff_base = config.backoff_base
        self._transport = transport

    def _retry_delay(self, attempt: int, response: Optional[httpx.Response] = None) -> float:
        """Exponential backoff, or the upstream Retry-After (capped) when it sends one"""
        if response is not None:
            retry_after = response.headers.get("Retry-After")
            if retry_after and is_number(retry_after):
                return min(float(retry_after), MAX_RETRY_AFTER)
        return self.backoff_base * (2 ** attempt)

    async def _send(
        self,
        method: str,
        endpoint: str,
        **kwargs
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic

        GET and PUT are retried on 429/5xx and on any transport error.
        Other methods are retried only on 429 and connect failures.

        Args:
            method: HTTP method (GET, POST, PUT, etc.)
            endpoint: API endpoint
            **kwargs: Additional arguments for httpx

        Returns:
            Last response received (not yet validated)

        Raises:
            UpstreamError: When Freshdesk cannot be reached after retries
        """
        url = f"{self.base_url}/{endpoint}"
        idempotent = method.upper() in IDEMPOTENT_METHODS
        retry_statuses = RETRYABLE_STATUS_CODES if idempotent else NOT_SENT_STATUS_CODES

        for attempt in range(self.max_retries):
            last_attempt = attempt == self.max_retries - 1
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout,
                    transport=self._transport
                ) as client:
                    response = await client.request(
                        method=method,
                        url=url,
                        auth=(self.api_key, "X"),
                        headers=self.headers,
                        **kwargs
                    )
            except httpx.TransportError as e:
                retryable = idempotent or isinstance(e, NOT_SENT_ERRORS)
                if retryable and not last_attempt:
                    wait_time = self._retry_delay(attempt)
                    logger.warning(
                        f"{method} {endpoint} failed (attempt {attempt + 1}/{self.max_retries}), "
                        f"retrying in {wait_time}s: {e!r}"
                    )
                    await asyncio.sleep(wait_time)
                    continue
                logger.error(f"{method} {endpoint} failed on attempt {attempt + 1}, giving up: {e!r}")
                raise UpstreamError("Helpdesk is unreachable") from e

            if response.status_code in retry_statuses and not last_attempt:
                # Retry on rate limit or server errors
                wait_time = self._retry_delay(attempt, response)
                logger.warning(
                    f"{method} {endpoint} returned {response.status_code} "
                    f"(attempt {attempt + 1}/{self.max_retries}), retrying in {wait_time}s"
                )
                await asyncio.sleep(wait_time)
                continue

            return response

    async def _request(
        self,
        method: str,
        endpoint: str,
        **kwargs
    ) -> UpstreamResult:
        """Send a request and pass the response through the validation gate"""
        response = await self._send(method, endpoint, **kwargs)
        body = validate_response(response)
        return UpstreamResult(status_code=response.status_code, body=body)

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        **kwargs
    ) -> Any:
        """
        Make a validated request and return only the decoded body

        Args:
            method: HTTP method
            endpoint: API endpoint
            **kwargs: Additional arguments for httpx

        Returns:
            Response JSON
        """
        result = await self._request(method, endpoint, **kwargs)
        return result.body

    @staticmethod
    def _encode_body(
        payload: Dict[str, Any],
        attachments: Sequence[Attachment] = ()
    ) -> Dict[str, Any]:
        """JSON body normally; multipart form when files are attached"""
        if not attachments:
            return {"json": payload}
        files = [
            ("attachments[]", (item.filename, item.content, item.content_type))
            for item in attachments
        ]
        return {"data": build_form_fields(payload), "files": files}

    # ------------------------------------------------------------------
    # Tickets
    # ------------------------------------------------------------------

    async def list_tickets(
        self,
        email: str,
        order_by: str,
        per_page: int,
        page: Any
    ) -> List[Dict[str, Any]]:
        """
        Fetch one page of a requester's tickets

        Args:
            email: Requester email
            order_by: created_at or updated_at
            per_page: Page size (max 100)
            page: Page number

        Returns:
            List of ticket dictionaries
        """
        params = {
            "email": email,
            "order_by": order_by,
            "per_page": min(per_page, 100),
            "page": page
        }
        logger.info(f"Fetching tickets (page={page}, per_page={params['per_page']}, order_by={order_by})")
        tickets = await self._make_request("GET", "tickets", params=params)
        return tickets or []

    async def get_ticket(self, ticket_id: str) -> Dict[str, Any]:
        """
        Get ticket details by ID

        Args:
            ticket_id: Freshdesk ticket ID

        Returns:
            Ticket dictionary with full details
        """
        logger.info(f"Fetching ticket {ticket_id}")
        return await self._make_request("GET", f"tickets/{ticket_id}")

    async def fetch_ticket_conversations(
        self,
        ticket_id: str
    ) -> List[Dict[str, Any]]:
        """
        Fetch all conversations for a ticket with pagination handling

        Args:
            ticket_id: Freshdesk ticket ID

        Returns:
            List of all conversation dictionaries
        """
        all_conversations = []
        page = 1
        per_page = 30  # Freshdesk default page size

        while True:
            logger.info(f"Fetching conversations for ticket {ticket_id} (page {page})")
            conversations = await self._make_request(
                "GET",
                f"tickets/{ticket_id}/conversations",
                params={"per_page": per_page, "page": page}
            )

            if not conversations:
                break

            all_conversations.extend(conversations)

            # If we got less than per_page, we've reached the end
            if len(conversations) < per_page:
                break

            page += 1

        logger.info(f"Fetched total {len(all_conversations)} conversations for ticket {ticket_id}")
        return all_conversations

    async def create_ticket(
        self,
        payload: Dict[str, Any],
        attachments: Sequence[Attachment] = ()
    ) -> UpstreamResult:
        """
        Create a ticket

        Args:
            payload: Ticket fields (email, subject, description, custom_fields, ...)
            attachments: Files to attach

        Returns:
            UpstreamResult with the created ticket
        """
        logger.info(f"Creating ticket with {len(attachments)} attachment(s)")
        return await self._request(
            "POST",
            "tickets",
            **self._encode_body(payload, attachments)
        )

    async def update_ticket_fields(
        self,
        ticket_id: str,
        updates: Dict[str, Any]
    ) -> UpstreamResult:
        """
        Update ticket fields

        Args:
            ticket_id: Freshdesk ticket ID
            updates: Dictionary of field updates (e.g., {"status": 5})

        Returns:
            UpstreamResult with the updated ticket
        """
        logger.info(f"Updating ticket {ticket_id} with {len(updates)} fields")
        return await self._request(
            "PUT",
            f"tickets/{ticket_id}",
            json=updates
        )

    async def add_note(
        self,
        ticket_id: str,
        payload: Dict[str, Any],
        attachments: Sequence[Attachment] = ()
    ) -> UpstreamResult:
        """
        Add a note to a ticket

        Args:
            ticket_id: Freshdesk ticket ID
            payload: Note fields (body, private, user_id, notify_emails)
            attachments: Files to attach

        Returns:
            UpstreamResult with the created note
        """
        logger.info(
            f"Adding {'private' if payload.get('private') else 'public'} note to ticket {ticket_id}"
        )
        return await self._request(
            "POST",
            f"tickets/{ticket_id}/notes",
            **self._encode_body(payload, attachments)
        )

    # ------------------------------------------------------------------
    # Ticket fields, contacts, agents
    # ------------------------------------------------------------------

    async def fetch_ticket_fields(self) -> List[Dict[str, Any]]:
        """Fetch every ticket field definition"""
        logger.info("Fetching ticket fields")
        fields = await self._make_request("GET", "ticket_fields")
        return fields or []

    async def search_contacts(self, email: str) -> List[Dict[str, Any]]:
        """Find contacts with the given email"""
        logger.info("Looking up contact by email")
        contacts = await self._make_request("GET", "contacts", params={"email": email})
        return contacts or []

    async def create_contact(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Create a contact"""
        logger.info("Creating contact")
        return await self._make_request("POST", "contacts", json=payload)

    async def get_agent(self, agent_id: str) -> Dict[str, Any]:
        """Get agent details by ID"""
        logger.info(f"Fetching agent {agent_id}")
        return await self._make_request("GET", f"agents/{agent_id}")
