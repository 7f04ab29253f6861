"""
Ticket Proxy Service

Translates requester-facing ticket operations into Freshdesk API calls:
- Listing a requester's tickets split into open/closed buckets
- Reading a ticket with its public conversation
- Describing the new-ticket form
- Creating tickets, closing/reopening them and replying to them

Upstream calls inside one operation run strictly one after another.
Nothing is rolled back when a later step fails: contact creation is
existence-checked, so retrying a failed create is safe.
"""
import json
from typing import Any, Dict, List, Mapping, Optional, Sequence

from freshdesk_proxy.config import Settings
from freshdesk_proxy.exceptions import (
    InvalidRequestError,
    MissingParametersError,
    NotFoundError,
    UpstreamError,
)
from freshdesk_proxy.models.schemas import (
    CLOSED_STATUSES,
    OPEN_STATUSES,
    ORDER_BY_CHOICES,
    REQUESTER_SETTABLE_STATUSES,
    Attachment,
    InitSettingsResponse,
    RequestContext,
    TicketBuckets,
    TicketPriority,
    TicketStatus,
    UpstreamResult,
)
from freshdesk_proxy.services.contacts import ContactResolver
from freshdesk_proxy.services.freshdesk import FreshdeskClient
from freshdesk_proxy.services.ticket_fields import (
    build_field_schema,
    filter_customer_fields,
    required_field_names,
)
from freshdesk_proxy.utils.logger import get_logger
from freshdesk_proxy.utils.validators import (
    find_missing_params,
    is_number,
    is_present,
    validate_ticket_id,
)

logger = get_logger(__name__)

# Only these request fields are ever copied into Freshdesk payloads
TICKET_CREATE_FIELDS = ("subject", "description", "custom_fields")


def require_params(params: Mapping[str, Any], labels: Sequence[str]) -> None:
    """Raise MissingParametersError listing every absent label"""
    missing = find_missing_params(params, labels)
    if missing:
        raise MissingParametersError(missing)


def parse_custom_fields(raw: Any) -> Dict[str, Any]:
    """
    Decode the custom_fields request value.

    Multipart requests carry it as a JSON-encoded object string; an
    already-decoded mapping is accepted as is.

    Raises:
        InvalidRequestError: Not a JSON object
    """
    if raw is None or raw == "":
        return {}
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, (str, bytes)):
        try:
            decoded = json.loads(raw)
        except ValueError as e:
            raise InvalidRequestError("custom_fields", "must be a JSON object") from e
        if isinstance(decoded, dict):
            return decoded
    raise InvalidRequestError("custom_fields", "must be a JSON object")


def split_by_status(tickets: List[Dict[str, Any]]) -> TicketBuckets:
    """Put Open/Pending tickets in ``open`` and Resolved/Closed in ``close``"""
    return TicketBuckets(
        open=[ticket for ticket in tickets if ticket.get("status") in OPEN_STATUSES],
        close=[ticket for ticket in tickets if ticket.get("status") in CLOSED_STATUSES],
    )


def public_conversations(conversations: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Drop agent-only notes; only entries explicitly marked public survive"""
    return [
        conversation for conversation in conversations
        if conversation.get("private") is False
    ]


def _as_upstream_id(value: Any) -> Any:
    """Freshdesk expects numeric ids in JSON bodies"""
    text = str(value)
    return int(text) if is_number(text) else value


class TicketProxyService:
    """
    Requester-facing ticket operations backed by Freshdesk
    """

    def __init__(
        self,
        client: FreshdeskClient,
        settings: Settings,
        contacts: Optional[ContactResolver] = None
    ):
        self.client = client
        self.settings = settings
        self.contacts = contacts or ContactResolver(client)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _checked_ticket_id(ticket_id: Any) -> str:
        if not validate_ticket_id(ticket_id):
            raise InvalidRequestError("id")
        return str(ticket_id)

    @staticmethod
    def _owner_id(context: RequestContext, user_id: Any) -> str:
        """
        The requester id a ticket must belong to.

        A user_id that disagrees with the authenticated caller is treated
        like a foreign ticket.
        """
        owner_id = str(user_id)
        if context.user_id is not None and context.user_id != owner_id:
            raise NotFoundError("Ticket")
        return owner_id

    @staticmethod
    def _ensure_owner(ticket: Dict[str, Any], owner_id: str) -> None:
        if str(ticket.get("requester_id")) != owner_id:
            raise NotFoundError("Ticket")

    async def _fetch_owned_ticket(self, ticket_id: str, owner_id: str) -> Dict[str, Any]:
        # Missing and foreign tickets must look the same to the caller
        try:
            ticket = await self.client.get_ticket(ticket_id)
        except UpstreamError as e:
            if e.status_code == 404:
                raise NotFoundError("Ticket") from e
            raise
        if not isinstance(ticket, dict):
            raise NotFoundError("Ticket")
        self._ensure_owner(ticket, owner_id)
        return ticket

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def list_tickets(
        self,
        context: RequestContext,
        page_no: Any = None,
        order_by: Optional[str] = None
    ) -> TicketBuckets:
        """
        Fetch one page of the caller's tickets, split by state

        Args:
            context: Authenticated caller
            page_no: Page number (1-based)
            order_by: created_at or updated_at

        Returns:
            TicketBuckets with Open/Pending in ``open`` and Resolved/Closed in ``close``
        """
        require_params({"page_no": page_no, "order_by": order_by}, ["page_no", "order_by"])
        if not is_number(page_no) or int(page_no) < 1:
            raise InvalidRequestError("page_no")
        if order_by not in ORDER_BY_CHOICES:
            raise InvalidRequestError("order_by", f"expected one of {', '.join(ORDER_BY_CHOICES)}")

        tickets = await self.client.list_tickets(
            email=context.email,
            order_by=order_by,
            per_page=self.settings.tickets_per_request,
            page=int(page_no)
        )
        buckets = split_by_status(tickets)
        logger.info(f"Listed {len(buckets.open)} open and {len(buckets.close)} closed tickets")
        return buckets

    def init_settings(self) -> InitSettingsResponse:
        """Defaults the browser client needs at startup"""
        return InitSettingsResponse(
            per_page=self.settings.per_page,
            route=dict(self.settings.ui_routes),
            tickets_per_request=self.settings.tickets_per_request,
        )

    async def get_ticket_field_schema(self) -> List[Dict[str, Any]]:
        """Customer-editable ticket fields, remapped for the new ticket form"""
        fields = await self.client.fetch_ticket_fields()
        return build_field_schema(fields)

    async def read_ticket(
        self,
        context: RequestContext,
        ticket_id: Any = None,
        user_id: Any = None
    ) -> Dict[str, Any]:
        """
        Fetch a ticket with its public conversation attached

        Args:
            context: Authenticated caller
            ticket_id: Freshdesk ticket ID
            user_id: Requester id the ticket must belong to

        Returns:
            Ticket dictionary with ``conversationList``

        Raises:
            NotFoundError: Ticket belongs to someone else
        """
        require_params({"id": ticket_id, "user_id": user_id}, ["id", "user_id"])
        ticket_id = self._checked_ticket_id(ticket_id)
        owner_id = self._owner_id(context, user_id)

        ticket = await self._fetch_owned_ticket(ticket_id, owner_id)
        conversations = await self.client.fetch_ticket_conversations(ticket_id)
        ticket["conversationList"] = public_conversations(conversations)
        return ticket

    async def list_conversations(
        self,
        context: RequestContext,
        ticket_id: Any = None,
        user_id: Any = None
    ) -> List[Dict[str, Any]]:
        """
        Public conversation of one of the caller's tickets

        The browser list view does not send user_id; the authenticated
        requester id is used then.
        """
        if not is_present(user_id):
            user_id = context.user_id
        ticket = await self.read_ticket(context, ticket_id=ticket_id, user_id=user_id)
        return ticket["conversationList"]

    async def create_ticket(
        self,
        context: RequestContext,
        form: Mapping[str, Any],
        attachments: Sequence[Attachment] = ()
    ) -> UpstreamResult:
        """
        Create a ticket for the caller

        Required fields come from the live Freshdesk schema, and custom
        fields must be ones customers may edit. Priority and status are
        always Low/Open; whatever the caller sent for them is ignored.

        Args:
            context: Authenticated caller
            form: Submitted form values; custom_fields may be a JSON string
            attachments: Uploaded files

        Returns:
            UpstreamResult with the created ticket
        """
        params = dict(form)
        params["custom_fields"] = parse_custom_fields(params.get("custom_fields"))

        fields = filter_customer_fields(await self.client.fetch_ticket_fields())
        require_params(params, required_field_names(fields))

        editable = {field.get("name") for field in fields}
        rejected = [name for name in params["custom_fields"] if name not in editable]
        if rejected:
            raise InvalidRequestError("custom_fields", f"not editable: {', '.join(rejected)}")

        await self.contacts.ensure_contact(context)

        payload: Dict[str, Any] = {
            name: params[name]
            for name in TICKET_CREATE_FIELDS
            if params.get(name) is not None
        }
        payload["email"] = context.email
        payload["priority"] = int(TicketPriority.LOW)
        payload["status"] = int(TicketStatus.OPEN)

        return await self.client.create_ticket(payload, attachments)

    async def update_ticket_status(
        self,
        context: RequestContext,
        ticket_id: Any = None,
        user_id: Any = None,
        status: Any = None
    ) -> UpstreamResult:
        """
        Close or reopen one of the caller's tickets

        Raises:
            InvalidRequestError: Status is not Open or Closed
            NotFoundError: Ticket belongs to someone else
        """
        require_params(
            {"id": ticket_id, "status": status, "user_id": user_id},
            ["id", "status", "user_id"]
        )
        ticket_id = self._checked_ticket_id(ticket_id)
        try:
            new_status = TicketStatus(int(status))
        except ValueError as e:
            raise InvalidRequestError("status") from e
        if new_status not in REQUESTER_SETTABLE_STATUSES:
            raise InvalidRequestError("status", "only Open or Closed can be set")
        owner_id = self._owner_id(context, user_id)

        await self._fetch_owned_ticket(ticket_id, owner_id)
        return await self.client.update_ticket_fields(ticket_id, {"status": int(new_status)})

    async def reply_to_ticket(
        self,
        context: RequestContext,
        ticket_id: Any = None,
        user_id: Any = None,
        body: Optional[str] = None,
        agent_id: Any = None,
        attachments: Sequence[Attachment] = ()
    ) -> UpstreamResult:
        """
        Post the caller's reply as a public note

        When an agent is assigned, their email is added to notify_emails so
        they hear about the reply.

        Returns:
            UpstreamResult with the created note
        """
        require_params(
            {"id": ticket_id, "user_id": user_id, "body": body},
            ["id", "user_id", "body"]
        )
        ticket_id = self._checked_ticket_id(ticket_id)
        owner_id = self._owner_id(context, user_id)

        payload: Dict[str, Any] = {
            "body": body,
            "user_id": _as_upstream_id(owner_id),
            "private": False,
        }

        if is_present(agent_id) and str(agent_id) != "null":
            agent = await self.client.get_agent(str(agent_id))
            agent_email = ((agent or {}).get("contact") or {}).get("email")
            if agent_email:
                payload["notify_emails"] = [agent_email]

        return await self.client.add_note(ticket_id, payload, attachments)
