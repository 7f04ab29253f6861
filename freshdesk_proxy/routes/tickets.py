"""
Ticket-related API routes

Thin HTTP layer over TicketProxyService. Create, update and reply pass
Freshdesk's response body and status code straight through.
"""
from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile

from freshdesk_proxy.dependencies import get_request_context, get_ticket_service
from freshdesk_proxy.exceptions import InvalidRequestError
from freshdesk_proxy.models.schemas import (
    Attachment,
    InitSettingsResponse,
    ReadTicketRequest,
    RequestContext,
    TicketBuckets,
    UpdateTicketRequest,
    UpstreamResult,
)
from freshdesk_proxy.services.ticket_proxy import TicketProxyService

router = APIRouter(prefix="/api/v1/freshdesk", tags=["tickets"])

ATTACHMENT_KEYS = ("attachments", "attachments[]")


async def read_submission(request: Request) -> Tuple[Dict[str, Any], List[Attachment]]:
    """
    Split a create/reply submission into plain fields and uploaded files

    Multipart forms are the normal path (they can carry attachments); a
    JSON object body is accepted for attachment-free submissions.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError as e:
            raise InvalidRequestError("request body") from e
        return (body if isinstance(body, dict) else {}), []

    form = await request.form()
    fields: Dict[str, Any] = {}
    attachments: List[Attachment] = []
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            if key in ATTACHMENT_KEYS:
                attachments.append(Attachment(
                    filename=value.filename or "attachment",
                    content=await value.read(),
                    content_type=value.content_type or "application/octet-stream",
                ))
            continue
        fields[key] = value
    return fields, attachments


def passthrough(result: UpstreamResult) -> JSONResponse:
    return JSONResponse(content=result.body, status_code=result.status_code)


@router.get("/tickets", response_model=TicketBuckets)
async def list_tickets(
    page_no: Optional[str] = Query(None),
    order_by: Optional[str] = Query(None),
    context: RequestContext = Depends(get_request_context),
    service: TicketProxyService = Depends(get_ticket_service),
):
    """
    List the caller's tickets, split into open and closed
    """
    return await service.list_tickets(context, page_no=page_no, order_by=order_by)


@router.get("/tickets/init_settings", response_model=InitSettingsResponse)
async def init_settings(
    service: TicketProxyService = Depends(get_ticket_service),
):
    """
    Page size, route map and per-request ticket limit for the browser client
    """
    return service.init_settings()


@router.get("/tickets/new")
async def new_ticket_form(
    service: TicketProxyService = Depends(get_ticket_service),
):
    """
    Field definitions for the new ticket form
    """
    return await service.get_ticket_field_schema()


@router.post("/ticket/read")
async def read_ticket(
    payload: ReadTicketRequest,
    context: RequestContext = Depends(get_request_context),
    service: TicketProxyService = Depends(get_ticket_service),
):
    """
    Ticket details with the public conversation in ``conversationList``
    """
    return await service.read_ticket(context, ticket_id=payload.id, user_id=payload.user_id)


@router.get("/tickets/{ticket_id}/conversations")
async def list_conversations(
    ticket_id: str,
    user_id: Optional[str] = Query(None),
    context: RequestContext = Depends(get_request_context),
    service: TicketProxyService = Depends(get_ticket_service),
):
    """
    Public conversation of one ticket (user_id defaults to X-User-Id)
    """
    return await service.list_conversations(context, ticket_id=ticket_id, user_id=user_id)


@router.post("/tickets")
async def create_ticket(
    request: Request,
    context: RequestContext = Depends(get_request_context),
    service: TicketProxyService = Depends(get_ticket_service),
):
    """
    Create a ticket (multipart form; custom_fields as a JSON string)
    """
    fields, attachments = await read_submission(request)
    result = await service.create_ticket(context, fields, attachments)
    return passthrough(result)


@router.put("/tickets/{ticket_id}")
async def update_ticket(
    ticket_id: str,
    payload: Optional[UpdateTicketRequest] = None,
    context: RequestContext = Depends(get_request_context),
    service: TicketProxyService = Depends(get_ticket_service),
):
    """
    Close or reopen a ticket
    """
    payload = payload or UpdateTicketRequest()
    result = await service.update_ticket_status(
        context,
        ticket_id=ticket_id,
        user_id=payload.user_id,
        status=payload.status
    )
    return passthrough(result)


@router.post("/tickets/{ticket_id}/reply")
async def reply_ticket(
    ticket_id: str,
    request: Request,
    context: RequestContext = Depends(get_request_context),
    service: TicketProxyService = Depends(get_ticket_service),
):
    """
    Reply to a ticket as a public note (multipart form)
    """
    fields, attachments = await read_submission(request)
    result = await service.reply_to_ticket(
        context,
        ticket_id=ticket_id,
        user_id=fields.get("user_id"),
        body=fields.get("body"),
        agent_id=fields.get("agent_id"),
        attachments=attachments
    )
    return passthrough(result)
