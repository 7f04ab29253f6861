"""
Contact resolution

Makes sure the requester exists as a Freshdesk contact before a ticket is
created on their behalf.
"""
from typing import Any, Dict

from freshdesk_proxy.models.schemas import RequestContext
from freshdesk_proxy.services.freshdesk import FreshdeskClient
from freshdesk_proxy.utils.logger import get_logger

logger = get_logger(__name__)


class ContactResolver:
    """Look a requester up by email and create the contact when absent"""

    def __init__(self, client: FreshdeskClient):
        self.client = client

    @staticmethod
    def build_contact_payload(context: RequestContext) -> Dict[str, Any]:
        """Contact body built from the caller's profile"""
        custom_fields = {
            key: value
            for key, value in context.custom_fields.items()
            if key != "name"
        }
        return {
            "email": context.email,
            "name": context.name or context.email,
            "custom_fields": custom_fields,
        }

    async def ensure_contact(self, context: RequestContext) -> bool:
        """
        Ensure a contact exists for the caller's email

        Args:
            context: Authenticated caller

        Returns:
            True if a contact had to be created
        """
        contacts = await self.client.search_contacts(context.email)
        if contacts:
            return False

        logger.info("No contact found for requester, creating one")
        await self.client.create_contact(self.build_contact_payload(context))
        return True
