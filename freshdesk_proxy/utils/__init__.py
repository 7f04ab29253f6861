"""
Utility functions
"""
from freshdesk_proxy.utils.logger import setup_logger, get_logger
from freshdesk_proxy.utils.validators import (
    is_number,
    validate_ticket_id,
    validate_email,
    is_present,
    find_missing_params,
)

__all__ = [
    "setup_logger",
    "get_logger",
    "is_number",
    "validate_ticket_id",
    "validate_email",
    "is_present",
    "find_missing_params",
]
