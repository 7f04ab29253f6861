"""
Input validation utilities
"""
import re
from typing import Any, Iterable, List, Mapping

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
# ASCII only: str.isdigit() also accepts "²", which int() rejects
NUMBER_PATTERN = re.compile(r'\d+', re.ASCII)


def is_number(value: Any) -> bool:
    """True when value is a plain run of ASCII digits (int() always accepts it)"""
    return NUMBER_PATTERN.fullmatch(str(value)) is not None


def validate_ticket_id(ticket_id: Any) -> bool:
    """
    Validate Freshdesk ticket ID format

    Args:
        ticket_id: Ticket ID to validate (str or int)

    Returns:
        True if valid format
    """
    # Freshdesk ids are numeric; anything else would leak into the URL path
    return is_number(ticket_id)


def validate_email(email: str) -> bool:
    """
    Validate email format

    Args:
        email: Email address to validate

    Returns:
        True if valid email format
    """
    return EMAIL_PATTERN.match(email) is not None


def is_present(value: Any) -> bool:
    """
    Check whether a request value counts as supplied.

    None, False, whitespace-only strings and empty collections are absent.
    Zero is present.
    """
    if value is None or value is False:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) > 0
    return True


def find_missing_params(params: Mapping[str, Any], labels: Iterable[str]) -> List[str]:
    """
    Return the labels that are absent from params.

    A label also counts as supplied when it is present inside the nested
    ``custom_fields`` mapping, which is where Freshdesk custom ticket
    fields arrive.

    Args:
        params: Request parameters
        labels: Names that must be present

    Returns:
        Missing names, in the order given
    """
    custom_fields = params.get("custom_fields")
    if not isinstance(custom_fields, Mapping):
        custom_fields = {}

    missing = []
    for label in labels:
        if is_present(params.get(label)):
            continue
        if is_present(custom_fields.get(label)):
            continue
        missing.append(label)
    return missing
