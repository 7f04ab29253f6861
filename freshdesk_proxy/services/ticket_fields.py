"""
Ticket field schema helpers

Turns Freshdesk ticket field definitions into the form description the
browser client renders for the "new ticket" page. Everything here is a
pure function over field dicts.
"""
from typing import Any, Dict, Iterable, List, Optional, Tuple

# Fields customers never fill in themselves
DISCARDED_FIELD_NAMES = ("requester", "company")

DEFAULT_UI_TYPE = "textarea"

# upstream type tag -> (UI type, input_type hint)
FIELD_TYPE_MAP: Dict[str, Tuple[str, Optional[str]]] = {
    "default_requester": ("text", "text"),
    "default_subject": ("text", "text"),
    "custom_text": ("text", "text"),
    "default_ticket_type": ("select", None),
    "default_source": ("select", None),
    "default_priority": ("select", None),
    "default_group": ("select", None),
    "default_agent": ("select", None),
    "default_company": ("select", None),
    "custom_dropdown": ("select", None),
    "default_status": ("select", None),
    "custom_checkbox": ("checkbox", None),
    "nested_field": ("nested_dropdown", None),
    "custom_date": ("date", "date"),
    "custom_number": ("number", "text"),
    "custom_decimal": ("decimal", "text"),
}


def map_field_type(upstream_type: Optional[str]) -> Tuple[str, Optional[str]]:
    """
    Map a Freshdesk field type tag to the UI type and input hint

    Args:
        upstream_type: Freshdesk ``type`` value (e.g. "custom_text")

    Returns:
        (ui_type, input_type); input_type is None when the UI needs no hint
    """
    return FIELD_TYPE_MAP.get(upstream_type, (DEFAULT_UI_TYPE, None))


def invert_status_choices(choices: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """
    Invert Freshdesk status choices from value -> [labels] to label -> value.

    The first label is the one shown to the requester, so it becomes the
    key the UI resolves back to a status code.
    """
    inverted: Dict[str, str] = {}
    for value, labels in (choices or {}).items():
        if isinstance(labels, (list, tuple)):
            if not labels:
                continue
            label = labels[0]
        else:
            label = labels
        inverted[str(label)] = str(value)
    return inverted


def filter_customer_fields(fields: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Keep customer-editable fields, minus requester and company"""
    return [
        field for field in fields
        if field.get("customers_can_edit") is True
        and field.get("name") not in DISCARDED_FIELD_NAMES
    ]


def required_field_names(fields: Iterable[Dict[str, Any]]) -> List[str]:
    """Names of fields customers must fill in"""
    return [
        field["name"] for field in fields
        if field.get("required_for_customers") and field.get("name")
    ]


def remap_field(field: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of a Freshdesk field with UI-facing type information

    Args:
        field: Freshdesk ticket field definition

    Returns:
        New dict with ``type`` (and ``input_type`` where relevant) replaced
    """
    upstream_type = field.get("type")
    ui_type, input_type = map_field_type(upstream_type)

    remapped = dict(field)
    remapped["type"] = ui_type
    if input_type:
        remapped["input_type"] = input_type
    if upstream_type == "default_status":
        remapped["choices"] = invert_status_choices(field.get("choices"))
    return remapped


def build_field_schema(fields: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Filter and remap raw Freshdesk fields for the new ticket form"""
    return [remap_field(field) for field in filter_customer_fields(fields)]
