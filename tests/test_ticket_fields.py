"""
Tests for ticket field schema helpers
"""
import copy

import pytest

from freshdesk_proxy.services.ticket_fields import (
    build_field_schema,
    filter_customer_fields,
    invert_status_choices,
    map_field_type,
    remap_field,
    required_field_names,
)


@pytest.mark.parametrize("upstream_type, expected", [
    ("default_requester", ("text", "text")),
    ("default_subject", ("text", "text")),
    ("custom_text", ("text", "text")),
    ("default_ticket_type", ("select", None)),
    ("default_source", ("select", None)),
    ("default_priority", ("select", None)),
    ("default_group", ("select", None)),
    ("default_agent", ("select", None)),
    ("default_company", ("select", None)),
    ("custom_dropdown", ("select", None)),
    ("default_status", ("select", None)),
    ("custom_checkbox", ("checkbox", None)),
    ("nested_field", ("nested_dropdown", None)),
    ("custom_date", ("date", "date")),
    ("custom_number", ("number", "text")),
    ("custom_decimal", ("decimal", "text")),
])
def test_map_field_type_table(upstream_type, expected):
    assert map_field_type(upstream_type) == expected


@pytest.mark.parametrize("upstream_type", ["default_description", "custom_paragraph", "", None])
def test_unlisted_types_become_textarea(upstream_type):
    assert map_field_type(upstream_type) == ("textarea", None)


class TestStatusChoices:
    """Status choices are inverted to label -> value"""

    def test_example_from_freshdesk(self):
        field = {"name": "status", "type": "default_status", "choices": {"2": ["Open", "desc"]}}

        remapped = remap_field(field)

        assert remapped["type"] == "select"
        assert remapped["choices"] == {"Open": "2"}

    def test_all_statuses_inverted(self):
        choices = {
            "2": ["Open", "Being Processed"],
            "3": ["Pending", "Awaiting your Reply"],
            "5": ["Closed", "This ticket has been Closed"],
        }
        assert invert_status_choices(choices) == {"Open": "2", "Pending": "3", "Closed": "5"}

    def test_missing_choices(self):
        assert invert_status_choices(None) == {}

    def test_other_fields_keep_their_choices(self):
        field = {"name": "cf_product", "type": "custom_dropdown", "choices": ["A", "B"]}
        assert remap_field(field)["choices"] == ["A", "B"]


class TestRemapField:
    """Field remapping"""

    def test_input_type_only_where_hinted(self):
        assert remap_field({"name": "cf_due", "type": "custom_date"})["input_type"] == "date"
        assert "input_type" not in remap_field({"name": "cf_ok", "type": "custom_checkbox"})

    def test_does_not_mutate_input(self):
        field = {"name": "status", "type": "default_status", "choices": {"2": ["Open", "x"]}}
        original = copy.deepcopy(field)

        remap_field(field)

        assert field == original


class TestFieldFiltering:
    """Customer-facing field selection"""

    def test_requester_company_and_agent_only_fields_dropped(self, sample_ticket_fields):
        names = [field["name"] for field in filter_customer_fields(sample_ticket_fields)]

        assert names == ["subject", "status", "description", "cf_site_url"]

    def test_required_names_from_filtered_fields(self, sample_ticket_fields):
        fields = filter_customer_fields(sample_ticket_fields)

        assert required_field_names(fields) == ["subject", "description", "cf_site_url"]

    def test_build_field_schema(self, sample_ticket_fields):
        schema = build_field_schema(sample_ticket_fields)

        assert all(field["name"] not in ("requester", "company") for field in schema)
        assert all(field["customers_can_edit"] is True for field in schema)
        by_name = {field["name"]: field for field in schema}
        assert by_name["subject"]["type"] == "text"
        assert by_name["description"]["type"] == "textarea"
        assert by_name["status"]["choices"] == {"Open": "2", "Closed": "5"}
