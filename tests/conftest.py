"""Shared fixtures for tests."""

import pytest

from pyotcs import OTCS


@pytest.fixture
def otcs() -> OTCS:
    """OTCS object that is already authenticated with a ticket."""

    return OTCS(protocol="http", hostname="otcs.example.com", port=8080, otcs_ticket="test-ticket")


@pytest.fixture
def category_form_response() -> dict:
    """Category form response with a scalar, an enum, a multi-value and both set encodings."""

    return {
        "forms": [
            {
                "data": {
                    "11150_2": [{"11150_2_1_1": "A"}, {"11150_2_2_1": "B"}],
                    "11150_3": {"1": {"11150_3_1_5": "P-1"}, "4": {"11150_3_4_5": "P-4"}, "x": 0},
                },
                "options": {
                    "fields": {
                        "11150_1": {"label": "Status", "optionLabels": ["Open", "Closed"], "helper": "Current status"},
                        "11150_2": {
                            "label": "Items",
                            "fields": {"item": {"fields": {"11150_2_x_1": {"label": "Item Name"}}}},
                        },
                        "11150_3": {
                            "label": "Parts",
                            "fields": {"11150_3_x_5": {"label": "Part Number", "hidden": True}},
                        },
                        "11150_4": {"label": "Tags"},
                    },
                },
                "schema": {
                    "properties": {
                        "11150_1": {"type": "string", "enum": ["o", "c"], "default": "o", "maxLength": 32},
                        "11150_2": {
                            "type": "array",
                            "items": {
                                "type": "object",
                                "properties": {
                                    "11150_2_x_1": {"type": "string"},
                                    "11150_2_x_6": {"type": "number", "minimum": 0, "maximum": 10},
                                },
                                "required": ["11150_2_x_6"],
                            },
                        },
                        "11150_3": {
                            "type": "object",
                            "properties": {"11150_3_x_5": {"type": "string", "title": "Part"}},
                        },
                        "11150_4": {"type": "array", "items": {"type": "string"}},
                        "11150_5": {"type": "string", "format": "date", "readonly": True},
                    },
                    "required": ["11150_1"],
                },
            },
        ],
    }
