"""Define the protocol-neutral tool schemas for category and workspace metadata tools.

The schemas are converted into the formats of the different
consumers in pyotcs_tools.formats.
"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class ToolSchema(BaseModel):
    """Model for a tool: its name, description and JSON schema of the input."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: Annotated[str, Field(description="Name of the tool")]
    description: Annotated[str, Field(description="Description of the tool (read by the model)")]
    input_schema: Annotated[
        dict,
        Field(
            alias="schema",
            description="JSON schema of the tool arguments (type, properties, required)",
        ),
    ]


CATEGORIES_TOOL = ToolSchema(
    name="otcs_categories",
    description=(
        "Manage node categories/metadata. Actions: list, get, add, update, remove, get_form. "
        "Values are keyed by attribute ID (e.g. '2' or '11150_2'). Set attributes take "
        "a list of rows ([{'1': 'a'}, {'1': 'b'}]) or a row map ({'1': {...}, '3': {...}})."
    ),
    schema={
        "type": "object",
        "properties": {
            "action": {
                "type": "string",
                "enum": ["list", "get", "add", "update", "remove", "get_form"],
                "description": "Action",
            },
            "node_id": {"type": "number", "description": "Node ID"},
            "category_id": {"type": "number", "description": "Category ID"},
            "values": {"type": "object", "description": "Attribute values"},
            "include_metadata": {"type": "boolean", "description": "Include attribute type info"},
            "form_mode": {
                "type": "string",
                "enum": ["create", "update"],
                "description": "Form mode (for get_form)",
            },
        },
        "required": ["action", "node_id"],
    },
)

WORKSPACE_METADATA_TOOL = ToolSchema(
    name="otcs_workspace_metadata",
    description=(
        "Manage workspace business properties. Actions: get_values, get_form, update. "
        "For update, values can be keyed by attribute ID ('11150_28'), by category ID "
        "({'11150': {'28': 'value'}}) or by attribute name ('Equipment Number')."
    ),
    schema={
        "type": "object",
        "properties": {
            "action": {
                "type": "string",
                "enum": ["get_values", "get_form", "update"],
                "description": "Action",
            },
            "workspace_id": {"type": "number", "description": "Workspace ID"},
            "values": {"type": "object", "description": "Values to update"},
        },
        "required": ["action", "workspace_id"],
    },
)

TOOL_SCHEMAS: list[ToolSchema] = [CATEGORIES_TOOL, WORKSPACE_METADATA_TOOL]
