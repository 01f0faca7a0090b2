"""Convert the tool schemas into the formats of the different tool consumers.

- MCP servers expect the argument schema under `inputSchema`.
- The Anthropic Messages API expects it under `input_schema`.
"""

from .definitions import TOOL_SCHEMAS, ToolSchema


def _input_schema(tool: ToolSchema) -> dict:
    """Return the object schema of the tool arguments (without empty 'required')."""

    input_schema = {
        "type": "object",
        "properties": tool.input_schema.get("properties", {}),
    }
    if tool.input_schema.get("required"):
        input_schema["required"] = tool.input_schema["required"]

    return input_schema


# end function definition


def to_mcp_tools(schemas: list[ToolSchema] | None = None) -> list[dict]:
    """Generate the tool list for a Model Context Protocol (MCP) server.

    Args:
        schemas (list[ToolSchema] | None, optional):
            The tools to convert. Defaults to all tools (TOOL_SCHEMAS).

    Returns:
        list[dict]:
            The tools with name, description and inputSchema.

    """

    if schemas is None:
        schemas = TOOL_SCHEMAS

    return [
        {
            "name": tool.name,
            "description": tool.description,
            "inputSchema": _input_schema(tool),
        }
        for tool in schemas
    ]


# end function definition


def to_anthropic_tools(schemas: list[ToolSchema] | None = None) -> list[dict]:
    """Generate the tool list for the Anthropic Messages API.

    The last tool is marked for prompt caching (all tool definitions
    up to this point are cached).

    Args:
        schemas (list[ToolSchema] | None, optional):
            The tools to convert. Defaults to all tools (TOOL_SCHEMAS).

    Returns:
        list[dict]:
            The tools with name, description and input_schema.

    """

    if schemas is None:
        schemas = TOOL_SCHEMAS

    tools = [
        {
            "name": tool.name,
            "description": tool.description,
            "input_schema": _input_schema(tool),
        }
        for tool in schemas
    ]
    if tools:
        tools[-1]["cache_control"] = {"type": "ephemeral"}

    return tools


# end function definition
