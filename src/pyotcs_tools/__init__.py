"""pyotcs_tools - Tool definitions and handlers for LLM agents working with OTCS categories."""

from .definitions import TOOL_SCHEMAS, ToolSchema
from .formats import to_anthropic_tools, to_mcp_tools
from .handlers import handle_tool_call

__all__ = ["TOOL_SCHEMAS", "ToolSchema", "handle_tool_call", "to_anthropic_tools", "to_mcp_tools"]
