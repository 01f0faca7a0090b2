"""Execute tool calls against Content Server.

The handlers are protocol-agnostic: they take the (already decoded)
tool arguments, call the OTCS client and return JSON-ready dictionaries.
"""

import logging
from collections.abc import Callable

from pyotcs import OTCS
from pyotcs.exceptions import OTCSError, ToolCallError

logger = logging.getLogger("pyotcs_tools.handlers")


def _int_argument(args: dict, name: str, required: bool = True) -> int | None:
    """Read an ID argument. JSON numbers may arrive as float or string."""

    value = args.get(name)
    if value is None or value == "":
        if required:
            raise ToolCallError("{} required".format(name))
        return None

    try:
        return int(value)
    except (TypeError, ValueError) as exception:
        raise ToolCallError("{} must be a number, got -> {}".format(name, value)) from exception


# end function definition


def _values_argument(args: dict, required: bool = True) -> dict | None:
    """Read the 'values' argument (a JSON object)."""

    values = args.get("values")
    if values is None:
        if required:
            raise ToolCallError("values required")
        return None
    if not isinstance(values, dict):
        raise ToolCallError("values must be an object, got -> {}".format(type(values).__name__))

    return values


# end function definition


def handle_categories(otcs: OTCS, args: dict) -> dict:
    """Handle the 'otcs_categories' tool.

    Args:
        otcs (OTCS):
            The (authenticated) OTCS object.
        args (dict):
            The tool arguments: action, node_id, category_id, values,
            include_metadata and form_mode.

    Returns:
        dict:
            The result of the action.

    Raises:
        ToolCallError:
            For unknown actions or missing arguments.
        OTCSError:
            If the REST call to Content Server fails.

    """

    action = args.get("action")
    node_id = _int_argument(args, "node_id")
    include_metadata = bool(args.get("include_metadata", False))

    if action == "list":
        node_categories = otcs.get_categories(node_id=node_id, include_metadata=include_metadata)
        category_count = len(node_categories.categories)
        return {
            **node_categories.model_dump(),
            "category_count": category_count,
            "message": "Found {} category(ies)".format(category_count)
            if category_count > 0
            else "No categories applied",
        }

    category_id = _int_argument(args, "category_id")

    if action == "get":
        category = otcs.get_category(node_id=node_id, category_id=category_id, include_metadata=include_metadata)
        if category is None:
            return {"found": False, "message": "Category {} not found".format(category_id)}
        return {
            "found": True,
            "category": category.model_dump(),
            "attribute_count": len(category.attributes),
        }

    if action == "add":
        values = _values_argument(args, required=False)
        response = otcs.add_category(node_id=node_id, category_id=category_id, values=values)
        if response is None:
            raise OTCSError("Failed to add category {} to node {}".format(category_id, node_id))
        return {
            **response,
            "message": "Category {} added".format(category_id),
            "values_set": list(values) if values else [],
        }

    if action == "update":
        values = _values_argument(args)
        response = otcs.update_category(node_id=node_id, category_id=category_id, values=values)
        if response is None:
            raise OTCSError("Failed to update category {} on node {}".format(category_id, node_id))
        return {
            **response,
            "message": "Category {} updated".format(category_id),
            "values_updated": list(values),
        }

    if action == "remove":
        response = otcs.remove_category(node_id=node_id, category_id=category_id)
        if response is None:
            raise OTCSError("Failed to remove category {} from node {}".format(category_id, node_id))
        return {**response, "message": "Category {} removed".format(category_id)}

    if action == "get_form":
        if args.get("form_mode") == "update":
            form = otcs.get_category_update_form(node_id=node_id, category_id=category_id)
        else:
            form = otcs.get_category_create_form(node_id=node_id, category_id=category_id)
        if form is None:
            raise OTCSError("Failed to get form of category {} for node {}".format(category_id, node_id))
        return {
            "form": form.model_dump(),
            "attribute_count": len(form.attributes),
            "required_attributes": [attribute.key for attribute in form.attributes if attribute.required],
        }

    raise ToolCallError("Unknown action: {}".format(action))


# end function definition


def handle_workspace_metadata(otcs: OTCS, args: dict) -> dict:
    """Handle the 'otcs_workspace_metadata' tool.

    Args:
        otcs (OTCS):
            The (authenticated) OTCS object.
        args (dict):
            The tool arguments: action, workspace_id and values.

    Returns:
        dict:
            The result of the action.

    Raises:
        ToolCallError:
            For unknown actions or missing arguments.
        OTCSError:
            If the REST call to Content Server fails.
        BusinessPropertiesError:
            If none of the categories could be updated.

    """

    action = args.get("action")
    workspace_id = _int_argument(args, "workspace_id")

    if action in ("get_values", "get"):
        node_categories = otcs.get_categories(node_id=workspace_id, include_metadata=True)
        business_properties = {
            category.name: {attribute.name: attribute.value for attribute in category.attributes}
            for category in node_categories.categories
        }
        category_count = len(node_categories.categories)
        return {
            "workspace_id": workspace_id,
            "categories": node_categories.model_dump()["categories"],
            "business_properties": business_properties,
            "category_count": category_count,
            "message": "Retrieved {} business property category(ies)".format(category_count),
        }

    if action == "get_form":
        form = otcs.get_workspace_metadata_form(workspace_id=workspace_id)
        if form is None:
            raise OTCSError("Failed to get metadata form of workspace {}".format(workspace_id))
        return {
            "form": form.model_dump(),
            "category_count": len(form.categories),
            "total_attributes": sum(len(category.attributes) for category in form.categories),
            "categories_summary": [
                {
                    "id": category.category_id,
                    "name": category.category_name,
                    "attribute_count": len(category.attributes),
                }
                for category in form.categories
            ],
        }

    if action == "update":
        values = _values_argument(args)
        result = otcs.update_workspace_metadata(workspace_id=workspace_id, values=values)
        return {
            **result.model_dump(),
            "message": "Workspace {} metadata updated".format(workspace_id),
            "values_updated": list(values),
        }

    raise ToolCallError("Unknown action: {}".format(action))


# end function definition


TOOL_HANDLERS: dict[str, Callable[[OTCS, dict], dict]] = {
    "otcs_categories": handle_categories,
    "otcs_workspace_metadata": handle_workspace_metadata,
}


def handle_tool_call(otcs: OTCS, name: str, args: dict | None) -> dict:
    """Execute a tool call.

    Args:
        otcs (OTCS):
            The (authenticated) OTCS object.
        name (str):
            The name of the tool.
        args (dict | None):
            The tool arguments.

    Returns:
        dict:
            The JSON-ready result of the tool.

    Raises:
        ToolCallError:
            For unknown tools or actions and missing arguments.

    """

    handler = TOOL_HANDLERS.get(name)
    if handler is None:
        raise ToolCallError("Unknown tool: {}".format(name))

    logger.debug("Calling tool -> '%s' with arguments -> %s", name, str(args))

    return handler(otcs, args or {})


# end function definition
