"""Decode category value responses of the different Content Server endpoints.

The node categories endpoints do not agree on a single response layout.
These shapes are known:

    {'results': [{'data': {'categories': {'42': {'name': 'Invoice', ...}}}}]}
    {'results': [{'data': {'name': 'Invoice', 'amount': 100, ...}}]}
    {'results': {'data': {'42': {'name': 'Invoice', ...}}}}

Each shape has its own matcher. The matchers are tried in order and the
first one that returns a result wins. An unknown shape is not an error:
it just means no category data is available.
"""

import logging
from collections.abc import Callable

from pyotcs.category.models import AttributeValue, CategoryWithValues

logger = logging.getLogger("pyotcs.category.decoder")


def _as_dict(value: object) -> dict:
    return value if isinstance(value, dict) else {}


# end function definition


def _result_list(response: dict | None) -> list[dict]:
    """Return the results of a response as a list of data dictionaries."""

    results = _as_dict(response).get("results")
    if isinstance(results, dict):
        results = [results]
    if not isinstance(results, list):
        return []

    # Some endpoints wrap the payload in 'data', others don't:
    return [
        result["data"] if isinstance(result.get("data"), dict) else result
        for result in results
        if isinstance(result, dict)
    ]


# end function definition


def is_metadata_key(key: str) -> bool:
    """Check if a property of the category data is metadata and not an attribute value."""

    return key == "name" or key.endswith("_name")


# end function definition


def infer_value_type(value: object) -> str:
    """Infer the type of an attribute from its value.

    This is coarser than the type declared in the category schema:
    lists, dictionaries and empty values are all reported as 'object'.
    """

    if value is None or isinstance(value, (dict, list)):
        return "object"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"

    return type(value).__name__


# end function definition


def decode_category_data(category_id: int | str, category_data: dict) -> CategoryWithValues:
    """Turn the data of one category into a flat list of attribute values.

    Args:
        category_id (int | str):
            The ID of the category.
        category_data (dict):
            Attribute values keyed by attribute key plus metadata
            properties like 'name' or '<key>_name'.

    Returns:
        CategoryWithValues:
            The category with its attribute values.

    """

    attributes = []

    for key, value in category_data.items():
        key = str(key)
        if is_metadata_key(key):
            continue
        display_name = category_data.get(key + "_name")
        attributes.append(
            AttributeValue(
                key=key,
                name=display_name if isinstance(display_name, str) and display_name else key,
                type=infer_value_type(value),
                value=value,
            ),
        )

    return CategoryWithValues(
        id=int(category_id),
        name=str(category_data.get("name") or "Category {}".format(category_id)),
        attributes=attributes,
    )


# end function definition


def _decode_categories_map(categories: dict) -> list[CategoryWithValues]:
    decoded = []

    for category_id, category_data in categories.items():
        if not isinstance(category_data, dict):
            continue
        try:
            decoded.append(decode_category_data(category_id=category_id, category_data=category_data))
        except ValueError:
            logger.warning("Skipping category with non-numeric ID -> '%s'", category_id)

    return decoded


# end function definition


def _match_categories_map(response: dict | None) -> list[CategoryWithValues] | None:
    """Match {'results': [{'data': {'categories': {<id>: {...}}}}]}."""

    data_list = [data for data in _result_list(response) if isinstance(data.get("categories"), dict)]
    if not data_list:
        return None

    categories = []
    for data in data_list:
        categories += _decode_categories_map(data["categories"])

    return categories


# end function definition


def _match_categories_by_id(response: dict | None) -> list[CategoryWithValues] | None:
    """Match {'results': {'data': {<id>: {...}}}} (categories keyed by ID directly)."""

    categories = []
    for data in _result_list(response):
        numeric_items = {
            key: value
            for key, value in data.items()
            if str(key).isascii() and str(key).isdigit() and isinstance(value, dict)
        }
        categories += _decode_categories_map(numeric_items)

    return categories or None


# end function definition


NODE_CATEGORIES_MATCHERS: tuple[Callable[[dict | None], list[CategoryWithValues] | None], ...] = (
    _match_categories_map,
    _match_categories_by_id,
)


def decode_node_categories(response: dict | None) -> list[CategoryWithValues]:
    """Decode all categories of a node categories response.

    Args:
        response (dict | None):
            Response of the node categories REST call (or None if the call failed).

    Returns:
        list[CategoryWithValues]:
            The decoded categories. Empty if the response has no category data.

    """

    for matcher in NODE_CATEGORIES_MATCHERS:
        categories = matcher(response)
        if categories is not None:
            return categories

    logger.debug("No category data found in response.")

    return []


# end function definition


def _match_single_in_categories_map(response: dict | None, category_id: int) -> CategoryWithValues | None:
    """Match {'results': [{'data': {'categories': {<category_id>: {...}}}}]}."""

    for data in _result_list(response):
        category_data = _as_dict(data.get("categories")).get(str(category_id))
        if isinstance(category_data, dict):
            return decode_category_data(category_id=category_id, category_data=category_data)

    return None


# end function definition


def _match_single_keyed_by_id(response: dict | None, category_id: int) -> CategoryWithValues | None:
    """Match {'results': {'data': {<category_id>: {...}}}}."""

    for data in _result_list(response):
        category_data = data.get(str(category_id))
        if isinstance(category_data, dict):
            return decode_category_data(category_id=category_id, category_data=category_data)

    return None


# end function definition


def _match_single_direct_fields(response: dict | None, category_id: int) -> CategoryWithValues | None:
    """Match {'results': [{'data': {'name': ..., <attribute>: <value>, ...}}]}."""

    data_list = _result_list(response)
    if not data_list:
        return None

    data = data_list[0]
    # Category data wrapped in a 'categories' map or keyed by other category IDs:
    if isinstance(data.get("categories"), dict) or _match_categories_by_id(response):
        return None

    return decode_category_data(category_id=category_id, category_data=data)


# end function definition


NODE_CATEGORY_MATCHERS: tuple[Callable[[dict | None, int], CategoryWithValues | None], ...] = (
    _match_single_in_categories_map,
    _match_single_keyed_by_id,
    _match_single_direct_fields,
)


def decode_node_category(response: dict | None, category_id: int) -> CategoryWithValues | None:
    """Decode one category of a node category response.

    Args:
        response (dict | None):
            Response of the node category REST call (or None if the call failed).
        category_id (int):
            The ID of the requested category.

    Returns:
        CategoryWithValues | None:
            The decoded category or None if the response has no data for it.

    """

    for matcher in NODE_CATEGORY_MATCHERS:
        category = matcher(response, category_id)
        if category is not None:
            return category

    return None


# end function definition
