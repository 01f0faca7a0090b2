"""Parse Content Server category forms into attribute definition trees.

A form response looks like this (abbreviated):

    {
        'forms': [
            {
                'data': {'11150_2': [{'11150_2_x_1': 'A', '11150_2_x_6': 1}], ...},
                'options': {
                    'fields': {
                        '11150_2': {'label': 'Items', 'fields': {'item': {'fields': {...}}}},
                        ...
                    }
                },
                'schema': {
                    'properties': {
                        '11150_2': {'type': 'array', 'items': {'type': 'object', 'properties': {...}}},
                        ...
                    },
                    'required': [...]
                }
            }
        ]
    }

Sets (repeatable attribute groups) show up in two encodings: an `array`
of `object` items or an inline `object` with its own properties. Both
end up as a `SetAttribute`.
"""

import logging
import re

from pyotcs.category.models import (
    Attribute,
    CategoryDefinition,
    ScalarAttribute,
    SetAttribute,
    ValidValue,
    WorkspaceMetadataForm,
)

logger = logging.getLogger("pyotcs.category.schema")

ROW_INDEX_PATTERN = re.compile(r"[0-9]+")


def _as_dict(value: object) -> dict:
    return value if isinstance(value, dict) else {}


# end function definition


def _as_list(value: object) -> list:
    return value if isinstance(value, list) else []


# end function definition


def _as_str(value: object) -> str | None:
    return value if isinstance(value, str) and value else None


# end function definition


def _as_number(value: object) -> int | float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None

    return value


# end function definition


def _max_length(value: object) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return None

    return value


# end function definition


def _category_id(value: object) -> int:
    """Return the category ID of a form as int (0 if it is missing or not numeric)."""

    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)

    return 0


# end function definition


def _schema_type(prop: dict) -> str:
    """Return the schema type of a property.

    JSON schema allows a list of types (e.g. ['string', 'null']).
    The first named type is used in this case.
    """

    schema_type = prop.get("type")
    if isinstance(schema_type, list):
        schema_type = next((entry for entry in schema_type if isinstance(entry, str) and entry != "null"), None)

    return schema_type if isinstance(schema_type, str) and schema_type else "string"


# end function definition


def _valid_values(prop: dict, field_options: dict) -> list[ValidValue] | None:
    """Pair each enum entry with the label at the same position."""

    if "enum" not in prop and "optionLabels" not in field_options:
        return None

    labels = _as_list(field_options.get("optionLabels"))
    valid_values = []
    for index, value in enumerate(_as_list(prop.get("enum"))):
        label = labels[index] if index < len(labels) and labels[index] else value
        valid_values.append(ValidValue(key=value, value=label))

    return valid_values


# end function definition


def _extract_children(properties: dict, field_options: dict, required: list) -> list[Attribute]:
    return [
        extract_attribute(
            key=child_key,
            prop=child_prop,
            field_options=_as_dict(field_options.get(child_key)),
            required=child_key in required,
        )
        for child_key, child_prop in properties.items()
    ]


# end function definition


def extract_attribute(
    key: str,
    prop: dict,
    field_options: dict | None = None,
    required: bool = False,
    data_value: object = None,
) -> Attribute:
    """Build the definition of a single attribute (recursing into sets).

    Args:
        key (str):
            The key of the property in the schema.
        prop (dict):
            The JSON-schema like property definition.
        field_options (dict | None, optional):
            The UI options of the field (label, helper, hidden, readonly, optionLabels, ...).
        required (bool, optional):
            Whether the attribute is listed in the required list of its schema.
        data_value (object, optional):
            The current data of the attribute. Only used to count set rows.

    Returns:
        Attribute:
            A SetAttribute if the property describes a set, a ScalarAttribute otherwise.

    """

    prop = _as_dict(prop)
    field_options = _as_dict(field_options)
    schema_type = _schema_type(prop)

    common = {
        "key": key,
        "name": str(field_options.get("label") or prop.get("title") or key),
        "required": required,
        "read_only": bool(prop.get("readonly") or field_options.get("readonly")),
        "hidden": bool(field_options.get("hidden")),
        "description": _as_str(field_options.get("helper")) or _as_str(prop.get("description")),
        "default_value": prop.get("default"),
        "valid_values": _valid_values(prop, field_options),
    }

    items = _as_dict(prop.get("items"))

    # Set encoded as an array of objects:
    if schema_type == "array" and items.get("type") == "object":
        options = _as_dict(field_options.get("fields"))
        child_options = _as_dict(_as_dict(options.get("item")).get("fields")) or _as_dict(
            _as_dict(field_options.get("items")).get("fields"),
        )
        children = _extract_children(
            properties=_as_dict(items.get("properties")),
            field_options=child_options,
            required=_as_list(items.get("required")),
        )
        set_rows = len(data_value) if isinstance(data_value, list) else None
        return SetAttribute(children=children, set_rows=set_rows, **common)

    # Inline set definition (object with a properties map). Rows are string keyed:
    if schema_type == "object" and isinstance(prop.get("properties"), dict):
        children = _extract_children(
            properties=_as_dict(prop.get("properties")),
            field_options=_as_dict(field_options.get("fields")),
            required=_as_list(prop.get("required")),
        )
        set_rows = (
            sum(1 for row_key in data_value if ROW_INDEX_PATTERN.fullmatch(str(row_key)))
            if isinstance(data_value, dict)
            else None
        )
        return SetAttribute(children=children, set_rows=set_rows, **common)

    return ScalarAttribute(
        type=schema_type,
        type_name=_as_str(prop.get("format")) or schema_type,
        multi_value=schema_type == "array",
        max_length=_max_length(prop.get("maxLength")),
        min_value=_as_number(prop.get("minimum")),
        max_value=_as_number(prop.get("maximum")),
        **common,
    )


# end function definition


def extract_form_attributes(form: dict, data: dict | None = None) -> list[Attribute]:
    """Extract the attribute definitions of a single form.

    Args:
        form (dict):
            One element of the `forms` list of a form response.
        data (dict | None, optional):
            Fallback row data if the form does not carry its own `data`.

    Returns:
        list[Attribute]:
            The top-level attributes of the form (empty if the form has no schema).

    """

    schema = _as_dict(form.get("schema"))
    properties = _as_dict(schema.get("properties"))
    if not properties:
        return []

    field_options = _as_dict(_as_dict(form.get("options")).get("fields"))
    required = _as_list(schema.get("required"))
    form_data = _as_dict(form.get("data")) or _as_dict(data)

    return [
        extract_attribute(
            key=key,
            prop=prop,
            field_options=_as_dict(field_options.get(key)),
            required=key in required,
            data_value=form_data.get(key),
        )
        for key, prop in properties.items()
    ]


# end function definition


def extract_category_attributes(response: dict | None) -> list[Attribute]:
    """Extract the attribute definitions of all forms of a form response.

    Args:
        response (dict | None):
            The response of a category create / update form or the
            workspace metadata form REST call.

    Returns:
        list[Attribute]:
            The attribute trees of all forms. Missing or malformed parts
            yield fewer attributes, never an exception.

    """

    response = _as_dict(response)
    attributes = []

    for form in response.get("forms") or []:
        if not isinstance(form, dict):
            logger.debug("Skipping form that is not an object -> %s", str(form))
            continue
        attributes += extract_form_attributes(form=form, data=_as_dict(response.get("data")))

    return attributes


# end function definition


def extract_category_definition(response: dict | None, category_id: int) -> CategoryDefinition:
    """Wrap the attributes of a category form response into a category definition."""

    response = _as_dict(response)
    category_name = str(_as_dict(response.get("data")).get("name") or "Category {}".format(category_id))

    return CategoryDefinition(
        category_id=category_id,
        category_name=category_name,
        attributes=extract_category_attributes(response),
    )


# end function definition


def extract_workspace_metadata_form(response: dict | None, workspace_id: int) -> WorkspaceMetadataForm:
    """Build one category definition per form of a workspace metadata form response.

    Args:
        response (dict | None):
            Response of the business workspace metadata update form.
        workspace_id (int):
            The ID of the workspace the form belongs to.

    Returns:
        WorkspaceMetadataForm:
            The category definitions of the workspace.

    """

    categories = []

    for form in _as_dict(response).get("forms") or []:
        if not isinstance(form, dict) or not _as_dict(form.get("schema")).get("properties"):
            continue
        form_data = _as_dict(form.get("data"))
        form_attributes = _as_dict(_as_dict(_as_dict(form.get("options")).get("form")).get("attributes"))
        categories.append(
            CategoryDefinition(
                category_id=_category_id(form_data.get("id")),
                category_name=str(form_data.get("name") or form_attributes.get("name") or "Unknown"),
                attributes=extract_form_attributes(form=form),
            ),
        )

    return WorkspaceMetadataForm(workspace_id=workspace_id, categories=categories)


# end function definition
