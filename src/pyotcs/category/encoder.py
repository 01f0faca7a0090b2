"""Encode category values into the flat form body of the category write API.

The write API expects one form field per attribute value with keys like:

    {category_id}_{attribute_id}                              -> '11150_28'
    {category_id}_{set_id}_{row}_{attribute_id}               -> '11150_2_1_6'

Callers can supply values in three shapes:

    1. Flat keys:       {'11150_2_1_6': 'value'}
    2. Set row maps:    {'2': {'1': {'6': 'value'}, '5': {'6': 'other'}}}
    3. Row arrays:      {'2': [{'6': 'value'}, {'6': 'other'}]}

Row maps carry the row index assigned by the server and are written back
unchanged (gaps included). Row arrays are numbered starting with 1.
Multi-value attributes are given as lists and produce repeated form fields.
"""

import json
import logging
import re

logger = logging.getLogger("pyotcs.category.encoder")

FLATTENED_KEY_PATTERN = re.compile(r"^[0-9]+_[0-9]+")
ROW_INDEX_PATTERN = re.compile(r"[0-9]+")


def is_flattened_key(key: str) -> bool:
    """Check if a key already starts with '{category_id}_{attribute_id}'."""

    return bool(FLATTENED_KEY_PATTERN.match(key))


# end function definition


def is_set_row_map(value: object) -> bool:
    """Check if a value is a dictionary keyed by set row indices only."""

    return (
        isinstance(value, dict)
        and len(value) > 0
        and all(isinstance(key, str) and ROW_INDEX_PATTERN.fullmatch(key) for key in value)
    )


# end function definition


def is_row_array(value: object) -> bool:
    """Check if a value is a non-empty list of row dictionaries."""

    return isinstance(value, list) and len(value) > 0 and all(isinstance(item, dict) for item in value)


# end function definition


def _warn_ambiguous_shape(key: str, value: object) -> None:
    """Log values that look like set rows but are encoded as plain values."""

    if isinstance(value, dict) and any(
        isinstance(row_key, str) and ROW_INDEX_PATTERN.fullmatch(row_key) for row_key in value
    ):
        logger.warning(
            "Value for key -> '%s' mixes row indices and other keys -> %s. Encoding it as a single JSON value.",
            key,
            list(value.keys()),
        )
    elif isinstance(value, list) and any(isinstance(item, dict) for item in value):
        logger.warning(
            "Value for key -> '%s' mixes row objects and plain values. Encoding each list element as a separate value.",
            key,
        )


# end function definition


def _stringify(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)

    return str(value)


# end function definition


def encode_single_value(key: str, value: object) -> list[tuple[str, str]]:
    """Encode a scalar or a multi-value list for one form field.

    Args:
        key (str):
            The fully qualified attribute key.
        value (object):
            A scalar, a dictionary (written as JSON) or a list of those.

    Returns:
        list[tuple[str, str]]:
            One (key, value) pair per non-empty value. A list produces
            repeated pairs for the same key in list order.

    """

    if value is None:
        return []

    if isinstance(value, list):
        return [(key, _stringify(item)) for item in value if item is not None]

    return [(key, _stringify(value))]


# end function definition


def _encode_row(base_key: str, row_index: int | str, row_data: object) -> list[tuple[str, str]]:
    """Encode the attribute values of one set row."""

    if not isinstance(row_data, dict):
        return encode_single_value(key="{}_{}".format(base_key, row_index), value=row_data)

    pairs = []
    for attribute_key, attribute_value in row_data.items():
        pairs += _encode_value(
            key="{}_{}_{}".format(base_key, row_index, attribute_key),
            value=attribute_value,
        )

    return pairs


# end function definition


def _encode_value(key: str, value: object) -> list[tuple[str, str]]:
    """Classify a value and encode it below the given key.

    Row contents are classified again, so nested sets are flattened
    to keys like '{key}_{row}_{set}_{row}_{attribute}'.
    """

    if value is None:
        return []

    if is_set_row_map(value):
        pairs = []
        for row_index, row_data in value.items():
            pairs += _encode_row(base_key=key, row_index=row_index, row_data=row_data)
        return pairs

    if is_row_array(value):
        pairs = []
        # Content Server numbers set rows starting with 1:
        for row_index, row_data in enumerate(value, start=1):
            pairs += _encode_row(base_key=key, row_index=row_index, row_data=row_data)
        return pairs

    _warn_ambiguous_shape(key=key, value=value)

    return encode_single_value(key=key, value=value)


# end function definition


def encode_category_values(values: dict | None, category_id: int | str) -> list[tuple[str, str]]:
    """Flatten category values into the form fields expected by the write API.

    Args:
        values (dict | None):
            The attribute values. Keys are plain attribute IDs (they get
            the category ID as prefix) or already flattened keys like
            '11150_2_1_6' (they are used as they are). Values of None are
            skipped, this leaves the attribute unchanged on the server.
        category_id (int | str):
            The ID of the category the values belong to.

    Returns:
        list[tuple[str, str]]:
            The ordered form fields. Can be passed as `data` to requests.

    """

    pairs = []

    for key, value in (values or {}).items():
        if value is None:
            continue

        key = str(key)

        if is_flattened_key(key):
            pairs += encode_single_value(key=key, value=value)
        else:
            pairs += _encode_value(key="{}_{}".format(category_id, key), value=value)

    return pairs


# end function definition
