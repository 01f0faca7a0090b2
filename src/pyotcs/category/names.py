"""Resolve human-friendly attribute names to flattened attribute keys.

Names are normalized before they are compared: the characters
`_ - / ( ) .` and whitespace are removed and the result is lower-cased.
So 'Equipment_Number', 'equipment number' and 'Equipment-Number' all
address the same attribute.
"""

import logging
import re

from pyotcs.category.models import Attribute, iter_attributes

logger = logging.getLogger("pyotcs.category.names")

# Normalized attribute name -> flattened attribute key (e.g. '10596_2_1_6'):
NameIndex = dict[str, str]

NAME_SEPARATOR_PATTERN = re.compile(r"[_\s\-/().]")


def normalize_attribute_name(name: str) -> str:
    """Normalize an attribute name for lookups.

    Args:
        name (str):
            The attribute name (or a friendly variant of it).

    Returns:
        str:
            The name without separators, in lower case.

    """

    return NAME_SEPARATOR_PATTERN.sub("", name).lower()


# end function definition


def add_attributes_to_index(index: NameIndex, attributes: list[Attribute]) -> NameIndex:
    """Register all attributes of an attribute tree (including set children).

    A name that normalizes like an already registered one replaces it.

    Args:
        index (NameIndex):
            The index to add the attributes to (modified in place).
        attributes (list[Attribute]):
            The attribute definitions of a category.

    Returns:
        NameIndex:
            The updated index.

    """

    for attribute in iter_attributes(attributes):
        if not attribute.name:
            continue
        normalized_name = normalize_attribute_name(attribute.name)
        if normalized_name in index and index[normalized_name] != attribute.key:
            logger.debug(
                "Attribute name -> '%s' is ambiguous. Key -> %s replaces key -> %s",
                attribute.name,
                attribute.key,
                index[normalized_name],
            )
        index[normalized_name] = attribute.key

    return index


# end function definition


def resolve_attribute_name(index: NameIndex, name: str, set_row: int = 1) -> str | None:
    """Look up the flattened key of an attribute by its (friendly) name.

    Args:
        index (NameIndex):
            The index built from the category definitions.
        name (str):
            The attribute name to look up.
        set_row (int, optional):
            Row used for set attributes whose key has a row placeholder
            like '10_7_x_2' (first row = 1!). Defaults to 1.

    Returns:
        str | None:
            The flattened key or None if the name is unknown.

    """

    key = index.get(normalize_attribute_name(name))
    if key and "_x_" in key:
        key = key.replace("_x_", "_{}_".format(set_row))

    return key


# end function definition
