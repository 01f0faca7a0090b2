"""Codec for Content Server category (structured metadata) attributes."""

from .decoder import decode_category_data, decode_node_categories, decode_node_category
from .encoder import encode_category_values, is_flattened_key, is_row_array, is_set_row_map
from .models import (
    Attribute,
    AttributeValue,
    BusinessPropertiesResult,
    CategoryDefinition,
    CategoryWithValues,
    NodeCategories,
    ScalarAttribute,
    SetAttribute,
    ValidValue,
    WorkspaceMetadataForm,
    iter_attributes,
)
from .names import NameIndex, add_attributes_to_index, normalize_attribute_name, resolve_attribute_name
from .schema import (
    extract_attribute,
    extract_category_attributes,
    extract_category_definition,
    extract_workspace_metadata_form,
)

__all__ = [
    "Attribute",
    "AttributeValue",
    "BusinessPropertiesResult",
    "CategoryDefinition",
    "CategoryWithValues",
    "NameIndex",
    "NodeCategories",
    "ScalarAttribute",
    "SetAttribute",
    "ValidValue",
    "WorkspaceMetadataForm",
    "add_attributes_to_index",
    "decode_category_data",
    "decode_node_categories",
    "decode_node_category",
    "encode_category_values",
    "extract_attribute",
    "extract_category_attributes",
    "extract_category_definition",
    "extract_workspace_metadata_form",
    "is_flattened_key",
    "is_row_array",
    "is_set_row_map",
    "iter_attributes",
    "normalize_attribute_name",
    "resolve_attribute_name",
]
