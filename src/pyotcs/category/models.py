"""Define the value objects of the category (structured metadata) codec.

Attribute definitions form a tree: a set attribute is a repeatable group
of child attributes, and every child reuses the same model. Scalar and
set attributes are separate variants of the `Attribute` union so code
walking the tree has to deal with the recursive case explicitly.
"""

from collections.abc import Iterator
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag


def _attribute_variant(value: Any) -> str:  # noqa: ANN401
    """Return the tag of the attribute variant for the discriminated union."""

    attribute_type = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)

    return "set" if attribute_type == "set" else "scalar"


# end function definition


class ValidValue(BaseModel):
    """One entry of an enumerated option list."""

    model_config = ConfigDict(frozen=True)

    key: Annotated[Any, Field(description="Value stored on the server")]
    value: Annotated[Any, Field(description="Label displayed to the user")]


class ScalarAttribute(BaseModel):
    """Attribute holding a single value or a list of values (multi-value)."""

    model_config = ConfigDict(frozen=True)

    key: Annotated[str, Field(description="Positional identifier of the attribute, e.g. '2' or '11150_2'")]
    name: Annotated[str, Field(description="Display name of the attribute")]
    type: Annotated[str, Field(description="Schema type: string, number, boolean, date, object or array")] = "string"
    type_name: Annotated[str | None, Field(description="Schema format, falls back to the schema type")] = None
    required: bool = False
    multi_value: Annotated[bool, Field(description="True if the schema type is 'array'")] = False
    read_only: bool = False
    hidden: bool = False
    description: str | None = None
    max_length: int | None = None
    min_value: float | int | None = None
    max_value: float | int | None = None
    default_value: Any = None
    valid_values: list[ValidValue] | None = None


class SetAttribute(BaseModel):
    """Repeatable group of child attributes.

    Row indices are not part of the child definitions. They are injected
    when values are flattened into keys like `11150_2_1_6`.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    type: Literal["set"] = "set"
    type_name: str = "set"
    is_set: Literal[True] = True
    required: bool = False
    multi_value: Literal[False] = False
    read_only: bool = False
    hidden: bool = False
    description: str | None = None
    default_value: Any = None
    valid_values: list[ValidValue] | None = None
    children: Annotated[list["Attribute"], Field(description="Definitions of the attributes of one set row")] = []
    set_rows: Annotated[
        int | None,
        Field(description="Number of data rows observed for this set (display only)"),
    ] = None


Attribute = Annotated[
    Annotated[ScalarAttribute, Tag("scalar")] | Annotated[SetAttribute, Tag("set")],
    Discriminator(_attribute_variant),
]

SetAttribute.model_rebuild()


class CategoryDefinition(BaseModel):
    """Schema of one category, independent of any node."""

    model_config = ConfigDict(frozen=True)

    category_id: int
    category_name: str
    attributes: list[Attribute] = []


class AttributeValue(BaseModel):
    """A single attribute value as observed on a node."""

    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    type: Annotated[str, Field(description="Type inferred from the value (best effort, not the schema type)")]
    value: Any = None


class CategoryWithValues(BaseModel):
    """A category applied to a node with its (flat) attribute values."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    attributes: list[AttributeValue] = []


class NodeCategories(BaseModel):
    """All categories applied to a node."""

    model_config = ConfigDict(frozen=True)

    node_id: int
    categories: list[CategoryWithValues] = []


class WorkspaceMetadataForm(BaseModel):
    """Category definitions of all categories of a business workspace."""

    model_config = ConfigDict(frozen=True)

    workspace_id: int
    categories: list[CategoryDefinition] = []


class BusinessPropertiesResult(BaseModel):
    """Outcome of writing values into several categories of one node."""

    updated: Annotated[list[int], Field(description="IDs of categories that were updated")] = []
    failed: Annotated[list[int], Field(description="IDs of categories where the update failed")] = []
    skipped: Annotated[list[str], Field(description="Input keys that could not be resolved")] = []


def iter_attributes(attributes: list[Attribute]) -> Iterator[Attribute]:
    """Traverse an attribute tree depth-first.

    A set attribute is yielded before its children.

    Args:
        attributes (list[Attribute]):
            The top-level attributes of a category.

    Yields:
        Attribute:
            Every attribute of the tree.

    """

    for attribute in attributes:
        yield attribute
        if isinstance(attribute, SetAttribute):
            yield from iter_attributes(attribute.children)


# end function definition
