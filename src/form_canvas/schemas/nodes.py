"""
Canvas node models.

The canvas is an ordered tuple of top-level nodes stacked vertically. A node is
either a leaf `ComponentNode` or a `RowNode` that groups 2..MAX_ROW_CHILDREN
components horizontally. Rows are exactly one level deep: a row's children are
typed as `ComponentNode`, so a nested row fails validation.

Models are frozen; every layout operation builds new tuples instead of mutating
the ones it was given.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union, get_args

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

MAX_ROW_CHILDREN = 4

ComponentKind = Literal[
    "text_input",
    "email_input",
    "number_input",
    "textarea",
    "select",
    "radio_group",
    "checkbox",
    "date_picker",
    "file_upload",
    "button",
    "heading",
    "paragraph",
    "divider",
    "section_divider",
]

FIELD_KINDS: Tuple[str, ...] = get_args(ComponentKind)

# Meta-layouts are produced implicitly by grouping; they are never placed directly.
META_LAYOUT_KINDS = frozenset({"horizontal_layout", "vertical_layout", "row_layout", "column_layout"})


def normalize_kind(kind: Any) -> str:
    """`Row-Layout` / `row layout` -> `row_layout`."""
    t = str(kind or "").strip().lower()
    return t.replace("-", "_").replace(" ", "_")


def is_meta_layout(kind: Any) -> bool:
    return normalize_kind(kind) in META_LAYOUT_KINDS


class ValidationRule(BaseModel):
    type: Literal["required", "minLength", "maxLength", "pattern", "email", "min", "max", "custom"]
    value: Optional[Any] = None
    message: str = ""

    model_config = ConfigDict(frozen=True)


class ComponentNode(BaseModel):
    """A placed form field. Always a leaf."""

    type: Literal["component"] = "component"
    node_id: str = Field(..., alias="nodeId", min_length=1)
    kind: ComponentKind
    label: str = ""
    field_id: str = Field(default="", alias="fieldId")
    required: bool = False
    validation: Tuple[ValidationRule, ...] = ()
    properties: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class RowNode(BaseModel):
    """Horizontal grouping of components. Children order is render order, left to right."""

    type: Literal["row"] = "row"
    node_id: str = Field(..., alias="nodeId", min_length=1)
    label: str = "Row Layout"
    children: Tuple[ComponentNode, ...] = ()

    model_config = ConfigDict(frozen=True, populate_by_name=True)


Node = Annotated[Union[ComponentNode, RowNode], Field(discriminator="type")]
Tree = Tuple[Node, ...]

_TREE_ADAPTER: TypeAdapter[Tuple[Node, ...]] = TypeAdapter(Tuple[Node, ...])


def parse_tree(data: Any) -> Tree:
    """Validate a JSON-like list of nodes into a tree (raises pydantic.ValidationError)."""
    if isinstance(data, tuple) and all(isinstance(n, (ComponentNode, RowNode)) for n in data):
        return data
    return _TREE_ADAPTER.validate_python(list(data or []))


def dump_tree(tree: Tree) -> List[Dict[str, Any]]:
    return _TREE_ADAPTER.dump_python(tuple(tree), mode="json", by_alias=True)
