"""
Pure tree mutations.

Every function takes a tree snapshot and returns a `MutationOutcome` holding a
new snapshot; the input tuple and its nodes are never modified. Search is
depth-first: each top-level node, then the children of a row, in order.
"""

from __future__ import annotations

import copy
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from form_canvas.components import clone_component
from form_canvas.layout.rows import cleanup_rows
from form_canvas.schemas.drag import HorizontalSide, RejectReason, VerticalSide
from form_canvas.schemas.nodes import MAX_ROW_CHILDREN, ComponentNode, Node, RowNode, Tree

logger = logging.getLogger("form_canvas.layout")


@dataclass(frozen=True)
class MutationOutcome:
    tree: Tree
    inserted: bool = False
    removed_node: Optional[Node] = None
    error: Optional[RejectReason] = None


@dataclass(frozen=True)
class NodeLocation:
    node: Node
    index: int
    # Enclosing row and its top-level index, when the node is a row child.
    row: Optional[RowNode] = None
    row_index: Optional[int] = None

    @property
    def in_row(self) -> bool:
        return self.row is not None


def new_row_id() -> str:
    return f"row-{uuid.uuid4().hex[:12]}"


def locate(tree: Tree, node_id: Optional[str]) -> Optional[NodeLocation]:
    if not node_id:
        return None
    for i, node in enumerate(tree):
        if node.node_id == node_id:
            return NodeLocation(node=node, index=i)
        if isinstance(node, RowNode):
            for j, child in enumerate(node.children):
                if child.node_id == node_id:
                    return NodeLocation(node=child, index=j, row=node, row_index=i)
    return None


def find_node(tree: Tree, node_id: Optional[str]) -> Optional[Node]:
    loc = locate(tree, node_id)
    return loc.node if loc else None


def _with_children(row: RowNode, children: List[ComponentNode]) -> RowNode:
    return row.model_copy(update={"children": tuple(children)})


def _splice(items: Any, index: int, item: Any) -> List[Any]:
    out = list(items)
    out.insert(index, item)
    return out


def remove_node_by_id(tree: Tree, node_id: str, *, cleanup: bool = True) -> MutationOutcome:
    """
    Remove the first node matching `node_id`.

    `cleanup=False` leaves a degenerate row in place; callers composing a
    remove with a later insert use it so row ids stay resolvable, and clean up
    once at the end.
    """
    loc = locate(tree, node_id)
    if loc is None:
        return MutationOutcome(tree=tuple(tree))

    out: List[Node] = list(tree)
    if loc.row is None:
        del out[loc.index]
    else:
        children = list(loc.row.children)
        del children[loc.index]
        out[loc.row_index] = _with_children(loc.row, children)  # type: ignore[index]

    new_tree = cleanup_rows(out) if cleanup else tuple(out)
    return MutationOutcome(tree=new_tree, removed_node=loc.node)


def insert_at(tree: Tree, index: int, node: Node) -> MutationOutcome:
    idx = max(0, min(int(index), len(tree)))
    return MutationOutcome(tree=cleanup_rows(_splice(tree, idx, node)), inserted=True)


def insert_adjacent(
    tree: Tree,
    target_id: str,
    node: Node,
    side: VerticalSide,
    *,
    max_children: int = MAX_ROW_CHILDREN,
) -> MutationOutcome:
    """
    Splice `node` immediately before/after `target_id` within the target's parent list.

    A missing target appends at the top level so the dragged node is never
    discarded. A row placed next to a row child lands beside the enclosing row.
    """
    loc = locate(tree, target_id)
    if loc is None:
        logger.info("insert target %s not found; appending %s at top level", target_id, node.node_id)
        return MutationOutcome(tree=cleanup_rows([*tree, node]), inserted=True)

    offset = 0 if side == "before" else 1
    if loc.row is None or isinstance(node, RowNode):
        anchor = loc.index if loc.row is None else loc.row_index
        return MutationOutcome(tree=cleanup_rows(_splice(tree, anchor + offset, node)), inserted=True)  # type: ignore[operator]

    if len(loc.row.children) >= max_children:
        return MutationOutcome(tree=tuple(tree), error="RowCapacityExceeded")
    out = list(tree)
    out[loc.row_index] = _with_children(loc.row, _splice(loc.row.children, loc.index + offset, node))  # type: ignore[index]
    return MutationOutcome(tree=cleanup_rows(out), inserted=True)


def insert_into_row(
    tree: Tree,
    row_id: str,
    reference_child_id: Optional[str],
    node: Node,
    side: HorizontalSide,
    *,
    max_children: int = MAX_ROW_CHILDREN,
) -> MutationOutcome:
    """
    Splice a component into a row, left or right of `reference_child_id`
    (appended when the reference is absent or not a child of the row).
    A full row is left untouched and reported as `RowCapacityExceeded`.
    """
    loc = locate(tree, row_id)
    if loc is None or not isinstance(loc.node, RowNode):
        logger.info("row %s not found; placing %s after it", row_id, node.node_id)
        return insert_adjacent(tree, row_id, node, "after", max_children=max_children)
    if isinstance(node, RowNode):
        return MutationOutcome(tree=tuple(tree), error="RowNestingRejected")

    row = loc.node
    if len(row.children) >= max_children:
        return MutationOutcome(tree=tuple(tree), error="RowCapacityExceeded")

    index = len(row.children)
    for j, child in enumerate(row.children):
        if reference_child_id and child.node_id == reference_child_id:
            index = j if side == "left" else j + 1
            break

    out = list(tree)
    out[loc.index] = _with_children(row, _splice(row.children, index, node))
    return MutationOutcome(tree=cleanup_rows(out), inserted=True)


def append_to_row(
    tree: Tree,
    row_id: str,
    node: Node,
    *,
    max_children: int = MAX_ROW_CHILDREN,
) -> MutationOutcome:
    return insert_into_row(tree, row_id, None, node, "right", max_children=max_children)


def create_row(
    target_node: ComponentNode,
    new_node: ComponentNode,
    side: HorizontalSide,
    *,
    row_id: Optional[str] = None,
) -> RowNode:
    """Group two components; `left` puts `new_node` first."""
    if not isinstance(target_node, ComponentNode) or not isinstance(new_node, ComponentNode):
        raise TypeError("rows can only group components")
    children = (new_node, target_node) if side == "left" else (target_node, new_node)
    return RowNode(node_id=row_id or new_row_id(), children=children)


def replace_node(tree: Tree, target_id: str, replacement: Node) -> MutationOutcome:
    """Substitute `replacement` for the node with `target_id`, wherever it is."""
    loc = locate(tree, target_id)
    if loc is None:
        return MutationOutcome(tree=tuple(tree))

    out = list(tree)
    if loc.row is None:
        out[loc.index] = replacement
    elif isinstance(replacement, RowNode):
        return MutationOutcome(tree=tuple(tree), error="RowNestingRejected")
    else:
        children = list(loc.row.children)
        children[loc.index] = replacement
        out[loc.row_index] = _with_children(loc.row, children)  # type: ignore[index]
    return MutationOutcome(tree=cleanup_rows(out), inserted=True, removed_node=loc.node)


def group_into_row(
    tree: Tree,
    target_id: str,
    node: Node,
    side: HorizontalSide,
    *,
    max_children: int = MAX_ROW_CHILDREN,
) -> MutationOutcome:
    """Wrap a top-level component and `node` into a new row at the component's position."""
    loc = locate(tree, target_id)
    if loc is None:
        return insert_adjacent(tree, target_id, node, "after", max_children=max_children)
    if isinstance(node, RowNode):
        return MutationOutcome(tree=tuple(tree), error="RowNestingRejected")
    if loc.row is not None:
        return insert_into_row(tree, loc.row.node_id, target_id, node, side, max_children=max_children)
    if isinstance(loc.node, RowNode):
        return append_to_row(tree, target_id, node, max_children=max_children)

    row = create_row(loc.node, node, side)  # type: ignore[arg-type]
    outcome = replace_node(tree, target_id, row)
    return MutationOutcome(tree=outcome.tree, inserted=outcome.inserted, error=outcome.error)


_LOCKED_FIELDS = {"type", "node_id", "nodeId"}


def update_component(tree: Tree, node_id: str, updates: Dict[str, Any]) -> MutationOutcome:
    """
    Apply property-panel edits to one component. Accepts field names or their
    camelCase aliases; keys outside the model land in `properties`.
    Raises pydantic.ValidationError when an update does not fit the model.
    """
    loc = locate(tree, node_id)
    if loc is None or not isinstance(loc.node, ComponentNode):
        return MutationOutcome(tree=tuple(tree), error="TargetNotFound")

    node = loc.node
    data = node.model_dump()
    props = copy.deepcopy(node.properties)
    aliases = {f.alias: name for name, f in ComponentNode.model_fields.items() if f.alias}
    for key, value in (updates or {}).items():
        name = aliases.get(key, key)
        if name in _LOCKED_FIELDS:
            continue
        if name == "properties" and isinstance(value, dict):
            props.update(copy.deepcopy(value))
        elif name in ComponentNode.model_fields:
            data[name] = copy.deepcopy(value)
        else:
            props[key] = copy.deepcopy(value)
    data["properties"] = props

    updated = ComponentNode.model_validate(data)
    return replace_node(tree, node_id, updated)


def duplicate_component(
    tree: Tree,
    node_id: str,
    *,
    max_children: int = MAX_ROW_CHILDREN,
) -> MutationOutcome:
    """
    Insert a copy of a component right after the original, inside its row when
    it has one. The copy gets fresh node and field ids.
    """
    loc = locate(tree, node_id)
    if loc is None or not isinstance(loc.node, ComponentNode):
        return MutationOutcome(tree=tuple(tree), error="TargetNotFound")
    clone = clone_component(loc.node)
    return insert_adjacent(tree, node_id, clone, "after", max_children=max_children)
