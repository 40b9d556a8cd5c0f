"""
Drop intent resolution.

Turns (payload, intent, target) into one concrete mutation command. The
resolver reads the committed tree but never changes it; returning `None`
means "no matching command", which callers treat as a cancelled drop.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from form_canvas.layout.mutator import NodeLocation, locate
from form_canvas.schemas.drag import (
    AppendToRow,
    CanvasPayload,
    CreateRow,
    InsertAdjacent,
    InsertAt,
    InsertIntoRow,
    Intent,
    MutationCommand,
    PalettePayload,
    Reject,
    RejectReason,
)
from form_canvas.schemas.nodes import MAX_ROW_CHILDREN, Node, RowNode, Tree, is_meta_layout

logger = logging.getLogger("form_canvas.layout")


def reject_message(reason: RejectReason, *, max_children: int = MAX_ROW_CHILDREN) -> str:
    if reason == "RowCapacityExceeded":
        return f"This row already contains the maximum of {max_children} components."
    if reason == "ImplicitLayoutRejected":
        return (
            "Layouts are created automatically. Drop a field to the left or right "
            "of another field to build a row."
        )
    if reason == "RowNestingRejected":
        return "Rows can only be moved above or below other elements."
    return "The drop target no longer exists."


def reject(reason: RejectReason, *, max_children: int = MAX_ROW_CHILDREN) -> Reject:
    return Reject(reason=reason, message=reject_message(reason, max_children=max_children))


def _free_slots(row: RowNode, dragged: Optional[Node], max_children: int) -> int:
    # A child moving within its own row frees its slot before it is re-inserted.
    used = len(row.children)
    if dragged is not None and any(c.node_id == dragged.node_id for c in row.children):
        used -= 1
    return max_children - used


def resolve_drop(
    tree: Tree,
    payload: Union[PalettePayload, CanvasPayload],
    intent: Optional[Intent],
    target_id: Optional[str],
    target_index: Optional[int] = None,
    *,
    max_children: int = MAX_ROW_CHILDREN,
) -> Optional[MutationCommand]:
    """
    Rules, in order:
    - palette meta-layouts (row/column containers) are rejected outright
    - a canvas node dropped on itself or inside itself cancels
    - no target id: insert at `target_index` (end of canvas when absent)
    - unknown target: insert after it, which the mutator turns into an append
    - before/after: insert adjacent; a row child defers to its enclosing row
    - center on a component behaves like after
    - rows being dragged may only move vertically
    - left/right/center/append on a row: append to it
    - left/right on a row child: insert into that row next to the child
    - left/right on a top-level component: group both into a new row
    """
    dragged: Optional[Node] = None
    if isinstance(payload, PalettePayload):
        if is_meta_layout(payload.kind):
            return reject("ImplicitLayoutRejected", max_children=max_children)
    else:
        source = locate(tree, payload.node_id)
        if source is None:
            logger.info("drag source %s is no longer on the canvas", payload.node_id)
            return None
        dragged = source.node
        if target_id == dragged.node_id:
            return None
        if isinstance(dragged, RowNode) and any(c.node_id == target_id for c in dragged.children):
            return None

    if not target_id:
        index = len(tree) if target_index is None else max(0, min(int(target_index), len(tree)))
        return InsertAt(index=index)

    target: Optional[NodeLocation] = locate(tree, target_id)
    if target is None:
        return InsertAdjacent(target_id=target_id, side="after")

    target_is_row = isinstance(target.node, RowNode)
    if intent in ("center", "append") and not target_is_row:
        intent = "after"

    if intent in ("before", "after"):
        if target.row is not None:
            return InsertAdjacent(target_id=target.row.node_id, side=intent)
        return InsertAdjacent(target_id=target_id, side=intent)

    if intent not in ("left", "right", "center", "append"):
        return None
    if isinstance(dragged, RowNode):
        return reject("RowNestingRejected", max_children=max_children)

    if target_is_row:
        if _free_slots(target.node, dragged, max_children) <= 0:  # type: ignore[arg-type]
            return reject("RowCapacityExceeded", max_children=max_children)
        return AppendToRow(row_id=target_id)

    if target.row is not None:
        if _free_slots(target.row, dragged, max_children) <= 0:
            return reject("RowCapacityExceeded", max_children=max_children)
        return InsertIntoRow(row_id=target.row.node_id, reference_child_id=target_id, side=intent)  # type: ignore[arg-type]

    return CreateRow(target_id=target_id, side=intent)  # type: ignore[arg-type]
