"""
Atomic application of a mutation command.

Moving an existing node is a remove followed by an insert. Both phases run on
a working copy; the original snapshot is returned untouched unless the insert
succeeds, so a rejected destination never loses the dragged node.
"""

from __future__ import annotations

import logging
from typing import Optional

from form_canvas.layout.mutator import (
    MutationOutcome,
    append_to_row,
    group_into_row,
    insert_adjacent,
    insert_at,
    insert_into_row,
    locate,
    remove_node_by_id,
)
from form_canvas.layout.rows import cleanup_rows
from form_canvas.schemas.drag import (
    AppendToRow,
    CreateRow,
    InsertAdjacent,
    InsertAt,
    InsertIntoRow,
    MutationCommand,
    Reject,
)
from form_canvas.schemas.nodes import MAX_ROW_CHILDREN, Node, Tree

logger = logging.getLogger("form_canvas.layout")


def _dispatch(tree: Tree, command: MutationCommand, node: Node, *, max_children: int) -> MutationOutcome:
    if isinstance(command, InsertAdjacent):
        return insert_adjacent(tree, command.target_id, node, command.side, max_children=max_children)
    if isinstance(command, InsertIntoRow):
        return insert_into_row(
            tree, command.row_id, command.reference_child_id, node, command.side, max_children=max_children
        )
    if isinstance(command, CreateRow):
        return group_into_row(tree, command.target_id, node, command.side, max_children=max_children)
    if isinstance(command, AppendToRow):
        return append_to_row(tree, command.row_id, node, max_children=max_children)
    if isinstance(command, InsertAt):
        return insert_at(tree, command.index, node)
    if isinstance(command, Reject):
        return MutationOutcome(tree=tree, error=command.reason)
    raise TypeError(f"unsupported command: {command!r}")


def apply_command(
    tree: Tree,
    command: MutationCommand,
    node: Node,
    *,
    source_id: Optional[str] = None,
    max_children: int = MAX_ROW_CHILDREN,
) -> MutationOutcome:
    """
    Apply `command` inserting `node`. When `source_id` is given the node is
    first removed from its current position (without row cleanup, so the
    command's row ids still resolve), and the whole move commits or not at all.
    """
    tree = tuple(tree)
    working = tree
    removed: Optional[Node] = None

    if source_id:
        source = locate(tree, source_id)
        removal = remove_node_by_id(tree, source_id, cleanup=False)
        working, removed = removal.tree, removal.removed_node
        if isinstance(command, InsertAt) and source is not None and source.row is None and source.index < command.index:
            command = InsertAt(index=command.index - 1)

    outcome = _dispatch(working, command, node, max_children=max_children)
    if outcome.error is not None or not outcome.inserted:
        logger.info(
            "command %s rejected (%s); keeping committed tree",
            command.type,
            outcome.error or "not inserted",
        )
        return MutationOutcome(tree=tree, error=outcome.error)

    return MutationOutcome(tree=cleanup_rows(outcome.tree), inserted=True, removed_node=removed)
