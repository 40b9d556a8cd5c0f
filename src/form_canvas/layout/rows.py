"""
Row invariant maintenance.

A row is `stable` while it holds 2..max_children components; any change to its
child count can make it `needs-cleanup`. `cleanup_rows` is the final step of
every structural mutation, so committed trees never contain a degenerate row.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, List, Literal

from form_canvas.schemas.nodes import MAX_ROW_CHILDREN, Node, RowNode, Tree

logger = logging.getLogger("form_canvas.layout")

RowState = Literal["stable", "needs-cleanup"]


class TreeInvariantError(ValueError):
    """A tree violates the canvas invariants (duplicate ids, degenerate or overfull rows)."""

    def __init__(self, problems: List[str]) -> None:
        self.problems = list(problems)
        super().__init__("; ".join(self.problems) or "invalid tree")


def row_state(row: RowNode, *, max_children: int = MAX_ROW_CHILDREN) -> RowState:
    if 2 <= len(row.children) <= max_children:
        return "stable"
    return "needs-cleanup"


def rows_needing_cleanup(tree: Tree, *, max_children: int = MAX_ROW_CHILDREN) -> List[str]:
    return [
        n.node_id
        for n in tree
        if isinstance(n, RowNode) and row_state(n, max_children=max_children) != "stable"
    ]


def cleanup_rows(tree: Iterable[Node]) -> Tree:
    """
    Collapse degenerate rows: a 1-child row is replaced by its child in place,
    an empty row is dropped. Order is preserved; idempotent.
    """
    out: List[Node] = []
    for node in tree:
        if isinstance(node, RowNode) and len(node.children) <= 1:
            if node.children:
                logger.debug("row %s dissolved into %s", node.node_id, node.children[0].node_id)
                out.append(node.children[0])
            else:
                logger.debug("empty row %s removed", node.node_id)
            continue
        out.append(node)
    return tuple(out)


def iter_node_ids(tree: Iterable[Node]) -> Iterable[str]:
    for node in tree:
        yield node.node_id
        if isinstance(node, RowNode):
            for child in node.children:
                yield child.node_id


def collect_ids(tree: Iterable[Node]) -> List[str]:
    return list(iter_node_ids(tree))


def validate_tree(tree: Tree, *, max_children: int = MAX_ROW_CHILDREN) -> Tree:
    """Return `tree` unchanged, or raise TreeInvariantError listing every violation."""
    problems: List[str] = []
    counts = Counter(iter_node_ids(tree))
    for node_id, n in counts.items():
        if n > 1:
            problems.append(f"duplicate nodeId {node_id!r} ({n} occurrences)")
    for node in tree:
        if not isinstance(node, RowNode):
            continue
        size = len(node.children)
        if size < 2:
            problems.append(f"row {node.node_id!r} has {size} children (minimum 2)")
        elif size > max_children:
            problems.append(f"row {node.node_id!r} has {size} children (maximum {max_children})")
    if problems:
        raise TreeInvariantError(problems)
    return tree
