"""
Session-local canvas engine.

`CanvasEngine` owns the committed tree and is the only way collaborators change
it. A drag runs in three phases:

- `begin_drag(payload)`: capture the payload; nothing changes
- `hover(...)`: advisory intent detection for highlight rendering; may run
  many times per second and never touches the tree
- `drop(...)`: one atomic mutation followed by row cleanup

`cancel_drag()` (or a drop that resolves to no command) leaves the tree as is.
Every entry point returns a `DropResult` whose `tree` is the committed tree.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

from pydantic import TypeAdapter

from form_canvas.components import create_component
from form_canvas.history import TreeHistory
from form_canvas.layout.intents import reject_message, resolve_drop
from form_canvas.layout.mutator import duplicate_component, locate, remove_node_by_id, update_component
from form_canvas.layout.position import detect_intent, indicator_bounds
from form_canvas.layout.rows import cleanup_rows, validate_tree
from form_canvas.layout.transaction import apply_command
from form_canvas.schemas.drag import (
    CanvasPayload,
    DragPayload,
    DropResult,
    HoverIndicator,
    Intent,
    PalettePayload,
    Rect,
    Reject,
    RejectReason,
)
from form_canvas.schemas.nodes import RowNode, Tree, parse_tree
from form_canvas.settings import Settings, load_settings

logger = logging.getLogger("form_canvas.engine")

_PAYLOAD_ADAPTER: TypeAdapter[Union[PalettePayload, CanvasPayload]] = TypeAdapter(DragPayload)

PayloadLike = Union[PalettePayload, CanvasPayload, Dict[str, Any]]


def parse_payload(payload: PayloadLike) -> Union[PalettePayload, CanvasPayload]:
    if isinstance(payload, (PalettePayload, CanvasPayload)):
        return payload
    return _PAYLOAD_ADAPTER.validate_python(payload)


class CanvasEngine:
    def __init__(self, tree: Any = (), *, settings: Optional[Settings] = None) -> None:
        self.settings = settings or load_settings()
        initial = validate_tree(cleanup_rows(parse_tree(tree)), max_children=self.max_row_children)
        self._tree: Tree = initial
        self._history = TreeHistory(initial, limit=self.settings.history_limit)
        self._drag: Optional[Union[PalettePayload, CanvasPayload]] = None
        self._hover: Optional[HoverIndicator] = None

    @property
    def max_row_children(self) -> int:
        return self.settings.max_row_children

    @property
    def tree(self) -> Tree:
        return self._tree

    @property
    def drag_payload(self) -> Optional[Union[PalettePayload, CanvasPayload]]:
        return self._drag

    @property
    def hover_indicator(self) -> Optional[HoverIndicator]:
        return self._hover

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    # --- drag lifecycle -------------------------------------------------

    def begin_drag(self, payload: PayloadLike) -> Union[PalettePayload, CanvasPayload]:
        self._drag = parse_payload(payload)
        self._hover = None
        return self._drag

    def hover(self, target_id: str, x: float, y: float, rect: Rect) -> Optional[HoverIndicator]:
        """Update the hover indicator for the target under the pointer (None when it is unknown)."""
        loc = locate(self._tree, target_id)
        if loc is None:
            self._hover = None
            return None
        intent = detect_intent(x, y, rect, is_row=isinstance(loc.node, RowNode))
        self._hover = HoverIndicator(target_id=target_id, intent=intent, bounds=indicator_bounds(intent, rect))
        return self._hover

    def leave_hover(self) -> None:
        self._hover = None

    def cancel_drag(self) -> DropResult:
        self._end_drag()
        return DropResult(ok=False, tree=self._tree, cancelled=True)

    def drop(
        self,
        target_id: Optional[str],
        x: float,
        y: float,
        rect: Rect,
        *,
        payload: Optional[PayloadLike] = None,
    ) -> DropResult:
        loc = locate(self._tree, target_id)
        intent: Intent = detect_intent(x, y, rect, is_row=bool(loc and isinstance(loc.node, RowNode)))
        return self.drop_intent(target_id, intent, payload=payload)

    def drop_at(self, index: Optional[int] = None, *, payload: Optional[PayloadLike] = None) -> DropResult:
        """Drop on the canvas background: insert at a top-level index (the end when omitted)."""
        return self.drop_intent(None, None, payload=payload, target_index=index)

    def drop_intent(
        self,
        target_id: Optional[str],
        intent: Optional[Intent],
        *,
        payload: Optional[PayloadLike] = None,
        target_index: Optional[int] = None,
    ) -> DropResult:
        drag = parse_payload(payload) if payload is not None else self._drag
        self._end_drag()
        if drag is None:
            return DropResult(ok=False, tree=self._tree, cancelled=True)

        command = resolve_drop(
            self._tree, drag, intent, target_id, target_index, max_children=self.max_row_children
        )
        if command is None:
            logger.debug("drop on %s (%s) matched no command", target_id, intent)
            return DropResult(ok=False, tree=self._tree, cancelled=True)
        if isinstance(command, Reject):
            return self._rejected(command.reason, command.message)

        source_id: Optional[str] = None
        if isinstance(drag, PalettePayload):
            node = create_component(drag.kind, drag.initial_properties)
        else:
            node = locate(self._tree, drag.node_id).node  # type: ignore[union-attr]
            source_id = drag.node_id

        outcome = apply_command(
            self._tree, command, node, source_id=source_id, max_children=self.max_row_children
        )
        if outcome.error is not None:
            return self._rejected(outcome.error)

        logger.info("drop %s %s -> %s", node.node_id, command.type, target_id or "canvas")
        return self._commit(outcome.tree, selected_id=node.node_id)

    # --- direct edits ---------------------------------------------------

    def delete(self, node_id: str) -> DropResult:
        outcome = remove_node_by_id(self._tree, node_id)
        if outcome.removed_node is None:
            return self._rejected("TargetNotFound")
        logger.info("deleted %s", node_id)
        return self._commit(outcome.tree)

    def update_component(self, node_id: str, updates: Dict[str, Any]) -> DropResult:
        outcome = update_component(self._tree, node_id, updates)
        if outcome.error is not None:
            return self._rejected(outcome.error)
        return self._commit(outcome.tree, selected_id=node_id)

    def duplicate(self, node_id: str) -> DropResult:
        """Copy a component in place: right after it, inside its row when it has one."""
        outcome = duplicate_component(self._tree, node_id, max_children=self.max_row_children)
        if outcome.error is not None:
            return self._rejected(outcome.error)
        loc = locate(outcome.tree, node_id)
        siblings = loc.row.children if loc.row is not None else outcome.tree  # type: ignore[union-attr]
        copy_id = siblings[loc.index + 1].node_id  # type: ignore[union-attr]
        logger.info("duplicated %s as %s", node_id, copy_id)
        return self._commit(outcome.tree, selected_id=copy_id)

    def load(self, tree: Any) -> DropResult:
        """Replace the canvas (template loading). Degenerate rows are cleaned up; other violations raise."""
        loaded = cleanup_rows(parse_tree(tree))
        validate_tree(loaded, max_children=self.max_row_children)
        self._end_drag()
        return self._commit(loaded)

    def clear(self) -> DropResult:
        self._end_drag()
        return self._commit(())

    def undo(self) -> DropResult:
        tree = self._history.undo()
        if tree is None:
            return DropResult(ok=False, tree=self._tree, cancelled=True)
        self._tree = tree
        return DropResult(ok=True, tree=self._tree)

    def redo(self) -> DropResult:
        tree = self._history.redo()
        if tree is None:
            return DropResult(ok=False, tree=self._tree, cancelled=True)
        self._tree = tree
        return DropResult(ok=True, tree=self._tree)

    # --- internals ------------------------------------------------------

    def _end_drag(self) -> None:
        self._drag = None
        self._hover = None

    def _commit(self, tree: Tree, *, selected_id: Optional[str] = None) -> DropResult:
        committed = validate_tree(cleanup_rows(tree), max_children=self.max_row_children)
        self._tree = committed
        self._history.push(committed)
        return DropResult(ok=True, tree=committed, selected_id=selected_id)

    def _rejected(self, reason: RejectReason, message: Optional[str] = None) -> DropResult:
        logger.info("drop rejected: %s", reason)
        return DropResult(
            ok=False,
            tree=self._tree,
            reason=reason,
            message=message or reject_message(reason, max_children=self.max_row_children),
        )

