from __future__ import annotations

import copy
from typing import List, Optional

from form_canvas.schemas.nodes import Tree


class TreeHistory:
    """
    Bounded undo/redo stack of committed trees.

    Snapshots are deep copies going in and coming out, so a caller editing a
    node's property bag in place cannot reach a stored snapshot. Pushing after
    an undo discards the redo branch; the oldest snapshot is dropped once the
    limit is reached.
    """

    def __init__(self, initial: Tree, *, limit: int = 50) -> None:
        self.limit = max(1, int(limit))
        self._snapshots: List[Tree] = [copy.deepcopy(tuple(initial))]
        self._index = 0

    @property
    def current(self) -> Tree:
        return self._snapshots[self._index]

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._snapshots) - 1

    def push(self, tree: Tree) -> None:
        del self._snapshots[self._index + 1 :]
        self._snapshots.append(copy.deepcopy(tuple(tree)))
        if len(self._snapshots) > self.limit:
            del self._snapshots[0 : len(self._snapshots) - self.limit]
        self._index = len(self._snapshots) - 1

    def undo(self) -> Optional[Tree]:
        if not self.can_undo:
            return None
        self._index -= 1
        return copy.deepcopy(self.current)

    def redo(self) -> Optional[Tree]:
        if not self.can_redo:
            return None
        self._index += 1
        return copy.deepcopy(self.current)
