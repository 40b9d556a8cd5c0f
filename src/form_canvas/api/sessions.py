from __future__ import annotations

import uuid
from typing import Any, Dict, Optional, Tuple

from form_canvas.engine import CanvasEngine
from form_canvas.settings import Settings


class SessionStore:
    """
    In-process registry of editing sessions. Each session owns one engine;
    engines are never shared between sessions.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._engines: Dict[str, CanvasEngine] = {}

    def __len__(self) -> int:
        return len(self._engines)

    def create(self, tree: Any = None) -> Tuple[str, CanvasEngine]:
        session_id = uuid.uuid4().hex[:12]
        engine = CanvasEngine(tree or (), settings=self.settings)
        self._engines[session_id] = engine
        return session_id, engine

    def get(self, session_id: str) -> Optional[CanvasEngine]:
        return self._engines.get(session_id)

    def close(self, session_id: str) -> bool:
        return self._engines.pop(session_id, None) is not None
