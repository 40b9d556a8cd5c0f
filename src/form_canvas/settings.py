from __future__ import annotations

import os
from dataclasses import dataclass

from form_canvas.schemas.nodes import MAX_ROW_CHILDREN


def _env_bool(name: str, default: bool = False) -> bool:
    v = (os.getenv(name) or "").strip().lower()
    if not v:
        return default
    return v in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    max_row_children: int = MAX_ROW_CHILDREN
    history_limit: int = 50
    http_log: bool = False
    http_log_body_max_bytes: int = 4096


def load_settings() -> Settings:
    """
    Read configuration from the environment.

    - `FORM_CANVAS_MAX_ROW_CHILDREN` (default 4, never below 2)
    - `FORM_CANVAS_HISTORY_LIMIT` undo snapshots kept (default 50)
    - `FORM_CANVAS_HTTP_LOG=1` enables request logging
    - `FORM_CANVAS_HTTP_LOG_BODY_MAX_BYTES` caps logged body bytes (default 4096)
    """
    return Settings(
        max_row_children=max(2, _env_int("FORM_CANVAS_MAX_ROW_CHILDREN", MAX_ROW_CHILDREN)),
        history_limit=max(1, _env_int("FORM_CANVAS_HISTORY_LIMIT", 50)),
        http_log=_env_bool("FORM_CANVAS_HTTP_LOG", default=False),
        http_log_body_max_bytes=max(0, _env_int("FORM_CANVAS_HTTP_LOG_BODY_MAX_BYTES", 4096)),
    )
