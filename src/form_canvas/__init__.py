"""
Form canvas layout engine.

Holds the tree of placed form components (with automatic row grouping), infers
drop intent from pointer geometry and applies drops as atomic tree updates.

- Runtime package: `src/form_canvas/`
- HTTP entrypoint: `form_canvas.api.main:create_app`
"""

from .engine import CanvasEngine  # noqa: F401
