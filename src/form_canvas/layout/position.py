from __future__ import annotations

import math
from typing import Any

from form_canvas.schemas.drag import Intent, Rect

# Vertical bands win over horizontal ones so narrow targets still offer a vertical insert.
BEFORE_BAND = 0.3
AFTER_BAND = 0.7
LEFT_BAND = 0.25
RIGHT_BAND = 0.75

INDICATOR_THICKNESS = 4.0
INDICATOR_MARGIN = 2.0


def _fraction(value: Any, origin: Any, extent: Any) -> float:
    """Normalize `value` into the target's [0, 1] space; degenerate geometry maps to the midpoint."""
    try:
        v, o, e = float(value), float(origin), float(extent)
    except (TypeError, ValueError):
        return 0.5
    if not (math.isfinite(v) and math.isfinite(o) and math.isfinite(e)) or e <= 0:
        return 0.5
    return (v - o) / e


def detect_intent(x: float, y: float, rect: Rect, *, is_row: bool = False) -> Intent:
    """
    Map pointer coordinates over a target's bounding rectangle to a drop intent.

    - fy < 0.3 -> before, fy >= 0.7 -> after
    - otherwise fx < 0.25 -> left, fx >= 0.75 -> right
    - otherwise center (append when the target is a row)

    Comparisons are one-sided so a pointer resting exactly on a threshold
    always lands in the same band. Never raises.
    """
    fx = _fraction(x, rect.left, rect.width)
    fy = _fraction(y, rect.top, rect.height)

    if fy < BEFORE_BAND:
        return "before"
    if fy >= AFTER_BAND:
        return "after"
    if fx < LEFT_BAND:
        return "left"
    if fx >= RIGHT_BAND:
        return "right"
    return "append" if is_row else "center"


def indicator_bounds(intent: Intent, rect: Rect) -> Rect:
    """Rectangle of the drop indicator bar drawn for `intent` around `rect`."""
    t = INDICATOR_THICKNESS
    m = INDICATOR_MARGIN
    if intent == "before":
        return Rect(left=rect.left - m, top=rect.top - t - m, width=rect.width + 2 * m, height=t)
    if intent == "left":
        return Rect(left=rect.left - t - m, top=rect.top - m, width=t, height=rect.height + 2 * m)
    if intent == "right":
        return Rect(left=rect.right + m, top=rect.top - m, width=t, height=rect.height + 2 * m)
    if intent == "append":
        # Appending to a row lands at its right edge.
        return Rect(left=rect.right - t, top=rect.top, width=t, height=rect.height)
    # after, and center (which inserts after a component)
    return Rect(left=rect.left - m, top=rect.bottom + m, width=rect.width + 2 * m, height=t)
