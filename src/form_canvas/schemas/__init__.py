"""
Schema package for canvas layout data models.
"""

from .drag import (  # noqa: F401
    AppendToRow,
    CanvasPayload,
    CreateRow,
    DragPayload,
    DropResult,
    HoverIndicator,
    InsertAdjacent,
    InsertAt,
    InsertIntoRow,
    Intent,
    MutationCommand,
    PalettePayload,
    Rect,
    Reject,
    RejectReason,
)
from .nodes import (  # noqa: F401
    FIELD_KINDS,
    MAX_ROW_CHILDREN,
    META_LAYOUT_KINDS,
    ComponentNode,
    Node,
    RowNode,
    Tree,
    ValidationRule,
    dump_tree,
    is_meta_layout,
    normalize_kind,
    parse_tree,
)
