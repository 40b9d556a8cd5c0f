"""
Drag/drop contract models: payloads, pointer geometry, intents, mutation
commands and the result envelope returned to the rendering layer.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from form_canvas.schemas.nodes import FIELD_KINDS, META_LAYOUT_KINDS, Node, normalize_kind

Intent = Literal["before", "after", "left", "right", "center", "append"]
VerticalSide = Literal["before", "after"]
HorizontalSide = Literal["left", "right"]

RejectReason = Literal[
    "RowCapacityExceeded",
    "ImplicitLayoutRejected",
    "RowNestingRejected",
    "TargetNotFound",
]


class Rect(BaseModel):
    """Axis-aligned bounding rectangle in client coordinates."""

    left: float
    top: float
    width: float
    height: float

    model_config = ConfigDict(frozen=True)

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height


class PalettePayload(BaseModel):
    origin: Literal["palette"] = "palette"
    kind: str = Field(..., description="Palette component kind (e.g. text_input, horizontal_layout)")
    initial_properties: Dict[str, Any] = Field(default_factory=dict, alias="initialProperties")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("kind")
    @classmethod
    def _known_kind(cls, v: str) -> str:
        kind = normalize_kind(v)
        if kind not in FIELD_KINDS and kind not in META_LAYOUT_KINDS:
            raise ValueError(f"unknown component kind: {v!r}")
        return kind


class CanvasPayload(BaseModel):
    origin: Literal["canvas"] = "canvas"
    node_id: str = Field(..., alias="nodeId", min_length=1)

    model_config = ConfigDict(frozen=True, populate_by_name=True)


DragPayload = Annotated[Union[PalettePayload, CanvasPayload], Field(discriminator="origin")]


class InsertAdjacent(BaseModel):
    type: Literal["insert_adjacent"] = "insert_adjacent"
    target_id: str = Field(..., alias="targetId")
    side: VerticalSide

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class InsertIntoRow(BaseModel):
    type: Literal["insert_into_row"] = "insert_into_row"
    row_id: str = Field(..., alias="rowId")
    reference_child_id: Optional[str] = Field(default=None, alias="referenceChildId")
    side: HorizontalSide

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class CreateRow(BaseModel):
    type: Literal["create_row"] = "create_row"
    target_id: str = Field(..., alias="targetId")
    side: HorizontalSide

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class AppendToRow(BaseModel):
    type: Literal["append_to_row"] = "append_to_row"
    row_id: str = Field(..., alias="rowId")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class InsertAt(BaseModel):
    """Top-level insert at an index (drop on the empty canvas area)."""

    type: Literal["insert_at"] = "insert_at"
    index: int = Field(..., ge=0)

    model_config = ConfigDict(frozen=True)


class Reject(BaseModel):
    type: Literal["reject"] = "reject"
    reason: RejectReason
    message: str = ""

    model_config = ConfigDict(frozen=True)


MutationCommand = Annotated[
    Union[InsertAdjacent, InsertIntoRow, CreateRow, AppendToRow, InsertAt, Reject],
    Field(discriminator="type"),
]


class HoverIndicator(BaseModel):
    target_id: str = Field(..., alias="targetId")
    intent: Intent
    bounds: Optional[Rect] = None

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class DropResult(BaseModel):
    """
    Outcome of one engine entry point.

    `tree` is always the committed tree: the new one on success, the previous
    one on rejection or cancellation.
    """

    ok: bool
    tree: Tuple[Node, ...] = ()
    reason: Optional[RejectReason] = None
    message: Optional[str] = None
    cancelled: bool = False
    selected_id: Optional[str] = Field(default=None, alias="selectedId")

    model_config = ConfigDict(frozen=True, populate_by_name=True)
