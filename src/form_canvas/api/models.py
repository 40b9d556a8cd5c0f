from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from form_canvas.schemas.drag import DragPayload, Intent, Rect


class CreateSessionRequest(BaseModel):
    """Optional starting tree (e.g. a loaded template)."""

    tree: List[Dict[str, Any]] = Field(default_factory=list)


class DragStartRequest(BaseModel):
    payload: DragPayload


class HoverRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    target_id: str = Field(..., alias="targetId", description="Node under the pointer")
    x: float
    y: float
    rect: Rect = Field(..., description="Bounding rectangle of the hovered node")


class DropRequest(BaseModel):
    """
    Drop on a target (pointer geometry or explicit intent) or on the canvas
    background (`index`, or neither target nor index to append).

    `payload` overrides the payload captured at drag start.
    """

    model_config = ConfigDict(populate_by_name=True)

    target_id: Optional[str] = Field(default=None, alias="targetId")
    x: Optional[float] = None
    y: Optional[float] = None
    rect: Optional[Rect] = None
    intent: Optional[Intent] = None
    index: Optional[int] = Field(default=None, ge=0)
    payload: Optional[DragPayload] = None

    @model_validator(mode="after")
    def _geometry_or_intent(self) -> "DropRequest":
        if self.target_id and self.intent is None:
            if self.rect is None or self.x is None or self.y is None:
                raise ValueError("a targeted drop needs either `intent` or pointer `x`, `y` and `rect`")
        return self


class LoadTreeRequest(BaseModel):
    tree: List[Dict[str, Any]]
