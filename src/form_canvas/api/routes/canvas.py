from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.status import HTTP_404_NOT_FOUND, HTTP_409_CONFLICT

from form_canvas.api.models import (
    CreateSessionRequest,
    DragStartRequest,
    DropRequest,
    HoverRequest,
    LoadTreeRequest,
)
from form_canvas.api.sessions import SessionStore
from form_canvas.components import palette_catalog
from form_canvas.engine import CanvasEngine
from form_canvas.schemas.drag import DropResult, HoverIndicator
from form_canvas.schemas.nodes import dump_tree

router = APIRouter(prefix="/canvas", tags=["canvas"])


def _store(request: Request) -> SessionStore:
    return request.app.state.sessions


def _engine(request: Request, session_id: str) -> CanvasEngine:
    engine = _store(request).get(session_id)
    if engine is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail=f"unknown session {session_id!r}")
    return engine


def _hover_json(hover: Optional[HoverIndicator]) -> Optional[Dict[str, Any]]:
    if hover is None:
        return None
    return hover.model_dump(mode="json", by_alias=True, exclude_none=True)


def _http_status_for_result(result: DropResult) -> int:
    """
    - committed or cancelled => 200
    - missing node => 404
    - rejected drop (capacity, layout, nesting) => 409; the tree is unchanged
    """
    if result.ok or result.cancelled:
        return 200
    if result.reason == "TargetNotFound":
        return HTTP_404_NOT_FOUND
    return HTTP_409_CONFLICT


def _result_response(engine: CanvasEngine, result: DropResult) -> JSONResponse:
    content: Dict[str, Any] = {
        "ok": result.ok,
        "tree": dump_tree(result.tree),
        "canUndo": engine.can_undo,
        "canRedo": engine.can_redo,
    }
    if result.cancelled:
        content["cancelled"] = True
    if result.selected_id:
        content["selectedId"] = result.selected_id
    if result.reason:
        content["error"] = result.reason
        content["message"] = result.message
    return JSONResponse(status_code=_http_status_for_result(result), content=content)


@router.get("/palette")
def palette() -> Dict[str, Any]:
    return {"ok": True, "items": palette_catalog()}


@router.post("/sessions")
def create_session(request: Request, body: Optional[CreateSessionRequest] = None) -> Dict[str, Any]:
    session_id, engine = _store(request).create(body.tree if body else None)
    return {"ok": True, "sessionId": session_id, "tree": dump_tree(engine.tree)}


@router.get("/sessions/{session_id}")
def get_session(request: Request, session_id: str) -> Dict[str, Any]:
    engine = _engine(request, session_id)
    drag = engine.drag_payload
    return {
        "ok": True,
        "sessionId": session_id,
        "tree": dump_tree(engine.tree),
        "hover": _hover_json(engine.hover_indicator),
        "drag": drag.model_dump(mode="json", by_alias=True) if drag else None,
        "canUndo": engine.can_undo,
        "canRedo": engine.can_redo,
    }


@router.delete("/sessions/{session_id}")
def close_session(request: Request, session_id: str) -> Dict[str, Any]:
    if not _store(request).close(session_id):
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail=f"unknown session {session_id!r}")
    return {"ok": True}


@router.post("/sessions/{session_id}/drag")
def drag_start(request: Request, session_id: str, body: DragStartRequest) -> Dict[str, Any]:
    engine = _engine(request, session_id)
    payload = engine.begin_drag(body.payload)
    return {"ok": True, "drag": payload.model_dump(mode="json", by_alias=True)}


@router.post("/sessions/{session_id}/hover")
def hover(request: Request, session_id: str, body: HoverRequest) -> Dict[str, Any]:
    engine = _engine(request, session_id)
    indicator = engine.hover(body.target_id, body.x, body.y, body.rect)
    return {"ok": True, "hover": _hover_json(indicator)}


@router.post("/sessions/{session_id}/leave")
def leave(request: Request, session_id: str) -> Dict[str, Any]:
    _engine(request, session_id).leave_hover()
    return {"ok": True, "hover": None}


@router.post("/sessions/{session_id}/drop")
def drop(request: Request, session_id: str, body: DropRequest) -> JSONResponse:
    engine = _engine(request, session_id)
    if not body.target_id:
        result = engine.drop_at(body.index, payload=body.payload)
    elif body.intent is not None:
        result = engine.drop_intent(body.target_id, body.intent, payload=body.payload)
    else:
        result = engine.drop(body.target_id, body.x, body.y, body.rect, payload=body.payload)  # type: ignore[arg-type]
    return _result_response(engine, result)


@router.post("/sessions/{session_id}/cancel")
def cancel(request: Request, session_id: str) -> JSONResponse:
    engine = _engine(request, session_id)
    return _result_response(engine, engine.cancel_drag())


@router.delete("/sessions/{session_id}/nodes/{node_id}")
def delete_node(request: Request, session_id: str, node_id: str) -> JSONResponse:
    engine = _engine(request, session_id)
    return _result_response(engine, engine.delete(node_id))


@router.patch("/sessions/{session_id}/nodes/{node_id}")
def update_node(
    request: Request, session_id: str, node_id: str, body: Dict[str, Any] = Body(...)
) -> JSONResponse:
    engine = _engine(request, session_id)
    return _result_response(engine, engine.update_component(node_id, body))


@router.post("/sessions/{session_id}/nodes/{node_id}/duplicate")
def duplicate_node(request: Request, session_id: str, node_id: str) -> JSONResponse:
    engine = _engine(request, session_id)
    return _result_response(engine, engine.duplicate(node_id))


@router.put("/sessions/{session_id}/tree")
def load_tree(request: Request, session_id: str, body: LoadTreeRequest) -> JSONResponse:
    engine = _engine(request, session_id)
    return _result_response(engine, engine.load(body.tree))


@router.post("/sessions/{session_id}/undo")
def undo(request: Request, session_id: str) -> JSONResponse:
    engine = _engine(request, session_id)
    return _result_response(engine, engine.undo())


@router.post("/sessions/{session_id}/redo")
def redo(request: Request, session_id: str) -> JSONResponse:
    engine = _engine(request, session_id)
    return _result_response(engine, engine.redo())
