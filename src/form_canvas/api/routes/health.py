from __future__ import annotations

import time
from typing import Any, Dict

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> Dict[str, Any]:
    return {
        "ok": True,
        "service": "form-canvas-service",
        "sessions": len(request.app.state.sessions),
        "ts": int(time.time() * 1000),
    }
