from __future__ import annotations

import logging
import time
import uuid
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_422_UNPROCESSABLE_ENTITY

from form_canvas.api.http_logging import install_http_logging
from form_canvas.api.routes.canvas import router as canvas_router
from form_canvas.api.routes.health import router as health_router
from form_canvas.api.sessions import SessionStore
from form_canvas.layout.rows import TreeInvariantError
from form_canvas.settings import Settings, load_settings

logger = logging.getLogger("api")


def _repo_root() -> Path:
    # `src/form_canvas/api/main.py` -> repo root
    return Path(__file__).resolve().parents[3]


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    # Load `.env` + `.env.local` when present (local dev convenience).
    load_dotenv(_repo_root() / ".env", override=False)
    load_dotenv(_repo_root() / ".env.local", override=False)
    settings = settings or load_settings()

    app = FastAPI(title="form-canvas-service", version="1.0.0")
    app.state.settings = settings
    app.state.sessions = SessionStore(settings)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        request_id = f"val_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"
        logger.info("422 validation_error requestId=%s path=%s", request_id, request.url.path)
        return JSONResponse(
            status_code=HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "ok": False,
                "error": "validation_error",
                "message": "Request body did not match expected schema.",
                "requestId": request_id,
                "details": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(ValidationError)
    async def _model_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "ok": False,
                "error": "validation_error",
                "message": "Node data did not match the canvas schema.",
                "details": exc.errors(include_url=False, include_context=False),
            },
        )

    @app.exception_handler(TreeInvariantError)
    async def _tree_invariant_handler(request: Request, exc: TreeInvariantError) -> JSONResponse:
        return JSONResponse(
            status_code=HTTP_400_BAD_REQUEST,
            content={"ok": False, "error": "invalid_tree", "message": str(exc), "problems": exc.problems},
        )

    # Unversioned health is convenient for deployments and uptime checks.
    app.include_router(health_router)
    app.include_router(canvas_router, prefix="/v1/api")
    install_http_logging(app, settings)
    return app


app = create_app()
