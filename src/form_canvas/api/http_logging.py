from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Any, Iterable, List, Optional, Tuple

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from form_canvas.settings import Settings

logger = logging.getLogger("api.http")


def _content_type(headers: Optional[Iterable[Tuple[bytes, bytes]]]) -> str:
    if not headers:
        return ""
    for k, v in headers:
        if k.lower() == b"content-type":
            try:
                return v.decode("latin-1")
            except UnicodeDecodeError:
                return ""
    return ""


def _parse_body(content_type: str, body: bytes) -> Any:
    ct = (content_type or "").lower()
    if "application/json" in ct:
        try:
            return json.loads(body.decode("utf-8", errors="replace"))
        except ValueError:
            return body.decode("utf-8", errors="replace")
    if ct.startswith("text/"):
        return body.decode("utf-8", errors="replace")
    if not body:
        return ""
    return "<binary>"


def _get_request_id(scope: Scope) -> Optional[str]:
    headers: Iterable[Tuple[bytes, bytes]] = scope.get("headers") or []
    for k, v in headers:
        if k.lower() == b"x-request-id":
            try:
                return v.decode("latin-1")
            except UnicodeDecodeError:
                return None
    return None


class HttpLoggingMiddleware:
    """Logs one JSON line per HTTP request: method, path, status, duration and capped bodies."""

    def __init__(self, app: ASGIApp, *, max_body_bytes: int) -> None:
        self.app = app
        self.max_body_bytes = max(0, max_body_bytes)

    def _capture(self, buf: bytearray, body: bytes) -> bool:
        """Append up to the cap; returns True when the body was truncated."""
        remaining = self.max_body_bytes - len(buf)
        if remaining > 0:
            buf.extend(body[:remaining])
        return len(body) > remaining

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        started_at = time.perf_counter()
        request_id = _get_request_id(scope) or uuid.uuid4().hex[:12]
        req_ct = _content_type(list(scope.get("headers") or []))
        req_body_buf = bytearray()
        res_body_buf = bytearray()
        res_headers: List[Tuple[bytes, bytes]] = []
        res_status: Optional[int] = None
        truncated = {"request": False, "response": False}

        async def receive_wrapped() -> Message:
            message = await receive()
            if message.get("type") == "http.request" and self.max_body_bytes:
                body = message.get("body") or b""
                if body and not truncated["request"]:
                    truncated["request"] = self._capture(req_body_buf, body)
            return message

        async def send_wrapped(message: Message) -> None:
            nonlocal res_status, res_headers
            if message.get("type") == "http.response.start":
                res_status = int(message.get("status") or 0)
                res_headers = list(message.get("headers") or [])
            elif message.get("type") == "http.response.body" and self.max_body_bytes:
                body = message.get("body") or b""
                if body and not truncated["response"]:
                    truncated["response"] = self._capture(res_body_buf, body)
            await send(message)

        err: Optional[BaseException] = None
        try:
            await self.app(scope, receive_wrapped, send_wrapped)
        except BaseException as e:  # noqa: BLE001 - we want to log then re-raise
            err = e
            raise
        finally:
            record = {
                "id": request_id,
                "method": str(scope.get("method") or "").upper(),
                "path": str(scope.get("path") or ""),
                "status": res_status,
                "dur_ms": int((time.perf_counter() - started_at) * 1000),
                "request": {
                    "body": _parse_body(req_ct, bytes(req_body_buf)) if self.max_body_bytes else "",
                    "body_truncated": truncated["request"],
                },
                "response": {
                    "body": _parse_body(_content_type(res_headers), bytes(res_body_buf)) if self.max_body_bytes else "",
                    "body_truncated": truncated["response"],
                },
            }
            if err is not None:
                record["error"] = {"type": type(err).__name__, "message": str(err)}
            logger.info(json.dumps(record, ensure_ascii=False, separators=(",", ":"), default=str))


def install_http_logging(app: Any, settings: Settings) -> None:
    """Enable request/response logging when `FORM_CANVAS_HTTP_LOG=1`."""
    if not settings.http_log:
        return
    app.add_middleware(HttpLoggingMiddleware, max_body_bytes=settings.http_log_body_max_bytes)
