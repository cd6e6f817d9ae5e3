from __future__ import annotations

import asyncio
import contextlib
import os
import uuid
from typing import Any, Dict, Optional

import orjson
from fastapi import Body, FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from .editor import AvailabilityEditor
from .intervals import from_grid, intervals_from_payload, intervals_payload, to_grid
from .logging import RichLogger
from .metrics import read_events, summarize_file
from .settings import settings
from .timegrid import OutOfBounds, grid_from_payload, grid_payload
from .validator import validate_candidate, validate_list
from .wire import MSG_ERROR

app = FastAPI(title="availgrid")

# Log server startup configuration
print("🚀 availgrid Server Starting")
print(f"📅 Schedule service: {settings.schedule_endpoint} (timeout {settings.schedule_timeout_s:.0f}s, strategy={settings.default_strategy})")
print(f"📊 Events: {settings.events_file} | 🌐 {settings.host}:{settings.port}")
print("=" * 60)


# ----------------------------
# Per-connection session wrapper
# ----------------------------
class Session:
    def __init__(self, ws: WebSocket, session_id: Optional[str] = None):
        self.ws = ws
        self.id = session_id or str(uuid.uuid4())
        self._send_lock = asyncio.Lock()

    async def accept(self):
        await self.ws.accept()

    async def close(self, code: int = 1000):
        with contextlib.suppress(RuntimeError):
            await self.ws.close(code=code)

    async def send_json(self, obj: dict[str, Any]):
        # serialize and send atomically
        payload = orjson.dumps(obj).decode("utf-8")
        async with self._send_lock:
            await self.ws.send_text(payload)


# ----------------------------
# WebSocket endpoint
# ----------------------------
@app.websocket("/ws/availability")
async def ws_availability(ws: WebSocket):
    session = Session(ws)
    await session.accept()

    editor = AvailabilityEditor(session)

    try:
        while True:
            text = await ws.receive_text()
            try:
                obj = orjson.loads(text)
            except orjson.JSONDecodeError:
                await session.send_json({"type": MSG_ERROR, "message": "bad json"})
                continue
            if not isinstance(obj, dict):
                await session.send_json({"type": MSG_ERROR, "message": "expected a JSON object"})
                continue
            await editor.handle_control(obj)
    except WebSocketDisconnect:
        pass
    except Exception as e:
        print(f"[{RichLogger._format_time()}] {RichLogger.error(f'{type(e).__name__}: {e}')}")
        with contextlib.suppress(Exception):
            await session.send_json({"type": MSG_ERROR, "message": f"server_error:{type(e).__name__}"})
    finally:
        await editor.close()
        await session.close()


# ----------------------------
# Stateless conversions
# ----------------------------
@app.post("/validate")
def validate(payload: Dict[str, Any] = Body(...)):
    try:
        existing = intervals_from_payload(payload.get("existing") or [])
        verdict = validate_candidate(payload.get("day"), payload.get("startTime"), payload.get("endTime"), existing)
    except OutOfBounds as e:
        raise HTTPException(status_code=422, detail=str(e))
    return verdict.to_payload()


@app.post("/grid")
def blocks_to_grid(payload: Dict[str, Any] = Body(...)):
    try:
        blocks = intervals_from_payload(payload.get("blocks") or [])
    except OutOfBounds as e:
        raise HTTPException(status_code=422, detail=str(e))
    verdict = validate_list(blocks)
    if not verdict.ok:
        raise HTTPException(status_code=422, detail=verdict.to_payload())
    return {"grid": grid_payload(to_grid(blocks))}


@app.post("/blocks")
def grid_to_blocks(payload: Dict[str, Any] = Body(...)):
    try:
        grid = grid_from_payload(payload.get("grid") or {})
    except OutOfBounds as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"blocks": intervals_payload(from_grid(grid))}


# ----------------------------
# Health & event metrics
# ----------------------------
@app.get("/health")
def health():
    return {"ok": True}

@app.get("/metrics")
def metrics_summary():
    return JSONResponse(summarize_file())

@app.get("/metrics/events")
def get_events():
    """Get all recorded editor events."""
    return JSONResponse(read_events(settings.events_file))

@app.delete("/metrics")
def reset_metrics():
    """Clear all recorded events by truncating the events file."""
    path = settings.events_file
    try:
        if os.path.exists(path):
            with open(path, "w") as f:
                f.truncate(0)
    except OSError as e:
        return JSONResponse(
            status_code=500,
            content={"error": f"Failed to clear metrics: {e}"},
        )
    return {"message": "Metrics cleared successfully"}
