from __future__ import annotations

import asyncio
import contextlib
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from .board import AvailabilityBoard
from .drag import CellDelta, DragCommit
from .intervals import Interval, intervals_from_payload
from .logging import NDJSONLogger, RichLogger
from .metrics import COMMIT_EVENT
from .schedule_client import STRATEGIES, ScheduleClient, ScheduleServiceError, can_generate
from .settings import settings
from .signals import ReleaseSignal
from .timegrid import coerce_day, grid_payload
from .wire import (
    MSG_ADD_BLOCK,
    MSG_BLOCKS,
    MSG_CANCEL_GENERATE,
    MSG_ERROR,
    MSG_GENERATE,
    MSG_GET_BLOCKS,
    MSG_GRID_DELTA,
    MSG_LOAD,
    MSG_POINTER_DOWN,
    MSG_POINTER_ENTER,
    MSG_POINTER_LEAVE,
    MSG_POINTER_RELEASE,
    MSG_POINTER_UP,
    MSG_REJECTED,
    MSG_REMOVE_BLOCK,
    MSG_SCHEDULE,
)


def _get_bool(key: str, default: bool = False) -> bool:
    """Helper function to parse boolean environment variables."""
    v = os.getenv(key)
    if v is None:
        return default
    return v.lower() in ("1", "true", "yes", "on")


# ----------------- editor config -----------------
@dataclass
class EditorConfig:
    send_full_grid: bool = False  # Attach the whole grid to every grid_delta frame
    log_pointer_moves: bool = False  # Log every pointer_enter, not just begin/commit
    generate_timeout_s: float = 30.0  # Give up on the schedule generator after this long

    def __post_init__(self):
        # Only override if environment variable is set (allows explicit parameter override)
        if os.getenv("AVGRID_SEND_FULL_GRID") is not None:
            self.send_full_grid = _get_bool("AVGRID_SEND_FULL_GRID", False)
        if os.getenv("AVGRID_LOG_POINTER_MOVES") is not None:
            self.log_pointer_moves = _get_bool("AVGRID_LOG_POINTER_MOVES", False)
        if os.getenv("AVGRID_GENERATE_TIMEOUT_S") is not None:
            self.generate_timeout_s = float(os.getenv("AVGRID_GENERATE_TIMEOUT_S", "30"))

        if not 0 < self.generate_timeout_s <= 300:
            raise ValueError(f"generate_timeout_s must be in (0, 300], got {self.generate_timeout_s}")


# ----------------- per-connection editor -----------------
class AvailabilityEditor:
    """
    Drives one user's availability board from client control messages.

    Gestures and block edits are applied synchronously in arrival order; only
    schedule generation runs as a background task, against a snapshot of the
    interval list taken when it was requested.
    """

    def __init__(
        self,
        session,
        cfg: Optional[EditorConfig] = None,
        *,
        intervals: Optional[Iterable[Interval]] = None,
        client: Optional[ScheduleClient] = None,
        events_file: Optional[str] = None,
    ):
        self.session = session
        self.cfg = cfg or EditorConfig()
        self.sid = str(getattr(session, "id", "local"))
        self.release = ReleaseSignal()
        self.board = AvailabilityBoard(intervals, release_signal=self.release, on_commit=self._on_commit)
        self.client = client or ScheduleClient()
        self._events = NDJSONLogger(events_file or settings.events_file)
        self._generate_task: Optional[asyncio.Task] = None

        self._log(RichLogger.session_start())

    @property
    def state(self) -> str:
        return self.board.drag.state

    # ------------- controls -------------
    async def handle_control(self, obj: Dict[str, Any]):
        typ = obj.get("type")

        if typ == MSG_POINTER_DOWN:
            stale = self.board.dragging
            delta = self.board.begin_drag(obj.get("day"), obj.get("slot"))
            s = self.board.drag.session
            self._log(RichLogger.state_transition("IDLE", "DRAGGING", s.mode))
            self._log(RichLogger.drag_begin(s.anchor_day.value, s.anchor_slot, s.mode))
            if stale:
                # the previous gesture was committed by this pointer_down
                await self._send_blocks()
            await self._send_delta(s.anchor_day.value, delta)
            return

        if typ == MSG_POINTER_ENTER:
            day = coerce_day(obj.get("day"))
            slot = obj.get("slot")
            delta = self.board.continue_drag(day, slot)
            if self.cfg.log_pointer_moves:
                self._log(RichLogger.drag_move(day.value, slot, len(delta)))
            if delta:
                await self._send_delta(day.value, delta)
            return

        if typ in (MSG_POINTER_UP, MSG_POINTER_LEAVE):
            if self.board.end_drag() is not None:
                await self._send_blocks()
            return

        if typ == MSG_POINTER_RELEASE:
            was_dragging = self.board.dragging
            self.release.emit()
            if was_dragging and not self.board.dragging:
                await self._send_blocks()
            return

        if typ == MSG_ADD_BLOCK:
            verdict, block = self.board.add_block(obj.get("day"), obj.get("startTime"), obj.get("endTime"))
            if not verdict.ok:
                self._log(RichLogger.block_rejected(verdict.reason, verdict.message))
                self._events.write({"evt": "block_rejected", "sid": self.sid, "reason": verdict.reason, "t": time.time()})
                await self.session.send_json({"type": MSG_REJECTED, **verdict.to_payload()})
                return
            self._log(RichLogger.block_added(block.label()))
            self._events.write({"evt": "block_added", "sid": self.sid, **block.to_payload(), "t": time.time()})
            await self._send_blocks()
            return

        if typ == MSG_REMOVE_BLOCK:
            removed = self.board.remove_block(str(obj.get("id")))
            if removed is None:
                await self._send_error(f"unknown block id: {obj.get('id')}")
                return
            self._log(RichLogger.block_removed(removed.label()))
            self._events.write({"evt": "block_removed", "sid": self.sid, "id": removed.id, "t": time.time()})
            await self._send_blocks()
            return

        if typ == MSG_LOAD:
            verdict = self.board.load(intervals_from_payload(obj.get("blocks") or []))
            if not verdict.ok:
                self._log(RichLogger.block_rejected(verdict.reason, verdict.message))
                self._events.write({"evt": "load_rejected", "sid": self.sid, "reason": verdict.reason, "t": time.time()})
                await self.session.send_json({"type": MSG_REJECTED, **verdict.to_payload()})
                return
            await self._send_blocks()
            return

        if typ == MSG_GET_BLOCKS:
            await self._send_blocks()
            return

        if typ == MSG_GENERATE:
            await self._start_generate(list(obj.get("tasks") or []), obj.get("strategy"))
            return

        if typ == MSG_CANCEL_GENERATE:
            await self._cancel_generate()
            return

        await self._send_error(f"unknown message type: {typ!r}")

    async def close(self):
        await self._cancel_generate()
        # a connection that drops mid-gesture still commits what was painted
        self.board.end_drag()
        self._log(RichLogger.session_stop())

    # ------------- drag commits -------------
    def _on_commit(self, commit: DragCommit):
        s = commit.session
        self._log(RichLogger.drag_commit(s.anchor_day.value, commit.cells, len(commit.intervals), commit.drag_ms))
        self._log(RichLogger.state_transition("DRAGGING", "IDLE", "commit"))
        self._events.write({
            "evt": COMMIT_EVENT,
            "sid": self.sid,
            "day": s.anchor_day.value,
            "mode": s.mode,
            "cells": commit.cells,
            "blocks": len(commit.intervals),
            "drag_ms": round(commit.drag_ms, 1),
            "t": time.time(),
        })

    # ------------- schedule generation -------------
    async def _start_generate(self, tasks: List[Dict[str, Any]], strategy: Optional[str]):
        await self._cancel_generate()

        snapshot = self.board.get_intervals()
        ok, reason = can_generate(tasks, snapshot)
        if not ok:
            await self._send_error(reason)
            return
        strategy = strategy or settings.default_strategy
        if strategy not in STRATEGIES:
            await self._send_error(f"unknown strategy: {strategy}")
            return

        self._log(RichLogger.schedule_request(len(tasks), len(snapshot), strategy))
        self._generate_task = asyncio.create_task(self._generate(tasks, snapshot, strategy))

    async def _generate(self, tasks: List[Dict[str, Any]], snapshot: List[Interval], strategy: str):
        t0 = time.monotonic()
        try:
            blocks = await asyncio.wait_for(
                self.client.generate(tasks, snapshot, strategy),
                timeout=self.cfg.generate_timeout_s,
            )
        except ScheduleServiceError as e:
            self._log(RichLogger.error(str(e)))
            await self._send_error(str(e))
            return
        except asyncio.TimeoutError:
            self._log(RichLogger.error("schedule generation timed out"))
            await self._send_error("schedule generation timed out")
            return

        elapsed_ms = (time.monotonic() - t0) * 1000.0
        self._log(RichLogger.schedule_result(len(blocks), elapsed_ms))
        self._events.write({
            "evt": "schedule_generated",
            "sid": self.sid,
            "strategy": strategy,
            "blocks": len(blocks),
            "ms": round(elapsed_ms, 1),
            "t": time.time(),
        })
        await self.session.send_json({
            "type": MSG_SCHEDULE,
            "strategy": strategy,
            "blocks": [b.to_payload() for b in blocks],
        })

    async def _cancel_generate(self):
        task, self._generate_task = self._generate_task, None
        if task is None:
            return
        if task.done():
            # a finished run may have died outside the handled errors; collect it here
            if not task.cancelled() and task.exception() is not None:
                self._log(RichLogger.error(f"schedule generation failed: {task.exception()!r}"))
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    # ------------- outbound -------------
    async def _send_blocks(self):
        await self.session.send_json({"type": MSG_BLOCKS, **self.board.to_payload()})

    async def _send_delta(self, day: str, delta: CellDelta):
        msg: Dict[str, Any] = {
            "type": MSG_GRID_DELTA,
            "day": day,
            "cells": [[slot, value] for slot, value in sorted(delta.items())],
        }
        if self.cfg.send_full_grid:
            msg["grid"] = grid_payload(self.board.drag.grid)
        await self.session.send_json(msg)

    async def _send_error(self, message: str):
        await self.session.send_json({"type": MSG_ERROR, "message": message})

    def _log(self, line: str):
        if settings.verbose_log:
            session_info = RichLogger.session_info(self.sid, self.state)
            print(f"[{RichLogger._format_time()}] {session_info} {line}")
