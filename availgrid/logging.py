"""
Console and event logging for the availability editor.
Provides timestamped, emoji-tagged lines for gestures, block edits and schedule calls.
"""

import time
from pathlib import Path
from typing import Any

import orjson


class RichLogger:
    """Formatting helpers for one-line console logs of editor activity."""

    @staticmethod
    def _format_time() -> str:
        return time.strftime("%H:%M:%S", time.localtime())

    @staticmethod
    def _format_duration(ms: float) -> str:
        if ms < 1000:
            return f"{ms:.0f}ms"
        return f"{ms/1000:.1f}s"

    @staticmethod
    def session_info(session_id: str, state: str) -> str:
        return f"🎯 [{session_id[:8]}] {state}"

    @staticmethod
    def session_start() -> str:
        return "🚀 Session Start"

    @staticmethod
    def session_stop() -> str:
        return "🛑 Session Stop"

    @staticmethod
    def drag_begin(day: str, slot: int, mode: str) -> str:
        return f"🖱️  Drag {mode}: {day} #{slot}"

    @staticmethod
    def drag_move(day: str, slot: int, changed: int) -> str:
        return f"↔️  Enter {day} #{slot} ({changed} cells)"

    @staticmethod
    def drag_commit(day: str, cells: int, blocks: int, drag_ms: float) -> str:
        return f"✅ Commit {day}: {cells} cells -> {blocks} blocks ({RichLogger._format_duration(drag_ms)})"

    @staticmethod
    def block_added(label: str) -> str:
        return f"➕ Block: {label}"

    @staticmethod
    def block_rejected(reason: str, message: str) -> str:
        return f"🚫 Rejected [{reason}]: {message}"

    @staticmethod
    def block_removed(label: str) -> str:
        return f"🗑️  Removed: {label}"

    @staticmethod
    def schedule_request(tasks: int, blocks: int, strategy: str) -> str:
        return f"📅 Generate: {tasks} tasks x {blocks} blocks [{strategy}]"

    @staticmethod
    def schedule_result(count: int, duration_ms: float) -> str:
        return f"📋 Schedule: {count} blocks ({RichLogger._format_duration(duration_ms)})"

    @staticmethod
    def state_transition(old_state: str, new_state: str, reason: str = "") -> str:
        return f"🔄 {old_state} → {new_state}" + (f" ({reason})" if reason else "")

    @staticmethod
    def error(error_msg: str) -> str:
        return f"❌ Error: {error_msg}"


class NDJSONLogger:
    """Append-only structured event log, one orjson object per line."""

    def __init__(self, path: str):
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        self.path = Path(path)
        if not self.path.exists():
            self.path.touch()

    def write(self, event: dict[str, Any]) -> None:
        with self.path.open("a", encoding="utf-8") as f:
            f.write(orjson.dumps(event).decode("utf-8") + "\n")
