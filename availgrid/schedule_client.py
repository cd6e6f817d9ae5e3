"""Client for the remote schedule generator: lowest level, one request per call."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx
import orjson

from .intervals import Interval, intervals_payload
from .settings import settings

# Study strategies understood by the generator
STRATEGIES: Tuple[str, ...] = ("Estructura simple", "pomodoro", "feynman", "mapas")

Task = Dict[str, Any]


class ScheduleServiceError(Exception):
    pass


@dataclass(frozen=True)
class ScheduleBlock:
    day: str
    start_time: str
    end_time: str
    task_name: str
    task_id: str
    priority: str

    @classmethod
    def from_payload(cls, obj: Dict[str, Any]) -> "ScheduleBlock":
        try:
            return cls(
                day=str(obj["day"]),
                start_time=str(obj["startTime"]),
                end_time=str(obj["endTime"]),
                task_name=str(obj.get("taskName", "")),
                task_id=str(obj.get("taskId", "")),
                priority=str(obj.get("priority", "")),
            )
        except (KeyError, TypeError) as e:
            raise ScheduleServiceError(f"malformed schedule block: {obj!r}") from e

    def to_payload(self) -> Dict[str, Any]:
        return {
            "day": self.day,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "taskName": self.task_name,
            "taskId": self.task_id,
            "priority": self.priority,
        }


def task_problem(task: Task) -> str:
    """Return why a task cannot be scheduled, or an empty string."""
    if not isinstance(task, dict):
        return "Task must be an object."
    if not str(task.get("name") or "").strip():
        return "Task name is required."
    if not task.get("dueDate"):
        return "Task due date is required."
    try:
        duration = float(task.get("duration") or 0)
    except (TypeError, ValueError):
        return "Task duration must be a number of minutes."
    if duration <= 0:
        return "Task duration must be greater than 0 minutes."
    return ""


def can_generate(tasks: List[Task], intervals: List[Interval]) -> Tuple[bool, str]:
    if not tasks and not intervals:
        return False, "Add at least one task and one availability block."
    if not tasks:
        return False, "Add at least one task."
    if not intervals:
        return False, "Add at least one availability block."
    for task in tasks:
        problem = task_problem(task)
        if problem:
            label = (task.get("name") or task.get("id")) if isinstance(task, dict) else None
            return False, (f"{label}: {problem}" if label else problem)
    return True, ""


def build_request(tasks: Iterable[Task], intervals: Iterable[Interval], strategy: str) -> Dict[str, Any]:
    if strategy not in STRATEGIES:
        raise ValueError(f"unknown strategy {strategy!r}; expected one of {', '.join(STRATEGIES)}")
    return {
        "tasks": list(tasks),
        "availability": intervals_payload(intervals),
        "strategy": strategy,
    }


class ScheduleClient:
    """Posts tasks + availability to the generator and returns its ordered blocks."""

    def __init__(
        self,
        endpoint: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.endpoint = endpoint or settings.schedule_endpoint
        self.timeout = timeout if timeout is not None else settings.schedule_timeout_s
        self._transport = transport

    async def generate(
        self,
        tasks: List[Task],
        intervals: List[Interval],
        strategy: Optional[str] = None,
    ) -> List[ScheduleBlock]:
        body = build_request(tasks, intervals, strategy or settings.default_strategy)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as c:
                r = await c.post(
                    self.endpoint,
                    content=orjson.dumps(body),
                    headers={"Content-Type": "application/json"},
                )
        except httpx.HTTPError as e:
            raise ScheduleServiceError(f"schedule service unreachable: {e}") from e

        if not r.is_success:
            detail = r.text[:500] if r.text else ""
            raise ScheduleServiceError(f"schedule service error: {r.status_code} {detail}".rstrip())

        try:
            data = orjson.loads(r.content) if r.content else {}
        except orjson.JSONDecodeError as e:
            raise ScheduleServiceError("schedule service returned invalid JSON") from e

        items = data.get("schedule") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise ScheduleServiceError("schedule service response has no 'schedule' list")
        return [ScheduleBlock.from_payload(obj) for obj in items]
