"""
Interval model: grid <-> interval list conversion.

`from_grid` run-length encodes each day of the boolean grid into maximal
half-open ranges; `to_grid` expands them back. For any grid `g`,
`to_grid(from_grid(g)) == g`.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np

from .timegrid import (
    DAYS,
    SLOTS_PER_DAY,
    Day,
    DayLike,
    Grid,
    coerce_day,
    day_index,
    empty_grid,
    slot_to_time,
    time_to_slot,
)


def new_interval_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Interval:
    id: str
    day: Day
    start_slot: int
    end_slot: int  # exclusive

    @property
    def start_time(self) -> str:
        return slot_to_time(self.start_slot)

    @property
    def end_time(self) -> str:
        return slot_to_time(self.end_slot)

    @property
    def span(self) -> Tuple[Day, int, int]:
        return (self.day, self.start_slot, self.end_slot)

    def label(self) -> str:
        return f"{self.day.value} {self.start_time}-{self.end_time}"

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "day": self.day.value,
            "startTime": self.start_time,
            "endTime": self.end_time,
        }

    @classmethod
    def from_payload(cls, obj: Dict[str, Any]) -> "Interval":
        return cls(
            id=str(obj.get("id") or new_interval_id()),
            day=coerce_day(obj.get("day")),
            start_slot=time_to_slot(obj.get("startTime")),
            end_slot=time_to_slot(obj.get("endTime")),
        )


def make_interval(day: DayLike, start_slot: int, end_slot: int, interval_id: Optional[str] = None) -> Interval:
    return Interval(
        id=interval_id or new_interval_id(),
        day=coerce_day(day),
        start_slot=int(start_slot),
        end_slot=int(end_slot),
    )


def sort_intervals(intervals: Iterable[Interval]) -> List[Interval]:
    return sorted(intervals, key=lambda iv: (day_index(iv.day), iv.start_slot, iv.end_slot))


def to_grid(intervals: Iterable[Interval]) -> Grid:
    grid = empty_grid()
    for iv in intervals:
        row = grid[coerce_day(iv.day)]
        for i in range(iv.start_slot, iv.end_slot):
            row[i] = True
    return grid


def day_mask(intervals: Iterable[Interval], day: DayLike) -> List[bool]:
    """Per-slot availability of one day, straight from the interval list."""
    d = coerce_day(day)
    mask = [False] * SLOTS_PER_DAY
    for iv in intervals:
        if iv.day != d:
            continue
        for i in range(iv.start_slot, iv.end_slot):
            mask[i] = True
    return mask


def _runs(cells: Dict[int, bool]) -> List[Tuple[int, int]]:
    row = np.fromiter(
        (1 if cells.get(i, False) else 0 for i in range(SLOTS_PER_DAY)),
        dtype=np.int8,
        count=SLOTS_PER_DAY,
    )
    # pad with zeros so every run has both a rising and a falling edge
    edges = np.flatnonzero(np.diff(np.concatenate(([0], row, [0]))))
    return [(int(s), int(e)) for s, e in zip(edges[0::2], edges[1::2])]


def from_grid(grid: Grid, previous: Optional[Iterable[Interval]] = None) -> List[Interval]:
    """
    Reduce a grid to its maximal intervals, in day-then-start order.

    When `previous` is given, an interval whose exact (day, start, end) range
    already existed keeps that interval's id; every other interval gets a new id.
    """
    known: Dict[Tuple[Day, int, int], str] = {}
    for iv in previous or ():
        known.setdefault(iv.span, iv.id)

    out: List[Interval] = []
    for day in DAYS:
        for start, end in _runs(grid.get(day, {})):
            out.append(Interval(
                id=known.get((day, start, end)) or new_interval_id(),
                day=day,
                start_slot=start,
                end_slot=end,
            ))
    return out


def same_spans(a: Iterable[Interval], b: Iterable[Interval]) -> bool:
    """Set-equality on (day, start, end), ignoring ids."""
    return {iv.span for iv in a} == {iv.span for iv in b}


def intervals_payload(intervals: Iterable[Interval]) -> List[Dict[str, Any]]:
    return [iv.to_payload() for iv in intervals]


def intervals_from_payload(items: Iterable[Dict[str, Any]]) -> List[Interval]:
    return [Interval.from_payload(obj) for obj in items or ()]
