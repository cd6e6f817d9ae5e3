from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Literal, Optional

from .intervals import Interval, day_mask, from_grid, to_grid
from .signals import ReleaseSignal, pointer_released
from .timegrid import SLOTS_PER_DAY, Day, DayLike, Grid, check_slot, coerce_day, copy_grid

DragState = Literal["IDLE", "DRAGGING"]
DragMode = Literal["select", "deselect"]

# slot -> new value, for the anchor day only
CellDelta = Dict[int, bool]


@dataclass(frozen=True)
class DragSession:
    anchor_day: Day
    anchor_slot: int
    mode: DragMode
    started_at: float


@dataclass(frozen=True)
class DragCommit:
    session: DragSession
    intervals: List[Interval]
    cells: int      # anchor-day cells that differ from the pre-drag state
    drag_ms: float


class DragSelection:
    """
    Pointer-drag state machine over the working grid.

        IDLE --begin(day, slot)--> DRAGGING
        DRAGGING --update(day, slot)--> DRAGGING      (same day only)
        DRAGGING --end() / release signal--> IDLE     (commit)

    `intervals_fn` returns the authoritative interval list; it is read both to
    rebuild the grid and to restore pre-drag cells while a drag shrinks.
    `commit_fn` receives the reduced list when a drag ends.
    """

    def __init__(
        self,
        intervals_fn: Callable[[], List[Interval]],
        commit_fn: Callable[[DragCommit], None],
        signal: Optional[ReleaseSignal] = None,
    ):
        self._intervals = intervals_fn
        self._commit = commit_fn
        self._signal = signal if signal is not None else pointer_released
        self.session: Optional[DragSession] = None
        self.grid: Grid = to_grid(self._intervals())

    @property
    def state(self) -> DragState:
        return "DRAGGING" if self.session is not None else "IDLE"

    @property
    def dragging(self) -> bool:
        return self.session is not None

    def sync(self) -> None:
        """Rebuild the working grid from the interval list."""
        if self.session is not None:
            raise RuntimeError("cannot resync the grid during an active drag")
        self.grid = to_grid(self._intervals())

    def snapshot(self) -> Grid:
        return copy_grid(self.grid)

    # ------------- transitions -------------
    def begin(self, day: DayLike, slot: int) -> CellDelta:
        d = coerce_day(day)
        check_slot(slot)

        if self.session is not None:
            # a release we never heard about; close the stale gesture first
            self.end()

        current = self.grid[d].get(slot, False)
        mode: DragMode = "deselect" if current else "select"
        self.session = DragSession(anchor_day=d, anchor_slot=slot, mode=mode, started_at=time.monotonic())
        self._signal.subscribe(self._on_release)

        self.grid[d][slot] = not current
        return {slot: not current}

    def update(self, day: DayLike, slot: int) -> CellDelta:
        d = coerce_day(day)
        check_slot(slot)

        s = self.session
        if s is None or d != s.anchor_day:
            return {}

        lo, hi = min(s.anchor_slot, slot), max(s.anchor_slot, slot)
        paint = s.mode == "select"

        # restore the whole anchor day from the interval list, then paint the range
        target = day_mask(self._intervals(), d)
        for i in range(lo, hi + 1):
            target[i] = paint

        row = self.grid[d]
        delta: CellDelta = {}
        for i in range(SLOTS_PER_DAY):
            if row.get(i, False) != target[i]:
                row[i] = target[i]
                delta[i] = target[i]
        return delta

    def end(self) -> Optional[DragCommit]:
        s = self.session
        if s is None:
            return None

        self._signal.unsubscribe(self._on_release)
        before = self._intervals()
        baseline = day_mask(before, s.anchor_day)
        row = self.grid[s.anchor_day]
        cells = sum(1 for i in range(SLOTS_PER_DAY) if row.get(i, False) != baseline[i])

        commit = DragCommit(
            session=s,
            intervals=from_grid(self.grid, previous=before),
            cells=cells,
            drag_ms=(time.monotonic() - s.started_at) * 1000.0,
        )
        self.session = None
        self._commit(commit)
        return commit

    def _on_release(self) -> None:
        self.end()
