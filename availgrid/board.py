from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .drag import CellDelta, DragCommit, DragSelection
from .intervals import Interval, intervals_payload, make_interval, sort_intervals
from .signals import ReleaseSignal
from .timegrid import DayLike, Grid, grid_payload, time_to_slot
from .validator import Verdict, validate_list, validate_slots


class AvailabilityBoard:
    """
    Owner of the authoritative interval list for one user.

    The grid is a derived view: it is rebuilt from the list after every
    replacement and only diverges from it while a drag is in progress.
    """

    def __init__(
        self,
        intervals: Optional[Iterable[Interval]] = None,
        *,
        release_signal: Optional[ReleaseSignal] = None,
        on_commit: Optional[Callable[[DragCommit], None]] = None,
    ):
        initial = list(intervals or [])
        verdict = validate_list(initial)
        if not verdict.ok:
            raise ValueError(verdict.message)
        self._intervals: List[Interval] = sort_intervals(initial)
        self._on_commit = on_commit
        self.last_commit: Optional[DragCommit] = None
        self.drag = DragSelection(self.get_intervals, self._commit, release_signal)

    # ------------- canonical list -------------
    def get_intervals(self) -> List[Interval]:
        return list(self._intervals)

    def set_intervals(self, intervals: Iterable[Interval]) -> None:
        if self.drag.dragging:
            raise RuntimeError("cannot replace intervals during an active drag")
        self._intervals = sort_intervals(intervals)
        self.drag.sync()

    def load(self, intervals: Iterable[Interval]) -> Verdict:
        """Replace the list with `intervals` only if the whole list is well formed."""
        candidate = list(intervals)
        verdict = validate_list(candidate)
        if verdict.ok:
            self.set_intervals(candidate)
        return verdict

    @property
    def grid(self) -> Grid:
        return self.drag.snapshot()

    @property
    def dragging(self) -> bool:
        return self.drag.dragging

    def find(self, interval_id: str) -> Optional[Interval]:
        return next((iv for iv in self._intervals if iv.id == interval_id), None)

    # ------------- discrete entry -------------
    def add_block(self, day: DayLike, start_time: str, end_time: str) -> Tuple[Verdict, Optional[Interval]]:
        start, end = time_to_slot(start_time), time_to_slot(end_time)
        verdict = validate_slots(day, start, end, self._intervals)
        if not verdict.ok:
            return verdict, None
        block = make_interval(day, start, end)
        self.set_intervals(self._intervals + [block])
        return verdict, block

    def remove_block(self, interval_id: str) -> Optional[Interval]:
        block = self.find(interval_id)
        if block is None:
            return None
        self.set_intervals([iv for iv in self._intervals if iv.id != interval_id])
        return block

    # ------------- drag gesture -------------
    def begin_drag(self, day: DayLike, slot: int) -> CellDelta:
        return self.drag.begin(day, slot)

    def continue_drag(self, day: DayLike, slot: int) -> CellDelta:
        return self.drag.update(day, slot)

    def end_drag(self) -> Optional[DragCommit]:
        return self.drag.end()

    def _commit(self, commit: DragCommit) -> None:
        self._intervals = sort_intervals(commit.intervals)
        self.drag.sync()
        self.last_commit = commit
        if self._on_commit is not None:
            self._on_commit(commit)

    # ------------- wire -------------
    def to_payload(self) -> Dict[str, Any]:
        return {
            "blocks": intervals_payload(self._intervals),
            "grid": grid_payload(self.drag.grid),
        }
