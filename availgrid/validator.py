from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional

from .intervals import Interval, sort_intervals
from .timegrid import DayLike, check_boundary, coerce_day, time_to_slot

INVALID_RANGE = "InvalidRange"
OVERLAP = "Overlap"
DUPLICATE_ID = "DuplicateId"


@dataclass(frozen=True)
class Verdict:
    ok: bool
    reason: Optional[str] = None    # INVALID_RANGE | OVERLAP | DUPLICATE_ID
    message: str = ""
    conflict: Optional[Interval] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "reason": self.reason,
            "message": self.message,
            "conflict": self.conflict.to_payload() if self.conflict else None,
        }


VALID = Verdict(ok=True)


def overlaps(s1: int, e1: int, s2: int, e2: int) -> bool:
    # half-open ranges; touching ends do not overlap
    return s1 < e2 and s2 < e1


def find_conflicts(day: DayLike, start_slot: int, end_slot: int, existing: Iterable[Interval]) -> List[Interval]:
    d = coerce_day(day)
    return [
        iv for iv in sort_intervals(existing)
        if iv.day == d and overlaps(start_slot, end_slot, iv.start_slot, iv.end_slot)
    ]


def validate_slots(day: DayLike, start_slot: int, end_slot: int, existing: Iterable[Interval]) -> Verdict:
    d = coerce_day(day)
    check_boundary(start_slot)
    check_boundary(end_slot)

    if start_slot >= end_slot:
        return Verdict(
            ok=False,
            reason=INVALID_RANGE,
            message="Start time must be earlier than end time.",
        )

    conflicts = find_conflicts(d, start_slot, end_slot, existing)
    if conflicts:
        first = conflicts[0]
        return Verdict(
            ok=False,
            reason=OVERLAP,
            message=f"This block overlaps an existing availability block ({first.label()}).",
            conflict=first,
        )
    return VALID


def validate_candidate(day: DayLike, start_time: str, end_time: str, existing: Iterable[Interval]) -> Verdict:
    """
    Check a discretely entered block against the existing list.

    Tokens off the half-hour lattice raise `OutOfBounds`; an empty or inverted
    range and an intersection with a same-day block come back as rejected
    verdicts. Accepted blocks are appended as-is, never merged with neighbours.
    """
    return validate_slots(day, time_to_slot(start_time), time_to_slot(end_time), existing)


def validate_list(intervals: Iterable[Interval]) -> Verdict:
    """
    Check a whole replacement list, each block against the ones before it.

    The first offending block decides the verdict: a repeated id, an empty or
    inverted range, or an intersection with an earlier block on the same day.
    """
    accepted: List[Interval] = []
    by_id: Dict[str, Interval] = {}
    for iv in intervals:
        if iv.id in by_id:
            return Verdict(
                ok=False,
                reason=DUPLICATE_ID,
                message=f"Block id {iv.id!r} is used more than once ({iv.label()}).",
                conflict=by_id[iv.id],
            )
        verdict = validate_slots(iv.day, iv.start_slot, iv.end_slot, accepted)
        if not verdict.ok:
            return replace(verdict, message=f"{iv.label()}: {verdict.message}")
        accepted.append(iv)
        by_id[iv.id] = iv
    return VALID
