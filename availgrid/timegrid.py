from __future__ import annotations

import re
from enum import Enum
from typing import Dict, List, Tuple, Union


class Day(str, Enum):
    LUNES = "lunes"
    MARTES = "martes"
    MIERCOLES = "miercoles"
    JUEVES = "jueves"
    VIERNES = "viernes"
    SABADO = "sabado"
    DOMINGO = "domingo"


DAYS: Tuple[Day, ...] = tuple(Day)

SLOT_MINUTES = 30
SLOTS_PER_DAY = 24 * 60 // SLOT_MINUTES  # 48

# day -> slot -> available
Grid = Dict[Day, Dict[int, bool]]

DayLike = Union[Day, str]

_TIME_RE = re.compile(r"^(\d{2}):(\d{2})$")


class OutOfBounds(AssertionError):
    """A day/slot/time coordinate outside the fixed week lattice.

    Only a caller bug can produce one, so it is raised instead of clamped.
    """


def coerce_day(day: DayLike) -> Day:
    if isinstance(day, Day):
        return day
    try:
        return Day(day)
    except ValueError:
        raise OutOfBounds(f"unknown day token: {day!r}") from None


def day_index(day: DayLike) -> int:
    return DAYS.index(coerce_day(day))


def check_slot(slot: int) -> int:
    """Cell index: 0 <= slot < 48."""
    if isinstance(slot, bool) or not isinstance(slot, int) or not 0 <= slot < SLOTS_PER_DAY:
        raise OutOfBounds(f"slot out of range [0,{SLOTS_PER_DAY}): {slot!r}")
    return slot


def check_boundary(slot: int) -> int:
    """Range boundary: 0 <= slot <= 48 (48 is midnight at the end of the day)."""
    if isinstance(slot, bool) or not isinstance(slot, int) or not 0 <= slot <= SLOTS_PER_DAY:
        raise OutOfBounds(f"boundary out of range [0,{SLOTS_PER_DAY}]: {slot!r}")
    return slot


def slot_to_time(slot: int) -> str:
    minutes = check_boundary(slot) * SLOT_MINUTES
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def time_to_slot(token: str) -> int:
    """Parse an ``HH:MM`` token on the half-hour lattice; ``24:00`` maps to 48."""
    m = _TIME_RE.match(token or "") if isinstance(token, str) else None
    if not m:
        raise OutOfBounds(f"malformed time token: {token!r}")
    hh, mm = int(m.group(1)), int(m.group(2))
    if mm % SLOT_MINUTES != 0 or mm >= 60:
        raise OutOfBounds(f"time not on the {SLOT_MINUTES}-minute lattice: {token!r}")
    if hh > 24 or (hh == 24 and mm != 0):
        raise OutOfBounds(f"time outside the day: {token!r}")
    return (hh * 60 + mm) // SLOT_MINUTES


def empty_grid() -> Grid:
    return {d: {i: False for i in range(SLOTS_PER_DAY)} for d in DAYS}


def copy_grid(grid: Grid) -> Grid:
    return {d: dict(grid.get(d, {})) for d in DAYS}


def grid_payload(grid: Grid) -> Dict[str, List[bool]]:
    """Wire form: day token -> 48 booleans."""
    return {
        d.value: [bool(grid.get(d, {}).get(i, False)) for i in range(SLOTS_PER_DAY)]
        for d in DAYS
    }


def grid_from_payload(obj: Dict[str, List[bool]]) -> Grid:
    grid = empty_grid()
    for token, cells in (obj or {}).items():
        day = coerce_day(token)
        if len(cells) != SLOTS_PER_DAY:
            raise OutOfBounds(f"expected {SLOTS_PER_DAY} cells for {day.value}, got {len(cells)}")
        grid[day] = {i: bool(v) for i, v in enumerate(cells)}
    return grid
