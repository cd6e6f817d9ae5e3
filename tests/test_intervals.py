import numpy as np
import pytest

from availgrid.intervals import (
    Interval,
    day_mask,
    from_grid,
    make_interval,
    same_spans,
    sort_intervals,
    to_grid,
)
from availgrid.timegrid import (
    DAYS,
    SLOTS_PER_DAY,
    Day,
    OutOfBounds,
    empty_grid,
    grid_from_payload,
    grid_payload,
    slot_to_time,
    time_to_slot,
)


def spans(intervals):
    return [iv.span for iv in intervals]


def test_time_tokens_on_half_hour_lattice():
    assert time_to_slot("00:00") == 0
    assert time_to_slot("08:30") == 17
    assert time_to_slot("23:30") == 47
    assert time_to_slot("24:00") == SLOTS_PER_DAY
    assert slot_to_time(16) == "08:00"
    assert slot_to_time(SLOTS_PER_DAY) == "24:00"


@pytest.mark.parametrize("token", ["8:00", "08:15", "24:30", "25:00", "", None, "ab:cd"])
def test_malformed_time_token_is_out_of_bounds(token):
    with pytest.raises(OutOfBounds):
        time_to_slot(token)


def test_merge_law_adjacent_runs_become_one_interval():
    grid = empty_grid()
    for i in range(2, 5):
        grid[Day.MARTES][i] = True
    for i in range(5, 8):
        grid[Day.MARTES][i] = True

    out = from_grid(grid)
    assert spans(out) == [(Day.MARTES, 2, 8)]


def test_run_touching_end_of_day_closes_at_48():
    grid = empty_grid()
    grid[Day.DOMINGO][46] = True
    grid[Day.DOMINGO][47] = True
    grid[Day.LUNES][0] = True

    out = from_grid(grid)
    assert spans(out) == [(Day.LUNES, 0, 1), (Day.DOMINGO, 46, 48)]
    assert out[-1].end_time == "24:00"


def test_from_grid_orders_by_day_then_start():
    grid = empty_grid()
    grid[Day.VIERNES][30] = True
    grid[Day.LUNES][20] = True
    grid[Day.LUNES][3] = True

    assert spans(from_grid(grid)) == [
        (Day.LUNES, 3, 4),
        (Day.LUNES, 20, 21),
        (Day.VIERNES, 30, 31),
    ]


def test_from_grid_empty_and_full_days():
    assert from_grid(empty_grid()) == []

    grid = empty_grid()
    grid[Day.JUEVES] = {i: True for i in range(SLOTS_PER_DAY)}
    assert spans(from_grid(grid)) == [(Day.JUEVES, 0, SLOTS_PER_DAY)]


def test_round_trip_for_maximal_lists():
    blocks = [
        make_interval("lunes", 16, 20),
        make_interval("lunes", 22, 24),
        make_interval("miercoles", 0, 3),
        make_interval("domingo", 40, 48),
    ]
    again = from_grid(to_grid(blocks))
    assert same_spans(again, blocks)


def test_reduce_expand_is_idempotent():
    blocks = [
        make_interval("martes", 4, 6),
        make_interval("martes", 6, 9),   # adjacent: collapses on the first pass
        make_interval("sabado", 10, 11),
    ]
    once = from_grid(to_grid(blocks))
    twice = from_grid(to_grid(once))
    assert spans(once) == spans(twice) == [(Day.MARTES, 4, 9), (Day.SABADO, 10, 11)]


def test_expand_of_reduce_reproduces_grid():
    grid = empty_grid()
    for i in (0, 1, 2, 10, 11, 30, 47):
        grid[Day.MIERCOLES][i] = True
    grid[Day.JUEVES][5] = True
    assert to_grid(from_grid(grid)) == grid


def test_ids_are_fresh_and_unique_without_previous():
    grid = empty_grid()
    grid[Day.LUNES][1] = True
    grid[Day.LUNES][5] = True
    a = from_grid(grid)
    b = from_grid(grid)
    ids = {iv.id for iv in a} | {iv.id for iv in b}
    assert len(ids) == 4


def test_unchanged_ranges_keep_their_ids():
    kept = make_interval("lunes", 2, 4, "keep-me")
    grown = make_interval("martes", 2, 4, "grown")
    grid = to_grid([kept, grown])
    grid[Day.MARTES][4] = True

    out = from_grid(grid, previous=[kept, grown])
    by_span = {iv.span: iv.id for iv in out}
    assert by_span[(Day.LUNES, 2, 4)] == "keep-me"
    assert by_span[(Day.MARTES, 2, 5)] != "grown"


def test_day_mask_reads_only_that_day():
    blocks = [make_interval("lunes", 1, 3), make_interval("martes", 0, 48)]
    mask = day_mask(blocks, Day.LUNES)
    assert [i for i, v in enumerate(mask) if v] == [1, 2]


def test_payload_uses_time_tokens():
    iv = make_interval("lunes", 16, 20, "abc")
    assert iv.to_payload() == {"id": "abc", "day": "lunes", "startTime": "08:00", "endTime": "10:00"}
    assert Interval.from_payload(iv.to_payload()) == iv


def test_payload_with_unknown_day_is_out_of_bounds():
    with pytest.raises(OutOfBounds):
        Interval.from_payload({"day": "monday", "startTime": "08:00", "endTime": "09:00"})


def test_sort_intervals_uses_week_order_not_alphabetical():
    out = sort_intervals([
        make_interval("domingo", 0, 1),
        make_interval("jueves", 0, 1),
        make_interval("lunes", 5, 6),
    ])
    assert [iv.day for iv in out] == [Day.LUNES, Day.JUEVES, Day.DOMINGO]


def test_grid_payload_round_trip_shape():
    grid = empty_grid()
    grid[Day.SABADO][12] = True
    wire = grid_payload(grid)
    assert list(wire) == [d.value for d in DAYS]
    assert all(len(cells) == SLOTS_PER_DAY for cells in wire.values())
    assert grid_from_payload(wire) == grid


def test_grid_payload_with_wrong_width_is_out_of_bounds():
    with pytest.raises(OutOfBounds):
        grid_from_payload({"lunes": [True] * 10})


def random_grid(seed, density):
    rng = np.random.default_rng(seed)
    cells = rng.random((len(DAYS), SLOTS_PER_DAY)) < density
    return {d: {i: bool(cells[row, i]) for i in range(SLOTS_PER_DAY)} for row, d in enumerate(DAYS)}


@pytest.mark.parametrize("seed", range(12))
@pytest.mark.parametrize("density", [0.1, 0.5, 0.9])
def test_laws_hold_for_random_grids(seed, density):
    grid = random_grid(seed, density)
    once = from_grid(grid)

    # expand(reduce(g)) == g
    assert to_grid(once) == grid
    # reduce is idempotent through expand
    assert spans(from_grid(to_grid(once))) == spans(once)
    # maximal: same-day neighbours never touch or overlap
    for a, b in zip(once, once[1:]):
        if a.day == b.day:
            assert a.end_slot < b.start_slot
    assert sum(iv.end_slot - iv.start_slot for iv in once) == sum(
        v for day in grid.values() for v in day.values()
    )
