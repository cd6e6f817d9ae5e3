import pytest

from availgrid.board import AvailabilityBoard
from availgrid.intervals import make_interval
from availgrid.signals import ReleaseSignal
from availgrid.timegrid import Day
from availgrid.validator import DUPLICATE_ID, INVALID_RANGE, OVERLAP


def make_board(intervals=None):
    return AvailabilityBoard(intervals, release_signal=ReleaseSignal())


def test_add_block_appends_and_resyncs_grid():
    board = make_board()
    verdict, block = board.add_block("martes", "09:00", "10:00")
    assert verdict.ok
    assert block.span == (Day.MARTES, 18, 20)
    assert board.get_intervals() == [block]
    assert board.grid[Day.MARTES][18] and board.grid[Day.MARTES][19]
    assert not board.grid[Day.MARTES][20]


def test_rejected_block_leaves_list_untouched():
    board = make_board([make_interval("martes", 18, 20, "a")])
    verdict, block = board.add_block("martes", "09:30", "11:00")
    assert block is None
    assert verdict.reason == OVERLAP
    assert [iv.id for iv in board.get_intervals()] == ["a"]


def test_adjacent_discrete_blocks_keep_separate_identity():
    board = make_board()
    _, first = board.add_block("lunes", "08:00", "09:00")
    _, second = board.add_block("lunes", "09:00", "10:00")
    assert [iv.id for iv in board.get_intervals()] == [first.id, second.id]


def test_remove_block_by_id():
    board = make_board([make_interval("lunes", 0, 2, "x"), make_interval("lunes", 4, 6, "y")])
    removed = board.remove_block("x")
    assert removed.id == "x"
    assert [iv.id for iv in board.get_intervals()] == ["y"]
    assert not board.grid[Day.LUNES][0]
    assert board.remove_block("missing") is None


def test_set_intervals_sorts_and_rebuilds_grid():
    board = make_board()
    board.set_intervals([make_interval("domingo", 0, 1, "s"), make_interval("lunes", 3, 4, "m")])
    assert [iv.id for iv in board.get_intervals()] == ["m", "s"]
    assert board.grid[Day.DOMINGO][0]


def test_get_intervals_returns_a_copy():
    board = make_board([make_interval("lunes", 0, 1)])
    board.get_intervals().clear()
    assert len(board.get_intervals()) == 1


def test_payload_has_blocks_and_full_grid():
    board = make_board([make_interval("lunes", 16, 20, "m")])
    payload = board.to_payload()
    assert payload["blocks"] == [{"id": "m", "day": "lunes", "startTime": "08:00", "endTime": "10:00"}]
    assert payload["grid"]["lunes"][16:20] == [True] * 4
    assert len(payload["grid"]) == 7


@pytest.mark.parametrize("blocks, reason", [
    ([make_interval("lunes", 16, 20, "a"), make_interval("lunes", 18, 22, "b")], OVERLAP),
    ([make_interval("lunes", 24, 22, "c")], INVALID_RANGE),
    ([make_interval("lunes", 16, 18, "a"), make_interval("martes", 16, 18, "a")], DUPLICATE_ID),
])
def test_load_refuses_malformed_lists(blocks, reason):
    board = make_board([make_interval("sabado", 0, 2, "keep")])
    verdict = board.load(blocks)
    assert verdict.reason == reason
    assert [iv.id for iv in board.get_intervals()] == ["keep"]
    assert board.grid[Day.SABADO][0] and not board.grid[Day.LUNES][16]


def test_load_accepts_touching_blocks_as_given():
    board = make_board()
    verdict = board.load([make_interval("lunes", 18, 20, "b"), make_interval("lunes", 16, 18, "a")])
    assert verdict.ok
    assert [iv.id for iv in board.get_intervals()] == ["a", "b"]


def test_constructor_refuses_overlapping_blocks():
    with pytest.raises(ValueError, match="overlaps"):
        make_board([make_interval("lunes", 0, 4, "a"), make_interval("lunes", 2, 6, "b")])
