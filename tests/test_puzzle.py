from pipsgen.board import Board, CellPos
from pipsgen.constants import ConstraintType
from pipsgen.domino import Domino
from pipsgen.puzzle import Puzzle, SplitPuzzle, Violation
from pipsgen.region import Region

ALL_2X2 = {CellPos(0, 0), CellPos(0, 1), CellPos(1, 0), CellPos(1, 1)}


def _puzzle(target: int) -> Puzzle:
    board = Board(2, 2)
    regions = [Region(0, ConstraintType.SUM, target, set(ALL_2X2))]
    for pos in ALL_2X2:
        board.cells[pos.row][pos.col].region_id = 0
    return Puzzle(board, regions, [Domino((0, 1)), Domino((2, 3))], [])


def _place_both(puzzle: Puzzle) -> None:
    d1, d2 = puzzle.dominoes
    assert puzzle.place_domino(d1, CellPos(0, 0), CellPos(0, 1))
    assert puzzle.place_domino(d2, CellPos(1, 0), CellPos(1, 1))


def test_sum_six_is_solved() -> None:
    puzzle = _puzzle(6)
    _place_both(puzzle)
    assert puzzle.is_solved()
    assert puzzle.get_violations() == []


def test_sum_seven_is_violated() -> None:
    puzzle = _puzzle(7)
    _place_both(puzzle)
    assert not puzzle.is_solved()
    assert puzzle.get_violations() == [Violation(0, frozenset(ALL_2X2))]


def test_incomplete_is_not_violation() -> None:
    puzzle = _puzzle(6)
    d1 = puzzle.dominoes[0]
    assert puzzle.place_domino(d1, CellPos(0, 0), CellPos(0, 1))
    assert puzzle.get_violations() == []
    assert not puzzle.is_solved()
    assert puzzle.tray() == [puzzle.dominoes[1]]


def test_place_writes_pips_by_orientation() -> None:
    puzzle = _puzzle(6)
    d2 = puzzle.dominoes[1]
    d2.orientation = 2
    assert puzzle.place_domino(d2, CellPos(0, 0), CellPos(0, 1))
    assert puzzle.board.cells[0][0].pip_value == 3
    assert puzzle.board.cells[0][1].pip_value == 2
    assert puzzle.board.cells[0][0].domino_id == (2, 3)


def test_place_on_occupied_fails() -> None:
    puzzle = _puzzle(6)
    d1, d2 = puzzle.dominoes
    assert puzzle.place_domino(d1, CellPos(0, 0), CellPos(0, 1))
    assert not puzzle.place_domino(d2, CellPos(0, 1), CellPos(1, 1))
    assert not d2.placed
    assert puzzle.board.cells[1][1].pip_value is None
    assert puzzle.board.cells[0][1].pip_value == 1
    assert d1.cell_b == CellPos(0, 1)


def test_place_invalid_cells_fails() -> None:
    puzzle = _puzzle(6)
    d1 = puzzle.dominoes[0]
    assert not puzzle.place_domino(d1, CellPos(0, 1), CellPos(0, 2))
    assert not puzzle.place_domino(d1, CellPos(0, 0), CellPos(0, 0))
    puzzle.board.cells[1][0].active = False
    assert not puzzle.place_domino(d1, CellPos(0, 0), CellPos(1, 0))
    assert not d1.placed


def test_place_twice_fails() -> None:
    puzzle = _puzzle(6)
    d1 = puzzle.dominoes[0]
    assert puzzle.place_domino(d1, CellPos(0, 0), CellPos(0, 1))
    assert not puzzle.place_domino(d1, CellPos(1, 0), CellPos(1, 1))
    assert d1.cell_a == CellPos(0, 0)


def test_place_remove_round_trip() -> None:
    puzzle = _puzzle(6)
    d1 = puzzle.dominoes[0]
    assert puzzle.place_domino(d1, CellPos(0, 0), CellPos(1, 0))
    puzzle.remove_domino(d1)
    assert not d1.placed
    assert d1.cell_a is None and d1.cell_b is None
    for row in puzzle.board.cells:
        for cell in row:
            assert cell.domino_id is None
            assert cell.pip_value is None
            assert cell.region_id == 0


def test_remove_unplaced_is_noop() -> None:
    puzzle = _puzzle(6)
    d1 = puzzle.dominoes[0]
    puzzle.remove_domino(d1)
    assert not d1.placed
    assert all(c.pip_value is None for row in puzzle.board.cells for c in row)


def test_clear_placements() -> None:
    puzzle = _puzzle(6)
    _place_both(puzzle)
    puzzle.clear_placements()
    assert puzzle.placed_dominoes() == []
    assert len(puzzle.tray()) == 2


def _split() -> SplitPuzzle:
    cells = {CellPos(0, 0), CellPos(0, 1)}
    boards = [Board(1, 2), Board(1, 2)]
    regions = [
        [Region(0, ConstraintType.SUM, 1, set(cells))],
        [Region(0, ConstraintType.SUM, 9, set(cells))],
    ]
    return SplitPuzzle(boards, regions, [Domino((0, 1)), Domino((4, 5))], [[], []])


def test_split_place_and_remove() -> None:
    puzzle = _split()
    d1, d2 = puzzle.dominoes
    assert not puzzle.place_domino(d1, 2, CellPos(0, 0), CellPos(0, 1))
    assert puzzle.place_domino(d1, 0, CellPos(0, 0), CellPos(0, 1))
    assert puzzle.board_index_for(d1) == 0
    assert puzzle.place_domino(d2, 1, CellPos(0, 0), CellPos(0, 1))
    assert puzzle.is_solved()
    puzzle.remove_domino(d2)
    assert puzzle.board_index_for(d2) is None
    assert puzzle.get_board(1).cells[0][0].pip_value is None
    assert puzzle.get_board(0).cells[0][0].pip_value == 0


def test_split_violations_per_board() -> None:
    puzzle = _split()
    d1, d2 = puzzle.dominoes
    # 盤面を入れ替えて置くと両方の SUM が破れる
    assert puzzle.place_domino(d2, 0, CellPos(0, 0), CellPos(0, 1))
    assert puzzle.place_domino(d1, 1, CellPos(0, 0), CellPos(0, 1))
    assert not puzzle.is_solved()
    assert len(puzzle.get_violations(0)) == 1
    assert len(puzzle.get_all_violations()) == 2
    puzzle.clear_placements()
    assert puzzle.get_all_violations() == []
    assert len(puzzle.tray()) == 2
