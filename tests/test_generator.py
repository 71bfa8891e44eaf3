from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))
from pipsgen import generator  # noqa: E402
from pipsgen import sat_unique  # noqa: E402
from pipsgen import split_generator  # noqa: E402
from pipsgen import validator  # noqa: E402
from pipsgen.constants import DIFFICULTY, ConstraintType  # noqa: E402
from pipsgen.puzzle import Puzzle, SplitPuzzle  # noqa: E402
from pipsgen.solver import BoardContext, PipsSolver, count_solutions  # noqa: E402
from pipsgen.tiling import solution_values  # noqa: E402


@pytest.fixture(scope="module")
def easy_puzzle() -> Puzzle:
    return generator.generate_puzzle("easy", seed=0)


def test_generate_puzzle_structure(easy_puzzle: Puzzle) -> None:
    puzzle = easy_puzzle
    assert isinstance(puzzle, Puzzle)
    assert puzzle.difficulty == "easy"
    assert len(puzzle.dominoes) * 2 == puzzle.board.active_count
    assert len({d.id for d in puzzle.dominoes}) == len(puzzle.dominoes)
    assert all(not d.placed for d in puzzle.dominoes)
    allowed = set(DIFFICULTY["easy"].constraint_types)
    assert all(r.constraint_type in allowed for r in puzzle.regions)
    assert puzzle.stats["steps"] >= 1
    assert puzzle.stats["max_depth"] >= 1
    assert puzzle.stats["rating"] in {"easy", "medium", "hard"}
    assert puzzle.stats["attempts"] >= 1


def test_generated_puzzle_is_unique(easy_puzzle: Puzzle) -> None:
    puzzle = easy_puzzle
    contexts = [BoardContext(puzzle.board, puzzle.regions)]
    solver = PipsSolver(contexts, [d.id for d in puzzle.dominoes])
    sols = solver.solve(2)
    assert len(sols) == 1
    assert solver.hit_limit is False
    assert sat_unique.is_unique(contexts, [d.id for d in puzzle.dominoes])


def test_planted_solution_satisfies_regions(easy_puzzle: Puzzle) -> None:
    values = solution_values(easy_puzzle.solution)
    for region in easy_puzzle.regions:
        cell_values = [values[pos] for pos in region.cells]
        if region.constraint_type == ConstraintType.SUM:
            assert sum(cell_values) == region.target
        elif region.constraint_type == ConstraintType.EQUAL:
            assert len(set(cell_values)) == 1


def test_playing_planted_solution_solves(easy_puzzle: Puzzle) -> None:
    puzzle = easy_puzzle
    by_id = {d.id: d for d in puzzle.dominoes}
    try:
        for entry in puzzle.solution:
            domino = by_id[entry.domino_id]
            assert puzzle.place_domino(domino, entry.cell_a, entry.cell_b)
        assert puzzle.is_solved()
        assert puzzle.get_violations() == []
    finally:
        puzzle.clear_placements()
    assert puzzle.tray() == puzzle.dominoes


def test_same_seed_same_puzzle() -> None:
    p1 = generator.generate_puzzle("easy", seed=42)
    p2 = generator.generate_puzzle("easy", seed=42)
    assert p1.solution == p2.solution
    assert [(r.constraint_type, r.target, r.cells) for r in p1.regions] == [
        (r.constraint_type, r.target, r.cells) for r in p2.regions
    ]


def test_no_rectangles() -> None:
    puzzle = generator.generate_puzzle("easy", no_rectangles=True, seed=3)
    assert any(not c.active for row in puzzle.board.cells for c in row)


def test_unknown_difficulty() -> None:
    with pytest.raises(ValueError):
        generator.generate_puzzle("expert")
    with pytest.raises(ValueError):
        split_generator.generate_split_puzzle("expert")


def test_generate_puzzle_timeout() -> None:
    with pytest.raises(generator.GenerationError):
        generator.generate_puzzle("easy", seed=0, timeout_s=0)
    with pytest.raises(RuntimeError):
        generator.generate_puzzle("hard", seed=0, timeout_s=0)


def test_validate_puzzle(easy_puzzle: Puzzle) -> None:
    validator.validate_puzzle(easy_puzzle)


def test_validate_puzzle_fail_constraint() -> None:
    puzzle = generator.generate_puzzle("easy", seed=1)
    values = solution_values(puzzle.solution)
    region = puzzle.regions[0]
    # 正解配置と合わない合計値にする
    region.constraint_type = ConstraintType.SUM
    region.target = sum(values[pos] for pos in region.cells) + 1
    with pytest.raises(ValueError):
        validator.validate_puzzle(puzzle, check_unique=False)


def test_validate_puzzle_fail_uncovered_cell() -> None:
    puzzle = generator.generate_puzzle("easy", seed=2)
    region = max(puzzle.regions, key=lambda r: r.size)
    region.cells.pop()
    with pytest.raises(ValueError):
        validator.validate_puzzle(puzzle, check_unique=False)


def test_validate_puzzle_fail_duplicate_domino() -> None:
    puzzle = generator.generate_puzzle("easy", seed=4)
    puzzle.dominoes.append(puzzle.dominoes[0].clone())
    with pytest.raises(ValueError):
        validator.validate_puzzle(puzzle, check_unique=False)


def test_puzzle_to_ascii(easy_puzzle: Puzzle) -> None:
    text = generator.puzzle_to_ascii(easy_puzzle)
    assert "board 0" in text
    assert "dominoes:" in text
    solved = generator.puzzle_to_ascii(easy_puzzle, show_solution=True)
    assert "_" not in solved.split("dominoes:")[0].split("region")[0]
    # 元の盤面には値を書き込まない
    assert all(c.pip_value is None for row in easy_puzzle.board.cells for c in row)


@pytest.mark.slow
def test_generate_hard_puzzle() -> None:
    puzzle = generator.generate_puzzle("hard", seed=0)
    count, stats = count_solutions(
        [BoardContext(puzzle.board, puzzle.regions)],
        [d.id for d in puzzle.dominoes],
        return_stats=True,
    )
    assert count == 1
    assert stats["hit_limit"] == 0


@pytest.mark.slow
def test_generate_split_puzzle() -> None:
    puzzle = split_generator.generate_split_puzzle("easy", seed=0)
    assert isinstance(puzzle, SplitPuzzle)
    assert len(puzzle.boards) == 2
    total = sum(b.active_count for b in puzzle.boards)
    assert len(puzzle.dominoes) * 2 == total
    assert len({d.id for d in puzzle.dominoes}) == len(puzzle.dominoes)
    contexts = [BoardContext(b, r) for b, r in zip(puzzle.boards, puzzle.regions)]
    solver = PipsSolver(contexts, [d.id for d in puzzle.dominoes])
    assert len(solver.solve(2)) == 1
    assert not solver.hit_limit
    validator.validate_puzzle(puzzle)


@pytest.mark.slow
def test_split_playthrough() -> None:
    puzzle = split_generator.generate_split_puzzle("medium", seed=5)
    by_id = {d.id: d for d in puzzle.dominoes}
    for bi, solution in enumerate(puzzle.solutions):
        for entry in solution:
            assert puzzle.place_domino(by_id[entry.domino_id], bi, entry.cell_a, entry.cell_b)
    assert puzzle.is_solved()
    assert puzzle.get_all_violations() == []
