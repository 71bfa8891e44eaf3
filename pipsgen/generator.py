"""Pips パズルの盤面生成モジュール"""

from __future__ import annotations

import logging
import random
import time
from typing import Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    # 型チェック時は絶対インポートを使用する
    from pipsgen.puzzle import Puzzle, SplitPuzzle
else:
    try:
        # パッケージ実行時は相対インポート
        from .puzzle import Puzzle, SplitPuzzle
    except ImportError:  # pragma: no cover - スクリプト実行時のフォールバック
        from pipsgen.puzzle import Puzzle, SplitPuzzle

try:
    from .board import Board, BoardShape, CellPos, create_board_from_shape
    from .region import Region
    from .domino import Domino
except ImportError:  # pragma: no cover - スクリプト実行時のフォールバック
    from pipsgen.board import Board, BoardShape, CellPos, create_board_from_shape
    from pipsgen.region import Region
    from pipsgen.domino import Domino

try:
    from .constants import (
        ALLOWED_DIFFICULTIES,
        BOARD_SHAPES,
        DIFFICULTY,
        GENERATION_TIME_BUDGET,
        RETRY_LIMIT,
        SINGLE_CELL_RATIO,
        UNIQUENESS_CAP,
        DifficultyConfig,
        evaluate_difficulty,
    )
except ImportError:  # pragma: no cover - スクリプト実行時のフォールバック
    from pipsgen.constants import (
        ALLOWED_DIFFICULTIES,
        BOARD_SHAPES,
        DIFFICULTY,
        GENERATION_TIME_BUDGET,
        RETRY_LIMIT,
        SINGLE_CELL_RATIO,
        UNIQUENESS_CAP,
        DifficultyConfig,
        evaluate_difficulty,
    )

try:
    from .tiling import SolutionEntry, assign_dominoes, find_tiling, solution_values
    from .partition import create_regions
    from .constraints import assign_constraints, tighten_constraints
except ImportError:  # pragma: no cover - スクリプト実行時のフォールバック
    from pipsgen.tiling import (
        SolutionEntry,
        assign_dominoes,
        find_tiling,
        solution_values,
    )
    from pipsgen.partition import create_regions
    from pipsgen.constraints import assign_constraints, tighten_constraints

try:
    from .solver import BoardContext, PipsSolver
except ImportError:  # pragma: no cover - スクリプト実行時のフォールバック
    from pipsgen.solver import BoardContext, PipsSolver

try:
    from .validator import validate_puzzle
except ImportError:  # pragma: no cover - スクリプト実行時のフォールバック
    from pipsgen.validator import validate_puzzle

logger = logging.getLogger(__name__)

# 1 つの敷き詰めに対して同じリージョン数で分割をやり直す回数
PARTITION_ATTEMPTS = 3


class GenerationError(RuntimeError):
    """時間や試行回数を使い切っても生成できなかったときの例外

    呼び出し側は再度呼び出せばよく、致命的なエラーとして扱う必要はない。
    """


def setup_logging(level: int = logging.INFO) -> None:
    """ログ出力の設定を行う関数

    CLI やベンチマークから一度だけ呼び出す。ライブラリとして使う場合は
    呼び出し側のログ設定に任せる。

    :param level: 表示するログの重要度。``logging.INFO`` などを指定
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def _check_difficulty(difficulty: str) -> None:
    if difficulty not in ALLOWED_DIFFICULTIES:
        raise ValueError(f"difficulty は {ALLOWED_DIFFICULTIES} のいずれかで指定")


def _solve_with_tightening(
    contexts: Sequence[BoardContext],
    solution_maps: Sequence[Dict[CellPos, int]],
    domino_ids: Sequence[Tuple[int, int]],
    allowed_types: Sequence[str],
) -> Tuple[bool, PipsSolver, bool]:
    """解が一意か確認し、だめなら 1 度だけ制約を強めて解き直す

    戻り値は (一意かどうか, 最後に使ったソルバー, 強化したかどうか)。
    解が 1 つでも探索上限に達していれば一意とはみなさない。
    """

    for ctx in contexts:
        ctx.board.clear_placements()
    solver = PipsSolver(contexts, domino_ids)
    sols = solver.solve(UNIQUENESS_CAP)
    if len(sols) == 1 and not solver.hit_limit:
        return True, solver, False

    logger.debug(
        "一意解になりませんでした (解 %d 個, 上限到達=%s)", len(sols), solver.hit_limit
    )
    changed = False
    for ctx, smap in zip(contexts, solution_maps):
        if tighten_constraints(ctx.regions, smap, allowed_types):
            changed = True
    if not changed:
        return False, solver, False

    solver = PipsSolver(contexts, domino_ids)
    sols = solver.solve(UNIQUENESS_CAP)
    return len(sols) == 1 and not solver.hit_limit, solver, True


def _solver_stats(solver: PipsSolver, tightened: bool) -> Dict[str, object]:
    """難易度集計用の統計をまとめる"""

    steps = solver.stats["steps"]
    depth = solver.stats["max_depth"]
    return {
        "steps": steps,
        "max_depth": depth,
        "dead_ends": solver.stats["dead_ends"],
        "isolated_prunes": solver.stats["isolated_prunes"],
        "rating": evaluate_difficulty(steps, depth),
        "tightened": tightened,
    }


def _make_dominoes(solution: Sequence[SolutionEntry]) -> List[Domino]:
    return [Domino(entry.domino_id) for entry in solution]


def _try_generate_with_shape(
    shape: BoardShape,
    config: DifficultyConfig,
    single_cell_ratio: float,
    rng: random.Random,
) -> Optional[Puzzle]:
    """1 つの形状で生成を試みる。失敗したら None を返して再試行を促す"""

    board = create_board_from_shape(shape)

    tiling = find_tiling(board, rng)
    if tiling is None:
        logger.debug("敷き詰めが見つかりませんでした")
        return None

    solution = assign_dominoes(tiling, rng)
    if solution is None:
        logger.debug("ドミノの割り当てに失敗しました")
        return None

    smap = solution_values(solution)
    domino_ids = [entry.domino_id for entry in solution]

    active = board.active_count
    min_regions = config.region_count[0]
    max_regions = min(config.region_count[1], active)

    for num_regions in range(min_regions, max_regions + 1):
        for _ in range(PARTITION_ATTEMPTS):
            board.reset_regions()
            regions = create_regions(
                board, num_regions, config.max_region_size, single_cell_ratio, rng
            )
            assign_constraints(regions, smap, config.constraint_types, rng)

            contexts = [BoardContext(board, regions)]
            unique, solver, tightened = _solve_with_tightening(
                contexts, [smap], domino_ids, config.constraint_types
            )
            if not unique:
                continue

            board.clear_placements()
            puzzle = Puzzle(board, regions, _make_dominoes(solution), list(solution))
            try:
                validate_puzzle(puzzle)
            except ValueError as exc:
                # 検証に失敗した場合は別の分割で再試行
                logger.warning("検証失敗: %s", exc)
                continue
            puzzle.stats = _solver_stats(solver, tightened)
            puzzle.stats["regions"] = len(regions)
            return puzzle

    return None


def _candidate_shapes(
    specs: Sequence, no_rectangles: bool
) -> List[BoardShape]:
    shapes = [BoardShape.from_spec(spec) for spec in specs]
    if no_rectangles:
        shapes = [s for s in shapes if not s.is_rectangle]
    return shapes


def generate_puzzle(
    difficulty: str = "easy",
    *,
    no_rectangles: bool = False,
    seed: int | None = None,
    timeout_s: float | None = None,
) -> Puzzle:
    """一意解を持つパズルを生成して返す

    easy / medium は候補形状をランダムに選び直しながら最大
    ``RETRY_LIMIT`` 回試す。hard は大きい形状から順に、全体の持ち時間を
    形状数で等分した時間だけ試す。

    :param difficulty: "easy" / "medium" / "hard"
    :param no_rectangles: True なら長方形以外の形状だけを使う
    :param seed: 乱数シード。再現したいときに指定する
    :param timeout_s: 生成に使う最大秒数。None なら既定の持ち時間を使う
    :raises GenerationError: すべての試行が失敗した場合
    """

    _check_difficulty(difficulty)
    config = DIFFICULTY[difficulty]
    ratio = SINGLE_CELL_RATIO[difficulty]
    shapes = _candidate_shapes(BOARD_SHAPES[difficulty], no_rectangles)
    if not shapes:
        raise GenerationError(f"{difficulty} で使える盤面形状がありません")

    # 乱数生成器を作成。シードを指定すると結果を再現できる
    rng = random.Random(seed)
    start_time = time.perf_counter()
    logger.info("盤面生成開始: difficulty=%s seed=%s", difficulty, seed)

    attempts = 0
    if difficulty == "hard":
        budget = GENERATION_TIME_BUDGET if timeout_s is None else timeout_s
        per_shape = budget / len(shapes)
        for shape in shapes:
            shape_start = time.perf_counter()
            while time.perf_counter() - shape_start < per_shape:
                attempts += 1
                puzzle = _try_generate_with_shape(shape, config, ratio, rng)
                if puzzle is not None:
                    return _finish(puzzle, difficulty, attempts, start_time)
            logger.info("形状 %dx%d を打ち切りました", shape.rows, shape.cols)
    else:
        for _ in range(RETRY_LIMIT):
            if timeout_s is not None and time.perf_counter() - start_time >= timeout_s:
                break
            attempts += 1
            shape = rng.choice(shapes)
            puzzle = _try_generate_with_shape(shape, config, ratio, rng)
            if puzzle is not None:
                return _finish(puzzle, difficulty, attempts, start_time)

    logger.warning("盤面生成失敗: %d 回試行 %.3f 秒", attempts, time.perf_counter() - start_time)
    raise GenerationError(f"failed to generate {difficulty} puzzle - try again")


def _finish(
    puzzle: Puzzle | SplitPuzzle, difficulty: str, attempts: int, start_time: float
) -> Puzzle | SplitPuzzle:
    puzzle.difficulty = difficulty
    puzzle.stats["attempts"] = attempts
    elapsed = time.perf_counter() - start_time
    puzzle.stats["elapsed"] = elapsed
    logger.info("盤面生成成功: %.3f 秒 (%d 回目)", elapsed, attempts)
    return puzzle


def board_to_ascii(board: Board, regions: Sequence[Region]) -> str:
    """盤面とリージョン制約を簡易的なテキストへ変換する

    各マスはリージョン番号と、置かれていればピップ値で表す。
    非アクティブなマスは ``..`` で描く。
    """

    lines: List[str] = []
    for row in board.cells:
        parts = []
        for cell in row:
            if not cell.active:
                parts.append(" .. ")
                continue
            rid = "?" if cell.region_id is None else str(cell.region_id)
            pip = "_" if cell.pip_value is None else str(cell.pip_value)
            parts.append(f" {rid:>1}{pip} ")
        lines.append("|".join(parts))
    for region in sorted(regions, key=lambda r: r.id):
        label = region.label or "-"
        lines.append(f"  region {region.id}: {label} ({region.size} cells)")
    return "\n".join(lines)


def puzzle_to_ascii(puzzle: Puzzle | SplitPuzzle, *, show_solution: bool = False) -> str:
    """パズル情報を簡易的なテキスト盤面へ変換する

    :param show_solution: True なら正解配置のピップ値を書き込んだ状態で描く
    """

    if isinstance(puzzle, SplitPuzzle):
        pairs = list(zip(puzzle.boards, puzzle.regions, puzzle.solutions))
    else:
        pairs = [(puzzle.board, puzzle.regions, puzzle.solution)]

    blocks: List[str] = []
    for bi, (board, regions, solution) in enumerate(pairs):
        if show_solution:
            # 元の盤面を書き換えないよう作業用の盤面に写す
            scratch = Board(board.rows, board.cols)
            for row in board.cells:
                for cell in row:
                    target = scratch.cells[cell.row][cell.col]
                    target.active = cell.active
                    target.region_id = cell.region_id
            for pos, value in solution_values(solution).items():
                scratch.cells[pos.row][pos.col].pip_value = value
            board = scratch
        header = f"--- board {bi} ({board.rows}x{board.cols}) ---"
        blocks.append(header + "\n" + board_to_ascii(board, regions))
    dominoes = " ".join(f"[{d.pips[0]}|{d.pips[1]}]" for d in puzzle.dominoes)
    blocks.append(f"dominoes: {dominoes}")
    return "\n".join(blocks)


__all__ = [
    "GenerationError",
    "PARTITION_ATTEMPTS",
    "setup_logging",
    "generate_puzzle",
    "board_to_ascii",
    "puzzle_to_ascii",
]


if __name__ == "__main__":
    import argparse

    # ログ設定を行う。デフォルトは INFO レベル
    setup_logging()

    parser = argparse.ArgumentParser(description="Pips パズルを生成します")
    parser.add_argument(
        "difficulty",
        choices=list(ALLOWED_DIFFICULTIES),
        nargs="?",
        default="easy",
        help="難易度ラベル",
    )
    parser.add_argument("--split", action="store_true", help="2 枚盤面で生成する")
    parser.add_argument(
        "--no-rectangles", action="store_true", help="長方形の盤面を使わない"
    )
    parser.add_argument("--seed", type=int, default=None, help="乱数シード")
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="タイムアウト秒数 (指定しない場合は既定の持ち時間)",
    )
    parser.add_argument(
        "--show-solution", action="store_true", help="正解配置も表示する"
    )
    args = parser.parse_args()

    if args.split:
        try:
            from .split_generator import generate_split_puzzle
        except ImportError:  # pragma: no cover - スクリプト実行時のフォールバック
            from pipsgen.split_generator import generate_split_puzzle
        pzl: Puzzle | SplitPuzzle = generate_split_puzzle(
            args.difficulty,
            no_rectangles=args.no_rectangles,
            seed=args.seed,
            timeout_s=args.timeout,
        )
    else:
        pzl = generate_puzzle(
            args.difficulty,
            no_rectangles=args.no_rectangles,
            seed=args.seed,
            timeout_s=args.timeout,
        )
    print(puzzle_to_ascii(pzl, show_solution=args.show_solution))
    print(f"stats: {pzl.stats}")
