"""2 枚盤面でドミノ一式を共有する分割パズルの生成モジュール"""

from __future__ import annotations

import logging
import random
import time
from typing import List, Optional, Tuple

from .board import BoardShape, create_board_from_shape
from .constants import (
    DIFFICULTY,
    SPLIT_BOARD_SHAPES,
    SPLIT_GENERATION_TIME_BUDGET,
    SPLIT_SINGLE_CELL_RATIO,
    DifficultyConfig,
)
from .constraints import assign_constraints
from .generator import (
    GenerationError,
    _check_difficulty,
    _finish,
    _make_dominoes,
    _solve_with_tightening,
    _solver_stats,
)
from .partition import create_regions
from .puzzle import SplitPuzzle
from .solver import BoardContext
from .tiling import assign_dominoes, find_tiling, solution_values
from .validator import validate_puzzle

logger = logging.getLogger(__name__)

# 単一セル比率が低いと一意解になりにくいので分割の試行回数を増やす
LOW_RATIO_THRESHOLD = 0.2
LOW_RATIO_ATTEMPTS = 12
DEFAULT_ATTEMPTS = 5

ShapePair = Tuple[BoardShape, BoardShape]


def _region_count(lo: int, hi: int, active: int, rng: random.Random) -> int:
    """盤面のセル数で上限を抑えたうえでリージョン数を乱数で決める"""

    cap = min(hi, active)
    return rng.randint(min(lo, cap), cap)


def _try_generate_split(
    pair: ShapePair,
    config: DifficultyConfig,
    single_cell_ratio: float,
    rng: random.Random,
) -> Optional[SplitPuzzle]:
    boards = [create_board_from_shape(shape) for shape in pair]

    tilings = []
    for board in boards:
        tiling = find_tiling(board, rng)
        if tiling is None:
            return None
        tilings.append(tiling)

    # 2 枚で同じドミノを使わないよう、敷き詰めを連結して一度に割り当てる
    combined = assign_dominoes(tilings[0] + tilings[1], rng)
    if combined is None:
        return None
    count_a = len(tilings[0])
    solutions = [combined[:count_a], combined[count_a:]]
    smaps = [solution_values(sol) for sol in solutions]
    domino_ids = [entry.domino_id for entry in combined]

    lo, hi = config.region_count
    attempts = LOW_RATIO_ATTEMPTS if single_cell_ratio < LOW_RATIO_THRESHOLD else DEFAULT_ATTEMPTS
    for _ in range(attempts):
        region_lists = []
        for board, smap in zip(boards, smaps):
            board.reset_regions()
            num = _region_count(lo, hi, board.active_count, rng)
            regions = create_regions(
                board, num, config.max_region_size, single_cell_ratio, rng
            )
            assign_constraints(regions, smap, config.constraint_types, rng)
            region_lists.append(regions)

        contexts = [BoardContext(b, r) for b, r in zip(boards, region_lists)]
        unique, solver, tightened = _solve_with_tightening(
            contexts, smaps, domino_ids, config.constraint_types
        )
        if not unique:
            continue

        for board in boards:
            board.clear_placements()
        puzzle = SplitPuzzle(
            boards, region_lists, _make_dominoes(combined), [list(s) for s in solutions]
        )
        try:
            validate_puzzle(puzzle)
        except ValueError as exc:
            logger.warning("検証失敗: %s", exc)
            continue
        puzzle.stats = _solver_stats(solver, tightened)
        puzzle.stats["regions"] = [len(r) for r in region_lists]
        return puzzle

    return None


def _candidate_pairs(difficulty: str, no_rectangles: bool) -> List[ShapePair]:
    pairs = [
        (BoardShape.from_spec(a), BoardShape.from_spec(b))
        for a, b in SPLIT_BOARD_SHAPES[difficulty]
    ]
    if no_rectangles:
        # 両方とも長方形でない組だけを残す
        pairs = [p for p in pairs if not p[0].is_rectangle and not p[1].is_rectangle]
    return pairs


def generate_split_puzzle(
    difficulty: str = "easy",
    *,
    no_rectangles: bool = False,
    seed: int | None = None,
    timeout_s: float | None = None,
) -> SplitPuzzle:
    """2 枚の盤面を持つ分割パズルを生成する

    形状の組を定義順に試し、持ち時間 (hard は 15 秒、それ以外は 8 秒) を
    組の数で等分する。どの組でも一意解が得られなければ
    ``GenerationError`` を送出する。
    """

    _check_difficulty(difficulty)
    config = DIFFICULTY[difficulty]
    ratio = SPLIT_SINGLE_CELL_RATIO[difficulty]
    pairs = _candidate_pairs(difficulty, no_rectangles)
    if not pairs:
        raise GenerationError(f"{difficulty} で使える盤面形状の組がありません")

    rng = random.Random(seed)
    budget = SPLIT_GENERATION_TIME_BUDGET[difficulty] if timeout_s is None else timeout_s
    per_pair = budget / len(pairs)
    start_time = time.perf_counter()
    logger.info("分割盤面生成開始: difficulty=%s seed=%s", difficulty, seed)

    attempts = 0
    for pair in pairs:
        pair_start = time.perf_counter()
        while time.perf_counter() - pair_start < per_pair:
            attempts += 1
            puzzle = _try_generate_split(pair, config, ratio, rng)
            if puzzle is not None:
                return _finish(puzzle, difficulty, attempts, start_time)
        logger.debug(
            "形状の組 %dx%d + %dx%d を打ち切りました",
            pair[0].rows,
            pair[0].cols,
            pair[1].rows,
            pair[1].cols,
        )

    logger.warning("分割盤面生成失敗: %d 回試行", attempts)
    raise GenerationError(f"failed to generate {difficulty} split puzzle - try again")


__all__ = ["generate_split_puzzle"]
