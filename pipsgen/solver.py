# Pips 用バックトラックソルバーモジュール

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

from .board import Board
from .constants import MAX_PIP, MAX_SOLVER_CALLS, PIP_VALUES, ConstraintType
from .domino import DominoId
from .region import Region

logger = logging.getLogger(__name__)


class SolverCell(NamedTuple):
    """盤面番号付きのセル位置。分割モードでも盤面ごとに区別できる"""

    board_index: int
    row: int
    col: int


# 1 つの解。セルからピップ値への辞書
Assignment = Dict[SolverCell, int]


@dataclass
class BoardContext:
    """ソルバーに渡す盤面とそのリージョン一覧"""

    board: Board
    regions: Sequence[Region] = field(default_factory=list)


@dataclass
class _RegionInfo:
    """探索中に参照するリージョン情報"""

    constraint_type: str
    target: Optional[int]
    members: Tuple[SolverCell, ...]


class PipsSolver:
    """盤面群とドミノ集合から解を数えるバックトラックソルバー

    各セルの値候補はリージョン制約から前向きに絞り込み、候補数と
    空き隣接セル数の積が最小のセルから埋める (MRV)。孤立した空きセルが
    できた時点で枝刈りする。乱数は使わないため、同じ入力なら探索順も
    結果も常に同じになる。

    ``contexts`` が 1 つなら通常モード、2 つなら分割モード。ドミノ集合は
    全盤面で共有する。
    """

    def __init__(
        self,
        contexts: Sequence[BoardContext],
        domino_set: Sequence[DominoId],
        *,
        max_calls: int = MAX_SOLVER_CALLS,
    ) -> None:
        self.contexts = list(contexts)
        self.domino_set = [tuple(sorted(d)) for d in domino_set]
        self.max_calls = max_calls
        self.solutions: List[Assignment] = []
        self.max_solutions = 1
        self.hit_limit = False
        self.stats: Dict[str, int] = {}
        self._calls = 0

        # 盤面ごとに行優先で並べたアクティブセル
        self.cells: List[SolverCell] = []
        self._neighbors: Dict[SolverCell, Tuple[SolverCell, ...]] = {}
        for bi, ctx in enumerate(self.contexts):
            for cell in ctx.board.active_cells():
                key = SolverCell(bi, cell.row, cell.col)
                self.cells.append(key)
                self._neighbors[key] = tuple(
                    SolverCell(bi, n.row, n.col)
                    for n in ctx.board.neighbors(cell.row, cell.col)
                )

        # セルから所属リージョンを引けるようにしておく
        self._region_of: Dict[SolverCell, _RegionInfo] = {}
        for bi, ctx in enumerate(self.contexts):
            for region in ctx.regions:
                members = tuple(
                    SolverCell(bi, pos.row, pos.col) for pos in sorted(region.cells)
                )
                info = _RegionInfo(region.constraint_type, region.target, members)
                for key in members:
                    self._region_of[key] = info

    def solve(self, max_solutions: int = 1) -> List[Assignment]:
        """最大 ``max_solutions`` 個まで解を探して返す

        再帰呼び出しが ``max_calls`` を超えた場合は打ち切り、
        ``hit_limit`` を True にする。
        """

        self.max_solutions = max_solutions
        self.solutions = []
        self._calls = 0
        self.hit_limit = False
        self.stats = {"steps": 0, "max_depth": 0, "isolated_prunes": 0, "dead_ends": 0}

        available = [True] * len(self.domino_set)
        values: Assignment = {}
        self._backtrack(available, values, 0)

        self.hit_limit = self._calls > self.max_calls
        self.stats["steps"] = self._calls
        if self.hit_limit:
            logger.debug(
                "探索上限 %d に達しました (解 %d 個)", self.max_calls, len(self.solutions)
            )
        return self.solutions

    def feasible_values(self, key: SolverCell, values: Assignment) -> Tuple[int, ...]:
        """リージョン制約と配置済みの値から、このセルに置ける値を求める"""

        info = self._region_of.get(key)
        if info is None:
            return PIP_VALUES

        placed = [values[m] for m in info.members if m in values]
        # このセルを埋めた後に残る空きマス数
        remaining = len(info.members) - len(placed) - 1
        ctype = info.constraint_type

        if ctype == ConstraintType.EQUAL:
            return (placed[0],) if placed else PIP_VALUES

        if ctype == ConstraintType.NOT_EQUAL:
            return tuple(v for v in PIP_VALUES if v not in placed)

        if ctype == ConstraintType.SUM and info.target is not None:
            current = sum(placed)
            target = info.target
            result = []
            for v in PIP_VALUES:
                new_sum = current + v
                if new_sum > target:
                    continue
                if new_sum + remaining * MAX_PIP < target:
                    continue
                if remaining == 0 and new_sum != target:
                    continue
                result.append(v)
            return tuple(result)

        if ctype == ConstraintType.LESS_THAN and info.target is not None:
            return tuple(v for v in PIP_VALUES if v < info.target)

        if ctype == ConstraintType.GREATER and info.target is not None:
            return tuple(v for v in PIP_VALUES if v > info.target)

        return PIP_VALUES

    def _empty_neighbors(self, key: SolverCell, values: Assignment) -> List[SolverCell]:
        return [n for n in self._neighbors[key] if n not in values]

    def _most_constrained_empty(self, values: Assignment) -> Optional[SolverCell]:
        """候補数 x 空き隣接数が最小の空きセルを選ぶ

        空き隣接が 0 のセルは即座に返す。そのセルは組めないので
        呼び出し側で行き止まりになる。
        """

        best: Optional[SolverCell] = None
        best_score = None
        for key in self.cells:
            if key in values:
                continue
            empty = len(self._empty_neighbors(key, values))
            if empty == 0:
                return key
            score = len(self.feasible_values(key, values)) * empty
            if best_score is None or score < best_score:
                best_score = score
                best = key
        return best

    def _has_isolated_empty(self, values: Assignment) -> bool:
        """空き隣接を持たない空きセルがあれば True"""

        for key in self.cells:
            if key in values:
                continue
            if not any(n not in values for n in self._neighbors[key]):
                return True
        return False

    def _stop(self) -> bool:
        return len(self.solutions) >= self.max_solutions or self._calls > self.max_calls

    def _backtrack(self, available: List[bool], values: Assignment, depth: int) -> None:
        if len(self.solutions) >= self.max_solutions:
            return
        self._calls += 1
        if self._calls > self.max_calls:
            return
        if depth > self.stats["max_depth"]:
            self.stats["max_depth"] = depth

        cell = self._most_constrained_empty(values)
        if cell is None:
            # 全セルが埋まったので 1 解として記録する
            self.solutions.append(dict(values))
            return

        feasible_a = self.feasible_values(cell, values)
        if not feasible_a:
            self.stats["dead_ends"] += 1
            return

        for partner in self._empty_neighbors(cell, values):
            feasible_b = self.feasible_values(partner, values)
            if not feasible_b:
                continue
            shared = self._region_of.get(cell)
            same_region = shared is not None and shared is self._region_of.get(partner)
            for di, (low, high) in enumerate(self.domino_set):
                if not available[di]:
                    continue
                orientations = [(low, high)] if low == high else [(low, high), (high, low)]
                for val_a, val_b in orientations:
                    if val_a not in feasible_a or val_b not in feasible_b:
                        continue

                    values[cell] = val_a
                    # 2 マスが同じリージョンなら 1 マス目を置いた状態で判定し直す
                    if same_region and val_b not in self.feasible_values(partner, values):
                        del values[cell]
                        continue
                    values[partner] = val_b
                    available[di] = False

                    if self._has_isolated_empty(values):
                        self.stats["isolated_prunes"] += 1
                    else:
                        self._backtrack(available, values, depth + 1)

                    del values[cell]
                    del values[partner]
                    available[di] = True

                    if self._stop():
                        return


def count_solutions(
    contexts: Sequence[BoardContext],
    domino_set: Sequence[DominoId],
    *,
    limit: int = 2,
    return_stats: bool = False,
    step_limit: int | None = None,
) -> int | tuple[int, Dict[str, int]]:
    """解の個数を ``limit`` 個まで数える

    ``return_stats`` が True なら探索統計も返す。統計の ``hit_limit`` は
    探索上限で打ち切ったとき 1 になる。
    """

    solver = PipsSolver(
        contexts,
        domino_set,
        max_calls=MAX_SOLVER_CALLS if step_limit is None else step_limit,
    )
    solutions = solver.solve(limit)
    if return_stats:
        stats = dict(solver.stats)
        stats["hit_limit"] = int(solver.hit_limit)
        return len(solutions), stats
    return len(solutions)


def is_unique_solution(
    contexts: Sequence[BoardContext],
    domino_set: Sequence[DominoId],
    *,
    step_limit: int | None = None,
) -> bool:
    """解がちょうど 1 つで、かつ探索上限に達していないときだけ True"""

    solver = PipsSolver(
        contexts,
        domino_set,
        max_calls=MAX_SOLVER_CALLS if step_limit is None else step_limit,
    )
    solutions = solver.solve(2)
    return len(solutions) == 1 and not solver.hit_limit


__all__ = [
    "SolverCell",
    "Assignment",
    "BoardContext",
    "PipsSolver",
    "count_solutions",
    "is_unique_solution",
]
