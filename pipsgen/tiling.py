"""ランダムなドミノ敷き詰めと牌の割り当てを行うモジュール"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .board import Board, CellPos
from .domino import DominoId, full_domino_set

# 隣接する 2 マスの組。敷き詰め 1 枚分に相当する
CellPair = Tuple[CellPos, CellPos]


@dataclass(frozen=True)
class SolutionEntry:
    """生成時に決めた正解配置の 1 枚分"""

    cell_a: CellPos
    cell_b: CellPos
    pip_a: int
    pip_b: int
    domino_id: DominoId


def find_tiling(board: Board, rng: random.Random) -> Optional[List[CellPair]]:
    """アクティブセル全体を隣接 2 マスの組で敷き詰める

    左上から順に未被覆セルを取り、隣接する未被覆セルを乱数順に試す
    バックトラック法。最初に見つかった敷き詰めを返し、奇数セルなどで
    完全マッチングが存在しなければ ``None`` を返す。

    :param rng: 隣接セルの試行順を決める ``random.Random`` インスタンス
    """

    cells = sorted(cell.pos for cell in board.active_cells())
    if len(cells) % 2 == 1:
        return None

    covered: Set[CellPos] = set()
    tiling: List[CellPair] = []

    def backtrack(idx: int) -> bool:
        # 被覆済みのセルは読み飛ばす
        while idx < len(cells) and cells[idx] in covered:
            idx += 1
        if idx >= len(cells):
            return True
        pos = cells[idx]
        candidates = [
            n.pos for n in board.neighbors(pos.row, pos.col) if n.pos not in covered
        ]
        rng.shuffle(candidates)
        for partner in candidates:
            covered.add(pos)
            covered.add(partner)
            tiling.append((pos, partner))
            if backtrack(idx + 1):
                return True
            covered.discard(pos)
            covered.discard(partner)
            tiling.pop()
        return False

    return tiling if backtrack(0) else None


def assign_dominoes(
    pairs: Sequence[CellPair],
    rng: random.Random,
    domino_set: Optional[Sequence[DominoId]] = None,
) -> Optional[List[SolutionEntry]]:
    """敷き詰めの各組へ重複なくドミノを割り当てる

    組ごとに試行順を乱数で並べ替えるバックトラック。``cell_a`` には
    小さい方のピップ、``cell_b`` には大きい方のピップが入る。
    割り当てられなかった場合は ``None`` を返して再試行を促す。
    """

    full = list(domino_set) if domino_set is not None else full_domino_set()
    if len(pairs) > len(full):
        return None

    available = [True] * len(full)
    result: List[SolutionEntry] = []

    def backtrack(idx: int) -> bool:
        if idx >= len(pairs):
            return True
        order = list(range(len(full)))
        rng.shuffle(order)
        cell_a, cell_b = pairs[idx]
        for i in order:
            if not available[i]:
                continue
            available[i] = False
            low, high = full[i]
            result.append(SolutionEntry(cell_a, cell_b, low, high, (low, high)))
            if backtrack(idx + 1):
                return True
            result.pop()
            available[i] = True
        return False

    return result if backtrack(0) else None


def solution_values(solution: Sequence[SolutionEntry]) -> Dict[CellPos, int]:
    """正解配置からセルごとのピップ値を引ける辞書を作る"""

    values: Dict[CellPos, int] = {}
    for entry in solution:
        values[entry.cell_a] = entry.pip_a
        values[entry.cell_b] = entry.pip_b
    return values


def is_perfect_tiling(board: Board, pairs: Sequence[CellPair]) -> bool:
    """全アクティブセルをちょうど 1 回ずつ、隣接する組で覆っているか"""

    active = {cell.pos for cell in board.active_cells()}
    seen: Set[CellPos] = set()
    for a, b in pairs:
        if a not in active or b not in active:
            return False
        if abs(a.row - b.row) + abs(a.col - b.col) != 1:
            return False
        if a in seen or b in seen:
            return False
        seen.add(a)
        seen.add(b)
    return seen == active


__all__ = [
    "CellPair",
    "SolutionEntry",
    "find_tiling",
    "assign_dominoes",
    "solution_values",
    "is_perfect_tiling",
]
