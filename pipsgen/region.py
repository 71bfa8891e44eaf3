"""色分けされたリージョンと制約判定のモジュール"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Set

from .board import Board, CellPos
from .constants import MAX_PIP, ConstraintType


class RegionState(NamedTuple):
    """``validate`` の結果。valid は矛盾なし、complete は全マス埋まり"""

    valid: bool
    complete: bool


@dataclass
class Region:
    """盤面セルの部分集合と 1 つの制約"""

    id: int
    constraint_type: str = ConstraintType.NONE
    # SUM なら合計値、LESS_THAN / GREATER なら境界値
    target: Optional[int] = None
    cells: Set[CellPos] = field(default_factory=set)

    def add_cell(self, row: int, col: int) -> None:
        """生成時にだけ呼ばれる"""
        self.cells.add(CellPos(row, col))

    @property
    def size(self) -> int:
        return len(self.cells)

    def placed_values(self, board: Board) -> List[int]:
        """リージョン内に置かれているピップ値"""
        values = []
        for pos in sorted(self.cells):
            cell = board.get_cell(pos.row, pos.col)
            if cell is not None and cell.pip_value is not None:
                values.append(cell.pip_value)
        return values

    def validate(self, board: Board) -> RegionState:
        """現在の盤面に対して制約が破れていないか調べる

        途中状態でも判定できるよう、まだ埋まっていないマスは
        制約を満たす可能性があるものとして扱う。
        """

        values: List[int] = []
        total = 0
        for pos in self.cells:
            cell = board.get_cell(pos.row, pos.col)
            if cell is None:
                continue
            total += 1
            if cell.pip_value is not None:
                values.append(cell.pip_value)

        full = len(values) == total
        ctype = self.constraint_type

        if ctype == ConstraintType.EQUAL:
            if not values:
                return RegionState(True, False)
            return RegionState(all(v == values[0] for v in values), full)

        if ctype == ConstraintType.NOT_EQUAL:
            if not values:
                return RegionState(True, False)
            return RegionState(len(set(values)) == len(values), full)

        if ctype == ConstraintType.SUM:
            target = self._require_target()
            current = sum(values)
            if full:
                return RegionState(current == target, True)
            # 残りのマスに最大 6 ずつ置けば届くかどうか
            remaining = total - len(values)
            reachable = current <= target and current + remaining * MAX_PIP >= target
            return RegionState(reachable, False)

        if ctype == ConstraintType.LESS_THAN:
            target = self._require_target()
            return RegionState(all(v < target for v in values), full)

        if ctype == ConstraintType.GREATER:
            target = self._require_target()
            return RegionState(all(v > target for v in values), full)

        return RegionState(True, full)

    def _require_target(self) -> int:
        if self.target is None:
            raise ValueError(
                f"リージョン {self.id} の {self.constraint_type} 制約に target がありません"
            )
        return self.target

    @property
    def label(self) -> str:
        """盤面に表示する制約ラベル"""
        if self.constraint_type == ConstraintType.EQUAL:
            return "="
        if self.constraint_type == ConstraintType.NOT_EQUAL:
            return "≠"
        if self.constraint_type == ConstraintType.SUM:
            return str(self.target)
        if self.constraint_type == ConstraintType.LESS_THAN:
            return f"<{self.target}"
        if self.constraint_type == ConstraintType.GREATER:
            return f">{self.target}"
        return ""


__all__ = ["RegionState", "Region"]
