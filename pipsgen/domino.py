"""ドミノ牌を表すモジュール"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .board import CellPos
from .constants import MAX_PIP

# ドミノの識別子は (小さい方, 大きい方) のピップ組
DominoId = Tuple[int, int]


def full_domino_set() -> List[DominoId]:
    """0-0 から 6-6 までの 28 枚をピップ順で返す"""
    return [(a, b) for a in range(MAX_PIP + 1) for b in range(a, MAX_PIP + 1)]


@dataclass
class Domino:
    """ピップ組と向き、配置状態を持つドミノ

    ``orientation`` は 0=横, 1=縦, 2=横(反転), 3=縦(反転) を表す。
    ``placed`` が False のときはトレイにあるものとみなす。
    """

    pips: DominoId
    orientation: int = 0
    placed: bool = False
    cell_a: Optional[CellPos] = field(default=None)
    cell_b: Optional[CellPos] = field(default=None)

    def __post_init__(self) -> None:
        low, high = self.pips
        if not (0 <= low <= MAX_PIP and 0 <= high <= MAX_PIP):
            raise ValueError(f"ピップ値が範囲外です: {self.pips}")
        # 常に (low, high) の正規形で保持する
        self.pips = (min(low, high), max(low, high))

    @property
    def id(self) -> DominoId:
        return self.pips

    @property
    def is_double(self) -> bool:
        return self.pips[0] == self.pips[1]

    @property
    def is_horizontal(self) -> bool:
        return self.orientation % 2 == 0

    def rotate(self) -> None:
        """90 度回転する。ゾロ目は意味のある向きが 2 通りしかない"""
        if self.is_double:
            self.orientation = (self.orientation + 1) % 2
        else:
            self.orientation = (self.orientation + 1) % 4

    def pip_at(self, index: int) -> int:
        """0 ならアンカー側、1 なら反対側のピップ値"""
        if self.orientation < 2:
            return self.pips[0] if index == 0 else self.pips[1]
        return self.pips[1] if index == 0 else self.pips[0]

    def placement_cells(self, row: int, col: int) -> Tuple[CellPos, CellPos]:
        """アンカーを (row, col) に置いたときに占める 2 マス"""
        if self.is_horizontal:
            return CellPos(row, col), CellPos(row, col + 1)
        return CellPos(row, col), CellPos(row + 1, col)

    def place(self, cell_a: CellPos, cell_b: CellPos) -> None:
        self.placed = True
        self.cell_a = CellPos(cell_a.row, cell_a.col)
        self.cell_b = CellPos(cell_b.row, cell_b.col)

    def unplace(self) -> None:
        self.placed = False
        self.cell_a = None
        self.cell_b = None

    def clone(self) -> "Domino":
        """向きだけ引き継いだ未配置のコピー"""
        return Domino(self.pips, orientation=self.orientation)

    def __repr__(self) -> str:
        return f"Domino({self.pips[0]}-{self.pips[1]})"


__all__ = ["DominoId", "Domino", "full_domino_set"]
