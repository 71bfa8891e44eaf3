"""盤面とセルを表すデータ構造のモジュール"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

import numpy as np

from .constants import ShapeSpec

# 上下左右の順で隣接セルを調べる
DIRECTIONS: Tuple[Tuple[int, int], ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))


@dataclass(frozen=True, order=True)
class CellPos:
    """盤面上の位置。辞書や集合のキーとしてそのまま使う"""

    row: int
    col: int

    def __iter__(self) -> Iterator[int]:
        yield self.row
        yield self.col


@dataclass
class Cell:
    """盤面の 1 マス"""

    row: int
    col: int
    active: bool = True
    region_id: Optional[int] = None
    # domino_id と pip_value は必ず同時に設定・解除する
    domino_id: Optional[Tuple[int, int]] = None
    pip_value: Optional[int] = None

    @property
    def pos(self) -> CellPos:
        return CellPos(self.row, self.col)

    @property
    def occupied(self) -> bool:
        return self.domino_id is not None

    def clear(self) -> None:
        """ドミノの配置情報を取り除く"""
        self.domino_id = None
        self.pip_value = None


@dataclass(frozen=True, eq=False)
class BoardShape:
    """盤面形状。``mask`` が None なら全マス有効な長方形"""

    rows: int
    cols: int
    mask: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        if self.rows <= 0 or self.cols <= 0:
            raise ValueError("rows と cols は 1 以上を指定してください")
        if self.mask is not None and self.mask.shape != (self.rows, self.cols):
            raise ValueError("mask の形状が rows x cols と一致しません")

    @classmethod
    def from_spec(cls, spec: ShapeSpec) -> "BoardShape":
        rows, cols, mask = spec
        return cls(rows=rows, cols=cols, mask=mask)

    @property
    def is_rectangle(self) -> bool:
        return self.mask is None

    @property
    def cell_count(self) -> int:
        if self.mask is None:
            return self.rows * self.cols
        return int(np.count_nonzero(self.mask))


class Board:
    """固定サイズの盤面。非アクティブなマスは問題に参加しない"""

    def __init__(self, rows: int, cols: int) -> None:
        self.rows = rows
        self.cols = cols
        self.cells: List[List[Cell]] = [
            [Cell(r, c) for c in range(cols)] for r in range(rows)
        ]

    @classmethod
    def from_shape(cls, shape: BoardShape) -> "Board":
        """形状定義から盤面を作る。mask が 0 のマスは非アクティブになる"""

        board = cls(shape.rows, shape.cols)
        if shape.mask is not None:
            for r, c in zip(*np.nonzero(shape.mask == 0)):
                board.cells[int(r)][int(c)].active = False
        return board

    def __repr__(self) -> str:
        return f"Board({self.rows}x{self.cols}, active={self.active_count})"

    def get_cell(self, row: int, col: int) -> Optional[Cell]:
        """範囲外なら None を返す"""
        if row < 0 or row >= self.rows or col < 0 or col >= self.cols:
            return None
        return self.cells[row][col]

    def active_cells(self) -> List[Cell]:
        """行優先順のアクティブセル一覧"""
        return [cell for row in self.cells for cell in row if cell.active]

    @property
    def active_count(self) -> int:
        return sum(1 for row in self.cells for cell in row if cell.active)

    def empty_cells(self) -> List[Cell]:
        return [cell for cell in self.active_cells() if cell.domino_id is None]

    def neighbors(self, row: int, col: int) -> List[Cell]:
        """上下左右で隣接するアクティブセルを返す"""
        result = []
        for dr, dc in DIRECTIONS:
            cell = self.get_cell(row + dr, col + dc)
            if cell is not None and cell.active:
                result.append(cell)
        return result

    def adjacent_pairs(self) -> List[Tuple[Cell, Cell]]:
        """隣接するアクティブセルの組を右方向・下方向だけ列挙する"""
        pairs: List[Tuple[Cell, Cell]] = []
        for r in range(self.rows):
            for c in range(self.cols):
                cell = self.cells[r][c]
                if not cell.active:
                    continue
                right = self.get_cell(r, c + 1)
                if right is not None and right.active:
                    pairs.append((cell, right))
                down = self.get_cell(r + 1, c)
                if down is not None and down.active:
                    pairs.append((cell, down))
        return pairs

    def is_connected(self) -> bool:
        """アクティブセルが 4 近傍で連結しているか幅優先探索で調べる"""

        active = self.active_cells()
        if not active:
            return True
        start = active[0].pos
        visited = {start}
        queue = deque([start])
        while queue:
            r, c = queue.popleft()
            for n in self.neighbors(r, c):
                if n.pos not in visited:
                    visited.add(n.pos)
                    queue.append(n.pos)
        return len(visited) == len(active)

    def clear_placements(self) -> None:
        for cell in self.active_cells():
            cell.clear()

    def reset_regions(self) -> None:
        for cell in self.active_cells():
            cell.region_id = None


def create_board_from_shape(spec: ShapeSpec | BoardShape) -> Board:
    """定数テーブルの形状定義から盤面を作成する"""

    shape = spec if isinstance(spec, BoardShape) else BoardShape.from_spec(spec)
    return Board.from_shape(shape)


__all__ = [
    "DIRECTIONS",
    "CellPos",
    "Cell",
    "BoardShape",
    "Board",
    "create_board_from_shape",
]
