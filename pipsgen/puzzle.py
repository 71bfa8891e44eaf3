"""プレイヤーが操作するパズル状態のモジュール

盤面描画やドラッグ操作などの表示側は ``place_domino`` /
``remove_domino`` / ``get_violations`` だけを通してここへアクセスする。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Sequence

from .board import Board, CellPos
from .domino import Domino, DominoId
from .region import Region
from .tiling import SolutionEntry


@dataclass(frozen=True)
class Violation:
    """制約が破れているリージョン。表示側のハイライトに使う"""

    region_id: int
    cells: FrozenSet[CellPos]


def _place_on_board(
    board: Board, domino: Domino, cell_a: CellPos, cell_b: CellPos
) -> bool:
    """盤面へドミノを書き込む。置けなければ何も変更せず False"""

    if domino.placed:
        return False
    a = board.get_cell(cell_a.row, cell_a.col)
    b = board.get_cell(cell_b.row, cell_b.col)
    if a is None or b is None or a is b:
        return False
    if not a.active or not b.active:
        return False
    if a.occupied or b.occupied:
        return False

    # 向きによってどちらのピップがアンカー側に来るかが決まる
    a.domino_id = domino.id
    a.pip_value = domino.pip_at(0)
    b.domino_id = domino.id
    b.pip_value = domino.pip_at(1)
    domino.place(cell_a, cell_b)
    return True


def _clear_from_board(board: Board, domino: Domino) -> None:
    for pos in (domino.cell_a, domino.cell_b):
        if pos is None:
            continue
        cell = board.get_cell(pos.row, pos.col)
        if cell is not None:
            cell.clear()
    domino.unplace()


def _violations(board: Board, regions: Sequence[Region]) -> List[Violation]:
    result = []
    for region in regions:
        if not region.validate(board).valid:
            result.append(Violation(region.id, frozenset(region.cells)))
    return result


def _all_regions_satisfied(board: Board, regions: Sequence[Region]) -> bool:
    for region in regions:
        state = region.validate(board)
        if not state.valid or not state.complete:
            return False
    return True


class Puzzle:
    """1 枚の盤面、リージョン、ドミノ一式、生成時の正解を持つパズル"""

    def __init__(
        self,
        board: Board,
        regions: List[Region],
        dominoes: List[Domino],
        solution: List[SolutionEntry],
    ) -> None:
        self.board = board
        self.regions = regions
        self.dominoes = dominoes
        # 難易度集計用の正解。検証ソルバーは参照しない
        self.solution = solution
        self.difficulty: Optional[str] = None
        self.stats: Dict[str, object] = {}

    def __repr__(self) -> str:
        return (
            f"Puzzle({self.board!r}, regions={len(self.regions)}, "
            f"dominoes={len(self.dominoes)}, difficulty={self.difficulty})"
        )

    def place_domino(self, domino: Domino, cell_a: CellPos, cell_b: CellPos) -> bool:
        """ドミノを 2 マスに置く。範囲外・非アクティブ・使用中なら False"""
        return _place_on_board(self.board, domino, cell_a, cell_b)

    def remove_domino(self, domino: Domino) -> None:
        """置かれていないドミノに対しては何もしない"""
        if not domino.placed:
            return
        _clear_from_board(self.board, domino)

    def clear_placements(self) -> None:
        """置かれているドミノをすべてトレイへ戻す"""
        for domino in self.placed_dominoes():
            self.remove_domino(domino)

    def placed_dominoes(self) -> List[Domino]:
        return [d for d in self.dominoes if d.placed]

    def tray(self) -> List[Domino]:
        return [d for d in self.dominoes if not d.placed]

    def is_solved(self) -> bool:
        """全ドミノが置かれ、全リージョンが満たされていれば True

        生成時の正解とは比較しない。別の置き方でも制約を満たせば解けたとみなす。
        """
        if not all(d.placed for d in self.dominoes):
            return False
        return _all_regions_satisfied(self.board, self.regions)

    def get_violations(self) -> List[Violation]:
        """制約が破れているリージョンの一覧。未完成なだけのものは含まない"""
        return _violations(self.board, self.regions)


class SplitPuzzle:
    """2 枚の盤面でドミノ一式を共有するパズル"""

    def __init__(
        self,
        boards: List[Board],
        regions: List[List[Region]],
        dominoes: List[Domino],
        solutions: List[List[SolutionEntry]],
    ) -> None:
        if len(boards) != len(regions) or len(boards) != len(solutions):
            raise ValueError("boards, regions, solutions の数が一致しません")
        self.boards = boards
        self.regions = regions
        self.dominoes = dominoes
        self.solutions = solutions
        self.difficulty: Optional[str] = None
        self.stats: Dict[str, object] = {}
        # 置かれているドミノがどちらの盤面にあるか
        self._domino_board: Dict[DominoId, int] = {}

    def __repr__(self) -> str:
        return (
            f"SplitPuzzle(boards={self.boards!r}, "
            f"dominoes={len(self.dominoes)}, difficulty={self.difficulty})"
        )

    def get_board(self, board_index: int) -> Board:
        return self.boards[board_index]

    def get_regions(self, board_index: int) -> List[Region]:
        return self.regions[board_index]

    def place_domino(
        self, domino: Domino, board_index: int, cell_a: CellPos, cell_b: CellPos
    ) -> bool:
        """指定した盤面へドミノを置く。置けなければ False"""
        if board_index < 0 or board_index >= len(self.boards):
            return False
        if not _place_on_board(self.boards[board_index], domino, cell_a, cell_b):
            return False
        self._domino_board[domino.id] = board_index
        return True

    def remove_domino(self, domino: Domino) -> None:
        if not domino.placed:
            return
        board_index = self._domino_board.pop(domino.id, None)
        if board_index is None:
            return
        _clear_from_board(self.boards[board_index], domino)

    def board_index_for(self, domino: Domino) -> Optional[int]:
        return self._domino_board.get(domino.id)

    def clear_placements(self) -> None:
        for domino in self.placed_dominoes():
            self.remove_domino(domino)

    def placed_dominoes(self) -> List[Domino]:
        return [d for d in self.dominoes if d.placed]

    def tray(self) -> List[Domino]:
        return [d for d in self.dominoes if not d.placed]

    def is_solved(self) -> bool:
        if not all(d.placed for d in self.dominoes):
            return False
        return all(
            _all_regions_satisfied(board, regions)
            for board, regions in zip(self.boards, self.regions)
        )

    def get_violations(self, board_index: int) -> List[Violation]:
        return _violations(self.boards[board_index], self.regions[board_index])

    def get_all_violations(self) -> List[Violation]:
        result: List[Violation] = []
        for bi in range(len(self.boards)):
            result.extend(self.get_violations(bi))
        return result


__all__ = ["Violation", "Puzzle", "SplitPuzzle"]
