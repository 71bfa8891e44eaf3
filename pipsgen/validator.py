"""生成したパズルの整合性を確認するモジュール"""

from __future__ import annotations

from collections import Counter
from typing import Dict, List, Sequence, Set

from . import sat_unique
from .board import Board, CellPos
from .domino import Domino
from .puzzle import Puzzle, SplitPuzzle
from .region import Region
from .solver import BoardContext
from .tiling import SolutionEntry, is_perfect_tiling, solution_values


def _check_board(board: Board) -> None:
    if board.active_count == 0:
        raise ValueError("アクティブなセルがありません")
    if not board.is_connected():
        raise ValueError("アクティブなセルが連結していません")


def _check_solution(board: Board, solution: Sequence[SolutionEntry]) -> None:
    """正解配置が盤面の完全な敷き詰めになっているか"""

    pairs = [(s.cell_a, s.cell_b) for s in solution]
    if not is_perfect_tiling(board, pairs):
        raise ValueError("正解配置が盤面を過不足なく敷き詰めていません")
    for s in solution:
        if (min(s.pip_a, s.pip_b), max(s.pip_a, s.pip_b)) != s.domino_id:
            raise ValueError(f"正解配置のピップ値がドミノ {s.domino_id} と一致しません")


def _check_regions(board: Board, regions: Sequence[Region]) -> None:
    """リージョンが重ならずに全アクティブセルを覆っているか"""

    active = {cell.pos for cell in board.active_cells()}
    seen: Set[CellPos] = set()
    ids = [r.id for r in regions]
    if len(set(ids)) != len(ids):
        raise ValueError("リージョン ID が重複しています")
    for region in regions:
        if not region.cells:
            raise ValueError(f"リージョン {region.id} が空です")
        if not region.cells <= active:
            raise ValueError(f"リージョン {region.id} に非アクティブなセルが含まれます")
        if seen & region.cells:
            raise ValueError(f"リージョン {region.id} が他のリージョンと重なっています")
        seen |= region.cells
        for pos in region.cells:
            cell = board.get_cell(pos.row, pos.col)
            if cell is not None and cell.region_id != region.id:
                raise ValueError("セルの region_id がリージョン定義と一致しません")
    if seen != active:
        raise ValueError("どのリージョンにも属さないセルがあります")


def _check_constraints(
    board: Board, regions: Sequence[Region], values: Dict[CellPos, int]
) -> None:
    """正解の値を書き込んだ作業用盤面で全リージョンが満たされるか"""

    scratch = Board(board.rows, board.cols)
    for row in board.cells:
        for cell in row:
            scratch.cells[cell.row][cell.col].active = cell.active
    for pos, value in values.items():
        scratch.cells[pos.row][pos.col].pip_value = value
    for region in regions:
        state = region.validate(scratch)
        if not (state.valid and state.complete):
            raise ValueError(f"リージョン {region.id} の制約を正解配置が満たしていません")


def _check_dominoes(dominoes: Sequence[Domino], solution: Sequence[SolutionEntry]) -> None:
    have = Counter(d.id for d in dominoes)
    if any(count > 1 for count in have.values()):
        raise ValueError("同じドミノが複数含まれています")
    if have != Counter(s.domino_id for s in solution):
        raise ValueError("ドミノ一式が正解配置と一致しません")


def validate_puzzle(puzzle: Puzzle | SplitPuzzle, *, check_unique: bool = True) -> None:
    """パズルが仕様を満たすか確認し、問題があれば ``ValueError`` を送出する

    :param check_unique: True なら PySAT で配置が一意かも確認する
    """

    if isinstance(puzzle, SplitPuzzle):
        boards = puzzle.boards
        region_lists = puzzle.regions
        solutions = puzzle.solutions
    else:
        boards = [puzzle.board]
        region_lists = [puzzle.regions]
        solutions = [puzzle.solution]

    combined: List[SolutionEntry] = []
    for board, regions, solution in zip(boards, region_lists, solutions):
        _check_board(board)
        _check_solution(board, solution)
        _check_regions(board, regions)
        _check_constraints(board, regions, solution_values(solution))
        combined.extend(solution)

    _check_dominoes(puzzle.dominoes, combined)

    if check_unique:
        contexts = [BoardContext(b, r) for b, r in zip(boards, region_lists)]
        if not sat_unique.is_unique(contexts, [d.id for d in puzzle.dominoes]):
            raise ValueError("ドミノ配置が一意に決まりません")


__all__ = ["validate_puzzle"]
