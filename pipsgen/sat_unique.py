"""PySAT を使った一意解チェックモジュール

バックトラックソルバーとは独立に、ドミノ配置を CNF へ落として
解の個数を調べる。生成結果の検証に使う。
"""

from __future__ import annotations

import itertools
from typing import Dict, List, Sequence, Tuple

from pysat.formula import CNF, IDPool

# EncType は PySAT で定義されている列挙型で、
# エンコーディング方式を数値で表現します
from pysat.card import CardEnc, EncType
from pysat.solvers import Minisat22

from .board import CellPos
from .constants import PIP_VALUES, ConstraintType
from .domino import DominoId
from .solver import BoardContext, SolverCell

# (盤面番号, セルA, セルB, ドミノ番号, セルAの値, セルBの値)
Placement = Tuple[int, CellPos, CellPos, int, int, int]


def _create_placement_variables(
    contexts: Sequence[BoardContext], domino_set: Sequence[DominoId], pool: IDPool
) -> Dict[Placement, int]:
    """隣接 2 マス x ドミノ x 向きごとに SAT 変数を作る"""

    variables: Dict[Placement, int] = {}
    for bi, ctx in enumerate(contexts):
        for a, b in ctx.board.adjacent_pairs():
            for di, (low, high) in enumerate(domino_set):
                orientations = [(low, high)] if low == high else [(low, high), (high, low)]
                for va, vb in orientations:
                    key = (bi, a.pos, b.pos, di, va, vb)
                    variables[key] = pool.id(("p",) + key)
    return variables


def _value_var(pool: IDPool, cell: SolverCell, value: int) -> int:
    return pool.id(("v", cell.board_index, cell.row, cell.col, value))


def _region_clauses(
    ctype: str, target: int | None, members: List[SolverCell], pool: IDPool
) -> List[List[int]]:
    """リージョン制約を値変数の節に変換する"""

    clauses: List[List[int]] = []
    if ctype == ConstraintType.LESS_THAN and target is not None:
        for cell in members:
            for v in PIP_VALUES:
                if v >= target:
                    clauses.append([-_value_var(pool, cell, v)])
    elif ctype == ConstraintType.GREATER and target is not None:
        for cell in members:
            for v in PIP_VALUES:
                if v <= target:
                    clauses.append([-_value_var(pool, cell, v)])
    elif ctype == ConstraintType.EQUAL:
        for c1, c2 in itertools.combinations(members, 2):
            for v, w in itertools.product(PIP_VALUES, repeat=2):
                if v != w:
                    clauses.append([-_value_var(pool, c1, v), -_value_var(pool, c2, w)])
    elif ctype == ConstraintType.NOT_EQUAL:
        for c1, c2 in itertools.combinations(members, 2):
            for v in PIP_VALUES:
                clauses.append([-_value_var(pool, c1, v), -_value_var(pool, c2, v)])
    elif ctype == ConstraintType.SUM and target is not None and members:
        clauses.extend(_sum_clauses(target, members, pool))
    return clauses


def _sum_clauses(target: int, members: List[SolverCell], pool: IDPool) -> List[List[int]]:
    """部分和変数で SUM 制約を符号化する

    ``s(i, k)`` は「先頭 i マスの合計が k」を表す。s(0, 0) から順に
    値変数で次の段へ伝播させ、各段の部分和変数は高々 1 つだけ真にする。
    節の数はマス数 x target x 7 程度に収まる。
    """

    key = tuple(members)

    def partial(i: int, k: int) -> int:
        return pool.id(("s", key, i, k))

    clauses: List[List[int]] = [[partial(0, 0)]]
    for i, cell in enumerate(members):
        for k in range(target + 1):
            for v in PIP_VALUES:
                if k + v <= target:
                    clauses.append(
                        [-partial(i, k), -_value_var(pool, cell, v), partial(i + 1, k + v)]
                    )
                else:
                    # target を超える値は置けない
                    clauses.append([-partial(i, k), -_value_var(pool, cell, v)])
    for i in range(1, len(members) + 1):
        layer = [partial(i, k) for k in range(target + 1)]
        if len(layer) >= 2:
            clauses.extend(
                CardEnc.atmost(layer, 1, vpool=pool, encoding=EncType.seqcounter).clauses
            )
    clauses.append([partial(len(members), target)])
    return clauses


def _build_cnf(
    contexts: Sequence[BoardContext], domino_set: Sequence[DominoId]
) -> Tuple[CNF, Dict[Placement, int], bool]:
    """CNF と配置変数を返す。明らかに解なしなら 3 番目が False"""

    pool = IDPool()
    placements = _create_placement_variables(contexts, domino_set, pool)
    cnf = CNF()

    covering: Dict[SolverCell, List[int]] = {}
    by_domino: Dict[int, List[int]] = {}
    for (bi, a, b, di, va, vb), var in placements.items():
        cell_a = SolverCell(bi, a.row, a.col)
        cell_b = SolverCell(bi, b.row, b.col)
        covering.setdefault(cell_a, []).append(var)
        covering.setdefault(cell_b, []).append(var)
        by_domino.setdefault(di, []).append(var)
        # 配置すると両マスの値が決まる
        cnf.append([-var, _value_var(pool, cell_a, va)])
        cnf.append([-var, _value_var(pool, cell_b, vb)])

    for bi, ctx in enumerate(contexts):
        for cell in ctx.board.active_cells():
            key = SolverCell(bi, cell.row, cell.col)
            lits = covering.get(key, [])
            if not lits:
                # どのドミノも置けないマスがある
                return cnf, placements, False
            # 各マスはちょうど 1 枚のドミノで覆われる
            cnf.extend(
                CardEnc.equals(lits, 1, vpool=pool, encoding=EncType.seqcounter).clauses
            )
            values = [_value_var(pool, key, v) for v in PIP_VALUES]
            cnf.extend(
                CardEnc.equals(values, 1, vpool=pool, encoding=EncType.seqcounter).clauses
            )

    # 各ドミノは高々 1 回
    for lits in by_domino.values():
        if len(lits) >= 2:
            cnf.extend(
                CardEnc.atmost(lits, 1, vpool=pool, encoding=EncType.seqcounter).clauses
            )

    for bi, ctx in enumerate(contexts):
        for region in ctx.regions:
            members = [SolverCell(bi, pos.row, pos.col) for pos in sorted(region.cells)]
            cnf.extend(_region_clauses(region.constraint_type, region.target, members, pool))

    return cnf, placements, True


def find_layouts(
    contexts: Sequence[BoardContext],
    domino_set: Sequence[DominoId],
    *,
    limit: int = 2,
) -> List[List[Placement]]:
    """制約を満たすドミノ配置を ``limit`` 個まで列挙する"""

    cnf, placements, feasible = _build_cnf(contexts, domino_set)
    if not feasible:
        return []

    layouts: List[List[Placement]] = []
    with Minisat22(bootstrap_with=cnf.clauses) as solver:
        while len(layouts) < limit and solver.solve():
            model = set(lit for lit in solver.get_model() if lit > 0)
            chosen = [key for key, var in placements.items() if var in model]
            layouts.append(chosen)
            # 同じ配置を禁止して次の解を探す
            solver.add_clause([-placements[key] for key in chosen])
    return layouts


def is_unique(contexts: Sequence[BoardContext], domino_set: Sequence[DominoId]) -> bool:
    """与えられた制約からドミノ配置が一意に決まるか確認する"""
    return len(find_layouts(contexts, domino_set, limit=2)) == 1


__all__ = ["Placement", "find_layouts", "is_unique"]
