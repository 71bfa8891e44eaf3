"""正解配置からリージョン制約を決めるモジュール"""

from __future__ import annotations

import random
from typing import Iterable, List, Mapping, NamedTuple, Optional, Sequence

from .board import CellPos
from .constants import MAX_PIP, ConstraintType
from .region import Region


class _Candidate(NamedTuple):
    constraint_type: str
    target: Optional[int]
    weight: float


# 重み付き抽選で使う各制約の重み
WEIGHTS = {
    ConstraintType.SUM: 6.0,
    ConstraintType.EQUAL: 8.0,
    ConstraintType.NOT_EQUAL: 5.0,
    ConstraintType.LESS_THAN: 4.0,
    ConstraintType.GREATER: 4.0,
    ConstraintType.NONE: 0.5,
}


def _region_values(region: Region, solution_map: Mapping[CellPos, int]) -> List[int]:
    return [solution_map[pos] for pos in sorted(region.cells)]


def _candidates(values: Sequence[int], allowed: Iterable[str]) -> List[_Candidate]:
    """正解の値で成り立つ制約だけを候補に挙げる"""

    allowed = set(allowed)
    feasible: List[_Candidate] = []

    if ConstraintType.SUM in allowed:
        feasible.append(_Candidate(ConstraintType.SUM, sum(values), WEIGHTS[ConstraintType.SUM]))

    if ConstraintType.EQUAL in allowed and len(values) >= 2 and len(set(values)) == 1:
        feasible.append(_Candidate(ConstraintType.EQUAL, None, WEIGHTS[ConstraintType.EQUAL]))

    if (
        ConstraintType.NOT_EQUAL in allowed
        and len(values) >= 2
        and len(set(values)) == len(values)
    ):
        feasible.append(
            _Candidate(ConstraintType.NOT_EQUAL, None, WEIGHTS[ConstraintType.NOT_EQUAL])
        )

    if ConstraintType.LESS_THAN in allowed and max(values) < MAX_PIP:
        feasible.append(
            _Candidate(
                ConstraintType.LESS_THAN, max(values) + 1, WEIGHTS[ConstraintType.LESS_THAN]
            )
        )

    if ConstraintType.GREATER in allowed and min(values) > 0:
        feasible.append(
            _Candidate(
                ConstraintType.GREATER, min(values) - 1, WEIGHTS[ConstraintType.GREATER]
            )
        )

    # 制約なしは他に候補があるときだけ低確率で混ぜる
    if ConstraintType.NONE in allowed and feasible:
        feasible.append(_Candidate(ConstraintType.NONE, None, WEIGHTS[ConstraintType.NONE]))

    return feasible


def assign_constraints(
    regions: Sequence[Region],
    solution_map: Mapping[CellPos, int],
    allowed_types: Iterable[str],
    rng: random.Random,
) -> None:
    """各リージョンに、正解配置で成り立つ制約を重み付き乱数で割り当てる

    単一セルのリージョンは SUM が使えるなら必ず SUM にして値を固定する。
    候補が 1 つもなければ NONE になる。

    :param solution_map: セル位置から正解ピップ値への辞書
    :param allowed_types: 難易度ごとに使える制約の種類
    :param rng: 乱数生成に利用する ``random.Random`` インスタンス
    """

    allowed = tuple(allowed_types)
    for region in regions:
        values = _region_values(region, solution_map)
        if not values:
            region.constraint_type = ConstraintType.NONE
            region.target = None
            continue

        if len(values) == 1 and ConstraintType.SUM in allowed:
            region.constraint_type = ConstraintType.SUM
            region.target = values[0]
            continue

        feasible = _candidates(values, allowed)
        if not feasible:
            region.constraint_type = ConstraintType.NONE
            region.target = None
            continue

        chosen = rng.choices(feasible, weights=[f.weight for f in feasible])[0]
        region.constraint_type = chosen.constraint_type
        region.target = chosen.target


def tighten_constraints(
    regions: Sequence[Region],
    solution_map: Mapping[CellPos, int],
    allowed_types: Iterable[str],
) -> bool:
    """制約なしのリージョンを正解の合計値を持つ SUM に置き換える

    一意解にならなかったときに 1 度だけ使う。何か変更したら True。
    """

    if ConstraintType.SUM not in set(allowed_types):
        return False
    changed = False
    for region in regions:
        if region.constraint_type != ConstraintType.NONE:
            continue
        region.constraint_type = ConstraintType.SUM
        region.target = sum(_region_values(region, solution_map))
        changed = True
    return changed


__all__ = ["WEIGHTS", "assign_constraints", "tighten_constraints"]
