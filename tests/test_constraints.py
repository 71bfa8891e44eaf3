import random

from pipsgen.board import CellPos
from pipsgen.constants import ALL_CONSTRAINT_TYPES, ConstraintType
from pipsgen.constraints import _candidates, assign_constraints, tighten_constraints
from pipsgen.region import Region


def _types(values, allowed=ALL_CONSTRAINT_TYPES):
    return {c.constraint_type: c.target for c in _candidates(values, allowed)}


def test_candidates_all_equal() -> None:
    found = _types([2, 2])
    assert found[ConstraintType.SUM] == 4
    assert ConstraintType.EQUAL in found
    assert ConstraintType.NOT_EQUAL not in found
    assert found[ConstraintType.LESS_THAN] == 3
    assert found[ConstraintType.GREATER] == 1
    assert ConstraintType.NONE in found


def test_candidates_extremes() -> None:
    found = _types([6, 0])
    assert ConstraintType.LESS_THAN not in found
    assert ConstraintType.GREATER not in found
    assert ConstraintType.NOT_EQUAL in found


def test_no_candidates_without_real_constraint() -> None:
    assert _candidates([1, 2], [ConstraintType.EQUAL, ConstraintType.NONE]) == []


def test_assign_constraints_hold_for_solution() -> None:
    smap = {CellPos(0, 0): 3, CellPos(0, 1): 3, CellPos(0, 2): 5, CellPos(1, 0): 2}
    regions = [
        Region(0, cells={CellPos(0, 0), CellPos(0, 1)}),
        Region(1, cells={CellPos(0, 2)}),
        Region(2, cells={CellPos(1, 0)}),
    ]
    assign_constraints(regions, smap, ALL_CONSTRAINT_TYPES, random.Random(0))
    # 単一セルは必ず値を固定する SUM
    assert regions[1].constraint_type == ConstraintType.SUM
    assert regions[1].target == 5
    assert regions[2].target == 2
    first = regions[0]
    if first.constraint_type == ConstraintType.SUM:
        assert first.target == 6
    elif first.constraint_type == ConstraintType.LESS_THAN:
        assert first.target == 4
    elif first.constraint_type == ConstraintType.GREATER:
        assert first.target == 2
    else:
        assert first.constraint_type in {ConstraintType.EQUAL, ConstraintType.NONE}


def test_assign_falls_back_to_none() -> None:
    smap = {CellPos(0, 0): 1, CellPos(0, 1): 2}
    regions = [Region(0, cells={CellPos(0, 0), CellPos(0, 1)})]
    assign_constraints(regions, smap, [ConstraintType.EQUAL], random.Random(0))
    assert regions[0].constraint_type == ConstraintType.NONE
    assert regions[0].target is None


def test_tighten_constraints() -> None:
    smap = {CellPos(0, 0): 1, CellPos(0, 1): 4}
    regions = [
        Region(0, ConstraintType.NONE, None, {CellPos(0, 0), CellPos(0, 1)}),
    ]
    assert tighten_constraints(regions, smap, ALL_CONSTRAINT_TYPES)
    assert regions[0].constraint_type == ConstraintType.SUM
    assert regions[0].target == 5
    # 2 回目は変更なし
    assert not tighten_constraints(regions, smap, ALL_CONSTRAINT_TYPES)


def test_tighten_requires_sum() -> None:
    smap = {CellPos(0, 0): 1}
    regions = [Region(0, ConstraintType.NONE, None, {CellPos(0, 0)})]
    assert not tighten_constraints(regions, smap, [ConstraintType.EQUAL])
    assert regions[0].constraint_type == ConstraintType.NONE
