import random

import numpy as np
import pytest

from pipsgen.board import Board, create_board_from_shape
from pipsgen.constants import BOARD_SHAPES
from pipsgen.partition import (
    _farthest_first_order,
    _single_cell_count,
    create_regions,
)


def _assert_partition(board: Board, regions) -> None:
    seen = set()
    for region in regions:
        assert region.cells
        assert not (seen & region.cells)
        seen |= region.cells
        for pos in region.cells:
            assert board.cells[pos.row][pos.col].region_id == region.id
    assert seen == {cell.pos for cell in board.active_cells()}


@pytest.mark.parametrize("seed", range(5))
def test_regions_cover_board(seed: int) -> None:
    board = Board(3, 4)
    regions = create_regions(board, 5, 3, 0.3, random.Random(seed))
    assert len(regions) == 5
    _assert_partition(board, regions)


def test_regions_on_masked_board() -> None:
    board = create_board_from_shape(BOARD_SHAPES["hard"][4])
    regions = create_regions(board, 6, 4, 0.5, random.Random(1))
    _assert_partition(board, regions)


def test_region_count_clamped() -> None:
    board = Board(2, 2)
    regions = create_regions(board, 10, 3, 0.3, random.Random(0))
    assert len(regions) == 4
    assert all(r.size == 1 for r in regions)


def test_region_count_must_be_positive() -> None:
    with pytest.raises(ValueError):
        create_regions(Board(2, 2), 0, 3, 0.3, random.Random(0))


def test_same_seed_same_partition() -> None:
    b1, b2 = Board(3, 4), Board(3, 4)
    r1 = create_regions(b1, 4, 3, 0.3, random.Random(7))
    r2 = create_regions(b2, 4, 3, 0.3, random.Random(7))
    assert [r.cells for r in r1] == [r.cells for r in r2]


def test_single_cell_count_rounds_half_up() -> None:
    assert _single_cell_count(3, 0.5) == 2
    assert _single_cell_count(4, 0.3) == 1
    assert _single_cell_count(1, 0.1) == 1


def test_farthest_first_order() -> None:
    coords = np.array([[0, 0], [0, 1], [3, 3]], dtype=np.int64)
    assert list(_farthest_first_order(coords)) == [0, 2, 1]


def test_seed_kernel_compiled_and_cached() -> None:
    # import 時のウォームアップで型が確定し、ディスクキャッシュも有効
    assert _farthest_first_order.signatures
    assert type(_farthest_first_order._cache).__name__ != "NullCache"
