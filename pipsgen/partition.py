"""盤面をリージョンへ分割するモジュール"""

from __future__ import annotations

import logging
import math
import random
from typing import List, Set

import numpy as np
from numba import njit

from .board import Board, Cell, CellPos
from .region import Region

logger = logging.getLogger(__name__)


@njit(cache=True)
def _farthest_first_order(coords: np.ndarray) -> np.ndarray:
    """先頭から順に、既に選んだ点への最短マンハッタン距離が最大の点を選ぶ

    ``coords`` は (n, 2) の整数配列。戻り値は並べ替え後の添字配列で、
    先頭は常に 0。距離が同じ場合は添字の小さい方を採用する。
    """

    n = coords.shape[0]
    order = np.empty(n, dtype=np.int64)
    used = np.zeros(n, dtype=np.bool_)
    if n == 0:
        return order
    order[0] = 0
    used[0] = True
    for k in range(1, n):
        best_idx = -1
        best_dist = -1
        for i in range(n):
            if used[i]:
                continue
            min_dist = 1 << 30
            for j in range(k):
                s = order[j]
                d = abs(coords[i, 0] - coords[s, 0]) + abs(coords[i, 1] - coords[s, 1])
                if d < min_dist:
                    min_dist = d
            if min_dist > best_dist:
                best_dist = min_dist
                best_idx = i
        order[k] = best_idx
        used[best_idx] = True
    return order


def _warmup_numba() -> None:
    """Numba コンパイルを import 時に済ませるウォームアップ関数"""

    # 2 点のダミー座標で JIT を走らせる
    dummy: np.ndarray = np.zeros((2, 2), dtype=np.int64)
    _farthest_first_order(dummy)


_warmup_numba()


def _spread_seeds(seeds: List[Cell]) -> List[Cell]:
    """シードを farthest-first の順に並べ替えて盤面全体へ散らす"""

    coords = np.array([[c.row, c.col] for c in seeds], dtype=np.int64).reshape(-1, 2)
    order = _farthest_first_order(coords)
    return [seeds[int(i)] for i in order]


def _single_cell_count(num_regions: int, ratio: float) -> int:
    """単一セルのまま残すリージョン数。四捨五入で最低 1"""
    return max(1, math.floor(num_regions * ratio + 0.5))


def create_regions(
    board: Board,
    num_regions: int,
    max_region_size: int,
    single_cell_ratio: float,
    rng: random.Random,
) -> List[Region]:
    """アクティブセルを ``num_regions`` 個のリージョンに分割する

    1. ランダムに選んだシードを farthest-first で並べ替える
    2. 一部のリージョンを単一セルのまま固定する
    3. 残りのリージョンを隣接する未所属セルでラウンドロビンに成長させる
    4. 取り残されたセルは隣接する既存リージョンへ吸収する

    4 の段階ではサイズ上限や単一セル指定を無視するため、リージョンが
    想定より大きくなることがある。各セルの ``region_id`` も更新する。

    :param rng: 乱数生成に利用する ``random.Random`` インスタンス
    """

    if num_regions < 1:
        raise ValueError("num_regions は 1 以上を指定してください")

    active = board.active_cells()
    if not active:
        return []
    num_regions = min(num_regions, len(active))

    for cell in active:
        cell.region_id = None

    seeds = _spread_seeds(rng.sample(active, num_regions))
    regions: List[Region] = []
    for i, cell in enumerate(seeds):
        region = Region(i)
        region.add_cell(cell.row, cell.col)
        cell.region_id = i
        regions.append(region)

    single_target = _single_cell_count(num_regions, single_cell_ratio)
    indices = list(range(len(regions)))
    rng.shuffle(indices)
    single_regions: Set[int] = set(indices[:single_target])

    for _ in range(len(active) * 3):
        if all(cell.region_id is not None for cell in active):
            break
        progress = False
        for ri, region in enumerate(regions):
            if ri in single_regions or region.size >= max_region_size:
                continue
            frontier: List[Cell] = []
            seen: Set[CellPos] = set()
            for pos in sorted(region.cells):
                for n in board.neighbors(pos.row, pos.col):
                    if n.region_id is None and n.pos not in seen:
                        seen.add(n.pos)
                        frontier.append(n)
            if not frontier:
                continue
            picked = rng.choice(frontier)
            region.add_cell(picked.row, picked.col)
            picked.region_id = ri
            progress = True
        if not progress:
            break

    # 成長が止まった後の残りセルを隣接リージョンへ吸収する
    # 取り残されたセル同士が隣接している場合に備えて変化がなくなるまで繰り返す
    absorbed = 0
    changed = True
    while changed:
        changed = False
        for cell in active:
            if cell.region_id is not None:
                continue
            for n in board.neighbors(cell.row, cell.col):
                if n.region_id is not None:
                    regions[n.region_id].add_cell(cell.row, cell.col)
                    cell.region_id = n.region_id
                    absorbed += 1
                    changed = True
                    break
    if absorbed:
        logger.debug("未所属セル %d 個を隣接リージョンへ吸収しました", absorbed)

    return regions


__all__ = ["create_regions"]
