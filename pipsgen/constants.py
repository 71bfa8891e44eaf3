"""共通定数や簡易ヘルパー関数を定義するモジュール"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

import numpy as np


class ConstraintType:
    """リージョンに付与する制約の種類"""

    NONE = "none"
    EQUAL = "equal"
    NOT_EQUAL = "not_equal"
    SUM = "sum"
    LESS_THAN = "less_than"
    GREATER = "greater"


ALL_CONSTRAINT_TYPES = (
    ConstraintType.NONE,
    ConstraintType.EQUAL,
    ConstraintType.NOT_EQUAL,
    ConstraintType.SUM,
    ConstraintType.LESS_THAN,
    ConstraintType.GREATER,
)

# ドミノ片側に載るピップ値の範囲
PIP_VALUES: Tuple[int, ...] = tuple(range(7))
MAX_PIP = 6

# ソルバー 1 回あたりの再帰呼び出し上限
MAX_SOLVER_CALLS = 300000

# 生成時に数える解の上限。2 個目が見つかった時点で一意でないと判断できる
UNIQUENESS_CAP = 2

# 生成全体に使う時間 (秒)。候補形状ごとに等分する
GENERATION_TIME_BUDGET = 8.0
SPLIT_GENERATION_TIME_BUDGET = {"easy": 8.0, "medium": 8.0, "hard": 15.0}

# easy/medium でランダムに形状を選び直す回数
RETRY_LIMIT = 200

ALLOWED_DIFFICULTIES = ("easy", "medium", "hard")


@dataclass(frozen=True)
class DifficultyConfig:
    """難易度ごとの生成パラメータ"""

    region_count: Tuple[int, int]  # (最小, 最大)
    max_region_size: int
    constraint_types: Tuple[str, ...]


# difficulty ごとのリージョン数範囲、最大サイズ、使用する制約
DIFFICULTY: Dict[str, DifficultyConfig] = {
    "easy": DifficultyConfig(
        region_count=(4, 6),
        max_region_size=3,
        constraint_types=(
            ConstraintType.EQUAL,
            ConstraintType.SUM,
            ConstraintType.NONE,
        ),
    ),
    "medium": DifficultyConfig(
        region_count=(5, 8),
        max_region_size=3,
        constraint_types=(
            ConstraintType.EQUAL,
            ConstraintType.NOT_EQUAL,
            ConstraintType.SUM,
            ConstraintType.LESS_THAN,
            ConstraintType.NONE,
        ),
    ),
    "hard": DifficultyConfig(
        region_count=(6, 10),
        max_region_size=4,
        constraint_types=(
            ConstraintType.EQUAL,
            ConstraintType.NOT_EQUAL,
            ConstraintType.SUM,
            ConstraintType.LESS_THAN,
            ConstraintType.GREATER,
            ConstraintType.NONE,
        ),
    ),
}

# 単一セルのまま残すリージョンの割合
SINGLE_CELL_RATIO = {"easy": 0.3, "medium": 0.3, "hard": 0.5}
SPLIT_SINGLE_CELL_RATIO = {"easy": 0.3, "medium": 0.3, "hard": 0.15}


def _mask(rows: List[List[int]]) -> np.ndarray:
    """0/1 の二次元リストを uint8 配列へ変換する小さなヘルパー"""

    return np.array(rows, dtype=np.uint8)


# 盤面形状の定義。mask が None のものは長方形
# 値は (rows, cols, mask) のタプルで、board.BoardShape に変換して使う
ShapeSpec = Tuple[int, int, "np.ndarray | None"]

_L_SHAPE = _mask([[1, 1, 0], [1, 0, 0], [1, 1, 1]])
_L_SHAPE_MIRROR = _mask([[0, 1, 1], [0, 0, 1], [1, 1, 1]])
_CORNER_NOTCH = _mask([[0, 1, 1], [1, 1, 1], [1, 1, 1]])
_TAPERED = _mask([[1, 1, 1, 1], [1, 1, 1, 1], [0, 1, 1, 0]])
_DIAMOND = _mask([[0, 1, 1, 0], [1, 1, 1, 1], [0, 1, 1, 0]])
_PLUS = _mask([[0, 1, 0], [1, 1, 1], [1, 1, 1], [0, 1, 0]])
_S_STEP = _mask([[0, 1, 1, 1], [1, 1, 1, 1], [1, 1, 1, 0]])
_FAT_CROSS = _mask([[0, 1, 1, 0], [1, 1, 1, 1], [1, 1, 1, 1], [0, 1, 1, 0]])
# 市松模様で塗ると 8 対 4 になり、敷き詰めが存在しない
_BIG_CROSS = _mask(
    [
        [0, 0, 1, 0, 0],
        [0, 1, 1, 1, 0],
        [1, 1, 1, 1, 1],
        [0, 1, 1, 1, 0],
    ]
)
_U_SHAPE = _mask([[1, 1, 1, 1], [1, 0, 0, 1], [1, 0, 0, 1], [1, 1, 1, 1]])
_H_SHAPE = _mask([[1, 0, 0, 1], [1, 1, 1, 1], [1, 1, 1, 1], [1, 0, 0, 1]])
# 市松模様で 9 対 7 になり、敷き詰めが存在しない
_THICK_PLUS = _mask(
    [
        [0, 1, 1, 0, 0],
        [1, 1, 1, 1, 0],
        [1, 1, 1, 1, 1],
        [0, 1, 1, 1, 0],
        [0, 0, 1, 1, 0],
    ]
)

BOARD_SHAPES: Dict[str, List[ShapeSpec]] = {
    "easy": [
        (2, 3, None),  # 6 セル
        (2, 4, None),  # 8 セル
        (2, 5, None),  # 10 セル
        (3, 3, _L_SHAPE),  # L 字 6 セル
        (3, 3, _CORNER_NOTCH),  # 角欠け 8 セル
        (3, 4, _TAPERED),  # 先細り 10 セル
    ],
    "medium": [
        (3, 4, None),  # 12 セル
        (2, 6, None),  # 12 セル
        (3, 4, _DIAMOND),  # ひし形 8 セル
        (4, 3, _PLUS),  # 十字 8 セル
        (3, 4, _S_STEP),  # 段差 10 セル
        (4, 4, _FAT_CROSS),  # 太十字 12 セル
    ],
    # hard は先頭から順に試すので大きい形状を前に置く
    "hard": [
        (4, 4, None),  # 16 セル
        (2, 8, None),  # 16 セル
        (3, 4, None),  # 12 セル
        (4, 5, _BIG_CROSS),  # 大十字 12 セル (敷き詰め不可)
        (4, 4, _U_SHAPE),  # U 字 12 セル
        (4, 4, _H_SHAPE),  # H 字 12 セル
        (5, 5, _THICK_PLUS),  # 厚い十字 16 セル (敷き詰め不可)
    ],
}

# 分割モード用の盤面ペア
SPLIT_BOARD_SHAPES: Dict[str, List[Tuple[ShapeSpec, ShapeSpec]]] = {
    "easy": [
        ((2, 3, None), (2, 3, None)),
        ((2, 2, None), (2, 3, None)),
        ((3, 3, _L_SHAPE), (3, 3, _L_SHAPE_MIRROR)),
        ((3, 3, _L_SHAPE), (2, 3, None)),
    ],
    "medium": [
        ((2, 3, None), (2, 4, None)),
        ((2, 4, None), (2, 4, None)),
        ((3, 4, _DIAMOND), (3, 3, _L_SHAPE)),
        ((3, 4, _S_STEP), (3, 3, _L_SHAPE_MIRROR)),
    ],
    "hard": [
        ((3, 4, None), (3, 4, None)),
        ((4, 4, None), (3, 4, None)),
        ((3, 6, None), (3, 4, None)),
        ((4, 4, None), (4, 4, None)),
        ((4, 4, _U_SHAPE), (4, 4, _H_SHAPE)),
        ((4, 5, _BIG_CROSS), (3, 4, _TAPERED)),  # 大十字側が敷き詰め不可
        ((4, 4, _H_SHAPE), (3, 3, _CORNER_NOTCH)),
        ((4, 4, _U_SHAPE), (3, 4, _TAPERED)),
    ],
}


def evaluate_difficulty(calls: int, depth: int) -> str:
    """ソルバー統計から体感難易度を推定する関数"""

    # 1 手あたりの再帰呼び出し回数が多いほど迷いやすい盤面とみなす
    per_move = calls / max(1, depth)
    if per_move < 4:
        return "easy"
    if per_move < 30:
        return "medium"
    return "hard"


__all__ = [
    "ConstraintType",
    "ALL_CONSTRAINT_TYPES",
    "PIP_VALUES",
    "MAX_PIP",
    "MAX_SOLVER_CALLS",
    "UNIQUENESS_CAP",
    "GENERATION_TIME_BUDGET",
    "SPLIT_GENERATION_TIME_BUDGET",
    "RETRY_LIMIT",
    "ALLOWED_DIFFICULTIES",
    "DifficultyConfig",
    "DIFFICULTY",
    "SINGLE_CELL_RATIO",
    "SPLIT_SINGLE_CELL_RATIO",
    "BOARD_SHAPES",
    "SPLIT_BOARD_SHAPES",
    "evaluate_difficulty",
]
