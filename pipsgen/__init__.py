"""パズル生成・検証・プレイ用の関数やクラスを公開するパッケージ用モジュール"""

from importlib import import_module
from typing import Any

__all__ = [
    "generate_puzzle",
    "generate_split_puzzle",
    "puzzle_to_ascii",
    "GenerationError",
    "validate_puzzle",
    "Puzzle",
    "SplitPuzzle",
    "Violation",
    "PipsSolver",
    "BoardContext",
    "count_solutions",
]


def __getattr__(name: str) -> Any:
    """必要になったタイミングで対象モジュールを読み込む"""

    if name in {"generate_puzzle", "puzzle_to_ascii", "GenerationError"}:
        module = import_module(".generator", __name__)
        return getattr(module, name)

    if name == "generate_split_puzzle":
        module = import_module(".split_generator", __name__)
        return getattr(module, name)

    if name == "validate_puzzle":
        module = import_module(".validator", __name__)
        return getattr(module, name)

    if name in {"Puzzle", "SplitPuzzle", "Violation"}:
        module = import_module(".puzzle", __name__)
        return getattr(module, name)

    if name in {"PipsSolver", "BoardContext", "count_solutions"}:
        module = import_module(".solver", __name__)
        return getattr(module, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name}")
