import random
import time
from collections import Counter
from typing import Dict, Optional

from . import generator
from .split_generator import generate_split_puzzle


def _shape_key(puzzle) -> str:
    boards = getattr(puzzle, "boards", None) or [puzzle.board]
    return " + ".join(f"{b.rows}x{b.cols}({b.active_count})" for b in boards)


def run(
    difficulty: str,
    n: int = 1,
    *,
    split: bool = False,
    seed: Optional[int] = None,
) -> Dict[str, object]:
    """指定回数パズルを生成して成功数と平均時間を返す簡易ベンチマーク関数"""
    rng = random.Random(seed)
    total = 0.0
    passed = 0
    shapes: Counter = Counter()
    for _ in range(n):
        start = time.perf_counter()
        try:
            if split:
                puzzle = generate_split_puzzle(difficulty, seed=rng.randint(0, 2**32))
            else:
                puzzle = generator.generate_puzzle(difficulty, seed=rng.randint(0, 2**32))
        except generator.GenerationError as exc:
            print(f"失敗: {exc}")
        else:
            passed += 1
            shapes[_shape_key(puzzle)] += 1
        total += time.perf_counter() - start
    avg = total / n if n else 0.0
    print(f"成功: {passed}/{n}")
    print(f"平均生成時間: {avg:.3f} 秒")
    for key, count in shapes.most_common():
        print(f"  {key}: {count}")
    return {"passed": passed, "average": avg, "shapes": dict(shapes)}


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="パズル生成ベンチマーク")
    parser.add_argument("difficulty", choices=["easy", "medium", "hard"], help="難易度")
    parser.add_argument("-n", type=int, default=1, help="生成回数")
    parser.add_argument("--split", action="store_true", help="分割パズルを生成する")
    parser.add_argument("--seed", type=int, help="乱数シード")
    args = parser.parse_args()
    generator.setup_logging()
    run(args.difficulty, args.n, split=args.split, seed=args.seed)
