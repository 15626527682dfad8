# どこで: `src/sketchbook/core/random.py`。
# 何を: seed 配列で初期化する Mersenne Twister と、その上の分布ヘルパ（Random）を提供する。
# なぜ: スケッチの乱数を「seed + 呼び出し列」だけで再現し、リサイズ時に同じ値をリプレイできるようにするため。

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import TypeVar

import numpy as np

_logger = logging.getLogger(__name__)

_T = TypeVar("_T")

# create_entropy() が返す seed の長さ（uint32 個数）。
ENTROPY_SIZE = 16

_UINT32_MAX = 0xFFFFFFFF
# 53bit real の最大値 (2^53 - 1) / 2^53 を 1.0 に写すための係数。
_INCLUSIVE_SCALE = float(2**53) / float(2**53 - 1)


def _normalize_seed(seed: Sequence[int]) -> tuple[int, ...]:
    values = tuple(int(v) for v in seed)
    if not values:
        raise ValueError("seed は 1 要素以上の整数列である必要がある")
    for v in values:
        if v < 0 or v > _UINT32_MAX:
            raise ValueError(f"seed の各要素は [0, 2**32) の整数である必要がある: got={v}")
    return values


def create_entropy(size: int = ENTROPY_SIZE) -> tuple[int, ...]:
    """OS エントロピー由来の seed（uint32 列）を返す。"""

    state = np.random.SeedSequence().generate_state(int(size), dtype=np.uint32)
    return tuple(int(v) for v in state)


class MersenneTwister:
    """MT19937 エンジン。

    Notes
    -----
    `numpy.random.RandomState` に uint32 配列を渡すと `init_by_array` で初期化される。
    RandomState のストリームは numpy のバージョン間で固定されているため、同じ seed なら同じ列になる。

    1 回の「プリミティブ draw」は 53bit 精度の実数 1 個（内部 32bit 語 2 個）に相当する。
    `use_count` はこの draw 数であり、エンジン自身が数える。
    """

    def __init__(self, seed: Sequence[int]) -> None:
        self._seed = _normalize_seed(seed)
        self._state = np.random.RandomState(np.asarray(self._seed, dtype=np.uint32))
        self._use_count = 0

    @classmethod
    def seed_with_array(cls, seed: Sequence[int]) -> "MersenneTwister":
        """seed 配列で初期化したエンジンを返す。"""

        return cls(seed)

    @property
    def seed(self) -> tuple[int, ...]:
        return self._seed

    @property
    def use_count(self) -> int:
        """seed 以降に消費したプリミティブ draw 数を返す。"""

        return int(self._use_count)

    def next_double(self) -> float:
        """[0, 1) の実数を 1 つ返す（draw 1 回）。"""

        self._use_count += 1
        return float(self._state.random_sample())

    def next_doubles(self, count: int) -> np.ndarray:
        """[0, 1) の実数を count 個返す（draw count 回）。"""

        n = int(count)
        if n < 0:
            raise ValueError(f"count は 0 以上である必要がある: got={n}")
        self._use_count += n
        return self._state.random_sample(n)

    def discard(self, count: int) -> "MersenneTwister":
        """count 回分の draw を読み捨てる（self を返す）。"""

        n = int(count)
        if n < 0:
            raise ValueError(f"count は 0 以上である必要がある: got={n}")
        if n:
            # random_sample(n) は next_double() を n 回呼ぶのと同じ状態遷移になる。
            self._state.random_sample(n)
            self._use_count += n
        return self


class Random:
    """シード付き乱数生成器。

    Parameters
    ----------
    seed : Sequence[int] | None
        uint32 の列。None の場合は `create_entropy()` で生成し、`seed` として記録する。

    Notes
    -----
    すべての分布はエンジンの draw だけから計算する純関数であり、
    同じ seed と同じ呼び出し列なら出力はビット単位で一致する。
    """

    def __init__(self, seed: Sequence[int] | None = None) -> None:
        if seed is None:
            seed = create_entropy()
            _logger.debug("entropy seed を生成しました: %s", list(seed))
        self._engine = MersenneTwister.seed_with_array(seed)

    @classmethod
    def replay(cls, seed: Sequence[int], used_count: int) -> "Random":
        """seed から作り直し、used_count 回の draw を読み捨てた Random を返す。"""

        random = cls(seed)
        random._engine.discard(int(used_count))
        return random

    @property
    def seed(self) -> tuple[int, ...]:
        return self._engine.seed

    @property
    def use_count(self) -> int:
        """seed 以降に消費したプリミティブ draw 数を返す。"""

        return self._engine.use_count

    def discard(self, count: int) -> "Random":
        """count 回分の draw を読み捨てる（self を返す）。"""

        self._engine.discard(count)
        return self

    # --- 実数 ---

    def real_zero_to_one_exclusive(self) -> float:
        """[0, 1) の実数を返す。"""

        return self._engine.next_double()

    def real_zero_to_one_inclusive(self) -> float:
        """[0, 1] の実数を返す（draw 1 回）。"""

        return min(self._engine.next_double() * _INCLUSIVE_SCALE, 1.0)

    def real(self, min: float, max: float, inclusive: bool = False) -> float:
        """[min, max)（inclusive=True なら [min, max]）の一様実数を返す。"""

        lo = float(min)
        hi = float(max)
        u = self.real_zero_to_one_inclusive() if inclusive else self.real_zero_to_one_exclusive()
        return lo + u * (hi - lo)

    uniform_real = real

    def real_zero_to(self, max: float, inclusive: bool = False) -> float:
        """[0, max) の一様実数を返す。"""

        return self.real(0.0, max, inclusive)

    def minmax(self, minmax: float, inclusive: bool = False) -> float:
        """[-minmax, minmax) の一様実数を返す。"""

        return self.real(-minmax, minmax, inclusive)

    def reals(self, min: float, max: float, size: int | tuple[int, ...]) -> np.ndarray:
        """[min, max) の一様実数配列を返す（draw は要素数ぶん）。"""

        shape = (int(size),) if isinstance(size, int) else tuple(int(s) for s in size)
        count = int(np.prod(shape, dtype=np.int64))
        u = self._engine.next_doubles(count).reshape(shape)
        return float(min) + u * (float(max) - float(min))

    def normal(self, mean: float = 0.0, std: float = 1.0) -> float:
        """Box-Muller 変換による正規乱数を返す（draw 2 回）。"""

        # u は (0, 1] に収まるので log(0) にならない。
        u = 1.0 - self.real_zero_to_one_exclusive()
        v = self.real_zero_to_one_exclusive()
        z = math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v)
        return z * float(std) + float(mean)

    # --- 離散 ---

    def bool(self, probability: float = 0.5) -> bool:
        """probability の確率で True を返す（draw 1 回）。"""

        return self.real_zero_to_one_exclusive() < float(probability)

    def sign(self) -> int:
        """+1 / -1 を等確率で返す。"""

        return -1 if self.bool() else 1

    def integer(self, min: int, max: int) -> int:
        """[min, max] の一様整数を返す（draw 1 回）。"""

        lo = int(min)
        hi = int(max)
        if hi < lo:
            raise ValueError(f"max は min 以上である必要がある: min={lo}, max={hi}")
        span = hi - lo + 1
        return lo + int(self.real_zero_to_one_exclusive() * span)

    def pick(self, items: Sequence[_T]) -> _T:
        """items から 1 要素を一様に選ぶ。"""

        if not items:
            raise ValueError("空の列からは選べない")
        return items[self.integer(0, len(items) - 1)]

    # --- 複合 ---

    def color(self) -> tuple[float, float, float]:
        """RGB（各 [0, 1]）のランダム色を返す。"""

        return (
            self.real_zero_to_one_inclusive(),
            self.real_zero_to_one_inclusive(),
            self.real_zero_to_one_inclusive(),
        )

    def vec2(self, min: float = 0.0, max: float = 1.0) -> np.ndarray:
        """各成分が [min, max) の 2D ベクトルを返す。"""

        x = self.real(min, max)
        y = self.real(min, max)
        return np.array([x, y], dtype=np.float64)


__all__ = ["ENTROPY_SIZE", "MersenneTwister", "Random", "create_entropy"]
