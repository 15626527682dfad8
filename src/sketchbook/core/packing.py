# どこで: `src/sketchbook/core/packing.py`。
# 何を: 矩形のランダム分割（rectangle_packing）と、円のランダムフラクタル充填（CirclePacking）を提供する。
# なぜ: スケッチのレイアウト用ヘルパを、seed 付き乱数だけに依存する再現可能な形で共有するため。

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from sketchbook.core.bbox import Box
from sketchbook.core.random import Random

_logger = logging.getLogger(__name__)


def rectangle_packing(bounds: Box, grid_step: int, random: Random) -> list[Box]:
    """bounds を格子線に沿ってランダムに分割した矩形リストを返す。

    Parameters
    ----------
    bounds : Box
        分割対象の矩形。
    grid_step : int
        短辺を何分割した格子を使うか。
    random : Random
        分割判定に使う乱数。格子線が矩形の内部を通るたびに 1 draw 消費する。

    Returns
    -------
    list[Box]
        bounds を隙間なく覆う矩形列。
    """

    steps = int(grid_step)
    if steps <= 0:
        raise ValueError(f"grid_step は正の整数である必要がある: got={grid_step!r}")

    rects = [bounds]
    size = min(bounds.width, bounds.height)
    step = size / steps
    for k in range(1, steps):
        offset = k * step
        _split_rects(rects, random, y=bounds.ymin + offset)
        _split_rects(rects, random, x=bounds.xmin + offset)
    return rects


def _split_rects(
    rects: list[Box],
    random: Random,
    *,
    x: float | None = None,
    y: float | None = None,
) -> None:
    # 末尾に足した分割結果はこの走査では見ない。
    for i in range(len(rects) - 1, -1, -1):
        rect = rects[i]
        if x is not None and rect.xmin < x < rect.xmax:
            if random.real_zero_to_one_inclusive() > 0.5:
                del rects[i]
                rects.append(Box(rect.xmin, rect.ymin, x, rect.ymax))
                rects.append(Box(x, rect.ymin, rect.xmax, rect.ymax))
        if y is not None and rect.ymin < y < rect.ymax:
            if random.real_zero_to_one_inclusive() > 0.5:
                del rects[i]
                rects.append(Box(rect.xmin, rect.ymin, rect.xmax, y))
                rects.append(Box(rect.xmin, y, rect.xmax, rect.ymax))


@dataclass(frozen=True, slots=True)
class Circle:
    x: float
    y: float
    radius: float


def _zeta(z: float) -> float:
    # Hurwitz zeta の近似（Bourke の random fractal tiling）。
    return 1.0 + (z + 3.0) / (z - 1.0) / 2.0 ** (z + 1.0)


class CirclePacking:
    """円のランダムフラクタル充填を 1 個ずつ返すイテレータ。

    i 番目の円の面積は `A_0 * i^-c`（i=0 は A_0）で、`A_0 = 面積 / zeta(c)`。
    配置は bounds 内のランダム位置を `n_tries` 回試し、全て重なれば半径を 0.9 倍して再試行する。

    Notes
    -----
    有限（最大 n_shapes 個）で、やり直すには作り直す必要がある。
    半径が `min_radius` を下回ったら、その時点で打ち切る。
    """

    def __init__(
        self,
        bounds: Box,
        n_shapes: int,
        random: Random,
        *,
        exponent: float | None = None,
        n_tries: int = 100,
        min_radius: float = 0.5,
    ) -> None:
        if int(n_shapes) < 0:
            raise ValueError(f"n_shapes は 0 以上である必要がある: got={n_shapes!r}")
        if int(n_tries) <= 0:
            raise ValueError(f"n_tries は正の整数である必要がある: got={n_tries!r}")
        self._bounds = bounds
        self._n_shapes = int(n_shapes)
        self._random = random
        self._n_tries = int(n_tries)
        self._min_radius = float(min_radius)
        self.exponent = float(exponent) if exponent is not None else random.real(1.1, 1.2)
        self._initial_area = bounds.width * bounds.height / _zeta(self.exponent)

        self._centers = np.zeros((self._n_shapes, 2), dtype=np.float64)
        self._radii = np.zeros((self._n_shapes,), dtype=np.float64)
        self._index = 0
        self._exhausted = False

    @property
    def placed(self) -> list[Circle]:
        """これまでに配置した円。"""

        return [
            Circle(float(x), float(y), float(r))
            for (x, y), r in zip(self._centers[: self._index], self._radii[: self._index])
        ]

    def __iter__(self) -> "CirclePacking":
        return self

    def __next__(self) -> Circle:
        if self._exhausted or self._index >= self._n_shapes:
            self._exhausted = True
            raise StopIteration

        i = self._index
        area = self._initial_area if i == 0 else self._initial_area * i ** (-self.exponent)
        radius = math.sqrt(area / math.pi)
        circle = self._place(radius)
        if circle is None:
            _logger.debug("circle packing を %d 個で打ち切りました", i)
            self._exhausted = True
            raise StopIteration

        self._centers[i] = (circle.x, circle.y)
        self._radii[i] = circle.radius
        self._index = i + 1
        if self._index % 100 == 0:
            _logger.debug("packed %d / %d", self._index, self._n_shapes)
        return circle

    def _place(self, radius: float) -> Circle | None:
        b = self._bounds
        centers = self._centers[: self._index]
        radii = self._radii[: self._index]
        r = float(radius)
        while r >= self._min_radius:
            if 2.0 * r <= min(b.width, b.height):
                for _ in range(self._n_tries):
                    x = self._random.real(b.xmin + r, b.xmax - r)
                    y = self._random.real(b.ymin + r, b.ymax - r)
                    dist = np.hypot(centers[:, 0] - x, centers[:, 1] - y)
                    if not np.any(dist < radii + r):
                        return Circle(x, y, r)
            r *= 0.9
        return None


__all__ = ["Circle", "CirclePacking", "rectangle_packing"]
