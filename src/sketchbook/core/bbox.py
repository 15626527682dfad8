# どこで: `src/sketchbook/core/bbox.py`。
# 何を: スケッチのモデル空間を表す軸平行バウンディングボックスを定義する。
# なぜ: スケッチファクトリへ「原点中心のビューポート」を渡し、レイアウト計算の基準にするため。

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Box:
    """軸平行の矩形 `[xmin, ymin, xmax, ymax]`。"""

    xmin: float
    ymin: float
    xmax: float
    ymax: float

    def __post_init__(self) -> None:
        if self.xmax < self.xmin or self.ymax < self.ymin:
            raise ValueError(f"Box の max は min 以上である必要がある: {self!r}")

    @classmethod
    def centered(cls, width: float, height: float) -> "Box":
        """原点中心で幅 width・高さ height の Box を返す。"""

        w = float(width)
        h = float(height)
        return cls(-w / 2.0, -h / 2.0, w / 2.0, h / 2.0)

    @property
    def width(self) -> float:
        return float(self.xmax - self.xmin)

    @property
    def height(self) -> float:
        return float(self.ymax - self.ymin)

    @property
    def center(self) -> tuple[float, float]:
        return ((self.xmin + self.xmax) / 2.0, (self.ymin + self.ymax) / 2.0)

    def scale(self, sx: float, sy: float | None = None) -> "Box":
        """原点基準で拡大縮小した Box を返す。"""

        _sx = float(sx)
        _sy = _sx if sy is None else float(sy)
        xs = sorted((self.xmin * _sx, self.xmax * _sx))
        ys = sorted((self.ymin * _sy, self.ymax * _sy))
        return Box(xs[0], ys[0], xs[1], ys[1])

    def inset(self, margin: float) -> "Box":
        """各辺を margin だけ内側へ寄せた Box を返す（縮みきった軸は中心で潰れる）。"""

        m = float(margin)
        cx, cy = self.center
        hw = max(0.0, self.width / 2.0 - m)
        hh = max(0.0, self.height / 2.0 - m)
        return Box(cx - hw, cy - hh, cx + hw, cy + hh)

    def contains(self, x: float, y: float) -> bool:
        return self.xmin <= x <= self.xmax and self.ymin <= y <= self.ymax


__all__ = ["Box"]
