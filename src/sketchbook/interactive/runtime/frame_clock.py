# どこで: `src/sketchbook/interactive/runtime/frame_clock.py`。
# 何を: フレームコールバックへ渡すタイムスタンプ（ミリ秒）の生成元を提供する。
# なぜ: ウィンドウでは実時間、録画ではフレーム番号から決まる時刻を、同じ ms 単位で扱うため。

from __future__ import annotations

import time
from typing import Protocol


class FrameClock(Protocol):
    def now_ms(self) -> float: ...


class MonotonicClock:
    """`perf_counter()` を原点からの経過ミリ秒で返す時計。"""

    def __init__(self, *, origin: float | None = None) -> None:
        self.origin = time.perf_counter() if origin is None else float(origin)

    def seconds(self) -> float:
        return time.perf_counter() - self.origin

    def now_ms(self) -> float:
        return self.seconds() * 1000.0


class FixedStepClock:
    """1 フレームごとに `1000 / fps` ms ずつ進む時計。

    Notes
    -----
    n 番目（0-based）のフレームの時刻は `start_ms + n * step_ms`。
    誤差を溜めないよう、加算ではなく毎回フレーム番号から計算する。
    """

    def __init__(self, *, fps: float, start_ms: float = 0.0) -> None:
        if not float(fps) > 0:
            raise ValueError(f"fps は正の値である必要がある: {fps!r}")
        self.step_ms = 1000.0 / float(fps)
        self.start_ms = float(start_ms)
        self.frames = 0

    def now_ms(self) -> float:
        return self.start_ms + self.frames * self.step_ms

    def next_timestamp(self) -> float:
        """現在フレームの時刻を返し、1 フレーム進める。"""

        stamp = self.now_ms()
        self.frames += 1
        return stamp


__all__ = ["FixedStepClock", "FrameClock", "MonotonicClock"]
