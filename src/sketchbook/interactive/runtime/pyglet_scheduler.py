# どこで: `src/sketchbook/interactive/runtime/pyglet_scheduler.py`。
# 何を: `pyglet.clock.schedule_once` 上のフレームスケジューラを提供する。
# なぜ: OS 依存のイベント配送を pyglet の app loop に任せつつ、目標 fps でフレームを刻むため。

from __future__ import annotations

from typing import Any

import pyglet

from sketchbook.interactive.runtime.frame_clock import FrameClock, MonotonicClock
from sketchbook.interactive.runtime.scheduler import FrameCallback


class PygletFrameScheduler:
    """目標 fps で 1 回ずつコールバックを呼ぶスケジューラ。

    Notes
    -----
    fps<=0 は「スロットリング無し（次の tick で即呼ぶ）」として扱う。
    遅れたフレームは詰めずに、次の予定時刻を現在時刻から取り直す。
    """

    def __init__(self, fps: float = 60.0, *, clock: FrameClock | None = None) -> None:
        self._interval = 1.0 / float(fps) if float(fps) > 0 else 0.0
        self._clock = clock if clock is not None else MonotonicClock()
        self._next_due: float | None = None

    def request_frame(self, callback: FrameCallback) -> Any:
        now = self._clock.now_ms() / 1000.0
        due = now + self._interval if self._next_due is None else self._next_due
        if due < now:
            due = now
        self._next_due = due + self._interval

        def fire(_dt: float) -> None:
            callback(self._clock.now_ms())

        pyglet.clock.schedule_once(fire, max(0.0, due - now))
        return fire

    def cancel_frame(self, handle: Any) -> None:
        pyglet.clock.unschedule(handle)
        self._next_due = None


__all__ = ["PygletFrameScheduler"]
