# どこで: `src/sketchbook/interactive/runtime/runner.py`。
# 何を: Sketch をフレームスケジューラ上で回す SketchRunner（update → render → 録画チェック → 再スケジュール）を提供する。
# なぜ: 停止/クリック再生成/録画といったループ側の責務を、Sketch のライフサイクルから切り離すため。

from __future__ import annotations

import contextlib
import logging
from collections.abc import Callable
from typing import Any

from sketchbook.core.sketch import Sketch
from sketchbook.interactive.runtime.scheduler import FrameScheduler

_logger = logging.getLogger(__name__)

ClickCallback = Callable[[Any], None]


class SketchRunner:
    """Sketch の描画ループ。

    Parameters
    ----------
    sketch : Sketch
        駆動するスケッチ。
    scheduler : FrameScheduler
        次フレームの要求/取り消しを行うスケジューラ。
    click : bool | Callable[[Any], None]
        True ならキャンバスのクリックで再生成する。callable の場合は再生成の前に呼ぶ。
    update : bool
        False なら update 関数を持つスケッチでもループを回さない。
    ui : Any | None
        `perf` / `capture` を持つ UI。存在すればループを回す。
    recording_fps : float
        録画の経過秒数表示に使う fps。

    Notes
    -----
    `stop()` 後に古いフレームコールバックが呼ばれても何もしない（世代トークンで判定）。
    """

    def __init__(
        self,
        sketch: Sketch,
        scheduler: FrameScheduler,
        *,
        click: bool | ClickCallback = True,
        update: bool = True,
        ui: Any | None = None,
        recording_fps: float = 60.0,
    ) -> None:
        self._sketch = sketch
        self._scheduler = scheduler
        self._click = click
        self._update_enabled = bool(update)
        self._ui = ui
        self._recording_fps = max(1, int(round(float(recording_fps))))

        self._running = False
        self._generation = 0
        self._handle: Any = None
        self._start_time: float | None = None
        self._prev_time: float | None = None
        self._click_listener: Callable[[Any], None] | None = None
        self._recorded_frames = 0

    @property
    def sketch(self) -> Sketch:
        return self._sketch

    @property
    def running(self) -> bool:
        return self._running

    @property
    def looping(self) -> bool:
        """フレームループが予約されているかを返す。"""

        return self._handle is not None

    def start(self) -> None:
        """1 回描画し、必要ならクリック監視とフレームループを開始する。"""

        if self._running:
            return
        self._sketch.render()

        self._running = True
        self._generation += 1
        self._start_time = None
        self._prev_time = None

        if self._click:
            listener = self._on_click
            self._sketch.canvas.add_click_listener(listener)
            self._click_listener = listener

        if self._update_enabled and (self._sketch.has_update or self._ui is not None):
            self._schedule(self._generation)

    def stop(self) -> None:
        """ループを止め、時間をリセットし、クリック監視を外す。"""

        self._running = False
        self._generation += 1
        self._start_time = None
        self._prev_time = None

        handle = self._handle
        self._handle = None
        if handle is not None:
            self._scheduler.cancel_frame(handle)

        listener = self._click_listener
        self._click_listener = None
        if listener is not None:
            self._sketch.canvas.remove_click_listener(listener)

    # --- フレーム ---

    def _schedule(self, generation: int) -> None:
        def callback(timestamp: float) -> None:
            self._frame(generation, timestamp)

        self._handle = self._scheduler.request_frame(callback)

    def _frame(self, generation: int, timestamp: float) -> None:
        if generation != self._generation or not self._running:
            return
        self._handle = None

        perf = getattr(self._ui, "perf", None)
        frame_cm = perf.frame() if perf is not None else contextlib.nullcontext()
        with frame_cm:
            self._update_time(float(timestamp), perf)
            with _section(perf, "render"):
                self._sketch.render()
            with _section(perf, "capture"):
                self._check_recording()

        # update / render の中で stop() された場合は再スケジュールしない。
        if generation == self._generation and self._running:
            self._schedule(generation)

    def _update_time(self, timestamp: float, perf: Any) -> None:
        if self._start_time is None:
            self._start_time = timestamp
        prev = self._prev_time if self._prev_time is not None else self._start_time
        total = (timestamp - self._start_time) / 1000.0
        delta = (timestamp - prev) / 1000.0
        self._prev_time = timestamp
        with _section(perf, "update"):
            self._sketch.update(total, delta)

    def _check_recording(self) -> None:
        capture = getattr(self._ui, "capture", None)
        if capture is None:
            return
        capture.check_hotkeys()
        if not capture.is_recording:
            self._recorded_frames = 0
            return
        capture.record_frame()
        self._recorded_frames += 1
        if self._recorded_frames % self._recording_fps == 0:
            print(f"Recorded {self._recorded_frames // self._recording_fps} seconds")

    # --- クリック ---

    def _on_click(self, event: Any = None) -> None:
        if callable(self._click):
            self._click(event)
        self.stop()
        self._sketch.next()
        _logger.debug("regenerated on click: used_count=%d", self._sketch.random.use_count)
        self.start()


def _section(perf: Any, name: str) -> contextlib.AbstractContextManager[None]:
    if perf is None:
        return contextlib.nullcontext()
    return perf.section(name)


__all__ = ["SketchRunner"]
