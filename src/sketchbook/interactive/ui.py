# どこで: `src/sketchbook/interactive/ui.py`。
# 何を: 描画ウィンドウのキー操作（P: PNG, V: 録画）とウィンドウリサイズを Sketch へ配線する。
# なぜ: ランナーは `ui.perf` / `ui.capture` だけを見ればよく、入力イベントの詳細をここへ閉じ込めるため。

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sketchbook.core.sketch import Sketch
from sketchbook.core.types import SizeParams
from sketchbook.interactive.runtime.capture import CanvasCapture
from sketchbook.interactive.runtime.perf import PerfCollector

_logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SketchUI:
    """ランナーへ渡す計測器とキャプチャ。"""

    perf: PerfCollector
    capture: CanvasCapture


def clamp_resize(
    width: float,
    height: float,
    resolution: float,
    defaults: SizeParams,
    min_size: tuple[int, int],
) -> SizeParams:
    """ウィンドウサイズを `[min_size, defaults]` に収めた SizeParams を返す。

    resolution は 1 未満にしない（高 DPI では 2 などになる）。
    """

    min_w, min_h = min_size
    max_w = max(float(min_w), float(defaults.width))
    max_h = max(float(min_h), float(defaults.height))
    w = min(max(float(width), float(min_w)), max_w)
    h = min(max(float(height), float(min_h)), max_h)
    return SizeParams(width=w, height=h, resolution=max(1.0, float(resolution)))


def _pixel_ratio(window: Any) -> float:
    getter = getattr(window, "get_pixel_ratio", None)
    if callable(getter):
        return float(getter())
    return float(getattr(window, "scale", 1.0))


def init_ui(
    sketch: Sketch,
    window: Any,
    defaults: SizeParams,
    *,
    min_size: tuple[int, int],
    png_path: Path,
    video_path: Path,
    fps: float = 60.0,
    target_fps: float = 60.0,
) -> SketchUI:
    """キー/リサイズのハンドラを window へ登録し、SketchUI を返す。

    fps は録画の fps、target_fps は計測でフレーム予算の基準にする描画 fps。
    """

    from pyglet.window import key

    perf = PerfCollector.from_env(target_fps=target_fps)
    capture = CanvasCapture(sketch.canvas, png_path=png_path, video_path=video_path, fps=fps)

    min_w, min_h = min_size
    window.set_minimum_size(int(min_w), int(min_h))

    def on_key_press(symbol: int, _modifiers: int) -> None:
        if symbol == key.P:
            capture.request_snapshot()
            return
        if symbol == key.V:
            capture.toggle_recording()

    def on_resize(width: int, height: int) -> None:
        if sketch.state == "destroyed":
            return
        target = clamp_resize(width, height, _pixel_ratio(window), defaults, min_size)
        if target == sketch.size:
            return
        _logger.debug("window resized: %sx%s -> %s", width, height, target)
        sketch.resize(width=target.width, height=target.height, resolution=target.resolution)
        sketch.render()

    window.push_handlers(on_key_press=on_key_press, on_resize=on_resize)
    return SketchUI(perf=perf, capture=capture)


__all__ = ["SketchUI", "clamp_resize", "init_ui"]
