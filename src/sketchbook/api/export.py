"""
どこで: `src/sketchbook/api/export.py`。
何を: ウィンドウを開かずにスケッチを画像 1 枚、または固定 fps の動画として書き出す導線を提供する。
なぜ: CI やバッチで、seed 指定の作品を対話なしに再現・保存できるようにするため。
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from sketchbook.api._sketch_options import load_config, render_params, resolve_kind, resolve_size
from sketchbook.core.output_paths import output_path_for_factory
from sketchbook.core.sketch import Sketch
from sketchbook.core.types import SketchFactory, SketchKind
from sketchbook.export.image import extension_for_mime, save_blob
from sketchbook.interactive.runtime.capture import CanvasCapture
from sketchbook.interactive.runtime.frame_clock import FixedStepClock
from sketchbook.interactive.runtime.perf import PerfCollector
from sketchbook.interactive.runtime.runner import SketchRunner
from sketchbook.interactive.runtime.scheduler import ManualFrameScheduler
from sketchbook.interactive.ui import SketchUI
from sketchbook.render.renderer import init_renderer

_logger = logging.getLogger(__name__)


def export_sketch(
    factory: SketchFactory,
    path: str | Path | None = None,
    *,
    kind: SketchKind | None = None,
    seed: Sequence[int] | None = None,
    width: float | None = None,
    height: float | None = None,
    resolution: float | None = None,
    mime: str | None = None,
    quality: float | None = None,
    config_path: str | Path | None = None,
) -> Path:
    """ヘッドレスで 1 回生成・描画し、画像ファイルとして保存する。

    Parameters
    ----------
    factory : SketchFactory
        スケッチのファクトリ。
    path : str | Path | None
        保存先。None の場合は `output/{ext}/<sketch 相対 dir>/<stem>.{ext}`。
    seed : Sequence[int] | None
        再現したい seed。None ならエントロピーから生成して表示する。
    mime : str | None
        画像形式。None の場合は config の `export.mime`。

    Returns
    -------
    Path
        保存したファイルのパス。
    """

    cfg = load_config(config_path)
    kind_ = resolve_kind(factory, kind)
    size = resolve_size(cfg, width=width, height=height, resolution=resolution)
    mime_ = mime if mime is not None else cfg.export_mime
    ext = extension_for_mime(mime_)

    renderer = init_renderer(render_params(cfg, "headless"))
    try:
        sketch = Sketch(factory, renderer, size=size, seed=seed, kind=kind_)
        print(f"Seed: {','.join(str(v) for v in sketch.seed)}")
        out = Path(path) if path is not None else output_path_for_factory(
            kind=ext, ext=ext, factory=factory, seed=sketch.seed
        )
        try:
            blob = sketch.export(mime=mime_, quality=quality)
        finally:
            sketch.destroy()
        saved = save_blob(blob, out)
    finally:
        renderer.destroy()
    print(f"Saved {ext.upper()}: {saved}")
    return saved


def record_sketch(
    factory: SketchFactory,
    path: str | Path | None = None,
    *,
    frames: int,
    fps: float | None = None,
    kind: SketchKind | None = None,
    seed: Sequence[int] | None = None,
    width: float | None = None,
    height: float | None = None,
    resolution: float | None = None,
    config_path: str | Path | None = None,
) -> Path:
    """ヘッドレスで固定タイムステップのループを回し、frames 枚を mp4 に録画する。

    Notes
    -----
    `ManualFrameScheduler` を `FixedStepClock` の時刻で進めるため、実時間に依存せず
    同じ seed なら同じ動画になる。
    """

    if int(frames) <= 0:
        raise ValueError("frames は正の整数である必要がある")

    cfg = load_config(config_path)
    kind_ = resolve_kind(factory, kind)
    size = resolve_size(cfg, width=width, height=height, resolution=resolution)
    fps_ = float(fps if fps is not None else cfg.recording_fps)

    renderer = init_renderer(render_params(cfg, "headless"))
    try:
        sketch = Sketch(factory, renderer, size=size, seed=seed, kind=kind_)
        print(f"Seed: {','.join(str(v) for v in sketch.seed)}")
        out = Path(path) if path is not None else output_path_for_factory(
            kind="video", ext="mp4", factory=factory, seed=sketch.seed
        )
        capture = CanvasCapture(
            renderer.canvas,
            png_path=out.with_suffix(".png"),
            video_path=out,
            fps=fps_,
        )
        ui = SketchUI(perf=PerfCollector.from_env(target_fps=fps_), capture=capture)
        scheduler = ManualFrameScheduler()
        clock = FixedStepClock(fps=fps_)
        runner = SketchRunner(sketch, scheduler, click=False, ui=ui, recording_fps=fps_)
        try:
            runner.start()
            capture.start_recording()
            for _ in range(int(frames)):
                scheduler.advance(clock.next_timestamp())
            capture.stop_recording()
        finally:
            runner.stop()
            capture.close()
            sketch.destroy()
    finally:
        renderer.destroy()
    return out


__all__ = ["export_sketch", "record_sketch"]
