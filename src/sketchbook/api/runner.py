"""
どこで: `src/sketchbook/api/runner.py`。公開 API のランナー実装。
何を: pyglet ウィンドウ + ModernGL でスケッチを表示し、クリック再生成・P/V キャプチャ・リサイズを配線する。
なぜ: スケッチファイルを実行するだけで、作品をプレビューし seed を記録できる経路を用意するため。
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pyglet

from sketchbook.api._sketch_options import load_config, render_params, resolve_kind, resolve_size
from sketchbook.api.export import export_sketch
from sketchbook.core.output_paths import output_path_for_factory
from sketchbook.core.sketch import Sketch
from sketchbook.core.types import SketchFactory, SketchKind
from sketchbook.interactive.runtime.pyglet_scheduler import PygletFrameScheduler
from sketchbook.interactive.runtime.runner import SketchRunner
from sketchbook.interactive.ui import init_ui
from sketchbook.interactive.window import create_sketch_window
from sketchbook.render.renderer import Backend, init_renderer


def run(
    factory: SketchFactory,
    *,
    kind: SketchKind | None = None,
    seed: Sequence[int] | None = None,
    width: float | None = None,
    height: float | None = None,
    resolution: float | None = None,
    config_path: str | Path | None = None,
    backend: Backend | None = None,
    fps: float = 60.0,
    click: bool | Callable[[Any], None] = True,
    update: bool = True,
) -> None:
    """スケッチをウィンドウに表示し、閉じられるまでループを回す。

    Parameters
    ----------
    factory : SketchFactory
        `SketchContext -> Instance2D | Instance3D`。
    kind : {"2d", "3d"} | None
        None の場合は factory の `KIND` 属性、無ければ "2d"。
    seed : Sequence[int] | None
        過去の作品を再現するための seed。None ならエントロピーから生成して表示する。
    width, height, resolution : float | None
        初期サイズ。None の場合は config.yaml の `sketch.*`。
    config_path : str | Path | None
        明示的に読み込む config.yaml。
    backend : {"window", "headless"} | None
        None の場合は config.yaml の `render.backend`。
        "headless" の場合はウィンドウを開かず 1 枚書き出して戻る。
    fps : float
        目標フレームレート。
    click : bool | Callable[[Any], None]
        クリックで再生成するか。callable なら再生成前に呼ぶ。
    update : bool
        False なら update 関数があってもアニメーションしない。

    Returns
    -------
    None
        ウィンドウを閉じると制御を返す。
    """

    cfg = load_config(config_path)
    backend_ = backend if backend is not None else cfg.render_backend
    if backend_ == "headless":
        export_sketch(
            factory,
            kind=kind,
            seed=seed,
            width=width,
            height=height,
            resolution=resolution,
            config_path=config_path,
        )
        return

    kind_ = resolve_kind(factory, kind)
    size = resolve_size(cfg, width=width, height=height, resolution=resolution)

    pyglet.options["vsync"] = True
    window = create_sketch_window(
        int(round(size.width)),
        int(round(size.height)),
        position=cfg.window_position,
        caption=getattr(factory, "__name__", "sketchbook"),
    )

    # `closers` は teardown 用（作成順の逆で閉じる）。
    closers: list[Callable[[], None]] = [window.close]
    try:
        renderer = init_renderer(render_params(cfg, "window"), window=window)
        closers.append(renderer.destroy)

        sketch = Sketch(factory, renderer, size=size, seed=seed, kind=kind_)
        closers.append(sketch.destroy)
        print(f"Seed: {','.join(str(v) for v in sketch.seed)}")

        ui = init_ui(
            sketch,
            window,
            size,
            min_size=cfg.min_size,
            png_path=output_path_for_factory(
                kind="png", ext="png", factory=factory, seed=sketch.seed
            ),
            video_path=output_path_for_factory(
                kind="video", ext="mp4", factory=factory, seed=sketch.seed
            ),
            fps=float(cfg.recording_fps),
            target_fps=fps,
        )
        closers.append(ui.capture.close)

        runner = SketchRunner(
            sketch,
            PygletFrameScheduler(fps),
            click=click,
            update=update,
            ui=ui,
            recording_fps=cfg.recording_fps,
        )
        closers.append(runner.stop)

        def request_exit(*_: object) -> None:
            pyglet.app.exit()

        window.push_handlers(on_close=request_exit)
        runner.start()
        pyglet.app.run(interval=None)
    finally:
        for close in reversed(closers):
            close()


__all__ = ["run"]
