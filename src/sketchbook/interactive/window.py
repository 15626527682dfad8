# どこで: `src/sketchbook/interactive/window.py`。
# 何を: スケッチ表示用の pyglet ウィンドウ生成を行う。
# なぜ: pyglet 依存をこの層に閉じ込め、core/export/render をヘッドレスに保つため。

from __future__ import annotations

import pyglet
from pyglet.gl import Config
from pyglet.window import Window


def create_sketch_window(
    width: int,
    height: int,
    *,
    position: tuple[int, int] | None = None,
    caption: str = "sketchbook",
) -> Window:
    """論理サイズ width × height の描画ウィンドウを生成する。

    Notes
    -----
    描画はオフスクリーン FBO 側で MSAA するため、ウィンドウ自体はダブルバッファのみ要求する。
    OpenGL 4.1 core（macOS で使える上限）を要求する。
    """

    config = Config(  # type: ignore[abstract]
        double_buffer=True,
        major_version=4,
        minor_version=1,
        forward_compatible=True,
    )
    window = pyglet.window.Window(  # type: ignore[abstract]
        width=int(width),
        height=int(height),
        resizable=True,
        caption=caption,
        config=config,
    )
    if position is not None:
        x, y = position
        window.set_location(int(x), int(y))
    return window


__all__ = ["create_sketch_window"]
