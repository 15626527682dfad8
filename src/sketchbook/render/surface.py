# どこで: `src/sketchbook/render/surface.py`。
# 何を: 描画先サーフェス（オフスクリーン FBO / pyglet ウィンドウ表示）を定義する。
# なぜ: 「論理サイズ × 解像度」と、プラットフォームが実際に確保できた描画バッファの差を一箇所で扱うため。

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import numpy as np

from sketchbook.core.types import SizeParams
from sketchbook.render.gl.shader import Shader

_logger = logging.getLogger(__name__)

ClickListener = Callable[[Any], None]


def max_drawing_buffer_size(ctx: Any) -> tuple[int, int]:
    """コンテキストが確保できる描画バッファの最大 (w, h) を返す。"""

    info = ctx.info
    rb = int(info.get("GL_MAX_RENDERBUFFER_SIZE", 0) or 0)
    vp = info.get("GL_MAX_VIEWPORT_DIMS", (0, 0)) or (0, 0)
    tex = int(info.get("GL_MAX_TEXTURE_SIZE", 0) or 0)
    limits_w = [v for v in (rb, int(vp[0]), tex) if v > 0]
    limits_h = [v for v in (rb, int(vp[1]), tex) if v > 0]
    return (min(limits_w) if limits_w else 4096, min(limits_h) if limits_h else 4096)


class OffscreenSurface:
    """マルチサンプル FBO に描き、解決済みテクスチャを保持するサーフェス。

    Parameters
    ----------
    ctx : moderngl.Context
        共有コンテキスト（このサーフェスでは解放しない）。
    antialias : bool
        True なら MSAA（最大 4x）を使う。
    max_buffer_size : tuple[int, int] | None
        描画バッファの上限。None ならコンテキストの上限を問い合わせる。
    """

    def __init__(
        self,
        ctx: Any,
        *,
        antialias: bool = True,
        max_buffer_size: tuple[int, int] | None = None,
    ) -> None:
        self.ctx = ctx
        self._samples = min(4, int(getattr(ctx, "max_samples", 0))) if antialias else 0
        self._max_w, self._max_h = (
            max_buffer_size if max_buffer_size is not None else max_drawing_buffer_size(ctx)
        )
        self._width = 0.0
        self._height = 0.0
        self._resolution = 1.0
        self._buffer_size = (0, 0)
        self._msaa_rb: Any = None
        self._msaa_fbo: Any = None
        self.texture: Any = None
        self._resolve_fbo: Any = None
        self._click_listeners: list[ClickListener] = []

    # --- サイズ ---

    @property
    def size_params(self) -> SizeParams | None:
        if self._buffer_size == (0, 0):
            return None
        return SizeParams(self._width, self._height, self._resolution)

    @property
    def requested_buffer_size(self) -> tuple[int, int]:
        """論理サイズ × 解像度から求めた、要求上の描画バッファサイズ。"""

        return (
            max(1, int(round(self._width * self._resolution))),
            max(1, int(round(self._height * self._resolution))),
        )

    @property
    def drawing_buffer_size(self) -> tuple[int, int]:
        """実際に確保できた描画バッファサイズ。"""

        return self._buffer_size

    def set_resolution(self, resolution: float) -> None:
        self._resolution = float(resolution)

    def resize(self, width: float, height: float) -> None:
        """論理サイズを設定し、描画バッファを確保し直す（上限で切り詰める）。"""

        self._width = float(width)
        self._height = float(height)
        req_w, req_h = self.requested_buffer_size
        size = (min(req_w, self._max_w), min(req_h, self._max_h))
        if size == self._buffer_size:
            return
        self._release_buffers()
        self._allocate(size)

    def _allocate(self, size: tuple[int, int]) -> None:
        ctx = self.ctx
        self.texture = ctx.texture(size, 4)
        self._resolve_fbo = ctx.framebuffer(color_attachments=[self.texture])
        if self._samples > 0:
            self._msaa_rb = ctx.renderbuffer(size, 4, samples=self._samples)
            depth = ctx.depth_renderbuffer(size, samples=self._samples)
            self._msaa_fbo = ctx.framebuffer(color_attachments=[self._msaa_rb], depth_attachment=depth)
        else:
            depth = ctx.depth_renderbuffer(size)
            self._msaa_fbo = ctx.framebuffer(color_attachments=[self.texture], depth_attachment=depth)
        self._buffer_size = size
        _logger.debug("drawing buffer allocated: %dx%d (samples=%d)", size[0], size[1], self._samples)

    def _release_buffers(self) -> None:
        fbo = self._msaa_fbo
        if fbo is not None:
            for attachment in (*fbo.color_attachments, fbo.depth_attachment):
                if attachment is not None and attachment is not self.texture:
                    attachment.release()
            fbo.release()
        if self._resolve_fbo is not None:
            self._resolve_fbo.release()
        if self.texture is not None:
            self.texture.release()
        self._msaa_rb = None
        self._msaa_fbo = None
        self._resolve_fbo = None
        self.texture = None
        self._buffer_size = (0, 0)

    # --- 描画 ---

    def begin(self, background_color: tuple[float, float, float], *, clear: bool = True) -> None:
        """描画先として bind し、必要ならクリアする。"""

        if self._msaa_fbo is None:
            raise RuntimeError("サーフェスのサイズが未設定です（resize() を先に呼ぶ）")
        self._msaa_fbo.use()
        if clear:
            self._msaa_fbo.clear(*background_color, 1.0, depth=1.0)

    def present(self) -> None:
        """MSAA を解決してテクスチャへ反映する。"""

        if self._samples > 0 and self._msaa_fbo is not None:
            self.ctx.copy_framebuffer(dst=self._resolve_fbo, src=self._msaa_fbo)

    def read_pixels(self) -> np.ndarray:
        """解決済みの内容を上から下の行順で `(H, W, 3)` uint8 として返す。"""

        if self._resolve_fbo is None:
            raise RuntimeError("サーフェスのサイズが未設定です（resize() を先に呼ぶ）")
        w, h = self._buffer_size
        data = self._resolve_fbo.read(components=3, alignment=1)
        pixels = np.frombuffer(data, dtype=np.uint8).reshape(h, w, 3)
        return np.ascontiguousarray(pixels[::-1])

    # --- クリック ---

    def add_click_listener(self, listener: ClickListener) -> None:
        if listener not in self._click_listeners:
            self._click_listeners.append(listener)

    def remove_click_listener(self, listener: ClickListener) -> None:
        if listener in self._click_listeners:
            self._click_listeners.remove(listener)

    def dispatch_click(self, event: Any = None) -> None:
        for listener in list(self._click_listeners):
            listener(event)

    def release(self) -> None:
        self._click_listeners.clear()
        self._release_buffers()


class WindowSurface(OffscreenSurface):
    """オフスクリーンに描いた結果を pyglet ウィンドウへ表示するサーフェス。

    Notes
    -----
    `resize_window=True` なら論理サイズの変更に合わせてウィンドウもリサイズする。
    ウィンドウ側の再描画要求（on_draw）では最後に解決したテクスチャを貼り直す。
    """

    def __init__(
        self,
        ctx: Any,
        window: Any,
        *,
        antialias: bool = True,
        resize_window: bool = True,
        max_buffer_size: tuple[int, int] | None = None,
    ) -> None:
        super().__init__(ctx, antialias=antialias, max_buffer_size=max_buffer_size)
        self.window = window
        self._resize_window = bool(resize_window)
        self._quad_program = Shader.create_quad_shader(ctx)
        quad = np.array([-1.0, -1.0, 1.0, -1.0, -1.0, 1.0, 1.0, 1.0], dtype="f4")
        self._quad_vbo = ctx.buffer(quad.tobytes())
        self._quad_vao = ctx.simple_vertex_array(self._quad_program, self._quad_vbo, "in_pos")
        window.push_handlers(on_draw=self._blit, on_mouse_press=self._on_mouse_press)

    def resize(self, width: float, height: float) -> None:
        super().resize(width, height)
        if self._resize_window:
            w, h = int(round(width)), int(round(height))
            if (self.window.width, self.window.height) != (w, h):
                self.window.set_size(w, h)

    def present(self) -> None:
        super().present()
        self.window.switch_to()
        self._blit()
        self.window.flip()

    def _framebuffer_size(self) -> tuple[int, int]:
        getter = getattr(self.window, "get_framebuffer_size", None)
        if callable(getter):
            w, h = getter()
            return int(w), int(h)
        return int(self.window.width), int(self.window.height)

    def _blit(self) -> None:
        if self.texture is None:
            return
        ctx = self.ctx
        ctx.screen.use()
        fb_w, fb_h = self._framebuffer_size()
        ctx.viewport = (0, 0, fb_w, fb_h)
        ctx.disable(ctx.DEPTH_TEST)
        self.texture.use(location=0)
        self._quad_program["frame"].value = 0
        self._quad_vao.render(mode=ctx.TRIANGLE_STRIP)

    def _on_mouse_press(self, x: int, y: int, button: int, modifiers: int) -> None:
        self.dispatch_click({"x": x, "y": y, "button": button, "modifiers": modifiers})

    def release(self) -> None:
        self.window.remove_handlers(on_draw=self._blit, on_mouse_press=self._on_mouse_press)
        super().release()
        self._quad_vao.release()
        self._quad_vbo.release()
        self._quad_program.release()


__all__ = ["OffscreenSurface", "WindowSurface", "max_drawing_buffer_size"]
