# どこで: `src/sketchbook/render/renderer.py`。
# 何を: Sketch から見たレンダラーアダプタ（リサイズ判定、解像度の切り詰め、描画、blob 化、破棄）を提供する。
# なぜ: 描画 API の詳細と「要求サイズと実サイズの差」の扱いを Sketch から切り離すため。

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal

import moderngl

from sketchbook.core.types import RenderingContext, SizeParams, SketchInstance, SketchKind
from sketchbook.export.image import encode_image
from sketchbook.render.gl.painter import LinePainter
from sketchbook.render.surface import OffscreenSurface, WindowSurface

_logger = logging.getLogger(__name__)

Backend = Literal["window", "headless"]

_GL_REQUIRE = 410


@dataclass(frozen=True, slots=True)
class RenderParams:
    """レンダラー初期化パラメータ。

    Notes
    -----
    backend は起動時に一度だけ決めて明示的に渡す（グローバルな既定値は持たない）。
    canvas を渡した場合はサーフェスを新規作成せずそれを使う。
    """

    antialias: bool = True
    clear_before: bool = True
    resize_window: bool = True
    background_color: tuple[float, float, float] = (1.0, 1.0, 1.0)
    backend: Backend = "headless"
    canvas: Any = None


def _same_size(a: SizeParams | None, b: SizeParams) -> bool:
    if a is None:
        return False
    return (
        float(a.resolution) == float(b.resolution)
        and float(a.width) == float(b.width)
        and float(a.height) == float(b.height)
    )


class SketchRenderer:
    """サーフェスと painter を束ねたレンダラー。

    Parameters
    ----------
    surface : OffscreenSurface | WindowSurface
        描画先。`canvas` として公開する。
    painter : LinePainter
        Polyline の描画器。`ctx` を持つ。
    params : RenderParams
        描画パラメータ。
    ctx : moderngl.Context | None
        このレンダラーが所有するコンテキスト。`destroy()` で解放する。
    """

    def __init__(
        self,
        surface: Any,
        painter: Any,
        params: RenderParams,
        *,
        ctx: Any = None,
    ) -> None:
        self._surface = surface
        self._painter = painter
        self._params = params
        self._ctx = ctx
        self._last_kind: SketchKind | None = None
        self._destroyed = False

    @property
    def canvas(self) -> Any:
        return self._surface

    @property
    def params(self) -> RenderParams:
        return self._params

    @property
    def size_params(self) -> SizeParams | None:
        return self._surface.size_params

    def rendering_context(self, kind: SketchKind) -> RenderingContext:
        """ファクトリへ渡すレンダラー固有の文脈を返す。"""

        return RenderingContext(kind=kind, ctx=self._painter.ctx)

    def render(self, instance: SketchInstance, size: SizeParams) -> SizeParams:
        """インスタンスを描画し、実際に描画したサイズを返す。"""

        self._ensure_alive()
        kind = instance.kind
        if not _same_size(self._surface.size_params, size):
            self.resize(size)
        if self._last_kind != kind:
            self._painter.reset(kind)

        current = self._surface.size_params
        viewport = self._surface.drawing_buffer_size
        self._surface.begin(self._params.background_color, clear=self._params.clear_before)
        if instance.kind == "2d":
            self._painter.paint_2d(
                instance.container,
                width=float(current.width),
                height=float(current.height),
                resolution=float(current.resolution),
                viewport=viewport,
            )
        else:
            self._painter.paint_3d(
                instance.scene,
                instance.camera,
                resolution=float(current.resolution),
                viewport=viewport,
            )
        self._surface.present()
        self._last_kind = kind
        return current

    def resize(self, size: SizeParams) -> SizeParams:
        """解像度→論理サイズの順でサーフェスを更新し、実サイズを返す。

        要求した描画バッファがプラットフォーム上限を超えて切り詰められた場合は、
        警告を出して解像度 1 で 1 回だけやり直す（例外にはしない）。
        """

        self._ensure_alive()
        self._apply(size)
        if self._exceeds_drawing_buffer():
            if float(size.resolution) != 1.0:
                _logger.warning(
                    "描画バッファ上限を超えたため resolution を 1 に戻します: requested=%s granted=%s",
                    self._surface.requested_buffer_size,
                    self._surface.drawing_buffer_size,
                )
                self._apply(size.merged(resolution=1.0))
            if self._exceeds_drawing_buffer():
                _logger.warning(
                    "resolution=1 でも描画バッファ上限を超えています: requested=%s granted=%s",
                    self._surface.requested_buffer_size,
                    self._surface.drawing_buffer_size,
                )
        return self._surface.size_params

    def to_blob(self, mime: str = "image/png", quality: float | None = None) -> bytes:
        """現在のサーフェス内容を画像 blob にする。"""

        self._ensure_alive()
        return encode_image(self._surface.read_pixels(), mime, quality)

    def destroy(self) -> None:
        """painter・サーフェス・コンテキストを解放する（冪等）。"""

        if self._destroyed:
            return
        self._destroyed = True
        try:
            self._painter.release()
            self._surface.release()
        finally:
            ctx = self._ctx
            self._ctx = None
            if ctx is not None:
                ctx.release()

    def _apply(self, size: SizeParams) -> None:
        self._surface.set_resolution(float(size.resolution))
        self._surface.resize(float(size.width), float(size.height))

    def _exceeds_drawing_buffer(self) -> bool:
        req_w, req_h = self._surface.requested_buffer_size
        got_w, got_h = self._surface.drawing_buffer_size
        return req_w > got_w or req_h > got_h

    def _ensure_alive(self) -> None:
        if self._destroyed:
            raise RuntimeError("破棄済みのレンダラーは使えない")


def _create_context(params: RenderParams, window: Any) -> moderngl.Context:
    try:
        if params.backend == "window":
            window.switch_to()
            return moderngl.create_context(require=_GL_REQUIRE)
        return moderngl.create_context(standalone=True, require=_GL_REQUIRE)
    except Exception as exc:
        raise RuntimeError(
            f"OpenGL コンテキストを作成できません（backend={params.backend}）: {exc}"
        ) from exc


def init_renderer(params: RenderParams, *, window: Any = None) -> SketchRenderer:
    """コンテキスト・サーフェス・painter を作成してレンダラーを返す。

    Raises
    ------
    ValueError
        backend が不正、または window backend で window が無い場合。
    RuntimeError
        GL コンテキストを作成できない場合（再試行しない）。
    """

    if params.backend not in ("window", "headless"):
        raise ValueError(f"未知の backend: {params.backend!r}")
    if params.backend == "window" and window is None and params.canvas is None:
        raise ValueError("backend='window' には window が必要です")

    if params.canvas is not None:
        surface = params.canvas
        ctx = surface.ctx
        owned_ctx = None
    else:
        ctx = _create_context(params, window)
        owned_ctx = ctx
        if params.backend == "window":
            surface = WindowSurface(
                ctx,
                window,
                antialias=params.antialias,
                resize_window=params.resize_window,
            )
        else:
            surface = OffscreenSurface(ctx, antialias=params.antialias)

    painter = LinePainter(ctx)
    _logger.debug("renderer initialized: backend=%s gl=%s", params.backend, ctx.info.get("GL_VERSION"))
    return SketchRenderer(surface, painter, params, ctx=owned_ctx)


__all__ = ["Backend", "RenderParams", "SketchRenderer", "init_renderer"]
