# どこで: `src/sketchbook/render/gl/painter.py`。
# 何を: 2D シーングラフ（Container）と 3D シーン（Scene3D + Camera）の Polyline を太線で描く。
# なぜ: 共有のプログラム/コンテキストと、ノード所有のメッシュの境界を painter に閉じ込めるため。

from __future__ import annotations

import logging
from typing import Any

import numpy as np

from sketchbook.core.scene import Camera, Container, Polyline, Scene3D
from sketchbook.core.types import SketchKind
from sketchbook.render.gl import utils as gl_utils
from sketchbook.render.gl.index_buffer import strip_indices
from sketchbook.render.gl.line_mesh import LineMesh
from sketchbook.render.gl.shader import Shader

_logger = logging.getLogger(__name__)


class LinePainter:
    """Polyline を太線で描画する painter。

    Notes
    -----
    プログラムとコンテキストは painter が所有し、`release()` でのみ解放する。
    各 Polyline の LineMesh は `node.retain(mesh)` でノードへ渡し、ノードの destroy で解放される。
    """

    def __init__(self, ctx: Any) -> None:
        self.ctx = ctx
        self.program = Shader.create_shader(ctx)
        self._kind: SketchKind | None = None

    @property
    def kind(self) -> SketchKind | None:
        return self._kind

    def reset(self, kind: SketchKind) -> None:
        """描画種別を切り替える（GL ステートは次の paint で張り直す）。"""

        self._kind = kind
        _logger.debug("painter state reset: kind=%s", kind)

    def paint_2d(
        self,
        container: Container,
        *,
        width: float,
        height: float,
        resolution: float,
        viewport: tuple[int, int],
    ) -> int:
        """2D シーングラフを描画し、draw call 数を返す。"""

        self._ensure_kind("2d")
        projection = gl_utils.build_ortho_projection(width, height)
        self._write_frame_uniforms(projection, viewport)
        count = 0
        for polyline, world in container.iter_polylines():
            if self._draw(polyline, gl_utils.embed_2d(world), resolution):
                count += 1
        return count

    def paint_3d(
        self,
        scene: Scene3D,
        camera: Camera,
        *,
        resolution: float,
        viewport: tuple[int, int],
    ) -> int:
        """3D シーンを描画し、draw call 数を返す。"""

        self._ensure_kind("3d")
        vp_w, vp_h = viewport
        projection = camera.view_projection(float(vp_w) / float(vp_h))
        self._write_frame_uniforms(projection, viewport)
        count = 0
        for polyline, world in scene.iter_polylines():
            if self._draw(polyline, world, resolution):
                count += 1
        return count

    def release(self) -> None:
        """プログラムを解放する（メッシュはノード側が解放する）。"""

        self.program.release()

    def _ensure_kind(self, kind: SketchKind) -> None:
        if self._kind != kind:
            self.reset(kind)
        # ウィンドウ表示（テクスチャ貼り）でステートが変わるため毎回設定する。
        ctx = self.ctx
        ctx.enable(ctx.BLEND)
        ctx.blend_func = ctx.SRC_ALPHA, ctx.ONE_MINUS_SRC_ALPHA
        if kind == "3d":
            ctx.enable(ctx.DEPTH_TEST)
        else:
            ctx.disable(ctx.DEPTH_TEST)

    def _write_frame_uniforms(self, projection: np.ndarray, viewport: tuple[int, int]) -> None:
        vp_w, vp_h = viewport
        self.program["projection"].write(gl_utils.to_gl(projection))
        self.program["viewport"].value = (float(vp_w), float(vp_h))

    def _mesh_for(self, polyline: Polyline) -> LineMesh:
        for resource in polyline.resources():
            if isinstance(resource, LineMesh) and resource.ctx is self.ctx:
                return resource
        reserve = max(int(polyline.coords.nbytes) * 2, 4096)
        mesh = LineMesh(self.ctx, self.program, initial_reserve=reserve)
        polyline.retain(mesh)
        return mesh

    def _draw(self, polyline: Polyline, model: np.ndarray, resolution: float) -> bool:
        coords = polyline.coords
        if coords.shape[0] < 2:
            return False

        mesh = self._mesh_for(polyline)
        if mesh.version != polyline.version:
            indices = strip_indices(coords.shape[0], closed=polyline.closed)
            mesh.upload(coords, indices, version=polyline.version)

        self.program["model"].write(gl_utils.to_gl(model))
        self.program["line_thickness"].value = float(polyline.thickness) * float(resolution)
        self.program["color"].value = (*polyline.color, 1.0)
        mesh.vao.render(mode=self.ctx.LINE_STRIP, vertices=mesh.index_count)
        return True


__all__ = ["LinePainter"]
