"""
どこで: `src/sketchbook/render/gl/line_mesh.py`。
何を: 1 本の Polyline 用に VBO/IBO/VAO の確保・更新・解放を担当する LineMesh を定義する。
なぜ: GPU 転送の詳細を painter から切り離し、Polyline ノードが単独所有する資源として扱うため。
"""

from __future__ import annotations

from typing import Any

import numpy as np


class LineMesh:
    """
    Polyline ノードが所有する GPU メッシュ
    """

    def __init__(self, ctx: Any, program: Any, initial_reserve: int = 4096) -> None:
        """
        ctx: moderngl コンテキスト（painter と共有。ここでは解放しない）
        program: 太線シェーダー（painter と共有。ここでは解放しない）
        initial_reserve: VBO/IBO の初期確保バイト数。足りなければ upload 時に拡張する。
        """
        self.ctx = ctx
        self.program = program
        self.initial_reserve = int(initial_reserve)

        self.vbo = ctx.buffer(reserve=self.initial_reserve, dynamic=True)
        self.ibo = ctx.buffer(reserve=self.initial_reserve, dynamic=True)
        self.vao = ctx.simple_vertex_array(program, self.vbo, "in_vert", index_buffer=self.ibo)

        self.index_count: int = 0
        # 最後に upload した Polyline.version。未 upload は -1。
        self.version: int = -1
        self.released = False

    def _ensure_capacity(self, vbo_size: int, ibo_size: int) -> None:
        """データが大きくなったら GPU のバッファを再確保"""
        vao_needs_rebuild = False
        if vbo_size > self.vbo.size:
            self.vbo.release()
            self.vbo = self.ctx.buffer(reserve=max(vbo_size, self.initial_reserve), dynamic=True)
            vao_needs_rebuild = True

        if ibo_size > self.ibo.size:
            self.ibo.release()
            self.ibo = self.ctx.buffer(reserve=max(ibo_size, self.initial_reserve), dynamic=True)
            vao_needs_rebuild = True

        # VAO は VBO/IBO が差し替わるときだけ張り直す。
        if vao_needs_rebuild:
            self.vao.release()
            self.vao = self.ctx.simple_vertex_array(
                self.program, self.vbo, "in_vert", index_buffer=self.ibo
            )

    def upload(self, vertices: np.ndarray, indices: np.ndarray, *, version: int) -> None:
        """頂点とインデックスを GPU へ送る"""
        vertices_f32 = np.ascontiguousarray(vertices, dtype=np.float32)
        indices_u32 = np.ascontiguousarray(indices, dtype=np.uint32)
        self._ensure_capacity(vertices_f32.nbytes, indices_u32.nbytes)

        self.vbo.orphan()
        self.vbo.write(vertices_f32)
        self.ibo.orphan()
        self.ibo.write(indices_u32)

        self.index_count = len(indices_u32)
        self.version = int(version)

    def release(self) -> None:
        """このメッシュが確保したバッファだけを解放する（冪等）"""
        if self.released:
            return
        self.released = True
        self.vbo.release()
        self.ibo.release()
        self.vao.release()


__all__ = ["LineMesh"]
