"""GL コンテキスト無しで Sketch / SketchRenderer を動かすためのテスト用 fixture。"""

from __future__ import annotations

from typing import Any

import numpy as np
import pytest

from sketchbook.render.renderer import RenderParams, SketchRenderer
from sketchbook.render.surface import OffscreenSurface


class FakeSurface(OffscreenSurface):
    """バッファ確保だけを差し替えた OffscreenSurface（上限の切り詰めは本物のまま）。"""

    def __init__(self, *, max_buffer_size: tuple[int, int] = (4096, 4096)) -> None:
        super().__init__(None, antialias=False, max_buffer_size=max_buffer_size)
        self.allocations: list[tuple[int, int]] = []
        self.begin_calls = 0
        self.present_calls = 0
        self.released = False
        self.fill = 200

    def _allocate(self, size: tuple[int, int]) -> None:
        self.allocations.append(size)
        self._buffer_size = size

    def _release_buffers(self) -> None:
        self._buffer_size = (0, 0)

    def begin(self, background_color: tuple[float, float, float], *, clear: bool = True) -> None:
        if self._buffer_size == (0, 0):
            raise RuntimeError("サーフェスのサイズが未設定です")
        self.begin_calls += 1

    def present(self) -> None:
        self.present_calls += 1

    def read_pixels(self) -> np.ndarray:
        w, h = self._buffer_size
        return np.full((h, w, 3), self.fill, dtype=np.uint8)

    def release(self) -> None:
        super().release()
        self.released = True


class FakePainter:
    def __init__(self) -> None:
        self.ctx = None
        self.calls: list[tuple[str, Any]] = []
        self.released = False

    def reset(self, kind: str) -> None:
        self.calls.append(("reset", kind))

    def paint_2d(self, container, *, width, height, resolution, viewport) -> int:
        self.calls.append(("2d", (width, height, resolution, viewport)))
        return 0

    def paint_3d(self, scene, camera, *, resolution, viewport) -> int:
        self.calls.append(("3d", (resolution, viewport)))
        return 0

    def release(self) -> None:
        self.released = True


@pytest.fixture
def make_renderer():
    """`make_renderer(max_buffer_size=(w, h))` で fake サーフェスの SketchRenderer を作る。"""

    def _make(*, max_buffer_size: tuple[int, int] = (4096, 4096)) -> SketchRenderer:
        return SketchRenderer(
            FakeSurface(max_buffer_size=max_buffer_size),
            FakePainter(),
            RenderParams(),
        )

    return _make


@pytest.fixture
def renderer(make_renderer) -> SketchRenderer:
    return make_renderer()
