# どこで: `src/sketchbook/__init__.py`。
# 何を: ルート `sketchbook` パッケージを定義し、スケッチを書くのに必要な型と run を再エクスポートする。
# なぜ: スケッチ側の import を `from sketchbook import ...` の 1 行に揃えるため。

from __future__ import annotations

from sketchbook.api import export_sketch, record_sketch, run
from sketchbook.core.bbox import Box
from sketchbook.core.noise import noise2d, noise3d, noise4d
from sketchbook.core.packing import CirclePacking, rectangle_packing
from sketchbook.core.random import Random
from sketchbook.core.scene import Camera, Container, Polyline, Scene3D
from sketchbook.core.sketch import Sketch
from sketchbook.core.types import Instance2D, Instance3D, SizeParams, SketchContext

__all__ = [
    "Box",
    "Camera",
    "CirclePacking",
    "Container",
    "Instance2D",
    "Instance3D",
    "Polyline",
    "Random",
    "Scene3D",
    "SizeParams",
    "Sketch",
    "SketchContext",
    "export_sketch",
    "noise2d",
    "noise3d",
    "noise4d",
    "rectangle_packing",
    "record_sketch",
    "run",
]
