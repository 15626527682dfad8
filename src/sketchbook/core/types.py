# どこで: `src/sketchbook/core/types.py`。
# 何を: サイズパラメータ、スケッチインスタンス（2D/3D のタグ付き variant）、ファクトリ文脈の型を定義する。
# なぜ: core がレンダラー実装を import せずに Sketch と renderer の契約を表現するため。

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Any, Literal, Protocol, TypeAlias

from sketchbook.core.bbox import Box
from sketchbook.core.random import Random
from sketchbook.core.scene import Camera, Container, Scene3D

SketchKind: TypeAlias = Literal["2d", "3d"]
UpdateFn: TypeAlias = Callable[[float, float], None]
DisposeFn: TypeAlias = Callable[[], None]


@dataclass(frozen=True, slots=True)
class SizeParams:
    """スケッチの論理サイズと解像度倍率。

    Notes
    -----
    width/height は論理ピクセル（モデル空間の単位）。backing buffer は
    `width * resolution` × `height * resolution` になる。
    """

    width: float
    height: float
    resolution: float = 1.0

    def __post_init__(self) -> None:
        if float(self.width) <= 0.0 or float(self.height) <= 0.0:
            raise ValueError(f"width/height は正の値である必要がある: {self!r}")
        if float(self.resolution) <= 0.0:
            raise ValueError(f"resolution は正の値である必要がある: {self!r}")

    def merged(
        self,
        *,
        width: float | None = None,
        height: float | None = None,
        resolution: float | None = None,
    ) -> "SizeParams":
        """None でない値だけを上書きした SizeParams を返す。"""

        changes: dict[str, float] = {}
        if width is not None:
            changes["width"] = float(width)
        if height is not None:
            changes["height"] = float(height)
        if resolution is not None:
            changes["resolution"] = float(resolution)
        return replace(self, **changes) if changes else self

    @property
    def pixel_size(self) -> tuple[int, int]:
        """backing buffer のピクセルサイズ `(w, h)` を返す。"""

        r = float(self.resolution)
        return (
            max(1, int(round(float(self.width) * r))),
            max(1, int(round(float(self.height) * r))),
        )

    def same_dimensions(self, other: "SizeParams") -> bool:
        return float(self.width) == float(other.width) and float(self.height) == float(
            other.height
        )


@dataclass(frozen=True, slots=True)
class Instance2D:
    """2D スケッチの 1 回分の実体。"""

    container: Container
    update: UpdateFn | None = None
    dispose: DisposeFn | None = None
    kind: Literal["2d"] = field(default="2d", init=False)


@dataclass(frozen=True, slots=True)
class Instance3D:
    """3D スケッチの 1 回分の実体。"""

    scene: Scene3D
    camera: Camera
    update: UpdateFn | None = None
    dispose: DisposeFn | None = None
    kind: Literal["3d"] = field(default="3d", init=False)


SketchInstance: TypeAlias = Instance2D | Instance3D


@dataclass(frozen=True, slots=True)
class RenderingContext:
    """ファクトリへ渡すレンダラー固有の文脈（例: ModernGL の Context）。"""

    kind: SketchKind
    ctx: Any = None


@dataclass(frozen=True, slots=True)
class SketchContext:
    """スケッチファクトリの入力。"""

    random: Random
    bbox: Box
    renderer: RenderingContext


SketchFactory: TypeAlias = Callable[[SketchContext], SketchInstance]


class SketchRendererLike(Protocol):
    """Sketch が必要とするレンダラーの最小インターフェース。"""

    @property
    def canvas(self) -> Any: ...

    def render(self, instance: SketchInstance, size: SizeParams) -> SizeParams: ...

    def resize(self, size: SizeParams) -> SizeParams: ...

    def rendering_context(self, kind: SketchKind) -> RenderingContext: ...

    def to_blob(self, mime: str = "image/png", quality: float | None = None) -> bytes: ...

    def destroy(self) -> None: ...


__all__ = [
    "DisposeFn",
    "Instance2D",
    "Instance3D",
    "RenderingContext",
    "SizeParams",
    "SketchContext",
    "SketchFactory",
    "SketchInstance",
    "SketchKind",
    "SketchRendererLike",
    "UpdateFn",
]
