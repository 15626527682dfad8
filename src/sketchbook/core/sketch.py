# どこで: `src/sketchbook/core/sketch.py`。
# 何を: seed・乱数・サイズ・現在インスタンスを保持し、生成/再生成/リサイズ/エクスポート/破棄を統括する。
# なぜ: 「同じ seed と同じ消費履歴なら同じ作品」を、再生成とリサイズを跨いで保証するため。

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Literal

from sketchbook.core.bbox import Box
from sketchbook.core.random import Random
from sketchbook.core.types import (
    Instance2D,
    Instance3D,
    SizeParams,
    SketchContext,
    SketchFactory,
    SketchInstance,
    SketchKind,
    SketchRendererLike,
)

_logger = logging.getLogger(__name__)

SketchState = Literal["unborn", "live", "destroyed"]

_INSTANCE_TYPES: dict[str, type] = {"2d": Instance2D, "3d": Instance3D}


class Sketch:
    """スケッチのライフサイクル制御。

    Parameters
    ----------
    factory : SketchFactory
        `SketchContext -> Instance2D | Instance3D` のファクトリ。入力だけの関数であること。
    renderer : SketchRendererLike
        描画アダプタ。サーフェス/コンテキストは複数インスタンスで共有される。
    size : SizeParams
        初期サイズ。
    seed : Sequence[int] | None
        乱数 seed。None の場合はエントロピーから生成し記録する。
    kind : {"2d", "3d"}
        ファクトリが返すインスタンスの種別。

    Notes
    -----
    インスタンスは遅延生成される（最初の `render()` まで作らない）。
    `used_count_at_last_regenerate` は直近のインスタンス生成直前の乱数消費数で、
    `resize()` はこの位置まで seed からリプレイしてから作り直す。
    """

    def __init__(
        self,
        factory: SketchFactory,
        renderer: SketchRendererLike,
        *,
        size: SizeParams,
        seed: Sequence[int] | None = None,
        kind: SketchKind = "2d",
    ) -> None:
        if kind not in _INSTANCE_TYPES:
            raise ValueError(f"未知の kind: {kind!r}")
        self._factory = factory
        self._renderer = renderer
        self._kind: SketchKind = kind
        self._random = Random(seed)
        self._seed = self._random.seed
        self._size = size
        self._instance: SketchInstance | None = None
        self._used_count_at_last_regenerate = 0
        self._destroyed = False

    # --- 状態 ---

    @property
    def seed(self) -> tuple[int, ...]:
        return self._seed

    @property
    def random(self) -> Random:
        return self._random

    @property
    def kind(self) -> SketchKind:
        return self._kind

    @property
    def size(self) -> SizeParams:
        return self._size

    @property
    def renderer(self) -> SketchRendererLike:
        return self._renderer

    @property
    def canvas(self) -> Any:
        return self._renderer.canvas

    @property
    def instance(self) -> SketchInstance | None:
        return self._instance

    @property
    def used_count_at_last_regenerate(self) -> int:
        return self._used_count_at_last_regenerate

    @property
    def state(self) -> SketchState:
        if self._destroyed:
            return "destroyed"
        return "unborn" if self._instance is None else "live"

    @property
    def has_update(self) -> bool:
        return self._instance is not None and self._instance.update is not None

    # --- 操作 ---

    def render(self) -> None:
        """現在インスタンスを描画する（無ければ生成する）。"""

        self._ensure_alive()
        if self._instance is None:
            self._instance = self._iterate()
        self._size = self._renderer.render(self._instance, self._size)

    def update(self, total_time: float, delta_time: float) -> None:
        """インスタンスの update 関数があれば呼ぶ。"""

        instance = self._instance
        if instance is not None and instance.update is not None:
            instance.update(float(total_time), float(delta_time))

    def next(self) -> None:
        """現在インスタンスを破棄し、乱数列を継続したまま新しいインスタンスを作る。"""

        self._ensure_alive()
        self._destroy_instance()
        _logger.debug(
            "regenerate: seed=%s used_count=%d", list(self._seed), self._random.use_count
        )
        self._instance = self._iterate()

    def resize(
        self,
        width: float | None = None,
        height: float | None = None,
        resolution: float | None = None,
    ) -> None:
        """サイズを部分更新する。

        width/height が変わった場合は、乱数を直近の生成直前の状態へリプレイして作り直す。
        resolution だけの変更では作り直さない。
        """

        self._ensure_alive()
        previous = self._size
        self._size = previous.merged(width=width, height=height, resolution=resolution)
        if self._size.same_dimensions(previous):
            return

        _logger.debug(
            "resize: %sx%s -> %sx%s (replay used_count=%d)",
            previous.width,
            previous.height,
            self._size.width,
            self._size.height,
            self._used_count_at_last_regenerate,
        )
        self._destroy_instance()
        self._random = Random.replay(self._seed, self._used_count_at_last_regenerate)
        self._instance = self._iterate()

    def export(
        self,
        *,
        mime: str = "image/png",
        quality: float | None = None,
        width: float | None = None,
        height: float | None = None,
        resolution: float | None = None,
    ) -> bytes:
        """一時的にサイズを上書きして描画し、画像 blob を返す。

        Notes
        -----
        成否に関わらず、戻った時点の `size` は呼び出し前と同じになる。
        blob 変換の失敗はそのまま呼び出し元へ伝播する（再試行しない）。
        """

        self._ensure_alive()
        previous = self._size
        ok = False
        try:
            self.resize(width=width, height=height, resolution=resolution)
            self.render()
            blob = self._renderer.to_blob(mime, quality)
            ok = True
        finally:
            try:
                self.resize(
                    width=previous.width,
                    height=previous.height,
                    resolution=previous.resolution,
                )
            finally:
                self._size = previous
        if ok:
            self.render()
        return blob

    def destroy(self) -> None:
        """インスタンスの所有資源を解放し、以後の操作を禁止する（冪等）。

        共有のレンダラー（コンテキスト/サーフェス）は解放しない。
        """

        if self._destroyed:
            return
        try:
            self._destroy_instance()
        finally:
            self._destroyed = True

    # --- 内部 ---

    def _ensure_alive(self) -> None:
        if self._destroyed:
            raise RuntimeError("破棄済みの Sketch は操作できない")

    def _iterate(self) -> SketchInstance:
        w = float(self._size.width)
        h = float(self._size.height)
        self._used_count_at_last_regenerate = self._random.use_count
        context = SketchContext(
            random=self._random,
            bbox=Box.centered(w, h),
            renderer=self._renderer.rendering_context(self._kind),
        )
        instance = self._factory(context)
        expected = _INSTANCE_TYPES[self._kind]
        if not isinstance(instance, expected):
            raise TypeError(
                f"ファクトリの戻り値が kind={self._kind!r} と一致しない: {type(instance).__name__}"
            )
        return instance

    def _destroy_instance(self) -> None:
        instance = self._instance
        if instance is None:
            return
        self._instance = None
        if instance.kind == "2d":
            instance.container.destroy(children=True)
        else:
            instance.scene.destroy(children=True)
        if instance.dispose is not None:
            instance.dispose()


__all__ = ["Sketch", "SketchState"]
