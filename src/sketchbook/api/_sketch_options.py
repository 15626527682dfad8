# どこで: `src/sketchbook/api/_sketch_options.py`。
# 何を: API 層（run/export/record）で共通の kind・サイズ・レンダラー設定の解決を提供する。
# なぜ: 引数 > スケッチ定義 > config.yaml の優先順位を 1 箇所で決め、導線ごとの差異をなくすため。

from __future__ import annotations

from pathlib import Path

from sketchbook.core.runtime_config import RuntimeConfig, runtime_config, set_config_path
from sketchbook.core.types import SizeParams, SketchFactory, SketchKind
from sketchbook.render.renderer import Backend, RenderParams


def load_config(config_path: str | Path | None) -> RuntimeConfig:
    """明示パスがあれば設定してから実行時設定を返す。"""

    if config_path is not None:
        set_config_path(config_path)
    return runtime_config()


def resolve_kind(factory: SketchFactory, kind: SketchKind | None) -> SketchKind:
    """引数 > factory の `KIND` 属性 > "2d" の順で kind を決める。"""

    if kind is not None:
        return kind
    declared = getattr(factory, "KIND", None)
    if declared in ("2d", "3d"):
        return declared
    return "2d"


def resolve_size(
    cfg: RuntimeConfig,
    *,
    width: float | None,
    height: float | None,
    resolution: float | None,
) -> SizeParams:
    return SizeParams(
        width=float(width if width is not None else cfg.sketch_width),
        height=float(height if height is not None else cfg.sketch_height),
        resolution=float(resolution if resolution is not None else cfg.sketch_resolution),
    )


def render_params(cfg: RuntimeConfig, backend: Backend) -> RenderParams:
    return RenderParams(
        antialias=cfg.antialias,
        background_color=cfg.background_color,
        backend=backend,
    )


__all__ = ["load_config", "render_params", "resolve_kind", "resolve_size"]
