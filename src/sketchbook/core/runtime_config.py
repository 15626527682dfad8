# どこで: `src/sketchbook/core/runtime_config.py`。
# 何を: config.yaml による実行時設定（探索・ロード・キャッシュ）を提供する。
# なぜ: 既定サイズや出力先、描画バックエンドをコードを触らずに切り替えられるようにするため。

from __future__ import annotations

import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any

import yaml


@dataclass(frozen=True, slots=True)
class RuntimeConfig:
    """sketchbook の実行時設定。"""

    config_path: Path | None
    output_dir: Path
    sketch_dir: Path | None
    sketch_width: int
    sketch_height: int
    sketch_resolution: float
    window_position: tuple[int, int]
    min_size: tuple[int, int]
    render_backend: str
    antialias: bool
    background_color: tuple[float, float, float]
    export_mime: str
    recording_fps: int


_BACKENDS = ("window", "headless")
_MIMES = ("image/png", "image/jpeg", "image/webp")

_EXPLICIT_CONFIG_PATH: Path | None = None
_CONFIG_CACHE: RuntimeConfig | None = None


def set_config_path(path: str | Path | None) -> None:
    """以降の設定探索で使う明示 config パスを設定する。

    Notes
    -----
    `path` を None にすると明示指定を解除し、既定の探索に戻る。
    """

    global _EXPLICIT_CONFIG_PATH, _CONFIG_CACHE
    if path is None:
        _EXPLICIT_CONFIG_PATH = None
        _CONFIG_CACHE = None
        return
    _EXPLICIT_CONFIG_PATH = Path(str(path)).expanduser()
    _CONFIG_CACHE = None


def _default_config_candidates() -> tuple[Path, ...]:
    cwd = Path.cwd()
    home = Path.home()
    return (
        cwd / ".sketchbook" / "config.yaml",
        home / ".config" / "sketchbook" / "config.yaml",
    )


def _as_optional_path(value: Any) -> Path | None:
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    return Path(os.path.expandvars(os.path.expanduser(s)))


def _as_mapping(value: Any, *, key: str) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, dict):
        return dict(value)
    raise RuntimeError(f"{key} は mapping である必要があります: got={value!r}")


def _as_int_pair(value: Any, *, key: str) -> tuple[int, int]:
    if value is None:
        raise RuntimeError(f"{key} が未設定です（同梱 default_config.yaml を確認してください）")
    try:
        seq = list(value)
    except TypeError as exc:
        raise RuntimeError(f"{key} は [x, y] の配列である必要があります: got={value!r}") from exc
    if len(seq) != 2:
        raise RuntimeError(f"{key} は [x, y] の配列である必要があります: got={value!r}")
    try:
        return (int(seq[0]), int(seq[1]))
    except (TypeError, ValueError) as exc:
        raise RuntimeError(f"{key} は [x, y] の整数配列である必要があります: got={value!r}") from exc


def _as_float(value: Any, *, key: str) -> float:
    if value is None:
        raise RuntimeError(f"{key} が未設定です（同梱 default_config.yaml を確認してください）")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise RuntimeError(f"{key} は数値である必要があります: got={value!r}") from exc


def _as_positive(value: Any, *, key: str) -> float:
    v = _as_float(value, key=key)
    if v <= 0:
        raise ValueError(f"{key} は正の値である必要があります: got={v}")
    return v


def _as_color(value: Any, *, key: str) -> tuple[float, float, float]:
    try:
        seq = [float(v) for v in value]
    except (TypeError, ValueError) as exc:
        raise RuntimeError(f"{key} は [r, g, b] の数値配列である必要があります: got={value!r}") from exc
    if len(seq) != 3:
        raise RuntimeError(f"{key} は [r, g, b] の数値配列である必要があります: got={value!r}")
    if any(c < 0.0 or c > 1.0 for c in seq):
        raise ValueError(f"{key} の各成分は 0..1 である必要があります: got={value!r}")
    return (seq[0], seq[1], seq[2])


def _as_choice(value: Any, choices: tuple[str, ...], *, key: str) -> str:
    s = str(value).strip().lower() if value is not None else ""
    if s not in choices:
        raise ValueError(f"{key} は {list(choices)} のいずれかである必要があります: got={value!r}")
    return s


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """セクション単位（1 段ネスト）で上書きした dict を返す。"""

    out = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            merged = dict(out[key])
            merged.update(value)
            out[key] = merged
        else:
            out[key] = value
    return out


def _load_yaml_text(text: str, *, source: str) -> dict[str, Any]:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise RuntimeError(f"config.yaml の読み込みに失敗しました: source={source}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise RuntimeError(f"config.yaml は mapping である必要があります: source={source}")
    return dict(data)


def _load_yaml_config(path: Path) -> dict[str, Any]:
    return _load_yaml_text(path.read_text(encoding="utf-8"), source=str(path))


def _load_packaged_default_config() -> dict[str, Any]:
    """同梱デフォルト config をロードして dict を返す。"""

    try:
        blob = (
            resources.files("sketchbook")
            .joinpath("resource", "default_config.yaml")
            .read_text(encoding="utf-8")
        )
    except OSError as exc:  # pragma: no cover
        raise RuntimeError(
            "同梱 default_config.yaml の読み込みに失敗しました"
            "（パッケージ配布物の package-data を確認してください）"
        ) from exc

    return _load_yaml_text(blob, source="sketchbook/resource/default_config.yaml")


def runtime_config() -> RuntimeConfig:
    """実行時設定をロードして返す（キャッシュ）。

    上書き順（後勝ち）:
    1) 同梱 default_config.yaml
    2) `./.sketchbook/config.yaml` / `~/.config/sketchbook/config.yaml`
    3) `set_config_path()` / `run(..., config_path=...)` の明示パス
    """

    global _CONFIG_CACHE
    if _CONFIG_CACHE is not None:
        return _CONFIG_CACHE

    explicit_path = _EXPLICIT_CONFIG_PATH
    if explicit_path is not None and not explicit_path.is_file():
        raise FileNotFoundError(f"config.yaml が見つかりません: {explicit_path}")

    discovered_path: Path | None = None
    for p in _default_config_candidates():
        if p.is_file():
            discovered_path = p
            break

    payload = _load_packaged_default_config()
    if discovered_path is not None:
        payload = _merge(payload, _load_yaml_config(discovered_path))
    if explicit_path is not None:
        payload = _merge(payload, _load_yaml_config(explicit_path))

    version = payload.get("version")
    if version is None:
        raise RuntimeError(
            "config.yaml の version が未設定です（同梱 default_config.yaml を確認してください）"
        )
    try:
        version_i = int(version)
    except (TypeError, ValueError) as exc:
        raise RuntimeError(f"config.yaml の version は整数である必要があります: got={version!r}") from exc
    if version_i != 1:
        raise RuntimeError(f"未対応の config.yaml version です: got={version_i}")

    paths = _as_mapping(payload.get("paths"), key="paths")
    output_dir = _as_optional_path(paths.get("output_dir"))
    if output_dir is None:
        raise RuntimeError(
            "paths.output_dir が未設定です（同梱 default_config.yaml を確認してください）"
        )
    sketch_dir = _as_optional_path(paths.get("sketch_dir"))

    sketch = _as_mapping(payload.get("sketch"), key="sketch")
    width = int(_as_positive(sketch.get("width"), key="sketch.width"))
    height = int(_as_positive(sketch.get("height"), key="sketch.height"))
    resolution = _as_positive(sketch.get("resolution"), key="sketch.resolution")

    ui = _as_mapping(payload.get("ui"), key="ui")
    window_position = _as_int_pair(ui.get("window_position"), key="ui.window_position")
    min_size = _as_int_pair(ui.get("min_size"), key="ui.min_size")

    render = _as_mapping(payload.get("render"), key="render")
    backend = _as_choice(render.get("backend"), _BACKENDS, key="render.backend")
    antialias = bool(render.get("antialias", True))
    background_color = _as_color(
        render.get("background_color", (1.0, 1.0, 1.0)), key="render.background_color"
    )

    export = _as_mapping(payload.get("export"), key="export")
    export_mime = _as_choice(export.get("mime"), _MIMES, key="export.mime")

    recording = _as_mapping(payload.get("recording"), key="recording")
    recording_fps = int(_as_positive(recording.get("fps"), key="recording.fps"))

    cfg = RuntimeConfig(
        config_path=explicit_path or discovered_path,
        output_dir=output_dir,
        sketch_dir=sketch_dir,
        sketch_width=width,
        sketch_height=height,
        sketch_resolution=float(resolution),
        window_position=window_position,
        min_size=min_size,
        render_backend=backend,
        antialias=antialias,
        background_color=background_color,
        export_mime=export_mime,
        recording_fps=recording_fps,
    )
    _CONFIG_CACHE = cfg
    return cfg


def output_root_dir() -> Path:
    """出力ファイルを保存する既定ルートディレクトリを返す。"""

    return Path(runtime_config().output_dir)


__all__ = ["RuntimeConfig", "output_root_dir", "runtime_config", "set_config_path"]
