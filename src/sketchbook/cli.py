"""
どこで: `src/sketchbook/cli.py`（`python -m sketchbook` の実体）。
何を: スケッチ指定（`path.py[:attr]` / `module[:attr]`）を解決し、run / export / record を起動する。
なぜ: スケッチファイルに `__main__` を書かなくても、seed やサイズを指定して再現・書き出しできるようにするため。
"""

from __future__ import annotations

import argparse
import importlib
import importlib.util
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType

from sketchbook.core.types import SketchFactory, SketchKind

DEFAULT_ATTR = "sketch"


@dataclass(frozen=True, slots=True)
class SketchTarget:
    """解決済みのスケッチ指定。"""

    factory: SketchFactory
    kind: SketchKind | None


def _split_target(spec: str) -> tuple[str, str]:
    text = str(spec).strip()
    if not text:
        raise ValueError("TARGET が空です")
    # Windows のドライブレター（C:\...）は区切りとみなさない。
    head, sep, tail = text.rpartition(":")
    if sep and head and tail and not (len(head) == 1 and tail.startswith(("\\", "/"))):
        return head, tail
    return text, DEFAULT_ATTR


def _load_module_from_path(path: Path) -> ModuleType:
    if not path.is_file():
        raise FileNotFoundError(f"スケッチファイルが見つかりません: {path}")
    name = f"_sketchbook_target_{path.stem}"
    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"スケッチファイルを読み込めません: {path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    spec.loader.exec_module(module)
    return module


def load_target(spec: str) -> SketchTarget:
    """TARGET 文字列からファクトリと（あれば）モジュールの `KIND` を返す。

    Raises
    ------
    FileNotFoundError
        `.py` のパスが存在しない場合。
    AttributeError
        attr が見つからない、または呼び出し可能でない場合。
    """

    location, attr = _split_target(spec)
    if location.endswith(".py") or "/" in location or "\\" in location:
        module = _load_module_from_path(Path(location))
    else:
        module = importlib.import_module(location)

    factory = getattr(module, attr, None)
    if factory is None or not callable(factory):
        raise AttributeError(f"{location} に呼び出し可能な {attr!r} がありません")

    kind = getattr(module, "KIND", None)
    if kind is not None and kind not in ("2d", "3d"):
        raise ValueError(f"KIND は '2d' か '3d' である必要があります: got={kind!r}")
    return SketchTarget(factory=factory, kind=kind)


def parse_seed(text: str) -> tuple[int, ...]:
    """`"1,2,3"` 形式の seed を整数タプルにする。"""

    parts = [p.strip() for p in str(text).split(",") if p.strip()]
    if not parts:
        raise argparse.ArgumentTypeError("seed は 1 つ以上の整数が必要です")
    try:
        values = tuple(int(p) for p in parts)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"seed は整数のカンマ区切りです: {text}") from exc
    if any(v < 0 or v >= 2**32 for v in values):
        raise argparse.ArgumentTypeError(f"seed の各値は 0..2^32-1 です: {text}")
    return values


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("target", help="スケッチ（例: sketch/flow_field.py, sketch/orbits.py:sketch）")
    p.add_argument("--seed", type=parse_seed, default=None, help="seed（カンマ区切りの整数）")
    p.add_argument("--width", type=float, default=None, help="論理幅（省略時は config）")
    p.add_argument("--height", type=float, default=None, help="論理高さ（省略時は config）")
    p.add_argument("--resolution", type=float, default=None, help="解像度倍率")
    p.add_argument("--kind", choices=("2d", "3d"), default=None, help="スケッチ種別")
    p.add_argument("--config", default=None, help="config.yaml のパス")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="sketchbook")
    p.add_argument("-v", "--verbose", action="store_true", help="debug ログを出す")
    sub = p.add_subparsers(dest="command", required=True)

    p_run = sub.add_parser("run", help="ウィンドウでプレビューする")
    _add_common(p_run)
    p_run.add_argument("--fps", type=float, default=60.0, help="目標フレームレート")
    p_run.add_argument("--no-click", action="store_true", help="クリック再生成を無効化する")

    p_export = sub.add_parser("export", help="ヘッドレスで画像を書き出す")
    _add_common(p_export)
    p_export.add_argument("--out", default=None, help="出力パス（省略時は data/output 配下）")
    p_export.add_argument("--mime", default=None, help="image/png, image/jpeg, image/webp")
    p_export.add_argument("--quality", type=float, default=None, help="0..1（jpeg/webp のみ）")

    p_record = sub.add_parser("record", help="ヘッドレスで固定 fps の動画を書き出す")
    _add_common(p_record)
    p_record.add_argument("--out", default=None, help="出力パス（省略時は data/output 配下）")
    p_record.add_argument("--frames", type=int, required=True, help="フレーム数")
    p_record.add_argument("--fps", type=float, default=None, help="録画 fps（省略時は config）")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    target = load_target(args.target)
    kind = args.kind if args.kind is not None else target.kind
    common = dict(
        kind=kind,
        seed=args.seed,
        width=args.width,
        height=args.height,
        resolution=args.resolution,
        config_path=args.config,
    )

    from sketchbook.api import export_sketch, record_sketch, run

    if args.command == "run":
        run(target.factory, fps=args.fps, click=not args.no_click, **common)
        return 0
    if args.command == "export":
        export_sketch(target.factory, args.out, mime=args.mime, quality=args.quality, **common)
        return 0
    record_sketch(target.factory, args.out, frames=args.frames, fps=args.fps, **common)
    return 0


__all__ = ["SketchTarget", "build_parser", "load_target", "main", "parse_seed"]
