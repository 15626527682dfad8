# どこで: `src/sketchbook/core/output_paths.py`。
# 何を: スケッチファクトリの定義元と seed から、PNG / 動画の保存先パスを決める。
# なぜ: 同じスケッチの別 seed の出力を上書きせず、`output/{kind}/` 配下に sketch/ の構造をミラーして並べるため。

from __future__ import annotations

import inspect
import re
import zlib
from collections.abc import Callable, Sequence
from pathlib import Path

from sketchbook.core.runtime_config import output_root_dir, runtime_config

# これより長い seed（エントロピー由来）はファイル名ではハッシュで表す。
_MAX_LITERAL_SEED = 4


def seed_tag(seed: Sequence[int]) -> str:
    """seed をファイル名に埋め込める短いタグにする。

    Examples
    --------
    >>> seed_tag((1, 2, 3))
    's1-2-3'
    """

    values = [int(v) for v in seed]
    if len(values) <= _MAX_LITERAL_SEED:
        return "s" + "-".join(str(v) for v in values)
    digest = zlib.crc32(",".join(str(v) for v in values).encode("ascii"))
    return f"s{digest:08x}"


def _source_file(factory: Callable[..., object]) -> Path | None:
    """factory を定義したファイルを返す（`<stdin>` などの疑似ファイルなら None）。"""

    code = getattr(factory, "__code__", None)
    filename = getattr(code, "co_filename", None)
    if filename is None:
        try:
            filename = inspect.getsourcefile(factory) or inspect.getfile(factory)
        except TypeError:
            return None
    if not filename or str(filename).startswith("<"):
        return None
    return Path(str(filename))


def _relative_to_sketch_dir(source: Path, sketch_dir: Path | None) -> Path | None:
    if sketch_dir is None:
        return None
    try:
        return source.resolve(strict=False).relative_to(Path(sketch_dir).resolve(strict=False))
    except ValueError:
        return None


def output_path_for_factory(
    *,
    kind: str,
    ext: str,
    factory: Callable[..., object],
    seed: Sequence[int] | None = None,
    run_id: str | None = None,
) -> Path:
    """factory の保存先パスを返す。

    - 定義元が `paths.sketch_dir` 配下: `output_root/{kind}/<相対 dir>/<stem>[_seed][_run_id].{ext}`
    - それ以外: `output_root/{kind}/misc/<stem>[_seed][_run_id].{ext}`
    """

    ext_norm = str(ext).strip().lstrip(".")
    if not ext_norm:
        raise ValueError("ext は空でない必要がある")

    source = _source_file(factory)
    rel = _relative_to_sketch_dir(source, runtime_config().sketch_dir) if source else None

    parts = [rel.stem if rel is not None else (source.stem if source is not None else "unknown")]
    if seed is not None:
        parts.append(seed_tag(seed))
    if run_id is not None and str(run_id).strip():
        parts.append(re.sub(r"[^A-Za-z0-9._-]+", "_", str(run_id).strip()))
    filename = f"{'_'.join(parts)}.{ext_norm}"

    base_dir = output_root_dir() / str(kind)
    if rel is None:
        return base_dir / "misc" / filename
    return base_dir / rel.parent / filename


__all__ = ["output_path_for_factory", "seed_tag"]
