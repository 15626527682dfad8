# どこで: `src/sketchbook/api/__init__.py`。
# 何を: 公開 API（run / export_sketch / record_sketch）のエントリポイント。
# なぜ: スケッチから `from sketchbook.api import run` だけで起動できるようにするため。

from __future__ import annotations

from .export import export_sketch, record_sketch

__all__ = ["export_sketch", "record_sketch", "run"]


def run(*args, **kwargs):
    """公開 run API へのラッパ（遅延インポートでウィンドウ依存を後回しにする）。"""

    from .runner import run as _run

    return _run(*args, **kwargs)
