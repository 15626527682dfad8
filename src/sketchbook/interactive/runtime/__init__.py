# どこで: `src/sketchbook/interactive/runtime/__init__.py`。
# 何を: 描画ループ・スケジューラ・キャプチャなど実行時サブシステムをまとめるパッケージ定義。
# なぜ: `src/sketchbook/api/runner.py` を配線に寄せ、責務ごとに差し替えやすくするため。

from __future__ import annotations

__all__ = []
