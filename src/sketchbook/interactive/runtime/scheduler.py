# どこで: `src/sketchbook/interactive/runtime/scheduler.py`。
# 何を: フレームスケジューラの契約と、手動で時刻を進める ManualFrameScheduler を提供する。
# なぜ: ランナーを「次フレームの要求/取り消し」だけに依存させ、ヘッドレス録画やテストで決定的に回すため。

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

FrameCallback = Callable[[float], None]


class FrameScheduler(Protocol):
    """次フレームのコールバックを 1 回だけ呼ぶスケジューラ。

    コールバックはミリ秒のタイムスタンプを受け取る。
    """

    def request_frame(self, callback: FrameCallback) -> Any: ...

    def cancel_frame(self, handle: Any) -> None: ...


class ManualFrameScheduler:
    """`advance(timestamp)` の呼び出しでだけフレームが進むスケジューラ。

    Notes
    -----
    `advance()` 中に要求されたコールバックは次の `advance()` で呼ばれる。
    """

    def __init__(self) -> None:
        self._pending: dict[int, FrameCallback] = {}
        self._next_handle = 1

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def request_frame(self, callback: FrameCallback) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._pending[handle] = callback
        return handle

    def cancel_frame(self, handle: Any) -> None:
        self._pending.pop(handle, None)

    def advance(self, timestamp: float) -> int:
        """保留中のコールバックを timestamp（ミリ秒）で呼び、呼んだ数を返す。"""

        callbacks = list(self._pending.values())
        self._pending.clear()
        for callback in callbacks:
            callback(float(timestamp))
        return len(callbacks)


__all__ = ["FrameCallback", "FrameScheduler", "ManualFrameScheduler"]
