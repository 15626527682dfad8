"""
どこで: `src/sketchbook/interactive/runtime/perf.py`。
何を: 描画ループの区間計測（平均 / 最大 / フレーム予算超過数）を集計し、周期的に出力する。
なぜ: アニメーションのカクつきが update / render / 録画のどれに由来するかを、目標 fps の予算と比べて切り分けるため。
"""

from __future__ import annotations

import contextlib
import os
import time
from collections.abc import Iterator
from dataclasses import dataclass


def _env_value(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return float(default)
    try:
        return float(raw)
    except ValueError:
        return float(default)


def _env_enabled(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() not in {"", "0", "false", "no", "off"}


@dataclass(slots=True)
class SectionStats:
    """1 区間の集計窓内の統計（ナノ秒）。"""

    total_ns: int = 0
    max_ns: int = 0
    calls: int = 0

    def add(self, dt_ns: int) -> None:
        self.total_ns += dt_ns
        self.max_ns = max(self.max_ns, dt_ns)
        self.calls += 1


class PerfCollector:
    """フレーム区間計測の集計器。

    Parameters
    ----------
    enabled : bool
        False の場合、`frame()` / `section()` は何もしない。
    print_every : int
        何フレームごとに 1 行出力して集計をリセットするか。
    target_fps : float
        フレーム予算（`1000 / target_fps` ms）の基準。超えたフレームを `over` として数える。
    """

    def __init__(self, *, enabled: bool, print_every: int = 60, target_fps: float = 60.0) -> None:
        self.enabled = bool(enabled)
        self.print_every = max(1, int(print_every))
        self.budget_ns = int(1_000_000_000 / float(target_fps)) if float(target_fps) > 0 else 0

        self._frames = 0
        self._over_budget = 0
        self._sections: dict[str, SectionStats] = {}

    @classmethod
    def from_env(cls, *, target_fps: float = 60.0) -> "PerfCollector":
        """`SKETCHBOOK_PERF=1` で有効化し、`SKETCHBOOK_PERF_EVERY` で出力間隔を指定する。"""

        return cls(
            enabled=_env_enabled("SKETCHBOOK_PERF"),
            print_every=int(_env_value("SKETCHBOOK_PERF_EVERY", 60)),
            target_fps=target_fps,
        )

    @contextlib.contextmanager
    def section(self, name: str) -> Iterator[None]:
        """`with` で囲った区間の時間を name へ加算する。"""

        if not self.enabled:
            yield
            return
        t0 = time.perf_counter_ns()
        try:
            yield
        finally:
            self._stats(name).add(time.perf_counter_ns() - t0)

    @contextlib.contextmanager
    def frame(self) -> Iterator[None]:
        """1 フレーム全体を計測し、print_every フレームごとに出力する。"""

        if not self.enabled:
            yield
            return
        t0 = time.perf_counter_ns()
        try:
            yield
        finally:
            dt = time.perf_counter_ns() - t0
            self._stats("frame").add(dt)
            self._frames += 1
            if self.budget_ns and dt > self.budget_ns:
                self._over_budget += 1
            if self._frames >= self.print_every:
                print("[sketchbook-perf]", self.report())
                self.reset()

    def summary(self) -> dict[str, float]:
        """現在の集計窓の、区間ごとの 1 フレームあたり平均ミリ秒を返す。"""

        frames = max(1, self._frames)
        return {name: s.total_ns / frames / 1e6 for name, s in self._sections.items()}

    def report(self) -> str:
        """`frame=..ms (max ..) over=N/M render=..ms ...` 形式の 1 行を返す。"""

        averages = self.summary()
        frame = self._sections.get("frame", SectionStats())
        parts = [
            f"frame={averages.get('frame', 0.0):.3f}ms (max {frame.max_ns / 1e6:.3f})",
            f"over={self._over_budget}/{self._frames}",
        ]
        for name in sorted(n for n in self._sections if n != "frame"):
            s = self._sections[name]
            text = f"{name}={averages[name]:.3f}ms (max {s.max_ns / 1e6:.3f})"
            if self._frames and s.calls > self._frames:
                text += f" x{s.calls / self._frames:.1f}"
            parts.append(text)
        return " ".join(parts)

    def reset(self) -> None:
        self._frames = 0
        self._over_budget = 0
        self._sections.clear()

    def _stats(self, name: str) -> SectionStats:
        stats = self._sections.get(name)
        if stats is None:
            stats = self._sections[name] = SectionStats()
        return stats


__all__ = ["PerfCollector", "SectionStats"]
