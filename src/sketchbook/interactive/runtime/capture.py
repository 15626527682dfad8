# どこで: `src/sketchbook/interactive/runtime/capture.py`。
# 何を: サーフェス内容の PNG スナップショットと、V キー録画の開始/停止/フレーム書き込みを担当する。
# なぜ: キー入力（イベント）とファイル書き出し（フレーム境界）を分離し、ランナーからは 1 箇所で扱うため。

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from sketchbook.export.image import encode_image, save_blob
from sketchbook.interactive.runtime.video_recorder import VideoRecorder

_logger = logging.getLogger(__name__)

RecorderFactory = Callable[..., Any]


class CanvasCapture:
    """スナップショットと動画録画の最小ステートマシン。

    Notes
    -----
    `request_snapshot()` / `toggle_recording()` はキー入力から呼ばれ、要求を溜めるだけ。
    実際の書き出しはフレーム末尾の `check_hotkeys()` で行う（描画直後の内容を読むため）。
    """

    def __init__(
        self,
        surface: Any,
        *,
        png_path: Path,
        video_path: Path,
        fps: float = 60.0,
        recorder_factory: RecorderFactory = VideoRecorder,
    ) -> None:
        if float(fps) <= 0:
            raise ValueError("録画には fps > 0 が必要です")
        self._surface = surface
        self._png_path = Path(png_path)
        self._video_path = Path(video_path)
        self._fps = float(fps)
        self._recorder_factory = recorder_factory
        self._recorder: Any = None
        self._snapshot_requested = False
        self._toggle_requested = False

    @property
    def is_recording(self) -> bool:
        return self._recorder is not None

    @property
    def fps(self) -> float:
        return self._fps

    def request_snapshot(self) -> None:
        self._snapshot_requested = True

    def toggle_recording(self) -> None:
        self._toggle_requested = True

    def check_hotkeys(self) -> None:
        """溜まっている要求（スナップショット / 録画切り替え）を処理する。"""

        if self._snapshot_requested:
            self._snapshot_requested = False
            try:
                path = self.save_snapshot()
                print(f"Saved PNG: {path}")
            except (OSError, RuntimeError, ValueError) as e:
                _logger.exception("Failed to save PNG")
                print(f"Failed to save PNG: {e}")

        if self._toggle_requested:
            self._toggle_requested = False
            if self.is_recording:
                self.stop_recording()
            else:
                self.start_recording()

    def save_snapshot(self, path: Path | None = None) -> Path:
        """現在のサーフェス内容を PNG で保存し、保存先パスを返す。"""

        blob = encode_image(self._surface.read_pixels(), "image/png")
        return save_blob(blob, path if path is not None else self._png_path)

    def start_recording(self) -> None:
        """録画を開始する。"""

        if self._recorder is not None:
            return
        w, h = self._surface.drawing_buffer_size
        self._recorder = self._recorder_factory(
            output_path=self._video_path,
            size=(int(w), int(h)),
            fps=self._fps,
        )
        print(f"Started video recording: {self._video_path} (fps={self._fps:g})")

    def record_frame(self) -> None:
        """現在のサーフェス内容を 1 フレームとして書き込む。"""

        recorder = self._recorder
        if recorder is None:
            return
        pixels = self._surface.read_pixels()
        h, w = int(pixels.shape[0]), int(pixels.shape[1])
        if (w, h) != tuple(recorder.size):
            _logger.warning(
                "録画中に描画バッファのサイズが変わったため録画を終了します: %s -> %s",
                tuple(recorder.size),
                (w, h),
            )
            self.stop_recording()
            return
        recorder.write_frame(pixels)

    def stop_recording(self) -> Path | None:
        """録画を終了し、保存先パスを返す（録画していなければ None）。"""

        recorder = self._recorder
        if recorder is None:
            return None
        self._recorder = None
        recorder.close()
        print(
            f"Saved video: {recorder.path} "
            f"(frames={recorder.frames_written}, seconds={recorder.seconds:.3f})"
        )
        return Path(recorder.path)

    def close(self) -> None:
        """録画中なら終了する。"""

        if self.is_recording:
            try:
                self.stop_recording()
            except RuntimeError:
                _logger.exception("Failed to stop video recording")


__all__ = ["CanvasCapture"]
