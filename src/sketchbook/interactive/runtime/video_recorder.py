# どこで: `src/sketchbook/interactive/runtime/video_recorder.py`。
# 何を: サーフェスから読んだ RGB 画素配列を ffmpeg へ流し、H.264 の mp4 として保存する録画器を提供する。
# なぜ: スケッチのアニメーションを、描画 fps と切り離した一定 fps の動画として残すため。

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

import numpy as np

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EncoderSettings:
    """ffmpeg 側のエンコード設定。

    Notes
    -----
    yuv420p は幅・高さが偶数でないと受け付けないため、入力は偶数サイズへ切り詰める。
    """

    codec: str = "libx264"
    pix_fmt: str = "yuv420p"
    crf: int = 18

    def command(self, output_path: Path, size: tuple[int, int], fps: float) -> list[str]:
        """stdin から rgb24 の rawvideo を読む ffmpeg コマンドを返す。"""

        width, height = size
        return [
            "ffmpeg",
            "-hide_banner",
            "-loglevel",
            "error",
            "-y",
            "-f",
            "rawvideo",
            "-pix_fmt",
            "rgb24",
            "-video_size",
            f"{int(width)}x{int(height)}",
            "-framerate",
            str(float(fps)),
            "-i",
            "-",
            "-vf",
            "crop=trunc(iw/2)*2:trunc(ih/2)*2",
            "-an",
            "-c:v",
            self.codec,
            "-crf",
            str(int(self.crf)),
            "-pix_fmt",
            self.pix_fmt,
            "-movflags",
            "+faststart",
            str(output_path),
        ]


class VideoRecorder:
    """`(h, w, 3)` の uint8 フレーム（上から下の行順）を 1 本の動画へ書き出す。

    Parameters
    ----------
    output_path : Path
        保存先。親ディレクトリは作成する。
    size : tuple[int, int]
        フレームの `(width, height)`。途中で変えられない。
    fps : float
        動画のフレームレート。
    settings : EncoderSettings | None
        None の場合は既定（libx264 / yuv420p / crf=18）。

    Raises
    ------
    RuntimeError
        ffmpeg が見つからない、または起動に失敗した場合。
    """

    def __init__(
        self,
        *,
        output_path: Path,
        size: tuple[int, int],
        fps: float,
        settings: EncoderSettings | None = None,
    ) -> None:
        if float(fps) <= 0:
            raise ValueError("fps は正の値である必要がある")
        width, height = (int(v) for v in size)
        if width <= 0 or height <= 0:
            raise ValueError(f"size は正の (width, height) である必要がある: got={size!r}")

        self.path = Path(output_path)
        self.size = (width, height)
        self.fps = float(fps)
        self.frames_written = 0
        self._settings = settings if settings is not None else EncoderSettings()

        self.path.parent.mkdir(parents=True, exist_ok=True)
        cmd = self._settings.command(self.path, self.size, self.fps)
        try:
            self._proc: subprocess.Popen[bytes] | None = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise RuntimeError("ffmpeg が見つかりません（PATH を確認してください）") from e
        if self._proc.stdin is None:
            raise RuntimeError("ffmpeg stdin pipe の作成に失敗しました")
        _logger.debug("ffmpeg started: %s", " ".join(cmd))

    @property
    def seconds(self) -> float:
        """書き込んだフレーム数を動画の長さ（秒）に換算して返す。"""

        return self.frames_written / self.fps

    def write_frame(self, pixels: np.ndarray) -> None:
        """1 フレーム分の画素配列を書き込む。

        Raises
        ------
        ValueError
            形状が `(height, width, 3)` でない、または dtype が uint8 でない場合。
        RuntimeError
            録画が終了済み、または ffmpeg が終了している場合。
        """

        proc = self._proc
        if proc is None or proc.stdin is None:
            raise RuntimeError("録画は終了しています")
        width, height = self.size
        if pixels.shape != (height, width, 3) or pixels.dtype != np.uint8:
            raise ValueError(
                f"フレームは uint8 の {(height, width, 3)} である必要がある: "
                f"got shape={pixels.shape} dtype={pixels.dtype}"
            )
        try:
            proc.stdin.write(np.ascontiguousarray(pixels).tobytes())
        except BrokenPipeError as e:
            raise RuntimeError("ffmpeg への書き込みに失敗しました（プロセスが終了しています）") from e
        self.frames_written += 1

    def close(self) -> None:
        """EOF を送って ffmpeg の終了を待つ（冪等）。"""

        proc = self._proc
        if proc is None:
            return
        self._proc = None
        # stdin.close() を先に呼ばず、communicate に flush と close を任せる。
        _stdout, stderr = proc.communicate(input=b"")
        if proc.returncode != 0:
            details = stderr.decode("utf-8", errors="replace").strip() if stderr else ""
            raise RuntimeError(f"ffmpeg が失敗しました (code={proc.returncode}). {details}".strip())

    def __enter__(self) -> "VideoRecorder":
        return self

    def __exit__(self, _exc_type: object, _exc: object, _tb: object) -> None:
        self.close()


__all__ = ["EncoderSettings", "VideoRecorder"]
