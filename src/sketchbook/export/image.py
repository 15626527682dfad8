"""
どこで: `src/sketchbook/export/image.py`。
何を: 読み出したピクセル配列を PNG/JPEG/WebP の blob にエンコードし、ファイルへ保存する関数を提供する。
なぜ: `Sketch.export()` が返す blob の形式（MIME）をレンダラー実装から切り離すため。
"""

from __future__ import annotations

import io
from pathlib import Path

import numpy as np
from PIL import Image

_FORMATS: dict[str, str] = {
    "image/png": "PNG",
    "image/jpeg": "JPEG",
    "image/webp": "WEBP",
}
_EXTENSIONS: dict[str, str] = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
}


def supported_mimes() -> tuple[str, ...]:
    return tuple(_FORMATS)


def extension_for_mime(mime: str) -> str:
    """MIME に対応する拡張子（ドット無し）を返す。"""

    key = str(mime).strip().lower()
    if key not in _EXTENSIONS:
        raise ValueError(f"未対応の MIME: {mime!r}（対応: {list(_FORMATS)}）")
    return _EXTENSIONS[key]


def encode_image(
    pixels: np.ndarray,
    mime: str = "image/png",
    quality: float | None = None,
) -> bytes:
    """ピクセル配列を画像 blob にエンコードして返す。

    Parameters
    ----------
    pixels : np.ndarray
        shape (H, W, 3) または (H, W, 4) の uint8 配列。行は上から下の順。
    mime : str
        出力形式。`image/png` / `image/jpeg` / `image/webp`。
    quality : float | None
        JPEG/WebP の品質（0..1）。None なら Pillow の既定値。PNG では無視する。

    Returns
    -------
    bytes
        エンコード済みの画像データ。

    Raises
    ------
    ValueError
        MIME・配列形状・quality が不正な場合。
    """

    key = str(mime).strip().lower()
    fmt = _FORMATS.get(key)
    if fmt is None:
        raise ValueError(f"未対応の MIME: {mime!r}（対応: {list(_FORMATS)}）")

    arr = np.asarray(pixels)
    if arr.dtype != np.uint8 or arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise ValueError(
            f"pixels は shape (H, W, 3|4) の uint8 配列である必要がある: got={arr.shape} {arr.dtype}"
        )

    image = Image.fromarray(np.ascontiguousarray(arr))
    if fmt == "JPEG" and image.mode == "RGBA":
        image = image.convert("RGB")

    options: dict[str, object] = {}
    if quality is not None and fmt != "PNG":
        q = float(quality)
        if not 0.0 <= q <= 1.0:
            raise ValueError(f"quality は 0..1 である必要がある: got={quality!r}")
        options["quality"] = int(round(q * 100))

    buf = io.BytesIO()
    image.save(buf, format=fmt, **options)
    return buf.getvalue()


def save_blob(blob: bytes, path: str | Path) -> Path:
    """blob をファイルへ保存し、保存先パスを返す。"""

    _path = Path(path)
    _path.parent.mkdir(parents=True, exist_ok=True)
    _path.write_bytes(blob)
    return _path


__all__ = ["encode_image", "extension_for_mime", "save_blob", "supported_mimes"]
