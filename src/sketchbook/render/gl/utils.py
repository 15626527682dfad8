from __future__ import annotations

# どこで: `src/sketchbook/render/gl/utils.py`。
# 何を: 描画で使う小さなユーティリティ（投影行列生成、行列の GL 形式変換）を提供する。
# なぜ: 2D の座標系（原点中心・Y 上向き）の定義を一箇所に集約するため。

import numpy as np


def build_ortho_projection(width: float, height: float) -> np.ndarray:
    """原点中心・Y 上向きで width × height を NDC に写す正射影行列を返す。

    モデル単位は論理ピクセル。列ベクトル規約（`p' = M @ p`）の float64 4x4。
    """

    w = float(width)
    h = float(height)
    if w <= 0.0 or h <= 0.0:
        raise ValueError(f"width/height は正の値である必要がある: got={(width, height)}")
    return np.array(
        [
            [2.0 / w, 0.0, 0.0, 0.0],
            [0.0, 2.0 / h, 0.0, 0.0],
            [0.0, 0.0, -1.0, 0.0],
            [0.0, 0.0, 0.0, 1.0],
        ],
        dtype=np.float64,
    )


def embed_2d(matrix3: np.ndarray) -> np.ndarray:
    """2D 同次変換（3x3）を z を素通しする 4x4 に埋め込む。"""

    m3 = np.asarray(matrix3, dtype=np.float64)
    m = np.eye(4, dtype=np.float64)
    m[:2, :2] = m3[:2, :2]
    m[:2, 3] = m3[:2, 2]
    return m


def to_gl(matrix: np.ndarray) -> bytes:
    """4x4 行列を ModernGL の mat4 uniform 用（列優先 f4）のバイト列にする。"""

    return np.ascontiguousarray(np.asarray(matrix, dtype="f4").T).tobytes()


__all__ = ["build_ortho_projection", "embed_2d", "to_gl"]
