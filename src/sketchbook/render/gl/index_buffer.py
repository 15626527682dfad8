# どこで: `src/sketchbook/render/gl/index_buffer.py`。
# 何を: Polyline の頂点数と closed フラグから GL_LINE_STRIP 用のインデックス配列を作る。
# なぜ: 閉じた図形を頂点の複製ではなくインデックスで閉じ、同じ形の配列を使い回すため。

from __future__ import annotations

from functools import lru_cache

import numpy as np


def strip_indices(n_vertices: int, *, closed: bool = False) -> np.ndarray:
    """`n_vertices` 頂点の折れ線を 1 本の LINE_STRIP で描く indices を返す。

    Notes
    -----
    - 2 頂点未満は描けないので空配列。
    - closed かつ 3 頂点以上なら末尾に 0 を足して始点へ戻る（2 頂点の線分は閉じない）。
    - 結果は引数だけで決まるのでキャッシュし、読み取り専用で返す。
    """

    n = int(n_vertices)
    if n < 0:
        raise ValueError(f"n_vertices は 0 以上である必要がある: got={n_vertices!r}")
    return _strip_indices(n, bool(closed) and n >= 3)


@lru_cache(maxsize=512)
def _strip_indices(n: int, close: bool) -> np.ndarray:
    if n < 2:
        out = np.zeros((0,), dtype=np.uint32)
    else:
        out = np.arange(n + 1 if close else n, dtype=np.uint32)
        if close:
            out[-1] = 0
    out.setflags(write=False)
    return out


__all__ = ["strip_indices"]
