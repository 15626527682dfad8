# どこで: `src/sketchbook/core/noise.py`。
# 何を: Random から置換テーブルを作る 2D/3D/4D シンプレックスノイズのファクトリを提供する。
# なぜ: ノイズ場そのものも seed の再現範囲に含め、同じ seed のスケッチが同じ場を得られるようにするため。

from __future__ import annotations

import math

import numpy as np
from numba import njit  # type: ignore[import-untyped]

from sketchbook.core.random import Random

_F2 = 0.5 * (math.sqrt(3.0) - 1.0)
_G2 = (3.0 - math.sqrt(3.0)) / 6.0
_F3 = 1.0 / 3.0
_G3 = 1.0 / 6.0
_F4 = (math.sqrt(5.0) - 1.0) / 4.0
_G4 = (5.0 - math.sqrt(5.0)) / 20.0

_GRAD2 = np.array(
    [
        [1, 1],
        [-1, 1],
        [1, -1],
        [-1, -1],
        [1, 0],
        [-1, 0],
        [1, 0],
        [-1, 0],
        [0, 1],
        [0, -1],
        [0, 1],
        [0, -1],
    ],
    dtype=np.float64,
)

_GRAD3 = np.array(
    [
        [1, 1, 0],
        [-1, 1, 0],
        [1, -1, 0],
        [-1, -1, 0],
        [1, 0, 1],
        [-1, 0, 1],
        [1, 0, -1],
        [-1, 0, -1],
        [0, 1, 1],
        [0, -1, 1],
        [0, 1, -1],
        [0, -1, -1],
    ],
    dtype=np.float64,
)

# 4D は「1 成分が 0、残り 3 成分が ±1」の 32 方向。
_GRAD4 = np.array(
    [
        [0, 1, 1, 1], [0, 1, 1, -1], [0, 1, -1, 1], [0, 1, -1, -1],
        [0, -1, 1, 1], [0, -1, 1, -1], [0, -1, -1, 1], [0, -1, -1, -1],
        [1, 0, 1, 1], [1, 0, 1, -1], [1, 0, -1, 1], [1, 0, -1, -1],
        [-1, 0, 1, 1], [-1, 0, 1, -1], [-1, 0, -1, 1], [-1, 0, -1, -1],
        [1, 1, 0, 1], [1, 1, 0, -1], [1, -1, 0, 1], [1, -1, 0, -1],
        [-1, 1, 0, 1], [-1, 1, 0, -1], [-1, -1, 0, 1], [-1, -1, 0, -1],
        [1, 1, 1, 0], [1, 1, -1, 0], [1, -1, 1, 0], [1, -1, -1, 0],
        [-1, 1, 1, 0], [-1, 1, -1, 0], [-1, -1, 1, 0], [-1, -1, -1, 0],
    ],
    dtype=np.float64,
)  # fmt: skip

PERMUTATION_DRAWS = 255


def build_permutation_table(random: Random) -> np.ndarray:
    """Random の draw（exclusive 一様 255 回）で 0..255 を並べ替えた 512 要素テーブルを返す。"""

    p = np.zeros((512,), dtype=np.int64)
    p[:256] = np.arange(256, dtype=np.int64)
    for i in range(PERMUTATION_DRAWS):
        r = i + int(random.real_zero_to_one_exclusive() * (256 - i))
        p[i], p[r] = p[r], p[i]
    p[256:] = p[:256]
    return p


@njit(cache=True)  # type: ignore[misc]
def _noise2d(x, y, perm, grad):
    s = (x + y) * _F2
    i = math.floor(x + s)
    j = math.floor(y + s)
    t = (i + j) * _G2
    x0 = x - (i - t)
    y0 = y - (j - t)

    if x0 > y0:
        i1 = 1
        j1 = 0
    else:
        i1 = 0
        j1 = 1

    x1 = x0 - i1 + _G2
    y1 = y0 - j1 + _G2
    x2 = x0 - 1.0 + 2.0 * _G2
    y2 = y0 - 1.0 + 2.0 * _G2

    ii = int(i) & 255
    jj = int(j) & 255

    n0 = 0.0
    t0 = 0.5 - x0 * x0 - y0 * y0
    if t0 >= 0.0:
        g = perm[ii + perm[jj]] % 12
        t0 *= t0
        n0 = t0 * t0 * (grad[g, 0] * x0 + grad[g, 1] * y0)

    n1 = 0.0
    t1 = 0.5 - x1 * x1 - y1 * y1
    if t1 >= 0.0:
        g = perm[ii + i1 + perm[jj + j1]] % 12
        t1 *= t1
        n1 = t1 * t1 * (grad[g, 0] * x1 + grad[g, 1] * y1)

    n2 = 0.0
    t2 = 0.5 - x2 * x2 - y2 * y2
    if t2 >= 0.0:
        g = perm[ii + 1 + perm[jj + 1]] % 12
        t2 *= t2
        n2 = t2 * t2 * (grad[g, 0] * x2 + grad[g, 1] * y2)

    return 70.0 * (n0 + n1 + n2)


@njit(cache=True)  # type: ignore[misc]
def _noise3d(x, y, z, perm, grad):
    s = (x + y + z) * _F3
    i = math.floor(x + s)
    j = math.floor(y + s)
    k = math.floor(z + s)
    t = (i + j + k) * _G3
    x0 = x - (i - t)
    y0 = y - (j - t)
    z0 = z - (k - t)

    # 単体内のどの四面体にいるかで 2 番目/3 番目の頂点オフセットが決まる。
    if x0 >= y0:
        if y0 >= z0:
            i1, j1, k1, i2, j2, k2 = 1, 0, 0, 1, 1, 0
        elif x0 >= z0:
            i1, j1, k1, i2, j2, k2 = 1, 0, 0, 1, 0, 1
        else:
            i1, j1, k1, i2, j2, k2 = 0, 0, 1, 1, 0, 1
    else:
        if y0 < z0:
            i1, j1, k1, i2, j2, k2 = 0, 0, 1, 0, 1, 1
        elif x0 < z0:
            i1, j1, k1, i2, j2, k2 = 0, 1, 0, 0, 1, 1
        else:
            i1, j1, k1, i2, j2, k2 = 0, 1, 0, 1, 1, 0

    x1 = x0 - i1 + _G3
    y1 = y0 - j1 + _G3
    z1 = z0 - k1 + _G3
    x2 = x0 - i2 + 2.0 * _G3
    y2 = y0 - j2 + 2.0 * _G3
    z2 = z0 - k2 + 2.0 * _G3
    x3 = x0 - 1.0 + 3.0 * _G3
    y3 = y0 - 1.0 + 3.0 * _G3
    z3 = z0 - 1.0 + 3.0 * _G3

    ii = int(i) & 255
    jj = int(j) & 255
    kk = int(k) & 255

    n0 = 0.0
    t0 = 0.6 - x0 * x0 - y0 * y0 - z0 * z0
    if t0 >= 0.0:
        g = perm[ii + perm[jj + perm[kk]]] % 12
        t0 *= t0
        n0 = t0 * t0 * (grad[g, 0] * x0 + grad[g, 1] * y0 + grad[g, 2] * z0)

    n1 = 0.0
    t1 = 0.6 - x1 * x1 - y1 * y1 - z1 * z1
    if t1 >= 0.0:
        g = perm[ii + i1 + perm[jj + j1 + perm[kk + k1]]] % 12
        t1 *= t1
        n1 = t1 * t1 * (grad[g, 0] * x1 + grad[g, 1] * y1 + grad[g, 2] * z1)

    n2 = 0.0
    t2 = 0.6 - x2 * x2 - y2 * y2 - z2 * z2
    if t2 >= 0.0:
        g = perm[ii + i2 + perm[jj + j2 + perm[kk + k2]]] % 12
        t2 *= t2
        n2 = t2 * t2 * (grad[g, 0] * x2 + grad[g, 1] * y2 + grad[g, 2] * z2)

    n3 = 0.0
    t3 = 0.6 - x3 * x3 - y3 * y3 - z3 * z3
    if t3 >= 0.0:
        g = perm[ii + 1 + perm[jj + 1 + perm[kk + 1]]] % 12
        t3 *= t3
        n3 = t3 * t3 * (grad[g, 0] * x3 + grad[g, 1] * y3 + grad[g, 2] * z3)

    return 32.0 * (n0 + n1 + n2 + n3)


@njit(cache=True)  # type: ignore[misc]
def _corner4d(t, x, y, z, w, g, grad):
    if t < 0.0:
        return 0.0
    t *= t
    return t * t * (grad[g, 0] * x + grad[g, 1] * y + grad[g, 2] * z + grad[g, 3] * w)


@njit(cache=True)  # type: ignore[misc]
def _noise4d(x, y, z, w, perm, grad):
    s = (x + y + z + w) * _F4
    i = math.floor(x + s)
    j = math.floor(y + s)
    k = math.floor(z + s)
    l = math.floor(w + s)  # noqa: E741
    t = (i + j + k + l) * _G4
    x0 = x - (i - t)
    y0 = y - (j - t)
    z0 = z - (k - t)
    w0 = w - (l - t)

    # 各軸の大小関係から順位を数え、単体の頂点順を決める。
    rankx = 0
    ranky = 0
    rankz = 0
    rankw = 0
    if x0 > y0:
        rankx += 1
    else:
        ranky += 1
    if x0 > z0:
        rankx += 1
    else:
        rankz += 1
    if x0 > w0:
        rankx += 1
    else:
        rankw += 1
    if y0 > z0:
        ranky += 1
    else:
        rankz += 1
    if y0 > w0:
        ranky += 1
    else:
        rankw += 1
    if z0 > w0:
        rankz += 1
    else:
        rankw += 1

    i1 = 1 if rankx >= 3 else 0
    j1 = 1 if ranky >= 3 else 0
    k1 = 1 if rankz >= 3 else 0
    l1 = 1 if rankw >= 3 else 0
    i2 = 1 if rankx >= 2 else 0
    j2 = 1 if ranky >= 2 else 0
    k2 = 1 if rankz >= 2 else 0
    l2 = 1 if rankw >= 2 else 0
    i3 = 1 if rankx >= 1 else 0
    j3 = 1 if ranky >= 1 else 0
    k3 = 1 if rankz >= 1 else 0
    l3 = 1 if rankw >= 1 else 0

    x1 = x0 - i1 + _G4
    y1 = y0 - j1 + _G4
    z1 = z0 - k1 + _G4
    w1 = w0 - l1 + _G4
    x2 = x0 - i2 + 2.0 * _G4
    y2 = y0 - j2 + 2.0 * _G4
    z2 = z0 - k2 + 2.0 * _G4
    w2 = w0 - l2 + 2.0 * _G4
    x3 = x0 - i3 + 3.0 * _G4
    y3 = y0 - j3 + 3.0 * _G4
    z3 = z0 - k3 + 3.0 * _G4
    w3 = w0 - l3 + 3.0 * _G4
    x4 = x0 - 1.0 + 4.0 * _G4
    y4 = y0 - 1.0 + 4.0 * _G4
    z4 = z0 - 1.0 + 4.0 * _G4
    w4 = w0 - 1.0 + 4.0 * _G4

    ii = int(i) & 255
    jj = int(j) & 255
    kk = int(k) & 255
    ll = int(l) & 255

    g0 = perm[ii + perm[jj + perm[kk + perm[ll]]]] % 32
    g1 = perm[ii + i1 + perm[jj + j1 + perm[kk + k1 + perm[ll + l1]]]] % 32
    g2 = perm[ii + i2 + perm[jj + j2 + perm[kk + k2 + perm[ll + l2]]]] % 32
    g3 = perm[ii + i3 + perm[jj + j3 + perm[kk + k3 + perm[ll + l3]]]] % 32
    g4 = perm[ii + 1 + perm[jj + 1 + perm[kk + 1 + perm[ll + 1]]]] % 32

    n0 = _corner4d(0.6 - x0 * x0 - y0 * y0 - z0 * z0 - w0 * w0, x0, y0, z0, w0, g0, grad)
    n1 = _corner4d(0.6 - x1 * x1 - y1 * y1 - z1 * z1 - w1 * w1, x1, y1, z1, w1, g1, grad)
    n2 = _corner4d(0.6 - x2 * x2 - y2 * y2 - z2 * z2 - w2 * w2, x2, y2, z2, w2, g2, grad)
    n3 = _corner4d(0.6 - x3 * x3 - y3 * y3 - z3 * z3 - w3 * w3, x3, y3, z3, w3, g3, grad)
    n4 = _corner4d(0.6 - x4 * x4 - y4 * y4 - z4 * z4 - w4 * w4, x4, y4, z4, w4, g4, grad)

    return 27.0 * (n0 + n1 + n2 + n3 + n4)


@njit(cache=True)  # type: ignore[misc]
def _noise2d_array(xs, ys, perm, grad):
    n = xs.shape[0]
    out = np.empty((n,), dtype=np.float64)
    for idx in range(n):
        out[idx] = _noise2d(xs[idx], ys[idx], perm, grad)
    return out


@njit(cache=True)  # type: ignore[misc]
def _noise3d_array(xs, ys, zs, perm, grad):
    n = xs.shape[0]
    out = np.empty((n,), dtype=np.float64)
    for idx in range(n):
        out[idx] = _noise3d(xs[idx], ys[idx], zs[idx], perm, grad)
    return out


@njit(cache=True)  # type: ignore[misc]
def _noise4d_array(xs, ys, zs, ws, perm, grad):
    n = xs.shape[0]
    out = np.empty((n,), dtype=np.float64)
    for idx in range(n):
        out[idx] = _noise4d(xs[idx], ys[idx], zs[idx], ws[idx], perm, grad)
    return out


class SimplexNoise:
    """seed 済みの置換テーブルを持つシンプレックスノイズのサンプラー。

    Notes
    -----
    スカラー引数なら float、配列引数ならブロードキャスト後の形状の ndarray を返す。
    値域は [-1, 1]。
    """

    def __init__(self, dims: int, random: Random) -> None:
        if dims not in (2, 3, 4):
            raise ValueError(f"dims は 2/3/4 のいずれかである必要がある: got={dims}")
        self.dims = int(dims)
        self.perm = build_permutation_table(random)

    def __call__(self, *coords: float | np.ndarray) -> float | np.ndarray:
        if len(coords) != self.dims:
            raise TypeError(f"{self.dims} 個の座標が必要: got={len(coords)}")

        if all(np.ndim(c) == 0 for c in coords):
            values = [float(c) for c in coords]  # type: ignore[arg-type]
            if self.dims == 2:
                v = _noise2d(values[0], values[1], self.perm, _GRAD2)
            elif self.dims == 3:
                v = _noise3d(values[0], values[1], values[2], self.perm, _GRAD3)
            else:
                v = _noise4d(values[0], values[1], values[2], values[3], self.perm, _GRAD4)
            # 係数の丸めで端がわずかに 1 を超え得る。
            return min(1.0, max(-1.0, float(v)))

        arrays = np.broadcast_arrays(*[np.asarray(c, dtype=np.float64) for c in coords])
        shape = arrays[0].shape
        flat = [np.ascontiguousarray(a.ravel()) for a in arrays]
        if self.dims == 2:
            out = _noise2d_array(flat[0], flat[1], self.perm, _GRAD2)
        elif self.dims == 3:
            out = _noise3d_array(flat[0], flat[1], flat[2], self.perm, _GRAD3)
        else:
            out = _noise4d_array(flat[0], flat[1], flat[2], flat[3], self.perm, _GRAD4)
        np.clip(out, -1.0, 1.0, out=out)
        return out.reshape(shape)


def noise2d(random: Random) -> SimplexNoise:
    """2D シンプレックスノイズ `f(x, y)` を返す。"""

    return SimplexNoise(2, random)


def noise3d(random: Random) -> SimplexNoise:
    """3D シンプレックスノイズ `f(x, y, z)` を返す。"""

    return SimplexNoise(3, random)


def noise4d(random: Random) -> SimplexNoise:
    """4D シンプレックスノイズ `f(x, y, z, w)` を返す。"""

    return SimplexNoise(4, random)


__all__ = [
    "PERMUTATION_DRAWS",
    "SimplexNoise",
    "build_permutation_table",
    "noise2d",
    "noise3d",
    "noise4d",
]
