# どこで: `src/sketchbook/core/scene.py`。
# 何を: スケッチが組み立てる 2D シーングラフ（Container/Polyline）と 3D シーン（Scene3D/Camera）を定義する。
# なぜ: 描画バックエンドから独立した「描く内容」の表現を持ち、インスタンス単位で資源を破棄できるようにするため。

from __future__ import annotations

import math
from collections.abc import Iterator, Sequence
from typing import Any, TypeAlias

import numpy as np

Color: TypeAlias = tuple[float, float, float]


def _as_coords(coords: Any) -> np.ndarray:
    arr = np.asarray(coords, dtype=np.float32)
    if arr.ndim != 2 or arr.shape[1] not in (2, 3):
        raise ValueError(f"coords は shape (N,2) か (N,3) である必要がある: got={arr.shape}")
    if arr.shape[1] == 2:
        z = np.zeros((arr.shape[0], 1), dtype=np.float32)
        arr = np.concatenate([arr, z], axis=1)
    arr = np.ascontiguousarray(arr)
    arr.setflags(write=False)
    return arr


def _as_color(color: Sequence[float]) -> Color:
    r, g, b = (float(c) for c in color)
    return (r, g, b)


class Node:
    """シーングラフのノード基底。

    Notes
    -----
    `retain()` で受け取った資源（`release()` を持つ GPU バッファ等）はこのノードが単独で所有し、
    `destroy()` で解放する。レンダラー側で共有しているコンテキストやプログラムはここへ入れない。
    """

    def __init__(self) -> None:
        self.visible = True
        self._resources: list[Any] = []
        self._destroyed = False

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def retain(self, resource: Any) -> None:
        """このノードが所有する資源を登録する。"""

        if self._destroyed:
            raise RuntimeError("破棄済みのノードには資源を登録できない")
        self._resources.append(resource)

    def resources(self) -> tuple[Any, ...]:
        return tuple(self._resources)

    def release_resources(self) -> None:
        resources = self._resources
        self._resources = []
        for resource in resources:
            resource.release()

    def destroy(self) -> None:
        """所有資源を解放し、破棄済みにする（冪等）。"""

        if self._destroyed:
            return
        self.release_resources()
        self._destroyed = True


class Polyline(Node):
    """1 本の折れ線。

    Parameters
    ----------
    coords : array-like
        shape (N,2) または (N,3)。2D は z=0 を補完する。
    color : tuple[float, float, float]
        線色 RGB（0..1）。
    thickness : float
        線幅（モデル単位。2D ではピクセル相当）。
    closed : bool
        True の場合、終点から始点へ閉じる。
    """

    def __init__(
        self,
        coords: Any,
        *,
        color: Sequence[float] = (0.0, 0.0, 0.0),
        thickness: float = 1.0,
        closed: bool = False,
    ) -> None:
        super().__init__()
        self._coords = _as_coords(coords)
        self.color = _as_color(color)
        self.thickness = float(thickness)
        self.closed = bool(closed)
        # coords を差し替えるたびに増える。レンダラーは再 upload の判定に使う。
        self.version = 0

    @property
    def coords(self) -> np.ndarray:
        return self._coords

    def set_coords(self, coords: Any) -> None:
        """頂点を差し替える（update 関数からのアニメーション用）。"""

        self._coords = _as_coords(coords)
        self.version += 1


def _translate3(x: float, y: float) -> np.ndarray:
    m = np.eye(3, dtype=np.float64)
    m[0, 2] = x
    m[1, 2] = y
    return m


def _rotate3(angle: float) -> np.ndarray:
    c = math.cos(angle)
    s = math.sin(angle)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]], dtype=np.float64)


def _scale3(sx: float, sy: float) -> np.ndarray:
    return np.diag([sx, sy, 1.0]).astype(np.float64)


class Container(Node):
    """2D シーングラフのコンテナ。

    変換は `translate @ rotate @ scale` の順で子へ掛かる。
    """

    def __init__(
        self,
        *children: "Container | Polyline",
        position: tuple[float, float] = (0.0, 0.0),
        rotation: float = 0.0,
        scale: tuple[float, float] | float = (1.0, 1.0),
    ) -> None:
        super().__init__()
        self._children: list[Container | Polyline] = []
        self.position = (float(position[0]), float(position[1]))
        self.rotation = float(rotation)
        if isinstance(scale, (int, float)):
            self.scale = (float(scale), float(scale))
        else:
            self.scale = (float(scale[0]), float(scale[1]))
        self.add_child(*children)

    @property
    def children(self) -> tuple["Container | Polyline", ...]:
        return tuple(self._children)

    def add_child(self, *children: "Container | Polyline") -> "Container":
        for child in children:
            if not isinstance(child, (Container, Polyline)):
                raise TypeError(f"Container に追加できない型: {type(child)!r}")
            self._children.append(child)
        return self

    def remove_children(self) -> list["Container | Polyline"]:
        """子をすべて外して返す（破棄はしない）。"""

        removed = self._children
        self._children = []
        return removed

    def local_matrix(self) -> np.ndarray:
        x, y = self.position
        sx, sy = self.scale
        return _translate3(x, y) @ _rotate3(self.rotation) @ _scale3(sx, sy)

    def iter_polylines(
        self,
        parent: np.ndarray | None = None,
    ) -> Iterator[tuple[Polyline, np.ndarray]]:
        """可視 Polyline と、それに掛かるワールド変換（3x3）を描画順に返す。"""

        if not self.visible:
            return
        world = self.local_matrix() if parent is None else parent @ self.local_matrix()
        for child in self._children:
            if isinstance(child, Container):
                yield from child.iter_polylines(world)
            elif child.visible:
                yield child, world

    def destroy(self, children: bool = True) -> None:
        """自身の資源を解放する。children=True なら子孫も再帰的に破棄する。"""

        if self.destroyed:
            return
        if children:
            for child in self.remove_children():
                child.destroy()
        super().destroy()


def _rotation4(rx: float, ry: float, rz: float) -> np.ndarray:
    cx, sx = math.cos(rx), math.sin(rx)
    cy, sy = math.cos(ry), math.sin(ry)
    cz, sz = math.cos(rz), math.sin(rz)
    mx = np.array([[1, 0, 0, 0], [0, cx, -sx, 0], [0, sx, cx, 0], [0, 0, 0, 1]], dtype=np.float64)
    my = np.array([[cy, 0, sy, 0], [0, 1, 0, 0], [-sy, 0, cy, 0], [0, 0, 0, 1]], dtype=np.float64)
    mz = np.array([[cz, -sz, 0, 0], [sz, cz, 0, 0], [0, 0, 1, 0], [0, 0, 0, 1]], dtype=np.float64)
    return mz @ my @ mx


class Scene3D(Node):
    """3D シーン（入れ子可能なグループ）。

    変換は `translate @ rotate(z·y·x) @ scale`。rotation はラジアン。
    """

    def __init__(
        self,
        *children: "Scene3D | Polyline",
        position: tuple[float, float, float] = (0.0, 0.0, 0.0),
        rotation: tuple[float, float, float] = (0.0, 0.0, 0.0),
        scale: float = 1.0,
    ) -> None:
        super().__init__()
        self._children: list[Scene3D | Polyline] = []
        self.position = tuple(float(v) for v in position)
        self.rotation = tuple(float(v) for v in rotation)
        self.scale = float(scale)
        self.add(*children)

    @property
    def children(self) -> tuple["Scene3D | Polyline", ...]:
        return tuple(self._children)

    def add(self, *children: "Scene3D | Polyline") -> "Scene3D":
        for child in children:
            if not isinstance(child, (Scene3D, Polyline)):
                raise TypeError(f"Scene3D に追加できない型: {type(child)!r}")
            self._children.append(child)
        return self

    def remove_children(self) -> list["Scene3D | Polyline"]:
        removed = self._children
        self._children = []
        return removed

    def local_matrix(self) -> np.ndarray:
        m = np.eye(4, dtype=np.float64)
        m[:3, 3] = self.position
        s = np.diag([self.scale, self.scale, self.scale, 1.0])
        return m @ _rotation4(*self.rotation) @ s

    def iter_polylines(
        self,
        parent: np.ndarray | None = None,
    ) -> Iterator[tuple[Polyline, np.ndarray]]:
        """可視 Polyline と、それに掛かるワールド変換（4x4）を描画順に返す。"""

        if not self.visible:
            return
        world = self.local_matrix() if parent is None else parent @ self.local_matrix()
        for child in self._children:
            if isinstance(child, Scene3D):
                yield from child.iter_polylines(world)
            elif child.visible:
                yield child, world

    def destroy(self, children: bool = True) -> None:
        if self.destroyed:
            return
        if children:
            for child in self.remove_children():
                child.destroy()
        super().destroy()


class Camera:
    """透視投影カメラ。fov は垂直画角（度）。"""

    def __init__(
        self,
        *,
        fov: float = 50.0,
        near: float = 0.1,
        far: float = 1000.0,
        position: tuple[float, float, float] = (0.0, 0.0, 5.0),
        target: tuple[float, float, float] = (0.0, 0.0, 0.0),
        up: tuple[float, float, float] = (0.0, 1.0, 0.0),
    ) -> None:
        if not 0.0 < float(near) < float(far):
            raise ValueError(f"0 < near < far である必要がある: near={near}, far={far}")
        self.fov = float(fov)
        self.near = float(near)
        self.far = float(far)
        self.position = np.asarray(position, dtype=np.float64)
        self.target = np.asarray(target, dtype=np.float64)
        self.up = np.asarray(up, dtype=np.float64)

    def view_matrix(self) -> np.ndarray:
        forward = self.target - self.position
        norm = float(np.linalg.norm(forward))
        if norm == 0.0:
            raise ValueError("position と target が同一点になっている")
        f = forward / norm
        s = np.cross(f, self.up)
        s_norm = float(np.linalg.norm(s))
        if s_norm == 0.0:
            raise ValueError("up が視線方向と平行になっている")
        s = s / s_norm
        u = np.cross(s, f)

        m = np.eye(4, dtype=np.float64)
        m[0, :3] = s
        m[1, :3] = u
        m[2, :3] = -f
        m[:3, 3] = -m[:3, :3] @ self.position
        return m

    def projection_matrix(self, aspect: float) -> np.ndarray:
        f = 1.0 / math.tan(math.radians(self.fov) / 2.0)
        near, far = self.near, self.far
        m = np.zeros((4, 4), dtype=np.float64)
        m[0, 0] = f / float(aspect)
        m[1, 1] = f
        m[2, 2] = (far + near) / (near - far)
        m[2, 3] = 2.0 * far * near / (near - far)
        m[3, 2] = -1.0
        return m

    def view_projection(self, aspect: float) -> np.ndarray:
        return self.projection_matrix(aspect) @ self.view_matrix()


__all__ = ["Camera", "Color", "Container", "Node", "Polyline", "Scene3D"]
