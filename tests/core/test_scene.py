import math

import numpy as np
import pytest

from sketchbook.core.scene import Camera, Container, Polyline, Scene3D


class _Resource:
    def __init__(self) -> None:
        self.released = 0

    def release(self) -> None:
        self.released += 1


def test_polyline_pads_2d_coords_and_is_read_only():
    line = Polyline([(0, 0), (1, 2)])
    assert line.coords.shape == (2, 3)
    assert line.coords.dtype == np.float32
    assert line.coords[:, 2].tolist() == [0.0, 0.0]
    with pytest.raises(ValueError):
        line.coords[0, 0] = 5.0


def test_polyline_rejects_bad_shape():
    with pytest.raises(ValueError):
        Polyline([1.0, 2.0, 3.0])


def test_set_coords_bumps_version():
    line = Polyline([(0, 0), (1, 1)])
    assert line.version == 0
    line.set_coords([(0, 0), (2, 2), (3, 3)])
    assert line.version == 1
    assert line.coords.shape == (3, 3)


def test_destroy_releases_retained_resources_once():
    line = Polyline([(0, 0), (1, 1)])
    res = _Resource()
    line.retain(res)
    line.destroy()
    line.destroy()
    assert res.released == 1
    assert line.destroyed
    with pytest.raises(RuntimeError):
        line.retain(_Resource())


def test_container_destroy_is_recursive():
    res_a, res_b = _Resource(), _Resource()
    a = Polyline([(0, 0), (1, 1)])
    b = Polyline([(0, 0), (1, 1)])
    a.retain(res_a)
    b.retain(res_b)
    root = Container(a, Container(b))
    root.destroy(children=True)
    assert res_a.released == 1
    assert res_b.released == 1
    assert root.children == ()


def test_container_destroy_without_children_keeps_them_alive():
    child = Polyline([(0, 0), (1, 1)])
    root = Container(child)
    root.destroy(children=False)
    assert root.destroyed
    assert not child.destroyed


def test_container_rejects_unknown_child_type():
    with pytest.raises(TypeError):
        Container().add_child("not a node")  # type: ignore[arg-type]


def test_iter_polylines_accumulates_transforms():
    line = Polyline([(1, 0), (2, 0)])
    inner = Container(line, rotation=math.pi / 2)
    root = Container(inner, position=(10.0, 0.0), scale=2.0)

    [(found, world)] = list(root.iter_polylines())
    assert found is line
    p = world @ np.array([1.0, 0.0, 1.0])
    assert p[:2] == pytest.approx([10.0, 2.0])


def test_iter_polylines_skips_invisible_nodes():
    visible = Polyline([(0, 0), (1, 1)])
    hidden = Polyline([(0, 0), (1, 1)])
    hidden.visible = False
    hidden_group = Container(Polyline([(0, 0), (1, 1)]))
    hidden_group.visible = False
    root = Container(visible, hidden, hidden_group)
    assert [p for p, _ in root.iter_polylines()] == [visible]


def test_scene3d_nested_transform_and_destroy():
    res = _Resource()
    line = Polyline([(0, 0, 0), (1, 0, 0)])
    line.retain(res)
    scene = Scene3D(Scene3D(line, position=(0.0, 1.0, 0.0)), scale=3.0)

    [(found, world)] = list(scene.iter_polylines())
    assert found is line
    p = world @ np.array([1.0, 0.0, 0.0, 1.0])
    assert p[:3] == pytest.approx([3.0, 3.0, 0.0])

    scene.destroy()
    assert res.released == 1


def test_scene3d_rotation_about_y():
    scene = Scene3D(rotation=(0.0, math.pi / 2, 0.0))
    p = scene.local_matrix() @ np.array([1.0, 0.0, 0.0, 1.0])
    assert p[:3] == pytest.approx([0.0, 0.0, -1.0], abs=1e-12)


def test_camera_maps_target_to_view_axis():
    cam = Camera(position=(0.0, 0.0, 5.0))
    target_view = cam.view_matrix() @ np.array([0.0, 0.0, 0.0, 1.0])
    assert target_view[:3] == pytest.approx([0.0, 0.0, -5.0])

    clip = cam.view_projection(1.0) @ np.array([0.0, 0.0, 0.0, 1.0])
    ndc = clip[:3] / clip[3]
    assert ndc[:2] == pytest.approx([0.0, 0.0])
    assert -1.0 < ndc[2] < 1.0


@pytest.mark.parametrize("near, far", [(0.0, 10.0), (5.0, 1.0)])
def test_camera_validates_clip_planes(near, far):
    with pytest.raises(ValueError):
        Camera(near=near, far=far)


def test_camera_rejects_degenerate_orientation():
    with pytest.raises(ValueError):
        Camera(position=(0.0, 0.0, 0.0)).view_matrix()
    with pytest.raises(ValueError):
        Camera(position=(0.0, 5.0, 0.0)).view_matrix()
