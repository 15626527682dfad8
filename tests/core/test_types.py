import dataclasses

import pytest

from sketchbook.core.bbox import Box
from sketchbook.core.scene import Camera, Container, Scene3D
from sketchbook.core.types import Instance2D, Instance3D, SizeParams


def test_size_params_default_resolution_and_pixel_size():
    size = SizeParams(800, 600)
    assert size.resolution == 1.0
    assert size.pixel_size == (800, 600)
    assert SizeParams(100, 50, 2.5).pixel_size == (250, 125)


@pytest.mark.parametrize("args", [(0, 10), (10, -1), (10, 10, 0)])
def test_size_params_rejects_non_positive_values(args):
    with pytest.raises(ValueError):
        SizeParams(*args)


def test_size_params_merged_overlays_only_given_values():
    size = SizeParams(100, 200, 2.0)
    assert size.merged() is size
    assert size.merged(width=300) == SizeParams(300, 200, 2.0)
    assert size.merged(resolution=1.0) == SizeParams(100, 200, 1.0)
    assert size.merged(width=300).same_dimensions(SizeParams(300, 200, 9.0))
    assert not size.same_dimensions(SizeParams(100, 201))


def test_size_params_is_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        SizeParams(1, 1).width = 2  # type: ignore[misc]


def test_instance_variants_carry_their_kind():
    i2 = Instance2D(Container())
    i3 = Instance3D(Scene3D(), Camera())
    assert i2.kind == "2d"
    assert i3.kind == "3d"
    assert i2.update is None and i2.dispose is None


def test_box_centered_and_helpers():
    box = Box.centered(200, 100)
    assert (box.xmin, box.ymin, box.xmax, box.ymax) == (-100, -50, 100, 50)
    assert box.width == 200
    assert box.height == 100
    assert box.center == (0.0, 0.0)
    assert box.contains(0, 0)
    assert not box.contains(101, 0)
    assert box.inset(10) == Box(-90, -40, 90, 40)
    assert box.inset(60) == Box(-40, 0, 40, 0)
    assert box.scale(0.5) == Box(-50, -25, 50, 25)
