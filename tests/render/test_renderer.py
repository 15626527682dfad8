import logging

import pytest

from sketchbook.core.scene import Camera, Container, Scene3D
from sketchbook.core.types import Instance2D, Instance3D, SizeParams
from sketchbook.render.renderer import RenderParams, init_renderer


def test_render_resizes_surface_and_returns_current_size(renderer):
    size = SizeParams(300, 200, 2.0)
    got = renderer.render(Instance2D(Container()), size)
    assert got == size
    assert renderer.canvas.drawing_buffer_size == (600, 400)
    assert renderer.canvas.present_calls == 1

    kind, (w, h, res, viewport) = renderer._painter.calls[-1]
    assert kind == "2d"
    assert (w, h, res, viewport) == (300.0, 200.0, 2.0, (600, 400))


def test_render_skips_resize_when_size_is_unchanged(renderer):
    size = SizeParams(100, 100)
    renderer.render(Instance2D(Container()), size)
    renderer.render(Instance2D(Container()), size)
    assert renderer.canvas.allocations == [(100, 100)]


def test_resolution_is_clamped_to_one_when_buffer_limit_is_exceeded(make_renderer, caplog):
    renderer = make_renderer(max_buffer_size=(1500, 1500))
    with caplog.at_level(logging.WARNING, logger="sketchbook.render.renderer"):
        got = renderer.resize(SizeParams(1000, 1000, 2.0))
    assert got == SizeParams(1000, 1000, 1.0)
    assert renderer.canvas.drawing_buffer_size == (1000, 1000)
    assert any("resolution" in r.getMessage() for r in caplog.records)


def test_oversized_logical_size_does_not_raise(make_renderer, caplog):
    renderer = make_renderer(max_buffer_size=(1500, 1500))
    with caplog.at_level(logging.WARNING, logger="sketchbook.render.renderer"):
        got = renderer.resize(SizeParams(2000, 1000, 1.0))
    assert got == SizeParams(2000, 1000, 1.0)
    assert renderer.canvas.drawing_buffer_size == (1500, 1000)
    assert caplog.records


def test_painter_is_reset_when_kind_changes(renderer):
    size = SizeParams(50, 50)
    renderer.render(Instance2D(Container()), size)
    renderer.render(Instance2D(Container()), size)
    renderer.render(Instance3D(Scene3D(), Camera()), size)
    resets = [arg for name, arg in renderer._painter.calls if name == "reset"]
    assert resets == ["2d", "3d"]


def test_rendering_context_exposes_kind_and_ctx(renderer):
    ctx = renderer.rendering_context("3d")
    assert ctx.kind == "3d"
    assert ctx.ctx is None


def test_to_blob_encodes_surface_pixels(renderer):
    renderer.render(Instance2D(Container()), SizeParams(20, 10))
    assert renderer.to_blob().startswith(b"\x89PNG")


def test_destroy_is_idempotent_and_blocks_further_use(renderer):
    painter = renderer._painter
    surface = renderer.canvas
    renderer.destroy()
    renderer.destroy()
    assert painter.released
    assert surface.released
    with pytest.raises(RuntimeError):
        renderer.render(Instance2D(Container()), SizeParams(10, 10))


def test_init_renderer_validates_backend_before_creating_context():
    with pytest.raises(ValueError):
        init_renderer(RenderParams(backend="webgl"))  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        init_renderer(RenderParams(backend="window"))
