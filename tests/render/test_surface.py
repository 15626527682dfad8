from types import SimpleNamespace

from sketchbook.render.surface import max_drawing_buffer_size


def test_max_drawing_buffer_size_uses_smallest_limit():
    ctx = SimpleNamespace(
        info={
            "GL_MAX_RENDERBUFFER_SIZE": 16384,
            "GL_MAX_VIEWPORT_DIMS": (8192, 4096),
            "GL_MAX_TEXTURE_SIZE": 16384,
        }
    )
    assert max_drawing_buffer_size(ctx) == (8192, 4096)


def test_max_drawing_buffer_size_falls_back_when_unknown():
    assert max_drawing_buffer_size(SimpleNamespace(info={})) == (4096, 4096)


def test_click_listeners_are_dispatched_until_removed(renderer):
    surface = renderer.canvas
    events = []

    def listener(event):
        events.append(event)

    surface.add_click_listener(listener)
    surface.add_click_listener(listener)
    surface.dispatch_click("a")
    surface.remove_click_listener(listener)
    surface.dispatch_click("b")
    assert events == ["a"]
