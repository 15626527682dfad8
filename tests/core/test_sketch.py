import io

import pytest
from PIL import Image

from sketchbook.core.random import Random
from sketchbook.core.scene import Camera, Container, Polyline, Scene3D
from sketchbook.core.sketch import Sketch
from sketchbook.core.types import Instance2D, Instance3D, SizeParams, SketchContext

SEED = (11, 22, 33)


class RecordingFactory:
    """呼ばれるたびに乱数を消費し、入力と生存インスタンス数を記録するファクトリ。"""

    def __init__(self, draws: int = 3) -> None:
        self.draws = draws
        self.calls: list[dict] = []
        self.live = 0
        self.max_live = 0
        self.disposed = 0

    def __call__(self, ctx: SketchContext) -> Instance2D:
        entry_count = ctx.random.use_count
        values = [ctx.random.real(0.0, 1.0) for _ in range(self.draws)]
        self.calls.append({"use_count": entry_count, "values": values, "bbox": ctx.bbox})
        self.live += 1
        self.max_live = max(self.max_live, self.live)

        def dispose() -> None:
            self.live -= 1
            self.disposed += 1

        container = Container(Polyline([(0, 0), (values[0], values[1])]))
        return Instance2D(container, dispose=dispose)


def _sketch(renderer, factory=None, **kwargs) -> Sketch:
    kwargs.setdefault("size", SizeParams(1000, 1000))
    kwargs.setdefault("seed", SEED)
    return Sketch(factory or RecordingFactory(), renderer, **kwargs)


def test_construction_is_lazy(renderer):
    factory = RecordingFactory()
    sketch = _sketch(renderer, factory)
    assert sketch.state == "unborn"
    assert sketch.instance is None
    assert factory.calls == []
    assert sketch.seed == SEED


def test_render_creates_instance_with_centered_bbox(renderer):
    factory = RecordingFactory()
    sketch = _sketch(renderer, factory, size=SizeParams(400, 300))
    sketch.render()
    assert sketch.state == "live"
    assert len(factory.calls) == 1
    bbox = factory.calls[0]["bbox"]
    assert (bbox.xmin, bbox.ymin, bbox.xmax, bbox.ymax) == (-200, -150, 200, 150)

    sketch.render()
    assert len(factory.calls) == 1


def test_seed_is_generated_and_recorded_when_omitted(renderer):
    sketch = Sketch(RecordingFactory(), renderer, size=SizeParams(10, 10))
    assert len(sketch.seed) > 0
    assert sketch.random.seed == sketch.seed


def test_unknown_kind_is_rejected(renderer):
    with pytest.raises(ValueError):
        Sketch(RecordingFactory(), renderer, size=SizeParams(10, 10), kind="4d")  # type: ignore[arg-type]


def test_next_continues_stream_and_records_checkpoint(renderer):
    factory = RecordingFactory(draws=3)
    sketch = _sketch(renderer, factory)
    sketch.render()
    first = sketch.instance

    sketch.next()
    assert first.container.destroyed
    assert factory.disposed == 1
    assert sketch.used_count_at_last_regenerate == 3
    assert factory.calls[1]["use_count"] == 3
    assert factory.calls[1]["values"] != factory.calls[0]["values"]


def test_resize_replays_random_state_from_last_regenerate(renderer):
    factory = RecordingFactory(draws=4)
    sketch = _sketch(renderer, factory)
    sketch.render()
    sketch.next()
    k = sketch.used_count_at_last_regenerate
    before_resize = factory.calls[-1]["values"]

    sketch.resize(width=700)

    after = factory.calls[-1]
    assert after["use_count"] == k
    expected = Random.replay(SEED, k)
    assert after["values"] == [expected.real(0.0, 1.0) for _ in range(4)]
    assert after["values"] == before_resize
    assert after["bbox"].width == 700
    assert sketch.size == SizeParams(700, 1000)


def test_resize_before_first_render_replays_from_zero(renderer):
    factory = RecordingFactory()
    sketch = _sketch(renderer, factory)
    sketch.resize(height=500)
    assert factory.calls[0]["use_count"] == 0
    fresh = Random(SEED)
    assert factory.calls[0]["values"] == [fresh.real(0.0, 1.0) for _ in range(3)]


def test_resolution_only_resize_does_not_rebuild(renderer):
    factory = RecordingFactory()
    sketch = _sketch(renderer, factory)
    sketch.render()
    instance = sketch.instance
    sketch.resize(resolution=2.0)
    assert sketch.instance is instance
    assert len(factory.calls) == 1
    assert sketch.size.resolution == 2.0


def test_at_most_one_live_instance(renderer):
    factory = RecordingFactory()
    sketch = _sketch(renderer, factory)
    sketch.render()
    for i in range(5):
        sketch.next()
        sketch.resize(width=500 + i)
        sketch.render()
    assert factory.max_live == 1
    assert factory.live == 1


def test_export_restores_size_on_success(renderer):
    sketch = _sketch(renderer, size=SizeParams(1000, 1000))
    sketch.render()
    blob = sketch.export(width=4000)

    assert sketch.size == SizeParams(1000, 1000)
    assert renderer.size_params == SizeParams(1000, 1000)
    with Image.open(io.BytesIO(blob)) as img:
        assert img.format == "PNG"
        assert img.size == (4000, 1000)


def test_export_restores_size_and_propagates_on_failure(renderer):
    sketch = _sketch(renderer, size=SizeParams(1000, 1000))
    sketch.render()
    with pytest.raises(ValueError):
        sketch.export(mime="image/unknown", width=4000)
    assert sketch.size == SizeParams(1000, 1000)
    assert sketch.state == "live"


def test_failed_iterate_leaves_no_instance_and_next_render_retries(renderer):
    attempts = []

    def flaky(ctx: SketchContext) -> Instance2D:
        attempts.append(ctx.random.use_count)
        if len(attempts) == 1:
            ctx.random.real(0.0, 1.0)
            raise RuntimeError("boom")
        return Instance2D(Container())

    sketch = _sketch(renderer, flaky)
    with pytest.raises(RuntimeError, match="boom"):
        sketch.render()
    assert sketch.state == "unborn"

    sketch.render()
    assert sketch.state == "live"
    assert len(attempts) == 2


def test_factory_kind_mismatch_is_type_error(renderer):
    def wrong(ctx: SketchContext) -> Instance3D:
        return Instance3D(Scene3D(), Camera())

    sketch = _sketch(renderer, wrong, kind="2d")
    with pytest.raises(TypeError):
        sketch.render()


def test_3d_sketch_renders_scene(renderer):
    def scene(ctx: SketchContext) -> Instance3D:
        return Instance3D(Scene3D(Polyline([(0, 0, 0), (1, 1, 1)])), Camera())

    sketch = _sketch(renderer, scene, kind="3d")
    sketch.render()
    assert sketch.kind == "3d"
    assert sketch.instance.kind == "3d"


def test_update_receives_times(renderer):
    seen = []

    def animated(ctx: SketchContext) -> Instance2D:
        return Instance2D(Container(), update=lambda total, delta: seen.append((total, delta)))

    sketch = _sketch(renderer, animated)
    sketch.update(1.0, 0.5)
    assert seen == []
    sketch.render()
    assert sketch.has_update
    sketch.update(1.0, 0.5)
    assert seen == [(1.0, 0.5)]


def test_render_adopts_size_reported_by_renderer(make_renderer):
    renderer = make_renderer(max_buffer_size=(1500, 1500))
    sketch = _sketch(renderer, size=SizeParams(1000, 1000, 2.0))
    sketch.render()
    assert sketch.size == SizeParams(1000, 1000, 1.0)


def test_destroy_is_idempotent_and_keeps_shared_renderer(renderer):
    factory = RecordingFactory()
    sketch = _sketch(renderer, factory)
    sketch.render()
    instance = sketch.instance

    sketch.destroy()
    sketch.destroy()
    assert sketch.state == "destroyed"
    assert instance.container.destroyed
    assert factory.disposed == 1
    assert not renderer.canvas.released

    for op in (sketch.render, sketch.next, lambda: sketch.resize(width=10), sketch.export):
        with pytest.raises(RuntimeError):
            op()
