import pytest

from sketchbook.core.scene import Container
from sketchbook.core.sketch import Sketch
from sketchbook.core.types import Instance2D, SizeParams, SketchContext
from sketchbook.interactive.runtime.runner import SketchRunner
from sketchbook.interactive.runtime.scheduler import ManualFrameScheduler


class AnimatedFactory:
    def __init__(self, animated: bool = True) -> None:
        self.animated = animated
        self.updates: list[tuple[float, float]] = []
        self.instances = 0

    def __call__(self, ctx: SketchContext) -> Instance2D:
        self.instances += 1
        ctx.random.real(0.0, 1.0)
        update = (lambda total, delta: self.updates.append((total, delta))) if self.animated else None
        return Instance2D(Container(), update=update)


class CountingSketch(Sketch):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.render_count = 0

    def render(self) -> None:
        self.render_count += 1
        super().render()


@pytest.fixture
def factory() -> AnimatedFactory:
    return AnimatedFactory()


@pytest.fixture
def sketch(renderer, factory) -> CountingSketch:
    return CountingSketch(factory, renderer, size=SizeParams(100, 100), seed=(1,))


def test_start_renders_once_and_schedules_when_sketch_animates(sketch):
    scheduler = ManualFrameScheduler()
    runner = SketchRunner(sketch, scheduler)
    runner.start()
    assert runner.running
    assert sketch.render_count == 1
    assert scheduler.pending_count == 1


def test_static_sketch_without_ui_never_starts_loop(renderer):
    static = CountingSketch(AnimatedFactory(animated=False), renderer, size=SizeParams(10, 10))
    scheduler = ManualFrameScheduler()
    runner = SketchRunner(static, scheduler)
    runner.start()
    assert static.render_count == 1
    assert scheduler.pending_count == 0
    assert not runner.looping


def test_update_disabled_never_starts_loop(sketch):
    scheduler = ManualFrameScheduler()
    SketchRunner(sketch, scheduler, update=False).start()
    assert scheduler.pending_count == 0


def test_time_accounting_from_first_frame(sketch, factory):
    scheduler = ManualFrameScheduler()
    runner = SketchRunner(sketch, scheduler)
    runner.start()
    for ts in (100.0, 116.0, 133.0):
        scheduler.advance(ts)

    totals = [t for t, _ in factory.updates]
    deltas = [d for _, d in factory.updates]
    assert totals == pytest.approx([0.0, 0.016, 0.033])
    assert deltas == pytest.approx([0.0, 0.016, 0.017])
    assert sketch.render_count == 4


def test_stale_callback_after_stop_does_nothing(sketch, factory):
    captured = []

    class CapturingScheduler(ManualFrameScheduler):
        def request_frame(self, callback):
            captured.append(callback)
            return super().request_frame(callback)

    scheduler = CapturingScheduler()
    runner = SketchRunner(sketch, scheduler)
    runner.start()
    runner.stop()
    assert scheduler.pending_count == 0

    renders = sketch.render_count
    captured[-1](500.0)
    assert factory.updates == []
    assert sketch.render_count == renders
    assert not runner.running


def test_stop_resets_time_base(sketch, factory):
    scheduler = ManualFrameScheduler()
    runner = SketchRunner(sketch, scheduler)
    runner.start()
    scheduler.advance(1000.0)
    scheduler.advance(1500.0)
    runner.stop()
    runner.start()
    scheduler.advance(9000.0)
    assert factory.updates[-1] == (0.0, 0.0)


def test_click_regenerates_and_restarts(sketch, factory):
    scheduler = ManualFrameScheduler()
    clicks = []
    runner = SketchRunner(sketch, scheduler, click=clicks.append)
    runner.start()
    scheduler.advance(0.0)
    scheduler.advance(50.0)
    before = sketch.instance

    sketch.canvas.dispatch_click("evt")

    assert clicks == ["evt"]
    assert factory.instances == 2
    assert sketch.instance is not before
    assert before.container.destroyed
    assert runner.running
    assert scheduler.pending_count == 1
    scheduler.advance(80.0)
    assert factory.updates[-1] == (0.0, 0.0)


def test_click_listener_is_detached_on_stop(sketch, factory):
    runner = SketchRunner(sketch, ManualFrameScheduler())
    runner.start()
    runner.stop()
    sketch.canvas.dispatch_click(None)
    assert factory.instances == 1


def test_click_disabled_does_not_listen(sketch, factory):
    runner = SketchRunner(sketch, ManualFrameScheduler(), click=False)
    runner.start()
    sketch.canvas.dispatch_click(None)
    assert factory.instances == 1


class FakeCapture:
    def __init__(self) -> None:
        self.is_recording = False
        self.hotkey_checks = 0
        self.frames = 0

    def check_hotkeys(self) -> None:
        self.hotkey_checks += 1

    def record_frame(self) -> None:
        self.frames += 1


class FakeUI:
    def __init__(self) -> None:
        from sketchbook.interactive.runtime.perf import PerfCollector

        self.perf = PerfCollector(enabled=False)
        self.capture = FakeCapture()


def test_ui_keeps_static_sketch_looping_and_checks_recording(renderer, capsys):
    static = CountingSketch(AnimatedFactory(animated=False), renderer, size=SizeParams(10, 10))
    scheduler = ManualFrameScheduler()
    ui = FakeUI()
    runner = SketchRunner(static, scheduler, ui=ui, recording_fps=2)
    runner.start()
    assert scheduler.pending_count == 1

    scheduler.advance(0.0)
    assert ui.capture.hotkey_checks == 1
    assert ui.capture.frames == 0

    ui.capture.is_recording = True
    for ts in (10.0, 20.0, 30.0, 40.0):
        scheduler.advance(ts)
    assert ui.capture.frames == 4
    out = capsys.readouterr().out
    assert "Recorded 1 seconds" in out
    assert "Recorded 2 seconds" in out
