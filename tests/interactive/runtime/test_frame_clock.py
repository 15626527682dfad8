import time

import pytest

from sketchbook.interactive.runtime.frame_clock import FixedStepClock, MonotonicClock


def test_fixed_step_clock_hands_out_frame_timestamps():
    clock = FixedStepClock(fps=50.0, start_ms=100.0)

    stamps = [clock.next_timestamp() for _ in range(3)]

    assert stamps == pytest.approx([100.0, 120.0, 140.0])
    assert clock.frames == 3
    assert clock.now_ms() == pytest.approx(160.0)


def test_fixed_step_clock_does_not_drift_over_long_recordings():
    clock = FixedStepClock(fps=60.0)
    for _ in range(6000):
        clock.next_timestamp()
    assert clock.now_ms() == pytest.approx(100_000.0, abs=1e-6)


@pytest.mark.parametrize("fps", [0, -30.0])
def test_fixed_step_clock_rejects_non_positive_fps(fps):
    with pytest.raises(ValueError):
        FixedStepClock(fps=fps)


def test_monotonic_clock_measures_from_origin():
    clock = MonotonicClock(origin=time.perf_counter() - 0.25)
    assert 0.2 < clock.seconds() < 1.0
    assert 200.0 < clock.now_ms() < 1000.0
