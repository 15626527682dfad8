import math

import pytest

from sketchbook.core.bbox import Box
from sketchbook.core.packing import CirclePacking, rectangle_packing
from sketchbook.core.random import Random

SEED = (7, 7)


def _area(box: Box) -> float:
    return box.width * box.height


def test_rectangle_packing_covers_bounds_without_overlap():
    bounds = Box.centered(400, 400)
    rects = rectangle_packing(bounds, 8, Random(SEED))
    assert len(rects) > 1
    assert sum(_area(r) for r in rects) == pytest.approx(_area(bounds))
    for r in rects:
        assert bounds.xmin <= r.xmin < r.xmax <= bounds.xmax
        assert bounds.ymin <= r.ymin < r.ymax <= bounds.ymax
    for i, a in enumerate(rects):
        for b in rects[i + 1 :]:
            overlap_w = min(a.xmax, b.xmax) - max(a.xmin, b.xmin)
            overlap_h = min(a.ymax, b.ymax) - max(a.ymin, b.ymin)
            assert overlap_w <= 1e-9 or overlap_h <= 1e-9


def test_rectangle_packing_is_reproducible():
    bounds = Box.centered(300, 200)
    assert rectangle_packing(bounds, 6, Random(SEED)) == rectangle_packing(bounds, 6, Random(SEED))


def test_rectangle_packing_with_single_step_returns_bounds():
    bounds = Box.centered(10, 10)
    random = Random(SEED)
    assert rectangle_packing(bounds, 1, random) == [bounds]
    assert random.use_count == 0


def test_rectangle_packing_rejects_non_positive_step():
    with pytest.raises(ValueError):
        rectangle_packing(Box.centered(10, 10), 0, Random(SEED))


def test_circle_packing_places_disjoint_circles_inside_bounds():
    bounds = Box.centered(200, 200)
    packing = CirclePacking(bounds, 50, Random(SEED))
    circles = []
    for _ in range(50):
        try:
            circles.append(next(packing))
        except StopIteration:
            break

    assert circles
    assert packing.placed == circles
    for c in circles:
        assert bounds.xmin <= c.x - c.radius and c.x + c.radius <= bounds.xmax
        assert bounds.ymin <= c.y - c.radius and c.y + c.radius <= bounds.ymax
    for i, a in enumerate(circles):
        for b in circles[i + 1 :]:
            assert math.hypot(a.x - b.x, a.y - b.y) >= a.radius + b.radius - 1e-9


def test_circle_packing_is_finite_and_not_restartable():
    packing = CirclePacking(Box.centered(100, 100), 5, Random(SEED), exponent=1.15)
    first = list(packing)
    assert 0 < len(first) <= 5
    assert list(packing) == []


def test_circle_packing_is_reproducible():
    bounds = Box.centered(120, 80)
    a = list(CirclePacking(bounds, 20, Random(SEED)))
    b = list(CirclePacking(bounds, 20, Random(SEED)))
    assert a == b


def test_circle_packing_first_circle_takes_zeta_share_of_area():
    bounds = Box.centered(1000, 1000)
    exponent = 1.2
    first = next(CirclePacking(bounds, 4, Random(SEED), exponent=exponent))
    zeta = 1.0 + (exponent + 3.0) / (exponent - 1.0) / 2.0 ** (exponent + 1.0)
    expected_area = bounds.width * bounds.height / zeta
    assert math.pi * first.radius**2 == pytest.approx(expected_area)
