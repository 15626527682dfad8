import numpy as np

from sketchbook import (
    CirclePacking,
    Container,
    Instance2D,
    Polyline,
    SketchContext,
    rectangle_packing,
    run,
)

GRID_STEP = 8
CIRCLES_PER_CELL = 40


def _circle(x: float, y: float, r: float, color) -> Polyline:
    theta = np.linspace(0.0, 2.0 * np.pi, max(12, int(r)), endpoint=False)
    return Polyline(
        np.stack([x + np.cos(theta) * r, y + np.sin(theta) * r], axis=1),
        color=color,
        closed=True,
    )


def sketch(ctx: SketchContext) -> Instance2D:
    random = ctx.random
    root = Container()
    for cell in rectangle_packing(ctx.bbox.inset(40.0), GRID_STEP, random):
        inner = cell.inset(4.0)
        if inner.width <= 0 or inner.height <= 0:
            continue
        corners = [
            (inner.xmin, inner.ymin),
            (inner.xmax, inner.ymin),
            (inner.xmax, inner.ymax),
            (inner.xmin, inner.ymax),
        ]
        root.add_child(Polyline(corners, closed=True, thickness=1.5))
        if random.bool(0.6):
            color = random.color()
            packing = CirclePacking(inner, CIRCLES_PER_CELL, random)
            for _ in range(CIRCLES_PER_CELL):
                try:
                    c = next(packing)
                except StopIteration:
                    break
                root.add_child(_circle(c.x, c.y, c.radius, color))
    return Instance2D(root)


if __name__ == "__main__":
    run(sketch)
