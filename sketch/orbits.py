import math

import numpy as np

from sketchbook import Container, Instance2D, Polyline, SketchContext, run

N_RINGS = 24


def sketch(ctx: SketchContext) -> Instance2D:
    random = ctx.random
    radius_max = min(ctx.bbox.width, ctx.bbox.height) * 0.45
    rings: list[Container] = []
    for i in range(N_RINGS):
        r = radius_max * (i + 1) / N_RINGS
        sides = random.integer(3, 9)
        theta = np.linspace(0.0, 2.0 * math.pi, sides, endpoint=False)
        coords = np.stack([np.cos(theta) * r, np.sin(theta) * r], axis=1)
        shape = Polyline(coords, color=random.color(), thickness=random.real(0.5, 2.5), closed=True)
        rings.append(Container(shape, rotation=random.real(0.0, 2.0 * math.pi)))
    speeds = [random.normal(0.0, 0.3) for _ in rings]

    def update(_total: float, delta: float) -> None:
        for ring, speed in zip(rings, speeds):
            ring.rotation += speed * delta

    return Instance2D(Container(*rings), update=update)


if __name__ == "__main__":
    run(sketch)
