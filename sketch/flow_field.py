import numpy as np

from sketchbook import Container, Instance2D, Polyline, SketchContext, noise3d, run

N_LINES = 600
N_STEPS = 80
STEP = 4.0
MARGIN = 60.0


def sketch(ctx: SketchContext) -> Instance2D:
    random = ctx.random
    noise = noise3d(random)
    bbox = ctx.bbox.inset(MARGIN)
    frequency = random.real(0.0015, 0.004)
    color = random.color()

    starts = np.stack(
        [
            random.reals(bbox.xmin, bbox.xmax, N_LINES),
            random.reals(bbox.ymin, bbox.ymax, N_LINES),
        ],
        axis=1,
    )
    lines = [Polyline(np.zeros((1, 2)), color=color, thickness=1.0) for _ in range(N_LINES)]
    root = Container(*lines)

    def trace(z: float) -> None:
        pts = np.empty((N_STEPS, N_LINES, 2), dtype=np.float64)
        pts[0] = starts
        for i in range(1, N_STEPS):
            prev = pts[i - 1]
            angle = noise(prev[:, 0] * frequency, prev[:, 1] * frequency, z) * np.pi * 2.0
            pts[i, :, 0] = prev[:, 0] + np.cos(angle) * STEP
            pts[i, :, 1] = prev[:, 1] + np.sin(angle) * STEP
        for j, line in enumerate(lines):
            line.set_coords(pts[:, j])

    trace(0.0)

    def update(total: float, _delta: float) -> None:
        trace(total * 0.05)

    return Instance2D(root, update=update)


if __name__ == "__main__":
    run(sketch, width=1000, height=1000)
