import math

import numpy as np

from sketchbook import Camera, Instance3D, Polyline, Scene3D, SketchContext, run

KIND = "3d"

N_MERIDIANS = 16
N_PARALLELS = 12


def sketch(ctx: SketchContext) -> Instance3D:
    random = ctx.random
    color = random.color()
    wobble = random.real(0.0, 0.25)
    t = np.linspace(0.0, 2.0 * math.pi, 96)
    lines: list[Polyline] = []
    for i in range(N_MERIDIANS):
        phi = 2.0 * math.pi * i / N_MERIDIANS
        r = 1.0 + wobble * np.sin(3.0 * t + phi)
        lines.append(
            Polyline(
                np.stack([r * np.sin(t) * math.cos(phi), r * np.cos(t), r * np.sin(t) * math.sin(phi)], axis=1),
                color=color,
            )
        )
    for j in range(1, N_PARALLELS):
        theta = math.pi * j / N_PARALLELS
        lines.append(
            Polyline(
                np.stack(
                    [math.sin(theta) * np.cos(t), np.full_like(t, math.cos(theta)), math.sin(theta) * np.sin(t)],
                    axis=1,
                ),
                color=color,
                thickness=0.8,
            )
        )
    sphere = Scene3D(*lines, rotation=(random.real(0.0, math.pi), 0.0, 0.0))
    camera = Camera(fov=40.0, position=(0.0, 0.0, 4.5))
    spin = random.sign() * random.real(0.2, 0.6)

    def update(_total: float, delta: float) -> None:
        rx, ry, rz = sphere.rotation
        sphere.rotation = (rx, ry + spin * delta, rz)

    return Instance3D(Scene3D(sphere), camera, update=update)


if __name__ == "__main__":
    run(sketch, kind=KIND)
