"""Escape-time iteration for the Mandelbrot and Julia recurrences.

Both recurrences iterate while ``zx**2 + zy**2 < 4`` and the iteration count is below the
cap, and return the count at which that condition first failed. The Mandelbrot variant
applies a small sinusoidal perturbation after every step::

    zx += 0.005 * sin(3 * zy)
    zy += 0.005 * sin(2 * zx)

which gives the boundary its irregular, organic texture.

Grids are evaluated with a TensorFlow while-loop. Every point carries its own ``active``
flag and stops updating as soon as its own escape test fails, so the counts are identical
to iterating each point on its own.

Non-finite coordinates (for instance from a zero zoom) are not rejected: any comparison
involving NaN is false, so such points simply count as escaped. A Julia point starting at
NaN returns 0. A Mandelbrot point always takes its first step from ``z0 = 0`` and returns 1.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
import tensorflow as tf

ESCAPE_RADIUS_SQUARED = 4.0
PERTURBATION_AMPLITUDE = 0.005
PERTURBATION_Y_FREQUENCY = 3.0
PERTURBATION_X_FREQUENCY = 2.0

MANDELBROT = "mandelbrot"
JULIA = "julia"
FRACTAL_TYPES = (MANDELBROT, JULIA)


def _escape_step(
    zx: tf.Tensor,
    zy: tf.Tensor,
    cx: tf.Tensor,
    cy: tf.Tensor,
    ns: tf.Tensor,
    active: tf.Tensor,
    perturb: bool,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Perform a single iteration for points that have not escaped."""

    zx_new = zx * zx - zy * zy + cx
    zy_new = 2.0 * zx * zy + cy
    if perturb:
        zx_new = zx_new + PERTURBATION_AMPLITUDE * tf.sin(zy_new * PERTURBATION_Y_FREQUENCY)
        zy_new = zy_new + PERTURBATION_AMPLITUDE * tf.sin(zx_new * PERTURBATION_X_FREQUENCY)

    zx = tf.where(active, zx_new, zx)
    zy = tf.where(active, zy_new, zy)
    ns = ns + tf.cast(active, tf.int32)
    radius = tf.constant(ESCAPE_RADIUS_SQUARED, dtype=zx.dtype)
    new_active = tf.logical_and(active, zx * zx + zy * zy < radius)
    return zx, zy, ns, new_active


@tf.function(reduce_retracing=True)
def _escape_run(
    zx: tf.Tensor,
    zy: tf.Tensor,
    cx: tf.Tensor,
    cy: tf.Tensor,
    max_iterations: tf.Tensor,
    perturb: bool,
) -> tf.Tensor:
    """Iterate the recurrence using a TensorFlow while loop and return the counts."""

    max_iterations = tf.cast(max_iterations, tf.int32)
    i = tf.constant(0, dtype=tf.int32)
    ns = tf.zeros(tf.shape(zx), tf.int32)
    radius = tf.constant(ESCAPE_RADIUS_SQUARED, dtype=zx.dtype)
    active = zx * zx + zy * zy < radius

    def cond(i, zx, zy, ns, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, zx, zy, ns, active):
        zx, zy, ns, active = _escape_step(zx, zy, cx, cy, ns, active, perturb)
        return i + 1, zx, zy, ns, active

    _, _, _, ns, _ = tf.while_loop(cond, body, (i, zx, zy, ns, active))
    return ns


def escape_time_grid(
    xs,
    ys,
    max_iterations: int,
    *,
    fractal_type: str = MANDELBROT,
    julia_c: tuple[float, float] = (0.0, 0.0),
    device: Optional[str] = None,
) -> np.ndarray:
    """Return iteration counts for the complex coordinates ``xs + i*ys``.

    ``xs`` and ``ys`` must broadcast to a common shape; the result has that shape and
    dtype ``int32``.
    """

    if fractal_type not in FRACTAL_TYPES:
        raise ValueError(f"Unknown fractal type '{fractal_type}'. Valid choices: {', '.join(FRACTAL_TYPES)}.")

    xs, ys = np.broadcast_arrays(np.asarray(xs, dtype=np.float64), np.asarray(ys, dtype=np.float64))
    shape = xs.shape
    if xs.size == 0:
        return np.zeros(shape, dtype=np.int32)

    with tf.device(device if device is not None else "/CPU:0"):
        x_tf = tf.convert_to_tensor(xs.reshape(-1), dtype=tf.float64)
        y_tf = tf.convert_to_tensor(ys.reshape(-1), dtype=tf.float64)
        if fractal_type == MANDELBROT:
            zx = tf.zeros_like(x_tf)
            zy = tf.zeros_like(y_tf)
            cx, cy = x_tf, y_tf
            perturb = True
        else:
            zx, zy = x_tf, y_tf
            cx = tf.fill(tf.shape(x_tf), tf.constant(julia_c[0], dtype=tf.float64))
            cy = tf.fill(tf.shape(y_tf), tf.constant(julia_c[1], dtype=tf.float64))
            perturb = False

        ns = _escape_run(zx, zy, cx, cy, tf.constant(max_iterations, dtype=tf.int32), perturb)

    return ns.numpy().reshape(shape)


def mandelbrot(x: float, y: float, max_iterations: int, *, device: Optional[str] = None) -> int:
    """Iteration count of the perturbed Mandelbrot recurrence at ``c = x + iy``."""

    return int(escape_time_grid(x, y, max_iterations, fractal_type=MANDELBROT, device=device))


def julia(x: float, y: float, cx: float, cy: float, max_iterations: int, *, device: Optional[str] = None) -> int:
    """Iteration count of the Julia recurrence starting at ``z0 = x + iy`` with ``c = cx + i*cy``."""

    return int(
        escape_time_grid(x, y, max_iterations, fractal_type=JULIA, julia_c=(cx, cy), device=device)
    )


def screen_to_complex(px, py, width: int, height: int, zoom: float, offset_x: float, offset_y: float):
    """Map pixel coordinates to the complex plane.

    A zoom of zero yields infinite or NaN coordinates instead of a warning; those points
    escape immediately when iterated.
    """

    px = np.asarray(px, dtype=np.float64)
    py = np.asarray(py, dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        x = (px - width / 2) / zoom + offset_x
        y = (py - height / 2) / zoom + offset_y
    return x, y


def iteration_grid(config, *, device: Optional[str] = None) -> np.ndarray:
    """Iteration counts for every pixel of ``config``'s canvas, shaped ``(height, width)``."""

    px = np.arange(config.width, dtype=np.float64)[np.newaxis, :]
    py = np.arange(config.height, dtype=np.float64)[:, np.newaxis]
    x, y = screen_to_complex(px, py, config.width, config.height, config.zoom, config.offset_x, config.offset_y)
    return escape_time_grid(
        x,
        y,
        config.max_iterations,
        fractal_type=config.fractal_type,
        julia_c=(config.julia_cx, config.julia_cy),
        device=device,
    )
