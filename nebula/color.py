"""HSL to RGB conversion used by the coloring pass."""

from __future__ import annotations

import numpy as np


def _round_half_up(values: np.ndarray) -> np.ndarray:
    return np.floor(values + 0.5)


def _hue_to_channel(p: np.ndarray, q: np.ndarray, t: np.ndarray) -> np.ndarray:
    """Piecewise-linear hue ramp; ``t`` is wrapped into [0, 1] at most once."""

    t = np.where(t < 0, t + 1.0, t)
    t = np.where(t > 1, t - 1.0, t)
    return np.select(
        [t < 1.0 / 6.0, t < 0.5, t < 2.0 / 3.0],
        [p + (q - p) * 6.0 * t, q, p + (q - p) * (2.0 / 3.0 - t) * 6.0],
        default=p,
    )


def hsl_to_rgb_array(hue, saturation, lightness) -> np.ndarray:
    """Convert HSL values element-wise to an ``(..., 3)`` float array of channel values.

    ``hue`` is in degrees, ``saturation`` and ``lightness`` in percent. Inputs outside those
    ranges are not rejected; they simply flow through the same formula.
    """

    h = np.asarray(hue, dtype=np.float64) / 360.0
    s = np.asarray(saturation, dtype=np.float64) / 100.0
    l = np.asarray(lightness, dtype=np.float64) / 100.0
    h, s, l = np.broadcast_arrays(h, s, l)

    q = np.where(l < 0.5, l * (1.0 + s), l + s - l * s)
    p = 2.0 * l - q

    achromatic = s == 0
    r = np.where(achromatic, l, _hue_to_channel(p, q, h + 1.0 / 3.0))
    g = np.where(achromatic, l, _hue_to_channel(p, q, h))
    b = np.where(achromatic, l, _hue_to_channel(p, q, h - 1.0 / 3.0))

    return _round_half_up(np.stack((r, g, b), axis=-1) * 255.0)


def hsl_to_rgb(hue: float, saturation: float, lightness: float) -> tuple[int, int, int]:
    """Convert a single HSL color to an ``(r, g, b)`` tuple of integers."""

    r, g, b = hsl_to_rgb_array(hue, saturation, lightness)
    return int(r), int(g), int(b)
