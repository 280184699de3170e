"""Channel blending primitives shared by the render passes."""

from __future__ import annotations

import numpy as np


def blend(background, foreground, alpha):
    """Linear interpolation ``background * (1 - alpha) + foreground * alpha``.

    Applied per channel; the result is not clamped.
    """

    return background * (1 - alpha) + foreground * alpha


def store(values) -> np.ndarray:
    """Quantize channel values the way a clamped byte buffer does on assignment.

    Values are rounded half to even and clamped to [0, 255].
    """

    return np.clip(np.rint(np.asarray(values, dtype=np.float64)), 0, 255).astype(np.uint8)


def brighten(rgb, offsets) -> np.ndarray:
    """Add per-channel ``offsets`` to ``rgb``, capping each channel at 255."""

    return np.minimum(255.0, np.asarray(rgb, dtype=np.float64) + np.asarray(offsets, dtype=np.float64))


def over(rgb, color, alpha) -> np.ndarray:
    """Composite a solid ``color`` with per-pixel ``alpha`` over ``rgb`` (shape ``(..., 3)``)."""

    alpha = np.clip(np.asarray(alpha, dtype=np.float64), 0.0, 1.0)[..., np.newaxis]
    return blend(np.asarray(rgb, dtype=np.float64), np.asarray(color, dtype=np.float64), alpha)


def radial_falloff(distance: np.ndarray, radius: float, center_alpha: float) -> np.ndarray:
    """Alpha of a radial gradient from ``center_alpha`` at the centre to 0 at ``radius``."""

    if radius <= 0:
        return np.zeros_like(distance, dtype=np.float64)
    return np.where(distance < radius, center_alpha * (1.0 - distance / radius), 0.0)


def disk_coverage(distance: np.ndarray, radius: float) -> np.ndarray:
    """Approximate pixel coverage of an anti-aliased disk of ``radius``."""

    return np.clip(radius - distance + 0.5, 0.0, 1.0) * (radius > 0)
