"""Coherent noise and octave layering for the atmospheric effects."""

from __future__ import annotations

from typing import Optional, Protocol

import numpy as np

_F2 = 0.5 * (np.sqrt(3.0) - 1.0)
_G2 = (3.0 - np.sqrt(3.0)) / 6.0

_GRADIENTS = np.array(
    [
        (1.0, 1.0), (-1.0, 1.0), (1.0, -1.0), (-1.0, -1.0),
        (1.0, 0.0), (-1.0, 0.0), (1.0, 0.0), (-1.0, 0.0),
        (0.0, 1.0), (0.0, -1.0), (0.0, 1.0), (0.0, -1.0),
    ],
    dtype=np.float64,
)


class NoiseField(Protocol):
    """Anything that can be sampled at real coordinates and returns values in [-1, 1]."""

    def __call__(self, x, y):
        ...


class SimplexNoise:
    """Seeded 2D simplex noise.

    Sampling accepts scalars or arrays of matching shape. The same instance always returns
    the same value for the same coordinates, so one field can be shared by every layer of
    a render and the layers stay coherent with each other.
    """

    def __init__(self, seed: Optional[int] = None, *, rng: Optional[np.random.Generator] = None) -> None:
        if rng is None:
            rng = np.random.default_rng(seed)
        perm = rng.permutation(256).astype(np.int64)
        self._perm = np.concatenate((perm, perm))
        self._grad_index = self._perm % len(_GRADIENTS)

    def _corner(self, dx: np.ndarray, dy: np.ndarray, gi: np.ndarray) -> np.ndarray:
        t = 0.5 - dx * dx - dy * dy
        grad = _GRADIENTS[gi]
        dot = grad[..., 0] * dx + grad[..., 1] * dy
        t2 = t * t
        return np.where(t < 0.0, 0.0, t2 * t2 * dot)

    def __call__(self, x, y):
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)

        s = (x + y) * _F2
        i = np.floor(x + s)
        j = np.floor(y + s)
        t = (i + j) * _G2
        x0 = x - (i - t)
        y0 = y - (j - t)

        i1 = (x0 > y0).astype(np.int64)
        j1 = 1 - i1
        x1 = x0 - i1 + _G2
        y1 = y0 - j1 + _G2
        x2 = x0 - 1.0 + 2.0 * _G2
        y2 = y0 - 1.0 + 2.0 * _G2

        ii = i.astype(np.int64) & 255
        jj = j.astype(np.int64) & 255
        perm = self._perm
        gi0 = self._grad_index[ii + perm[jj]]
        gi1 = self._grad_index[ii + i1 + perm[jj + j1]]
        gi2 = self._grad_index[ii + 1 + perm[jj + 1]]

        total = self._corner(x0, y0, gi0) + self._corner(x1, y1, gi1) + self._corner(x2, y2, gi2)
        value = np.clip(70.0 * total, -1.0, 1.0)
        if value.ndim == 0:
            return float(value)
        return value


def layered_noise(
    noise: NoiseField,
    x,
    y,
    layers: int,
    base_frequency: float,
    base_amplitude: float,
):
    """Sum ``layers`` octaves of ``noise`` at ``(x, y)``.

    Octave ``l`` samples at ``base_frequency * 2**l`` and is weighted by
    ``base_amplitude / 2**l``.
    """

    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    total = np.zeros(np.broadcast(x, y).shape, dtype=np.float64)
    for layer in range(layers):
        frequency = base_frequency * 2.0 ** layer
        amplitude = base_amplitude / 2.0 ** layer
        total = total + np.asarray(noise(x * frequency, y * frequency)) * amplitude
    return total


def normalize_layered(total, *, clip: bool = True):
    """Map a layered sum through ``(sum + 1) / 2``.

    With more than one octave the sum can leave [-1, 1]; ``clip`` clamps the result to
    [0, 1], otherwise it is returned as is.
    """

    value = (np.asarray(total, dtype=np.float64) + 1.0) / 2.0
    if clip:
        return np.clip(value, 0.0, 1.0)
    return value
