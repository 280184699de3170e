"""Render configuration and its validation."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Optional

from .escape import FRACTAL_TYPES, MANDELBROT

CANVAS_WIDTH = 800
CANVAS_HEIGHT = 800

MAX_ITERATIONS_RANGE = (1, 10000)
HUE_RANGE = (0.0, 360.0)
PERCENT_RANGE = (0.0, 100.0)
NOISE_BAND_RANGE = (0.0, 1.0)
FOG_DENSITY_RANGE = (0.1, 0.8)
FOG_SIZE_RANGE = (0.001, 0.05)
FOG_LAYER_RANGE = (1, 8)
STAR_CLARITY_RANGE = (0.5, 2.0)


class ConfigError(ValueError):
    """Raised when a :class:`RenderConfig` violates one or more of its ranges."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))


@dataclass(frozen=True)
class RenderConfig:
    """Parameters that describe a single nebula render."""

    width: int = CANVAS_WIDTH
    height: int = CANVAS_HEIGHT
    fractal_type: str = MANDELBROT
    max_iterations: int = 100
    zoom: float = 300.0
    offset_x: float = -0.75
    offset_y: float = 0.0
    base_hue: float = 200.0
    saturation: float = 70.0
    lightness: float = 30.0
    julia_cx: float = -0.8
    julia_cy: float = 0.156
    min_noise: float = 0.2
    max_noise: float = 0.8
    fog_density: float = 0.4
    fog_size: float = 0.01
    fog_layer_count: int = 5
    star_clarity: float = 1.0
    keep_black_areas_clear: bool = True
    seed: Optional[int] = None

    def replace(self, **changes) -> "RenderConfig":
        return replace(self, **changes)


def _check_range(problems: list[str], name: str, value, bounds) -> None:
    low, high = bounds
    if not isinstance(value, (int, float)) or isinstance(value, bool) or not math.isfinite(value):
        problems.append(f"{name} must be a finite number, got {value!r}.")
    elif not low <= value <= high:
        problems.append(f"{name} must be between {low} and {high}, got {value}.")


def _check_int(problems: list[str], name: str, value, bounds) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        problems.append(f"{name} must be an integer, got {value!r}.")
        return
    _check_range(problems, name, value, bounds)


def validate_config(config: RenderConfig) -> RenderConfig:
    """Return ``config`` unchanged if every field is within range, else raise :class:`ConfigError`.

    The renderer itself never validates; callers run this before handing a configuration
    over.
    """

    problems: list[str] = []

    for name in ("width", "height"):
        value = getattr(config, name)
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            problems.append(f"{name} must be a positive integer, got {value!r}.")

    if config.fractal_type not in FRACTAL_TYPES:
        problems.append(f"fractal_type must be one of {', '.join(FRACTAL_TYPES)}, got {config.fractal_type!r}.")

    _check_int(problems, "max_iterations", config.max_iterations, MAX_ITERATIONS_RANGE)

    if not isinstance(config.zoom, (int, float)) or not math.isfinite(config.zoom) or config.zoom <= 0:
        problems.append(f"zoom must be a positive number, got {config.zoom!r}.")

    for name in ("offset_x", "offset_y", "julia_cx", "julia_cy"):
        value = getattr(config, name)
        if not isinstance(value, (int, float)) or not math.isfinite(value):
            problems.append(f"{name} must be a finite number, got {value!r}.")

    _check_range(problems, "base_hue", config.base_hue, HUE_RANGE)
    _check_range(problems, "saturation", config.saturation, PERCENT_RANGE)
    _check_range(problems, "lightness", config.lightness, PERCENT_RANGE)
    _check_range(problems, "min_noise", config.min_noise, NOISE_BAND_RANGE)
    _check_range(problems, "max_noise", config.max_noise, NOISE_BAND_RANGE)
    _check_range(problems, "fog_density", config.fog_density, FOG_DENSITY_RANGE)
    _check_range(problems, "fog_size", config.fog_size, FOG_SIZE_RANGE)
    _check_int(problems, "fog_layer_count", config.fog_layer_count, FOG_LAYER_RANGE)
    _check_range(problems, "star_clarity", config.star_clarity, STAR_CLARITY_RANGE)

    if config.seed is not None and (not isinstance(config.seed, int) or isinstance(config.seed, bool) or config.seed < 0):
        problems.append(f"seed must be a non-negative integer, got {config.seed!r}.")

    if problems:
        raise ConfigError(problems)
    return config
