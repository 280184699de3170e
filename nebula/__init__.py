"""Public API for the nebula fractal renderer."""

from .color import hsl_to_rgb, hsl_to_rgb_array
from .compositor import blend, store
from .config import ConfigError, RenderConfig, validate_config
from .escape import (
    JULIA,
    MANDELBROT,
    escape_time_grid,
    iteration_grid,
    julia,
    mandelbrot,
    screen_to_complex,
)
from .noise import NoiseField, SimplexNoise, layered_noise, normalize_layered
from .renderer import RenderResult, RenderSession, StarRecord, render

__all__ = [
    "ConfigError",
    "JULIA",
    "MANDELBROT",
    "NoiseField",
    "RenderConfig",
    "RenderResult",
    "RenderSession",
    "SimplexNoise",
    "StarRecord",
    "blend",
    "escape_time_grid",
    "hsl_to_rgb",
    "hsl_to_rgb_array",
    "iteration_grid",
    "julia",
    "layered_noise",
    "mandelbrot",
    "normalize_layered",
    "render",
    "screen_to_complex",
    "store",
    "validate_config",
]
