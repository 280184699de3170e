"""The nebula render pipeline.

A render runs six passes in a fixed order over a :class:`RenderSession`:

1. :func:`fill_background` - near-black base color.
2. :func:`apply_background_wash` - faint multi-octave haze over the whole canvas.
3. :func:`color_fractal` - escape-time coloring, cloud bands, and the colored-area mask.
4. :func:`place_stars` - random stars inside the set, recorded as exclusion disks.
5. :func:`apply_fog_overlay` - layered fog tint outside the exclusion set.
6. :func:`apply_soft_fog` - single-octave brightening outside the exclusion set.

Each pass reads only what earlier passes committed to the session. Within a pass, pixels
are evaluated together with numpy, but every pixel's value depends only on its own inputs,
so the result matches a pixel-by-pixel scanline render.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np

from .color import hsl_to_rgb_array
from .compositor import blend, brighten, disk_coverage, over, radial_falloff, store
from .config import RenderConfig
from .escape import iteration_grid
from .noise import NoiseField, SimplexNoise, layered_noise, normalize_layered

BACKGROUND_COLOR = (0, 0, 10, 255)

WASH_LAYERS = 5
WASH_FREQUENCY = 0.002
WASH_AMPLITUDE = 0.4
WASH_BASE = 15.0
WASH_RANGE = 20.0

FADE_EXPONENT = 1.5
FADE_THRESHOLD = 0.01
COLOR_ALPHA = 0.7
SATURATION_FLOOR = 20.0
SATURATION_GAIN = 25.0
LIGHTNESS_GAIN = 35.0
MODULATION_LIGHTNESS = 10.0

MODULATION_LAYERS = 3
MODULATION_COORD_SCALE = 0.03
MODULATION_FREQUENCY = 0.01
# Kept as-is; the per-layer weights 1, 1/2, 1/3 only sum to about 1.83.
MODULATION_NORMALIZER = 1.875

CLOUD_BASE = 200.0
CLOUD_RANGE = 55.0
CLOUD_ALPHA = 0.35

MAX_STARS = 300
MAX_STAR_ATTEMPTS = MAX_STARS * 10
STAR_MAX_SIZE = 1.4
BRIGHT_STAR_THRESHOLD = 0.6
GLOW_THRESHOLD = 0.3
BRIGHT_GLOW_MULTIPLIER = 6
DIM_GLOW_MULTIPLIER = 4
GLOW_EXCLUSION_FACTOR = 1.2
PLAIN_EXCLUSION_FACTOR = 2.0
GLOW_ALPHA = 0.5
BRIGHT_STAR_ALPHA = 1.0
DIM_STAR_ALPHA = 0.85
STAR_COLOR = (255.0, 255.0, 255.0)

FOG_TINT = (40.0, 40.0, 60.0)

SOFT_FOG_FREQUENCY = 0.005
SOFT_FOG_STRENGTH = 12.0

ProgressCallback = Callable[[float], None]


@dataclass(frozen=True)
class StarRecord:
    """A placed star: pixel position plus the radius later passes must leave untouched."""

    x: int
    y: int
    radius: float


@dataclass
class RenderSession:
    """Mutable state threaded through the passes of one render."""

    config: RenderConfig
    noise: NoiseField
    rng: np.random.Generator
    buffer: np.ndarray
    colored: np.ndarray
    iterations: Optional[np.ndarray] = None
    stars: list[StarRecord] = field(default_factory=list)
    device: Optional[str] = None

    @classmethod
    def create(
        cls,
        config: RenderConfig,
        *,
        noise: Optional[NoiseField] = None,
        rng: Optional[np.random.Generator] = None,
        device: Optional[str] = None,
    ) -> "RenderSession":
        noise_seed, star_seed = np.random.SeedSequence(config.seed).spawn(2)
        if noise is None:
            noise = SimplexNoise(rng=np.random.default_rng(noise_seed))
        if rng is None:
            rng = np.random.default_rng(star_seed)
        return cls(
            config=config,
            noise=noise,
            rng=rng,
            buffer=np.zeros((config.height, config.width, 4), dtype=np.uint8),
            colored=np.zeros((config.height, config.width), dtype=bool),
            device=device,
        )


@dataclass(frozen=True)
class RenderResult:
    """Container for the finished pixel buffer and the masks built along the way."""

    buffer: np.ndarray
    colored: np.ndarray
    iterations: np.ndarray
    stars: tuple[StarRecord, ...]


def fill_background(session: RenderSession) -> None:
    session.buffer[...] = BACKGROUND_COLOR


def apply_background_wash(session: RenderSession) -> None:
    """Add a faint haze to every pixel; no masks exist yet, so nothing is skipped."""

    height, width = session.colored.shape
    py, px = np.mgrid[0:height, 0:width].astype(np.float64)
    total = layered_noise(session.noise, px, py, WASH_LAYERS, WASH_FREQUENCY, WASH_AMPLITUDE)
    haze = WASH_BASE + normalize_layered(total) * WASH_RANGE
    rgb = session.buffer[..., :3].astype(np.float64)
    session.buffer[..., :3] = store(rgb + haze[..., np.newaxis])


def fog_modulation(noise: NoiseField, px, py) -> np.ndarray:
    """Slow noise term that varies lightness and cloud brightness in the coloring pass."""

    fx = np.asarray(px, dtype=np.float64) * MODULATION_COORD_SCALE
    fy = np.asarray(py, dtype=np.float64) * MODULATION_COORD_SCALE
    total = np.zeros(np.broadcast(fx, fy).shape, dtype=np.float64)
    for layer in range(MODULATION_LAYERS):
        frequency = MODULATION_FREQUENCY * 2.0 ** layer
        sample = np.asarray(noise(fx * frequency, fy * frequency))
        total = total + (sample * 0.5 + 0.5) / (layer + 1)
    return total / MODULATION_NORMALIZER


def color_fractal(session: RenderSession, progress: Optional[ProgressCallback] = None) -> None:
    """Color every pixel that escapes early enough, one scanline at a time.

    Fills ``session.colored`` and ``session.iterations`` as a side effect. ``progress`` is
    called with a percentage before each scanline and once more with 100 at the end.
    """

    config = session.config
    if session.iterations is None:
        session.iterations = iteration_grid(config, device=session.device)

    cap = config.max_iterations
    complementary_hue = (config.base_hue + 180.0) % 360.0

    for py in range(config.height):
        if progress is not None:
            progress(py / config.height * 100.0)

        iters = session.iterations[py]
        mask = iters / cap
        fade = 1.0 - mask ** FADE_EXPONENT
        visible = fade > FADE_THRESHOLD
        session.colored[py] = (iters < cap) & visible

        px = np.nonzero(visible)[0]
        if px.size == 0:
            continue
        mask = mask[px]
        fade = fade[px]

        modulation = fog_modulation(session.noise, px, py)
        hue = ((1.0 - mask) * config.base_hue + mask * complementary_hue) % 360.0
        saturation = np.maximum(SATURATION_FLOOR, config.saturation + mask * SATURATION_GAIN)
        lightness = config.lightness + mask * LIGHTNESS_GAIN + modulation * MODULATION_LIGHTNESS
        rgb = hsl_to_rgb_array(hue, saturation, lightness)

        row = session.buffer[py, px, :3].astype(np.float64)
        row = store(blend(row, rgb, (COLOR_ALPHA * fade)[:, np.newaxis])).astype(np.float64)

        cloud = (mask > config.min_noise) & (mask < config.max_noise)
        if np.any(cloud):
            strength = (CLOUD_BASE + modulation[cloud] * CLOUD_RANGE)[:, np.newaxis]
            cloud_alpha = ((1.0 - mask[cloud]) * CLOUD_ALPHA)[:, np.newaxis]
            row[cloud] = blend(row[cloud], strength, cloud_alpha)

        session.buffer[py, px, :3] = store(row)

    if progress is not None:
        progress(100.0)


def _pixel_window(session: RenderSession, cx: float, cy: float, extent: float):
    """Slices around ``(cx, cy)`` and the distance from each covered pixel centre to it."""

    height, width = session.colored.shape
    x0 = max(0, int(np.floor(cx - extent)))
    x1 = min(width, int(np.ceil(cx + extent)) + 1)
    y0 = max(0, int(np.floor(cy - extent)))
    y1 = min(height, int(np.ceil(cy + extent)) + 1)
    ys, xs = np.mgrid[y0:y1, x0:x1]
    distance = np.hypot(xs + 0.5 - cx, ys + 0.5 - cy)
    return (slice(y0, y1), slice(x0, x1)), distance


def _paint(session: RenderSession, window, alpha: np.ndarray) -> None:
    region = session.buffer[window]
    region[..., :3] = store(over(region[..., :3], STAR_COLOR, alpha))


def draw_star(session: RenderSession, px: int, py: int, size: float, brighter: bool, glow: bool) -> StarRecord:
    """Draw one star and return its exclusion record."""

    clarity = session.config.star_clarity
    glow_multiplier = BRIGHT_GLOW_MULTIPLIER if brighter else DIM_GLOW_MULTIPLIER
    glow_radius = size * glow_multiplier

    if glow and glow_radius > 0:
        window, distance = _pixel_window(session, px, py, glow_radius + 1)
        _paint(session, window, radial_falloff(distance, glow_radius, min(1.0, GLOW_ALPHA * clarity)))

    core_alpha = min(1.0, (BRIGHT_STAR_ALPHA if brighter else DIM_STAR_ALPHA) * clarity)
    window, distance = _pixel_window(session, px, py, size + 1)
    _paint(session, window, disk_coverage(distance, size) * core_alpha)

    radius = glow_radius * GLOW_EXCLUSION_FACTOR if glow else size * PLAIN_EXCLUSION_FACTOR
    return StarRecord(x=px, y=py, radius=radius)


def place_stars(session: RenderSession) -> None:
    """Scatter stars over pixels that never escaped.

    Candidates are drawn uniformly from the canvas; a candidate is accepted when its
    iteration count equals the cap under the same recurrence used by the coloring pass.
    """

    config = session.config
    if session.iterations is None:
        session.iterations = iteration_grid(config, device=session.device)

    rng = session.rng
    plotted = 0
    attempts = 0
    while plotted < MAX_STARS and attempts < MAX_STAR_ATTEMPTS:
        px = int(rng.random() * config.width)
        py = int(rng.random() * config.height)
        if session.iterations[py, px] == config.max_iterations:
            size = rng.random() * STAR_MAX_SIZE
            brighter = rng.random() > BRIGHT_STAR_THRESHOLD
            glow = rng.random() > GLOW_THRESHOLD
            session.stars.append(draw_star(session, px, py, size, brighter, glow))
            plotted += 1
        attempts += 1


def exclusion_mask(session: RenderSession) -> np.ndarray:
    """Pixels the fog passes must not touch: star disks, plus uncolored areas if requested."""

    height, width = session.colored.shape
    excluded = np.zeros((height, width), dtype=bool)
    for star in session.stars:
        r = star.radius
        x0 = max(0, int(np.floor(star.x - r)))
        x1 = min(width, int(np.floor(star.x + r)) + 1)
        y0 = max(0, int(np.floor(star.y - r)))
        y1 = min(height, int(np.floor(star.y + r)) + 1)
        if x0 >= x1 or y0 >= y1:
            continue
        ys, xs = np.ogrid[y0:y1, x0:x1]
        excluded[y0:y1, x0:x1] |= np.sqrt((xs - star.x) ** 2 + (ys - star.y) ** 2) <= r

    if session.config.keep_black_areas_clear:
        excluded |= ~session.colored
    return excluded


def apply_fog_overlay(session: RenderSession, excluded: Optional[np.ndarray] = None) -> None:
    config = session.config
    if excluded is None:
        excluded = exclusion_mask(session)

    ys, xs = np.nonzero(~excluded)
    if ys.size == 0:
        return

    total = layered_noise(session.noise, xs, ys, config.fog_layer_count, config.fog_size, 1.0)
    # unclamped; a negative alpha darkens and store() clamps the channels
    intensity = normalize_layered(total, clip=False)

    base = session.buffer[ys, xs, :3].astype(np.float64)
    tint = brighten(base, FOG_TINT)
    alpha = (intensity * config.fog_density)[:, np.newaxis]
    session.buffer[ys, xs, :3] = store(blend(base, tint, alpha))


def apply_soft_fog(session: RenderSession, excluded: Optional[np.ndarray] = None) -> None:
    if excluded is None:
        excluded = exclusion_mask(session)

    ys, xs = np.nonzero(~excluded)
    if ys.size == 0:
        return

    sample = np.asarray(session.noise(xs * SOFT_FOG_FREQUENCY, ys * SOFT_FOG_FREQUENCY))
    amount = (sample * 0.5 + 0.5) * SOFT_FOG_STRENGTH
    base = session.buffer[ys, xs, :3].astype(np.float64)
    session.buffer[ys, xs, :3] = store(np.minimum(255.0, base + amount[:, np.newaxis]))


def render(
    config: RenderConfig,
    *,
    noise: Optional[NoiseField] = None,
    rng: Optional[np.random.Generator] = None,
    device: Optional[str] = None,
    progress: Optional[ProgressCallback] = None,
) -> RenderResult:
    """Render ``config`` and return the finished RGBA buffer with its masks.

    ``config`` is expected to be validated already. ``noise`` and ``rng`` default to a
    :class:`SimplexNoise` field and a numpy generator seeded from two independent streams
    spawned from ``config.seed`` (unseeded when it is ``None``).
    """

    session = RenderSession.create(config, noise=noise, rng=rng, device=device)

    fill_background(session)
    apply_background_wash(session)
    color_fractal(session, progress=progress)
    place_stars(session)

    excluded = exclusion_mask(session)
    apply_fog_overlay(session, excluded)
    apply_soft_fog(session, excluded)

    return RenderResult(
        buffer=session.buffer,
        colored=session.colored,
        iterations=session.iterations,
        stars=tuple(session.stars),
    )
