import os
import sys
import warnings
from pathlib import Path
from typing import Optional, Sequence

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import tensorflow as tf

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")
    for handler in tf.get_logger().handlers:
        handler.setLevel("ERROR")

import PIL.Image

from nebula import ConfigError, RenderConfig, render, validate_config
from nebula.escape import FRACTAL_TYPES, MANDELBROT

log("TensorFlow version: %s" % tf.__version__)

# Escape-time iteration runs on the first visible GPU when there is one and falls back to
# the CPU otherwise.
gpus = tf.config.list_physical_devices('GPU')
if gpus:
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
        DEVICE = '/GPU:0'
        log("GPU found, using %s" % gpus[0].name)
    except RuntimeError as e:
        log(e)
        DEVICE = '/CPU:0'
else:
    DEVICE = '/CPU:0'
    log("No GPU found, using CPU")

from argparse import ArgumentParser

DEFAULT_OUTPUT_DIR = Path("images")
_OPAQUE_FORMATS = {"JPEG", "BMP"}


def build_parser():
    defaults = RenderConfig()
    parser = ArgumentParser(description='Render an escape-time fractal wrapped in noise-based fog and stars.')

    parser.add_argument('--type', dest='fractal_type', choices=FRACTAL_TYPES, default=MANDELBROT,
                        help='fractal recurrence to render')

    parser.add_argument('--zoom', type=float,
                        dest='zoom', help='pixels per unit of the complex plane',
                        metavar='ZOOM', default=defaults.zoom)

    parser.add_argument('--offset-x', type=float,
                        dest='offset_x', help='real coordinate shown at the centre of the image',
                        metavar='OFFSET_X', default=defaults.offset_x)

    parser.add_argument('--offset-y', type=float,
                        dest='offset_y', help='imaginary coordinate shown at the centre of the image',
                        metavar='OFFSET_Y', default=defaults.offset_y)

    parser.add_argument('--max-iterations', type=int,
                        dest='max_iterations', help='iteration cap of the escape-time loop (1-10000)',
                        metavar='MAX_ITERATIONS', default=defaults.max_iterations)

    parser.add_argument('--cx', type=float,
                        dest='julia_cx', help='real part of the Julia constant',
                        metavar='CX', default=defaults.julia_cx)

    parser.add_argument('--cy', type=float,
                        dest='julia_cy', help='imaginary part of the Julia constant',
                        metavar='CY', default=defaults.julia_cy)

    parser.add_argument('--base-hue', type=float,
                        dest='base_hue', help='base color tone in degrees (0-360)',
                        metavar='HUE', default=defaults.base_hue)

    parser.add_argument('--saturation', type=float,
                        dest='saturation', help='saturation in percent (0-100)',
                        metavar='SATURATION', default=defaults.saturation)

    parser.add_argument('--lightness', type=float,
                        dest='lightness', help='base brightness in percent (0-100)',
                        metavar='LIGHTNESS', default=defaults.lightness)

    parser.add_argument('--min-noise', type=float,
                        dest='min_noise', help='lower bound of the cloud band (0-1)',
                        metavar='MIN_NOISE', default=defaults.min_noise)

    parser.add_argument('--max-noise', type=float,
                        dest='max_noise', help='upper bound of the cloud band (0-1)',
                        metavar='MAX_NOISE', default=defaults.max_noise)

    parser.add_argument('--fog-density', type=float,
                        dest='fog_density', help='opacity of the fog overlay (0.1-0.8)',
                        metavar='DENSITY', default=defaults.fog_density)

    parser.add_argument('--fog-size', type=float,
                        dest='fog_size', help='base frequency of the fog structure (0.001-0.05)',
                        metavar='SIZE', default=defaults.fog_size)

    parser.add_argument('--fog-layers', type=int,
                        dest='fog_layer_count', help='number of fog octaves (1-8)',
                        metavar='LAYERS', default=defaults.fog_layer_count)

    parser.add_argument('--star-clarity', type=float,
                        dest='star_clarity', help='opacity multiplier for stars (0.5-2.0)',
                        metavar='CLARITY', default=defaults.star_clarity)

    parser.add_argument('--fog-black-areas', dest='keep_black_areas_clear', action='store_false',
                        help='also draw fog over areas the fractal left black')

    parser.add_argument('--seed', type=int, default=None,
                        help='seed for the noise field and star placement; random when omitted')

    parser.add_argument('--output', dest='output', type=str,
                        help='destination file. Defaults to images/fractal_fog_<type>.<format>.')

    parser.add_argument('--format', type=str,
                        dest='format', help='file format for the image. Can be any extension supported by Pillow. Default: "png".',
                        metavar='FORMAT', default='png')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def config_from_args(opt, parser: ArgumentParser) -> RenderConfig:
    config = RenderConfig(
        fractal_type=opt.fractal_type,
        max_iterations=opt.max_iterations,
        zoom=opt.zoom,
        offset_x=opt.offset_x,
        offset_y=opt.offset_y,
        base_hue=opt.base_hue,
        saturation=opt.saturation,
        lightness=opt.lightness,
        julia_cx=opt.julia_cx,
        julia_cy=opt.julia_cy,
        min_noise=opt.min_noise,
        max_noise=opt.max_noise,
        fog_density=opt.fog_density,
        fog_size=opt.fog_size,
        fog_layer_count=opt.fog_layer_count,
        star_clarity=opt.star_clarity,
        keep_black_areas_clear=opt.keep_black_areas_clear,
        seed=opt.seed,
    )
    try:
        return validate_config(config)
    except ConfigError as exc:
        parser.error(" ".join(exc.problems))


def resolve_output_path(opt, parser: ArgumentParser) -> tuple[Path, str]:
    image_format = (getattr(opt, "format", "png") or "png").lower().lstrip(".")
    if not image_format:
        image_format = "png"

    output_arg = getattr(opt, "output", None)
    if not output_arg:
        return (DEFAULT_OUTPUT_DIR / f"fractal_fog_{opt.fractal_type}.{image_format}").resolve(), image_format

    if str(output_arg).endswith(tuple(filter(None, {os.sep, os.altsep}))) or str(output_arg).endswith("/"):
        parser.error("--output must be a file path.")
    output_path = Path(output_arg).expanduser()
    if output_path.exists() and output_path.is_dir():
        parser.error("--output must point to a file, not a directory.")

    suffix = output_path.suffix
    expected_suffix = f".{image_format}"
    if suffix:
        if suffix.lower() != expected_suffix.lower():
            parser.error(f"--output extension {suffix} does not match --format {image_format}.")
    else:
        output_path = output_path.with_suffix(expected_suffix)
    return output_path.resolve(), image_format


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def write_single_image(image: PIL.Image.Image, output_path: Path, image_format: str) -> None:
    """Write a single image to ``output_path`` using the provided format."""

    pil_format = _pil_format_name(image_format)
    if pil_format in _OPAQUE_FORMATS and image.mode != "RGB":
        image = image.convert("RGB")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(output_path), format=pil_format)


def _print_progress(percent: float) -> None:
    print(f"Generating fractal: {percent:.1f}%", end='\r', flush=True)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    config = config_from_args(opt, parser)
    output_path, image_format = resolve_output_path(opt, parser)
    log(f"Rendering {config.fractal_type} {config.width}x{config.height} with {config.max_iterations} iterations")

    result = render(config, device=DEVICE, progress=_print_progress)
    print()
    log(f"Placed {len(result.stars)} stars; {int(result.colored.sum())} colored pixels")

    image = PIL.Image.fromarray(result.buffer)
    write_single_image(image, output_path, image_format)
    print(f"Image saved: {output_path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
