import logging
import os
import sys
import warnings
from argparse import ArgumentParser
from pathlib import Path

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

# Applies to the optional TensorFlow kernel, which is imported lazily.
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


import numpy as np
import PIL.Image
from matplotlib import colormaps

from mandelbrot_simd import (
    LOCATIONS,
    ImageDimensions,
    RenderConfig,
    Viewport,
    parse_hex_color,
    render_frame,
)
from mandelbrot_simd.config import DEFAULT_LANE_WIDTH, KERNELS, default_worker_count


def build_parser():
    parser = ArgumentParser(description='Parallel CPU-based Mandelbrot set generator.')

    parser.add_argument('-i', '--iters', type=int,
                        dest='iters', help='number of iterations to check whether a point belongs to the set',
                        metavar='ITERS', default=1000)

    parser.add_argument('-W', '--width', type=int,
                        dest='width', help='width of the resulting picture',
                        metavar='WIDTH', default=3840)

    parser.add_argument('-H', '--height', type=int,
                        dest='height', help='height of the resulting picture',
                        metavar='HEIGHT', default=2160)

    parser.add_argument('--x-min', type=float,
                        dest='x_min', help='minimum of the real axis on the complex plane',
                        metavar='X_MIN', default=-2.0)

    parser.add_argument('--x-max', type=float,
                        dest='x_max', help='maximum of the real axis on the complex plane',
                        metavar='X_MAX', default=1.0)

    parser.add_argument('--y-min', type=float,
                        dest='y_min', help='minimum of the imaginary axis on the complex plane',
                        metavar='Y_MIN', default=-0.84375)

    parser.add_argument('--y-max', type=float,
                        dest='y_max', help='maximum of the imaginary axis on the complex plane',
                        metavar='Y_MAX', default=0.84375)

    parser.add_argument('--location', choices=sorted(LOCATIONS),
                        help='render a named region instead of the --x/--y bounds; the imaginary extent follows the image aspect')

    parser.add_argument('--workers', type=int,
                        dest='workers', help='number of worker threads (default: available hardware parallelism)',
                        metavar='WORKERS', default=default_worker_count())

    parser.add_argument('--lane-width', type=int,
                        dest='lane_width', help='number of points iterated together in one lane group (power of two)',
                        metavar='LANE_WIDTH', default=DEFAULT_LANE_WIDTH)

    parser.add_argument('--kernel', choices=KERNELS, default='numpy',
                        help='escape kernel implementation; "tensorflow" requires the tensorflow extra')

    parser.add_argument('--colormap', type=str,
                        dest='colormap', help='matplotlib colormap to colorize the fractal (e.g. "viridis"); grayscale when omitted',
                        metavar='COLORMAP', default=None)

    parser.add_argument('--inside-color', type=str, default='#000000',
                        help='Hex color for points that reach the iteration limit.')

    parser.add_argument('-o', '--output', type=str,
                        dest='output', help='destination image file',
                        metavar='OUTPUT', default='image.png')

    parser.add_argument('--format', type=str,
                        dest='format', help='file format of the image. Can be any extension supported by Pillow. Default: taken from --output, else "png".',
                        metavar='FORMAT', default=None)

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including render progress and timing.')

    return parser


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def resolve_output_path(opt, parser: ArgumentParser) -> tuple[Path, str]:
    output_path = Path(opt.output).expanduser()
    if str(opt.output).endswith(tuple(filter(None, {os.sep, os.altsep}))) or (output_path.exists() and output_path.is_dir()):
        parser.error("--output must be a file path, not a directory.")

    suffix = output_path.suffix
    image_format = (opt.format or suffix or "png").lower().lstrip(".")
    if not image_format:
        image_format = "png"
    if suffix:
        if suffix.lower().lstrip(".") != image_format:
            parser.error(f"--output extension {suffix} does not match --format {image_format}.")
    else:
        output_path = output_path.with_suffix(f".{image_format}")
    return output_path.resolve(), image_format


def build_config(opt, parser: ArgumentParser) -> RenderConfig:
    """Validate the parsed options; any problem ends the program before rendering."""

    try:
        dimensions = ImageDimensions(width=opt.width, height=opt.height)
        if opt.location is not None:
            viewport = Viewport.for_location(opt.location, dimensions.aspect)
        else:
            viewport = Viewport(opt.x_min, opt.x_max, opt.y_min, opt.y_max)
        return RenderConfig(
            viewport=viewport,
            dimensions=dimensions,
            max_iterations=opt.iters,
            worker_count=opt.workers,
            lane_width=opt.lane_width,
            kernel=opt.kernel,
        )
    except ValueError as exc:
        parser.error(str(exc))


def write_single_image(image: PIL.Image.Image, output_path: Path, image_format: str) -> None:
    """Write a single image to ``output_path`` using the provided format."""

    pil_format = _pil_format_name(image_format)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(output_path), format=pil_format)


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)
    if VERBOSE:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    cfg = build_config(opt, parser)
    output_path, image_format = resolve_output_path(opt, parser)
    if opt.colormap is not None and opt.colormap not in colormaps:
        parser.error(f"Unknown colormap '{opt.colormap}'.")
    try:
        inside_rgb = parse_hex_color(opt.inside_color)
    except ValueError as exc:
        parser.error(f"Invalid --inside-color '{opt.inside_color}': {exc}")

    vp = cfg.viewport
    log(f"Rendering {cfg.width}x{cfg.height} over re [{vp.re_min:.6g}, {vp.re_max:.6g}], "
        f"im [{vp.im_min:.6g}, {vp.im_max:.6g}] with {cfg.worker_count} workers")

    def report(rows_done, total):
        log("rows {0} out of {1}".format(rows_done, total), end='\r' if rows_done < total else '\n')

    result = render_frame(cfg, colormap=opt.colormap, inside_color=inside_rgb, progress=report)
    image = PIL.Image.fromarray(np.ascontiguousarray(result.image_array()))

    try:
        write_single_image(image, output_path, image_format)
    except (OSError, ValueError, KeyError) as exc:
        print(f"Failed to save image to \"{output_path}\": {exc}", file=sys.stderr)
        return 1

    print(f"Saved image as \"{output_path}\"")
    return 0


if __name__ == '__main__':
    sys.exit(main())
