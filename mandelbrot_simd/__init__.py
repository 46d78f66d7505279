"""Public API for parallel Mandelbrot rendering."""

from .colors import colorize, parse_hex_color
from .config import LOCATIONS, ImageDimensions, RenderConfig, Viewport
from .kernel import BAILOUT, get_kernel, iterate_batch
from .renderer import RenderResult, render_frame
from .scheduler import CancelToken, RenderCancelled, partition_rows, render
from .viewport import pixel_to_complex, pixels_to_complex, row_lanes

__all__ = [
    "BAILOUT",
    "CancelToken",
    "ImageDimensions",
    "LOCATIONS",
    "RenderCancelled",
    "RenderConfig",
    "RenderResult",
    "Viewport",
    "colorize",
    "get_kernel",
    "iterate_batch",
    "parse_hex_color",
    "partition_rows",
    "pixel_to_complex",
    "pixels_to_complex",
    "render",
    "render_frame",
    "row_lanes",
]
