"""Conversion of iteration counts into RGB colors."""

from __future__ import annotations

from typing import Optional

import numpy as np
from matplotlib import colormaps as _mpl_colormaps

RGB = tuple[int, int, int]


def get_colormap(name):
    return _mpl_colormaps[name]


def parse_hex_color(hex_color: str) -> RGB:
    digits = hex_color.lstrip('#')
    if len(digits) != 6:
        raise ValueError('Colors must be in the form #RRGGBB.')
    try:
        return tuple(int(digits[i:i + 2], 16) for i in (0, 2, 4))
    except ValueError as exc:
        raise ValueError('Colors must contain only hexadecimal digits.') from exc


def colorize(
    iterations: np.ndarray,
    max_iter: int,
    *,
    colormap: Optional[str] = None,
    inside_color: RGB = (0, 0, 0),
) -> np.ndarray:
    """Map each iteration count to an RGB triple.

    Returns a ``(N, 3)`` uint8 array in the order of ``iterations``. Counts
    equal to ``max_iter`` are painted ``inside_color``; the others follow a
    grayscale ramp, or ``colormap`` when one is named.
    """

    iters = np.asarray(iterations).reshape(-1)
    v = iters.astype(np.float64) / np.float64(max_iter)

    if colormap is None:
        gray = np.uint8(np.clip(v * 255.0, 0, 255))
        rgb = np.repeat(gray[:, None], 3, axis=1)
    else:
        rgba = np.asarray(get_colormap(colormap)(v))
        rgb = np.uint8(np.clip(rgba[:, :3] * 255, 0, 255))

    inside = iters >= max_iter
    rgb[inside] = np.asarray(inside_color, dtype=np.uint8)
    return rgb
