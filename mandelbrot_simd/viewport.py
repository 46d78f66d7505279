"""Mapping from pixel coordinates to points of the complex plane."""

from __future__ import annotations

import numpy as np

from .config import RenderConfig

# Padding coordinate for partial lane groups; it leaves the bailout radius on the first trip.
PAD_COORDINATE = (4.0, 0.0)


def pixel_to_complex(x: int, y: int, cfg: RenderConfig) -> tuple[float, float]:
    """Return the complex coordinate sampled at the centre of pixel ``(x, y)``."""

    vp = cfg.viewport
    re = vp.re_min + (x + 0.5) * (vp.re_max - vp.re_min) / cfg.width
    im = vp.im_min + (y + 0.5) * (vp.im_max - vp.im_min) / cfg.height
    return float(re), float(im)


def pixels_to_complex(xs: np.ndarray, ys: np.ndarray, cfg: RenderConfig) -> tuple[np.ndarray, np.ndarray]:
    """Elementwise form of :func:`pixel_to_complex`.

    The operation order matches the scalar form so both give bit-identical
    results for the same pixel.
    """

    vp = cfg.viewport
    xs = np.asarray(xs, dtype=np.float64)
    ys = np.asarray(ys, dtype=np.float64)
    re = vp.re_min + (xs + 0.5) * (vp.re_max - vp.re_min) / cfg.width
    im = vp.im_min + (ys + 0.5) * (vp.im_max - vp.im_min) / cfg.height
    return re, im


def row_lanes(y: int, cfg: RenderConfig) -> tuple[np.ndarray, np.ndarray]:
    """Coordinates of row ``y`` grouped into lane groups of shape ``(groups, lane_width)``."""

    width = cfg.width
    lane_width = cfg.lane_width
    groups = -(-width // lane_width)
    padded = groups * lane_width

    re = np.full(padded, PAD_COORDINATE[0], dtype=np.float64)
    im = np.full(padded, PAD_COORDINATE[1], dtype=np.float64)
    row_re, row_im = pixels_to_complex(np.arange(width), np.full(width, y), cfg)
    re[:width] = row_re
    im[:width] = row_im
    return re.reshape(groups, lane_width), im.reshape(groups, lane_width)
