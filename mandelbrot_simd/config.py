"""Immutable configuration types describing a single Mandelbrot render."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field

import numpy as np

KERNELS = ("numpy", "tensorflow")

# Eight float64 lanes fill a 512-bit vector register.
DEFAULT_LANE_WIDTH = 8

_MAX_ITERATIONS_LIMIT = int(np.iinfo(np.int32).max)

# Real-axis range and imaginary centre of well known regions.
LOCATIONS: dict[str, tuple[float, float, float]] = {
    "seahorse": (-0.7856455, -0.7340665, 0.12554725),
    "deep-spiral": (-0.745538, -0.743538, 0.121200),
    "elephant": (0.275, 0.28, 0.007),
}


def default_worker_count() -> int:
    return os.cpu_count() or 1


@dataclass(frozen=True)
class Viewport:
    """Rectangle of the complex plane mapped onto the image."""

    re_min: float
    re_max: float
    im_min: float
    im_max: float

    def __post_init__(self) -> None:
        bounds = (self.re_min, self.re_max, self.im_min, self.im_max)
        if not all(math.isfinite(value) for value in bounds):
            raise ValueError(f"Viewport bounds must be finite, got {bounds}.")
        if self.re_min >= self.re_max:
            raise ValueError(f"re_min ({self.re_min}) must be smaller than re_max ({self.re_max}).")
        if self.im_min >= self.im_max:
            raise ValueError(f"im_min ({self.im_min}) must be smaller than im_max ({self.im_max}).")

    @property
    def re_extent(self) -> float:
        return self.re_max - self.re_min

    @property
    def im_extent(self) -> float:
        return self.im_max - self.im_min

    @classmethod
    def from_center(cls, re_center: float, im_center: float, re_width: float, im_height: float) -> "Viewport":
        re_center = np.float64(re_center)
        im_center = np.float64(im_center)
        half_re = np.float64(re_width) / 2.0
        half_im = np.float64(im_height) / 2.0
        return cls(
            re_min=float(re_center - half_re),
            re_max=float(re_center + half_re),
            im_min=float(im_center - half_im),
            im_max=float(im_center + half_im),
        )

    @classmethod
    def for_location(cls, name: str, aspect: float) -> "Viewport":
        """Viewport of a named region, with the imaginary extent following ``aspect`` (width / height)."""

        try:
            re_min, re_max, im_center = LOCATIONS[name]
        except KeyError:
            raise ValueError(f"Unknown location '{name}'. Valid choices: {', '.join(sorted(LOCATIONS))}.") from None
        if not aspect > 0:
            raise ValueError(f"aspect must be positive, got {aspect}.")
        im_extent = (re_max - re_min) / aspect
        return cls(re_min, re_max, im_center - im_extent / 2.0, im_center + im_extent / 2.0)


@dataclass(frozen=True)
class ImageDimensions:
    width: int
    height: int

    def __post_init__(self) -> None:
        for name in ("width", "height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}.")

    @property
    def pixel_count(self) -> int:
        return int(self.width) * int(self.height)

    @property
    def aspect(self) -> float:
        return self.width / self.height


def _is_power_of_two(value: int) -> bool:
    return value > 0 and (value & (value - 1)) == 0


@dataclass(frozen=True)
class RenderConfig:
    """Everything one render needs. Read-only for the duration of the render."""

    viewport: Viewport
    dimensions: ImageDimensions
    max_iterations: int
    worker_count: int = field(default_factory=default_worker_count)
    lane_width: int = DEFAULT_LANE_WIDTH
    kernel: str = "numpy"

    def __post_init__(self) -> None:
        if not isinstance(self.viewport, Viewport):
            raise ValueError("viewport must be a Viewport instance.")
        if not isinstance(self.dimensions, ImageDimensions):
            raise ValueError("dimensions must be an ImageDimensions instance.")
        if not 0 < self.max_iterations <= _MAX_ITERATIONS_LIMIT:
            raise ValueError(f"max_iterations must be in [1, {_MAX_ITERATIONS_LIMIT}], got {self.max_iterations}.")
        if self.worker_count <= 0:
            raise ValueError(f"worker_count must be positive, got {self.worker_count}.")
        if not _is_power_of_two(self.lane_width):
            raise ValueError(f"lane_width must be a positive power of two, got {self.lane_width}.")
        if self.kernel not in KERNELS:
            raise ValueError(f"Unknown kernel '{self.kernel}'. Valid choices: {', '.join(KERNELS)}.")

    @property
    def width(self) -> int:
        return self.dimensions.width

    @property
    def height(self) -> int:
        return self.dimensions.height
