"""Rendering pipeline: iteration counts followed by colorization."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .colors import RGB, colorize
from .config import RenderConfig
from .scheduler import CancelToken, ProgressFn, render


@dataclass(frozen=True)
class RenderResult:
    """Container for the numerical results of a Mandelbrot render."""

    iterations: np.ndarray
    colors: np.ndarray
    config: RenderConfig

    def image_array(self) -> np.ndarray:
        return self.colors.reshape(self.config.height, self.config.width, 3)


def render_frame(
    cfg: RenderConfig,
    *,
    colormap: Optional[str] = None,
    inside_color: RGB = (0, 0, 0),
    cancel: Optional[CancelToken] = None,
    progress: Optional[ProgressFn] = None,
) -> RenderResult:
    """Render a Mandelbrot frame given the supplied configuration."""

    iterations = render(cfg, cancel=cancel, progress=progress)
    colors = colorize(iterations, cfg.max_iterations, colormap=colormap, inside_color=inside_color)
    return RenderResult(iterations=iterations, colors=colors, config=cfg)
