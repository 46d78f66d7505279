"""Static row partitioning and the fork/join render episode."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional, Tuple

import numpy as np

from .config import RenderConfig
from .kernel import KernelFn, get_kernel
from .viewport import row_lanes

logger = logging.getLogger(__name__)

ProgressFn = Callable[[int, int], None]


class RenderCancelled(RuntimeError):
    """Raised when a render is stopped through its :class:`CancelToken`."""


class CancelToken:
    def __init__(self) -> None:
        self._flag = threading.Event()

    def cancel(self) -> None:
        self._flag.set()

    def is_cancelled(self) -> bool:
        return self._flag.is_set()


def partition_rows(height: int, worker_count: int) -> List[Tuple[int, int]]:
    """Split ``height`` rows into contiguous ``(start, stop)`` ranges, one per worker.

    The first ``height % worker_count`` ranges get one extra row. Workers
    left without rows get no range at all.
    """

    base, extra = divmod(height, worker_count)
    ranges: List[Tuple[int, int]] = []
    start = 0
    for index in range(worker_count):
        stop = start + base + (1 if index < extra else 0)
        if stop > start:
            ranges.append((start, stop))
        start = stop
    return ranges


def _render_rows(
    cfg: RenderConfig,
    kernel: KernelFn,
    start: int,
    stop: int,
    out: np.ndarray,
    cancel: Optional[CancelToken],
) -> int:
    """Fill ``out`` (the slice owned by this worker) with rows ``start`` to ``stop``."""

    width = cfg.width
    for y in range(start, stop):
        if cancel is not None and cancel.is_cancelled():
            break
        re, im = row_lanes(y, cfg)
        counts = kernel(re, im, cfg.max_iterations)
        offset = (y - start) * width
        out[offset:offset + width] = counts.reshape(-1)[:width]
    return stop - start


def render(
    cfg: RenderConfig,
    *,
    cancel: Optional[CancelToken] = None,
    progress: Optional[ProgressFn] = None,
) -> np.ndarray:
    """Compute the row-major iteration buffer for ``cfg``.

    Each worker receives a disjoint slice view of one flat buffer, so no
    locking is needed on pixel data. The call returns only after every
    worker has finished.
    """

    width, height = cfg.width, cfg.height
    kernel = get_kernel(cfg.kernel)
    buffer = np.zeros(width * height, dtype=np.int32)
    ranges = partition_rows(height, cfg.worker_count)
    logger.debug(
        "Rendering %dx%d, max_iterations=%d, lane_width=%d, kernel=%s, row ranges=%s",
        width, height, cfg.max_iterations, cfg.lane_width, cfg.kernel, ranges,
    )

    t0 = time.perf_counter()
    rows_done = 0
    if len(ranges) == 1:
        start, stop = ranges[0]
        rows_done += _render_rows(cfg, kernel, start, stop, buffer, cancel)
        if progress is not None:
            progress(rows_done, height)
    else:
        with ThreadPoolExecutor(max_workers=len(ranges)) as ex:
            futures = [
                ex.submit(_render_rows, cfg, kernel, start, stop, buffer[start * width:stop * width], cancel)
                for start, stop in ranges
            ]
            for fut in as_completed(futures):
                rows_done += fut.result()
                if progress is not None:
                    progress(rows_done, height)

    if cancel is not None and cancel.is_cancelled():
        raise RenderCancelled("Render cancelled before all rows were computed.")

    logger.debug("Rendered %d rows in %.1f ms", height, (time.perf_counter() - t0) * 1000.0)
    return buffer
