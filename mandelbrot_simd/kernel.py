"""Escape-time kernel evaluated over lane groups with a masked update."""

from __future__ import annotations

from typing import Callable

import numpy as np

# Squared bailout radius: |z| > 2 implies divergence.
BAILOUT = 4.0

KernelFn = Callable[[np.ndarray, np.ndarray, int], np.ndarray]


def _lane_step(
    zr: np.ndarray,
    zi: np.ndarray,
    cr: np.ndarray,
    ci: np.ndarray,
    counts: np.ndarray,
    active: np.ndarray,
) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Perform one trip for every lane; only active lanes keep the result."""

    zr_new = zr * zr - zi * zi + cr
    zi_new = 2.0 * zr * zi + ci
    zr = np.where(active, zr_new, zr)
    zi = np.where(active, zi_new, zi)
    active = np.logical_and(active, zr * zr + zi * zi <= BAILOUT)
    counts = counts + active
    return zr, zi, counts, active


def iterate_batch(re: np.ndarray, im: np.ndarray, max_iter: int) -> np.ndarray:
    """Return the escape iteration count of every coordinate in a lane group.

    ``re`` and ``im`` hold one lane group (1-D) or a stack of lane groups
    (2-D, one group per row). Every lane runs the same arithmetic on every
    trip and an ``active`` mask decides which lanes keep their new state,
    so the only control decision is whether any lane is still active.

    A lane that leaves the bailout radius on trip ``k`` reports ``k``; a lane
    that never does reports ``max_iter``.
    """

    cr = np.asarray(re, dtype=np.float64)
    ci = np.asarray(im, dtype=np.float64)
    if cr.shape != ci.shape:
        raise ValueError(f"re and im must share a shape, got {cr.shape} and {ci.shape}.")

    zr = np.zeros_like(cr)
    zi = np.zeros_like(ci)
    counts = np.zeros(cr.shape, dtype=np.int32)
    active = np.ones(cr.shape, dtype=bool)

    trip = 0
    # Inactive lanes still compute a discarded update, which may overflow.
    with np.errstate(over="ignore", invalid="ignore"):
        while trip < max_iter and active.any():
            zr, zi, counts, active = _lane_step(zr, zi, cr, ci, counts, active)
            trip += 1
    return counts


def get_kernel(name: str) -> KernelFn:
    if name == "numpy":
        return iterate_batch
    if name == "tensorflow":
        from .tf_kernel import iterate_batch_tf

        return iterate_batch_tf
    raise ValueError(f"Unknown kernel '{name}'.")
