"""TensorFlow variant of the escape-time kernel."""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import tensorflow as tf

from .kernel import BAILOUT

logger = logging.getLogger(__name__)

_DEVICE: Optional[str] = None


def select_device() -> str:
    """Pick the first visible GPU, falling back to the CPU."""

    global _DEVICE
    if _DEVICE is not None:
        return _DEVICE

    gpus = tf.config.list_physical_devices('GPU')
    device = '/CPU:0'
    if gpus:
        try:
            for gpu in gpus:
                tf.config.experimental.set_memory_growth(gpu, True)
            device = '/GPU:0'
            logger.debug("GPU found, using %s", gpus[0].name)
        except RuntimeError as e:
            # Memory growth can only be set before the GPUs are initialized.
            logger.debug("Could not configure GPU (%s), using CPU", e)
    else:
        logger.debug("No GPU found, using CPU")
    _DEVICE = device
    return device


@tf.function(reduce_retracing=True)
def _lane_step(zr: tf.Tensor, zi: tf.Tensor, cr: tf.Tensor, ci: tf.Tensor, counts: tf.Tensor, active: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Perform a single trip; lanes that already escaped keep their state."""

    zr_new = zr * zr - zi * zi + cr
    zi_new = tf.constant(2.0, dtype=zr.dtype) * zr * zi + ci
    zr = tf.where(active, zr_new, zr)
    zi = tf.where(active, zi_new, zi)
    bailout = tf.constant(BAILOUT, dtype=zr.dtype)
    active = tf.logical_and(active, zr * zr + zi * zi <= bailout)
    counts = counts + tf.cast(active, tf.int32)
    return zr, zi, counts, active


@tf.function(reduce_retracing=True)
def _lane_run(cr: tf.Tensor, ci: tf.Tensor, max_iterations: tf.Tensor) -> tf.Tensor:
    """Iterate every lane group with a TensorFlow while loop."""

    max_iterations = tf.cast(max_iterations, tf.int32)
    i = tf.constant(0, dtype=tf.int32)
    zr = tf.zeros_like(cr)
    zi = tf.zeros_like(ci)
    counts = tf.zeros_like(cr, dtype=tf.int32)
    active = tf.ones_like(cr, dtype=tf.bool)

    def cond(i, zr, zi, counts, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, zr, zi, counts, active):
        zr, zi, counts, active = _lane_step(zr, zi, cr, ci, counts, active)
        return i + 1, zr, zi, counts, active

    _, _, _, counts, _ = tf.while_loop(cond, body, (i, zr, zi, counts, active))
    return counts


def iterate_batch_tf(re: np.ndarray, im: np.ndarray, max_iter: int, device: Optional[str] = None) -> np.ndarray:
    """Same contract as :func:`mandelbrot_simd.kernel.iterate_batch`, evaluated by TensorFlow."""

    re = np.asarray(re, dtype=np.float64)
    im = np.asarray(im, dtype=np.float64)
    if re.shape != im.shape:
        raise ValueError(f"re and im must share a shape, got {re.shape} and {im.shape}.")

    with tf.device(device if device is not None else select_device()):
        cr = tf.convert_to_tensor(re, dtype=tf.float64)
        ci = tf.convert_to_tensor(im, dtype=tf.float64)
        counts = _lane_run(cr, ci, tf.constant(max_iter, dtype=tf.int32))
    return counts.numpy()
