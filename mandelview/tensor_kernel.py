"""Vectorised escape-time kernel running on TensorFlow."""

from __future__ import annotations

from typing import Optional

import numpy as np
import tensorflow as tf

_DEVICE: Optional[str] = None


def default_device() -> str:
    """Use the first visible GPU when there is one, otherwise the CPU."""

    global _DEVICE
    if _DEVICE is not None:
        return _DEVICE

    gpus = tf.config.list_physical_devices('GPU')
    _DEVICE = '/CPU:0'
    if gpus:
        try:
            for gpu in gpus:
                tf.config.experimental.set_memory_growth(gpu, True)
            _DEVICE = '/GPU:0'
        except RuntimeError:
            # Memory growth must be set before the GPU is initialised.
            _DEVICE = '/CPU:0'
    return _DEVICE


@tf.function
def _escape_step(
    i: tf.Tensor,
    zr: tf.Tensor,
    zi: tf.Tensor,
    cr: tf.Tensor,
    ci: tf.Tensor,
    ns: tf.Tensor,
    active: tf.Tensor,
    threshold: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Advance every still-active point by one ``z <- z*z + c`` step."""

    new_zr = zr * zr - zi * zi + cr
    new_zi = zr * zi + zi * zr + ci
    zr = tf.where(active, new_zr, zr)
    zi = tf.where(active, new_zi, zi)
    escaped = tf.logical_and(active, zr * zr + zi * zi > threshold)
    ns = tf.where(escaped, tf.fill(tf.shape(ns), i), ns)
    active = tf.logical_and(active, tf.logical_not(escaped))
    return zr, zi, ns, active


@tf.function
def _escape_run(
    cr: tf.Tensor,
    ci: tf.Tensor,
    max_iterations: tf.Tensor,
    threshold: tf.Tensor,
) -> tf.Tensor:
    """Iterate with a TensorFlow while loop until all points escape or the budget is spent."""

    i = tf.constant(0, dtype=tf.int32)
    zr = tf.zeros_like(cr)
    zi = tf.zeros_like(ci)
    ns = tf.fill(tf.shape(cr), max_iterations)
    active = tf.ones_like(cr, dtype=tf.bool)

    def cond(i, zr, zi, ns, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, zr, zi, ns, active):
        zr, zi, ns, active = _escape_step(i, zr, zi, cr, ci, ns, active, threshold)
        return i + 1, zr, zi, ns, active

    _, _, _, ns, _ = tf.while_loop(cond, body, (i, zr, zi, ns, active))
    return ns


def escape_iterations(
    re_grid: np.ndarray,
    im_grid: np.ndarray,
    max_iterations: int,
    escape_magnitude: float,
    *,
    device: Optional[str] = None,
) -> np.ndarray:
    """Return the escape index of every point, ``max_iterations`` where bounded."""

    threshold = np.float64(escape_magnitude) * np.float64(escape_magnitude)
    with tf.device(device if device is not None else default_device()):
        cr = tf.convert_to_tensor(re_grid, dtype=tf.float64)
        ci = tf.convert_to_tensor(im_grid, dtype=tf.float64)
        ns = _escape_run(
            cr,
            ci,
            tf.constant(max_iterations, dtype=tf.int32),
            tf.constant(threshold, dtype=tf.float64),
        )
    return ns.numpy().astype(np.int32, copy=False)
