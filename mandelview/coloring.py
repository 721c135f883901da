"""Colour policies mapping escape classifications to RGB triples."""

from __future__ import annotations

from typing import Callable

import numpy as np
from matplotlib import colormaps as _mpl_colormaps
from matplotlib.colors import hsv_to_rgb

from .escape import EscapeClassification, classification_to_index

INSIDE_COLOR = (0, 0, 0)


def clamp(value, low, high):
    return np.minimum(np.maximum(value, low), high)


def exp_scaler(x, base: float, exponent: float):
    """Rescale ``x`` in [0, 1] along ``base ** (exponent * (x - 1))``, keeping [0, 1]."""

    y_intercept = base ** (-exponent)
    return (np.power(base, exponent * (x - 1.0)) - y_intercept) / (1.0 - y_intercept)


def map_range(x, min_x: float, max_x: float, min_y: float, max_y: float):
    return (x - min_x) / (max_x - min_x) * (max_y - min_y) + min_y


class ColorPolicy:
    """Base class for colour policies.

    Subclasses implement :meth:`_escaped_colors`, which receives escape
    indices as float64 and returns float RGB values in [0, 255]. Bounded
    cells, encoded as ``max_iterations``, are always painted black.
    """

    name = "base"

    def __call__(self, classification: EscapeClassification, max_iterations: int) -> tuple[int, int, int]:
        index = classification_to_index(classification, max_iterations)
        rgb = self.colorize(np.array([index], dtype=np.int64), max_iterations)[0]
        return int(rgb[0]), int(rgb[1]), int(rgb[2])

    def colorize(self, iterations: np.ndarray, max_iterations: int) -> np.ndarray:
        iterations = np.asarray(iterations)
        inside = iterations >= max_iterations
        pixels = np.full(iterations.shape + (3,), INSIDE_COLOR, dtype=np.uint8)
        if max_iterations <= 0 or np.all(inside):
            return pixels
        escaped = iterations[~inside].astype(np.float64)
        colors = self._escaped_colors(escaped, float(max_iterations))
        pixels[~inside] = self._to_uint8(colors)
        return pixels

    def _to_uint8(self, colors: np.ndarray) -> np.ndarray:
        return clamp(colors, 0.0, 255.0).astype(np.uint8)

    def _escaped_colors(self, index: np.ndarray, max_iterations: float) -> np.ndarray:
        raise NotImplementedError


class BandedLinearPolicy(ColorPolicy):
    """Black to red to yellow to white ramp, one band per channel."""

    name = "banded"

    def _escaped_colors(self, index, max_iterations):
        t = 255.0 * 3.0 * index / max_iterations
        return np.stack(
            (
                clamp(t, 0.0, 255.0),
                clamp(t - 255.0, 0.0, 255.0),
                clamp(t - 510.0, 0.0, 255.0),
            ),
            axis=-1,
        )


class HueRampPolicy(ColorPolicy):
    """Exponentially rescaled hue/value ramp at fixed saturation."""

    name = "hue"

    def __init__(
        self,
        base: float = 2.0,
        exponent: float = 1.0,
        saturation: float = 0.65,
        hue_range: tuple[float, float] = (0.0, 60.0),
        value_range: tuple[float, float] = (0.75, 0.85),
    ):
        if base <= 0 or base == 1.0 or exponent == 0:
            raise ValueError("exp_scaler needs a positive base other than 1 and a non-zero exponent.")
        self.base = base
        self.exponent = exponent
        self.saturation = saturation
        self.hue_range = hue_range
        self.value_range = value_range

    def _escaped_colors(self, index, max_iterations):
        percent = exp_scaler(index / max_iterations, self.base, self.exponent)
        hue = map_range(percent, 0.0, 1.0, *self.hue_range)
        value = map_range(percent, 0.0, 1.0, *self.value_range)
        hsv = np.stack(
            (
                np.mod(hue, 360.0) / 360.0,
                np.full_like(hue, self.saturation),
                clamp(value, 0.0, 1.0),
            ),
            axis=-1,
        )
        return hsv_to_rgb(hsv) * 255.0

    def _to_uint8(self, colors):
        return np.rint(clamp(colors, 0.0, 255.0)).astype(np.uint8)


class ColormapPolicy(ColorPolicy):
    """Sample a matplotlib colormap at ``index / max_iterations``."""

    name = "colormap"

    def __init__(self, colormap: str = "twilight_shifted", invert: bool = False):
        self.colormap = colormap
        self.invert = invert
        try:
            self._cmap = _mpl_colormaps[colormap]
        except KeyError:
            raise ValueError(f"Unknown matplotlib colormap '{colormap}'.") from None

    def _escaped_colors(self, index, max_iterations):
        fraction = index / max_iterations
        if self.invert:
            fraction = 1.0 - fraction
        rgba = np.asarray(self._cmap(fraction), dtype=np.float64)
        return rgba[..., :3] * 255.0


COLOR_POLICIES: dict[str, Callable[..., ColorPolicy]] = {
    BandedLinearPolicy.name: BandedLinearPolicy,
    HueRampPolicy.name: HueRampPolicy,
    ColormapPolicy.name: ColormapPolicy,
}


def get_color_policy(name: str, **options) -> ColorPolicy:
    try:
        factory = COLOR_POLICIES[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown color policy '{name}'. Valid choices: {', '.join(sorted(COLOR_POLICIES))}."
        ) from None
    return factory(**options)
