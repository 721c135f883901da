"""Rectangular regions of the complex plane and their transforms."""

from __future__ import annotations

import math
from dataclasses import dataclass

from .complex_number import Complex


class InvalidGeometryError(ValueError):
    """Raised when a viewport would be degenerate, inverted or non-finite."""


def _check_zoom_factor(zoom_factor: float) -> None:
    if not math.isfinite(zoom_factor) or zoom_factor <= 0:
        raise InvalidGeometryError(f"zoom factor must be a positive finite number, got {zoom_factor!r}.")


@dataclass(frozen=True)
class Viewport:
    """The visible rectangle of the complex plane.

    Bounds are validated on construction, so every transform either returns a
    well-formed viewport or raises :class:`InvalidGeometryError`. Width,
    height and midpoint are always derived from the four bounds.
    """

    top: float
    bottom: float
    left: float
    right: float

    def __post_init__(self) -> None:
        bounds = (self.top, self.bottom, self.left, self.right)
        if not all(math.isfinite(value) for value in bounds):
            raise InvalidGeometryError(f"viewport bounds must be finite: {self}")
        if not self.right > self.left:
            raise InvalidGeometryError(f"viewport right ({self.right!r}) must exceed left ({self.left!r}).")
        if not self.top > self.bottom:
            raise InvalidGeometryError(f"viewport top ({self.top!r}) must exceed bottom ({self.bottom!r}).")

    @classmethod
    def from_center(cls, center_re: float, center_im: float, width: float, height: float) -> Viewport:
        return cls(
            top=center_im + height / 2.0,
            bottom=center_im - height / 2.0,
            left=center_re - width / 2.0,
            right=center_re + width / 2.0,
        )

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.top - self.bottom

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    @property
    def midpoint(self) -> tuple[float, float]:
        return (self.left + self.right) / 2.0, (self.top + self.bottom) / 2.0

    def pixel_to_complex(self, x: float, y: float, width: int, height: int) -> Complex:
        """Map pixel ``(x, y)`` of a ``width`` x ``height`` grid into the plane.

        Row 0 is the top bound: screen rows grow downward while the imaginary
        axis grows upward.
        """

        pct_x = x / width
        pct_y = y / height
        return Complex(self.left + pct_x * self.width, self.top - pct_y * self.height)

    def complex_to_pixel(self, point: Complex, width: int, height: int) -> tuple[float, float]:
        x = (point.re - self.left) / self.width * width
        y = (self.top - point.im) / self.height * height
        return x, y

    def translate(self, dx: float, dy: float) -> Viewport:
        return Viewport(
            top=self.top + dy,
            bottom=self.bottom + dy,
            left=self.left + dx,
            right=self.right + dx,
        )

    def scale(self, zoom_factor: float) -> Viewport:
        """Shrink (``zoom_factor > 1``) or grow the viewport about its centre."""

        _check_zoom_factor(zoom_factor)
        new_width = self.width / zoom_factor
        x_diff = (self.width - new_width) / 2.0
        new_height = self.height / zoom_factor
        y_diff = (self.height - new_height) / 2.0
        return Viewport(
            top=self.top - y_diff,
            bottom=self.bottom + y_diff,
            left=self.left + x_diff,
            right=self.right - x_diff,
        )

    def center_on(self, x: float, y: float) -> Viewport:
        half_width = self.width / 2.0
        half_height = self.height / 2.0
        return Viewport(
            top=y + half_height,
            bottom=y - half_height,
            left=x - half_width,
            right=x + half_width,
        )

    def with_aspect(self, aspect: float) -> Viewport:
        """Re-derive the height about the midpoint so ``width / height == aspect``."""

        if not math.isfinite(aspect) or aspect <= 0:
            raise InvalidGeometryError(f"aspect ratio must be a positive finite number, got {aspect!r}.")
        center_re, center_im = self.midpoint
        return Viewport.from_center(center_re, center_im, self.width, self.width / aspect)

    def zoom_to(self, point: tuple[float, float], zoom_factor: float) -> Viewport:
        """Zoom by ``zoom_factor`` keeping ``point`` at the same relative screen position.

        Per axis, with original bounds ``L, R``, zoom point ``m``, zoom ``z``
        and new bounds ``l, r``, the relative position ``p`` of ``m`` satisfies::

            p = (m - L) / (R - L)
            m = l + p (r - l)
            z = (R - L) / (r - l)

        which solves to ``l = L + (m - L)(1 - 1/z)`` and
        ``r = (m - l) / (m - L) * (R - L) + l``. Since ``(m - l) / (m - L)`` is
        exactly ``1/z``, the far bound is taken as ``r = l + (R - L) / z``, which
        stays accurate when ``m`` is only a few ulps from ``L``. The vertical
        axis uses bottom/top the same way.
        """

        _check_zoom_factor(zoom_factor)
        x, y = point
        if x == self.left or y == self.bottom:
            raise InvalidGeometryError(
                f"zoom point ({x!r}, {y!r}) lies on the left or bottom edge of {self}."
            )
        keep = 1.0 - 1.0 / zoom_factor
        left = self.left + (x - self.left) * keep
        right = left + (self.right - self.left) / zoom_factor
        bottom = self.bottom + (y - self.bottom) * keep
        top = bottom + (self.top - self.bottom) / zoom_factor
        return Viewport(top=top, bottom=bottom, left=left, right=right)


DEFAULT_VIEWPORT = Viewport(top=1.25, bottom=-1.25, left=-2.0, right=0.5)
