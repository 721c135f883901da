"""Viewport state driven by user input events.

The window/event loop lives outside this package. It translates scroll,
drag and key events into the calls below, which only deal in pixel
coordinates, viewports and finished renders.
"""

from __future__ import annotations

from collections import deque
from typing import Optional

from .renderer import CancelToken, RenderResult, RenderSettings, render
from .viewport import DEFAULT_VIEWPORT, Viewport


def zoom_factor_from_scroll(scroll: float, scale: float) -> float:
    """Convert a signed scroll amount into a zoom factor.

    Each scroll unit multiplies the zoom by ``1 + scale``; positive amounts
    zoom in, negative amounts zoom out and zero leaves the view unchanged.
    """

    if scale <= 0:
        raise ValueError(f"zoom scale must be positive, got {scale!r}.")
    return (1.0 + scale) ** scroll


class ExplorerSession:
    """Interactive pan/zoom state for a fixed-size pixel grid."""

    def __init__(
        self,
        width: int,
        height: int,
        settings: Optional[RenderSettings] = None,
        initial: Viewport = DEFAULT_VIEWPORT,
        zoom_scale: float = 0.1,
        backend: str = "python",
        history_limit: int = 256,
    ):
        if width <= 0 or height <= 0:
            raise ValueError(f"session size must be positive, got {width}x{height}.")
        self.width = width
        self.height = height
        self.settings = settings if settings is not None else RenderSettings()
        self.initial = initial
        self.zoom_scale = zoom_scale
        self.backend = backend
        self.viewport = initial
        # Oldest entries drop off once the limit is reached.
        self.history: deque[Viewport] = deque(maxlen=history_limit)

    def _replace(self, viewport: Viewport) -> Viewport:
        self.history.append(self.viewport)
        self.viewport = viewport
        return viewport

    def screen_to_complex(self, x: float, y: float) -> tuple[float, float]:
        point = self.viewport.pixel_to_complex(x, y, self.width, self.height)
        return point.re, point.im

    def cursor_to_complex(self, x: int, y: int) -> tuple[float, float]:
        """Map the integer cursor position ``(x, y)`` to the centre of that pixel.

        Column 0 and the bottom row stay inside the viewport, so a cursor
        clamped to the window border is still a valid zoom target.
        """

        return self.screen_to_complex(x + 0.5, y + 0.5)

    def zoom_at(self, x: float, y: float, zoom_factor: float) -> Viewport:
        """Zoom about the centre of pixel ``(x, y)``, keeping it under the cursor."""

        point = self.cursor_to_complex(x, y)
        return self._replace(self.viewport.zoom_to(point, zoom_factor))

    def scroll(self, x: float, y: float, amount: float) -> Viewport:
        return self.zoom_at(x, y, zoom_factor_from_scroll(amount, self.zoom_scale))

    def pan_pixels(self, dx: float, dy: float) -> Viewport:
        """Drag the view by a screen-space delta; content follows the cursor."""

        re_delta = -dx / self.width * self.viewport.width
        im_delta = dy / self.height * self.viewport.height
        return self._replace(self.viewport.translate(re_delta, im_delta))

    def center_at(self, x: float, y: float) -> Viewport:
        return self._replace(self.viewport.center_on(*self.cursor_to_complex(x, y)))

    def back(self) -> Viewport:
        if self.history:
            self.viewport = self.history.pop()
        return self.viewport

    def reset(self) -> Viewport:
        self.viewport = self.initial
        self.history.clear()
        return self.viewport

    def render(self, cancel: Optional[CancelToken] = None) -> RenderResult:
        return render(
            self.width,
            self.height,
            self.viewport,
            self.settings,
            cancel=cancel,
            backend=self.backend,
        )
