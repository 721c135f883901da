"""Render passes: pixel grid to complex plane to escape index to colour."""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional, Protocol

import numpy as np

from .coloring import BandedLinearPolicy, ColorPolicy
from .escape import classification_to_index, evaluate
from .viewport import Viewport

BACKENDS = ("python", "tensorflow")


class CancelToken(Protocol):
    def is_set(self) -> bool:
        ...


class RenderCancelled(RuntimeError):
    """Raised when a render is interrupted before every pixel was evaluated."""


@dataclass(frozen=True)
class RenderSettings:
    """Iteration and colouring parameters shared by every pixel of a render."""

    max_iterations: int = 200
    escape_magnitude: float = 1000.0
    color_policy: ColorPolicy = field(default_factory=BandedLinearPolicy)

    def __post_init__(self) -> None:
        if int(self.max_iterations) != self.max_iterations or self.max_iterations <= 0:
            raise ValueError(f"max_iterations must be a positive integer, got {self.max_iterations!r}.")
        if not math.isfinite(self.escape_magnitude) or self.escape_magnitude <= 0:
            raise ValueError(f"escape_magnitude must be a positive finite number, got {self.escape_magnitude!r}.")


@dataclass(frozen=True)
class RenderResult:
    """Container for a finished render pass."""

    pixels: np.ndarray
    iterations: np.ndarray
    viewport: Viewport
    settings: RenderSettings

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def inside(self) -> np.ndarray:
        return self.iterations >= self.settings.max_iterations

    @property
    def edges(self) -> np.ndarray:
        """Cells where membership in the set changes from the row above."""

        inside = self.inside
        return np.logical_xor(np.roll(inside, 1, axis=0), inside)


def balance(n: int, parts: int, index: int) -> tuple[int, int]:
    """Return the ``index``'th half-open interval when ``n`` rows are split over ``parts``."""

    size, extra = divmod(n, parts)
    if index < extra:
        lo = index * size + index
        hi = lo + size + 1
    else:
        lo = index * size + extra
        hi = lo + size
    return lo, hi


def sample_grid(width: int, height: int, viewport: Viewport) -> tuple[np.ndarray, np.ndarray]:
    """Complex coordinates of every pixel as ``(re, im)`` arrays of shape ``(height, width)``.

    Uses the same float operations as :meth:`Viewport.pixel_to_complex`.
    """

    pct_x = np.arange(width, dtype=np.float64) / np.float64(width)
    pct_y = np.arange(height, dtype=np.float64) / np.float64(height)
    re = np.float64(viewport.left) + pct_x * np.float64(viewport.width)
    im = np.float64(viewport.top) - pct_y * np.float64(viewport.height)
    return np.meshgrid(re, im)


def _render_rows(
    iterations: np.ndarray,
    row_start: int,
    row_stop: int,
    viewport: Viewport,
    settings: RenderSettings,
    cancel: Optional[CancelToken],
) -> None:
    height, width = iterations.shape
    max_iterations = settings.max_iterations
    for y in range(row_start, row_stop):
        row = iterations[y]
        for x in range(width):
            if cancel is not None and cancel.is_set():
                raise RenderCancelled(f"render cancelled at pixel ({x}, {y}).")
            c = viewport.pixel_to_complex(x, y, width, height)
            result = evaluate(c, max_iterations, settings.escape_magnitude)
            row[x] = classification_to_index(result, max_iterations)


def _python_iterations(
    width: int,
    height: int,
    viewport: Viewport,
    settings: RenderSettings,
    cancel: Optional[CancelToken],
    workers: int,
) -> np.ndarray:
    iterations = np.empty((height, width), dtype=np.int32)
    workers = max(1, min(workers, height))
    if workers == 1:
        _render_rows(iterations, 0, height, viewport, settings, cancel)
        return iterations

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(_render_rows, iterations, *balance(height, workers, p), viewport, settings, cancel)
            for p in range(workers)
        ]
        for future in futures:
            future.result()
    return iterations


def render(
    width: int,
    height: int,
    viewport: Viewport,
    settings: Optional[RenderSettings] = None,
    *,
    cancel: Optional[CancelToken] = None,
    workers: int = 1,
    backend: str = "python",
    device: Optional[str] = None,
) -> RenderResult:
    """Render ``viewport`` onto a ``width`` x ``height`` pixel grid.

    The result is fully determined by the arguments. ``cancel`` is polled
    between pixels; a cancelled pass raises :class:`RenderCancelled` and
    returns nothing.
    """

    if width <= 0 or height <= 0:
        raise ValueError(f"render size must be positive, got {width}x{height}.")
    if backend not in BACKENDS:
        raise ValueError(f"Unknown backend '{backend}'. Valid choices: {', '.join(BACKENDS)}.")
    settings = settings if settings is not None else RenderSettings()

    if backend == "tensorflow":
        from . import tensor_kernel

        if cancel is not None and cancel.is_set():
            raise RenderCancelled("render cancelled before the kernel started.")
        re, im = sample_grid(width, height, viewport)
        iterations = tensor_kernel.escape_iterations(
            re, im, settings.max_iterations, settings.escape_magnitude, device=device
        )
    else:
        iterations = _python_iterations(width, height, viewport, settings, cancel, workers)

    pixels = settings.color_policy.colorize(iterations, settings.max_iterations)
    return RenderResult(pixels=pixels, iterations=iterations, viewport=viewport, settings=settings)
