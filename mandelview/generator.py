"""Utilities for scripted zoom sequences."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .renderer import RenderResult
from .viewport import Viewport


@dataclass(frozen=True)
class ZoomPlanner:
    """Pick the next viewport of a zoom sequence.

    With a fixed ``focus`` every frame zooms towards that complex point.
    Otherwise the focus follows the set boundary nearest the image centre.
    """

    focus: Optional[tuple[float, float]] = None

    def focus_point(self, result: RenderResult) -> tuple[float, float]:
        if self.focus is not None:
            return self.focus
        row, col = (int(v) for v in select_zoom_center(result.edges))
        # Pixel centres never coincide with the left edge.
        point = result.viewport.pixel_to_complex(col + 0.5, row + 0.5, result.width, result.height)
        return point.re, point.im

    def next_viewport(self, result: RenderResult, zoom_factor: float) -> Viewport:
        return result.viewport.zoom_to(self.focus_point(result), zoom_factor)


def compute_zoom_factors(frames: int, zoom_factor: float, *, final_zoom: float | None = None, easing: str = "ease") -> np.ndarray:
    """Compute per-frame zoom factors for the animation.

    When ``final_zoom`` is given the factors multiply to it, distributed in
    log space along the easing curve.
    """

    if frames <= 0:
        return np.array([], dtype=np.float64)

    if final_zoom is not None and final_zoom > 0:
        log_target = np.log(final_zoom)
        easing_mode = easing.lower()

        def ease_in_out(t: float) -> float:
            return 3 * t ** 2 - 2 * t ** 3

        ease = (lambda u: u) if easing_mode == "linear" else ease_in_out
        # Sample the curve at the end of each step; no step repeats a frame.
        alphas = np.array([ease((i + 1) / frames) for i in range(frames)], dtype=np.float64)
        alphas = np.clip(alphas, 0.0, 1.0)
        increments = np.diff(np.concatenate(([0.0], alphas)))
        return np.exp(increments * log_target)

    return np.full(frames, np.float64(zoom_factor), dtype=np.float64)


def select_zoom_center(edges: np.ndarray) -> np.ndarray:
    """Select a deterministic ``(row, col)`` focus pixel near the centre of the edge map."""

    height, width = edges.shape
    center_row = height // 2
    center_col = width // 2
    if edges.size == 0:
        return np.array([center_row, center_col], dtype=np.int64)

    for radius in range(max(height, width)):
        row_start = max(center_row - radius, 0)
        row_end = min(center_row + radius + 1, height)
        col_start = max(center_col - radius, 0)
        col_end = min(center_col + radius + 1, width)
        region = edges[row_start:row_end, col_start:col_end]
        if np.any(region):
            indices = np.argwhere(region)
            indices[:, 0] += row_start
            indices[:, 1] += col_start
            return _nearest_to_center(indices, edges.shape)

    return np.array([center_row, center_col], dtype=np.int64)


def _nearest_to_center(edge_indices: np.ndarray, shape: tuple[int, int]) -> np.ndarray:
    center = np.array([(shape[0] - 1) / 2.0, (shape[1] - 1) / 2.0], dtype=np.float64)
    distances = np.sum((edge_indices.astype(np.float64) - center) ** 2, axis=1)
    return edge_indices[int(np.argmin(distances))]
