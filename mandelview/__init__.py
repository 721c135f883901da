"""Public API for Mandelbrot viewport rendering."""

from .coloring import (
    COLOR_POLICIES,
    BandedLinearPolicy,
    ColorPolicy,
    ColormapPolicy,
    HueRampPolicy,
    get_color_policy,
)
from .complex_number import Complex
from .escape import (
    BOUNDED,
    Bounded,
    EscapeClassification,
    EscapedAt,
    EscapeStatistics,
    escape_statistics,
    evaluate,
)
from .generator import ZoomPlanner, compute_zoom_factors, select_zoom_center
from .renderer import RenderCancelled, RenderResult, RenderSettings, render
from .session import ExplorerSession, zoom_factor_from_scroll
from .viewport import DEFAULT_VIEWPORT, InvalidGeometryError, Viewport

__all__ = [
    "BOUNDED",
    "COLOR_POLICIES",
    "DEFAULT_VIEWPORT",
    "BandedLinearPolicy",
    "Bounded",
    "ColorPolicy",
    "ColormapPolicy",
    "Complex",
    "EscapeClassification",
    "EscapeStatistics",
    "EscapedAt",
    "ExplorerSession",
    "HueRampPolicy",
    "InvalidGeometryError",
    "RenderCancelled",
    "RenderResult",
    "RenderSettings",
    "Viewport",
    "ZoomPlanner",
    "compute_zoom_factors",
    "escape_statistics",
    "evaluate",
    "get_color_policy",
    "render",
    "select_zoom_center",
    "zoom_factor_from_scroll",
]
