import math

import pytest

from mandelview.complex_number import Complex
from mandelview.viewport import DEFAULT_VIEWPORT, InvalidGeometryError, Viewport

DELTA = 1e-10


def assert_bounds(actual: Viewport, expect: Viewport, tol: float = DELTA):
    assert actual.left == pytest.approx(expect.left, abs=tol)
    assert actual.right == pytest.approx(expect.right, abs=tol)
    assert actual.top == pytest.approx(expect.top, abs=tol)
    assert actual.bottom == pytest.approx(expect.bottom, abs=tol)


VIEWPORTS = [
    Viewport(left=1.0, right=2.0, top=4.0, bottom=2.0),
    DEFAULT_VIEWPORT,
    Viewport(left=-0.7453, right=-0.7443, top=0.1136, bottom=0.1126),
    Viewport(left=-100.0, right=250.0, top=3.0, bottom=-1.0),
]


def test_derived_geometry():
    r = Viewport(left=1.0, right=2.0, top=4.0, bottom=2.0)
    assert r.width == 1.0
    assert r.height == 2.0
    assert r.aspect_ratio == 0.5
    assert r.midpoint == (1.5, 3.0)


def test_zoom_in():
    r = Viewport(left=1.0, right=2.0, top=4.0, bottom=2.0)
    assert_bounds(r.scale(2.0), Viewport(left=1.25, right=1.75, top=3.5, bottom=2.5))


def test_zoom_out():
    r = Viewport(left=1.0, right=2.0, top=4.0, bottom=2.0)
    assert_bounds(r.scale(0.5), Viewport(left=0.5, right=2.5, top=5.0, bottom=1.0))


@pytest.mark.parametrize("viewport", VIEWPORTS)
@pytest.mark.parametrize("zoom", [1.5, 2.0, 10.0])
def test_scale_shrinks_and_keeps_aspect_and_midpoint(viewport, zoom):
    scaled = viewport.scale(zoom)
    assert scaled.width < viewport.width
    assert scaled.height < viewport.height
    assert scaled.aspect_ratio == pytest.approx(viewport.aspect_ratio, rel=1e-9)
    assert scaled.midpoint == pytest.approx(viewport.midpoint, rel=1e-9, abs=1e-12)


def test_center_on():
    r = Viewport(left=0.0, right=10.0, top=8.0, bottom=0.0)
    assert_bounds(r.center_on(0.0, 0.0), Viewport(left=-5.0, right=5.0, top=4.0, bottom=-4.0))


def test_translate():
    r = Viewport(left=0.0, right=1.0, top=2.0, bottom=1.0)
    assert_bounds(r.translate(1.0, -2.0), Viewport(left=1.0, right=2.0, top=0.0, bottom=-1.0))


@pytest.mark.parametrize("viewport", VIEWPORTS)
def test_translate_round_trip(viewport):
    assert_bounds(viewport.translate(0.37, -1.25).translate(-0.37, 1.25), viewport, tol=1e-9)


@pytest.mark.parametrize("viewport", VIEWPORTS)
def test_zoom_to_with_unit_factor_is_identity(viewport):
    x = viewport.left + 0.3 * viewport.width
    y = viewport.bottom + 0.8 * viewport.height
    assert_bounds(viewport.zoom_to((x, y), 1.0), viewport, tol=1e-9)


@pytest.mark.parametrize("viewport", VIEWPORTS)
@pytest.mark.parametrize("zoom", [0.25, 0.9, 1.1, 3.0, 1000.0])
def test_zoom_to_midpoint_matches_scale(viewport, zoom):
    assert_bounds(viewport.zoom_to(viewport.midpoint, zoom), viewport.scale(zoom), tol=1e-9)


@pytest.mark.parametrize("viewport", VIEWPORTS)
@pytest.mark.parametrize("zoom", [0.5, 1.1, 4.0, 250.0])
@pytest.mark.parametrize("fraction", [(0.1, 0.9), (0.5, 0.25), (0.97, 0.03)])
def test_zoom_to_keeps_relative_position(viewport, zoom, fraction):
    x = viewport.left + fraction[0] * viewport.width
    y = viewport.bottom + fraction[1] * viewport.height
    zoomed = viewport.zoom_to((x, y), zoom)
    assert (x - zoomed.left) / zoomed.width == pytest.approx(fraction[0], rel=1e-7)
    assert (y - zoomed.bottom) / zoomed.height == pytest.approx(fraction[1], rel=1e-7)
    assert zoomed.width == pytest.approx(viewport.width / zoom, rel=1e-9)
    assert zoomed.height == pytest.approx(viewport.height / zoom, rel=1e-9)


def test_zoom_to_point_outside_viewport():
    r = Viewport(left=0.0, right=1.0, top=1.0, bottom=0.0)
    zoomed = r.zoom_to((2.0, -1.0), 2.0)
    assert zoomed.width == pytest.approx(0.5)
    assert zoomed.height == pytest.approx(0.5)
    assert (2.0 - zoomed.left) / zoomed.width == pytest.approx(2.0)


@pytest.mark.parametrize("point", [(1.0, 3.0), (1.5, 2.0)])
def test_zoom_to_point_on_left_or_bottom_edge_is_rejected(point):
    r = Viewport(left=1.0, right=2.0, top=4.0, bottom=2.0)
    with pytest.raises(InvalidGeometryError):
        r.zoom_to(point, 2.0)


def test_zoom_to_point_just_inside_left_and_bottom_edges():
    x = math.nextafter(DEFAULT_VIEWPORT.left, math.inf)
    y = math.nextafter(DEFAULT_VIEWPORT.bottom, math.inf)
    zoomed = DEFAULT_VIEWPORT.zoom_to((x, 0.0), 2.0)
    assert zoomed.width == pytest.approx(1.25)
    assert zoomed.height == pytest.approx(1.25)
    zoomed = DEFAULT_VIEWPORT.zoom_to((0.0, y), 2.0)
    assert zoomed.width == pytest.approx(1.25)
    assert zoomed.height == pytest.approx(1.25)
    assert zoomed.aspect_ratio == pytest.approx(DEFAULT_VIEWPORT.aspect_ratio)


@pytest.mark.parametrize("zoom", [0.0, -1.0, math.nan, math.inf])
def test_invalid_zoom_factor_is_rejected(zoom):
    r = Viewport(left=1.0, right=2.0, top=4.0, bottom=2.0)
    with pytest.raises(InvalidGeometryError):
        r.scale(zoom)
    with pytest.raises(InvalidGeometryError):
        r.zoom_to(r.midpoint, zoom)


@pytest.mark.parametrize(
    "bounds",
    [
        dict(left=1.0, right=1.0, top=4.0, bottom=2.0),
        dict(left=2.0, right=1.0, top=4.0, bottom=2.0),
        dict(left=1.0, right=2.0, top=2.0, bottom=2.0),
        dict(left=1.0, right=2.0, top=1.0, bottom=2.0),
        dict(left=math.nan, right=2.0, top=4.0, bottom=2.0),
        dict(left=1.0, right=math.inf, top=4.0, bottom=2.0),
    ],
)
def test_degenerate_or_inverted_viewport_is_rejected(bounds):
    with pytest.raises(InvalidGeometryError):
        Viewport(**bounds)


def test_invalid_geometry_error_is_a_value_error():
    assert issubclass(InvalidGeometryError, ValueError)


def test_scale_underflow_is_rejected():
    r = Viewport(left=0.0, right=1e-300, top=1e-300, bottom=0.0)
    with pytest.raises(InvalidGeometryError):
        r.scale(1e300)


def test_pixel_to_complex_maps_row_zero_to_top():
    r = DEFAULT_VIEWPORT
    assert r.pixel_to_complex(0, 0, 800, 800) == Complex(r.left, r.top)
    bottom_row = r.pixel_to_complex(0, 799, 800, 800)
    assert bottom_row.im < r.top
    assert bottom_row.im == pytest.approx(r.bottom + r.height / 800)


def test_pixel_to_complex_centre():
    r = Viewport(left=-2.0, right=2.0, top=1.0, bottom=-1.0)
    assert r.pixel_to_complex(50, 25, 100, 50) == Complex(0.0, 0.0)


def test_complex_to_pixel_inverts_pixel_to_complex():
    r = DEFAULT_VIEWPORT
    point = r.pixel_to_complex(123, 456, 800, 600)
    x, y = r.complex_to_pixel(point, 800, 600)
    assert x == pytest.approx(123)
    assert y == pytest.approx(456)


def test_from_center_and_with_aspect():
    r = Viewport.from_center(-0.75, 0.0, 2.5, 2.5)
    assert_bounds(r, DEFAULT_VIEWPORT)
    wide = r.with_aspect(2.0)
    assert wide.width == pytest.approx(2.5)
    assert wide.height == pytest.approx(1.25)
    assert wide.midpoint == pytest.approx(r.midpoint)
    with pytest.raises(InvalidGeometryError):
        r.with_aspect(0.0)
