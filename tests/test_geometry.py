import math

import numpy as np
import pytest

from paddleocr_decode.det.geometry import (
    ScaleChain,
    clamp_points,
    min_area_rect,
    order_box_points,
    polygon_area,
    simplify_to_quad,
    unclip,
)
from paddleocr_decode.det.types import BoxPadding, MinAreaRect
from paddleocr_decode.errors import InvalidArgumentError


def _grid(width, height):
    return np.array([(x, y) for y in range(height) for x in range(width)], dtype=np.float64)


def _rotate(points, degrees, center):
    rad = math.radians(degrees)
    c, s = math.cos(rad), math.sin(rad)
    d = points - center
    return np.stack([d[:, 0] * c - d[:, 1] * s, d[:, 0] * s + d[:, 1] * c], axis=1) + center


def test_min_area_rect_axis_aligned():
    rect = min_area_rect(_grid(10, 5))
    assert rect.angle == 0.0
    assert rect.size == pytest.approx((9.0, 4.0))
    assert rect.center == pytest.approx((4.5, 2.0))


def test_min_area_rect_square_tie_keeps_smallest_angle():
    rect = min_area_rect(_grid(6, 6))
    assert rect.angle == 0.0


def test_min_area_rect_rotated():
    pts = _rotate(_grid(21, 7) + [40, 47], 30, np.array([50.0, 50.0]))
    rect = min_area_rect(pts)
    assert rect.angle == 30.0
    assert rect.size[0] == pytest.approx(20.0, abs=1e-6)
    assert rect.size[1] == pytest.approx(6.0, abs=1e-6)


def test_min_area_rect_centered_on_centroid():
    # L shape: centroid differs from the midpoint of its bounds
    pts = np.array([(x, 0) for x in range(10)] + [(0, y) for y in range(1, 10)], dtype=np.float64)
    rect = min_area_rect(pts)
    assert rect.center == pytest.approx((45 / 19, 45 / 19))


def test_min_area_rect_few_points_falls_back_to_bounds():
    rect = min_area_rect([(2, 3), (8, 5)])
    assert rect == MinAreaRect((5.0, 4.0), (6.0, 2.0), 0.0)


def test_min_area_rect_empty_raises():
    with pytest.raises(InvalidArgumentError):
        min_area_rect(np.zeros((0, 2)))


def test_rect_corners_order():
    corners = MinAreaRect((10.0, 20.0), (8.0, 4.0), 0.0).corners()
    assert corners.tolist() == [[6.0, 18.0], [14.0, 18.0], [14.0, 22.0], [6.0, 22.0]]

    rotated = MinAreaRect((0.0, 0.0), (2.0, 2.0), 90.0).corners()
    # local top-left (-1, -1) rotated by +90 degrees lands at (1, -1)
    assert rotated[0] == pytest.approx([1.0, -1.0])


def test_polygon_area():
    assert polygon_area([(0, 0), (10, 0), (10, 10), (0, 10)]) == pytest.approx(100.0)
    assert polygon_area([(0, 0), (1, 1)]) == 0.0


def test_unclip_square():
    square = np.array([(0, 0), (10, 0), (10, 10), (0, 10)], dtype=np.float64)
    expanded = unclip(square, 1.0)
    # distance = 100 * 1.0 / 40
    assert len(expanded) > 4
    assert expanded[:, 0].min() == pytest.approx(-2.5, abs=0.01)
    assert expanded[:, 0].max() == pytest.approx(12.5, abs=0.01)
    assert expanded[:, 1].min() == pytest.approx(-2.5, abs=0.01)
    assert expanded[:, 1].max() == pytest.approx(12.5, abs=0.01)


def test_unclip_degenerate_polygon_returned_unchanged():
    point = np.array([(3, 3)] * 4, dtype=np.float64)
    assert unclip(point, 2.0).tolist() == point.tolist()


def test_simplify_keeps_quads_and_pads_short_polygons():
    quad = [(0, 0), (4, 0), (4, 2), (0, 2)]
    assert simplify_to_quad(quad).tolist() == [[0, 0], [4, 0], [4, 2], [0, 2]]

    tri = simplify_to_quad([(0, 0), (4, 0), (4, 2)])
    assert tri.tolist() == [[0, 0], [4, 0], [4, 2], [4, 2]]


def test_simplify_polygon_to_bounding_quad():
    octagon = [(0, 0), (5, 0), (10, 0), (10, 2), (10, 4), (5, 4), (0, 4), (0, 2)]
    quad = simplify_to_quad(octagon)
    assert quad.shape == (4, 2)
    assert quad == pytest.approx(np.array([[0, 0], [10, 0], [10, 4], [0, 4]]), abs=1e-9)


def test_simplify_applies_per_side_padding():
    octagon = [(0, 0), (5, 0), (10, 0), (10, 2), (10, 4), (5, 4), (0, 4), (0, 2)]
    quad = simplify_to_quad(octagon, BoxPadding(right=2.0, top=1.5))
    assert quad[:, 0].min() == pytest.approx(0.0, abs=1e-9)
    assert quad[:, 0].max() == pytest.approx(15.0, abs=1e-9)
    assert quad[:, 1].min() == pytest.approx(-1.0, abs=1e-9)
    assert quad[:, 1].max() == pytest.approx(4.0, abs=1e-9)


def test_order_box_points():
    shuffled = [(10, 5), (0, 0), (0, 5), (10, 0)]
    assert order_box_points(shuffled).tolist() == [[0, 0], [10, 0], [10, 5], [0, 5]]


def test_clamp_points():
    pts = clamp_points([(-3, 5), (12, -1), (4, 30)], 10, 20)
    assert pts.tolist() == [[0, 5], [10, 0], [4, 20]]


def test_scale_chain_factors():
    chain = ScaleChain((40, 40), (160, 120), (320, 300))
    assert chain.map_to_resized == (4.0, 3.0)
    assert chain.resized_to_original == (2.0, 2.5)
    assert chain.to_original(chain.to_resized([(10, 10)])).tolist() == [[80.0, 75.0]]


@pytest.mark.parametrize("resized, original", [
    ((160, 160), (320, 320)),
    ((150, 130), (301, 257)),
    ((97, 160), (1001, 33)),
])
def test_scale_chain_full_map_stays_in_bounds(resized, original):
    chain = ScaleChain((40, 40), resized, original)
    corners = np.array([(0, 0), (40, 0), (40, 40), (0, 40)])
    expanded = unclip(chain.to_resized(corners), 1.6)
    pts = clamp_points(chain.to_original(simplify_to_quad(expanded)), *original)
    assert (pts[:, 0] >= 0).all() and (pts[:, 0] <= original[0]).all()
    assert (pts[:, 1] >= 0).all() and (pts[:, 1] <= original[1]).all()


def test_scale_chain_rejects_zero_size():
    with pytest.raises(InvalidArgumentError):
        ScaleChain((0, 40), (160, 160), (320, 320))
