"""
Geometry helpers for DB post-processing: rotated rectangle fitting,
coordinate-space mapping, unclip and quadrilateral simplification.
"""

import math
from dataclasses import dataclass

import numpy as np
import pyclipper
from shapely.geometry import Polygon

from paddleocr_decode.det.types import BoxPadding, MinAreaRect
from paddleocr_decode.errors import InvalidArgumentError

ANGLE_STEP = 5
# Candidate angles 0, 5, ..., 175. Coarse on purpose: downstream thresholds
# were tuned against this search, not against an exact rotating-calipers fit.
CANDIDATE_ANGLES = np.arange(0, 180, ANGLE_STEP, dtype=np.float64)
CLIPPER_SCALE = 1000
_AREA_TOLERANCE = 1e-9


def _search_rotation(points):
    """
    Rotate ``points`` about their centroid by -theta for every candidate
    angle and keep the angle whose axis-aligned bounds have least area.
    Ties go to the smallest angle. An area within _AREA_TOLERANCE (relative)
    of the minimum counts as a tie, so trig round-off at 90 degrees cannot
    beat an exact match at 0.

    Returns:
        (centroid, theta_deg, (umin, vmin, umax, vmax)) with bounds in the
        rotated frame, relative to the centroid
    """
    centroid = points.mean(axis=0)
    d = points - centroid
    rad = np.radians(CANDIDATE_ANGLES)
    cos_a, sin_a = np.cos(rad)[:, None], np.sin(rad)[:, None]

    u = d[:, 0] * cos_a + d[:, 1] * sin_a
    v = -d[:, 0] * sin_a + d[:, 1] * cos_a
    umin, umax = u.min(axis=1), u.max(axis=1)
    vmin, vmax = v.min(axis=1), v.max(axis=1)
    areas = (umax - umin) * (vmax - vmin)

    min_area = areas.min()
    best = int(np.argmax(areas <= min_area + _AREA_TOLERANCE * max(1.0, min_area)))
    bounds = (umin[best], vmin[best], umax[best], vmax[best])
    return centroid, float(CANDIDATE_ANGLES[best]), bounds


def _to_image_frame(local, centroid, theta):
    rad = math.radians(theta)
    cos_a, sin_a = math.cos(rad), math.sin(rad)
    rotation = np.array([[cos_a, -sin_a], [sin_a, cos_a]])
    return np.asarray(local, dtype=np.float64) @ rotation.T + centroid


def min_area_rect(points):
    """
    Fit a minimum-area rotated rectangle with a 5 degree angle search.

    The rectangle is centered on the contour centroid and sized by the
    rotated bounds of the winning angle. Fewer than 3 points fall back to
    the axis-aligned bounding box.

    Args:
        points: (N, 2) array-like of (x, y)

    Returns:
        MinAreaRect
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(pts) == 0:
        raise InvalidArgumentError("cannot fit a rectangle to an empty contour")

    if len(pts) < 3:
        xmin, ymin = pts.min(axis=0)
        xmax, ymax = pts.max(axis=0)
        return MinAreaRect(((xmin + xmax) / 2, (ymin + ymax) / 2),
                           (xmax - xmin, ymax - ymin), 0.0)

    centroid, theta, (umin, vmin, umax, vmax) = _search_rotation(pts)
    return MinAreaRect((float(centroid[0]), float(centroid[1])),
                       (float(umax - umin), float(vmax - vmin)), theta)


def simplify_to_quad(polygon, padding=None):
    """
    Reduce a polygon to exactly four corners.

    4 vertices are returned unchanged, fewer are padded by repeating the
    last vertex. Larger polygons get the rotated-rectangle search again,
    with each half-extent multiplied by its side's padding factor.

    Returns:
        (4, 2) float array
    """
    pts = np.asarray(polygon, dtype=np.float64).reshape(-1, 2)
    if len(pts) == 0:
        raise InvalidArgumentError("cannot simplify an empty polygon")
    if len(pts) == 4:
        return pts
    if len(pts) < 4:
        filler = np.repeat(pts[-1:], 4 - len(pts), axis=0)
        return np.vstack([pts, filler])

    padding = padding or BoxPadding()
    centroid, theta, (umin, vmin, umax, vmax) = _search_rotation(pts)
    cu, cv = (umin + umax) / 2, (vmin + vmax) / 2
    hw, hh = (umax - umin) / 2, (vmax - vmin) / 2

    left = cu - hw * padding.left
    right = cu + hw * padding.right
    top = cv - hh * padding.top
    bottom = cv + hh * padding.bottom
    local = [[left, top], [right, top], [right, bottom], [left, bottom]]
    return _to_image_frame(local, centroid, theta)


def polygon_area(points):
    """Shoelace area (absolute) of a simple polygon"""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(pts) < 3:
        return 0.0
    return float(Polygon(pts).area)


def unclip(points, unclip_ratio):
    """
    Expand a polygon outward by area * ratio / perimeter.

    The offset uses round joins on a closed polygon, computed by pyclipper
    on coordinates scaled by CLIPPER_SCALE.

    Returns:
        (N, 2) float array; the input itself when the perimeter is zero or
        the offset degenerates below 3 vertices
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(pts) < 3:
        return pts
    poly = Polygon(pts)
    if poly.length <= 0:
        return pts
    distance = poly.area * unclip_ratio / poly.length

    offset = pyclipper.PyclipperOffset()
    offset.ArcTolerance = 0.25 * CLIPPER_SCALE
    path = np.round(pts * CLIPPER_SCALE).astype(np.int64).tolist()
    offset.AddPath(path, pyclipper.JT_ROUND, pyclipper.ET_CLOSEDPOLYGON)
    solution = offset.Execute(distance * CLIPPER_SCALE)

    if not solution or len(solution[0]) < 3:
        return pts
    return np.array(solution[0], dtype=np.float64) / CLIPPER_SCALE


def order_box_points(points):
    """
    Order 4 points clockwise starting at top-left.

    Sort by x, then within the left pair and the right pair the point with
    smaller y is the top one.
    """
    pts = sorted(np.asarray(points, dtype=np.float64).reshape(-1, 2).tolist(), key=lambda p: p[0])
    top_left, bottom_left = (pts[0], pts[1]) if pts[0][1] <= pts[1][1] else (pts[1], pts[0])
    top_right, bottom_right = (pts[2], pts[3]) if pts[2][1] <= pts[3][1] else (pts[3], pts[2])
    return np.array([top_left, top_right, bottom_right, bottom_left], dtype=np.float64)


def clamp_points(points, width, height):
    pts = np.array(points, dtype=np.float64).reshape(-1, 2)
    pts[:, 0] = np.clip(pts[:, 0], 0, width)
    pts[:, 1] = np.clip(pts[:, 1], 0, height)
    return pts


@dataclass(frozen=True)
class ScaleChain:
    """
    Map space → resized space → original space.

    The two scale pairs are applied in sequence and never folded together:
    unclip runs in resized pixels, clamping in original pixels.
    """

    map_size: tuple
    resized_size: tuple
    original_size: tuple

    def __post_init__(self):
        for name in ("map_size", "resized_size", "original_size"):
            w, h = getattr(self, name)
            if w <= 0 or h <= 0:
                raise InvalidArgumentError(f"{name} must be positive, got {w}x{h}")

    @property
    def map_to_resized(self):
        return (self.resized_size[0] / self.map_size[0],
                self.resized_size[1] / self.map_size[1])

    @property
    def resized_to_original(self):
        return (self.original_size[0] / self.resized_size[0],
                self.original_size[1] / self.resized_size[1])

    def to_resized(self, points):
        return np.asarray(points, dtype=np.float64).reshape(-1, 2) * np.array(self.map_to_resized)

    def to_original(self, points):
        return np.asarray(points, dtype=np.float64).reshape(-1, 2) * np.array(self.resized_to_original)
