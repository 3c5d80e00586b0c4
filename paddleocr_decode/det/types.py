"""
Detection result types
"""

import math
from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np

from paddleocr_decode.errors import InvalidArgumentError

Point = Tuple[float, float]


@dataclass(frozen=True)
class MinAreaRect:
    """
    Rotated rectangle: center, (width, height) and angle in degrees [0, 180).

    Corners are not stored, they are rebuilt on demand by rotating the
    local axis-aligned rectangle around the center.
    """

    center: Point
    size: Tuple[float, float]
    angle: float

    def corners(self) -> np.ndarray:
        """
        Returns:
            (4, 2) float array: top-left, top-right, bottom-right, bottom-left
            in local (unrotated) space, then rotated by ``angle``.
        """
        hw, hh = self.size[0] / 2.0, self.size[1] / 2.0
        local = np.array([[-hw, -hh], [hw, -hh], [hw, hh], [-hw, hh]], dtype=np.float64)
        rad = math.radians(self.angle)
        cos_a, sin_a = math.cos(rad), math.sin(rad)
        rotation = np.array([[cos_a, -sin_a], [sin_a, cos_a]])
        return local @ rotation.T + np.asarray(self.center, dtype=np.float64)

    @property
    def short_side(self) -> float:
        return min(self.size)


@dataclass(frozen=True)
class BoxPadding:
    """
    Per-side padding factors applied to the half-extents of the final
    quadrilateral. 1.0 means no padding.
    """

    top: float = 1.0
    bottom: float = 1.0
    left: float = 1.0
    right: float = 1.0

    def validate(self) -> None:
        for name in ("top", "bottom", "left", "right"):
            if getattr(self, name) <= 0:
                raise InvalidArgumentError(f"padding factor '{name}' must be > 0")


@dataclass(frozen=True)
class BoundingBox:
    """
    Final detection unit: four corners (clockwise from top-left) in
    original image coordinates, plus the mean probability of the region.
    """

    points: Tuple[Point, Point, Point, Point]
    confidence: float

    def __post_init__(self):
        points = tuple(tuple(float(v) for v in p) for p in self.points)
        if len(points) != 4 or any(len(p) != 2 for p in points):
            raise InvalidArgumentError("BoundingBox requires exactly 4 points with 2 coordinates each")
        object.__setattr__(self, "points", points)
        object.__setattr__(self, "confidence", float(self.confidence))

    @classmethod
    def from_array(cls, points, confidence) -> "BoundingBox":
        arr = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        return cls(tuple(map(tuple, arr.tolist())), confidence)

    def as_array(self) -> np.ndarray:
        return np.array(self.points, dtype=np.float32)

    def bounds(self) -> Tuple[float, float, float, float]:
        """Axis-aligned (xmin, ymin, xmax, ymax)"""
        xs = [p[0] for p in self.points]
        ys = [p[1] for p in self.points]
        return min(xs), min(ys), max(xs), max(ys)


@dataclass(frozen=True)
class DetectionResult:
    boxes: List[BoundingBox] = field(default_factory=list)
    processed_size: Tuple[int, int] = (0, 0)  # padded (width, height)
    original_size: Tuple[int, int] = (0, 0)

    @property
    def count(self) -> int:
        return len(self.boxes)
