"""
Duplicate suppression and clustering of detected boxes.

Both IOU users approximate the intersection of two quadrilaterals by the
intersection of their axis-aligned bounding rectangles. Box areas use the
real (shoelace) quadrilateral area. Thresholds are tuned for this
approximation, so it must not be swapped for an exact polygon IOU.
"""

import logging
import math

import numpy as np

from paddleocr_decode.det.geometry import polygon_area
from paddleocr_decode.det.types import BoundingBox

logger = logging.getLogger(__name__)

MIN_ALIGNMENT = 0.3


def _interval_overlap(a0, a1, b0, b1):
    return max(0.0, min(a1, b1) - max(a0, b0))


def box_iou(box_a, box_b):
    """
    IOU of two BoundingBox objects: shoelace areas, axis-aligned
    intersection.
    """
    ax0, ay0, ax1, ay1 = box_a.bounds()
    bx0, by0, bx1, by1 = box_b.bounds()
    inter = _interval_overlap(ax0, ax1, bx0, bx1) * _interval_overlap(ay0, ay1, by0, by1)
    union = polygon_area(box_a.points) + polygon_area(box_b.points) - inter
    if union <= 0:
        return 0.0
    return inter / union


def nms(boxes, iou_threshold):
    """
    Greedy non-maximum suppression.

    Boxes are visited by descending confidence (stable for equal scores);
    each kept box suppresses every later box with IOU above ``iou_threshold``.

    Returns:
        list of kept BoundingBox, highest confidence first
    """
    order = sorted(range(len(boxes)), key=lambda i: boxes[i].confidence, reverse=True)
    suppressed = [False] * len(boxes)
    kept = []

    for pos, i in enumerate(order):
        if suppressed[i]:
            continue
        kept.append(boxes[i])
        for j in order[pos + 1:]:
            if not suppressed[j] and box_iou(boxes[i], boxes[j]) > iou_threshold:
                suppressed[j] = True

    if len(kept) != len(boxes):
        logger.debug("NMS removed %d of %d boxes", len(boxes) - len(kept), len(boxes))
    return kept


class UnionFind:
    """Disjoint sets over 0..n-1 stored as a flat parent array"""

    def __init__(self, n):
        self.parent = list(range(n))

    def find(self, i):
        root = i
        while self.parent[root] != root:
            root = self.parent[root]
        # path compression
        while self.parent[i] != root:
            self.parent[i], i = root, self.parent[i]
        return root

    def union(self, i, j):
        root_i, root_j = self.find(i), self.find(j)
        if root_i != root_j:
            self.parent[root_j] = root_i

    def groups(self):
        """Members per root, groups ordered by their smallest index"""
        groups = {}
        for i in range(len(self.parent)):
            groups.setdefault(self.find(i), []).append(i)
        return list(groups.values())


def _should_merge(box_a, box_b, distance_threshold, overlap_threshold):
    if box_iou(box_a, box_b) >= overlap_threshold:
        return True

    ax0, ay0, ax1, ay1 = box_a.bounds()
    bx0, by0, bx1, by1 = box_b.bounds()

    gap_x = max(0.0, max(ax0, bx0) - min(ax1, bx1))
    gap_y = max(0.0, max(ay0, by0) - min(ay1, by1))
    gap = math.hypot(gap_x, gap_y)
    avg_height = ((ay1 - ay0) + (by1 - by0)) / 2
    if avg_height <= 0:
        return False
    normalized_gap = gap / avg_height

    union_x = max(ax1, bx1) - min(ax0, bx0)
    union_y = max(ay1, by1) - min(ay0, by0)
    h_ratio = _interval_overlap(ax0, ax1, bx0, bx1) / union_x if union_x > 0 else 0.0
    v_ratio = _interval_overlap(ay0, ay1, by0, by1) / union_y if union_y > 0 else 0.0
    alignment = max(h_ratio, v_ratio)

    return normalized_gap <= distance_threshold and alignment > MIN_ALIGNMENT


def merge_nearby_boxes(boxes, distance_threshold=0.5, overlap_threshold=0.1):
    """
    Union boxes that overlap or sit close together on a shared line.

    Two boxes join a group when their IOU reaches ``overlap_threshold``, or
    when the gap between their bounding rectangles, divided by their average
    height, is at most ``distance_threshold`` and they overlap by more than
    30% horizontally or vertically. Grouping is transitive.

    Returns:
        list of BoundingBox; each multi-box group becomes the axis-aligned
        bounds of all its points with the best member confidence
    """
    n = len(boxes)
    if n < 2:
        return list(boxes)

    uf = UnionFind(n)
    for i in range(n):
        for j in range(i + 1, n):
            if _should_merge(boxes[i], boxes[j], distance_threshold, overlap_threshold):
                uf.union(i, j)

    merged = []
    for members in uf.groups():
        if len(members) == 1:
            merged.append(boxes[members[0]])
            continue
        pts = np.array([p for m in members for p in boxes[m].points], dtype=np.float64)
        xmin, ymin = pts.min(axis=0)
        xmax, ymax = pts.max(axis=0)
        merged.append(BoundingBox(
            ((xmin, ymin), (xmax, ymin), (xmax, ymax), (xmin, ymax)),
            max(boxes[m].confidence for m in members),
        ))

    logger.debug("Merged %d boxes into %d", n, len(merged))
    return merged
