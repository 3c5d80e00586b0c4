"""
Bitmap stage of DB post-processing: probability map -> binary mask ->
connected components.

Flow: flat model output → (H, W) map → threshold → 2x2 dilation → 8-connected
components (each one a contour of pixel coordinates) → per-contour score.
"""

import logging

import cv2
import numpy as np

from paddleocr_decode.errors import InvalidArgumentError, UnresolvableOutputShapeError

logger = logging.getLogger(__name__)

# DB networks downsample the padded input 4x
DEFAULT_DOWNSAMPLE = 4
FALLBACK_DOWNSAMPLES = (2, 4, 8)
MIN_CANDIDATE_WIDTH = 10
MAX_ASPECT_DEVIATION = 0.15
MIN_CONTOUR_POINTS = 4

_NEIGHBOURS = ((1, 0), (-1, 0), (0, 1), (0, -1), (1, 1), (1, -1), (-1, 1), (-1, -1))


def resolve_map_size(length, padded_width, padded_height, strict=False):
    """
    Recover (map_width, map_height) for a flat output of ``length`` values.

    Tries padded/4 first, then the other known downsample factors, then any
    width in [10, padded_width] dividing ``length`` whose aspect ratio is
    closest to the padded image's.

    Args:
        length: number of values in the flat output
        padded_width, padded_height: size of the network input
        strict: raise UnresolvableOutputShapeError instead of returning None

    Returns:
        (map_width, map_height) or None when nothing fits
    """
    if padded_width <= 0 or padded_height <= 0:
        raise InvalidArgumentError(
            f"padded size must be positive, got {padded_width}x{padded_height}")

    width = padded_width // DEFAULT_DOWNSAMPLE
    height = padded_height // DEFAULT_DOWNSAMPLE
    if width * height == length:
        return width, height

    for factor in FALLBACK_DOWNSAMPLES:
        width, height = padded_width // factor, padded_height // factor
        if width * height == length:
            logger.info("Output matches downsample factor %d (%dx%d)", factor, width, height)
            return width, height

    target_ratio = padded_width / padded_height
    best = None
    best_deviation = float("inf")
    for w in range(MIN_CANDIDATE_WIDTH, padded_width + 1):
        if length % w != 0:
            continue
        h = length // w
        deviation = abs(w / h - target_ratio)
        if deviation < best_deviation:
            best, best_deviation = (w, h), deviation

    if best is not None and best_deviation < MAX_ASPECT_DEVIATION:
        logger.info("Output size resolved by aspect search: %dx%d (deviation %.4f)",
                    best[0], best[1], best_deviation)
        return best

    if strict:
        raise UnresolvableOutputShapeError(length, padded_width, padded_height)
    return None


def binarize(prob_map, threshold):
    """
    Pixels strictly above ``threshold`` become True.

    Args:
        prob_map: (H, W) probability map
        threshold: binarization threshold in [0, 1]
    """
    return np.asarray(prob_map) > threshold


def dilate(bitmap, kernel_size=2):
    """
    Morphological dilation with a square kernel.

    With an even kernel OpenCV anchors at kernel_size // 2, so every cell
    takes the OR of the window starting kernel_size // 2 cells up/left.
    """
    kernel = np.ones((kernel_size, kernel_size), dtype=np.uint8)
    return cv2.dilate(bitmap.astype(np.uint8), kernel).astype(bool)


def extract_components(bitmap, min_points=MIN_CONTOUR_POINTS):
    """
    8-connected flood fill over a binary map.

    Uses an explicit stack so large text blobs cannot hit the recursion
    limit. Components with fewer than ``min_points`` pixels are dropped.

    Returns:
        list of (N, 2) int32 arrays of (x, y) coordinates, one per component,
        in row-major order of their first pixel
    """
    height, width = bitmap.shape
    grid = bitmap.tolist()
    visited = [[False] * width for _ in range(height)]
    contours = []

    for start_y, start_x in zip(*np.nonzero(bitmap)):
        if visited[start_y][start_x]:
            continue

        component = []
        stack = [(int(start_x), int(start_y))]
        while stack:
            x, y = stack.pop()
            if x < 0 or x >= width or y < 0 or y >= height:
                continue
            if visited[y][x] or not grid[y][x]:
                continue
            visited[y][x] = True
            component.append((x, y))
            for dx, dy in _NEIGHBOURS:
                stack.append((x + dx, y + dy))

        if len(component) >= min_points:
            contours.append(np.array(component, dtype=np.int32))

    return contours


def contour_score(prob_map, contour, mask=None):
    """
    Mean probability over a contour's pixels.

    Args:
        prob_map: (H, W) probability map
        contour: (N, 2) array of (x, y)
        mask: optional (H, W) bool map; when given only contour pixels set
            in it are averaged (e.g. the undilated mask, so pixels added by
            dilation do not dilute the score)
    """
    if len(contour) == 0:
        return 0.0
    xs, ys = contour[:, 0], contour[:, 1]
    if mask is not None:
        keep = mask[ys, xs]
        if keep.any():
            xs, ys = xs[keep], ys[keep]
    return float(np.mean(prob_map[ys, xs]))
