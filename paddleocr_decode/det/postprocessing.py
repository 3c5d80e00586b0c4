"""
DB (Differentiable Binarization) post-processing for ONNX detection output.

Turns the raw probability map of a DB text detector into rotated
quadrilateral boxes in original image coordinates:

    flat output → (H, W) map → binary mask → dilation → components
    → min-area rect (map space) → resized space → unclip → 4 corners
    → original space → clamp → NMS → optional merge

Every call is self-contained; a DBPostProcess instance only holds its
configuration and can be shared between threads.
"""

import logging

import numpy as np

from paddleocr_decode.det import bitmap as bm
from paddleocr_decode.det.geometry import (
    ScaleChain,
    clamp_points,
    min_area_rect,
    order_box_points,
    simplify_to_quad,
    unclip,
)
from paddleocr_decode.det.suppression import merge_nearby_boxes, nms
from paddleocr_decode.det.types import BoundingBox, BoxPadding
from paddleocr_decode.errors import InvalidArgumentError
from paddleocr_decode.utils.events import emit

logger = logging.getLogger(__name__)

MIN_RECT_SIDE = 2


def _check_unit_interval(name, value):
    if not 0.0 <= value <= 1.0:
        raise InvalidArgumentError(f"{name} must be within [0, 1], got {value}")


class DBPostProcess(object):
    """
    DB post-processing with rotated rectangles, unclip, NMS and optional
    box merging.

    Usage:
        postprocess = DBPostProcess(thresh=0.3, box_thresh=0.5)
        boxes = postprocess(output, padded_size=(960, 544),
                            resized_size=(960, 540), original_size=(1920, 1080))
    """

    def __init__(self,
                 thresh=0.3,              # pixel threshold for the binary mask
                 box_thresh=0.5,          # kept boxes must score above this
                 unclip_ratio=1.6,        # expansion ratio for unclip
                 iou_thresh=0.3,          # NMS suppression threshold
                 use_dilation=True,
                 merge_boxes=False,
                 merge_distance_thresh=0.5,
                 merge_overlap_thresh=0.1,
                 box_padding=None,
                 max_candidates=1000,
                 event_sink=None):
        _check_unit_interval("thresh", thresh)
        _check_unit_interval("box_thresh", box_thresh)
        if unclip_ratio < 0:
            raise InvalidArgumentError(f"unclip_ratio must be >= 0, got {unclip_ratio}")
        if max_candidates <= 0:
            raise InvalidArgumentError(f"max_candidates must be > 0, got {max_candidates}")

        self.thresh = thresh
        self.box_thresh = box_thresh
        self.unclip_ratio = unclip_ratio
        self.iou_thresh = iou_thresh
        self.use_dilation = use_dilation
        self.merge_boxes = merge_boxes
        self.merge_distance_thresh = merge_distance_thresh
        self.merge_overlap_thresh = merge_overlap_thresh
        self.box_padding = box_padding or BoxPadding()
        self.box_padding.validate()
        self.max_candidates = max_candidates
        self.event_sink = event_sink

    def _map_from_output(self, output, padded_width, padded_height):
        """
        Returns:
            (H, W) float32 probability map, or None if the output length
            cannot be reconciled with the padded size
        """
        flat = np.asarray(output, dtype=np.float32).reshape(-1)
        size = bm.resolve_map_size(flat.size, padded_width, padded_height)
        emit(self.event_sink, "shape", "output_length", int(flat.size))
        if size is None:
            logger.warning("Unresolvable detection output: %d values for padded size %dx%d",
                           flat.size, padded_width, padded_height)
            emit(self.event_sink, "shape", "unresolvable", int(flat.size))
            return None
        map_width, map_height = size
        emit(self.event_sink, "shape", "map_size", (map_width, map_height))
        return flat.reshape(map_height, map_width)

    def _box_from_contour(self, index, contour, prob_map, mask, chain):
        rect = min_area_rect(contour)
        if rect.short_side < MIN_RECT_SIDE:
            emit(self.event_sink, "contour", "degenerate_side", rect.short_side, index)
            return None

        score = bm.contour_score(prob_map, contour, mask)
        emit(self.event_sink, "contour", "score", score, index)
        if score <= self.box_thresh:
            return None

        # unclip works in resized-image pixels
        polygon = chain.to_resized(rect.corners())
        expanded = unclip(polygon, self.unclip_ratio)
        quad = simplify_to_quad(expanded, self.box_padding)

        width, height = chain.original_size
        points = clamp_points(chain.to_original(quad), width, height)
        return BoundingBox.from_array(order_box_points(points), score)

    def __call__(self, output, padded_size, resized_size, original_size):
        """
        Decode one detection output.

        Args:
            output: raw model output, any shape, flattened row-major
            padded_size: (width, height) of the network input
            resized_size: (width, height) of the image before padding
            original_size: (width, height) of the source image

        Returns:
            list of BoundingBox (empty when nothing is detected or the
            output shape cannot be resolved)
        """
        for name, (w, h) in (("resized_size", resized_size), ("original_size", original_size)):
            if w <= 0 or h <= 0:
                raise InvalidArgumentError(f"{name} must be positive, got {w}x{h}")

        padded_width, padded_height = padded_size
        prob_map = self._map_from_output(output, padded_width, padded_height)
        if prob_map is None:
            return []

        segmentation = bm.binarize(prob_map, self.thresh)
        above = int(segmentation.sum())
        emit(self.event_sink, "threshold", "pixels_above", above)
        if above == 0:
            return []

        mask = bm.dilate(segmentation) if self.use_dilation else segmentation
        contours = bm.extract_components(mask)
        emit(self.event_sink, "components", "count", len(contours))

        map_height, map_width = prob_map.shape
        chain = ScaleChain((map_width, map_height), tuple(resized_size), tuple(original_size))

        boxes = []
        for index, contour in enumerate(contours[:self.max_candidates]):
            box = self._box_from_contour(index, contour, prob_map, segmentation, chain)
            if box is not None:
                boxes.append(box)

        boxes = nms(boxes, self.iou_thresh)
        emit(self.event_sink, "nms", "kept", len(boxes))
        if self.merge_boxes:
            boxes = merge_nearby_boxes(boxes, self.merge_distance_thresh, self.merge_overlap_thresh)
            emit(self.event_sink, "merge", "kept", len(boxes))
        return boxes


def extract_boxes(output,
                  padded_width,
                  padded_height,
                  resized_width,
                  resized_height,
                  original_size,
                  threshold=0.3,
                  box_threshold=0.5,
                  unclip_ratio=1.6,
                  iou_threshold=0.3,
                  merge_boxes=False,
                  merge_distance_threshold=0.5,
                  merge_overlap_threshold=0.1,
                  **kwargs):
    """
    Functional form of DBPostProcess.

    Extra keyword arguments (use_dilation, box_padding, max_candidates,
    event_sink) are passed to DBPostProcess.
    """
    postprocess = DBPostProcess(
        thresh=threshold,
        box_thresh=box_threshold,
        unclip_ratio=unclip_ratio,
        iou_thresh=iou_threshold,
        merge_boxes=merge_boxes,
        merge_distance_thresh=merge_distance_threshold,
        merge_overlap_thresh=merge_overlap_threshold,
        **kwargs,
    )
    return postprocess(output,
                       (padded_width, padded_height),
                       (resized_width, resized_height),
                       original_size)
