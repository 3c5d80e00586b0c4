import cv2
import numpy as np


def get_rotate_crop_image(img, points):
    """
    Crop a text region from image based on 4 corner points
    (clockwise from top-left) with a perspective transform
    """
    points = np.asarray(points, dtype=np.float32).reshape(4, 2)

    # Crop size from the longer of each pair of opposite edges
    img_crop_width = int(
        max(
            np.linalg.norm(points[0] - points[1]),
            np.linalg.norm(points[2] - points[3])
        )
    )
    img_crop_height = int(
        max(
            np.linalg.norm(points[0] - points[3]),
            np.linalg.norm(points[1] - points[2])
        )
    )
    img_crop_width = max(img_crop_width, 1)
    img_crop_height = max(img_crop_height, 1)

    pts_std = np.float32([
        [0, 0],
        [img_crop_width, 0],
        [img_crop_width, img_crop_height],
        [0, img_crop_height],
    ])

    M = cv2.getPerspectiveTransform(points, pts_std)
    dst_img = cv2.warpPerspective(
        img,
        M,
        (img_crop_width, img_crop_height),
        borderMode=cv2.BORDER_REPLICATE,
        flags=cv2.INTER_CUBIC,
    )

    # Vertical text: rotate so the recognizer reads left to right
    dst_img_height, dst_img_width = dst_img.shape[0:2]
    if dst_img_height * 1.0 / dst_img_width >= 1.5:
        dst_img = np.rot90(dst_img)

    return dst_img


def crop_text_regions(img, boxes):
    """
    Crop all detected text regions (BoundingBox objects) from image
    """
    return [get_rotate_crop_image(img, box.as_array()) for box in boxes]


def sort_boxes_reading_order(boxes, y_thresh=10):
    """
    Sort boxes in reading order: top to bottom, left to right.
    Boxes whose top edges differ by less than `y_thresh` share a line.
    """
    if not boxes:
        return []

    def top(box):
        return min(pt[1] for pt in box.points)

    def left(box):
        return min(pt[0] for pt in box.points)

    boxes = sorted(boxes, key=lambda box: (top(box), left(box)))

    lines = []
    current_line = [boxes[0]]
    for b in boxes[1:]:
        if abs(top(b) - top(current_line[-1])) < y_thresh:
            current_line.append(b)
        else:
            lines.append(sorted(current_line, key=left))
            current_line = [b]
    lines.append(sorted(current_line, key=left))

    return [box for line in lines for box in line]
