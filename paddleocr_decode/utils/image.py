"""
Image geometry and normalization for the detection model.

Detection input: longer side resized to target_size, padded right/bottom
to multiples of 32, ImageNet-normalized, CHW with a batch dimension.
"""

import cv2
import numpy as np

MEAN = np.array([0.485, 0.456, 0.406], dtype=np.float32)
STD = np.array([0.229, 0.224, 0.225], dtype=np.float32)
PAD_MULTIPLE = 32


def load_image(image_input):
    """
    Decode an image from a path, raw bytes or an existing array

    Returns:
        HxWx3 uint8 image in BGR order (OpenCV convention)
    """
    if isinstance(image_input, str):
        img = cv2.imread(image_input, cv2.IMREAD_COLOR)
        if img is None:
            raise ValueError(f"Cannot read image from {image_input}")
    elif isinstance(image_input, (bytes, bytearray)):
        buf = np.frombuffer(image_input, dtype=np.uint8)
        img = cv2.imdecode(buf, cv2.IMREAD_COLOR)
        if img is None:
            raise ValueError("Failed to decode image bytes")
    elif isinstance(image_input, np.ndarray):
        img = image_input.copy()
    else:
        raise TypeError(f"Unsupported input type: {type(image_input)}")

    # Handle grayscale
    if img.ndim == 2 or (img.ndim == 3 and img.shape[2] == 1):
        img = cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
    elif img.ndim == 3 and img.shape[2] == 4:
        img = cv2.cvtColor(img, cv2.COLOR_BGRA2BGR)
    return img


def calculate_resize_size(width, height, target_size=960):
    """Scale the longer side to target_size, truncating the shorter one"""
    if width > height:
        return target_size, max(1, int(height * target_size / width))
    return max(1, int(width * target_size / height)), target_size


def calculate_padded_size(width, height):
    """Round both sides up to the next multiple of 32"""
    return (
        (width + PAD_MULTIPLE - 1) // PAD_MULTIPLE * PAD_MULTIPLE,
        (height + PAD_MULTIPLE - 1) // PAD_MULTIPLE * PAD_MULTIPLE,
    )


def normalize_to_tensor(img, padded_width, padded_height):
    """
    BGR image → (1, 3, padded_height, padded_width) float32 RGB tensor.

    The image sits at the top-left; the padding stays zero.
    """
    h, w = img.shape[:2]
    rgb = cv2.cvtColor(img, cv2.COLOR_BGR2RGB).astype(np.float32) / 255.0
    normalized = (rgb - MEAN) / STD

    tensor = np.zeros((1, 3, padded_height, padded_width), dtype=np.float32)
    tensor[0, :, :h, :w] = normalized.transpose(2, 0, 1)
    return tensor


def prepare_detection_input(img, target_size=960):
    """
    Returns:
        (input_tensor, resized_size, padded_size), sizes as (width, height)
    """
    original_h, original_w = img.shape[:2]
    resized_w, resized_h = calculate_resize_size(original_w, original_h, target_size)
    resized = cv2.resize(img, (resized_w, resized_h), interpolation=cv2.INTER_LINEAR)
    padded_w, padded_h = calculate_padded_size(resized_w, resized_h)
    return normalize_to_tensor(resized, padded_w, padded_h), (resized_w, resized_h), (padded_w, padded_h)
