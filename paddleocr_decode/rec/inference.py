"""
PP-OCR Recognition ONNX Inference
Complete pipeline: preprocessing → ONNX inference → CTC decoding

Usage:
    from paddleocr_decode.rec.inference import RecognitionModel
    recognizer = RecognitionModel("rec_model.onnx", "dict.txt")
    result = recognizer.recognize(image)
"""

import logging
import math
import os
from typing import List, Optional, Sequence

import cv2
import numpy as np
import onnxruntime as ort

from paddleocr_decode.rec.postprocessing import decode_batch, load_char_dict
from paddleocr_decode.rec.types import RecognitionResult, RecognizedText
from paddleocr_decode.utils.image import load_image

logger = logging.getLogger(__name__)

TARGET_HEIGHT = 48
MAX_WIDTH = 320


def resize_norm_img(img: np.ndarray, target_height: int = TARGET_HEIGHT,
                    max_width: int = MAX_WIDTH) -> np.ndarray:
    """
    Resize to a fixed height keeping the aspect ratio, normalize to [-1, 1]
    and zero-pad on the right up to max_width

    Returns:
        (3, target_height, max_width) float32 array
    """
    h, w = img.shape[:2]
    resized_w = min(max_width, max(1, int(math.ceil(target_height * w / float(h)))))

    resized_image = cv2.resize(img, (resized_w, target_height))
    resized_image = cv2.cvtColor(resized_image, cv2.COLOR_BGR2RGB).astype("float32")

    # PaddleOCR normalization: /255, -0.5, /0.5 → [-1, 1]
    resized_image = resized_image.transpose((2, 0, 1)) / 255
    resized_image -= 0.5
    resized_image /= 0.5

    padding_im = np.zeros((3, target_height, max_width), dtype=np.float32)
    padding_im[:, :, 0:resized_w] = resized_image
    return padding_im


def preprocess_batch(images: Sequence[np.ndarray]) -> np.ndarray:
    """(batch, 3, 48, 320) tensor for a list of BGR crops"""
    return np.stack([resize_norm_img(img) for img in images]).astype(np.float32)


class RecognitionModel:
    """
    Text recognition with an ONNX CTC model
    """

    def __init__(self,
                 model_path: Optional[str] = None,
                 char_dict_path: Optional[str] = None,
                 batch_size: int = 6,
                 characters: Optional[Sequence[str]] = None,
                 providers: Optional[List[str]] = None,
                 session=None):
        """
        Args:
            model_path: Path to rec_model.onnx
            char_dict_path: Character dictionary (blank is added automatically)
            batch_size: Crops per inference call
            characters: Symbol table with blank at index 0, instead of char_dict_path
            providers: ONNX providers (default: ["CPUExecutionProvider"])
            session: Ready inference session, used instead of model_path
        """
        if batch_size <= 0:
            raise ValueError("Batch size must be greater than 0")

        if characters is None:
            if char_dict_path is None:
                raise ValueError("Either characters or char_dict_path is required")
            characters = load_char_dict(char_dict_path)

        if session is None:
            if model_path is None or not os.path.exists(model_path):
                raise FileNotFoundError(f"Model file not found: {model_path}")
            session = ort.InferenceSession(model_path, providers=providers or ["CPUExecutionProvider"])
            logger.info("ONNX recognition model loaded: %s", model_path)

        self.session = session
        self.input_name = self.session.get_inputs()[0].name
        self.characters = list(characters)
        self.batch_size = batch_size

    def _recognize_chunk(self, images: Sequence[np.ndarray]) -> List[RecognizedText]:
        input_tensor = preprocess_batch(images)
        output = np.asarray(self.session.run(None, {self.input_name: input_tensor})[0])
        if output.ndim != 3:
            raise ValueError(f"Unexpected recognition output shape: {output.shape}")

        batch, time, classes = output.shape
        if batch != len(images):
            raise ValueError(f"Model returned {batch} sequences for {len(images)} images")
        return decode_batch(output, self.characters, batch, time, classes)

    def recognize_batch(self, images: Sequence) -> RecognitionResult:
        """
        Args:
            images: Image paths, encoded bytes or BGR arrays

        Returns:
            RecognitionResult in input order
        """
        if not images:
            raise ValueError("Image list cannot be empty")

        loaded = [load_image(image) for image in images]
        texts = []
        for start in range(0, len(loaded), self.batch_size):
            texts.extend(self._recognize_chunk(loaded[start:start + self.batch_size]))
        return RecognitionResult(texts=texts)

    def recognize(self, image_input) -> RecognizedText:
        return self.recognize_batch([image_input]).texts[0]
