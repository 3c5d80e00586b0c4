"""
PP-OCR Detection ONNX Inference
Pipeline: image → resize/pad/normalize → ONNX model → DB post-processing

Usage:
    from paddleocr_decode.det.inference import DetectionModel
    detector = DetectionModel("det_model.onnx")
    result = detector.detect("image.jpg")
"""

import logging
import os
from typing import Iterable, List, Optional

import numpy as np
import onnxruntime as ort

from paddleocr_decode.det.postprocessing import DBPostProcess
from paddleocr_decode.det.types import DetectionResult
from paddleocr_decode.utils.image import load_image, prepare_detection_input

logger = logging.getLogger(__name__)


class DetectionModel:
    """
    Text detection with an ONNX DB model
    """

    def __init__(self,
                 model_path: Optional[str] = None,
                 target_size: int = 960,
                 providers: Optional[List[str]] = None,
                 session=None,
                 **postprocess_kwargs):
        """
        Args:
            model_path: Path to det_model.onnx
            target_size: Longer image side fed to the model
            providers: ONNX providers (default: ["CPUExecutionProvider"])
            session: Ready inference session, used instead of model_path
            postprocess_kwargs: Passed to DBPostProcess (thresh, box_thresh, ...)
        """
        if session is None:
            if model_path is None or not os.path.exists(model_path):
                raise FileNotFoundError(f"Model file not found: {model_path}")
            session = ort.InferenceSession(model_path, providers=providers or ["CPUExecutionProvider"])
            logger.info("ONNX detection model loaded: %s", model_path)

        self.session = session
        self.input_name = self.session.get_inputs()[0].name
        self.target_size = target_size
        self.postprocess = DBPostProcess(**postprocess_kwargs)

    def _run_inference(self, input_tensor: np.ndarray) -> np.ndarray:
        outputs = self.session.run(None, {self.input_name: input_tensor})
        return outputs[0]

    def detect(self, image_input) -> DetectionResult:
        """
        Args:
            image_input: Image path, encoded bytes or BGR array

        Returns:
            DetectionResult with boxes in original image coordinates
        """
        img = load_image(image_input)
        original_size = (img.shape[1], img.shape[0])

        input_tensor, resized_size, padded_size = prepare_detection_input(img, self.target_size)
        output = self._run_inference(input_tensor)
        logger.debug("Detection output shape %s for padded input %s",
                     getattr(output, "shape", None), padded_size)

        boxes = self.postprocess(output, padded_size, resized_size, original_size)
        logger.info("Detected %d text boxes", len(boxes))
        return DetectionResult(boxes=boxes, processed_size=padded_size, original_size=original_size)

    def detect_batch(self, images: Iterable) -> List[DetectionResult]:
        return [self.detect(image) for image in images]
