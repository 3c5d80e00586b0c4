"""
Complete PP-OCR ONNX Pipeline
Detection → Cropping → Recognition → Final Text Output
"""

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

from paddleocr_decode.det.inference import DetectionModel
from paddleocr_decode.det.types import BoundingBox, DetectionResult
from paddleocr_decode.rec.inference import RecognitionModel
from paddleocr_decode.rec.types import RecognizedText
from paddleocr_decode.utils.crop import crop_text_regions, sort_boxes_reading_order
from paddleocr_decode.utils.image import load_image

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OCRTextRegion:
    bounding_box: BoundingBox
    text: RecognizedText
    index: int


@dataclass(frozen=True)
class OCRResult:
    detection_result: DetectionResult
    text_regions: List[OCRTextRegion] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.text_regions)

    def full_text(self, separator: str = "\n") -> str:
        return separator.join(region.text.text for region in self.text_regions)

    def to_paddle_format(self) -> list:
        """[[box points], text, confidence] per region, like PaddleOCR prints"""
        return [
            [[list(p) for p in region.bounding_box.points], region.text.text,
             round(region.text.confidence, 5)]
            for region in self.text_regions
        ]


class OCRPipeline:
    """
    Workflow:
    1. Detect text boxes
    2. Sort boxes in reading order
    3. Crop each box with a perspective transform
    4. Recognize all crops in batches
    """

    def __init__(self, detection_model: DetectionModel, recognition_model: RecognitionModel,
                 sort_boxes: bool = True):
        if detection_model is None or recognition_model is None:
            raise ValueError("Both detection_model and recognition_model are required")
        self.detection_model = detection_model
        self.recognition_model = recognition_model
        self.sort_boxes = sort_boxes

    def process(self, image_input) -> OCRResult:
        img = load_image(image_input)
        detection = self.detection_model.detect(img)
        if not detection.boxes:
            logger.info("No text boxes detected")
            return OCRResult(detection_result=detection)

        boxes = detection.boxes
        if self.sort_boxes:
            boxes = sort_boxes_reading_order(boxes)
            detection = DetectionResult(boxes, detection.processed_size, detection.original_size)

        crops = crop_text_regions(img, boxes)
        recognition = self.recognition_model.recognize_batch(crops)

        regions = [
            OCRTextRegion(bounding_box=box, text=text, index=i)
            for i, (box, text) in enumerate(zip(boxes, recognition.texts))
        ]
        logger.info("OCR completed: %d regions", len(regions))
        return OCRResult(detection_result=detection, text_regions=regions)

    def process_batch(self, images: Sequence) -> List[OCRResult]:
        if not images:
            raise ValueError("Image batch cannot be empty")
        return [self.process(image) for image in images]

    __call__ = process
