"""
Decoding for PP-OCR ONNX models: DB detection maps to rotated text boxes,
CTC recognition output to strings.
"""

from paddleocr_decode.det.postprocessing import DBPostProcess, extract_boxes
from paddleocr_decode.det.suppression import merge_nearby_boxes, nms
from paddleocr_decode.det.types import BoundingBox, BoxPadding, DetectionResult
from paddleocr_decode.errors import InvalidArgumentError, OCRDecodeError, UnresolvableOutputShapeError
from paddleocr_decode.rec.postprocessing import CTCLabelDecode, decode_batch, load_char_dict
from paddleocr_decode.rec.types import RecognitionResult, RecognizedText
from paddleocr_decode.utils.events import DecodeEvent

__version__ = "0.1.0"
