"""
PP-OCR Recognition Postprocessing
Based on PaddleOCR CTCLabelDecode

Converts CTC model output [batch, time, classes] to text strings
"""

import logging
import os
from typing import List, Optional, Sequence

import numpy as np

from paddleocr_decode.errors import InvalidArgumentError
from paddleocr_decode.rec.types import RecognizedText
from paddleocr_decode.utils.events import emit

logger = logging.getLogger(__name__)

BLANK = ""
BLANK_INDEX = 0


def load_char_dict(path: str, use_space_char: bool = False) -> List[str]:
    """
    Load a character dictionary for CTC decoding

    The file holds one symbol per line and does not contain the blank token;
    it is inserted at index 0, shifting every loaded symbol by one.

    Args:
        path: Path to a UTF-8 dictionary file
        use_space_char: Append ' ' as the last symbol (PaddleOCR convention)

    Returns:
        List of symbols, blank first
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Character dictionary file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        # only the line terminator is stripped: ' ' can be a real symbol
        chars = [line.rstrip("\r\n") for line in f]

    characters = [BLANK] + chars
    if use_space_char:
        characters.append(" ")
    logger.info("Loaded character dictionary: %d symbols from %s", len(chars), path)
    return characters


def _as_batch(predictions, batch: int, time: int, classes: int) -> np.ndarray:
    if batch < 0 or time < 0 or classes <= 0:
        raise InvalidArgumentError(
            f"Invalid prediction shape: batch={batch}, time={time}, classes={classes}")
    preds = np.asarray(predictions, dtype=np.float32)
    if preds.size != batch * time * classes:
        raise InvalidArgumentError(
            f"Prediction buffer has {preds.size} values, expected "
            f"{batch}*{time}*{classes}={batch * time * classes}")
    return preds.reshape(batch, time, classes)


def decode_sequence(probs: np.ndarray, characters: Sequence[str]) -> RecognizedText:
    """
    Greedy CTC decode of one (time, classes) probability matrix

    A step is dropped when its argmax equals the previous step's argmax
    (compared on the raw sequence, blanks included) or when it is blank.
    """
    indices = np.argmax(probs, axis=1)
    max_probs = probs[np.arange(len(indices)), indices] if len(indices) else np.zeros(0)

    chars = []
    confidences = []
    prev_idx = None
    for t, idx in enumerate(indices.tolist()):
        if idx == prev_idx:
            continue
        prev_idx = idx
        if idx == BLANK_INDEX or idx >= len(characters):
            continue
        chars.append(characters[idx])
        confidences.append(float(max_probs[t]))

    confidence = float(np.mean(confidences)) if confidences else 0.0
    return RecognizedText("".join(chars), confidence, tuple(confidences))


def decode_batch(predictions,
                 characters: Sequence[str],
                 batch: int,
                 time: int,
                 classes: int,
                 event_sink=None) -> List[RecognizedText]:
    """
    Decode a flat [batch, time, classes] buffer

    Args:
        predictions: Flat row-major buffer (or an array of that shape)
        characters: Symbol table with blank at index 0
        batch, time, classes: Buffer dimensions

    Returns:
        One RecognizedText per batch item
    """
    preds = _as_batch(predictions, batch, time, classes)
    results = []
    for i in range(batch):
        result = decode_sequence(preds[i], characters)
        emit(event_sink, "ctc", "confidence", result.confidence, i)
        results.append(result)
    return results


class CTCLabelDecode:
    """
    CTC Label Decode for ONNX PP-OCR Recognition Models

    Converts CTC probability output to text:
    1. Argmax per timestep
    2. Collapse consecutive duplicates, drop blanks
    3. Map indices to symbols
    """

    def __init__(self,
                 characters: Optional[Sequence[str]] = None,
                 character_dict_path: Optional[str] = None,
                 use_space_char: bool = False,
                 event_sink=None):
        """
        Args:
            characters: Symbol table with blank already at index 0
            character_dict_path: Dictionary file, used when characters is None
            use_space_char: Append ' ' when loading from a file
        """
        if characters is None:
            if character_dict_path is None:
                raise InvalidArgumentError("Either characters or character_dict_path is required")
            characters = load_char_dict(character_dict_path, use_space_char)
        self.character = list(characters)
        self.event_sink = event_sink

    def __call__(self, preds) -> List[RecognizedText]:
        """
        Args:
            preds: Model output (batch, time, classes); (time, classes) is
                treated as a batch of one, a list/tuple of outputs uses the last

        Returns:
            List of RecognizedText
        """
        if isinstance(preds, (tuple, list)):
            preds = preds[-1]
        preds = np.asarray(preds, dtype=np.float32)
        if preds.ndim == 2:
            preds = preds[np.newaxis, :]
        if preds.ndim != 3:
            raise InvalidArgumentError(f"Expected (batch, time, classes) output, got shape {preds.shape}")

        batch, time, classes = preds.shape
        return decode_batch(preds, self.character, batch, time, classes, self.event_sink)
