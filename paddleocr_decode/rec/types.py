"""
Recognition result types
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class RecognizedText:
    """
    Decoded text of one image or text region.

    ``char_confidences`` holds one probability per decoded symbol.
    """

    text: str
    confidence: float
    char_confidences: Optional[Tuple[float, ...]] = None

    def as_tuple(self) -> Tuple[str, float]:
        """(text, confidence), the PaddleOCR result format"""
        return self.text, self.confidence


@dataclass(frozen=True)
class RecognitionResult:
    texts: List[RecognizedText] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.texts)
