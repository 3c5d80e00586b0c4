"""
Structured diagnostics for the decoding pipelines.

Decoders accept an optional ``event_sink`` callable. When set, it receives
one DecodeEvent per interesting step (map shape, pixels above threshold,
per-contour score, ...). Events are mirrored to the module logger at DEBUG.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodeEvent:
    stage: str
    metric: str
    value: Any
    contour_index: Optional[int] = None


EventSink = Callable[[DecodeEvent], None]


def emit(sink: Optional[EventSink], stage: str, metric: str, value: Any,
         contour_index: Optional[int] = None) -> None:
    """Send an event to ``sink`` (if any) and log it at DEBUG level"""
    if logger.isEnabledFor(logging.DEBUG):
        if contour_index is None:
            logger.debug("[%s] %s=%s", stage, metric, value)
        else:
            logger.debug("[%s] contour %d %s=%s", stage, contour_index, metric, value)
    if sink is not None:
        sink(DecodeEvent(stage, metric, value, contour_index))
