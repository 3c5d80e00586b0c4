"""
Error types raised by the decoding core
"""


class OCRDecodeError(Exception):
    """Base class for decoding errors"""


class InvalidArgumentError(OCRDecodeError, ValueError):
    """
    Structurally invalid input: negative dimensions, a buffer whose length
    does not match its declared shape, thresholds outside [0, 1].

    These indicate a caller bug, never a property of the image.
    """


class UnresolvableOutputShapeError(OCRDecodeError):
    """
    Flat detection output cannot be reshaped into any plausible map.

    Only raised by resolve_map_size(..., strict=True); the detection entry
    point converts it into an empty result.
    """

    def __init__(self, length, padded_width, padded_height):
        self.length = length
        self.padded_width = padded_width
        self.padded_height = padded_height
        super().__init__(
            f"Cannot resolve map size for output of length {length} "
            f"(padded image {padded_width}x{padded_height})"
        )
