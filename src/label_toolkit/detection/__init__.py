"""
Module: detection

Purpose:
    AI label suggestion. Wraps an external vision model and returns a
    validated, clamped CropRegion or None.
"""

from .bridge import (
    DETECTION_PROMPT,
    LabelDetectionResponse,
    LabelDetector,
    encode_for_detection,
    parse_detection_response,
)

__all__ = [
    "DETECTION_PROMPT",
    "LabelDetectionResponse",
    "LabelDetector",
    "encode_for_detection",
    "parse_detection_response",
]
