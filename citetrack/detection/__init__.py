"""
Citation Detection

Pure, I/O-free detection of brand mentions in engine answers.
"""

from .detector import (
    CitationResult,
    detect_citations,
    classify_position,
    derive_brand_keywords,
    POSITION_TOP,
    POSITION_MIDDLE,
    POSITION_BOTTOM,
)

__all__ = [
    "CitationResult",
    "detect_citations",
    "classify_position",
    "derive_brand_keywords",
    "POSITION_TOP",
    "POSITION_MIDDLE",
    "POSITION_BOTTOM",
]
