"""
OCR & Text Processing Module

Turns card photos into structured field guesses:
- Tesseract recognition with an exposure pre-filter
- Text normalization and cleaning
- Pattern-cascade field extraction
"""

from cardsense.ocr.recognition import (
    ExposureFilter,
    RawRecognition,
    TesseractRecognizer,
    WordConfidence,
)
from cardsense.ocr.text_normalizer import TextNormalizer
from cardsense.ocr.field_extractor import ExtractedFields, FieldExtractor

__all__ = [
    "ExposureFilter",
    "RawRecognition",
    "TesseractRecognizer",
    "WordConfidence",
    "TextNormalizer",
    "ExtractedFields",
    "FieldExtractor",
]
