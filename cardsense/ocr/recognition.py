"""
Text Recognition

Adapter between card photos and the identification core:
- RawRecognition: immutable text + per-word confidences
- ExposureFilter: tunable brightness/contrast/gamma pre-filter
- TesseractRecognizer: recognition collaborator backed by Tesseract
"""

import time
from dataclasses import dataclass, field
from typing import Optional, Union

import cv2
import numpy as np
import pytesseract
from loguru import logger
from PIL import Image

from cardsense.config import Settings, get_settings
from cardsense.errors import RecognitionFailed


ImagePayload = Union[bytes, np.ndarray, Image.Image]


@dataclass(frozen=True)
class WordConfidence:
    """A single recognized word."""
    word: str
    confidence: float  # 0-100

    def __str__(self) -> str:
        return f"'{self.word}' ({self.confidence:.0f})"


@dataclass(frozen=True)
class RawRecognition:
    """Output of the recognition collaborator. Never mutated after creation."""
    text: str
    word_confidences: tuple[WordConfidence, ...] = ()
    engine_used: str = "unknown"
    processing_time_ms: float = field(default=0.0, compare=False)

    @property
    def confidence(self) -> float:
        """Mean word confidence on the 0-100 scale, 0 when no words."""
        if not self.word_confidences:
            return 0.0
        return sum(w.confidence for w in self.word_confidences) / len(self.word_confidences)

    @property
    def has_text(self) -> bool:
        return len(self.text.strip()) > 0

    @classmethod
    def from_text(cls, text: str, confidence: float = 0.0) -> "RawRecognition":
        """Build a recognition where every word shares one confidence."""
        words = tuple(WordConfidence(w, confidence) for w in text.split())
        return cls(text=text, word_confidences=words, engine_used="text")


@dataclass
class ExposureFilter:
    """
    Pixel-level exposure correction applied before recognition.

    The defaults were tuned for one phone camera under indoor light and are
    not expected to carry over to other sources.
    """

    brightness: float = 10.0
    contrast: float = 1.2
    gamma: Optional[float] = None
    grayscale: bool = True

    def lookup_table(self) -> np.ndarray:
        """256-entry uint8 table combining gamma, contrast and brightness."""
        levels = np.arange(256, dtype=np.float32)
        if self.gamma:
            levels = np.power(levels / 255.0, self.gamma) * 255.0
        levels = self.contrast * (levels - 128.0) + 128.0 + self.brightness
        return np.clip(levels, 0, 255).astype(np.uint8)

    def apply(self, image: np.ndarray) -> np.ndarray:
        if self.grayscale and image.ndim == 3:
            image = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        return cv2.LUT(image, self.lookup_table())


class TesseractRecognizer:
    """
    Recognition collaborator using Tesseract word-level output.

    Usage:
        recognizer = TesseractRecognizer()
        recognition = recognizer.recognize(jpeg_bytes)
        print(recognition.text, recognition.confidence)
    """

    def __init__(
        self,
        exposure_filter: Optional[ExposureFilter] = None,
        confidence_threshold: Optional[int] = None,
        tesseract_config: Optional[str] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize recognizer.

        Args:
            exposure_filter: Pre-filter, pass ExposureFilter(contrast=1.0, brightness=0)
                to disable correction
            confidence_threshold: Drop words below this confidence (0-100)
            tesseract_config: Extra command-line config for Tesseract
            settings: Settings to read defaults from
        """
        settings = settings or get_settings()
        self.exposure_filter = exposure_filter or ExposureFilter()
        self.confidence_threshold = (
            confidence_threshold
            if confidence_threshold is not None
            else settings.ocr_confidence_threshold
        )
        self.tesseract_config = tesseract_config or settings.tesseract_config

        logger.info(f"TesseractRecognizer initialized (min confidence {self.confidence_threshold})")

    def recognize(self, image: ImagePayload) -> RawRecognition:
        """
        Recognize text in a card image.

        Args:
            image: Encoded image bytes, BGR numpy array or PIL image

        Returns:
            RawRecognition with line-preserving text

        Raises:
            RecognitionFailed: Image could not be decoded or Tesseract failed
        """
        start = time.perf_counter()
        pixels = self._to_array(image)
        filtered = self.exposure_filter.apply(pixels)

        try:
            data = pytesseract.image_to_data(
                filtered,
                config=self.tesseract_config,
                output_type=pytesseract.Output.DICT,
            )
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as e:
            logger.error(f"Tesseract error: {e}")
            raise RecognitionFailed(str(e)) from e

        words, text = self._collect_words(data)
        elapsed = (time.perf_counter() - start) * 1000

        recognition = RawRecognition(
            text=text,
            word_confidences=tuple(words),
            engine_used="tesseract",
            processing_time_ms=elapsed,
        )
        logger.debug(
            f"Recognized {len(words)} words at {recognition.confidence:.1f}% in {elapsed:.0f}ms"
        )
        return recognition

    def _collect_words(self, data: dict) -> tuple[list[WordConfidence], str]:
        """Keep confident words and rebuild text one line per Tesseract line."""
        words: list[WordConfidence] = []
        lines: dict[tuple[int, int, int], list[str]] = {}

        for i, raw in enumerate(data["text"]):
            word = raw.strip()
            conf = float(data["conf"][i])
            if not word or conf < self.confidence_threshold:
                continue
            words.append(WordConfidence(word, conf))
            key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
            lines.setdefault(key, []).append(word)

        text = "\n".join(" ".join(line) for line in lines.values())
        return words, text

    def _to_array(self, image: ImagePayload) -> np.ndarray:
        if isinstance(image, np.ndarray):
            return image
        if isinstance(image, Image.Image):
            return cv2.cvtColor(np.array(image.convert("RGB")), cv2.COLOR_RGB2BGR)

        decoded = cv2.imdecode(np.frombuffer(image, dtype=np.uint8), cv2.IMREAD_COLOR)
        if decoded is None:
            raise RecognitionFailed("Image payload could not be decoded")
        return decoded
