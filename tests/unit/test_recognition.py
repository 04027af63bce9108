"""
Unit tests for the recognition adapter.
"""

from unittest.mock import patch

import cv2
import numpy as np
import pytest
import pytesseract
from PIL import Image

from cardsense.errors import RecognitionFailed
from cardsense.ocr.recognition import (
    ExposureFilter,
    RawRecognition,
    TesseractRecognizer,
    WordConfidence,
)


class TestRawRecognition:
    """Tests for RawRecognition."""

    def test_confidence_is_word_mean(self):
        recognition = RawRecognition(
            text="Lightning Bolt",
            word_confidences=(WordConfidence("Lightning", 90), WordConfidence("Bolt", 70)),
        )

        assert recognition.confidence == pytest.approx(80)

    def test_no_words_zero_confidence(self):
        assert RawRecognition(text="").confidence == 0.0

    def test_from_text(self):
        recognition = RawRecognition.from_text("Lightning Bolt {R}", 85)

        assert len(recognition.word_confidences) == 3
        assert recognition.confidence == pytest.approx(85)
        assert recognition.has_text

    def test_immutable(self):
        recognition = RawRecognition(text="Opt")

        with pytest.raises(AttributeError):
            recognition.text = "Shock"


class TestExposureFilter:
    """Tests for the exposure pre-filter."""

    def test_identity_settings(self):
        table = ExposureFilter(brightness=0, contrast=1.0).lookup_table()

        assert np.array_equal(table, np.arange(256, dtype=np.uint8))

    def test_default_table(self):
        table = ExposureFilter().lookup_table()

        assert table.dtype == np.uint8
        assert table[128] == 138
        assert table[0] == 0
        assert table[255] == 255

    def test_gamma_darkens_midtones(self):
        plain = ExposureFilter(brightness=0, contrast=1.0).lookup_table()
        gamma = ExposureFilter(brightness=0, contrast=1.0, gamma=2.0).lookup_table()

        assert gamma[128] < plain[128]

    def test_apply_grayscale(self, sample_card_image):
        filtered = ExposureFilter().apply(sample_card_image)

        assert filtered.ndim == 2
        assert filtered.shape == sample_card_image.shape[:2]


class TestTesseractRecognizer:
    """Tests for TesseractRecognizer with a mocked engine."""

    @pytest.fixture
    def recognizer(self, test_settings):
        return TesseractRecognizer(settings=test_settings)

    def test_recognize_builds_lines(self, recognizer, sample_card_image, tesseract_output):
        with patch("cardsense.ocr.recognition.pytesseract.image_to_data", return_value=tesseract_output):
            recognition = recognizer.recognize(sample_card_image)

        assert recognition.text == "Lightning Bolt {R}\nInstant"
        assert recognition.engine_used == "tesseract"

    def test_low_confidence_words_dropped(self, recognizer, sample_card_image, tesseract_output):
        with patch("cardsense.ocr.recognition.pytesseract.image_to_data", return_value=tesseract_output):
            recognition = recognizer.recognize(sample_card_image)

        words = [w.word for w in recognition.word_confidences]
        assert "smudge" not in words
        assert recognition.confidence == pytest.approx((92 + 88 + 75 + 90) / 4)

    def test_threshold_override(self, test_settings, sample_card_image, tesseract_output):
        recognizer = TesseractRecognizer(confidence_threshold=80, settings=test_settings)

        with patch("cardsense.ocr.recognition.pytesseract.image_to_data", return_value=tesseract_output):
            recognition = recognizer.recognize(sample_card_image)

        assert recognition.text == "Lightning Bolt\nInstant"

    def test_accepts_encoded_bytes(self, recognizer, sample_card_image, tesseract_output):
        ok, encoded = cv2.imencode(".png", sample_card_image)
        assert ok

        with patch("cardsense.ocr.recognition.pytesseract.image_to_data", return_value=tesseract_output):
            recognition = recognizer.recognize(encoded.tobytes())

        assert recognition.has_text

    def test_accepts_pil_image(self, recognizer, tesseract_output):
        image = Image.new("RGB", (200, 100), color=(255, 255, 255))

        with patch("cardsense.ocr.recognition.pytesseract.image_to_data", return_value=tesseract_output) as mock:
            recognizer.recognize(image)

        filtered = mock.call_args.args[0]
        assert filtered.shape == (100, 200)

    def test_undecodable_bytes(self, recognizer):
        with pytest.raises(RecognitionFailed):
            recognizer.recognize(b"not an image")

    def test_engine_failure(self, recognizer, sample_card_image):
        with patch(
            "cardsense.ocr.recognition.pytesseract.image_to_data",
            side_effect=pytesseract.TesseractError(1, "bad input"),
        ):
            with pytest.raises(RecognitionFailed):
                recognizer.recognize(sample_card_image)
