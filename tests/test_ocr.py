"""Tests for the Tesseract recognition binding."""

from unittest.mock import MagicMock, patch

import pytest

from orgintel.ocr.recognizer import RecognitionResult, TextRecognizer
from orgintel.ocr.tesseract_engine import TesseractEngine


def _mock_tesseract_data() -> dict:
    """Create mock pytesseract output data for a two-line receipt."""
    return {
        "text": ["", "Warung", "Bu", "", "Total", "50.000", "  "],
        "conf": [-1, 95, 85, -1, 90, 70, -1],
        "block_num": [0, 1, 1, 1, 1, 1, 1],
        "par_num": [0, 1, 1, 1, 1, 1, 1],
        "line_num": [0, 1, 1, 2, 2, 2, 2],
        "word_num": [0, 1, 2, 0, 1, 2, 3],
    }


class TestRecognitionResult:
    """Tests for the RecognitionResult data class."""

    def test_creation(self) -> None:
        result = RecognitionResult(text="Total 5000", confidence=0.8, language="eng")
        assert result.text == "Total 5000"
        assert result.word_count == 0

    def test_frozen(self) -> None:
        result = RecognitionResult(text="x", confidence=0.5, language="eng")
        with pytest.raises(AttributeError):
            result.text = "y"  # type: ignore[misc]


class TestTesseractEngine:
    """Tests for the TesseractEngine class (mocked)."""

    @patch("orgintel.ocr.tesseract_engine.pytesseract")
    def test_recognize_groups_lines(
        self, mock_pytesseract: MagicMock, receipt_png: bytes
    ) -> None:
        mock_pytesseract.image_to_data.return_value = _mock_tesseract_data()
        mock_pytesseract.Output.DICT = "dict"

        engine = TesseractEngine()
        result = engine.recognize(receipt_png)

        assert result.text == "Warung Bu\nTotal 50.000"
        assert result.word_count == 4
        assert result.confidence == pytest.approx(0.85)
        assert result.language == "ind+eng"

    @patch("orgintel.ocr.tesseract_engine.pytesseract")
    def test_single_call_with_language_and_psm(
        self, mock_pytesseract: MagicMock, receipt_png: bytes
    ) -> None:
        mock_pytesseract.image_to_data.return_value = _mock_tesseract_data()
        mock_pytesseract.Output.DICT = "dict"

        engine = TesseractEngine(psm=6)
        engine.recognize(receipt_png, languages="eng")

        mock_pytesseract.image_to_data.assert_called_once()
        kwargs = mock_pytesseract.image_to_data.call_args.kwargs
        assert kwargs["lang"] == "eng"
        assert kwargs["config"] == "--psm 6"
        mock_pytesseract.image_to_string.assert_not_called()

    @patch("orgintel.ocr.tesseract_engine.pytesseract")
    def test_no_words_zero_confidence(
        self, mock_pytesseract: MagicMock, receipt_png: bytes
    ) -> None:
        mock_pytesseract.image_to_data.return_value = {
            "text": ["", ""],
            "conf": [-1, -1],
            "block_num": [0, 1],
            "line_num": [0, 1],
        }
        mock_pytesseract.Output.DICT = "dict"

        result = TesseractEngine().recognize(receipt_png)
        assert result.text == ""
        assert result.confidence == 0.0
        assert result.word_count == 0

    @patch("orgintel.ocr.tesseract_engine.pytesseract")
    def test_session_released_on_failure(
        self, mock_pytesseract: MagicMock, receipt_png: bytes
    ) -> None:
        mock_pytesseract.image_to_data.side_effect = RuntimeError("engine crashed")
        mock_pytesseract.Output.DICT = "dict"

        with patch("orgintel.ocr.tesseract_engine.Image.open") as mock_open:
            pil_image = MagicMock()
            mock_open.return_value = pil_image
            with pytest.raises(RuntimeError):
                TesseractEngine().recognize(receipt_png)

        pil_image.close.assert_called_once()

    @patch("orgintel.ocr.tesseract_engine.pytesseract")
    def test_custom_tesseract_cmd(self, mock_pytesseract: MagicMock) -> None:
        TesseractEngine(tesseract_cmd="/usr/local/bin/tesseract")
        assert (
            mock_pytesseract.pytesseract.tesseract_cmd == "/usr/local/bin/tesseract"
        )

    def test_satisfies_recognizer_protocol(self) -> None:
        recognizer: TextRecognizer = TesseractEngine()
        assert callable(recognizer.recognize)
