"""Receipt extraction orchestrator.

Chains preprocessing, text recognition and heuristic parsing into a single
call that always returns a well-formed ``ReceiptData``. Every failure along
the chain degrades to the all-invalid receipt instead of propagating.
"""

import base64
import time
from dataclasses import asdict

from orgintel.ocr.recognizer import TextRecognizer
from orgintel.ocr.tesseract_engine import TesseractEngine
from orgintel.preprocessing.pipeline import PreprocessingPipeline
from orgintel.utils.config import AppConfig
from orgintel.utils.logger import get_logger

from .models import ReceiptData, invalid_receipt
from .receipt_parser import ReceiptParser

logger = get_logger(__name__)


def decode_image_payload(image: str | bytes) -> bytes:
    """Turn a base64 string (optionally a ``data:`` URL) or raw bytes into bytes.

    Raises:
        ValueError: If the string is not valid base64.
    """
    if isinstance(image, bytes):
        return image

    payload = image.strip()
    if "base64," in payload:
        payload = payload.split("base64,", 1)[1]
    return base64.b64decode(payload)


class ReceiptExtractionPipeline:
    """Extracts a ``ReceiptData`` record from a receipt photo.

    Args:
        config: Application configuration. Defaults are used when ``None``.
        recognizer: Text recognition binding. Defaults to a ``TesseractEngine``
            built from ``config.ocr``.
        parser: Receipt field parser. Defaults to one built from
            ``config.parser``.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        recognizer: TextRecognizer | None = None,
        parser: ReceiptParser | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.preprocessing = PreprocessingPipeline(self.config.preprocessing)
        self.recognizer = recognizer or TesseractEngine(
            tesseract_cmd=self.config.ocr.tesseract_cmd,
            languages=self.config.ocr.languages,
            psm=self.config.ocr.psm,
        )
        self.parser = parser or ReceiptParser(self.config.parser)
        self.provider_name = self.config.extraction.provider_name

    def __call__(self, image: str | bytes) -> ReceiptData:
        return self.extract(image)

    def extract(self, image: str | bytes) -> ReceiptData:
        """Run the full extraction chain on one receipt image.

        Args:
            image: Base64 string (with or without a data-URL prefix) or raw
                encoded image bytes.

        Returns:
            Parsed receipt tagged with the provider name, or the all-invalid
            receipt when recognition confidence is below the floor or any
            step fails.
        """
        start_time = time.time()

        try:
            raw = decode_image_payload(image)
            logger.info("Extracting receipt (%.1f KB)", len(raw) / 1024)

            processed = self.preprocessing.process_bytes(raw)
            recognition = self.recognizer.recognize(
                processed, self.config.ocr.languages
            )

            if recognition.confidence < self.config.extraction.min_ocr_confidence:
                logger.warning(
                    "OCR confidence %.2f below floor %.2f, skipping parsing",
                    recognition.confidence,
                    self.config.extraction.min_ocr_confidence,
                )
                return self._invalid()

            parsed = self.parser.parse(recognition.text)
            result = ReceiptData(**asdict(parsed), provider=self.provider_name)
        except Exception as exc:
            logger.error("Receipt extraction failed: %s", exc)
            return self._invalid()

        logger.info(
            "Extraction complete in %.0fms (amount=%d, confidence=%s)",
            (time.time() - start_time) * 1000,
            result.amount,
            result.confidence,
        )
        return result

    def _invalid(self) -> ReceiptData:
        return invalid_receipt(
            provider=self.provider_name,
            unknown_merchant=self.config.parser.unknown_merchant,
            default_category=self.config.parser.default_category,
        )
