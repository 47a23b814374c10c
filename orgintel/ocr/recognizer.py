"""Text recognition capability shared by every OCR binding.

Any engine (local Tesseract, a cloud vision API, ...) can back the receipt
pipeline as long as it implements :class:`TextRecognizer` and reports a
confidence normalized to the 0-1 range.
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class RecognitionResult:
    """Text recognized from one image."""

    text: str
    confidence: float
    language: str
    word_count: int = 0


class TextRecognizer(Protocol):
    """Recognizes text in an encoded image."""

    def recognize(self, image: bytes, languages: str | None = None) -> RecognitionResult:
        """Run one recognition over ``image`` using the ``languages`` hint."""
        ...
