"""Tesseract OCR binding for receipt text recognition.

Every call opens its own recognition session, runs exactly one recognition
and releases the session before returning, whether recognition succeeded or
not. Sessions are never shared, so one engine instance can serve concurrent
callers.
"""

import io
from collections.abc import Iterator
from contextlib import contextmanager

import pytesseract
from PIL import Image

from orgintel.utils.logger import get_logger

from .recognizer import RecognitionResult

logger = get_logger(__name__)


class TesseractEngine:
    """Wrapper around Tesseract OCR implementing ``TextRecognizer``.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        languages: Default Tesseract language string, e.g. ``"ind+eng"``.
        psm: Tesseract page segmentation mode.
    """

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        languages: str = "ind+eng",
        psm: int = 3,
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.languages = languages
        self.psm = psm

    @contextmanager
    def _session(self, image: bytes) -> Iterator[Image.Image]:
        """Open a decoded image for a single recognition and always close it."""
        pil_image = Image.open(io.BytesIO(image))
        try:
            pil_image.load()
            yield pil_image
        finally:
            pil_image.close()
            logger.debug("Recognition session released")

    def recognize(self, image: bytes, languages: str | None = None) -> RecognitionResult:
        """Recognize text in an encoded image.

        Args:
            image: Encoded image bytes (PNG, JPEG, ...).
            languages: Tesseract language string. Defaults to the engine default.

        Returns:
            Recognized text rebuilt line by line, with the mean word
            confidence scaled to 0-1.
        """
        lang = languages or self.languages

        with self._session(image) as pil_image:
            data = pytesseract.image_to_data(
                pil_image,
                lang=lang,
                config=f"--psm {self.psm}",
                output_type=pytesseract.Output.DICT,
            )

        lines: dict[tuple[int, int, int], list[str]] = {}
        total_conf = 0.0
        word_count = 0

        for i in range(len(data["text"])):
            conf = float(data["conf"][i])
            word_text = str(data["text"][i]).strip()

            if conf > 0 and word_text:
                key = (
                    data["block_num"][i],
                    data.get("par_num", [0] * len(data["text"]))[i],
                    data["line_num"][i],
                )
                lines.setdefault(key, []).append(word_text)
                total_conf += conf
                word_count += 1

        text = "\n".join(" ".join(words) for words in lines.values())
        avg_conf = (total_conf / word_count / 100.0) if word_count > 0 else 0.0

        logger.info(
            "OCR recognized %d words in %d lines with average confidence %.2f",
            word_count,
            len(lines),
            avg_conf,
        )
        return RecognitionResult(
            text=text,
            confidence=avg_conf,
            language=lang,
            word_count=word_count,
        )
