"""Receipt image preprocessing pipeline for OCR.

Runs grayscale, contrast normalization, sharpening, downscaling and
fixed-threshold binarization with quality metrics tracking. The byte-level
entry point never fails: if any step raises, the original bytes are handed
on so recognition can still run on the unprocessed image.
"""

from dataclasses import dataclass

import cv2
import numpy as np

from orgintel.utils.config import PreprocessingConfig
from orgintel.utils.logger import get_logger

from .binarize import binarize_fixed, normalize_contrast, to_gray
from .enhance import downscale_to_width, sharpen

logger = get_logger(__name__)


@dataclass
class QualityMetrics:
    """Before/after image quality measurements."""

    sharpness_before: float
    sharpness_after: float
    contrast_before: float
    contrast_after: float


def calculate_sharpness(image: np.ndarray) -> float:
    """Calculate image sharpness using Laplacian variance.

    Args:
        image: Input image (BGR or grayscale).

    Returns:
        Sharpness score (higher means sharper).
    """
    return float(cv2.Laplacian(to_gray(image), cv2.CV_64F).var())


def calculate_contrast(image: np.ndarray) -> float:
    """Calculate image contrast as the standard deviation of pixel intensities.

    Args:
        image: Input image (BGR or grayscale).

    Returns:
        Contrast score (higher means more contrast).
    """
    return float(to_gray(image).std())


def decode_image(data: bytes) -> np.ndarray:
    """Decode encoded image bytes (PNG, JPEG, ...) into a BGR array.

    Raises:
        ValueError: If the bytes are empty or not a decodable image.
    """
    if not data:
        raise ValueError("Empty image data")
    image = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)
    if image is None:
        raise ValueError("Could not decode image data")
    return image


def encode_png(image: np.ndarray) -> bytes:
    """Encode an image array as lossless PNG bytes.

    Raises:
        ValueError: If OpenCV fails to encode the array.
    """
    ok, buffer = cv2.imencode(".png", image)
    if not ok:
        raise ValueError("Could not encode image as PNG")
    return buffer.tobytes()


class PreprocessingPipeline:
    """Configurable receipt image preprocessing pipeline.

    Args:
        config: Preprocessing configuration controlling which steps to apply.
    """

    def __init__(self, config: PreprocessingConfig) -> None:
        self.config = config

    def process(self, image: np.ndarray) -> tuple[np.ndarray, QualityMetrics]:
        """Run the preprocessing steps on a decoded image.

        Args:
            image: Input receipt image (BGR or grayscale).

        Returns:
            Tuple of (processed_image, quality_metrics).
        """
        metrics = QualityMetrics(
            sharpness_before=calculate_sharpness(image),
            contrast_before=calculate_contrast(image),
            sharpness_after=0.0,
            contrast_after=0.0,
        )

        result = to_gray(image)

        if self.config.normalize_enabled:
            result = normalize_contrast(
                result,
                low_percentile=self.config.normalize_low_percentile,
                high_percentile=self.config.normalize_high_percentile,
            )

        if self.config.sharpen_enabled:
            result = sharpen(
                result,
                sigma=self.config.sharpen_sigma,
                amount=self.config.sharpen_amount,
            )

        if self.config.resize_enabled:
            result = downscale_to_width(result, max_width=self.config.max_width)

        if self.config.binarize_enabled:
            result = binarize_fixed(result, threshold=self.config.binarize_threshold)

        metrics.sharpness_after = calculate_sharpness(result)
        metrics.contrast_after = calculate_contrast(result)

        logger.info(
            "Preprocessing complete: sharpness %.1f->%.1f, contrast %.1f->%.1f",
            metrics.sharpness_before,
            metrics.sharpness_after,
            metrics.contrast_before,
            metrics.contrast_after,
        )
        return result, metrics

    def process_bytes(self, data: bytes) -> bytes:
        """Preprocess encoded image bytes into PNG bytes for recognition.

        Args:
            data: Raw encoded image bytes.

        Returns:
            Preprocessed PNG bytes, or ``data`` unchanged if any step fails.
        """
        try:
            image = decode_image(data)
            processed, _ = self.process(image)
            return encode_png(processed)
        except Exception as exc:
            logger.warning(
                "Preprocessing failed, passing original image through: %s", exc
            )
            return data
