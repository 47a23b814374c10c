"""Grayscale conversion, contrast normalization and fixed-threshold binarization.

Receipts are often printed on colored or faded thermal paper, so the
threshold is a fixed luminance cut rather than Otsu or adaptive
thresholding, which tend to erase thin strokes on low-contrast prints.
"""

import cv2
import numpy as np

from orgintel.utils.logger import get_logger

logger = get_logger(__name__)


def to_gray(image: np.ndarray) -> np.ndarray:
    """Convert an image to grayscale if it has color channels.

    Args:
        image: Input image (BGR, BGRA or grayscale).

    Returns:
        Grayscale image.
    """
    if len(image.shape) == 3:
        if image.shape[2] == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    return image


def normalize_contrast(
    image: np.ndarray,
    low_percentile: float = 1.0,
    high_percentile: float = 99.0,
) -> np.ndarray:
    """Stretch the intensity range so the given percentiles map to 0 and 255.

    Args:
        image: Input image (BGR or grayscale).
        low_percentile: Percentile mapped to black.
        high_percentile: Percentile mapped to white.

    Returns:
        Contrast-normalized grayscale image. Flat images are returned unchanged.
    """
    gray = to_gray(image)
    low, high = np.percentile(gray, [low_percentile, high_percentile])

    if high <= low:
        logger.debug("Flat intensity range, skipping normalization")
        return gray.copy()

    stretched = (gray.astype(np.float32) - low) * (255.0 / (high - low))
    result = np.clip(stretched, 0, 255).astype(np.uint8)
    logger.debug("Normalized contrast from [%.0f, %.0f] to [0, 255]", low, high)
    return result


def binarize_fixed(image: np.ndarray, threshold: int = 185) -> np.ndarray:
    """Binarize an image with a fixed luminance threshold.

    Pixels at or above ``threshold`` become white, everything else black.

    Args:
        image: Input image (BGR or grayscale).
        threshold: Luminance cut in the 0-255 range.

    Returns:
        Binary image with pixel values 0 or 255.
    """
    gray = to_gray(image)
    _, binary = cv2.threshold(gray, threshold - 1, 255, cv2.THRESH_BINARY)
    logger.debug("Applied fixed binarization at threshold %d", threshold)
    return binary
