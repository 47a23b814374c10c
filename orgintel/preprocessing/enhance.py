"""Sharpening and size normalization for receipt images."""

import cv2
import numpy as np

from orgintel.utils.logger import get_logger

logger = get_logger(__name__)


def sharpen(image: np.ndarray, sigma: float = 1.0, amount: float = 1.0) -> np.ndarray:
    """Sharpen text edges with an unsharp mask.

    Args:
        image: Input image as a numpy array.
        sigma: Standard deviation of the Gaussian used for the mask.
        amount: Strength of the sharpening.

    Returns:
        Sharpened image with the same shape and dtype as the input.
    """
    blurred = cv2.GaussianBlur(image, (0, 0), sigma)
    result = cv2.addWeighted(image, 1.0 + amount, blurred, -amount, 0)
    logger.debug("Applied unsharp mask (sigma=%.1f, amount=%.1f)", sigma, amount)
    return result


def downscale_to_width(image: np.ndarray, max_width: int = 1200) -> np.ndarray:
    """Shrink an image to ``max_width`` pixels wide, preserving aspect ratio.

    Images already at or below the limit are returned as-is; this never
    upscales.

    Args:
        image: Input image as a numpy array.
        max_width: Maximum output width in pixels.

    Returns:
        Resized (or original) image.
    """
    height, width = image.shape[:2]
    if width <= max_width:
        return image

    new_height = max(1, round(height * max_width / width))
    result = cv2.resize(image, (max_width, new_height), interpolation=cv2.INTER_AREA)
    logger.debug("Resized %dx%d -> %dx%d", width, height, max_width, new_height)
    return result
