"""Shared test fixtures for the receipt extraction and intelligence test suite."""

from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import cv2
import numpy as np
import pytest

JAKARTA = ZoneInfo("Asia/Jakarta")


@pytest.fixture
def sample_image() -> np.ndarray:
    """Create a simple synthetic grayscale test image."""
    image = np.zeros((200, 300), dtype=np.uint8)
    image[50:150, 50:250] = 255
    return image


@pytest.fixture
def sample_color_image() -> np.ndarray:
    """Create a simple synthetic BGR test image."""
    image = np.zeros((200, 300, 3), dtype=np.uint8)
    image[50:150, 50:250] = (255, 255, 255)
    return image


@pytest.fixture
def receipt_png(sample_color_image: np.ndarray) -> bytes:
    """Encode the synthetic color image as PNG bytes."""
    ok, buffer = cv2.imencode(".png", sample_color_image)
    assert ok
    return buffer.tobytes()


@pytest.fixture
def now() -> datetime:
    """Fixed reference instant in the engine's default time zone."""
    return datetime(2024, 6, 15, 10, 0, tzinfo=JAKARTA)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"
