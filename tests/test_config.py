"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from orgintel.extraction.categories import ReceiptCategory
from orgintel.utils.config import (
    AnomalyConfig,
    AppConfig,
    DocumentRiskConfig,
    ExtractionConfig,
    IntelligenceConfig,
    OCRConfig,
    PreprocessingConfig,
    ReceiptParserConfig,
    load_config,
)


class TestPreprocessingConfig:
    """Tests for PreprocessingConfig defaults and overrides."""

    def test_defaults(self) -> None:
        cfg = PreprocessingConfig()
        assert cfg.normalize_enabled is True
        assert cfg.sharpen_enabled is True
        assert cfg.resize_enabled is True
        assert cfg.binarize_enabled is True
        assert cfg.max_width == 1200
        assert cfg.binarize_threshold == 185

    def test_override(self) -> None:
        cfg = PreprocessingConfig(sharpen_enabled=False, max_width=800)
        assert cfg.sharpen_enabled is False
        assert cfg.max_width == 800


class TestOCRConfig:
    """Tests for OCRConfig defaults and overrides."""

    def test_defaults(self) -> None:
        cfg = OCRConfig()
        assert cfg.languages == "ind+eng"
        assert cfg.psm == 3
        assert cfg.tesseract_cmd is None

    def test_custom_lang(self) -> None:
        cfg = OCRConfig(languages="eng", psm=6)
        assert cfg.languages == "eng"
        assert cfg.psm == 6


class TestReceiptParserConfig:
    """Tests for the parser vocabulary tables."""

    def test_defaults(self) -> None:
        cfg = ReceiptParserConfig()
        assert cfg.unknown_merchant == "Unknown Merchant"
        assert cfg.default_category == ReceiptCategory.OTHER
        assert "total" in cfg.amount_triggers
        assert cfg.month_names["mei"] == 5
        assert cfg.min_amount == 100

    def test_category_table_order(self) -> None:
        cfg = ReceiptParserConfig()
        assert list(cfg.category_keywords)[0] == ReceiptCategory.LOGISTICS
        assert ReceiptCategory.OTHER not in cfg.category_keywords

    def test_unknown_category_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ReceiptParserConfig(default_category="Groceries")


class TestExtractionConfig:
    """Tests for ExtractionConfig defaults."""

    def test_defaults(self) -> None:
        cfg = ExtractionConfig()
        assert cfg.provider_name == "tesseract"
        assert cfg.min_ocr_confidence == 0.30
        assert cfg.review_threshold == 0.4


class TestIntelligenceConfig:
    """Tests for the intelligence engine configuration."""

    def test_defaults(self) -> None:
        cfg = IntelligenceConfig()
        assert cfg.timezone == "Asia/Jakarta"
        assert cfg.learning_threshold == 5
        assert cfg.meetings_per_month == 4
        assert isinstance(cfg.anomalies, AnomalyConfig)
        assert cfg.anomalies.threshold_amount == 1_000_000
        assert cfg.anomalies.duplicate_hours == 24

    def test_document_risk_defaults(self) -> None:
        cfg = DocumentRiskConfig()
        assert "urgent" in cfg.high_keywords
        assert len(cfg.currency_patterns) == 3


class TestAppConfig:
    """Tests for the top-level AppConfig."""

    def test_defaults(self) -> None:
        cfg = AppConfig()
        assert isinstance(cfg.preprocessing, PreprocessingConfig)
        assert isinstance(cfg.ocr, OCRConfig)
        assert isinstance(cfg.extraction, ExtractionConfig)
        assert isinstance(cfg.intelligence, IntelligenceConfig)
        assert cfg.log_level == "INFO"
        assert cfg.error_log_path is None

    def test_nested_override(self) -> None:
        cfg = AppConfig(
            preprocessing=PreprocessingConfig(binarize_enabled=False),
            log_level="DEBUG",
        )
        assert cfg.preprocessing.binarize_enabled is False
        assert cfg.log_level == "DEBUG"


class TestLoadConfig:
    """Tests for the load_config function."""

    def test_load_default_config(self, config_dir: Path) -> None:
        cfg = load_config(config_dir / "config.yaml")
        assert isinstance(cfg, AppConfig)
        assert cfg.ocr.languages == "ind+eng"
        assert cfg.intelligence.anomalies.duplicate_scan_limit == 1000

    def test_load_missing_file_returns_defaults(self) -> None:
        cfg = load_config(Path("/nonexistent/path/config.yaml"))
        assert isinstance(cfg, AppConfig)
        assert cfg.ocr.languages == "ind+eng"

    def test_load_custom_yaml(self, tmp_path: Path) -> None:
        config_data = {
            "preprocessing": {"sharpen_enabled": False},
            "ocr": {"languages": "eng", "psm": 6},
            "intelligence": {"anomalies": {"threshold_amount": 500000}},
            "log_level": "DEBUG",
        }
        config_file = tmp_path / "config.yaml"
        with open(config_file, "w") as f:
            yaml.dump(config_data, f)

        cfg = load_config(config_file)
        assert cfg.preprocessing.sharpen_enabled is False
        assert cfg.ocr.languages == "eng"
        assert cfg.ocr.psm == 6
        assert cfg.intelligence.anomalies.threshold_amount == 500000
        assert cfg.intelligence.anomalies.duplicate_hours == 24
        assert cfg.log_level == "DEBUG"

    def test_load_empty_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        cfg = load_config(config_file)
        assert isinstance(cfg, AppConfig)

    def test_load_none_defaults_to_standard_path(self) -> None:
        cfg = load_config()
        assert isinstance(cfg, AppConfig)
