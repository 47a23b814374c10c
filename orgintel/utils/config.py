"""Configuration management for the organizational intelligence system.

Loads and validates YAML configuration with sensible defaults for receipt
preprocessing, OCR, field parsing, extraction gating, the intelligence
engine, and document risk analysis.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from orgintel.extraction.categories import ReceiptCategory

logger = logging.getLogger(__name__)


class PreprocessingConfig(BaseModel):
    """Configuration for the receipt image preprocessing pipeline."""

    normalize_enabled: bool = True
    normalize_low_percentile: float = 1.0
    normalize_high_percentile: float = 99.0
    sharpen_enabled: bool = True
    sharpen_sigma: float = 1.0
    sharpen_amount: float = 1.0
    resize_enabled: bool = True
    max_width: int = 1200
    binarize_enabled: bool = True
    binarize_threshold: int = 185


class OCRConfig(BaseModel):
    """Configuration for the Tesseract OCR engine."""

    tesseract_cmd: str | None = None
    languages: str = "ind+eng"
    psm: int = 3


class ReceiptParserConfig(BaseModel):
    """Vocabulary and thresholds for heuristic receipt parsing.

    Keyword lists are written in plain lowercase; the parser runs them
    through the same character-confusion normalization as the OCR lines.
    """

    unknown_merchant: str = "Unknown Merchant"
    default_category: ReceiptCategory = ReceiptCategory.OTHER
    merchant_scan_lines: int = 3
    min_merchant_length: int = 3
    header_keywords: list[str] = Field(
        default_factory=lambda: [
            "nota",
            "kwitansi",
            "toko",
            "invoice",
            "receipt",
            "jl.",
            "jalan",
            "no.",
            "tgl",
            "tanggal",
            "date",
            "alamat",
            "address",
        ]
    )
    amount_triggers: list[str] = Field(
        default_factory=lambda: [
            "total",
            "rp",
            "jumlah",
            "bayar",
            "netto",
            "amount",
            "paid",
        ]
    )
    min_amount: int = 100
    month_names: dict[str, int] = Field(
        default_factory=lambda: {
            "jan": 1,
            "januari": 1,
            "feb": 2,
            "februari": 2,
            "mar": 3,
            "maret": 3,
            "apr": 4,
            "april": 4,
            "mei": 5,
            "may": 5,
            "jun": 6,
            "juni": 6,
            "jul": 7,
            "juli": 7,
            "agu": 8,
            "agustus": 8,
            "aug": 8,
            "sep": 9,
            "september": 9,
            "okt": 10,
            "oktober": 10,
            "oct": 10,
            "nov": 11,
            "november": 11,
            "des": 12,
            "desember": 12,
            "dec": 12,
        }
    )
    category_keywords: dict[ReceiptCategory, list[str]] = Field(
        default_factory=lambda: {
            ReceiptCategory.LOGISTICS: [
                "beras",
                "sembako",
                "gula",
                "minyak",
                "tepung",
                "telur",
                "sayur",
                "buah",
            ],
            ReceiptCategory.PROGRAM: [
                "sewa",
                "sound",
                "tenda",
                "sertifikat",
                "banner",
                "spanduk",
                "dekorasi",
                "panggung",
            ],
            ReceiptCategory.OPERATIONS: [
                "atk",
                "kertas",
                "tinta",
                "printer",
                "pulpen",
                "staples",
                "fotocopy",
                "fc",
            ],
            ReceiptCategory.CONSUMABLES: [
                "nasi",
                "minum",
                "konsumsi",
                "kotak",
                "snack",
                "kopi",
                "teh",
                "air mineral",
                "makan",
                "catering",
            ],
            ReceiptCategory.TRANSPORTATION: [
                "bensin",
                "pertalite",
                "gojek",
                "grab",
                "tol",
                "parkir",
                "ojek",
                "taxi",
            ],
        }
    )
    high_confidence_score: float = 0.95
    low_confidence_score: float = 0.4


class ExtractionConfig(BaseModel):
    """Configuration for the extraction orchestrator and provider chain."""

    provider_name: str = "tesseract"
    min_ocr_confidence: float = 0.30
    review_threshold: float = 0.4


class AnomalyConfig(BaseModel):
    """Thresholds for transaction anomaly detection."""

    threshold_amount: int = 1_000_000
    duplicate_hours: float = 24
    duplicate_scan_limit: int | None = 1000


class IntelligenceConfig(BaseModel):
    """Configuration for the intelligence engine."""

    timezone: str = "Asia/Jakarta"
    currency_symbol: str = "Rp"
    learning_threshold: int = 5
    meetings_per_month: int = 4
    present_statuses: list[str] = Field(default_factory=lambda: ["present", "hadir"])
    program_keywords: list[str] = Field(
        default_factory=lambda: ["program", "kegiatan", "activity", "event"]
    )
    operational_keywords: list[str] = Field(
        default_factory=lambda: ["operasional", "operational", "admin"]
    )
    anomalies: AnomalyConfig = Field(default_factory=AnomalyConfig)


class DocumentRiskConfig(BaseModel):
    """Keyword tiers and currency patterns for document risk analysis."""

    high_keywords: list[str] = Field(
        default_factory=lambda: [
            "urgent",
            "mendesak",
            "segera",
            "darurat",
            "kritis",
            "emergency",
            "critical",
        ]
    )
    medium_keywords: list[str] = Field(
        default_factory=lambda: [
            "deadline",
            "tenggat",
            "penting",
            "important",
            "prioritas",
            "priority",
        ]
    )
    financial_keywords: list[str] = Field(
        default_factory=lambda: [
            "budget",
            "anggaran",
            "biaya",
            "cost",
            "expense",
            "pengeluaran",
            "dana",
            "fund",
        ]
    )
    deadline_keywords: list[str] = Field(
        default_factory=lambda: ["deadline", "tenggat"]
    )
    currency_patterns: list[str] = Field(
        default_factory=lambda: [
            r"Rp\s*\d[\d.,]*(?:\s*(?:juta|ribu|miliar|rb|jt|m)\b)?",
            r"IDR\s*\d[\d.,]*",
            r"\d[\d.,]*\s*(?:rupiah|juta|ribu|miliar)\b",
        ]
    )


class AppConfig(BaseModel):
    """Top-level application configuration."""

    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    parser: ReceiptParserConfig = Field(default_factory=ReceiptParserConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    intelligence: IntelligenceConfig = Field(default_factory=IntelligenceConfig)
    document_risk: DocumentRiskConfig = Field(default_factory=DocumentRiskConfig)
    log_level: str = "INFO"
    error_log_path: str | None = None


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
