"""Structured receipt records produced by the extraction pipeline."""

from dataclasses import dataclass
from enum import StrEnum

from .categories import ReceiptCategory


class ConfidenceLevel(StrEnum):
    """Coarse trust label attached to a parsed receipt."""

    HIGH = "High"
    LOW = "Low"


@dataclass(frozen=True)
class ParsedReceipt:
    """Receipt fields recovered from recognized text."""

    amount: int
    merchant_name: str
    date: str | None
    category: ReceiptCategory
    confidence: ConfidenceLevel
    confidence_score: float
    is_invalid: bool


@dataclass(frozen=True)
class ReceiptData(ParsedReceipt):
    """A parsed receipt tagged with the provider that produced it."""

    provider: str = "tesseract"
    notes: str | None = None


def invalid_receipt(
    provider: str,
    unknown_merchant: str = "Unknown Merchant",
    default_category: ReceiptCategory = ReceiptCategory.OTHER,
    notes: str | None = None,
) -> ReceiptData:
    """Build the all-default receipt returned when nothing could be read."""
    return ReceiptData(
        amount=0,
        merchant_name=unknown_merchant,
        date=None,
        category=default_category,
        confidence=ConfidenceLevel.LOW,
        confidence_score=0.0,
        is_invalid=True,
        provider=provider,
        notes=notes,
    )
