"""Heuristic receipt field extraction from noisy OCR text.

Recovers merchant, total amount, date and category from recognized receipt
text with regular expressions. Numeric matching runs on a normalized copy of
each line in which common OCR letter/digit confusions are corrected; display
strings such as the merchant name always come from the raw lines.
"""

import re
from datetime import date

from orgintel.utils.config import ReceiptParserConfig
from orgintel.utils.logger import get_logger

from .categories import ReceiptCategory
from .models import ConfidenceLevel, ParsedReceipt

logger = get_logger(__name__)

_CONFUSION_TABLE = str.maketrans(
    {"o": "0", "s": "5", "i": "1", "l": "1", "|": "1", "‖": "1"}
)
_NON_PRINTABLE = re.compile(r"[^\x20-\x7e]")
_NUMBER = re.compile(r"(?:(?<=rp)|(?<=rp\.)|(?<=1dr)|(?<![a-z\d.,]))\d[\d.,]*(?![a-z\d])")
_TRAILING_DECIMALS = re.compile(r"^(\d{1,3}(?:[.,]\d{3})+|\d+)[.,]\d{2}$")

_DAY_MONTH_YEAR = re.compile(r"\b(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{4}|\d{2})\b")
_YEAR_MONTH_DAY = re.compile(r"\b(\d{4})[/\-](\d{1,2})[/\-](\d{1,2})\b")


def normalize_line(line: str) -> str:
    """Lowercase a line, correct OCR confusions and drop non-printable characters.

    ``o`` becomes ``0``, ``s`` becomes ``5`` and ``i``, ``l``, ``|`` and ``‖``
    become ``1``.

    Args:
        line: Raw OCR line.

    Returns:
        Normalized line for pattern matching only.
    """
    return _NON_PRINTABLE.sub("", line.lower().translate(_CONFUSION_TABLE))


def _keyword_regex(keywords: list[str]) -> re.Pattern[str]:
    """Compile keywords, normalized like OCR lines, into one alternation."""
    normalized = sorted({normalize_line(k) for k in keywords if k}, key=len, reverse=True)
    if not normalized:
        return re.compile(r"(?!)")
    return re.compile("|".join(re.escape(k) for k in normalized))


def parse_amount_token(token: str) -> int | None:
    """Convert a numeric token such as ``50.000`` or ``1,250,000.00`` to an int.

    A two-digit decimal tail after the integer part is dropped and the
    remaining thousands separators are stripped.

    Returns:
        The integer value, or ``None`` if no digits remain.
    """
    token = token.rstrip(".,")
    match = _TRAILING_DECIMALS.match(token)
    if match:
        token = match.group(1)
    digits = re.sub(r"[.,]", "", token)
    return int(digits) if digits else None


class ReceiptParser:
    """Extracts ``ParsedReceipt`` fields from raw OCR text.

    All language-specific vocabulary comes from the parser configuration,
    so swapping the config localizes the parser without touching the
    scanning logic.

    Args:
        config: Parser vocabulary and thresholds.
    """

    def __init__(self, config: ReceiptParserConfig | None = None) -> None:
        self.config = config or ReceiptParserConfig()
        self._header_re = _keyword_regex(self.config.header_keywords)
        triggers = _keyword_regex(self.config.amount_triggers)
        self._trigger_re = re.compile(rf"(?:{triggers.pattern})\s*[:=]?\s*")

        months = sorted(self.config.month_names, key=len, reverse=True)
        self._month_re = re.compile(
            r"\b(\d{1,2})\s+("
            + "|".join(re.escape(m) for m in months)
            + r")[a-z]*\.?\s+(\d{4})\b",
            re.IGNORECASE,
        )

    def parse(self, raw_text: str) -> ParsedReceipt:
        """Parse recognized receipt text into structured fields.

        Args:
            raw_text: Text returned by the recognizer.

        Returns:
            Parsed receipt. Missing amount yields ``amount == 0`` and
            ``is_invalid``; missing merchant yields the unknown-merchant
            sentinel.
        """
        lines = [line.strip() for line in raw_text.split("\n")]
        lines = [line for line in lines if line]
        clean_lines = [normalize_line(line) for line in lines]

        merchant = self.detect_merchant(lines, clean_lines)
        amount = self.extract_amount(clean_lines)

        is_invalid = amount == 0
        high = merchant != self.config.unknown_merchant and amount > 0
        confidence = ConfidenceLevel.HIGH if high else ConfidenceLevel.LOW
        score = (
            self.config.high_confidence_score
            if high
            else self.config.low_confidence_score
        )

        result = ParsedReceipt(
            amount=amount,
            merchant_name=merchant,
            date=self.detect_date(raw_text),
            category=self.detect_category(raw_text),
            confidence=confidence,
            confidence_score=score,
            is_invalid=is_invalid,
        )
        logger.info(
            "Parsed receipt: merchant=%r amount=%d date=%s category=%s confidence=%s",
            result.merchant_name,
            result.amount,
            result.date,
            result.category,
            result.confidence,
        )
        return result

    def detect_merchant(self, lines: list[str], clean_lines: list[str]) -> str:
        """Pick the merchant name from the top of the receipt.

        The first of the leading lines that is long enough and is not a
        boilerplate header (receipt title, address, date label) wins.
        """
        for i in range(min(self.config.merchant_scan_lines, len(lines))):
            clean = clean_lines[i]
            if len(clean) > self.config.min_merchant_length and not self._header_re.search(
                clean
            ):
                return lines[i]
        return self.config.unknown_merchant

    def extract_amount(self, clean_lines: list[str]) -> int:
        """Find the grand total by scanning normalized lines from the bottom up.

        On each line containing a trigger word (optionally followed by ``:``
        or ``=``), the numeric tokens after the trigger are tried in order;
        the first one at or above the minimum amount is the total. The scan
        stops at the first accepted line, so the total closest to the footer
        wins. A token must stand alone or directly follow ``rp``/``idr``;
        digits the confusion map produced inside words (``sold`` -> ``501d``)
        are not amounts.

        Returns:
            The total amount, or 0 if no line qualifies.
        """
        for clean in reversed(clean_lines):
            trigger = self._trigger_re.search(clean)
            if not trigger:
                continue
            for token in _NUMBER.finditer(clean, trigger.end()):
                value = parse_amount_token(token.group(0))
                if value is not None and value >= self.config.min_amount:
                    logger.debug("Amount found (bottom-up): %d in %r", value, clean)
                    return value
        return 0

    def detect_date(self, raw_text: str) -> str | None:
        """Detect the receipt date in the raw text.

        Tries ``DD/MM/YYYY`` (``/``, ``-`` or ``.``, two-digit years are
        20xx), then ``YYYY-MM-DD``, then ``DD <month name> YYYY``. Matches that
        are not real calendar dates are skipped.

        Returns:
            ISO ``YYYY-MM-DD`` string, or ``None``.
        """
        for match in _DAY_MONTH_YEAR.finditer(raw_text):
            day, month, year = match.groups()
            if len(year) == 2:
                year = f"20{year}"
            found = _iso_date(int(year), int(month), int(day))
            if found:
                return found

        for match in _YEAR_MONTH_DAY.finditer(raw_text):
            year, month, day = match.groups()
            found = _iso_date(int(year), int(month), int(day))
            if found:
                return found

        for match in self._month_re.finditer(raw_text):
            day, month_name, year = match.groups()
            month = self.config.month_names.get(month_name.lower())
            if month is None:
                continue
            found = _iso_date(int(year), month, int(day))
            if found:
                return found

        return None

    def detect_category(self, raw_text: str) -> ReceiptCategory:
        """Assign the first category whose keywords appear in the text."""
        lowered = raw_text.lower()
        for category, keywords in self.config.category_keywords.items():
            for keyword in keywords:
                if re.search(r"\b" + re.escape(keyword.lower()), lowered):
                    logger.debug("Category %s matched keyword %r", category, keyword)
                    return category
        return self.config.default_category


def _iso_date(year: int, month: int, day: int) -> str | None:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None
