"""Accuracy benchmarking for receipt extraction.

Compares extracted receipt fields (amount, merchant name, date, category)
against a labelled ground truth set and computes precision, recall, F1 and
accuracy per field.
"""

import csv
import json
import re
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from orgintel.extraction.models import ReceiptData
from orgintel.utils.logger import get_logger

logger = get_logger(__name__)

BENCHMARK_FIELDS = ("amount", "merchant_name", "date", "category")
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp", ".webp")

_CURRENCY_NOISE = re.compile(r"^(rp|idr)|[\s.,]")


@dataclass
class FieldMetrics:
    """Precision, recall, F1, and accuracy metrics for a single field.

    Args:
        field_name: Name of the receipt field being measured.
    """

    field_name: str
    true_positives: int = 0
    false_positives: int = 0
    false_negatives: int = 0
    exact_matches: int = 0
    total: int = 0

    @property
    def precision(self) -> float:
        """Fraction of predicted values that are correct."""
        denom = self.true_positives + self.false_positives
        if denom == 0:
            return 0.0
        return self.true_positives / denom

    @property
    def recall(self) -> float:
        """Fraction of expected values that were correctly predicted."""
        denom = self.true_positives + self.false_negatives
        if denom == 0:
            return 0.0
        return self.true_positives / denom

    @property
    def f1(self) -> float:
        """Harmonic mean of precision and recall."""
        if self.precision + self.recall == 0:
            return 0.0
        return 2 * (self.precision * self.recall) / (self.precision + self.recall)

    @property
    def accuracy(self) -> float:
        """Fraction of exact matches."""
        if self.total == 0:
            return 0.0
        return self.exact_matches / self.total


@dataclass
class BenchmarkResult:
    """Aggregated benchmark results across all receipts and fields."""

    total_documents: int
    successful_documents: int
    overall_accuracy: float
    overall_f1: float
    field_metrics: dict[str, FieldMetrics]
    avg_processing_time_ms: float = 0.0
    review_count: int = 0
    errors: list[str] = field(default_factory=list)


def receipt_fields(receipt: ReceiptData) -> dict[str, str]:
    """Flatten a receipt into the comparable benchmark fields.

    Invalid receipts and the placeholder values they carry produce no
    prediction for the affected field.
    """
    fields: dict[str, str] = {}
    if receipt.amount > 0:
        fields["amount"] = str(receipt.amount)
    if not receipt.is_invalid:
        fields["merchant_name"] = receipt.merchant_name
        fields["category"] = str(receipt.category)
    if receipt.date:
        fields["date"] = receipt.date
    return fields


class Evaluator:
    """Evaluates receipt predictions against ground truth labels.

    Amounts match after stripping currency prefixes and separators, so
    ``Rp 50.000`` and ``50000`` are equivalent.

    Args:
        fuzzy_threshold: Tolerance for numerical fuzzy matching.
    """

    def __init__(self, fuzzy_threshold: float = 0.01) -> None:
        self.fuzzy_threshold = fuzzy_threshold

    def evaluate(
        self,
        predictions: dict[str, dict[str, str]],
        ground_truth: dict[str, dict[str, str]],
    ) -> BenchmarkResult:
        """Compare predictions against ground truth and compute metrics.

        Args:
            predictions: Mapping of filename to extracted field values.
            ground_truth: Mapping of filename to expected field values.

        Returns:
            Aggregated benchmark results with per-field metrics.
        """
        field_metrics: dict[str, FieldMetrics] = {}
        errors: list[str] = []
        missing_count = 0

        for filename, expected in ground_truth.items():
            if filename not in predictions:
                errors.append(f"Missing prediction for {filename}")
                missing_count += 1
                for field_name in expected:
                    metrics = field_metrics.setdefault(
                        field_name, FieldMetrics(field_name)
                    )
                    metrics.total += 1
                    metrics.false_negatives += 1
                continue

            predicted = predictions[filename]

            for field_name, expected_value in expected.items():
                metrics = field_metrics.setdefault(field_name, FieldMetrics(field_name))
                metrics.total += 1

                if field_name not in predicted:
                    metrics.false_negatives += 1
                    continue

                pred_value = str(predicted[field_name]).strip().lower()
                exp_value = str(expected_value).strip().lower()

                if pred_value == exp_value:
                    metrics.true_positives += 1
                    metrics.exact_matches += 1
                elif self._fuzzy_match(pred_value, exp_value):
                    metrics.true_positives += 1
                    metrics.exact_matches += 1
                else:
                    metrics.false_positives += 1

        all_f1 = [m.f1 for m in field_metrics.values() if m.total > 0]
        all_acc = [m.accuracy for m in field_metrics.values() if m.total > 0]

        return BenchmarkResult(
            total_documents=len(ground_truth),
            successful_documents=len(ground_truth) - missing_count,
            overall_accuracy=sum(all_acc) / len(all_acc) if all_acc else 0.0,
            overall_f1=sum(all_f1) / len(all_f1) if all_f1 else 0.0,
            field_metrics=field_metrics,
            errors=errors,
        )

    def _fuzzy_match(self, pred: str, expected: str) -> bool:
        """Check if two values match after normalizing currency amounts.

        Args:
            pred: Predicted value (lowercased, stripped).
            expected: Expected value (lowercased, stripped).

        Returns:
            True if values are considered equivalent.
        """
        pred_clean = _CURRENCY_NOISE.sub("", pred)
        exp_clean = _CURRENCY_NOISE.sub("", expected)

        if pred_clean and pred_clean == exp_clean:
            return True

        try:
            return abs(float(pred_clean) - float(exp_clean)) < self.fuzzy_threshold
        except ValueError:
            return False

    def run(
        self,
        extract: Callable[[bytes], ReceiptData],
        image_dir: Path,
        ground_truth: dict[str, dict[str, str]],
        review_threshold: float = 0.4,
    ) -> BenchmarkResult:
        """Extract every labelled image in a folder and evaluate the results.

        Args:
            extract: Extraction callable, typically a
                ``ReceiptExtractionPipeline``.
            image_dir: Folder holding the images named in ``ground_truth``.
            ground_truth: Mapping of filename to expected field values.
            review_threshold: Confidence below which a receipt counts as
                needing manual review.

        Returns:
            Benchmark results including average extraction time.
        """
        predictions: dict[str, dict[str, str]] = {}
        durations: list[float] = []
        review_count = 0

        for filename in ground_truth:
            path = image_dir / filename
            if not path.exists():
                logger.warning("Benchmark image not found: %s", path)
                continue

            start_time = time.time()
            receipt = extract(path.read_bytes())
            durations.append((time.time() - start_time) * 1000)

            predictions[filename] = receipt_fields(receipt)
            if receipt.confidence_score < review_threshold:
                review_count += 1

        result = self.evaluate(predictions, ground_truth)
        result.avg_processing_time_ms = (
            sum(durations) / len(durations) if durations else 0.0
        )
        result.review_count = review_count
        logger.info(
            "Benchmarked %d receipts: accuracy %.2f%%",
            result.successful_documents,
            result.overall_accuracy * 100,
        )
        return result

    def generate_report(
        self, result: BenchmarkResult, output_path: Path | None = None
    ) -> str:
        """Generate a human-readable benchmark report.

        Args:
            result: Benchmark results to format.
            output_path: Optional path to write the report file.

        Returns:
            Formatted report string.
        """
        lines = [
            "=" * 60,
            "RECEIPT EXTRACTION BENCHMARK",
            "=" * 60,
            f"Total Receipts:       {result.total_documents}",
            f"Extracted:            {result.successful_documents}",
            f"Needs Review:         {result.review_count}",
            f"Overall Accuracy:     {result.overall_accuracy:.2%}",
            f"Overall F1 Score:     {result.overall_f1:.3f}",
            f"Avg Processing Time:  {result.avg_processing_time_ms:.0f}ms",
            "",
            "Field-Level Metrics:",
            "-" * 60,
            f"{'Field':<20} {'Precision':>10} {'Recall':>10} {'F1':>10} {'Accuracy':>10}",
            "-" * 60,
        ]

        for name, metrics in sorted(result.field_metrics.items()):
            lines.append(
                f"{name:<20} {metrics.precision:>10.2%} {metrics.recall:>10.2%} "
                f"{metrics.f1:>10.3f} {metrics.accuracy:>10.2%}"
            )
        lines.append("=" * 60)

        if result.errors:
            lines.append("")
            lines.append("Errors:")
            for error in result.errors:
                lines.append(f"  - {error}")

        report = "\n".join(lines)

        if output_path:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(report)
            logger.info("Report written to %s", output_path)

        return report


def load_ground_truth(path: Path) -> dict[str, dict[str, str]]:
    """Load ground truth labels from a JSON or CSV file.

    JSON format: ``{"receipt.jpg": {"amount": "50000", ...}, ...}``
    CSV format: rows with a ``filename`` column and field value columns.

    Args:
        path: Path to the ground truth file.

    Returns:
        Mapping of filename to field-value pairs.

    Raises:
        ValueError: If the file format is not supported.
    """
    if path.suffix == ".json":
        with open(path) as f:
            data = json.load(f)
        return {
            name: {k: str(v) for k, v in values.items()} for name, values in data.items()
        }

    if path.suffix == ".csv":
        gt: dict[str, dict[str, str]] = {}
        with open(path, newline="") as f:
            reader = csv.DictReader(f)
            for row in reader:
                filename = row.pop("filename")
                gt[filename] = {k: v for k, v in row.items() if v}
        return gt

    raise ValueError(f"Unsupported ground truth format: {path.suffix}")
