"""Command-line interface for receipt extraction and organizational intelligence.

Provides subcommands for extracting single receipts, processing folders of
receipts into CSV, generating intelligence reports from exported records,
analyzing document risk and benchmarking extraction accuracy.
"""

import argparse
import csv
import json
import sys
import time
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from orgintel.benchmark.evaluator import IMAGE_EXTENSIONS, Evaluator, load_ground_truth
from orgintel.extraction.pipeline import ReceiptExtractionPipeline
from orgintel.extraction.providers import needs_manual_review
from orgintel.intelligence.document_risk import DocumentRiskAnalyzer
from orgintel.intelligence.engine import IntelligenceEngine
from orgintel.intelligence.models import AttendanceRecord, Document, Member, Transaction
from orgintel.utils.config import AppConfig, load_config
from orgintel.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_CSV_COLUMNS = [
    "filename",
    "status",
    "amount",
    "merchant_name",
    "date",
    "category",
    "confidence",
    "confidence_score",
    "is_invalid",
    "needs_review",
    "provider",
    "processing_time_s",
    "error",
]


def _find_receipts(input_dir: Path) -> list[Path]:
    """Find all supported receipt images in a directory.

    Args:
        input_dir: Directory to scan.

    Returns:
        Sorted list of image paths.
    """
    return sorted(
        p for p in input_dir.iterdir() if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
    )


def _dump(data: Any, output: Path | None) -> None:
    text = json.dumps(data, indent=2, ensure_ascii=False)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text, encoding="utf-8")
        print(f"Output written to {output}")
    else:
        print(text)


def extract_single(file_path: Path, config: AppConfig) -> dict[str, Any]:
    """Extract one receipt image into a JSON-ready dict.

    Args:
        file_path: Path to the receipt image.
        config: Application configuration.

    Returns:
        The receipt fields plus the source filename.
    """
    pipeline = ReceiptExtractionPipeline(config)
    receipt = pipeline.extract(file_path.read_bytes())
    return {"filename": file_path.name, **asdict(receipt)}


def process_folder(
    input_dir: Path,
    output_csv: Path,
    config: AppConfig,
    verbose: bool = False,
) -> dict[str, int]:
    """Extract every receipt image in a folder and export the results to CSV.

    Args:
        input_dir: Directory containing receipt images.
        output_csv: Path for the output CSV file.
        config: Application configuration.
        verbose: Whether to print per-file progress.

    Returns:
        Summary dict with total, successful, needs_review and failed counts.
    """
    pipeline = ReceiptExtractionPipeline(config)

    files = _find_receipts(input_dir)
    if not files:
        logger.warning("No receipt images found in %s", input_dir)
        return {"total": 0, "successful": 0, "needs_review": 0, "failed": 0}

    logger.info("Found %d receipts to process", len(files))

    results: list[dict[str, object]] = []
    successful = 0
    review = 0
    failed = 0

    for i, file_path in enumerate(files, 1):
        if verbose:
            print(f"Processing [{i}/{len(files)}]: {file_path.name}")

        start_time = time.time()
        try:
            receipt = pipeline.extract(file_path.read_bytes())
        except OSError as exc:
            logger.error("Failed to read %s: %s", file_path.name, exc)
            results.append(
                {"filename": file_path.name, "status": "failed", "error": str(exc)}
            )
            failed += 1
            continue

        flagged = needs_manual_review(receipt, config.extraction.review_threshold)
        review += flagged
        successful += 1
        results.append(
            {
                "filename": file_path.name,
                "status": "success",
                **asdict(receipt),
                "needs_review": flagged,
                "processing_time_s": round(time.time() - start_time, 2),
                "error": None,
            }
        )

    _write_csv(results, output_csv)
    logger.info("Results written to %s", output_csv)

    summary = {
        "total": len(files),
        "successful": successful,
        "needs_review": review,
        "failed": failed,
    }
    _print_summary(summary, output_csv)
    return summary


def _write_csv(results: list[dict[str, object]], output_path: Path) -> None:
    """Write extraction results to a CSV file.

    Args:
        results: List of result dictionaries.
        output_path: Path for the output CSV file.
    """
    if not results:
        return

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=_CSV_COLUMNS, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(results)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    print(f"\n{'=' * 50}")
    print("Batch Processing Complete")
    print(f"{'=' * 50}")
    print(f"Total:        {summary['total']}")
    print(f"Successful:   {summary['successful']}")
    print(f"Needs review: {summary['needs_review']}")
    print(f"Failed:       {summary['failed']}")
    print(f"Output:       {output_csv}")


def generate_intelligence(
    data: dict[str, Any],
    config: AppConfig,
    threshold_amount: int | None = None,
    duplicate_hours: float | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Build an intelligence report from exported organization records.

    Args:
        data: Object with ``members``, ``attendance``, ``transactions`` and
            ``documents`` arrays. Missing arrays are treated as empty.
        config: Application configuration.
        threshold_amount: Overrides the large-transaction threshold.
        duplicate_hours: Overrides the duplicate detection window.
        now: Reference instant, defaults to the current time.

    Returns:
        The report as a JSON-ready dict.

    Raises:
        ValueError: If ``data`` is not an object or a record array is not a list.
        pydantic.ValidationError: If any record is malformed.
    """
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object with record arrays")

    arrays: dict[str, list[Any]] = {}
    for key in ("members", "attendance", "transactions", "documents"):
        records = data.get(key) or []
        if not isinstance(records, list):
            raise ValueError(f"'{key}' must be an array")
        arrays[key] = records

    members = [Member.model_validate(m) for m in arrays["members"]]
    attendance = [AttendanceRecord.model_validate(a) for a in arrays["attendance"]]
    transactions = [Transaction.model_validate(t) for t in arrays["transactions"]]
    documents = [Document.model_validate(d) for d in arrays["documents"]]

    overrides: dict[str, Any] = {}
    if threshold_amount is not None:
        overrides["threshold_amount"] = threshold_amount
    if duplicate_hours is not None:
        overrides["duplicate_hours"] = duplicate_hours
    anomaly_config = config.intelligence.anomalies.model_copy(update=overrides)

    engine = IntelligenceEngine(config.intelligence, config.document_risk)
    report = engine.generate(
        members, attendance, transactions, documents, anomaly_config, now
    )
    return asdict(report)


def analyze_documents(paths: list[Path], config: AppConfig) -> dict[str, Any]:
    """Analyze text files for document risk.

    Args:
        paths: Text files; each file name becomes the document id.
        config: Application configuration.

    Returns:
        Per-document analyses and the aggregate summary.
    """
    analyzer = DocumentRiskAnalyzer(config.document_risk)
    documents = [
        Document(id=p.name, content=p.read_text(encoding="utf-8", errors="replace"))
        for p in paths
    ]
    return {
        "documents": [asdict(analyzer.analyze(doc)) for doc in documents],
        "overall": asdict(analyzer.overall(documents)),
    }


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="orgintel",
        description="Receipt extraction and organizational intelligence",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config", type=Path, default=None, help="YAML configuration file"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    single_parser = subparsers.add_parser("extract", help="Extract a single receipt")
    single_parser.add_argument("file", type=Path, help="Receipt image to process")
    single_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    batch_parser = subparsers.add_parser("batch", help="Process a folder of receipts")
    batch_parser.add_argument(
        "input_dir", type=Path, help="Input directory with receipt images"
    )
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    batch_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )

    intel_parser = subparsers.add_parser(
        "intelligence", help="Generate an intelligence report from exported records"
    )
    intel_parser.add_argument("data", type=Path, help="JSON file with record arrays")
    intel_parser.add_argument(
        "--threshold-amount", type=int, help="Large transaction threshold"
    )
    intel_parser.add_argument(
        "--duplicate-hours", type=float, help="Duplicate detection window in hours"
    )
    intel_parser.add_argument(
        "--now",
        type=datetime.fromisoformat,
        help="Reference time as ISO 8601 (default: now)",
    )
    intel_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    risk_parser = subparsers.add_parser(
        "document-risk", help="Analyze text documents for risk"
    )
    risk_parser.add_argument("files", type=Path, nargs="+", help="Text files")
    risk_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    bench_parser = subparsers.add_parser(
        "benchmark", help="Measure extraction accuracy against labelled receipts"
    )
    bench_parser.add_argument("image_dir", type=Path, help="Directory of receipt images")
    bench_parser.add_argument(
        "ground_truth", type=Path, help="Ground truth labels (JSON or CSV)"
    )
    bench_parser.add_argument("-o", "--output", type=Path, help="Report output file")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    config = load_config(args.config)
    setup_logging(config.log_level, config.error_log_path)

    if args.command == "extract":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        _dump(extract_single(args.file, config), args.output)

    elif args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        process_folder(args.input_dir, args.output, config, args.verbose)

    elif args.command == "intelligence":
        if not args.data.exists():
            print(f"Error: {args.data} does not exist", file=sys.stderr)
            sys.exit(1)
        try:
            data = json.loads(args.data.read_text(encoding="utf-8"))
            report = generate_intelligence(
                data, config, args.threshold_amount, args.duplicate_hours, args.now
            )
        except (json.JSONDecodeError, ValidationError, ValueError) as exc:
            print(f"Error: invalid records in {args.data}: {exc}", file=sys.stderr)
            sys.exit(1)
        _dump(report, args.output)

    elif args.command == "document-risk":
        missing = [p for p in args.files if not p.exists()]
        if missing:
            print(f"Error: {missing[0]} does not exist", file=sys.stderr)
            sys.exit(1)
        _dump(analyze_documents(args.files, config), args.output)

    elif args.command == "benchmark":
        if not args.image_dir.is_dir():
            print(f"Error: {args.image_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        if not args.ground_truth.exists():
            print(f"Error: {args.ground_truth} does not exist", file=sys.stderr)
            sys.exit(1)
        evaluator = Evaluator()
        result = evaluator.run(
            ReceiptExtractionPipeline(config),
            args.image_dir,
            load_ground_truth(args.ground_truth),
            config.extraction.review_threshold,
        )
        print(evaluator.generate_report(result, args.output))


if __name__ == "__main__":
    main()
