"""Command-line interface for document extraction and verification.

Subcommands:

* ``extract``: pull form fields out of one document image or PDF.
* ``verify``: verify a set of field values with a stand-in verifier.
* ``batch``: extract every document in a folder and export a CSV.
"""

import argparse
import asyncio
import csv
import json
import sys
import time
from pathlib import Path

from src.documents.fields import DocumentType, field_keys, humanize_key
from src.documents.uploads import UploadRejected, check_upload
from src.extraction.hybrid import ExtractionEngine, HybridExtractor
from src.utils.config import load_config
from src.utils.logger import get_logger, setup_logging
from src.validation.rules_engine import FormValidationError
from src.verification.service import (
    VerificationMode,
    VerificationService,
    build_verifier,
)
from src.verification.verifier import VerificationResult, VerificationStatus

logger = get_logger(__name__)

_SUPPORTED_EXTENSIONS = ("*.png", "*.jpg", "*.jpeg", "*.pdf")
_META_COLUMNS = [
    "filename",
    "status",
    "engine",
    "page_count",
    "processing_time_s",
    "overall_confidence",
    "error",
]
_HIDDEN_DETAILS = {"verification_id", "timestamp"}


def _find_documents(input_dir: Path) -> list[Path]:
    """Find all supported document files in a directory, sorted by name."""
    files: list[Path] = []
    for ext in _SUPPORTED_EXTENSIONS:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def _parse_field_args(pairs: list[str]) -> dict[str, str]:
    """Turn ``key=value`` arguments into a dict.

    Raises:
        ValueError: If an argument has no ``=``.
    """
    fields: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            raise ValueError(f"Expected key=value, got: {pair}")
        fields[key.strip()] = value
    return fields


def extract_single(
    file_path: Path,
    document_type: str,
    engine: str | None = None,
    verbose: bool = False,
) -> dict[str, object]:
    """Extract form fields from one document.

    Args:
        file_path: Path to the document file.
        document_type: Document type whose fields to extract.
        engine: Extraction engine, or ``None`` for the configured default.
        verbose: Whether to print OCR progress.

    Returns:
        Dictionary with filename, engine, fields, form and raw_text.
    """
    config = load_config()
    check_upload(file_path.name, None, file_path.stat().st_size, config.uploads)
    extractor = HybridExtractor(config)

    def _progress(percent: int) -> None:
        print(f"Processing document... {percent}%")

    result = extractor.extract(
        file_path,
        document_type,
        engine,
        filename=file_path.name,
        progress=_progress if verbose else None,
    )
    return {
        "filename": file_path.name,
        "document_type": result.document_type,
        "engine": result.engine,
        "fields": {
            f.field_name: {
                "value": f.value,
                "confidence": round(f.confidence, 3),
                "source": f.source,
            }
            for f in result.fields
        },
        "form": result.as_form(),
        "raw_text": result.raw_text,
    }


def process_folder(
    input_dir: Path,
    output_csv: Path,
    document_type: str,
    engine: str | None = None,
    verbose: bool = False,
) -> dict[str, int]:
    """Extract every document in a folder and export the results to CSV.

    Args:
        input_dir: Directory containing document files.
        output_csv: Path for the output CSV file.
        document_type: Document type of every file in the folder.
        engine: Extraction engine, or ``None`` for the configured default.
        verbose: Whether to print per-file progress.

    Returns:
        Summary dict with total, successful, and failed counts.
    """
    config = load_config()
    extractor = HybridExtractor(config)

    files = _find_documents(input_dir)
    if not files:
        logger.warning("No documents found in %s", input_dir)
        return {"total": 0, "successful": 0, "failed": 0}

    logger.info("Found %d documents to process", len(files))

    results: list[dict[str, object]] = []
    successful = 0
    failed = 0

    for i, file_path in enumerate(files, 1):
        if verbose:
            print(f"Processing [{i}/{len(files)}]: {file_path.name}")

        start_time = time.time()
        try:
            check_upload(file_path.name, None, file_path.stat().st_size, config.uploads)
            extraction = extractor.extract(
                file_path, document_type, engine, filename=file_path.name
            )
            row: dict[str, object] = {
                "filename": file_path.name,
                "status": "success",
                "engine": extraction.engine,
                "page_count": extraction.page_count,
                "processing_time_s": round(time.time() - start_time, 2),
                "overall_confidence": round(extraction.overall_confidence, 3),
                "error": None,
            }
            row.update(extraction.as_form())
            results.append(row)
            successful += 1
        except (UploadRejected, ValueError, RuntimeError) as exc:
            logger.error("Failed to process %s: %s", file_path.name, exc)
            results.append(
                {"filename": file_path.name, "status": "failed", "error": str(exc)}
            )
            failed += 1

    _write_csv(results, output_csv, field_keys(document_type))
    logger.info("Results written to %s", output_csv)

    summary = {"total": len(files), "successful": successful, "failed": failed}
    _print_summary(summary, output_csv)
    return summary


def _write_csv(
    results: list[dict[str, object]],
    output_path: Path,
    field_columns: list[str] | None = None,
) -> None:
    """Write extraction rows to CSV, metadata columns first then form fields."""
    if not results:
        return

    all_keys: set[str] = set()
    for r in results:
        all_keys.update(r.keys())

    ordered_fields = [c for c in field_columns or [] if c in all_keys]
    extra = sorted(all_keys - set(_META_COLUMNS) - set(ordered_fields))
    columns = [c for c in _META_COLUMNS if c in all_keys] + ordered_fields + extra

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=columns, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(results)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    """Print batch processing summary to stdout."""
    print(f"\n{'=' * 50}")
    print("Batch Processing Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_csv}")


def verify_fields(
    document_type: str,
    fields: dict[str, str],
    mode: str | None = None,
) -> VerificationResult:
    """Run the verification flow for one set of field values.

    Raises:
        FormValidationError: If a required field is blank.
    """
    config = load_config()
    service = VerificationService(build_verifier(config, mode))
    return asyncio.run(service.verify(document_type, fields))


def _print_verification(result: VerificationResult) -> None:
    """Print a verification result the way the result card shows it."""
    print(f"Verification Result: {result.status.value.upper()}")
    print(result.message)
    if result.status != VerificationStatus.VERIFIED:
        if "error" in result.details:
            print(f"Reason: {result.details['error']}")
        return

    print("\nVerified Details:")
    for key, value in result.details.items():
        if key not in _HIDDEN_DETAILS:
            print(f"  {humanize_key(key)}: {value}")
    print(f"  Verification ID: {result.details['verification_id']}")


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    doc_choices = [d.value for d in DocumentType]
    engine_choices = [e.value for e in ExtractionEngine]

    parser = argparse.ArgumentParser(
        description="Document Verification Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    single_parser = subparsers.add_parser(
        "extract", help="Extract form fields from a document"
    )
    single_parser.add_argument("file", type=Path, help="Document file to process")
    single_parser.add_argument(
        "-t", "--type", choices=doc_choices, required=True, dest="doc_type"
    )
    single_parser.add_argument(
        "--engine", choices=engine_choices, help="Extraction engine"
    )
    single_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")
    single_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show OCR progress"
    )

    verify_parser = subparsers.add_parser("verify", help="Verify document details")
    verify_parser.add_argument(
        "-t", "--type", choices=doc_choices, required=True, dest="doc_type"
    )
    verify_parser.add_argument(
        "-f",
        "--field",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Field value, repeatable (e.g. -f pan_number=ABCDE1234F)",
    )
    verify_parser.add_argument(
        "--mode",
        choices=[m.value for m in VerificationMode],
        help="Verifier to use (default: from config)",
    )

    batch_parser = subparsers.add_parser("batch", help="Process a folder of documents")
    batch_parser.add_argument(
        "input_dir", type=Path, help="Input directory with documents"
    )
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    batch_parser.add_argument(
        "-t", "--type", choices=doc_choices, required=True, dest="doc_type"
    )
    batch_parser.add_argument(
        "--engine", choices=engine_choices, help="Extraction engine"
    )
    batch_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )

    args = parser.parse_args(argv)

    setup_logging()

    if args.command == "extract":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        try:
            result = extract_single(args.file, args.doc_type, args.engine, args.verbose)
        except UploadRejected as exc:
            print(f"{exc.title}: {exc.description}", file=sys.stderr)
            sys.exit(1)
        except (ValueError, RuntimeError) as exc:
            print(f"Error: {exc}", file=sys.stderr)
            sys.exit(1)
        output_str = json.dumps(result, indent=2, ensure_ascii=False)
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(output_str)
            print(f"Output written to {args.output}")
        else:
            print(output_str)
    elif args.command == "verify":
        try:
            fields = _parse_field_args(args.field)
            result = verify_fields(args.doc_type, fields, args.mode)
        except FormValidationError as exc:
            print(f"Validation Error: {exc}", file=sys.stderr)
            sys.exit(1)
        except ValueError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            sys.exit(1)
        _print_verification(result)
        if result.status != VerificationStatus.VERIFIED:
            sys.exit(2)
    elif args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        process_folder(
            args.input_dir, args.output, args.doc_type, args.engine, args.verbose
        )
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
