import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from .config import DEFAULT_STORAGE_PATH, LOG_FORMAT, LOG_LEVEL
from .exceptions import DocumentLoadError, OrderExtractorError
from .models.record import ExtractionRecord
from .processing.batch_processor import BatchExtractionProcessor
from .processing.extraction_service import ExtractionResult, create_default_service
from .utils.document_loader import load_text
from .utils.statistics import calculate_extraction_statistics

logger = logging.getLogger(__name__)


def print_separator():
    print("=" * 80)


def print_extraction_result(name: str, result: ExtractionResult) -> None:
    """Pretty print the result for a document."""
    record = result.record
    print(f"\nFile: {name}")
    print(f"Format: {result.format_id}")
    if result.matched_indicators:
        print(f"Matched indicators: {', '.join(result.matched_indicators)}")
    print(f"Method: {record.extraction_method.display_name}"
          f"{' (escalated)' if result.escalated else ''}")
    print(f"Quality: {result.quality.quality} ({result.quality.level.value})")
    if record.confidence:
        print(f"Confidence: {record.confidence}")

    for key, value in record.to_field_dict().items():
        if value not in ("", 0, 0.0):
            print(f"  {key}: {value}")

    if result.quality.missing_fields:
        print(f"Missing: {', '.join(result.quality.missing_fields)}")
    if result.error:
        print(f"ERROR: {result.error}")


def cmd_extract(args: argparse.Namespace) -> int:
    context = {"partner_hint": args.hint} if args.hint else None

    path = Path(args.path)
    files = sorted(path.glob("*.txt")) if path.is_dir() else [path]
    if not files:
        print(f"No .txt files found in {path}")
        return 1

    documents = []
    for file in files:
        try:
            documents.append((file.name, load_text(file)))
        except DocumentLoadError as e:
            print(f"Skipping {file.name}: {e}")

    with create_default_service(Path(args.db)) as service:
        processor = BatchExtractionProcessor(service, num_workers=args.workers)
        results = processor.process_documents(documents, context=context, by_page=args.pages)

    if args.json:
        print(json.dumps(
            [{"document": r.document_id, "error": r.error,
              **(r.result.to_dict() if r.result else {})} for r in results],
            ensure_ascii=False, indent=2,
        ))
        return 0

    for batch_result in results:
        print_separator()
        if batch_result.result:
            print_extraction_result(batch_result.document_id or "", batch_result.result)
        else:
            print(f"Error processing {batch_result.document_id}: {batch_result.error}")

    print_separator()
    print("\nSUMMARY")
    print("-------")
    print(calculate_extraction_statistics(results).to_display_string())
    return 0


def cmd_learn(args: argparse.Namespace) -> int:
    text = load_text(args.path)
    with open(args.data, encoding="utf-8") as f:
        corrected = ExtractionRecord.from_mapping(json.load(f))

    with create_default_service(Path(args.db)) as service:
        entry = service.record_correction(text, corrected, feedback_type=args.feedback,
                                          document_id=Path(args.path).name)
        print(f"Stored learning entry {entry.id} ({entry.feedback_type.value})")

        for field_name, patterns in service.propose_patterns(text, corrected).items():
            for pattern in patterns:
                print(f"  proposed {field_name}: {pattern.label} -> {pattern.pattern}")
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    with create_default_service(Path(args.db)) as service:
        print(json.dumps(service.learning_store.stats().to_dict(), indent=2))
    return 0


def cmd_formats(args: argparse.Namespace) -> int:
    with create_default_service(Path(args.db)) as service:
        for fmt in service.registry.all():
            pattern_count = sum(len(p) for p in fmt.field_patterns.values())
            print(f"{fmt.id:<25} priority {fmt.priority:>3}  "
                  f"{len(fmt.indicators)} indicators  {pattern_count} patterns  {fmt.name}")
    return 0


def cmd_reset_learning(args: argparse.Namespace) -> int:
    with create_default_service(Path(args.db)) as service:
        service.learning_store.reset()
    print("Learning history cleared")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Extract order fields from partner documents")
    parser.add_argument("--db", type=str, default=str(DEFAULT_STORAGE_PATH),
                        help="SQLite file holding learning history and custom formats")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract = subparsers.add_parser("extract", help="Extract a text file or a folder of .txt files")
    extract.add_argument("path", type=str)
    extract.add_argument("--hint", type=str, help="Known partner format id")
    extract.add_argument("--workers", type=int, default=None)
    extract.add_argument("--json", action="store_true", help="Print results as JSON")
    extract.add_argument("--pages", action="store_true",
                         help="Treat each form-feed separated page as its own order")
    extract.set_defaults(func=cmd_extract)

    learn = subparsers.add_parser("learn", help="Record a corrected extraction")
    learn.add_argument("path", type=str, help="Document text file")
    learn.add_argument("--data", type=str, required=True, help="JSON file with the correct fields")
    learn.add_argument("--feedback", choices=["correction", "confirmation"], default="correction")
    learn.set_defaults(func=cmd_learn)

    stats = subparsers.add_parser("stats", help="Show learning statistics")
    stats.set_defaults(func=cmd_stats)

    formats = subparsers.add_parser("formats", help="List registered formats")
    formats.set_defaults(func=cmd_formats)

    reset = subparsers.add_parser("reset-learning", help="Clear the learning history")
    reset.set_defaults(func=cmd_reset_learning)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the order extractor command line."""
    load_dotenv()

    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else LOG_LEVEL,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )

    # Suppress HTTP request logging from OpenAI/httpx
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

    try:
        return args.func(args)
    except (OrderExtractorError, OSError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
