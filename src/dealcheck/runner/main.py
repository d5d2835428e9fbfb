"""
CLI main entry point.
"""

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from ..config import Config, ConfigValidationError, create_default_config, load_config
from ..extractors import OcrProjector
from ..schemas.checks import GateResult
from ..schemas.documents import ExtractionInput, FormType, KeyValuePair
from ..verification import (
    ArithmeticChecker,
    CrossDocumentEngine,
    OcrComparator,
    ReviewGate,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_BLOCKED = 2


class DealInputError(ValueError):
    """Raised when a deal or OCR pairs file does not have the expected shape."""

    pass


def setup_logging(verbose: bool = False, level: str = "INFO") -> None:
    """Configure logging."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def create_cli() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="dealcheck",
        description="Map tax-form OCR output, reconcile deal documents and run the review gate",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # map command
    map_parser = subparsers.add_parser(
        "map", help="Project OCR key-value pairs onto canonical fields"
    )
    map_parser.add_argument(
        "--form-type",
        type=str,
        required=True,
        help="Tax form of the document (1040, 1120, 1120S, 1065, K1, ...)",
    )
    map_parser.add_argument(
        "file",
        type=Path,
        help="JSON file with a list of {label, value, confidence, page} pairs",
    )

    # check command
    check_parser = subparsers.add_parser(
        "check", help="Verify a deal and evaluate the review gate"
    )
    check_parser.add_argument(
        "file",
        type=Path,
        help="JSON deal file ({documentRef, extractions: [...]})",
    )

    # init-config command
    init_parser = subparsers.add_parser("init-config", help="Write a default config file")
    init_parser.add_argument(
        "path",
        type=Path,
        nargs="?",
        default=None,
        help="Where to write the file (default: the --config path)",
    )

    return parser


# ---------------------------------------------------------------------------
# Input parsing
# ---------------------------------------------------------------------------


@dataclass
class DealDocument:
    """One document of a deal file."""

    extraction: ExtractionInput
    ocr_pairs: list[KeyValuePair] = field(default_factory=list)
    form_type: Optional[str] = None


def _read_json(path: Path) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def parse_pairs(payload: Any) -> list[KeyValuePair]:
    """A list of pair objects, or {"pairs": [...]}."""
    if isinstance(payload, dict):
        payload = payload.get("pairs")
    if not isinstance(payload, list):
        raise DealInputError("expected a list of key-value pairs")
    pairs = []
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            raise DealInputError(f"pair #{index + 1} is not an object")
        pairs.append(KeyValuePair.from_dict(item))
    return pairs


def parse_deal(payload: Any) -> tuple[Optional[str], list[DealDocument]]:
    """Parse a deal file into (document reference, documents)."""
    if not isinstance(payload, dict):
        raise DealInputError("deal file must contain an object")

    extractions = payload.get("extractions")
    if not isinstance(extractions, list):
        raise DealInputError("deal file needs an 'extractions' list")

    documents = []
    for index, item in enumerate(extractions):
        if not isinstance(item, dict):
            raise DealInputError(f"extraction #{index + 1} is not an object")
        extraction = ExtractionInput.from_dict(item)
        if not extraction.document_type:
            raise DealInputError(f"extraction #{index + 1} has no documentType")
        raw_pairs = item.get("ocrPairs", item.get("ocr_pairs"))
        documents.append(
            DealDocument(
                extraction=extraction,
                ocr_pairs=parse_pairs(raw_pairs) if raw_pairs is not None else [],
                form_type=item.get("formType", item.get("form_type")),
            )
        )

    document_ref = payload.get("documentRef", payload.get("document_ref"))
    return (str(document_ref) if document_ref is not None else None), documents


def verify_deal(
    config: Config,
    documents: list[DealDocument],
    document_ref: Optional[str] = None,
) -> GateResult:
    """Run all three check families over a deal and evaluate the review gate."""
    arithmetic = ArithmeticChecker(config.arithmetic.absolute_tolerance)
    engine = CrossDocumentEngine(absolute_tolerance=config.cross_document.absolute_tolerance)
    comparator = OcrComparator(match_tolerance=config.ocr_comparison.match_tolerance)

    arithmetic_checks = []
    ocr_comparisons = []
    for document in documents:
        extraction = document.extraction
        arithmetic_checks.extend(arithmetic.run(extraction.document_type, extraction.data))
        if document.ocr_pairs:
            form_type = document.form_type or extraction.document_type
            ocr_comparisons.extend(
                comparator.compare(extraction.data, document.ocr_pairs, form_type)
            )

    cross_document_checks = engine.run([d.extraction for d in documents])

    logger.info(
        "Deal %s: %d documents, %d arithmetic, %d cross-document, %d OCR checks",
        document_ref or "-",
        len(documents),
        len(arithmetic_checks),
        len(cross_document_checks),
        len(ocr_comparisons),
    )

    gate = ReviewGate(config.gate.to_tolerances())
    return gate.evaluate(arithmetic_checks, cross_document_checks, ocr_comparisons, document_ref)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def cmd_map(config: Config, form_type: str, path: Path) -> int:
    """Project OCR pairs onto canonical fields and print the result."""
    if FormType.coerce(form_type) is None:
        logger.warning("Unknown form type %r: every pair will stay unmapped", form_type)

    try:
        pairs = parse_pairs(_read_json(path))
    except (OSError, json.JSONDecodeError, DealInputError, TypeError, ValueError) as e:
        print(f"❌ Failed to read {path}: {e}")
        return EXIT_ERROR

    result = OcrProjector().project(form_type, pairs)
    print(json.dumps(result.to_dict(), indent=2))
    return EXIT_OK


def cmd_check(config: Config, path: Path) -> int:
    """Verify a deal file; exit code reflects the gate decision."""
    try:
        document_ref, documents = parse_deal(_read_json(path))
    except (OSError, json.JSONDecodeError, DealInputError, TypeError, ValueError) as e:
        print(f"❌ Failed to read {path}: {e}")
        return EXIT_ERROR

    result = verify_deal(config, documents, document_ref)
    print(json.dumps(result.to_dict(), indent=2))
    return EXIT_OK if result.can_proceed else EXIT_BLOCKED


def cmd_init_config(path: Path) -> int:
    """Write the default configuration file."""
    if path.exists():
        print(f"❌ {path} already exists")
        return EXIT_ERROR

    create_default_config(path)
    print(f"✓ Wrote default config to {path}")
    return EXIT_OK


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_cli()
    parsed = parser.parse_args(args)

    setup_logging(parsed.verbose)

    if not parsed.command:
        parser.print_help()
        return EXIT_ERROR

    if parsed.command == "init-config":
        return cmd_init_config(parsed.path or parsed.config)

    # Load config
    try:
        config = load_config(parsed.config)
    except ConfigValidationError as e:
        print(f"❌ Invalid config: {e}")
        return EXIT_ERROR
    except OSError as e:
        print(f"❌ Failed to load config: {e}")
        return EXIT_ERROR

    if not parsed.verbose:
        setup_logging(level=config.log_level)

    # Route to command
    if parsed.command == "map":
        return cmd_map(config, parsed.form_type, parsed.file)
    elif parsed.command == "check":
        return cmd_check(config, parsed.file)
    else:
        parser.print_help()
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
