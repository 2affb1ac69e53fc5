#!/usr/bin/env python3
"""
Invoice Scoring Pipeline - Main Entry Point.

This is the command-line entry point for the scoring pipeline. It reads
raw OCR extraction results from a JSON file, runs them through the
pipeline and writes the scored results, each with a manual-review
decision.

Usage:
    Command Line:
        python main.py --input raw.json --output scored.json
        python main.py --input raw.json --debug

    Python:
        from main import run_scoring
        results = run_scoring("raw.json")

Author: ML Engineering Team
Version: 1.0.0
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

# Import project modules
from invoice_scoring.config import ConfigurationManager
from invoice_scoring.model import ExtractionResult
from invoice_scoring.pipeline import ExtractionPipeline, ReviewRouter
from invoice_scoring.utils.exceptions import InvalidInputFileError, InvoiceScoringError
from invoice_scoring.utils.helpers import ensure_directory
from invoice_scoring.utils.logger import get_logger, setup_logger_from_config


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        argv: Argument list; defaults to sys.argv[1:].

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="Invoice Field Scoring Pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Score a single extraction result:
        python main.py --input raw.json --output scored.json

    Score a list of results and print them:
        python main.py --input batch.json
        """
    )

    # Input/Output arguments
    parser.add_argument(
        "--input", "-i",
        type=str,
        required=True,
        help="JSON file with one extraction result or a list of them"
    )

    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output JSON file (default: print to stdout)"
    )

    # Processing options
    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to custom configuration file"
    )

    # Logging options
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only log warnings and errors"
    )

    return parser.parse_args(argv)


def initialize_system(args: argparse.Namespace) -> ConfigurationManager:
    """
    Initialize the scoring system with configuration and logging.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Initialized configuration manager.
    """
    # Load configuration
    if args.config:
        ConfigurationManager.reset()
    config = ConfigurationManager(args.config)

    # Setup logging
    if args.debug:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    else:
        level = None
    logger = setup_logger_from_config(level)

    logger.info("=" * 60)
    logger.info("INVOICE FIELD SCORING PIPELINE")
    logger.info("=" * 60)
    logger.info(f"Version: {config.get('project.version', '1.0.0')}")
    logger.info(f"Input: {args.input}")
    logger.info(f"Output: {args.output or 'stdout'}")

    return config


def load_results(input_path: Union[str, Path]) -> List[ExtractionResult]:
    """
    Load raw extraction results from a JSON file.

    Args:
        input_path: File holding a JSON object or a list of objects.

    Returns:
        List of ExtractionResult instances.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        InvalidInputFileError: If the file is not valid extraction JSON.
    """
    path = Path(input_path)
    if not path.is_file():
        raise FileNotFoundError(f"Input file not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidInputFileError(str(path), str(e)) from e

    records = data if isinstance(data, list) else [data]

    results = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise InvalidInputFileError(
                str(path), f"record {index} is a {type(record).__name__}, expected an object"
            )
        try:
            results.append(ExtractionResult.from_dict(record))
        except (AttributeError, TypeError, ValueError) as e:
            raise InvalidInputFileError(str(path), f"record {index}: {e}") from e

    return results


def run_scoring(
    input_path: str,
    output_path: Optional[str] = None,
    config_path: Optional[str] = None
) -> List[Dict[str, Any]]:
    """
    Run the scoring pipeline over a file of extraction results.

    This is the main programmatic entry point for the scoring system.

    Args:
        input_path: Path to the input JSON file.
        output_path: Path for the output JSON file; None to skip writing.
        config_path: Optional custom configuration file path.

    Returns:
        List of scored invoice dictionaries, each with a review decision.

    Example:
        >>> results = run_scoring("raw.json", "scored.json")
        >>> for r in results:
        ...     print(r['invoice_number'], r['needs_review'])
    """
    logger = get_logger(__name__)

    # Initialize configuration
    ConfigurationManager(config_path)

    raw_results = load_results(input_path)
    logger.info(f"Scoring {len(raw_results)} extraction results...")

    pipeline = ExtractionPipeline()
    router = ReviewRouter()

    scored = []
    for raw in raw_results:
        result = pipeline.process(raw)
        decision = router.route(result)

        record = result.to_dict()
        record['needs_review'] = decision.needs_review
        record['review_reasons'] = decision.reasons
        scored.append(record)

        logger.info(
            f"  Scored: Invoice #{result.invoice_number or 'N/A'}, "
            f"Confidence: {result.overall_confidence:.2f}, "
            f"Review: {'yes' if decision.needs_review else 'no'}"
        )

    if output_path:
        output_p = Path(output_path)
        ensure_directory(output_p.parent)
        with open(output_p, 'w', encoding='utf-8') as f:
            json.dump(scored, f, indent=2, ensure_ascii=False)
        logger.info(f"JSON output: {output_p}")

    return scored


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function - entry point for command-line execution.

    Args:
        argv: Argument list; defaults to sys.argv[1:].

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    try:
        # Parse command-line arguments
        args = parse_arguments(argv)

        # Initialize system
        initialize_system(args)
        logger = get_logger(__name__)

        results = run_scoring(
            input_path=args.input,
            output_path=args.output,
            config_path=args.config
        )

        if not args.output:
            print(json.dumps(results, indent=2, ensure_ascii=False))

        review_count = sum(1 for r in results if r['needs_review'])
        logger.info("=" * 60)
        logger.info(
            f"Scoring complete. {len(results)} results, {review_count} need review."
        )
        logger.info("=" * 60)

        return 0

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except InvoiceScoringError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 130

    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if "--debug" in (argv if argv is not None else sys.argv):
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
