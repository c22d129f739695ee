"""
Command-line entry point for the tagger service.

The service scans job descriptions stored in Parquet for known skill and
technology tags and writes a mapping from listing ID to the tags found. Two
passes run over the same rows:

1. Literal pass: exact, case-insensitive, whole-word vocabulary matches.
2. Token pass: every word token, kept only when it is a vocabulary entry
   (case-sensitive).
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from collections.abc import Sequence
from typing import Any, Optional

from dotenv import load_dotenv

from .config import TaggerConfig, load_tagger_config
from .exceptions import TaggerError
from .extractor import EXECUTORS, extract_tags_with_stats
from .output import OUTPUT_FORMATS, write_result
from .patterns import BOUNDARY_MODES, TokenMatcher, build_literal_matcher
from .table_reader import read_rows
from .vocabulary import load_vocabulary

# Load environment variables from .env when available.
load_dotenv()


logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments for the tagger service."""
    parser = argparse.ArgumentParser(
        description="Extract skill tags from job descriptions",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=str,
        help="YAML file with tagger settings (defaults to TAGGER_CONFIG_PATH env var)",
        default=None,
    )
    parser.add_argument("--input", dest="input_path", type=str, help="Parquet file or glob")
    parser.add_argument(
        "--tags", dest="vocabulary_path", type=str, help="JSON array of tag strings"
    )
    parser.add_argument(
        "--output", dest="output_path", type=str, help="Output file for the literal pass"
    )
    parser.add_argument(
        "--token-output",
        dest="token_output_path",
        type=str,
        help="Output file for the token pass; may equal --output to keep only the token pass",
    )
    parser.add_argument("--max-rows", type=int, help="Maximum number of rows to process")
    parser.add_argument("--text-column", type=str, help="Description column name")
    parser.add_argument("--id-column", type=str, help="Listing ID column name")
    parser.add_argument("--workers", dest="max_workers", type=int, help="Worker count")
    parser.add_argument("--executor", choices=EXECUTORS, help="Worker pool type")
    parser.add_argument("--chunk-size", type=int, help="Rows per worker task")
    parser.add_argument(
        "--boundary",
        choices=BOUNDARY_MODES,
        help="Tag boundary mode: 'word' uses \\b, 'token' also bounds tags like C++",
    )
    parser.add_argument("--format", dest="output_format", choices=OUTPUT_FORMATS)
    parser.add_argument(
        "--skip-invalid-ids",
        action="store_true",
        default=None,
        help="Skip rows with an invalid listing ID instead of aborting.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    return parser.parse_args(argv)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def build_config(args: argparse.Namespace) -> TaggerConfig:
    """Merge YAML, environment and CLI settings."""
    config = load_tagger_config(args.config or os.getenv("TAGGER_CONFIG_PATH"))
    overrides = {
        name: getattr(args, name)
        for name in (
            "input_path",
            "vocabulary_path",
            "output_path",
            "token_output_path",
            "max_rows",
            "text_column",
            "id_column",
            "max_workers",
            "executor",
            "chunk_size",
            "boundary",
            "output_format",
            "skip_invalid_ids",
        )
    }
    return config.with_overrides(overrides).validate()


def run_tagger(config: TaggerConfig) -> dict[str, Any]:
    """
    Execute both extraction passes and write their results.

    Args:
        config: Validated tagger configuration.

    Returns:
        Dictionary with counters describing the run.

    Raises:
        TaggerError: On any fatal condition; the error's ``stage`` names the
            failing step.
    """
    started = time.perf_counter()
    stats: dict[str, Any] = {}

    vocabulary = load_vocabulary(config.vocabulary_path)
    literal_matcher = build_literal_matcher(vocabulary.tags, boundary=config.boundary)
    stats["vocabulary_size"] = len(vocabulary)

    table = read_rows(
        config.input_path,
        text_column=config.text_column,
        id_column=config.id_column,
        max_rows=config.max_rows,
    )
    logger.info("Schema %s", table.schema)
    logger.info("num rows: %s", table.num_rows)
    stats["rows_in_input"] = table.num_rows
    stats["rows_processed"] = len(table.rows)

    extract_options = {
        "max_workers": config.max_workers,
        "executor": config.executor,
        "chunk_size": config.chunk_size,
        "skip_invalid_ids": config.skip_invalid_ids,
    }

    # ============================================================
    # PASS 1: Literal tag matching
    # ============================================================
    logger.info("=" * 60)
    logger.info("PASS 1: Literal tag matching")
    logger.info("=" * 60)
    literal = extract_tags_with_stats(table.rows, literal_matcher, **extract_options)
    write_result(literal.tags, config.output_path, config.output_format)
    stats["literal"] = literal.stats.as_dict()

    # ============================================================
    # PASS 2: Token matching restricted to the vocabulary
    # ============================================================
    logger.info("=" * 60)
    logger.info("PASS 2: Token matching filtered by vocabulary")
    logger.info("=" * 60)
    if config.token_output_path == config.output_path:
        logger.warning(
            "Token pass output %s overwrites the literal pass output",
            config.token_output_path,
        )
    token = extract_tags_with_stats(
        table.rows, TokenMatcher(), vocabulary.tag_set, **extract_options
    )
    write_result(token.tags, config.token_output_path, config.output_format)
    stats["token"] = token.stats.as_dict()

    elapsed = time.perf_counter() - started
    stats["elapsed_seconds"] = elapsed

    logger.info("-" * 60)
    logger.info(
        "Tagging Summary: rows_processed=%s, literal_tags=%s, token_tags=%s, "
        "rows_without_description=%s, duplicate_ids=%s",
        stats["rows_processed"],
        literal.stats.total_tags,
        token.stats.total_tags,
        literal.stats.rows_skipped_text,
        literal.stats.duplicate_ids,
    )
    logger.info("Finished in %.3f seconds", elapsed)
    logger.info("=" * 60)

    return stats


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)

    _configure_logging(args.verbose)

    try:
        config = build_config(args)
        run_tagger(config)
        logger.info("Tagger service completed successfully")
        return 0
    except TaggerError as exc:
        logger.error("Tagging failed during %s stage: %s", exc.stage, exc)
        return 2
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130
    except Exception as exc:  # pragma: no cover - defensive logging
        logger.error("Unexpected error: %s", exc, exc_info=True)
        return 2


if __name__ == "__main__":
    sys.exit(main())
