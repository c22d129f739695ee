"""
Concurrent tag extraction over job-description rows.

Rows are split into contiguous chunks. Every chunk is extracted into a
private mapping by a worker, then the partial mappings are merged in chunk
order. Because the merge follows input order, a listing ID that appears more
than once always resolves to the row that comes last in the input, whichever
executor is used.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Collection, Sequence
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass, field, fields
from typing import Optional

from .exceptions import RowIdentifierInvalid, RowTextMissing
from .patterns import Matcher
from .table_reader import ID_FIELD, TEXT_FIELD, Row

logger = logging.getLogger(__name__)

# Descriptions sometimes embed an escaped newline as the two characters "\" "n".
ESCAPED_NEWLINE = "\\n"

EXECUTORS = ("process", "thread")
DEFAULT_CHUNK_SIZE = 1000

ResultMap = dict[int, list[str]]


@dataclass
class ExtractionStats:
    """Counters describing one extraction pass."""

    rows_total: int = 0
    rows_tagged: int = 0
    rows_skipped_text: int = 0
    rows_skipped_id: int = 0
    duplicate_ids: int = 0
    total_tags: int = 0

    def merge(self, other: "ExtractionStats") -> None:
        for stat in fields(self):
            setattr(self, stat.name, getattr(self, stat.name) + getattr(other, stat.name))

    def as_dict(self) -> dict[str, int]:
        return {stat.name: getattr(self, stat.name) for stat in fields(self)}


@dataclass
class ExtractionResult:
    tags: ResultMap
    stats: ExtractionStats = field(default_factory=ExtractionStats)


def normalize_description(text: str) -> str:
    """Remove literal backslash-n sequences from a description."""
    return text.replace(ESCAPED_NEWLINE, "")


def find_row_tags(
    text: str,
    matcher: Matcher,
    vocabulary_filter: Optional[Collection[str]] = None,
) -> list[str]:
    """
    Find tags in one description.

    Args:
        text: Raw description text.
        matcher: Literal or token matcher.
        vocabulary_filter: When given, only matches contained in it are kept.
            The comparison is exact and case-sensitive.

    Returns:
        Matches in order of appearance, duplicates preserved.
    """
    matches = matcher.find_all(normalize_description(text))
    if vocabulary_filter is None:
        return list(matches)
    return [match for match in matches if match in vocabulary_filter]


def extract_chunk(
    rows: Sequence[Row],
    matcher: Matcher,
    vocabulary_filter: Optional[Collection[str]] = None,
    skip_invalid_ids: bool = False,
) -> ExtractionResult:
    """
    Extract tags for a chunk of rows into a private mapping.

    Rows whose text is missing are skipped. Rows with an invalid identifier
    raise ``RowIdentifierInvalid`` unless ``skip_invalid_ids`` is set.
    """
    result = ExtractionResult(tags={})
    stats = result.stats
    for row in rows:
        stats.rows_total += 1
        try:
            text = row.get_string(TEXT_FIELD)
        except RowTextMissing:
            stats.rows_skipped_text += 1
            continue

        tags = find_row_tags(text, matcher, vocabulary_filter)

        try:
            identifier = row.get_long(ID_FIELD)
        except RowIdentifierInvalid as exc:
            if not skip_invalid_ids:
                raise
            logger.warning("Skipping row with invalid identifier: %s", exc)
            stats.rows_skipped_id += 1
            continue

        if identifier in result.tags:
            stats.duplicate_ids += 1
            stats.total_tags -= len(result.tags[identifier])
        result.tags[identifier] = tags
        stats.total_tags += len(tags)

    stats.rows_tagged = len(result.tags)
    return result


def merge_results(partials: Sequence[ExtractionResult]) -> ExtractionResult:
    """
    Merge per-chunk results in order; later chunks overwrite earlier ones.
    """
    merged = ExtractionResult(tags={})
    for partial in partials:
        merged.stats.merge(partial.stats)
        for identifier, tags in partial.tags.items():
            if identifier in merged.tags:
                merged.stats.duplicate_ids += 1
            merged.tags[identifier] = tags

    merged.stats.rows_tagged = len(merged.tags)
    merged.stats.total_tags = sum(len(tags) for tags in merged.tags.values())
    return merged


def chunk_rows(rows: Sequence[Row], chunk_size: int) -> list[Sequence[Row]]:
    if chunk_size < 1:
        raise ValueError("chunk_size must be positive")
    return [rows[start:start + chunk_size] for start in range(0, len(rows), chunk_size)]


def extract_tags_with_stats(
    rows: Sequence[Row],
    matcher: Matcher,
    vocabulary_filter: Optional[Collection[str]] = None,
    *,
    max_workers: Optional[int] = None,
    executor: str = "process",
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    skip_invalid_ids: bool = False,
) -> ExtractionResult:
    """
    Find tags in every row, in parallel, and report pass statistics.

    Args:
        rows: Rows with the description at ``TEXT_FIELD`` and the listing ID
            at ``ID_FIELD``.
        matcher: Shared, read-only matcher. Must be picklable for the process
            executor.
        vocabulary_filter: Optional set of strings matches must belong to.
        max_workers: Worker count; defaults to the CPU count. ``1`` runs
            inline without an executor.
        executor: ``"process"`` or ``"thread"``.
        chunk_size: Number of rows handed to a worker at a time.
        skip_invalid_ids: Skip rows with an invalid identifier instead of
            aborting the pass.

    Returns:
        ExtractionResult with the ID to tags mapping and pass counters.

    Raises:
        RowIdentifierInvalid: When a row has an invalid identifier and
            ``skip_invalid_ids`` is False.
    """
    if executor not in EXECUTORS:
        raise ValueError(f"Unknown executor {executor!r}; expected one of {EXECUTORS}")
    if vocabulary_filter is not None and not isinstance(vocabulary_filter, (set, frozenset)):
        vocabulary_filter = frozenset(vocabulary_filter)

    chunks = chunk_rows(rows, chunk_size)
    workers = max_workers or os.cpu_count() or 1
    workers = min(workers, len(chunks)) if chunks else 1

    if workers <= 1:
        partials = [
            extract_chunk(chunk, matcher, vocabulary_filter, skip_invalid_ids)
            for chunk in chunks
        ]
    else:
        logger.debug(
            "Extracting %s chunk(s) with %s %s worker(s)", len(chunks), workers, executor
        )
        with _make_executor(executor, workers) as pool:
            futures = [
                pool.submit(extract_chunk, chunk, matcher, vocabulary_filter, skip_invalid_ids)
                for chunk in chunks
            ]
            partials = [future.result() for future in futures]

    result = merge_results(partials)
    stats = result.stats

    if stats.duplicate_ids:
        logger.warning(
            "%s row(s) repeated an existing listing ID; the later row was kept",
            stats.duplicate_ids,
        )
    if stats.rows_skipped_text:
        logger.debug("Skipped %s row(s) without a description", stats.rows_skipped_text)
    logger.info("Total number of tags: %s", stats.total_tags, extra=stats.as_dict())
    return result


def extract_tags(
    rows: Sequence[Row],
    matcher: Matcher,
    vocabulary_filter: Optional[Collection[str]] = None,
    **options,
) -> ResultMap:
    """
    Map every listing ID to the tags found in its description.

    Accepts the same keyword options as ``extract_tags_with_stats``.
    """
    return extract_tags_with_stats(rows, matcher, vocabulary_filter, **options).tags


def _make_executor(kind: str, workers: int) -> Executor:
    if kind == "thread":
        return ThreadPoolExecutor(max_workers=workers)
    return ProcessPoolExecutor(max_workers=workers)
