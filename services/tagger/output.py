"""
Writers for extraction results.

JSON output is an object keyed by the decimal listing ID::

    {"1": ["Python", "SQL"], "2": []}

Parquet output holds one row per listing with an ``id`` (int64) column and a
``tags`` (list<string>) column.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path

import pyarrow as pa
import pyarrow.parquet as pq

from .exceptions import OutputWriteError

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("json", "parquet")

RESULT_SCHEMA = pa.schema(
    [
        pa.field("id", pa.int64(), nullable=False),
        pa.field("tags", pa.list_(pa.string())),
    ]
)


def write_json(result: Mapping[int, Sequence[str]], path: Path | str) -> Path:
    """Serialize a result mapping to JSON, replacing any existing file."""
    out_path = Path(path)
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps({str(key): list(tags) for key, tags in result.items()})
        out_path.write_text(payload, encoding="utf-8")
    except OSError as exc:
        raise OutputWriteError(f"Failed to write {out_path}: {exc}") from exc

    logger.info("Wrote %s listing(s) to %s", len(result), out_path)
    return out_path


def write_parquet(result: Mapping[int, Sequence[str]], path: Path | str) -> Path:
    """Write a result mapping as a two-column Parquet file."""
    out_path = Path(path)
    table = pa.table(
        {
            "id": pa.array(list(result.keys()), type=pa.int64()),
            "tags": pa.array([list(tags) for tags in result.values()], type=pa.list_(pa.string())),
        },
        schema=RESULT_SCHEMA,
    )
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        pq.write_table(table, out_path)
    except (OSError, pa.ArrowException) as exc:
        raise OutputWriteError(f"Failed to write {out_path}: {exc}") from exc

    logger.info("Wrote %s listing(s) to %s", len(result), out_path)
    return out_path


def write_result(
    result: Mapping[int, Sequence[str]],
    path: Path | str,
    output_format: str = "json",
) -> Path:
    if output_format == "json":
        return write_json(result, path)
    if output_format == "parquet":
        return write_parquet(result, path)
    raise ValueError(
        f"Unknown output format {output_format!r}; expected one of {OUTPUT_FORMATS}"
    )
