"""
Parquet table reader for job descriptions.

Rows only carry the two columns the tagger needs, in a fixed order:
field ``TEXT_FIELD`` is the description and field ``ID_FIELD`` the listing
identifier.
"""
from __future__ import annotations

import glob
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import pyarrow as pa
import pyarrow.parquet as pq

from .exceptions import RowIdentifierInvalid, RowTextMissing, TableReadError

logger = logging.getLogger(__name__)

TEXT_FIELD = 0
ID_FIELD = 1

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


@dataclass(frozen=True)
class Row:
    """Read-only record with typed positional accessors."""

    values: tuple[Any, ...]

    def get_string(self, index: int) -> str:
        value = self._get(index, RowTextMissing)
        if not isinstance(value, str):
            raise RowTextMissing(
                f"Field {index} is {type(value).__name__}, expected string"
            )
        return value

    def get_long(self, index: int) -> int:
        value = self._get(index, RowIdentifierInvalid)
        if isinstance(value, bool) or not isinstance(value, int):
            raise RowIdentifierInvalid(
                f"Field {index} is {type(value).__name__}, expected 64-bit integer"
            )
        if not INT64_MIN <= value <= INT64_MAX:
            raise RowIdentifierInvalid(
                f"Field {index} value {value} does not fit in a 64-bit integer"
            )
        return value

    def _get(self, index: int, error: type[Exception]) -> Any:
        try:
            return self.values[index]
        except IndexError as exc:
            raise error(f"Row has no field {index}") from exc


@dataclass(frozen=True)
class TableRows:
    """Rows read from one or more Parquet files plus the file schema."""

    rows: list[Row]
    schema: pa.Schema
    num_rows: int


def resolve_input_paths(path_or_glob: Path | str) -> list[Path]:
    """
    Expand a path or glob pattern into a sorted list of files.

    Raises:
        TableReadError: If nothing matches.
    """
    pattern = str(path_or_glob)
    if any(char in pattern for char in "*?["):
        paths = sorted(Path(p) for p in glob.glob(pattern))
        if not paths:
            raise TableReadError(f"No input files match {pattern}")
        return paths

    path = Path(pattern)
    if not path.exists():
        raise TableReadError(f"Input table not found: {path}")
    return [path]


def read_rows(
    path_or_glob: Path | str,
    *,
    text_column: str = "description",
    id_column: str = "id",
    max_rows: Optional[int] = None,
) -> TableRows:
    """
    Read the description and identifier columns of one or more Parquet files.

    Args:
        path_or_glob: A Parquet file or a glob matching several files. Matched
            files are concatenated in sorted path order.
        text_column: Name of the description column.
        id_column: Name of the identifier column.
        max_rows: Keep only the first ``max_rows`` rows when set.

    Returns:
        TableRows with rows truncated to ``max_rows``, the schema of the first
        file and the total number of rows in the input.

    Raises:
        TableReadError: If a file is missing, corrupt, or lacks a column.
    """
    paths = resolve_input_paths(path_or_glob)
    columns = [text_column, id_column]

    tables: list[pa.Table] = []
    schema: Optional[pa.Schema] = None
    for path in paths:
        try:
            file_schema = pq.read_schema(path)
            missing = [name for name in columns if file_schema.get_field_index(name) < 0]
            if missing:
                raise TableReadError(
                    f"Input table {path} is missing column(s): {', '.join(missing)}"
                )
            tables.append(pq.read_table(path, columns=columns))
        except TableReadError:
            raise
        except (OSError, pa.ArrowException) as exc:
            raise TableReadError(f"Failed to read Parquet file {path}: {exc}") from exc
        if schema is None:
            schema = file_schema

    try:
        table = tables[0] if len(tables) == 1 else pa.concat_tables(tables)
    except pa.ArrowException as exc:
        raise TableReadError(f"Input files have incompatible schemas: {exc}") from exc

    num_rows = table.num_rows
    if max_rows is not None:
        table = table.slice(0, max_rows)

    rows = _to_rows(table, columns)
    logger.info(
        "Read %s row(s) from %s file(s); kept %s",
        num_rows,
        len(paths),
        len(rows),
        extra={"max_rows": max_rows},
    )
    return TableRows(rows=rows, schema=schema, num_rows=num_rows)


def rows_from_records(
    records: Sequence[tuple[Any, Any]],
) -> list[Row]:
    """Build rows from ``(description, id)`` pairs held in memory."""
    return [Row(values=(text, identifier)) for text, identifier in records]


def _to_rows(table: pa.Table, columns: Sequence[str]) -> list[Row]:
    texts = table.column(columns[TEXT_FIELD]).to_pylist()
    identifiers = table.column(columns[ID_FIELD]).to_pylist()
    return [Row(values=(text, identifier)) for text, identifier in zip(texts, identifiers)]
