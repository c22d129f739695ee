"""
Pytest configuration and shared fixtures

This file contains test fixtures that can be used across all tests.
Fixtures are reusable components that set up test preconditions.

Learn more: https://docs.pytest.org/en/stable/fixture.html
"""

import json
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pyarrow as pa
import pyarrow.parquet as pq
import pytest

from services.tagger.table_reader import Row, rows_from_records


@pytest.fixture(scope="function")
def sample_vocabulary() -> list[str]:
    """
    Provide a small tag vocabulary.

    Includes a tag with regex metacharacters and a multi-word tag.

    Scope: function (created fresh for each test)

    Returns:
        list[str]: Tags in load order
    """
    return ["Python", "SQL", "Airflow", "C++", "machine learning"]


@pytest.fixture(scope="function")
def sample_rows() -> list[Row]:
    """
    Provide the end-to-end example rows: two valid descriptions and one null.

    Returns:
        list[Row]: Rows with (description, id) fields
    """
    return rows_from_records(
        [
            ("I use Python and SQL daily", 1),
            ("No mention of suspicious words", 2),
            (None, 3),
        ]
    )


@pytest.fixture(scope="function")
def write_table(tmp_path: Path) -> Callable[..., Path]:
    """
    Return a helper that writes a Parquet file into ``tmp_path``.

    The helper takes a column mapping and an optional file name and returns
    the written path.
    """

    def _write(columns: dict[str, Sequence[Any]], name: str = "job_desc.parquet", schema=None) -> Path:
        path = tmp_path / name
        pq.write_table(pa.table(columns, schema=schema), path)
        return path

    return _write


@pytest.fixture(scope="function")
def write_vocabulary(tmp_path: Path) -> Callable[..., Path]:
    """Return a helper that writes a JSON vocabulary file into ``tmp_path``."""

    def _write(tags: Any, name: str = "tags.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(tags), encoding="utf-8")
        return path

    return _write


# Mark tests based on their type for selective running
def pytest_configure(config):
    """
    Register custom pytest markers.

    This allows us to run specific test categories:
    - pytest -m unit        (run only unit tests)
    - pytest -m integration (run only integration tests)
    - pytest -m "not slow"  (skip slow tests)
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test (isolated, fast)"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (reads and writes files)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running (>1 second)"
    )
