"""
End-to-end tests for the tagger pipeline.

These tests write real Parquet and JSON inputs into a temporary directory and
run both extraction passes through ``run_tagger``.
"""
from __future__ import annotations

import json

import pyarrow.parquet as pq
import pytest

from services.tagger.config import TaggerConfig
from services.tagger.exceptions import RowIdentifierInvalid
from services.tagger.main import run_tagger


def _read_json(path):
    return json.loads(path.read_text(encoding="utf-8"))


@pytest.fixture
def job_table(write_table):
    return write_table(
        {
            "description": [
                "I use Python and SQL daily",
                "No mention of suspicious words",
                None,
                "python, sql and Apache\\nAirflow",
                "Modern C++11 and Airflow",
            ],
            "id": [1, 2, 3, 4, 5],
        }
    )


def _config(tmp_path, job_table, vocabulary_path, **overrides) -> TaggerConfig:
    values = {
        "input_path": str(job_table),
        "vocabulary_path": str(vocabulary_path),
        "output_path": str(tmp_path / "job_tags.json"),
        "token_output_path": str(tmp_path / "job_tokens.json"),
        "max_workers": 1,
    }
    values.update(overrides)
    return TaggerConfig(**values).validate()


@pytest.mark.integration
def test_pipeline_writes_literal_and_token_results(tmp_path, job_table, write_vocabulary) -> None:
    vocabulary = write_vocabulary(["Python", "SQL", "ApacheAirflow", "Airflow", "C++"])

    stats = run_tagger(_config(tmp_path, job_table, vocabulary))

    assert _read_json(tmp_path / "job_tags.json") == {
        "1": ["Python", "SQL"],
        "2": [],
        "4": ["python", "sql", "ApacheAirflow"],
        "5": ["C++", "Airflow"],
    }
    assert _read_json(tmp_path / "job_tokens.json") == {
        "1": ["Python", "SQL"],
        "2": [],
        "4": ["ApacheAirflow"],
        "5": ["Airflow"],
    }
    assert stats["rows_processed"] == 5
    assert stats["literal"]["rows_skipped_text"] == 1
    assert stats["literal"]["total_tags"] == 7
    assert stats["token"]["total_tags"] == 4


@pytest.mark.integration
def test_same_output_path_keeps_token_pass(tmp_path, job_table, write_vocabulary) -> None:
    vocabulary = write_vocabulary(["Python", "SQL"])
    shared = str(tmp_path / "job_tags.json")

    run_tagger(
        _config(tmp_path, job_table, vocabulary, output_path=shared, token_output_path=shared)
    )

    assert _read_json(tmp_path / "job_tags.json") == {
        "1": ["Python", "SQL"],
        "2": [],
        "4": [],
        "5": [],
    }


@pytest.mark.integration
def test_max_rows_truncates_input(tmp_path, job_table, write_vocabulary) -> None:
    vocabulary = write_vocabulary(["Python", "SQL"])

    stats = run_tagger(_config(tmp_path, job_table, vocabulary, max_rows=2))

    assert _read_json(tmp_path / "job_tags.json") == {"1": ["Python", "SQL"], "2": []}
    assert stats["rows_in_input"] == 5
    assert stats["rows_processed"] == 2


@pytest.mark.integration
def test_token_boundary_and_parquet_output(tmp_path, write_table, write_vocabulary) -> None:
    table = write_table({"description": ["Needs C++ experience"], "id": [9]})
    vocabulary = write_vocabulary(["C++"])

    run_tagger(
        _config(
            tmp_path,
            table,
            vocabulary,
            boundary="token",
            output_format="parquet",
            output_path=str(tmp_path / "job_tags.parquet"),
            token_output_path=str(tmp_path / "job_tokens.parquet"),
        )
    )

    literal = pq.read_table(tmp_path / "job_tags.parquet").to_pylist()
    token = pq.read_table(tmp_path / "job_tokens.parquet").to_pylist()
    assert literal == [{"id": 9, "tags": ["C++"]}]
    assert token == [{"id": 9, "tags": []}]


@pytest.mark.integration
def test_null_identifier_aborts_run(tmp_path, write_table, write_vocabulary) -> None:
    table = write_table({"description": ["Python", "SQL"], "id": [1, None]})
    vocabulary = write_vocabulary(["Python", "SQL"])

    with pytest.raises(RowIdentifierInvalid):
        run_tagger(_config(tmp_path, table, vocabulary))

    skipped = run_tagger(_config(tmp_path, table, vocabulary, skip_invalid_ids=True))
    assert skipped["literal"]["rows_skipped_id"] == 1
    assert _read_json(tmp_path / "job_tags.json") == {"1": ["Python"]}


@pytest.mark.integration
@pytest.mark.slow
def test_process_pool_run_matches_inline_run(tmp_path, job_table, write_vocabulary) -> None:
    vocabulary = write_vocabulary(["Python", "SQL", "Airflow"])

    run_tagger(_config(tmp_path, job_table, vocabulary))
    inline = _read_json(tmp_path / "job_tags.json")

    run_tagger(
        _config(tmp_path, job_table, vocabulary, max_workers=2, chunk_size=2, executor="process")
    )

    assert _read_json(tmp_path / "job_tags.json") == inline
