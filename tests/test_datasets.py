from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from promptfoo_scaffold.datasets import read_rows, sample_records, to_test_records, write_test_inputs
from promptfoo_scaffold.errors import ConfigLoadError


@pytest.fixture
def csv_dataset(tmp_path: Path) -> Path:
    path = tmp_path / "questions.csv"
    path.write_text(
        "id,question,context\n"
        "q1,What is 2+2?,arithmetic\n"
        "q2,Capital of France?,geography\n"
        "q3,Boiling point of water?,physics\n",
        encoding="utf-8",
    )
    return path


def test_read_rows_from_csv(csv_dataset: Path):
    columns, rows = read_rows(csv_dataset)
    assert columns == ["id", "question", "context"]
    assert len(rows) == 3
    assert rows[1][1] == "Capital of France?"


def test_read_rows_limit(csv_dataset: Path):
    _, rows = read_rows(csv_dataset, limit=2)
    assert len(rows) == 2


def test_read_rows_missing_file(tmp_path: Path):
    with pytest.raises(ConfigLoadError, match="dataset not found"):
        read_rows(tmp_path / "nope.parquet")


def test_to_test_records_selects_columns():
    records = to_test_records(
        ["id", "question", "score", "flag"],
        [("q1", "Why?", 3, True), ("q2", None, 1.5, False)],
        var_columns=["question", "score", "flag"],
        description_column="id",
    )
    assert records == [
        {"description": "q1", "vars": {"question": "Why?", "score": "3", "flag": "true"}},
        {"description": "q2", "vars": {"question": "", "score": "1.5", "flag": "false"}},
    ]


def test_to_test_records_default_descriptions_and_columns():
    records = to_test_records(["a", "b"], [(1, 2)], name="qa")
    assert records == [{"description": "qa #1", "vars": {"a": "1", "b": "2"}}]


def test_to_test_records_unknown_column():
    with pytest.raises(ConfigLoadError, match="unknown dataset columns: nope"):
        to_test_records(["a"], [(1,)], var_columns=["nope"])


def test_sample_records_is_deterministic():
    records = [{"description": str(i), "vars": {}} for i in range(20)]
    assert sample_records(records, 5) == sample_records(records, 5)
    assert len(sample_records(records, 5)) == 5
    assert sample_records(records, None) is records
    assert sample_records(records, 50) is records


def test_written_file_loads_as_test_inputs(csv_dataset: Path, tmp_path: Path):
    columns, rows = read_rows(csv_dataset)
    out = write_test_inputs(
        to_test_records(columns, rows, ["question"], "id"), tmp_path / "test-inputs" / "qa.yaml"
    )
    data = yaml.safe_load(out.read_text(encoding="utf-8"))
    assert data[0] == {"description": "q1", "vars": {"question": "What is 2+2?"}}
