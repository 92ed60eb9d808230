"""Turn tabular datasets (parquet, CSV, JSON) into test-input records."""

import random
from pathlib import Path
from typing import Any, Optional

import duckdb
import yaml

from .errors import ConfigLoadError


def read_rows(source: Path, limit: Optional[int] = None) -> tuple[list[str], list[tuple]]:
    if not Path(source).is_file():
        raise ConfigLoadError(f"dataset not found: {source}", source)
    quoted = str(source).replace("'", "''")
    sql = f"SELECT * FROM '{quoted}'"
    if limit:
        sql += f" LIMIT {int(limit)}"
    con = duckdb.connect()
    try:
        cur = con.execute(sql)
        columns = [d[0] for d in cur.description]
        rows = cur.fetchall()
    except duckdb.Error as e:
        raise ConfigLoadError(f"cannot read dataset {source}: {e}", source)
    finally:
        con.close()
    return columns, rows


def _as_var(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


def to_test_records(
    columns: list[str],
    rows: list[tuple],
    var_columns: Optional[list[str]] = None,
    description_column: Optional[str] = None,
    name: str = "case",
) -> list[dict]:
    var_columns = var_columns or [c for c in columns if c != description_column]
    unknown = [c for c in [*var_columns, description_column] if c and c not in columns]
    if unknown:
        raise ConfigLoadError(f"unknown dataset columns: {', '.join(unknown)}")

    records = []
    for i, row in enumerate(rows):
        values = dict(zip(columns, row))
        if description_column:
            description = _as_var(values[description_column])
        else:
            description = f"{name} #{i + 1}"
        records.append(
            {
                "description": description,
                "vars": {c: _as_var(values[c]) for c in var_columns},
            }
        )
    return records


def sample_records(records: list[dict], size: Optional[int], seed: int = 42) -> list[dict]:
    if not size or len(records) <= size:
        return records
    return random.Random(seed).sample(records, size)


def write_test_inputs(records: list[dict], out: Path) -> Path:
    out = Path(out)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(yaml.safe_dump(records, sort_keys=False, allow_unicode=True), encoding="utf-8")
    return out
