#!/usr/bin/env python3
"""Convert a parquet/CSV dataset into a test-inputs/*.yaml file."""

import argparse
from pathlib import Path

from promptfoo_scaffold.datasets import read_rows, sample_records, to_test_records, write_test_inputs
from promptfoo_scaffold.errors import ConfigLoadError

OUT_BASE = Path(__file__).resolve().parent.parent / "test-inputs"


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--source", required=True, help="parquet, CSV or JSON file")
    parser.add_argument("--name", required=True, help="output name, written to test-inputs/<name>.yaml")
    parser.add_argument("--vars", help="comma-separated columns to use as vars (default: all)")
    parser.add_argument("--description-column", help="column holding the test description")
    parser.add_argument("--limit", type=int, help="read at most this many rows")
    parser.add_argument("--sample", type=int, help="randomly keep this many records (seed 42)")
    args = parser.parse_args()

    var_columns = [c.strip() for c in args.vars.split(",")] if args.vars else None
    try:
        columns, rows = read_rows(Path(args.source).expanduser(), args.limit)
        records = to_test_records(columns, rows, var_columns, args.description_column, args.name)
    except ConfigLoadError as e:
        print(f"❌ {args.name}: {e}")
        return 1

    records = sample_records(records, args.sample)
    out = write_test_inputs(records, OUT_BASE / f"{args.name}.yaml")
    print(f"✅ {args.name}: {len(records)} cases → {out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
