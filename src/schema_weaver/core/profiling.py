"""
Column Profiling - infer data types and ratios from raw column values.

Produces the ColumnProfile / TableSchema metadata the relationship detector
scores. Works on in-memory values or a polars DataFrame; reading files and
databases is left to the caller.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Iterable

import polars as pl

from schema_weaver.core.aggregation import to_number
from schema_weaver.core.schema import ColumnProfile, DataType, TableSchema, as_text

DEFAULT_SAMPLE_ROWS = 50
SAMPLE_VALUE_LIMIT = 5
TYPE_MAJORITY = 0.8

_UUID = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$", re.IGNORECASE)
_CURRENCY = re.compile(r"^[$€£]\s?\d+(,\d{3})*(\.\d+)?$")
_BOOLEAN = re.compile(r"^(true|false|yes|no|0|1)$", re.IGNORECASE)


def _is_date_like(value: str) -> bool:
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return False
    return True


def _clean(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return as_text(value).strip()


def infer_data_type(cleaned: list[str]) -> DataType:
    """
    Pick the first type matched by at least 80% of non-empty values.

    Priority: uuid, currency, number, boolean, date, falling back to string.
    """
    if not cleaned:
        return DataType.STRING

    def share(predicate) -> float:
        return sum(1 for v in cleaned if predicate(v)) / len(cleaned)

    if share(_UUID.match) >= TYPE_MAJORITY:
        return DataType.UUID
    if share(_CURRENCY.match) >= TYPE_MAJORITY:
        return DataType.CURRENCY
    if share(lambda v: to_number(v) is not None) >= TYPE_MAJORITY:
        return DataType.NUMBER
    if share(_BOOLEAN.match) >= TYPE_MAJORITY:
        return DataType.BOOLEAN
    if share(_is_date_like) >= TYPE_MAJORITY:
        return DataType.DATE
    return DataType.STRING


def profile_column(name: str, values: Iterable[Any]) -> ColumnProfile:
    """
    Profile one column.

    Blank values count as nulls. uniqueRatio is distinct / non-blank values;
    sampleValues holds the first distinct non-blank values (numeric for
    number columns).
    """
    raw = list(values)
    cleaned = [v for v in (_clean(value) for value in raw) if v]
    total = len(raw) or 1
    data_type = infer_data_type(cleaned)

    distinct = list(dict.fromkeys(cleaned))
    samples: list[Any] = distinct[:SAMPLE_VALUE_LIMIT]
    if data_type is DataType.NUMBER:
        samples = [_numeric_sample(v) for v in samples]

    return ColumnProfile(
        name=name,
        data_type=data_type,
        null_ratio=(len(raw) - len(cleaned)) / total,
        unique_ratio=len(distinct) / len(cleaned) if cleaned else 0.0,
        sample_values=tuple(samples),
    )


def _numeric_sample(value: str) -> Any:
    number = to_number(value)
    if number is None:
        return value
    return int(number) if number.is_integer() else number


def profile_frame(
    name: str,
    df: pl.DataFrame,
    *,
    sample_rows: int = DEFAULT_SAMPLE_ROWS,
    source: str | None = None,
) -> TableSchema:
    """
    Build a TableSchema from a polars DataFrame.

    Args:
        name: Table name (unique within the snapshot)
        df: Table contents
        sample_rows: Number of leading rows kept for output assembly
        source: Optional provenance tag (e.g. "csv", "ddl", "db")
    """
    columns = tuple(profile_column(column, df[column].to_list()) for column in df.columns)
    return TableSchema(
        name=name,
        columns=columns,
        row_count=df.height,
        sample_rows=tuple(df.head(sample_rows).to_dicts()),
        source=source,
    )
