"""
Aggregation operators over related-row sets.

Each operator takes an ordered row set and a column name. Numeric parsing is
lenient: values that cannot be read as a finite number are skipped, never
raised on. Empty inputs produce 0 for numeric operators and None for
positional ones.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Sequence

from schema_weaver.core.schema import AggregationOp, Row, as_text

Aggregator = Callable[[Sequence[Row], str], Any]


def is_present(value: Any) -> bool:
    """A value counts when it is not None and not blank after trimming."""
    return value is not None and as_text(value).strip() != ""


def to_number(value: Any) -> float | None:
    """Read a scalar as a finite number, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def numeric_values(rows: Sequence[Row], column: str) -> list[float]:
    values = []
    for row in rows:
        number = to_number(row.get(column))
        if number is not None:
            values.append(number)
    return values


def _tidy(number: float) -> int | float:
    """Render whole-number results as int (30.0 → 30)."""
    return int(number) if number.is_integer() else number


def count(rows: Sequence[Row], column: str) -> int:
    return sum(1 for row in rows if is_present(row.get(column)))


def count_distinct(rows: Sequence[Row], column: str) -> int:
    return len({as_text(row.get(column)) for row in rows if is_present(row.get(column))})


def total(rows: Sequence[Row], column: str) -> int | float:
    return _tidy(math.fsum(numeric_values(rows, column)))


def average(rows: Sequence[Row], column: str) -> int | float:
    values = numeric_values(rows, column)
    if not values:
        return 0
    return _tidy(math.fsum(values) / len(values))


def first(rows: Sequence[Row], column: str) -> Any:
    return rows[0].get(column) if rows else None


def last(rows: Sequence[Row], column: str) -> Any:
    return rows[-1].get(column) if rows else None


AGGREGATORS: dict[AggregationOp, Aggregator] = {
    AggregationOp.COUNT: count,
    AggregationOp.COUNT_DISTINCT: count_distinct,
    AggregationOp.SUM: total,
    AggregationOp.AVERAGE: average,
    AggregationOp.FIRST: first,
    AggregationOp.LAST: last,
}


def aggregate_value(rows: Sequence[Row], column: str, operation: AggregationOp | str | None) -> Any:
    """
    Apply an aggregation operation to rows[column].

    DIRECT and unrecognized operations are not aggregations and yield None.
    """
    op = operation if isinstance(operation, AggregationOp) else AggregationOp.parse(operation)
    aggregator = AGGREGATORS.get(op) if op is not None else None
    if aggregator is None:
        return None
    return aggregator(rows, column)
