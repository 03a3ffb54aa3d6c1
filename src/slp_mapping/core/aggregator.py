from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

import pandas as pd

from slp_mapping.core.paths import update_path

# region -> column -> observed value -> count
Aggregate = Dict[str, Dict[str, Dict[Any, int]]]
Record = Mapping[str, Any]


class MissingKeyError(KeyError):
    """Raised when a record has no value for the column it is grouped by."""

    def __init__(self, column: str, index: int) -> None:
        super().__init__(column)
        self.column = column
        self.index = index

    def __str__(self) -> str:
        return f"Record #{self.index} has no value for grouping column {self.column!r}"


def is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def normalize_group_key(value: Any) -> str:
    """Region names are compared with every whitespace character removed."""
    return "".join(str(value).split())


def aggregate(
    records: Iterable[Record],
    group_by_column: str,
    count_columns: Sequence[str],
) -> Aggregate:
    """
    Group records by `group_by_column` and count the values seen in each of
    `count_columns`.

    Example:
      aggregate(
          [{"region": "A", "col": "x"}, {"region": "A", "col": "y"}, {"region": "B", "col": "x"}],
          "region",
          ["col"],
      )
      -> {"A": {"col": {"x": 1, "y": 1}}, "B": {"col": {"x": 1}}}

    A record without a value in a counted column is still counted, under the
    key None, so "no answer" shows up as its own bucket. A record without a
    value in the grouping column raises MissingKeyError.
    """
    grouped: Aggregate = {}

    for index, record in enumerate(records):
        raw_key = record.get(group_by_column)
        if is_missing(raw_key):
            raise MissingKeyError(group_by_column, index)
        group_key = normalize_group_key(raw_key)

        for column in count_columns:
            value = record.get(column)
            if is_missing(value):
                value = None
            update_path(grouped, [group_key, column, value], lambda count: (count or 0) + 1)

        # A record must register its group even with no counted columns
        grouped.setdefault(group_key, {})

    return grouped


def aggregate_total(aggregate_: Aggregate, columns: Optional[Sequence[str]] = None) -> int:
    total = 0
    for group_data in aggregate_.values():
        for column, counters in group_data.items():
            if columns is not None and column not in columns:
                continue
            total += sum(counters.values())
    return total


def group_size(aggregate_: Aggregate, group: str, column: str) -> int:
    return sum(aggregate_.get(group, {}).get(column, {}).values())
