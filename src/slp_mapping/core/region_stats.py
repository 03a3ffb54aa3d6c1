from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

import pandas as pd

from slp_mapping.core.aggregator import Aggregate

# Fluency classes as they appear in the spreadsheet, in display order
FLUENCY_CATEGORIES: List[str] = ["Falantes", "Semi-falantes", "Não-falantes", "NA"]

FLUENCY_LABELS_EN: Dict[str, str] = {
    "Falantes": "Speakers",
    "Semi-falantes": "Semi-speakers",
    "Não-falantes": "Non-speakers",
    "NA": "NA",
}


def translate(category: str) -> str:
    return FLUENCY_LABELS_EN.get(category, category)


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


@dataclass
class CategoryCount:
    category: str
    label_en: str
    count: int
    percent: int


@dataclass
class RegionSummary:
    district: str
    sub_district: Optional[str]
    total: int
    rows: List[CategoryCount]

    @property
    def title(self) -> str:
        if not self.sub_district:
            return self.district
        return f"{self.district}, {self.sub_district}"


def summarize_region(
    district: str,
    sub_district: Optional[str],
    counts: Mapping[Any, int],
    categories: Sequence[str] = FLUENCY_CATEGORIES,
) -> RegionSummary:
    """
    Per-region statistics shown when a region is picked.

    `total` counts every respondent in the region, including values outside
    `categories`, so the listed percentages may sum to less than 100.
    """
    total = sum(counts.values())
    rows: List[CategoryCount] = []
    for category in categories:
        n = int(counts.get(category, 0) or 0)
        percent = _round_half_up(n / total * 100) if n and total else 0
        rows.append(CategoryCount(category=category, label_en=translate(category), count=n, percent=percent))
    return RegionSummary(district=district, sub_district=sub_district, total=total, rows=rows)


def value_label(column: str, value: Any) -> str:
    """
    Frame column name for one observed value of `column`.

    Observed values are written as "column=value" and missing answers as
    "column (no answer)", so no answer text can land on `region`, `total`
    or the no-answer column.
    """
    if value is None:
        return f"{column} (no answer)"
    return f"{column}={value}"


def aggregate_to_frame(aggregate: Aggregate, column: str) -> pd.DataFrame:
    """
    One row per region, one column per observed value (see value_label),
    plus a `total` column. Sorted by region name.
    """
    rows: List[Dict[str, Any]] = []
    for region, data in aggregate.items():
        row: Dict[str, Any] = {"region": region}
        for value, count in (data.get(column) or {}).items():
            label = value_label(column, value)
            row[label] = row.get(label, 0) + count
        rows.append(row)

    if not rows:
        return pd.DataFrame(columns=["region", "total"])

    df = pd.DataFrame.from_records(rows)
    value_cols = [c for c in df.columns if c != "region"]
    df[value_cols] = df[value_cols].fillna(0).astype(int)
    df["total"] = df[value_cols].sum(axis=1)
    return df.sort_values("region").reset_index(drop=True)
