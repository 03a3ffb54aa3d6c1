from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from slp_mapping.core.aggregator import Aggregate, aggregate_total, is_missing, normalize_group_key
from slp_mapping.core.diagnostics import DiagnosticSink, logging_sink
from slp_mapping.core.geography import GeoFeature
from slp_mapping.core.paths import update_path

logger = logging.getLogger(__name__)

CROSS_LEVEL_SUMS = "cross_level_sums"
TOTAL_COUNTS = "total_counts"
UNIQUE_SUB_DISTRICT_NAMES = "unique_sub_district_names"


@dataclass
class Violation:
    """
    One failed consistency check.

    `message` is meant for a human fixing the source spreadsheet; `details`
    carries the same facts in structured form for the UI or for tests.
    """
    check: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AuditReport:
    """
    Result of running every consistency check over one loaded data set.

    The audit never blocks the map: callers decide whether to display,
    log or escalate the violations.
    """
    record_count: int
    district_total: int
    sub_district_total: int
    violations: List[Violation]

    @property
    def ok(self) -> bool:
        return not self.violations

    def by_check(self, check: str) -> List[Violation]:
        return [v for v in self.violations if v.check == check]


# ---------------------------------------------------------------------------
# Check 1: district counts equal the sum of their sub-districts
# ---------------------------------------------------------------------------

def _district_totals_from_sub_districts(
    by_sub_district: Aggregate,
    sub_district_features: Sequence[GeoFeature],
    count_columns: Sequence[str],
) -> Aggregate:
    totals: Aggregate = {}
    for feature in sub_district_features:
        if feature.fine_name is None or feature.coarse_name is None:
            continue
        sub_district_data = by_sub_district.get(normalize_group_key(feature.fine_name))
        if not sub_district_data:
            continue

        district_key = normalize_group_key(feature.coarse_name)
        for column in count_columns:
            for value, count in (sub_district_data.get(column) or {}).items():
                update_path(totals, [district_key, column, value], lambda t, c=count: (t or 0) + c)
    return totals


def _raw_rows_for_district(
    records: Sequence[Mapping[str, Any]],
    district_key: str,
    district_column: str,
    sub_district_column: str,
    count_columns: Sequence[str],
) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    for record in records:
        value = record.get(district_column)
        if is_missing(value) or normalize_group_key(value) != district_key:
            continue
        row = {
            district_column: record.get(district_column),
            sub_district_column: record.get(sub_district_column),
        }
        for column in count_columns:
            row[column] = record.get(column)
        rows.append(row)
    return rows


def check_cross_level_sums(
    by_district: Aggregate,
    by_sub_district: Aggregate,
    sub_district_features: Sequence[GeoFeature],
    count_columns: Sequence[str],
    records: Sequence[Mapping[str, Any]] = (),
    district_column: str = "",
    sub_district_column: str = "",
) -> List[Violation]:
    """
    For every (district, column, value) in the district aggregate, the count
    must equal the sum of that (column, value) over the district's
    sub-districts, where ownership comes from the sub-district boundary file.

    A district whose sub-districts have no data is compared against 0.
    """
    derived = _district_totals_from_sub_districts(by_sub_district, sub_district_features, count_columns)

    violations: List[Violation] = []
    for district_key, district_data in by_district.items():
        for column in count_columns:
            for value, count in (district_data.get(column) or {}).items():
                derived_count = derived.get(district_key, {}).get(column, {}).get(value, 0)
                if derived_count == count:
                    continue

                contributions = {
                    f.fine_name: by_sub_district[normalize_group_key(f.fine_name)][column][value]
                    for f in sub_district_features
                    if f.coarse_name is not None
                    and f.fine_name is not None
                    and normalize_group_key(f.coarse_name) == district_key
                    and by_sub_district.get(normalize_group_key(f.fine_name), {}).get(column, {}).get(value)
                }
                raw_rows = _raw_rows_for_district(
                    records, district_key, district_column, sub_district_column, count_columns
                )

                contribution_text = "\n".join(f"  {name}: {n}" for name, n in contributions.items())
                raw_text = "\n".join(json.dumps(r, ensure_ascii=False, default=str) for r in raw_rows)
                message = (
                    f"District {district_key}.{column}.{value} has {count} samples, "
                    f"but subdistrict total is {derived_count}. "
                    f"Individual subdistrict values:\n{contribution_text}\n"
                    f"Raw data:\n{raw_text}"
                )
                violations.append(
                    Violation(
                        check=CROSS_LEVEL_SUMS,
                        message=message,
                        details={
                            "district": district_key,
                            "column": column,
                            "value": value,
                            "district_count": count,
                            "sub_district_total": derived_count,
                            "contributions": contributions,
                            "raw_rows": raw_rows,
                        },
                    )
                )
    return violations


# ---------------------------------------------------------------------------
# Check 2: both levels account for every record
# ---------------------------------------------------------------------------

def check_total_counts(
    by_district: Aggregate,
    by_sub_district: Aggregate,
    record_count: int,
    count_columns: Sequence[str],
) -> List[Violation]:
    """
    Every record contributes exactly one count to each counted column, so for
    each level and each column the counts must sum to record_count. Columns
    are checked separately so an excess in one cannot hide a shortfall in
    another.
    """
    violations: List[Violation] = []
    for column in count_columns:
        district_total = aggregate_total(by_district, [column])
        sub_district_total = aggregate_total(by_sub_district, [column])
        for level, total in (("district", district_total), ("sub_district", sub_district_total)):
            if total == record_count:
                continue
            violations.append(
                Violation(
                    check=TOTAL_COUNTS,
                    message=(
                        f"Total samples by {level.replace('_', '-')} for {column} ({total}) does not match "
                        f"number of samples ({record_count}). "
                        f"District total={district_total}, sub-district total={sub_district_total}."
                    ),
                    details={
                        "level": level,
                        "column": column,
                        "total": total,
                        "district_total": district_total,
                        "sub_district_total": sub_district_total,
                        "expected": record_count,
                    },
                )
            )
    return violations


# ---------------------------------------------------------------------------
# Check 3: sub-district names are unique
# ---------------------------------------------------------------------------

def check_unique_sub_district_names(sub_district_features: Sequence[GeoFeature]) -> List[Violation]:
    names = Counter(
        normalize_group_key(f.fine_name) if f.fine_name is not None else None
        for f in sub_district_features
    )
    feature_count = len(sub_district_features)
    if len(names) == feature_count:
        return []

    duplicates = sorted((str(n) for n, c in names.items() if c > 1))
    return [
        Violation(
            check=UNIQUE_SUB_DISTRICT_NAMES,
            message=(
                f"Subdistrict names are not unique. There are {feature_count} subdistricts, "
                f"but {len(names)} unique names. Duplicated: {', '.join(duplicates)}"
            ),
            details={
                "feature_count": feature_count,
                "unique_count": len(names),
                "duplicates": duplicates,
            },
        )
    ]


def run_consistency_audit(
    records: Sequence[Mapping[str, Any]],
    by_district: Aggregate,
    by_sub_district: Aggregate,
    sub_district_features: Sequence[GeoFeature],
    count_columns: Sequence[str],
    district_column: str,
    sub_district_column: str,
    sink: Optional[DiagnosticSink] = None,
) -> AuditReport:
    """
    Run all three checks and report each violation to `sink`.

    Intended to run once after loading, to catch data-entry or join errors
    before they end up as a misleading map. Never raises on bad data.
    """
    emit = sink if sink is not None else logging_sink(logger, logging.ERROR)

    violations: List[Violation] = []
    violations.extend(
        check_cross_level_sums(
            by_district,
            by_sub_district,
            sub_district_features,
            count_columns,
            records=records,
            district_column=district_column,
            sub_district_column=sub_district_column,
        )
    )
    violations.extend(check_total_counts(by_district, by_sub_district, len(records), count_columns))
    violations.extend(check_unique_sub_district_names(sub_district_features))

    for violation in violations:
        emit(violation.message)

    if not violations:
        logger.info("Consistency audit passed for %d records.", len(records))

    return AuditReport(
        record_count=len(records),
        district_total=aggregate_total(by_district, count_columns),
        sub_district_total=aggregate_total(by_sub_district, count_columns),
        violations=violations,
    )
