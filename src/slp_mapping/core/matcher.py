from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from slp_mapping.core.aggregator import is_missing, normalize_group_key
from slp_mapping.core.diagnostics import DiagnosticSink, logging_sink
from slp_mapping.core.geography import GeoFeature

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchResult:
    record: Mapping[str, Any]
    district: Optional[GeoFeature]
    sub_district: Optional[GeoFeature]

    @property
    def is_matched(self) -> bool:
        return self.district is not None and self.sub_district is not None


def _record_key(record: Mapping[str, Any], column: str) -> Optional[str]:
    value = record.get(column)
    if is_missing(value):
        return None
    return normalize_group_key(value)


def _first_feature(features: Iterable[GeoFeature], key: Optional[str], attr: str) -> Optional[GeoFeature]:
    if key is None:
        return None
    for feature in features:
        if getattr(feature, attr) == key:
            return feature
    return None


def match_records(
    records: Sequence[Mapping[str, Any]],
    district_column: str,
    sub_district_column: str,
    district_features: Sequence[GeoFeature],
    sub_district_features: Sequence[GeoFeature],
    sink: Optional[DiagnosticSink] = None,
) -> List[MatchResult]:
    """
    Pair every record with its district and sub-district boundary feature.

    Lookup is by normalized name against the feature's coarse name (district)
    or fine name (sub-district). If names repeat, the first feature in the
    given order wins; see check_unique_sub_district_names in audit.py.

    Records without a match at either level keep None for that level and are
    reported to `sink` as one warning; nothing is raised.
    """
    emit = sink if sink is not None else logging_sink(logger, logging.WARNING)

    results: List[MatchResult] = []
    for record in records:
        results.append(
            MatchResult(
                record=record,
                district=_first_feature(
                    district_features, _record_key(record, district_column), "coarse_name"
                ),
                sub_district=_first_feature(
                    sub_district_features, _record_key(record, sub_district_column), "fine_name"
                ),
            )
        )

    missing = unmatched(results)
    if missing:
        lines = [
            json.dumps(
                {
                    district_column: m.record.get(district_column),
                    sub_district_column: m.record.get(sub_district_column),
                    "district_matched": m.district is not None,
                    "sub_district_matched": m.sub_district is not None,
                },
                ensure_ascii=False,
                default=str,
            )
            for m in missing
        ]
        emit(
            f"{len(missing)} of {len(results)} sample records do not match the boundary data:\n"
            + "\n".join(lines)
        )

    return results


def unmatched(results: Iterable[MatchResult]) -> List[MatchResult]:
    return [r for r in results if not r.is_matched]
