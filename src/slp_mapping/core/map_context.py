from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from slp_mapping.config import DISTRICT_COLUMN, SUB_DISTRICT_COLUMN, Settings, load_settings
from slp_mapping.core.aggregator import Aggregate, aggregate, normalize_group_key
from slp_mapping.core.audit import AuditReport, run_consistency_audit
from slp_mapping.core.data_loader import SurveyBundle
from slp_mapping.core.diagnostics import DiagnosticSink
from slp_mapping.core.geography import GeoFeature
from slp_mapping.core.matcher import MatchResult, match_records

logger = logging.getLogger(__name__)


class Level(str, Enum):
    DISTRICT = "district"
    SUB_DISTRICT = "sub_district"

    @property
    def label(self) -> str:
        return "District" if self is Level.DISTRICT else "Sub-district"


@dataclass
class StartupChecks:
    matches: List[MatchResult]
    report: AuditReport


@dataclass
class MapContext:
    """
    What the map is currently showing: the aggregates and boundary features
    for both levels, and which level is active.

    Owned by the application (one per UI session); passed explicitly to
    anything that needs the active selection.
    """
    aggregates: Dict[Level, Aggregate]
    features: Dict[Level, List[GeoFeature]]
    count_columns: Tuple[str, ...]
    active_level: Level = Level.SUB_DISTRICT
    records: List[Dict[str, Any]] = field(default_factory=list)
    district_column: str = DISTRICT_COLUMN
    sub_district_column: str = SUB_DISTRICT_COLUMN
    checks: Optional[StartupChecks] = None

    def set_level(self, level: Level) -> None:
        self.active_level = Level(level)

    def active_aggregate(self) -> Aggregate:
        return self.aggregates[self.active_level]

    def active_features(self) -> List[GeoFeature]:
        return self.features[self.active_level]

    def data_for(self, feature: GeoFeature) -> Optional[Dict[str, Dict[Any, int]]]:
        """
        Aggregate entry for a feature: sub-district features look up by their
        fine name, district features by their coarse name.
        """
        name = feature.fine_name or feature.coarse_name
        if name is None:
            return None
        return self.active_aggregate().get(normalize_group_key(name))

    def features_with_data(self) -> List[Tuple[GeoFeature, Optional[Dict[str, Dict[Any, int]]]]]:
        return [(feature, self.data_for(feature)) for feature in self.active_features()]

    def run_checks(
        self,
        matcher_sink: Optional[DiagnosticSink] = None,
        audit_sink: Optional[DiagnosticSink] = None,
    ) -> StartupChecks:
        """
        Match records to boundaries and run the consistency audit, once per
        context. Later calls return the stored result without reporting the
        same diagnostics again.
        """
        if self.checks is not None:
            return self.checks

        matches = match_records(
            self.records,
            self.district_column,
            self.sub_district_column,
            self.features[Level.DISTRICT],
            self.features[Level.SUB_DISTRICT],
            sink=matcher_sink,
        )
        report = run_consistency_audit(
            self.records,
            self.aggregates[Level.DISTRICT],
            self.aggregates[Level.SUB_DISTRICT],
            self.features[Level.SUB_DISTRICT],
            self.count_columns,
            self.district_column,
            self.sub_district_column,
            sink=audit_sink,
        )
        self.checks = StartupChecks(matches=matches, report=report)
        return self.checks


def build_map_context(
    bundle: SurveyBundle,
    settings: Optional[Settings] = None,
    count_columns: Optional[Sequence[str]] = None,
) -> MapContext:
    settings = settings or load_settings()
    columns = tuple(count_columns or settings.count_columns)

    by_district = aggregate(bundle.records, settings.district_column, columns)
    by_sub_district = aggregate(bundle.records, settings.sub_district_column, columns)
    logger.info(
        "Aggregated %d records into %d districts and %d sub-districts",
        len(bundle.records),
        len(by_district),
        len(by_sub_district),
    )

    return MapContext(
        aggregates={Level.DISTRICT: by_district, Level.SUB_DISTRICT: by_sub_district},
        features={
            Level.DISTRICT: list(bundle.district_features),
            Level.SUB_DISTRICT: list(bundle.sub_district_features),
        },
        count_columns=columns,
        records=list(bundle.records),
        district_column=settings.district_column,
        sub_district_column=settings.sub_district_column,
    )
