from __future__ import annotations

import pytest

from slp_mapping.config import Settings
from slp_mapping.core.audit import TOTAL_COUNTS
from slp_mapping.core.data_loader import SurveyBundle
from slp_mapping.core.diagnostics import CollectingSink
from slp_mapping.core.map_context import Level, build_map_context


@pytest.fixture
def context(records, district_features, sub_district_features):
    bundle = SurveyBundle(
        records=records,
        district_features=district_features,
        sub_district_features=sub_district_features,
    )
    return build_map_context(bundle, Settings())


def test_starts_on_sub_district_level(context):
    assert context.active_level is Level.SUB_DISTRICT
    assert set(context.active_aggregate()) == {"Dehiwala", "Kolonnawa", "Gangawata"}
    assert context.count_columns == ("Fluência",)


def test_sub_district_features_pick_data_by_fine_name(context):
    pairs = dict((f.fine_name, data) for f, data in context.features_with_data())

    assert pairs["Dehiwala"] == {"Fluência": {"Falantes": 1, "Semi-falantes": 1}}
    assert pairs["Kolonnawa"] == {"Fluência": {"Falantes": 1}}


def test_toggle_to_district_level(context):
    context.set_level(Level.DISTRICT)

    pairs = dict((f.coarse_name, data) for f, data in context.features_with_data())
    assert pairs["Colombo"] == {"Fluência": {"Falantes": 2, "Semi-falantes": 1}}
    assert pairs["Galle"] is None
    assert len(context.active_features()) == 3


def test_level_accepts_plain_values(context):
    context.set_level("district")

    assert context.active_level is Level.DISTRICT
    assert Level.DISTRICT.label == "District"


def test_checks_on_consistent_data_are_clean(context):
    matcher_sink, audit_sink = CollectingSink(), CollectingSink()

    checks = context.run_checks(matcher_sink=matcher_sink, audit_sink=audit_sink)

    assert checks.report.ok
    assert checks.report.record_count == 5
    assert all(m.is_matched for m in checks.matches)
    assert matcher_sink.messages == []
    assert audit_sink.messages == []


def test_checks_run_once_per_context(context):
    # Aggregates were built from five records; drop one so the totals disagree
    context.records.pop()
    sink = CollectingSink()

    first = context.run_checks(audit_sink=sink)
    second = context.run_checks(audit_sink=sink)

    assert second is first
    assert len(first.report.by_check(TOTAL_COUNTS)) == 2
    assert len(sink) == 2
    assert context.checks is first
