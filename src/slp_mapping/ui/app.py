from __future__ import annotations

import logging
import time
import traceback
from typing import Optional

import pandas as pd
import streamlit as st

from slp_mapping.config import APP_NAME, APP_VERSION, Settings, load_settings
from slp_mapping.core.data_loader import DataLoaderError, SurveyBundle, timed_load_survey_bundle
from slp_mapping.core.hierarchy import build_region_hierarchy, iter_menu
from slp_mapping.core.map_context import Level, MapContext, build_map_context
from slp_mapping.core.matcher import unmatched
from slp_mapping.core.region_stats import aggregate_to_frame, summarize_region

logger = logging.getLogger(__name__)


@st.cache_resource(show_spinner=False)
def _load_bundle(settings: Settings) -> SurveyBundle:
    bundle, elapsed = timed_load_survey_bundle(settings)
    logger.info("Survey bundle loaded in %0.2fs", elapsed)
    return bundle


def _get_context(bundle: SurveyBundle, settings: Settings) -> MapContext:
    # One context per browser session, so the level toggle is not shared
    if "map_context" not in st.session_state:
        st.session_state["map_context"] = build_map_context(bundle, settings)
    return st.session_state["map_context"]


def _render_level_toggle(context: MapContext) -> None:
    levels = [Level.DISTRICT, Level.SUB_DISTRICT]
    choice = st.radio(
        "Map level",
        options=levels,
        index=levels.index(context.active_level),
        format_func=lambda lvl: lvl.label,
        horizontal=True,
        key="map_level",
    )
    context.set_level(choice)


def _render_region_table(context: MapContext) -> None:
    for column in context.count_columns:
        st.write(f"Counts by {context.active_level.label.lower()}: {column}")
        df = aggregate_to_frame(context.active_aggregate(), column)
        st.dataframe(df, use_container_width=True)

    with_data = sum(1 for _, data in context.features_with_data() if data)
    st.caption(f"{with_data} of {len(context.active_features())} regions have sample data.")


def _render_region_picker(context: MapContext) -> None:
    pairs = context.features_with_data()
    options = [i for i, (_, data) in enumerate(pairs) if data]
    if not options:
        st.info("No region at this level has sample data.")
        return

    idx = st.selectbox(
        "Region",
        options=options,
        format_func=lambda i: pairs[i][0].display_name,
        key=f"region_{context.active_level.value}",
    )
    feature, data = pairs[idx]

    for column in context.count_columns:
        summary = summarize_region(
            district=str(feature.coarse_name),
            sub_district=feature.fine_name,
            counts=data.get(column) or {},
        )
        st.markdown(f"**{summary.title}** ({summary.total} sampled)")
        st.dataframe(
            pd.DataFrame(
                [{"Category": r.label_en, "Count": r.count, "Share (%)": r.percent} for r in summary.rows]
            ),
            use_container_width=True,
            hide_index=True,
        )


def _render_region_menu(context: MapContext) -> None:
    with st.expander("Districts and sub-districts", expanded=False):
        hierarchy = build_region_hierarchy(context.features[Level.SUB_DISTRICT])
        for district, sub_districts in iter_menu(hierarchy):
            st.markdown(f"**{district}**")
            if sub_districts:
                st.write(", ".join(sub_districts))


def _render_audit(context: MapContext) -> None:
    # Computed once per session in run_app; reruns only redraw it
    checks = context.run_checks()
    report = checks.report

    with st.expander("Data consistency audit (developer view)", expanded=False):
        st.write(
            f"Records: {report.record_count}, district total: {report.district_total}, "
            f"sub-district total: {report.sub_district_total}"
        )

        missing = unmatched(checks.matches)
        if missing:
            st.warning(f"{len(missing)} records do not match the boundary data.")
            st.dataframe(pd.DataFrame([m.record for m in missing]), use_container_width=True)

        if report.ok:
            st.success("All consistency checks passed.")
        else:
            st.error(f"{len(report.violations)} consistency check(s) failed.")
            for i, violation in enumerate(report.violations):
                st.text_area(violation.check, value=violation.message, height=180, key=f"violation_{i}")


def run_app(settings: Optional[Settings] = None) -> None:
    settings = settings or load_settings()

    st.set_page_config(page_title=APP_NAME, page_icon="🗺️", layout="wide")
    st.title(APP_NAME)
    st.caption(f"Prototype version {APP_VERSION}")

    t0 = time.perf_counter()
    try:
        with st.spinner("Loading survey data and boundaries..."):
            bundle = _load_bundle(settings)
    except DataLoaderError as err:
        st.error(f"Could not load data: {err}")
        st.text_area("Traceback", value=traceback.format_exc(), height=220)
        return

    context = _get_context(bundle, settings)
    context.run_checks()
    st.caption(f"{len(bundle.records)} samples loaded in {time.perf_counter() - t0:0.2f}s")

    _render_level_toggle(context)

    col1, col2 = st.columns([2, 1])
    with col1:
        _render_region_table(context)
    with col2:
        _render_region_picker(context)

    _render_region_menu(context)
    _render_audit(context)
