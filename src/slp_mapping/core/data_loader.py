from __future__ import annotations

import io
import json
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from slp_mapping.config import (
    COARSE_NAME_FIELD,
    FINE_NAME_FIELD,
    HTTP_TIMEOUT_SECONDS,
    Settings,
    load_settings,
)
from slp_mapping.core.geography import GeoFeature, features_from_geojson

logger = logging.getLogger(__name__)


class DataLoaderError(Exception):
    """Raised when a survey or boundary source cannot be read or parsed."""


@dataclass
class SurveyBundle:
    records: List[Dict[str, Any]]
    district_features: List[GeoFeature]
    sub_district_features: List[GeoFeature]


def _build_retry_session() -> requests.Session:
    """
    Build a requests Session with conservative retries.
    Static file hosts can be slow or transiently flaky.
    """
    session = requests.Session()

    retry = Retry(
        total=5,
        connect=5,
        read=5,
        status=5,
        backoff_factor=0.6,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset({"GET"}),
        raise_on_status=False,
    )

    adapter = HTTPAdapter(max_retries=retry, pool_connections=10, pool_maxsize=10)
    session.mount("https://", adapter)
    session.mount("http://", adapter)

    return session


_SESSION: Optional[requests.Session] = None


def _get_session() -> requests.Session:
    global _SESSION
    if _SESSION is None:
        _SESSION = _build_retry_session()
    return _SESSION


def _is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def _read_text(source: str, timeout_seconds: int = HTTP_TIMEOUT_SECONDS) -> str:
    """Read a local file or an http(s) URL as UTF-8 text."""
    if _is_url(source):
        try:
            resp = _get_session().get(source, timeout=timeout_seconds)
        except requests.RequestException as exc:
            raise DataLoaderError(f"HTTP error while fetching {source}: {exc}") from exc
        if resp.status_code != 200:
            preview = (resp.text or "")[:200]
            raise DataLoaderError(f"Fetching {source} returned status={resp.status_code}. Preview: {preview}")
        resp.encoding = resp.encoding or "utf-8"
        return resp.text

    path = Path(source)
    try:
        return path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise DataLoaderError(f"Could not read {path}: {exc}") from exc


# ---------------------------------------------------------------------------
# Survey spreadsheet
# ---------------------------------------------------------------------------

def records_from_frame(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """
    Turn a DataFrame into record dicts, leaving out empty cells entirely.
    A missing answer is then an absent key, not an empty string.
    """
    records: List[Dict[str, Any]] = []
    for row in df.to_dict(orient="records"):
        records.append({k: v for k, v in row.items() if not pd.isna(v)})
    return records


def load_records(source: str, timeout_seconds: int = HTTP_TIMEOUT_SECONDS) -> List[Dict[str, Any]]:
    """
    Load the survey CSV.

    Every cell is read as text. Only empty cells count as missing: the survey
    uses a literal "NA" fluency class, which pandas would otherwise turn into
    NaN.
    """
    text = _read_text(source, timeout_seconds)
    try:
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            na_values=[""],
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise DataLoaderError(f"Could not parse survey CSV {source}: {exc}") from exc

    records = records_from_frame(df)
    logger.info("Loaded %d sample records (%d columns) from %s", len(records), df.shape[1], source)
    return records


# ---------------------------------------------------------------------------
# Boundary files
# ---------------------------------------------------------------------------

def load_features(
    source: str,
    coarse_field: str = COARSE_NAME_FIELD,
    fine_field: str = FINE_NAME_FIELD,
    timeout_seconds: int = HTTP_TIMEOUT_SECONDS,
) -> List[GeoFeature]:
    text = _read_text(source, timeout_seconds)
    try:
        collection = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DataLoaderError(f"Boundary file {source} is not valid JSON: {exc}") from exc

    try:
        features = features_from_geojson(collection, coarse_field, fine_field)
    except ValueError as exc:
        raise DataLoaderError(f"Boundary file {source}: {exc}") from exc

    logger.info("Loaded %d boundary features from %s", len(features), source)
    return features


def load_survey_bundle(settings: Optional[Settings] = None) -> SurveyBundle:
    """
    Load the survey CSV and both boundary files concurrently.

    Returns only once all three are in memory; the first failure is re-raised
    as DataLoaderError.
    """
    settings = settings or load_settings()
    timeout = settings.http_timeout_seconds

    with ThreadPoolExecutor(max_workers=3) as executor:
        records_future = executor.submit(load_records, settings.sample_data_source, timeout)
        districts_future = executor.submit(
            load_features,
            settings.district_geojson_source,
            settings.coarse_name_field,
            settings.fine_name_field,
            timeout,
        )
        sub_districts_future = executor.submit(
            load_features,
            settings.sub_district_geojson_source,
            settings.coarse_name_field,
            settings.fine_name_field,
            timeout,
        )

        return SurveyBundle(
            records=records_future.result(),
            district_features=districts_future.result(),
            sub_district_features=sub_districts_future.result(),
        )


def timed_load_survey_bundle(settings: Optional[Settings] = None) -> Tuple[SurveyBundle, float]:
    """
    Convenience helper for UI timing logs.
    """
    t0 = time.perf_counter()
    bundle = load_survey_bundle(settings)
    return bundle, (time.perf_counter() - t0)
