from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

# ---------------------------------------------------------------------------
# Project paths
# ---------------------------------------------------------------------------

# Root of the project (repo root)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

DATA_DIR = PROJECT_ROOT / "data"          # survey spreadsheet exports
GEOJSON_DIR = PROJECT_ROOT / "geojson"    # GADM boundary files

# ---------------------------------------------------------------------------
# App identity
# ---------------------------------------------------------------------------

APP_NAME = "SLP Mapping: Linguistic Survey Explorer"
APP_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Input sources
#
# Each source may be a local path or an http(s) URL. Override via environment
# variables when the files live elsewhere (e.g. a static file server).
# ---------------------------------------------------------------------------

SAMPLE_DATA_SOURCE = os.getenv("SLP_SAMPLE_DATA", str(DATA_DIR / "df1.csv")).strip()
DISTRICT_GEOJSON_SOURCE = os.getenv(
    "SLP_DISTRICT_GEOJSON",
    str(GEOJSON_DIR / "gadm41_LKA_1.json"),
).strip()
SUB_DISTRICT_GEOJSON_SOURCE = os.getenv(
    "SLP_SUB_DISTRICT_GEOJSON",
    str(GEOJSON_DIR / "gadm41_LKA_2.json"),
).strip()

HTTP_TIMEOUT_SECONDS = int(os.getenv("SLP_HTTP_TIMEOUT_SECONDS", "60"))

# ---------------------------------------------------------------------------
# Survey columns
#
# The spreadsheet headers are in Portuguese:
#   Localidade -> district name
#   DS         -> divisional secretariat (sub-district) name
#   Fluência   -> fluency classification of the respondent
# ---------------------------------------------------------------------------

DISTRICT_COLUMN = "Localidade"
SUB_DISTRICT_COLUMN = "DS"
FLUENCY_COLUMN = "Fluência"
COUNT_COLUMNS: Tuple[str, ...] = (FLUENCY_COLUMN,)

# GADM property keys holding the level-1 (district) and level-2 names
COARSE_NAME_FIELD = "NAME_1"
FINE_NAME_FIELD = "NAME_2"


@dataclass(frozen=True)
class Settings:
    """
    Explicit configuration passed to the loader and the map context builder.

    Defaults come from the module constants above (and thus from the
    environment), but tests and the UI can build their own.
    """
    sample_data_source: str = SAMPLE_DATA_SOURCE
    district_geojson_source: str = DISTRICT_GEOJSON_SOURCE
    sub_district_geojson_source: str = SUB_DISTRICT_GEOJSON_SOURCE

    district_column: str = DISTRICT_COLUMN
    sub_district_column: str = SUB_DISTRICT_COLUMN
    count_columns: Tuple[str, ...] = COUNT_COLUMNS

    coarse_name_field: str = COARSE_NAME_FIELD
    fine_name_field: str = FINE_NAME_FIELD

    http_timeout_seconds: int = HTTP_TIMEOUT_SECONDS


def load_settings() -> Settings:
    return Settings()
