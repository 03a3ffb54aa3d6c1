from __future__ import annotations

import json

import pytest

from slp_mapping.config import Settings
from slp_mapping.core import data_loader
from slp_mapping.core.data_loader import (
    DataLoaderError,
    load_features,
    load_records,
    load_survey_bundle,
)

CSV_TEXT = (
    "Localidade,DS,Fluência\n"
    "Colombo,Dehiwala,Falantes\n"
    "Kandy,Gangawata,NA\n"
    "Kandy,Gangawata,\n"
)


def _geojson(*names):
    features = []
    for name_1, name_2 in names:
        properties = {"NAME_1": name_1}
        if name_2 is not None:
            properties["NAME_2"] = name_2
        features.append({"type": "Feature", "properties": properties, "geometry": None})
    return {"type": "FeatureCollection", "features": features}


def write_inputs(tmp_path):
    csv_path = tmp_path / "df1.csv"
    csv_path.write_text(CSV_TEXT, encoding="utf-8")
    district_path = tmp_path / "districts.json"
    district_path.write_text(json.dumps(_geojson(("Colombo", None), ("Kandy", None))), encoding="utf-8")
    sub_path = tmp_path / "sub_districts.json"
    sub_path.write_text(
        json.dumps(_geojson(("Colombo", "Dehiwala"), ("Kandy", "Gangawata"))),
        encoding="utf-8",
    )
    return csv_path, district_path, sub_path


class FakeResponse:
    def __init__(self, text, status_code=200):
        self.text = text
        self.status_code = status_code
        self.encoding = "utf-8"


class FakeSession:
    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append(url)
        return self.responses[url]


def test_literal_na_is_kept_and_empty_cells_are_dropped(tmp_path):
    csv_path, _, _ = write_inputs(tmp_path)

    records = load_records(str(csv_path))

    assert records == [
        {"Localidade": "Colombo", "DS": "Dehiwala", "Fluência": "Falantes"},
        {"Localidade": "Kandy", "DS": "Gangawata", "Fluência": "NA"},
        {"Localidade": "Kandy", "DS": "Gangawata"},
    ]


def test_load_features_reads_name_fields(tmp_path):
    _, _, sub_path = write_inputs(tmp_path)

    features = load_features(str(sub_path))

    assert [(f.coarse_name, f.fine_name) for f in features] == [
        ("Colombo", "Dehiwala"),
        ("Kandy", "Gangawata"),
    ]
    assert features[0].properties["NAME_2"] == "Dehiwala"


def test_missing_file_raises_loader_error(tmp_path):
    with pytest.raises(DataLoaderError, match="Could not read"):
        load_records(str(tmp_path / "nope.csv"))


def test_invalid_geojson_raises_loader_error(tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    not_collection = tmp_path / "point.json"
    not_collection.write_text(json.dumps({"type": "Point"}), encoding="utf-8")

    with pytest.raises(DataLoaderError, match="not valid JSON"):
        load_features(str(bad))
    with pytest.raises(DataLoaderError, match="FeatureCollection"):
        load_features(str(not_collection))


def test_bundle_loads_all_three_sources(tmp_path):
    csv_path, district_path, sub_path = write_inputs(tmp_path)
    settings = Settings(
        sample_data_source=str(csv_path),
        district_geojson_source=str(district_path),
        sub_district_geojson_source=str(sub_path),
    )

    bundle = load_survey_bundle(settings)

    assert len(bundle.records) == 3
    assert [f.coarse_name for f in bundle.district_features] == ["Colombo", "Kandy"]
    assert [f.fine_name for f in bundle.district_features] == [None, None]
    assert [f.fine_name for f in bundle.sub_district_features] == ["Dehiwala", "Gangawata"]


def test_bundle_failure_surfaces_as_loader_error(tmp_path):
    csv_path, district_path, _ = write_inputs(tmp_path)
    settings = Settings(
        sample_data_source=str(csv_path),
        district_geojson_source=str(district_path),
        sub_district_geojson_source=str(tmp_path / "missing.json"),
    )

    with pytest.raises(DataLoaderError):
        load_survey_bundle(settings)


def test_sources_can_be_urls(monkeypatch):
    url = "https://example.org/data/df1.csv"
    session = FakeSession({url: FakeResponse(CSV_TEXT)})
    monkeypatch.setattr(data_loader, "_get_session", lambda: session)

    records = load_records(url)

    assert session.calls == [url]
    assert len(records) == 3


def test_http_error_status_raises(monkeypatch):
    url = "https://example.org/geojson/gadm41_LKA_2.json"
    session = FakeSession({url: FakeResponse("Not Found", status_code=404)})
    monkeypatch.setattr(data_loader, "_get_session", lambda: session)

    with pytest.raises(DataLoaderError, match="status=404"):
        load_features(url)
