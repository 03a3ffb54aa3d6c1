from __future__ import annotations

from typing import Any, Dict, List

import pytest

from slp_mapping.core.geography import GeoFeature


def build_sub_district_features() -> List[GeoFeature]:
    return [
        GeoFeature(coarse_name="Colombo", fine_name="Dehiwala", properties={"NAME_1": "Colombo", "NAME_2": "Dehiwala"}),
        GeoFeature(coarse_name="Colombo", fine_name="Kolonnawa", properties={"NAME_1": "Colombo", "NAME_2": "Kolonnawa"}),
        GeoFeature(coarse_name="Kandy", fine_name="Gangawata", properties={"NAME_1": "Kandy", "NAME_2": "Gangawata"}),
    ]


def build_district_features() -> List[GeoFeature]:
    return [
        GeoFeature(coarse_name="Colombo", properties={"NAME_1": "Colombo"}),
        GeoFeature(coarse_name="Kandy", properties={"NAME_1": "Kandy"}),
        GeoFeature(coarse_name="Galle", properties={"NAME_1": "Galle"}),
    ]


def build_records() -> List[Dict[str, Any]]:
    return [
        {"Localidade": "Colombo", "DS": "Dehiwala", "Fluência": "Falantes"},
        {"Localidade": "Colombo", "DS": "Dehiwala", "Fluência": "Semi-falantes"},
        {"Localidade": "Colombo", "DS": "Kolonnawa", "Fluência": "Falantes"},
        {"Localidade": "Kandy", "DS": "Gangawata", "Fluência": "NA"},
        {"Localidade": "Kandy", "DS": "Gangawata"},
    ]


@pytest.fixture
def sub_district_features() -> List[GeoFeature]:
    return build_sub_district_features()


@pytest.fixture
def district_features() -> List[GeoFeature]:
    return build_district_features()


@pytest.fixture
def records() -> List[Dict[str, Any]]:
    return build_records()
