from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from slp_mapping.config import COARSE_NAME_FIELD, FINE_NAME_FIELD


@dataclass(frozen=True)
class GeoFeature:
    """
    One boundary feature from a GeoJSON FeatureCollection.

    Only the two name fields matter to aggregation and matching; properties
    and geometry are carried along untouched for whoever draws the map.
    District-level files have no fine name.
    """
    coarse_name: Optional[str]
    fine_name: Optional[str] = None
    properties: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)
    geometry: Optional[Dict[str, Any]] = field(default=None, compare=False, hash=False)

    @property
    def display_name(self) -> str:
        if self.fine_name:
            return f"{self.coarse_name}, {self.fine_name}"
        return str(self.coarse_name)


def _name_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def feature_from_geojson(
    feature: Dict[str, Any],
    coarse_field: str = COARSE_NAME_FIELD,
    fine_field: str = FINE_NAME_FIELD,
) -> GeoFeature:
    properties = feature.get("properties") or {}
    return GeoFeature(
        coarse_name=_name_or_none(properties.get(coarse_field)),
        fine_name=_name_or_none(properties.get(fine_field)),
        properties=dict(properties),
        geometry=feature.get("geometry"),
    )


def features_from_geojson(
    collection: Dict[str, Any],
    coarse_field: str = COARSE_NAME_FIELD,
    fine_field: str = FINE_NAME_FIELD,
) -> List[GeoFeature]:
    """
    Convert a GeoJSON FeatureCollection dict into GeoFeatures, keeping order.
    """
    if not isinstance(collection, dict):
        raise ValueError(f"Expected a GeoJSON object, got {type(collection).__name__}")

    raw_features = collection.get("features")
    if not isinstance(raw_features, list):
        raise ValueError("GeoJSON object has no 'features' list (is it a FeatureCollection?)")

    return [feature_from_geojson(f, coarse_field, fine_field) for f in raw_features]
