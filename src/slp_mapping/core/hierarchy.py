from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Sequence, Tuple, Union

from slp_mapping.core.geography import GeoFeature
from slp_mapping.core.paths import set_path


@dataclass(frozen=True)
class Leaf:
    """A single region's GeoJSON properties."""
    properties: Mapping[str, Any]


@dataclass(frozen=True)
class Branch:
    """A district holding its sub-districts, keyed by sub-district name."""
    children: Dict[str, "RegionNode"] = field(default_factory=dict)


RegionNode = Union[Leaf, Branch]


def _to_node(value: Any) -> RegionNode:
    if isinstance(value, Leaf):
        return value
    return Branch({name: _to_node(child) for name, child in value.items()})


def build_region_hierarchy(features: Sequence[GeoFeature]) -> Dict[str, RegionNode]:
    """
    Nest boundary features as district -> sub-district.

    Features without a fine name (district-level files) become a Leaf under
    their district name; sub-district features become Leaf entries inside a
    Branch for their district. A sub-district arriving after a district-level
    Leaf of the same name raises PathError.
    """
    nested: Dict[str, Any] = {}
    for feature in features:
        if feature.coarse_name is None:
            continue
        path = [feature.coarse_name]
        if feature.fine_name:
            path.append(feature.fine_name)
        set_path(nested, path, Leaf(feature.properties))

    return {name: _to_node(value) for name, value in nested.items()}


def iter_menu(hierarchy: Mapping[str, RegionNode]) -> Iterator[Tuple[str, List[str]]]:
    """Yield (district, [sub-district, ...]) in the order the features appeared."""
    for district, node in hierarchy.items():
        if isinstance(node, Branch):
            yield district, list(node.children)
        else:
            yield district, []
