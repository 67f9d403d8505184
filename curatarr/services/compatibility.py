"""
Property compatibility between two media server applications.

Driven entirely by the property catalogs. A source property is:

- compatible when the target has a property with the same ``(id, name)``;
- remapped when the target has a property with the same ``name`` at another
  ID, or when the property's ``fallback_name`` exists in the target;
- incompatible otherwise.

Adding a media server only needs a new catalog, never changes here.
"""
from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import Iterable, Mapping

from curatarr.services.property_catalog import PropertyDefinition, get_catalog


@dataclass(frozen=True)
class PropertyCompatibility:
    # Source property IDs with no equivalent in the target
    incompatible: frozenset = frozenset()
    # Source property ID -> target property ID
    remapping: Mapping[int, int] = field(default_factory=lambda: MappingProxyType({}))

    def map_property(self, property_id: int) -> int:
        return self.remapping.get(property_id, property_id)


def compute_property_compatibility(
    source_props: Iterable[PropertyDefinition],
    target_props: Iterable[PropertyDefinition],
) -> PropertyCompatibility:
    """Compare two property catalogs."""
    target_id_to_name: dict[int, str] = {}
    target_name_to_id: dict[str, int] = {}
    for prop in target_props:
        target_id_to_name[prop.id] = prop.name
        target_name_to_id.setdefault(prop.name, prop.id)

    incompatible = set()
    remapping = {}

    for prop in source_props:
        if target_id_to_name.get(prop.id) == prop.name:
            continue

        if prop.name in target_name_to_id:
            remapping[prop.id] = target_name_to_id[prop.name]
            continue

        if prop.fallback_name and prop.fallback_name in target_name_to_id:
            remapping[prop.id] = target_name_to_id[prop.fallback_name]
            continue

        incompatible.add(prop.id)

    return PropertyCompatibility(
        incompatible=frozenset(incompatible),
        remapping=MappingProxyType(remapping),
    )


@lru_cache(maxsize=None)
def get_property_compatibility(source_app: int, target_app: int) -> PropertyCompatibility:
    """Compatibility between two applications' catalogs, memoized per pair."""
    return compute_property_compatibility(get_catalog(source_app), get_catalog(target_app))
