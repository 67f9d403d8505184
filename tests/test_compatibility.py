"""
Unit tests for property compatibility between media servers.
"""
import itertools

import pytest

from curatarr.services.compatibility import (
    PropertyCompatibility,
    compute_property_compatibility,
    get_property_compatibility,
)
from curatarr.services.property_catalog import (
    Application,
    PROPERTY_CATALOGS,
    PropertyDefinition,
    UnknownMediaServerError,
)


def props(*entries):
    return [PropertyDefinition(*entry) for entry in entries]


class TestComputePropertyCompatibility:
    """Tests for compute_property_compatibility() on hand-built catalogs."""

    def test_same_id_and_name_is_compatible(self):
        """A property at the same ID and name needs no entry."""
        compat = compute_property_compatibility(props((1, "viewCount")), props((1, "viewCount")))
        assert compat.incompatible == frozenset()
        assert dict(compat.remapping) == {}

    def test_same_name_different_id_is_remapped(self):
        """A property known under another ID is remapped to that ID."""
        compat = compute_property_compatibility(
            props((1, "viewCount"), (2, "genre")),
            props((7, "viewCount"), (2, "genre")),
        )
        assert dict(compat.remapping) == {1: 7}
        assert compat.incompatible == frozenset()

    def test_same_id_different_name_is_not_compatible(self):
        """Matching IDs alone do not make properties equivalent."""
        compat = compute_property_compatibility(props((1, "viewCount")), props((1, "genre")))
        assert compat.incompatible == {1}

    def test_fallback_name_is_used_when_name_missing(self):
        """The fallback property is used when the target lacks the concept."""
        compat = compute_property_compatibility(
            props((39, "collectionsIncludingSmart", "collections")),
            props((6, "collections")),
        )
        assert dict(compat.remapping) == {39: 6}

    def test_name_match_wins_over_fallback(self):
        """A direct name match is preferred to the fallback."""
        compat = compute_property_compatibility(
            props((39, "collectionsIncludingSmart", "collections")),
            props((6, "collections"), (50, "collectionsIncludingSmart")),
        )
        assert dict(compat.remapping) == {39: 50}

    def test_missing_fallback_target_is_incompatible(self):
        """A fallback that the target does not know does not help."""
        compat = compute_property_compatibility(
            props((39, "collectionsIncludingSmart", "collections")),
            props((1, "viewCount")),
        )
        assert compat.incompatible == {39}
        assert dict(compat.remapping) == {}

    def test_third_catalog_needs_no_code(self):
        """A new catalog works with the same algorithm."""
        emby = props((0, "addDate"), (5, "viewCount"), (60, "collections"))
        plex = PROPERTY_CATALOGS[Application.PLEX]
        compat = compute_property_compatibility(plex, emby)

        assert compat.remapping[6] == 60
        assert compat.remapping[39] == 60
        assert 30 in compat.incompatible
        assert 0 not in compat.incompatible and 0 not in compat.remapping

    def test_map_property(self):
        """map_property() applies the remap table and leaves others alone."""
        compat = compute_property_compatibility(props((1, "a")), props((2, "a")))
        assert compat.map_property(1) == 2
        assert compat.map_property(9) == 9


class TestBuiltInCatalogs:
    """Tests against the shipped Plex and Jellyfin catalogs."""

    def test_plex_to_jellyfin(self):
        """Watchlists are incompatible and smart collections fall back."""
        compat = get_property_compatibility(Application.PLEX, Application.JELLYFIN)

        assert compat.incompatible == {28, 30}
        assert dict(compat.remapping) == {39: 6, 40: 25, 41: 26, 42: 19}

    def test_jellyfin_to_plex(self):
        """Every Jellyfin property exists on Plex at the same ID."""
        compat = get_property_compatibility(Application.JELLYFIN, Application.PLEX)

        assert compat.incompatible == frozenset()
        assert dict(compat.remapping) == {}

    @pytest.mark.parametrize(
        "source,target",
        list(itertools.product(PROPERTY_CATALOGS, repeat=2)),
    )
    def test_every_property_classified_exactly_once(self, source, target):
        """Each source property is compatible, remapped or incompatible, never two."""
        compat = get_property_compatibility(source, target)
        target_pairs = {(p.id, p.name) for p in PROPERTY_CATALOGS[target]}

        for prop in PROPERTY_CATALOGS[source]:
            states = [
                (prop.id, prop.name) in target_pairs,
                prop.id in compat.remapping,
                prop.id in compat.incompatible,
            ]
            assert states.count(True) == 1, prop

    def test_same_application_is_fully_compatible(self):
        """Comparing a catalog with itself yields nothing to do."""
        compat = get_property_compatibility(Application.PLEX, Application.PLEX)
        assert isinstance(compat, PropertyCompatibility)
        assert not compat.incompatible
        assert not compat.remapping

    def test_result_is_memoized(self):
        """The same pair returns the same object."""
        first = get_property_compatibility(Application.PLEX, Application.JELLYFIN)
        second = get_property_compatibility(0, 6)
        assert first is second

    def test_remapping_is_read_only(self):
        """Cached results cannot be mutated by callers."""
        compat = get_property_compatibility(Application.PLEX, Application.JELLYFIN)
        with pytest.raises(TypeError):
            compat.remapping[1] = 2

    def test_unknown_application(self):
        """Applications without a catalog are rejected."""
        with pytest.raises(UnknownMediaServerError):
            get_property_compatibility(Application.RADARR, Application.PLEX)
