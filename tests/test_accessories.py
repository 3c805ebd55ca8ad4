"""Tests for focus-specific accessory generation."""

import pytest

from pumping_iron.adaptation.accessories import AccessoryLibrary
from pumping_iron.adaptation.volume import READINESS_SOURCE
from pumping_iron.models import AestheticFocus


@pytest.fixture
def library():
    return AccessoryLibrary()


class TestAccessoryLibrary:

    def test_glutes_full_readiness(self, library):
        accessories = library.get_accessories('glutes', 8)

        assert [a.name for a in accessories] == [
            'Hip Thrusts', 'Bulgarian Split Squats', 'Romanian Deadlift', 'Cable Kickbacks'
        ]
        assert [a.sets for a in accessories] == [4, 3, 3, 3]
        assert all(a.aesthetic for a in accessories)
        assert all(a.category == 'accessory' for a in accessories)
        assert all(a.scaling is None for a in accessories)
        assert accessories[0].reps == '12-15'
        assert accessories[0].extra['target'] == 'glutes'

    def test_low_readiness_scales_sets(self, library):
        accessories = library.get_accessories(AestheticFocus.GLUTES, 5)

        assert [a.sets for a in accessories] == [2, 2, 2, 2]
        assert all(a.scaling.has_source(READINESS_SOURCE) for a in accessories)
        assert accessories[0].scaling.original_sets == 4

    def test_rationale_doubles_as_tooltip(self, library):
        [first, *_] = library.get_accessories('v_taper', 8)

        assert first.name == 'Overhead Press'
        assert first.rationale == 'Building V-taper: Wide shoulders'
        assert first.extra['tooltip'] == first.rationale

    def test_toned(self, library):
        names = [a.name for a in library.get_accessories('toned', 9)]
        assert names == ['High Rep Lateral Raises', 'Cable Flies', 'Tricep Extensions', 'Dumbbell Curls']

    @pytest.mark.parametrize("focus", ['functional', 'bulk', None, ''])
    def test_no_accessories(self, library, focus):
        assert library.get_accessories(focus, 8) == []

    def test_case_insensitive_focus(self, library):
        assert len(library.get_accessories('V_TAPER', 8)) == 4
