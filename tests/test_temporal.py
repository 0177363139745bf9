"""
Tests for advance / delay arithmetic and the difficulty rules
"""

import pytest

from bng_units.difficulty import resolve_difficulty
from bng_units.records import DifficultyRule
from bng_units.tables import Condition, Difficulty
from bng_units.temporal import (
    adjust,
    final_years,
    standard_creation_years,
    standard_enhancement_years,
    years_to_poor,
)
from bng_units.years import IMPOSSIBLE, UNBOUNDED, Impossible, Numeric, Unbounded

ZERO = Numeric(0.0)


def test_final_years_without_adjustment():
    assert final_years(Numeric(20.0), ZERO, ZERO, 30) == Numeric(20.0)
    assert isinstance(final_years(UNBOUNDED, ZERO, ZERO, 30), Unbounded)
    assert isinstance(final_years(IMPOSSIBLE, Numeric(5.0), ZERO, 30), Impossible)


def test_final_years_advance_and_delay():
    assert final_years(Numeric(20.0), Numeric(5.0), ZERO, 30) == Numeric(15.0)
    assert final_years(Numeric(20.0), ZERO, Numeric(5.0), 30) == Numeric(25.0)
    # Advance at or beyond the standard time means the target is already met
    assert final_years(Numeric(20.0), Numeric(20.0), ZERO, 30) == Numeric(0.0)
    assert final_years(Numeric(20.0), Numeric(25.0), ZERO, 30) == Numeric(0.0)


def test_final_years_delay_past_thirty_is_unbounded():
    assert isinstance(final_years(Numeric(25.0), ZERO, Numeric(10.0), 30), Unbounded)
    assert final_years(Numeric(25.0), ZERO, Numeric(5.0), 30) == Numeric(30.0)
    assert isinstance(final_years(Numeric(12.0), ZERO, UNBOUNDED, 31), Unbounded)


def test_final_years_unbounded_standard():
    """A "30+" standard only shortens with an advance; delay changes nothing."""
    assert final_years(UNBOUNDED, Numeric(5.0), ZERO, 30) == Numeric(25.0)
    assert isinstance(final_years(UNBOUNDED, ZERO, Numeric(10.0), 30), Unbounded)
    assert final_years(UNBOUNDED, UNBOUNDED, ZERO, 30) == Numeric(0.0)


def test_final_years_depends_on_unbounded_convention():
    assert final_years(UNBOUNDED, Numeric(2.0), ZERO, 30) == Numeric(28.0)
    assert final_years(UNBOUNDED, Numeric(2.0), ZERO, 31) == Numeric(29.0)
    assert isinstance(final_years(UNBOUNDED, Numeric(1.0), ZERO, 31), Unbounded)


def test_final_years_monotonic():
    """More advance never lengthens, more delay never shortens."""
    standard = Numeric(20.0)
    previous = None
    for advance in range(0, 25):
        years = final_years(standard, Numeric(float(advance)), ZERO, 30)
        if previous is not None:
            assert years.years <= previous
        previous = years.years

    multipliers = [adjust(standard, ZERO, Numeric(float(d)), 30).multiplier for d in range(0, 15)]
    assert all(a >= b for a, b in zip(multipliers, multipliers[1:]))


def test_adjust_returns_multiplier():
    result = adjust(Numeric(20.0), Numeric(5.0), ZERO, 30)
    assert result.final_years == Numeric(15.0)
    assert abs(result.multiplier - 0.5860163055) < 1e-9
    assert adjust(IMPOSSIBLE, ZERO, ZERO, 30).multiplier is None


def test_standard_years_lookups(catalog):
    calcareous = catalog.lookup_habitat("Grassland", "Lowland calcareous grassland")
    assert standard_creation_years(calcareous, Condition.GOOD) == Numeric(20.0)
    assert years_to_poor(calcareous) == Numeric(4.0)

    fens = catalog.lookup_habitat("Wetland", "Lowland fens")
    assert isinstance(standard_creation_years(fens, Condition.GOOD), Impossible)
    # Condition not offered for the habitat
    assert isinstance(standard_creation_years(fens, Condition.FAIRLY_GOOD), Impossible)


def test_standard_enhancement_years_condition_pathway(catalog):
    neutral = catalog.lookup_habitat("Grassland", "Other neutral grassland")
    assert standard_enhancement_years(neutral, Condition.MODERATE,
                                      neutral, Condition.GOOD) == Numeric(5.0)

    native = catalog.lookup_hedgerow("Native hedgerow")
    species_rich = catalog.lookup_hedgerow("Species-rich native hedgerow")
    assert standard_enhancement_years(native, Condition.MODERATE,
                                      species_rich, Condition.GOOD) == Numeric(2.0)


def test_standard_enhancement_years_type_change(catalog):
    cereal = catalog.lookup_habitat("Cropland", "Cereal crops")
    neutral = catalog.lookup_habitat("Grassland", "Other neutral grassland")
    assert standard_enhancement_years(cereal, Condition.ASSESSMENT_NA,
                                      neutral, Condition.MODERATE) == Numeric(5.0)

    scrub = catalog.lookup_habitat("Heathland and shrub", "Lowland heathland")
    assert isinstance(standard_enhancement_years(cereal, Condition.ASSESSMENT_NA,
                                                 scrub, Condition.MODERATE), Impossible)


def test_difficulty_low_when_target_reached_in_advance(catalog):
    calcareous = catalog.lookup_habitat("Grassland", "Lowland calcareous grassland")
    resolution = resolve_difficulty(calcareous, "creation", Numeric(20.0), Numeric(0.0),
                                    Numeric(4.0), 30)
    assert resolution.rule == DifficultyRule.LOW
    assert resolution.standard == Difficulty.HIGH
    assert resolution.tier == Difficulty.LOW
    assert resolution.multiplier == 1


def test_difficulty_enhancement_rule_on_creation(catalog):
    calcareous = catalog.lookup_habitat("Grassland", "Lowland calcareous grassland")
    resolution = resolve_difficulty(calcareous, "creation", Numeric(5.0), Numeric(15.0),
                                    Numeric(4.0), 30)
    assert resolution.rule == DifficultyRule.ENHANCEMENT
    assert resolution.tier == Difficulty.MEDIUM
    assert abs(resolution.multiplier - 0.67) < 1e-9

    # Advance shorter than the years to Poor keeps the standard tier
    resolution = resolve_difficulty(calcareous, "creation", Numeric(3.0), Numeric(17.0),
                                    Numeric(4.0), 30)
    assert resolution.rule == DifficultyRule.STANDARD
    assert abs(resolution.multiplier - 0.33) < 1e-9


def test_difficulty_enhancement_rule_excluded_types(catalog):
    orchard = catalog.lookup_habitat("Heathland and shrub", "Traditional orchards")
    resolution = resolve_difficulty(orchard, "creation", Numeric(10.0), Numeric(15.0),
                                    Numeric(5.0), 30)
    assert resolution.rule == DifficultyRule.STANDARD


def test_difficulty_standard_for_enhancement_stage(catalog):
    calcareous = catalog.lookup_habitat("Grassland", "Lowland calcareous grassland")
    resolution = resolve_difficulty(calcareous, "enhancement", Numeric(5.0), Numeric(5.0),
                                    Numeric(4.0), 30)
    assert resolution.rule == DifficultyRule.STANDARD
    assert resolution.standard == Difficulty.MEDIUM
    assert abs(resolution.multiplier - 0.67) < 1e-9


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
