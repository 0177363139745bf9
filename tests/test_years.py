"""
Tests for years-to-target values and the temporal multiplier table
"""

import pytest

from bng_units.tables import UNBOUNDED_TEMPORAL_MULTIPLIER, temporal_multiplier
from bng_units.years import (
    IMPOSSIBLE,
    UNBOUNDED,
    Impossible,
    Numeric,
    Unbounded,
    is_positive,
    normalise,
    parse_adjustment,
    parse_years,
    to_label,
)


def test_parse_years_numbers_and_sentinels():
    assert parse_years(12) == Numeric(12.0)
    assert parse_years("7") == Numeric(7.0)
    assert parse_years(" 2.5 ") == Numeric(2.5)
    assert isinstance(parse_years("30+"), Unbounded)
    assert isinstance(parse_years("Not Possible"), Impossible)
    assert isinstance(parse_years("not possible ▲"), Impossible)


def test_parse_years_rejects_garbage():
    for bad in ["soon", -1, "-3", True, float("nan"), float("inf"), "inf"]:
        with pytest.raises(ValueError):
            parse_years(bad)


def test_parse_adjustment():
    """Advance / delay accept numbers and "30+" but never "Not Possible"."""
    assert parse_adjustment(None) == Numeric(0.0)
    assert parse_adjustment(5) == Numeric(5.0)
    assert isinstance(parse_adjustment("30+"), Unbounded)
    with pytest.raises(ValueError):
        parse_adjustment("Not Possible")


def test_normalise_and_is_positive():
    assert normalise(UNBOUNDED, 30) == 30.0
    assert normalise(UNBOUNDED, 31) == 31.0
    assert normalise(Numeric(4.0), 31) == 4.0
    assert is_positive(UNBOUNDED)
    assert is_positive(Numeric(0.5))
    assert not is_positive(Numeric(0.0))


def test_to_label():
    assert to_label(Numeric(20.0)) == 20
    assert to_label(Numeric(2.5)) == 2.5
    assert to_label(UNBOUNDED) == "30+"
    assert to_label(IMPOSSIBLE) == "Not Possible"
    assert str(Numeric(5.0)) == "5"


def test_temporal_multiplier_lookup():
    assert temporal_multiplier(Numeric(0.0)) == 1
    assert abs(temporal_multiplier(Numeric(20.0)) - 0.4903952635) < 1e-9
    assert abs(temporal_multiplier(Numeric(12.0)) - 0.6521203607) < 1e-9
    assert abs(temporal_multiplier(Numeric(31.0)) - 0.3313955815) < 1e-9
    assert temporal_multiplier(UNBOUNDED) == UNBOUNDED_TEMPORAL_MULTIPLIER


def test_temporal_multiplier_missing_values():
    """Not Possible, fractional and out-of-table years give no multiplier."""
    assert temporal_multiplier(IMPOSSIBLE) is None
    assert temporal_multiplier(Numeric(2.5)) is None
    assert temporal_multiplier(Numeric(45.0)) is None


def test_temporal_multiplier_decreases_with_years():
    values = [temporal_multiplier(Numeric(float(y))) for y in range(0, 32)]
    assert all(a > b for a, b in zip(values, values[1:]))
    assert values[-1] > UNBOUNDED_TEMPORAL_MULTIPLIER


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
