"""
bng_units/years.py

Years-to-target-condition values.

The metric mixes plain numbers of years with two sentinels:
- "30+"          -> the habitat takes longer than 30 years (unbounded)
- "Not Possible" -> the target condition can never be reached

They are modelled as a small tagged union rather than magic strings:
    Numeric(years) | UNBOUNDED | IMPOSSIBLE
"""

from dataclasses import dataclass
from typing import Union

import numpy as np
import pandas as pd


UNBOUNDED_LABEL = "30+"
IMPOSSIBLE_LABEL = "Not Possible"

# Spellings seen in the metric workbooks
_IMPOSSIBLE_SPELLINGS = {"not possible", "not possible ▲", "n/a", "na"}


@dataclass(frozen=True)
class Numeric:
    years: float

    def __str__(self) -> str:
        if float(self.years).is_integer():
            return str(int(self.years))
        return str(self.years)


@dataclass(frozen=True)
class Unbounded:
    def __str__(self) -> str:
        return UNBOUNDED_LABEL


@dataclass(frozen=True)
class Impossible:
    def __str__(self) -> str:
        return IMPOSSIBLE_LABEL


UNBOUNDED = Unbounded()
IMPOSSIBLE = Impossible()

TargetYears = Union[Numeric, Unbounded, Impossible]

# Advance / delay inputs can be a number or "30+" but never "Not Possible"
AdjustmentYears = Union[Numeric, Unbounded]


def parse_years(value) -> TargetYears:
    """
    Convert a raw years value (number, "30+", "Not Possible") into TargetYears.

    Raises ValueError for anything else.
    """
    if isinstance(value, (Numeric, Unbounded, Impossible)):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid years value: {value!r}")
    if isinstance(value, (int, float, np.integer, np.floating)):
        if pd.isna(value) or not np.isfinite(value) or value < 0:
            raise ValueError(f"Invalid years value: {value!r}")
        return Numeric(float(value))

    text = str(value).strip()
    if text == UNBOUNDED_LABEL:
        return UNBOUNDED
    if text.lower() in _IMPOSSIBLE_SPELLINGS:
        return IMPOSSIBLE
    try:
        number = float(text)
    except ValueError:
        raise ValueError(f"Invalid years value: {value!r}")
    if not np.isfinite(number) or number < 0:
        raise ValueError(f"Invalid years value: {value!r}")
    return Numeric(number)


def parse_adjustment(value) -> AdjustmentYears:
    """Parse an advance/delay input. "Not Possible" is rejected."""
    years = parse_years(0 if value is None else value)
    if isinstance(years, Impossible):
        raise ValueError("Advance and delay years cannot be 'Not Possible'")
    return years


def normalise(years: AdjustmentYears, unbounded_years: int) -> float:
    """Numeric value of an adjustment for arithmetic; "30+" counts as unbounded_years."""
    if isinstance(years, Unbounded):
        return float(unbounded_years)
    return years.years


def is_positive(years: AdjustmentYears) -> bool:
    """True for "30+" or any number above zero."""
    if isinstance(years, Unbounded):
        return True
    return years.years > 0


def to_label(years: TargetYears):
    """Plain python value for reporting: int/float, "30+" or "Not Possible"."""
    if isinstance(years, Numeric):
        if float(years.years).is_integer():
            return int(years.years)
        return years.years
    return str(years)
