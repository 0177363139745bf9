"""
bng_units/temporal.py

Years to target condition and the temporal multiplier.

Creating or enhancing a habitat in advance of the losses shortens the time
to target condition, a delay lengthens it. The final time decides the
temporal multiplier (table G-4).
"""

from typing import NamedTuple, Optional, Union

from .catalog import HabitatReference, HedgerowReference, pathway_label
from .tables import Condition, temporal_multiplier
from .years import (
    IMPOSSIBLE,
    UNBOUNDED,
    AdjustmentYears,
    Impossible,
    Numeric,
    TargetYears,
    Unbounded,
    normalise,
)

Reference = Union[HabitatReference, HedgerowReference]

# Any final number above this is reported as "30+"
MAX_NUMERIC_YEARS = 30


class TemporalAdjustment(NamedTuple):
    final_years: TargetYears
    multiplier: Optional[float]


def final_years(standard: TargetYears, advance: AdjustmentYears, delay: AdjustmentYears,
                unbounded_years: int) -> TargetYears:
    """
    Apply advance / delay to the standard years to target condition.

    "30+" inputs count as unbounded_years in the arithmetic. A "30+" standard
    only responds to an advance; delay cannot make it any longer.
    """
    if isinstance(standard, Impossible):
        return IMPOSSIBLE

    advance_years = normalise(advance, unbounded_years)
    delay_years = normalise(delay, unbounded_years)

    if isinstance(standard, Unbounded):
        if advance_years == 0:
            return UNBOUNDED
        remaining = unbounded_years - advance_years
        if remaining >= MAX_NUMERIC_YEARS:
            return UNBOUNDED
        return Numeric(max(0.0, remaining))

    if advance_years >= standard.years:
        return Numeric(0.0)

    remaining = standard.years - advance_years + delay_years
    if remaining > MAX_NUMERIC_YEARS:
        return UNBOUNDED
    return Numeric(max(0.0, remaining))


def adjust(standard: TargetYears, advance: AdjustmentYears, delay: AdjustmentYears,
           unbounded_years: int) -> TemporalAdjustment:
    years = final_years(standard, advance, delay, unbounded_years)
    return TemporalAdjustment(years, temporal_multiplier(years))


def standard_creation_years(reference: Reference, condition: Condition) -> TargetYears:
    return reference.creation_years.get(condition, IMPOSSIBLE)


def years_to_poor(reference: Reference) -> TargetYears:
    """Creation years to Poor condition, used by the difficulty rules."""
    return reference.creation_years.get(Condition.POOR, IMPOSSIBLE)


def standard_enhancement_years(baseline: Reference, baseline_condition: Condition,
                               proposed: Reference, proposed_condition: Condition) -> TargetYears:
    """
    Years to reach the proposed condition by enhancement.

    The proposed habitat's condition pathway ("Poor to Moderate") is used
    first; failing that, the baseline's habitat type change pathway into the
    proposed habitat. No pathway means the target cannot be reached.
    """
    pathway = pathway_label(baseline_condition, proposed_condition)
    if pathway in proposed.enhancement_years:
        return proposed.enhancement_years[pathway]
    label = proposed.label
    if label in baseline.type_change_years:
        return baseline.type_change_years[label]
    return IMPOSSIBLE
