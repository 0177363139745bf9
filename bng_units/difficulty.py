"""
bng_units/difficulty.py

Technical difficulty actually applied to a creation or enhancement record.

Three rules, checked in order:
- Low: work done in advance has already reached the target condition
- Enhancement: (creation only) the habitat was created in advance for at
  least as long as it takes to reach Poor condition, so what remains is
  effectively enhancement work
- Standard: the catalog tier for the kind of work
"""

from typing import NamedTuple, Union

from .catalog import HabitatReference, HedgerowReference
from .records import DifficultyRule
from .tables import DIFFICULTY_MULTIPLIERS, Difficulty
from .years import AdjustmentYears, Numeric, TargetYears, is_positive, normalise

# Habitat types never eligible for the enhancement difficulty on creation
ENHANCEMENT_RULE_EXCLUDED = {
    "Traditional orchards",
    "Ornamental lake or pond",
    "Ponds (non-priority habitat)",
    "Ruderal/Ephemeral",
    "Tall forbs",
    "Developed land; sealed surface",
}


class DifficultyResolution(NamedTuple):
    rule: DifficultyRule
    standard: Difficulty
    tier: Difficulty
    multiplier: float


def _created_beyond_poor(advance: AdjustmentYears, to_poor: TargetYears, unbounded_years: int) -> bool:
    if not is_positive(advance) or not isinstance(to_poor, Numeric):
        return False
    if to_poor.years == 0:
        return True
    return normalise(advance, unbounded_years) >= to_poor.years


def resolve_difficulty(reference: Union[HabitatReference, HedgerowReference], stage: str,
                       advance: AdjustmentYears, final: TargetYears, to_poor: TargetYears,
                       unbounded_years: int) -> DifficultyResolution:
    """
    Pick the applied difficulty rule, tier and multiplier.

    Args:
        reference: catalog entry of the created / proposed habitat
        stage: "creation" or "enhancement"
        advance: years the work was done in advance of losses
        final: final years to target condition after advance / delay
        to_poor: creation years to Poor condition for the habitat
    """
    if stage == "creation":
        standard = reference.creation_difficulty
    else:
        standard = reference.enhancement_difficulty

    if is_positive(advance) and isinstance(final, Numeric) and final.years == 0:
        return DifficultyResolution(DifficultyRule.LOW, standard, Difficulty.LOW,
                                    DIFFICULTY_MULTIPLIERS[Difficulty.LOW])

    # Hedgerow creation only ever takes the Low rule or its creation tier
    if (stage == "creation"
            and isinstance(reference, HabitatReference)
            and reference.habitat_type not in ENHANCEMENT_RULE_EXCLUDED
            and _created_beyond_poor(advance, to_poor, unbounded_years)):
        tier = reference.enhancement_difficulty
        return DifficultyResolution(DifficultyRule.ENHANCEMENT, standard, tier,
                                    DIFFICULTY_MULTIPLIERS[tier])

    return DifficultyResolution(DifficultyRule.STANDARD, standard, standard,
                                DIFFICULTY_MULTIPLIERS[standard])
