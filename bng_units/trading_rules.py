"""
Trading rules for enhancement records.

An enhancement turns a baseline habitat into a proposed habitat. The
baseline's distinctiveness band limits what it may become, and the
enhancement must actually improve something.
"""

from typing import List, Optional

from .catalog import HabitatReference, HedgerowReference, canon
from .result import FailureCategory, ValidationFailure
from .tables import Distinctiveness

# Proposed habitat -> baseline habitats it may replace regardless of band
TRADING_ALLOW_LISTS = {
    "Intertidal sediment - Seagrass beds": {
        "Intertidal sediment - Littoral mud",
        "Intertidal sediment - Littoral muddy sand",
        "Intertidal sediment - Littoral sand",
    },
    "Intertidal hard structures - Artificial hard structures with integrated greening "
    "of grey infrastructure (IGGI)": {
        "Intertidal hard structures - Artificial hard structures",
    },
    "Intertidal hard structures - Artificial features of hard structures with integrated "
    "greening of grey infrastructure (IGGI)": {
        "Intertidal hard structures - Artificial features of hard structures",
    },
}

_ALLOW_LISTS = {canon(k): {canon(v) for v in vs} for k, vs in TRADING_ALLOW_LISTS.items()}


def _allow_listed(baseline_label: str, proposed_label: str) -> bool:
    return canon(baseline_label) in _ALLOW_LISTS.get(canon(proposed_label), set())


def can_enhance_habitat(baseline: HabitatReference, proposed: HabitatReference) -> bool:
    """
    Check if a baseline habitat may be enhanced into the proposed habitat.

    Trading rules for area habitats:
    - V.High / High: Same habitat required (like-for-like)
    - Medium: Same broad habitat, or a habitat of the same or higher distinctiveness
    - Low: Same distinctiveness or better
    - V.Low: Anything
    Allow-listed habitats (seagrass beds, IGGI structures) accept their listed baselines.
    """
    if _allow_listed(baseline.label, proposed.label):
        return True

    band = baseline.distinctiveness
    if band in (Distinctiveness.V_HIGH, Distinctiveness.HIGH, Distinctiveness.IRREPLACEABLE):
        return canon(baseline.label) == canon(proposed.label)
    if band == Distinctiveness.MEDIUM:
        same_broad = canon(baseline.broad_habitat) == canon(proposed.broad_habitat)
        return same_broad or proposed.distinctiveness_score >= baseline.distinctiveness_score
    if band == Distinctiveness.LOW:
        return proposed.distinctiveness_score >= baseline.distinctiveness_score
    return True


def can_enhance_hedgerow(baseline: HedgerowReference, proposed: HedgerowReference) -> bool:
    """
    Check if a baseline hedgerow may be enhanced into the proposed hedgerow.

    Trading rules for hedgerows:
    - V.High / High: Same hedgerow required (like-for-like)
    - Medium / Low: Same distinctiveness or better
    - V.Low: Anything
    """
    band = baseline.distinctiveness
    if band in (Distinctiveness.V_HIGH, Distinctiveness.HIGH):
        return canon(baseline.label) == canon(proposed.label)
    if band in (Distinctiveness.MEDIUM, Distinctiveness.LOW):
        return proposed.distinctiveness_score >= baseline.distinctiveness_score
    return True


def check_trading_rules(baseline, proposed, baseline_condition_score: float,
                        proposed_condition_score: float,
                        baseline_irreplaceable: Optional[bool] = False) -> List[ValidationFailure]:
    """All trading rule failures for one enhancement, empty if it may go ahead."""
    failures = []

    if baseline_irreplaceable and canon(baseline.label) != canon(proposed.label):
        failures.append(ValidationFailure(
            "irreplaceable_not_like_for_like",
            f"Irreplaceable habitat {baseline.label} can only be enhanced into the same habitat",
            FailureCategory.TRADING, "habitat_type",
        ))
    else:
        if isinstance(baseline, HabitatReference):
            allowed = can_enhance_habitat(baseline, proposed)
        else:
            allowed = can_enhance_hedgerow(baseline, proposed)
        if not allowed:
            failures.append(ValidationFailure(
                "trading_rules_not_satisfied",
                f"{baseline.distinctiveness.value} distinctiveness {baseline.label} "
                f"cannot be enhanced into {proposed.label}",
                FailureCategory.TRADING, "habitat_type",
            ))

    if proposed_condition_score < baseline_condition_score:
        failures.append(ValidationFailure(
            "condition_regression",
            f"Proposed condition score {proposed_condition_score} is below "
            f"the baseline {baseline_condition_score}",
            FailureCategory.TRADING, "condition",
        ))
    elif (proposed_condition_score == baseline_condition_score
          and proposed.distinctiveness_score <= baseline.distinctiveness_score):
        failures.append(ValidationFailure(
            "no_improvement",
            "Same condition requires a higher distinctiveness habitat",
            FailureCategory.TRADING, "condition",
        ))

    return failures
