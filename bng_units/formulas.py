"""
bng_units/formulas.py

Unit arithmetic of the biodiversity metric.

Every function here is plain arithmetic on numbers already looked up by
the enrichment stages:
    D = distinctiveness score
    C = condition score
    S = strategic significance multiplier
    SRM = spatial risk multiplier
A missing temporal multiplier (target never reached) counts as 0.
"""

from typing import NamedTuple, Optional

import numpy as np

from .tables import BESPOKE_ACTIONS, BespokeCompensation, TradingAction


class BaselineUnits(NamedTuple):
    units_retained: float
    units_enhanced: float
    quantity_lost: float
    total_units: float
    units_lost: float


def _nothing(quantity: float) -> bool:
    return bool(np.isclose(quantity, 0.0, rtol=0.0, atol=1e-12))


def quantity_lost(total: float, retained: float, enhanced: float) -> float:
    return total - retained - enhanced


def habitat_baseline_units(total: float, retained: float, enhanced: float,
                           distinctiveness: float, condition: float, strategic: float,
                           irreplaceable: bool, action: TradingAction,
                           agreed: BespokeCompensation,
                           irreplaceable_tree: bool = False) -> BaselineUnits:
    """
    Units of an area habitat baseline.

    Retained units are 0 for irreplaceable habitats, enhanced units are 0 for
    irreplaceable individual trees. When bespoke compensation is likely the
    total only counts what stays on site.
    """
    score = distinctiveness * condition * strategic
    units_retained = 0.0 if irreplaceable else retained * score
    units_enhanced = 0.0 if irreplaceable_tree else enhanced * score
    lost = quantity_lost(total, retained, enhanced)
    gain = retained + enhanced > 0
    bespoke_likely = action == TradingAction.BESPOKE_LIKELY

    if irreplaceable:
        total_units = (retained + enhanced) * score
    elif bespoke_likely and not gain and agreed == BespokeCompensation.YES:
        total_units = 0.0
    elif bespoke_likely and gain:
        total_units = units_retained + units_enhanced
    else:
        total_units = total * score

    units_lost = baseline_units_lost(lost, total_units, units_retained, units_enhanced,
                                     action, agreed)
    return BaselineUnits(units_retained, units_enhanced, lost, total_units, units_lost)


def baseline_units_lost(lost: float, total_units: float, units_retained: float,
                        units_enhanced: float, action: Optional[TradingAction] = None,
                        agreed: BespokeCompensation = BespokeCompensation.NO) -> float:
    if _nothing(lost):
        return 0.0
    if action in BESPOKE_ACTIONS and agreed == BespokeCompensation.YES:
        return 0.0
    return total_units - units_retained - units_enhanced


def off_site_total_units(total: float, retained: float, enhanced: float,
                         units_retained: float, units_enhanced: float,
                         distinctiveness: float, condition: float, strategic: float,
                         spatial_risk: float, action: TradingAction) -> float:
    """Total baseline units of an off-site parcel after the spatial risk multiplier."""
    if action == TradingAction.BESPOKE_LIKELY:
        if retained + enhanced > 0:
            return (units_retained + units_enhanced) * spatial_risk
        return total * spatial_risk
    return total * distinctiveness * condition * strategic * spatial_risk


def hedgerow_baseline_units(total: float, retained: float, enhanced: float,
                            distinctiveness: float, condition: float,
                            strategic: float) -> BaselineUnits:
    score = distinctiveness * condition * strategic
    units_retained = retained * score
    units_enhanced = enhanced * score
    lost = quantity_lost(total, retained, enhanced)
    total_units = total * score
    units_lost = baseline_units_lost(lost, total_units, units_retained, units_enhanced)
    return BaselineUnits(units_retained, units_enhanced, lost, total_units, units_lost)


def creation_units(quantity: float, distinctiveness: float, condition: float,
                   strategic: float, temporal: Optional[float], difficulty: float) -> float:
    return quantity * distinctiveness * condition * strategic * (temporal or 0.0) * difficulty


def enhancement_units(quantity: float, baseline_distinctiveness: float,
                      baseline_condition: float, proposed_distinctiveness: float,
                      proposed_condition: float, strategic: float,
                      temporal: Optional[float], difficulty: float) -> float:
    """
    Net gain units of an enhancement.

    Baseline units use the lower of the two condition scores, so a proposal
    can never be credited with condition it does not deliver.
    """
    baseline_units = quantity * baseline_distinctiveness * min(baseline_condition, proposed_condition)
    proposed_units = quantity * proposed_distinctiveness * proposed_condition
    delta = (proposed_units - baseline_units) * difficulty * (temporal or 0.0)
    return (delta + baseline_units) * strategic


def with_spatial_risk(units: float, spatial_risk: float) -> float:
    return units * spatial_risk
