"""
bng_units/enrichment.py

Attribute enrichment: look up the scores and multipliers a record needs
from the catalog and the fixed tables. Pure functions of the record and
the catalog; nothing here can fail once structural validation passed.
"""

from typing import Any, Dict, Tuple

from .records import EvaluationContext
from .tables import (
    DISTINCTIVENESS_ACTIONS,
    HEDGEROW_CONDITION_SCORES,
    SPATIAL_RISK_MULTIPLIERS,
    STRATEGIC_SIGNIFICANCE,
    Distinctiveness,
    SpatialRisk,
    StrategicSignificance,
    TradingAction,
)


def strategic_significance(description: StrategicSignificance) -> Tuple[str, float]:
    """(category, multiplier) for a strategic significance description."""
    return STRATEGIC_SIGNIFICANCE[StrategicSignificance(description)]


def spatial_risk_multiplier(category: SpatialRisk) -> float:
    return SPATIAL_RISK_MULTIPLIERS[SpatialRisk(category)]


def trading_action(distinctiveness: Distinctiveness, irreplaceable: bool = False) -> TradingAction:
    if irreplaceable:
        return DISTINCTIVENESS_ACTIONS[Distinctiveness.IRREPLACEABLE]
    return DISTINCTIVENESS_ACTIONS[distinctiveness]


def _significance(data: Dict[str, Any]) -> Dict[str, Any]:
    category, multiplier = strategic_significance(data["strategic_significance"])
    return {
        "strategic_significance_category": category,
        "strategic_significance_multiplier": multiplier,
    }


def enrich_habitat(data: Dict[str, Any], context: EvaluationContext) -> Dict[str, Any]:
    reference = context.catalog.lookup_habitat(data["broad_habitat"], data["habitat_type"])
    return {
        "_reference": reference,
        "distinctiveness": reference.distinctiveness,
        "distinctiveness_score": reference.distinctiveness_score,
        "condition_score": reference.condition_scores[data["condition"]],
        "trading_action": trading_action(reference.distinctiveness, data.get("irreplaceable", False)),
        **_significance(data),
    }


def enrich_hedgerow(data: Dict[str, Any], context: EvaluationContext) -> Dict[str, Any]:
    reference = context.catalog.lookup_hedgerow(data["habitat_type"])
    return {
        "_reference": reference,
        "distinctiveness": reference.distinctiveness,
        "distinctiveness_score": reference.distinctiveness_score,
        "condition_score": HEDGEROW_CONDITION_SCORES[data["condition"]],
        "trading_action": trading_action(reference.distinctiveness),
        **_significance(data),
    }


def enrich_spatial_risk(data: Dict[str, Any], context: EvaluationContext) -> Dict[str, Any]:
    return {"spatial_risk_multiplier": spatial_risk_multiplier(data["spatial_risk"])}
