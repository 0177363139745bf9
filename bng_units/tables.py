"""
bng_units/tables.py

Fixed lookup tables of the biodiversity metric:
- Distinctiveness bands (G-1), their scores and the trading action they imply
- Technical difficulty multipliers
- Strategic significance multipliers
- Spatial risk multipliers (terrestrial and marine)
- Temporal multipliers (G-4), years to target condition -> decay multiplier
- Condition names and the fixed hedgerow condition scores
"""

from enum import Enum
from typing import Dict, Optional

from .years import Impossible, Numeric, TargetYears, Unbounded


# ================= Conditions =================

class Condition(str, Enum):
    GOOD = "Good"
    FAIRLY_GOOD = "Fairly Good"
    MODERATE = "Moderate"
    FAIRLY_POOR = "Fairly Poor"
    POOR = "Poor"
    ASSESSMENT_NA = "Condition Assessment N/A"
    NA_OTHER = "N/A - Other"


# Hedgerows ignore the catalog and use this simplified scoring
HEDGEROW_CONDITION_SCORES: Dict[Condition, float] = {
    Condition.GOOD: 3,
    Condition.MODERATE: 2,
    Condition.POOR: 1,
}


# ================= Distinctiveness =================

class TradingAction(str, Enum):
    SAME_HABITAT_BESPOKE_OPTION = "Same habitat required – bespoke compensation option ⚠"
    SAME_HABITAT = "Same habitat required ="
    SAME_BROAD_OR_HIGHER = "Same broad habitat or a higher distinctiveness habitat required (≥)"
    SAME_OR_BETTER = "Same distinctiveness or better habitat required ≥"
    NOT_REQUIRED = "Compensation Not Required"
    BESPOKE_LIKELY = "Bespoke compensation likely to be required"


# Actions for which a loss must be covered by agreed bespoke compensation
BESPOKE_ACTIONS = {
    TradingAction.SAME_HABITAT_BESPOKE_OPTION,
    TradingAction.BESPOKE_LIKELY,
}


class Distinctiveness(str, Enum):
    V_HIGH = "V.High"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    V_LOW = "V.Low"
    IRREPLACEABLE = "Irreplaceable"


DISTINCTIVENESS_SCORES: Dict[Distinctiveness, float] = {
    Distinctiveness.V_HIGH: 8,
    Distinctiveness.HIGH: 6,
    Distinctiveness.MEDIUM: 4,
    Distinctiveness.LOW: 2,
    Distinctiveness.V_LOW: 0,
    Distinctiveness.IRREPLACEABLE: float("inf"),
}

DISTINCTIVENESS_ACTIONS: Dict[Distinctiveness, TradingAction] = {
    Distinctiveness.V_HIGH: TradingAction.SAME_HABITAT_BESPOKE_OPTION,
    Distinctiveness.HIGH: TradingAction.SAME_HABITAT,
    Distinctiveness.MEDIUM: TradingAction.SAME_BROAD_OR_HIGHER,
    Distinctiveness.LOW: TradingAction.SAME_OR_BETTER,
    Distinctiveness.V_LOW: TradingAction.NOT_REQUIRED,
    Distinctiveness.IRREPLACEABLE: TradingAction.BESPOKE_LIKELY,
}

_DISTINCTIVENESS_ALIASES = {
    "v.high": Distinctiveness.V_HIGH,
    "very high": Distinctiveness.V_HIGH,
    "vhigh": Distinctiveness.V_HIGH,
    "high": Distinctiveness.HIGH,
    "medium": Distinctiveness.MEDIUM,
    "low": Distinctiveness.LOW,
    "v.low": Distinctiveness.V_LOW,
    "very low": Distinctiveness.V_LOW,
    "vlow": Distinctiveness.V_LOW,
    "irreplaceable": Distinctiveness.IRREPLACEABLE,
}


def parse_distinctiveness(value) -> Distinctiveness:
    """Accept the band spellings used across metric workbooks ("Very High", "V.High", ...)."""
    band = _DISTINCTIVENESS_ALIASES.get(str(value).strip().lower())
    if band is None:
        raise ValueError(f"Unknown distinctiveness band: {value!r}")
    return band


# ================= Technical difficulty =================

class Difficulty(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    V_HIGH = "V.High"


DIFFICULTY_MULTIPLIERS: Dict[Difficulty, float] = {
    Difficulty.LOW: 1,
    Difficulty.MEDIUM: 0.67,
    Difficulty.HIGH: 0.33,
    Difficulty.V_HIGH: 0.1,
}

_DIFFICULTY_ALIASES = {
    "low": Difficulty.LOW,
    "medium": Difficulty.MEDIUM,
    "high": Difficulty.HIGH,
    "v.high": Difficulty.V_HIGH,
    "very high": Difficulty.V_HIGH,
    "vhigh": Difficulty.V_HIGH,
}


def parse_difficulty(value) -> Difficulty:
    level = _DIFFICULTY_ALIASES.get(str(value).strip().lower())
    if level is None:
        raise ValueError(f"Unknown technical difficulty: {value!r}")
    return level


# ================= Strategic significance =================

class StrategicSignificance(str, Enum):
    FORMALLY_IDENTIFIED = "Formally identified in local strategy"
    ECOLOGICALLY_DESIRABLE = "Location ecologically desirable but not in local strategy"
    NOT_IN_STRATEGY = "Area/compensation not in local strategy/ no local strategy"


STRATEGIC_SIGNIFICANCE = {
    StrategicSignificance.FORMALLY_IDENTIFIED: ("High strategic significance", 1.15),
    StrategicSignificance.ECOLOGICALLY_DESIRABLE: ("Medium strategic significance", 1.1),
    StrategicSignificance.NOT_IN_STRATEGY: ("Low strategic significance", 1),
}


# ================= Spatial risk =================

class SpatialRisk(str, Enum):
    INSIDE_LPA_OR_NCA = "Compensation inside LPA boundary or NCA of impact site"
    NEIGHBOURING_LPA_OR_NCA = (
        "Compensation outside LPA or NCA of impact site, but in neighbouring LPA or NCA"
    )
    BEYOND_NEIGHBOURING_LPA_OR_NCA = (
        "Compensation outside LPA or NCA of impact site and neighbouring LPA or NCA"
    )
    OFF_SITE_PROVIDER = "This metric is being used by an off-site provider"
    INSIDE_MARINE_PLAN_AREA = (
        "Intertidal habitats - Compensation inside Marine Plan Area of impact site"
    )
    NEIGHBOURING_MARINE_PLAN_AREA = (
        "Intertidal habitats - Compensation outside same Marine Plan Area "
        "but in neighbouring Marine Plan Area"
    )
    BEYOND_NEIGHBOURING_MARINE_PLAN_AREA = (
        "Intertidal habitats - Compensation outside Marine Plan Area of impact site "
        "and beyond neighbouring Marine Plan Area"
    )


SPATIAL_RISK_MULTIPLIERS: Dict[SpatialRisk, float] = {
    SpatialRisk.INSIDE_LPA_OR_NCA: 1,
    SpatialRisk.NEIGHBOURING_LPA_OR_NCA: 0.75,
    SpatialRisk.BEYOND_NEIGHBOURING_LPA_OR_NCA: 0.5,
    SpatialRisk.OFF_SITE_PROVIDER: 1,
    SpatialRisk.INSIDE_MARINE_PLAN_AREA: 1,
    SpatialRisk.NEIGHBOURING_MARINE_PLAN_AREA: 0.75,
    SpatialRisk.BEYOND_NEIGHBOURING_MARINE_PLAN_AREA: 0.5,
}


# ================= Bespoke compensation =================

class BespokeCompensation(str, Enum):
    YES = "Yes"
    NO = "No"
    PENDING = "Pending"


# ================= Temporal multipliers =================
# G-4 Temporal multipliers, 3.5% annual discount compounded in the workbook
# and rounded there, so the values are tabulated rather than recomputed.
TEMPORAL_MULTIPLIERS: Dict[int, float] = {
    0: 1,
    1: 0.965,
    2: 0.931225,
    3: 0.898632125,
    4: 0.8671800005999999,
    5: 0.8368287006,
    6: 0.8075396961,
    7: 0.7792758067,
    8: 0.7520011535000001,
    9: 0.7256811131,
    10: 0.7002822741999999,
    11: 0.6757723946,
    12: 0.6521203607,
    13: 0.6292961481,
    14: 0.6072707829,
    15: 0.5860163055000001,
    16: 0.5655057348,
    17: 0.5457130340999999,
    18: 0.5266130779,
    19: 0.5081816202,
    20: 0.4903952635,
    21: 0.4732314293,
    22: 0.4566683292,
    23: 0.44068493770000006,
    24: 0.4252609649,
    25: 0.4103768311,
    26: 0.396013642,
    27: 0.3821531646,
    28: 0.36877780379999997,
    29: 0.3558705807,
    30: 0.3434151104,
    31: 0.3313955815,
}
UNBOUNDED_TEMPORAL_MULTIPLIER = 0.3197967361


def temporal_multiplier(years: TargetYears) -> Optional[float]:
    """
    Look up the temporal multiplier for a final years-to-target value.

    Returns None for "Not Possible" and for any number not in the table
    (fractional or out of range), which callers treat as "no units".
    """
    if isinstance(years, Impossible):
        return None
    if isinstance(years, Unbounded):
        return UNBOUNDED_TEMPORAL_MULTIPLIER
    if isinstance(years, Numeric):
        if not float(years.years).is_integer():
            return None
        return TEMPORAL_MULTIPLIERS.get(int(years.years))
    raise TypeError(f"Unexpected years value: {years!r}")
