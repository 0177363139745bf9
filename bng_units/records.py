"""
bng_units/records.py

Input and computed record models for the nine record kinds.

Input models describe what a caller supplies; computed models extend them
with every derived attribute. All models are frozen pydantic models, so a
computed baseline can be shared by any number of enhancement records
without being changed by them.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer

from .catalog import ReferenceCatalog
from .tables import (
    BespokeCompensation,
    Condition,
    Difficulty,
    Distinctiveness,
    SpatialRisk,
    StrategicSignificance,
    TradingAction,
)
from .years import TargetYears, parse_years, to_label


class RecordKind(str, Enum):
    ON_SITE_HABITAT_BASELINE = "on_site_habitat_baseline"
    OFF_SITE_HABITAT_BASELINE = "off_site_habitat_baseline"
    ON_SITE_HABITAT_CREATION = "on_site_habitat_creation"
    OFF_SITE_HABITAT_CREATION = "off_site_habitat_creation"
    ON_SITE_HABITAT_ENHANCEMENT = "on_site_habitat_enhancement"
    OFF_SITE_HABITAT_ENHANCEMENT = "off_site_habitat_enhancement"
    ON_SITE_HEDGEROW_BASELINE = "on_site_hedgerow_baseline"
    ON_SITE_HEDGEROW_CREATION = "on_site_hedgerow_creation"
    ON_SITE_HEDGEROW_ENHANCEMENT = "on_site_hedgerow_enhancement"

    @property
    def stage(self) -> str:
        """baseline, creation or enhancement"""
        return self.value.rsplit("_", 1)[1]

    @property
    def off_site(self) -> bool:
        return self.value.startswith("off_site")

    @property
    def hedgerow(self) -> bool:
        return "_hedgerow_" in self.value


class DifficultyRule(str, Enum):
    LOW = "Low difficulty - target condition reached before losses"
    ENHANCEMENT = "Enhancement difficulty - created in advance beyond years to Poor"
    STANDARD = "Standard difficulty applied"


# A years input is a finite non-negative number or "30+"
YearsInput = Union[Annotated[float, Field(ge=0, allow_inf_nan=False)], Literal["30+"]]
Quantity = Annotated[float, Field(ge=0, allow_inf_nan=False)]

# Computed years dump as 12, "30+" or "Not Possible" and parse back from them
YearsLabel = Annotated[TargetYears, BeforeValidator(parse_years), PlainSerializer(to_label)]


@dataclass(frozen=True)
class EvaluationContext:
    """What every pipeline stage can see besides the record itself."""
    catalog: ReferenceCatalog
    kind: RecordKind
    unbounded_years: int


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", arbitrary_types_allowed=True)

    user_comments: Optional[str] = None
    planning_authority_comments: Optional[str] = None
    habitat_reference_number: Optional[str] = None


class _OffSite(BaseModel):
    spatial_risk: SpatialRisk = Field(description="Spatial risk category of the compensation site")
    off_site_reference: Optional[str] = Field(default=None, description="Off-site register reference")


# ================= Inputs =================

class HabitatBaselineInput(_Record):
    broad_habitat: str
    habitat_type: str
    area: Quantity = Field(description="Total area in hectares")
    condition: Condition
    irreplaceable: bool = False
    strategic_significance: StrategicSignificance
    area_retained: Quantity = 0
    area_enhanced: Quantity = 0
    bespoke_compensation_agreed: BespokeCompensation = BespokeCompensation.NO


class OffSiteHabitatBaselineInput(HabitatBaselineInput, _OffSite):
    pass


class HabitatCreationInput(_Record):
    broad_habitat: str
    habitat_type: str
    area: Quantity = Field(description="Area created in hectares")
    condition: Condition
    strategic_significance: StrategicSignificance
    advance_years: YearsInput = 0
    delay_years: YearsInput = 0


class OffSiteHabitatCreationInput(HabitatCreationInput, _OffSite):
    pass


class HabitatEnhancementInput(_Record):
    # Computed baseline record, or a raw baseline evaluated on the fly
    baseline: Any
    broad_habitat: str
    habitat_type: str
    condition: Condition
    strategic_significance: StrategicSignificance
    advance_years: YearsInput = 0
    delay_years: YearsInput = 0


class OffSiteHabitatEnhancementInput(HabitatEnhancementInput):
    pass


class HedgerowBaselineInput(_Record):
    habitat_type: str = Field(description="Hedgerow label")
    length: Quantity = Field(description="Total length in kilometres")
    condition: Condition
    strategic_significance: StrategicSignificance
    length_retained: Quantity = 0
    length_enhanced: Quantity = 0


class HedgerowCreationInput(_Record):
    habitat_type: str = Field(description="Hedgerow label")
    length: Quantity = Field(description="Length created in kilometres")
    condition: Condition
    strategic_significance: StrategicSignificance
    advance_years: YearsInput = 0
    delay_years: YearsInput = 0


class HedgerowEnhancementInput(_Record):
    baseline: Any
    habitat_type: str = Field(description="Proposed hedgerow label")
    condition: Condition
    strategic_significance: StrategicSignificance
    advance_years: YearsInput = 0
    delay_years: YearsInput = 0


# ================= Derived attribute groups =================

class _Scored(BaseModel):
    distinctiveness: Distinctiveness
    distinctiveness_score: float
    condition_score: float
    strategic_significance_category: str
    strategic_significance_multiplier: float
    trading_action: TradingAction


class _Temporal(BaseModel):
    standard_years: YearsLabel
    final_years: YearsLabel
    temporal_multiplier: Optional[float]
    standard_difficulty: Difficulty
    applied_difficulty_rule: DifficultyRule
    final_difficulty: Difficulty
    difficulty_multiplier: float


# ================= Computed records =================

class HabitatBaseline(HabitatBaselineInput, _Scored):
    units_retained: float
    units_enhanced: float
    area_lost: float
    total_units: float
    units_lost: float

    @property
    def quantity_enhanced(self) -> float:
        return self.area_enhanced


class OffSiteHabitatBaseline(OffSiteHabitatBaselineInput, _Scored):
    spatial_risk_multiplier: float
    units_retained: float
    units_enhanced: float
    area_lost: float
    total_units: float
    total_units_with_spatial_risk: float
    units_lost: float

    @property
    def quantity_enhanced(self) -> float:
        return self.area_enhanced


class HabitatCreation(HabitatCreationInput, _Scored, _Temporal):
    units_delivered: float


class OffSiteHabitatCreation(OffSiteHabitatCreationInput, _Scored, _Temporal):
    spatial_risk_multiplier: float
    units_delivered: float
    units_delivered_with_spatial_risk: float


class HabitatEnhancement(HabitatEnhancementInput, _Scored, _Temporal):
    baseline: HabitatBaseline
    area: float
    enhancement_pathway: str
    units_delivered: float


class OffSiteHabitatEnhancement(OffSiteHabitatEnhancementInput, _Scored, _Temporal):
    baseline: OffSiteHabitatBaseline
    area: float
    enhancement_pathway: str
    spatial_risk_multiplier: float
    units_delivered: float
    units_delivered_with_spatial_risk: float


class HedgerowBaseline(HedgerowBaselineInput, _Scored):
    units_retained: float
    units_enhanced: float
    length_lost: float
    total_units: float
    units_lost: float

    @property
    def quantity_enhanced(self) -> float:
        return self.length_enhanced


class HedgerowCreation(HedgerowCreationInput, _Scored, _Temporal):
    units_delivered: float


class HedgerowEnhancement(HedgerowEnhancementInput, _Scored, _Temporal):
    baseline: HedgerowBaseline
    length: float
    enhancement_pathway: str
    units_delivered: float
