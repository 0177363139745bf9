"""
bng_units/pipelines.py

One evaluation pipeline per record kind.

A pipeline is an explicit list of stages run after the input model has
validated the shape of the raw record. A stage either returns a list of
failures (empty = passed) or a dict of derived values merged into the
record data. Evaluation stops at the first stage that fails.

Usage:
    result = evaluate_on_site_habitat_creation({
        "broad_habitat": "Grassland",
        "habitat_type": "Lowland calcareous grassland",
        "area": 1,
        "condition": "Good",
        "strategic_significance": "Formally identified in local strategy",
    })
    if result.ok:
        print(result.record.units_delivered)
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, Union

from pydantic import BaseModel

from . import formulas
from .catalog import ReferenceCatalog, canon, load_default_catalog, pathway_label
from .config import Settings, get_settings
from .difficulty import resolve_difficulty
from .enrichment import enrich_habitat, enrich_hedgerow, enrich_spatial_risk
from .records import (
    EvaluationContext,
    HabitatBaseline,
    HabitatBaselineInput,
    HabitatCreation,
    HabitatCreationInput,
    HabitatEnhancement,
    HabitatEnhancementInput,
    HedgerowBaseline,
    HedgerowBaselineInput,
    HedgerowCreation,
    HedgerowCreationInput,
    HedgerowEnhancement,
    HedgerowEnhancementInput,
    OffSiteHabitatBaseline,
    OffSiteHabitatBaselineInput,
    OffSiteHabitatCreation,
    OffSiteHabitatCreationInput,
    OffSiteHabitatEnhancement,
    OffSiteHabitatEnhancementInput,
    RecordKind,
)
from .result import EvaluationResult, FailureCategory, ValidationFailure
from .temporal import adjust, standard_creation_years, standard_enhancement_years, years_to_poor
from .trading_rules import check_trading_rules
from .validation import (
    check_advance_and_delay,
    check_bespoke_compensation,
    check_condition,
    check_habitat_identity,
    check_hedgerow_identity,
    check_irreplaceable,
    check_irreplaceable_trees,
    check_off_site_reference,
    check_quantities,
    parse_input,
    record_data,
)
from .years import parse_adjustment

logger = logging.getLogger(__name__)

Data = Dict[str, Any]
StageOutcome = Union[Data, List[ValidationFailure]]
Stage = Callable[[Data, EvaluationContext], StageOutcome]


def checks(*fns: Callable[[Data, EvaluationContext], List[ValidationFailure]]) -> Stage:
    """Run several checks as one stage, collecting all their failures."""
    def stage(data: Data, context: EvaluationContext) -> List[ValidationFailure]:
        failures = []
        for fn in fns:
            failures.extend(fn(data, context))
        return failures
    stage.__name__ = "+".join(fn.__name__ for fn in fns)
    return stage


@dataclass(frozen=True)
class Pipeline:
    kind: RecordKind
    input_model: Type[BaseModel]
    output_model: Type[BaseModel]
    stages: Tuple[Stage, ...]

    def unbounded_years(self, settings: Settings) -> int:
        if self.kind.hedgerow:
            return settings.hedgerow_unbounded_years
        return settings.habitat_unbounded_years

    def run(self, raw: Any, catalog: Optional[ReferenceCatalog] = None,
            settings: Optional[Settings] = None) -> EvaluationResult:
        catalog = catalog if catalog is not None else load_default_catalog()
        settings = settings or get_settings()
        context = EvaluationContext(catalog, self.kind, self.unbounded_years(settings))

        record, failures = parse_input(raw, self.input_model)
        if failures:
            logger.debug(f"{self.kind.value}: input rejected: {[str(f) for f in failures]}")
            return EvaluationResult.failure(failures)

        data = record_data(record)
        for stage in self.stages:
            outcome = stage(data, context)
            if isinstance(outcome, list):
                if outcome:
                    logger.debug(f"{self.kind.value}: {stage.__name__} failed: "
                                 f"{[str(f) for f in outcome]}")
                    return EvaluationResult.failure(outcome)
                continue
            data = {**data, **outcome}

        public = {k: v for k, v in data.items() if not k.startswith("_")}
        return EvaluationResult.success(self.output_model(**public))


# ================= Baseline stages =================

def habitat_baseline_units(data: Data, context: EvaluationContext) -> Data:
    irreplaceable_tree = data["irreplaceable"] and canon(data["broad_habitat"]) == "individual_trees"
    units = formulas.habitat_baseline_units(
        data["area"], data["area_retained"], data["area_enhanced"],
        data["distinctiveness_score"], data["condition_score"],
        data["strategic_significance_multiplier"],
        data["irreplaceable"], data["trading_action"], data["bespoke_compensation_agreed"],
        irreplaceable_tree=irreplaceable_tree,
    )
    return {
        "units_retained": units.units_retained,
        "units_enhanced": units.units_enhanced,
        "area_lost": units.quantity_lost,
        "total_units": units.total_units,
        "units_lost": units.units_lost,
    }


def off_site_habitat_baseline_units(data: Data, context: EvaluationContext) -> Data:
    derived = habitat_baseline_units(data, context)
    derived["total_units_with_spatial_risk"] = formulas.off_site_total_units(
        data["area"], data["area_retained"], data["area_enhanced"],
        derived["units_retained"], derived["units_enhanced"],
        data["distinctiveness_score"], data["condition_score"],
        data["strategic_significance_multiplier"], data["spatial_risk_multiplier"],
        data["trading_action"],
    )
    return derived


def hedgerow_baseline_units(data: Data, context: EvaluationContext) -> Data:
    units = formulas.hedgerow_baseline_units(
        data["length"], data["length_retained"], data["length_enhanced"],
        data["distinctiveness_score"], data["condition_score"],
        data["strategic_significance_multiplier"],
    )
    return {
        "units_retained": units.units_retained,
        "units_enhanced": units.units_enhanced,
        "length_lost": units.quantity_lost,
        "total_units": units.total_units,
        "units_lost": units.units_lost,
    }


# ================= Temporal / difficulty =================

def _temporal_fields(reference, stage: str, standard, data: Data, context: EvaluationContext) -> Data:
    advance = parse_adjustment(data["advance_years"])
    delay = parse_adjustment(data["delay_years"])
    adjustment = adjust(standard, advance, delay, context.unbounded_years)
    difficulty = resolve_difficulty(reference, stage, advance, adjustment.final_years,
                                    years_to_poor(reference), context.unbounded_years)
    return {
        "standard_years": standard,
        "final_years": adjustment.final_years,
        "temporal_multiplier": adjustment.multiplier,
        "standard_difficulty": difficulty.standard,
        "applied_difficulty_rule": difficulty.rule,
        "final_difficulty": difficulty.tier,
        "difficulty_multiplier": difficulty.multiplier,
    }


def creation_temporal(data: Data, context: EvaluationContext) -> Data:
    reference = data["_reference"]
    standard = standard_creation_years(reference, data["condition"])
    return _temporal_fields(reference, "creation", standard, data, context)


def creation_units(data: Data, context: EvaluationContext) -> Data:
    quantity = data["length"] if context.kind.hedgerow else data["area"]
    units = formulas.creation_units(
        quantity, data["distinctiveness_score"], data["condition_score"],
        data["strategic_significance_multiplier"], data["temporal_multiplier"],
        data["difficulty_multiplier"],
    )
    derived = {"units_delivered": units}
    if context.kind.off_site:
        derived["units_delivered_with_spatial_risk"] = formulas.with_spatial_risk(
            units, data["spatial_risk_multiplier"])
    return derived


# ================= Enhancement stages =================

def _baseline_kind(kind: RecordKind) -> RecordKind:
    if kind == RecordKind.OFF_SITE_HABITAT_ENHANCEMENT:
        return RecordKind.OFF_SITE_HABITAT_BASELINE
    if kind == RecordKind.ON_SITE_HEDGEROW_ENHANCEMENT:
        return RecordKind.ON_SITE_HEDGEROW_BASELINE
    return RecordKind.ON_SITE_HABITAT_BASELINE


def resolve_baseline(data: Data, context: EvaluationContext) -> StageOutcome:
    """
    Use the computed baseline as given, or evaluate a raw one first.

    Failures of a raw baseline are reported against the "baseline" field.
    """
    pipeline = PIPELINES[_baseline_kind(context.kind)]
    baseline = data["baseline"]
    if not isinstance(baseline, pipeline.output_model):
        result = pipeline.run(baseline, context.catalog)
        if not result.ok:
            return [
                ValidationFailure(f.rule, f.message, f.category,
                                  f"baseline.{f.field}" if f.field else "baseline")
                for f in result.failures
            ]
        baseline = result.record

    if context.kind.hedgerow:
        reference = context.catalog.lookup_hedgerow(baseline.habitat_type)
        quantity = {"length": baseline.length_enhanced}
    else:
        reference = context.catalog.lookup_habitat(baseline.broad_habitat, baseline.habitat_type)
        quantity = {"area": baseline.area_enhanced}
    if reference is None:
        rule = "hedgerow_not_found" if context.kind.hedgerow else "habitat_not_found"
        return [ValidationFailure(rule, "Baseline habitat is not in the catalog",
                                  FailureCategory.CATALOG, "baseline.habitat_type")]
    return {"baseline": baseline, "_baseline_reference": reference, **quantity}


def enhancement_trading_rules(data: Data, context: EvaluationContext) -> List[ValidationFailure]:
    baseline = data["baseline"]
    return check_trading_rules(
        data["_baseline_reference"], data["_reference"],
        baseline.condition_score, data["condition_score"],
        getattr(baseline, "irreplaceable", False),
    )


def enhancement_temporal(data: Data, context: EvaluationContext) -> Data:
    baseline = data["baseline"]
    reference = data["_reference"]
    standard = standard_enhancement_years(data["_baseline_reference"], baseline.condition,
                                          reference, data["condition"])
    derived = _temporal_fields(reference, "enhancement", standard, data, context)
    derived["enhancement_pathway"] = pathway_label(baseline.condition, data["condition"])
    return derived


def enhancement_units(data: Data, context: EvaluationContext) -> Data:
    baseline = data["baseline"]
    quantity = baseline.quantity_enhanced
    units = formulas.enhancement_units(
        quantity, baseline.distinctiveness_score, baseline.condition_score,
        data["distinctiveness_score"], data["condition_score"],
        data["strategic_significance_multiplier"], data["temporal_multiplier"],
        data["difficulty_multiplier"],
    )
    derived = {"units_delivered": units}
    if context.kind.off_site:
        derived["spatial_risk_multiplier"] = baseline.spatial_risk_multiplier
        derived["units_delivered_with_spatial_risk"] = formulas.with_spatial_risk(
            units, baseline.spatial_risk_multiplier)
    return derived


# ================= Pipelines =================

PIPELINES: Dict[RecordKind, Pipeline] = {
    RecordKind.ON_SITE_HABITAT_BASELINE: Pipeline(
        RecordKind.ON_SITE_HABITAT_BASELINE, HabitatBaselineInput, HabitatBaseline, (
            check_habitat_identity,
            checks(check_condition, check_irreplaceable, check_quantities,
                   check_irreplaceable_trees, check_bespoke_compensation),
            enrich_habitat,
            habitat_baseline_units,
        )),
    RecordKind.OFF_SITE_HABITAT_BASELINE: Pipeline(
        RecordKind.OFF_SITE_HABITAT_BASELINE, OffSiteHabitatBaselineInput, OffSiteHabitatBaseline, (
            check_habitat_identity,
            checks(check_condition, check_irreplaceable, check_quantities,
                   check_irreplaceable_trees, check_bespoke_compensation, check_off_site_reference),
            enrich_habitat,
            enrich_spatial_risk,
            off_site_habitat_baseline_units,
        )),
    RecordKind.ON_SITE_HABITAT_CREATION: Pipeline(
        RecordKind.ON_SITE_HABITAT_CREATION, HabitatCreationInput, HabitatCreation, (
            check_habitat_identity,
            checks(check_condition, check_advance_and_delay),
            enrich_habitat,
            creation_temporal,
            creation_units,
        )),
    RecordKind.OFF_SITE_HABITAT_CREATION: Pipeline(
        RecordKind.OFF_SITE_HABITAT_CREATION, OffSiteHabitatCreationInput, OffSiteHabitatCreation, (
            check_habitat_identity,
            checks(check_condition, check_advance_and_delay, check_off_site_reference),
            enrich_habitat,
            enrich_spatial_risk,
            creation_temporal,
            creation_units,
        )),
    RecordKind.ON_SITE_HABITAT_ENHANCEMENT: Pipeline(
        RecordKind.ON_SITE_HABITAT_ENHANCEMENT, HabitatEnhancementInput, HabitatEnhancement, (
            resolve_baseline,
            check_habitat_identity,
            checks(check_condition, check_advance_and_delay),
            enrich_habitat,
            enhancement_trading_rules,
            enhancement_temporal,
            enhancement_units,
        )),
    RecordKind.OFF_SITE_HABITAT_ENHANCEMENT: Pipeline(
        RecordKind.OFF_SITE_HABITAT_ENHANCEMENT, OffSiteHabitatEnhancementInput,
        OffSiteHabitatEnhancement, (
            resolve_baseline,
            check_habitat_identity,
            checks(check_condition, check_advance_and_delay),
            enrich_habitat,
            enhancement_trading_rules,
            enhancement_temporal,
            enhancement_units,
        )),
    RecordKind.ON_SITE_HEDGEROW_BASELINE: Pipeline(
        RecordKind.ON_SITE_HEDGEROW_BASELINE, HedgerowBaselineInput, HedgerowBaseline, (
            check_hedgerow_identity,
            checks(check_condition, check_quantities),
            enrich_hedgerow,
            hedgerow_baseline_units,
        )),
    RecordKind.ON_SITE_HEDGEROW_CREATION: Pipeline(
        RecordKind.ON_SITE_HEDGEROW_CREATION, HedgerowCreationInput, HedgerowCreation, (
            check_hedgerow_identity,
            checks(check_condition, check_advance_and_delay),
            enrich_hedgerow,
            creation_temporal,
            creation_units,
        )),
    RecordKind.ON_SITE_HEDGEROW_ENHANCEMENT: Pipeline(
        RecordKind.ON_SITE_HEDGEROW_ENHANCEMENT, HedgerowEnhancementInput, HedgerowEnhancement, (
            resolve_baseline,
            check_hedgerow_identity,
            checks(check_condition, check_advance_and_delay),
            enrich_hedgerow,
            enhancement_trading_rules,
            enhancement_temporal,
            enhancement_units,
        )),
}


def evaluate(kind: Union[RecordKind, str], raw: Any,
             catalog: Optional[ReferenceCatalog] = None) -> EvaluationResult:
    """Evaluate a raw record of the given kind ("on_site_habitat_baseline", ...)."""
    try:
        kind = RecordKind(kind)
    except ValueError:
        raise ValueError(f"Unknown record kind: {kind!r}. "
                         f"Expected one of: {', '.join(k.value for k in RecordKind)}") from None
    return PIPELINES[kind].run(raw, catalog)


def evaluate_on_site_habitat_baseline(raw, catalog: Optional[ReferenceCatalog] = None) -> EvaluationResult:
    return evaluate(RecordKind.ON_SITE_HABITAT_BASELINE, raw, catalog)


def evaluate_off_site_habitat_baseline(raw, catalog: Optional[ReferenceCatalog] = None) -> EvaluationResult:
    return evaluate(RecordKind.OFF_SITE_HABITAT_BASELINE, raw, catalog)


def evaluate_on_site_habitat_creation(raw, catalog: Optional[ReferenceCatalog] = None) -> EvaluationResult:
    return evaluate(RecordKind.ON_SITE_HABITAT_CREATION, raw, catalog)


def evaluate_off_site_habitat_creation(raw, catalog: Optional[ReferenceCatalog] = None) -> EvaluationResult:
    return evaluate(RecordKind.OFF_SITE_HABITAT_CREATION, raw, catalog)


def evaluate_on_site_habitat_enhancement(raw, catalog: Optional[ReferenceCatalog] = None) -> EvaluationResult:
    return evaluate(RecordKind.ON_SITE_HABITAT_ENHANCEMENT, raw, catalog)


def evaluate_off_site_habitat_enhancement(raw, catalog: Optional[ReferenceCatalog] = None) -> EvaluationResult:
    return evaluate(RecordKind.OFF_SITE_HABITAT_ENHANCEMENT, raw, catalog)


def evaluate_on_site_hedgerow_baseline(raw, catalog: Optional[ReferenceCatalog] = None) -> EvaluationResult:
    return evaluate(RecordKind.ON_SITE_HEDGEROW_BASELINE, raw, catalog)


def evaluate_on_site_hedgerow_creation(raw, catalog: Optional[ReferenceCatalog] = None) -> EvaluationResult:
    return evaluate(RecordKind.ON_SITE_HEDGEROW_CREATION, raw, catalog)


def evaluate_on_site_hedgerow_enhancement(raw, catalog: Optional[ReferenceCatalog] = None) -> EvaluationResult:
    return evaluate(RecordKind.ON_SITE_HEDGEROW_ENHANCEMENT, raw, catalog)
