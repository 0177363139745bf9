"""
bng_units/validation.py

Structural validation of raw records.

Each check takes the record data and the evaluation context and returns the
list of failures it found (empty when the record passes). Checks never
correct a record.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple, Type

import numpy as np
from pydantic import BaseModel, ValidationError

from .catalog import canon
from .enrichment import trading_action
from .records import EvaluationContext
from .result import FailureCategory, ValidationFailure
from .tables import BESPOKE_ACTIONS, BespokeCompensation
from .years import is_positive, parse_adjustment

Data = Dict[str, Any]


def record_data(record: BaseModel) -> Data:
    """Field values of a model, one level deep (nested records stay models)."""
    return {name: getattr(record, name) for name in type(record).model_fields}


def parse_input(raw: Any, model: Type[BaseModel]) -> Tuple[Optional[BaseModel], List[ValidationFailure]]:
    """
    Validate the shape of a raw record against its input model.

    Type errors, unknown picklist values, negative quantities and missing
    fields come back as invalid_field failures with the field path.
    """
    if isinstance(raw, BaseModel):
        raw = record_data(raw)
    if not isinstance(raw, Mapping):
        return None, [ValidationFailure(
            "invalid_field", f"Expected a mapping, got {type(raw).__name__}", FailureCategory.FIELD,
        )]
    try:
        return model.model_validate(dict(raw)), []
    except ValidationError as e:
        failures = [
            ValidationFailure(
                "invalid_field",
                err["msg"],
                FailureCategory.FIELD,
                ".".join(str(part) for part in err["loc"]) or None,
            )
            for err in e.errors()
        ]
        return None, failures


# ------------- identity -------------
def check_habitat_identity(data: Data, context: EvaluationContext) -> List[ValidationFailure]:
    reference = context.catalog.lookup_habitat(data["broad_habitat"], data["habitat_type"])
    if reference is None:
        return [ValidationFailure(
            "habitat_not_found",
            f"Unknown habitat: {data['broad_habitat']} - {data['habitat_type']}",
            FailureCategory.CATALOG, "habitat_type",
        )]
    stage = context.kind.stage
    if not reference.allows(stage):
        return [ValidationFailure(
            "habitat_not_allowed_for_record_kind",
            f"{reference.label} cannot be used for habitat {stage}",
            FailureCategory.CATALOG, "habitat_type",
        )]
    return []


def check_hedgerow_identity(data: Data, context: EvaluationContext) -> List[ValidationFailure]:
    if context.catalog.lookup_hedgerow(data["habitat_type"]) is None:
        return [ValidationFailure(
            "hedgerow_not_found",
            f"Unknown hedgerow: {data['habitat_type']}",
            FailureCategory.CATALOG, "habitat_type",
        )]
    return []


def _reference(data: Data, context: EvaluationContext):
    if context.kind.hedgerow:
        return context.catalog.lookup_hedgerow(data["habitat_type"])
    return context.catalog.lookup_habitat(data["broad_habitat"], data["habitat_type"])


def check_condition(data: Data, context: EvaluationContext) -> List[ValidationFailure]:
    reference = _reference(data, context)
    if data["condition"] not in reference.conditions:
        allowed = ", ".join(c.value for c in reference.conditions)
        return [ValidationFailure(
            "invalid_condition",
            f"{data['condition'].value} is not a valid condition for {reference.label} ({allowed})",
            FailureCategory.CATALOG, "condition",
        )]
    return []


# ------------- baseline rules -------------
def check_irreplaceable(data: Data, context: EvaluationContext) -> List[ValidationFailure]:
    """A habitat flagged in the catalog must be recorded the same way; unflagged accepts either."""
    reference = _reference(data, context)
    if reference.irreplaceable is None or reference.irreplaceable == data["irreplaceable"]:
        return []
    if reference.irreplaceable:
        message = f"{reference.label} is always irreplaceable"
    else:
        message = f"{reference.label} cannot be irreplaceable"
    return [ValidationFailure("invalid_irreplaceable", message, FailureCategory.RULE, "irreplaceable")]


def _quantity_fields(context: EvaluationContext) -> Tuple[str, str, str]:
    if context.kind.hedgerow:
        return "length", "length_retained", "length_enhanced"
    return "area", "area_retained", "area_enhanced"


def _exceeds(amount: float, limit: float) -> bool:
    return amount > limit and not np.isclose(amount, limit, rtol=1e-9, atol=1e-12)


def check_quantities(data: Data, context: EvaluationContext) -> List[ValidationFailure]:
    total, retained, enhanced = (data[f] for f in _quantity_fields(context))
    if _exceeds(retained + enhanced, total):
        return [ValidationFailure(
            "quantities_exceed_total",
            f"Retained ({retained}) plus enhanced ({enhanced}) exceeds the total ({total})",
            FailureCategory.RULE, _quantity_fields(context)[0],
        )]
    return []


def check_bespoke_compensation(data: Data, context: EvaluationContext) -> List[ValidationFailure]:
    """Losing a habitat that needs bespoke compensation requires the compensation to be agreed."""
    reference = _reference(data, context)
    action = trading_action(reference.distinctiveness, data["irreplaceable"])
    lost = data["area"] - data["area_retained"] - data["area_enhanced"]
    if action not in BESPOKE_ACTIONS or not _exceeds(lost, 0.0):
        return []
    if data["bespoke_compensation_agreed"] == BespokeCompensation.YES:
        return []
    return [ValidationFailure(
        "bespoke_compensation_not_agreed",
        f"Losing {reference.label} needs agreed bespoke compensation "
        f"(currently {data['bespoke_compensation_agreed'].value})",
        FailureCategory.RULE, "bespoke_compensation_agreed",
    )]


def check_irreplaceable_trees(data: Data, context: EvaluationContext) -> List[ValidationFailure]:
    if (canon(data["broad_habitat"]) == "individual_trees" and data["irreplaceable"]
            and data["area_enhanced"] > 0):
        return [ValidationFailure(
            "irreplaceable_trees_enhanced",
            "Irreplaceable individual trees cannot be enhanced",
            FailureCategory.RULE, "area_enhanced",
        )]
    return []


def check_off_site_reference(data: Data, context: EvaluationContext) -> List[ValidationFailure]:
    if not (data.get("off_site_reference") or "").strip():
        return [ValidationFailure(
            "off_site_reference_required",
            "Off-site records need the off-site reference of the compensation site",
            FailureCategory.RULE, "off_site_reference",
        )]
    return []


# ------------- creation / enhancement rules -------------
def check_advance_and_delay(data: Data, context: EvaluationContext) -> List[ValidationFailure]:
    advance = parse_adjustment(data["advance_years"])
    delay = parse_adjustment(data["delay_years"])
    if is_positive(advance) and is_positive(delay):
        return [ValidationFailure(
            "advance_and_delay",
            "Cannot have both work in advance and a delay in starting work",
            FailureCategory.RULE, "delay_years",
        )]
    return []
