"""
Tests for on-site and off-site habitat baseline records
"""

import logging

import pytest

from bng_units.pipelines import (
    evaluate_off_site_habitat_baseline,
    evaluate_on_site_habitat_baseline,
)
from bng_units.records import HabitatBaseline, OffSiteHabitatBaseline
from bng_units.result import EvaluationError, FailureCategory
from bng_units.tables import Distinctiveness, TradingAction


def test_baseline_units(catalog, habitat_baseline):
    result = evaluate_on_site_habitat_baseline(habitat_baseline(), catalog)
    assert result.ok, result.failures
    record = result.record
    assert isinstance(record, HabitatBaseline)
    assert record.distinctiveness == Distinctiveness.LOW
    assert record.distinctiveness_score == 2
    assert record.condition_score == 2
    assert record.strategic_significance_category == "Low strategic significance"
    assert record.trading_action == TradingAction.SAME_OR_BETTER
    assert record.units_retained == 16
    assert record.units_enhanced == 12
    assert record.area_lost == 3
    assert record.total_units == 40
    assert record.units_lost == 12


def test_baseline_area_is_conserved(catalog, habitat_baseline):
    record = evaluate_on_site_habitat_baseline(
        habitat_baseline(area=2.75, area_retained=1.2, area_enhanced=0.55), catalog).unwrap()
    assert abs(record.area_retained + record.area_enhanced + record.area_lost - record.area) < 1e-9
    assert abs(record.units_retained + record.units_enhanced + record.units_lost - record.total_units) < 1e-9


def test_unknown_habitat(catalog, habitat_baseline):
    result = evaluate_on_site_habitat_baseline(habitat_baseline(habitat_type="Lawn"), catalog)
    assert not result.ok
    assert result.record is None
    assert result.rules == ("habitat_not_found",)
    assert result.failures[0].category == FailureCategory.CATALOG


def test_habitat_stage_restrictions(catalog, habitat_baseline):
    felled = habitat_baseline(broad_habitat="Woodland and forest", habitat_type="Felled",
                              condition="Poor")
    assert evaluate_on_site_habitat_baseline(felled, catalog).ok

    replacement = habitat_baseline(broad_habitat="Woodland and forest",
                                   habitat_type="Replacement for felled woodland", condition="Poor")
    result = evaluate_on_site_habitat_baseline(replacement, catalog)
    assert result.rules == ("habitat_not_allowed_for_record_kind",)


def test_invalid_condition_for_habitat(catalog, habitat_baseline):
    result = evaluate_on_site_habitat_baseline(
        habitat_baseline(condition="Condition Assessment N/A"), catalog)
    assert result.rules == ("invalid_condition",)
    assert result.failures[0].field == "condition"


def test_coniferous_woodland_conditions(catalog, habitat_baseline):
    for condition in ["Good", "Moderate", "Poor"]:
        raw = habitat_baseline(broad_habitat="Woodland and forest",
                               habitat_type="Other coniferous woodland", condition=condition)
        assert evaluate_on_site_habitat_baseline(raw, catalog).ok
    raw = habitat_baseline(broad_habitat="Woodland and forest",
                           habitat_type="Other coniferous woodland", condition="Fairly Good")
    assert evaluate_on_site_habitat_baseline(raw, catalog).rules == ("invalid_condition",)


def test_field_errors(catalog, habitat_baseline):
    result = evaluate_on_site_habitat_baseline(habitat_baseline(condition="Excellent"), catalog)
    assert result.rules == ("invalid_field",)
    assert result.failures[0].field == "condition"
    assert result.failures[0].category == FailureCategory.FIELD

    result = evaluate_on_site_habitat_baseline(habitat_baseline(area=-1), catalog)
    assert result.rules == ("invalid_field",)
    assert result.failures[0].field == "area"

    raw = habitat_baseline()
    del raw["strategic_significance"]
    result = evaluate_on_site_habitat_baseline(raw, catalog)
    assert [f.field for f in result.failures] == ["strategic_significance"]


def test_infinite_quantities_rejected(catalog, habitat_baseline):
    result = evaluate_on_site_habitat_baseline(
        habitat_baseline(area=float("inf"), area_retained=float("inf")), catalog)
    assert not result.ok
    assert {f.rule for f in result.failures} == {"invalid_field"}
    assert {f.field for f in result.failures} == {"area", "area_retained"}

    result = evaluate_on_site_habitat_baseline(habitat_baseline(area_enhanced=float("nan")), catalog)
    assert result.rules == ("invalid_field",)
    assert result.failures[0].field == "area_enhanced"


def test_not_a_mapping(catalog):
    result = evaluate_on_site_habitat_baseline(["Grassland", "Modified grassland"], catalog)
    assert result.rules == ("invalid_field",)


def test_quantities_exceed_total(catalog, habitat_baseline):
    result = evaluate_on_site_habitat_baseline(
        habitat_baseline(area=5, area_retained=3, area_enhanced=3), catalog)
    assert result.rules == ("quantities_exceed_total",)

    # Rounding noise is tolerated
    result = evaluate_on_site_habitat_baseline(
        habitat_baseline(area=0.3, area_retained=0.1, area_enhanced=0.2), catalog)
    assert result.ok


def test_rule_failures_are_collected_together(catalog, habitat_baseline):
    result = evaluate_on_site_habitat_baseline(
        habitat_baseline(condition="Fairly Good", area=5, area_retained=3, area_enhanced=3), catalog)
    assert set(result.rules) == {"invalid_condition", "quantities_exceed_total"}


def test_evaluation_stops_at_first_failing_stage(catalog, habitat_baseline):
    result = evaluate_on_site_habitat_baseline(
        habitat_baseline(habitat_type="Lawn", area=5, area_retained=3, area_enhanced=3), catalog)
    assert result.rules == ("habitat_not_found",)


def test_irreplaceable_flag_must_match_catalog(catalog, habitat_baseline):
    dunes = habitat_baseline(broad_habitat="Sparsely vegetated land", habitat_type="Coastal sand dunes",
                             irreplaceable=False, area=4, area_retained=4, area_enhanced=0)
    assert evaluate_on_site_habitat_baseline(dunes, catalog).rules == ("invalid_irreplaceable",)

    modified = habitat_baseline(irreplaceable=True, area_retained=7)
    assert evaluate_on_site_habitat_baseline(modified, catalog).rules == ("invalid_irreplaceable",)

    # Unflagged habitats accept either value
    tree = habitat_baseline(broad_habitat="Individual trees", habitat_type="Urban tree",
                            irreplaceable=True, area=1, area_retained=1, area_enhanced=0)
    assert evaluate_on_site_habitat_baseline(tree, catalog).ok


def test_irreplaceable_baseline_units(catalog, habitat_baseline):
    dunes = habitat_baseline(broad_habitat="Sparsely vegetated land", habitat_type="Coastal sand dunes",
                             irreplaceable=True, area=8, area_retained=7, area_enhanced=0,
                             bespoke_compensation_agreed="Yes")
    record = evaluate_on_site_habitat_baseline(dunes, catalog).unwrap()
    assert record.trading_action == TradingAction.BESPOKE_LIKELY
    assert record.units_retained == 0
    assert record.total_units == 112
    assert record.area_lost == 1
    assert record.units_lost == 0


def test_bespoke_compensation_required_for_loss(catalog, habitat_baseline):
    calcareous = dict(broad_habitat="Grassland", habitat_type="Lowland calcareous grassland",
                      area=2, area_retained=1, area_enhanced=0)
    for agreed in ["No", "Pending"]:
        result = evaluate_on_site_habitat_baseline(
            habitat_baseline(bespoke_compensation_agreed=agreed, **calcareous), catalog)
        assert result.rules == ("bespoke_compensation_not_agreed",)

    record = evaluate_on_site_habitat_baseline(
        habitat_baseline(bespoke_compensation_agreed="Yes", **calcareous), catalog).unwrap()
    assert record.trading_action == TradingAction.SAME_HABITAT_BESPOKE_OPTION
    assert record.total_units == 2 * 8 * 2
    assert record.units_lost == 0


def test_bespoke_compensation_not_needed_without_loss(catalog, habitat_baseline):
    raw = habitat_baseline(broad_habitat="Grassland", habitat_type="Lowland calcareous grassland",
                           area=2, area_retained=1, area_enhanced=1)
    assert evaluate_on_site_habitat_baseline(raw, catalog).ok


def test_irreplaceable_trees_cannot_be_enhanced(catalog, habitat_baseline):
    tree = habitat_baseline(broad_habitat="Individual trees", habitat_type="Urban tree",
                            irreplaceable=True, area=1, area_retained=0.5, area_enhanced=0.5)
    result = evaluate_on_site_habitat_baseline(tree, catalog)
    assert result.rules == ("irreplaceable_trees_enhanced",)


def test_unwrap_raises_with_failures(catalog, habitat_baseline):
    result = evaluate_on_site_habitat_baseline(habitat_baseline(habitat_type="Lawn"), catalog)
    with pytest.raises(EvaluationError) as excinfo:
        result.unwrap()
    assert excinfo.value.failures[0].rule == "habitat_not_found"
    assert "habitat_not_found" in str(excinfo.value)


def test_failures_logged_at_debug(catalog, habitat_baseline, caplog):
    with caplog.at_level(logging.DEBUG, logger="bng_units.pipelines"):
        evaluate_on_site_habitat_baseline(habitat_baseline(habitat_type="Lawn"), catalog)
    assert "on_site_habitat_baseline" in caplog.text
    assert "habitat_not_found" in caplog.text


def test_evaluating_a_computed_record_is_idempotent(catalog, habitat_baseline):
    record = evaluate_on_site_habitat_baseline(habitat_baseline(), catalog).unwrap()
    again = evaluate_on_site_habitat_baseline(record, catalog).unwrap()
    assert again == record


def test_off_site_baseline(catalog, off_site_habitat_baseline):
    record = evaluate_off_site_habitat_baseline(off_site_habitat_baseline(), catalog).unwrap()
    assert isinstance(record, OffSiteHabitatBaseline)
    assert record.spatial_risk_multiplier == 0.75
    assert record.total_units == 40
    assert record.total_units_with_spatial_risk == 30
    assert record.off_site_reference == "BGS-010203"


def test_off_site_baseline_requirements(catalog, off_site_habitat_baseline):
    result = evaluate_off_site_habitat_baseline(off_site_habitat_baseline(off_site_reference=" "), catalog)
    assert result.rules == ("off_site_reference_required",)

    raw = off_site_habitat_baseline()
    del raw["spatial_risk"]
    result = evaluate_off_site_habitat_baseline(raw, catalog)
    assert [f.field for f in result.failures] == ["spatial_risk"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
