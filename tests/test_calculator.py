"""Tests for noteimpact.impact: formula table and calculator."""

from __future__ import annotations

import pytest

from noteimpact.classification.models import CATEGORIES, UNITS, ClassificationResult
from noteimpact.impact.calculator import calculate, resolve_formula
from noteimpact.impact.formulas import (
    ACTION_FORMULAS,
    CATEGORY_DEFAULTS,
    IMPACT_FORMULAS,
    action_types_by_category,
)


def _result(action_type: str, category: str = "other", quantity=None, unit=None) -> ClassificationResult:
    return ClassificationResult(
        category=category,
        action_type=action_type,
        quantity=quantity,
        unit=unit,
        confidence=0.9,
    )


class TestFormulaTable:
    def test_every_action_rule_points_at_a_formula(self):
        for action, rule in ACTION_FORMULAS.items():
            assert rule.formula_id in IMPACT_FORMULAS, action
            if rule.instance_formula_id:
                assert rule.instance_formula_id in IMPACT_FORMULAS, action

    def test_every_category_default_points_at_a_formula(self):
        for category, default in CATEGORY_DEFAULTS.items():
            assert category in CATEGORIES
            assert default.formula_id in IMPACT_FORMULAS

    def test_other_has_no_default(self):
        assert "other" not in CATEGORY_DEFAULTS

    def test_every_offered_action_type_has_a_rule(self):
        for category, types in action_types_by_category().items():
            assert category in CATEGORIES
            for action in types:
                if action == "general_action":
                    continue
                assert action in ACTION_FORMULAS, action

    def test_factors_are_non_negative(self):
        for formula_id, f in IMPACT_FORMULAS.items():
            for value in (f.co2_kg, f.plastic_g, f.water_liters, f.energy_kwh):
                assert value is None or value >= 0, formula_id
            assert f.source


class TestScenarios:
    def test_bike_five_miles(self):
        impact = calculate(_result("car_to_bike", "transportation", 5, "miles"))
        assert impact.co2_kg == pytest.approx(2.02)
        assert impact.formula_id == "car_to_bike_per_mile"
        assert impact.formula_source == "EPA 2024"
        assert impact.plastic_g is None
        assert impact.water_liters is None
        assert impact.energy_kwh is None

    def test_plastic_bottle_without_quantity(self):
        impact = calculate(_result("plastic_bottle_avoided", "waste"))
        assert impact.co2_kg == 0.082
        assert impact.plastic_g == 25
        assert impact.formula_id == "plastic_bottle_avoided"

    def test_other_is_all_null(self):
        impact = calculate(_result("general_action", "other"))
        assert impact.co2_kg is None
        assert impact.plastic_g is None
        assert impact.water_liters is None
        assert impact.energy_kwh is None
        assert impact.formula_id == "other"
        assert impact.formula_source is None

    def test_fallback_result_is_all_null(self):
        impact = calculate(ClassificationResult.fallback("AI classification failed"))
        assert impact.co2_kg is None
        assert impact.formula_id == "other"


class TestUnitNormalisation:
    def test_km_matches_equivalent_miles(self):
        km = calculate(_result("car_to_bike", "transportation", 10, "km"))
        miles = calculate(_result("car_to_bike", "transportation", 6.21, "miles"))
        assert km.co2_kg == pytest.approx(miles.co2_kg, abs=1e-4)

    def test_km_conversion_for_transit(self):
        impact = calculate(_result("car_to_transit", "transportation", 100, "km"))
        assert impact.co2_kg == pytest.approx(round(0.228 * 62.1, 4))

    def test_incompatible_unit_counts_one_instance(self):
        impact = calculate(_result("car_to_bike", "transportation", 30, "minutes"))
        assert impact.co2_kg == 0.404

    def test_distance_without_unit_counts_one_instance(self):
        impact = calculate(_result("car_to_walk", "transportation", 3, None))
        assert impact.co2_kg == 0.404


class TestMultiplier:
    def test_counted_items(self):
        impact = calculate(_result("plastic_bag_avoided", "waste", 3, "items"))
        assert impact.co2_kg == pytest.approx(0.099)
        assert impact.plastic_g == 30

    def test_counted_without_unit(self):
        impact = calculate(_result("beef_to_veg", "food", 2, None))
        assert impact.co2_kg == 7.0

    def test_meals(self):
        impact = calculate(_result("meat_to_veg", "food", 3, "meals"))
        assert impact.co2_kg == 7.5

    def test_hours_of_lights_off(self):
        impact = calculate(_result("lights_off", "energy", 4, "hours"))
        assert impact.co2_kg == pytest.approx(0.184)
        assert impact.energy_kwh == pytest.approx(0.24)

    def test_kg_of_recycling(self):
        impact = calculate(_result("recycling", "waste", 2.5, "kg"))
        assert impact.co2_kg == 1.25

    def test_shower_minutes(self):
        impact = calculate(_result("shorter_shower", "water", 3, "minutes"))
        assert impact.formula_id == "shower_minute_saved"
        assert impact.water_liters == 27
        assert impact.co2_kg == pytest.approx(0.0081)

    def test_shorter_shower_without_minutes_uses_instance_formula(self):
        impact = calculate(_result("shorter_shower", "water"))
        assert impact.formula_id == "shorter_shower_5min"
        assert impact.water_liters == 45

    def test_solar_ignores_quantity(self):
        impact = calculate(_result("solar", "energy", 12, "items"))
        assert impact.co2_kg == 0.92
        assert impact.energy_kwh == 1.0

    def test_zero_quantity_counts_one_instance(self):
        impact = calculate(_result("plastic_bottle_avoided", "waste", 0, "items"))
        assert impact.plastic_g == 25

    def test_negative_quantity_counts_one_instance(self):
        impact = calculate(_result("plastic_bottle_avoided", "waste", -4, "items"))
        assert impact.plastic_g == 25

    def test_rounds_to_four_decimals(self):
        impact = calculate(_result("car_to_bike", "transportation", 1.23456, "miles"))
        assert impact.co2_kg == round(0.404 * 1.23456, 4)


class TestCategoryDefaults:
    @pytest.mark.parametrize(
        "category,formula_id",
        [
            ("transportation", "car_trip_avoided_default"),
            ("food", "meat_meal_to_veg"),
            ("waste", "plastic_bottle_avoided"),
            ("energy", "lights_off_per_hour"),
            ("water", "tap_off_brushing"),
            ("shopping", "fast_fashion_item_avoided"),
        ],
    )
    def test_unknown_action_uses_category_default(self, category, formula_id):
        impact = calculate(_result("something_new", category, 50, "items"))
        assert impact.formula_id == formula_id
        assert impact.co2_kg == CATEGORY_DEFAULTS[category].formula.co2_kg

    def test_default_ignores_quantity(self):
        formula_id, _, multiplier = resolve_formula(_result("general_action", "food", 9, "meals"))
        assert formula_id == "meat_meal_to_veg"
        assert multiplier == 1.0

    def test_shopping_default_credits_co2_only(self):
        impact = calculate(_result("general_action", "shopping"))
        assert impact.formula_id == "fast_fashion_item_avoided"
        assert impact.co2_kg == 10.0
        assert impact.water_liters is None
        assert impact.plastic_g is None
        assert impact.energy_kwh is None

    def test_energy_default_credits_co2_only(self):
        impact = calculate(_result("general_action", "energy"))
        assert impact.formula_id == "lights_off_per_hour"
        assert impact.co2_kg == 0.046
        assert impact.energy_kwh is None

    def test_waste_and_water_defaults(self):
        waste = calculate(_result("general_action", "waste"))
        assert (waste.co2_kg, waste.plastic_g) == (0.082, 25)
        water = calculate(_result("general_action", "water"))
        assert (water.co2_kg, water.water_liters) == (0.0024, 8)

    def test_recognised_action_keeps_full_formula(self):
        impact = calculate(_result("fast_fashion_avoided", "shopping"))
        assert impact.water_liters == 2700

    def test_unknown_category_and_action(self):
        assert resolve_formula(_result("mystery", "gardening")) is None
        assert calculate(_result("mystery", "gardening")).co2_kg is None


class TestTotalFunction:
    def test_never_raises_and_never_negative(self):
        actions = list(ACTION_FORMULAS) + ["general_action", "unknown"]
        quantities = [None, 0, 1, 2.5, -3, float("nan"), float("inf")]
        for category in CATEGORIES:
            for action in actions:
                for quantity in quantities:
                    for unit in (None,) + UNITS:
                        impact = calculate(_result(action, category, quantity, unit))
                        for value in (
                            impact.co2_kg,
                            impact.plastic_g,
                            impact.water_liters,
                            impact.energy_kwh,
                        ):
                            assert value is None or value >= 0

    def test_non_other_categories_always_produce_a_value(self):
        for category in CATEGORIES:
            if category == "other":
                continue
            impact = calculate(_result("unknown", category))
            assert any(
                v is not None
                for v in (impact.co2_kg, impact.plastic_g, impact.water_liters, impact.energy_kwh)
            )
