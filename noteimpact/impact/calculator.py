"""Convert a classified action into quantified environmental impact."""

from __future__ import annotations

import logging
import math

from noteimpact.classification.models import ClassificationResult, ImpactEstimate
from noteimpact.impact.formulas import (
    ACTION_FORMULAS,
    CATEGORY_DEFAULTS,
    IMPACT_FORMULAS,
    KM_TO_MILES,
    ImpactFormula,
)

logger = logging.getLogger(__name__)

DECIMALS = 4


def resolve_formula(result: ClassificationResult) -> tuple[str, ImpactFormula, float] | None:
    """Pick the formula id, factors and multiplier for a classification.

    Returns None when neither the action_type nor the category has a formula.
    """
    rule = ACTION_FORMULAS.get(result.action_type)
    if rule is not None:
        quantity = _usable_quantity(result, rule.units)
        if quantity is not None:
            return rule.formula_id, IMPACT_FORMULAS[rule.formula_id], quantity
        formula_id = rule.instance_formula_id or rule.formula_id
        return formula_id, IMPACT_FORMULAS[formula_id], 1.0

    default = CATEGORY_DEFAULTS.get(result.category)
    if default is not None:
        return default.formula_id, default.formula, 1.0
    return None


def calculate(result: ClassificationResult) -> ImpactEstimate:
    """Apply the matching formula to a classification. Never raises."""
    resolved = resolve_formula(result)
    if resolved is None:
        return ImpactEstimate(formula_id="other", formula_source=None)

    formula_id, formula, multiplier = resolved
    logger.debug(f"Applying {formula_id} x {multiplier} for {result.action_type}")
    return _apply(formula, formula_id, multiplier)


def _usable_quantity(result: ClassificationResult, units: frozenset) -> float | None:
    """Return the quantity normalised to the formula's unit, or None if unusable."""
    quantity = result.quantity
    if quantity is None or not units:
        return None
    if isinstance(quantity, bool) or not isinstance(quantity, (int, float)):
        return None
    if not math.isfinite(quantity) or quantity <= 0:
        return None
    if result.unit not in units:
        return None
    if result.unit == "km":
        return quantity * KM_TO_MILES
    return float(quantity)


def _apply(formula: ImpactFormula, formula_id: str, multiplier: float) -> ImpactEstimate:
    def scaled(factor: float | None) -> float | None:
        if factor is None:
            return None
        return round(factor * multiplier, DECIMALS)

    return ImpactEstimate(
        co2_kg=scaled(formula.co2_kg),
        plastic_g=scaled(formula.plastic_g),
        water_liters=scaled(formula.water_liters),
        energy_kwh=scaled(formula.energy_kwh),
        formula_id=formula_id,
        formula_source=formula.source,
    )
