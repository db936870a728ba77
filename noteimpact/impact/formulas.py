"""Research-backed impact conversion factors.

Sources: EPA 2024, IPCC 2023, Poore & Nemecek 2018, IEA 2024, Water Footprint
Network. Every factor is the amount saved per one unit of the action; the
distance formulas are calibrated in miles.
"""

from __future__ import annotations

from dataclasses import dataclass

KM_TO_MILES = 0.621

DISTANCE_UNITS = frozenset({"miles", "km"})
# Counted actions also accept a bare number with no unit ("skipped 3 bottles").
COUNT_UNITS = frozenset({"items", "meals", None})


@dataclass(frozen=True)
class ImpactFormula:
    source: str
    co2_kg: float | None = None
    plastic_g: float | None = None
    water_liters: float | None = None
    energy_kwh: float | None = None


@dataclass(frozen=True)
class ActionRule:
    """How an action_type maps onto a formula.

    ``units`` lists the units in which a stated quantity is a valid multiplier.
    ``instance_formula_id`` is used instead of ``formula_id`` when no usable
    quantity was stated and a single instance has its own calibrated entry.
    """

    formula_id: str
    units: frozenset = frozenset()
    instance_formula_id: str | None = None


IMPACT_FORMULAS: dict[str, ImpactFormula] = {
    # Transportation
    "car_to_bike_per_mile": ImpactFormula(co2_kg=0.404, source="EPA 2024"),
    "car_to_walk_per_mile": ImpactFormula(co2_kg=0.404, source="EPA 2024"),
    "car_to_transit_per_mile": ImpactFormula(co2_kg=0.228, source="EPA 2024"),
    "car_to_carpool_per_mile": ImpactFormula(co2_kg=0.202, source="EPA 2024"),
    "flight_avoided_per_mile": ImpactFormula(co2_kg=0.255, source="ICAO 2023"),
    "car_trip_avoided_default": ImpactFormula(co2_kg=1.2, source="EPA avg 3mi trip"),
    # Food
    "beef_meal_to_veg": ImpactFormula(co2_kg=3.5, source="Poore & Nemecek 2018"),
    "meat_meal_to_veg": ImpactFormula(co2_kg=2.5, source="Oxford 2023"),
    "dairy_meal_skipped": ImpactFormula(co2_kg=0.9, source="Poore & Nemecek 2018"),
    "food_waste_prevented_kg": ImpactFormula(co2_kg=2.5, source="FAO 2023"),
    "local_produce_meal": ImpactFormula(co2_kg=0.5, source="Worldwatch Institute"),
    # Waste
    "plastic_bottle_avoided": ImpactFormula(
        co2_kg=0.082, plastic_g=25, source="Plastic Pollution Coalition"
    ),
    "plastic_bag_avoided": ImpactFormula(co2_kg=0.033, plastic_g=10, source="EPA"),
    "straw_avoided": ImpactFormula(co2_kg=0.003, plastic_g=0.5, source="EPA"),
    "recycling_kg": ImpactFormula(co2_kg=0.5, source="EPA WasteWise"),
    "composting_kg": ImpactFormula(co2_kg=0.3, source="EPA"),
    # Energy
    "led_bulb_switch": ImpactFormula(co2_kg=0.15, energy_kwh=0.5, source="DOE 2024"),
    "lights_off_per_hour": ImpactFormula(co2_kg=0.046, energy_kwh=0.06, source="IEA avg"),
    "unplug_device_per_day": ImpactFormula(co2_kg=0.03, energy_kwh=0.1, source="DOE"),
    "thermostat_1deg_per_day": ImpactFormula(co2_kg=0.3, energy_kwh=1.0, source="DOE"),
    "solar_kwh": ImpactFormula(co2_kg=0.92, energy_kwh=1.0, source="IEA 2024"),
    # Water
    "shower_minute_saved": ImpactFormula(
        water_liters=9, co2_kg=0.0027, source="EPA WaterSense"
    ),
    "tap_off_brushing": ImpactFormula(water_liters=8, co2_kg=0.0024, source="EPA WaterSense"),
    "shorter_shower_5min": ImpactFormula(
        water_liters=45, co2_kg=0.0135, source="EPA WaterSense"
    ),
    "rainwater_collected_liter": ImpactFormula(water_liters=1, source="WFN"),
    # Shopping
    "fast_fashion_item_avoided": ImpactFormula(
        co2_kg=10.0, water_liters=2700, source="UNEP 2023"
    ),
    "secondhand_item_bought": ImpactFormula(co2_kg=5.0, source="ThredUp 2023"),
}


ACTION_FORMULAS: dict[str, ActionRule] = {
    # transportation
    "car_to_bike": ActionRule("car_to_bike_per_mile", DISTANCE_UNITS),
    "car_to_walk": ActionRule("car_to_walk_per_mile", DISTANCE_UNITS),
    "car_to_transit": ActionRule("car_to_transit_per_mile", DISTANCE_UNITS),
    "car_to_carpool": ActionRule("car_to_carpool_per_mile", DISTANCE_UNITS),
    "flight_avoided": ActionRule("flight_avoided_per_mile", DISTANCE_UNITS),
    "car_trip_avoided": ActionRule("car_trip_avoided_default", COUNT_UNITS),
    # food
    "beef_to_veg": ActionRule("beef_meal_to_veg", COUNT_UNITS),
    "meat_to_veg": ActionRule("meat_meal_to_veg", COUNT_UNITS),
    "dairy_skipped": ActionRule("dairy_meal_skipped", COUNT_UNITS),
    "food_waste_prevented": ActionRule("food_waste_prevented_kg", frozenset({"kg"})),
    "local_produce": ActionRule("local_produce_meal", COUNT_UNITS),
    # waste
    "plastic_bottle_avoided": ActionRule("plastic_bottle_avoided", COUNT_UNITS),
    "plastic_bag_avoided": ActionRule("plastic_bag_avoided", COUNT_UNITS),
    "straw_avoided": ActionRule("straw_avoided", COUNT_UNITS),
    "recycling": ActionRule("recycling_kg", frozenset({"kg"})),
    "composting": ActionRule("composting_kg", frozenset({"kg"})),
    # energy
    "led_switch": ActionRule("led_bulb_switch", COUNT_UNITS),
    "lights_off": ActionRule("lights_off_per_hour", frozenset({"hours"})),
    "unplug_device": ActionRule("unplug_device_per_day", COUNT_UNITS),
    "thermostat_adjust": ActionRule("thermostat_1deg_per_day", COUNT_UNITS),
    "solar": ActionRule("solar_kwh"),
    # water
    "shorter_shower": ActionRule(
        "shower_minute_saved",
        frozenset({"minutes"}),
        instance_formula_id="shorter_shower_5min",
    ),
    "tap_off_brushing": ActionRule("tap_off_brushing", COUNT_UNITS),
    "rainwater_collect": ActionRule("rainwater_collected_liter", frozenset({"liters"})),
    # shopping
    "fast_fashion_avoided": ActionRule("fast_fashion_item_avoided", COUNT_UNITS),
    "secondhand_bought": ActionRule("secondhand_item_bought", COUNT_UNITS),
}


@dataclass(frozen=True)
class CategoryDefault:
    """The impact credited once when an action_type has no rule of its own."""

    formula_id: str
    formula: ImpactFormula


# Reduced values keyed by the representative formula of each category; only
# the headline quantity is credited. "other" has no default.
CATEGORY_DEFAULTS: dict[str, CategoryDefault] = {
    "transportation": CategoryDefault(
        "car_trip_avoided_default", ImpactFormula(co2_kg=1.2, source="EPA avg 3mi trip")
    ),
    "food": CategoryDefault("meat_meal_to_veg", ImpactFormula(co2_kg=2.5, source="Oxford 2023")),
    "waste": CategoryDefault(
        "plastic_bottle_avoided",
        ImpactFormula(co2_kg=0.082, plastic_g=25, source="Plastic Pollution Coalition"),
    ),
    "energy": CategoryDefault(
        "lights_off_per_hour", ImpactFormula(co2_kg=0.046, source="IEA avg")
    ),
    "water": CategoryDefault(
        "tap_off_brushing",
        ImpactFormula(water_liters=8, co2_kg=0.0024, source="EPA WaterSense"),
    ),
    "shopping": CategoryDefault(
        "fast_fashion_item_avoided", ImpactFormula(co2_kg=10.0, source="UNEP 2023")
    ),
}


def action_types_by_category() -> dict[str, list[str]]:
    """The recognised action types per category, as offered to the classifier."""
    return {
        "transportation": [
            "car_to_bike", "car_to_walk", "car_to_transit", "car_to_carpool",
            "flight_avoided", "car_trip_avoided",
        ],
        "food": ["beef_to_veg", "meat_to_veg", "dairy_skipped", "food_waste_prevented", "local_produce"],
        "waste": ["plastic_bottle_avoided", "plastic_bag_avoided", "straw_avoided", "recycling", "composting"],
        "energy": ["led_switch", "lights_off", "unplug_device", "thermostat_adjust", "solar"],
        "water": ["shorter_shower", "tap_off_brushing", "rainwater_collect"],
        "shopping": ["fast_fashion_avoided", "secondhand_bought"],
        "other": ["general_action"],
    }
