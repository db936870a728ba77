"""Core data models for noteimpact."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime

CATEGORIES = (
    "transportation",
    "food",
    "waste",
    "energy",
    "water",
    "shopping",
    "other",
)

UNITS = ("miles", "km", "kg", "liters", "hours", "items", "meals", "minutes")

GENERIC_ACTION = "general_action"


@dataclass
class ActionNote:
    id: str
    user_id: str
    content: str
    created_at: datetime = field(default_factory=datetime.now)


@dataclass
class ClassificationResult:
    category: str  # one of CATEGORIES
    action_type: str  # e.g. "car_to_bike", GENERIC_ACTION when unrecognised
    quantity: float | None = None
    unit: str | None = None  # one of UNITS, None when no quantity stated
    confidence: float = 0.0
    reasoning: str = ""

    @classmethod
    def fallback(cls, reason: str) -> ClassificationResult:
        """The result used whenever extraction fails."""
        return cls(
            category="other",
            action_type=GENERIC_ACTION,
            quantity=None,
            unit=None,
            confidence=0.0,
            reasoning=reason,
        )


@dataclass
class ImpactEstimate:
    co2_kg: float | None = None
    plastic_g: float | None = None
    water_liters: float | None = None
    energy_kwh: float | None = None
    formula_id: str = "other"
    formula_source: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ImpactRecord:
    note_id: str
    user_id: str
    classification: ClassificationResult
    impact: ImpactEstimate
    needs_review: bool
    classified_at: datetime = field(default_factory=datetime.now)


@dataclass
class ReviewQueueEntry:
    note_id: str
    user_id: str
    note_content: str
    ai_category: str
    ai_action_type: str
    ai_confidence: float
    ai_reasoning: str
    status: str = "pending"  # "pending" | "resolved"
    created_at: datetime = field(default_factory=datetime.now)


@dataclass
class ImpactTotals:
    total_co2_kg: float = 0.0
    total_plastic_g: float = 0.0
    total_water_liters: float = 0.0
    total_energy_kwh: float = 0.0
    total_notes: int = 0
    category_breakdown: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)
