"""Action-note classification using Claude.

Sends a user's free-text action note to the model with a fixed taxonomy and
parses the reply into a ClassificationResult. Every failure (network, timeout,
non-2xx, malformed reply) degrades to the low-confidence "other" fallback so
callers always get a result.
"""

from __future__ import annotations

import json
import logging
import math

import anthropic

from noteimpact.classification.models import (
    CATEGORIES,
    GENERIC_ACTION,
    UNITS,
    ClassificationResult,
)
from noteimpact.impact.formulas import action_types_by_category

logger = logging.getLogger(__name__)

MAX_TOKENS = 200
TEMPERATURE = 0.1

CLASSIFICATION_PROMPT = """\
You are an environmental impact classifier. Analyze a user's climate action \
note and extract structured data.

CATEGORIES: {categories}

ACTION TYPES per category:
{action_types}

Respond ONLY with valid JSON like:
{{
  "category": "transportation",
  "action_type": "car_to_bike",
  "quantity": 5,
  "unit": "miles",
  "confidence": 0.92,
  "reasoning": "User clearly states biking 5 miles instead of driving"
}}

Rules:
- confidence: 0.0-1.0 (be conservative, only 0.9+ if very explicit)
- If vague, inferred or unclear, set confidence below 0.7
- quantity: numeric value stated in the note, null if not mentioned
- unit: {units} (null if not applicable)
- No text before or after the JSON object

Classify this climate action note: "{note}"
"""


def build_prompt(note_text: str) -> str:
    action_lines = "\n".join(
        f"- {category}: {', '.join(types)}"
        for category, types in action_types_by_category().items()
    )
    return CLASSIFICATION_PROMPT.format(
        categories=", ".join(CATEGORIES),
        action_types=action_lines,
        units=", ".join(UNITS),
        note=note_text,
    )


class NoteClassifier:
    """Single-attempt classifier around an Anthropic client."""

    def __init__(
        self,
        client: anthropic.Anthropic,
        model: str,
        timeout: float | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._timeout = timeout

    def classify(self, note_text: str) -> ClassificationResult:
        """Classify a note. Never raises; failures return the fallback result."""
        if not note_text or not note_text.strip():
            return ClassificationResult.fallback("Note is empty")

        kwargs: dict = {}
        if self._timeout is not None:
            kwargs["timeout"] = self._timeout

        try:
            response = self._client.messages.create(
                model=self._model,
                max_tokens=MAX_TOKENS,
                temperature=TEMPERATURE,
                messages=[{"role": "user", "content": build_prompt(note_text)}],
                **kwargs,
            )
        except anthropic.APITimeoutError:
            logger.warning(f"Classification timed out after {self._timeout}s")
            return ClassificationResult.fallback("AI classification timed out")
        except anthropic.APIError as e:
            logger.warning(f"API error during classification: {e}")
            return ClassificationResult.fallback("AI classification failed")

        try:
            return parse_response(_response_text(response))
        except (ValueError, TypeError, OverflowError) as e:
            logger.warning(f"Unusable classification reply: {e}")
            return ClassificationResult.fallback(f"AI classification failed: {e}")


def _response_text(response: anthropic.types.Message) -> str:
    if not response.content:
        raise ValueError("empty response")
    text = getattr(response.content[0], "text", None)
    if not isinstance(text, str) or not text.strip():
        raise ValueError("empty response")
    return text


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ``` or ```json fence, if any."""
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else text[3:]
        if text.lower().startswith("json"):
            text = text[4:]
        text = text.strip()
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()
    return text


def parse_response(text: str) -> ClassificationResult:
    """Parse the model's JSON reply.

    Raises ValueError when the reply is not a JSON object or lacks ``category``
    or ``confidence``. Out-of-vocabulary values are coerced rather than rejected.
    """
    data = json.loads(strip_code_fences(text))
    if not isinstance(data, dict):
        raise ValueError("reply is not a JSON object")
    if data.get("category") is None or data.get("confidence") is None:
        raise ValueError("reply is missing category or confidence")

    category = str(data["category"]).strip().lower()
    if category not in CATEGORIES:
        logger.warning(f"Coercing unknown category {category!r} to 'other'")
        category = "other"

    action_type = data.get("action_type")
    if not isinstance(action_type, str) or not action_type.strip():
        action_type = GENERIC_ACTION

    reasoning = data.get("reasoning")
    return ClassificationResult(
        category=category,
        action_type=action_type.strip().lower(),
        quantity=_parse_quantity(data.get("quantity")),
        unit=_parse_unit(data.get("unit")),
        confidence=_parse_confidence(data["confidence"]),
        reasoning=reasoning if isinstance(reasoning, str) else "",
    )


def _parse_confidence(raw) -> float:
    if isinstance(raw, bool):
        raise ValueError(f"invalid confidence: {raw!r}")
    try:
        confidence = float(raw)
    except OverflowError as e:
        raise ValueError(f"invalid confidence: {e}") from e
    if math.isnan(confidence):
        raise ValueError("confidence is NaN")
    return max(0.0, min(1.0, confidence))


def _parse_quantity(raw) -> float | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        quantity = float(raw)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(quantity) or quantity < 0:
        return None
    return quantity


def _parse_unit(raw) -> str | None:
    if not isinstance(raw, str):
        return None
    unit = raw.strip().lower()
    return unit if unit in UNITS else None
