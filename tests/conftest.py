"""Shared test fixtures for noteimpact."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from noteimpact.classification.models import ClassificationResult
from noteimpact.storage.db import get_connection
from noteimpact.storage.repository import ImpactRepository


def make_response(text: str) -> MagicMock:
    response = MagicMock()
    content_block = MagicMock()
    content_block.text = text
    response.content = [content_block]
    return response


def make_client(*replies: str | dict) -> MagicMock:
    """A fake Anthropic client returning the given replies in order."""
    client = MagicMock()
    client.messages.create.side_effect = [
        make_response(r if isinstance(r, str) else json.dumps(r)) for r in replies
    ]
    return client


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "test.db"


@pytest.fixture
def db_conn(db_path: Path) -> sqlite3.Connection:
    conn = get_connection(db_path)
    yield conn
    conn.close()


@pytest.fixture
def repo(db_conn: sqlite3.Connection) -> ImpactRepository:
    return ImpactRepository(db_conn)


@pytest.fixture
def bike_reply() -> dict:
    return {
        "category": "transportation",
        "action_type": "car_to_bike",
        "quantity": 5,
        "unit": "miles",
        "confidence": 0.95,
        "reasoning": "User biked 5 miles to school instead of driving",
    }


@pytest.fixture
def vague_reply() -> dict:
    return {
        "category": "waste",
        "action_type": "general_action",
        "quantity": None,
        "unit": None,
        "confidence": 0.4,
        "reasoning": "Intention only, no concrete action",
    }


@pytest.fixture
def bike_result() -> ClassificationResult:
    return ClassificationResult(
        category="transportation",
        action_type="car_to_bike",
        quantity=5,
        unit="miles",
        confidence=0.95,
        reasoning="User biked 5 miles to school instead of driving",
    )
