"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

import random
from collections.abc import Callable
from pathlib import Path
from uuid import uuid4

import pytest

from src.db.file_repository import FileGameRepository


@pytest.fixture
def make_game_id() -> Callable[..., str]:
    """Factory for game ids with the given first character ('a': user plays X, 'f': user plays O)."""

    def _make(prefix: str = "a") -> str:
        return prefix + str(uuid4())[1:]

    return _make


@pytest.fixture
def storage_path(tmp_path: Path) -> Path:
    """Empty storage directory, removed by pytest afterwards."""
    path = tmp_path / "storage"
    path.mkdir()
    return path


@pytest.fixture
def file_repository(storage_path: Path) -> FileGameRepository:
    return FileGameRepository(storage_path)


@pytest.fixture
def seeded_rng() -> random.Random:
    """Deterministic random source, so computer moves are reproducible."""
    return random.Random(1234)
