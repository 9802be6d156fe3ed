"""Pytest configuration and fixtures for test suite."""

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

# Add src directory to path for imports
SRC_PATH = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(SRC_PATH))

from pubdedupe.models import Record  # noqa: E402
from pubdedupe.normalize import NormalizedRecord, normalize_batch  # noqa: E402


@pytest.fixture
def make_record() -> Callable[..., Record]:
    """Factory for test records with minimal boilerplate."""

    def _factory(
        rid: str = "r1",
        title: str | None = "A study of things",
        *,
        source: str = "orcid",
        doi: str | None = None,
        origin_detail: str | None = None,
        **extra: Any,
    ) -> Record:
        return Record(
            id=rid,
            source=source,
            title=title,
            doi=doi,
            origin_detail=origin_detail,
            extra=extra,
        )

    return _factory


@pytest.fixture
def make_batch(make_record: Callable[..., Record]) -> Callable[..., list[NormalizedRecord]]:
    """Factory for normalized batches from record keyword dicts."""

    def _factory(*rows: dict[str, Any]) -> list[NormalizedRecord]:
        return normalize_batch([make_record(**row) for row in rows])

    return _factory


FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def publications_file() -> Path:
    """Two authors' merged publication list (see tests/fixtures)."""
    return FIXTURES_DIR / "publications.jsonl"
