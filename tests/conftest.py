"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from kintsugi import Config, Finalizer, StructuredLogger


@pytest.fixture
def store_dir(tmp_path: Path) -> Path:
    return tmp_path / "recipes"


@pytest.fixture
def finalizer() -> Finalizer:
    """Finalizer without a store: hashing only."""
    return Finalizer(logger=StructuredLogger())


@pytest.fixture
def storing_finalizer(store_dir: Path) -> Finalizer:
    """Finalizer that persists every recipe under ``store_dir``."""
    return Finalizer(config=Config(store_dir=store_dir), logger=StructuredLogger())
