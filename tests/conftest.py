# tests/conftest.py
from __future__ import annotations

import os
import random

import pytest

from dealscope.schemas.models import EngineSettings
from tests.utils import (
    DEFAULT_AS_OF,
    make_analysis,
    make_comp,
    make_deal,
    make_subject,
    make_summary,
)


# -------- Global deterministic seed --------
@pytest.fixture(autouse=True, scope="session")
def _seed_session():
    random.seed(1337)
    os.environ.setdefault("PYTHONHASHSEED", "0")
    yield


# -------- Environment isolation --------
@pytest.fixture(autouse=True)
def _clear_dealscope_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("DEALSCOPE_"):
            monkeypatch.delenv(key, raising=False)


# -------- Domain fixtures --------
@pytest.fixture
def as_of():
    return DEFAULT_AS_OF


@pytest.fixture
def settings():
    return EngineSettings()


@pytest.fixture
def subject():
    return make_subject()


@pytest.fixture
def ai_comps():
    return [
        make_comp("10 Oak St", sale_price=410_000.0, square_feet=2_050.0),
        make_comp("22 Pine Ave", sale_price=395_000.0, square_feet=1_950.0, days_ago=200),
    ]


@pytest.fixture
def verified_comps():
    return [make_comp("5 Verified Way", sale_price=440_000.0, square_feet=2_000.0, verified=True)]


@pytest.fixture
def ai_summary():
    """Factory for an AI market summary (overridable)."""

    def _factory(**overrides):
        return make_summary(**overrides)

    return _factory


# -------- Financial fixtures --------
@pytest.fixture
def baseline_deal():
    """Factory for the canonical $1M deal (overridable)."""

    def _factory(**overrides):
        return make_deal(**overrides)

    return _factory


@pytest.fixture
def baseline_analysis():
    """Factory for a complete AnalysisInput (overridable)."""

    def _factory(**overrides):
        return make_analysis(**overrides)

    return _factory


# -------- Pytest markers --------
def pytest_configure(config):
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")
    config.addinivalue_line("markers", "integration: marks integration tests")
