# tests/conftest.py
"""Shared test fixtures.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import logging
import os
from collections.abc import Iterator

import pytest
import structlog
from hypothesis import HealthCheck, Verbosity, settings

from tests.helpers.processors import MemorySink, ScriptedProcessor

settings.register_profile(
    "ci",
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
settings.register_profile("nightly", max_examples=1000, deadline=None)
settings.register_profile("debug", max_examples=10, verbosity=Verbosity.verbose, deadline=None)
settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "ci"))


@pytest.fixture(autouse=True)
def _isolate_rowpool_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep ROWPOOL_* variables and logging setup from leaking between tests."""
    for key in list(os.environ):
        if key.startswith("ROWPOOL_"):
            monkeypatch.delenv(key, raising=False)

    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level
    yield
    structlog.reset_defaults()
    root.handlers = saved_handlers
    root.setLevel(saved_level)


@pytest.fixture
def processor() -> ScriptedProcessor:
    return ScriptedProcessor()


@pytest.fixture
def success_sink() -> MemorySink:
    return MemorySink("success")


@pytest.fixture
def failure_sink() -> MemorySink:
    return MemorySink("failure")
