# tests/property/settings.py
"""Standardized Hypothesis settings profiles for property tests.

Usage:
    from tests.property.settings import SLOW_SETTINGS

    @given(actions=action_lists)
    @SLOW_SETTINGS
    def test_something(actions):
        ...

Tiers:
- STANDARD_SETTINGS: 100 examples - pure in-memory properties
- SLOW_SETTINGS: 30 examples - tests that start real worker threads
"""

from hypothesis import settings

STANDARD_SETTINGS = settings(max_examples=100)

# Every example spins up a reader, a pool and an aggregator
SLOW_SETTINGS = settings(max_examples=30, deadline=None)
