"""Shared pytest fixtures and configuration.

This file is automatically loaded by pytest and provides fixtures
accessible to all tests.
"""

import os

import pytest
from hypothesis import HealthCheck, settings

from keyset import CircuitKind, ORDER_BY_INPUTS, KeySet
from tests.helpers import make_key

# =============================================================================
# Hypothesis Configuration
# =============================================================================

# Define profiles for different environments
settings.register_profile(
    "ci",
    max_examples=50,  # Faster for CI
    deadline=None,  # No deadlines for slow tests
    suppress_health_check=[HealthCheck.too_slow],
)

settings.register_profile(
    "dev",
    max_examples=10,  # Very fast for local development
    deadline=500,  # 500ms deadline for local tests
)

settings.register_profile(
    "thorough",
    max_examples=1000,  # Comprehensive for nightly runs
    deadline=None,
)

# Load profile based on environment variable
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))

# =============================================================================
# Key Set Fixtures
# =============================================================================


@pytest.fixture
def transfer_keys():
    """Transfer keys with sizes (1,1), (2,2), (2,3), (3,3)."""
    return [
        make_key(3, 3),
        make_key(1, 1),
        make_key(2, 3),
        make_key(2, 2),
    ]


@pytest.fixture
def transfer_keyset(transfer_keys):
    return KeySet.build(transfer_keys, ORDER_BY_INPUTS)


@pytest.fixture
def mixed_keyset():
    """Transfer, mint and freeze keys in one key set."""
    keys = [
        make_key(1, 2, kind=CircuitKind.MINT),
        make_key(2, 2),
        make_key(3, 3),
        make_key(2, 2, kind=CircuitKind.FREEZE),
        make_key(3, 3, kind=CircuitKind.FREEZE),
    ]
    return KeySet.build(keys, ORDER_BY_INPUTS)
