"""Pytest fixtures for seeder tests."""

import random
from datetime import UTC, datetime

import pytest

from dashboard.shared.seeder.config import ActivityConfig, PaymentConfig, SeederConfig

FIXED_NOW = datetime(2025, 6, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def rng():
    """Create a seeded random number generator."""
    return random.Random(42)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def activity_config():
    """Busy activity so small datasets still have messages and failures."""
    return ActivityConfig(
        active_day_probability=0.8,
        mean_messages_per_active_day=4.0,
        request_failure_rate=0.2,
    )


@pytest.fixture
def payment_config():
    """Every user starts a checkout."""
    return PaymentConfig(intent_probability=1.0)


@pytest.fixture
def small_config(activity_config, payment_config):
    """Create a small seeder config for fast tests."""
    return SeederConfig(
        seed=42,
        users=8,
        days=14,
        activity=activity_config,
        payments=payment_config,
    )
