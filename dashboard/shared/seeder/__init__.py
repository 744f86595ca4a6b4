"""Reproducible demo data for the analytics dashboard."""

from dashboard.shared.seeder.config import ActivityConfig, PaymentConfig, SeederConfig, TierConfig
from dashboard.shared.seeder.core import DemoDataSeeder, SeederResult

__all__ = [
    "ActivityConfig",
    "DemoDataSeeder",
    "PaymentConfig",
    "SeederConfig",
    "SeederResult",
    "TierConfig",
]
