"""FastAPI dependencies for the analytics routes."""

import random

from fastapi import Depends

from dashboard.core.clock import Clock, get_clock
from dashboard.core.config import get_settings
from dashboard.features.analytics.service import AnalyticsService


def get_analytics_service(clock: Clock = Depends(get_clock)) -> AnalyticsService:
    """Build a service per request with a fresh random source for growth jitter."""
    return AnalyticsService(clock=clock, rng=random.Random(), settings=get_settings())
