"""Analytics module: metric bundles for the usage and revenue dashboard.

Users, usage, revenue and operational metrics aggregated from the chat
application's logs and payment ledger.
"""

from dashboard.features.analytics.periods import Period, TimeWindow, resolve_period
from dashboard.features.analytics.routes import router
from dashboard.features.analytics.service import AnalyticsService

__all__ = [
    "AnalyticsService",
    "Period",
    "TimeWindow",
    "resolve_period",
    "router",
]
