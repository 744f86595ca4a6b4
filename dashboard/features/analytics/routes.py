"""API routes for the analytics dashboard.

Every endpoint is a read-only query computing one metric bundle. Period
tokens outside an endpoint's accepted set are rejected with a 422 problem
detail before any query runs.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dashboard.core.database import get_db
from dashboard.features.analytics.dependencies import get_analytics_service
from dashboard.features.analytics.periods import ActivityPeriod, Period, RevenuePeriod
from dashboard.features.analytics.schemas import (
    AuthenticationPatterns,
    ConversionFunnel,
    EngagementMetrics,
    GrowthMetrics,
    MessageVolume,
    PaymentAnalysis,
    RateLimitImpact,
    RetentionPoint,
    RevenueMetrics,
    SystemHealth,
    UserSegmentation,
)
from dashboard.features.analytics.service import AnalyticsService

router = APIRouter(prefix="/analytics", tags=["analytics"])

ALL_PERIODS_HELP = "Lookback period: 7d, 30d, 90d or 1y."
ACTIVITY_PERIODS_HELP = "Lookback period: 7d, 30d or 90d."
REVENUE_PERIODS_HELP = "Lookback period: 30d, 90d or 1y."


# =============================================================================
# User Analytics
# =============================================================================


@router.get(
    "/users/growth",
    response_model=GrowthMetrics,
    summary="User growth",
    description="""
Total users and a daily signup series for the period.

**Caveat**: users carry no registration timestamp, so the daily series is
synthetic (total users spread evenly with +/-20% jitter, at most 30 days)
and changes between calls.
""",
)
async def get_user_growth(
    period: Period = Query(..., description=ALL_PERIODS_HELP),
    db: AsyncSession = Depends(get_db),
    service: AnalyticsService = Depends(get_analytics_service),
) -> GrowthMetrics:
    return await service.user_growth(db=db, period=period)


@router.get(
    "/users/retention",
    response_model=list[RetentionPoint],
    summary="User retention",
    description="Day 1/7/30 retention. Rates are fixed placeholders applied to the user count.",
)
async def get_user_retention(
    period: ActivityPeriod = Query(..., description=ACTIVITY_PERIODS_HELP),
    db: AsyncSession = Depends(get_db),
    service: AnalyticsService = Depends(get_analytics_service),
) -> list[RetentionPoint]:
    return await service.user_retention(db=db, period=period)


@router.get(
    "/users/engagement",
    response_model=EngagementMetrics,
    summary="User engagement",
    description="""
Messages per user (top 20) and daily active users from message logs.

- `avgMessagesPerUser`: mean messages over users active in the period
- `totalActiveUsers`: distinct users with at least one message
""",
)
async def get_user_engagement(
    period: ActivityPeriod = Query(..., description=ACTIVITY_PERIODS_HELP),
    db: AsyncSession = Depends(get_db),
    service: AnalyticsService = Depends(get_analytics_service),
) -> EngagementMetrics:
    return await service.user_engagement(db=db, period=period)


@router.get(
    "/users/auth-patterns",
    response_model=AuthenticationPatterns,
    summary="Authentication providers",
    description="Share of linked accounts per OAuth provider, over all time.",
)
async def get_authentication_patterns(
    db: AsyncSession = Depends(get_db),
    service: AnalyticsService = Depends(get_analytics_service),
) -> AuthenticationPatterns:
    return await service.authentication_patterns(db=db)


@router.get(
    "/users/segmentation",
    response_model=UserSegmentation,
    summary="User segmentation",
    description="""
Free vs paid and heavy vs light users, over all time.

- Paid: at least one payment record of any status
- Heavy: more than 10 messages
""",
)
async def get_user_segmentation(
    db: AsyncSession = Depends(get_db),
    service: AnalyticsService = Depends(get_analytics_service),
) -> UserSegmentation:
    """Segment users.

    Args:
        db: Database session.
        service: Analytics service.

    Returns:
        Segment counts with up to 10 sample users each.
    """
    return await service.user_segmentation(db=db)


# =============================================================================
# Usage Analytics
# =============================================================================


@router.get(
    "/usage/message-volume",
    response_model=MessageVolume,
    summary="Message volume",
    description="Message counts per (date, hour) and per hour of day.",
)
async def get_message_volume(
    period: ActivityPeriod = Query(..., description=ACTIVITY_PERIODS_HELP),
    db: AsyncSession = Depends(get_db),
    service: AnalyticsService = Depends(get_analytics_service),
) -> MessageVolume:
    return await service.message_volume(db=db, period=period)


# =============================================================================
# Revenue Analytics
# =============================================================================


@router.get(
    "/revenue/funnel",
    response_model=ConversionFunnel,
    summary="Conversion funnel",
    description="""
Registration -> first message -> payment intent -> completed payment.

**Note**: registrations count all users; the other stages only count users
active in the period, so rates are not clamped and may exceed 100.
""",
)
async def get_conversion_funnel(
    period: RevenuePeriod = Query(..., description=REVENUE_PERIODS_HELP),
    db: AsyncSession = Depends(get_db),
    service: AnalyticsService = Depends(get_analytics_service),
) -> ConversionFunnel:
    return await service.conversion_funnel(db=db, period=period)


@router.get(
    "/revenue/metrics",
    response_model=RevenueMetrics,
    summary="Revenue",
    description="Monthly revenue, total revenue and ARPU from succeeded payments.",
)
async def get_revenue_metrics(
    period: RevenuePeriod = Query(..., description=REVENUE_PERIODS_HELP),
    db: AsyncSession = Depends(get_db),
    service: AnalyticsService = Depends(get_analytics_service),
) -> RevenueMetrics:
    return await service.revenue_metrics(db=db, period=period)


@router.get(
    "/revenue/payments",
    response_model=PaymentAnalysis,
    summary="Payment analysis",
    description="Success rate per pricing tier and average processing time in minutes.",
)
async def get_payment_analysis(
    period: RevenuePeriod = Query(..., description=REVENUE_PERIODS_HELP),
    db: AsyncSession = Depends(get_db),
    service: AnalyticsService = Depends(get_analytics_service),
) -> PaymentAnalysis:
    return await service.payment_analysis(db=db, period=period)


# =============================================================================
# Operational Analytics
# =============================================================================


@router.get(
    "/operations/system-health",
    response_model=SystemHealth,
    summary="System health",
    description="Success rate per API action and the 10 most frequent failures.",
)
async def get_system_health(
    period: ActivityPeriod = Query(..., description=ACTIVITY_PERIODS_HELP),
    db: AsyncSession = Depends(get_db),
    service: AnalyticsService = Depends(get_analytics_service),
) -> SystemHealth:
    return await service.system_health(db=db, period=period)


@router.get(
    "/operations/rate-limiting",
    response_model=RateLimitImpact,
    summary="Rate limiting impact",
    description="(user, day) pairs that reached the free-tier cap of 5 messages per day.",
)
async def get_rate_limiting_impact(
    period: ActivityPeriod = Query(..., description=ACTIVITY_PERIODS_HELP),
    db: AsyncSession = Depends(get_db),
    service: AnalyticsService = Depends(get_analytics_service),
) -> RateLimitImpact:
    return await service.rate_limiting_impact(db=db, period=period)
