"""Derived-metric arithmetic for the analytics bundles.

Everything here is pure: the service runs the aggregation queries and hands
the rows over. Ratios never clamp and never divide by zero; an empty
denominator yields the string "0".
"""

import math
import random
from collections.abc import Sequence
from datetime import UTC
from decimal import ROUND_HALF_UP, Decimal

from dashboard.features.analytics.periods import ONE_DAY, TimeWindow
from dashboard.features.analytics.schemas import (
    ApiStat,
    AuthenticationPatterns,
    ConversionFunnel,
    ConversionRates,
    DailyActiveUsers,
    DailyCount,
    DailyLimitHit,
    EngagementMetrics,
    ErrorPattern,
    GrowthMetrics,
    HourlyBucket,
    HourOfDayCount,
    MessageVolume,
    MonthlyRevenue,
    PaymentAnalysis,
    ProcessingTime,
    ProviderStat,
    RateLimitImpact,
    RetentionPoint,
    RevenueMetrics,
    SegmentedUser,
    SystemHealth,
    TierStat,
    UserMessageCount,
    UserSegmentation,
    UserSegments,
)

ZERO = "0"
TWO_PLACES = Decimal("0.01")

MAX_SIGNUP_BUCKETS = 30
SIGNUP_JITTER = 0.2
RETENTION_RATES: tuple[tuple[int, int], ...] = ((1, 85), (7, 45), (30, 25))

TOP_ENGAGED_USERS = 20
SEGMENT_SAMPLE_SIZE = 10
PROCESSING_SAMPLE_SIZE = 100
LIMIT_HIT_SAMPLE_SIZE = 50


# =============================================================================
# Formatting
# =============================================================================


def to_fixed(value: float) -> str:
    """Format a number with exactly two decimals.

    Rounds half away from zero on the exact binary value, e.g. 0.125 -> "0.13".
    """
    return format(Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP), "f")


def percentage(numerator: float, denominator: float) -> str:
    """numerator / denominator * 100 with two decimals, or "0" if denominator <= 0."""
    if denominator <= 0:
        return ZERO
    return to_fixed(numerator / denominator * 100)


def mean(values: Sequence[float]) -> str:
    """Arithmetic mean with two decimals, or "0" for no values."""
    if not values:
        return ZERO
    return to_fixed(sum(values) / len(values))


# =============================================================================
# User Analytics
# =============================================================================


def average_daily_signups(total_users: int, days: int) -> int:
    """Users per elapsed day before jitter, rounded down."""
    return total_users // max(days, 1)


def synthesize_daily_signups(
    total_users: int,
    window: TimeWindow,
    rng: random.Random,
) -> list[DailyCount]:
    """Spread total users over the window with +/-20% jitter per day.

    At most 30 buckets are produced, starting at the window start.
    """
    days = window.days
    base = average_daily_signups(total_users, days)
    start = window.start.astimezone(UTC)

    series: list[DailyCount] = []
    for i in range(min(days, MAX_SIGNUP_BUCKETS)):
        jitter = 1 - SIGNUP_JITTER + rng.random() * 2 * SIGNUP_JITTER
        series.append(
            DailyCount(
                date=(start + i * ONE_DAY).date().isoformat(),
                count=math.floor(base * jitter),
            )
        )
    return series


def growth_rate(total_users: int, new_users: int) -> str:
    """new / max(total - new, 1) * 100, or "0" when there are no users."""
    if not total_users:
        return ZERO
    return to_fixed(new_users / max(total_users - new_users, 1) * 100)


def build_growth(total_users: int, window: TimeWindow, rng: random.Random) -> GrowthMetrics:
    daily_signups = synthesize_daily_signups(total_users, window, rng)
    new_users = sum(day.count for day in daily_signups)
    return GrowthMetrics(
        daily_signups=daily_signups,
        total_users=total_users,
        new_users_in_period=new_users,
        growth_rate=growth_rate(total_users, new_users),
    )


def build_retention(total_users: int) -> list[RetentionPoint]:
    """Apply the fixed retention rates to the user count."""
    return [
        RetentionPoint(
            day=day,
            retention_rate=to_fixed(rate),
            retained_count=math.floor(total_users * (rate / 100)),
            total_new_users=total_users,
        )
        for day, rate in RETENTION_RATES
    ]


def build_engagement(
    messages_per_user: Sequence[UserMessageCount],
    daily_active_users: Sequence[DailyActiveUsers],
) -> EngagementMetrics:
    """Summarise per-user message counts.

    Args:
        messages_per_user: Every user active in the period, highest count first.
        daily_active_users: Distinct active users per day, oldest first.
    """
    return EngagementMetrics(
        messages_per_user=list(messages_per_user[:TOP_ENGAGED_USERS]),
        daily_active_users=list(daily_active_users),
        avg_messages_per_user=mean([user.message_count for user in messages_per_user]),
        total_active_users=len(messages_per_user),
    )


def build_auth_patterns(provider_counts: Sequence[tuple[str, int]]) -> AuthenticationPatterns:
    total = sum(count for _, count in provider_counts)
    return AuthenticationPatterns(
        provider_stats=[
            ProviderStat(provider=provider, count=count, percentage=percentage(count, total))
            for provider, count in provider_counts
        ],
        total_accounts=total,
    )


def build_segmentation(users: Sequence[SegmentedUser], heavy_threshold: int) -> UserSegmentation:
    """Split users into free/paid and heavy/light.

    A user is heavy with strictly more than ``heavy_threshold`` messages.
    Sample lists keep the input order.
    """
    free = [user for user in users if not user.has_paid]
    paid = [user for user in users if user.has_paid]
    heavy = [user for user in users if user.total_messages > heavy_threshold]
    light = [user for user in users if user.total_messages <= heavy_threshold]

    return UserSegmentation(
        free_users=len(free),
        paid_users=len(paid),
        heavy_users=len(heavy),
        light_users=len(light),
        segments=UserSegments(
            free=free[:SEGMENT_SAMPLE_SIZE],
            paid=paid[:SEGMENT_SAMPLE_SIZE],
            heavy=heavy[:SEGMENT_SAMPLE_SIZE],
            light=light[:SEGMENT_SAMPLE_SIZE],
        ),
    )


# =============================================================================
# Usage Analytics
# =============================================================================


def build_message_volume(
    daily_messages: Sequence[HourlyBucket],
    hourly_stats: Sequence[HourOfDayCount],
) -> MessageVolume:
    return MessageVolume(
        daily_messages=list(daily_messages),
        hourly_stats=list(hourly_stats),
        total_messages=sum(bucket.count for bucket in daily_messages),
    )


# =============================================================================
# Revenue Analytics
# =============================================================================


def build_funnel(
    registrations: int,
    first_message: int,
    payment_intent: int,
    completed_payment: int,
) -> ConversionFunnel:
    """Compute conversion rates between consecutive funnel stages."""
    return ConversionFunnel(
        registrations=registrations,
        first_message=first_message,
        payment_intent=payment_intent,
        completed_payment=completed_payment,
        conversion_rates=ConversionRates(
            registration_to_first_message=percentage(first_message, registrations),
            first_message_to_payment_intent=percentage(payment_intent, first_message),
            payment_intent_to_completion=percentage(completed_payment, payment_intent),
            overall_conversion=percentage(completed_payment, registrations),
        ),
    )


def build_revenue(
    monthly: Sequence[tuple[str, int, int]],
    unique_paying_users: int,
) -> RevenueMetrics:
    """Summarise succeeded payments.

    Args:
        monthly: (YYYY-MM, revenue in cents, transactions), oldest month first.
        unique_paying_users: Distinct users with a succeeded payment.
    """
    total_cents = sum(revenue for _, revenue, _ in monthly)
    return RevenueMetrics(
        monthly_revenue=[
            MonthlyRevenue(
                month=month,
                revenue=revenue,
                transactions=transactions,
                revenue_in_currency=to_fixed(revenue / 100) if revenue else ZERO,
            )
            for month, revenue, transactions in monthly
        ],
        total_revenue=to_fixed(total_cents / 100),
        arpu=(
            to_fixed(total_cents / unique_paying_users / 100)
            if unique_paying_users > 0
            else ZERO
        ),
        unique_paying_users=unique_paying_users,
    )


def build_payment_analysis(
    tier_counts: Sequence[tuple[str, int, int]],
    processing_times: Sequence[ProcessingTime],
) -> PaymentAnalysis:
    """Summarise payment attempts per tier and completion latency.

    Args:
        tier_counts: (tier, attempts, successful attempts).
        processing_times: Every completed intent in the period.
    """
    if processing_times:
        seconds = sum(sample.time_to_complete or 0 for sample in processing_times)
        average_minutes = to_fixed(seconds / len(processing_times) / 60)
    else:
        average_minutes = ZERO

    return PaymentAnalysis(
        tier_stats=[
            TierStat(
                tier=tier,
                total_attempts=attempts,
                successful=successful,
                success_rate=percentage(successful, attempts),
            )
            for tier, attempts, successful in tier_counts
        ],
        average_processing_time=average_minutes,
        processing_times=list(processing_times[:PROCESSING_SAMPLE_SIZE]),
    )


# =============================================================================
# Operational Analytics
# =============================================================================


def build_system_health(
    action_counts: Sequence[tuple[str, int, int, float | None]],
    error_patterns: Sequence[ErrorPattern],
) -> SystemHealth:
    """Summarise request outcomes.

    Args:
        action_counts: (action, total, successful, ok response ratio).
        error_patterns: Most frequent failures, already limited.
    """
    return SystemHealth(
        api_stats=[
            ApiStat(
                action=action,
                total_requests=total,
                successful_requests=successful,
                ok_response_ratio=ok_ratio,
                success_rate=percentage(successful, total),
            )
            for action, total, successful, ok_ratio in action_counts
        ],
        error_patterns=list(error_patterns),
        total_requests=sum(total for _, total, _, _ in action_counts),
    )


def build_rate_limit_impact(
    daily_counts: Sequence[DailyLimitHit],
    daily_limit: int,
) -> RateLimitImpact:
    """Find the (user, day) rows that reached the daily message cap.

    A row counts when its message count is at least ``daily_limit``.
    """
    hits = [row for row in daily_counts if row.message_count >= daily_limit]
    return RateLimitImpact(
        total_days_with_limit_hits=len(hits),
        unique_users_affected=len({row.user_id for row in hits}),
        average_messages_on_limit_days=mean([row.message_count for row in hits]),
        daily_limit_hits=hits[:LIMIT_HIT_SAMPLE_SIZE],
    )
