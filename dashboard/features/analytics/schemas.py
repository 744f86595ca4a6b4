"""Pydantic schemas for analytics endpoints.

Each metric bundle has its own response model. Fields are snake_case in
Python and camelCase on the wire, which is what the chart components read.
Ratios and averages are pre-formatted strings with two decimals, or "0"
when the denominator is empty.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialising to camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# User Analytics
# =============================================================================


class DailyCount(CamelModel):
    """A count attached to a calendar day (YYYY-MM-DD)."""

    date: str
    count: int = Field(..., ge=0)


class GrowthMetrics(CamelModel):
    """User growth bundle.

    The users table records no registration time, so ``daily_signups`` is a
    synthetic series: total users spread evenly over the period with +/-20%
    random jitter, at most 30 buckets. It is not registration history.
    """

    daily_signups: list[DailyCount] = Field(
        ...,
        description="Synthetic daily signup series (not measured data).",
    )
    total_users: int = Field(..., ge=0, description="All users, ignoring the period.")
    new_users_in_period: int = Field(..., ge=0, description="Sum of daily_signups.")
    growth_rate: str = Field(
        ...,
        description="new / max(total - new, 1) * 100, two decimals; '0' with no users.",
    )


class RetentionPoint(CamelModel):
    """Retention at N days after signup.

    Rates are fixed placeholders (85/45/25%), not measured cohort returns.
    """

    day: int = Field(..., ge=1)
    retention_rate: str
    retained_count: int = Field(..., ge=0)
    total_new_users: int = Field(..., ge=0)


class UserMessageCount(CamelModel):
    """Messages sent by one user in the period."""

    user_id: str
    message_count: int = Field(..., ge=0)
    user_name: str | None = None


class DailyActiveUsers(CamelModel):
    """Distinct users who sent at least one message on a day."""

    date: str
    active_users: int = Field(..., ge=0)


class EngagementMetrics(CamelModel):
    """User engagement bundle built from message logs."""

    messages_per_user: list[UserMessageCount] = Field(
        ...,
        description="Top 20 users by message count (highest first).",
    )
    daily_active_users: list[DailyActiveUsers] = Field(
        ...,
        description="Daily active users, oldest day first.",
    )
    avg_messages_per_user: str
    total_active_users: int = Field(..., ge=0)


class ProviderStat(CamelModel):
    """Linked accounts for one OAuth provider."""

    provider: str
    count: int = Field(..., ge=0)
    percentage: str


class AuthenticationPatterns(CamelModel):
    """OAuth provider distribution over all linked accounts."""

    provider_stats: list[ProviderStat]
    total_accounts: int = Field(..., ge=0)


class SegmentedUser(CamelModel):
    """One user with the attributes used for segmentation."""

    user_id: str
    user_name: str | None = None
    email: str
    credits: int | None = Field(None, description="Credit balance; null with no credit row.")
    total_messages: int = Field(..., ge=0)
    has_paid: bool = Field(
        ...,
        description="True when any payment record exists for the user, whatever its status.",
    )


class UserSegments(CamelModel):
    """First 10 users of each segment."""

    free: list[SegmentedUser]
    paid: list[SegmentedUser]
    heavy: list[SegmentedUser]
    light: list[SegmentedUser]


class UserSegmentation(CamelModel):
    """Free/paid and heavy/light user split.

    Every user is in exactly one of free/paid and one of heavy/light.
    """

    free_users: int = Field(..., ge=0)
    paid_users: int = Field(..., ge=0)
    heavy_users: int = Field(..., ge=0)
    light_users: int = Field(..., ge=0)
    segments: UserSegments


# =============================================================================
# Usage Analytics
# =============================================================================


class HourlyBucket(CamelModel):
    """Messages in one hour of one day."""

    date: str
    hour: int = Field(..., ge=0, le=23)
    count: int = Field(..., ge=0)


class HourOfDayCount(CamelModel):
    """Messages in one hour of the day across the whole period."""

    hour: int = Field(..., ge=0, le=23)
    count: int = Field(..., ge=0)


class MessageVolume(CamelModel):
    """Message volume bundle."""

    daily_messages: list[HourlyBucket] = Field(
        ...,
        description="Counts per (date, hour); re-aggregate by date for a daily series.",
    )
    hourly_stats: list[HourOfDayCount]
    total_messages: int = Field(..., ge=0)


# =============================================================================
# Revenue Analytics
# =============================================================================


class ConversionRates(CamelModel):
    """Stage-to-stage conversion percentages. Not clamped to 100."""

    registration_to_first_message: str
    first_message_to_payment_intent: str
    payment_intent_to_completion: str
    overall_conversion: str


class ConversionFunnel(CamelModel):
    """Registration to payment funnel.

    ``registrations`` counts all users regardless of the period while the
    other stages only count activity inside the period.
    """

    registrations: int = Field(..., ge=0)
    first_message: int = Field(..., ge=0)
    payment_intent: int = Field(..., ge=0)
    completed_payment: int = Field(..., ge=0)
    conversion_rates: ConversionRates


class MonthlyRevenue(CamelModel):
    """Succeeded payments in one calendar month (YYYY-MM)."""

    month: str
    revenue: int = Field(..., ge=0, description="Revenue in minor units (cents).")
    transactions: int = Field(..., ge=0)
    revenue_in_currency: str


class RevenueMetrics(CamelModel):
    """Revenue bundle."""

    monthly_revenue: list[MonthlyRevenue] = Field(..., description="Oldest month first.")
    total_revenue: str = Field(..., description="Total revenue in currency units.")
    arpu: str = Field(..., description="Average revenue per paying user, currency units.")
    unique_paying_users: int = Field(..., ge=0)


class TierStat(CamelModel):
    """Payment attempts and successes for one pricing tier."""

    tier: str
    total_attempts: int = Field(..., ge=0)
    successful: int = Field(..., ge=0)
    success_rate: str


class ProcessingTime(CamelModel):
    """Seconds between creation and completion of one payment intent."""

    payment_intent_id: int
    tier: str
    time_to_complete: float | None = None


class PaymentAnalysis(CamelModel):
    """Payment success and processing time bundle."""

    tier_stats: list[TierStat]
    average_processing_time: str = Field(..., description="Mean processing time in minutes.")
    processing_times: list[ProcessingTime] = Field(..., description="At most 100 samples.")


# =============================================================================
# Operational Analytics
# =============================================================================


class ApiStat(CamelModel):
    """Request outcomes for one API action."""

    action: str
    total_requests: int = Field(..., ge=0)
    successful_requests: int = Field(..., ge=0)
    ok_response_ratio: float | None = Field(
        None,
        ge=0,
        le=1,
        description="Fraction of requests answered with a status code below 400.",
    )
    success_rate: str


class ErrorPattern(CamelModel):
    """A recurring (error, status code) pair among failed requests."""

    error: str | None = None
    status_code: int
    count: int = Field(..., ge=0)


class SystemHealth(CamelModel):
    """API health bundle."""

    api_stats: list[ApiStat]
    error_patterns: list[ErrorPattern] = Field(..., description="Top 10, most frequent first.")
    total_requests: int = Field(..., ge=0)


class DailyLimitHit(CamelModel):
    """A (user, day) on which the user reached the daily message cap."""

    user_id: str
    date: str
    message_count: int = Field(..., ge=0)


class RateLimitImpact(CamelModel):
    """Daily message cap impact bundle."""

    total_days_with_limit_hits: int = Field(
        ...,
        ge=0,
        description="Number of (user, day) rows at or over the cap, not distinct days.",
    )
    unique_users_affected: int = Field(..., ge=0)
    average_messages_on_limit_days: str
    daily_limit_hits: list[DailyLimitHit] = Field(..., description="At most 50 rows.")
