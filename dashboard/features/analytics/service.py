"""Service layer for dashboard analytics.

Each public method computes one metric bundle: it runs its aggregation
queries (SQLAlchemy 2.0 style, PostgreSQL functions) once per call and
passes the rows to the pure builders in ``metrics``. Nothing is cached and
nothing is written. Sub-queries of one bundle do not share a snapshot.
"""

import random
from datetime import date
from typing import Any

from sqlalchemy import Select, case, distinct, exists, extract, func, select
from sqlalchemy.engine import Row
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from dashboard.core.clock import Clock, utc_now
from dashboard.core.config import Settings, get_settings
from dashboard.core.exceptions import DatabaseError
from dashboard.core.logging import get_logger
from dashboard.features.analytics import metrics
from dashboard.features.analytics.periods import (
    ACTIVITY_PERIODS,
    ALL_PERIODS,
    REVENUE_PERIODS,
    TimeWindow,
    resolve_period,
)
from dashboard.features.analytics.schemas import (
    AuthenticationPatterns,
    ConversionFunnel,
    DailyActiveUsers,
    DailyLimitHit,
    EngagementMetrics,
    ErrorPattern,
    GrowthMetrics,
    HourlyBucket,
    HourOfDayCount,
    MessageVolume,
    PaymentAnalysis,
    ProcessingTime,
    RateLimitImpact,
    RetentionPoint,
    RevenueMetrics,
    SegmentedUser,
    SystemHealth,
    UserMessageCount,
    UserSegmentation,
)
from dashboard.features.data_platform.models import (
    Account,
    MessageLog,
    PaymentIntent,
    PaymentRecord,
    RequestLog,
    User,
    UserCredit,
)

logger = get_logger(__name__)

ERROR_PATTERN_LIMIT = 10
SUCCEEDED = "succeeded"
COMPLETED = "completed"


def _day(value: date | str) -> str:
    """Render a SQL DATE result as YYYY-MM-DD."""
    return value.isoformat() if isinstance(value, date) else str(value)


class AnalyticsService:
    """Computes the dashboard's metric bundles.

    The clock fixes "now" for period resolution and the random source drives
    the growth jitter; both are injectable for tests.
    """

    def __init__(
        self,
        clock: Clock = utc_now,
        rng: random.Random | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize analytics service.

        Args:
            clock: Returns the current instant.
            rng: Random source for the synthetic signup series.
            settings: Application settings (defaults to the cached singleton).
        """
        self.clock = clock
        self.rng = rng or random.Random()
        self.settings = settings or get_settings()

    def _window(self, period: str, allowed: tuple[str, ...]) -> TimeWindow:
        return resolve_period(period, self.clock(), allowed)

    async def _all(self, db: AsyncSession, stmt: Select[Any], metric: str) -> list[Row[Any]]:
        """Execute a statement and return all rows.

        Raises:
            DatabaseError: If the query fails.
        """
        try:
            result = await db.execute(stmt)
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Failed to compute {metric}",
                details={"metric": metric, "error": str(e)},
            ) from e
        return list(result.all())

    async def _count(self, db: AsyncSession, stmt: Select[Any], metric: str) -> int:
        """Execute a single-count statement.

        Raises:
            DatabaseError: If the query fails.
        """
        try:
            result = await db.execute(stmt)
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Failed to compute {metric}",
                details={"metric": metric, "error": str(e)},
            ) from e
        return int(result.scalar_one() or 0)

    async def _total_users(self, db: AsyncSession, metric: str) -> int:
        return await self._count(db, select(func.count()).select_from(User), metric)

    # =========================================================================
    # User Analytics
    # =========================================================================

    async def user_growth(self, db: AsyncSession, period: str) -> GrowthMetrics:
        """Compute the (synthetic) user growth bundle.

        Args:
            db: Database session.
            period: One of 7d, 30d, 90d, 1y.

        Returns:
            Growth metrics; the daily series is jittered, not measured.
        """
        window = self._window(period, ALL_PERIODS)
        total_users = await self._total_users(db, "user_growth")

        growth = metrics.build_growth(total_users, window, self.rng)

        logger.info(
            "analytics.user_growth_computed",
            period=period,
            total_users=total_users,
            new_users_in_period=growth.new_users_in_period,
        )
        return growth

    async def user_retention(self, db: AsyncSession, period: str) -> list[RetentionPoint]:
        """Compute placeholder retention figures.

        The period is validated but does not affect the result.
        """
        self._window(period, ACTIVITY_PERIODS)
        total_users = await self._total_users(db, "user_retention")

        retention = metrics.build_retention(total_users)

        logger.info("analytics.user_retention_computed", period=period, total_users=total_users)
        return retention

    async def user_engagement(self, db: AsyncSession, period: str) -> EngagementMetrics:
        """Compute messages per user and daily active users.

        Args:
            db: Database session.
            period: One of 7d, 30d, 90d.

        Returns:
            Engagement metrics for the period.
        """
        window = self._window(period, ACTIVITY_PERIODS)
        in_window = window.contains(MessageLog.created_at)

        per_user_stmt = (
            select(
                MessageLog.user_id.label("user_id"),
                func.count().label("message_count"),
                User.name.label("user_name"),
            )
            .select_from(MessageLog)
            .outerjoin(User, MessageLog.user_id == User.id)
            .where(in_window)
            .group_by(MessageLog.user_id, User.name)
            .order_by(func.count().desc())
        )
        day = func.date(MessageLog.created_at)
        dau_stmt = (
            select(
                day.label("date"),
                func.count(distinct(MessageLog.user_id)).label("active_users"),
            )
            .where(in_window)
            .group_by(day)
            .order_by(day)
        )

        per_user_rows = await self._all(db, per_user_stmt, "user_engagement")
        dau_rows = await self._all(db, dau_stmt, "user_engagement")

        engagement = metrics.build_engagement(
            [
                UserMessageCount(
                    user_id=row.user_id,
                    message_count=int(row.message_count),
                    user_name=row.user_name,
                )
                for row in per_user_rows
            ],
            [
                DailyActiveUsers(date=_day(row.date), active_users=int(row.active_users))
                for row in dau_rows
            ],
        )

        logger.info(
            "analytics.user_engagement_computed",
            period=period,
            total_active_users=engagement.total_active_users,
            avg_messages_per_user=engagement.avg_messages_per_user,
        )
        return engagement

    async def authentication_patterns(self, db: AsyncSession) -> AuthenticationPatterns:
        """Compute the share of linked accounts per OAuth provider."""
        stmt = (
            select(Account.provider, func.count().label("count"))
            .group_by(Account.provider)
            .order_by(func.count().desc())
        )
        rows = await self._all(db, stmt, "authentication_patterns")

        patterns = metrics.build_auth_patterns([(row.provider, int(row.count)) for row in rows])

        logger.info(
            "analytics.authentication_patterns_computed",
            providers=len(patterns.provider_stats),
            total_accounts=patterns.total_accounts,
        )
        return patterns

    async def user_segmentation(self, db: AsyncSession) -> UserSegmentation:
        """Split all users into free/paid and heavy/light segments.

        A user counts as paid when any payment record exists for them,
        whatever its status. Message totals cover all time.
        """
        message_totals = (
            select(
                MessageLog.user_id.label("user_id"),
                func.count(MessageLog.id).label("total_messages"),
            )
            .group_by(MessageLog.user_id)
            .subquery()
        )
        has_paid = exists().where(PaymentRecord.user_id == User.id)

        stmt = (
            select(
                User.id.label("user_id"),
                User.name.label("user_name"),
                User.email.label("email"),
                UserCredit.balance.label("credits"),
                func.coalesce(message_totals.c.total_messages, 0).label("total_messages"),
                has_paid.label("has_paid"),
            )
            .select_from(User)
            .outerjoin(UserCredit, UserCredit.user_id == User.id)
            .outerjoin(message_totals, message_totals.c.user_id == User.id)
        )
        rows = await self._all(db, stmt, "user_segmentation")

        segmentation = metrics.build_segmentation(
            [
                SegmentedUser(
                    user_id=row.user_id,
                    user_name=row.user_name,
                    email=row.email,
                    credits=row.credits,
                    total_messages=int(row.total_messages),
                    has_paid=bool(row.has_paid),
                )
                for row in rows
            ],
            heavy_threshold=self.settings.analytics_heavy_user_threshold,
        )

        logger.info(
            "analytics.user_segmentation_computed",
            free_users=segmentation.free_users,
            paid_users=segmentation.paid_users,
            heavy_users=segmentation.heavy_users,
            light_users=segmentation.light_users,
        )
        return segmentation

    # =========================================================================
    # Usage Analytics
    # =========================================================================

    async def message_volume(self, db: AsyncSession, period: str) -> MessageVolume:
        """Compute message counts per (date, hour) and per hour of day."""
        window = self._window(period, ACTIVITY_PERIODS)
        in_window = window.contains(MessageLog.created_at)
        day = func.date(MessageLog.created_at)
        hour = extract("hour", MessageLog.created_at)

        daily_stmt = (
            select(day.label("date"), func.count().label("count"), hour.label("hour"))
            .where(in_window)
            .group_by(day, hour)
            .order_by(day, hour)
        )
        hourly_stmt = (
            select(hour.label("hour"), func.count().label("count"))
            .where(in_window)
            .group_by(hour)
            .order_by(hour)
        )

        daily_rows = await self._all(db, daily_stmt, "message_volume")
        hourly_rows = await self._all(db, hourly_stmt, "message_volume")

        volume = metrics.build_message_volume(
            [
                HourlyBucket(date=_day(row.date), hour=int(row.hour), count=int(row.count))
                for row in daily_rows
            ],
            [HourOfDayCount(hour=int(row.hour), count=int(row.count)) for row in hourly_rows],
        )

        logger.info(
            "analytics.message_volume_computed",
            period=period,
            total_messages=volume.total_messages,
        )
        return volume

    # =========================================================================
    # Revenue Analytics
    # =========================================================================

    async def conversion_funnel(self, db: AsyncSession, period: str) -> ConversionFunnel:
        """Compute the registration to payment funnel.

        Registrations count every user; later stages count distinct users
        active in the period.
        """
        window = self._window(period, REVENUE_PERIODS)

        registrations = await self._total_users(db, "conversion_funnel")
        first_message = await self._count(
            db,
            select(func.count(distinct(MessageLog.user_id))).where(
                window.contains(MessageLog.created_at)
            ),
            "conversion_funnel",
        )
        payment_intent = await self._count(
            db,
            select(func.count(distinct(PaymentIntent.user_id))).where(
                window.contains(PaymentIntent.created_at)
            ),
            "conversion_funnel",
        )
        completed_payment = await self._count(
            db,
            select(func.count(distinct(PaymentRecord.user_id))).where(
                window.contains(PaymentRecord.created_at),
                PaymentRecord.status == SUCCEEDED,
            ),
            "conversion_funnel",
        )

        funnel = metrics.build_funnel(
            registrations, first_message, payment_intent, completed_payment
        )

        logger.info(
            "analytics.conversion_funnel_computed",
            period=period,
            registrations=registrations,
            first_message=first_message,
            payment_intent=payment_intent,
            completed_payment=completed_payment,
        )
        return funnel

    async def revenue_metrics(self, db: AsyncSession, period: str) -> RevenueMetrics:
        """Compute monthly revenue, total revenue and ARPU from succeeded payments."""
        window = self._window(period, REVENUE_PERIODS)
        succeeded_in_window = (
            window.contains(PaymentRecord.created_at),
            PaymentRecord.status == SUCCEEDED,
        )
        month = func.to_char(PaymentRecord.created_at, "YYYY-MM")

        monthly_stmt = (
            select(
                month.label("month"),
                func.sum(PaymentRecord.amount_cents).label("revenue"),
                func.count().label("transactions"),
            )
            .where(*succeeded_in_window)
            .group_by(month)
            .order_by(month)
        )
        payers_stmt = select(func.count(distinct(PaymentRecord.user_id))).where(
            *succeeded_in_window
        )

        monthly_rows = await self._all(db, monthly_stmt, "revenue_metrics")
        unique_paying_users = await self._count(db, payers_stmt, "revenue_metrics")

        revenue = metrics.build_revenue(
            [(row.month, int(row.revenue or 0), int(row.transactions)) for row in monthly_rows],
            unique_paying_users,
        )

        logger.info(
            "analytics.revenue_metrics_computed",
            period=period,
            months=len(revenue.monthly_revenue),
            total_revenue=revenue.total_revenue,
            unique_paying_users=unique_paying_users,
        )
        return revenue

    async def payment_analysis(self, db: AsyncSession, period: str) -> PaymentAnalysis:
        """Compute success rates per tier and payment processing times.

        Attempts are joined to payment records on the provider payment id.
        """
        window = self._window(period, REVENUE_PERIODS)
        in_window = window.contains(PaymentIntent.created_at)

        tier_stmt = (
            select(
                PaymentIntent.tier.label("tier"),
                func.count().label("total_attempts"),
                func.count(case((PaymentRecord.status == SUCCEEDED, 1))).label("successful"),
            )
            .select_from(PaymentIntent)
            .outerjoin(
                PaymentRecord,
                PaymentIntent.provider_payment_id == PaymentRecord.provider_payment_id,
            )
            .where(in_window)
            .group_by(PaymentIntent.tier)
        )
        processing_stmt = select(
            PaymentIntent.id.label("payment_intent_id"),
            PaymentIntent.tier.label("tier"),
            extract("epoch", PaymentIntent.completed_at - PaymentIntent.created_at).label(
                "time_to_complete"
            ),
        ).where(in_window, PaymentIntent.status == COMPLETED)

        tier_rows = await self._all(db, tier_stmt, "payment_analysis")
        processing_rows = await self._all(db, processing_stmt, "payment_analysis")

        analysis = metrics.build_payment_analysis(
            [(row.tier, int(row.total_attempts), int(row.successful)) for row in tier_rows],
            [
                ProcessingTime(
                    payment_intent_id=row.payment_intent_id,
                    tier=row.tier,
                    time_to_complete=(
                        float(row.time_to_complete) if row.time_to_complete is not None else None
                    ),
                )
                for row in processing_rows
            ],
        )

        logger.info(
            "analytics.payment_analysis_computed",
            period=period,
            tiers=len(analysis.tier_stats),
            completed_intents=len(processing_rows),
            average_processing_time=analysis.average_processing_time,
        )
        return analysis

    # =========================================================================
    # Operational Analytics
    # =========================================================================

    async def system_health(self, db: AsyncSession, period: str) -> SystemHealth:
        """Compute per-action success rates and the most frequent failures."""
        window = self._window(period, ACTIVITY_PERIODS)
        in_window = window.contains(RequestLog.created_at)

        api_stmt = (
            select(
                RequestLog.action.label("action"),
                func.count().label("total_requests"),
                func.count(case((RequestLog.success.is_(True), 1))).label(
                    "successful_requests"
                ),
                func.avg(case((RequestLog.status_code < 400, 1), else_=0)).label(
                    "ok_response_ratio"
                ),
            )
            .where(in_window)
            .group_by(RequestLog.action)
        )
        errors_stmt = (
            select(
                RequestLog.error.label("error"),
                RequestLog.status_code.label("status_code"),
                func.count().label("count"),
            )
            .where(in_window, RequestLog.success.is_(False))
            .group_by(RequestLog.error, RequestLog.status_code)
            .order_by(func.count().desc())
            .limit(ERROR_PATTERN_LIMIT)
        )

        api_rows = await self._all(db, api_stmt, "system_health")
        error_rows = await self._all(db, errors_stmt, "system_health")

        health = metrics.build_system_health(
            [
                (
                    row.action,
                    int(row.total_requests),
                    int(row.successful_requests),
                    float(row.ok_response_ratio) if row.ok_response_ratio is not None else None,
                )
                for row in api_rows
            ],
            [
                ErrorPattern(error=row.error, status_code=row.status_code, count=int(row.count))
                for row in error_rows
            ],
        )

        logger.info(
            "analytics.system_health_computed",
            period=period,
            actions=len(health.api_stats),
            total_requests=health.total_requests,
            error_patterns=len(health.error_patterns),
        )
        return health

    async def rate_limiting_impact(self, db: AsyncSession, period: str) -> RateLimitImpact:
        """Compute how often users reach the daily message cap."""
        window = self._window(period, ACTIVITY_PERIODS)
        day = func.date(MessageLog.created_at)

        stmt = (
            select(
                MessageLog.user_id.label("user_id"),
                day.label("date"),
                func.count().label("message_count"),
            )
            .where(window.contains(MessageLog.created_at))
            .group_by(MessageLog.user_id, day)
        )
        rows = await self._all(db, stmt, "rate_limiting_impact")

        impact = metrics.build_rate_limit_impact(
            [
                DailyLimitHit(
                    user_id=row.user_id,
                    date=_day(row.date),
                    message_count=int(row.message_count),
                )
                for row in rows
            ],
            daily_limit=self.settings.analytics_daily_message_limit,
        )

        logger.info(
            "analytics.rate_limiting_impact_computed",
            period=period,
            total_days_with_limit_hits=impact.total_days_with_limit_hits,
            unique_users_affected=impact.unique_users_affected,
        )
        return impact
