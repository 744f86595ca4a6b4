"""Tests for the analytics service against a mocked session.

Each test feeds execute() results in the order the service issues its queries.
"""

from collections.abc import Callable
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from dashboard.core.exceptions import DatabaseError, ValidationError
from dashboard.features.analytics.service import AnalyticsService

RowsOf = Callable[..., MagicMock]
CountOf = Callable[[int | None], MagicMock]
SessionReturning = Callable[..., AsyncMock]


class TestUserAnalytics:
    """Tests for growth, retention, engagement, auth patterns and segmentation."""

    async def test_user_growth(
        self,
        service: AnalyticsService,
        session_returning: SessionReturning,
        count_of: CountOf,
    ):
        db = session_returning(count_of(300))

        growth = await service.user_growth(db, "30d")

        assert growth.total_users == 300
        assert len(growth.daily_signups) == 30
        assert growth.daily_signups[0].date == "2025-05-16"
        assert growth.new_users_in_period == sum(d.count for d in growth.daily_signups)
        assert db.execute.await_count == 1

    async def test_user_growth_empty_database(
        self,
        service: AnalyticsService,
        session_returning: SessionReturning,
        count_of: CountOf,
    ):
        growth = await service.user_growth(session_returning(count_of(None)), "7d")

        assert growth.total_users == 0
        assert growth.growth_rate == "0"

    async def test_user_retention(
        self,
        service: AnalyticsService,
        session_returning: SessionReturning,
        count_of: CountOf,
    ):
        retention = await service.user_retention(session_returning(count_of(200)), "90d")
        assert [p.retained_count for p in retention] == [170, 90, 50]

    async def test_user_retention_rejects_year_before_querying(
        self,
        service: AnalyticsService,
        session_returning: SessionReturning,
    ):
        db = session_returning()

        with pytest.raises(ValidationError):
            await service.user_retention(db, "1y")
        db.execute.assert_not_awaited()

    async def test_user_engagement(
        self,
        service: AnalyticsService,
        session_returning: SessionReturning,
        rows_of: RowsOf,
    ):
        db = session_returning(
            rows_of(
                {"user_id": "u1", "message_count": 9, "user_name": "Meera Iyer"},
                {"user_id": "u2", "message_count": 3, "user_name": None},
            ),
            rows_of(
                {"date": date(2025, 6, 13), "active_users": 2},
                {"date": date(2025, 6, 14), "active_users": 1},
            ),
        )

        engagement = await service.user_engagement(db, "7d")

        assert engagement.total_active_users == 2
        assert engagement.avg_messages_per_user == "6.00"
        assert engagement.messages_per_user[1].user_name is None
        assert [d.date for d in engagement.daily_active_users] == ["2025-06-13", "2025-06-14"]

    async def test_authentication_patterns(
        self,
        service: AnalyticsService,
        session_returning: SessionReturning,
        rows_of: RowsOf,
    ):
        db = session_returning(
            rows_of({"provider": "google", "count": 3}, {"provider": "discord", "count": 1})
        )

        patterns = await service.authentication_patterns(db)

        assert patterns.total_accounts == 4
        assert patterns.provider_stats[0].provider == "google"
        assert patterns.provider_stats[0].percentage == "75.00"

    async def test_user_segmentation(
        self,
        service: AnalyticsService,
        session_returning: SessionReturning,
        rows_of: RowsOf,
    ):
        db = session_returning(
            rows_of(
                {
                    "user_id": "a",
                    "user_name": "A",
                    "email": "a@example.com",
                    "credits": 40,
                    "total_messages": 11,
                    "has_paid": True,
                },
                {
                    "user_id": "b",
                    "user_name": "B",
                    "email": "b@example.com",
                    "credits": None,
                    "total_messages": 10,
                    "has_paid": False,
                },
                {
                    "user_id": "c",
                    "user_name": None,
                    "email": "c@example.com",
                    "credits": None,
                    "total_messages": 0,
                    "has_paid": False,
                },
            )
        )

        segmentation = await service.user_segmentation(db)

        assert (segmentation.heavy_users, segmentation.light_users) == (1, 2)
        assert (segmentation.paid_users, segmentation.free_users) == (1, 2)
        assert segmentation.segments.paid[0].credits == 40


class TestUsageAnalytics:
    async def test_message_volume(
        self,
        service: AnalyticsService,
        session_returning: SessionReturning,
        rows_of: RowsOf,
    ):
        db = session_returning(
            rows_of(
                {"date": date(2025, 6, 14), "count": 4, "hour": Decimal("9")},
                {"date": date(2025, 6, 14), "count": 1, "hour": Decimal("22")},
            ),
            rows_of(
                {"hour": Decimal("9"), "count": 4},
                {"hour": Decimal("22"), "count": 1},
            ),
        )

        volume = await service.message_volume(db, "30d")

        assert volume.total_messages == 5
        assert volume.daily_messages[1].hour == 22
        assert volume.daily_messages[0].date == "2025-06-14"
        assert [h.hour for h in volume.hourly_stats] == [9, 22]


class TestRevenueAnalytics:
    async def test_conversion_funnel(
        self,
        service: AnalyticsService,
        session_returning: SessionReturning,
        count_of: CountOf,
    ):
        db = session_returning(count_of(50), count_of(20), count_of(5), count_of(2))

        funnel = await service.conversion_funnel(db, "90d")

        assert (funnel.registrations, funnel.first_message) == (50, 20)
        assert (funnel.payment_intent, funnel.completed_payment) == (5, 2)
        assert funnel.conversion_rates.registration_to_first_message == "40.00"
        assert funnel.conversion_rates.overall_conversion == "4.00"

    async def test_conversion_funnel_rejects_week(
        self,
        service: AnalyticsService,
        session_returning: SessionReturning,
    ):
        with pytest.raises(ValidationError):
            await service.conversion_funnel(session_returning(), "7d")

    async def test_revenue_metrics(
        self,
        service: AnalyticsService,
        session_returning: SessionReturning,
        rows_of: RowsOf,
        count_of: CountOf,
    ):
        db = session_returning(
            rows_of(
                {"month": "2025-04", "revenue": Decimal("29900"), "transactions": 1},
                {"month": "2025-05", "revenue": Decimal("109700"), "transactions": 3},
            ),
            count_of(2),
        )

        revenue = await service.revenue_metrics(db, "1y")

        assert revenue.total_revenue == "1396.00"
        assert revenue.arpu == "698.00"
        assert revenue.unique_paying_users == 2
        assert [m.month for m in revenue.monthly_revenue] == ["2025-04", "2025-05"]

    async def test_payment_analysis(
        self,
        service: AnalyticsService,
        session_returning: SessionReturning,
        rows_of: RowsOf,
    ):
        db = session_returning(
            rows_of({"tier": "pro", "total_attempts": 4, "successful": 3}),
            rows_of(
                {"payment_intent_id": 1, "tier": "pro", "time_to_complete": Decimal("90")},
                {"payment_intent_id": 2, "tier": "pro", "time_to_complete": Decimal("150")},
            ),
        )

        analysis = await service.payment_analysis(db, "30d")

        assert analysis.tier_stats[0].success_rate == "75.00"
        assert analysis.average_processing_time == "2.00"
        assert analysis.processing_times[0].time_to_complete == 90.0


class TestOperationalAnalytics:
    async def test_system_health(
        self,
        service: AnalyticsService,
        session_returning: SessionReturning,
        rows_of: RowsOf,
    ):
        db = session_returning(
            rows_of(
                {
                    "action": "chat",
                    "total_requests": 105,
                    "successful_requests": 100,
                    "ok_response_ratio": Decimal("0.95"),
                }
            ),
            rows_of({"error": "Upstream model timeout", "status_code": 504, "count": 5}),
        )

        health = await service.system_health(db, "7d")

        assert health.total_requests == 105
        assert health.api_stats[0].success_rate == "95.24"
        assert health.api_stats[0].ok_response_ratio == 0.95
        assert health.error_patterns[0].status_code == 504

    async def test_rate_limiting_impact(
        self,
        service: AnalyticsService,
        session_returning: SessionReturning,
        rows_of: RowsOf,
    ):
        db = session_returning(
            rows_of(
                {"user_id": "a", "date": date(2025, 6, 10), "message_count": 5},
                {"user_id": "b", "date": date(2025, 6, 10), "message_count": 4},
                {"user_id": "b", "date": date(2025, 6, 11), "message_count": 9},
            )
        )

        impact = await service.rate_limiting_impact(db, "30d")

        assert impact.total_days_with_limit_hits == 2
        assert impact.unique_users_affected == 2
        assert impact.average_messages_on_limit_days == "7.00"
        assert {hit.date for hit in impact.daily_limit_hits} == {"2025-06-10", "2025-06-11"}


class TestQueryFailures:
    async def test_count_failure_becomes_database_error(self, service: AnalyticsService):
        db = AsyncMock()
        db.execute.side_effect = OperationalError("SELECT count(*)", {}, Exception("gone"))

        with pytest.raises(DatabaseError) as exc_info:
            await service.user_growth(db, "7d")

        assert exc_info.value.status_code == 500
        assert exc_info.value.details["metric"] == "user_growth"

    async def test_failure_in_second_query_fails_bundle(
        self,
        service: AnalyticsService,
        session_returning: SessionReturning,
        rows_of: RowsOf,
    ):
        db = session_returning(
            rows_of({"provider": "google", "count": 1}),
            OperationalError("SELECT", {}, Exception("timeout")),
        )

        with pytest.raises(DatabaseError):
            await service.system_health(db, "7d")
