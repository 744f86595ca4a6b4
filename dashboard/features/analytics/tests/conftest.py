"""Test fixtures for analytics module."""

import random
from collections.abc import Callable
from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from dashboard.core.config import Settings
from dashboard.core.database import get_db
from dashboard.features.analytics.dependencies import get_analytics_service
from dashboard.features.analytics.schemas import SegmentedUser
from dashboard.features.analytics.service import AnalyticsService
from dashboard.main import app

FIXED_NOW = datetime(2025, 6, 15, 12, 0, tzinfo=UTC)


def _rows_result(rows: list[dict[str, Any]]) -> MagicMock:
    result = MagicMock()
    result.all.return_value = [SimpleNamespace(**fields) for fields in rows]
    return result


def _count_result(value: int | None) -> MagicMock:
    result = MagicMock()
    result.scalar_one.return_value = value
    return result


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def rows_of() -> Callable[..., MagicMock]:
    """Execute() result whose all() yields rows with attribute access."""
    return lambda *rows: _rows_result(list(rows))


@pytest.fixture
def count_of() -> Callable[[int | None], MagicMock]:
    """Execute() result whose scalar_one() yields a count."""
    return _count_result


@pytest.fixture
def session_returning() -> Callable[..., AsyncMock]:
    """Build a session whose successive execute() calls return the given results."""

    def build(*results: Any) -> AsyncMock:
        session = AsyncMock()
        session.execute = AsyncMock(side_effect=list(results))
        return session

    return build


@pytest.fixture
def service() -> AnalyticsService:
    """Service with a pinned clock and seeded jitter."""
    return AnalyticsService(
        clock=lambda: FIXED_NOW,
        rng=random.Random(7),
        settings=Settings(),
    )


@pytest.fixture
def api(service: AnalyticsService):
    """Route the app's analytics dependencies to test doubles.

    Yields a function that installs the session the next request will use.
    """
    holder: dict[str, AsyncMock] = {"session": AsyncMock()}

    async def override_get_db():
        yield holder["session"]

    def use_session(session: AsyncMock) -> AsyncMock:
        holder["session"] = session
        return session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_analytics_service] = lambda: service
    yield use_session
    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_analytics_service, None)


@pytest.fixture
async def client():
    """Create async HTTP client for testing FastAPI endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def make_user() -> Callable[..., SegmentedUser]:
    """Factory for segmentation rows."""

    def build(user_id: str, total_messages: int = 0, has_paid: bool = False) -> SegmentedUser:
        return SegmentedUser(
            user_id=user_id,
            user_name=f"User {user_id}",
            email=f"{user_id}@example.com",
            credits=None,
            total_messages=total_messages,
            has_paid=has_paid,
        )

    return build
