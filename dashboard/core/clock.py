"""Injectable wall clock.

Period boundaries are computed from the clock handed to the analytics
service, so tests can pin "now" to a fixed instant.
"""

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def get_clock() -> Clock:
    """Dependency returning the production clock."""
    return utc_now
