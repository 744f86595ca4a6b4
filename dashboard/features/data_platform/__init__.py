"""Read-only ORM mapping of the chat application's tables."""

from dashboard.features.data_platform.models import (
    Account,
    MessageLog,
    PaymentIntent,
    PaymentRecord,
    RequestLog,
    User,
    UserCredit,
)

__all__ = [
    "Account",
    "MessageLog",
    "PaymentIntent",
    "PaymentRecord",
    "RequestLog",
    "User",
    "UserCredit",
]
