"""ORM models for the chat application's relational store.

The tables are created and written by the chat front end; the dashboard only
reads them. Column names follow the front end's camelCase convention and
table names carry the configured prefix.

- Identity: User, Account
- Append-only logs: MessageLog, RequestLog, PaymentRecord
- Mutable state: UserCredit, PaymentIntent
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Identity,
    Index,
    Integer,
    PrimaryKeyConstraint,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dashboard.core.config import get_settings
from dashboard.core.database import Base
from dashboard.shared.models import CreatedAtMixin, UpdatedAtMixin

TABLE_PREFIX = get_settings().db_table_prefix
USER_FK = f"{TABLE_PREFIX}user.id"


def _new_user_id() -> str:
    return str(uuid.uuid4())


# ============================================================================
# IDENTITY
# ============================================================================


class User(Base):
    """Registered user.

    No registration timestamp is recorded, which is why growth and retention
    figures are approximations.

    Attributes:
        id: Primary key (UUID string).
        name: Display name from the OAuth provider.
        email: Email address.
        email_verified: When the email was verified.
        image: Avatar URL.
    """

    __tablename__ = f"{TABLE_PREFIX}user"

    id: Mapped[str] = mapped_column(String(255), primary_key=True, default=_new_user_id)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str] = mapped_column(String(255))
    email_verified: Mapped[datetime | None] = mapped_column(
        "emailVerified",
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=True,
    )
    image: Mapped[str | None] = mapped_column(String(255), nullable=True)

    accounts: Mapped[list["Account"]] = relationship(back_populates="user")
    credit: Mapped["UserCredit | None"] = relationship(back_populates="user")


class Account(Base):
    """Linked OAuth provider account, one row per (provider, providerAccountId).

    Token columns are left out; the dashboard never reads them.
    """

    __tablename__ = f"{TABLE_PREFIX}account"

    user_id: Mapped[str] = mapped_column("userId", String(255), ForeignKey(USER_FK))
    type: Mapped[str] = mapped_column(String(255))
    provider: Mapped[str] = mapped_column(String(255))
    provider_account_id: Mapped[str] = mapped_column("providerAccountId", String(255))

    user: Mapped["User"] = relationship(back_populates="accounts")

    __table_args__ = (
        PrimaryKeyConstraint("provider", "providerAccountId"),
        Index("account_user_id_idx", "userId"),
    )


# ============================================================================
# APPEND-ONLY LOGS
# ============================================================================


class MessageLog(CreatedAtMixin, Base):
    """One row per message sent by a user."""

    __tablename__ = f"{TABLE_PREFIX}message_log"

    id: Mapped[int] = mapped_column(Integer, Identity(), primary_key=True)
    user_id: Mapped[str] = mapped_column("userId", String(255), ForeignKey(USER_FK))

    __table_args__ = (Index("message_log_user_created_idx", "userId", "createdAt"),)


class RequestLog(CreatedAtMixin, Base):
    """One row per API call, successful or not.

    Attributes:
        action: Logical API action (e.g. "chat").
        status_code: HTTP status returned to the caller.
        success: Whether the call succeeded.
        error: Error message for failed calls.
    """

    __tablename__ = f"{TABLE_PREFIX}request_log"

    id: Mapped[int] = mapped_column(Integer, Identity(), primary_key=True)
    user_id: Mapped[str] = mapped_column("userId", String(255), ForeignKey(USER_FK))
    session_id: Mapped[str | None] = mapped_column("sessionId", String(255), nullable=True)
    action: Mapped[str] = mapped_column(String(64))
    status_code: Mapped[int] = mapped_column("statusCode", Integer)
    success: Mapped[bool] = mapped_column(Boolean)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (Index("request_log_user_created_idx", "userId", "createdAt"),)


class PaymentRecord(CreatedAtMixin, UpdatedAtMixin, Base):
    """Ledger entry for a payment event.

    Linked to its intent by ``providerPaymentId`` and ``paymentIntentId``.
    Status is one of created | succeeded | failed.
    """

    __tablename__ = f"{TABLE_PREFIX}payment_record"

    id: Mapped[int] = mapped_column(Integer, Identity(), primary_key=True)
    user_id: Mapped[str] = mapped_column("userId", String(255), ForeignKey(USER_FK))
    provider_payment_id: Mapped[str] = mapped_column("providerPaymentId", String(255))
    status: Mapped[str] = mapped_column(String(32))
    credits_granted: Mapped[int] = mapped_column("creditsGranted", Integer, default=0)
    amount_cents: Mapped[int] = mapped_column("amountCents", Integer, default=0)
    currency: Mapped[str] = mapped_column(String(16), default="INR")
    payment_intent_id: Mapped[int | None] = mapped_column(
        "paymentIntentId",
        Integer,
        ForeignKey(f"{TABLE_PREFIX}payment_intent.id"),
        nullable=True,
    )

    __table_args__ = (
        Index("payment_record_user_idx", "userId"),
        Index("payment_record_provider_idx", "providerPaymentId"),
        Index("payment_record_intent_idx", "paymentIntentId"),
    )


# ============================================================================
# MUTABLE STATE
# ============================================================================


class UserCredit(UpdatedAtMixin, Base):
    """Remaining purchasable credits, one row per user."""

    __tablename__ = f"{TABLE_PREFIX}user_credit"

    user_id: Mapped[str] = mapped_column(
        "userId", String(255), ForeignKey(USER_FK), primary_key=True
    )
    balance: Mapped[int] = mapped_column(Integer, default=0)

    user: Mapped["User"] = relationship(back_populates="credit")

    __table_args__ = (Index("user_credit_updated_idx", "updatedAt"),)


class PaymentIntent(CreatedAtMixin, Base):
    """Checkout attempt, created pending and moved to completed or failed.

    Attributes:
        tier: basic | pro | premium.
        credits_to_grant: Credits granted on completion.
        amount_cents: Price in minor currency units.
        status: pending | completed | failed.
        provider_payment_id: Filled in when the payment is verified.
        completed_at: When the intent completed.
    """

    __tablename__ = f"{TABLE_PREFIX}payment_intent"

    id: Mapped[int] = mapped_column(Integer, Identity(), primary_key=True)
    user_id: Mapped[str] = mapped_column("userId", String(255), ForeignKey(USER_FK))
    tier: Mapped[str] = mapped_column(String(32))
    credits_to_grant: Mapped[int] = mapped_column("creditsToGrant", Integer)
    amount_cents: Mapped[int] = mapped_column("amountCents", Integer)
    currency: Mapped[str] = mapped_column(String(16), default="INR")
    status: Mapped[str] = mapped_column(String(32), default="pending")
    provider_payment_id: Mapped[str | None] = mapped_column(
        "providerPaymentId", String(255), nullable=True
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        "completedAt", DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index("payment_intent_user_idx", "userId"),
        Index("payment_intent_status_idx", "status"),
        Index("payment_intent_provider_idx", "providerPaymentId"),
    )
