"""Demo data seeder orchestration."""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from dashboard.core.clock import Clock, utc_now
from dashboard.core.logging import get_logger
from dashboard.features.data_platform.models import (
    Account,
    MessageLog,
    PaymentIntent,
    PaymentRecord,
    RequestLog,
    User,
    UserCredit,
)
from dashboard.shared.seeder.generators import (
    ActivityGenerator,
    DemoDataset,
    PaymentGenerator,
    UserGenerator,
)

if TYPE_CHECKING:
    from dashboard.shared.seeder.config import SeederConfig

logger = get_logger(__name__)

# Child tables first so foreign keys never dangle
USER_OWNED_TABLES: list[tuple[str, Any]] = [
    ("payment_record", PaymentRecord),
    ("payment_intent", PaymentIntent),
    ("user_credit", UserCredit),
    ("request_log", RequestLog),
    ("message_log", MessageLog),
    ("account", Account),
]


@dataclass
class SeederResult:
    """Row counts of a seeding run.

    Attributes:
        users_count: Users inserted.
        accounts_count: Linked accounts inserted.
        messages_count: Message logs inserted.
        requests_count: Request logs inserted.
        payment_intents_count: Payment intents inserted.
        payment_records_count: Payment records inserted.
        seed: Random seed used.
    """

    users_count: int = 0
    accounts_count: int = 0
    messages_count: int = 0
    requests_count: int = 0
    payment_intents_count: int = 0
    payment_records_count: int = 0
    seed: int = 42


class DemoDataSeeder:
    """Fills the chat application's tables with a reproducible demo dataset.

    Generated users share an email domain, which is how ``delete_data``
    finds them again without touching real users.
    """

    def __init__(self, config: SeederConfig, clock: Clock = utc_now) -> None:
        """Initialize the seeder.

        Args:
            config: Seeder configuration.
            clock: Activity is generated over the days leading up to clock().
        """
        self.config = config
        self.clock = clock
        self.rng = random.Random(config.seed)

    def build_dataset(self) -> DemoDataset:
        """Generate every record without touching the database."""
        end = self.clock()
        start = end - timedelta(days=self.config.days)

        user_gen = UserGenerator(self.rng, self.config)
        activity_gen = ActivityGenerator(self.rng, self.config.activity)
        payment_gen = PaymentGenerator(self.rng, self.config.payments)

        users = user_gen.generate()
        messages = activity_gen.generate_messages(users, start, self.config.days)
        payments = payment_gen.generate(users, start, self.config.days)

        return DemoDataset(
            users=users,
            accounts=user_gen.generate_accounts(users),
            message_logs=messages,
            request_logs=activity_gen.generate_requests(messages),
            user_credits=payment_gen.generate_credits(users, payments),
            payments=payments,
        )

    async def _batch_insert(
        self,
        db: AsyncSession,
        model: Any,
        records: list[dict[str, Any]],
    ) -> int:
        """Insert records in batches.

        Args:
            db: Async database session.
            model: ORM model class.
            records: Dictionaries keyed by ORM attribute names.

        Returns:
            Number of records inserted.
        """
        size = self.config.batch_size
        for i in range(0, len(records), size):
            await db.execute(insert(model), records[i : i + size])
        return len(records)

    async def _insert_payments(self, db: AsyncSession, dataset: DemoDataset) -> tuple[int, int]:
        """Insert intents, then link and insert their records."""
        intents = [draft.intent for draft in dataset.payments]
        if not intents:
            return 0, 0

        result = await db.execute(
            insert(PaymentIntent).returning(PaymentIntent.id, sort_by_parameter_order=True),
            intents,
        )
        intent_ids = list(result.scalars().all())

        records: list[dict[str, Any]] = []
        for draft, intent_id in zip(dataset.payments, intent_ids, strict=True):
            if draft.record is not None:
                records.append({**draft.record, "payment_intent_id": intent_id})

        return len(intents), await self._batch_insert(db, PaymentRecord, records)

    async def generate_full(self, db: AsyncSession) -> SeederResult:
        """Generate and insert a complete demo dataset.

        Args:
            db: Async database session.

        Returns:
            SeederResult with counts of inserted records.
        """
        logger.info(
            "seeder.full_generation.started",
            seed=self.config.seed,
            users=self.config.users,
            days=self.config.days,
        )

        dataset = self.build_dataset()

        users = await self._batch_insert(db, User, dataset.users)
        accounts = await self._batch_insert(db, Account, dataset.accounts)
        await self._batch_insert(db, UserCredit, dataset.user_credits)
        messages = await self._batch_insert(db, MessageLog, dataset.message_logs)
        requests = await self._batch_insert(db, RequestLog, dataset.request_logs)
        intents, records = await self._insert_payments(db, dataset)

        await db.commit()

        result = SeederResult(
            users_count=users,
            accounts_count=accounts,
            messages_count=messages,
            requests_count=requests,
            payment_intents_count=intents,
            payment_records_count=records,
            seed=self.config.seed,
        )

        logger.info(
            "seeder.full_generation.completed",
            users=result.users_count,
            messages=result.messages_count,
            payment_intents=result.payment_intents_count,
            seed=self.config.seed,
        )
        return result

    async def delete_data(self, db: AsyncSession, dry_run: bool = False) -> dict[str, int]:
        """Delete every row belonging to generated users.

        Args:
            db: Async database session.
            dry_run: If True, only count what would be deleted.

        Returns:
            Dictionary of table names to row counts (deleted or would be deleted).
        """
        is_demo_user = User.email.like(f"%@{self.config.email_domain}")
        demo_user_ids = select(User.id).where(is_demo_user).scalar_subquery()

        counts: dict[str, int] = {}
        for name, model in USER_OWNED_TABLES:
            result = await db.execute(
                select(func.count()).select_from(model).where(model.user_id.in_(demo_user_ids))
            )
            counts[name] = result.scalar() or 0
        result = await db.execute(select(func.count()).select_from(User).where(is_demo_user))
        counts["user"] = result.scalar() or 0

        if dry_run:
            logger.info("seeder.delete.dry_run", counts=counts)
            return counts

        for name, model in USER_OWNED_TABLES:
            logger.info("seeder.delete.table", table=name, count=counts[name])
            await db.execute(
                delete(model)
                .where(model.user_id.in_(demo_user_ids))
                .execution_options(synchronize_session=False)
            )
        await db.execute(
            delete(User).where(is_demo_user).execution_options(synchronize_session=False)
        )

        await db.commit()

        logger.info("seeder.delete.completed", total_deleted=sum(counts.values()))
        return counts

    async def get_current_counts(self, db: AsyncSession) -> dict[str, int]:
        """Get current row counts for every table the dashboard reads.

        Args:
            db: Async database session.

        Returns:
            Dictionary of table names to row counts.
        """
        counts: dict[str, int] = {}
        for name, model in [("user", User), *USER_OWNED_TABLES]:
            result = await db.execute(select(func.count()).select_from(model))
            counts[name] = result.scalar() or 0
        return counts
