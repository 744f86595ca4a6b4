"""Record generators for the demo data seeder.

Generators only build dictionaries keyed by ORM attribute names; they never
touch the database, so a given seed always yields the same dataset.
"""

from __future__ import annotations

import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from dashboard.shared.seeder.config import ActivityConfig, PaymentConfig, SeederConfig

Record = dict[str, Any]

FIRST_NAMES = [
    "Aarav",
    "Diya",
    "Kabir",
    "Meera",
    "Rohan",
    "Sara",
    "Vihaan",
    "Ananya",
    "Arjun",
    "Isha",
    "Leo",
    "Maya",
    "Noah",
    "Priya",
    "Zoe",
]

LAST_NAMES = ["Sharma", "Patel", "Iyer", "Khan", "Reddy", "Singh", "Das", "Nair", "Roy", "Shah"]

REQUEST_ERRORS: list[tuple[str, int]] = [
    ("Daily message limit reached", 429),
    ("Upstream model timeout", 504),
    ("Invalid session", 401),
    ("Insufficient credits", 402),
    ("Internal server error", 500),
]

SECONDS_PER_DAY = 86400


@dataclass
class PaymentDraft:
    """A payment intent and, once the provider answered, its record.

    The record's ``payment_intent_id`` is filled in after the intent is inserted.
    """

    intent: Record
    record: Record | None = None


@dataclass
class DemoDataset:
    """Every row the seeder will insert."""

    users: list[Record] = field(default_factory=list)
    accounts: list[Record] = field(default_factory=list)
    message_logs: list[Record] = field(default_factory=list)
    request_logs: list[Record] = field(default_factory=list)
    user_credits: list[Record] = field(default_factory=list)
    payments: list[PaymentDraft] = field(default_factory=list)


def random_uuid(rng: random.Random) -> str:
    """UUID4 string drawn from the seeded generator."""
    return str(uuid.UUID(int=rng.getrandbits(128), version=4))


class UserGenerator:
    """Generates users and their linked OAuth accounts."""

    def __init__(self, rng: random.Random, config: SeederConfig) -> None:
        self.rng = rng
        self.config = config

    def generate(self) -> list[Record]:
        users: list[Record] = []
        for i in range(self.config.users):
            first = self.rng.choice(FIRST_NAMES)
            last = self.rng.choice(LAST_NAMES)
            users.append(
                {
                    "id": random_uuid(self.rng),
                    "name": f"{first} {last}",
                    "email": f"{first.lower()}.{last.lower()}.{i:04d}@{self.config.email_domain}",
                }
            )
        return users

    def generate_accounts(self, users: list[Record]) -> list[Record]:
        """One account per user, sometimes a second one with another provider."""
        providers = list(self.config.providers)
        weights = list(self.config.providers.values())

        accounts: list[Record] = []
        for user in users:
            provider = self.rng.choices(providers, weights=weights)[0]
            linked = [provider]
            others = [p for p in providers if p != provider]
            if others and self.rng.random() < self.config.second_account_probability:
                linked.append(self.rng.choice(others))
            for name in linked:
                accounts.append(
                    {
                        "user_id": user["id"],
                        "type": "oauth",
                        "provider": name,
                        "provider_account_id": str(self.rng.randrange(10**11, 10**12)),
                    }
                )
        return accounts


class ActivityGenerator:
    """Generates message logs and the request logs they caused."""

    def __init__(self, rng: random.Random, config: ActivityConfig) -> None:
        self.rng = rng
        self.config = config

    def _messages_on_active_day(self, heavy: bool) -> int:
        mean = self.config.mean_messages_per_active_day
        if heavy:
            mean *= self.config.heavy_user_multiplier
        count = max(1, round(self.rng.expovariate(1 / mean)))
        return min(count, self.config.max_messages_per_day)

    def generate_messages(
        self,
        users: list[Record],
        start: datetime,
        days: int,
    ) -> list[Record]:
        """Spread messages over ``days`` days starting at ``start``."""
        messages: list[Record] = []
        for user in users:
            heavy = self.rng.random() < self.config.heavy_user_share
            for day in range(days):
                if self.rng.random() >= self.config.active_day_probability:
                    continue
                day_start = start + timedelta(days=day)
                for _ in range(self._messages_on_active_day(heavy)):
                    offset = self.rng.randrange(SECONDS_PER_DAY - 1)
                    messages.append(
                        {
                            "user_id": user["id"],
                            "created_at": day_start + timedelta(seconds=offset),
                        }
                    )
        messages.sort(key=lambda m: m["created_at"])
        return messages

    def generate_requests(self, messages: list[Record]) -> list[Record]:
        """One successful "chat" request per message plus occasional failures."""
        requests: list[Record] = []
        for message in messages:
            requests.append(
                {
                    "user_id": message["user_id"],
                    "action": "chat",
                    "status_code": 200,
                    "success": True,
                    "error": None,
                    "created_at": message["created_at"],
                }
            )
            if self.rng.random() < self.config.request_failure_rate:
                error, status_code = self.rng.choice(REQUEST_ERRORS)
                requests.append(
                    {
                        "user_id": message["user_id"],
                        "action": self.rng.choice(["chat", *self.config.actions]),
                        "status_code": status_code,
                        "success": False,
                        "error": error,
                        "created_at": message["created_at"] + timedelta(seconds=1),
                    }
                )
        return requests


class PaymentGenerator:
    """Generates checkout attempts, payment records and credit balances."""

    def __init__(self, rng: random.Random, config: PaymentConfig) -> None:
        self.rng = rng
        self.config = config

    def _draft(self, user_id: str, created_at: datetime) -> PaymentDraft:
        tier = self.rng.choice(list(self.config.tiers))
        tier_config = self.config.tiers[tier]
        roll = self.rng.random()

        intent: Record = {
            "user_id": user_id,
            "tier": tier,
            "credits_to_grant": tier_config.credits,
            "amount_cents": tier_config.amount_cents,
            "status": "pending",
            "provider_payment_id": None,
            "created_at": created_at,
            "completed_at": None,
        }
        if roll >= self.config.completion_probability + self.config.failure_probability:
            return PaymentDraft(intent=intent)

        provider_payment_id = f"pay_{self.rng.getrandbits(64):016x}"
        intent["provider_payment_id"] = provider_payment_id
        succeeded = roll < self.config.completion_probability
        if succeeded:
            intent["status"] = "completed"
            intent["completed_at"] = created_at + timedelta(
                seconds=self.rng.randint(5, self.config.max_processing_seconds)
            )
        else:
            intent["status"] = "failed"

        record: Record = {
            "user_id": user_id,
            "provider_payment_id": provider_payment_id,
            "status": "succeeded" if succeeded else "failed",
            "credits_granted": tier_config.credits if succeeded else 0,
            "amount_cents": tier_config.amount_cents,
            "created_at": intent["completed_at"] or created_at,
        }
        return PaymentDraft(intent=intent, record=record)

    def generate(self, users: list[Record], start: datetime, days: int) -> list[PaymentDraft]:
        drafts: list[PaymentDraft] = []
        for user in users:
            if self.rng.random() >= self.config.intent_probability:
                continue
            for _ in range(self.rng.randint(1, self.config.max_intents_per_user)):
                offset = self.rng.randrange(
                    max(days * SECONDS_PER_DAY - self.config.max_processing_seconds, 1)
                )
                drafts.append(self._draft(user["id"], start + timedelta(seconds=offset)))
        return drafts

    def generate_credits(self, users: list[Record], drafts: list[PaymentDraft]) -> list[Record]:
        """Balance = credits granted by succeeded payments minus a random spend."""
        granted: dict[str, int] = {user["id"]: 0 for user in users}
        for draft in drafts:
            if draft.record is not None:
                granted[draft.record["user_id"]] += draft.record["credits_granted"]

        return [
            {"user_id": user_id, "balance": total - self.rng.randint(0, total)}
            for user_id, total in granted.items()
        ]
