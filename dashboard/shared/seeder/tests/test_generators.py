"""Tests for seeder record generators."""

import random
from collections import Counter
from datetime import datetime, timedelta

from dashboard.shared.seeder.config import ActivityConfig, PaymentConfig, SeederConfig
from dashboard.shared.seeder.generators import (
    ActivityGenerator,
    PaymentGenerator,
    UserGenerator,
    random_uuid,
)


def test_random_uuid_is_reproducible():
    assert random_uuid(random.Random(1)) == random_uuid(random.Random(1))
    assert len(random_uuid(random.Random(1))) == 36


class TestUserGenerator:
    """Tests for UserGenerator."""

    def test_generates_requested_number(self, rng: random.Random, small_config: SeederConfig):
        users = UserGenerator(rng, small_config).generate()

        assert len(users) == 8
        assert len({user["id"] for user in users}) == 8

    def test_emails_use_demo_domain(self, rng: random.Random, small_config: SeederConfig):
        users = UserGenerator(rng, small_config).generate()

        assert all(user["email"].endswith("@demo.invalid") for user in users)
        assert len({user["email"] for user in users}) == len(users)

    def test_same_seed_same_users(self, small_config: SeederConfig):
        first = UserGenerator(random.Random(5), small_config).generate()
        second = UserGenerator(random.Random(5), small_config).generate()
        assert first == second

    def test_accounts_use_distinct_providers_per_user(self, rng: random.Random):
        generator = UserGenerator(rng, SeederConfig(users=40, second_account_probability=0.5))
        users = generator.generate()
        accounts = generator.generate_accounts(users)

        per_user: dict[str, list[str]] = {}
        for account in accounts:
            per_user.setdefault(account["user_id"], []).append(account["provider"])

        assert set(per_user) == {user["id"] for user in users}
        assert all(1 <= len(p) <= 2 and len(set(p)) == len(p) for p in per_user.values())
        assert {a["provider"] for a in accounts} <= {"google", "github", "discord"}

    def test_single_provider_never_links_twice(self, rng: random.Random):
        config = SeederConfig(users=10, providers={"google": 1.0}, second_account_probability=1.0)
        generator = UserGenerator(rng, config)

        accounts = generator.generate_accounts(generator.generate())

        assert len(accounts) == 10


class TestActivityGenerator:
    """Tests for ActivityGenerator."""

    def test_messages_fall_inside_window(
        self,
        rng: random.Random,
        activity_config: ActivityConfig,
        fixed_now: datetime,
    ):
        users = [{"id": "a"}, {"id": "b"}]
        start = fixed_now - timedelta(days=14)

        messages = ActivityGenerator(rng, activity_config).generate_messages(users, start, 14)

        assert messages
        assert all(start <= m["created_at"] < fixed_now for m in messages)
        assert [m["created_at"] for m in messages] == sorted(m["created_at"] for m in messages)

    def test_daily_messages_respect_cap(self, rng: random.Random, fixed_now: datetime):
        config = ActivityConfig(
            active_day_probability=1.0,
            mean_messages_per_active_day=50.0,
            max_messages_per_day=6,
        )
        start = fixed_now - timedelta(days=5)
        messages = ActivityGenerator(rng, config).generate_messages([{"id": "a"}], start, 5)

        per_day = Counter((m["created_at"] - start) // timedelta(days=1) for m in messages)
        assert max(per_day.values()) <= 6

    def test_one_successful_chat_request_per_message(
        self,
        rng: random.Random,
        activity_config: ActivityConfig,
        fixed_now: datetime,
    ):
        generator = ActivityGenerator(rng, activity_config)
        messages = generator.generate_messages(
            [{"id": "a"}, {"id": "b"}], fixed_now - timedelta(days=14), 14
        )

        requests = generator.generate_requests(messages)

        successes = [r for r in requests if r["success"]]
        failures = [r for r in requests if not r["success"]]
        assert len(successes) == len(messages)
        assert all(r["action"] == "chat" and r["status_code"] == 200 for r in successes)
        assert failures
        assert all(r["error"] and r["status_code"] >= 400 for r in failures)


class TestPaymentGenerator:
    """Tests for PaymentGenerator."""

    def _drafts(self, rng: random.Random, config: PaymentConfig, fixed_now: datetime):
        users = [{"id": f"u{i}"} for i in range(30)]
        return users, PaymentGenerator(rng, config).generate(
            users, fixed_now - timedelta(days=30), 30
        )

    def test_record_matches_intent_outcome(
        self,
        rng: random.Random,
        payment_config: PaymentConfig,
        fixed_now: datetime,
    ):
        _, drafts = self._drafts(rng, payment_config, fixed_now)

        statuses = Counter(draft.intent["status"] for draft in drafts)
        assert statuses["completed"] > 0

        for draft in drafts:
            intent, record = draft.intent, draft.record
            if intent["status"] == "pending":
                assert record is None
                assert intent["provider_payment_id"] is None
                continue
            assert record is not None
            assert record["provider_payment_id"] == intent["provider_payment_id"]
            if intent["status"] == "completed":
                assert record["status"] == "succeeded"
                assert record["credits_granted"] == intent["credits_to_grant"]
                assert intent["completed_at"] > intent["created_at"]
            else:
                assert record["status"] == "failed"
                assert record["credits_granted"] == 0
                assert intent["completed_at"] is None

    def test_completions_stay_inside_window(
        self,
        rng: random.Random,
        payment_config: PaymentConfig,
        fixed_now: datetime,
    ):
        _, drafts = self._drafts(rng, payment_config, fixed_now)

        completed = [d.intent["completed_at"] for d in drafts if d.intent["completed_at"]]
        assert all(at <= fixed_now for at in completed)

    def test_tier_prices(
        self,
        rng: random.Random,
        payment_config: PaymentConfig,
        fixed_now: datetime,
    ):
        _, drafts = self._drafts(rng, payment_config, fixed_now)

        for draft in drafts:
            tier = payment_config.tiers[draft.intent["tier"]]
            assert draft.intent["amount_cents"] == tier.amount_cents

    def test_credit_balances_never_exceed_grants(
        self,
        rng: random.Random,
        payment_config: PaymentConfig,
        fixed_now: datetime,
    ):
        users, drafts = self._drafts(rng, payment_config, fixed_now)
        generator = PaymentGenerator(rng, payment_config)

        credits = generator.generate_credits(users, drafts)

        granted: Counter[str] = Counter()
        for draft in drafts:
            if draft.record is not None:
                granted[draft.record["user_id"]] += draft.record["credits_granted"]
        assert len(credits) == len(users)
        assert all(0 <= row["balance"] <= granted[row["user_id"]] for row in credits)
