"""Tests for seeder configuration."""

import pytest

from dashboard.shared.seeder.config import PaymentConfig, SeederConfig


class TestPaymentConfig:
    """Tests for PaymentConfig."""

    def test_default_tiers(self):
        config = PaymentConfig()

        assert set(config.tiers) == {"basic", "pro", "premium"}
        assert config.tiers["pro"].amount_cents == 29900
        assert config.tiers["pro"].credits == 200

    def test_probabilities_leave_room_for_pending(self):
        config = PaymentConfig()
        assert config.completion_probability + config.failure_probability < 1


class TestSeederConfig:
    """Tests for SeederConfig."""

    def test_default_values(self):
        config = SeederConfig()

        assert config.seed == 42
        assert config.users == 50
        assert config.days == 90
        assert config.email_domain == "demo.invalid"
        assert config.batch_size == 1000

    def test_nested_configs_are_independent(self):
        first = SeederConfig()
        second = SeederConfig()

        first.activity.actions.append("export")

        assert "export" not in second.activity.actions

    @pytest.mark.parametrize(("field", "value"), [("users", 0), ("days", 0)])
    def test_rejects_non_positive_counts(self, field: str, value: int):
        with pytest.raises(ValueError, match=field):
            SeederConfig(**{field: value})

    def test_rejects_empty_providers(self):
        with pytest.raises(ValueError, match="provider"):
            SeederConfig(providers={})

    def test_rejects_probabilities_over_one(self):
        with pytest.raises(ValueError, match="completion_probability"):
            SeederConfig(payments=PaymentConfig(completion_probability=0.8, failure_probability=0.3))
