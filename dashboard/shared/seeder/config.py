"""Configuration dataclasses for the demo data seeder."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class TierConfig:
    """Price and credit grant of one pricing tier.

    Attributes:
        amount_cents: Price in minor currency units.
        credits: Credits granted on a successful payment.
    """

    amount_cents: int
    credits: int


@dataclass
class ActivityConfig:
    """Configuration for message and request activity.

    Attributes:
        active_day_probability: Chance that a user sends anything on a given day.
        mean_messages_per_active_day: Mean messages on an active day.
        heavy_user_share: Fraction of users who message far more than the rest.
        heavy_user_multiplier: Message multiplier applied to heavy users.
        max_messages_per_day: Hard cap on messages per user per day.
        request_failure_rate: Chance of an extra failed request per message.
        actions: API actions other than "chat" that may appear in request logs.
    """

    active_day_probability: float = 0.35
    mean_messages_per_active_day: float = 3.0
    heavy_user_share: float = 0.15
    heavy_user_multiplier: float = 3.0
    max_messages_per_day: int = 25
    request_failure_rate: float = 0.05
    actions: list[str] = field(default_factory=lambda: ["get_credits", "create_payment"])


@dataclass
class PaymentConfig:
    """Configuration for payment intents and records.

    Attributes:
        intent_probability: Chance that a user starts at least one checkout.
        max_intents_per_user: Upper bound on checkouts per paying user.
        completion_probability: Chance an intent completes.
        failure_probability: Chance an intent fails (the rest stay pending).
        max_processing_seconds: Upper bound on checkout completion latency.
        tiers: Pricing tiers by name.
    """

    intent_probability: float = 0.3
    max_intents_per_user: int = 3
    completion_probability: float = 0.7
    failure_probability: float = 0.2
    max_processing_seconds: int = 900
    tiers: dict[str, TierConfig] = field(
        default_factory=lambda: {
            "basic": TierConfig(amount_cents=9900, credits=50),
            "pro": TierConfig(amount_cents=29900, credits=200),
            "premium": TierConfig(amount_cents=79900, credits=600),
        }
    )


@dataclass
class SeederConfig:
    """Master configuration for the demo data seeder.

    Attributes:
        seed: Random seed for reproducibility.
        users: Number of users to generate.
        days: Lookback window, in days, over which activity is spread.
        providers: OAuth providers with relative weights.
        second_account_probability: Chance a user links a second provider.
        email_domain: Domain of generated emails; also marks rows for deletion.
        activity: Message and request activity configuration.
        payments: Payment configuration.
        batch_size: Rows per insert statement.
    """

    seed: int = 42
    users: int = 50
    days: int = 90
    providers: dict[str, float] = field(
        default_factory=lambda: {"google": 0.6, "github": 0.3, "discord": 0.1}
    )
    second_account_probability: float = 0.1
    email_domain: str = "demo.invalid"
    activity: ActivityConfig = field(default_factory=ActivityConfig)
    payments: PaymentConfig = field(default_factory=PaymentConfig)
    batch_size: int = 1000

    def __post_init__(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If a count or probability is out of range.
        """
        if self.users < 1:
            raise ValueError(f"users must be >= 1, got {self.users}")
        if self.days < 1:
            raise ValueError(f"days must be >= 1, got {self.days}")
        if not self.providers:
            raise ValueError("at least one provider is required")
        if self.payments.completion_probability + self.payments.failure_probability > 1:
            raise ValueError("completion_probability + failure_probability must be <= 1")
