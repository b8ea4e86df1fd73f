"""
Configuration for verification timing and budgets.
"""

from dataclasses import dataclass


@dataclass
class VerificationConfig:
    """Timing and budget limits shared by transport retries and state polling."""

    # Backoff curve (milliseconds)
    INITIAL_DELAY_MS: int = 2000
    BACKOFF_MULTIPLIER: float = 1.5
    MAX_DELAY_MS: int = 10000

    # Budgets
    MAX_RETRIES: int = 3
    HARD_POLL_CEILING: int = 10

    # HTTP timeout (seconds)
    REQUEST_TIMEOUT_SECONDS: float = 30.0

    @classmethod
    def create_production_config(cls) -> "VerificationConfig":
        """Create the default configuration used for real devices."""
        return cls()

    @classmethod
    def create_patient_config(cls) -> "VerificationConfig":
        """Create a configuration that tolerates slow door motors and flaky bridges."""
        return cls(
            MAX_RETRIES=5,
            MAX_DELAY_MS=15000,
        )

    @classmethod
    def for_profile(cls, profile: str | None) -> "VerificationConfig":
        """Select a preset by name; unknown or empty names get production."""
        if profile and profile.strip().lower() == "patient":
            return cls.create_patient_config()
        return cls.create_production_config()


@dataclass
class VerificationState:
    """Counters for one poll loop. Owned by a single request, never shared."""

    poll_attempts: int = 0
    failure_budget: int = 0

    def can_poll(self, config: VerificationConfig) -> bool:
        """Check whether another sample may be taken."""
        return (
            self.failure_budget <= config.MAX_RETRIES
            and self.poll_attempts < config.HARD_POLL_CEILING
        )

    def record_sample(self) -> None:
        self.poll_attempts += 1

    def record_failure(self) -> None:
        """Record a non-transitional sample that did not reach the goal."""
        self.failure_budget += 1

    def hit_hard_ceiling(self, config: VerificationConfig) -> bool:
        return self.poll_attempts >= config.HARD_POLL_CEILING

    def get_limits_summary(self) -> str:
        return (
            f"Poll attempts: {self.poll_attempts}, "
            f"Failure budget used: {self.failure_budget}"
        )
