"""Configuration models for the retry drivers.

`RetryPolicy` consolidates the knobs of every driver in one validated,
immutable object so composition roots can build drivers from settings and
tests can construct custom policies.
"""

from typing import Literal

from pydantic import BaseModel, Field, model_validator


class RetryPolicy(BaseModel):
    """Retry policy shared by the driver family.
    
    Only the fields relevant to `strategy` are used by a driver call:
    - attempts: max_attempts, delay
    - timeout: timeout, delay
    - backoff: deadline, min_sleep, max_sleep
    
    Attributes:
        strategy: Which driver `execute` dispatches to
        max_attempts: Attempt cap of the fixed-attempt driver
        delay: Fixed sleep (seconds) after each failed attempt
        timeout: Wall-clock budget (seconds) of the timeout driver
        deadline: Budget (seconds) of the backoff driver, 0 for no deadline
        min_sleep: Initial backoff interval (seconds)
        max_sleep: Backoff interval cap (seconds)
    """

    strategy: Literal["attempts", "timeout", "backoff"] = Field(
        default="backoff",
        description="Retry driver used by execute()"
    )

    max_attempts: int = Field(
        default=3,
        ge=1,
        description="Maximum number of invocations for the fixed-attempt driver"
    )

    delay: float = Field(
        default=0.1,
        ge=0,
        description="Seconds slept after every failed attempt (attempts/timeout drivers)"
    )

    timeout: float = Field(
        default=5.0,
        ge=0,
        description="Wall-clock seconds the timeout driver keeps attempting"
    )

    deadline: float = Field(
        default=0.0,
        ge=0,
        description="Seconds after which backoff stops retrying (0 = until success)"
    )

    min_sleep: float = Field(
        default=0.1,
        ge=0,
        description="Initial backoff interval in seconds"
    )

    max_sleep: float = Field(
        default=5.0,
        ge=0,
        description="Upper bound for the doubling backoff interval in seconds"
    )

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }

    @model_validator(mode="after")
    def check_sleep_bounds(self) -> "RetryPolicy":
        if self.min_sleep > self.max_sleep:
            raise ValueError(
                f"min_sleep ({self.min_sleep}) must not exceed max_sleep ({self.max_sleep})"
            )
        return self

    @classmethod
    def from_app_settings(cls, settings) -> "RetryPolicy":
        """Factory method to construct a policy from a ResilientSettings instance.
        
        Args:
            settings: ResilientSettings instance from core.settings
            
        Returns:
            RetryPolicy with values from app settings
        """
        return cls(
            strategy=settings.RESILIENT_RETRY_STRATEGY,
            max_attempts=settings.RESILIENT_RETRY_ATTEMPTS,
            delay=settings.RESILIENT_RETRY_DELAY,
            timeout=settings.RESILIENT_RETRY_TIMEOUT,
            deadline=settings.RESILIENT_RETRY_DEADLINE,
            min_sleep=settings.RESILIENT_RETRY_MIN_SLEEP,
            max_sleep=settings.RESILIENT_RETRY_MAX_SLEEP,
        )
