# Logging adapter for package-wide logging
from resilient.adapters.logging_adapter import LoggingAdapter

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings
from rich import print

from resilient.core.interfaces.logging import LoggingPort

# using pydantic_settings to manage environment variables
# and do automatic type casting in a central place
class ResilientSettings(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore"
    }
    RESILIENT_LOG_LEVEL: str = "INFO"
    # Driver used by TenacityRetryAdapter.execute when no policy is passed
    RESILIENT_RETRY_STRATEGY: Literal["attempts", "timeout", "backoff"] = "backoff"
    RESILIENT_RETRY_ATTEMPTS: int = Field(default=3, ge=1)
    RESILIENT_RETRY_DELAY: float = Field(default=0.1, ge=0)  # seconds
    RESILIENT_RETRY_TIMEOUT: float = Field(default=5.0, ge=0)  # seconds
    # 0 disables the deadline: backoff runs until the operation succeeds
    RESILIENT_RETRY_DEADLINE: float = Field(default=0.0, ge=0)  # seconds
    RESILIENT_RETRY_MIN_SLEEP: float = Field(default=0.1, ge=0)  # seconds
    RESILIENT_RETRY_MAX_SLEEP: float = Field(default=5.0, ge=0)  # seconds

    def print_settings(self, logger: LoggingPort):
        """Prints the settings for debugging purposes"""
        logger.info("Resilient Settings:")
        print(self)


app_settings = ResilientSettings()

logger = LoggingAdapter("resilient", app_settings.RESILIENT_LOG_LEVEL)
