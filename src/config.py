"""
Configuration module for the LiteLLM resource reconciler.

Loads configuration from environment variables. Retry settings are kept
per resource kind since models and credentials propagate at different
speeds on the proxy.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from backoff_policy import BackoffPolicy


@dataclass
class ClientConfig:
    """LiteLLM proxy connection configuration."""

    api_base: str = "http://localhost:4000"
    api_key: str = field(default="", repr=False)  # Never log the key
    timeout: float = 30.0  # seconds

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        return cls(
            api_base=os.getenv("LITELLM_API_BASE", "http://localhost:4000").rstrip("/"),
            api_key=os.getenv("LITELLM_API_KEY", ""),
            timeout=float(os.getenv("LITELLM_TIMEOUT", "30")),
        )


@dataclass
class RetryConfig:
    """Read-after-write retry configuration for one resource kind."""

    max_attempts: int = 5
    initial_delay: float = 1.0  # seconds
    max_delay: float = 10.0  # seconds
    settle_delay: float = 0.0  # seconds, once before the first read

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if min(self.initial_delay, self.max_delay, self.settle_delay) < 0:
            raise ValueError("Retry delays must not be negative")

    @classmethod
    def from_env(cls, prefix: str, defaults: Optional["RetryConfig"] = None):
        """
        Load from environment variables.

        Args:
            prefix: Variable prefix, e.g. 'MODEL' reads MODEL_READ_MAX_ATTEMPTS.
            defaults: Values used for variables that are not set.
        """
        base = defaults or cls()
        return cls(
            max_attempts=int(
                os.getenv(f"{prefix}_READ_MAX_ATTEMPTS", str(base.max_attempts))
            ),
            initial_delay=float(
                os.getenv(f"{prefix}_READ_INITIAL_DELAY", str(base.initial_delay))
            ),
            max_delay=float(
                os.getenv(f"{prefix}_READ_MAX_DELAY", str(base.max_delay))
            ),
            settle_delay=float(
                os.getenv(f"{prefix}_READ_SETTLE_DELAY", str(base.settle_delay))
            ),
        )

    def backoff_policy(self) -> BackoffPolicy:
        return BackoffPolicy(
            initial_delay=self.initial_delay,
            max_delay=self.max_delay,
            settle_delay=self.settle_delay,
        )


# Models take longer to show up on /model/info than credentials do
MODEL_RETRY_DEFAULTS = RetryConfig(
    max_attempts=8, initial_delay=0.5, max_delay=10.0, settle_delay=0.2
)
CREDENTIAL_RETRY_DEFAULTS = RetryConfig(
    max_attempts=5, initial_delay=1.0, max_delay=10.0, settle_delay=0.0
)


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        return cls(level=os.getenv("LOG_LEVEL", "INFO").upper())


@dataclass
class Config:
    """Main configuration object."""

    client: ClientConfig
    model_retry: RetryConfig
    credential_retry: RetryConfig
    logging: LoggingConfig

    @classmethod
    def from_env(cls):
        """Load all configuration from environment variables."""
        return cls(
            client=ClientConfig.from_env(),
            model_retry=RetryConfig.from_env("MODEL", MODEL_RETRY_DEFAULTS),
            credential_retry=RetryConfig.from_env(
                "CREDENTIAL", CREDENTIAL_RETRY_DEFAULTS
            ),
            logging=LoggingConfig.from_env(),
        )

    @classmethod
    def default(cls):
        """Return default configuration."""
        return cls(
            client=ClientConfig(),
            model_retry=RetryConfig(**vars(MODEL_RETRY_DEFAULTS)),
            credential_retry=RetryConfig(**vars(CREDENTIAL_RETRY_DEFAULTS)),
            logging=LoggingConfig(),
        )

    def retry_for(self, kind_name: str) -> RetryConfig:
        """Get the retry configuration for a resource kind."""
        if kind_name == "model":
            return self.model_retry
        if kind_name == "credential":
            return self.credential_retry
        raise ValueError(f"Unknown resource kind: {kind_name}")


# Global config instance
config: Optional[Config] = None


def load_config() -> Config:
    """Load configuration (singleton pattern)."""
    global config
    if config is None:
        config = Config.from_env()
    return config


def get_config() -> Config:
    """Get the current configuration."""
    if config is None:
        return load_config()
    return config


def reset_config() -> None:
    """Reset configuration (mainly for testing)."""
    global config
    config = None
