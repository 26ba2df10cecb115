"""Configuration management for Feed Wrangler."""

import os
from dataclasses import dataclass


@dataclass
class FetchConfig:
    """Configuration for downloading upstream feeds."""

    timeout: float = 5.0
    user_agent: str = "AtomFeedWrangler/1.0 (Feed paragraph splitter)"


@dataclass
class MetricsConfig:
    """Configuration for CloudWatch metrics."""

    enabled: bool = False
    namespace: str = "Feed-Wrangler"
    region: str = "us-east-1"


class Config:
    """Main configuration manager."""

    DEFAULT_CACHE_MAX_AGE = 3600

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.feed_secret = os.getenv("FEED_SECRET") or None
        self.feed_secret_name = os.getenv("FEED_SECRET_NAME") or None
        self.aws_region = os.getenv(
            "CURRENT_AWS_REGION", os.getenv("AWS_DEFAULT_REGION", "us-east-1")
        )
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.api_url = os.getenv("API_URL") or None
        self.fetch_timeout = self._get_number("FETCH_TIMEOUT", FetchConfig.timeout)
        self.cache_max_age = int(
            self._get_number("CACHE_MAX_AGE", self.DEFAULT_CACHE_MAX_AGE)
        )
        self.metrics_enabled = os.getenv("ENABLE_METRICS", "false").lower() in (
            "1",
            "true",
            "yes",
        )
        self.metrics_namespace = os.getenv("METRICS_NAMESPACE", MetricsConfig.namespace)

    @staticmethod
    def _get_number(name: str, default: float) -> float:
        """Read a non-negative number from the environment."""
        raw = os.getenv(name)
        if raw is None or not raw.strip():
            return default

        try:
            value = float(raw)
        except ValueError:
            raise ValueError(f"Invalid value for {name}: {raw!r} is not a number")

        if value < 0:
            raise ValueError(f"Invalid value for {name}: must not be negative")
        return value

    def get_fetch_config(self) -> FetchConfig:
        """Get feed download configuration."""
        return FetchConfig(timeout=self.fetch_timeout)

    def get_metrics_config(self) -> MetricsConfig:
        """Get CloudWatch metrics configuration."""
        return MetricsConfig(
            enabled=self.metrics_enabled,
            namespace=self.metrics_namespace,
            region=self.aws_region,
        )
