"""Unit tests for configuration management."""

import os
from unittest.mock import patch

import pytest

from feed_wrangler.config import Config, FetchConfig, MetricsConfig


class TestConfigUnit:
    """Unit tests for Config class."""

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = Config()

        assert config.feed_secret is None
        assert config.feed_secret_name is None
        assert config.aws_region == "us-east-1"
        assert config.log_level == "INFO"
        assert config.api_url is None
        assert config.fetch_timeout == 5.0
        assert config.cache_max_age == 3600
        assert config.metrics_enabled is False

    def test_environment_overrides(self):
        env = {
            "FEED_SECRET": "s3cret",
            "FEED_SECRET_NAME": "feed-wrangler/secret",
            "CURRENT_AWS_REGION": "eu-south-1",
            "LOG_LEVEL": "DEBUG",
            "API_URL": "https://api.example.com/feed",
            "FETCH_TIMEOUT": "2.5",
            "CACHE_MAX_AGE": "600",
            "ENABLE_METRICS": "true",
            "METRICS_NAMESPACE": "Custom",
        }
        with patch.dict(os.environ, env, clear=True):
            config = Config()

        assert config.feed_secret == "s3cret"
        assert config.feed_secret_name == "feed-wrangler/secret"
        assert config.aws_region == "eu-south-1"
        assert config.log_level == "DEBUG"
        assert config.api_url == "https://api.example.com/feed"
        assert config.fetch_timeout == 2.5
        assert config.cache_max_age == 600
        assert config.get_metrics_config() == MetricsConfig(
            enabled=True, namespace="Custom", region="eu-south-1"
        )

    def test_region_falls_back_to_aws_default_region(self):
        with patch.dict(os.environ, {"AWS_DEFAULT_REGION": "ap-south-1"}, clear=True):
            assert Config().aws_region == "ap-south-1"

    def test_empty_secret_is_treated_as_unset(self):
        with patch.dict(os.environ, {"FEED_SECRET": ""}, clear=True):
            assert Config().feed_secret is None

    def test_fetch_config(self):
        with patch.dict(os.environ, {"FETCH_TIMEOUT": "10"}, clear=True):
            fetch_config = Config().get_fetch_config()

        assert fetch_config.timeout == 10.0
        assert fetch_config.user_agent == FetchConfig().user_agent

    @pytest.mark.parametrize("value", ["soon", "-1"])
    def test_invalid_numbers_are_rejected(self, value):
        with patch.dict(os.environ, {"CACHE_MAX_AGE": value}, clear=True):
            with pytest.raises(ValueError, match="CACHE_MAX_AGE"):
                Config()
