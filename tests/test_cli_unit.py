"""Unit tests for the command line tools."""

import os
from unittest.mock import patch

from feed_wrangler.auth import generate_hash
from feed_wrangler.cli import build_local_event, local_main, sign_main

FEED_URL = "https://example.com/feed.xml"
ENCODED_URL = "https%3A%2F%2Fexample.com%2Ffeed.xml"


class TestSignCliUnit:
    """Unit tests for feed-wrangler-sign."""

    def test_prints_query_string(self, capsys):
        with patch.dict(os.environ, {}, clear=True):
            exit_code = sign_main([FEED_URL, "arg-secret"])

        assert exit_code == 0
        expected_hash = generate_hash(FEED_URL, "arg-secret")
        assert capsys.readouterr().out == f"?feedUrl={ENCODED_URL}&hash={expected_hash}\n"

    def test_environment_secret_takes_precedence(self, capsys):
        with patch.dict(os.environ, {"FEED_SECRET": "env-secret"}, clear=True):
            sign_main([FEED_URL, "arg-secret"])

        assert generate_hash(FEED_URL, "env-secret") in capsys.readouterr().out

    def test_api_url_prefix(self, capsys):
        env = {"FEED_SECRET": "s", "API_URL": "https://api.example.com/prod/feed"}
        with patch.dict(os.environ, env, clear=True):
            sign_main([FEED_URL])

        assert capsys.readouterr().out.startswith(
            f"https://api.example.com/prod/feed?feedUrl={ENCODED_URL}&hash="
        )

    def test_missing_url(self, capsys):
        with patch.dict(os.environ, {"FEED_SECRET": "s"}, clear=True):
            assert sign_main([]) == 1

        assert "Usage" in capsys.readouterr().err

    def test_missing_secret(self, capsys):
        with patch.dict(os.environ, {}, clear=True):
            assert sign_main([FEED_URL]) == 1

        assert "Secret not provided" in capsys.readouterr().err

    def test_invalid_url(self, capsys):
        with patch.dict(os.environ, {"FEED_SECRET": "s"}, clear=True):
            assert sign_main(["not a url"]) == 1

        assert "Invalid URL format" in capsys.readouterr().err


class TestLocalCliUnit:
    """Unit tests for feed-wrangler-local."""

    def test_build_local_event(self):
        event = build_local_event(FEED_URL, "abc123")

        assert event["version"] == "2.0"
        assert event["queryStringParameters"] == {"feedUrl": FEED_URL, "hash": "abc123"}
        assert event["rawQueryString"] == f"feedUrl={ENCODED_URL}&hash=abc123"
        assert event["requestContext"]["http"]["method"] == "GET"

    def test_prints_feed_body(self, capsys):
        with (
            patch.dict(os.environ, {}, clear=True),
            patch("feed_wrangler.cli.setup_structured_logging"),
            patch(
                "feed_wrangler.cli.lambda_handler",
                return_value={"statusCode": 200, "body": "<feed/>", "headers": {}},
            ) as mock_handler,
        ):
            exit_code = local_main(["--feedUrl", FEED_URL])

        assert exit_code == 0
        assert capsys.readouterr().out == "<feed/>\n"
        event = mock_handler.call_args.args[0]
        assert event["queryStringParameters"] == {
            "feedUrl": FEED_URL,
            "hash": generate_hash(FEED_URL, "local-test-secret"),
        }

    def test_positional_url_and_env_secret(self):
        with (
            patch.dict(os.environ, {"FEED_SECRET": "env-secret"}, clear=True),
            patch("feed_wrangler.cli.setup_structured_logging"),
            patch(
                "feed_wrangler.cli.lambda_handler",
                return_value={"statusCode": 200, "body": "<feed/>", "headers": {}},
            ) as mock_handler,
        ):
            local_main([FEED_URL])

        event = mock_handler.call_args.args[0]
        assert event["queryStringParameters"]["hash"] == generate_hash(
            FEED_URL, "env-secret"
        )

    def test_error_status_exits_non_zero(self, capsys):
        with (
            patch.dict(os.environ, {}, clear=True),
            patch("feed_wrangler.cli.setup_structured_logging"),
            patch(
                "feed_wrangler.cli.lambda_handler",
                return_value={
                    "statusCode": 500,
                    "body": '{"error": "Failed to process feed"}',
                    "headers": {},
                },
            ),
        ):
            exit_code = local_main(["-u", FEED_URL])

        assert exit_code == 1
        captured = capsys.readouterr()
        assert "Error 500" in captured.err
        assert captured.out == ""

    def test_missing_url(self, capsys):
        assert local_main([]) == 1
        assert "usage" in capsys.readouterr().err
