"""Command line tools for signing feed URLs and running the handler locally."""

import argparse
import os
import sys
from datetime import UTC, datetime
from typing import Any

from .auth import build_query_string, generate_hash, generate_query_string
from .lambda_handler import is_valid_feed_url, lambda_handler
from .logging_config import setup_structured_logging

LOCAL_TEST_SECRET = "local-test-secret"


def sign_main(argv: list[str] | None = None) -> int:
    """Print a signed query string for a feed URL.

    Usage: feed-wrangler-sign <feed-url> [secret]
    The FEED_SECRET environment variable takes precedence over the argument.
    """
    parser = argparse.ArgumentParser(
        prog="feed-wrangler-sign",
        description="Generate an authenticated query string for a feed URL.",
        epilog="Environment variables: FEED_SECRET, API_URL",
    )
    parser.add_argument("feed_url", nargs="?", help="Feed URL to sign")
    parser.add_argument("secret", nargs="?", help="Signing secret")
    args = parser.parse_args(argv)

    if not args.feed_url:
        print("Usage: feed-wrangler-sign <feed-url> [secret]", file=sys.stderr)
        print("  Environment variable: FEED_SECRET", file=sys.stderr)
        return 1

    secret = os.getenv("FEED_SECRET") or args.secret
    if not secret:
        print("Error: Secret not provided", file=sys.stderr)
        print(
            "Set FEED_SECRET environment variable or pass as second argument",
            file=sys.stderr,
        )
        return 1

    if not is_valid_feed_url(args.feed_url):
        print("Error: Invalid URL format", file=sys.stderr)
        return 1

    query_string = generate_query_string(args.feed_url, secret)
    api_url = os.getenv("API_URL")
    print(f"{api_url}?{query_string}" if api_url else f"?{query_string}")
    return 0


def build_local_event(feed_url: str, feed_hash: str) -> dict[str, Any]:
    """Synthesize an API Gateway v2 GET /feed event."""
    now = datetime.now(UTC)

    return {
        "version": "2.0",
        "routeKey": "GET /feed",
        "rawPath": "/feed",
        "rawQueryString": build_query_string(feed_url, feed_hash),
        "headers": {"host": "localhost", "user-agent": "cli"},
        "queryStringParameters": {"feedUrl": feed_url, "hash": feed_hash},
        "requestContext": {
            "http": {
                "method": "GET",
                "path": "/feed",
                "protocol": "HTTP/1.1",
                "sourceIp": "127.0.0.1",
                "userAgent": "cli",
            },
            "routeKey": "GET /feed",
            "stage": "local",
            "accountId": "local",
            "apiId": "local",
            "domainName": "localhost",
            "domainPrefix": "local",
            "requestId": "local",
            "time": now.isoformat(),
            "timeEpoch": int(now.timestamp() * 1000),
        },
        "isBase64Encoded": False,
    }


def local_main(argv: list[str] | None = None) -> int:
    """Run the Lambda handler locally against a feed URL and print the result."""
    parser = argparse.ArgumentParser(
        prog="feed-wrangler-local",
        description="Fetch and rewrite a feed through the Lambda handler.",
    )
    parser.add_argument("url", nargs="?", help="Feed URL")
    parser.add_argument("--feedUrl", "-u", dest="feed_url", help="Feed URL")
    args = parser.parse_args(argv)

    feed_url = args.feed_url or args.url
    if not feed_url:
        parser.print_usage(sys.stderr)
        return 1

    # Logs go to stderr so stdout carries only the feed.
    setup_structured_logging(os.getenv("LOG_LEVEL", "WARNING"), stream=sys.stderr)

    secret = os.getenv("FEED_SECRET") or LOCAL_TEST_SECRET

    event = build_local_event(feed_url, generate_hash(feed_url, secret))
    response = lambda_handler(event, None)

    status_code = response.get("statusCode", 500)
    if status_code >= 400:
        print(f"Error {status_code}: {response.get('body', '')}", file=sys.stderr)
        return 1

    if response.get("body"):
        print(response["body"])
    return 0


def sign() -> None:
    sys.exit(sign_main())


def local() -> None:
    sys.exit(local_main())
