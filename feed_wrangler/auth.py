"""Signed feed URLs and secret retrieval for Feed Wrangler."""

import hashlib
import hmac
import json
from urllib.parse import quote

import boto3
from botocore.exceptions import ClientError

from .config import Config
from .logging_config import create_execution_logger

HASH_LENGTH = 16
SECRET_JSON_KEYS = ("secret", "feed_secret", "token")
# Characters left unescaped, matching encodeURIComponent in browsers.
URI_COMPONENT_SAFE = "!~*'()"


def generate_hash(feed_url: str, secret: str) -> str:
    """HMAC-SHA256 of the feed URL, truncated to a short hex token."""
    digest = hmac.new(secret.encode("utf-8"), feed_url.encode("utf-8"), hashlib.sha256)
    return digest.hexdigest()[:HASH_LENGTH]


def validate_hash(feed_url: str, provided_hash: str, secret: str) -> bool:
    """Check a token against the expected one in constant time."""
    expected_hash = generate_hash(feed_url, secret)
    return hmac.compare_digest(provided_hash.encode("utf-8"), expected_hash.encode("utf-8"))


def build_query_string(feed_url: str, feed_hash: str) -> str:
    """Encode a feed URL and its token as ``feedUrl=...&hash=...``."""
    encoded_url = quote(feed_url, safe=URI_COMPONENT_SAFE)
    encoded_hash = quote(feed_hash, safe=URI_COMPONENT_SAFE)
    return f"feedUrl={encoded_url}&hash={encoded_hash}"


def generate_query_string(feed_url: str, secret: str) -> str:
    """Build the signed query string for a feed."""
    return build_query_string(feed_url, generate_hash(feed_url, secret))


def get_feed_secret(config: Config, execution_id: str | None = None) -> str | None:
    """
    Resolve the signing secret.

    ``FEED_SECRET`` wins. Otherwise, when ``FEED_SECRET_NAME`` is configured,
    the secret is read from AWS Secrets Manager as either a plain string or a
    JSON object. With neither configured there is no secret and signature
    checks are skipped.

    Args:
        config: Runtime configuration
        execution_id: Execution ID for logging context

    Returns:
        The secret, or None when none is configured

    Raises:
        RuntimeError: If the secret cannot be retrieved or has no usable value
    """
    if config.feed_secret:
        return config.feed_secret

    if not config.feed_secret_name:
        return None

    secret_name = config.feed_secret_name
    secrets_logger = create_execution_logger("secrets_manager", execution_id)

    try:
        secrets_logger.info(f"Retrieving feed secret from Secrets Manager: {secret_name}")
        secrets_client = boto3.client("secretsmanager", region_name=config.aws_region)
        response = secrets_client.get_secret_value(SecretId=secret_name)

        secret_value = response.get("SecretString", "")
        if not secret_value or not secret_value.strip():
            raise ValueError(f"Secret {secret_name} contains empty value")

        return _extract_secret(secret_value, secret_name)

    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        secrets_logger.error(
            f"AWS Secrets Manager error retrieving {secret_name}: {error_code}"
        )
        raise RuntimeError(f"Failed to retrieve secret {secret_name}") from e
    except ValueError as e:
        secrets_logger.error(f"Invalid secret format for {secret_name}: {e}")
        raise RuntimeError(f"Invalid secret format for {secret_name}") from e


def _extract_secret(secret_value: str, secret_name: str) -> str:
    try:
        secret_data = json.loads(secret_value)
    except json.JSONDecodeError:
        return secret_value.strip()

    if not isinstance(secret_data, dict):
        # A bare JSON scalar such as a number is still a usable secret.
        return secret_value.strip()

    for key in SECRET_JSON_KEYS:
        value = secret_data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()

    raise ValueError(f"No valid secret found in JSON secret {secret_name}")
