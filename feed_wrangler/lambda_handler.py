"""Main Lambda handler for Feed Wrangler."""

import json
import os
from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlparse

import boto3

from .auth import get_feed_secret, validate_hash
from .config import Config, MetricsConfig
from .logging_config import create_execution_logger, setup_structured_logging
from .rss import FeedProcessor

# Setup structured logging
setup_structured_logging(os.getenv("LOG_LEVEL", "INFO"))

FEED_CONTENT_TYPE = "application/atom+xml; charset=utf-8"
JSON_HEADERS = {"Content-Type": "application/json"}


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    Handle an API Gateway proxy request for a rewritten feed.

    Expects ``feedUrl`` and ``hash`` query parameters. The hash is checked
    only when a signing secret is configured.

    Args:
        event: API Gateway v2 proxy event
        context: Lambda context object

    Returns:
        API Gateway proxy response with the rewritten feed, or a JSON error
    """
    execution_id = f"lambda_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
    main_logger = create_execution_logger("main", execution_id)

    main_logger.log_execution_start(
        lambda_request_id=getattr(context, "aws_request_id", "unknown"),
        lambda_function_name=getattr(context, "function_name", "unknown"),
    )

    metrics = {
        "feeds_processed": 0,
        "entries_seen": 0,
        "entries_split": 0,
        "errors": [],
    }
    config = None

    try:
        config = Config()

        params = event.get("queryStringParameters") or {}
        feed_url = params.get("feedUrl")
        feed_hash = params.get("hash")

        if not feed_url:
            return _client_error(
                main_logger, 400, "Missing required query parameter: feedUrl"
            )

        if not feed_hash:
            return _client_error(
                main_logger, 400, "Missing required query parameter: hash"
            )

        if not is_valid_feed_url(feed_url):
            return _client_error(
                main_logger, 400, "Invalid feedUrl parameter - must be a valid URL"
            )

        secret = get_feed_secret(config, execution_id)
        if secret and not validate_hash(feed_url, feed_hash, secret):
            return _client_error(
                main_logger, 403, "Invalid hash - request not authorized"
            )

        feed_processor = FeedProcessor.from_config(
            config.get_fetch_config(), execution_id=execution_id
        )
        feed_xml = feed_processor.process_feed_url(feed_url)

        stats = feed_processor.last_stats
        metrics["feeds_processed"] = 1
        if stats is not None:
            metrics["entries_seen"] = stats.entries_seen
            metrics["entries_split"] = stats.entries_split

        main_logger.log_metrics(metrics)
        _send_metrics(config, metrics, execution_id)
        main_logger.log_execution_end(success=True, metrics=metrics)

        return {
            "statusCode": 200,
            "body": feed_xml,
            "headers": {
                "Content-Type": FEED_CONTENT_TYPE,
                "Cache-Control": f"max-age={config.cache_max_age}",
            },
        }

    except Exception as e:
        message = str(e) or "Unknown error processing feed"
        main_logger.error(
            f"Feed processing error: {message}", exc_info=True, error=message
        )
        metrics["errors"].append(message)

        if config is not None:
            _send_metrics(config, metrics, execution_id)

        main_logger.log_execution_end(success=False, metrics=metrics, error=message)

        return _json_response(
            500, {"error": "Failed to process feed", "details": message}
        )


def is_valid_feed_url(feed_url: str) -> bool:
    """Accept absolute http(s) URLs with a host."""
    try:
        parsed = urlparse(feed_url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _json_response(status_code: int, payload: dict[str, Any]) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "body": json.dumps(payload),
        "headers": dict(JSON_HEADERS),
    }


def _client_error(main_logger, status_code: int, message: str) -> dict[str, Any]:
    main_logger.warning(f"Rejected request: {message}", status_code=status_code)
    main_logger.log_execution_end(success=False, status_code=status_code)
    return _json_response(status_code, {"error": message})


def _send_metrics(config: Config, metrics: dict[str, Any], execution_id: str) -> None:
    metrics_config = config.get_metrics_config()
    if metrics_config.enabled:
        send_cloudwatch_metrics(metrics, metrics_config, execution_id)


def send_cloudwatch_metrics(
    metrics: dict[str, Any], metrics_config: MetricsConfig, execution_id: str
) -> None:
    """
    Send custom metrics to CloudWatch.

    Args:
        metrics: Dictionary containing execution metrics
        metrics_config: Namespace and region for CloudWatch
        execution_id: Execution ID for logging context
    """
    metrics_logger = create_execution_logger("cloudwatch_metrics", execution_id)

    try:
        metrics_logger.info("Sending metrics to CloudWatch", metrics=metrics)
        cloudwatch = boto3.client("cloudwatch", region_name=metrics_config.region)

        total_errors = len(metrics["errors"])
        execution_success = total_errors == 0
        status_dimension = [
            {"Name": "Status", "Value": "Success" if execution_success else "Failure"}
        ]

        metric_data = [
            {
                "MetricName": "FeedsProcessed",
                "Value": metrics["feeds_processed"],
                "Unit": "Count",
            },
            {
                "MetricName": "EntriesSeen",
                "Value": metrics["entries_seen"],
                "Unit": "Count",
            },
            {
                "MetricName": "EntriesSplit",
                "Value": metrics["entries_split"],
                "Unit": "Count",
            },
            {
                "MetricName": "Errors",
                "Value": total_errors,
                "Unit": "Count",
            },
            {
                "MetricName": "ExecutionSuccess",
                "Value": 1 if execution_success else 0,
                "Unit": "Count",
                "Dimensions": status_dimension,
            },
            {
                "MetricName": "ExecutionFailure",
                "Value": 0 if execution_success else 1,
                "Unit": "Count",
                "Dimensions": status_dimension,
            },
        ]

        # CloudWatch accepts at most 20 metrics per call
        batch_size = 20
        for i in range(0, len(metric_data), batch_size):
            batch = metric_data[i : i + batch_size]
            cloudwatch.put_metric_data(
                Namespace=metrics_config.namespace, MetricData=batch
            )
            metrics_logger.debug(f"Sent batch of {len(batch)} metrics to CloudWatch")

        metrics_logger.info(
            "Successfully sent metrics to CloudWatch",
            metrics_sent=len(metric_data),
            namespace=metrics_config.namespace,
            execution_success=execution_success,
        )

    except Exception as e:
        metrics_logger.error(f"Failed to send CloudWatch metrics: {e}", error=str(e))
        # Don't raise - metrics failure shouldn't break the response
