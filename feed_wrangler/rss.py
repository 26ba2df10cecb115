"""Feed download and processing for Feed Wrangler."""

import requests

from .config import FetchConfig
from .logging_config import create_execution_logger
from .models import TransformStats
from .transform import process_feed_with_stats


class FeedFetchError(Exception):
    """Raised when the upstream feed cannot be downloaded."""


class FeedProcessor:
    """Downloads a feed and rewrites its entries."""

    def __init__(
        self,
        timeout: float = FetchConfig.timeout,
        user_agent: str = FetchConfig.user_agent,
        execution_id: str | None = None,
    ):
        """Initialize FeedProcessor with configuration.

        Args:
            timeout: HTTP request timeout in seconds
            user_agent: User-Agent header sent upstream
            execution_id: Execution ID for logging context
        """
        self.timeout = timeout
        self.logger = create_execution_logger("feed_processor", execution_id)
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": user_agent})
        self.last_stats: TransformStats | None = None

        self.logger.info("FeedProcessor initialized", timeout=timeout)

    @classmethod
    def from_config(
        cls, config: FetchConfig, execution_id: str | None = None
    ) -> "FeedProcessor":
        return cls(
            timeout=config.timeout,
            user_agent=config.user_agent,
            execution_id=execution_id,
        )

    def fetch_feed(self, feed_url: str) -> str:
        """Download a feed document.

        Args:
            feed_url: URL of the RSS/Atom feed

        Returns:
            Feed text as decoded by requests

        Raises:
            FeedFetchError: On transport failure, timeout, or non-2xx status
        """
        self.logger.info("Downloading feed content", feed_url=feed_url)

        try:
            response = self.session.get(feed_url, timeout=self.timeout)
        except requests.RequestException as e:
            self.logger.error(
                f"Failed to download feed {feed_url}: {e}",
                feed_url=feed_url,
                error=str(e),
            )
            raise FeedFetchError(f"Failed to fetch feed from {feed_url}: {e}") from e

        if not response.ok:
            message = f"Failed to fetch feed: HTTP {response.status_code} {response.reason}"
            self.logger.error(
                message, feed_url=feed_url, status_code=response.status_code
            )
            raise FeedFetchError(f"Failed to fetch feed from {feed_url}: {message}")

        # Without a declared charset requests assumes ISO-8859-1 for text/*.
        if "charset" not in response.headers.get("Content-Type", "").lower():
            response.encoding = response.apparent_encoding

        self.logger.info(
            "Feed downloaded successfully",
            feed_url=feed_url,
            status_code=response.status_code,
            content_length=len(response.content),
        )
        return response.text

    def process_feed_url(self, feed_url: str) -> str:
        """Fetch a feed and split its entries at the first paragraph.

        Raises:
            FeedFetchError: If the download fails
            ParseError: If the downloaded document is not well-formed XML
        """
        feed_text = self.fetch_feed(feed_url)
        feed_xml, stats = process_feed_with_stats(feed_text)
        self.logger.log_feed_processing(
            feed_url, stats.dialect, stats.entries_seen, stats.entries_split
        )
        self.last_stats = stats
        return feed_xml
