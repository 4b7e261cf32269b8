"""HTTP fetching of county web application pages."""

import logging
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import RunConfig
from .document import Document

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """A page could not be fetched or decoded."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class WebFetcher:
    """Fetch pages one at a time through a retrying session.

    Pacing between requests is the caller's job (see ``collector.collect``);
    the fetcher itself never sleeps except inside urllib3's retry backoff.
    """

    def __init__(self, config: RunConfig, session: Optional[requests.Session] = None):
        """Initialize fetcher.

        Args:
            config: Run configuration
            session: Pre-built session (tests); one is created when omitted
        """
        self.config = config
        self.session = session or self._create_session()
        self.fetched = 0
        self.failed = 0

    def _create_session(self) -> requests.Session:
        """Create requests session with retry logic.

        Returns:
            Configured session
        """
        session = requests.Session()

        retry_strategy = Retry(
            total=3,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS"]
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update({
            'User-Agent': self.config.user_agent,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.9',
        })

        return session

    def fetch(self, url: str) -> Document:
        """Fetch and parse one page.

        Args:
            url: Absolute page URL

        Returns:
            Parsed document

        Raises:
            FetchError: On HTTP errors, timeouts, connection faults, or an empty body
        """
        try:
            response = self.session.get(url, timeout=self.config.request_timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            self.failed += 1
            raise FetchError(url, str(e)) from e

        if not response.content.strip():
            self.failed += 1
            raise FetchError(url, "empty response body")

        self.fetched += 1
        logger.debug(f"Fetched {url} ({len(response.content)} bytes)")
        return Document(response.text, url=url)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "WebFetcher":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
