"""
Page fetching for music service URLs.

Downloads a (normalized) service page with requests and parses it into a
BeautifulSoup tree for the extractor.

Error Mapping:
    requests.RequestException (incl. timeouts) -> FetchError
    HTTP status >= 400                         -> FetchError
    Markup rejected by the parser              -> DocumentParseError
"""

import requests
from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

from tubelink.core.config import DEFAULT_TIMEOUT
from tubelink.core.exceptions import DocumentParseError, FetchError
from tubelink.core.logger import get_logger


logger = get_logger(__name__)

# Service pages only render metadata for browser-like clients
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)

# lxml builds the implied <html> and <head> elements for pages that omit them
HTML_PARSER = "lxml"


class PageFetcher:
    """
    Fetches and parses service pages.

    Attributes:
        _session: Shared requests session. GETs are safe to issue from
                  several worker threads at once.
        _timeout: Per-request timeout in seconds.

    Example:
        fetcher = PageFetcher(timeout=10)
        document = fetcher.fetch("https://open.spotify.com/track/...?l=en-GB")
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None
    ) -> None:
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.setdefault("User-Agent", DEFAULT_USER_AGENT)

    def fetch(self, url: str) -> BeautifulSoup:
        """
        Download and parse a page.

        Args:
            url: Page URL (normally a ClassifiedURL.normalized_url).

        Returns:
            Parsed document.

        Raises:
            FetchError: Network failure, timeout or HTTP error status.
            DocumentParseError: Response body couldn't be parsed.
        """
        logger.debug(f"Requesting {url}")
        try:
            response = self._session.get(url, timeout=self._timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise FetchError(
                f"Failed to fetch {url}: {e}",
                details={"url": url, "original_error": str(e)}
            ) from e

        return parse_document(response.text, url)

    def close(self) -> None:
        self._session.close()


def parse_document(markup: str, url: str = "") -> BeautifulSoup:
    """
    Parse page markup into a document tree.

    Raises:
        DocumentParseError: The parser rejected the markup.
    """
    try:
        return BeautifulSoup(markup, HTML_PARSER)
    except ParserRejectedMarkup as e:
        raise DocumentParseError(
            f"Failed to parse page {url}: {e}",
            details={"url": url, "original_error": str(e)}
        ) from e
