# =============================================================================
# EVMOS UPGRADE HELPER - HTTP CLIENT
# =============================================================================
#
# Shared GET client for the GitHub API, the Cosmos REST gateway and plain
# pages (checksum files, discussion links).
#
# DESIGN:
# - Exponential backoff for retries
# - 429 and 5xx are retried, other 4xx fail immediately
# - Exhausted retries raise TransientError carrying the last failure
#
# =============================================================================

import logging
import time
from typing import Any, Callable, Dict, Optional

import requests

from shared.exceptions import RemoteRequestError, TransientError

logger = logging.getLogger(__name__)

USER_AGENT = "EvmosUpgradeHelper/1.0"


class HttpClient:
    """
    GET-only HTTP client with retries and timeouts.

    Features:
    - Exponential backoff retry logic
    - Configurable timeouts
    - Clear error logging
    """

    DEFAULT_TIMEOUT = 30  # seconds
    MAX_RETRIES = 3
    INITIAL_BACKOFF = 1.0  # seconds
    MAX_BACKOFF = 30.0  # seconds

    def __init__(
        self,
        base_url: str = "",
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = MAX_RETRIES,
        headers: Optional[Dict[str, str]] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the HTTP client.

        Args:
            base_url: Prefix for relative paths (no trailing slash needed)
            timeout: Request timeout in seconds
            max_retries: Maximum number of attempts per request
            headers: Extra headers sent with every request
            session: requests session, created if not given
            sleep: Sleep function used between retries
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})
        if headers:
            self.session.headers.update(headers)
        self._sleep = sleep

    def url_for(self, path: str) -> str:
        """Resolve a path against the base URL. Absolute URLs pass through."""
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET a JSON document.

        Raises:
            RemoteRequestError: On a non-retryable 4xx response
            TransientError: If all retry attempts fail
        """
        response = self._request(path, params)
        try:
            return response.json()
        except ValueError as e:
            raise TransientError(f"Invalid JSON from {response.url}: {e}") from e

    def get_text(self, path: str, params: Optional[Dict[str, Any]] = None) -> str:
        """GET a document as text. Same errors as get_json."""
        return self._request(path, params).text

    def _request(self, path: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """
        Make a GET request with retry logic.

        Args:
            path: Endpoint path or absolute URL
            params: Query parameters

        Returns:
            Successful response (2xx)

        Raises:
            RemoteRequestError: On a 4xx response other than 429
            TransientError: If all retry attempts fail
        """
        url = self.url_for(path)
        backoff = self.INITIAL_BACKOFF
        last_error: Optional[Exception] = None

        for attempt in range(self.max_retries):
            try:
                logger.debug(f"Request attempt {attempt + 1}: {url}")
                response = self.session.get(url, params=params, timeout=self.timeout)

                status = response.status_code
                if status < 400:
                    return response

                if status == 429 or status >= 500:
                    last_error = TransientError(f"HTTP {status} from {url}")
                    logger.warning(f"HTTP error {status} on attempt {attempt + 1}: {url}")
                else:
                    # Don't retry client errors (4xx) except 429 (rate limit)
                    raise RemoteRequestError(f"Client error {status} from {url}", status)

            except requests.exceptions.Timeout as e:
                last_error = e
                logger.warning(f"Timeout on attempt {attempt + 1}: {url}")

            except requests.exceptions.ConnectionError as e:
                last_error = e
                logger.warning(f"Connection error on attempt {attempt + 1}: {e}")

            # Exponential backoff before retry
            if attempt < self.max_retries - 1:
                sleep_time = min(backoff, self.MAX_BACKOFF)
                logger.info(f"Retrying in {sleep_time:.1f}s...")
                self._sleep(sleep_time)
                backoff *= 2

        raise TransientError(
            f"All {self.max_retries} attempts failed for {url}. Last error: {last_error}"
        )
