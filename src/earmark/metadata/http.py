# ABOUTME: JSON-over-HTTP client shared by the Audible and Audnexus catalog calls.
# ABOUTME: Spaces requests apart, retries 429/5xx with backoff (honoring Retry-After), and takes an injectable transport.

import logging
import time
from typing import Any, Protocol, runtime_checkable

import httpx

logger = logging.getLogger(__name__)

# A malformed host or URL fails outside the httpx.HTTPError hierarchy.
_REQUEST_ERRORS = (httpx.HTTPError, httpx.InvalidURL, UnicodeError)

_RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

# Upper bound on a server-requested Retry-After wait.
_MAX_RETRY_AFTER = 30.0


class CatalogFetchError(Exception):
    """Raised when an HTTP request to a catalog endpoint fails.

    status_code is None when the request never produced a response.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP GET operations against catalog APIs."""

    def get(self, url: str, params: dict[str, str] | None = None) -> Any: ...


class _Throttle:
    """Keeps at least `interval` seconds between consecutive calls to wait()."""

    def __init__(self, interval: float) -> None:
        self._interval = interval
        self._last: float | None = None

    def wait(self) -> None:
        if self._interval > 0 and self._last is not None:
            remaining = self._interval - (time.monotonic() - self._last)
            if remaining > 0:
                time.sleep(remaining)
        self._last = time.monotonic()


def _retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("retry-after")
    if value is None:
        return None
    try:
        return min(max(float(value), 0.0), _MAX_RETRY_AFTER)
    except ValueError:
        return None


class CatalogHttpClient:
    """httpx.Client wrapper used by AudibleCatalogClient.

    Every call returns the decoded JSON body of a 200 response; anything else
    ends in CatalogFetchError once retries are spent.
    """

    def __init__(
        self,
        *,
        min_request_interval: float = 0.1,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        client_kwargs: dict[str, Any] = {
            "headers": {"User-Agent": "earmark/0.1.0", "Accept": "application/json"},
            "timeout": timeout,
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.Client(**client_kwargs)
        self._throttle = _Throttle(min_request_interval)
        self._max_retries = max_retries
        self._retry_delay = retry_delay

    def get(self, url: str, params: dict[str, str] | None = None) -> Any:
        """GET url and decode the JSON body.

        Raises:
            CatalogFetchError: Network failure, a non-retryable status, an
                undecodable body, or a retryable status that outlasted retries.
        """
        attempt = 0
        while True:
            response = self._send(url, params)
            status = response.status_code

            if status == 200:
                return self._decode(url, response)
            if status not in _RETRYABLE_STATUS_CODES:
                raise CatalogFetchError(f"HTTP {status} from {url}", status_code=status)
            if attempt >= self._max_retries:
                raise CatalogFetchError(
                    f"HTTP {status} from {url} after {attempt + 1} attempts",
                    status_code=status,
                )

            delay = _retry_after(response)
            if delay is None:
                delay = self._retry_delay * (2**attempt)
            attempt += 1
            logger.warning(
                "HTTP %d from %s, retrying in %.1fs (attempt %d/%d)",
                status, url, delay, attempt, self._max_retries,
            )
            time.sleep(delay)

    def close(self) -> None:
        self._client.close()

    def _send(self, url: str, params: dict[str, str] | None) -> httpx.Response:
        self._throttle.wait()
        try:
            return self._client.get(url, params=params)
        except _REQUEST_ERRORS as exc:
            raise CatalogFetchError(f"Request failed: {url}: {exc}") from exc

    @staticmethod
    def _decode(url: str, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise CatalogFetchError(f"Invalid JSON from {url}: {exc}", status_code=200) from exc
