# ABOUTME: TorrentGateway implementation over the qBittorrent Web API v2.
# ABOUTME: Logs in lazily, re-authenticates once on HTTP 403, and wraps all failures in TorrentGatewayError.

import logging
from typing import Any

import httpx

from earmark.torrents.gateway import TorrentGatewayError
from earmark.torrents.types import Torrent, TorrentFile

logger = logging.getLogger(__name__)

# A malformed host or URL fails outside the httpx.HTTPError hierarchy.
_REQUEST_ERRORS = (httpx.HTTPError, httpx.InvalidURL, UnicodeError)

DEFAULT_TIMEOUT = 15.0


class QBittorrentGateway:
    """Thin wrapper around the qBittorrent Web API v2.

    Uses an injectable httpx transport for testability.
    """

    def __init__(
        self,
        base_url: str,
        username: str = "",
        password: str = "",
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        client_kwargs: dict[str, Any] = {
            "base_url": base_url.rstrip("/") + "/api/v2/",
            "timeout": timeout,
            "headers": {"Referer": base_url.rstrip("/")},
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.Client(**client_kwargs)
        self._username = username
        self._password = password
        self._authenticated = False

    def close(self) -> None:
        self._client.close()

    # --- Session ---

    def login(self) -> None:
        """Authenticate and keep the SID cookie on the client.

        Raises:
            TorrentGatewayError: The request failed or credentials were rejected.
        """
        try:
            response = self._client.post(
                "auth/login",
                data={"username": self._username, "password": self._password},
            )
        except _REQUEST_ERRORS as exc:
            raise TorrentGatewayError(f"qBittorrent login failed: {exc}") from exc

        if response.status_code != 200 or response.text.strip() != "Ok.":
            self._authenticated = False
            raise TorrentGatewayError(
                f"qBittorrent login rejected: HTTP {response.status_code} {response.text[:120]!r}"
            )
        self._authenticated = True
        logger.debug("Authenticated with qBittorrent")

    def _request(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, str] | None = None,
        data: dict[str, str] | None = None,
    ) -> httpx.Response:
        if not self._authenticated:
            self.login()

        try:
            response = self._client.request(method, endpoint, params=params, data=data)
            if response.status_code == 403:
                logger.info("qBittorrent session expired, logging in again")
                self.login()
                response = self._client.request(method, endpoint, params=params, data=data)
        except _REQUEST_ERRORS as exc:
            raise TorrentGatewayError(f"qBittorrent {endpoint} failed: {exc}") from exc

        if response.status_code != 200:
            raise TorrentGatewayError(
                f"qBittorrent {endpoint} returned HTTP {response.status_code}"
            )
        return response

    def _json(self, endpoint: str, params: dict[str, str]) -> Any:
        response = self._request("GET", endpoint, params=params)
        try:
            return response.json()
        except ValueError as exc:
            raise TorrentGatewayError(f"qBittorrent {endpoint} returned invalid JSON") from exc

    # --- TorrentGateway ---

    def list_by_category(self, category: str) -> list[Torrent]:
        params = {"category": category} if category else {}
        payload = self._json("torrents/info", params)
        return [Torrent.from_api(entry) for entry in payload]

    def get_torrent(self, torrent_hash: str) -> Torrent | None:
        payload = self._json("torrents/info", {"hashes": torrent_hash})
        if not payload:
            return None
        return Torrent.from_api(payload[0])

    def list_files(self, torrent_hash: str) -> list[TorrentFile]:
        payload = self._json("torrents/files", {"hash": torrent_hash})
        return [
            TorrentFile(name=str(entry.get("name", "")), size=int(entry.get("size") or 0))
            for entry in payload
        ]

    def add_tags(self, hashes: list[str], tag: str) -> None:
        self._request("POST", "torrents/addTags", data={"hashes": "|".join(hashes), "tags": tag})

    def remove_tags(self, hashes: list[str], tag: str) -> None:
        self._request("POST", "torrents/removeTags", data={"hashes": "|".join(hashes), "tags": tag})

    def set_category(self, hashes: list[str], category: str) -> None:
        self._request(
            "POST", "torrents/setCategory", data={"hashes": "|".join(hashes), "category": category},
        )
