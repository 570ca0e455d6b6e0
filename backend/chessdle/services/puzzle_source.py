"""Daily puzzle source client."""

import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from ..config import get_settings
from ..models.errors import PuzzleSourceError

logger = logging.getLogger(__name__)


class PuzzleSourceClient:
    """Fetches the puzzle of the day over HTTP.

    One request per call, no retries; failures surface as
    PuzzleSourceError.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        proxy_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            url: Daily puzzle endpoint. Defaults to the configured URL.
            proxy_url: Optional prefix the encoded URL is appended to.
            timeout: Request timeout in seconds.
            transport: Custom httpx transport (used by tests).
        """
        settings = get_settings()
        self._url = url or settings.lichess_daily_puzzle_url
        self._proxy_url = settings.cors_proxy_url if proxy_url is None else proxy_url
        self._timeout = timeout or settings.request_timeout_seconds
        self._transport = transport

    @property
    def target_url(self) -> str:
        if self._proxy_url:
            return self._proxy_url + quote(self._url, safe="")
        return self._url

    async def fetch_daily(self) -> dict[str, Any]:
        """Fetch the raw daily puzzle payload.

        Raises:
            PuzzleSourceError: On network errors, non-2xx responses, or a
                body that is not a JSON object.
        """
        target = self.target_url
        logger.info(f"Fetching daily puzzle from {target}")

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
                response = await client.get(target, headers={"Accept": "application/json"})
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise PuzzleSourceError(
                f"HTTP error! Status: {e.response.status_code} - "
                f"{e.response.reason_phrase or 'Failed to fetch'}"
            ) from e
        except httpx.HTTPError as e:
            raise PuzzleSourceError(f"Could not reach puzzle source: {e}") from e
        except ValueError as e:
            raise PuzzleSourceError("Puzzle source returned invalid JSON") from e

        if not isinstance(data, dict):
            raise PuzzleSourceError("Puzzle source returned an unexpected document")

        logger.debug(f"Raw puzzle data received: {data}")
        return data
