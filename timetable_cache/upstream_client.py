"""
Async client for the upstream real-time timetable endpoint.

Thin wrapper around httpx. Returns the raw XML body.
Raises UpstreamError on failures.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

TIMETABLE_PATH = "/Home/GetTimetableReal"


class UpstreamError(Exception):
    """Raised when the upstream timetable source cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TimetableClient:
    """Async client for GetTimetableReal."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str = "http://rozklady.lodz.pl",
        timeout: float = 10.0,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    async def fetch_timetable(self, bus_stop_no: int) -> bytes:
        """
        Fetch the real-time timetable document for a stop.

        The content type of the response is not checked; an unexpected
        body surfaces later as a parse failure.
        Raises UpstreamError on connection failures or non-200 responses.
        """
        url = f"{self._base_url}{TIMETABLE_PATH}"
        try:
            response = await self._http.get(
                url,
                params={"busStopNum": str(bus_stop_no)},
                headers={"Accept": "application/xml"},
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            logger.error("Upstream request failed: %s %s -> %s", "GET", url, exc)
            raise UpstreamError(f"Connection error: {exc}") from exc

        if response.status_code != 200:
            raise UpstreamError(
                f"Upstream returned {response.status_code}",
                status_code=response.status_code,
            )

        return response.content
