"""
Timetable service: orchestrates cache store, upstream client and transform.

For a requested stop: sweep expired rows, serve a fresh cached payload if
one exists, otherwise fetch, transform, store and return.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from timetable_cache.cache import CacheStore, CacheStoreError
from timetable_cache.models import ErrorKind, ErrorResponse
from timetable_cache.transform import (
    InvalidUpstreamFormatError,
    parse_int64,
    transform,
)
from timetable_cache.upstream_client import TimetableClient, UpstreamError

logger = logging.getLogger(__name__)

ERROR_MESSAGES = {
    ErrorKind.invalid_input: "Invalid bus stop number",
    ErrorKind.no_data: "No data found for the given bus stop number",
    ErrorKind.upstream_unavailable: "No data found for the given URL",
    ErrorKind.invalid_upstream_format: "Invalid XML document",
    ErrorKind.internal_error: "Internal server error",
}


@dataclass(frozen=True)
class TimetableResult:
    """Outcome of one request: JSON body plus the error kind, if any."""

    body: bytes
    error: Optional[ErrorKind] = None
    cached: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_stop_no(raw: Optional[str]) -> Optional[int]:
    """Return the stop number if ``raw`` is a positive decimal integer."""
    value = parse_int64(raw)
    if value is None or value <= 0:
        return None
    return value


def _error(kind: ErrorKind) -> TimetableResult:
    body = ErrorResponse(error=ERROR_MESSAGES[kind]).to_bytes()
    return TimetableResult(body=body, error=kind)


class TimetableService:
    """
    Read-through cache in front of the upstream timetable.

    Holds no per-request state; concurrent requests for the same stop may
    each fetch upstream, and the store keeps every inserted row until the
    next sweep.
    """

    def __init__(self, client: TimetableClient, store: CacheStore) -> None:
        self._client = client
        self._store = store
        self._now = lambda: datetime.now(timezone.utc)  # overridable for testing

    async def handle(self, raw_stop_no: Optional[str]) -> TimetableResult:
        """Produce the response body for a raw busStopNo query value."""
        # 1. Validate
        bus_stop_no = parse_stop_no(raw_stop_no)
        if bus_stop_no is None:
            return _error(ErrorKind.invalid_input)

        # 2. Sweep and check the cache
        try:
            self._store.sweep()
            cached = self._store.lookup(bus_stop_no)
        except CacheStoreError as exc:
            logger.error("Cache unavailable for stop %d: %s", bus_stop_no, exc)
            return _error(ErrorKind.internal_error)

        if cached is not None:
            logger.debug("Cache hit for stop %d", bus_stop_no)
            return TimetableResult(body=cached, cached=True)

        # 3. Fetch from upstream
        logger.info("Cache miss for stop %d, fetching upstream", bus_stop_no)
        try:
            document = await self._client.fetch_timetable(bus_stop_no)
        except UpstreamError as exc:
            logger.warning("Upstream error for stop %d: %s", bus_stop_no, exc)
            return _error(ErrorKind.upstream_unavailable)

        # 4. Transform against a single clock reading
        try:
            timetable = transform(document, self._now())
        except InvalidUpstreamFormatError as exc:
            logger.warning("Bad upstream document for stop %d: %s", bus_stop_no, exc)
            return _error(ErrorKind.invalid_upstream_format)

        if timetable is None:
            return _error(ErrorKind.no_data)

        # 5. Store, but still answer if the store fails
        body = timetable.to_bytes()
        try:
            self._store.insert(bus_stop_no, body)
        except CacheStoreError as exc:
            logger.error(
                "Failed to cache timetable for stop %d: %s", bus_stop_no, exc
            )

        return TimetableResult(body=body)
