"""
Upstream XML -> normalized timetable.

No I/O. Takes the raw GetTimetableReal document and returns a
TimetableResponse, or None when the document has no schedule for today.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from timetable_cache.humanize import humanize
from timetable_cache.models import UNKNOWN, TimetableEntry, TimetableResponse

VEHICLE_TYPES = {
    "A": "BUS",
    "T": "TRAM",
}

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# Bounded so int() never sees an oversized digit string
_INT64_RE = re.compile(r"[+-]?[0-9]{1,19}")


class InvalidUpstreamFormatError(Exception):
    """Raised when the upstream body is not a parseable XML document."""


def map_vehicle_type(code: str) -> str:
    """Map an upstream single-letter code; unknown codes pass through."""
    return VEHICLE_TYPES.get(code, code)


def parse_int64(raw: Optional[str]) -> Optional[int]:
    """
    Parse a plain, optionally signed, decimal integer.

    Returns None if the value is missing, malformed, or outside the
    signed 64-bit range.
    """
    if raw is None or not _INT64_RE.fullmatch(raw):
        return None
    value = int(raw)
    if value < INT64_MIN or value > INT64_MAX:
        return None
    return value


def parse_offset(raw: Optional[str]) -> Optional[int]:
    """Parse an offset-in-seconds attribute, or None if unusable."""
    return parse_int64(raw)


def find_day(root: ET.Element) -> Optional[ET.Element]:
    """Return the first Stop/Day node in the document, or None."""
    if root.tag == "Stop":
        day = root.find("Day")
        if day is not None:
            return day
    return root.find(".//Stop/Day")


def _find_offset(route: ET.Element) -> Optional[int]:
    estimate = route.find(".//S")
    if estimate is None:
        return None
    return parse_offset(estimate.get("s"))


def build_entry(route: ET.Element, now: datetime) -> TimetableEntry:
    """
    Build one entry from an R element.

    Missing attributes become empty strings; a missing, unparseable or
    out-of-range offset makes both time fields "Unknown".
    """
    estimated_time = UNKNOWN
    human_estimated_time = UNKNOWN
    offset = _find_offset(route)
    if offset is not None:
        try:
            target = now + timedelta(seconds=offset)
        except OverflowError:
            # Past the representable datetime range
            target = None
        if target is not None:
            estimated_time = target.isoformat(timespec="seconds")
            human_estimated_time = humanize(now, target)

    return TimetableEntry(
        route_number=route.get("nr", ""),
        route_direction=route.get("dir", ""),
        vehicle_type=map_vehicle_type(route.get("vt", "")),
        estimated_time=estimated_time,
        human_estimated_time=human_estimated_time,
    )


def transform(
    raw: Union[bytes, str], now: Optional[datetime] = None
) -> Optional[TimetableResponse]:
    """
    Parse an upstream document and return its timetable.

    Args:
        raw: Response body from GetTimetableReal.
        now: Reference instant for all derived time fields. Defaults to
             the current UTC time.

    Returns:
        TimetableResponse with one entry per R element in document order,
        or None if the document contains no Stop/Day node.

    Raises:
        InvalidUpstreamFormatError: if ``raw`` is not well-formed XML.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    try:
        root = ET.fromstring(raw)
    except ET.ParseError as exc:
        raise InvalidUpstreamFormatError(f"Invalid XML document: {exc}") from exc

    day = find_day(root)
    if day is None:
        return None

    entries = [build_entry(route, now) for route in day.iter("R")]
    return TimetableResponse(timetable=entries)
