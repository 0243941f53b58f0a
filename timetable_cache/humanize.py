"""
Relative-time phrasing for estimated departures.

No I/O. Pure function of two instants.
"""

from __future__ import annotations

import math
from datetime import datetime


def _plural(count: int, unit: str) -> str:
    if count == 1:
        return f"in 1 {unit}"
    return f"in {count} {unit}s"


def humanize(now: datetime, target: datetime) -> str:
    """
    Describe how far ``target`` lies in the future relative to ``now``.

    Returns "Now" when target is not after now, otherwise the floor of the
    gap in the largest unit that fits: seconds below a minute, minutes
    below an hour, hours beyond that.
    """
    if target <= now:
        return "Now"

    delta_seconds = (target - now).total_seconds()
    if delta_seconds < 60:
        return _plural(math.floor(delta_seconds), "second")
    if delta_seconds < 3600:
        return _plural(math.floor(delta_seconds / 60), "minute")
    return _plural(math.floor(delta_seconds / 3600), "hour")
