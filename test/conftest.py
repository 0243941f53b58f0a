"""
Shared test fixtures for the timetable cache.

Provides:
- Upstream XML document builders
- A controllable clock for cache TTL tests
- A fake upstream server for E2E tests
"""

from xml.sax.saxutils import quoteattr

import pytest
from pytest_httpserver import HTTPServer

TIMETABLE_PATH = "/Home/GetTimetableReal"


# ---------------------------------------------------------------------------
# Upstream document builders
# ---------------------------------------------------------------------------

def route_xml(nr="5", dir="Centrum", vt="A", s="125"):
    """One R element. Pass None to omit an attribute (or the S element for s)."""
    attrs = "".join(
        f" {name}={quoteattr(value)}"
        for name, value in (("nr", nr), ("dir", dir), ("vt", vt))
        if value is not None
    )
    estimate = "" if s is None else f'<S t="12:00" s={quoteattr(s)} m="1"/>'
    return f"<R{attrs}>{estimate}</R>"


def timetable_xml(*routes, stop_name="Piotrkowska Centrum"):
    """A GetTimetableReal document with the given R elements under Stop/Day."""
    body = "".join(routes)
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        '<Schedules time="12:00">'
        f'<Stop id="1234" name={quoteattr(stop_name)}>'
        f'<Day type="RO" desc="Dni robocze">{body}</Day>'
        "</Stop>"
        "</Schedules>"
    )


NO_DAY_XML = (
    '<?xml version="1.0" encoding="utf-8"?>'
    '<Schedules time="12:00"><Stop id="1234" name="Nowhere"/></Schedules>'
)


class FakeClock:
    """Controllable clock for deterministic cache tests."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# E2E fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="module")
def fake_upstream():
    """
    A real HTTP server that impersonates the upstream timetable endpoint.

    Tests configure what the server returns by clearing it and adding
    their own expectations before making requests.
    """
    server = HTTPServer(host="127.0.0.1")
    server.expect_request(TIMETABLE_PATH).respond_with_data(
        timetable_xml(route_xml()), content_type="application/xml"
    )
    server.start()
    yield server
    server.clear()
    if server.is_running():
        server.stop()
