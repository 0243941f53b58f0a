"""
Pydantic response models for the timetable cache API.

Field declaration order is the serialized key order.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

UNKNOWN = "Unknown"


class ErrorKind(str, Enum):
    invalid_input = "invalid_input"
    upstream_unavailable = "upstream_unavailable"
    invalid_upstream_format = "invalid_upstream_format"
    no_data = "no_data"
    internal_error = "internal_error"


class TimetableEntry(BaseModel):
    """One scheduled departure from a stop."""

    route_number: str = Field(description="Line label, e.g. '5'")
    route_direction: str = Field(description="Destination / direction label")
    vehicle_type: str = Field(
        description="BUS, TRAM, or the raw upstream code when it is not recognised"
    )
    estimated_time: str = Field(
        description="Estimated departure (RFC 3339 with UTC offset) or 'Unknown'"
    )
    human_estimated_time: str = Field(
        description="Relative phrase such as 'in 2 minutes', 'Now', or 'Unknown'"
    )


class TimetableResponse(BaseModel):
    """Top-level response for GET /."""

    timetable: list[TimetableEntry] = Field(default_factory=list)

    def to_bytes(self) -> bytes:
        """Compact JSON, the exact bytes stored in and replayed from the cache."""
        return self.model_dump_json().encode("utf-8")

    @classmethod
    def from_bytes(cls, payload: bytes) -> "TimetableResponse":
        return cls.model_validate_json(payload)


class ErrorResponse(BaseModel):
    """Error body returned for invalid input, missing data and failures."""

    error: str

    def to_bytes(self) -> bytes:
        return self.model_dump_json().encode("utf-8")
