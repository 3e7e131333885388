"""Nanosecond-precision UTC timestamps.

``datetime`` stops at microseconds, but container creation times are persisted with
nanosecond precision and must survive a JSON round trip unchanged. ``NanoTimestamp``
keeps whole epoch seconds and the nanosecond remainder separately and speaks RFC 3339.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema

NANOS_PER_SECOND = 1_000_000_000
_FRACTION_DIGITS = 9

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_SECOND = timedelta(seconds=1)

_RFC3339_RE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[Tt ](?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d{1,9}))?"
    r"(?P<offset>[Zz]|[+-]\d{2}:\d{2})$"
)


def _parse_offset(offset: str) -> timezone:
    if offset in ("Z", "z"):
        return timezone.utc
    sign = -1 if offset[0] == "-" else 1
    hours, minutes = offset[1:].split(":")
    return timezone(sign * timedelta(hours=int(hours), minutes=int(minutes)))


@dataclass(frozen=True, order=True)
class NanoTimestamp:
    seconds: int
    nanos: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.nanos < NANOS_PER_SECOND:
            raise ValueError(f"nanos must be in [0, {NANOS_PER_SECOND}), got {self.nanos}")

    @classmethod
    def parse(cls, value: str) -> NanoTimestamp:
        """Parse an RFC 3339 timestamp with up to nine fractional digits."""
        match = _RFC3339_RE.match(value.strip())
        if match is None:
            raise ValueError(f"Invalid RFC 3339 timestamp: {value!r}")

        local = datetime.strptime(f"{match['date']}T{match['time']}", "%Y-%m-%dT%H:%M:%S")
        aware = local.replace(tzinfo=_parse_offset(match["offset"]))
        fraction = (match["fraction"] or "").ljust(_FRACTION_DIGITS, "0")
        return cls(seconds=(aware - _EPOCH) // _ONE_SECOND, nanos=int(fraction))

    @classmethod
    def from_datetime(cls, value: datetime) -> NanoTimestamp:
        # naive datetimes are taken to be UTC
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        delta = value - _EPOCH
        remainder = delta % _ONE_SECOND
        return cls(seconds=delta // _ONE_SECOND, nanos=remainder.microseconds * 1000)

    @classmethod
    def from_epoch_ns(cls, epoch_ns: int) -> NanoTimestamp:
        seconds, nanos = divmod(epoch_ns, NANOS_PER_SECOND)
        return cls(seconds=seconds, nanos=nanos)

    @classmethod
    def coerce(cls, value: Any) -> NanoTimestamp:
        if isinstance(value, NanoTimestamp):
            return value
        if isinstance(value, str):
            return cls.parse(value)
        if isinstance(value, datetime):
            return cls.from_datetime(value)
        if isinstance(value, int) and not isinstance(value, bool):
            return cls.from_epoch_ns(value)
        raise ValueError(f"Cannot convert {type(value).__name__} to NanoTimestamp")

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: GetCoreSchemaHandler) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls.coerce,
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda value: value.rfc3339_nano(), when_used="json"
            ),
        )

    @property
    def epoch_ns(self) -> int:
        return self.seconds * NANOS_PER_SECOND + self.nanos

    def rfc3339_nano(self) -> str:
        """Format with trailing zeros of the fraction trimmed, e.g. ``2024-01-02T03:04:05.1Z``."""
        value = _EPOCH + timedelta(seconds=self.seconds)
        base = (
            f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
            f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
        )
        fraction = f"{self.nanos:09d}".rstrip("0")
        if fraction:
            return f"{base}.{fraction}Z"
        return f"{base}Z"

    def __str__(self) -> str:
        return self.rfc3339_nano()
