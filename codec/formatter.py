"""Flat text rendering of one reading per line."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable

from models.records import Reading, SensorEvent

FIELD_SEPARATOR = ","


def format_timestamp(value: datetime) -> str:
    """Render an instant as RFC 3339 UTC, e.g. ``2024-01-01T10:00:00.250Z``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    text = (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )
    micros = value.microsecond
    if micros == 0:
        return f"{text}Z"
    if micros % 1000 == 0:
        return f"{text}.{micros // 1000:03d}Z"
    return f"{text}.{micros:06d}Z"


def format_number(value: float) -> str:
    """Shortest round-trip rendering; integral values carry no decimal point."""
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"

    number = Decimal(repr(value)).normalize()
    exponent = number.adjusted()
    if -4 <= exponent < 6:
        return format(number, "f")

    sign, digits, _ = number.as_tuple()
    mantissa = str(digits[0])
    if len(digits) > 1:
        mantissa += "." + "".join(str(d) for d in digits[1:])
    prefix = "-" if sign else ""
    exp_sign = "+" if exponent >= 0 else "-"
    return f"{prefix}{mantissa}e{exp_sign}{abs(exponent):02d}"


def format_sequence(values: Iterable[float]) -> str:
    return "[" + " ".join(format_number(v) for v in values) + "]"


class RecordFormatter:
    """Turns an (event, reading) pair into one CSV line without quoting.

    String fields are emitted verbatim; values containing the separator will
    shift columns, so publishers must not put commas in them.
    """

    def format(self, event: SensorEvent, reading: Reading) -> str:
        fields = (
            format_timestamp(event.timestamp),
            event.device_id,
            event.hostname,
            event.location,
            event.mac,
            event.ip,
            str(event.seq),
            format_timestamp(reading.timestamp),
            reading.type,
            reading.id,
            str(reading.seq),
            format_sequence(reading.temperatures),
            format_sequence(reading.audio_spectrum),
        )
        return FIELD_SEPARATOR.join(fields)
