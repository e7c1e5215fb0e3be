"""Decoding of raw channel payloads into sensor events."""

from __future__ import annotations

from pydantic import ValidationError

from codec.schemas import EventPayload, ReadingPayload
from models.records import Reading, SensorEvent


class DecodeError(ValueError):
    """Raised when a payload is not a well-formed serialized event."""


class EventDecoder:
    """Stateless JSON decoder; safe to share across callers."""

    def decode(self, raw: bytes | str) -> SensorEvent:
        try:
            payload = EventPayload.model_validate_json(raw)
        except ValidationError as exc:
            raise DecodeError(
                f"Malformed event payload ({exc.error_count()} errors)"
            ) from exc
        return SensorEvent(
            device_id=payload.device_id,
            hostname=payload.hostname,
            location=payload.location,
            mac=payload.mac,
            ip=payload.ip,
            seq=payload.seq,
            timestamp=payload.ts,
            readings=[self._to_reading(item) for item in payload.readings],
        )

    @staticmethod
    def _to_reading(item: ReadingPayload) -> Reading:
        return Reading(
            type=item.type,
            id=item.id,
            seq=item.seq,
            timestamp=item.ts,
            temperatures=list(item.temps),
            audio_spectrum=list(item.audio),
        )
