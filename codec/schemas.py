"""Pydantic schemas describing the JSON wire format of sensor events."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ReadingPayload(BaseModel):
    """One reading as published on the channel."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str = Field("", validation_alias=AliasChoices("type", "typ"))
    id: str = ""
    seq: int = 0
    ts: datetime = _EPOCH
    temps: List[float] = Field(
        default_factory=list, validation_alias=AliasChoices("temps", "temperatures")
    )
    audio: List[float] = Field(
        default_factory=list, validation_alias=AliasChoices("audio", "audio_spectrum")
    )

    @field_validator("ts")
    @classmethod
    def _normalize_ts(cls, value: datetime) -> datetime:
        return _as_utc(value)


class EventPayload(BaseModel):
    """Top-level event document carrying header fields and nested readings."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    device_id: str = ""
    hostname: str = ""
    location: str = ""
    mac: str = ""
    ip: str = ""
    seq: int = 0
    ts: datetime = _EPOCH
    readings: List[ReadingPayload] = Field(
        default_factory=list, validation_alias=AliasChoices("readings", "data")
    )

    @field_validator("ts")
    @classmethod
    def _normalize_ts(cls, value: datetime) -> datetime:
        return _as_utc(value)
