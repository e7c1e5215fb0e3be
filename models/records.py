"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List


@dataclass(slots=True)
class Reading:
    """A single timestamped thermal/audio frame nested inside an event."""

    type: str
    id: str
    seq: int
    timestamp: datetime
    temperatures: List[float] = field(default_factory=list)
    audio_spectrum: List[float] = field(default_factory=list)


@dataclass(slots=True)
class SensorEvent:
    """One decoded report from a device: header metadata plus its readings."""

    device_id: str
    hostname: str
    location: str
    mac: str
    ip: str
    seq: int
    timestamp: datetime
    readings: List[Reading] = field(default_factory=list)
