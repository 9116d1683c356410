from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    def now(self) -> datetime: ...

    def today(self) -> date: ...


@dataclass(slots=True)
class SystemClock:
    timezone: str = "Europe/Paris"

    def now(self) -> datetime:
        return datetime.now(UTC)

    def today(self) -> date:
        # "Today" is the establishment's local calendar day, not UTC.
        return datetime.now(ZoneInfo(self.timezone)).date()


@dataclass(slots=True)
class FixedClock:
    current: datetime

    def now(self) -> datetime:
        return self.current

    def today(self) -> date:
        return self.current.date()
