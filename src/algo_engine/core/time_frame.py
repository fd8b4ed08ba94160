"""Trading time frames and their bar durations."""

from __future__ import annotations

import datetime as dt
from enum import Enum


class TimeFrame(Enum):
    M1 = 1
    M5 = 5
    M15 = 15
    M30 = 30
    H1 = 60
    H4 = 240
    D = 1440
    W = 10080
    MN = 43200

    @classmethod
    def from_str(cls, value: str | "TimeFrame") -> "TimeFrame":
        if isinstance(value, TimeFrame):
            return value
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown time frame: {value!r}") from None

    @classmethod
    def from_minutes(cls, minutes: int) -> "TimeFrame":
        try:
            return cls(minutes)
        except ValueError:
            raise ValueError(f"No time frame of {minutes} minutes") from None

    def to_minutes(self) -> int:
        return self.value

    def to_hours(self) -> int:
        return self.value // 60

    def is_minutely(self) -> bool:
        return self.value < 60

    def bar_duration(self, bars: int = 1) -> dt.timedelta:
        """Wall-clock length of ``bars`` bars of this time frame."""
        if self.is_minutely():
            return dt.timedelta(minutes=bars * self.to_minutes())
        return dt.timedelta(hours=bars * self.to_hours())

    def __str__(self) -> str:
        return self.name
