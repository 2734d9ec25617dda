from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

WEEKDAYS = {"MON": 0, "TUE": 1, "WED": 2, "THU": 3, "FRI": 4, "SAT": 5, "SUN": 6}


def _parse_hh_mm(value: str) -> tuple[int, int]:
    try:
        hour_s, minute_s = value.strip().split(":")
        hour, minute = int(hour_s), int(minute_s)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid time {value!r}, expected HH:MM") from None
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    return hour, minute


@dataclass(frozen=True)
class DailyTrigger:
    hour: int = 0
    minute: int = 0

    @classmethod
    def parse(cls, value: str) -> "DailyTrigger":
        """'00:00' -> every day at midnight."""
        hour, minute = _parse_hh_mm(value)
        return cls(hour=hour, minute=minute)

    def next_after(self, moment: datetime) -> datetime:
        candidate = moment.replace(hour=self.hour, minute=self.minute, second=0, microsecond=0)
        if candidate <= moment:
            candidate += timedelta(days=1)
        return candidate

    def describe(self) -> str:
        return f"daily at {self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True)
class WeeklyTrigger:
    weekday: int = 6
    hour: int = 2
    minute: int = 0

    @classmethod
    def parse(cls, value: str) -> "WeeklyTrigger":
        """'SUN 02:00' -> every Sunday at 2 AM."""
        try:
            day_s, time_s = value.split()
            weekday = WEEKDAYS[day_s.strip().upper()[:3]]
        except (AttributeError, ValueError, KeyError):
            raise ValueError(f"Invalid weekly schedule {value!r}, expected e.g. 'SUN 02:00'") from None
        hour, minute = _parse_hh_mm(time_s)
        return cls(weekday=weekday, hour=hour, minute=minute)

    def next_after(self, moment: datetime) -> datetime:
        days_ahead = (self.weekday - moment.weekday()) % 7
        candidate = moment.replace(hour=self.hour, minute=self.minute, second=0, microsecond=0) + timedelta(days=days_ahead)
        if candidate <= moment:
            candidate += timedelta(days=7)
        return candidate

    def describe(self) -> str:
        day = next(name for name, idx in WEEKDAYS.items() if idx == self.weekday)
        return f"weekly on {day} at {self.hour:02d}:{self.minute:02d}"
