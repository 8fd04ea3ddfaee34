"""
Punch-in window evaluation against local wall-clock time.

The window is expressed as local HH:MM bounds under a fixed UTC offset
(no timezone database).  Evaluation works at minute resolution: with the
default 09:00–09:45 window, 09:45:59 is still inside and 09:46:00 is not.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

from checkin.core.config import Settings

BEFORE = "before"
OPEN = "open"
CLOSED = "closed"


def parse_utc_offset(tz_offset: str) -> timezone:
    """Turn an offset string such as ``+05:30`` into a fixed ``timezone``."""
    sign = 1 if tz_offset[0] == "+" else -1
    offset_parts = tz_offset[1:].split(":")
    offset_hours = int(offset_parts[0])
    offset_mins = int(offset_parts[1]) if len(offset_parts) > 1 else 0
    return timezone(timedelta(hours=sign * offset_hours, minutes=sign * offset_mins))


def parse_hhmm(value: str) -> time:
    hour, minute = value.split(":")
    return time(int(hour), int(minute))


@dataclass(frozen=True)
class TimeWindowStatus:
    allowed: bool
    phase: str  # before | open | closed
    message: str
    current_time: str  # HH:MM:SS local
    timezone: str
    window_start: str
    window_end: str


@dataclass(frozen=True)
class PunchInWindow:
    start: time
    end: time
    tz: timezone
    label: str = "IST"

    @classmethod
    def from_settings(cls, cfg: Settings) -> "PunchInWindow":
        return cls(
            start=parse_hhmm(cfg.PUNCH_IN_START),
            end=parse_hhmm(cfg.PUNCH_IN_END),
            tz=parse_utc_offset(cfg.TIMEZONE_OFFSET),
            label=cfg.TIMEZONE_LABEL,
        )

    def local_time(self, now: datetime) -> datetime:
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now.astimezone(self.tz)

    def local_date(self, now: datetime) -> date:
        """Calendar date used as the daily de-duplication key."""
        return self.local_time(now).date()

    def evaluate(self, now: datetime) -> TimeWindowStatus:
        local = self.local_time(now)
        minute_of_day = local.hour * 60 + local.minute
        start_minute = self.start.hour * 60 + self.start.minute
        end_minute = self.end.hour * 60 + self.end.minute

        current = local.strftime("%H:%M:%S")
        opens = self.start.strftime("%H:%M")
        closes = self.end.strftime("%H:%M")

        if minute_of_day < start_minute:
            phase = BEFORE
            message = f"Punch-in window opens at {opens}, current time is {current} {self.label}"
        elif minute_of_day <= end_minute:
            phase = OPEN
            message = f"Punch-in window closes at {closes}, current time is {current} {self.label}"
        else:
            phase = CLOSED
            message = f"Punch-in window has closed, current time is {current} {self.label}"

        return TimeWindowStatus(
            allowed=phase == OPEN,
            phase=phase,
            message=message,
            current_time=current,
            timezone=self.label,
            window_start=opens,
            window_end=closes,
        )
