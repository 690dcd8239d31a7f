"""Once-per-calendar-day predicate over the action event log.

The window is always derived from a single timezone-aware ``now`` so the
start and end bounds share one calendar (the caller's local day).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from zoneinfo import ZoneInfo

WEATHER_ALERT_DISCRIMINATOR = "weather-alert"


@dataclass(frozen=True, slots=True)
class DayWindow:
	"""Half-open ``[start, end)`` interval covering one local calendar day."""

	start: datetime
	end: datetime

	def contains(self, moment: datetime) -> bool:
		return self.start <= moment < self.end


@dataclass(frozen=True, slots=True)
class ActionRecord:
	discriminator: str
	timestamp: datetime
	completed: bool = True


def local_now(timezone: str) -> datetime:
	return datetime.now(ZoneInfo(timezone))


def day_window(now: datetime) -> DayWindow:
	if now.tzinfo is None:
		raise ValueError("day_window requires a timezone-aware datetime")
	start = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
	end = datetime.combine(now.date() + timedelta(days=1), time.min, tzinfo=now.tzinfo)
	return DayWindow(start=start, end=end)


def has_completed_today(
	records: Iterable[ActionRecord],
	discriminator: str,
	window: DayWindow,
) -> bool:
	"""True when a completed record for ``discriminator`` falls in ``window``."""
	return any(
		record.completed
		and record.discriminator == discriminator
		and window.contains(record.timestamp)
		for record in records
	)
