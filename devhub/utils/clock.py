# utils/clock.py
from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
	def now(self) -> datetime: ...


class UtcClock:
	"""Wall clock. All datetimes in the project are naive UTC."""

	def now(self) -> datetime:
		return datetime.now(timezone.utc).replace(tzinfo=None)


class FixedClock:
	"""Clock frozen at a given instant; `advance` moves it forward."""

	def __init__(self, at: datetime) -> None:
		self._at = at

	def now(self) -> datetime:
		return self._at

	def advance(self, **delta: float) -> datetime:
		self._at = self._at + timedelta(**delta)
		return self._at


def epoch_millis(moment: datetime) -> int:
	"""Milliseconds since the Unix epoch for a naive-UTC or aware datetime."""
	if moment.tzinfo is None:
		moment = moment.replace(tzinfo=timezone.utc)
	return int(moment.timestamp() * 1000)
