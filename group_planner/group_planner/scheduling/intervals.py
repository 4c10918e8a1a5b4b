"""
Interval Primitives

Half-open time intervals normalized to UTC, and the interval math
shared by the availability and suggestion services:
- Overlap test
- Merge of adjacent/overlapping intervals
- Subtraction of a block from an interval
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Union

import pytz
from dateutil.parser import isoparse

from .exceptions import InvalidWindow


def to_utc(value: datetime) -> datetime:
	"""
	Normaliza un datetime a UTC.

	Los datetime naive se interpretan como UTC; los aware se convierten.
	"""
	if not isinstance(value, datetime):
		raise TypeError(f"Cannot convert {type(value)} to datetime")
	if value.tzinfo is None:
		return pytz.UTC.localize(value)
	return value.astimezone(pytz.UTC)


def parse_instant(value: Union[datetime, str]) -> datetime:
	"""
	Convierte un datetime o un string ISO-8601 a un instante UTC.

	Args:
		value: datetime, o string como "2024-01-01T09:00:00Z"

	Returns:
		datetime aware en UTC
	"""
	if isinstance(value, str):
		try:
			value = isoparse(value.strip())
		except ValueError as e:
			raise InvalidWindow(f"Invalid ISO datetime '{value}': {e}")
	return to_utc(value)


def intervals_overlap(
	start_a: datetime,
	end_a: datetime,
	start_b: datetime,
	end_b: datetime
) -> bool:
	"""
	Test de overlap para intervalos semiabiertos.

	Cubre los tres casos de borde: empieza antes y termina dentro,
	empieza dentro, o contiene por completo al otro intervalo.
	Intervalos que solo se tocan (a.end == b.start) no se solapan.
	"""
	return start_a < end_b and end_a > start_b


@dataclass(frozen=True, order=True)
class TimeInterval:
	"""Intervalo semiabierto [start, end) en UTC. Inmutable."""

	start: datetime
	end: datetime

	def __post_init__(self) -> None:
		object.__setattr__(self, "start", to_utc(self.start))
		object.__setattr__(self, "end", to_utc(self.end))

		if self.start >= self.end:
			raise InvalidWindow(
				f"Interval start ({self.start.isoformat()}) must be before end ({self.end.isoformat()})"
			)

	@property
	def duration(self) -> timedelta:
		return self.end - self.start

	def overlaps(self, other: "TimeInterval") -> bool:
		return intervals_overlap(self.start, self.end, other.start, other.end)

	def contains(self, instant: datetime) -> bool:
		instant = to_utc(instant)
		return self.start <= instant < self.end

	def as_dict(self) -> Dict[str, str]:
		return {
			"start": self.start.isoformat(),
			"end": self.end.isoformat()
		}


@dataclass(frozen=True, order=True)
class BusyPeriod(TimeInterval):
	"""Intervalo ocupado de un participante, tal como lo reporta su calendario."""

	participant_id: str = ""

	def as_dict(self) -> Dict[str, str]:
		result = super().as_dict()
		result["participant_id"] = self.participant_id
		return result


def coerce_interval(value: Any) -> TimeInterval:
	"""
	Convierte distintos formatos de intervalo a TimeInterval.

	Args:
		value: TimeInterval, dict {"start": ..., "end": ...} o tupla (start, end).
			Los extremos pueden ser datetime o strings ISO-8601.

	Returns:
		TimeInterval

	Raises:
		InvalidWindow: si el intervalo está vacío o invertido
	"""
	if isinstance(value, TimeInterval):
		return value
	if isinstance(value, dict):
		if "start" not in value or "end" not in value:
			raise InvalidWindow(f"Interval requires 'start' and 'end': {value!r}")
		return TimeInterval(parse_instant(value["start"]), parse_instant(value["end"]))
	if isinstance(value, (tuple, list)) and len(value) == 2:
		return TimeInterval(parse_instant(value[0]), parse_instant(value[1]))
	raise TypeError(f"Cannot convert {type(value)} to TimeInterval")


def merge_intervals(intervals: Iterable[TimeInterval]) -> List[TimeInterval]:
	"""
	Une intervalos adyacentes o solapados.

	Args:
		intervals: intervalos en cualquier orden

	Returns:
		list: intervalos disjuntos ordenados por start. El resultado son
			TimeInterval simples aunque la entrada sean BusyPeriod.
	"""
	ordered = sorted(intervals, key=lambda x: (x.start, x.end))

	if not ordered:
		return []

	merged = [TimeInterval(ordered[0].start, ordered[0].end)]

	for current in ordered[1:]:
		last_merged = merged[-1]

		# Si current se solapa o es adyacente a last_merged, merge
		if current.start <= last_merged.end:
			if current.end > last_merged.end:
				merged[-1] = TimeInterval(last_merged.start, current.end)
		else:
			merged.append(TimeInterval(current.start, current.end))

	return merged


def clip_interval(interval: TimeInterval, bounds: TimeInterval) -> Optional[TimeInterval]:
	"""Recorta un intervalo a los límites dados; None si queda vacío."""
	start = max(interval.start, bounds.start)
	end = min(interval.end, bounds.end)

	if start >= end:
		return None

	return TimeInterval(start, end)
