"""
Meeting Time Suggestions

Proposes concrete meeting times inside a window where every participant
is free, considering:
- Work hours of each local day
- Weekends (skipped by default)
- Meeting duration and candidate step
"""

from datetime import date, datetime, time, timedelta
from typing import Any, List, Mapping, Sequence

import pytz

from .exceptions import InvalidSlotDuration, InvalidWindow
from .intervals import TimeInterval, clip_interval, coerce_interval, merge_intervals, to_utc


DEFAULT_MEETING_DURATION_MINUTES = 60
DEFAULT_STEP_MINUTES = 30
WORK_DAY_START_HOUR = 9
WORK_DAY_END_HOUR = 17

# datetime.weekday(): 5 = sábado, 6 = domingo
WEEKEND_DAYS = (5, 6)


def _validate_positive_minutes(value: Any, field_name: str) -> None:
	if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
		raise InvalidSlotDuration(f"{field_name} must be a positive integer, got {value!r}")


def _local_hour(tz: pytz.tzinfo.BaseTzInfo, day: date, hour: int) -> datetime:
	"""Instante de la hora local dada; hour=24 es la medianoche siguiente."""
	if hour == 24:
		return tz.localize(datetime.combine(day + timedelta(days=1), time(0, 0)))
	return tz.localize(datetime.combine(day, time(hour, 0)))


def _is_busy(candidate: TimeInterval, busy: List[TimeInterval]) -> bool:
	# busy está unido y ordenado; basta con los que empiezan antes del fin del candidato
	for interval in busy:
		if interval.start >= candidate.end:
			return False
		if interval.end > candidate.start:
			return True
	return False


def suggest_meeting_times(
	window_start: datetime,
	window_end: datetime,
	participant_busy_periods: Mapping[str, Sequence[Any]],
	duration_minutes: int = DEFAULT_MEETING_DURATION_MINUTES,
	timezone: str = "UTC",
	work_day_start_hour: int = WORK_DAY_START_HOUR,
	work_day_end_hour: int = WORK_DAY_END_HOUR,
	step_minutes: int = DEFAULT_STEP_MINUTES,
	skip_weekends: bool = True
) -> List[TimeInterval]:
	"""
	Genera horarios de reunión libres para todos los participantes.

	Args:
		window_start: inicio del rango de búsqueda
		window_end: fin del rango de búsqueda
		participant_busy_periods: {participant_id: [busy periods]}
		duration_minutes: duración de la reunión
		timezone: zona horaria que define días y horario laboral
		work_day_start_hour: hora local de inicio de la jornada
		work_day_end_hour: hora local de fin de la jornada
		step_minutes: separación entre candidatos
		skip_weekends: no proponer sábados ni domingos

	Returns:
		list[TimeInterval]: candidatos ordenados, todos de duration_minutes

	Algoritmo:
		1. Unir los busy periods de todos los participantes
		2. Para cada día local del rango (saltando fines de semana):
			a. Limitar la jornada laboral al rango solicitado
			b. Proponer candidatos cada step_minutes que quepan completos
			c. Descartar los que se solapan con algún busy period
	"""
	window_start = to_utc(window_start)
	window_end = to_utc(window_end)

	if window_end <= window_start:
		raise InvalidWindow(
			f"window_end ({window_end.isoformat()}) must be after window_start ({window_start.isoformat()})"
		)

	_validate_positive_minutes(duration_minutes, "duration_minutes")
	_validate_positive_minutes(step_minutes, "step_minutes")

	if not (0 <= work_day_start_hour < work_day_end_hour <= 24):
		raise InvalidSlotDuration(
			f"Work hours must satisfy 0 <= start < end <= 24, got {work_day_start_hour}-{work_day_end_hour}"
		)

	tz = pytz.timezone(timezone)
	duration = timedelta(minutes=duration_minutes)
	step = timedelta(minutes=step_minutes)

	# 1. Para disponibilidad conjunta basta con la unión de todos los busy
	# periods, recortados a la ventana
	window = TimeInterval(window_start, window_end)
	clipped = (
		clip_interval(coerce_interval(period), window)
		for periods in participant_busy_periods.values()
		for period in (periods or [])
	)
	busy = merge_intervals(interval for interval in clipped if interval is not None)

	suggestions = []
	current_day = window_start.astimezone(tz).date()
	last_day = window_end.astimezone(tz).date()

	# 2. Recorrer días locales
	while current_day <= last_day:
		if skip_weekends and current_day.weekday() in WEEKEND_DAYS:
			current_day += timedelta(days=1)
			continue

		day_start = _local_hour(tz, current_day, work_day_start_hour)
		day_end = _local_hour(tz, current_day, work_day_end_hour)

		lower = max(to_utc(day_start), window_start)
		upper = min(to_utc(day_end), window_end)

		candidate_start = lower
		while candidate_start + duration <= upper:
			candidate = TimeInterval(candidate_start, candidate_start + duration)

			if not _is_busy(candidate, busy):
				suggestions.append(candidate)

			candidate_start += step

		current_day += timedelta(days=1)

	return suggestions
