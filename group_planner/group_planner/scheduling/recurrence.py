"""
Recurrence Expansion Service

Expands a base event occurrence under a recurrence rule, considering:
- Frequency (daily, weekly, monthly, yearly) and interval
- Weekday sets for weekly rules
- Termination (after N occurrences, on a date, or never)
- Reminder firing instants for every occurrence
- Wall-clock time in the event's timezone (DST safe)
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from itertools import islice, takewhile
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

import pytz
from dateutil import rrule as dateutil_rrule
from dateutil.parser import isoparse

from .exceptions import InvalidRecurrence
from .intervals import TimeInterval, coerce_interval, to_utc
from .reminders import ReminderRule, normalize_reminders, reminder_instants


FREQUENCIES = ("daily", "weekly", "monthly", "yearly")

# Índice = datetime.weekday()
WEEKDAY_TAGS = ("MO", "TU", "WE", "TH", "FR", "SA", "SU")

_RRULE_FREQUENCIES = {
	"daily": dateutil_rrule.DAILY,
	"weekly": dateutil_rrule.WEEKLY,
	"monthly": dateutil_rrule.MONTHLY,
	"yearly": dateutil_rrule.YEARLY,
}

_RRULE_WEEKDAYS = {
	"MO": dateutil_rrule.MO,
	"TU": dateutil_rrule.TU,
	"WE": dateutil_rrule.WE,
	"TH": dateutil_rrule.TH,
	"FR": dateutil_rrule.FR,
	"SA": dateutil_rrule.SA,
	"SU": dateutil_rrule.SU,
}


def _weekday_order(tag: str) -> int:
	return WEEKDAY_TAGS.index(tag) if tag in WEEKDAY_TAGS else len(WEEKDAY_TAGS)


@dataclass(frozen=True, order=True)
class Occurrence(TimeInterval):
	"""Instancia concreta de un evento (posiblemente recurrente)."""
	pass


@dataclass(frozen=True)
class RecurrenceRule:
	"""
	Regla de recurrencia.

	Exactamente uno de after_count, on_date o never debe estar activo.
	weekdays solo aplica cuando frequency es "weekly".
	"""

	frequency: str
	interval: int = 1
	weekdays: Tuple[str, ...] = ()
	after_count: Optional[int] = None
	on_date: Optional[Union[datetime, date]] = None
	never: bool = False

	def __post_init__(self) -> None:
		object.__setattr__(self, "frequency", str(self.frequency or "").lower())

		tags = {str(tag).upper() for tag in (self.weekdays or ())}
		object.__setattr__(self, "weekdays", tuple(sorted(tags, key=_weekday_order)))

	@property
	def termination(self) -> Optional[str]:
		if self.after_count is not None:
			return "count"
		if self.on_date is not None:
			return "until"
		if self.never:
			return "never"
		return None


def validate_recurrence_rule(rule: RecurrenceRule) -> None:
	"""
	Valida una regla antes de expandirla.

	Raises:
		InvalidRecurrence: frecuencia desconocida, interval <= 0, weekly sin
			weekdays o con un weekday desconocido, o cero / varios modos de terminación
	"""
	if rule.frequency not in FREQUENCIES:
		raise InvalidRecurrence(f"Unsupported frequency: {rule.frequency!r}")

	interval = rule.interval
	if isinstance(interval, bool) or not isinstance(interval, int) or interval <= 0:
		raise InvalidRecurrence(f"interval must be a positive integer, got {interval!r}")

	# weekdays solo aplica a reglas semanales; en las demás se ignora
	if rule.frequency == "weekly":
		if not rule.weekdays:
			raise InvalidRecurrence("Weekly recurrence requires at least one weekday")

		unknown = [tag for tag in rule.weekdays if tag not in WEEKDAY_TAGS]
		if unknown:
			raise InvalidRecurrence(f"Unknown weekday tags: {', '.join(unknown)}")

	active_modes = [
		rule.after_count is not None,
		rule.on_date is not None,
		bool(rule.never)
	]
	if not any(active_modes):
		raise InvalidRecurrence("No termination mode set (after_count, on_date or never)")
	if sum(active_modes) > 1:
		raise InvalidRecurrence("Exactly one termination mode must be set")

	count = rule.after_count
	if count is not None and (isinstance(count, bool) or not isinstance(count, int) or count <= 0):
		raise InvalidRecurrence(f"after_count must be a positive integer, got {count!r}")

	if rule.on_date is not None and not isinstance(rule.on_date, date):
		raise InvalidRecurrence(f"on_date must be a date or datetime, got {type(rule.on_date)}")


def _get_timezone(timezone: str) -> pytz.tzinfo.BaseTzInfo:
	try:
		return pytz.timezone(timezone or "UTC")
	except pytz.UnknownTimeZoneError:
		raise InvalidRecurrence(f"Unknown timezone: {timezone}")


def resolve_until(on_date: Union[datetime, date], tz: pytz.tzinfo.BaseTzInfo = pytz.UTC) -> datetime:
	"""
	Instante límite (inclusivo) de una regla con on_date.

	Un date, o un datetime exactamente a medianoche (lo que produce un campo
	de fecha del formulario), cubre el día completo hasta las 23:59:59
	locales. Cualquier otro datetime es un instante exacto.
	"""
	if isinstance(on_date, datetime):
		if on_date.time() != time(0, 0):
			return to_utc(on_date)
		on_date = on_date.date()

	return to_utc(tz.localize(datetime.combine(on_date, time(23, 59, 59))))


def _occurrence_starts(
	base_start: datetime,
	rule: RecurrenceRule,
	tz: pytz.tzinfo.BaseTzInfo
) -> Iterator[datetime]:
	"""
	Inicios de ocurrencia en UTC, ascendentes, sin límite de terminación.

	La ocurrencia base siempre es la primera. Las siguientes se calculan
	sobre hora local (naive) y se localizan una por una, así un evento a las
	09:00 sigue a las 09:00 locales después de un cambio de horario.
	"""
	local_start = base_start.astimezone(tz).replace(tzinfo=None)

	kwargs = {
		"dtstart": local_start,
		"interval": rule.interval,
		"wkst": dateutil_rrule.MO,
		"cache": False,
	}
	if rule.frequency == "weekly":
		kwargs["byweekday"] = [_RRULE_WEEKDAYS[tag] for tag in rule.weekdays]

	# Monthly/yearly: dateutil fija el día del mes de dtstart y salta los
	# periodos donde ese día no existe (31 en meses de 30, 29-feb)
	local_rule = dateutil_rrule.rrule(_RRULE_FREQUENCIES[rule.frequency], **kwargs)

	yield base_start

	for local_occurrence in local_rule:
		if local_occurrence <= local_start.replace(microsecond=0):
			continue
		local_occurrence = local_occurrence.replace(microsecond=local_start.microsecond)
		yield to_utc(tz.localize(local_occurrence))


class OccurrenceSeries:
	"""
	Secuencia perezosa y reiniciable de ocurrencias.

	Cada iteración produce tuplas (Occurrence, reminder_instants) desde la
	ocurrencia base. Con never=True la secuencia es infinita: usar take()
	o within() para acotarla.
	"""

	def __init__(
		self,
		base: Occurrence,
		rule: RecurrenceRule,
		reminders: List[ReminderRule],
		timezone: str = "UTC"
	):
		self.base = base
		self.rule = rule
		self.reminders = reminders
		self.timezone = timezone
		self._tz = _get_timezone(timezone)
		self._until = resolve_until(rule.on_date, self._tz) if rule.on_date is not None else None

	@property
	def is_infinite(self) -> bool:
		return self.rule.termination == "never"

	def __iter__(self) -> Iterator[Tuple[Occurrence, Tuple[datetime, ...]]]:
		duration = self.base.duration
		starts = _occurrence_starts(self.base.start, self.rule, self._tz)

		if self.rule.after_count is not None:
			starts = islice(starts, self.rule.after_count)

		for start in starts:
			if self._until is not None and start > self._until:
				return

			yield Occurrence(start, start + duration), reminder_instants(start, self.reminders)

	def occurrences(self) -> Iterator[Occurrence]:
		for occurrence, _ in self:
			yield occurrence

	def take(self, count: int) -> List[Tuple[Occurrence, Tuple[datetime, ...]]]:
		"""Primeras count ocurrencias."""
		return list(islice(self, max(count, 0)))

	def within(self, horizon: datetime) -> List[Tuple[Occurrence, Tuple[datetime, ...]]]:
		"""Ocurrencias que empiezan antes de horizon."""
		horizon = to_utc(horizon)
		return list(takewhile(lambda item: item[0].start < horizon, self))


def expand_recurrence(
	base: Any,
	rule: RecurrenceRule,
	reminders: Iterable[Any] = (),
	timezone: str = "UTC"
) -> OccurrenceSeries:
	"""
	Expande un evento recurrente.

	Args:
		base: primera ocurrencia (Occurrence, TimeInterval, dict o tupla)
		rule: RecurrenceRule
		reminders: ReminderRule, minutos o dicts {"type", "minutes"}
		timezone: zona horaria del evento; define días y hora local

	Returns:
		OccurrenceSeries: iterable perezoso de (Occurrence, reminder_instants)

	Raises:
		InvalidRecurrence: regla, recordatorio o timezone inválidos. La
			validación ocurre aquí, antes de generar cualquier ocurrencia.
	"""
	interval = coerce_interval(base)
	occurrence = Occurrence(interval.start, interval.end)

	validate_recurrence_rule(rule)
	reminder_rules = normalize_reminders(reminders)

	return OccurrenceSeries(occurrence, rule, reminder_rules, timezone)


# ===== RRULE (RFC 5545) =====

def to_rrule(rule: RecurrenceRule, timezone: str = "UTC") -> str:
	"""
	Serializa la regla como línea RRULE para Google Calendar.

	Example:
		RRULE:FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE;COUNT=4
	"""
	validate_recurrence_rule(rule)

	parts = [f"FREQ={rule.frequency.upper()}"]

	if rule.interval > 1:
		parts.append(f"INTERVAL={rule.interval}")

	if rule.frequency == "weekly":
		parts.append(f"BYDAY={','.join(rule.weekdays)}")

	if rule.on_date is not None:
		until = resolve_until(rule.on_date, _get_timezone(timezone))
		parts.append(f"UNTIL={until.strftime('%Y%m%dT%H%M%SZ')}")
	elif rule.after_count is not None:
		parts.append(f"COUNT={rule.after_count}")

	return "RRULE:" + ";".join(parts)


def parse_rrule(text: str) -> RecurrenceRule:
	"""
	Lee una línea RRULE producida por to_rrule (o compatible).

	Sin COUNT ni UNTIL la regla no termina (never=True).

	Raises:
		InvalidRecurrence: si la línea está mal formada
	"""
	if not text or not str(text).strip():
		raise InvalidRecurrence("Empty RRULE")

	text = str(text).strip()
	if text.upper().startswith("RRULE:"):
		text = text[len("RRULE:"):]

	fields: Dict[str, str] = {}
	for part in text.split(";"):
		if not part:
			continue
		key, sep, value = part.partition("=")
		if not sep:
			raise InvalidRecurrence(f"Malformed RRULE part: {part!r}")
		fields[key.strip().upper()] = value.strip()

	try:
		interval = int(fields.get("INTERVAL", "1"))
		after_count = int(fields["COUNT"]) if "COUNT" in fields else None
	except ValueError as e:
		raise InvalidRecurrence(f"Malformed RRULE number: {e}")

	on_date = None
	if "UNTIL" in fields:
		until = fields["UNTIL"]
		try:
			parsed = isoparse(until)
		except ValueError as e:
			raise InvalidRecurrence(f"Malformed RRULE UNTIL: {e}")
		# UNTIL=YYYYMMDD es una fecha: incluye el día completo
		on_date = parsed.date() if len(until) == 8 else to_utc(parsed)

	weekdays = tuple(tag for tag in fields.get("BYDAY", "").split(",") if tag)

	rule = RecurrenceRule(
		frequency=fields.get("FREQ", ""),
		interval=interval,
		weekdays=weekdays,
		after_count=after_count,
		on_date=on_date,
		never=after_count is None and on_date is None
	)
	validate_recurrence_rule(rule)

	return rule


def rule_from_dict(data: Optional[Dict[str, Any]]) -> Optional[RecurrenceRule]:
	"""
	Construye una regla desde el payload del formulario de eventos.

	Acepta la forma del formulario ({"type", "interval", "weekDays",
	"endAfter", "endDate"}) o la forma de la regla ({"frequency",
	"interval", "weekdays", "after_count", "on_date", "never"}).

	Returns:
		RecurrenceRule, o None si el evento no se repite (type "none")

	En la forma del formulario endDate tiene prioridad sobre endAfter, y
	sin ninguno de los dos la regla no termina.
	"""
	if not data:
		return None

	if "type" in data:
		frequency = str(data.get("type") or "none").lower()
		if frequency == "none":
			return None

		end_date = data.get("endDate")
		end_after = data.get("endAfter")
		on_date = _parse_date_value(end_date) if end_date else None
		after_count = None if on_date is not None or not end_after else _to_int(end_after, "endAfter")

		return RecurrenceRule(
			frequency=frequency,
			interval=_to_int(data.get("interval") or 1, "interval"),
			weekdays=tuple(data.get("weekDays") or ()),
			after_count=after_count,
			on_date=on_date,
			never=on_date is None and after_count is None
		)

	on_date = data.get("on_date")
	after_count = data.get("after_count")

	return RecurrenceRule(
		frequency=data.get("frequency", ""),
		interval=_to_int(data.get("interval", 1), "interval"),
		weekdays=tuple(data.get("weekdays") or ()),
		after_count=_to_int(after_count, "after_count") if after_count is not None else None,
		on_date=_parse_date_value(on_date) if on_date else None,
		never=bool(data.get("never"))
	)


def _to_int(value: Any, field_name: str) -> int:
	try:
		return int(value)
	except (TypeError, ValueError):
		raise InvalidRecurrence(f"{field_name} must be an integer, got {value!r}")


def _parse_date_value(value: Any) -> Union[datetime, date]:
	"""date/datetime tal cual; strings "YYYY-MM-DD" como date, el resto ISO."""
	if isinstance(value, date):
		return value
	text = str(value).strip()
	try:
		parsed = isoparse(text)
	except ValueError as e:
		raise InvalidRecurrence(f"Invalid end date {value!r}: {e}")
	if len(text) == 10:
		return parsed.date()
	return parsed
