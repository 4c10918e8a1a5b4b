"""
Reminder Rules

Reminder offsets attached to an event and the instants at which they fire
for a given occurrence.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Tuple

from .exceptions import InvalidRecurrence
from .intervals import to_utc


REMINDER_METHODS = ("popup", "email")

# Nombres usados por el formulario de eventos
METHOD_ALIASES = {
	"notification": "popup",
	"popup": "popup",
	"email": "email",
}

DEFAULT_REMINDER_MINUTES = 30


@dataclass(frozen=True)
class ReminderRule:
	"""Recordatorio offset_minutes antes del inicio de cada ocurrencia."""

	offset_minutes: int
	method: str = "popup"

	def __post_init__(self) -> None:
		offset = self.offset_minutes
		if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
			raise InvalidRecurrence(f"Reminder offset must be a non-negative integer, got {offset!r}")

		method = METHOD_ALIASES.get(str(self.method).lower())
		if method not in REMINDER_METHODS:
			raise InvalidRecurrence(f"Unsupported reminder method: {self.method}")
		object.__setattr__(self, "method", method)


def coerce_reminder(value: Any) -> ReminderRule:
	"""
	Acepta ReminderRule, un entero (minutos) o un dict del formulario:
	{"type": "notification" | "email", "minutes": 30}.
	"""
	if isinstance(value, ReminderRule):
		return value
	if isinstance(value, dict):
		minutes = value.get("offset_minutes", value.get("minutes", DEFAULT_REMINDER_MINUTES))
		method = value.get("method") or value.get("type") or "popup"
		return ReminderRule(minutes, method)
	return ReminderRule(value)


def normalize_reminders(reminders: Iterable[Any]) -> List[ReminderRule]:
	"""
	Deduplica por offset (gana el primero) y ordena por offset.

	Un offset repetido no es un error: agregarlo dos veces equivale a una.
	"""
	by_offset: Dict[int, ReminderRule] = {}

	for reminder in reminders or ():
		rule = coerce_reminder(reminder)
		by_offset.setdefault(rule.offset_minutes, rule)

	return [by_offset[offset] for offset in sorted(by_offset)]


def reminder_instants(start: datetime, reminders: Iterable[ReminderRule]) -> Tuple[datetime, ...]:
	"""
	Instantes de disparo para una ocurrencia, en orden cronológico.

	Cada instante es start - offset_minutes.
	"""
	start = to_utc(start)
	offsets = sorted({r.offset_minutes for r in reminders}, reverse=True)
	return tuple(start - timedelta(minutes=offset) for offset in offsets)


def to_google_reminders(reminders: Iterable[Any]) -> Dict[str, Any]:
	"""
	Formato "reminders" de un evento de Google Calendar.

	Sin recordatorios se usan los defaults del calendario.
	"""
	rules = normalize_reminders(reminders)

	if not rules:
		return {"useDefault": True}

	return {
		"useDefault": False,
		"overrides": [
			{"method": rule.method, "minutes": rule.offset_minutes}
			for rule in rules
		]
	}
