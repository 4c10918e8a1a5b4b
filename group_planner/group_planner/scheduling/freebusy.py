"""
Free/Busy Parsing

Turns a calendar provider's free/busy response body (Google Calendar
freebusy.query format) into BusyPeriod values for one participant.

Fetching the response (OAuth, HTTP) happens outside this module.
"""

from typing import Any, Dict, Iterable, List

from .exceptions import InvalidWindow
from .intervals import BusyPeriod, parse_instant


PRIMARY_CALENDAR = "primary"


def _get_calendars(payload: Any) -> Dict[str, Any]:
	if not isinstance(payload, dict):
		return {}
	# Algunos clientes devuelven el body envuelto en "data"
	if "calendars" not in payload and isinstance(payload.get("data"), dict):
		payload = payload["data"]
	calendars = payload.get("calendars")
	return calendars if isinstance(calendars, dict) else {}


def parse_freebusy_response(
	participant_id: str,
	payload: Any,
	calendar_ids: Iterable[str] = (PRIMARY_CALENDAR,)
) -> List[BusyPeriod]:
	"""
	Extrae los busy periods de una respuesta free/busy.

	Args:
		participant_id: dueño de los calendarios consultados
		payload: {"calendars": {"primary": {"busy": [{"start": ..., "end": ...}]}}}
		calendar_ids: calendarios a leer

	Returns:
		list[BusyPeriod]: ordenados por start

	Calendarios ausentes, mal formados o con "errors" no aportan busy
	periods: sin datos se asume libre.

	Raises:
		InvalidWindow: busy period sin start o end, o con fechas inválidas
	"""
	calendars = _get_calendars(payload)
	periods = []

	for calendar_id in calendar_ids:
		calendar = calendars.get(calendar_id)
		if not isinstance(calendar, dict) or calendar.get("errors"):
			continue

		for busy in calendar.get("busy") or []:
			if not isinstance(busy, dict) or "start" not in busy or "end" not in busy:
				raise InvalidWindow(f"Busy period requires 'start' and 'end': {busy!r}")

			periods.append(
				BusyPeriod(
					parse_instant(busy["start"]),
					parse_instant(busy["end"]),
					participant_id
				)
			)

	periods.sort(key=lambda p: (p.start, p.end))
	return periods


def freebusy_errors(
	payload: Any,
	calendar_ids: Iterable[str] = (PRIMARY_CALENDAR,)
) -> Dict[str, List[Dict[str, Any]]]:
	"""
	Errores reportados por calendario, para que el llamador los registre.

	Returns:
		dict: {calendar_id: [{"domain": ..., "reason": ...}]}; un calendario
			ausente de la respuesta se reporta con reason "notFound"
	"""
	calendars = _get_calendars(payload)
	errors = {}

	for calendar_id in calendar_ids:
		calendar = calendars.get(calendar_id)
		if calendar is None:
			errors[calendar_id] = [{"domain": "global", "reason": "notFound"}]
		elif not isinstance(calendar, dict):
			errors[calendar_id] = [{"domain": "global", "reason": "invalid"}]
		elif calendar.get("errors"):
			errors[calendar_id] = list(calendar["errors"])

	return errors
