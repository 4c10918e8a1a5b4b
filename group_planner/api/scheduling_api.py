"""
Scheduling API Endpoints

Whitelisted functions for the group planner frontend:
- Availability grid for a group of participants
- Meeting time suggestions inside working hours
- Expansion of recurring events with their reminders

Busy periods are sent by the caller, either already normalized
(busy_periods) or as raw free/busy responses per participant (freebusy).
"""

from itertools import islice, takewhile
from typing import Any, Dict, List, Optional

import frappe
from frappe import _
from frappe.utils import cint

# Import scheduling services
from group_planner.group_planner.scheduling.availability import (
	AvailabilityRequest,
	compute_availability,
	group_slots_by_day,
)
from group_planner.group_planner.scheduling.exceptions import SchedulingError
from group_planner.group_planner.scheduling.freebusy import freebusy_errors, parse_freebusy_response
from group_planner.group_planner.scheduling.intervals import BusyPeriod, coerce_interval
from group_planner.group_planner.scheduling.recurrence import (
	RecurrenceRule,
	expand_recurrence,
	parse_rrule,
	rule_from_dict,
	to_rrule,
)
from group_planner.group_planner.scheduling.reminders import to_google_reminders
from group_planner.group_planner.scheduling.suggestions import suggest_meeting_times as compute_suggestions

# Import shared utilities
from group_planner.api.shared import (
	get_scheduling_settings,
	parse_json_arg,
	validate_datetime_string,
	validate_participant_id,
	validate_positive_int,
	validate_timezone,
)


def _logger():
	return frappe.logger("group_planner")


def _throw_scheduling_error(error: Exception, endpoint: str) -> None:
	_logger().info(f"{endpoint}: rejected request: {error}")
	frappe.throw(_(str(error)), frappe.ValidationError)


def _collect_busy_periods(busy_periods: Any, freebusy: Any) -> Dict[str, List[BusyPeriod]]:
	"""
	Construye {participant_id: [BusyPeriod]} a partir de los argumentos.

	Args:
		busy_periods: {"alice": [{"start": ..., "end": ...}], ...}
		freebusy: {"alice": <respuesta freebusy.query>, ...}

	Ambos pueden venir a la vez; los periodos de un mismo participante se suman.
	"""
	busy_periods = parse_json_arg(busy_periods, "busy_periods")
	freebusy = parse_json_arg(freebusy, "freebusy")

	collected: Dict[str, List[BusyPeriod]] = {}

	for participant, periods in busy_periods.items():
		participant = validate_participant_id(participant)
		if not isinstance(periods, list):
			frappe.throw(_(f"busy_periods for {participant} must be a list"), frappe.ValidationError)

		bucket = collected.setdefault(participant, [])
		for period in periods:
			interval = coerce_interval(period)
			bucket.append(BusyPeriod(interval.start, interval.end, participant))

	for participant, payload in freebusy.items():
		participant = validate_participant_id(participant)

		# Calendarios con error se tratan como libres, pero se registran
		for calendar_id, errors in freebusy_errors(payload).items():
			_logger().warning(f"Free/busy errors for {participant} ({calendar_id}): {errors}")

		collected.setdefault(participant, []).extend(parse_freebusy_response(participant, payload))

	return collected


@frappe.whitelist(methods=["GET", "POST"])
def get_group_availability(
	window_start: str,
	window_end: str,
	busy_periods: Any = None,
	freebusy: Any = None,
	slot_duration_minutes: Optional[int] = None,
	timezone: Optional[str] = None,
	group_by_day: int = 0
) -> Any:
	"""
	Obtiene la grilla de disponibilidad de un grupo de participantes.

	Args:
		window_start: inicio del rango (ISO-8601)
		window_end: fin del rango (ISO-8601)
		busy_periods: JSON {participant_id: [{"start", "end"}]}
		freebusy: JSON {participant_id: respuesta freebusy.query}
		slot_duration_minutes: tamaño del slot (default de site config)
		timezone: zona usada para agrupar por día
		group_by_day: 1 para agrupar los slots por fecha local

	Returns:
		list[dict]: [
			{
				"start": "2024-01-01T09:00:00+00:00",
				"end": "2024-01-01T09:30:00+00:00",
				"is_available": True,
				"busy_participants": []
			},
			...
		]
		o dict {"2024-01-01": [...]} si group_by_day
	"""
	settings = get_scheduling_settings()

	start = validate_datetime_string(window_start, "window_start")
	end = validate_datetime_string(window_end, "window_end")
	minutes = validate_positive_int(
		slot_duration_minutes, "slot_duration_minutes", default=cint(settings.default_slot_duration_minutes)
	)

	try:
		request = AvailabilityRequest(
			window_start=start,
			window_end=end,
			slot_duration_minutes=minutes,
			participant_busy_periods=_collect_busy_periods(busy_periods, freebusy)
		)
		slots = compute_availability(request)
	except (SchedulingError, TypeError) as e:
		_throw_scheduling_error(e, "get_group_availability")

	_logger().info(
		f"Availability grid: {len(slots)} slots of {minutes} min for "
		f"{len(request.participant_busy_periods)} participants"
	)

	if cint(group_by_day):
		tz = validate_timezone(timezone or settings.default_timezone)
		return {
			day: [slot.as_dict() for slot in day_slots]
			for day, day_slots in group_slots_by_day(slots, tz).items()
		}

	return [slot.as_dict() for slot in slots]


@frappe.whitelist(methods=["GET", "POST"])
def suggest_meeting_times(
	window_start: str,
	window_end: str,
	duration_minutes: Optional[int] = None,
	busy_periods: Any = None,
	freebusy: Any = None,
	timezone: Optional[str] = None
) -> Dict[str, Any]:
	"""
	Propone horarios en los que todos los participantes están libres.

	Solo se proponen horarios dentro de la jornada laboral configurada
	(work_day_start_hour a work_day_end_hour, hora local) en días de semana.

	Returns:
		dict: {"suggestions": [{"start": ..., "end": ...}, ...]}
	"""
	settings = get_scheduling_settings()

	start = validate_datetime_string(window_start, "window_start")
	end = validate_datetime_string(window_end, "window_end")
	duration = validate_positive_int(
		duration_minutes, "duration_minutes", default=cint(settings.default_meeting_duration_minutes)
	)
	tz = validate_timezone(timezone or settings.default_timezone)

	try:
		suggestions = compute_suggestions(
			start,
			end,
			_collect_busy_periods(busy_periods, freebusy),
			duration_minutes=duration,
			timezone=tz,
			work_day_start_hour=cint(settings.work_day_start_hour),
			work_day_end_hour=cint(settings.work_day_end_hour),
			step_minutes=cint(settings.suggestion_step_minutes)
		)
	except (SchedulingError, TypeError) as e:
		_throw_scheduling_error(e, "suggest_meeting_times")

	_logger().info(f"Meeting suggestions: {len(suggestions)} candidates of {duration} min ({tz})")

	return {"suggestions": [suggestion.as_dict() for suggestion in suggestions]}


@frappe.whitelist(methods=["GET", "POST"])
def expand_event_recurrence(
	start: str,
	end: str,
	recurrence: Any = None,
	reminders: Any = None,
	limit: Optional[int] = None,
	horizon: Optional[str] = None,
	timezone: Optional[str] = None
) -> Dict[str, Any]:
	"""
	Expande un evento recurrente en sus ocurrencias concretas.

	Args:
		start: inicio de la primera ocurrencia (ISO-8601)
		end: fin de la primera ocurrencia (ISO-8601)
		recurrence: línea RRULE o JSON del formulario
			({"type": "weekly", "interval": 1, "weekDays": ["MO"], "endAfter": 4})
		reminders: JSON [{"type": "notification", "minutes": 30}, ...]
		limit: máximo de ocurrencias (tope: max_expanded_occurrences)
		horizon: no devolver ocurrencias que empiecen en o después de esta fecha
		timezone: zona del evento; define la hora local que se repite

	Returns:
		dict: {
			"rrule": ["RRULE:FREQ=WEEKLY;BYDAY=MO;COUNT=4"] o None,
			"occurrences": [{"start", "end", "reminders": [...]}],
			"reminders": {"useDefault": False, "overrides": [...]},
			"truncated": True si la serie sigue después de limit
		}
	"""
	settings = get_scheduling_settings()

	base_start = validate_datetime_string(start, "start")
	base_end = validate_datetime_string(end, "end")
	tz = validate_timezone(timezone or settings.default_timezone)

	max_occurrences = cint(settings.max_expanded_occurrences)
	limit = min(validate_positive_int(limit, "limit", default=max_occurrences), max_occurrences)
	horizon_at = validate_datetime_string(horizon, "horizon") if horizon else None

	reminder_values = parse_json_arg(reminders, "reminders", expected=list)

	try:
		if isinstance(recurrence, str) and recurrence.strip().upper().startswith(("RRULE:", "FREQ=")):
			rule = parse_rrule(recurrence)
		else:
			rule = rule_from_dict(parse_json_arg(recurrence, "recurrence"))

		# Evento sin recurrencia: solo la ocurrencia base
		is_recurring = rule is not None
		if rule is None:
			rule = RecurrenceRule("daily", after_count=1)

		series = expand_recurrence((base_start, base_end), rule, reminder_values, tz)

		items = iter(series)
		if horizon_at is not None:
			items = takewhile(lambda item: item[0].start < horizon_at, items)

		# Uno extra para saber si la serie fue truncada
		expanded = list(islice(items, limit + 1))
		rrule_line = to_rrule(rule, tz) if is_recurring else None
	except (SchedulingError, TypeError) as e:
		_throw_scheduling_error(e, "expand_event_recurrence")

	truncated = len(expanded) > limit
	expanded = expanded[:limit]

	_logger().info(
		f"Recurrence expansion: {len(expanded)} occurrences"
		f"{' (truncated)' if truncated else ''} for {rrule_line or 'single event'}"
	)

	return {
		"rrule": [rrule_line] if rrule_line else None,
		"occurrences": [
			{
				"start": occurrence.start.isoformat(),
				"end": occurrence.end.isoformat(),
				"reminders": [instant.isoformat() for instant in instants]
			}
			for occurrence, instants in expanded
		],
		"reminders": to_google_reminders(series.reminders),
		"truncated": truncated
	}
