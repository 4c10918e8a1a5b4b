"""
Group Availability Service

Builds the availability grid for a group of participants, considering:
- A candidate time window split into fixed-size slots
- Each participant's busy periods (from their connected calendars)
- Conjunctive availability (everyone must be free)
"""

import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Mapping, Sequence, Tuple

import pytz

from .exceptions import InvalidSlotDuration, InvalidWindow
from .intervals import TimeInterval, coerce_interval, merge_intervals, to_utc


DEFAULT_SLOT_DURATION_MINUTES = 30


@dataclass(frozen=True)
class Slot:
	"""Subdivisión del rango solicitado, marcada libre u ocupada."""

	interval: TimeInterval
	busy_participants: Tuple[str, ...] = ()

	@property
	def start(self) -> datetime:
		return self.interval.start

	@property
	def end(self) -> datetime:
		return self.interval.end

	@property
	def available(self) -> bool:
		return not self.busy_participants

	def as_dict(self) -> Dict[str, Any]:
		return {
			"start": self.start.isoformat(),
			"end": self.end.isoformat(),
			"is_available": self.available,
			"busy_participants": list(self.busy_participants)
		}


@dataclass(frozen=True)
class AvailabilityRequest:
	"""
	Entrada de compute_availability.

	participant_busy_periods: {participant_id: [BusyPeriod | TimeInterval | dict, ...]}
	slot_duration_minutes acepta fracciones (7.5 = 7 min 30 s).
	"""

	window_start: datetime
	window_end: datetime
	slot_duration_minutes: float = DEFAULT_SLOT_DURATION_MINUTES
	participant_busy_periods: Mapping[str, Sequence[Any]] = field(default_factory=dict)


def validate_request(request: AvailabilityRequest) -> TimeInterval:
	"""
	Valida la solicitud y retorna la ventana normalizada a UTC.

	Raises:
		InvalidWindow: si window_end <= window_start
		InvalidSlotDuration: si slot_duration_minutes no es un número > 0
	"""
	window_start = to_utc(request.window_start)
	window_end = to_utc(request.window_end)

	if window_end <= window_start:
		raise InvalidWindow(
			f"window_end ({window_end.isoformat()}) must be after window_start ({window_start.isoformat()})"
		)

	minutes = request.slot_duration_minutes
	is_number = isinstance(minutes, (int, float)) and not isinstance(minutes, bool)
	if not is_number or not math.isfinite(minutes) or minutes <= 0:
		raise InvalidSlotDuration(f"slot_duration_minutes must be a positive number, got {minutes!r}")

	return TimeInterval(window_start, window_end)


def generate_slot_intervals(window: TimeInterval, slot_duration_minutes: float) -> List[TimeInterval]:
	"""
	Divide la ventana en slots consecutivos de slot_duration_minutes.

	El último slot se trunca para terminar exactamente en window.end;
	nunca se pasa del final de la ventana.
	"""
	step = timedelta(minutes=slot_duration_minutes)
	slots = []
	current_slot_start = window.start

	while current_slot_start < window.end:
		current_slot_end = min(current_slot_start + step, window.end)
		slots.append(TimeInterval(current_slot_start, current_slot_end))

		# Avanzar al siguiente slot
		current_slot_start = current_slot_end

	return slots


def _busy_slot_indexes(slots: List[TimeInterval], busy_periods: Sequence[Any]) -> List[int]:
	"""
	Índices de los slots que se solapan con algún busy period.

	Los busy periods se unen primero; luego un solo puntero recorre
	slots e intervalos, ambos ordenados.
	"""
	merged = merge_intervals(coerce_interval(period) for period in busy_periods)
	indexes = []
	pointer = 0

	for idx, slot in enumerate(slots):
		# Descartar intervalos que terminan antes (o justo en) el inicio del slot
		while pointer < len(merged) and merged[pointer].end <= slot.start:
			pointer += 1

		if pointer == len(merged):
			break

		if merged[pointer].start < slot.end:
			indexes.append(idx)

	return indexes


def compute_availability(request: AvailabilityRequest) -> List[Slot]:
	"""
	Calcula qué slots están libres para todo el grupo.

	Args:
		request: AvailabilityRequest

	Returns:
		list[Slot]: slots ordenados que cubren [window_start, window_end)
			sin huecos ni solapamientos

	Algoritmo:
		1. Validar ventana y duración (fail-fast)
		2. Generar slots cada slot_duration_minutes, truncando el último
		3. Para cada participante, marcar los slots donde algún busy period
			cumple busy.start < slot.end AND busy.end > slot.start
		4. Un slot está disponible solo si ningún participante está ocupado
		5. Sin datos de calendario, todos los slots quedan disponibles
	"""
	window = validate_request(request)
	slot_intervals = generate_slot_intervals(window, request.slot_duration_minutes)

	busy_by_slot: List[List[str]] = [[] for _ in slot_intervals]

	for participant_id in sorted(request.participant_busy_periods, key=str):
		busy_periods = request.participant_busy_periods[participant_id] or []
		for idx in _busy_slot_indexes(slot_intervals, busy_periods):
			busy_by_slot[idx].append(participant_id)

	return [
		Slot(interval=interval, busy_participants=tuple(busy))
		for interval, busy in zip(slot_intervals, busy_by_slot)
	]


def merge_available_slots(slots: Sequence[Slot], min_duration_minutes: int = 0) -> List[TimeInterval]:
	"""
	Une slots disponibles consecutivos en rangos libres continuos.

	Args:
		slots: salida de compute_availability
		min_duration_minutes: rangos más cortos se descartan

	Returns:
		list[TimeInterval]: rangos libres ordenados
	"""
	ranges: List[TimeInterval] = []
	current_start = None
	current_end = None

	for slot in slots:
		if slot.available and current_end is not None and slot.start == current_end:
			current_end = slot.end
			continue

		if current_start is not None:
			ranges.append(TimeInterval(current_start, current_end))
			current_start = current_end = None

		if slot.available:
			current_start, current_end = slot.start, slot.end

	if current_start is not None:
		ranges.append(TimeInterval(current_start, current_end))

	if min_duration_minutes > 0:
		min_duration = timedelta(minutes=min_duration_minutes)
		ranges = [r for r in ranges if r.duration >= min_duration]

	return ranges


def group_slots_by_day(slots: Sequence[Slot], timezone: str = "UTC") -> Dict[str, List[Slot]]:
	"""
	Agrupa slots por día local.

	Returns:
		dict: {"2024-01-01": [Slot, ...], ...} ordenado por fecha
	"""
	tz = pytz.timezone(timezone)
	grouped: Dict[str, List[Slot]] = {}

	for slot in slots:
		day_key = slot.start.astimezone(tz).strftime("%Y-%m-%d")
		grouped.setdefault(day_key, []).append(slot)

	return dict(sorted(grouped.items()))


def count_blocked_slots(slots: Sequence[Slot]) -> Dict[str, int]:
	"""
	Cuántos slots bloquea cada participante.

	Returns:
		dict: {participant_id: slots ocupados}, de mayor a menor
	"""
	counts = Counter(
		participant_id
		for slot in slots
		for participant_id in slot.busy_participants
	)

	return dict(sorted(counts.items(), key=lambda item: (-item[1], str(item[0]))))
