"""
Scheduling Errors

Input-validation failures raised by the scheduling services.
All of them are detected before any computation starts.
"""


class SchedulingError(ValueError):
	"""Base para errores de validación de scheduling."""
	pass


class InvalidWindow(SchedulingError):
	"""Rango de tiempo vacío o invertido (end <= start)."""
	pass


class InvalidSlotDuration(SchedulingError):
	"""Duración de slot (o de reunión) no positiva."""
	pass


class InvalidRecurrence(SchedulingError):
	"""Regla de recurrencia o recordatorio mal formado."""
	pass
