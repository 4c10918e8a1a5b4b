"""
Scheduling Request Validators

Validation utilities for arguments received by the whitelisted endpoints.
Values arrive as strings or JSON; these turn them into the typed values
the scheduling services expect, or throw a ValidationError.
"""

import re
from datetime import datetime
from typing import Any, Optional

import frappe
import pytz
from frappe import _
from frappe.utils import cint

from group_planner.group_planner.scheduling.exceptions import SchedulingError
from group_planner.group_planner.scheduling.intervals import parse_instant


def validate_datetime_string(value: Any, field_name: str = "datetime") -> datetime:
    """
    Validate an ISO-8601 datetime string and normalize it to UTC.

    Naive values are interpreted as UTC.

    Args:
        value: Datetime string (e.g. 2024-01-01T09:00:00Z) or datetime
        field_name: Name of field for error messages

    Returns:
        datetime: Timezone-aware UTC datetime

    Raises:
        frappe.ValidationError: If the value is missing or malformed
    """
    if not value:
        frappe.throw(_(f"{field_name} is required"), frappe.ValidationError)

    if isinstance(value, str):
        value = value.strip()

    try:
        return parse_instant(value)
    except (SchedulingError, TypeError):
        frappe.throw(
            _(f"Invalid {field_name} format. Use ISO-8601, e.g. 2024-01-01T09:00:00Z"),
            frappe.ValidationError,
        )


def validate_positive_int(value: Any, field_name: str, default: Optional[int] = None) -> int:
    """
    Validate a positive integer argument.

    Args:
        value: Raw value (int or numeric string); empty uses default
        field_name: Name of field for error messages
        default: Value used when nothing was sent

    Returns:
        int: Validated integer
    """
    if value in (None, "") and default is not None:
        return default

    number = cint(value)
    if number <= 0:
        frappe.throw(_(f"{field_name} must be a positive integer"), frappe.ValidationError)

    return number


def validate_timezone(name: Any, field_name: str = "timezone") -> str:
    """Validate an IANA timezone name (e.g. America/Bogota)."""
    name = str(name or "").strip()

    if name not in pytz.all_timezones_set:
        frappe.throw(_(f"Unknown {field_name}: {name}"), frappe.ValidationError)

    return name


def validate_participant_id(name: Any, field_name: str = "participant") -> str:
    """
    Validate a participant identifier used as a key in busy period maps.

    Ensures the id is not too long and doesn't contain injection patterns.
    """
    if name is None or str(name).strip() == "":
        frappe.throw(_(f"{field_name} is required"), frappe.ValidationError)

    name = str(name).strip()

    if len(name) > 140:
        frappe.throw(_(f"{field_name} is too long"), frappe.ValidationError)

    dangerous_patterns = [
        r"<script",
        r"javascript:",
        r"onerror",
        r"SELECT\s+",
        r"DROP\s+",
        r"UNION\s+",
        r"--",
        r";",
    ]

    for pattern in dangerous_patterns:
        if re.search(pattern, name, re.IGNORECASE):
            frappe.throw(_(f"Invalid {field_name}"), frappe.ValidationError)

    return name


def parse_json_arg(value: Any, field_name: str, expected: type = dict) -> Any:
    """
    Parse a JSON argument (form_dict values arrive as strings).

    Returns:
        The parsed value; an empty instance of expected when nothing was sent
    """
    if value in (None, ""):
        return expected()

    if isinstance(value, str):
        try:
            value = frappe.parse_json(value)
        except ValueError:
            frappe.throw(_(f"{field_name} must be valid JSON"), frappe.ValidationError)

    if not isinstance(value, expected):
        frappe.throw(
            _(f"{field_name} must be a JSON {expected.__name__}"),
            frappe.ValidationError,
        )

    return value
