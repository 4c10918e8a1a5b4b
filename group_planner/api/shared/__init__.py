"""
Shared utilities for Group Planner API.

Argument validators and site settings used by the scheduling endpoints.
"""

from .settings import (
    DEFAULT_SETTINGS,
    get_scheduling_settings,
)
from .validators import (
    parse_json_arg,
    validate_datetime_string,
    validate_participant_id,
    validate_positive_int,
    validate_timezone,
)

__all__ = [
    # Settings
    "DEFAULT_SETTINGS",
    "get_scheduling_settings",
    # Validators
    "parse_json_arg",
    "validate_datetime_string",
    "validate_participant_id",
    "validate_positive_int",
    "validate_timezone",
]
