"""
Scheduling Settings

Defaults for the scheduling endpoints, overridable per site in
site_config.json under the "group_planner" key:

    {
        "group_planner": {
            "default_slot_duration_minutes": 15,
            "default_timezone": "America/Bogota"
        }
    }
"""

import frappe


DEFAULT_SETTINGS = {
    "default_slot_duration_minutes": 30,
    "default_meeting_duration_minutes": 60,
    "work_day_start_hour": 9,
    "work_day_end_hour": 17,
    "suggestion_step_minutes": 30,
    "max_expanded_occurrences": 100,
    "default_timezone": "UTC",
}


def get_scheduling_settings() -> frappe._dict:
    """
    Return scheduling settings for the current site.

    Unknown keys in site config are ignored.
    """
    settings = frappe._dict(DEFAULT_SETTINGS)
    overrides = (frappe.conf or {}).get("group_planner") or {}

    for key, value in overrides.items():
        if key in DEFAULT_SETTINGS:
            settings[key] = value

    return settings
