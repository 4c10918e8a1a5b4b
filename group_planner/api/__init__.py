"""
Group Planner API

This module provides a modular API structure for group scheduling.

Structure:
    api/
    ├── __init__.py              # This file
    ├── events/                  # Events domain
    │   └── __init__.py          # Re-exports from scheduling_api
    ├── shared/                  # Shared utilities
    │   ├── __init__.py          # Re-exports validators and settings
    │   ├── settings.py          # Site config defaults
    │   └── validators.py        # Request argument validators
    └── scheduling_api.py        # Contains all endpoints

Usage:
    frappe.call("group_planner.api.events.get_group_availability", ...)
    frappe.call("group_planner.api.scheduling_api.expand_event_recurrence", ...)
"""

# Re-export domains for convenient access
from . import events
from . import shared

__all__ = [
    "events",
    "shared",
]
