"""
Events API Domain

Handles group availability, meeting suggestions and recurring event expansion.
"""

# Re-export endpoints from scheduling_api for new-style imports
from group_planner.api.scheduling_api import (
    # Availability
    get_group_availability,
    suggest_meeting_times,
    # Recurrence
    expand_event_recurrence,
)

__all__ = [
    # Availability
    "get_group_availability",
    "suggest_meeting_times",
    # Recurrence
    "expand_event_recurrence",
]
