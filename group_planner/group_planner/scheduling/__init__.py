"""
Scheduling Services Module

This module provides the pure scheduling logic for group events:
- Interval primitives and UTC normalization (intervals.py)
- Group availability grid (availability.py)
- Meeting time suggestions (suggestions.py)
- Free/busy response parsing (freebusy.py)
- Recurrence expansion (recurrence.py)
- Reminder rules (reminders.py)
- Validation errors (exceptions.py)

Nothing here performs I/O, reads configuration or touches the database.
"""
