"""
Tests for scheduling/suggestions.py

Tests meeting time suggestions inside working hours.
"""

import unittest
from datetime import datetime, timedelta

import pytz

from group_planner.group_planner.scheduling.exceptions import InvalidSlotDuration, InvalidWindow
from group_planner.group_planner.scheduling.intervals import BusyPeriod
from group_planner.group_planner.scheduling.suggestions import suggest_meeting_times


def at(hour, minute=0, day=1):
	return pytz.UTC.localize(datetime(2024, 1, day, hour, minute))


class TestSuggestMeetingTimes(unittest.TestCase):
	"""Tests for suggest_meeting_times."""

	def test_full_free_day(self):
		"""A free Monday yields hourly meetings every 30 minutes from 09:00 to 16:00."""
		suggestions = suggest_meeting_times(at(0), at(0, day=2), {})

		self.assertEqual(len(suggestions), 15)
		self.assertEqual(suggestions[0].start, at(9))
		self.assertEqual(suggestions[-1].end, at(17))
		self.assertTrue(all(s.duration == timedelta(minutes=60) for s in suggestions))

	def test_busy_periods_are_avoided(self):
		"""Candidates overlapping any participant's busy period are dropped."""
		busy = {
			"alice": [BusyPeriod(at(10), at(11), "alice")],
			"bob": [],
		}

		suggestions = suggest_meeting_times(at(0), at(0, day=2), busy)
		starts = [s.start for s in suggestions]

		self.assertEqual(len(suggestions), 12)
		self.assertIn(at(9), starts)
		self.assertNotIn(at(9, 30), starts)
		self.assertNotIn(at(10, 30), starts)
		self.assertIn(at(11), starts)

	def test_busy_periods_outside_window(self):
		"""Busy periods crossing the window edges only block what lies inside it."""
		busy = {"alice": [
			BusyPeriod(at(8, day=1), at(10, 30, day=1), "alice"),
			BusyPeriod(at(20, day=1), at(9, day=3), "alice"),
		]}

		suggestions = suggest_meeting_times(at(9), at(12), busy)

		self.assertEqual([s.start for s in suggestions], [at(10, 30), at(11)])

	def test_window_limits_working_hours(self):
		"""Only candidates fully inside the requested window are proposed."""
		suggestions = suggest_meeting_times(at(15), at(17, 30), {}, duration_minutes=90)

		self.assertEqual([s.start for s in suggestions], [at(15), at(15, 30)])

	def test_weekends_are_skipped(self):
		"""Saturday and Sunday get no suggestions."""
		# 2024-01-06 es sábado
		suggestions = suggest_meeting_times(at(0, day=6), at(12, day=8), {})

		self.assertEqual(len(suggestions), 5)
		self.assertTrue(all(s.start.date() == at(0, day=8).date() for s in suggestions))

	def test_weekends_allowed(self):
		"""skip_weekends=False proposes weekend times too."""
		suggestions = suggest_meeting_times(at(0, day=6), at(0, day=7), {}, skip_weekends=False)

		self.assertEqual(len(suggestions), 15)

	def test_local_working_hours(self):
		"""Working hours follow the given timezone."""
		suggestions = suggest_meeting_times(at(0), at(0, day=2), {}, timezone="America/Bogota")

		# 09:00 en Bogotá son las 14:00 UTC
		self.assertEqual(suggestions[0].start, at(14))
		self.assertEqual(suggestions[-1].start, at(21))

	def test_invalid_window(self):
		"""An inverted window raises InvalidWindow."""
		with self.assertRaises(InvalidWindow):
			suggest_meeting_times(at(10), at(9), {})

	def test_invalid_duration(self):
		"""Zero duration raises InvalidSlotDuration."""
		with self.assertRaises(InvalidSlotDuration):
			suggest_meeting_times(at(0), at(0, day=2), {}, duration_minutes=0)

	def test_invalid_work_hours(self):
		"""Work day end must come after its start."""
		with self.assertRaises(InvalidSlotDuration):
			suggest_meeting_times(at(0), at(0, day=2), {}, work_day_start_hour=17, work_day_end_hour=9)


def run_tests():
	"""Run all tests in this module."""
	unittest.main()
