"""
Tests for scheduling/intervals.py

Tests UTC normalization, the half-open overlap test and interval merging.
"""

import unittest
from datetime import datetime, timedelta

import pytz

from group_planner.group_planner.scheduling.exceptions import InvalidWindow, SchedulingError
from group_planner.group_planner.scheduling.intervals import (
	BusyPeriod,
	TimeInterval,
	clip_interval,
	coerce_interval,
	intervals_overlap,
	merge_intervals,
	parse_instant,
	to_utc,
)


def at(hour, minute=0, day=1):
	return pytz.UTC.localize(datetime(2024, 1, day, hour, minute))


class TestTimeNormalization(unittest.TestCase):
	"""Tests for to_utc and parse_instant."""

	def test_naive_datetime_is_utc(self):
		"""Naive datetimes are interpreted as UTC."""
		result = to_utc(datetime(2024, 1, 1, 9, 0))

		self.assertEqual(result, at(9))
		self.assertEqual(result.tzinfo, pytz.UTC)

	def test_aware_datetime_is_converted(self):
		"""Aware datetimes are converted to UTC."""
		bogota = pytz.timezone("America/Bogota")
		local = bogota.localize(datetime(2024, 1, 1, 9, 0))

		self.assertEqual(to_utc(local), at(14))

	def test_to_utc_rejects_non_datetime(self):
		"""Strings must go through parse_instant."""
		with self.assertRaises(TypeError):
			to_utc("2024-01-01T09:00:00Z")

	def test_parse_instant_iso_string(self):
		"""ISO-8601 strings with Z or offset are parsed."""
		self.assertEqual(parse_instant("2024-01-01T09:00:00Z"), at(9))
		self.assertEqual(parse_instant("2024-01-01T04:00:00-05:00"), at(9))

	def test_parse_instant_invalid_string(self):
		"""Malformed strings raise InvalidWindow."""
		with self.assertRaises(InvalidWindow):
			parse_instant("not a date")


class TestOverlap(unittest.TestCase):
	"""Tests for intervals_overlap."""

	def test_partial_overlap(self):
		"""Busy 10:00-10:15 overlaps slot 10:00-10:30."""
		self.assertTrue(intervals_overlap(at(10), at(10, 15), at(10), at(10, 30)))

	def test_touching_is_not_overlap(self):
		"""Busy ending exactly at slot start does not overlap."""
		self.assertFalse(intervals_overlap(at(10), at(10, 30), at(10, 30), at(11)))
		self.assertFalse(intervals_overlap(at(10, 30), at(11), at(10), at(10, 30)))

	def test_containment(self):
		"""An interval covering the other completely overlaps."""
		self.assertTrue(intervals_overlap(at(9), at(12), at(10), at(10, 30)))
		self.assertTrue(intervals_overlap(at(10), at(10, 30), at(9), at(12)))


class TestTimeInterval(unittest.TestCase):
	"""Tests for TimeInterval and its helpers."""

	def test_rejects_empty_interval(self):
		"""start == end is not a valid interval."""
		with self.assertRaises(InvalidWindow):
			TimeInterval(at(9), at(9))

	def test_rejects_inverted_interval(self):
		"""start > end raises InvalidWindow, which is a SchedulingError."""
		with self.assertRaises(SchedulingError):
			TimeInterval(at(10), at(9))

	def test_duration_and_contains(self):
		"""contains() is half-open."""
		interval = TimeInterval(at(9), at(10))

		self.assertEqual(interval.duration, timedelta(hours=1))
		self.assertTrue(interval.contains(at(9)))
		self.assertFalse(interval.contains(at(10)))

	def test_busy_period_as_dict(self):
		"""BusyPeriod keeps its participant."""
		period = BusyPeriod(at(9), at(10), "alice")

		self.assertEqual(period.as_dict(), {
			"start": "2024-01-01T09:00:00+00:00",
			"end": "2024-01-01T10:00:00+00:00",
			"participant_id": "alice"
		})

	def test_coerce_interval_formats(self):
		"""dicts and tuples are accepted."""
		expected = TimeInterval(at(9), at(10))

		self.assertEqual(coerce_interval({"start": "2024-01-01T09:00:00Z", "end": "2024-01-01T10:00:00Z"}), expected)
		self.assertEqual(coerce_interval((at(9), at(10))), expected)
		self.assertIs(coerce_interval(expected), expected)

	def test_coerce_interval_missing_keys(self):
		"""A dict without end is rejected."""
		with self.assertRaises(InvalidWindow):
			coerce_interval({"start": "2024-01-01T09:00:00Z"})


class TestMergeIntervals(unittest.TestCase):
	"""Tests for merge_intervals and clip_interval."""

	def test_merge_overlapping_and_adjacent(self):
		"""Overlapping and touching intervals are merged."""
		merged = merge_intervals([
			TimeInterval(at(11), at(12)),
			TimeInterval(at(9), at(10)),
			TimeInterval(at(9, 30), at(10, 30)),
			TimeInterval(at(10, 30), at(10, 45)),
		])

		self.assertEqual(merged, [
			TimeInterval(at(9), at(10, 45)),
			TimeInterval(at(11), at(12)),
		])

	def test_merge_contained_interval(self):
		"""A contained interval does not shrink the merged one."""
		merged = merge_intervals([
			TimeInterval(at(9), at(12)),
			TimeInterval(at(10), at(11)),
		])

		self.assertEqual(merged, [TimeInterval(at(9), at(12))])

	def test_merge_empty(self):
		"""No intervals, no result."""
		self.assertEqual(merge_intervals([]), [])

	def test_clip(self):
		"""Clipping outside the bounds returns None."""
		bounds = TimeInterval(at(9), at(11))

		self.assertEqual(clip_interval(TimeInterval(at(8), at(10)), bounds), TimeInterval(at(9), at(10)))
		self.assertIsNone(clip_interval(TimeInterval(at(11), at(12)), bounds))


def run_tests():
	"""Run all tests in this module."""
	unittest.main()
