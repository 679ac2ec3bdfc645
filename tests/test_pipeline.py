"""
Test suite for the hand-hygiene statistics pipeline.

Tests:
1. Header resolution - substring matching, column order, SchemaError
2. Log parsing - trimming, blank/short rows, unparseable timestamps
3. Daily aggregation - today filter, distinct workers, global latest event
4. Compliance - rounding, clamping, tiers, headcount guard
5. End-to-end scenarios on a fixed "today"
6. Configuration loading and validation
"""

import unittest
import sys
import os
import logging
from datetime import date, datetime, timezone

# Suppress logging during tests
logging.disable(logging.CRITICAL)

# Add src to path for imports
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, os.path.join(PROJECT_ROOT, 'src'))

from hygiene_log import (
    parse_events,
    parse_row,
    parse_timestamp,
    resolve_column,
    resolve_headers,
    split_fields,
)
from daily_stats import aggregate_daily, local_today, payload_to_json, run_pipeline, sort_today_events
from compliance import compliance_percent, compliance_tier, present_compliance
from config import load_settings, validate_settings
from errors import ConfigurationError, RowParseError, SchemaError
from synthetic_data import generate_hygiene_log

TODAY = "2024-03-15"

SCENARIO_LOG = (
    "Name,Timestamp\n"
    "Alice,2024-03-15 08:00:00\n"
    "Bob,2024-03-15 08:05:00\n"
    "Alice,2024-03-14 09:00:00\n"
)


def make_event(name, timestamp):
    return parse_row([name, timestamp], {"name": 0, "timestamp": 1})


class TestHeaderResolver(unittest.TestCase):
    """Test mapping of logical fields to column positions"""

    def test_standard_header(self):
        """Test the collector's default header"""
        self.assertEqual(resolve_headers("Name,Timestamp"), {"name": 0, "timestamp": 1})

    def test_reordered_and_extra_columns(self):
        """Test that column order is free and extra columns are ignored"""
        header_map = resolve_headers("Station,Event Timestamp,ID,Worker Name")
        self.assertEqual(header_map, {"name": 3, "timestamp": 1})

    def test_case_and_whitespace_insensitive(self):
        """Test that labels are trimmed and lower-cased before matching"""
        header_map = resolve_headers("  WORKER NAME ,  TimeStamp \r")
        self.assertEqual(header_map, {"name": 0, "timestamp": 1})

    def test_first_matching_column_wins(self):
        """Test that the first label containing the key is used"""
        self.assertEqual(resolve_column(["name", "nickname", "timestamp"], "name"), 0)

    def test_missing_columns_raise_schema_error(self):
        """Test that a header without name/timestamp raises SchemaError"""
        with self.assertRaises(SchemaError):
            resolve_headers("X,Y")

    def test_missing_timestamp_only(self):
        """Test that one missing logical column is enough to fail"""
        with self.assertRaises(SchemaError):
            resolve_headers("Name,Date,Time")


class TestRecordParser(unittest.TestCase):
    """Test parsing raw log text into Events"""

    def test_split_fields_trims(self):
        """Test that every field is trimmed"""
        self.assertEqual(split_fields(" Alice , 2024-03-15 08:00:00 \r"), ["Alice", "2024-03-15 08:00:00"])

    def test_event_fields(self):
        """Test that an Event carries raw name, raw timestamp and date part"""
        event = make_event("Alice Moreau", "2024-03-15 08:00:00")
        self.assertEqual(event.worker_name, "Alice Moreau")
        self.assertEqual(event.timestamp_raw, "2024-03-15 08:00:00")
        self.assertEqual(event.date_part, "2024-03-15")
        self.assertIsInstance(event.epoch_millis, int)

    def test_epoch_millis_is_local_time(self):
        """Test that naive timestamps are read as local wall-clock time"""
        expected = int(datetime(2024, 3, 15, 8, 0, 0).timestamp() * 1000)
        self.assertEqual(parse_timestamp("2024-03-15 08:00:00"), expected)

    def test_unparseable_timestamp_returns_none(self):
        """Test that garbage timestamps are rejected"""
        self.assertIsNone(parse_timestamp("not-a-date"))
        self.assertIsNone(parse_timestamp(""))

    def test_relative_keywords_and_bare_words_rejected(self):
        """Test that now/today and a lone month name are not dates"""
        for raw in ("now", "today", "NOW", " Today ", "March"):
            self.assertIsNone(parse_timestamp(raw), raw)

    def test_non_date_rows_never_become_latest(self):
        """Test that now/today/month rows are dropped from counts and the latest event"""
        text = (
            "Name,Timestamp\n"
            "Alice,2024-03-15 08:00:00\n"
            "Carol,now\n"
            "Dan,today\n"
            "Erin,March\n"
        )
        self.assertEqual([e.worker_name for e in parse_events(text)], ["Alice"])
        result = run_pipeline(text, TODAY, 50)
        self.assertEqual(result["today_count"], 1)
        self.assertEqual(result["last_worker"], "Alice")
        self.assertEqual(result["last_timestamp_raw"], "2024-03-15 08:00:00")

    def test_iso_variants_still_parse(self):
        """Test date-only and offset timestamps"""
        self.assertIsNotNone(parse_timestamp("2024-03-15"))
        self.assertEqual(
            parse_timestamp("2024-03-15 08:00:00+00:00"),
            int(datetime(2024, 3, 15, 8, 0, 0, tzinfo=timezone.utc).timestamp() * 1000),
        )

    def test_parse_row_rejects_bad_timestamp(self):
        """Test that a bad timestamp raises RowParseError"""
        with self.assertRaises(RowParseError):
            make_event("Carol", "not-a-date")

    def test_parse_row_rejects_short_row(self):
        """Test that a row missing the resolved column raises RowParseError"""
        with self.assertRaises(RowParseError):
            parse_row(["Dana"], {"name": 0, "timestamp": 1})

    def test_name_not_normalized(self):
        """Test that inner case and spacing of names are kept"""
        events = parse_events("Name,Timestamp\n  aLiCe  van DAM ,2024-03-15 08:00:00\n")
        self.assertEqual(events[0].worker_name, "aLiCe  van DAM")

    def test_blank_and_short_rows_skipped(self):
        """Test that blank lines and short rows are dropped silently"""
        text = (
            "Name,Timestamp,Station\n"
            "\n"
            "Dana\n"
            "   \n"
            "Eve,2024-03-15 09:00:00\n"
        )
        events = parse_events(text)
        self.assertEqual([e.worker_name for e in events], ["Eve"])

    def test_order_of_appearance_preserved(self):
        """Test that events come back in file order"""
        events = parse_events(SCENARIO_LOG)
        self.assertEqual([e.worker_name for e in events], ["Alice", "Bob", "Alice"])

    def test_crlf_line_endings(self):
        """Test Windows line endings from the collector"""
        events = parse_events("Name,Timestamp\r\nAlice,2024-03-15 08:00:00\r\n")
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0].timestamp_raw, "2024-03-15 08:00:00")

    def test_schema_error_produces_no_events(self):
        """Test that a bad header aborts the whole document"""
        with self.assertRaises(SchemaError):
            parse_events("X,Y\nAlice,2024-03-15 08:00:00\n")

    def test_header_only(self):
        """Test that a header-only document yields no events"""
        self.assertEqual(parse_events("Name,Timestamp\n"), [])


class TestDailyAggregator(unittest.TestCase):
    """Test today filtering, distinct counts and the latest event"""

    def test_distinct_workers_today(self):
        """Test that repeat washes by one worker count once"""
        events = [
            make_event("Alice", "2024-03-15 08:00:00"),
            make_event("Alice", "2024-03-15 12:00:00"),
            make_event("Bob", "2024-03-15 08:05:00"),
        ]
        stats = aggregate_daily(events, TODAY)
        self.assertEqual(stats.today_count, 2)
        self.assertEqual(len(stats.today_events), 3)

    def test_names_are_case_sensitive(self):
        """Test that distinctness uses the exact name string"""
        events = [make_event("alice", "2024-03-15 08:00:00"), make_event("Alice", "2024-03-15 08:01:00")]
        self.assertEqual(aggregate_daily(events, TODAY).today_count, 2)

    def test_latest_event_is_global(self):
        """Test that the latest event may fall outside today"""
        events = [
            make_event("Alice", "2024-03-15 08:00:00"),
            make_event("Zed", "2024-03-16 06:00:00"),
        ]
        stats = aggregate_daily(events, TODAY)
        self.assertEqual(stats.today_count, 1)
        self.assertEqual(stats.last_worker, "Zed")
        self.assertEqual(stats.last_timestamp_raw, "2024-03-16 06:00:00")

    def test_latest_tie_first_occurrence_wins(self):
        """Test strict comparison on equal times"""
        events = [make_event("First", "2024-03-15 08:00:00"), make_event("Second", "2024-03-15 08:00:00")]
        self.assertEqual(aggregate_daily(events, TODAY).last_worker, "First")

    def test_no_events_uses_sentinels(self):
        """Test defaults when nothing was parsed"""
        stats = aggregate_daily([], TODAY)
        self.assertEqual(stats.today_count, 0)
        self.assertEqual(stats.last_worker, "None")
        self.assertEqual(stats.last_timestamp_raw, "No activity yet")
        self.assertEqual(stats.today_events, ())

    def test_today_match_is_lexical(self):
        """Test that a timestamp without the space separator never matches today"""
        events = [make_event("Alice", "2024-03-15T08:00:00")]
        stats = aggregate_daily(events, TODAY)
        self.assertEqual(stats.today_count, 0)
        self.assertEqual(stats.last_worker, "Alice")

    def test_sort_today_events_descending_and_stable(self):
        """Test most-recent-first ordering with ties kept in file order"""
        events = [
            make_event("A", "2024-03-15 08:00:00"),
            make_event("B", "2024-03-15 09:00:00"),
            make_event("C", "2024-03-15 08:00:00"),
        ]
        self.assertEqual([e.worker_name for e in sort_today_events(events)], ["B", "A", "C"])

    def test_local_today_format(self):
        """Test the today reference string"""
        self.assertEqual(local_today(datetime(2024, 3, 5, 23, 59)), "2024-03-05")


class TestCompliance(unittest.TestCase):
    """Test percentage and tier presentation"""

    def test_clamped_to_100(self):
        """Test that more workers than estimated caps at 100"""
        self.assertEqual(present_compliance(12, 10), {"percent": 100, "tier": "high"})

    def test_low_tier(self):
        """Test 9 of 20 workers"""
        self.assertEqual(present_compliance(9, 20), {"percent": 45, "tier": "low"})

    def test_half_rounds_up(self):
        """Test that .5 rounds up like the dashboard always has"""
        self.assertEqual(compliance_percent(1, 8), 13)   # 12.5
        self.assertEqual(compliance_percent(5, 8), 63)   # 62.5

    def test_zero_count(self):
        """Test nobody washed yet"""
        self.assertEqual(present_compliance(0, 50), {"percent": 0, "tier": "low"})

    def test_tier_boundaries(self):
        """Test the 80 / 50 thresholds"""
        self.assertEqual(compliance_tier(80), "high")
        self.assertEqual(compliance_tier(79), "medium")
        self.assertEqual(compliance_tier(50), "medium")
        self.assertEqual(compliance_tier(49), "low")

    def test_zero_estimate_raises(self):
        """Test that a zero headcount is a configuration error"""
        with self.assertRaises(ConfigurationError):
            compliance_percent(3, 0)
        with self.assertRaises(ConfigurationError):
            compliance_percent(3, -5)


class TestPipelineScenarios(unittest.TestCase):
    """End-to-end runs of the pipeline on a fixed today"""

    def test_scenario_mixed_days(self):
        """Test two workers today and the latest event overall"""
        result = run_pipeline(SCENARIO_LOG, TODAY, 50)
        self.assertEqual(result["today_count"], 2)
        self.assertEqual(result["last_worker"], "Bob")
        self.assertEqual(result["last_timestamp_raw"], "2024-03-15 08:05:00")
        self.assertEqual(
            [(e.worker_name, e.timestamp_raw) for e in result["today_events"]],
            [("Bob", "2024-03-15 08:05:00"), ("Alice", "2024-03-15 08:00:00")],
        )
        self.assertEqual(result["percent"], 4)
        self.assertEqual(result["tier"], "low")

    def test_scenario_header_only(self):
        """Test an empty log body"""
        result = run_pipeline("Name,Timestamp\n", TODAY, 50)
        self.assertEqual(result["today_count"], 0)
        self.assertEqual(result["last_worker"], "None")
        self.assertEqual(result["last_timestamp_raw"], "No activity yet")
        self.assertEqual(result["today_events"], [])

    def test_scenario_bad_row_dropped(self):
        """Test that Carol's bad timestamp is dropped and others survive"""
        text = SCENARIO_LOG + "Carol,not-a-date\n"
        result = run_pipeline(text, TODAY, 50)
        self.assertEqual(result["today_count"], 2)
        self.assertNotIn("Carol", [e.worker_name for e in result["today_events"]])
        self.assertEqual(result["last_worker"], "Bob")

    def test_scenario_bad_header(self):
        """Test that X,Y raises SchemaError"""
        with self.assertRaises(SchemaError):
            run_pipeline("X,Y\nAlice,2024-03-15 08:00:00\n", TODAY, 50)

    def test_idempotent(self):
        """Test that the same text twice gives identical output"""
        self.assertEqual(run_pipeline(SCENARIO_LOG, TODAY, 50), run_pipeline(SCENARIO_LOG, TODAY, 50))

    def test_payload_to_json(self):
        """Test that events become plain dicts for the JSON boundary"""
        payload = payload_to_json(run_pipeline(SCENARIO_LOG, TODAY, 50))
        self.assertEqual(payload["today_events"][0]["worker_name"], "Bob")
        self.assertIn("epoch_millis", payload["today_events"][0])

    def test_synthetic_log(self):
        """Test the pipeline on generated data with an extra Station column"""
        text = generate_hygiene_log(n_workers=10, days=3, end_date=date(2024, 3, 15), seed=7)
        result = run_pipeline(text, TODAY, 10)
        self.assertLessEqual(result["today_count"], 10)
        self.assertTrue(all(e.date_part == TODAY for e in result["today_events"]))
        millis = [e.epoch_millis for e in result["today_events"]]
        self.assertEqual(millis, sorted(millis, reverse=True))
        self.assertGreaterEqual(result["percent"], 0)
        self.assertLessEqual(result["percent"], 100)


class TestConfigValidation(unittest.TestCase):
    """Test startup configuration loading"""

    def test_defaults(self):
        """Test that an empty environment yields the defaults"""
        settings = load_settings(env={})
        self.assertEqual(settings["total_workers_estimate"], 50)
        self.assertEqual(settings["refresh_interval_ms"], 30000)
        self.assertTrue(settings["source_document"].endswith("LoginInfo.csv"))

    def test_env_overrides(self):
        """Test environment overrides"""
        settings = load_settings(env={
            "TOTAL_WORKERS_ESTIMATE": "20",
            "REFRESH_INTERVAL_MS": "5000",
            "SOURCE_DOCUMENT": "http://station.local/LoginInfo.csv",
        })
        self.assertEqual(settings["total_workers_estimate"], 20)
        self.assertEqual(settings["refresh_interval_ms"], 5000)
        self.assertEqual(settings["source_document"], "http://station.local/LoginInfo.csv")

    def test_relative_source_resolved_from_project_root(self):
        """Test that a relative locator does not depend on the working directory"""
        settings = load_settings(env={"SOURCE_DOCUMENT": "data/LoginInfo.csv"})
        self.assertEqual(settings["source_document"], os.path.join(PROJECT_ROOT, "data", "LoginInfo.csv"))
        self.assertEqual(load_settings(env={})["source_document"], settings["source_document"])

    def test_absolute_source_kept(self):
        """Test that an absolute path passes through unchanged"""
        path = os.path.join(PROJECT_ROOT, "data", "other.csv")
        self.assertEqual(load_settings(env={"SOURCE_DOCUMENT": path})["source_document"], path)

    def test_zero_headcount_is_fatal(self):
        """Test that a zero headcount raises ConfigurationError"""
        with self.assertRaises(ConfigurationError):
            load_settings(env={"TOTAL_WORKERS_ESTIMATE": "0"})

    def test_non_integer_is_fatal(self):
        """Test that a non-numeric value raises ConfigurationError"""
        with self.assertRaises(ConfigurationError):
            load_settings(env={"REFRESH_INTERVAL_MS": "thirty"})

    def test_validate_settings_rejects_empty_locator(self):
        """Test that the source locator must be set"""
        settings = load_settings(env={})
        settings["source_document"] = "  "
        with self.assertRaises(ConfigurationError):
            validate_settings(settings)


if __name__ == "__main__":
    unittest.main()
