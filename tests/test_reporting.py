"""
Tests for SLA classification and the reporting view.

The reporting clock is Monday 2024-06-03 09:00 Manila time.
"""

from datetime import datetime
from types import SimpleNamespace

import pytest

from hrdesk.config import SLABucket
from hrdesk.sla.domain import BucketCounts, SLAClassifier, histogram_band
from hrdesk.tracking.application import LogFilters
from tests.factories import manila

NOW = manila(2024, 6, 3, 9, 0)


def record(**fields):
    values = {
        "request_id": "ITM-7-0001",
        "service": "Employee Relations",
        "process_step": "Case Filing",
        "status": "Open",
        "request_date": manila(2024, 6, 1, 9),
        "due_date": None,
        "start": None,
        "resume": None,
        "end": None,
        "tat_minutes": 0.0,
    }
    values.update(fields)
    return SimpleNamespace(**values)


class Unreadable:
    request_id = "ITM-7-0099"

    @property
    def status(self):
        raise ValueError("corrupt row")


class TestClassifier:

    def setup_method(self):
        self.classifier = SLAClassifier(ceiling_hours=48, reminder_window_hours=24)

    def test_closed_before_due(self):
        r = record(status="Completed", end=manila(2024, 6, 2, 17), due_date=manila(2024, 6, 3, 9))
        assert self.classifier.classify(r, NOW) == SLABucket.CLOSED_WITHIN

    def test_closed_on_due_is_within(self):
        r = record(status="Completed", end=manila(2024, 6, 3, 9), due_date=manila(2024, 6, 3, 9))
        assert self.classifier.classify(r, NOW) == SLABucket.CLOSED_WITHIN

    def test_closed_after_due(self):
        r = record(status="Completed", end=manila(2024, 6, 3, 9, 1), due_date=manila(2024, 6, 3, 9))
        assert self.classifier.classify(r, NOW) == SLABucket.CLOSED_EXCEEDED

    def test_closed_without_due_uses_ceiling(self):
        fast = record(status="Completed", end=manila(2024, 6, 2), tat_minutes=48 * 60)
        slow = record(status="Completed", end=manila(2024, 6, 2), tat_minutes=48 * 60 + 1)
        assert self.classifier.classify(fast, NOW) == SLABucket.CLOSED_WITHIN
        assert self.classifier.classify(slow, NOW) == SLABucket.CLOSED_EXCEEDED

    def test_end_timestamp_alone_means_closed(self):
        r = record(status="", end=manila(2024, 6, 2), due_date=manila(2024, 6, 1))
        assert self.classifier.classify(r, NOW) == SLABucket.CLOSED_EXCEEDED

    def test_open_past_due(self):
        r = record(due_date=manila(2024, 6, 3, 8, 59))
        assert self.classifier.classify(r, NOW) == SLABucket.OPEN_EXCEEDED

    def test_open_due_inside_reminder_window(self):
        r = record(due_date=manila(2024, 6, 4, 9))
        assert self.classifier.classify(r, NOW) == SLABucket.REMINDER_DUE

    def test_open_due_later(self):
        r = record(due_date=manila(2024, 6, 4, 9, 1))
        assert self.classifier.classify(r, NOW) == SLABucket.OPEN_WITHIN

    def test_in_progress_without_due_counts_running_time(self):
        r = record(status="In Progress", start=manila(2024, 6, 1, 8), tat_minutes=0)
        assert self.classifier.active_minutes(r, NOW) == 49 * 60
        assert self.classifier.classify(r, NOW) == SLABucket.OPEN_EXCEEDED

    def test_paused_without_due_uses_stored_tat_only(self):
        r = record(status="Paused", start=manila(2024, 5, 1), tat_minutes=60)
        assert self.classifier.active_minutes(r, NOW) == 60
        assert self.classifier.classify(r, NOW) == SLABucket.OPEN_WITHIN

    def test_malformed_values_count_as_missing(self):
        r = record(due_date="next week", tat_minutes="n/a")
        assert self.classifier.classify(r, NOW) == SLABucket.OPEN_WITHIN

    def test_naive_due_date_is_ignored_against_aware_clock(self):
        r = record(due_date=datetime(2024, 6, 1))
        assert self.classifier.classify(r, NOW) == SLABucket.OPEN_WITHIN


class TestBucketCounts:

    def test_reminder_due_counts_towards_compliance(self):
        counts = BucketCounts()
        for bucket in (SLABucket.CLOSED_WITHIN, SLABucket.OPEN_WITHIN,
                       SLABucket.REMINDER_DUE, SLABucket.OPEN_EXCEEDED):
            counts.add(bucket)
        assert counts.total == 4
        assert counts.compliance_percent == 75.0
        assert not counts.meets_target

    def test_empty_is_fully_compliant(self):
        assert BucketCounts().compliance_percent == 100.0
        assert BucketCounts().average_tat_hours == 0.0

    @pytest.mark.parametrize("minutes, band", [
        (0, "0-4h"),
        (239, "0-4h"),
        (240, "4-8h"),
        (24 * 60, "24-48h"),
        (100 * 60, "72h+"),
    ])
    def test_histogram_band(self, minutes, band):
        assert histogram_band(minutes) == band


class TestReportingService:

    def test_report_sections(self, reporting):
        records = [
            record(status="Completed", end=manila(2024, 6, 2), due_date=manila(2024, 6, 3), tat_minutes=120),
            record(status="Completed", end=manila(2024, 6, 2), due_date=manila(2024, 6, 1), tat_minutes=600,
                   process_step="Investigation"),
            record(service="Payroll - Final Pay", due_date=manila(2024, 6, 3, 20),
                   request_date=manila(2024, 5, 20)),
            record(service="Payroll - Final Pay", due_date=manila(2024, 7, 3), request_date=None),
        ]
        report = reporting.classify_for_reporting(records)

        overall = report["overall"]
        assert overall["total"] == 4
        assert overall["closed_within"] == 1
        assert overall["closed_exceeded"] == 1
        assert overall["reminder_due"] == 1
        assert overall["open_within"] == 1
        assert overall["compliance_percent"] == 75.0

        services = {s["service"]: s for s in report["per_service"]}
        assert services["Employee Relations"]["total"] == 2
        steps = {s["process_step"] for s in services["Employee Relations"]["process_steps"]}
        assert steps == {"Case Filing", "Investigation"}
        assert services["Payroll - Final Pay"]["reminder_due"] == 1

        assert report["trend"] == [
            {"period": "2024-05", "submitted": 1, "completed": 0, "exceeded": 0},
            {"period": "2024-06", "submitted": 2, "completed": 2, "exceeded": 1},
        ]

        bands = {entry["band"]: entry["count"] for entry in report["tat_histogram"]}
        assert bands["0-4h"] == 1
        assert bands["8-24h"] == 1
        assert sum(bands.values()) == 2

    def test_filters_are_applied(self, reporting):
        records = [record(), record(service="Payroll - Final Pay")]
        report = reporting.classify_for_reporting(records, LogFilters(service="payroll"))
        assert report["overall"]["total"] == 1

    def test_unclassifiable_records_are_skipped(self, reporting):
        report = reporting.classify_for_reporting([Unreadable(), record()])
        assert report["overall"]["total"] == 1

    def test_empty_input(self, reporting):
        report = reporting.classify_for_reporting([])
        assert report["overall"]["total"] == 0
        assert report["per_service"] == []
        assert report["trend"] == []

    def test_reminders_due(self, reporting):
        due_soon = record(request_id="ITM-7-0002", due_date=manila(2024, 6, 3, 17))
        records = [record(due_date=manila(2024, 6, 10)), due_soon, Unreadable()]
        assert reporting.reminders_due(records) == [due_soon]
