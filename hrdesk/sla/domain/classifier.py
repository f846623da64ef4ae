"""
SLA Classification
==================

Pure functions that bucket request records for reporting.

Records are read duck-typed (``getattr`` with defaults) so any object that
carries the request fields can be classified; malformed values count as
missing rather than raising.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from hrdesk.config import RequestStatus, SLABucket

MINUTES_PER_HOUR = 60.0

# (label, lower bound hours, upper bound hours)
TAT_HISTOGRAM_BANDS = (
    ("0-4h", 0, 4),
    ("4-8h", 4, 8),
    ("8-24h", 8, 24),
    ("24-48h", 24, 48),
    ("48-72h", 48, 72),
    ("72h+", 72, None),
)


def _as_datetime(value: Any) -> Optional[datetime]:
    return value if isinstance(value, datetime) else None


def _as_minutes(value: Any) -> float:
    try:
        minutes = float(value)
    except (TypeError, ValueError):
        return 0.0
    return max(minutes, 0.0)


def _comparable(a: datetime, b: datetime) -> bool:
    return (a.tzinfo is None) == (b.tzinfo is None)


@dataclass
class BucketCounts:
    """Counts per SLA bucket for one slice of the report."""

    closed_within: int = 0
    closed_exceeded: int = 0
    open_within: int = 0
    open_exceeded: int = 0
    reminder_due: int = 0
    tat_minutes_total: float = 0.0
    target_percent: float = 95.0

    def add(self, bucket: str, tat_minutes: float = 0.0) -> None:
        setattr(self, bucket, getattr(self, bucket) + 1)
        self.tat_minutes_total += tat_minutes

    def merge(self, other: "BucketCounts") -> None:
        for bucket in (SLABucket.CLOSED_WITHIN, SLABucket.CLOSED_EXCEEDED, SLABucket.OPEN_WITHIN,
                       SLABucket.OPEN_EXCEEDED, SLABucket.REMINDER_DUE):
            setattr(self, bucket, getattr(self, bucket) + getattr(other, bucket))
        self.tat_minutes_total += other.tat_minutes_total

    @property
    def total(self) -> int:
        return (self.closed_within + self.closed_exceeded + self.open_within
                + self.open_exceeded + self.reminder_due)

    @property
    def within(self) -> int:
        """Records that have not missed their SLA (reminder-due is still in time)."""
        return self.closed_within + self.open_within + self.reminder_due

    @property
    def compliance_percent(self) -> float:
        if self.total == 0:
            return 100.0
        return round(self.within / self.total * 100, 2)

    @property
    def meets_target(self) -> bool:
        return self.compliance_percent >= self.target_percent

    @property
    def average_tat_hours(self) -> float:
        if self.total == 0:
            return 0.0
        return round(self.tat_minutes_total / self.total / MINUTES_PER_HOUR, 2)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("tat_minutes_total")
        data.update({
            "total": self.total,
            "compliance_percent": self.compliance_percent,
            "meets_target": self.meets_target,
            "average_tat_hours": self.average_tat_hours,
        })
        return data


@dataclass
class TrendPoint:
    period: str
    submitted: int = 0
    completed: int = 0
    exceeded: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ServiceRollup:
    service: str
    totals: BucketCounts
    steps: Dict[str, BucketCounts] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "service": self.service,
            **self.totals.to_dict(),
            "process_steps": [
                {"process_step": step, **counts.to_dict()}
                for step, counts in sorted(self.steps.items())
            ],
        }


class SLAClassifier:
    """
    Stateless classification of one record into an SLA bucket.

    Closed records compare ``end`` against ``due_date``; without both, the
    accumulated TAT is compared against the SLA ceiling. Open records are
    reminder-due when the due date falls inside the reminder window.
    """

    def __init__(self, ceiling_hours: float = 48.0, reminder_window_hours: float = 24.0):
        self.ceiling_minutes = ceiling_hours * MINUTES_PER_HOUR
        self.reminder_window = timedelta(hours=reminder_window_hours)

    @staticmethod
    def is_closed(record: Any) -> bool:
        status = str(getattr(record, "status", "") or "").strip()
        return status == RequestStatus.COMPLETED or _as_datetime(getattr(record, "end", None)) is not None

    def active_minutes(self, record: Any, now: datetime) -> float:
        """Accumulated TAT plus the still-running window of an in-progress record."""
        minutes = _as_minutes(getattr(record, "tat_minutes", 0))
        if self.is_closed(record):
            return minutes

        status = str(getattr(record, "status", "") or "").strip()
        if status not in (RequestStatus.IN_PROGRESS, RequestStatus.RESUMED):
            return minutes
        anchor = _as_datetime(getattr(record, "resume", None)) or _as_datetime(getattr(record, "start", None))
        if anchor is None or not _comparable(anchor, now):
            return minutes
        return minutes + max((now - anchor).total_seconds() / 60, 0.0)

    def classify(self, record: Any, now: datetime) -> str:
        due = _as_datetime(getattr(record, "due_date", None))
        if due is not None and not _comparable(due, now):
            due = None

        if self.is_closed(record):
            end = _as_datetime(getattr(record, "end", None))
            if end is not None and due is not None and _comparable(end, due):
                return SLABucket.CLOSED_WITHIN if end <= due else SLABucket.CLOSED_EXCEEDED
            within = _as_minutes(getattr(record, "tat_minutes", 0)) <= self.ceiling_minutes
            return SLABucket.CLOSED_WITHIN if within else SLABucket.CLOSED_EXCEEDED

        if due is not None:
            if now > due:
                return SLABucket.OPEN_EXCEEDED
            if due - now <= self.reminder_window:
                return SLABucket.REMINDER_DUE
            return SLABucket.OPEN_WITHIN

        if self.active_minutes(record, now) > self.ceiling_minutes:
            return SLABucket.OPEN_EXCEEDED
        return SLABucket.OPEN_WITHIN


def histogram_band(tat_minutes: float) -> str:
    hours = tat_minutes / MINUTES_PER_HOUR
    for label, low, high in TAT_HISTOGRAM_BANDS:
        if high is None or low <= hours < high:
            return label
    return TAT_HISTOGRAM_BANDS[-1][0]


def empty_histogram() -> List[Dict[str, Any]]:
    return [{"band": label, "count": 0} for label, _, _ in TAT_HISTOGRAM_BANDS]
