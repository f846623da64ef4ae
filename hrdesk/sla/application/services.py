"""
SLA Application Services
=========================

Application services for due dates and SLA reporting.

- DueDateService: evaluates the rule catalog and raises the visibility of
  required services that produced no due date
- ReportingService: turns request records into compliance reports
"""

from collections import OrderedDict
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from hrdesk.config import SLABucket, settings
from hrdesk.shared.context import business_now
from hrdesk.shared.infrastructure.logging import get_logger, log_anomaly
from hrdesk.sla.domain import (
    BucketCounts,
    DueDateResult,
    ServiceRollup,
    SLAClassifier,
    TrendPoint,
    empty_histogram,
    evaluate_due_date,
    histogram_band,
    is_due_date_required,
)

logger = get_logger(__name__)

Clock = Callable[[], datetime]


class DueDateService:
    """Due-date lookups shared by submission, Start and the preview endpoint."""

    def evaluate(
        self,
        service: Optional[str],
        process_step: Optional[str],
        request_date: Any,
        request_id: Optional[str] = None,
    ) -> DueDateResult:
        """
        Evaluate the rule catalog for one request.

        A required service without a due date is logged as an anomaly; the
        result is returned either way.
        """
        result = evaluate_due_date(service, process_step, request_date)
        if result.due_date is None and is_due_date_required(service):
            log_anomaly(
                logger,
                "due_date_missing",
                "Due date required but no rule matched",
                service=service,
                process_step=process_step,
                request_id=request_id,
            )
        return result

    def is_required(self, service: Optional[str]) -> bool:
        return is_due_date_required(service)


class ReportingService:
    """
    Classifies records into SLA buckets and assembles the reporting view.

    Never raises on bad data: records that cannot be classified are skipped.
    """

    def __init__(
        self,
        classifier: Optional[SLAClassifier] = None,
        target_percent: Optional[float] = None,
        clock: Clock = business_now,
    ):
        self._classifier = classifier or SLAClassifier(
            ceiling_hours=settings.sla_ceiling_hours,
            reminder_window_hours=settings.reminder_window_hours,
        )
        self._target = settings.compliance_target_percent if target_percent is None else target_percent
        self._clock = clock

    def classify(self, record: Any, now: Optional[datetime] = None) -> str:
        return self._classifier.classify(record, now or self._clock())

    def reminders_due(self, records: Iterable[Any]) -> List[Any]:
        now = self._clock()
        return [r for r in records if self._safe_classify(r, now) == SLABucket.REMINDER_DUE]

    def classify_for_reporting(self, records: Iterable[Any], filters: Any = None) -> Dict[str, Any]:
        """
        Build ``{overall, per_service, trend, tat_histogram}`` for ``records``.

        Args:
            records: Request records (any objects with the request fields)
            filters: Optional object with ``matches(record) -> bool``
        """
        now = self._clock()
        overall = self._counts()
        per_service: "OrderedDict[str, ServiceRollup]" = OrderedDict()
        trend: Dict[str, TrendPoint] = {}
        histogram = empty_histogram()
        band_index = {entry["band"]: entry for entry in histogram}
        skipped = 0

        for record in records:
            if filters is not None and not filters.matches(record):
                continue
            bucket = self._safe_classify(record, now)
            if bucket is None:
                skipped += 1
                continue

            tat = self._classifier.active_minutes(record, now)
            overall.add(bucket, tat)

            service = (getattr(record, "service", "") or "").strip() or "(unspecified)"
            step = (getattr(record, "process_step", "") or "").strip() or "(unspecified)"
            rollup = per_service.get(service)
            if rollup is None:
                rollup = per_service[service] = ServiceRollup(service, self._counts())
            rollup.totals.add(bucket, tat)
            rollup.steps.setdefault(step, self._counts()).add(bucket, tat)

            self._add_trend(trend, record, bucket)

            if self._classifier.is_closed(record):
                band_index[histogram_band(tat)]["count"] += 1

        if skipped:
            logger.warning("Skipped unclassifiable records", extra={"skipped": skipped})

        return {
            "overall": overall.to_dict(),
            "per_service": [rollup.to_dict() for rollup in per_service.values()],
            "trend": [trend[period].to_dict() for period in sorted(trend)],
            "tat_histogram": histogram,
        }

    def _counts(self) -> BucketCounts:
        return BucketCounts(target_percent=self._target)

    def _safe_classify(self, record: Any, now: datetime) -> Optional[str]:
        try:
            return self._classifier.classify(record, now)
        except (TypeError, ValueError, AttributeError) as e:
            logger.debug(
                "Record not classifiable",
                extra={"request_id": getattr(record, "request_id", None), "error": str(e)}
            )
            return None

    @staticmethod
    def _add_trend(trend: Dict[str, TrendPoint], record: Any, bucket: str) -> None:
        requested = getattr(record, "request_date", None)
        if not isinstance(requested, datetime):
            return
        period = requested.strftime("%Y-%m")
        point = trend.setdefault(period, TrendPoint(period))
        point.submitted += 1
        if bucket in (SLABucket.CLOSED_WITHIN, SLABucket.CLOSED_EXCEEDED):
            point.completed += 1
        if bucket in (SLABucket.CLOSED_EXCEEDED, SLABucket.OPEN_EXCEEDED):
            point.exceeded += 1
