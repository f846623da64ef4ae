"""
SLA Services
============

Background SLA evaluation.

The reminder sweep coordinates the unified log with the reporting
classifier and logs every open request that is due within the reminder
window. It does not notify anyone; the log line is the reminder.
"""

from typing import List

from hrdesk.shared.context import RequestContext
from hrdesk.shared.infrastructure.logging import get_logger, log_latency
from hrdesk.sla.application.services import ReportingService
from hrdesk.tracking.application.services import UnifiedLogService
from hrdesk.tracking.domain import RequestRecord

logger = get_logger(__name__)


class ReminderSweep:
    """
    Finds reminder-due requests across all companies.

    This service:
    1. Collects the unified log with system visibility
    2. Classifies every record
    3. Logs one warning per reminder-due record
    """

    def __init__(self, unified_log: UnifiedLogService, reporting: ReportingService):
        self._unified_log = unified_log
        self._reporting = reporting

    async def evaluate(self) -> dict:
        """
        Run one sweep.

        Returns:
            Summary of the sweep
        """
        with log_latency(logger, "reminder_sweep"):
            records = await self._unified_log.get_unified_log(RequestContext.system())
            due: List[RequestRecord] = self._reporting.reminders_due(records)

            for record in due:
                logger.warning(
                    "Request due soon",
                    extra={
                        "request_id": record.request_id,
                        "company": record.company,
                        "service": record.service,
                        "due_date": record.due_date.isoformat() if record.due_date else None,
                        "status": record.status,
                    }
                )

        return {
            "records_evaluated": len(records),
            "reminders_due": len(due),
        }

    async def __call__(self) -> None:
        await self.evaluate()
