"""
Tracking Application Services
=============================

Application services for HR service requests.

- SubmissionService: creates a request row with its ID and due date
- LifecycleService: Start / Pause / Resume / End under the store lock
- UnifiedLogService: cross-company log with de-duplication and access rules

Following SOLID principles:
- Single Responsibility: Each service has one clear purpose
- Dependency Inversion: Depend on abstractions (repositories), not concrete implementations
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, AsyncContextManager, Callable, Dict, Iterable, List, Optional, Sequence

from hrdesk.config import (
    VALID_ACTIONS,
    LifecycleAction,
    RequestStatus,
    UserRole,
)
from hrdesk.core import (
    RequestNotFoundException,
    Result,
    ValidationException,
)
from hrdesk.shared.context import RequestContext, business_now
from hrdesk.shared.infrastructure.logging import get_logger, log_latency
from hrdesk.sla.application.services import DueDateService
from hrdesk.tracking.domain import (
    RequestRecord,
    derive_company,
    format_request_id,
    is_valid_account_code,
    normalize_request_id,
    plan_transition,
)

logger = get_logger(__name__)

Clock = Callable[[], datetime]


# ========== Repository Interfaces (Dependency Inversion) ==========

@dataclass
class StoredRequest:
    """A request record together with its position in the company table."""
    row_number: int
    record: RequestRecord


class IRequestRepository(ABC):
    """Interface for request record access, one table per company."""

    @abstractmethod
    def companies(self) -> List[str]:
        """Companies with a configured table, in reading order."""

    @abstractmethod
    async def find(self, company: str, request_id: str) -> Optional[StoredRequest]:
        """First row of ``company`` whose request ID matches, or None."""

    @abstractmethod
    async def list_company(self, company: str) -> Result[List[RequestRecord]]:
        """All records of one company; failure when its table is unreadable."""

    @abstractmethod
    async def validate_columns(self, company: str, fields: Iterable[str]) -> None:
        """Raise MissingColumnException when ``company`` cannot store ``fields``."""

    @abstractmethod
    async def update(self, company: str, row_number: int, changes: Dict[str, Any]) -> None:
        """Write canonical field ``changes`` to one row."""

    @abstractmethod
    async def append(self, company: str, record: RequestRecord) -> int:
        """Append a record and return its row number."""

    @abstractmethod
    async def next_sequence(self, company: str, prefix: str) -> int:
        """Next free sequence number for ``{company_code}-{account_code}``."""


class IStoreLock(ABC):
    """Store-wide mutual exclusion for read-modify-write sequences."""

    @abstractmethod
    def hold(self, operation: str) -> AsyncContextManager[None]:
        """Acquire the lock for ``operation``; raises LockTimeoutException."""


class IBlobStore(ABC):
    """Interface for attachment storage."""

    @abstractmethod
    async def store(self, content: bytes, mime_type: str, name: str) -> str:
        """Persist ``content`` and return a URL for it."""


class IServiceCatalog(ABC):
    """Read access to the configured service catalog."""

    @abstractmethod
    def has_service(self, service: str) -> bool:
        """Whether ``service`` is listed in the catalog."""


# ========== Application Services ==========

class SubmissionService:
    """
    Creates new requests.

    Attachments are stored before the lock is taken; sequence allocation and
    the append happen under it.
    """

    def __init__(
        self,
        repository: IRequestRepository,
        lock: IStoreLock,
        due_dates: DueDateService,
        blob_store: Optional[IBlobStore] = None,
        catalog: Optional[IServiceCatalog] = None,
        clock: Clock = business_now,
    ):
        self._repo = repository
        self._lock = lock
        self._due_dates = due_dates
        self._blob_store = blob_store
        self._catalog = catalog
        self._clock = clock

    async def submit_request(
        self,
        service: str,
        process_step: str,
        details: str,
        submitter: RequestContext,
        attachment: Optional[Any] = None,
    ) -> Dict[str, Any]:
        """
        Submit a new request for the submitter's company.

        Args:
            service: Service name
            process_step: Process step within the service
            details: Free-text request details
            submitter: Caller context (company and account codes required)
            attachment: Optional object with ``filename``, ``mime_type`` and ``content()``

        Returns:
            Dict with request_id, company, due_date, due_date_rule and attachment_url

        Raises:
            ValidationException: missing service or unknown submitter codes
            LockTimeoutException: the store lock could not be acquired
        """
        service = (service or "").strip()
        process_step = (process_step or "").strip()
        if not service:
            raise ValidationException("Service is required", {"field": "service"})

        company_code = (submitter.company_code or "").strip().upper()
        account_code = (submitter.account_code or "").strip().upper()
        company = submitter.company
        if not company:
            raise ValidationException(
                f"Unknown company code '{company_code}'",
                {"field": "company_code"}
            )
        if not account_code:
            raise ValidationException("Account code is required", {"field": "account_code"})
        if not is_valid_account_code(account_code):
            raise ValidationException(
                f"Account code '{account_code}' must contain only letters and digits",
                {"field": "account_code"}
            )

        if self._catalog is not None and not self._catalog.has_service(service):
            logger.warning(
                "Service not in catalog",
                extra={"service": service, "company": company}
            )

        attachment_url = ""
        if attachment is not None and self._blob_store is not None:
            attachment_url = await self._blob_store.store(
                attachment.content(),
                attachment.mime_type,
                f"{company_code}-{account_code}-{attachment.filename}",
            )

        now = self._clock()
        prefix = f"{company_code}-{account_code}"

        async with self._lock.hold("Submit"):
            sequence = await self._repo.next_sequence(company, prefix)
            request_id = format_request_id(company_code, account_code, sequence)
            due = self._due_dates.evaluate(service, process_step, now, request_id=request_id)

            record = RequestRecord(
                request_id=request_id,
                service=service,
                process_step=process_step,
                status=RequestStatus.OPEN,
                company=company,
                request_date=now,
                due_date=due.due_date,
                details=details or "",
                email=submitter.email,
                employee_name=submitter.employee_name,
                department=submitter.department,
                attachment_url=attachment_url,
            )
            row_number = await self._repo.append(company, record)

        logger.info(
            "Request submitted",
            extra={
                "request_id": request_id,
                "company": company,
                "service": service,
                "process_step": process_step,
                "due_date_rule": due.rule,
                "row_number": row_number,
            }
        )

        return {
            "request_id": request_id,
            "company": company,
            "due_date": due.due_date,
            "due_date_rule": due.rule,
            "attachment_url": attachment_url or None,
        }


class LifecycleService:
    """
    Applies lifecycle actions to stored requests.

    The whole find / plan / write / re-read sequence runs under the store
    lock so two actions on the same store never interleave.
    """

    def __init__(
        self,
        repository: IRequestRepository,
        lock: IStoreLock,
        due_dates: DueDateService,
        clock: Clock = business_now,
    ):
        self._repo = repository
        self._lock = lock
        self._due_dates = due_dates
        self._clock = clock

    async def perform(
        self,
        action: str,
        request_id: str,
        context: RequestContext,
        service: Optional[str] = None,
        process_step: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> RequestRecord:
        """
        Perform ``action`` on ``request_id``.

        Args:
            action: Start, Pause, Resume or End
            request_id: Request ID; its prefix selects the company table
            context: Caller context
            service: Fills a blank service, used for the due date on Start
            process_step: Fills a blank process step
            remarks: Written to the record when non-empty

        Returns:
            The record as re-read from the store after the write

        Raises:
            ValidationException: bad action, empty ID, unknown prefix, company mismatch
            RequestNotFoundException: no row carries the request ID
            TransitionError: action not allowed in the current state
            LockTimeoutException: the store lock could not be acquired
            MissingColumnException: the table cannot store the lifecycle fields
        """
        action = (action or "").strip().capitalize()
        if action not in VALID_ACTIONS:
            raise ValidationException(
                f"Unknown lifecycle action '{action}'",
                {"action": action, "allowed": VALID_ACTIONS}
            )

        request_id = normalize_request_id(request_id)
        if not request_id:
            raise ValidationException(f"Cannot {action}: request ID is required", {"action": action})

        company = derive_company(request_id)
        if not company:
            raise ValidationException(
                f"Cannot {action}: unknown company prefix in '{request_id}'",
                {"action": action, "request_id": request_id}
            )

        selected = (context.selected_company or "").strip()
        if selected and selected.lower() != company.lower():
            raise ValidationException(
                f"Cannot {action}: request '{request_id}' belongs to {company}, "
                f"not the selected company {selected}",
                {"action": action, "request_id": request_id, "company": company}
            )

        with log_latency(logger, "lifecycle_action", action=action, request_id=request_id):
            async with self._lock.hold(action):
                return await self._apply(action, request_id, company, service, process_step, remarks, context)

    async def _apply(
        self,
        action: str,
        request_id: str,
        company: str,
        service: Optional[str],
        process_step: Optional[str],
        remarks: Optional[str],
        context: RequestContext,
    ) -> RequestRecord:
        stored = await self._repo.find(company, request_id)
        if stored is None:
            raise RequestNotFoundException(request_id, company, action)

        record = stored.record
        now = self._clock()

        service_fill = (service or "").strip()
        step_fill = (process_step or "").strip()
        effective_service = record.service or service_fill
        effective_step = record.process_step or step_fill

        due_date = None
        if action == LifecycleAction.START and record.due_date is None:
            anchor = record.request_date or now
            due_date = self._due_dates.evaluate(
                effective_service, effective_step, anchor, request_id=request_id
            ).due_date

        plan = plan_transition(record, action, now, due_date=due_date)

        changes = dict(plan.changes)
        if remarks and remarks.strip():
            changes["remarks"] = remarks.strip()
        if not record.service and service_fill:
            changes["service"] = service_fill
        if not record.process_step and step_fill:
            changes["process_step"] = step_fill

        await self._repo.validate_columns(company, changes.keys())
        await self._repo.update(company, stored.row_number, changes)

        refreshed = await self._repo.find(company, request_id)
        result = refreshed.record if refreshed is not None else record

        logger.info(
            "Lifecycle transition applied",
            extra={
                "request_id": request_id,
                "company": company,
                "action": action,
                "from_state": plan.previous_state,
                "status": plan.status,
                "elapsed_minutes": plan.elapsed_minutes,
                "tat_minutes": result.tat_minutes,
                "user": context.email,
            }
        )
        return result


class UnifiedLogService:
    """Cross-company request log."""

    def __init__(self, repository: IRequestRepository):
        self._repo = repository

    async def collect(self) -> List[RequestRecord]:
        """
        Every readable company table, tagged and de-duplicated.

        A table that cannot be read is logged and skipped.
        """
        records: List[RequestRecord] = []
        for company in self._repo.companies():
            result = await self._repo.list_company(company)
            if not result.is_ok:
                logger.warning(
                    "Skipping unreadable company table",
                    extra={"company": company, "error": str(result.error)}
                )
                continue
            for record in result.unwrap():
                if not (record.company or "").strip():
                    record.company = company
                records.append(record)
        return self.deduplicate(records)

    async def get_unified_log(
        self,
        context: RequestContext,
        filters: Optional[Any] = None,
    ) -> List[RequestRecord]:
        """
        Unified log visible to ``context``.

        Args:
            context: Caller context; employees and department heads see a subset
            filters: Optional object with ``matches(record) -> bool``
        """
        records = await self.collect()
        if filters is not None:
            records = [r for r in records if filters.matches(r)]
        visible = filter_by_role(records, context)
        logger.debug(
            "Unified log assembled",
            extra={"total": len(records), "visible": len(visible), "role": context.role}
        )
        return visible

    @staticmethod
    def deduplicate(records: Sequence[RequestRecord]) -> List[RequestRecord]:
        """
        Keep the first record per (company, request ID, start, end, status).

        The company comes from the request-ID prefix when it is known, so
        one snapshot stored in two unit tables collapses to one record.
        """
        seen = set()
        unique: List[RequestRecord] = []
        for record in records:
            key = (
                (record.derived_company or record.company or "").strip().lower(),
                normalize_request_id(record.request_id),
                record.start,
                record.end,
                (record.status or "").strip(),
            )
            if key in seen:
                continue
            seen.add(key)
            unique.append(record)
        dropped = len(records) - len(unique)
        if dropped:
            logger.info("Dropped duplicate log rows", extra={"duplicates": dropped})
        return unique


def filter_by_role(records: Iterable[RequestRecord], context: RequestContext) -> List[RequestRecord]:
    """Apply the caller's visibility rule."""
    role = (context.role or "").strip().lower()
    if role == UserRole.EMPLOYEE:
        email = (context.email or "").strip().lower()
        return [r for r in records if email and (r.email or "").strip().lower() == email]
    if role == UserRole.DEPARTMENT_HEAD:
        department = (context.department or "").strip().lower()
        return [r for r in records if department and (r.department or "").strip().lower() == department]
    return list(records)
