"""
Tracking Infrastructure Repositories
====================================

Request repository over the row store.

Rows are resolved through the column aliases into ``RequestRecord``
objects; writes go to the first alias column each table actually has.
Timestamps read back as text (legacy rows) are parsed in the business
timezone.
"""

from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional
from zoneinfo import ZoneInfo

from hrdesk.config import RequestStatus, settings
from hrdesk.core import ConfigurationException, RepositoryException, Result
from hrdesk.shared.infrastructure.logging import get_logger
from hrdesk.tracking.application.services import IRequestRepository, StoredRequest
from hrdesk.tracking.domain import RequestRecord, normalize_request_id, parse_sequence
from hrdesk.tracking.infrastructure.columns import (
    COLUMN_ALIASES,
    DEFAULT_HEADERS,
    TableLayout,
    is_blank,
    resolve_row,
    unmapped_columns,
)
from hrdesk.tracking.infrastructure.row_store import IRowStore, SheetRow

logger = get_logger(__name__)

_TIMESTAMP_FORMATS = (
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
    "%Y-%m-%d %H:%M:%S",
)

_TIMESTAMP_FIELDS = ("request_date", "due_date", "start", "pause", "resume", "end")


def parse_timestamp(value: Any, tz: Optional[ZoneInfo] = None) -> Optional[datetime]:
    """
    Parse a stored cell into a datetime.

    Accepts datetimes, dates, ISO text and the spreadsheet display formats.
    Naive results get ``tz``. Anything else is treated as absent.
    """
    if is_blank(value):
        return None

    parsed: Optional[datetime] = None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            for fmt in _TIMESTAMP_FORMATS:
                try:
                    parsed = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue

    if parsed is None:
        return None
    if parsed.tzinfo is None and tz is not None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def parse_minutes(value: Any) -> float:
    """TAT cell as minutes; malformed or negative values read as 0."""
    if is_blank(value) or isinstance(value, bool):
        return 0.0
    try:
        minutes = float(str(value).replace(",", "").strip())
    except ValueError:
        return 0.0
    return max(round(minutes, 2), 0.0)


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


class RowStoreRequestRepository(IRequestRepository):
    """
    IRequestRepository backed by an IRowStore, one table per company.

    Args:
        row_store: Tabular datastore
        company_tables: Table name per company
        timezone: Zone attached to naive stored timestamps
    """

    def __init__(
        self,
        row_store: IRowStore,
        company_tables: Optional[Mapping[str, str]] = None,
        timezone: Optional[str] = None,
    ):
        self._store = row_store
        self._tables = dict(company_tables if company_tables is not None else settings.company_tables)
        self._tz = ZoneInfo(timezone or settings.timezone)

    # ========== Layout ==========

    def companies(self) -> List[str]:
        return list(self._tables)

    def table_for(self, company: str) -> str:
        for name, table in self._tables.items():
            if name.lower() == (company or "").lower():
                return table
        raise ConfigurationException(
            f"No request table configured for company '{company}'",
            {"company": company}
        )

    async def _layout(self, company: str) -> TableLayout:
        table = self.table_for(company)
        headers = (await self._store.read_headers(table)).unwrap()
        return TableLayout(table, headers)

    async def ensure_tables(self) -> None:
        """Create any missing company table with the default header row."""
        for table in self._tables.values():
            await self._store.ensure_table(table, DEFAULT_HEADERS)

    # ========== Reads ==========

    def to_record(self, row: SheetRow) -> RequestRecord:
        fields = resolve_row(row.raw)
        record = RequestRecord(
            request_id=normalize_request_id(_text(fields.get("request_id"))),
            service=_text(fields.get("service")),
            process_step=_text(fields.get("process_step")),
            status=_text(fields.get("status")) or RequestStatus.OPEN,
            company=_text(fields.get("company")),
            tat_minutes=parse_minutes(fields.get("tat_minutes")),
            total_tat_minutes=parse_minutes(fields.get("total_tat_minutes")),
            details=_text(fields.get("details")),
            remarks=_text(fields.get("remarks")),
            email=_text(fields.get("email")),
            employee_name=_text(fields.get("employee_name")),
            department=_text(fields.get("department")),
            attachment_url=_text(fields.get("attachment_url")),
            extra=unmapped_columns(row.raw),
        )
        for name in _TIMESTAMP_FIELDS:
            setattr(record, name, parse_timestamp(fields.get(name), self._tz))
        return record

    async def _stored(self, company: str) -> List[StoredRequest]:
        table = self.table_for(company)
        rows = await self._store.list_rows(table)
        return [StoredRequest(row.row_number, self.to_record(row)) for row in rows]

    async def find(self, company: str, request_id: str) -> Optional[StoredRequest]:
        wanted = normalize_request_id(request_id)
        for stored in await self._stored(company):
            if stored.record.request_id == wanted:
                return stored
        return None

    async def list_company(self, company: str) -> Result[List[RequestRecord]]:
        try:
            (await self._store.read_headers(self.table_for(company))).unwrap()
            stored = await self._stored(company)
        except (RepositoryException, ConfigurationException) as e:
            return Result.fail(e)
        return Result.ok([s.record for s in stored if s.record.request_id])

    async def next_sequence(self, company: str, prefix: str) -> int:
        highest = 0
        for stored in await self._stored(company):
            sequence = parse_sequence(stored.record.request_id, prefix)
            if sequence is not None and sequence > highest:
                highest = sequence
        return highest + 1

    # ========== Writes ==========

    async def validate_columns(self, company: str, fields: Iterable[str]) -> None:
        layout = await self._layout(company)
        layout.validate(fields)

    async def update(self, company: str, row_number: int, changes: Dict[str, Any]) -> None:
        layout = await self._layout(company)
        values = {layout.require(name): value for name, value in changes.items()}
        await self._store.write_cells(layout.table, row_number, values)
        logger.debug(
            "Request row updated",
            extra={"table": layout.table, "row_number": row_number, "fields": sorted(changes)}
        )

    async def append(self, company: str, record: RequestRecord) -> int:
        layout = await self._layout(company)
        layout.require("request_id")

        values: Dict[str, Any] = {}
        for name in COLUMN_ALIASES:
            header = layout.column_for(name)
            if header is None:
                continue
            value = getattr(record, name)
            if value is None or value == "":
                continue
            values[header] = value
        return await self._store.append_row(layout.table, values)
