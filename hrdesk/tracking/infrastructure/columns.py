"""
Column Aliases
==============

Request tables accumulated several header spellings over time. Each
canonical field declares its accepted headers in priority order; reads take
the first non-empty alias, writes target the first alias the table has.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from hrdesk.core import MissingColumnException

COLUMN_ALIASES: Dict[str, Tuple[str, ...]] = {
    "request_id": ("Request ID", "RequestID", "Request No", "Ticket ID"),
    "company": ("Company", "Business Unit", "BU"),
    "service": ("Service", "Service Name", "HR Service"),
    "process_step": ("Process Step", "Process", "Sub Process", "Subprocess"),
    "request_date": ("Request Date", "Date Requested", "Timestamp", "Date Submitted"),
    "due_date": ("Due Date", "SLA Due Date", "Target Date"),
    "status": ("Status", "Request Status"),
    "start": ("Start", "Start Time", "Started At"),
    "pause": ("Pause", "Pause Time", "Paused At"),
    "resume": ("Resume", "Resume Time", "Resumed At"),
    "end": ("End", "End Time", "Ended At", "Completed At"),
    "tat_minutes": ("TAT (mins)", "TAT", "TAT Minutes"),
    "total_tat_minutes": ("Total TAT (mins)", "Total TAT", "Total TAT Minutes"),
    "details": ("Details", "Request Details", "Description"),
    "remarks": ("Remarks", "Notes", "Comments"),
    "email": ("Email", "Email Address", "Requestor Email", "Employee Email"),
    "employee_name": ("Employee Name", "Name", "Requestor"),
    "department": ("Department", "Dept"),
    "attachment_url": ("Attachment", "Attachment URL", "File"),
}

# Header row written when a table is created
DEFAULT_HEADERS: List[str] = [aliases[0] for aliases in COLUMN_ALIASES.values()]

# Fields a lifecycle transition writes; tables without them are misconfigured
LIFECYCLE_FIELDS = (
    "request_id", "status", "start", "pause", "resume", "end",
    "tat_minutes", "total_tat_minutes",
)


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class TableLayout:
    """Header lookup for one table, case-insensitive on exact header text."""

    def __init__(self, table: str, headers: Iterable[str]):
        self.table = table
        self.headers = [h for h in headers if h]
        self._by_lower = {h.strip().lower(): h for h in self.headers}

    def column_for(self, field: str) -> Optional[str]:
        """Actual header text for ``field``, or None when the table lacks it."""
        for alias in COLUMN_ALIASES[field]:
            header = self._by_lower.get(alias.lower())
            if header is not None:
                return header
        return None

    def require(self, field: str) -> str:
        header = self.column_for(field)
        if header is None:
            raise MissingColumnException(self.table, field, list(COLUMN_ALIASES[field]))
        return header

    def validate(self, fields: Iterable[str] = LIFECYCLE_FIELDS) -> None:
        """Fail fast when any of ``fields`` has no column."""
        for field in fields:
            self.require(field)


def resolve_row(values: Mapping[str, Any]) -> Dict[str, Any]:
    """Map one row's ``{header: value}`` to ``{field: value}``, first non-empty alias wins."""
    by_lower = {str(k).strip().lower(): v for k, v in values.items()}
    resolved: Dict[str, Any] = {}
    for field, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            value = by_lower.get(alias.lower())
            if not is_blank(value):
                resolved[field] = value
                break
    return resolved


def unmapped_columns(values: Mapping[str, Any]) -> Dict[str, Any]:
    """Columns of a row that no canonical field claims."""
    known = {alias.lower() for aliases in COLUMN_ALIASES.values() for alias in aliases}
    return {k: v for k, v in values.items() if str(k).strip().lower() not in known}
