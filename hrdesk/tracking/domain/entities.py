"""
Tracking Domain Entities
========================

The request record and the request-ID contract.

A request ID is ``{companyCode}-{accountCode}-{seq:04d}``; the 3-letter
company code is the only authoritative source of a record's business unit.
"""

import re
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, Optional

from hrdesk.config import COMPANY_PREFIXES, RequestStatus

_REQUEST_ID = re.compile(r"^(?P<company>[A-Z]{3})-(?P<account>[A-Z0-9]+)-(?P<seq>\d+)$")
_ACCOUNT_CODE = re.compile(r"^[A-Z0-9]+$")


def normalize_request_id(request_id: Optional[str]) -> str:
    return (request_id or "").strip().upper()


def derive_company(request_id: Optional[str]) -> str:
    """Company for a request ID prefix, or "" when the prefix is unknown."""
    prefix = normalize_request_id(request_id).split("-", 1)[0]
    return COMPANY_PREFIXES.get(prefix, "")


def is_valid_account_code(account_code: Optional[str]) -> bool:
    """Account codes are letters and digits only, so an ID splits back into its parts."""
    return bool(_ACCOUNT_CODE.match((account_code or "").strip().upper()))


def format_request_id(company_code: str, account_code: str, sequence: int) -> str:
    return f"{company_code.strip().upper()}-{account_code.strip().upper()}-{sequence:04d}"


def parse_sequence(request_id: str, prefix: str) -> Optional[int]:
    """Sequence number of ``request_id`` when it belongs to ``{company}-{account}``."""
    match = _REQUEST_ID.match(normalize_request_id(request_id))
    if not match:
        return None
    if f"{match.group('company')}-{match.group('account')}" != prefix.upper():
        return None
    return int(match.group("seq"))


@dataclass
class RequestRecord:
    """
    One HR service request as held in a business unit's table.

    Lifecycle timestamps are set by exactly one transition each; TAT fields
    hold accumulated active minutes for the current start-to-end cycle.
    """

    request_id: str
    service: str = ""
    process_step: str = ""
    status: str = RequestStatus.OPEN
    company: str = ""

    request_date: Optional[datetime] = None
    due_date: Optional[datetime] = None

    start: Optional[datetime] = None
    pause: Optional[datetime] = None
    resume: Optional[datetime] = None
    end: Optional[datetime] = None

    tat_minutes: float = 0.0
    total_tat_minutes: float = 0.0

    details: str = ""
    remarks: str = ""

    email: str = ""
    employee_name: str = ""
    department: str = ""
    attachment_url: str = ""

    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def derived_company(self) -> str:
        return derive_company(self.request_id)

    @property
    def is_completed(self) -> bool:
        return self.status == RequestStatus.COMPLETED or self.end is not None

    @property
    def tat_hours(self) -> float:
        return round(self.tat_minutes / 60, 2)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("extra")
        for key, value in data.items():
            if isinstance(value, datetime):
                data[key] = value.isoformat()
        return data
