"""
Caller Context
==============

Explicit per-interaction context (who is calling, for which business unit).
Passed into every operation that needs it instead of process-wide state.
"""

from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, Field

from hrdesk.config import COMPANY_PREFIXES, UserRole, settings


class RequestContext(BaseModel):
    """Session details of the caller, scoped to one interaction."""

    email: str = Field(default="", description="Caller email")
    role: str = Field(default=UserRole.EMPLOYEE, description="Caller role")
    department: str = Field(default="", description="Caller department")
    company_code: str = Field(default="", description="3-letter company code of the caller")
    account_code: str = Field(default="", description="Account code used in request IDs")
    selected_company: Optional[str] = Field(
        default=None,
        description="Business unit the caller is currently working in"
    )
    employee_name: str = Field(default="", description="Caller display name")

    @property
    def company(self) -> str:
        return COMPANY_PREFIXES.get(self.company_code.strip().upper(), "")

    @classmethod
    def system(cls) -> "RequestContext":
        """Context for background jobs that must see every record."""
        return cls(email="system", role=UserRole.ADMIN)


def business_now() -> datetime:
    """Server clock in the business timezone."""
    return datetime.now(ZoneInfo(settings.timezone))
