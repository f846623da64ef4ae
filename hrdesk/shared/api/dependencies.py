"""
Shared API Dependencies
=======================

FastAPI dependencies shared by all routers.

Authentication happens upstream; the caller's identity arrives in
``X-User-*`` headers and is turned into an explicit ``RequestContext``.
"""

from typing import Optional

from fastapi import Header

from hrdesk.config import VALID_ROLES, UserRole
from hrdesk.core import ValidationException
from hrdesk.shared.context import RequestContext


async def get_request_context(
    x_user_email: str = Header(default="", description="Caller email"),
    x_user_role: str = Header(default=UserRole.EMPLOYEE, description="Caller role"),
    x_user_department: str = Header(default="", description="Caller department"),
    x_user_name: str = Header(default="", description="Caller display name"),
    x_company_code: str = Header(default="", description="3-letter company code"),
    x_account_code: str = Header(default="", description="Account code for request IDs"),
    x_selected_company: Optional[str] = Header(default=None, description="Selected business unit"),
) -> RequestContext:
    """Build the caller context from the session headers."""
    role = (x_user_role or UserRole.EMPLOYEE).strip().lower()
    if role not in VALID_ROLES:
        raise ValidationException(
            f"Unknown role '{x_user_role}'",
            {"allowed": VALID_ROLES}
        )
    return RequestContext(
        email=x_user_email.strip(),
        role=role,
        department=x_user_department.strip(),
        company_code=x_company_code.strip().upper(),
        account_code=x_account_code.strip(),
        selected_company=(x_selected_company or "").strip() or None,
        employee_name=x_user_name.strip(),
    )
