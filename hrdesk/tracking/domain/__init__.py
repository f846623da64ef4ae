"""
Tracking Domain Layer
=====================

Contains:
- Entities: RequestRecord and the request-ID contract
- Lifecycle: guard states and transition planning

Pure Python business logic, no infrastructure.
"""

from hrdesk.tracking.domain.entities import (
    RequestRecord,
    derive_company,
    format_request_id,
    is_valid_account_code,
    normalize_request_id,
    parse_sequence,
)
from hrdesk.tracking.domain.lifecycle import (
    LifecycleState,
    TransitionPlan,
    derive_state,
    elapsed_minutes,
    plan_transition,
)

__all__ = [
    "RequestRecord",
    "derive_company",
    "format_request_id",
    "is_valid_account_code",
    "normalize_request_id",
    "parse_sequence",
    "LifecycleState",
    "TransitionPlan",
    "derive_state",
    "elapsed_minutes",
    "plan_transition",
]
