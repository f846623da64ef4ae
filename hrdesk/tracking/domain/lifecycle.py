"""
Request Lifecycle
=================

Guards and effects for Start / Pause / Resume / End on one request record.

    NotStarted --Start--> InProgress --Pause--> Paused --Resume--> InProgress(Resumed)
    InProgress/Paused --End--> Completed --Start--> InProgress (reopen, fresh cycle)

``plan_transition`` is pure: it validates the action against the record and
returns every field change to write, or raises ``TransitionError`` without
touching anything.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from hrdesk.config import LifecycleAction, RequestStatus
from hrdesk.core import TransitionError
from hrdesk.tracking.domain.entities import RequestRecord


class LifecycleState(str):
    """Guard-level states; the Resumed status counts as in progress."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    COMPLETED = "completed"


_IN_PROGRESS_STATUSES = (RequestStatus.IN_PROGRESS, RequestStatus.RESUMED)


@dataclass
class TransitionPlan:
    """Field changes for one transition; ``None`` clears a field."""

    action: str
    previous_state: str
    status: str
    changes: Dict[str, Any] = field(default_factory=dict)
    elapsed_minutes: float = 0.0

    @property
    def tat_minutes(self) -> float:
        return self.changes.get("tat_minutes", 0.0)


def derive_state(record: RequestRecord) -> str:
    """
    Guard state from the status, falling back to the timestamps when the
    status text is blank or unrecognised.
    """
    status = (record.status or "").strip()
    if status == RequestStatus.COMPLETED or record.end is not None:
        return LifecycleState.COMPLETED
    if status == RequestStatus.PAUSED:
        return LifecycleState.PAUSED
    if status in _IN_PROGRESS_STATUSES:
        return LifecycleState.IN_PROGRESS

    if record.start is None:
        return LifecycleState.NOT_STARTED
    if record.pause is not None and (record.resume is None or _before(record.resume, record.pause)):
        return LifecycleState.PAUSED
    return LifecycleState.IN_PROGRESS


def _before(a: datetime, b: datetime) -> bool:
    return _align(a, b) < b


def _align(value: datetime, reference: datetime) -> datetime:
    """Give a naive timestamp the reference's timezone so the two compare."""
    if value.tzinfo is None and reference.tzinfo is not None:
        return value.replace(tzinfo=reference.tzinfo)
    if value.tzinfo is not None and reference.tzinfo is None:
        return value.replace(tzinfo=None)
    return value


def elapsed_minutes(anchor: Optional[datetime], now: datetime) -> float:
    """Minutes from ``anchor`` to ``now``, never negative."""
    if anchor is None:
        return 0.0
    seconds = (now - _align(anchor, now)).total_seconds()
    return max(round(seconds / 60, 2), 0.0)


def _accumulate(record: RequestRecord, now: datetime) -> tuple[float, float]:
    anchor = record.resume or record.start
    elapsed = elapsed_minutes(anchor, now)
    total = max(round((record.tat_minutes or 0.0) + elapsed, 2), 0.0)
    return elapsed, total


def plan_transition(
    record: RequestRecord,
    action: str,
    now: datetime,
    due_date: Optional[datetime] = None,
) -> TransitionPlan:
    """
    Validate ``action`` against ``record`` and compute its effects.

    Args:
        record: Current stored state of the request
        action: One of LifecycleAction
        now: Transition timestamp
        due_date: Due date to store on Start when the record has none

    Raises:
        TransitionError: action not allowed in the current state
    """
    state = derive_state(record)

    if action == LifecycleAction.START:
        if record.start is not None and state != LifecycleState.COMPLETED:
            raise TransitionError(record.request_id, action, record.status, "request is already started")
        changes: Dict[str, Any] = {
            "start": now,
            "pause": None,
            "resume": None,
            "end": None,
            "tat_minutes": 0.0,
            "total_tat_minutes": 0.0,
            "status": RequestStatus.IN_PROGRESS,
        }
        if record.request_date is None:
            changes["request_date"] = now
        if record.due_date is None and due_date is not None:
            changes["due_date"] = due_date
        return TransitionPlan(action, state, RequestStatus.IN_PROGRESS, changes)

    if action == LifecycleAction.PAUSE:
        if state != LifecycleState.IN_PROGRESS:
            raise TransitionError(record.request_id, action, record.status, "request is not in progress")
        elapsed, total = _accumulate(record, now)
        changes = {
            "pause": now,
            "tat_minutes": total,
            "total_tat_minutes": total,
            "status": RequestStatus.PAUSED,
        }
        return TransitionPlan(action, state, RequestStatus.PAUSED, changes, elapsed)

    if action == LifecycleAction.RESUME:
        if state != LifecycleState.PAUSED:
            raise TransitionError(record.request_id, action, record.status, "request is not paused")
        changes = {"resume": now, "status": RequestStatus.RESUMED}
        return TransitionPlan(action, state, RequestStatus.RESUMED, changes)

    if action == LifecycleAction.END:
        if state not in (LifecycleState.IN_PROGRESS, LifecycleState.PAUSED):
            raise TransitionError(record.request_id, action, record.status, "request is not in progress or paused")
        if state == LifecycleState.PAUSED:
            # The pause already closed the active window.
            elapsed, total = 0.0, max(round(record.tat_minutes or 0.0, 2), 0.0)
        else:
            elapsed, total = _accumulate(record, now)
        changes = {
            "end": now,
            "tat_minutes": total,
            "total_tat_minutes": total,
            "status": RequestStatus.COMPLETED,
        }
        return TransitionPlan(action, state, RequestStatus.COMPLETED, changes, elapsed)

    raise TransitionError(record.request_id, action, record.status, f"unknown action '{action}'")
