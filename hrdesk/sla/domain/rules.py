"""
Due-Date Rule Catalog
=====================

Ordered dispatch table mapping (service, process step) to a date policy.

Rules are evaluated top to bottom and the first match wins, so specific
services must stay above the generic ones they overlap with (for example
``headcount_report`` above ``monthly_report`` above ``report``, and
``overtime_unplanned`` above ``overtime_planned`` because "unplanned"
contains "planned").
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Optional, Tuple

from hrdesk.sla.domain import calendar as cal
from hrdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

ServicePredicate = Callable[[str], bool]
DateFn = Callable[[datetime], datetime]

NO_MATCH = "no_match"

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class DueDateRule:
    """One entry of the catalog: which requests it claims and how it dates them."""

    name: str
    service: ServicePredicate
    compute: DateFn
    step: Optional[re.Pattern] = None

    def matches(self, service: str, step: str) -> bool:
        if not self.service(service):
            return False
        if self.step is not None and not self.step.search(step):
            return False
        return True


@dataclass(frozen=True)
class DueDateResult:
    rule: str
    due_date: Optional[datetime]

    @property
    def matched(self) -> bool:
        return self.rule != NO_MATCH


def normalize_service(service: Optional[str]) -> str:
    return _WHITESPACE.sub(" ", (service or "").strip().lower())


def normalize_step(step: Optional[str]) -> str:
    return (step or "").strip().lower()


# ========== Predicate / policy builders ==========

def _any(*keywords: str) -> ServicePredicate:
    return lambda service: any(k in service for k in keywords)


def _all(*keywords: str) -> ServicePredicate:
    return lambda service: all(k in service for k in keywords)


def _word(keyword: str) -> ServicePredicate:
    pattern = re.compile(rf"\b{re.escape(keyword)}\b")
    return lambda service: bool(pattern.search(service))


def _step(pattern: str) -> re.Pattern:
    return re.compile(pattern)


def _wd(days: int) -> DateFn:
    return lambda d: cal.add_working_days(d, days)


def _cd(days: int) -> DateFn:
    return lambda d: cal.add_calendar_days(d, days)


def _on(month: int, day: int) -> DateFn:
    return lambda d: cal.next_month_day(d, month, day)


def _first_of(*candidates: Tuple[int, int]) -> DateFn:
    return lambda d: cal.next_from_candidates(d, candidates)


def _nth_wd_next_month(n: int) -> DateFn:
    return lambda d: cal.nth_working_day_of_next_month(d, n)


# ========== Catalog ==========

RULE_CATALOG: Tuple[DueDateRule, ...] = (
    # Employee relations
    DueDateRule("employee_concerns_major", _any("employee concern"), _wd(2), _step(r"major|escalat|high")),
    DueDateRule("employee_concerns", _any("employee concern"), _wd(1)),
    DueDateRule("employee_relations", _any("employee relations"), _wd(12)),
    DueDateRule("disciplinary_action_major", _any("disciplinary"), _wd(10), _step(r"major|grave|termination")),
    DueDateRule("disciplinary_action", _any("disciplinary"), _wd(5)),
    DueDateRule("grievance", _any("grievance"), _wd(5)),
    DueDateRule("exit_interview", _any("exit interview"), _wd(3)),

    # Timekeeping (leave requests are due before the leave starts)
    DueDateRule("vacation_leave", _any("vacation leave"), _wd(-5)),
    DueDateRule("sick_leave", _any("sick leave"), _wd(2)),
    DueDateRule("emergency_leave", _any("emergency leave"), _wd(1)),
    DueDateRule("maternity_leave", _any("maternity leave"), _cd(-30)),
    DueDateRule("paternity_leave", _any("paternity leave"), _cd(-7)),
    DueDateRule("solo_parent_leave", _any("solo parent"), _wd(-5)),
    DueDateRule("overtime_unplanned", _any("overtime"), _wd(1), _step(r"unplanned")),
    DueDateRule("overtime_planned", _any("overtime"), _wd(-1), _step(r"planned")),
    DueDateRule("overtime", _any("overtime"), _wd(1)),
    DueDateRule("dtr_correction", _any("dtr", "time correction", "timekeeping adjustment"), cal.next_payroll_cutoff),
    DueDateRule("schedule_change", _any("schedule change"), _wd(-3)),
    DueDateRule("undertime", _any("undertime"), _wd(1)),
    DueDateRule("official_business", _any("official business"), _wd(-1)),

    # Payroll
    DueDateRule("final_pay", _any("final pay"), _cd(30)),
    DueDateRule("payroll_dispute", _any("payroll dispute"), cal.next_payroll_cutoff),
    DueDateRule("salary_adjustment", _any("salary adjustment"), cal.second_working_day_of_next_month),
    DueDateRule("payslip_request", _any("payslip"), _wd(2)),
    DueDateRule("thirteenth_month_pay", _any("13th month"), _on(12, 24)),
    DueDateRule("tax_certificate", _any("2316", "tax certificate"), _on(1, 31)),
    DueDateRule("tax_refund", _any("tax refund"), cal.second_working_day_of_next_quarter),
    DueDateRule("salary_loan", _any("salary loan"), cal.next_payroll_cutoff),
    DueDateRule("reimbursement", _any("reimbursement"), cal.next_payroll_cutoff),
    DueDateRule("allowance", _any("allowance"), cal.second_working_day_of_next_month),

    # Government contributions
    DueDateRule("sss_loan", _word("sss"), _wd(5), _step(r"loan")),
    DueDateRule("sss", _word("sss"), _wd(5)),
    DueDateRule("philhealth", _any("philhealth"), _wd(5)),
    DueDateRule("pagibig_loan", _any("pag-ibig", "pagibig", "hdmf"), _wd(7), _step(r"loan")),
    DueDateRule("pagibig", _any("pag-ibig", "pagibig", "hdmf"), _wd(5)),
    DueDateRule("remittance_report", _any("remittance"), _nth_wd_next_month(10)),

    # Benefits
    DueDateRule("hmo_enrollment", _word("hmo"), cal.end_of_month, _step(r"enrol|addition|dependent")),
    DueDateRule("hmo", _word("hmo"), _wd(5)),
    DueDateRule("benefits_enrollment", _any("benefits enrollment"), cal.next_open_enrollment),
    DueDateRule("life_insurance", _any("insurance"), _wd(10)),
    DueDateRule("annual_physical_exam", _any("annual physical"), _first_of((3, 1), (9, 1))),
    DueDateRule("performance_bonus", _any("bonus"), _first_of((3, 31), (9, 30))),

    # Recruitment and onboarding
    DueDateRule("manpower_request", _any("manpower"), _wd(20)),
    DueDateRule("job_posting", _any("job posting"), _wd(3)),
    DueDateRule("pre_employment", _any("pre-employment"), _wd(7)),
    DueDateRule("background_check", _any("background check"), _wd(10)),
    DueDateRule("onboarding", _any("onboarding"), _wd(5)),
    DueDateRule("company_id", _any("company id", "id replacement"), _wd(10)),

    # Employee records
    DueDateRule("coe_just_in_time", _any("certificate of employment"), _wd(1), _step(r"\bjust\b")),
    DueDateRule("certificate_of_employment", _any("certificate of employment"), _wd(3)),
    DueDateRule("employment_verification", _any("employment verification"), _wd(3)),
    DueDateRule("personnel_file_update", _word("201"), _wd(5)),
    DueDateRule("personal_information_update", _any("personal information"), _wd(3)),

    # Performance
    DueDateRule("performance_managerial", _any("performance"), cal.next_calibration_week, _step(r"managerial")),
    DueDateRule("performance_probationary", _any("performance"), _cd(30), _step(r"probationary")),
    DueDateRule("performance_review", _any("performance"), cal.end_of_month),
    DueDateRule("regularization", _any("regularization"), _wd(10)),
    DueDateRule("promotion", _any("promotion"), cal.second_working_day_of_next_quarter),

    # Training
    DueDateRule("external_training", _any("training"), _wd(-10), _step(r"external")),
    DueDateRule("training", _any("training"), _wd(-5)),

    # Separation
    DueDateRule("resignation", _any("resignation"), _cd(30)),
    DueDateRule("clearance", _any("clearance"), _wd(10)),
    DueDateRule("retirement", _any("retirement"), _cd(30)),
    DueDateRule("quitclaim", _any("quitclaim"), _wd(5)),

    # Reports: specific services before the generic report rules
    DueDateRule("headcount_report", _any("headcount"), _nth_wd_next_month(5)),
    DueDateRule("attrition_report", _any("attrition"), _nth_wd_next_month(5)),
    DueDateRule("payroll_register", _any("payroll register"), cal.next_payroll_cutoff),
    DueDateRule("dole_report", _word("dole"), _on(1, 30)),
    DueDateRule("quarterly_report", _all("quarterly", "report"), cal.second_working_day_of_next_quarter),
    DueDateRule("annual_report", _all("annual", "report"), _on(1, 31)),
    DueDateRule("monthly_report", _all("monthly", "report"), cal.second_working_day_of_next_month),
    DueDateRule("report", _any("report"), _wd(3)),

    # General
    DueDateRule("org_chart", _any("org chart"), cal.end_of_month),
    DueDateRule("system_access", _any("system access"), _wd(1)),
    DueDateRule("policy_inquiry", _any("policy"), _wd(2)),
    DueDateRule("document_request", _any("document"), _wd(3)),
    DueDateRule("internal_transfer", _any("transfer"), _wd(10)),
    DueDateRule("general_inquiry", _any("inquiry"), _wd(2)),
)


# Services whose requests must carry a due date; a miss is logged as an anomaly.
DUE_DATE_REQUIRED_SERVICES = frozenset(normalize_service(s) for s in (
    "Employee Concerns",
    "Employee Relations",
    "Disciplinary Action",
    "Grievance",
    "Exit Interview",
    "Timekeeping - Vacation Leave",
    "Timekeeping - Sick Leave",
    "Timekeeping - Emergency Leave",
    "Timekeeping - Maternity Leave",
    "Timekeeping - Paternity Leave",
    "Timekeeping - Solo Parent Leave",
    "Timekeeping - Overtime",
    "Timekeeping - DTR Correction",
    "Timekeeping - Schedule Change",
    "Timekeeping - Undertime",
    "Timekeeping - Official Business",
    "Payroll - Final Pay",
    "Payroll - Payroll Dispute",
    "Payroll - Salary Adjustment",
    "Payroll - Payslip Request",
    "Payroll - 13th Month Pay",
    "Payroll - BIR 2316",
    "Payroll - Tax Refund",
    "Payroll - Salary Loan",
    "Payroll - Reimbursement",
    "Payroll - Allowance",
    "Government - SSS",
    "Government - PhilHealth",
    "Government - Pag-IBIG",
    "Government - HDMF Loan",
    "Government - Remittance Report",
    "Benefits - HMO",
    "Benefits - HMO Dependent Enrollment",
    "Benefits - Benefits Enrollment",
    "Benefits - Life Insurance",
    "Benefits - Annual Physical Exam",
    "Benefits - Performance Bonus",
    "Recruitment - Manpower Request",
    "Recruitment - Job Posting",
    "Recruitment - Pre-Employment Requirements",
    "Recruitment - Background Check",
    "Onboarding",
    "Company ID Request",
    "Records - Certificate of Employment",
    "Records - Employment Verification",
    "Records - 201 File Update",
    "Records - Personal Information Update",
    "Performance Review",
    "Regularization",
    "Promotion",
    "Training Request",
    "Separation - Resignation",
    "Separation - Clearance",
    "Separation - Retirement",
    "Separation - Quitclaim",
    "Reports - Headcount Report",
    "Reports - Monthly Headcount Report",
    "Reports - Attrition Report",
    "Reports - Payroll Register",
    "Reports - DOLE Report",
    "Reports - Quarterly HR Report",
    "Reports - Annual HR Report",
    "Reports - Monthly HR Report",
    "Reports - Ad Hoc Report",
    "Org Chart Update",
    "HRIS System Access",
    "Policy Inquiry",
    "Document Request",
    "Internal Transfer",
    "General Inquiry",
))


def is_due_date_required(service: Optional[str]) -> bool:
    return normalize_service(service) in DUE_DATE_REQUIRED_SERVICES


def find_rule(service: Optional[str], step: Optional[str]) -> Optional[DueDateRule]:
    """First catalog rule claiming this service/step, or None."""
    normalized_service = normalize_service(service)
    if not normalized_service:
        return None
    normalized_step = normalize_step(step)
    for rule in RULE_CATALOG:
        if rule.matches(normalized_service, normalized_step):
            return rule
    return None


def evaluate_due_date(service: Optional[str], step: Optional[str], request_date) -> DueDateResult:
    """
    Resolve the due date for a request and report which rule produced it.

    Never raises: an invalid anchor or empty service yields ``no_match``.
    """
    if isinstance(request_date, date) and not isinstance(request_date, datetime):
        request_date = datetime(request_date.year, request_date.month, request_date.day)
    if not isinstance(request_date, datetime):
        logger.warning(
            "Invalid request date for due-date computation",
            extra={"anomaly": "invalid_request_date", "service": service,
                   "request_date": repr(request_date)}
        )
        return DueDateResult(NO_MATCH, None)

    rule = find_rule(service, step)
    result = DueDateResult(rule.name, rule.compute(request_date)) if rule else DueDateResult(NO_MATCH, None)

    logger.debug(
        "Due-date rule evaluated",
        extra={
            "rule": result.rule,
            "service": service,
            "process_step": step,
            "request_date": request_date.isoformat(),
            "due_date": result.due_date.isoformat() if result.due_date else None,
        }
    )
    return result


def compute_due_date(service: Optional[str], step: Optional[str], request_date) -> Optional[datetime]:
    """Due date for (service, process step, request date), or None when no rule applies."""
    return evaluate_due_date(service, step, request_date).due_date
