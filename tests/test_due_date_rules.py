"""
Tests for the due-date rule catalog.
"""

import logging
from datetime import date, datetime

import pytest

from hrdesk.sla.domain import (
    DUE_DATE_REQUIRED_SERVICES,
    NO_MATCH,
    RULE_CATALOG,
    compute_due_date,
    evaluate_due_date,
    find_rule,
    is_due_date_required,
)
from tests.factories import manila

MONDAY = manila(2024, 6, 3, 9, 0)


class TestRuleOracles:

    @pytest.mark.parametrize("step, rule, expected", [
        ("Minor", "employee_concerns", manila(2024, 6, 4, 9, 0)),
        ("Major", "employee_concerns_major", manila(2024, 6, 5, 9, 0)),
        ("Escalated", "employee_concerns_major", manila(2024, 6, 5, 9, 0)),
    ])
    def test_employee_concerns_step_keyword(self, step, rule, expected):
        result = evaluate_due_date("Employee Concerns", step, MONDAY)
        assert result.rule == rule
        assert result.due_date == expected

    def test_employee_relations_twelve_working_days(self):
        assert compute_due_date("Employee Relations", "", MONDAY) == manila(2024, 6, 19, 9, 0)

    def test_vacation_leave_is_due_before_the_leave(self):
        due = compute_due_date("Timekeeping - Vacation Leave", "Filing", manila(2024, 6, 10, 8, 0))
        assert due == manila(2024, 6, 3, 8, 0)

    def test_maternity_leave_thirty_calendar_days_before(self):
        due = compute_due_date("Timekeeping - Maternity Leave", "Filing", datetime(2024, 7, 15))
        assert due == datetime(2024, 6, 15)

    def test_final_pay_thirty_calendar_days(self):
        assert compute_due_date("Payroll - Final Pay", "", datetime(2024, 6, 3)) == datetime(2024, 7, 3)

    def test_thirteenth_month(self):
        assert compute_due_date("Payroll - 13th Month Pay", "", MONDAY) == manila(2024, 12, 24, 9, 0)

    def test_tax_certificate_next_january(self):
        assert compute_due_date("Payroll - BIR 2316", "", MONDAY) == manila(2025, 1, 31, 9, 0)

    def test_remittance_report_tenth_working_day(self):
        assert compute_due_date("Government - Remittance Report", "", MONDAY) == manila(2024, 7, 12, 9, 0)

    def test_hmo_enrollment_end_of_month(self):
        result = evaluate_due_date("Benefits - HMO Dependent Enrollment", "Dependent Addition", MONDAY)
        assert result.rule == "hmo_enrollment"
        assert result.due_date == manila(2024, 6, 30, 9, 0)

    def test_date_anchor_is_accepted(self):
        assert compute_due_date("Employee Concerns", "Minor", date(2024, 6, 7)) == datetime(2024, 6, 10)


class TestRuleOrdering:

    @pytest.mark.parametrize("service, step, rule", [
        ("Timekeeping - Overtime", "Unplanned", "overtime_unplanned"),
        ("Timekeeping - Overtime", "Planned", "overtime_planned"),
        ("Timekeeping - Overtime", "", "overtime"),
        ("Benefits - Performance Bonus", "Release", "performance_bonus"),
        ("Performance Review", "Managerial", "performance_managerial"),
        ("Performance Review", "Probationary", "performance_probationary"),
        ("Performance Review", "Annual", "performance_review"),
        ("Reports - Monthly Headcount Report", "", "headcount_report"),
        ("Reports - Monthly HR Report", "", "monthly_report"),
        ("Reports - Quarterly HR Report", "", "quarterly_report"),
        ("Reports - DOLE Report", "", "dole_report"),
        ("Reports - Payroll Register", "", "payroll_register"),
        ("Reports - Ad Hoc Report", "", "report"),
        ("Government - Remittance Report", "", "remittance_report"),
        ("Government - SSS", "Loan Application", "sss_loan"),
        ("Government - SSS", "Contribution Inquiry", "sss"),
        ("Government - HDMF Loan", "Loan Application", "pagibig_loan"),
        ("Records - Certificate of Employment", "Just-in-Time Release", "coe_just_in_time"),
        ("Records - Certificate of Employment", "Standard Request", "certificate_of_employment"),
        ("Records - 201 File Update", "Submission", "personnel_file_update"),
        ("Training Request", "External", "external_training"),
        ("Training Request", "Internal", "training"),
        ("Policy Inquiry", "", "policy_inquiry"),
        ("General Inquiry", "", "general_inquiry"),
    ])
    def test_first_match_wins(self, service, step, rule):
        assert evaluate_due_date(service, step, MONDAY).rule == rule

    def test_matching_ignores_case_and_spacing(self):
        assert evaluate_due_date("  employee   RELATIONS ", "", MONDAY).rule == "employee_relations"

    def test_rule_names_are_unique(self):
        names = [r.name for r in RULE_CATALOG]
        assert len(names) == len(set(names))


class TestNoMatch:

    def test_unknown_service(self):
        result = evaluate_due_date("Car Wash", "", MONDAY)
        assert result.rule == NO_MATCH
        assert result.due_date is None
        assert not result.matched

    def test_empty_service(self):
        assert evaluate_due_date("", "Major", MONDAY).rule == NO_MATCH
        assert evaluate_due_date(None, None, MONDAY).rule == NO_MATCH

    def test_invalid_anchor_is_logged_not_raised(self, caplog):
        with caplog.at_level(logging.WARNING):
            result = evaluate_due_date("Employee Relations", "", "not a date")
        assert result.rule == NO_MATCH
        assert any(getattr(r, "anomaly", None) == "invalid_request_date" for r in caplog.records)


class TestRequiredServices:

    def test_required_list_size(self):
        assert len(DUE_DATE_REQUIRED_SERVICES) == 70

    @pytest.mark.parametrize("service", sorted(DUE_DATE_REQUIRED_SERVICES))
    def test_every_required_service_has_a_rule(self, service):
        assert find_rule(service, "") is not None

    def test_required_lookup_is_normalized(self):
        assert is_due_date_required("timekeeping -  vacation leave")
        assert not is_due_date_required("Car Wash")
        assert not is_due_date_required(None)
