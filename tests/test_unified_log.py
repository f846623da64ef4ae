"""
Tests for the unified log: header aliases, de-duplication and visibility.
"""

import logging
from datetime import datetime

import pytest

from hrdesk.shared.context import RequestContext
from hrdesk.tracking.application import LogFilters, UnifiedLogService, filter_by_role
from hrdesk.tracking.domain import RequestRecord
from hrdesk.tracking.infrastructure import DEFAULT_HEADERS
from tests.factories import manila, request_row

ADMIN = RequestContext(role="admin")

LEGACY_HEADERS = ["Ticket ID", "Service Name", "Sub Process", "Request Status", "TAT", "Email Address", "Dept"]


@pytest.fixture
def populated(row_store):
    row_store.seed("ITAM Requests", DEFAULT_HEADERS, [
        request_row("ITM-7-0001", Email="ana@itam.example", Department="Finance"),
        request_row("ITM-7-0002", status="Completed", Email="ben@itam.example", Department="Sales",
                    Start=manila(2024, 6, 3, 10), End=manila(2024, 6, 3, 12)),
    ])
    row_store.seed("Onward Requests", LEGACY_HEADERS, [
        {
            "Ticket ID": "onw-3-0001",
            "Service Name": "Payroll - Final Pay",
            "Sub Process": "Clearance",
            "Request Status": "In Progress",
            "TAT": "1,250.5",
            "Email Address": "Ana@ITAM.example",
            "Dept": "finance",
        },
    ])
    return row_store


class TestCollect:

    @pytest.mark.asyncio
    async def test_reads_every_company(self, populated, unified_log):
        records = await unified_log.collect()
        assert [r.request_id for r in records] == ["ITM-7-0001", "ITM-7-0002", "ONW-3-0001"]

    @pytest.mark.asyncio
    async def test_blank_company_is_tagged_with_table_owner(self, populated, unified_log):
        records = await unified_log.collect()
        assert {r.request_id: r.company for r in records} == {
            "ITM-7-0001": "ITAM",
            "ITM-7-0002": "ITAM",
            "ONW-3-0001": "Onward",
        }

    @pytest.mark.asyncio
    async def test_legacy_headers_are_resolved(self, populated, unified_log):
        legacy = [r for r in await unified_log.collect() if r.company == "Onward"][0]
        assert legacy.service == "Payroll - Final Pay"
        assert legacy.process_step == "Clearance"
        assert legacy.status == "In Progress"
        assert legacy.tat_minutes == 1250.5
        assert legacy.department == "finance"

    @pytest.mark.asyncio
    async def test_unreadable_table_is_skipped(self, populated, unified_log, caplog):
        del populated._headers["Vertex Requests"]
        with caplog.at_level(logging.WARNING):
            records = await unified_log.collect()
        assert len(records) == 3
        assert any(r.getMessage() == "Skipping unreadable company table" for r in caplog.records)

    @pytest.mark.asyncio
    async def test_rows_without_request_id_are_ignored(self, row_store, unified_log):
        row_store.seed("Summit Requests", DEFAULT_HEADERS, [
            request_row("SMT-1-0001"),
            request_row(""),
        ])
        records = await unified_log.collect()
        assert [r.request_id for r in records] == ["SMT-1-0001"]


class TestDeduplicate:

    def test_same_key_keeps_first(self):
        start = manila(2024, 6, 3, 9)
        first = RequestRecord("ITM-7-0001", company="ITAM", status="Open", start=start, details="first")
        second = RequestRecord("itm-7-0001 ", company="itam", status="Open ", start=start, details="second")
        unique = UnifiedLogService.deduplicate([first, second])
        assert unique == [first]

    def test_different_lifecycle_state_is_kept(self):
        open_row = RequestRecord("ITM-7-0001", company="ITAM", status="Open")
        started = RequestRecord("ITM-7-0001", company="ITAM", status="In Progress", start=manila(2024, 6, 3, 9))
        assert len(UnifiedLogService.deduplicate([open_row, started])) == 2

    def test_prefix_decides_company_over_tag(self):
        a = RequestRecord("ITM-7-0001", company="ITAM")
        b = RequestRecord("ITM-7-0001", company="Onward")
        assert UnifiedLogService.deduplicate([a, b]) == [a]

    def test_unknown_prefix_falls_back_to_tag(self):
        a = RequestRecord("ABC-7-0001", company="ITAM")
        b = RequestRecord("ABC-7-0001", company="Onward")
        assert len(UnifiedLogService.deduplicate([a, b])) == 2

    @pytest.mark.asyncio
    async def test_snapshot_in_two_unit_tables_collapses(self, row_store, unified_log):
        row_store.seed("ITAM Requests", DEFAULT_HEADERS, [request_row("ITM-7-0001")])
        row_store.seed("Onward Requests", DEFAULT_HEADERS, [request_row("ITM-7-0001")])
        records = await unified_log.collect()
        assert [(r.company, r.request_id) for r in records] == [("ITAM", "ITM-7-0001")]

    @pytest.mark.asyncio
    async def test_duplicate_rows_in_store_collapse(self, row_store, unified_log):
        row_store.seed("ITAM Requests", DEFAULT_HEADERS, [request_row("ITM-7-0001"), request_row("ITM-7-0001")])
        records = await unified_log.collect()
        assert len(records) == 1


class TestVisibility:

    @pytest.mark.asyncio
    async def test_employee_sees_own_requests(self, populated, unified_log):
        context = RequestContext(role="employee", email="ana@itam.example")
        records = await unified_log.get_unified_log(context)
        assert sorted(r.request_id for r in records) == ["ITM-7-0001", "ONW-3-0001"]

    @pytest.mark.asyncio
    async def test_department_head_sees_department(self, populated, unified_log):
        context = RequestContext(role="department_head", department="FINANCE")
        records = await unified_log.get_unified_log(context)
        assert sorted(r.request_id for r in records) == ["ITM-7-0001", "ONW-3-0001"]

    @pytest.mark.asyncio
    async def test_staff_and_admin_see_everything(self, populated, unified_log):
        for role in ("hr_staff", "admin"):
            records = await unified_log.get_unified_log(RequestContext(role=role))
            assert len(records) == 3

    def test_employee_without_email_sees_nothing(self):
        records = [RequestRecord("ITM-7-0001", email="")]
        assert filter_by_role(records, RequestContext(role="employee")) == []


class TestLogFilters:

    @pytest.mark.asyncio
    async def test_company_and_status(self, populated, unified_log):
        filters = LogFilters(company="itam", status="completed")
        records = await unified_log.get_unified_log(ADMIN, filters)
        assert [r.request_id for r in records] == ["ITM-7-0002"]

    @pytest.mark.asyncio
    async def test_service_substring(self, populated, unified_log):
        records = await unified_log.get_unified_log(ADMIN, LogFilters(service="final pay"))
        assert [r.request_id for r in records] == ["ONW-3-0001"]

    def test_date_range_is_inclusive(self):
        record = RequestRecord("ITM-7-0001", request_date=manila(2024, 6, 3, 9))
        assert LogFilters(date_from=manila(2024, 6, 3, 9)).matches(record)
        assert LogFilters(date_to=manila(2024, 6, 3, 9)).matches(record)
        assert not LogFilters(date_from=manila(2024, 6, 4)).matches(record)

    def test_naive_bounds_compare_with_aware_dates(self):
        record = RequestRecord("ITM-7-0001", request_date=manila(2024, 6, 3, 9))
        assert LogFilters(date_from=datetime(2024, 6, 1), date_to=datetime(2024, 6, 30)).matches(record)

    def test_date_filter_excludes_undated_records(self):
        assert not LogFilters(date_from=datetime(2024, 6, 1)).matches(RequestRecord("ITM-7-0001"))
