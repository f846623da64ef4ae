"""
Tests for the row store adapters.

The SQLAlchemy adapter runs against a throwaway SQLite file.
"""

from datetime import date

import pytest

from hrdesk.core import RepositoryException
from hrdesk.infrastructure.database import (
    close_database,
    create_tables,
    get_session_maker,
    init_database,
)
from hrdesk.tracking.infrastructure import (
    DEFAULT_HEADERS,
    InMemoryRowStore,
    RowStoreRequestRepository,
    SQLAlchemyRowStore,
)
from hrdesk.tracking.infrastructure.row_store import display_value
from tests.factories import manila


@pytest.fixture
async def sql_store(tmp_path):
    init_database(f"sqlite+aiosqlite:///{tmp_path / 'rows.db'}")
    await create_tables()
    yield SQLAlchemyRowStore(get_session_maker())
    await close_database()


class TestSQLAlchemyRowStore:

    @pytest.mark.asyncio
    async def test_missing_table_is_a_failed_result(self, sql_store):
        result = await sql_store.read_headers("Nope")
        assert not result.is_ok
        assert isinstance(result.error, RepositoryException)

    @pytest.mark.asyncio
    async def test_ensure_table_is_idempotent(self, sql_store):
        await sql_store.ensure_table("ITAM Requests", ["Request ID", "Status"])
        await sql_store.ensure_table("ITAM Requests", ["Other"])
        assert (await sql_store.read_headers("ITAM Requests")).unwrap() == ["Request ID", "Status"]

    @pytest.mark.asyncio
    async def test_append_and_list_in_row_order(self, sql_store):
        await sql_store.ensure_table("ITAM Requests", ["Request ID", "Status"])
        first = await sql_store.append_row("ITAM Requests", {"request id": "ITM-7-0001", "Status": "Open"})
        second = await sql_store.append_row("ITAM Requests", {"Request ID": "ITM-7-0002"})

        rows = await sql_store.list_rows("ITAM Requests")
        assert (first, second) == (1, 2)
        assert [r.row_number for r in rows] == [1, 2]
        assert rows[0].raw == {"Request ID": "ITM-7-0001", "Status": "Open"}
        assert rows[1].raw["Status"] is None

    @pytest.mark.asyncio
    async def test_timestamps_round_trip(self, sql_store):
        started = manila(2024, 6, 3, 9, 30)
        await sql_store.ensure_table("ITAM Requests", ["Request ID", "Start", "Day"])
        await sql_store.append_row("ITAM Requests", {"Request ID": "ITM-7-0001"})
        await sql_store.write_cells("ITAM Requests", 1, {"Start": started, "Day": date(2024, 6, 3)})

        row = (await sql_store.list_rows("ITAM Requests"))[0]
        assert row.raw["Start"] == started
        assert row.raw["Start"].utcoffset() == started.utcoffset()
        assert row.raw["Day"] == date(2024, 6, 3)
        assert row.display["Start"] == "06/03/2024 09:30:00"

    @pytest.mark.asyncio
    async def test_unknown_column_is_rejected(self, sql_store):
        await sql_store.ensure_table("ITAM Requests", ["Request ID"])
        await sql_store.append_row("ITAM Requests", {"Request ID": "ITM-7-0001"})
        with pytest.raises(RepositoryException):
            await sql_store.write_cell("ITAM Requests", 1, "Pause", manila(2024, 6, 3))

    @pytest.mark.asyncio
    async def test_row_out_of_range(self, sql_store):
        await sql_store.ensure_table("ITAM Requests", ["Request ID"])
        with pytest.raises(RepositoryException):
            await sql_store.write_cell("ITAM Requests", 3, "Request ID", "x")

    @pytest.mark.asyncio
    async def test_repository_over_database(self, sql_store):
        repository = RowStoreRequestRepository(sql_store, {"ITAM": "ITAM Requests"}, "Asia/Manila")
        await repository.ensure_tables()
        await sql_store.append_row("ITAM Requests", {"Request ID": "ITM-7-0001", "Status": "Open"})

        await repository.update("ITAM", 1, {"status": "In Progress", "start": manila(2024, 6, 3, 10)})

        stored = await repository.find("ITAM", "ITM-7-0001")
        assert stored.record.status == "In Progress"
        assert stored.record.start == manila(2024, 6, 3, 10)
        assert (await sql_store.read_headers("ITAM Requests")).unwrap() == DEFAULT_HEADERS


class TestInMemoryRowStore:

    @pytest.mark.asyncio
    async def test_rows_are_copies(self):
        store = InMemoryRowStore()
        store.seed("T", ["Request ID", "Remarks"], [{"Request ID": "ITM-7-0001", "Remarks": ["a"]}])
        row = (await store.list_rows("T"))[0]
        row.raw["Remarks"].append("b")
        assert store._rows["T"][0]["Remarks"] == ["a"]

    @pytest.mark.asyncio
    async def test_header_match_is_case_insensitive(self):
        store = InMemoryRowStore()
        store.seed("T", ["Request ID"], [{}])
        await store.write_cell("T", 1, " request id ", "ITM-7-0001")
        assert store._rows["T"][0] == {"Request ID": "ITM-7-0001"}

    def test_display_values(self):
        assert display_value(None) == ""
        assert display_value(45.0) == "45"
        assert display_value(date(2024, 6, 3)) == "06/03/2024"
