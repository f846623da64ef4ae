"""
Row Store
=========

Row-oriented access to named tables (one per business unit), the storage
contract the request repository is written against:

- ``list_rows(table)`` -> ordered rows, each with display and raw values
- ``write_cell(table, row, column, value)``
- ``append_row(table, values_by_column)``

Column lookup is case-insensitive on the exact header text. Two adapters:
an in-memory store (tests, local development) and a SQLAlchemy store.
"""

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hrdesk.core import RepositoryException, Result
from hrdesk.shared.infrastructure.logging import get_logger
from hrdesk.tracking.infrastructure.models import SheetModel, SheetRowModel

logger = get_logger(__name__)

DISPLAY_DATETIME_FORMAT = "%m/%d/%Y %H:%M:%S"


def display_value(value: Any) -> str:
    """Human-readable cell text, as a spreadsheet would show it."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime(DISPLAY_DATETIME_FORMAT)
    if isinstance(value, date):
        return value.strftime("%m/%d/%Y")
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


@dataclass
class SheetRow:
    """One data row; ``row_number`` is 1-based over data rows."""

    row_number: int
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def display(self) -> Dict[str, str]:
        return {column: display_value(value) for column, value in self.raw.items()}


def _match_column(headers: Sequence[str], column: str) -> Optional[str]:
    wanted = column.strip().lower()
    for header in headers:
        if header.strip().lower() == wanted:
            return header
    return None


class IRowStore(ABC):
    """Interface for the tabular datastore holding request tables."""

    @abstractmethod
    async def read_headers(self, table: str) -> Result[List[str]]:
        """Header row of ``table``; failure when the table does not exist."""

    @abstractmethod
    async def list_rows(self, table: str) -> List[SheetRow]:
        """All data rows of ``table`` in row order."""

    @abstractmethod
    async def write_cell(self, table: str, row_number: int, column: str, value: Any) -> None:
        """Overwrite one cell."""

    @abstractmethod
    async def append_row(self, table: str, values_by_column: Mapping[str, Any]) -> int:
        """Append a row and return its row number."""

    @abstractmethod
    async def ensure_table(self, table: str, headers: Sequence[str]) -> None:
        """Create ``table`` with ``headers`` if it does not exist yet."""

    async def write_cells(self, table: str, row_number: int, values_by_column: Mapping[str, Any]) -> None:
        """Overwrite several cells of one row."""
        for column, value in values_by_column.items():
            await self.write_cell(table, row_number, column, value)


class InMemoryRowStore(IRowStore):
    """Process-local row store. Values are kept as-is (raw)."""

    def __init__(self):
        self._headers: Dict[str, List[str]] = {}
        self._rows: Dict[str, List[Dict[str, Any]]] = {}

    def seed(self, table: str, headers: Sequence[str], rows: Sequence[Mapping[str, Any]] = ()) -> None:
        """Replace ``table`` with the given header row and data rows."""
        self._headers[table] = list(headers)
        self._rows[table] = [dict(r) for r in rows]

    def _require(self, table: str) -> List[str]:
        if table not in self._headers:
            raise RepositoryException(f"Table '{table}' does not exist", {"table": table})
        return self._headers[table]

    def _column(self, table: str, column: str) -> str:
        header = _match_column(self._require(table), column)
        if header is None:
            raise RepositoryException(f"Table '{table}' has no column '{column}'", {"table": table})
        return header

    async def read_headers(self, table: str) -> Result[List[str]]:
        try:
            return Result.ok(list(self._require(table)))
        except RepositoryException as e:
            return Result.fail(e)

    async def list_rows(self, table: str) -> List[SheetRow]:
        headers = self._require(table)
        return [
            SheetRow(row_number=i, raw={h: copy.copy(values.get(h)) for h in headers})
            for i, values in enumerate(self._rows[table], start=1)
        ]

    async def write_cell(self, table: str, row_number: int, column: str, value: Any) -> None:
        header = self._column(table, column)
        rows = self._rows[table]
        if not 1 <= row_number <= len(rows):
            raise RepositoryException(f"Row {row_number} out of range for '{table}'", {"table": table})
        rows[row_number - 1][header] = value

    async def append_row(self, table: str, values_by_column: Mapping[str, Any]) -> int:
        row = {self._column(table, column): value for column, value in values_by_column.items()}
        self._rows[table].append(row)
        return len(self._rows[table])

    async def ensure_table(self, table: str, headers: Sequence[str]) -> None:
        if table not in self._headers:
            self.seed(table, headers)


# ========== SQLAlchemy adapter ==========

_DATETIME_TAG = "__datetime__"
_DATE_TAG = "__date__"


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return {_DATETIME_TAG: value.isoformat()}
    if isinstance(value, date):
        return {_DATE_TAG: value.isoformat()}
    return value


def _decode(value: Any) -> Any:
    if isinstance(value, dict):
        if _DATETIME_TAG in value:
            return datetime.fromisoformat(value[_DATETIME_TAG])
        if _DATE_TAG in value:
            return date.fromisoformat(value[_DATE_TAG])
    return value


class SQLAlchemyRowStore(IRowStore):
    """
    Row store persisted through SQLAlchemy.

    Each call runs in its own session and commits on success.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def _sheet(self, session: AsyncSession, table: str) -> SheetModel:
        sheet = await session.get(SheetModel, table)
        if sheet is None:
            raise RepositoryException(f"Table '{table}' does not exist", {"table": table})
        return sheet

    async def _row(self, session: AsyncSession, table: str, row_number: int) -> SheetRowModel:
        stmt = select(SheetRowModel).where(
            SheetRowModel.sheet_name == table,
            SheetRowModel.row_number == row_number,
        )
        row = (await session.execute(stmt)).scalar_one_or_none()
        if row is None:
            raise RepositoryException(f"Row {row_number} out of range for '{table}'", {"table": table})
        return row

    async def read_headers(self, table: str) -> Result[List[str]]:
        try:
            async with self._session_maker() as session:
                sheet = await self._sheet(session, table)
                return Result.ok(list(sheet.headers))
        except RepositoryException as e:
            return Result.fail(e)

    async def list_rows(self, table: str) -> List[SheetRow]:
        async with self._session_maker() as session:
            sheet = await self._sheet(session, table)
            stmt = (
                select(SheetRowModel)
                .where(SheetRowModel.sheet_name == table)
                .order_by(SheetRowModel.row_number.asc())
            )
            rows = (await session.execute(stmt)).scalars().all()
            return [
                SheetRow(
                    row_number=row.row_number,
                    raw={h: _decode(row.values.get(h)) for h in sheet.headers},
                )
                for row in rows
            ]

    async def write_cell(self, table: str, row_number: int, column: str, value: Any) -> None:
        await self.write_cells(table, row_number, {column: value})

    async def write_cells(self, table: str, row_number: int, values_by_column: Mapping[str, Any]) -> None:
        async with self._session_maker() as session:
            sheet = await self._sheet(session, table)
            row = await self._row(session, table, row_number)
            values = dict(row.values)
            for column, value in values_by_column.items():
                header = _match_column(sheet.headers, column)
                if header is None:
                    raise RepositoryException(f"Table '{table}' has no column '{column}'", {"table": table})
                values[header] = _encode(value)
            # Reassign so the JSON column is flagged dirty
            row.values = values
            await session.commit()

    async def append_row(self, table: str, values_by_column: Mapping[str, Any]) -> int:
        async with self._session_maker() as session:
            sheet = await self._sheet(session, table)
            values = {}
            for column, value in values_by_column.items():
                header = _match_column(sheet.headers, column)
                if header is None:
                    raise RepositoryException(f"Table '{table}' has no column '{column}'", {"table": table})
                values[header] = _encode(value)

            stmt = select(func.max(SheetRowModel.row_number)).where(SheetRowModel.sheet_name == table)
            last = (await session.execute(stmt)).scalar_one_or_none() or 0
            session.add(SheetRowModel(sheet_name=table, row_number=last + 1, values=values))
            await session.commit()
            return last + 1

    async def ensure_table(self, table: str, headers: Sequence[str]) -> None:
        async with self._session_maker() as session:
            if await session.get(SheetModel, table) is None:
                session.add(SheetModel(name=table, headers=list(headers)))
                await session.commit()
                logger.info("Created request table", extra={"table": table, "columns": len(headers)})
