"""
Row Store Models
================

SQLAlchemy ORM models backing the persistent row store.

Each business-unit table is a ``SheetModel`` (its ordered header row) plus
``SheetRowModel`` rows holding ``{header: value}`` JSON.
"""

from typing import Any, Dict, List

from sqlalchemy import JSON, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from hrdesk.infrastructure.database import Base


class SheetModel(Base):
    """
    Database model for one named request table.

    Maps to the 'sheets' table.
    """
    __tablename__ = "sheets"

    name: Mapped[str] = mapped_column(String(255), primary_key=True)
    headers: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)


class SheetRowModel(Base):
    """
    Database model for one data row of a request table.

    ``row_number`` is 1-based and counts data rows only (the header row
    is not a row here).
    """
    __tablename__ = "sheet_rows"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sheet_name: Mapped[str] = mapped_column(
        String(255), ForeignKey("sheets.name", ondelete="CASCADE"), nullable=False, index=True
    )
    row_number: Mapped[int] = mapped_column(Integer, nullable=False)
    values: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    __table_args__ = (
        UniqueConstraint("sheet_name", "row_number", name="uq_sheet_row_number"),
    )
