"""
Ledger table and status values.

Column names are snake_case in Python; to_dict() returns the capitalized
keys the kiosk sends and expects (Date, Amount, Paper_Size, ...).
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict

from sqlalchemy import Float, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class TransactionStatus(Enum):
    """
    Ledger status of a print transaction.

    Lifecycle (not enforced server-side):
        PENDING -> PRINTING -> (COMPLETED | CANCELLED)
    """

    PENDING = "pending"
    PRINTING = "printing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def coerce(cls, value: Any) -> "TransactionStatus":
        """Unknown values fall back to PENDING."""
        try:
            return cls(value)
        except ValueError:
            return cls.PENDING


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    date: Mapped[str] = mapped_column(String(64))
    amount: Mapped[float] = mapped_column(Float, default=0.0)
    color: Mapped[str] = mapped_column(String(16))
    pages: Mapped[str] = mapped_column(Text)
    copies: Mapped[int] = mapped_column(Integer)
    paper_size: Mapped[str] = mapped_column(String(16))
    file_path: Mapped[str] = mapped_column(String(200))
    file_size: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status: Mapped[str] = mapped_column(String(16), default=TransactionStatus.PENDING.value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "Date": self.date,
            "Amount": self.amount,
            "Color": self.color,
            "Pages": self.pages,
            "Copies": self.copies,
            "Paper_Size": self.paper_size,
            "File_Path": self.file_path,
            "File_Size": self.file_size,
            "Status": self.status,
        }
