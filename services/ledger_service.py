"""
Transaction ledger.

Thin create/update store for print transactions. A row is created before
the cost is known (Amount=0, Status=pending) and updated once the kiosk has
a final amount and status.

Status transitions are NOT validated: update() overwrites whatever is there,
including moving a completed row back to pending, and does not check that
the row exists.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Dict, Optional

import bleach
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from core.database import Database
from core.exceptions import LedgerError
from logging_config import get_logger
from models.session import ColorMode, PaperSize
from models.transaction import Transaction, TransactionStatus


logger = get_logger(__name__)

PAGES_RE = re.compile(r"^[0-9,\- ]+$")
MAX_FILE_PATH_LENGTH = 200
MAX_FILE_SIZE_LENGTH = 64


def _parse_date(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _safe_amount(value: Any) -> float:
    """Non-numeric or negative amounts become 0."""
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if amount != amount or amount < 0:  # NaN
        return 0.0
    return amount


def _numeric_or_zero(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if number != number else number


def _sanitize_text(text: Any, max_length: int) -> str:
    if text is None:
        return ""
    cleaned = bleach.clean(str(text).strip(), tags=[], strip=True)
    return cleaned[:max_length]


def validate_draft(draft: Dict[str, Any]) -> Dict[str, Any]:
    """
    Check a transaction draft and return the column values to insert.

    Raises:
        LedgerError: with a user-facing message for the first bad field
    """
    date_text = draft.get("Date")
    if _parse_date(date_text) is None:
        raise LedgerError("Invalid date.", {"field": "Date"})

    try:
        copies = int(float(draft.get("Copies")))
    except (TypeError, ValueError):
        copies = 0
    if copies < 1:
        raise LedgerError("Invalid number of copies.", {"field": "Copies"})

    color = draft.get("Color")
    if color not in {mode.value for mode in ColorMode}:
        raise LedgerError("Invalid color selection.", {"field": "Color"})

    pages = draft.get("Pages")
    if not isinstance(pages, str) or not PAGES_RE.match(pages):
        raise LedgerError("Invalid page selection.", {"field": "Pages"})

    paper = draft.get("Paper_Size")
    if paper not in {size.value for size in PaperSize}:
        raise LedgerError("Invalid paper size.", {"field": "Paper_Size"})

    file_path = draft.get("File_Path")
    if not isinstance(file_path, str) or len(file_path) > MAX_FILE_PATH_LENGTH:
        raise LedgerError("Invalid file path.", {"field": "File_Path"})

    file_size = draft.get("File_Size")

    return {
        "date": date_text.strip(),
        "amount": _safe_amount(draft.get("Amount")),
        "color": color,
        "pages": pages,
        "copies": copies,
        "paper_size": paper,
        "file_path": file_path,
        "file_size": _sanitize_text(file_size, MAX_FILE_SIZE_LENGTH) if file_size is not None else None,
        "status": TransactionStatus.coerce(draft.get("Status")).value,
    }


class LedgerService:
    """Create and update Transaction rows."""

    def __init__(self, database: Database):
        self.database = database

    def create(self, draft: Dict[str, Any]) -> int:
        """
        Insert a validated transaction.

        Returns:
            New transaction id

        Raises:
            LedgerError: validation failure or database error
        """
        values = validate_draft(draft)

        try:
            with self.database.session() as session:
                transaction = Transaction(**values)
                session.add(transaction)
                session.commit()
                tx_id = transaction.id
        except SQLAlchemyError as exc:
            logger.error(f"Transaction create failed: {exc}")
            raise LedgerError(str(exc)) from exc

        logger.info(
            f"Transaction {tx_id} created: {values['pages']} x{values['copies']} "
            f"{values['color']}/{values['paper_size']} [{values['status']}]"
        )
        return tx_id

    def update(self, tx_id: Any, amount: Any, status: Any) -> None:
        """
        Overwrite Amount and Status of a transaction.

        Non-numeric amounts become 0 (negative ones are kept) and unknown
        statuses become pending.
        A missing row is not an error, and neither is an id that can never
        match a row (non-numeric): both update nothing.
        """
        try:
            row_id = int(tx_id)
        except (TypeError, ValueError):
            logger.warning(f"Transaction update ignored: no row can match id {tx_id!r}")
            return

        safe_amount = _numeric_or_zero(amount)
        safe_status = TransactionStatus.coerce(status).value

        try:
            with self.database.session() as session:
                session.execute(
                    update(Transaction)
                    .where(Transaction.id == row_id)
                    .values(amount=safe_amount, status=safe_status)
                )
                session.commit()
        except SQLAlchemyError as exc:
            logger.error(f"Transaction update failed: {exc}")
            raise LedgerError(str(exc)) from exc

        logger.info(f"Transaction {row_id} updated: amount={safe_amount}, status={safe_status}")

    def get(self, tx_id: int) -> Optional[Dict[str, Any]]:
        with self.database.session() as session:
            transaction = session.get(Transaction, tx_id)
            return transaction.to_dict() if transaction else None
