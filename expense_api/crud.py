"""Data-access functions for the expense service."""
from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import List

from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import Connection

from .database import expenses
from .models import Expense
from .validation import ExpenseInput

LOG = logging.getLogger(__name__)


class EntityNotFoundError(RuntimeError):
    """Raised when an entity cannot be located in the database."""

    def __init__(self, expense_id: str) -> None:
        super().__init__(f"Expense {expense_id} not found.")
        self.expense_id = expense_id


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


def new_id() -> str:
    return str(uuid.uuid4())


def list_expenses(connection: Connection) -> List[Expense]:
    # Rows sharing a timestamp fall back to id order so listings stay stable.
    stmt = select(expenses).order_by(expenses.c.created_at.desc(), expenses.c.id.desc())
    rows = connection.execute(stmt).all()
    LOG.debug("Listed %d expenses", len(rows))
    return [Expense.from_row(row) for row in rows]


def get_expense(connection: Connection, expense_id: str) -> Expense:
    row = connection.execute(select(expenses).where(expenses.c.id == expense_id)).first()
    if row is None:
        raise EntityNotFoundError(expense_id)
    return Expense.from_row(row)


def create_expense(connection: Connection, expense_in: ExpenseInput) -> Expense:
    now = utcnow()
    expense_id = new_id()
    connection.execute(
        insert(expenses).values(
            id=expense_id,
            description=expense_in.description,
            amount=expense_in.amount,
            category=expense_in.category,
            date=expense_in.date,
            created_at=now,
            updated_at=now,
        )
    )
    LOG.info("Created expense %s", expense_id)
    return get_expense(connection, expense_id)


def update_expense(connection: Connection, expense_id: str, expense_in: ExpenseInput) -> Expense:
    """Replace the four mutable fields of an existing expense."""

    stmt = (
        update(expenses)
        .where(expenses.c.id == expense_id)
        .values(
            description=expense_in.description,
            amount=expense_in.amount,
            category=expense_in.category,
            date=expense_in.date,
            updated_at=utcnow(),
        )
    )
    if connection.execute(stmt).rowcount == 0:
        raise EntityNotFoundError(expense_id)
    LOG.info("Updated expense %s", expense_id)
    return get_expense(connection, expense_id)


def delete_expense(connection: Connection, expense_id: str) -> None:
    result = connection.execute(delete(expenses).where(expenses.c.id == expense_id))
    if result.rowcount == 0:
        raise EntityNotFoundError(expense_id)
    LOG.info("Deleted expense %s", expense_id)
