"""Plain record types for the expense service."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy.engine import Row


@dataclass(slots=True)
class Expense:
    """Simple data holder describing a stored expense entry."""

    id: str
    description: str
    amount: Decimal
    category: str
    date: date
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: Row[Any]) -> Expense:
        mapping = row._mapping
        return cls(
            id=mapping["id"],
            description=mapping["description"],
            amount=mapping["amount"],
            category=mapping["category"],
            date=mapping["date"],
            created_at=mapping["created_at"],
            updated_at=mapping["updated_at"],
        )
