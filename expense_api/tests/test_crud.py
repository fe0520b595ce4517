from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from expense_api import crud
from expense_api.validation import ExpenseInput


def make_input(**overrides) -> ExpenseInput:
    values = {
        "description": "Lunch",
        "amount": Decimal("10.50"),
        "category": "Food",
        "date": date(2024, 1, 1),
    }
    values.update(overrides)
    return ExpenseInput(**values)


def test_create_assigns_uuid_and_timestamps(connection, clock):
    expense = crud.create_expense(connection, make_input())
    assert str(uuid.UUID(expense.id)) == expense.id
    assert expense.description == "Lunch"
    assert expense.amount == Decimal("10.50")
    assert expense.category == "Food"
    assert expense.date == date(2024, 1, 1)
    assert expense.created_at == expense.updated_at


def test_create_generates_distinct_ids(connection, clock):
    ids = {crud.create_expense(connection, make_input()).id for _ in range(5)}
    assert len(ids) == 5


def test_list_orders_newest_first(connection, clock):
    assert crud.list_expenses(connection) == []
    first = crud.create_expense(connection, make_input(description="First"))
    second = crud.create_expense(connection, make_input(description="Second"))
    third = crud.create_expense(connection, make_input(description="Third"))

    listed = crud.list_expenses(connection)
    assert [expense.id for expense in listed] == [third.id, second.id, first.id]


def test_get_returns_stored_values(connection, clock):
    created = crud.create_expense(connection, make_input())
    assert crud.get_expense(connection, created.id) == created


def test_get_unknown_id_raises(connection):
    with pytest.raises(crud.EntityNotFoundError, match="Expense missing not found."):
        crud.get_expense(connection, "missing")


def test_update_replaces_fields_and_refreshes_timestamp(connection, clock):
    created = crud.create_expense(connection, make_input())
    updated = crud.update_expense(
        connection,
        created.id,
        make_input(description="Dinner", amount=Decimal("20.50"), date=date(2024, 1, 2)),
    )
    assert updated.id == created.id
    assert updated.description == "Dinner"
    assert updated.amount == Decimal("20.50")
    assert updated.date == date(2024, 1, 2)
    assert updated.created_at == created.created_at
    assert updated.updated_at > created.updated_at


def test_update_is_idempotent(connection, clock):
    created = crud.create_expense(connection, make_input())
    change = make_input(description="Dinner", amount=Decimal("20.50"))
    once = crud.update_expense(connection, created.id, change)
    twice = crud.update_expense(connection, created.id, change)
    fields = ("id", "description", "amount", "category", "date", "created_at")
    assert [getattr(once, name) for name in fields] == [getattr(twice, name) for name in fields]


def test_update_unknown_id_raises(connection):
    with pytest.raises(crud.EntityNotFoundError):
        crud.update_expense(connection, "missing", make_input())
    assert crud.list_expenses(connection) == []


def test_delete_is_terminal(connection, clock):
    created = crud.create_expense(connection, make_input())
    crud.delete_expense(connection, created.id)

    with pytest.raises(crud.EntityNotFoundError):
        crud.get_expense(connection, created.id)
    with pytest.raises(crud.EntityNotFoundError):
        crud.delete_expense(connection, created.id)


def test_delete_unknown_id_leaves_data_untouched(connection, clock):
    kept = crud.create_expense(connection, make_input())
    with pytest.raises(crud.EntityNotFoundError):
        crud.delete_expense(connection, str(uuid.uuid4()))
    assert [expense.id for expense in crud.list_expenses(connection)] == [kept.id]


def test_list_breaks_timestamp_ties_by_id(connection, monkeypatch):
    same_instant = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    monkeypatch.setattr(crud, "utcnow", lambda: same_instant)
    created = [crud.create_expense(connection, make_input(description=f"Item {n}")) for n in range(4)]

    listed = [expense.id for expense in crud.list_expenses(connection)]
    assert listed == sorted((expense.id for expense in created), reverse=True)
    assert [expense.id for expense in crud.list_expenses(connection)] == listed
