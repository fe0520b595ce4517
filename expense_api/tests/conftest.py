from __future__ import annotations

import os
import pathlib
import sys
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from itertools import count

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import insert

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from expense_api import crud, database  # noqa: E402
from expense_api.config import Settings  # noqa: E402
from expense_api.server import create_app  # noqa: E402

SAMPLE_DESCRIPTIONS = ("Lunch", "Taxi", "Groceries", "Cinema", "Coffee", "Book")
SAMPLE_CATEGORIES = ("Food", "Transport", "Leisure")


def pytest_report_header(config: pytest.Config) -> list[str]:  # pragma: no cover - pytest hook
    """Show the logging configuration used by the test run."""

    log_level = os.environ.get("EXPENSES_LOG_LEVEL", "INFO")
    return [f"expense_api repo: {PROJECT_ROOT}", f"EXPENSES_LOG_LEVEL={log_level}"]


@pytest.fixture()
def engine():
    test_engine = database.build_engine("sqlite://")
    database.init_db(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture()
def connection(engine):
    conn = engine.connect()
    transaction = conn.begin()
    try:
        yield conn
    finally:
        transaction.rollback()
        conn.close()


@pytest.fixture()
def clock(monkeypatch: pytest.MonkeyPatch):
    """Make ``crud.utcnow`` return strictly increasing timestamps."""

    start = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    ticks = count()
    monkeypatch.setattr(crud, "utcnow", lambda: start + timedelta(seconds=next(ticks)))
    return start


@pytest.fixture()
def client(engine, clock):
    settings = Settings(database_url="sqlite://", api_prefix="/api")
    app = create_app(settings, engine=engine)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def expense_factory(engine, clock):
    """Insert expense rows directly, the way a model factory seeds a table."""

    sequence = count()

    def make(**overrides):
        n = next(sequence)
        now = crud.utcnow()
        values = {
            "id": crud.new_id(),
            "description": SAMPLE_DESCRIPTIONS[n % len(SAMPLE_DESCRIPTIONS)],
            "amount": Decimal("10.00") + n,
            "category": SAMPLE_CATEGORIES[n % len(SAMPLE_CATEGORIES)],
            "date": date(2024, 1, 1) + timedelta(days=n),
            "created_at": now,
            "updated_at": now,
        }
        values.update(overrides)
        with engine.begin() as conn:
            conn.execute(insert(database.expenses).values(**values))
            return crud.get_expense(conn, values["id"])

    return make
