"""Shared test fixtures for the CSV import pipeline and transaction listing."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import duckdb
import pytest

from bank_ledger.ingestion.loader import connect, create_tables
from tests.helpers import make_csv

PROJECT_ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture(autouse=True)
def _reset_ledger_logger():
    """Undo CLI logging setup so later tests see default propagation."""
    yield
    logger = logging.getLogger("bank_ledger")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def tmp_db_path(tmp_path: Path) -> Path:
    """Provide a temporary DuckDB database file path.

    Args:
        tmp_path: Pytest built-in temporary directory fixture.

    Returns:
        Path to a temporary DuckDB database file.
    """
    db_dir = tmp_path / "warehouse"
    db_dir.mkdir(parents=True)
    return db_dir / "test.duckdb"


@pytest.fixture
def ledger_conn(tmp_db_path: Path) -> duckdb.DuckDBPyConnection:
    """Provide a ledger connection with tables created that auto-closes after test.

    Yields:
        A DuckDB connection.
    """
    conn = connect(tmp_db_path)
    create_tables(conn)
    yield conn
    conn.close()


@pytest.fixture
def valid_csv() -> str:
    """Provide a two-row payload with one income and one expense."""
    return make_csv(
        "TX001,2024-01-15T10:30:00Z,100.50,EUR,Payment for services",
        "TX002,2024-01-16T14:20:00Z,-50.25,usd,Refund",
    )


@pytest.fixture
def highlight_csv() -> str:
    """Provide the three-row payload used for highlight checks."""
    return make_csv(
        "TX001,2024-01-15T10:30:00Z,500.00,EUR,Large income",
        "TX002,2024-01-16T14:20:00Z,100.00,EUR,Small income",
        "TX003,2024-01-17T09:15:00Z,-50.00,EUR,Expense",
    )


@pytest.fixture
def api_error_schema() -> dict:
    """Load the ApiError JSON schema contract."""
    schema_path = PROJECT_ROOT / "contracts" / "api-error.schema.json"
    return json.loads(schema_path.read_text(encoding="utf-8"))
