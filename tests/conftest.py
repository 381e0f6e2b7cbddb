"""Shared fixtures for the data-reshaper tests."""

import pytest

from data_reshaper.config import reset_settings
from data_reshaper.table import Table


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Make every test read settings from a clean environment."""
    for var in ("DEFAULT_ENCODING", "DEFAULT_DELIMITER", "PHONE_COUNTRY_CODE",
                "STORE_BACKEND", "STORE_PATH", "STORE_URL", "LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def users_table():
    return Table(
        name="users",
        headers=["id", "name", "city"],
        rows=[
            ["1", "Anna", "Berlin"],
            ["2", "Ben", "Hamburg"],
            ["3", "Cem", "Köln"],
        ],
    )


@pytest.fixture
def orders_table():
    return Table(
        name="orders",
        headers=["id", "total"],
        rows=[
            ["1", "10.50"],
            ["3", "99.00"],
            ["4", "5.00"],
        ],
    )
