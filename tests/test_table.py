"""
Tests for the Table model.
"""

import dataclasses

import pytest

from data_reshaper.errors import ColumnNotFoundError, MissingKeyColumnError
from data_reshaper.table import Table


def test_lists_are_stored_as_tuples(users_table):
    assert isinstance(users_table.headers, tuple)
    assert all(isinstance(row, tuple) for row in users_table.rows)
    assert users_table.row_count == 3
    assert users_table.column_count == 3


def test_table_is_immutable(users_table):
    with pytest.raises(dataclasses.FrozenInstanceError):
        users_table.name = "other"


def test_header_lookup_first_occurrence_wins():
    table = Table(name="t", headers=["a", "b", "a"], rows=[["1", "2", "3"]])
    assert table.header_index("a") == 0
    assert table.header_index("A") is None
    assert table.cell(table.rows[0], "a") == "1"
    assert table.row_as_dict(table.rows[0]) == {"a": "1", "b": "2"}


def test_require_column(users_table):
    assert users_table.require_column("city") == 2
    with pytest.raises(ColumnNotFoundError) as exc_info:
        users_table.require_column("email")
    assert exc_info.value.column == "email"
    assert "users" in str(exc_info.value)
    with pytest.raises(MissingKeyColumnError):
        users_table.require_column("email", MissingKeyColumnError)


def test_short_rows_read_as_empty():
    table = Table(name="t", headers=["a", "b", "c"], rows=[["1"], ["1", "2", "3", "4"]])
    assert table.cell(table.rows[0], "c") == ""
    assert table.row_as_dict(table.rows[0]) == {"a": "1", "b": "", "c": ""}
    assert table.malformed_rows() == (0, 1)
    assert not table.row_is_well_formed(table.rows[1])


def test_derive_creates_new_table(users_table):
    derived = users_table.derive(name="copy", rows=users_table.rows[:1])
    assert derived.id != users_table.id
    assert derived.name == "copy"
    assert derived.row_count == 1
    assert derived.headers == users_table.headers
    assert users_table.row_count == 3
