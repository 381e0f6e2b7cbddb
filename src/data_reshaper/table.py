"""
Shared in-memory table representation.

Every engine consumes and produces Table values. Tables are immutable after
creation: operations build new tables through derive() instead of editing
headers or rows in place, so one table can be handed to several merges,
diffs or mappings at the same time.
"""

import uuid
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional, Sequence, Tuple

from .errors import ColumnNotFoundError

Row = Tuple[str, ...]


def generate_table_id() -> str:
    """Return a new opaque table identifier."""
    return f"csv_{uuid.uuid4().hex[:12]}"


def _freeze_rows(rows: Iterable[Sequence[str]]) -> Tuple[Row, ...]:
    return tuple(tuple(row) for row in rows)


@dataclass(frozen=True)
class Table:
    """
    A parsed table: ordered headers plus ordered rows of string cells.

    Rows are aligned to headers by position, but a row coming from malformed
    input may be shorter or longer than the header list. Header names are not
    required to be unique; lookups by name resolve to the first occurrence.

    Attributes:
        name: Display name, usually the source file name
        headers: Column names in file order
        rows: Data rows, each a tuple of cell strings
        delimiter: Delimiter the table was parsed with (used again on export)
        encoding: Encoding the raw bytes were decoded with
        line_terminator: Line ending of the source text, reused on export
        trailing_newline: Whether the source text ended with a line break
        id: Opaque identifier, generated when not given
    """

    name: str
    headers: Tuple[str, ...]
    rows: Tuple[Row, ...]
    delimiter: str = ","
    encoding: str = "utf-8"
    line_terminator: str = "\n"
    trailing_newline: bool = False
    id: str = field(default_factory=generate_table_id)

    def __post_init__(self):
        # Accept lists from callers but always store tuples
        object.__setattr__(self, "headers", tuple(self.headers))
        object.__setattr__(self, "rows", _freeze_rows(self.rows))

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.headers)

    def header_index(self, name: str) -> Optional[int]:
        """
        Find the position of a column by exact, case-sensitive name.

        Args:
            name: Column name to look up

        Returns:
            Index of the first header with that name, or None if absent
        """
        try:
            return self.headers.index(name)
        except ValueError:
            return None

    def has_column(self, name: str) -> bool:
        return self.header_index(name) is not None

    def require_column(self, name: str, error_cls=ColumnNotFoundError) -> int:
        """
        Like header_index(), but raise when the column is absent.

        Args:
            name: Column name to look up
            error_cls: ColumnNotFoundError or a subclass to raise

        Returns:
            Index of the column

        Raises:
            ColumnNotFoundError: If no header has that name
        """
        index = self.header_index(name)
        if index is None:
            raise error_cls(name, self.name)
        return index

    def row_is_well_formed(self, row: Sequence[str]) -> bool:
        """Check that a row has exactly one cell per header."""
        return len(row) == len(self.headers)

    def malformed_rows(self) -> Tuple[int, ...]:
        """Indexes of rows whose length differs from the header count."""
        return tuple(i for i, row in enumerate(self.rows) if not self.row_is_well_formed(row))

    def cell(self, row: Sequence[str], name: str) -> str:
        """Value of column `name` in `row`; empty string when the column or cell is missing."""
        index = self.header_index(name)
        if index is None or index >= len(row):
            return ""
        return row[index]

    def row_as_dict(self, row: Sequence[str]) -> dict:
        """Map header names to cell values, first occurrence winning on duplicate names."""
        result = {}
        for i, header in enumerate(self.headers):
            if header not in result:
                result[header] = row[i] if i < len(row) else ""
        return result

    def derive(self, **changes) -> "Table":
        """Return a new table with some fields replaced and a fresh id."""
        changes.setdefault("id", generate_table_id())
        return replace(self, **changes)
