"""
Diff engine for comparing two versions of a table by a key column.

Every key found in either table is classified as added, removed, modified or
unchanged. Cells are compared by header name, so the two tables may order
their columns differently.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from ..errors import DuplicateKeyError, InvalidConfigError, MissingKeyColumnError
from ..table import Row, Table

logger = logging.getLogger(__name__)

DUPLICATE_KEY_POLICIES = ("last", "error")


class DiffType(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class DiffEntry:
    """
    Classification of one key across two tables.

    Attributes:
        type: added, removed, modified or unchanged
        key: Value of the key column
        data: Row from table B, or from table A when the key was removed
        original_data: Row from table A, set only for modified entries
        changed_columns: Names of the columns whose values differ
    """

    type: DiffType
    key: str
    data: Row
    original_data: Optional[Row] = None
    changed_columns: Tuple[str, ...] = ()


class DiffEngine:
    """Compares two tables row by row through a shared key column."""

    def compare(
        self,
        table_a: Table,
        table_b: Table,
        key_column: str,
        duplicate_keys: str = "last"
    ) -> List[DiffEntry]:
        """
        Classify the rows of two tables against a shared key column.

        Rows with an empty key are ignored. Entries come out in the order
        keys were first seen in table A, followed by keys that only exist in
        table B in B's order.

        Args:
            table_a: The original table
            table_b: The new table
            key_column: Column identifying a row in both tables
            duplicate_keys: 'last' lets a later row with the same key replace
                            the earlier one in the lookup; 'error' raises

        Returns:
            One DiffEntry per distinct non-empty key

        Raises:
            MissingKeyColumnError: If either table lacks the key column
            DuplicateKeyError: If duplicate_keys is 'error' and a key repeats
            InvalidConfigError: If duplicate_keys is not a known policy
        """
        if duplicate_keys not in DUPLICATE_KEY_POLICIES:
            raise InvalidConfigError(f"Unknown duplicate key policy: {duplicate_keys}")

        key_a = table_a.require_column(key_column, MissingKeyColumnError)
        key_b = table_b.require_column(key_column, MissingKeyColumnError)

        lookup_a = self._build_lookup(table_a, key_a, duplicate_keys)
        lookup_b = self._build_lookup(table_b, key_b, duplicate_keys)

        # Columns compared by name: (name, index in A, index in B)
        shared = []
        for name in dict.fromkeys(table_a.headers):
            index_b = table_b.header_index(name)
            if index_b is not None:
                shared.append((name, table_a.header_index(name), index_b))

        entries: List[DiffEntry] = []
        for key, row_a in lookup_a.items():
            row_b = lookup_b.get(key)
            if row_b is None:
                entries.append(DiffEntry(DiffType.REMOVED, key, row_a))
                continue

            changed = tuple(
                name for name, index_a, index_b in shared
                if _cell(row_a, index_a) != _cell(row_b, index_b)
            )
            if changed:
                entries.append(DiffEntry(DiffType.MODIFIED, key, row_b, row_a, changed))
            else:
                entries.append(DiffEntry(DiffType.UNCHANGED, key, row_b))

        for key, row_b in lookup_b.items():
            if key not in lookup_a:
                entries.append(DiffEntry(DiffType.ADDED, key, row_b))

        logger.debug("Compared '%s' with '%s' on '%s': %s",
                     table_a.name, table_b.name, key_column, summarize(entries))
        return entries

    @staticmethod
    def _build_lookup(table: Table, key_index: int, duplicate_keys: str) -> Dict[str, Row]:
        lookup: Dict[str, Row] = {}
        for row in table.rows:
            key = _cell(row, key_index)
            if not key:
                continue
            if key in lookup and duplicate_keys == "error":
                raise DuplicateKeyError(key, table.name)
            # Re-assigning keeps the key's first-seen position
            lookup[key] = row
        return lookup


def _cell(row: Sequence[str], index: int) -> str:
    return row[index] if index < len(row) else ""


# Create a singleton instance
diff_engine = DiffEngine()


def compare(table_a: Table, table_b: Table, key_column: str, duplicate_keys: str = "last") -> List[DiffEntry]:
    """Classify the rows of two tables against a shared key column."""
    return diff_engine.compare(table_a, table_b, key_column, duplicate_keys)


def summarize(entries: Sequence[DiffEntry]) -> Dict[str, int]:
    """
    Count diff entries per type.

    Returns:
        Dict with 'added', 'removed', 'modified', 'unchanged' and 'total'
    """
    counts = {diff_type.value: 0 for diff_type in DiffType}
    for entry in entries:
        counts[entry.type.value] += 1
    counts["total"] = len(entries)
    return counts


def diff_to_table(
    entries: Sequence[DiffEntry],
    table_a: Table,
    table_b: Table,
    only_differences: bool = False
) -> Table:
    """
    Turn diff entries into an exportable table.

    The columns are Status and Key followed by every column of table B and
    then the columns only table A has. Removed rows take their values from
    table A, all others from table B.

    Args:
        entries: Result of compare()
        table_a: The original table passed to compare()
        table_b: The new table passed to compare()
        only_differences: Leave out unchanged entries

    Returns:
        New table named after both inputs
    """
    columns = list(dict.fromkeys(list(table_b.headers) + list(table_a.headers)))
    rows = []
    for entry in entries:
        if only_differences and entry.type == DiffType.UNCHANGED:
            continue
        source = table_a if entry.type == DiffType.REMOVED else table_b
        values = source.row_as_dict(entry.data)
        rows.append([entry.type.value, entry.key] + [values.get(c, "") for c in columns])

    return table_b.derive(
        name=f"diff_{table_a.name}_{table_b.name}",
        headers=["Status", "Key"] + columns,
        rows=rows,
    )
