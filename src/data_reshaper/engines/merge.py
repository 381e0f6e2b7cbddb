"""
Merge engine for combining several tables into one.

Two strategies are supported:
- append: rows of every table stacked under the first table's headers
- join: inner join on a key column across all tables
"""

import logging
from typing import Dict, List, Optional, Sequence

from ..errors import EmptyInputError, MissingKeyColumnError, SchemaMismatchError, InvalidConfigError
from ..table import Row, Table

logger = logging.getLogger(__name__)

MERGE_STRATEGIES = ("append", "join")


class MergeEngine:
    """Combines tables by appending rows or joining on a key column."""

    def append(self, tables: Sequence[Table], strict: bool = True) -> Table:
        """
        Stack the rows of all tables under the first table's headers.

        Rows are appended as they are: no column reconciliation or reordering
        takes place.

        Args:
            tables: Tables to merge, in output order
            strict: Raise when a later table's headers differ from the first
                    table's. When False the mismatch is only logged and the
                    rows are appended anyway.

        Returns:
            New table with len(tables[0].rows) + len(tables[1].rows) + ... rows

        Raises:
            EmptyInputError: If no tables are given
            SchemaMismatchError: If strict and the headers differ
        """
        if not tables:
            raise EmptyInputError("No tables to merge")

        first = tables[0]
        rows: List[Row] = []
        for table in tables:
            if table.headers != first.headers:
                message = (f"Headers of '{table.name}' {list(table.headers)} differ from "
                           f"'{first.name}' {list(first.headers)}")
                if strict:
                    raise SchemaMismatchError(message)
                logger.warning("%s; appending rows unaligned", message)
            rows.extend(table.rows)

        logger.debug("Appended %d tables into %d rows", len(tables), len(rows))
        return first.derive(
            name="merged_" + "_".join(t.name for t in tables),
            rows=rows,
        )

    def join(self, tables: Sequence[Table], join_column: str) -> Table:
        """
        Inner join all tables on a key column.

        The join is folded from left to right: the first two tables are
        joined, then the result with the third, and so on, so only keys
        present in every table survive. Output headers are the first table's
        headers followed by every later header not seen yet. When a non-key
        column exists in more than one table the earliest table's value is
        kept. A key matching several rows yields one output row per pair.

        Args:
            tables: Tables to join
            join_column: Column name present in every table

        Returns:
            New joined table

        Raises:
            EmptyInputError: If no tables are given
            MissingKeyColumnError: If a table lacks the join column
        """
        if not tables:
            raise EmptyInputError("No tables to merge")

        # Validate every input before doing any work
        for table in tables:
            table.require_column(join_column, MissingKeyColumnError)

        headers = list(tables[0].headers)
        key_index = tables[0].header_index(join_column)
        rows = [self._fit(row, len(headers)) for row in tables[0].rows]

        for table in tables[1:]:
            right_key = table.header_index(join_column)
            new_columns = [i for i, h in enumerate(table.headers) if h not in headers]

            index: Dict[str, List[Row]] = {}
            for row in table.rows:
                key = row[right_key] if right_key < len(row) else ""
                index.setdefault(key, []).append(row)

            joined = []
            for left in rows:
                for right in index.get(left[key_index], []):
                    extra = tuple(right[i] if i < len(right) else "" for i in new_columns)
                    joined.append(left + extra)

            headers.extend(table.headers[i] for i in new_columns)
            rows = joined

        logger.debug("Joined %d tables on '%s' into %d rows", len(tables), join_column, len(rows))
        return tables[0].derive(
            name="joined_" + "_".join(t.name for t in tables),
            headers=headers,
            rows=rows,
        )

    def merge(self, tables: Sequence[Table], strategy: str = "append", join_column: Optional[str] = None) -> Table:
        """
        Merge tables with the named strategy.

        Raises:
            InvalidConfigError: If the strategy is unknown or join has no column
        """
        if strategy not in MERGE_STRATEGIES:
            raise InvalidConfigError(f"Unknown merge strategy: {strategy}")
        if strategy == "append":
            return self.append(tables)
        if not join_column:
            raise InvalidConfigError("Join merge requires a join column")
        return self.join(tables, join_column)

    @staticmethod
    def _fit(row: Row, width: int) -> Row:
        # Joined columns are appended after position `width`
        if len(row) >= width:
            return row[:width]
        return row + ("",) * (width - len(row))


# Create a singleton instance
merge_engine = MergeEngine()


def merge_append(tables: Sequence[Table], strict: bool = True) -> Table:
    """Stack the rows of all tables under the first table's headers."""
    return merge_engine.append(tables, strict)


def merge_join(tables: Sequence[Table], join_column: str) -> Table:
    """Inner join all tables on a key column."""
    return merge_engine.join(tables, join_column)


def merge(tables: Sequence[Table], strategy: str = "append", join_column: Optional[str] = None) -> Table:
    """Merge tables with the named strategy ('append' or 'join')."""
    return merge_engine.merge(tables, strategy, join_column)
