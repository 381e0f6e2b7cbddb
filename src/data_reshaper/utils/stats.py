"""
Table statistics for previews.

Builds a pandas DataFrame from a Table and summarises it: row and column
counts, fully empty rows and per-column fill and uniqueness figures.
"""

from typing import Any, Dict

import pandas as pd

from ..table import Table

SAMPLE_VALUES = 5


def to_dataframe(table: Table) -> pd.DataFrame:
    """
    Convert a table to a DataFrame of strings.

    Ragged rows are padded with empty strings (or cut) to the header width.
    Columns are positional, so duplicate header names are kept apart.

    Args:
        table: Table to convert

    Returns:
        DataFrame with a RangeIndex of columns; names are in table.headers
    """
    width = len(table.headers)
    rows = [list(row[:width]) + [""] * (width - len(row)) for row in table.rows]
    return pd.DataFrame(rows, columns=range(width), dtype=object)


def describe_table(table: Table) -> Dict[str, Any]:
    """
    Summarise a table.

    A cell counts as empty when it is blank after trimming whitespace.

    Args:
        table: Table to describe

    Returns:
        Dict with total_rows, total_columns, empty_rows, malformed_rows and a
        column_stats list (name, total_values, non_empty_values,
        empty_values, unique_values, sample_values)
    """
    df = to_dataframe(table)
    filled = df.apply(lambda column: column.str.strip() != "") if not df.empty else df

    column_stats = []
    for position, name in enumerate(table.headers):
        values = df[position]
        non_empty = values[filled[position]] if not df.empty else values
        uniques = list(pd.unique(non_empty))
        column_stats.append({
            "name": name,
            "total_values": int(len(values)),
            "non_empty_values": int(len(non_empty)),
            "empty_values": int(len(values) - len(non_empty)),
            "unique_values": len(uniques),
            "sample_values": uniques[:SAMPLE_VALUES],
        })

    empty_rows = int((~filled.any(axis=1)).sum()) if not df.empty else 0

    return {
        "name": table.name,
        "total_rows": table.row_count,
        "total_columns": table.column_count,
        "empty_rows": empty_rows,
        "malformed_rows": len(table.malformed_rows()),
        "column_stats": column_stats,
    }
