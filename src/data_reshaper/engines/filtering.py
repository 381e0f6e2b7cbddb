"""
Row filtering applied to a source table before mapping.

Each predicate binds one column to one condition. Predicates are combined
with logical AND in the order given.

The numeric conditions (greater_than, less_than) read the leading decimal
number of both the cell and the predicate value, so "12 kg" compares as 12.
Only plain decimal notation counts: "inf" and "nan" have no leading number,
and a digit separator ends the number, so "1_000" and "1,000" both read as 1.
A value with no leading number counts as NaN, and a comparison involving NaN
is always false, so non-numeric rows are dropped by either numeric condition
instead of raising.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Sequence

from ..errors import InvalidConfigError
from ..table import Table
from ..utils.schema_utils import validate_config

logger = logging.getLogger(__name__)

LEADING_NUMBER = re.compile(r"\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")


def _to_float(text: str) -> float:
    match = LEADING_NUMBER.match(text)
    return float(match.group(1)) if match else math.nan


CONDITIONS: Dict[str, Callable[[str, str], bool]] = {
    "contains": lambda cell, value: value in cell,
    "equals": lambda cell, value: cell == value,
    "starts_with": lambda cell, value: cell.startswith(value),
    "ends_with": lambda cell, value: cell.endswith(value),
    "not_empty": lambda cell, value: cell.strip() != "",
    "empty": lambda cell, value: cell.strip() == "",
    "greater_than": lambda cell, value: _to_float(cell) > _to_float(value),
    "less_than": lambda cell, value: _to_float(cell) < _to_float(value),
}


@dataclass(frozen=True)
class FilterPredicate:
    column: str
    condition: str
    value: str = ""

    def __post_init__(self):
        if self.condition not in CONDITIONS:
            raise InvalidConfigError(f"Unknown filter condition: {self.condition}")

    def matches(self, cell: str) -> bool:
        return CONDITIONS[self.condition](cell, self.value)

    @classmethod
    def from_dict(cls, spec: Dict[str, Any]) -> "FilterPredicate":
        return cls(spec["column"], spec["condition"], spec.get("value", ""))

    def to_dict(self) -> Dict[str, str]:
        return {"column": self.column, "condition": self.condition, "value": self.value}


def load_filters(config: Sequence[Dict[str, Any]], label: str = "filters") -> List[FilterPredicate]:
    """
    Build predicates from plain dicts after schema validation.

    Raises:
        InvalidConfigError: If the configuration does not match filters.json
    """
    validate_config(list(config), "filters", label)
    return [FilterPredicate.from_dict(spec) for spec in config]


def filter_rows(table: Table, predicates: Sequence[FilterPredicate]) -> Table:
    """
    Keep only the rows matching every predicate.

    A predicate naming a column the table does not have is skipped with a
    warning rather than failing the whole filter.

    Args:
        table: Source table
        predicates: Predicates, applied in order

    Returns:
        New table with the same headers and the surviving rows
    """
    rows = list(table.rows)
    for predicate in predicates:
        index = table.header_index(predicate.column)
        if index is None:
            logger.warning("Filter column '%s' not found in '%s', skipping filter",
                           predicate.column, table.name)
            continue
        rows = [
            row for row in rows
            if predicate.matches(row[index] if index < len(row) else "")
        ]

    logger.debug("Filtered '%s' from %d to %d rows", table.name, table.row_count, len(rows))
    return table.derive(rows=rows)
