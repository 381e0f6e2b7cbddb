"""
Template mapping engine.

Projects a source table into a target column layout. For every target
column and every source row the value is resolved by strict priority:

1. formula: header names in the formula text are replaced by the row's cells
2. source column: the cell is copied and the optional transformation applied
3. default value, or an empty string

Nothing in this resolution is fatal. A column that cannot be resolved is
left empty so a partial result is always available for preview or export.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..table import Table
from ..template import Template
from ..transformers import TransformerBase
from ..utils.data_utils import (
    TransformSpec,
    build_formula_lookup,
    build_formula_pattern,
    build_transformer,
    substitute_formula,
)
from ..utils.schema_utils import validate_config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColumnMapping:
    """
    Binding rule for one target column.

    Attributes:
        template_column: Target column name
        source_column: Source header to copy from
        transformation: Transformer name or {"type": ..., params} applied to the copied cell
        formula: Text in which source header names are substituted
        default_value: Literal used when neither formula nor source column applies
    """

    template_column: str
    source_column: Optional[str] = None
    transformation: TransformSpec = None
    formula: Optional[str] = None
    default_value: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "template_column": self.template_column,
            "source_column": self.source_column,
            "transformation": self.transformation,
            "formula": self.formula,
            "default_value": self.default_value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ColumnMapping":
        return cls(
            template_column=data["template_column"],
            source_column=data.get("source_column") or None,
            transformation=data.get("transformation") or None,
            formula=data.get("formula") or None,
            default_value=data.get("default_value"),
        )


def load_mappings(config: Sequence[Dict[str, Any]], label: str = "mappings") -> List[ColumnMapping]:
    """
    Build column mappings from plain dicts after schema validation.

    Raises:
        InvalidConfigError: If the configuration does not match mapping.json
    """
    validate_config(list(config), "mapping", label)
    return [ColumnMapping.from_dict(spec) for spec in config]


class _CompiledMapping:
    """A mapping with its source index and transformer resolved once per table."""

    def __init__(self, mapping: ColumnMapping, source: Table):
        self.mapping = mapping
        self.has_formula = bool(mapping.formula and mapping.formula.strip())
        self.source_index = None
        self.transformer: Optional[TransformerBase] = None

        if not self.has_formula:
            # Validated even when the source column is absent
            self.transformer = build_transformer(mapping.transformation)
            if mapping.source_column:
                self.source_index = source.header_index(mapping.source_column)
                if self.source_index is None:
                    logger.warning("Source column '%s' for '%s' not found in '%s', using default",
                                   mapping.source_column, mapping.template_column, source.name)

    def resolve(self, row: Sequence[str], pattern, lookup: Dict[str, str]) -> str:
        if self.has_formula:
            return substitute_formula(self.mapping.formula, pattern, lookup)
        if self.source_index is not None:
            value = row[self.source_index] if self.source_index < len(row) else ""
            if self.transformer is not None:
                value = self.transformer.transform(value)
            return value
        return self.mapping.default_value or ""


def apply_mapping(source: Table, mappings: Sequence[ColumnMapping], name: Optional[str] = None) -> Table:
    """
    Project a source table through column mappings.

    Args:
        source: Table to read from
        mappings: One mapping per output column, in output order
        name: Name of the result table (default: source name with a suffix)

    Returns:
        New table whose headers are the mappings' target columns and which
        has one row per source row

    Raises:
        InvalidConfigError: If a mapping names an unknown or misconfigured transformation
    """
    compiled = [_CompiledMapping(mapping, source) for mapping in mappings]
    pattern = build_formula_pattern(source.headers)
    needs_lookup = any(c.has_formula for c in compiled)

    rows = []
    for row in source.rows:
        lookup = build_formula_lookup(source.headers, row) if needs_lookup else {}
        rows.append([c.resolve(row, pattern, lookup) for c in compiled])

    logger.debug("Mapped %d rows of '%s' into %d columns", len(rows), source.name, len(compiled))
    return source.derive(
        name=name or f"{source.name}_mapped",
        headers=[mapping.template_column for mapping in mappings],
        rows=rows,
    )


def initial_mappings(template: Template, source: Optional[Table] = None) -> List[ColumnMapping]:
    """
    Starting mappings for a template.

    Each template column gets its template formula, if any, and when a
    source table is given, the source column whose name matches the target
    name case-insensitively.

    Args:
        template: Target template
        source: Optional source table used to pre-select source columns

    Returns:
        One mapping per template column
    """
    by_lower = {}
    if source is not None:
        for header in source.headers:
            by_lower.setdefault(header.lower(), header)

    return [
        ColumnMapping(
            template_column=column.name,
            source_column=by_lower.get(column.name.lower()),
            transformation="direct",
            formula=column.formula,
        )
        for column in template.columns
    ]


def apply_template(source: Table, template: Template, mappings: Sequence[ColumnMapping]) -> Table:
    """
    Map a source table into a template's column layout.

    Output columns follow the template's column order. A template column
    without a mapping comes out empty; mappings for columns the template does
    not define are ignored.

    Args:
        source: Table to read from
        template: Target template
        mappings: Column mappings for this session

    Returns:
        New table shaped like the template
    """
    by_column = {}
    for mapping in mappings:
        by_column.setdefault(mapping.template_column, mapping)

    ordered = [by_column.get(name) or ColumnMapping(template_column=name) for name in template.column_names]
    ignored = set(by_column) - set(template.column_names)
    if ignored:
        logger.warning("Ignoring mappings for columns not in template '%s': %s",
                       template.name, ", ".join(sorted(ignored)))

    return apply_mapping(source, ordered, name=f"{source.name}_template_{template.name}")
