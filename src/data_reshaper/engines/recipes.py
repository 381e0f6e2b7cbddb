"""
Recipes: saved transformation pipelines.

A recipe records how a set of input files becomes one output table:
merge the inputs, filter the rows, then map them into the target columns
(optionally bound to a stored template).
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Sequence, Tuple

from ..errors import EmptyInputError
from ..table import Table
from .filtering import FilterPredicate, filter_rows
from .mapping import ColumnMapping, apply_mapping, apply_template
from .merge import merge

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Recipe:
    """
    A named pipeline definition.

    Attributes:
        name: Display name
        description: Free text
        merge_strategy: 'append' or 'join', used when more than one table is given
        join_column: Key column for the join strategy
        template_id: Template whose column layout the output follows
        mappings: Column mappings; without any, rows pass through unmapped
        filters: Row predicates applied after merging
        created: ISO timestamp, set by the recipe store
        last_used: ISO timestamp of the last run, set by the recipe store
        id: Assigned by the recipe store on first save
    """

    name: str
    description: str = ""
    merge_strategy: str = "append"
    join_column: Optional[str] = None
    template_id: Optional[str] = None
    mappings: Tuple[ColumnMapping, ...] = ()
    filters: Tuple[FilterPredicate, ...] = ()
    created: Optional[str] = None
    last_used: Optional[str] = None
    id: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "mappings", tuple(self.mappings))
        object.__setattr__(self, "filters", tuple(self.filters))

    def with_changes(self, **changes) -> "Recipe":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "merge_strategy": self.merge_strategy,
            "join_column": self.join_column,
            "template_id": self.template_id,
            "mappings": [m.to_dict() for m in self.mappings],
            "filters": [f.to_dict() for f in self.filters],
            "created": self.created,
            "last_used": self.last_used,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Recipe":
        return cls(
            id=data.get("id"),
            name=data.get("name", ""),
            description=data.get("description") or "",
            merge_strategy=data.get("merge_strategy") or "append",
            join_column=data.get("join_column"),
            template_id=data.get("template_id"),
            mappings=[ColumnMapping.from_dict(m) for m in data.get("mappings", [])],
            filters=[FilterPredicate.from_dict(f) for f in data.get("filters", [])],
            created=data.get("created"),
            last_used=data.get("last_used"),
        )


def apply_recipe(tables: Sequence[Table], recipe: Recipe, template_store=None) -> Table:
    """
    Run a recipe over input tables.

    Args:
        tables: Input tables; merged with the recipe's strategy when there is more than one
        recipe: Recipe to run
        template_store: TemplateStore used to resolve recipe.template_id

    Returns:
        The resulting table

    Raises:
        EmptyInputError: If no tables are given
        RecordNotFoundError: If the recipe's template does not exist
        ValueError: If template_id is set but no template_store was given
    """
    if not tables:
        raise EmptyInputError(f"Recipe '{recipe.name}' needs at least one input table")

    if len(tables) == 1:
        working = tables[0]
    else:
        working = merge(tables, recipe.merge_strategy, recipe.join_column)

    if recipe.filters:
        working = filter_rows(working, recipe.filters)

    if recipe.template_id:
        if template_store is None:
            raise ValueError(f"Recipe '{recipe.name}' references a template but no template store was given")
        template = template_store.get(recipe.template_id)
        working = apply_template(working, template, recipe.mappings)
    elif recipe.mappings:
        working = apply_mapping(working, recipe.mappings)

    logger.info("Recipe '%s' produced %d rows from %d table(s)", recipe.name, working.row_count, len(tables))
    return working
