"""
Template model: a named, reusable target column schema.

A template only describes the target shape. Binding it to a source table is
the job of the column mappings of one mapping session.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Tuple

COLUMN_TYPES = ("string", "number", "email", "date", "boolean")


@dataclass(frozen=True)
class TemplateColumn:
    name: str
    type: str = "string"
    required: bool = False
    formula: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"name": self.name, "type": self.type, "required": self.required}
        if self.formula:
            data["formula"] = self.formula
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TemplateColumn":
        return cls(
            name=data["name"],
            type=data.get("type") or "string",
            required=bool(data.get("required", False)),
            formula=data.get("formula") or None,
        )


@dataclass(frozen=True)
class Template:
    """
    Target schema definition.

    Attributes:
        name: Display name, must not be blank
        columns: Target columns in output order
        description: Free text
        id: Assigned by the template store on first save
    """

    name: str
    columns: Tuple[TemplateColumn, ...] = ()
    description: str = ""
    id: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "columns", tuple(self.columns))

    @property
    def column_names(self) -> Tuple[str, ...]:
        return tuple(column.name for column in self.columns)

    def with_changes(self, **changes) -> "Template":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "columns": [column.to_dict() for column in self.columns],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Template":
        return cls(
            id=data.get("id"),
            name=data.get("name", ""),
            description=data.get("description") or "",
            columns=[TemplateColumn.from_dict(c) for c in data.get("columns", [])],
        )
