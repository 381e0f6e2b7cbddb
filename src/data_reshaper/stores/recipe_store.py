"""Recipe store: persisted transformation pipelines."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List

from ..engines.recipes import Recipe
from ..errors import InvalidConfigError, RecordNotFoundError
from ..utils.schema_utils import validate_config
from .backends import StorageBackend


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def load_recipe(config: Dict[str, Any], label: str = "recipe") -> Recipe:
    """
    Build a recipe from a plain dict after schema validation.

    Raises:
        InvalidConfigError: If the configuration does not match recipe.json
    """
    validate_config(config, "recipe", label)
    return Recipe.from_dict(config)


class RecipeStore:

    NAMESPACE = "recipes"

    def __init__(self, backend: StorageBackend):
        self.backend = backend

    def list(self) -> List[Recipe]:
        return [Recipe.from_dict(record) for record in self.backend.load_all(self.NAMESPACE)]

    def get(self, recipe_id: str) -> Recipe:
        record = self.backend.get(self.NAMESPACE, recipe_id)
        if record is None:
            raise RecordNotFoundError("Recipe", recipe_id)
        return Recipe.from_dict(record)

    def save(self, recipe: Recipe) -> Recipe:
        """
        Validate and store a recipe, assigning an id and creation time when new.

        Raises:
            InvalidConfigError: If validation fails
        """
        if not recipe.id:
            recipe = recipe.with_changes(id=uuid.uuid4().hex, created=recipe.created or _now_iso())
        record = recipe.to_dict()
        validate_config(record, "recipe", f"recipe '{recipe.name}'", InvalidConfigError)
        self.backend.put(self.NAMESPACE, recipe.id, record)
        return recipe

    def touch(self, recipe_id: str) -> Recipe:
        """Record that a recipe has just been used."""
        return self.save(self.get(recipe_id).with_changes(last_used=_now_iso()))

    def delete(self, recipe_id: str) -> bool:
        return self.backend.delete(self.NAMESPACE, recipe_id)
