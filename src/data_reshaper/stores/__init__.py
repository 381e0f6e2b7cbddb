"""Template and recipe persistence."""

from .backends import InMemoryBackend, JsonFileBackend, SqlBackend, StorageBackend, create_backend
from .template_store import TemplateStore
from .recipe_store import RecipeStore

__all__ = [
    'StorageBackend',
    'InMemoryBackend',
    'JsonFileBackend',
    'SqlBackend',
    'create_backend',
    'TemplateStore',
    'RecipeStore',
]
