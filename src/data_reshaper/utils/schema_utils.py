"""JSON-schema validation of templates, mappings, filters and recipes."""

from typing import Dict, Any, Type
import json
from pathlib import Path
from jsonschema import validate, ValidationError, SchemaError

from ..errors import InvalidConfigError, ReshaperError

SCHEMA_DIR = Path(__file__).parent.parent / "schemas"

# Bundled schemas by name, loaded on first use
_SCHEMA_CACHE: Dict[str, Dict[str, Any]] = {}


def schema_path(schema_name: str) -> Path:
    return SCHEMA_DIR / f"{schema_name}.json"


def load_schema(schema_name: str) -> Dict[str, Any]:
    """
    Load a bundled schema such as "template" or "mapping".

    Raises:
        FileNotFoundError: If no schema with that name is bundled
    """
    if schema_name not in _SCHEMA_CACHE:
        path = schema_path(schema_name)
        if not path.exists():
            raise FileNotFoundError(f"Schema file not found: {path}")
        _SCHEMA_CACHE[schema_name] = json.loads(path.read_text(encoding='utf-8'))
    return _SCHEMA_CACHE[schema_name]


def validate_config(
    config: Any,
    schema_name: str,
    label: str,
    error_cls: Type[ReshaperError] = InvalidConfigError
) -> None:
    """
    Validate a configuration value against a bundled schema.

    Args:
        config: Parsed JSON value (dict or list)
        schema_name: Bundled schema name
        label: What is being validated, used in the error message
        error_cls: Exception type raised on failure

    Raises:
        error_cls: If the value does not match the schema
        RuntimeError: If the bundled schema itself is broken
    """
    try:
        validate(instance=config, schema=load_schema(schema_name))
    except SchemaError as e:
        raise RuntimeError(f"Invalid schema '{schema_name}': {e.message}") from e
    except ValidationError as e:
        location = ' -> '.join(str(p) for p in e.path) if e.path else 'root'
        raise error_cls(f"Validation failed for {label} at {location}: {e.message}") from e
