"""
Utility modules for the data-reshaper project.

This package contains reusable utility functions for:
- Schema validation (schema_utils)
- File parsing, format detection and serialization (file_utils)
- Value transformation and formula substitution (data_utils)
- Table statistics (stats)
"""

from .schema_utils import load_schema, validate_config
from .file_utils import (
    detect_delimiter,
    detect_file_format,
    parse_content,
    parse_text,
    parse_xlsx,
    serialize_table,
)
from .data_utils import apply_transformation, substitute_formula
from .stats import describe_table, to_dataframe

__all__ = [
    'load_schema',
    'validate_config',
    'detect_delimiter',
    'detect_file_format',
    'parse_content',
    'parse_text',
    'parse_xlsx',
    'serialize_table',
    'apply_transformation',
    'substitute_formula',
    'describe_table',
    'to_dataframe',
]
