"""
data-reshaper: merge, compare and reshape delimited tabular files.

Parse CSV/TSV/XLSX content into immutable Table values, then append or join
them, diff two versions by key, filter rows and map them into a template's
column layout.
"""

from .errors import (
    ReshaperError,
    EmptyInputError,
    EncodingError,
    MalformedInputError,
    ColumnNotFoundError,
    MissingKeyColumnError,
    SchemaMismatchError,
    DuplicateKeyError,
    InvalidTemplateError,
    InvalidConfigError,
    RecordNotFoundError,
)
from .table import Table
from .template import Template, TemplateColumn
from .utils.file_utils import detect_delimiter, parse_content, parse_text, serialize_table
from .engines import (
    ColumnMapping,
    DiffEntry,
    DiffType,
    FilterPredicate,
    Recipe,
    apply_mapping,
    apply_recipe,
    apply_template,
    compare,
    filter_rows,
    merge,
)
from .stores import TemplateStore, RecipeStore

__version__ = "0.1.0"

__all__ = [
    'ReshaperError',
    'EmptyInputError',
    'EncodingError',
    'MalformedInputError',
    'ColumnNotFoundError',
    'MissingKeyColumnError',
    'SchemaMismatchError',
    'DuplicateKeyError',
    'InvalidTemplateError',
    'InvalidConfigError',
    'RecordNotFoundError',
    'Table',
    'Template',
    'TemplateColumn',
    'detect_delimiter',
    'parse_content',
    'parse_text',
    'serialize_table',
    'ColumnMapping',
    'DiffEntry',
    'DiffType',
    'FilterPredicate',
    'Recipe',
    'apply_mapping',
    'apply_recipe',
    'apply_template',
    'compare',
    'filter_rows',
    'merge',
    'TemplateStore',
    'RecipeStore',
]
