"""Table engines: merge, diff, template mapping, row filtering and recipes."""

from .merge import MergeEngine, merge, merge_append, merge_join
from .diff import DiffEngine, DiffEntry, DiffType, compare, diff_to_table, summarize
from .mapping import ColumnMapping, apply_mapping, apply_template, initial_mappings, load_mappings
from .filtering import FilterPredicate, filter_rows, load_filters
from .recipes import Recipe, apply_recipe

__all__ = [
    'MergeEngine',
    'merge',
    'merge_append',
    'merge_join',
    'DiffEngine',
    'DiffEntry',
    'DiffType',
    'compare',
    'diff_to_table',
    'summarize',
    'ColumnMapping',
    'apply_mapping',
    'apply_template',
    'initial_mappings',
    'load_mappings',
    'FilterPredicate',
    'filter_rows',
    'load_filters',
    'Recipe',
    'apply_recipe',
]
