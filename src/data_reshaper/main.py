"""
Command-line entry point.

    data-reshaper inspect users.csv
    data-reshaper merge a.csv b.csv --strategy join --join-column id -o merged.csv
    data-reshaper diff old.csv new.csv --key id --only-differences
    data-reshaper map users.csv --template <id> --mappings mappings.json
    data-reshaper templates list
    data-reshaper recipes run <id> a.csv b.csv
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from .config import get_settings
from .engines.diff import compare, diff_to_table, summarize
from .engines.filtering import filter_rows, load_filters
from .engines.mapping import apply_mapping, apply_template, initial_mappings, load_mappings
from .engines.merge import MERGE_STRATEGIES, merge
from .engines.recipes import apply_recipe
from .errors import ReshaperError
from .sources import close_session, load_tables
from .stores.backends import create_backend
from .stores.recipe_store import RecipeStore, load_recipe
from .stores.template_store import TemplateStore
from .table import Table
from .utils.file_utils import serialize_table
from .utils.stats import describe_table


def _read_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _load(args, locations: List[str]) -> List[Table]:
    """Load tables through the async source layer, closing the HTTP session afterwards."""
    async def run():
        try:
            return await load_tables(
                locations,
                delimiter=args.delimiter,
                encoding=args.encoding,
                has_header=not args.no_header,
            )
        finally:
            await close_session()

    return asyncio.run(run())


def _write(table: Table, args) -> None:
    text = serialize_table(table, delimiter=args.output_delimiter)
    if not table.trailing_newline:
        text += table.line_terminator
    if args.output:
        with open(args.output, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        print(f"✓ Wrote {table.row_count} rows to {args.output}", file=sys.stderr)
    else:
        sys.stdout.write(text)


def cmd_inspect(args) -> int:
    for table in _load(args, args.sources):
        stats = describe_table(table)
        print(f"\n=== {table.name} ===")
        print(f"Delimiter: {table.delimiter!r}  Encoding: {table.encoding}")
        print(f"Rows: {stats['total_rows']}  Columns: {stats['total_columns']}  "
              f"Empty rows: {stats['empty_rows']}  Malformed rows: {stats['malformed_rows']}")
        for column in stats["column_stats"]:
            samples = ", ".join(column["sample_values"])
            print(f"  - {column['name']}: {column['non_empty_values']}/{column['total_values']} filled, "
                  f"{column['unique_values']} unique  [{samples}]")
    return 0


def cmd_merge(args) -> int:
    tables = _load(args, args.sources)
    result = merge(tables, args.strategy, args.join_column)
    _write(result, args)
    return 0


def cmd_diff(args) -> int:
    table_a, table_b = _load(args, [args.old, args.new])
    entries = compare(table_a, table_b, args.key, args.duplicate_keys)
    counts = summarize(entries)
    print(f"Added: {counts['added']}  Removed: {counts['removed']}  "
          f"Modified: {counts['modified']}  Unchanged: {counts['unchanged']}  "
          f"Total: {counts['total']}", file=sys.stderr)
    _write(diff_to_table(entries, table_a, table_b, args.only_differences), args)
    return 0


def cmd_map(args) -> int:
    (source,) = _load(args, [args.source])
    if args.filters:
        source = filter_rows(source, load_filters(_read_json(args.filters), args.filters))

    mappings = load_mappings(_read_json(args.mappings), args.mappings) if args.mappings else None
    if args.template:
        template = TemplateStore(create_backend()).get(args.template)
        result = apply_template(source, template, mappings or initial_mappings(template, source))
    elif mappings:
        result = apply_mapping(source, mappings)
    else:
        print("✗ Either --template or --mappings is required", file=sys.stderr)
        return 2

    _write(result, args)
    return 0


def cmd_templates(args) -> int:
    store = TemplateStore(create_backend())

    if args.action == "list":
        templates = store.list()
        print(f"\n=== Templates ===")
        for template in templates:
            print(f"{template.id}  {template.name} ({len(template.columns)} columns)")
        print(f"Total: {len(templates)}")
    elif args.action == "import":
        text = Path(args.file).read_text(encoding=args.encoding or get_settings().default_encoding)
        template = store.import_from_header_row(
            text, name=args.name or Path(args.file).stem, description=args.description
        )
        print(f"✓ Imported template '{template.name}' (ID: {template.id})")
    elif args.action == "export":
        print(store.export_as_header_row(store.get(args.id), args.output_delimiter or ","))
    elif args.action == "duplicate":
        copy = store.duplicate(args.id)
        print(f"✓ Created '{copy.name}' (ID: {copy.id})")
    elif args.action == "delete":
        if not store.delete(args.id):
            print(f"✗ Template '{args.id}' not found", file=sys.stderr)
            return 1
        print(f"✓ Deleted template {args.id}")
    return 0


def cmd_recipes(args) -> int:
    backend = create_backend()
    store = RecipeStore(backend)

    if args.action == "list":
        recipes = store.list()
        print(f"\n=== Recipes ===")
        for recipe in recipes:
            print(f"{recipe.id}  {recipe.name} [{recipe.merge_strategy}] last used: {recipe.last_used or 'never'}")
        print(f"Total: {len(recipes)}")
    elif args.action == "add":
        recipe = store.save(load_recipe(_read_json(args.file), args.file))
        print(f"✓ Saved recipe '{recipe.name}' (ID: {recipe.id})")
    elif args.action == "run":
        recipe = store.get(args.id)
        result = apply_recipe(_load(args, args.sources), recipe, TemplateStore(backend))
        store.touch(recipe.id)
        _write(result, args)
    return 0


def _add_input_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--delimiter", help="Input delimiter (detected when omitted)")
    parser.add_argument("--encoding", help="Input encoding (default: DEFAULT_ENCODING)")
    parser.add_argument("--no-header", action="store_true", help="Inputs have no header row")


def _add_output_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-o", "--output", help="Write the result to this file instead of stdout")
    parser.add_argument("--output-delimiter", help="Delimiter for the result (default: the table's own)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="data-reshaper", description="Merge, compare and reshape tabular files")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p = subparsers.add_parser("inspect", help="Show structure and column statistics")
    p.add_argument("sources", nargs="+")
    _add_input_options(p)
    p.set_defaults(func=cmd_inspect)

    p = subparsers.add_parser("merge", help="Append or join several tables")
    p.add_argument("sources", nargs="+")
    p.add_argument("--strategy", choices=MERGE_STRATEGIES, default="append")
    p.add_argument("--join-column", help="Key column for --strategy join")
    _add_input_options(p)
    _add_output_options(p)
    p.set_defaults(func=cmd_merge)

    p = subparsers.add_parser("diff", help="Compare two versions of a table by key")
    p.add_argument("old")
    p.add_argument("new")
    p.add_argument("--key", required=True, help="Key column present in both tables")
    p.add_argument("--duplicate-keys", choices=("last", "error"), default="last")
    p.add_argument("--only-differences", action="store_true")
    _add_input_options(p)
    _add_output_options(p)
    p.set_defaults(func=cmd_diff)

    p = subparsers.add_parser("map", help="Map a table into a template or a set of mappings")
    p.add_argument("source")
    p.add_argument("--template", help="Stored template id")
    p.add_argument("--mappings", help="JSON file with column mappings")
    p.add_argument("--filters", help="JSON file with row filters")
    _add_input_options(p)
    _add_output_options(p)
    p.set_defaults(func=cmd_map)

    p = subparsers.add_parser("templates", help="Manage stored templates")
    actions = p.add_subparsers(dest="action", required=True)
    actions.add_parser("list")
    a = actions.add_parser("import", help="Create a template from a file's header row")
    a.add_argument("file")
    a.add_argument("--name")
    a.add_argument("--description", default="")
    a.add_argument("--encoding")
    a = actions.add_parser("export", help="Print a template as a header row")
    a.add_argument("id")
    a.add_argument("--output-delimiter")
    actions.add_parser("duplicate").add_argument("id")
    actions.add_parser("delete").add_argument("id")
    p.set_defaults(func=cmd_templates)

    p = subparsers.add_parser("recipes", help="Manage and run stored recipes")
    actions = p.add_subparsers(dest="action", required=True)
    actions.add_parser("list")
    actions.add_parser("add", help="Store a recipe from a JSON file").add_argument("file")
    a = actions.add_parser("run", help="Run a recipe over input files")
    a.add_argument("id")
    a.add_argument("sources", nargs="+")
    _add_input_options(a)
    _add_output_options(a)
    p.set_defaults(func=cmd_recipes)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    level = logging.DEBUG if args.verbose else getattr(logging, get_settings().log_level, logging.WARNING)
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    try:
        return args.func(args)
    except ReshaperError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
