"""
Exception types raised by the data-reshaper engine.

Only structurally invalid input is reported through these exceptions.
Missing cell data and unresolved column mappings are absorbed into empty
strings by the engines and never raise.
"""


class ReshaperError(Exception):
    """Base class for all errors raised by the engine."""


class EmptyInputError(ReshaperError):
    """Raised when there is nothing to parse or nothing to merge."""


class MalformedInputError(ReshaperError):
    """Raised when delimited text cannot be split into rows, e.g. an unclosed quote."""


class EncodingError(ReshaperError):
    """Raised when raw bytes cannot be decoded with the requested encoding."""

    def __init__(self, encoding: str, detail: str):
        self.encoding = encoding
        super().__init__(f"Cannot decode content as '{encoding}': {detail}")


class ColumnNotFoundError(ReshaperError):
    """Raised when an operation needs a column the table does not have."""

    def __init__(self, column: str, table_name: str = ""):
        self.column = column
        self.table_name = table_name
        where = f" in table '{table_name}'" if table_name else ""
        super().__init__(f"Column '{column}' not found{where}")


class MissingKeyColumnError(ColumnNotFoundError):
    """Raised when a join or diff key column is absent from an input table."""


class SchemaMismatchError(ReshaperError):
    """Raised when tables appended together do not share the same headers."""


class DuplicateKeyError(ReshaperError):
    """Raised by the diff engine when a key occurs twice and duplicates are not allowed."""

    def __init__(self, key: str, table_name: str = ""):
        self.key = key
        where = f" in table '{table_name}'" if table_name else ""
        super().__init__(f"Duplicate key '{key}'{where}")


class InvalidTemplateError(ReshaperError):
    """Raised when a template fails validation."""


class InvalidConfigError(ReshaperError):
    """Raised when a mapping, filter or recipe configuration is invalid."""


class RecordNotFoundError(ReshaperError, KeyError):
    """Raised when a store has no record with the requested id."""

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} '{record_id}' not found")

    def __str__(self) -> str:
        return self.args[0]
