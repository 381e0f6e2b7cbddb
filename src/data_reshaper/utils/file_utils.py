"""
File parsing utilities for delimited text and spreadsheet content.

This module provides functions to detect delimiters and file formats, decode
raw bytes, parse CSV/TSV/XLSX content into Table values and serialize tables
back into delimited text for export.
"""

import io
import csv
import math
import sys
import logging
import zipfile
from typing import Any, List, Optional, Sequence

import pandas as pd

from ..config import get_settings
from ..errors import EmptyInputError, EncodingError, MalformedInputError
from ..table import Table

logger = logging.getLogger(__name__)

# Candidates in tie-break order: on equal scores semicolon beats comma
CANDIDATE_DELIMITERS = [";", ",", "\t", "|"]

# A single-field header containing one of these triggers a re-parse with it
RESPLIT_DELIMITERS = [";", ","]

XLSX_MAGIC = b"PK\x03\x04"
BOM = "\ufeff"
QUOTE_CHAR = '"'
LINE_BREAKS = ("\n", "\r")

# Quoted cells may hold whole documents; lift the 128 KiB default once
try:
    csv.field_size_limit(sys.maxsize)
except OverflowError:
    csv.field_size_limit(2 ** 31 - 1)


def _strip_bom(text: str) -> str:
    return text[1:] if text.startswith(BOM) else text


def _count_fields(line: str, delimiter: str) -> int:
    """Count the fields of one line, honouring quoted fields."""
    try:
        return len(next(csv.reader([line], delimiter=delimiter)))
    except (csv.Error, StopIteration):
        return line.count(delimiter) + 1


def detect_delimiter(raw_text: str, sample_size: Optional[int] = None, sample_lines: Optional[int] = None) -> str:
    """
    Guess the delimiter of delimited text.

    Samples the first non-blank lines and scores every candidate delimiter by
    its average field count weighted by how consistent that count is from line
    to line. A candidate that never splits a line (average of one field) can
    not win.

    Args:
        raw_text: Decoded file content
        sample_size: Number of leading characters to inspect (default from settings)
        sample_lines: Number of non-blank lines to inspect (default from settings)

    Returns:
        The best delimiter, or the configured default when nothing splits
    """
    settings = get_settings()
    sample_size = sample_size or settings.sample_size
    sample_lines = sample_lines or settings.sample_lines

    sample = _strip_bom(raw_text)[:sample_size]
    lines = [line for line in sample.splitlines() if line.strip()][:sample_lines]
    if not lines:
        return settings.default_delimiter

    best_delimiter = settings.default_delimiter
    best_score = 0.0

    for delimiter in CANDIDATE_DELIMITERS:
        counts = [_count_fields(line, delimiter) for line in lines]
        average = sum(counts) / len(counts)
        max_count = max(counts)
        min_count = min(counts)
        consistency = 1 - (max_count - min_count) / max_count if max_count > 0 else 0
        score = average * consistency

        logger.debug("Delimiter %r: avg fields=%.2f consistency=%.2f score=%.2f",
                     delimiter, average, consistency, score)

        if average > 1 and score > best_score:
            best_score = score
            best_delimiter = delimiter

    return best_delimiter


def detect_line_terminator(text: str) -> str:
    """Return the line ending of the first line: '\\r\\n' or '\\n'."""
    first_break = text.find("\n")
    if first_break > 0 and text[first_break - 1] == "\r":
        return "\r\n"
    return "\n"


def detect_file_format(
    content: bytes,
    name: str = "",
    sheet: Optional[Any] = None,
    delimiter: Optional[str] = None
) -> str:
    """
    Detect the file format from content and configuration.

    Args:
        content: The file content as bytes
        name: Optional file name, used for its extension
        sheet: Sheet name or index; when given the content is read as a workbook
        delimiter: Explicit delimiter, if the caller configured one

    Returns:
        File format: 'csv', 'tsv', or 'xlsx'
    """
    lowered = name.lower()

    # Check if XLSX is configured or the bytes look like a zip container
    if sheet is not None or content[:4] == XLSX_MAGIC or lowered.endswith((".xlsx", ".xlsm")):
        return "xlsx"

    # Check separator to distinguish CSV from TSV
    if delimiter == "\t" or (delimiter is None and lowered.endswith(".tsv")):
        return "tsv"
    return "csv"


def decode_content(content: bytes, encoding: Optional[str] = None) -> str:
    """
    Decode raw bytes into text.

    Args:
        content: The file content as bytes
        encoding: Codec name (default from settings)

    Returns:
        Decoded text with any leading byte order mark removed

    Raises:
        EncodingError: If the codec is unknown or the bytes are not valid in it
    """
    encoding = encoding or get_settings().default_encoding
    try:
        text = content.decode(encoding)
    except LookupError as e:
        raise EncodingError(encoding, "unknown encoding") from e
    except UnicodeDecodeError as e:
        raise EncodingError(encoding, str(e)) from e
    return _strip_bom(text)


def column_labels(count: int) -> List[str]:
    """
    Spreadsheet style column labels: A, B, ..., Z, AA, AB, ...

    Args:
        count: Number of labels to generate

    Returns:
        List of labels
    """
    labels = []
    for number in range(1, count + 1):
        label = ""
        while number > 0:
            number, remainder = divmod(number - 1, 26)
            label = chr(65 + remainder) + label
        labels.append(label)
    return labels


def _is_blank_row(row: Sequence[str]) -> bool:
    return not any(cell.strip() for cell in row)


def _runs_into_unclosed_quote(text: str, delimiter: str, row: Sequence[str]) -> bool:
    # A quote that is never closed swallows the rest of the input into the
    # last field; only the strict reader tells that apart from a multi-line cell
    if not row or not any(br in row[-1] for br in LINE_BREAKS):
        return False
    strict_reader = csv.reader(
        io.StringIO(text, newline=""), delimiter=delimiter, quotechar=QUOTE_CHAR, strict=True
    )
    try:
        for _ in strict_reader:
            pass
    except csv.Error:
        return True
    return False


def _read_rows(text: str, delimiter: str, skip_empty_lines: bool, name: str = "") -> List[List[str]]:
    """
    Split text into rows of cells.

    Raises:
        MalformedInputError: If a quoted field is never closed or the csv
                             module rejects the text
    """
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter, quotechar=QUOTE_CHAR)
    rows = []
    try:
        for row in reader:
            if skip_empty_lines and _is_blank_row(row):
                continue
            rows.append(row)
    except csv.Error as e:
        raise MalformedInputError(
            f"Cannot parse '{name or 'input'}' near line {reader.line_num}: {e}"
        ) from e

    if rows and _runs_into_unclosed_quote(text, delimiter, rows[-1]):
        raise MalformedInputError(
            f"Unclosed quote in row {len(rows)} of '{name or 'input'}'"
        )
    return rows


def _split_header(rows: List[List[Any]], has_header: bool):
    if has_header:
        return rows[0], rows[1:]
    width = max(len(row) for row in rows)
    return column_labels(width), rows


def parse_text(
    raw_text: str,
    delimiter: Optional[str] = None,
    encoding: Optional[str] = None,
    has_header: bool = True,
    skip_empty_lines: bool = True,
    name: str = ""
) -> Table:
    """
    Parse delimited text into a Table.

    Quoted fields may contain the delimiter, doubled quotes and line breaks.
    Cell content is kept exactly as written; no whitespace is trimmed.

    If the first parse produces a single header field that still contains a
    semicolon or a comma, the text is parsed again with that character, which
    recovers files whose delimiter was guessed or configured wrongly.

    Args:
        raw_text: Decoded file content
        delimiter: Field delimiter; detected when not given
        encoding: Encoding the text was decoded with (recorded on the table)
        has_header: Whether the first row holds column names. Without a header
                    row, labels A, B, C, ... are generated.
        skip_empty_lines: Drop rows whose cells are all blank
        name: Table name

    Returns:
        The parsed table

    Raises:
        EmptyInputError: If the text holds no rows
        MalformedInputError: If a quoted field is never closed
    """
    encoding = encoding or get_settings().default_encoding
    text = _strip_bom(raw_text)
    if not text.strip():
        raise EmptyInputError(f"No content to parse in '{name or 'input'}'")

    used_delimiter = delimiter or detect_delimiter(text)
    rows = _read_rows(text, used_delimiter, skip_empty_lines, name)

    if rows and len(rows[0]) == 1:
        for fallback in RESPLIT_DELIMITERS:
            if fallback != used_delimiter and fallback in rows[0][0]:
                logger.warning("Single column header in '%s' contains %r, re-parsing with it",
                               name, fallback)
                used_delimiter = fallback
                rows = _read_rows(text, used_delimiter, skip_empty_lines, name)
                break

    if not rows:
        raise EmptyInputError(f"No rows found in '{name or 'input'}'")

    headers, data_rows = _split_header(rows, has_header)
    logger.debug("Parsed '%s': %d columns, %d rows, delimiter %r",
                 name, len(headers), len(data_rows), used_delimiter)

    return Table(
        name=name,
        headers=headers,
        rows=data_rows,
        delimiter=used_delimiter,
        encoding=encoding,
        line_terminator=detect_line_terminator(text),
        trailing_newline=text.endswith(LINE_BREAKS),
    )


def _cell_to_str(value: Any) -> str:
    # Workbook numbers: 5225.0 -> '5225'
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)


def parse_xlsx(
    content: bytes,
    sheet: Any = 0,
    has_header: bool = True,
    skip_empty_lines: bool = True,
    name: str = ""
) -> Table:
    """
    Parse XLSX file content into a Table.

    Args:
        content: The file content as bytes
        sheet: Sheet name or index (default: first sheet)
        has_header: Whether the first row holds column names
        skip_empty_lines: Drop rows whose cells are all blank
        name: Table name

    Returns:
        The parsed table, every cell converted to a string

    Raises:
        EmptyInputError: If the sheet has no rows
        EncodingError: If the bytes are not a readable workbook
    """
    try:
        df = pd.read_excel(
            io.BytesIO(content),
            sheet_name=sheet,
            header=None,
            dtype=object,
            keep_default_na=False
        )
    except (ValueError, zipfile.BadZipFile) as e:
        raise EncodingError("xlsx", str(e)) from e

    rows = [[_cell_to_str(value) for value in row] for row in df.values.tolist()]
    if skip_empty_lines:
        rows = [row for row in rows if not _is_blank_row(row)]
    if not rows:
        raise EmptyInputError(f"No rows found in sheet {sheet!r} of '{name or 'workbook'}'")

    headers, data_rows = _split_header(rows, has_header)
    return Table(
        name=name,
        headers=headers,
        rows=data_rows,
        delimiter=get_settings().default_delimiter,
        encoding="xlsx",
    )


def parse_content(
    content: bytes,
    name: str = "",
    delimiter: Optional[str] = None,
    encoding: Optional[str] = None,
    has_header: bool = True,
    skip_empty_lines: bool = True,
    sheet: Optional[Any] = None
) -> Table:
    """
    Parse raw file bytes, dispatching on the detected format.

    Args:
        content: The file content as bytes
        name: File name (used for format detection and as table name)
        delimiter: Field delimiter for text formats; detected when not given
        encoding: Text encoding (default from settings)
        has_header: Whether the first row holds column names
        skip_empty_lines: Drop rows whose cells are all blank
        sheet: Sheet name or index for workbooks

    Returns:
        The parsed table

    Raises:
        EmptyInputError: If the content is empty
        EncodingError: If the content cannot be decoded
        MalformedInputError: If delimited text cannot be split into rows
    """
    if not content:
        raise EmptyInputError(f"No content to parse in '{name or 'input'}'")

    file_format = detect_file_format(content, name, sheet, delimiter)
    logger.debug("Detected format for '%s': %s", name, file_format)

    if file_format == "xlsx":
        return parse_xlsx(content, sheet if sheet is not None else 0, has_header, skip_empty_lines, name)
    if file_format == "tsv" and delimiter is None:
        delimiter = "\t"

    text = decode_content(content, encoding)
    return parse_text(text, delimiter, encoding, has_header, skip_empty_lines, name)


def serialize_table(
    table: Table,
    delimiter: Optional[str] = None,
    line_terminator: Optional[str] = None,
    include_headers: bool = True
) -> str:
    """
    Serialize a table back into delimited text.

    Fields are quoted only when they contain the delimiter, a quote or a line
    break. A terminator follows the last row only if the parsed input ended
    with one, so parse_text followed by serialize_table gives back the
    original text.

    Args:
        table: Table to serialize
        delimiter: Output delimiter (default: the table's own)
        line_terminator: Row separator (default: the table's own)
        include_headers: Write the header row first

    Returns:
        Delimited text
    """
    line_terminator = line_terminator or table.line_terminator
    buffer = io.StringIO()
    writer = csv.writer(
        buffer,
        delimiter=delimiter or table.delimiter,
        lineterminator=line_terminator,
        quoting=csv.QUOTE_MINIMAL
    )
    if include_headers:
        writer.writerow(table.headers)
    writer.writerows(table.rows)

    text = buffer.getvalue()
    if text.endswith(line_terminator) and not table.trailing_newline:
        text = text[: -len(line_terminator)]
    return text
