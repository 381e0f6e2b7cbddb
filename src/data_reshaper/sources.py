"""
Raw content acquisition.

Fetching bytes is the only asynchronous step; everything after it works on
in-memory tables. Sources are local paths or http(s) URLs, and both may
contain env[NAME] placeholders that are filled from the environment, so
hosts and tokens stay out of recipes and command lines.
"""

import asyncio
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urlparse

import aiohttp

from .table import Table
from .utils.file_utils import parse_content

ENV_PLACEHOLDER = re.compile(r"env\[([^\]]+)\]")

# Shared by every download in the process
_session: Optional[aiohttp.ClientSession] = None


def get_session() -> aiohttp.ClientSession:
    """Return the shared HTTP session, opening a new one if needed."""
    global _session
    if _session is None or _session.closed:
        _session = aiohttp.ClientSession()
    return _session


async def close_session() -> None:
    """Close the shared HTTP session; call once all downloads are done."""
    global _session
    session, _session = _session, None
    if session is not None and not session.closed:
        await session.close()


def _env_value(match: "re.Match") -> str:
    name = match.group(1)
    try:
        return os.environ[name]
    except KeyError:
        raise KeyError(f"Environment variable '{name}' is not set") from None


def substitute_env_vars(text: str) -> str:
    """
    Fill env[NAME] placeholders from the environment.

    Examples:
        >>> os.environ['EXPORT_HOST'] = 'files.example.com'
        >>> substitute_env_vars('https://env[EXPORT_HOST]/users.csv')
        'https://files.example.com/users.csv'

    Raises:
        KeyError: If a referenced variable is not set
    """
    return ENV_PLACEHOLDER.sub(_env_value, text)


def is_url(location: str) -> bool:
    return urlparse(location).scheme in ("http", "https")


def source_name(location: str) -> str:
    """File name part of a path or URL, used as the table name."""
    if is_url(location):
        path = urlparse(location).path
        return Path(path).name or urlparse(location).netloc
    return Path(location).name


async def read_source(location: str, headers: Optional[Dict[str, str]] = None) -> bytes:
    """
    Read the raw bytes of a local file or a URL.

    Args:
        location: Path or http(s) URL; env[NAME] placeholders are substituted
        headers: Extra HTTP request headers (env[NAME] placeholders allowed)

    Returns:
        The content as bytes

    Raises:
        aiohttp.ClientResponseError: If the server answers with an error status
        FileNotFoundError: If a local path does not exist
        KeyError: If a placeholder names an unset variable
    """
    location = substitute_env_vars(location)

    if not is_url(location):
        return await asyncio.to_thread(Path(location).read_bytes)

    processed_headers = {key: substitute_env_vars(value) for key, value in (headers or {}).items()}
    session = get_session()
    async with session.get(location, headers=processed_headers) as response:
        response.raise_for_status()
        return await response.read()


async def load_table(location: str, headers: Optional[Dict[str, str]] = None, **parse_options: Any) -> Table:
    """
    Read a source and parse it into a table.

    Args:
        location: Path or http(s) URL
        headers: Extra HTTP request headers
        **parse_options: delimiter, encoding, has_header, skip_empty_lines, sheet

    Returns:
        The parsed table, named after the file
    """
    content = await read_source(location, headers)
    parse_options.setdefault("name", source_name(location))
    return parse_content(content, **parse_options)


async def load_tables(locations: Sequence[str], **parse_options: Any) -> List[Table]:
    """
    Load several sources concurrently.

    Returns:
        Tables in the order of `locations`
    """
    return list(await asyncio.gather(*(load_table(location, **parse_options) for location in locations)))
