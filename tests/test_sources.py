"""
Tests for reading sources from disk and over HTTP.
"""

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from data_reshaper.sources import (
    close_session,
    load_table,
    load_tables,
    read_source,
    source_name,
    substitute_env_vars,
)

USERS_CSV = "id;name\n1;Anna\n2;Ben\n"


def make_app():
    async def users(request):
        return web.Response(text=USERS_CSV, content_type="text/csv")

    async def private(request):
        if request.headers.get("Authorization") != "Bearer secret-token":
            raise web.HTTPUnauthorized()
        return web.Response(body=b"a,b\n1,2", content_type="text/csv")

    app = web.Application()
    app.router.add_get("/export/users.csv", users)
    app.router.add_get("/private.csv", private)
    return app


def test_substitute_env_vars(monkeypatch):
    monkeypatch.setenv("EXPORT_HOST", "files.example.com")
    assert substitute_env_vars("https://env[EXPORT_HOST]/users.csv") == "https://files.example.com/users.csv"
    assert substitute_env_vars("no placeholders") == "no placeholders"


def test_substitute_env_vars_missing(monkeypatch):
    monkeypatch.delenv("NOT_SET_ANYWHERE", raising=False)
    with pytest.raises(KeyError):
        substitute_env_vars("env[NOT_SET_ANYWHERE]")


def test_source_name():
    assert source_name("/tmp/data/users.csv") == "users.csv"
    assert source_name("https://example.com/export/users.csv?x=1") == "users.csv"
    assert source_name("https://example.com/") == "example.com"


@pytest.mark.asyncio
async def test_load_table_from_file(tmp_path):
    path = tmp_path / "users.csv"
    path.write_text(USERS_CSV, encoding="utf-8")

    table = await load_table(str(path))

    assert table.name == "users.csv"
    assert table.delimiter == ";"
    assert table.rows == (("1", "Anna"), ("2", "Ben"))


@pytest.mark.asyncio
async def test_load_table_with_path_from_environment(tmp_path, monkeypatch):
    (tmp_path / "users.csv").write_text(USERS_CSV, encoding="utf-8")
    monkeypatch.setenv("DATA_DIR", str(tmp_path))

    table = await load_table("env[DATA_DIR]/users.csv", name="people")

    assert table.name == "people"
    assert table.row_count == 2


@pytest.mark.asyncio
async def test_read_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        await read_source(str(tmp_path / "missing.csv"))


@pytest.mark.asyncio
async def test_load_table_over_http():
    async with TestServer(make_app()) as server:
        try:
            table = await load_table(str(server.make_url("/export/users.csv")))
        finally:
            await close_session()

    assert table.name == "users.csv"
    assert table.headers == ("id", "name")
    assert table.row_count == 2


@pytest.mark.asyncio
async def test_read_source_sends_headers(monkeypatch):
    monkeypatch.setenv("API_TOKEN", "secret-token")
    async with TestServer(make_app()) as server:
        url = str(server.make_url("/private.csv"))
        try:
            content = await read_source(url, headers={"Authorization": "Bearer env[API_TOKEN]"})
            with pytest.raises(aiohttp.ClientResponseError) as exc_info:
                await read_source(url)
        finally:
            await close_session()

    assert content == b"a,b\n1,2"
    assert exc_info.value.status == 401


@pytest.mark.asyncio
async def test_load_tables_keeps_order(tmp_path):
    for name, body in (("b.csv", "x,y\n1,2"), ("a.csv", "x,y\n3,4\n5,6")):
        (tmp_path / name).write_text(body, encoding="utf-8")

    tables = await load_tables([str(tmp_path / "b.csv"), str(tmp_path / "a.csv")])

    assert [t.name for t in tables] == ["b.csv", "a.csv"]
    assert [t.row_count for t in tables] == [1, 2]
