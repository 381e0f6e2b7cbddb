"""
Tests for the template store across all persistence backends.
"""

import pytest

from data_reshaper.config import reset_settings
from data_reshaper.errors import InvalidTemplateError, RecordNotFoundError
from data_reshaper.stores.backends import InMemoryBackend, JsonFileBackend, SqlBackend, create_backend
from data_reshaper.stores.template_store import TemplateStore
from data_reshaper.table import Table
from data_reshaper.template import Template, TemplateColumn


@pytest.fixture(params=["memory", "json", "sql"])
def backend(request, tmp_path):
    """Each store test runs against every backend."""
    if request.param == "memory":
        yield InMemoryBackend()
    elif request.param == "json":
        yield JsonFileBackend(tmp_path / "store")
    else:
        sql_backend = SqlBackend("sqlite://")
        yield sql_backend
        sql_backend.close()


@pytest.fixture
def store(backend):
    return TemplateStore(backend)


@pytest.fixture
def contacts():
    return Template(
        name="Contacts",
        description="CRM import",
        columns=[
            TemplateColumn("first_name", required=True),
            TemplateColumn("email", type="email", formula="Vorname@example.com"),
        ],
    )


def test_save_assigns_id_and_round_trips(store, contacts):
    saved = store.save(contacts)

    assert saved.id
    assert store.get(saved.id) == saved
    assert store.list() == [saved]


def test_save_existing_template_replaces_it(store, contacts):
    saved = store.save(contacts)
    store.save(saved.with_changes(description="updated"))

    assert len(store.list()) == 1
    assert store.get(saved.id).description == "updated"


def test_list_keeps_creation_order(store, contacts):
    first = store.save(contacts)
    second = store.save(contacts.with_changes(name="Other"))
    assert [t.id for t in store.list()] == [first.id, second.id]


def test_get_unknown_template(store):
    with pytest.raises(RecordNotFoundError) as exc_info:
        store.get("missing")
    assert isinstance(exc_info.value, KeyError)
    assert "missing" in str(exc_info.value)
    assert store.find("missing") is None


@pytest.mark.parametrize("template", [
    Template(name="", columns=[TemplateColumn("a")]),
    Template(name="   ", columns=[TemplateColumn("a")]),
    Template(name="No columns"),
    Template(name="Blank column", columns=[TemplateColumn(" ")]),
    Template(name="Bad type", columns=[TemplateColumn("a", type="currency")]),
])
def test_save_rejects_invalid_templates(store, template):
    with pytest.raises(InvalidTemplateError):
        store.save(template)
    assert store.list() == []


def test_duplicate(store, contacts):
    saved = store.save(contacts)

    copy = store.duplicate(saved.id)

    assert copy.id != saved.id
    assert copy.name == "Contacts (Copy)"
    assert copy.columns == saved.columns
    assert len(store.list()) == 2


def test_delete(store, contacts):
    saved = store.save(contacts)
    assert store.delete(saved.id) is True
    assert store.delete(saved.id) is False
    assert store.list() == []


def test_export_as_header_row(store):
    template = Template(name="t", columns=[TemplateColumn("id"), TemplateColumn("full, name")])
    assert store.export_as_header_row(template) == 'id,"full, name"'
    assert store.export_as_header_row(template, delimiter=";") == "id;full, name"


def test_import_from_header_row(store):
    template = store.import_from_header_row("First;Last;Email\nAnna;Schmidt;a@x.de", name="People")

    assert template.column_names == ("First", "Last", "Email")
    assert all(column.type == "string" for column in template.columns)
    assert store.get(template.id) == template


@pytest.mark.parametrize("text", ["", "   \n"])
def test_import_from_empty_text(store, text):
    with pytest.raises(InvalidTemplateError):
        store.import_from_header_row(text)


def test_import_rejects_blank_column_names(store):
    with pytest.raises(InvalidTemplateError):
        store.import_from_header_row("a,,c")


def test_create_from_table(store, users_table):
    template = store.create_from_table(users_table, "Users")
    assert template.column_names == users_table.headers


def test_json_backend_persists_between_instances(tmp_path, contacts):
    saved = TemplateStore(JsonFileBackend(tmp_path)).save(contacts)
    assert TemplateStore(JsonFileBackend(tmp_path)).get(saved.id) == saved
    assert (tmp_path / "templates.json").exists()


def test_json_backend_failed_write_keeps_previous_document(tmp_path, monkeypatch, contacts):
    """A write that fails half way must not truncate the stored document."""
    store = TemplateStore(JsonFileBackend(tmp_path))
    saved = store.save(contacts)
    before = (tmp_path / "templates.json").read_text(encoding="utf-8")

    def failing_dump(obj, fp, **kwargs):
        fp.write('{"partial":')
        raise OSError("disk full")

    with monkeypatch.context() as m:
        m.setattr("data_reshaper.stores.backends.json.dump", failing_dump)
        with pytest.raises(OSError):
            store.save(Template(name="Other", columns=[TemplateColumn("a")]))

    assert (tmp_path / "templates.json").read_text(encoding="utf-8") == before
    assert list(tmp_path.glob("*.tmp")) == []
    assert store.get(saved.id) == saved


def test_create_backend_from_settings(monkeypatch, tmp_path):
    monkeypatch.setenv("STORE_BACKEND", "memory")
    reset_settings()
    assert isinstance(create_backend(), InMemoryBackend)

    monkeypatch.setenv("STORE_BACKEND", "json")
    monkeypatch.setenv("STORE_PATH", str(tmp_path))
    reset_settings()
    backend = create_backend()
    assert isinstance(backend, JsonFileBackend)
    assert backend.directory == tmp_path

    monkeypatch.setenv("STORE_BACKEND", "redis")
    reset_settings()
    with pytest.raises(ValueError):
        create_backend()
