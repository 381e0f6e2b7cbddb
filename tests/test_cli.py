"""
End-to-end tests for the command-line interface.
"""

import json

import pytest

from data_reshaper.config import reset_settings
from data_reshaper.main import main


@pytest.fixture
def files(tmp_path):
    (tmp_path / "old.csv").write_text("id,name,city\n1,Anna,Berlin\n2,Ben,Hamburg\n", encoding="utf-8")
    (tmp_path / "new.csv").write_text("id,name,city\n1,Anna,Berlin\n2,Ben,Munich\n3,Cem,Köln\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def json_store(monkeypatch, tmp_path):
    monkeypatch.setenv("STORE_BACKEND", "json")
    monkeypatch.setenv("STORE_PATH", str(tmp_path / "store"))
    reset_settings()


def test_merge_writes_output(files):
    out = files / "merged.csv"

    code = main(["merge", str(files / "old.csv"), str(files / "new.csv"), "-o", str(out)])

    assert code == 0
    lines = out.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "id,name,city"
    assert len(lines) == 6


def test_diff_prints_summary(files, capsys):
    code = main(["diff", str(files / "old.csv"), str(files / "new.csv"), "--key", "id", "--only-differences"])

    captured = capsys.readouterr()
    assert code == 0
    assert "Added: 1" in captured.err
    assert "Modified: 1" in captured.err
    assert captured.out.splitlines() == [
        "Status,Key,id,name,city",
        "modified,2,2,Ben,Munich",
        "added,3,3,Cem,Köln",
    ]


def test_diff_missing_key_reports_error(files, capsys):
    code = main(["diff", str(files / "old.csv"), str(files / "new.csv"), "--key", "email"])
    assert code == 1
    assert "email" in capsys.readouterr().err


def test_merge_keeps_crlf_line_endings(tmp_path):
    (tmp_path / "a.csv").write_bytes(b"id,name\r\n1,Anna\r\n")
    (tmp_path / "b.csv").write_bytes(b"id,name\r\n2,Ben\r\n")
    out = tmp_path / "merged.csv"

    assert main(["merge", str(tmp_path / "a.csv"), str(tmp_path / "b.csv"), "-o", str(out)]) == 0
    assert out.read_bytes() == b"id,name\r\n1,Anna\r\n2,Ben\r\n"


def test_unclosed_quote_reports_error(tmp_path, capsys):
    (tmp_path / "broken.csv").write_text('id,note\n1,"open\n2,x\n3,y\n', encoding="utf-8")
    assert main(["inspect", str(tmp_path / "broken.csv")]) == 1
    assert "Unclosed quote" in capsys.readouterr().err


def test_map_with_mappings_file(files, capsys):
    mappings = [{"template_column": "Label", "formula": "name from city"}]
    (files / "mappings.json").write_text(json.dumps(mappings), encoding="utf-8")
    filters = [{"column": "city", "condition": "starts_with", "value": "M"}]
    (files / "filters.json").write_text(json.dumps(filters), encoding="utf-8")

    code = main(["map", str(files / "new.csv"), "--mappings", str(files / "mappings.json"),
                 "--filters", str(files / "filters.json")])

    assert code == 0
    assert capsys.readouterr().out.splitlines() == ["Label", "Ben from Munich"]


def test_templates_import_list_and_map(files, json_store, capsys):
    (files / "header.csv").write_text("city;name\n", encoding="utf-8")

    assert main(["templates", "import", str(files / "header.csv"), "--name", "Places"]) == 0
    assert main(["templates", "list"]) == 0
    output = capsys.readouterr().out
    assert "Places (2 columns)" in output
    template_id = output.split("(ID: ")[1].split(")")[0]

    assert main(["map", str(files / "old.csv"), "--template", template_id]) == 0
    assert capsys.readouterr().out.splitlines() == ["city,name", "Berlin,Anna", "Hamburg,Ben"]


def test_recipes_add_and_run(files, json_store, capsys):
    recipe = {
        "name": "Newcomers",
        "merge_strategy": "join",
        "join_column": "id",
        "mappings": [{"template_column": "who", "source_column": "name", "transformation": "uppercase"}],
    }
    (files / "recipe.json").write_text(json.dumps(recipe), encoding="utf-8")

    assert main(["recipes", "add", str(files / "recipe.json")]) == 0
    recipe_id = capsys.readouterr().out.split("(ID: ")[1].split(")")[0]

    assert main(["recipes", "run", recipe_id, str(files / "old.csv"), str(files / "new.csv")]) == 0
    assert capsys.readouterr().out.splitlines() == ["who", "ANNA", "BEN"]

    assert main(["recipes", "list"]) == 0
    assert "last used: never" not in capsys.readouterr().out


def test_map_requires_template_or_mappings(files, capsys):
    assert main(["map", str(files / "old.csv")]) == 2


def test_inspect_prints_column_stats(files, capsys):
    assert main(["inspect", str(files / "new.csv")]) == 0
    output = capsys.readouterr().out
    assert "=== new.csv ===" in output
    assert "Rows: 3  Columns: 3" in output
    assert "city: 3/3 filled, 3 unique" in output
