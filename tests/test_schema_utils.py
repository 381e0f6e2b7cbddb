"""
Tests for bundled schema loading and validation.
"""

import pytest

from data_reshaper.errors import InvalidConfigError, InvalidTemplateError
from data_reshaper.utils.schema_utils import load_schema, validate_config


def test_bundled_schemas_load():
    for name in ("template", "mapping", "filters", "recipe"):
        assert load_schema(name)["$schema"].startswith("http://json-schema.org/")
    assert load_schema("template") is load_schema("template")


def test_unknown_schema():
    with pytest.raises(FileNotFoundError):
        load_schema("does_not_exist")


def test_validation_error_names_the_location():
    with pytest.raises(InvalidConfigError) as exc_info:
        validate_config([{"column": "Status", "condition": "like"}], "filters", "filters.json")
    message = str(exc_info.value)
    assert "filters.json" in message
    assert "0 -> condition" in message


def test_custom_error_class():
    with pytest.raises(InvalidTemplateError):
        validate_config({"name": "t", "columns": []}, "template", "template 't'", InvalidTemplateError)
