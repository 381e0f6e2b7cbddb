"""
Tests for the transformer registry.
"""

import pytest

from data_reshaper.config import reset_settings
from data_reshaper.errors import InvalidConfigError
from data_reshaper.transformers import (
    TRANSFORMER_REGISTRY,
    FormatPhoneTransformer,
    get_transformer_class,
)
from data_reshaper.utils.data_utils import apply_transformation, build_transformer


def test_registry_contains_all_types():
    assert set(TRANSFORMER_REGISTRY) == {"direct", "uppercase", "lowercase", "trim", "format_phone"}


def test_get_transformer_class_unknown():
    with pytest.raises(ValueError):
        get_transformer_class("reverse")


@pytest.mark.parametrize("spec, value, expected", [
    ("direct", " Anna ", " Anna "),
    ("uppercase", "anna", "ANNA"),
    ("lowercase", "ANNA", "anna"),
    ("trim", "  Anna \t", "Anna"),
    (None, " Anna ", " Anna "),
    ({"type": "uppercase"}, "straße", "STRASSE"),
])
def test_apply_transformation(spec, value, expected):
    assert apply_transformation(value, spec) == expected


def test_format_phone_default_country_code():
    assert apply_transformation("0151 2345678", "format_phone") == "+49 0151 234 5678"
    assert apply_transformation("(0151) 234-5678", "format_phone") == "+49 0151 234 5678"


def test_format_phone_country_code_from_environment(monkeypatch):
    monkeypatch.setenv("PHONE_COUNTRY_CODE", "41")
    reset_settings()
    assert apply_transformation("0151 2345678", "format_phone") == "+41 0151 234 5678"


def test_format_phone_other_lengths_return_digits():
    assert apply_transformation("+49 151 2345", "format_phone") == "491512345"
    assert apply_transformation("no digits", "format_phone") == ""


def test_format_phone_from_dict():
    transformer = FormatPhoneTransformer.from_dict({"country_code": "43"})
    assert transformer.country_code == "43"
    assert transformer.transform("01512345678") == "+43 0151 234 5678"


def test_format_phone_rejects_wrong_param_type():
    with pytest.raises(InvalidConfigError, match="country_code"):
        build_transformer({"type": "format_phone", "country_code": 49})


def test_build_transformer_requires_type():
    with pytest.raises(InvalidConfigError):
        build_transformer({"country_code": "49"})


def test_build_transformer_unknown_type():
    with pytest.raises(InvalidConfigError, match="reverse"):
        build_transformer("reverse")
