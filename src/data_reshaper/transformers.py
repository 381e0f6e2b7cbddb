"""
Cell value transformations for column mappings.

A mapping names a transformation either as a plain string ("trim") or as a
dict carrying a "type" plus parameters ({"type": "format_phone",
"country_code": "43"}). Each type is a TransformerBase subclass listed in
TRANSFORMER_REGISTRY; its declared parameters are type-checked when the
instance is built.
"""

import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Type, Union

from .config import get_settings

ParamType = Union[type, tuple]


def _check_param(transformer_type: str, name: str, value: Any, expected: ParamType) -> Any:
    if not isinstance(value, expected):
        expected_name = expected.__name__ if isinstance(expected, type) else str(expected)
        raise TypeError(f"{transformer_type}: parameter '{name}' must be {expected_name}, "
                        f"got {type(value).__name__}")
    return value


class TransformerBase(ABC):
    """
    Base class for cell transformers.

    Subclasses set `transformer_type` and implement transform(). Parameters
    are declared, not passed to __init__:
    - required_params: {name: type}
    - optional_params: {name: (type, default)}
    from_dict() validates them and stores each one as an instance attribute.
    """

    transformer_type: str = ""
    required_params: Dict[str, ParamType] = {}
    optional_params: Dict[str, tuple] = {}

    @abstractmethod
    def transform(self, value: str) -> str:
        """Return the transformed cell value."""

    @classmethod
    def from_dict(cls, spec: Dict[str, Any]) -> 'TransformerBase':
        """
        Build a transformer from its mapping specification.

        Args:
            spec: The transformation dict; keys other than declared parameters
                  (such as "type") are ignored

        Returns:
            Configured transformer instance

        Raises:
            KeyError: If a required parameter is absent
            TypeError: If a parameter has the wrong type
        """
        params = {}
        for name, expected in cls.required_params.items():
            if name not in spec:
                raise KeyError(f"{cls.transformer_type}: missing required parameter '{name}'")
            params[name] = _check_param(cls.transformer_type, name, spec[name], expected)

        for name, (expected, default) in cls.optional_params.items():
            params[name] = (
                _check_param(cls.transformer_type, name, spec[name], expected)
                if name in spec else default
            )

        instance = cls.__new__(cls)
        instance.__dict__.update(params)
        return instance


class DirectTransformer(TransformerBase):
    """Copies the value unchanged."""

    transformer_type = "direct"

    def transform(self, value: str) -> str:
        return value


class UppercaseTransformer(TransformerBase):
    transformer_type = "uppercase"

    def transform(self, value: str) -> str:
        return value.upper()


class LowercaseTransformer(TransformerBase):
    transformer_type = "lowercase"

    def transform(self, value: str) -> str:
        return value.lower()


class TrimTransformer(TransformerBase):
    """Strips leading and trailing whitespace."""

    transformer_type = "trim"

    def transform(self, value: str) -> str:
        return value.strip()


class FormatPhoneTransformer(TransformerBase):
    """
    Transformer that normalises a phone number to `+CC NNNN NNN NNNN`.

    All non-digit characters are removed first. If exactly eleven digits
    remain they are grouped 4-3-4 behind the country code, so
    "0151 2345678" becomes "+49 0151 234 5678". Any other digit count does
    not fit the grouping and the bare digits are returned.

    Attributes:
        country_code: Country calling code without '+' (default from settings)
    """

    transformer_type = "format_phone"
    optional_params = {"country_code": (str, None)}

    country_code: str

    DIGIT_COUNT = 11

    def transform(self, value: str) -> str:
        digits = re.sub(r"\D", "", value)
        if len(digits) != self.DIGIT_COUNT:
            return digits
        country_code = self.country_code or get_settings().phone_country_code
        return f"+{country_code} {digits[:4]} {digits[4:7]} {digits[7:]}"


TRANSFORMER_REGISTRY: Dict[str, Type[TransformerBase]] = {
    cls.transformer_type: cls
    for cls in (
        DirectTransformer,
        UppercaseTransformer,
        LowercaseTransformer,
        TrimTransformer,
        FormatPhoneTransformer,
    )
}


def get_transformer_class(transformer_type: str) -> Type[TransformerBase]:
    """Look up a transformer class by name, raising ValueError for unknown names."""
    try:
        return TRANSFORMER_REGISTRY[transformer_type]
    except KeyError:
        known = ", ".join(sorted(TRANSFORMER_REGISTRY))
        raise ValueError(f"Unknown transformer type: {transformer_type} (known: {known})") from None
