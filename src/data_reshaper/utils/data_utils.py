"""
Value transformation and formula substitution utilities.

This module provides the per-cell helpers used by the mapping engine:
applying a named transformation and substituting header-name tokens inside
a formula string.
"""

import re
from typing import Any, Dict, Optional, Pattern, Sequence, Union

from ..errors import InvalidConfigError
from ..transformers import TransformerBase, get_transformer_class

TransformSpec = Union[str, Dict[str, Any], None]


def build_transformer(transform_spec: TransformSpec) -> Optional[TransformerBase]:
    """
    Build a transformer from a mapping's transformation setting.

    Args:
        transform_spec: A transformer name ("trim"), a dict with 'type' and
                        parameters ({"type": "format_phone", "country_code": "43"}),
                        or None for no transformation

    Returns:
        The transformer instance, or None

    Raises:
        InvalidConfigError: If the type is missing or unknown, or a
                            parameter is missing or has the wrong type
    """
    if not transform_spec:
        return None
    if isinstance(transform_spec, str):
        transform_spec = {"type": transform_spec}

    transformer_type = transform_spec.get("type")
    if not transformer_type:
        raise InvalidConfigError("Transform specification must include 'type' field")

    try:
        transformer_class = get_transformer_class(transformer_type)
        return transformer_class.from_dict(transform_spec)
    except (KeyError, ValueError, TypeError) as e:
        raise InvalidConfigError(f"Invalid transformation {transform_spec!r}: {e}") from e


def apply_transformation(value: str, transform_spec: TransformSpec) -> str:
    """
    Apply a transformation to a value.

    Args:
        value: The value to transform
        transform_spec: Transformer name, dict specification, or None

    Returns:
        The transformed value (unchanged when no transformation is given)
    """
    transformer = build_transformer(transform_spec)
    if transformer is None:
        return value
    return transformer.transform(value)


def build_formula_pattern(headers: Sequence[str]) -> Optional[Pattern]:
    """
    Compile one pattern matching any header name as a whole word.

    Names are tried longest first, so a header like "Surname" is matched
    before "Name" can claim part of it. Matching is case-insensitive. A
    "word" boundary here means the name is not directly preceded or followed
    by a letter, digit or underscore, which also works for names that begin
    or end with punctuation.

    Args:
        headers: Source table header names

    Returns:
        Compiled pattern, or None when there are no non-empty headers
    """
    names = sorted({h for h in headers if h}, key=len, reverse=True)
    if not names:
        return None
    alternation = "|".join(re.escape(name) for name in names)
    return re.compile(rf"(?<!\w)(?:{alternation})(?!\w)", re.IGNORECASE)


def build_formula_lookup(headers: Sequence[str], row: Sequence[str]) -> Dict[str, str]:
    """
    Map lower-cased header names to the row's cell values.

    When two headers differ only by case, the first one in header order wins.
    """
    lookup: Dict[str, str] = {}
    for i, header in enumerate(headers):
        key = header.lower()
        if header and key not in lookup:
            lookup[key] = row[i] if i < len(row) else ""
    return lookup


def substitute_formula(formula: str, pattern: Optional[Pattern], lookup: Dict[str, str]) -> str:
    """
    Replace header-name tokens in a formula with cell values.

    This is literal text templating: "Vorname@example.com" with a row whose
    Vorname cell is "Anna" yields "Anna@example.com". There are no operators
    and inserted values are never scanned again.

    Args:
        formula: Formula text
        pattern: Pattern from build_formula_pattern()
        lookup: Mapping from build_formula_lookup()

    Returns:
        The formula with every token replaced
    """
    if pattern is None:
        return formula
    return pattern.sub(lambda match: lookup.get(match.group(0).lower(), ""), formula)
