"""Tolerant field lookup and scalar conversion for raw exercise JSON.

Exercise content arrives in several historical shapes: fields may sit on a
nested ``data`` object or directly on the block, and the same attribute may
be spelled more than one way (``showGlobalOptions`` / ``showOptions``).
Instead of chaining fallbacks by hand, each field is declared as a
``FieldRule`` (candidate keys, converter, default) and resolved against an
ordered list of source objects.

Converters never raise: a malformed value converts to ``None`` and the
lookup moves on to the next candidate.
"""

import math
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Mapping, NamedTuple, Sequence

# Decimals at or above 10**15 are rejected by parse_decimal.
MAX_DECIMAL_DIGITS = 15


class FieldRule(NamedTuple):
    """Declarative lookup for one field.

    Examples:
        - FieldRule(("showGlobalOptions", "showOptions"), as_bool, False)
        - FieldRule(("points",), parse_decimal)
    """

    keys: tuple[str, ...]
    convert: Callable[[Any], Any]
    default: Any = None


def as_mapping(value: Any) -> dict[str, Any] | None:
    """Return the value if it is a JSON object, else None."""
    return value if isinstance(value, dict) else None


def as_list(value: Any) -> list[Any] | None:
    """Return the value if it is a JSON array, else None."""
    return value if isinstance(value, list) else None


def as_text(value: Any) -> str | None:
    """Convert a JSON scalar to its string form.

    Objects and arrays have no scalar string form and convert to None.
    """
    if value is None or isinstance(value, (dict, list)):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def as_non_blank(value: Any) -> str | None:
    """Like ``as_text`` but treats whitespace-only strings as absent."""
    text = as_text(value)
    if text is None or not text.strip():
        return None
    return text


def as_bool(value: Any) -> bool | None:
    """Convert JSON booleans, 0/1 numbers and "true"/"false" strings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    return None


def as_int(value: Any) -> int | None:
    """Convert JSON numbers and numeric strings to int."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        return int(number) if math.isfinite(number) else None
    return None


def parse_decimal(value: Any) -> Decimal | None:
    """Parse a decimal from a JSON number or numeric string.

    Returns None instead of raising when the value is not numeric or has
    more than ``MAX_DECIMAL_DIGITS`` integer digits. Accepted values are
    rounded to the nearest float so they survive a JSON round trip.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, str)):
        try:
            number = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return None
        if not number.is_finite() or number.adjusted() >= MAX_DECIMAL_DIGITS:
            return None
        return Decimal(repr(float(number)))
    return None


def parse_string_list(value: Any) -> list[str]:
    """Parse a list of trimmed, non-empty strings.

    A single scalar is accepted as a one-element list.
    """
    if value is None:
        return []
    items = value if isinstance(value, list) else [value]
    result = []
    for item in items:
        text = as_text(item)
        if text is not None and text.strip():
            result.append(text.strip())
    return result


def pick(sources: Sequence[Mapping[str, Any] | None], rule: FieldRule) -> Any:
    """Resolve a field against the sources in order.

    For each source, candidate keys are tried in order; the first value that
    converts to something other than None wins. Falls back to the default.
    """
    for source in sources:
        if not source:
            continue
        for key in rule.keys:
            if key not in source:
                continue
            converted = rule.convert(source[key])
            if converted is not None:
                return converted
    return rule.default


def pick_raw(sources: Sequence[Mapping[str, Any] | None], *keys: str) -> Any:
    """Return the first present (non-null) raw value for the keys."""
    for source in sources:
        if not source:
            continue
        for key in keys:
            if source.get(key) is not None:
                return source[key]
    return None


def resolve_fields(
    sources: Sequence[Mapping[str, Any] | None],
    rules: Mapping[str, FieldRule],
) -> dict[str, Any]:
    """Resolve a table of field rules into a dict of converted values."""
    return {name: pick(sources, rule) for name, rule in rules.items()}


def has_key(sources: Sequence[Mapping[str, Any] | None], key: str) -> bool:
    """Whether any source explicitly carries the key."""
    return any(source and key in source for source in sources)
