"""Option parsing, normalization and deduplication.

Raw option tokens come in three shapes: objects with ``value``/``text``/
``label`` fields, bare strings (or numbers), and nulls. ``parse_options``
turns any mix of these into ``Option`` models, ``normalize_options``
restates the same guarantees over already-built options, and
``dedupe_options`` is the aggregation path that additionally collapses
values differing only in case.

Only ``dedupe_options`` removes duplicates.
"""

import logging
from typing import Any, Iterable

from gapfill.fields import FieldRule, as_non_blank, as_text, pick
from gapfill.schemas import Option, new_option_id

logger = logging.getLogger(__name__)

_VALUE = FieldRule(("value", "text", "label"), as_text)
_DISPLAY_TEXT = FieldRule(("displayText", "label"), as_text)
_ID = FieldRule(("id",), as_non_blank)


def parse_option(token: Any) -> Option | None:
    """Parse one raw option token.

    Args:
        token: A JSON object, a scalar, or None.

    Returns:
        The option, or None when the token has no usable value.
    """
    if isinstance(token, dict):
        raw_value = pick([token], _VALUE)
        display_text = pick([token], _DISPLAY_TEXT)
        option_id = pick([token], _ID)
    else:
        raw_value = as_text(token)
        display_text = None
        option_id = None

    if raw_value is None or not raw_value.strip():
        return None

    value = raw_value.strip()
    return Option(
        id=option_id or new_option_id(),
        value=value,
        display_text=display_text if display_text is not None else value,
    )


def parse_options(token: Any) -> list[Option]:
    """Parse a raw options array, keeping order and dropping empty values.

    Anything other than a non-empty array yields an empty list.
    """
    if not isinstance(token, list) or not token:
        return []
    options = []
    for item in token:
        option = parse_option(item)
        if option is None:
            logger.debug("Dropping option without a value: %r", item)
            continue
        options.append(option)
    return options


def options_from_answers(answers: Iterable[str]) -> list[Option]:
    """Synthesize one option per answer string."""
    options = []
    for answer in answers:
        value = answer.strip()
        if value:
            options.append(Option(value=value, display_text=value))
    return options


def normalize_option(option: Option) -> Option | None:
    """Trim the value and backfill id and display text.

    Returns None for options whose value is empty.
    """
    if not option.value or not option.value.strip():
        return None
    value = option.value.strip()
    updates: dict[str, Any] = {}
    if value != option.value:
        updates["value"] = value
    if option.display_text is None:
        updates["display_text"] = value
    if not option.id or not option.id.strip():
        updates["id"] = new_option_id()
    return option.model_copy(update=updates) if updates else option


def normalize_options(options: Iterable[Option]) -> list[Option]:
    """Normalize each option in order, dropping those without a value."""
    normalized = []
    for option in options:
        result = normalize_option(option)
        if result is not None:
            normalized.append(result)
    return normalized


def dedupe_options(options: Iterable[Option]) -> list[Option]:
    """Normalize and collapse options whose values differ only in case.

    The first option seen for a value wins and keeps its trimmed value.
    """
    seen: dict[str, Option] = {}
    dropped = 0
    for option in normalize_options(options):
        key = option.value.lower()
        if key in seen:
            dropped += 1
            continue
        seen[key] = option
    if dropped:
        logger.debug("Collapsed %d duplicate option(s)", dropped)
    return list(seen.values())
