"""Migration of the legacy flat ``{text, gaps[]}`` schema.

Before blocks existed, an exercise was a single text with ``{N}``
placeholders and a ``gaps`` array describing each placeholder. The
migrator turns that shape into exactly one synthetic block whose content
uses ``[[blankN]]`` tokens, so downstream code only ever sees blocks.
"""

import logging
import re
from typing import Any

from gapfill.config import DEFAULT_CONFIG, GapFillConfig
from gapfill.fields import (
    FieldRule,
    as_int,
    as_non_blank,
    as_text,
    parse_string_list,
    pick,
)
from gapfill.options import options_from_answers
from gapfill.schemas import Blank, Block, LegacyGap, LegacyInput, blank_identifier

logger = logging.getLogger(__name__)

BLANK_TOKEN_RE = re.compile(r"\[\[blank(\d+)\]\]", re.IGNORECASE)

_GAP_FIELDS = {
    "correct_answer": FieldRule(("correctAnswer",), as_text, ""),
    "hint": FieldRule(("hint",), as_text),
}


def blank_token(index: int) -> str:
    """The ``[[blankN]]`` token for a 1-based index (clamped to 1)."""
    return f"[[{blank_identifier(index)}]]"


def parse_legacy_gaps(token: Any) -> list[LegacyGap]:
    """Parse a raw ``gaps`` array.

    Gaps without a usable ``index`` take their 1-based position. Entries
    that are not objects are skipped.
    """
    if not isinstance(token, list):
        return []
    gaps = []
    for raw_gap in token:
        if not isinstance(raw_gap, dict):
            continue
        index = pick([raw_gap], FieldRule(("index",), as_int, len(gaps) + 1))
        gaps.append(
            LegacyGap(
                index=max(1, index),
                correct_answer=pick([raw_gap], _GAP_FIELDS["correct_answer"]),
                alternative_answers=parse_string_list(raw_gap.get("alternativeAnswers")),
                hint=pick([raw_gap], _GAP_FIELDS["hint"]),
            )
        )
    return gaps


def blank_from_gap(gap: LegacyGap, allow_global_options: bool) -> Blank:
    """Convert one legacy gap to a blank.

    Alternative answers double as blank options so the student can pick one.
    """
    index = max(1, gap.index)
    options = options_from_answers(gap.alternative_answers)
    return Blank(
        id=blank_identifier(index),
        index=index,
        correct_answer=gap.correct_answer,
        alternative_answers=list(gap.alternative_answers),
        hint=gap.hint,
        allow_manual_input=True,
        allow_global_options=allow_global_options,
        allow_blank_options=bool(options),
        options=options,
    )


def parse_legacy_blanks(token: Any, allow_global_options: bool) -> list[Blank]:
    """Parse a raw ``gaps`` array straight into blanks."""
    return [blank_from_gap(gap, allow_global_options) for gap in parse_legacy_gaps(token)]


def build_content_with_tokens(text: str, gaps: list[LegacyGap]) -> str:
    """Rewrite legacy ``{N}`` placeholders as ``[[blankN]]`` tokens.

    If the text references no blank at all afterwards, a token for every gap
    is appended so each gap still has a position.

    Examples:
        - "The {1} jumps" with gap 1 -> "The [[blank1]] jumps"
        - "Fill in:" with gaps 1, 2 -> "Fill in: [[blank1]] [[blank2]]"
    """
    if not text or not text.strip():
        return ""

    content = text
    for gap in gaps:
        index = max(1, gap.index)
        content = content.replace(f"{{{index}}}", blank_token(index))

    if not BLANK_TOKEN_RE.search(content):
        for gap in sorted(gaps, key=lambda g: g.index):
            token = blank_token(gap.index)
            if token not in content:
                content += f" {token}"

    return content


def migrate_legacy(
    legacy: LegacyInput,
    config: GapFillConfig | None = None,
) -> list[Block]:
    """Build the synthetic block for a legacy exercise.

    Args:
        legacy: The legacy input fields.
        config: Parser configuration (legacy block id).

    Returns:
        A single-block list, or an empty list when the legacy text or gaps
        are missing.
    """
    config = config or DEFAULT_CONFIG
    if not legacy.text.strip() or not legacy.gaps:
        logger.debug("Legacy content has no text or no gaps; nothing to migrate")
        return []

    ordered_gaps = sorted(legacy.gaps, key=lambda gap: gap.index)
    blanks = [blank_from_gap(gap, legacy.show_options) for gap in ordered_gaps]

    block = Block(
        id=config.legacy_block_id,
        order=0,
        content=build_content_with_tokens(legacy.text, ordered_gaps),
        text_content=legacy.text,
        answer_type=as_non_blank(legacy.answer_type) or config.default_answer_type,
        case_sensitive=legacy.case_sensitive,
        show_global_options=legacy.show_options,
        points=config.default_points,
        is_required=True,
        media=legacy.media,
        blanks=blanks,
    )
    logger.debug("Migrated legacy content into block %r with %d blank(s)", block.id, len(blanks))
    return [block]
