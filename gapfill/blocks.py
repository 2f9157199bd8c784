"""Parsing of individual gap-fill blocks.

A block may arrive "wrapped" (``{"id", "type", "order", "data": {...}}``)
or "flat" (all fields on the block object). Every field is looked up on
``data`` first and then on the block itself, through the declarative
field tables below.
"""

import logging
import uuid
from typing import Any

from gapfill.config import DEFAULT_CONFIG, GapFillConfig
from gapfill.fields import (
    FieldRule,
    as_bool,
    as_int,
    as_mapping,
    as_non_blank,
    as_text,
    has_key,
    parse_decimal,
    parse_string_list,
    pick,
    pick_raw,
    resolve_fields,
)
from gapfill.legacy import parse_legacy_blanks
from gapfill.options import options_from_answers, parse_options
from gapfill.schemas import Blank, Block, Media, blank_identifier

logger = logging.getLogger(__name__)

# Fields looked up on (data, block).
_BLOCK_FIELDS = {
    "instruction": FieldRule(("instruction",), as_text),
    "content": FieldRule(("content",), as_text, ""),
    "text_content": FieldRule(("textContent", "content"), as_text, ""),
    "case_sensitive": FieldRule(("caseSensitive",), as_bool, False),
    "show_global_options": FieldRule(("showGlobalOptions", "showOptions"), as_bool, False),
    "is_required": FieldRule(("isRequired",), as_bool, True),
}

_MEDIA_FIELDS = {
    "media_type": FieldRule(("mediaType",), as_text),
    "file_url": FieldRule(("fileUrl",), as_text),
    "file_id": FieldRule(("fileId",), as_text),
    "file_name": FieldRule(("fileName",), as_text),
    "mime_type": FieldRule(("mimeType",), as_text),
    "file_size": FieldRule(("fileSize",), as_int),
    "is_recorded": FieldRule(("isRecorded",), as_bool),
    "duration": FieldRule(("duration",), as_int),
    "size": FieldRule(("size",), as_text),
    "position": FieldRule(("position",), as_text),
    "caption": FieldRule(("caption",), as_text),
    "caption_position": FieldRule(("captionPosition",), as_text),
    "display_mode": FieldRule(("displayMode",), as_text),
    "attachment_mode": FieldRule(("attachmentMode",), as_text),
}

_BLANK_FIELDS = {
    "correct_answer": FieldRule(("correctAnswer",), as_text, ""),
    "hint": FieldRule(("hint",), as_text),
    "correct_option_id": FieldRule(("correctOptionId",), as_non_blank),
    "allow_manual_input": FieldRule(("allowManualInput",), as_bool, True),
}


def blank_sort_key(blank: Blank) -> tuple[int, str]:
    """Blanks sort by index, then identifier ignoring case."""
    return blank.index, blank.identifier().lower()


def block_sort_key(block: Block) -> tuple[int, str]:
    """Blocks sort by order, then id ignoring case."""
    return block.order, block.id.lower()


def try_build_media(*sources: dict[str, Any] | None) -> Media | None:
    """Build media from the first sources carrying media fields.

    A nested ``media`` object on a source is consulted before the source's
    own flat fields. Returns None unless a media type, file URL or file id
    is present.
    """
    lookup: list[dict[str, Any] | None] = []
    for source in sources:
        if source:
            lookup.append(as_mapping(source.get("media")))
            lookup.append(source)

    values = resolve_fields(lookup, _MEDIA_FIELDS)
    if not any(
        value and value.strip()
        for value in (values["media_type"], values["file_url"], values["file_id"])
    ):
        return None
    return Media(**values)


def parse_blank(raw_blank: dict[str, Any], position: int, allow_global_default: bool) -> Blank:
    """Parse one entry of a block's ``blanks`` array.

    Args:
        raw_blank: The raw blank object.
        position: 1-based position in the array, used when no index is given.
        allow_global_default: Default for ``allowGlobalOptions``.

    Returns:
        The parsed blank with options synthesized and answer back-filled.
    """
    sources = [raw_blank]
    index = pick(sources, FieldRule(("index", "order"), as_int, position))
    fields = resolve_fields(sources, _BLANK_FIELDS)
    blank_id = pick(sources, FieldRule(("id", "key"), as_non_blank)) or blank_identifier(index)

    alternative_answers = parse_string_list(raw_blank.get("alternativeAnswers"))
    options = parse_options(pick_raw(sources, "options", "suggestions"))
    allow_blank_options = pick(sources, FieldRule(("allowBlankOptions",), as_bool, False))

    if not options and alternative_answers:
        options = options_from_answers(alternative_answers)
        if not has_key(sources, "allowBlankOptions"):
            allow_blank_options = True

    if options:
        allow_blank_options = True

    correct_answer = fields["correct_answer"]
    correct_option_id = fields["correct_option_id"]
    if not correct_answer.strip() and correct_option_id:
        wanted = correct_option_id.lower()
        match = next((o for o in options if o.id.lower() == wanted), None)
        if match is not None:
            correct_answer = match.value

    return Blank(
        id=blank_id,
        index=index,
        correct_answer=correct_answer,
        alternative_answers=alternative_answers,
        correct_option_id=correct_option_id,
        alternative_option_ids=parse_string_list(raw_blank.get("alternativeOptionIds")),
        hint=fields["hint"],
        allow_manual_input=fields["allow_manual_input"],
        allow_global_options=pick(
            sources, FieldRule(("allowGlobalOptions",), as_bool, allow_global_default)
        ),
        allow_blank_options=allow_blank_options,
        options=options,
    )


def parse_blanks(token: Any, allow_global_default: bool) -> list[Blank]:
    """Parse a ``blanks`` array. Non-object entries are skipped."""
    if not isinstance(token, list):
        return []
    blanks = []
    for raw_blank in token:
        if isinstance(raw_blank, dict):
            blanks.append(parse_blank(raw_blank, len(blanks) + 1, allow_global_default))
    return blanks


def parse_block(
    raw_block: dict[str, Any] | None,
    config: GapFillConfig | None = None,
) -> Block | None:
    """Parse one raw block object.

    Args:
        raw_block: The block object, wrapped or flat.
        config: Parser configuration (default answer type and points).

    Returns:
        The parsed block, or None only when ``raw_block`` is None.
    """
    if raw_block is None:
        return None
    config = config or DEFAULT_CONFIG
    if not isinstance(raw_block, dict):
        raw_block = {}

    data = as_mapping(raw_block.get("data"))
    sources = [data, raw_block]
    fields = resolve_fields(sources, _BLOCK_FIELDS)

    block_id = pick([raw_block, data], FieldRule(("id",), as_non_blank)) or str(uuid.uuid4())
    order = pick([raw_block, data], FieldRule(("order",), as_int, 0))
    answer_type = pick(sources, FieldRule(("answerType",), as_non_blank, config.default_answer_type))
    points = pick(sources, FieldRule(("points",), parse_decimal))
    if points is None or points < 0:
        points = config.default_points

    show_global_options = fields["show_global_options"]
    global_options = parse_options(pick_raw(sources, "globalOptions", "options"))
    blanks = parse_blanks(pick_raw(sources, "blanks"), show_global_options)

    content = fields["content"]
    text_content = fields["text_content"]
    if not content.strip() and text_content.strip():
        content = text_content

    if not blanks:
        legacy_gaps = pick_raw(sources, "gaps")
        if isinstance(legacy_gaps, list):
            logger.debug("Block %r has no blanks; reading legacy gaps", block_id)
            blanks = parse_legacy_blanks(legacy_gaps, show_global_options)

    if global_options:
        show_global_options = True

    return Block(
        id=block_id,
        order=order,
        instruction=fields["instruction"],
        content=content,
        text_content=text_content,
        answer_type=answer_type,
        case_sensitive=fields["case_sensitive"],
        show_global_options=show_global_options,
        points=points,
        is_required=fields["is_required"],
        media=try_build_media(data, raw_block),
        global_options=global_options,
        blanks=sorted(blanks, key=blank_sort_key),
    )
