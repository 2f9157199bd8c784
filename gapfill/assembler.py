"""Top-level entry points that assemble a ``Content`` from raw JSON.

The input shape is decided once, up front, by ``classify_input``: content
with a ``blocks`` array is parsed block by block, anything else is read as
the legacy flat schema. Both paths then share the same post-processing
pass (``populate_content_metadata`` followed by ``normalize_block_state``).

None of the entry points raise for malformed content; missing or
ill-typed fields fall back to defaults and unparseable JSON yields an
empty ``Content``.
"""

import json
import logging
from typing import Any, Iterable

from gapfill.blocks import block_sort_key, blank_sort_key, parse_block, try_build_media
from gapfill.config import DEFAULT_CONFIG, GapFillConfig
from gapfill.fields import FieldRule, as_bool, as_non_blank, as_text, pick, pick_raw
from gapfill.legacy import migrate_legacy, parse_legacy_gaps
from gapfill.options import dedupe_options, normalize_options, parse_options
from gapfill.schemas import (
    Block,
    Content,
    CurrentInput,
    LegacyInput,
    Option,
    RawInput,
    blank_identifier,
)

logger = logging.getLogger(__name__)


class GapFillContentParser:
    """Parses gap-fill exercise content in either supported schema."""

    def __init__(self, config: GapFillConfig | None = None):
        self.config = config or DEFAULT_CONFIG

    def classify_input(self, payload: Any) -> RawInput:
        """Decide which schema a decoded JSON payload is written in.

        Args:
            payload: Decoded JSON of any type.

        Returns:
            ``CurrentInput`` when the payload is an object with a ``blocks``
            array, otherwise a ``LegacyInput`` (empty for non-objects).
        """
        if not isinstance(payload, dict):
            if payload is not None:
                logger.warning(
                    "Content JSON is a %s, not an object; treating as empty",
                    type(payload).__name__,
                )
            return LegacyInput()

        blocks = payload.get("blocks")
        if isinstance(blocks, list):
            return CurrentInput(
                blocks=blocks,
                global_options=parse_options(payload.get("globalOptions")),
            )

        sources = [payload]
        return LegacyInput(
            text=pick(sources, FieldRule(("text",), as_text, "")),
            gaps=parse_legacy_gaps(payload.get("gaps")),
            answer_type=pick(
                sources,
                FieldRule(("answerType",), as_non_blank, self.config.default_answer_type),
            ),
            case_sensitive=pick(sources, FieldRule(("caseSensitive",), as_bool, False)),
            show_options=pick(sources, FieldRule(("showOptions",), as_bool, True)),
            global_options=parse_options(pick_raw(sources, "globalOptions")),
            media=try_build_media(payload),
        )

    def from_blocks(self, raw_blocks: Iterable[Any]) -> Content:
        """Assemble content from a raw ``blocks`` array.

        Only objects whose ``type`` is an accepted gap-fill type are parsed.
        """
        return self._assemble_blocks(raw_blocks)

    def _assemble_blocks(
        self,
        raw_blocks: Iterable[Any],
        global_options: list[Option] | None = None,
    ) -> Content:
        if not isinstance(raw_blocks, (list, tuple)):
            raw_blocks = []

        blocks = []
        for raw_block in raw_blocks:
            if not isinstance(raw_block, dict):
                continue
            if not self.config.accepts_block_type(as_text(raw_block.get("type"))):
                logger.debug("Skipping block of type %r", raw_block.get("type"))
                continue
            block = parse_block(raw_block, self.config)
            if block is not None:
                blocks.append(block)

        content = Content(
            blocks=sorted(blocks, key=block_sort_key),
            global_options=global_options or [],
        )
        return self.populate_content_metadata(content)

    def from_payload(self, payload: Any) -> Content:
        """Assemble content from already-decoded JSON."""
        raw_input = self.classify_input(payload)
        if isinstance(raw_input, CurrentInput):
            return self._assemble_blocks(raw_input.blocks, raw_input.global_options)

        logger.debug("No blocks array; reading legacy content")
        content = Content(
            text=raw_input.text,
            answer_type=raw_input.answer_type,
            case_sensitive=raw_input.case_sensitive,
            show_options=raw_input.show_options,
            global_options=raw_input.global_options,
        )
        return self.populate_content_metadata(content, legacy=raw_input)

    def from_content_json(self, content_json: str | bytes | None) -> Content:
        """Assemble content from JSON text.

        Blank input gives an empty ``Content``; so does text that is not
        valid JSON.
        """
        if content_json is None:
            return Content()
        if isinstance(content_json, bytes):
            content_json = content_json.decode("utf-8", errors="replace")
        if not content_json.strip():
            return Content()

        try:
            payload = json.loads(content_json)
        except (ValueError, RecursionError) as exc:
            logger.warning("Unparseable content JSON: %s", exc)
            return self.populate_content_metadata(Content())
        return self.from_payload(payload)

    def find_block_by_id(self, content_json: str | bytes | None, block_id: str | None) -> Block | None:
        """Return the first block whose id matches, ignoring case."""
        if content_json is None or block_id is None:
            return None
        if isinstance(content_json, bytes):
            content_json = content_json.decode("utf-8", errors="replace")
        if not content_json.strip():
            return None

        wanted = block_id.lower()
        content = self.from_content_json(content_json)
        return next((block for block in content.blocks if block.id.lower() == wanted), None)

    def populate_content_metadata(
        self,
        content: Content,
        legacy: LegacyInput | None = None,
    ) -> Content:
        """Run the shared post-processing pass.

        Migrates legacy fields when there are no blocks, re-sorts blocks and
        blanks, and mirrors the first block into the legacy scalar fields
        when ``text`` is empty. Finishes with ``normalize_block_state``.

        Args:
            content: Content to post-process.
            legacy: Legacy fields to migrate from if ``content`` has no blocks.

        Returns:
            A new, normalized ``Content``.
        """
        blocks = list(content.blocks)
        if not blocks and legacy is not None:
            blocks = migrate_legacy(legacy, self.config)
        blocks = [
            block.model_copy(update={"blanks": sorted(block.blanks, key=blank_sort_key)})
            for block in sorted(blocks, key=block_sort_key)
        ]

        updates: dict[str, Any] = {"blocks": blocks}
        if not content.text.strip() and blocks:
            first = blocks[0]
            updates.update(
                text=first.text_content if first.text_content.strip() else first.content,
                answer_type=first.answer_type,
                case_sensitive=first.case_sensitive,
                show_options=first.show_global_options,
            )

        return self.normalize_block_state(content.model_copy(update=updates))

    def normalize_block_state(self, content: Content) -> Content:
        """Normalize options everywhere and aggregate global options.

        Each blank's options are trimmed and back-filled (no cross-blank
        dedup) and blank ids are filled in. Content-level global options are
        deduplicated ignoring case; when there are none, they are aggregated
        from every block.
        """
        blocks = []
        for block in content.blocks:
            blanks = []
            for blank in sorted(block.blanks, key=blank_sort_key):
                updates: dict[str, Any] = {"options": normalize_options(blank.options)}
                if not blank.id or not blank.id.strip():
                    updates["id"] = blank_identifier(blank.index)
                blanks.append(blank.model_copy(update=updates))
            blocks.append(block.model_copy(update={"blanks": blanks}))

        if content.global_options:
            pool = content.global_options
        else:
            pool = [option for block in blocks for option in block.global_options]

        return content.model_copy(
            update={"blocks": blocks, "global_options": dedupe_options(pool)}
        )


_default_parser = GapFillContentParser()


def from_blocks(raw_blocks: Iterable[Any], config: GapFillConfig | None = None) -> Content:
    """Assemble content from a raw ``blocks`` array."""
    return _parser_for(config).from_blocks(raw_blocks)


def from_content_json(content_json: str | bytes | None, config: GapFillConfig | None = None) -> Content:
    """Assemble content from JSON text in either schema."""
    return _parser_for(config).from_content_json(content_json)


def from_payload(payload: Any, config: GapFillConfig | None = None) -> Content:
    """Assemble content from decoded JSON in either schema."""
    return _parser_for(config).from_payload(payload)


def find_block_by_id(
    content_json: str | bytes | None,
    block_id: str | None,
    config: GapFillConfig | None = None,
) -> Block | None:
    """Find a block by id (ignoring case) in JSON content."""
    return _parser_for(config).find_block_by_id(content_json, block_id)


def _parser_for(config: GapFillConfig | None) -> GapFillContentParser:
    return _default_parser if config is None else GapFillContentParser(config)
