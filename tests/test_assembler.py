"""Tests for assembling canonical content from raw JSON in either schema."""

import json
import logging
from decimal import Decimal

import pytest

from gapfill import (
    GapFillConfig,
    GapFillContentParser,
    canonical_json,
    content_to_dict,
    content_to_json,
    find_block_by_id,
    from_blocks,
    from_content_json,
    from_payload,
)
from gapfill.legacy import BLANK_TOKEN_RE
from gapfill.schemas import Blank, Block, Content, CurrentInput, LegacyInput, Option


def strip_option_ids(value):
    """Drop generated option ids so two parses can be compared."""
    if isinstance(value, dict):
        return {
            key: strip_option_ids(item)
            for key, item in value.items()
            if not (key == "id" and "value" in value)
        }
    if isinstance(value, list):
        return [strip_option_ids(item) for item in value]
    return value


class TestClassifyInput:
    """Tests for deciding which schema a payload uses."""

    def test_blocks_array_is_current(self, blocks_payload):
        raw_input = GapFillContentParser().classify_input(blocks_payload)
        assert isinstance(raw_input, CurrentInput)
        assert len(raw_input.blocks) == 3

    def test_flat_object_is_legacy(self, legacy_payload):
        raw_input = GapFillContentParser().classify_input(legacy_payload)
        assert isinstance(raw_input, LegacyInput)
        assert raw_input.text == legacy_payload["text"]
        assert [g.index for g in raw_input.gaps] == [2, 1]

    def test_blocks_not_a_list_is_legacy(self):
        raw_input = GapFillContentParser().classify_input({"blocks": "x", "text": "a {1}"})
        assert isinstance(raw_input, LegacyInput)

    def test_non_object_is_empty_legacy(self):
        raw_input = GapFillContentParser().classify_input([1, 2])
        assert raw_input == LegacyInput()


class TestFromBlocks:
    """Tests for assembling content from the block schema."""

    def test_filters_block_types(self):
        """Only gap-fill blocks should be parsed, matching type ignoring case."""
        content = from_blocks(
            [
                {"id": "a", "type": "gapFill"},
                {"id": "b", "type": "multipleChoice"},
                {"id": "c", "type": "GAPFILL"},
                {"id": "d"},
                "not a block",
                None,
            ]
        )
        assert [b.id for b in content.blocks] == ["a", "c"]

    def test_blocks_sorted_by_order_then_id(self):
        content = from_blocks(
            [
                {"id": "b", "type": "gapFill", "order": 2},
                {"id": "C", "type": "gapFill", "order": 1},
                {"id": "a", "type": "gapFill", "order": 1},
            ]
        )
        assert [b.id for b in content.blocks] == ["a", "C", "b"]

    def test_fixture_blocks(self, blocks_payload):
        """The sample content should parse into two sorted blocks."""
        content = from_blocks(blocks_payload["blocks"])
        first, second = content.blocks

        assert (first.id, second.id) == ("block-a", "block-b")
        assert [b.id for b in first.blanks] == ["blank1", "blank2"]
        assert first.blanks[0].correct_answer == "42"
        assert [o.value for o in first.blanks[1].options] == ["cat", "dog"]
        assert second.points == Decimal(2)
        assert second.show_global_options is True

    def test_not_a_list(self):
        assert from_blocks("nope").blocks == []

    def test_accepted_types_from_config(self):
        config = GapFillConfig(block_types=["cloze", "gapFill"])
        content = from_blocks(
            [{"id": "a", "type": "Cloze"}, {"id": "b", "type": "gapfill"}, {"id": "c", "type": "x"}],
            config,
        )
        assert [b.id for b in content.blocks] == ["a", "b"]


class TestPostProcessing:
    """Tests for the shared post-processing pass."""

    def test_global_options_aggregated_and_deduped(self, blocks_json):
        """Block options should pool into one list, collapsing case variants."""
        content = from_content_json(blocks_json)
        assert [o.value for o in content.global_options] == ["paris", "Rome", "London"]

    def test_content_level_options_preferred(self):
        content = from_payload(
            {
                "blocks": [{"id": "a", "type": "gapFill", "globalOptions": ["block-only"]}],
                "globalOptions": ["x", "X", " x ", "y"],
            }
        )
        assert [o.value for o in content.global_options] == ["x", "y"]

    def test_legacy_global_options_deduped(self, legacy_payload):
        legacy_payload["globalOptions"] = ["a", {"value": "A"}, "b"]
        content = from_payload(legacy_payload)
        assert [o.value for o in content.global_options] == ["a", "b"]

    def test_mirrors_first_block(self, blocks_json):
        """Empty legacy scalars should mirror the first block."""
        content = from_content_json(blocks_json)
        first = content.blocks[0]

        assert content.text == first.text_content
        assert content.answer_type == first.answer_type
        assert content.case_sensitive == first.case_sensitive
        assert content.show_options is first.show_global_options

    def test_mirror_falls_back_to_content(self):
        parser = GapFillContentParser()
        content = parser.populate_content_metadata(
            Content(blocks=[Block(id="x", content="Hello [[blank1]]", answer_type="keyword")])
        )
        assert content.text == "Hello [[blank1]]"
        assert content.answer_type == "keyword"

    def test_existing_text_not_mirrored(self):
        parser = GapFillContentParser()
        content = parser.populate_content_metadata(
            Content(text="keep me", blocks=[Block(id="x", content="other")])
        )
        assert content.text == "keep me"

    def test_blank_options_normalized_not_deduped(self):
        """Blank options should be trimmed and back-filled but not collapsed."""
        parser = GapFillContentParser()
        content = parser.normalize_block_state(
            Content(
                blocks=[
                    Block(
                        id="x",
                        blanks=[
                            Blank(
                                id="",
                                index=2,
                                options=[
                                    Option(id="", value=" a "),
                                    Option(value="  "),
                                    Option(value="a"),
                                ],
                            )
                        ],
                    )
                ]
            )
        )
        [blank] = content.blocks[0].blanks
        assert blank.id == "blank2"
        assert [o.value for o in blank.options] == ["a", "a"]
        assert all(o.id and o.display_text == "a" for o in blank.options)

    def test_blanks_resorted(self):
        parser = GapFillContentParser()
        content = parser.populate_content_metadata(
            Content(
                blocks=[
                    Block(
                        id="x",
                        blanks=[Blank(id="blank3", index=3), Blank(id="blank1", index=1)],
                    )
                ]
            )
        )
        assert [b.index for b in content.blocks[0].blanks] == [1, 3]


class TestLegacyContent:
    """Tests for the legacy flat schema."""

    def test_migrates_to_one_block(self, legacy_json):
        content = from_content_json(legacy_json)
        [block] = content.blocks

        assert block.id == "legacy"
        assert block.content == "The [[blank1]] jumps over the [[blank2]]."
        assert [(b.id, b.correct_answer) for b in block.blanks] == [("blank1", "fox"), ("blank2", "dog")]
        assert [o.value for o in block.blanks[1].options] == ["hound"]
        assert content.text == "The {1} jumps over the {2}."

    def test_equivalent_to_block_schema(self, legacy_json):
        """Legacy content should parse the same as its block-schema equivalent."""
        block_schema = {
            "blocks": [
                {
                    "id": "legacy",
                    "type": "gapFill",
                    "order": 0,
                    "content": "The [[blank1]] jumps over the [[blank2]].",
                    "textContent": "The {1} jumps over the {2}.",
                    "showGlobalOptions": True,
                    "blanks": [
                        {"id": "blank1", "index": 1, "correctAnswer": "fox"},
                        {
                            "id": "blank2",
                            "index": 2,
                            "correctAnswer": "dog",
                            "alternativeAnswers": ["hound"],
                            "hint": "an animal",
                        },
                    ],
                }
            ]
        }

        legacy = content_to_dict(from_content_json(legacy_json))
        current = content_to_dict(from_payload(block_schema))
        assert strip_option_ids(legacy) == strip_option_ids(current)

    def test_every_gap_has_a_token(self):
        """Every blank of a migrated block should appear in its content."""
        content = from_payload(
            {"text": "Answer these:", "gaps": [{"index": 3}, {"index": 1}, {"correctAnswer": "x"}]}
        )
        [block] = content.blocks
        tokens = {int(match) for match in BLANK_TOKEN_RE.findall(block.content)}
        assert {b.index for b in block.blanks} <= tokens

    def test_no_gaps_gives_no_blocks(self):
        content = from_payload({"text": "Nothing to fill"})
        assert content.blocks == []
        assert content.text == "Nothing to fill"

    def test_empty_blocks_array_wins(self, legacy_payload):
        """An explicit empty blocks array should not fall back to legacy fields."""
        legacy_payload["blocks"] = []
        assert from_payload(legacy_payload).blocks == []

    def test_legacy_media(self, legacy_payload):
        legacy_payload["mediaType"] = "image"
        legacy_payload["fileUrl"] = "/files/7"
        [block] = from_payload(legacy_payload).blocks
        assert block.media.file_url == "/files/7"

    def test_legacy_show_options_default(self):
        content = from_payload({"text": "{1}", "gaps": [{"index": 1}]})
        assert content.show_options is True
        assert content.blocks[0].blanks[0].allow_global_options is True


class TestRoundTrip:
    """Tests for re-parsing serialized content."""

    @pytest.mark.parametrize("fixture_name", ["blocks_json", "legacy_json"])
    def test_reparse_is_stable(self, fixture_name, request):
        """Serializing and parsing again should reproduce the same content."""
        content = from_content_json(request.getfixturevalue(fixture_name))
        reparsed = from_content_json(content_to_json(content))
        assert canonical_json(reparsed) == canonical_json(content)

    def test_post_processing_is_idempotent(self, blocks_json):
        parser = GapFillContentParser()
        content = parser.from_content_json(blocks_json)
        assert canonical_json(parser.populate_content_metadata(content)) == canonical_json(content)


class TestMalformedInput:
    """Malformed content should never raise."""

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "   ",
            "not json",
            "{",
            "[1, 2]",
            "42",
            "null",
            '"text"',
            '{"blocks": "x"}',
            '{"blocks": [1, "a", null, {"type": "gapFill", "data": "oops"}]}',
            '{"text": 5, "gaps": {"a": 1}}',
            '{"text": "x", "gaps": [null, 3, {"index": null}]}',
            '{"blocks": [{"type": "gapFill", "order": "abc", "id": 123, "points": "many"}]}',
            "[" * 100000 + "]" * 100000,
            '{"text": "x", "gaps": ' + "[" * 100000 + "]" * 100000 + "}",
            json.dumps(
                {
                    "blocks": [
                        {
                            "type": "gapFill",
                            "data": {
                                "blanks": [
                                    {"index": "x", "options": {"a": 1}, "alternativeAnswers": 5},
                                    None,
                                ],
                                "points": [],
                                "globalOptions": [{}, {"value": {}}, "ok"],
                                "media": [1],
                            },
                        }
                    ]
                }
            ),
        ],
    )
    def test_no_exception(self, raw):
        assert isinstance(from_content_json(raw), Content)

    def test_none_and_bytes(self, legacy_json):
        assert from_content_json(None) == Content()
        assert len(from_content_json(legacy_json.encode("utf-8")).blocks) == 1

    def test_deeply_nested_json_gives_empty_content(self, caplog):
        """JSON nested too deeply to decode should degrade like invalid JSON."""
        with caplog.at_level(logging.WARNING, logger="gapfill.assembler"):
            content = from_content_json("[" * 100000 + "]" * 100000)
        assert content.blocks == []
        assert "Unparseable content JSON" in caplog.text

    def test_invalid_json_gives_empty_content(self):
        content = from_content_json("not json")
        assert content.blocks == []
        assert content.global_options == []

    def test_stray_gaps_get_positions(self):
        content = from_content_json('{"text": "x", "gaps": [null, 3, {"index": null}]}')
        [block] = content.blocks
        assert block.content == "x [[blank1]]"
        assert [b.id for b in block.blanks] == ["blank1"]


class TestFindBlockById:
    """Tests for block lookup by id."""

    def test_ignores_case(self, blocks_json):
        block = find_block_by_id(blocks_json, "BLOCK-B")
        assert block is not None
        assert block.id == "block-b"

    def test_unknown_id(self, blocks_json):
        assert find_block_by_id(blocks_json, "missing") is None

    def test_other_block_types_not_found(self, blocks_json):
        assert find_block_by_id(blocks_json, "mc-1") is None

    def test_missing_inputs(self, blocks_json):
        assert find_block_by_id(None, "block-a") is None
        assert find_block_by_id("  ", "block-a") is None
        assert find_block_by_id(blocks_json, None) is None

    def test_legacy_block(self, legacy_json):
        assert find_block_by_id(legacy_json, "Legacy").id == "legacy"
