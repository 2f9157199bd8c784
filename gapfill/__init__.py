"""Gap-fill exercise content engine.

Parses fill-in-the-blank exercise JSON, in either the block schema or the
older flat ``{text, gaps[]}`` schema, into one canonical model used for
rendering and grading.

Architecture:
- Field accessors resolve aliased fields declaratively (data vs. block, old
  vs. new key names) and never raise on malformed values
- Schema models are the canonical, frozen output types
- The option normalizer parses, trims and deduplicates option lists
- The block parser turns one raw block into a ``Block``
- The legacy migrator turns the flat schema into a single synthetic block
- The assembler picks the migration path and runs post-processing

Canonical models:
- Content, Block, Blank, Option, Media

Entry points:
- from_content_json, from_blocks, from_payload, find_block_by_id
- GapFillContentParser: the same entry points bound to a GapFillConfig

Grading:
- validate_block_answer, grade_block, BlockValidationResult
"""

from gapfill.assembler import (
    GapFillContentParser,
    find_block_by_id,
    from_blocks,
    from_content_json,
    from_payload,
)
from gapfill.blocks import parse_block, try_build_media
from gapfill.config import GapFillConfig
from gapfill.grading import (
    BlockValidationResult,
    answers_match,
    extract_submitted_blanks,
    grade_block,
    validate_block_answer,
)
from gapfill.legacy import build_content_with_tokens, migrate_legacy
from gapfill.options import dedupe_options, normalize_options, parse_options
from gapfill.schemas import (
    Blank,
    Block,
    Content,
    CurrentInput,
    LegacyGap,
    LegacyInput,
    Media,
    Option,
)
from gapfill.serialization import canonical_json, content_to_dict, content_to_json

__all__ = [
    # Canonical models
    "Content",
    "Block",
    "Blank",
    "Option",
    "Media",
    # Input shapes
    "CurrentInput",
    "LegacyInput",
    "LegacyGap",
    # Configuration
    "GapFillConfig",
    # Entry points
    "GapFillContentParser",
    "from_content_json",
    "from_blocks",
    "from_payload",
    "find_block_by_id",
    # Building blocks
    "parse_block",
    "try_build_media",
    "migrate_legacy",
    "build_content_with_tokens",
    "parse_options",
    "normalize_options",
    "dedupe_options",
    # Serialization
    "content_to_dict",
    "content_to_json",
    "canonical_json",
    # Grading
    "BlockValidationResult",
    "answers_match",
    "extract_submitted_blanks",
    "validate_block_answer",
    "grade_block",
]
