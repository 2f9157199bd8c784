from __future__ import annotations

import json
from typing import Any

from gapfill.schemas import Block, Content


def content_to_dict(content: Content) -> dict[str, Any]:
    """camelCase payload for a content, omitting absent optional fields."""
    return content.model_dump(mode="json", by_alias=True, exclude_none=True)


def block_to_dict(block: Block) -> dict[str, Any]:
    return block.model_dump(mode="json", by_alias=True, exclude_none=True)


def content_to_json(content: Content, indent: int | None = None) -> str:
    return json.dumps(content_to_dict(content), ensure_ascii=False, indent=indent)


def canonical_json(content: Content) -> str:
    """Key-sorted compact JSON, stable across runs for equal content."""
    return json.dumps(
        content_to_dict(content),
        ensure_ascii=False,
        sort_keys=True,
        separators=(",", ":"),
    )


def serialize_summary(content: Content) -> dict[str, Any]:
    return {
        "blockCount": len(content.blocks),
        "blankCount": sum(len(block.blanks) for block in content.blocks),
        "globalOptionCount": len(content.global_options),
        "blockIds": [block.id for block in content.blocks],
    }
