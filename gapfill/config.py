"""Configuration for gap-fill content parsing.

These settings let callers tune which block types are accepted and the
defaults applied to fields the content leaves out.
"""

from decimal import Decimal
from pathlib import Path

from pydantic import BaseModel, Field

from gapfill.fields import MAX_DECIMAL_DIGITS


class GapFillConfig(BaseModel):
    """Configuration for parsing gap-fill content."""

    block_types: list[str] = Field(default_factory=lambda: ["gapfill"])
    default_answer_type: str = "exact"
    default_points: Decimal = Field(default=Decimal(1), ge=0, lt=Decimal(10) ** MAX_DECIMAL_DIGITS)
    legacy_block_id: str = "legacy"

    def accepts_block_type(self, block_type: str | None) -> bool:
        """Check a block ``type`` tag against the accepted types, ignoring case."""
        if block_type is None:
            return False
        wanted = block_type.strip().lower()
        return any(wanted == accepted.lower() for accepted in self.block_types)

    @classmethod
    def from_file(cls, path: Path) -> "GapFillConfig":
        """Load configuration from a JSON file."""
        return cls.model_validate_json(Path(path).read_text(encoding="utf-8"))


DEFAULT_CONFIG = GapFillConfig()
