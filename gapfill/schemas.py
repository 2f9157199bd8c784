"""Canonical in-memory model for gap-fill exercise content.

These models are what the parser produces and what grading and rendering
consume. They are frozen: the parsing modules build new instances with
``model_copy(update=...)`` rather than mutating them in place.

Field names follow Python conventions; serialization uses camelCase aliases
so the JSON output matches the block schema the content was authored in.
"""

import uuid
from decimal import Decimal
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

BLOCK_TYPE = "gapFill"


def new_option_id() -> str:
    """Generate a fresh option identifier."""
    return str(uuid.uuid4())


def blank_identifier(index: int) -> str:
    """Identifier synthesized for a blank at the given 1-based position."""
    return f"blank{max(1, index)}"


def decimal_to_number(value: Decimal) -> int | float:
    """JSON number for a decimal: int when integral, float otherwise."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


class GapFillModel(BaseModel):
    """Base for canonical models: camelCase aliases, immutable after build."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# =============================================================================
# Canonical Models
# =============================================================================


class Option(GapFillModel):
    """A selectable answer value.

    Examples:
        - id="opt-1", value="Paris", display_text="Paris"
        - id="3f2c...", value="42", display_text="forty-two"
    """

    id: str = Field(default_factory=new_option_id)
    value: str
    display_text: str | None = None


class Media(GapFillModel):
    """Attachment shown alongside a block (image, video, audio)."""

    media_type: str | None = None
    file_url: str | None = None
    file_id: str | None = None
    file_name: str | None = None
    mime_type: str | None = None
    file_size: int | None = None

    # Recording metadata
    is_recorded: bool | None = None
    duration: int | None = None  # seconds

    # Layout hints
    size: str | None = None  # small, medium, large, full
    position: str | None = None  # left, center, right
    caption: str | None = None
    caption_position: str | None = None  # top, bottom, overlay
    display_mode: str | None = None  # icon, player
    attachment_mode: str | None = None  # independent, attached


class Blank(GapFillModel):
    """One fillable position inside a block.

    Examples:
        - id="blank1", index=1, correct_answer="fox"
        - id="b-color", index=2, correct_option_id="opt-red", options=[...]
    """

    id: str = ""
    index: int = 1
    correct_answer: str = ""
    alternative_answers: list[str] = Field(default_factory=list)
    correct_option_id: str | None = None
    alternative_option_ids: list[str] = Field(default_factory=list)
    hint: str | None = None
    allow_manual_input: bool = True
    allow_global_options: bool = False
    allow_blank_options: bool = False
    options: list[Option] = Field(default_factory=list)

    def identifier(self) -> str:
        """Return the id, or the positional fallback when the id is blank."""
        if self.id and self.id.strip():
            return self.id
        return blank_identifier(self.index)


class Block(GapFillModel):
    """One scoreable gap-fill unit.

    ``content`` holds display text with ``[[blankN]]`` tokens marking blank
    positions. ``answer_type`` is kept as free text ("exact", "similar",
    "keyword", or anything newer) rather than a closed enum.
    """

    id: str
    type: str = BLOCK_TYPE
    order: int = 0
    instruction: str | None = None
    content: str = ""
    text_content: str = ""
    answer_type: str = "exact"
    case_sensitive: bool = False
    show_global_options: bool = False
    points: Decimal = Decimal(1)
    is_required: bool = True
    media: Media | None = None
    global_options: list[Option] = Field(default_factory=list)
    blanks: list[Blank] = Field(default_factory=list)

    @field_serializer("points")
    def _serialize_points(self, points: Decimal) -> int | float:
        return decimal_to_number(points)


class Content(GapFillModel):
    """A whole gap-fill exercise.

    ``text``, ``answer_type``, ``case_sensitive`` and ``show_options`` are
    the legacy scalar fields; after assembly they mirror the first block so
    older consumers keep working.
    """

    text: str = ""
    answer_type: str = "exact"
    case_sensitive: bool = False
    show_options: bool = True
    blocks: list[Block] = Field(default_factory=list)
    global_options: list[Option] = Field(default_factory=list)


# =============================================================================
# Input Shapes
# =============================================================================


class LegacyGap(GapFillModel):
    """One entry of the legacy ``gaps`` array."""

    index: int = 1
    correct_answer: str = ""
    alternative_answers: list[str] = Field(default_factory=list)
    hint: str | None = None


class CurrentInput(BaseModel):
    """Content authored in the block schema: ``{"blocks": [...]}``."""

    kind: Literal["current"] = "current"
    blocks: list[Any] = Field(default_factory=list)
    global_options: list[Option] = Field(default_factory=list)


class LegacyInput(BaseModel):
    """Content authored in the flat legacy schema: ``{"text", "gaps"}``."""

    kind: Literal["legacy"] = "legacy"
    text: str = ""
    gaps: list[LegacyGap] = Field(default_factory=list)
    answer_type: str = "exact"
    case_sensitive: bool = False
    show_options: bool = True
    global_options: list[Option] = Field(default_factory=list)
    media: Media | None = None


RawInput = Annotated[Union[CurrentInput, LegacyInput], Field(discriminator="kind")]
