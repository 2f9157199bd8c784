"""Grading of a submitted answer against one canonical gap-fill block.

Grading is all-or-nothing per block: the block's points are earned only
when every blank is answered correctly. A blank is correct when the
submitted text (or the value of the submitted option) matches the correct
answer or an alternative under the block's ``answer_type``, or when the
submitted option id is the correct option id or an alternative option id.
"""

import json
import logging
import re
from decimal import Decimal
from typing import Any, Iterable, Mapping

from pydantic import Field, field_serializer

from gapfill.assembler import from_content_json
from gapfill.config import GapFillConfig
from gapfill.fields import FieldRule, as_int, as_mapping, as_non_blank, as_text, pick
from gapfill.schemas import (
    Blank,
    Block,
    GapFillModel,
    Option,
    blank_identifier,
    decimal_to_number,
)

logger = logging.getLogger(__name__)

CORRECT_FEEDBACK = "Great! Your answer is correct."
INCORRECT_FEEDBACK = "Some answers are not correct. Please try again."

_WHITESPACE_RE = re.compile(r"\s+")
_DIGITS_RE = re.compile(r"\d")

_SUBMISSION_FIELDS = {
    "blank_id": FieldRule(("blankId", "id", "key"), as_non_blank),
    "option_id": FieldRule(("optionId", "selectedOptionId"), as_non_blank),
    "value": FieldRule(("value", "text", "input"), as_text),
    "index": FieldRule(("index",), as_int),
}


class SubmittedBlank(GapFillModel):
    """One blank of a student submission."""

    blank_id: str | None = None
    index: int = 0
    value: str | None = None
    option_id: str | None = None


class BlankEvaluation(GapFillModel):
    """Outcome for one blank of a block."""

    blank: Blank
    submitted_value: str | None = None
    submitted_option_id: str | None = None
    is_correct: bool = False


class BlockValidationResult(GapFillModel):
    """Result of grading one block."""

    is_correct: bool
    points_earned: Decimal
    max_points: Decimal
    correct_answer: dict[str, Any] = Field(default_factory=dict)
    submitted_answer: dict[str, Any] = Field(default_factory=dict)
    feedback: str | None = None
    detailed_feedback: dict[str, Any] = Field(default_factory=dict)

    @field_serializer("points_earned", "max_points")
    def _serialize_points(self, points: Decimal) -> int | float:
        return decimal_to_number(points)


# =============================================================================
# Submission Extraction
# =============================================================================


def _parse_submitted_blank(entry: Any) -> SubmittedBlank | None:
    if isinstance(entry, str) and entry.lstrip().startswith("{"):
        try:
            entry = json.loads(entry)
        except (ValueError, RecursionError):
            return None
    entry = as_mapping(entry)
    if entry is None:
        return None

    fields = {name: pick([entry], rule) for name, rule in _SUBMISSION_FIELDS.items()}
    blank_id = fields["blank_id"]
    index = 0

    if blank_id is None and fields["index"] is not None:
        index = fields["index"]
        blank_id = blank_identifier(index)
    elif blank_id is not None:
        digits = "".join(_DIGITS_RE.findall(blank_id))
        if digits:
            index = int(digits)

    return SubmittedBlank(
        blank_id=blank_id,
        index=index,
        value=fields["value"],
        option_id=fields["option_id"],
    )


def extract_submitted_blanks(submitted_answer: Mapping[str, Any] | None) -> list[SubmittedBlank]:
    """Read the submitted blanks out of an answer payload.

    Accepts ``{"blanks": [...]}`` whose entries are objects or JSON strings,
    or a flat mapping keyed by blank id (``{"blank1": "fox"}``).
    """
    if not submitted_answer:
        return []

    blanks = submitted_answer.get("blanks")
    if isinstance(blanks, str):
        try:
            blanks = json.loads(blanks)
        except (ValueError, RecursionError):
            blanks = None
    if isinstance(blanks, list):
        parsed = (_parse_submitted_blank(entry) for entry in blanks)
        return [blank for blank in parsed if blank is not None]

    submissions = []
    for key, value in submitted_answer.items():
        if not key.lower().startswith("blank"):
            continue
        digits = "".join(_DIGITS_RE.findall(key))
        submissions.append(
            SubmittedBlank(
                blank_id=key,
                index=int(digits) if digits else 0,
                value=as_text(value),
            )
        )
    return submissions


# =============================================================================
# Comparison
# =============================================================================


def normalize_whitespace(value: str) -> str:
    """Collapse whitespace runs into single spaces."""
    return _WHITESPACE_RE.sub(" ", value.strip())


def answers_match(correct: str, submitted: str, answer_type: str | None, case_sensitive: bool) -> bool:
    """Compare a submitted value to one correct value.

    Examples:
        - answers_match("fox", " Fox ", "exact", False) -> True
        - answers_match("big  dog", "big dog", "similar", True) -> True
        - answers_match("dog", "a big dog", "keyword", False) -> True
    """
    correct = (correct or "").strip()
    submitted = (submitted or "").strip()
    if not correct:
        return not submitted

    if not case_sensitive:
        correct = correct.lower()
        submitted = submitted.lower()

    mode = (answer_type or "exact").strip().lower()
    if mode == "keyword":
        return correct in submitted
    if mode == "similar":
        return normalize_whitespace(correct) == normalize_whitespace(submitted)
    return correct == submitted


def _resolve_option_value(
    blank: Blank,
    option_id: str | None,
    global_options: Mapping[str, Option],
) -> str | None:
    if not option_id:
        return None
    wanted = option_id.lower()
    for option in blank.options:
        if option.id.lower() == wanted:
            return option.value
    option = global_options.get(wanted)
    return option.value if option is not None else None


def _match_option_value(
    blank: Blank,
    value: str,
    global_options: Mapping[str, Option],
    case_sensitive: bool,
) -> str | None:
    """Treat a typed value equal to an offered option as picking that option."""
    fold = (lambda text: text) if case_sensitive else str.lower
    wanted = fold(value.strip())
    offered = [*blank.options]
    if blank.allow_global_options:
        offered.extend(global_options.values())
    for option in offered:
        if fold(option.value) == wanted:
            return option.value
    return None


def _evaluate_blank(
    block: Block,
    blank: Blank,
    submissions: list[SubmittedBlank],
    global_options: Mapping[str, Option],
) -> BlankEvaluation:
    identifier = blank.identifier().lower()
    submitted = next(
        (
            s
            for s in submissions
            if (s.blank_id and s.blank_id.lower() == identifier)
            or (s.index > 0 and s.index == blank.index)
        ),
        None,
    )
    value = submitted.value if submitted else None
    option_id = submitted.option_id if submitted else None
    evaluation = BlankEvaluation(blank=blank, submitted_value=value, submitted_option_id=option_id)

    if not (value and value.strip()) and not option_id:
        return evaluation

    option_value = _resolve_option_value(blank, option_id, global_options)
    if option_value is None and value:
        option_value = _match_option_value(blank, value, global_options, block.case_sensitive)
    if option_value is None and not blank.allow_manual_input:
        return evaluation

    comparison = option_value if option_value is not None else (value or "")
    is_correct = answers_match(
        blank.correct_answer, comparison, block.answer_type, block.case_sensitive
    ) or any(
        answers_match(alternative, comparison, block.answer_type, block.case_sensitive)
        for alternative in blank.alternative_answers
    )

    if not is_correct and option_id:
        accepted_ids = [blank.correct_option_id, *blank.alternative_option_ids]
        is_correct = any(
            accepted and accepted.lower() == option_id.lower() for accepted in accepted_ids
        )

    return evaluation.model_copy(update={"is_correct": is_correct})


# =============================================================================
# Result Payloads
# =============================================================================


def _option_payload(options: Iterable[Option]) -> list[dict[str, Any]]:
    return [
        {"id": option.id, "value": option.value, "displayText": option.display_text}
        for option in options
    ]


def _correct_answer_payload(block: Block) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "answerType": block.answer_type,
        "caseSensitive": block.case_sensitive,
        "blanks": [
            {
                "blankId": blank.identifier(),
                "index": blank.index,
                "correctAnswer": blank.correct_answer,
                "alternativeAnswers": list(blank.alternative_answers),
                "correctOptionId": blank.correct_option_id,
                "alternativeOptionIds": list(blank.alternative_option_ids),
                "options": _option_payload(blank.options),
            }
            for blank in block.blanks
        ],
    }
    if block.show_global_options and block.global_options:
        payload["globalOptions"] = _option_payload(block.global_options)
    return payload


def _submitted_answer_payload(evaluations: list[BlankEvaluation]) -> dict[str, Any]:
    return {
        "blanks": [
            {
                "blankId": e.blank.identifier(),
                "index": e.blank.index,
                "value": e.submitted_value,
                "optionId": e.submitted_option_id,
            }
            for e in evaluations
        ]
    }


def _detailed_feedback_payload(block: Block, evaluations: list[BlankEvaluation]) -> dict[str, Any]:
    return {
        "answerType": block.answer_type,
        "caseSensitive": block.case_sensitive,
        "blanks": [
            {
                "blankId": e.blank.identifier(),
                "index": e.blank.index,
                "isCorrect": e.is_correct,
                "submittedValue": e.submitted_value,
                "submittedOptionId": e.submitted_option_id,
                "allowManual": e.blank.allow_manual_input,
                "allowGlobalOptions": e.blank.allow_global_options,
                "allowBlankOptions": e.blank.allow_blank_options,
            }
            for e in evaluations
        ],
    }


# =============================================================================
# Entry Points
# =============================================================================


def validate_block_answer(
    block: Block,
    submitted_answer: Mapping[str, Any],
    global_options: Iterable[Option] = (),
) -> BlockValidationResult:
    """Grade a submission against one block.

    Args:
        block: The canonical block.
        submitted_answer: The raw submission payload.
        global_options: Content-level options to resolve option ids against,
            in addition to the block's own global options.

    Returns:
        The validation result.

    Raises:
        ValueError: If the submission contains no blanks.
    """
    submissions = extract_submitted_blanks(submitted_answer)
    if not submissions:
        raise ValueError("Submitted answer does not contain any blanks.")

    lookup: dict[str, Option] = {}
    for option in [*block.global_options, *global_options]:
        lookup.setdefault(option.id.lower(), option)

    evaluations = [_evaluate_blank(block, blank, submissions, lookup) for blank in block.blanks]
    is_correct = all(e.is_correct for e in evaluations)
    logger.debug(
        "Graded block %r: %d/%d blank(s) correct",
        block.id,
        sum(e.is_correct for e in evaluations),
        len(evaluations),
    )

    return BlockValidationResult(
        is_correct=is_correct,
        points_earned=block.points if is_correct else Decimal(0),
        max_points=block.points,
        correct_answer=_correct_answer_payload(block),
        submitted_answer=_submitted_answer_payload(evaluations),
        feedback=CORRECT_FEEDBACK if is_correct else INCORRECT_FEEDBACK,
        detailed_feedback=_detailed_feedback_payload(block, evaluations),
    )


def grade_block(
    content_json: str | bytes | None,
    block_id: str,
    submitted_answer: Mapping[str, Any],
    config: GapFillConfig | None = None,
) -> BlockValidationResult:
    """Find a block in JSON content and grade a submission against it.

    Raises:
        ValueError: If the block id is blank, the block is not found, or the
            submission contains no blanks.
    """
    if not block_id or not block_id.strip():
        raise ValueError("Block identifier is required.")
    content = from_content_json(content_json, config)
    wanted = block_id.lower()
    block = next((b for b in content.blocks if b.id.lower() == wanted), None)
    if block is None:
        raise ValueError(f"Gap fill block with id '{block_id}' was not found.")
    return validate_block_answer(block, submitted_answer, content.global_options)
