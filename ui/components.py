from rich.text import Text
from rich.panel import Panel
from rich.table import Table
from rich.style import Style
from rich.align import Align
from rich.console import Group
from rich import box

from gapfill.grading import BlockValidationResult
from gapfill.legacy import BLANK_TOKEN_RE
from gapfill.schemas import Block, Content
from ui.styles import (
    PRIMARY_TEAL,
    ACCENT_GOLD,
    SUCCESS_GREEN,
    ERROR_RED,
    INFO_BLUE,
    MUTED_GRAY,
    TEXT_WHITE,
    get_flag_text,
    get_result_style,
)


def highlight_tokens(content: str) -> Text:
    """Return block text with ``[[blankN]]`` tokens highlighted."""
    text = Text(content, style=Style(color=TEXT_WHITE))
    for match in BLANK_TOKEN_RE.finditer(content):
        text.stylize(Style(color=ACCENT_GOLD, bold=True), match.start(), match.end())
    return text


class ContentSummaryTable:
    """A table listing every block of a parsed content."""

    def __init__(self, content: Content):
        self.content = content

    def render(self) -> Panel:
        table = Table(
            show_header=True,
            header_style=Style(color=PRIMARY_TEAL, bold=True),
            border_style=MUTED_GRAY,
            row_styles=[Style(), Style(dim=True)],
            box=box.HEAVY,
        )

        table.add_column("Order", justify="right")
        table.add_column("Block", style=Style(color=PRIMARY_TEAL, bold=True))
        table.add_column("Answer Type", style=Style(color=TEXT_WHITE))
        table.add_column("Blanks", justify="center")
        table.add_column("Global Options", justify="center")
        table.add_column("Points", justify="right", style=Style(color=INFO_BLUE))

        for block in self.content.blocks:
            table.add_row(
                str(block.order),
                block.id,
                block.answer_type,
                str(len(block.blanks)),
                str(len(block.global_options)),
                str(block.points),
            )

        subtitle = f"{len(self.content.global_options)} shared option(s)"
        return Panel(
            Align.center(table),
            title="Gap-Fill Content",
            subtitle=subtitle,
            border_style=ACCENT_GOLD,
            box=box.HEAVY,
            padding=(1, 1),
        )

    def __rich__(self) -> Panel:
        return self.render()


class BlockPanel:
    """A panel showing one block's text and its blanks."""

    def __init__(self, block: Block):
        self.block = block

    def render(self) -> Panel:
        header = Text()
        if self.block.instruction:
            header.append(self.block.instruction, Style(color=PRIMARY_TEAL, bold=True))
            header.append("\n\n")
        header.append_text(highlight_tokens(self.block.content))

        table = Table(
            show_header=True,
            header_style=Style(color=PRIMARY_TEAL, bold=True),
            border_style=MUTED_GRAY,
            box=box.SIMPLE_HEAVY,
        )
        table.add_column("#", justify="right")
        table.add_column("Blank")
        table.add_column("Correct Answer", style=Style(color=SUCCESS_GREEN, bold=True))
        table.add_column("Alternatives", style=Style(color=MUTED_GRAY))
        table.add_column("Options", style=Style(color=TEXT_WHITE))
        table.add_column("Manual", justify="center")
        table.add_column("Global", justify="center")

        for blank in self.block.blanks:
            table.add_row(
                str(blank.index),
                blank.identifier(),
                blank.correct_answer,
                ", ".join(blank.alternative_answers),
                ", ".join(option.display_text or option.value for option in blank.options),
                get_flag_text(blank.allow_manual_input),
                get_flag_text(blank.allow_global_options),
            )

        subtitle = f"{self.block.answer_type}, case {'sensitive' if self.block.case_sensitive else 'insensitive'}"
        return Panel(
            Group(header, Text(), table),
            title=f"Block {self.block.id}",
            subtitle=subtitle,
            border_style=PRIMARY_TEAL,
            box=box.HEAVY,
            padding=(1, 2),
        )

    def __rich__(self) -> Panel:
        return self.render()


class ValidationPanel:
    """A styled panel for displaying a block grading result."""

    def __init__(self, result: BlockValidationResult):
        self.result = result

    def render(self) -> Panel:
        content = Text()

        if self.result.is_correct:
            content.append("✓ ", Style(color=SUCCESS_GREEN, bold=True))
        else:
            content.append("✗ ", Style(color=ERROR_RED, bold=True))
        content.append(f"{self.result.feedback}\n", get_result_style(self.result.is_correct))
        content.append(
            f"Points: {self.result.points_earned}/{self.result.max_points}\n\n",
            Style(color=MUTED_GRAY),
        )

        for entry in self.result.detailed_feedback.get("blanks", []):
            marker = "✓" if entry["isCorrect"] else "✗"
            content.append(f"{marker} ", get_result_style(entry["isCorrect"]))
            content.append(f"{entry['blankId']}: ", Style(color=TEXT_WHITE))
            submitted = entry.get("submittedValue") or entry.get("submittedOptionId") or "(no answer)"
            content.append(f"{submitted}\n", Style(color=MUTED_GRAY))

        return Panel(
            Align.left(content),
            title="Result",
            border_style=SUCCESS_GREEN if self.result.is_correct else ERROR_RED,
            box=box.HEAVY,
            padding=(1, 2),
        )

    def __rich__(self) -> Panel:
        return self.render()
