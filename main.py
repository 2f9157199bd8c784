import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console

from gapfill import GapFillConfig, GapFillContentParser, grade_block
from gapfill.serialization import content_to_json
from logging_setup import setup_console_logging
from ui import CONSOLE, BlockPanel, ContentSummaryTable, ValidationPanel


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with subcommands."""
    parser = argparse.ArgumentParser(description="Gap-fill content tools")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show debug logging",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to a JSON parser configuration file",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    normalize_parser = subparsers.add_parser(
        "normalize", help="Print the canonical JSON of a content file"
    )
    normalize_parser.add_argument("file", help="Content JSON file ('-' for stdin)")
    normalize_parser.add_argument(
        "--indent",
        "-i",
        type=int,
        default=2,
        help="JSON indentation (default: 2)",
    )

    show_parser = subparsers.add_parser("show", help="Summarize the blocks of a content file")
    show_parser.add_argument("file", help="Content JSON file ('-' for stdin)")

    grade_parser = subparsers.add_parser("grade", help="Grade an answer against one block")
    grade_parser.add_argument("file", help="Content JSON file ('-' for stdin)")
    grade_parser.add_argument("--block", "-b", required=True, help="Block id to grade")
    grade_parser.add_argument(
        "--answer",
        "-a",
        action="append",
        default=[],
        metavar="BLANK=VALUE",
        help="Submitted value for a blank, e.g. blank1=fox (repeatable)",
    )

    return parser


def read_content(file_arg: str) -> str:
    """Read content JSON from a file path or stdin."""
    if file_arg == "-":
        return sys.stdin.read()
    return Path(file_arg).read_text(encoding="utf-8")


def parse_answers(pairs: list[str]) -> dict[str, str]:
    """Parse BLANK=VALUE pairs into a flat submission mapping."""
    answers: dict[str, str] = {}
    for pair in pairs:
        blank_id, sep, value = pair.partition("=")
        if not sep or not blank_id.strip():
            raise ValueError(f"Invalid answer '{pair}', expected BLANK=VALUE")
        answers[blank_id.strip()] = value
    return answers


def load_config(path: str | None) -> GapFillConfig:
    """Load parser configuration, falling back to defaults."""
    if path is None:
        return GapFillConfig()
    return GapFillConfig.from_file(Path(path))


def run_normalize(args, config: GapFillConfig, console: Console) -> None:
    """Run the normalize subcommand."""
    content = GapFillContentParser(config).from_content_json(read_content(args.file))
    console.print_json(content_to_json(content), indent=args.indent)


def run_show(args, config: GapFillConfig, console: Console) -> None:
    """Run the show subcommand."""
    content = GapFillContentParser(config).from_content_json(read_content(args.file))
    if not content.blocks:
        console.print("No gap-fill blocks found.", style="muted")
        return

    console.print(ContentSummaryTable(content))
    for block in content.blocks:
        console.print(BlockPanel(block))


def run_grade(args, config: GapFillConfig, console: Console) -> None:
    """Run the grade subcommand."""
    answers = parse_answers(args.answer)
    result = grade_block(read_content(args.file), args.block, answers, config)
    console.print(ValidationPanel(result))


COMMANDS = {
    "normalize": run_normalize,
    "show": run_show,
    "grade": run_grade,
}


def main(argv: list[str] | None = None, console: Console | None = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)
    console = console or CONSOLE

    setup_console_logging(logging.DEBUG if args.verbose else logging.WARNING)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        config = load_config(args.config)
        COMMANDS[args.command](args, config, console)
    except (ValueError, OSError) as exc:
        console.print(f"Error: {exc}", style="error")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
