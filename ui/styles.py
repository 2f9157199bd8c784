from rich.theme import Theme
from rich.console import Console
from rich.style import Style

PRIMARY_TEAL = "#16A085"
ACCENT_GOLD = "#F1C40F"
SUCCESS_GREEN = "#27AE60"
ERROR_RED = "#C0392B"
INFO_BLUE = "#3498DB"
MUTED_GRAY = "#7F8C8D"
TEXT_WHITE = "#FFFFFF"

DEFAULT_THEME = Theme(
    {
        "primary": Style(color=PRIMARY_TEAL, bold=True),
        "secondary": Style(color=ACCENT_GOLD, bold=True),
        "success": Style(color=SUCCESS_GREEN),
        "error": Style(color=ERROR_RED, bold=True),
        "info": Style(color=INFO_BLUE),
        "muted": Style(color=MUTED_GRAY),
        "token": Style(color=ACCENT_GOLD, bold=True),
        "title": Style(color=PRIMARY_TEAL, bold=True),
    }
)

CONSOLE = Console(theme=DEFAULT_THEME)


def get_result_style(is_correct: bool) -> Style:
    """Get style for a correct/incorrect marker."""
    if is_correct:
        return Style(color=SUCCESS_GREEN, bold=True)
    return Style(color=ERROR_RED, bold=True)


def get_flag_text(value: bool) -> str:
    """Render a boolean flag as a check or a dash."""
    return "✓" if value else "-"
