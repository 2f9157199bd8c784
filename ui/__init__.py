"""Terminal renderables for inspecting gap-fill content and grading results."""

from ui.components import (
    BlockPanel,
    ContentSummaryTable,
    ValidationPanel,
    highlight_tokens,
)
from ui.styles import (
    CONSOLE,
    PRIMARY_TEAL,
    ACCENT_GOLD,
    SUCCESS_GREEN,
    ERROR_RED,
    INFO_BLUE,
    MUTED_GRAY,
)

__all__ = [
    "BlockPanel",
    "ContentSummaryTable",
    "ValidationPanel",
    "highlight_tokens",
    "CONSOLE",
    "PRIMARY_TEAL",
    "ACCENT_GOLD",
    "SUCCESS_GREEN",
    "ERROR_RED",
    "INFO_BLUE",
    "MUTED_GRAY",
]
