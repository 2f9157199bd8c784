"""Shared pytest fixtures for the gap-fill content test suite."""

import io
import json
import pytest

import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from rich.console import Console

from ui.styles import DEFAULT_THEME


@pytest.fixture
def legacy_payload() -> dict:
    """A minimal exercise in the flat legacy schema."""
    return {
        "text": "The {1} jumps over the {2}.",
        "gaps": [
            {"index": 2, "correctAnswer": "dog", "alternativeAnswers": [" hound ", ""], "hint": "an animal"},
            {"index": 1, "correctAnswer": "fox"},
        ],
        "answerType": "exact",
        "caseSensitive": False,
        "showOptions": True,
    }


@pytest.fixture
def legacy_json(legacy_payload) -> str:
    return json.dumps(legacy_payload)


@pytest.fixture
def blocks_payload() -> dict:
    """Two gap-fill blocks plus one block of another type."""
    return {
        "blocks": [
            {
                "id": "block-b",
                "type": "gapFill",
                "order": 1,
                "data": {
                    "instruction": "Complete the sentence.",
                    "content": "[[blank1]] is the capital of France.",
                    "answerType": "exact",
                    "caseSensitive": False,
                    "points": "2",
                    "globalOptions": ["Paris", {"id": "opt-lon", "value": "London"}],
                    "blanks": [
                        {
                            "id": "blank1",
                            "index": 1,
                            "correctAnswer": "Paris",
                        }
                    ],
                },
            },
            {
                "id": "block-a",
                "type": "gapfill",
                "order": 0,
                "content": "I have a [[blank2]] and a [[blank1]].",
                "showGlobalOptions": True,
                "globalOptions": [{"value": "paris"}, {"value": "Rome"}],
                "blanks": [
                    {"id": "blank2", "index": 2, "alternativeAnswers": ["cat", "dog"]},
                    {
                        "id": "blank1",
                        "index": 1,
                        "correctOptionId": "OPT-42",
                        "options": [
                            {"id": "opt-42", "value": "42"},
                            {"id": "opt-7", "value": "7", "displayText": "seven"},
                        ],
                    },
                ],
            },
            {"id": "mc-1", "type": "multipleChoice", "data": {"question": "?"}},
        ]
    }


@pytest.fixture
def blocks_json(blocks_payload) -> str:
    return json.dumps(blocks_payload)


@pytest.fixture
def console() -> Console:
    """A themed console writing to memory."""
    return Console(file=io.StringIO(), theme=DEFAULT_THEME, width=500, color_system=None)
