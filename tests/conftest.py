import threading
from unittest.mock import Mock

import pytest

from focusbuddy.model.models import ContextSnapshot, Goal, TextExtraction

NOW = 1_700_000_000.0


@pytest.fixture
def now():
    """Fixed reference time"""
    return NOW


@pytest.fixture
def goal():
    return Goal(text="write a report", created_at=NOW - 600)


@pytest.fixture
def empty_snapshot():
    return ContextSnapshot()


@pytest.fixture
def make_snapshot():
    """Snapshot factory: visual verdict stored ``age`` seconds before NOW"""

    def _make(focused: bool, age: float, context: str = "On task") -> ContextSnapshot:
        return ContextSnapshot(
            last_visual_context=context,
            last_visual_reasoning="vision says so",
            last_visual_focused=focused,
            last_visual_timestamp=NOW - age,
        )

    return _make


@pytest.fixture
def productive_extraction():
    """Productive screen"""
    return TextExtraction(
        active_app="WINWORD.EXE",
        window_title="Quarterly report.docx - Word",
        urls=(),
        text="Quarterly report. Revenue grew by 12 percent in Q3.",
        timestamp=NOW,
    )


@pytest.fixture
def distracted_extraction():
    """Distracted screen"""
    return TextExtraction(
        active_app="YouTube",
        window_title="Funny Cats",
        urls=("youtube.com/watch?v=1",),
        text="",
        timestamp=NOW,
    )


@pytest.fixture
def make_llm():
    """Inference backend mock.

    ``reply`` is either a fixed string or a callable taking the prompt.
    Prompts are recorded in ``llm.prompts``.
    """

    def _make(reply="", *, available: bool = True) -> Mock:
        llm = Mock()
        llm.prompts = []
        lock = threading.Lock()

        def _generate(prompt, images=()):
            with lock:
                llm.prompts.append(prompt)
            return reply(prompt) if callable(reply) else reply

        llm.is_available = Mock(return_value=available)
        llm.generate = Mock(side_effect=_generate)
        return llm

    return _make
