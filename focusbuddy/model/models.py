__all__ = [
    "ContextSnapshot",
    "FinalJudgment",
    "FocusState",
    "Goal",
    "TextExtraction",
    "Tier1Judgment",
    "Unit",
    "UnitKind",
    "UnitVerdict",
    "VisualJudgment",
]


import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class FocusState(Enum):
    """Judgment vocabulary handed to the alerting side."""

    FOCUSED = "focused"
    DISTRACTED = "distracted"
    # Reserved for a presence signal; nothing produces it yet.
    AWAY = "away"


class UnitKind(Enum):
    """Kind of an analyzable unit."""

    CONTEXT = "context"
    CONTENT = "content"


@dataclass(frozen=True)
class Goal:
    """What the user said they want to focus on."""

    text: str
    created_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class TextExtraction:
    """Screen text plus window metadata captured by the quick cycle."""

    active_app: str = ""
    window_title: str = ""
    urls: tuple[str, ...] = ()
    text: str = ""
    timestamp: float = 0.0

    @classmethod
    def empty(cls, now: float | None = None) -> "TextExtraction":
        """Sentinel extraction used when capture fails."""
        return cls(timestamp=time.time() if now is None else now)


@dataclass(frozen=True)
class VisualJudgment:
    """Verdict of the vision model for one screenshot."""

    is_focused: bool
    screen_context: str
    reasoning: str
    timestamp: float


@dataclass(frozen=True)
class Unit:
    kind: UnitKind
    content: str


@dataclass(frozen=True)
class UnitVerdict:
    unit: Unit
    is_relevant: bool
    rationale: str


@dataclass(frozen=True)
class ContextSnapshot:
    """Immutable view of the context memory.

    The four fields always change together; ``last_visual_timestamp`` is
    ``None`` until the first deep cycle has run.
    """

    last_visual_context: str = ""
    last_visual_reasoning: str = ""
    last_visual_focused: bool = False
    last_visual_timestamp: float | None = None

    def age(self, now: float) -> float | None:
        """Seconds since the visual judgment was stored (None if never)."""
        if self.last_visual_timestamp is None:
            return None
        return now - self.last_visual_timestamp

    def is_fresh(self, now: float, window_sec: float) -> bool:
        age = self.age(now)
        return age is not None and age < window_sec

    def as_dict(self) -> dict[str, Any]:
        if self.last_visual_timestamp is None:
            return {}
        return {
            "last_visual_context": self.last_visual_context,
            "last_visual_reasoning": self.last_visual_reasoning,
            "last_visual_focused": self.last_visual_focused,
            "last_visual_timestamp": self.last_visual_timestamp,
        }


@dataclass(frozen=True)
class Tier1Judgment:
    """Fast text-only judgment produced once per quick cycle."""

    is_focused: bool
    confidence: float
    rationale: str
    unit_summaries: tuple[str, ...] = ()
    memory_snapshot: dict[str, Any] = field(default_factory=dict)
    timestamp: float = 0.0


@dataclass(frozen=True)
class FinalJudgment:
    """Published decision; the only type the alerting side sees."""

    state: FocusState
    reason: str
    confidence: float
    timestamp: float
    source: str = "quick"

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "reason": self.reason,
            "confidence": self.confidence,
            "timestamp": self.timestamp,
            "source": self.source,
        }
