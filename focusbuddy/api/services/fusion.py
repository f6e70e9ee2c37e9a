"""Tier-2: fuse the latest text judgment with a fresh visual judgment."""

import time

from focusbuddy.api.services.context_memory import ContextMemory
from focusbuddy.model.models import (
    FinalJudgment,
    FocusState,
    Tier1Judgment,
    VisualJudgment,
)
from focusbuddy.watchers.logger import logger

HIGH_TIER1_CONFIDENCE = 0.7
VISUAL_FOCUSED_CONFIDENCE = 0.85
VISUAL_DISTRACTED_CONFIDENCE = 0.15


def combine(
    tier1: Tier1Judgment,
    visual: VisualJudgment,
    now: float | None = None,
) -> FinalJudgment:
    """Combine both tiers. A visual "not focused" always wins."""
    is_focused = (tier1.is_focused and visual.is_focused) or (
        tier1.confidence > HIGH_TIER1_CONFIDENCE and visual.is_focused
    )
    visual_confidence = (
        VISUAL_FOCUSED_CONFIDENCE if visual.is_focused else VISUAL_DISTRACTED_CONFIDENCE
    )
    return FinalJudgment(
        state=FocusState.FOCUSED if is_focused else FocusState.DISTRACTED,
        reason=f"Text: {tier1.rationale}\nVision: {visual.reasoning}",
        confidence=(tier1.confidence + visual_confidence) / 2.0,
        timestamp=time.time() if now is None else now,
        source="deep",
    )


class Tier2Fusion:
    """Deep-cycle fusion step; the only writer of the context memory."""

    def __init__(self, memory: ContextMemory) -> None:
        self.memory = memory

    def fuse(
        self,
        tier1: Tier1Judgment | None,
        visual: VisualJudgment,
        now: float | None = None,
    ) -> FinalJudgment | None:
        """Return the fused judgment, or None while no tier-1 result exists.

        The memory is refreshed with ``visual`` in both cases so the next
        quick cycle sees it.
        """
        now = time.time() if now is None else now
        judgment = None if tier1 is None else combine(tier1, visual, now)
        self.memory.update(visual, now)

        if judgment is None:
            logger.info("Deep analysis: waiting for quick-check data")
        return judgment
