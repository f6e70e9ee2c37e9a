"""Tier-1: merge unit verdicts into one fast text-only judgment."""

import math
import time
from collections.abc import Sequence

from focusbuddy.api.services.chunker import decompose
from focusbuddy.api.services.context_memory import ContextMemory
from focusbuddy.api.services.llm import InferenceBackend
from focusbuddy.api.services.unit_analyzer import analyze_units
from focusbuddy.model.models import (
    ContextSnapshot,
    FinalJudgment,
    FocusState,
    Goal,
    TextExtraction,
    Tier1Judgment,
    UnitVerdict,
)
from focusbuddy.watchers.logger import logger

# Visual verdicts older than this no longer override the text vote.
MEMORY_OVERRIDE_WINDOW_SEC = 20.0
VISUAL_DISAGREE_CONFIDENCE_CAP = 0.4
VISUAL_AGREE_CONFIDENCE_FLOOR = 0.7
NO_UNITS_CONFIDENCE = 0.5

FALLBACK_CONFIDENCE = 0.3
FALLBACK_RATIONALE = "Reasoning model unavailable, assuming focused"


def _main_insight(verdicts: Sequence[UnitVerdict]) -> str:
    candidates = [v for v in verdicts if v.rationale]
    if not candidates:
        return ""
    # max() keeps the first of equal keys: relevant first, then unit order.
    return max(candidates, key=lambda v: v.is_relevant).rationale


def aggregate(
    verdicts: Sequence[UnitVerdict],
    snapshot: ContextSnapshot,
    now: float | None = None,
) -> Tier1Judgment:
    """Majority vote over unit verdicts, adjusted by recent visual memory.

    Pure function of its inputs.
    """
    now = time.time() if now is None else now
    total = len(verdicts)
    relevant = sum(1 for v in verdicts if v.is_relevant)

    confidence = relevant / total if total > 0 else NO_UNITS_CONFIDENCE
    is_focused = relevant >= math.ceil(total / 2)

    if snapshot.is_fresh(now, MEMORY_OVERRIDE_WINDOW_SEC):
        if not snapshot.last_visual_focused:
            is_focused = False
            confidence = min(confidence, VISUAL_DISAGREE_CONFIDENCE_CAP)
        elif is_focused:
            confidence = max(confidence, VISUAL_AGREE_CONFIDENCE_FLOOR)

    rationale = f"{relevant}/{total} chunks relevant. " if total > 0 else ""
    rationale = (rationale + _main_insight(verdicts)).strip()

    summaries = tuple(
        f"{v.unit.kind.value}: {'✓' if v.is_relevant else '✗'} {v.rationale}"
        for v in verdicts
    )

    return Tier1Judgment(
        is_focused=is_focused,
        confidence=confidence,
        rationale=rationale,
        unit_summaries=summaries,
        memory_snapshot=snapshot.as_dict(),
        timestamp=now,
    )


def fallback_judgment(now: float | None = None) -> Tier1Judgment:
    """Conservative judgment used when the reasoning model is unavailable."""
    return Tier1Judgment(
        is_focused=True,
        confidence=FALLBACK_CONFIDENCE,
        rationale=FALLBACK_RATIONALE,
        timestamp=time.time() if now is None else now,
    )


def to_final_judgment(tier1: Tier1Judgment) -> FinalJudgment:
    """Quick-cycle decision; tier-1 never reports AWAY."""
    return FinalJudgment(
        state=FocusState.FOCUSED if tier1.is_focused else FocusState.DISTRACTED,
        reason=tier1.rationale,
        confidence=tier1.confidence,
        timestamp=tier1.timestamp,
        source="quick",
    )


class Tier1Analyzer:
    """Chunk -> analyze units in parallel -> aggregate."""

    def __init__(self, llm: InferenceBackend, memory: ContextMemory) -> None:
        self.llm = llm
        self.memory = memory

    def analyze(self, extraction: TextExtraction, goal: Goal) -> Tier1Judgment:
        if not self.llm.is_available():
            logger.warning("Reasoning model not reachable, using fallback judgment")
            return fallback_judgment()

        try:
            # One snapshot per cycle so prompts and aggregation agree.
            snapshot = self.memory.snapshot()
            now = time.time()
            units = decompose(extraction)
            logger.info("Analyzing %d units in parallel", len(units))
            verdicts = analyze_units(units, goal, snapshot, self.llm, now)
            judgment = aggregate(verdicts, snapshot, time.time())
        except Exception:
            logger.exception("Tier-1 analysis failed, using fallback judgment")
            return fallback_judgment()

        logger.info(
            "Tier-1: focused=%s confidence=%.2f | %s",
            judgment.is_focused,
            judgment.confidence,
            " / ".join(judgment.unit_summaries),
        )
        return judgment
