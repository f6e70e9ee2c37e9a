"""Cross-cycle shared state: last visual verdict and latest tier-1 judgment."""

import threading
import time

from focusbuddy.model.models import ContextSnapshot, Tier1Judgment, VisualJudgment


class ContextMemory:
    """Mutex-guarded cell holding the most recent visual judgment.

    Written once per deep cycle, read by the quick cycle. Readers receive an
    immutable :class:`ContextSnapshot`, so the four fields are always seen
    together.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot = ContextSnapshot()

    def snapshot(self) -> ContextSnapshot:
        with self._lock:
            return self._snapshot

    def update(self, visual: VisualJudgment, now: float | None = None) -> ContextSnapshot:
        """Overwrite the memory with ``visual`` stamped at ``now``."""
        new = ContextSnapshot(
            last_visual_context=visual.screen_context,
            last_visual_reasoning=visual.reasoning,
            last_visual_focused=visual.is_focused,
            last_visual_timestamp=time.time() if now is None else now,
        )
        with self._lock:
            self._snapshot = new
        return new


class LatestTier1:
    """Hand-off of the most recent tier-1 judgment from quick to deep cycle."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._judgment: Tier1Judgment | None = None

    def publish(self, judgment: Tier1Judgment) -> None:
        with self._lock:
            self._judgment = judgment

    def get(self) -> Tier1Judgment | None:
        with self._lock:
            return self._judgment
