import threading
from collections import deque
from typing import Any

from focusbuddy.model.models import FinalJudgment


class JudgmentBoard:
    """Recent published judgments, for diagnostics only (not read by the core)."""

    def __init__(self, maxlen: int = 100) -> None:
        self._lock = threading.Lock()
        self._history: deque[FinalJudgment] = deque(maxlen=maxlen)
        self._latest: dict[str, FinalJudgment] = {}

    def publish(self, judgment: FinalJudgment) -> None:
        with self._lock:
            self._history.append(judgment)
            self._latest[judgment.source] = judgment

    def latest(self, source: str) -> FinalJudgment | None:
        with self._lock:
            return self._latest.get(source)

    def history(self) -> list[FinalJudgment]:
        with self._lock:
            return list(self._history)

    def summary(self) -> dict[str, Any]:
        with self._lock:
            return {
                source: judgment.to_dict()
                for source, judgment in self._latest.items()
            }
