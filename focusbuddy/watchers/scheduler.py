"""Dual-rate scheduling of the quick (text) and deep (vision) cycles.

Each cycle is a small state machine::

    RUNNING --ok--> SLEEPING(period) --> RUNNING
    RUNNING --error--> BACKOFF(fixed) --> RUNNING

The delay belongs to the state, and all sleeping goes through a clock object
so tests can drive the machine without waiting.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from focusbuddy.api.services.aggregator import Tier1Analyzer, to_final_judgment
from focusbuddy.api.services.board import JudgmentBoard
from focusbuddy.api.services.context_memory import LatestTier1
from focusbuddy.api.services.fusion import Tier2Fusion
from focusbuddy.api.services.vision import VisualSource
from focusbuddy.model.config import MonitoringConfig
from focusbuddy.model.models import FinalJudgment, FocusState, Goal, TextExtraction
from focusbuddy.ui.notifications import Alerter
from focusbuddy.watchers.logger import logger
from focusbuddy.watchers.text_extraction import TextSource


class Clock(Protocol):
    def now(self) -> float: ...

    def sleep(self, seconds: float) -> None: ...


class SystemClock:
    """Wall clock whose sleep returns early once ``stop_event`` is set."""

    def __init__(self, stop_event: threading.Event | None = None) -> None:
        self.stop_event = stop_event or threading.Event()

    def now(self) -> float:
        return time.time()

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            self.stop_event.wait(seconds)


class CycleState(Enum):
    RUNNING = "running"
    SLEEPING = "sleeping"
    BACKOFF = "backoff"


@dataclass(frozen=True)
class CyclePolicy:
    period: float
    backoff: float
    initial_delay: float = 0.0


class PeriodicCycle:
    """Runs ``iteration`` forever at a fixed period with fixed backoff."""

    def __init__(
        self,
        name: str,
        iteration: Callable[[], None],
        policy: CyclePolicy,
        clock: Clock,
    ) -> None:
        self.name = name
        self.iteration = iteration
        self.policy = policy
        self.clock = clock
        self.state = CycleState.RUNNING
        self.delay = 0.0
        self.iterations = 0
        self.failures = 0
        if policy.initial_delay > 0:
            self.state = CycleState.SLEEPING
            self.delay = policy.initial_delay

    def step(self) -> CycleState:
        """Perform one transition and return the new state."""
        if self.state is CycleState.RUNNING:
            self.iterations += 1
            try:
                self.iteration()
            except Exception:
                self.failures += 1
                logger.exception(
                    "%s cycle error, retrying in %.0fs", self.name, self.policy.backoff
                )
                self.state = CycleState.BACKOFF
                self.delay = self.policy.backoff
            else:
                self.state = CycleState.SLEEPING
                self.delay = self.policy.period
        else:
            self.clock.sleep(self.delay)
            self.state = CycleState.RUNNING
            self.delay = 0.0
        return self.state

    def run(self, stop_event: threading.Event) -> None:
        logger.info(
            "%s cycle started (every %.0fs)", self.name, self.policy.period
        )
        while not stop_event.is_set():
            self.step()
        logger.info("%s cycle stopped", self.name)


class FocusMonitor:
    """Owns one quick and one deep iteration over shared collaborators."""

    def __init__(
        self,
        goal: Goal,
        text_source: TextSource,
        visual_source: VisualSource,
        tier1: Tier1Analyzer,
        fusion: Tier2Fusion,
        alerter: Alerter,
        board: JudgmentBoard | None = None,
        latest: LatestTier1 | None = None,
    ) -> None:
        self.goal = goal
        self.text_source = text_source
        self.visual_source = visual_source
        self.tier1 = tier1
        self.fusion = fusion
        self.alerter = alerter
        self.board = board or JudgmentBoard()
        self.latest = latest or LatestTier1()

    def _capture_text(self) -> TextExtraction:
        try:
            return self.text_source.capture()
        except Exception:
            logger.exception("Text source failed, using empty extraction")
            return TextExtraction.empty()

    def _alert(self, judgment: FinalJudgment) -> None:
        try:
            self.alerter.notify(judgment)
        except Exception:
            logger.exception("Alert delivery failed")

    def quick_iteration(self) -> FinalJudgment:
        logger.info("[QUICK CHECK] Starting...")
        extraction = self._capture_text()
        tier1 = self.tier1.analyze(extraction, self.goal)
        self.latest.publish(tier1)

        judgment = to_final_judgment(tier1)
        self.board.publish(judgment)
        logger.info(
            "[QUICK] %s (%.0f%%) - %s",
            judgment.state.value,
            judgment.confidence * 100,
            judgment.reason,
        )
        if judgment.state is FocusState.DISTRACTED:
            self._alert(judgment)
        return judgment

    def deep_iteration(self) -> FinalJudgment | None:
        logger.info("[DEEP ANALYSIS] Starting...")
        visual = self.visual_source.capture()
        judgment = self.fusion.fuse(self.latest.get(), visual)
        if judgment is None:
            return None

        self.board.publish(judgment)
        logger.info(
            "[DEEP] %s (%.0f%%) - Vision: %s",
            judgment.state.value,
            judgment.confidence * 100,
            visual.reasoning,
        )
        self._alert(judgment)
        return judgment


def build_cycles(
    monitor: FocusMonitor,
    config: MonitoringConfig,
    clock: Clock,
) -> tuple[PeriodicCycle, PeriodicCycle]:
    """Quick and deep cycles with the configured periods."""
    quick = PeriodicCycle(
        "Quick",
        monitor.quick_iteration,
        CyclePolicy(
            period=config.quick_check_interval,
            backoff=config.quick_backoff,
        ),
        clock,
    )
    deep = PeriodicCycle(
        "Deep",
        monitor.deep_iteration,
        CyclePolicy(
            period=config.deep_analysis_interval,
            backoff=config.deep_backoff,
            initial_delay=config.deep_initial_delay,
        ),
        clock,
    )
    return quick, deep


def start_cycles(
    cycles: tuple[PeriodicCycle, ...],
    stop_event: threading.Event,
) -> list[threading.Thread]:
    threads = [
        threading.Thread(
            target=cycle.run,
            args=(stop_event,),
            name=f"{cycle.name.lower()}-cycle",
            daemon=True,
        )
        for cycle in cycles
    ]
    for thread in threads:
        thread.start()
    return threads
