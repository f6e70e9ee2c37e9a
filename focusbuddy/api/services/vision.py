"""Visual judgment of the screen with a vision-language model."""

import time
from collections.abc import Callable
from typing import Protocol

from focusbuddy.api.services.llm import InferenceBackend
from focusbuddy.api.services.parsing import ParseFailure, parse_labeled_response
from focusbuddy.model.models import Goal, VisualJudgment
from focusbuddy.watchers.logger import logger

FALLBACK_SCREEN_CONTEXT = "Unable to analyze (vision model unavailable)"
FALLBACK_REASONING = "Vision model is not available. Using fallback analysis."
UNPARSEABLE_REASONING = "Unparseable response from vision model"


class VisualSource(Protocol):
    def capture(self) -> VisualJudgment: ...


def build_focus_prompt(goal: Goal) -> str:
    return f"""You are a focus monitoring assistant. The user wants to focus on: "{goal.text}"

Analyze the provided screen image and determine:
1. Is the screen showing content DIRECTLY related to their focus task?
2. Are there any obvious distractions visible (social media, entertainment, unrelated content)?
3. Is the visible content helping them accomplish their stated goal?

IMPORTANT:
- The focus monitoring application itself is NOT the focus task
- Terminal/code editors are only relevant if the goal is programming/development
- Be strict: if content doesn't match the task, mark as unfocused

Respond in this exact format:
FOCUSED: yes/no
REASONING: Brief explanation (one sentence)"""  # noqa: E501


def parse_vision_response(response: str, now: float) -> VisualJudgment:
    parsed = parse_labeled_response(response, "FOCUSED")
    if isinstance(parsed, ParseFailure):
        logger.info(
            "Vision response not understood | field=%s | problem=%s",
            parsed.field,
            parsed.problem,
        )
        return VisualJudgment(
            is_focused=False,
            screen_context="Distracted",
            reasoning=parsed.reason or UNPARSEABLE_REASONING,
            timestamp=now,
        )
    return VisualJudgment(
        is_focused=parsed.flag,
        screen_context="On task" if parsed.flag else "Distracted",
        reasoning=parsed.reason,
        timestamp=now,
    )


def fallback_visual_judgment(now: float | None = None) -> VisualJudgment:
    return VisualJudgment(
        is_focused=True,
        screen_context=FALLBACK_SCREEN_CONTEXT,
        reasoning=FALLBACK_REASONING,
        timestamp=time.time() if now is None else now,
    )


class VisionJudge:
    """Visual extraction capability used by the deep cycle."""

    def __init__(
        self,
        llm: InferenceBackend,
        goal: Goal,
        screenshot: Callable[[], bytes],
    ) -> None:
        self.llm = llm
        self.goal = goal
        self._screenshot = screenshot

    def capture(self) -> VisualJudgment:
        if not self.llm.is_available():
            logger.warning("Vision model not reachable, using fallback analysis")
            return fallback_visual_judgment()

        try:
            image = self._screenshot()
        except Exception:
            logger.exception("Screen capture for vision analysis failed")
            return fallback_visual_judgment()

        images = [image] if image else []
        logger.info("[VLLM] Calling vision model with %d image(s)", len(images))
        try:
            response = self.llm.generate(build_focus_prompt(self.goal), images)
        except Exception:
            logger.exception("Vision inference failed, using fallback analysis")
            return fallback_visual_judgment()
        if not response:
            logger.warning("Empty response from vision model")
            return fallback_visual_judgment()

        logger.debug("[VLLM RAW RESPONSE] %s", response)
        judgment = parse_vision_response(response, time.time())
        logger.info("[VLLM] focused=%s | %s", judgment.is_focused, judgment.reasoning)
        return judgment
