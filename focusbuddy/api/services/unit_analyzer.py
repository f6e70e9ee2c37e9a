"""Per-unit relevance analysis with the small reasoning model."""

import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from focusbuddy.api.services.llm import InferenceBackend
from focusbuddy.api.services.parsing import ParseFailure, parse_labeled_response
from focusbuddy.model.models import ContextSnapshot, Goal, Unit, UnitVerdict
from focusbuddy.watchers.logger import logger

# Visual context older than this is left out of the prompt.
PROMPT_CONTEXT_WINDOW_SEC = 30.0
VISUAL_EXCERPT_CHARS = 200
MAX_PARALLEL_UNITS = 3

NO_RESPONSE_RATIONALE = "No response from model"
UNPARSEABLE_RATIONALE = "Unparseable response from model"


def build_unit_prompt(
    unit: Unit,
    goal: Goal,
    snapshot: ContextSnapshot,
    now: float,
) -> str:
    """Build the prompt for one unit. Same inputs always give the same text."""
    lines = [
        f'Focus Goal: "{goal.text}"',
        "",
        f"Screen Info ({unit.kind.value}): {unit.content}",
        "",
    ]

    if snapshot.is_fresh(now, PROMPT_CONTEXT_WINDOW_SEC):
        excerpt = snapshot.last_visual_context.strip().splitlines()
        if excerpt:
            lines.append(f"Visual Analysis: {excerpt[0][:VISUAL_EXCERPT_CHARS]}")
            lines.append("")

    lines.extend(
        [
            "Question: Does this screen information show the user IS working "
            "on their focus goal?",
            "",
            "Important:",
            "- Be strict: content must DIRECTLY relate to the goal",
            "- Monitoring/development tools are NOT the focus task itself",
            "- Code/terminals are only relevant if the goal is programming",
            "",
            "Format:",
            "RELEVANT: yes/no",
            "REASONING: Brief explanation.",
        ]
    )
    return "\n".join(lines)


def analyze_unit(
    unit: Unit,
    goal: Goal,
    snapshot: ContextSnapshot,
    llm: InferenceBackend,
    now: float | None = None,
) -> UnitVerdict:
    """Ask the model about one unit. Failures become a negative verdict."""
    prompt = build_unit_prompt(
        unit, goal, snapshot, time.time() if now is None else now
    )
    try:
        response = llm.generate(prompt)
    except Exception:
        logger.exception("Unit inference failed | kind=%s", unit.kind.value)
        response = ""

    if not response or not response.strip():
        return UnitVerdict(unit=unit, is_relevant=False, rationale=NO_RESPONSE_RATIONALE)

    parsed = parse_labeled_response(response, "RELEVANT")
    if isinstance(parsed, ParseFailure):
        logger.info(
            "Unit response not understood | kind=%s | field=%s | problem=%s",
            unit.kind.value,
            parsed.field,
            parsed.problem,
        )
        return UnitVerdict(unit=unit, is_relevant=False, rationale=UNPARSEABLE_RATIONALE)

    return UnitVerdict(unit=unit, is_relevant=parsed.flag, rationale=parsed.reason)


def analyze_units(
    units: Sequence[Unit],
    goal: Goal,
    snapshot: ContextSnapshot,
    llm: InferenceBackend,
    now: float | None = None,
) -> list[UnitVerdict]:
    """Analyze all units concurrently and wait for every one of them.

    Verdicts come back in the order of ``units`` regardless of which request
    finished first.
    """
    if not units:
        return []
    now = time.time() if now is None else now

    with ThreadPoolExecutor(
        max_workers=min(MAX_PARALLEL_UNITS, len(units)),
        thread_name_prefix="unit",
    ) as executor:
        futures = [
            executor.submit(analyze_unit, unit, goal, snapshot, llm, now)
            for unit in units
        ]
        return [future.result() for future in futures]
