import threading
import time

from focusbuddy.api.services.unit_analyzer import (
    NO_RESPONSE_RATIONALE,
    UNPARSEABLE_RATIONALE,
    analyze_unit,
    analyze_units,
    build_unit_prompt,
)
from focusbuddy.model.models import Unit, UnitKind

CONTEXT_UNIT = Unit(UnitKind.CONTEXT, "App: YouTube | Window: Funny Cats")
CONTENT_UNIT = Unit(UnitKind.CONTENT, "Quarterly report draft.")


class TestBuildUnitPrompt:
    def test_contains_goal_and_unit(self, goal, empty_snapshot, now):
        prompt = build_unit_prompt(CONTEXT_UNIT, goal, empty_snapshot, now)

        assert 'Focus Goal: "write a report"' in prompt
        assert "Screen Info (context): App: YouTube | Window: Funny Cats" in prompt
        assert "RELEVANT: yes/no" in prompt
        assert "REASONING:" in prompt
        assert "Visual Analysis" not in prompt

    def test_is_deterministic(self, goal, make_snapshot, now):
        snapshot = make_snapshot(focused=True, age=5)
        first = build_unit_prompt(CONTENT_UNIT, goal, snapshot, now)
        second = build_unit_prompt(CONTENT_UNIT, goal, snapshot, now)
        assert first == second

    def test_recent_visual_context_is_included(self, goal, make_snapshot, now):
        snapshot = make_snapshot(
            focused=False, age=10, context="Distracted\nsecond line ignored"
        )
        prompt = build_unit_prompt(CONTENT_UNIT, goal, snapshot, now)

        assert "Visual Analysis: Distracted" in prompt
        assert "second line ignored" not in prompt

    def test_stale_visual_context_is_left_out(self, goal, make_snapshot, now):
        snapshot = make_snapshot(focused=False, age=31, context="Distracted")
        prompt = build_unit_prompt(CONTENT_UNIT, goal, snapshot, now)

        assert "Visual Analysis" not in prompt


class TestAnalyzeUnit:
    def test_relevant(self, goal, empty_snapshot, make_llm, now):
        llm = make_llm("RELEVANT: yes\nREASONING: Working on the report.")
        verdict = analyze_unit(CONTENT_UNIT, goal, empty_snapshot, llm, now)

        assert verdict.unit == CONTENT_UNIT
        assert verdict.is_relevant is True
        assert verdict.rationale == "Working on the report."
        llm.generate.assert_called_once()

    def test_empty_response(self, goal, empty_snapshot, make_llm, now):
        llm = make_llm("")
        verdict = analyze_unit(CONTEXT_UNIT, goal, empty_snapshot, llm, now)

        assert verdict.is_relevant is False
        assert verdict.rationale == NO_RESPONSE_RATIONALE

    def test_backend_exception(self, goal, empty_snapshot, make_llm, now):
        llm = make_llm()
        llm.generate.side_effect = RuntimeError("boom")
        verdict = analyze_unit(CONTEXT_UNIT, goal, empty_snapshot, llm, now)

        assert verdict.is_relevant is False
        assert verdict.rationale == NO_RESPONSE_RATIONALE

    def test_unparseable_response(self, goal, empty_snapshot, make_llm, now):
        llm = make_llm("I think the user is probably fine.")
        verdict = analyze_unit(CONTEXT_UNIT, goal, empty_snapshot, llm, now)

        assert verdict.is_relevant is False
        assert verdict.rationale == UNPARSEABLE_RATIONALE


class TestAnalyzeUnits:
    def test_one_request_per_unit(self, goal, empty_snapshot, make_llm, now):
        llm = make_llm("RELEVANT: no\nREASONING: Video site.")
        units = [CONTEXT_UNIT, CONTENT_UNIT, Unit(UnitKind.CONTENT, "More text.")]

        verdicts = analyze_units(units, goal, empty_snapshot, llm, now)

        assert len(verdicts) == 3
        assert llm.generate.call_count == 3

    def test_no_units(self, goal, empty_snapshot, make_llm, now):
        llm = make_llm("RELEVANT: yes")
        assert analyze_units([], goal, empty_snapshot, llm, now) == []
        llm.generate.assert_not_called()

    def test_order_follows_units_not_completion(
        self, goal, empty_snapshot, make_llm, now
    ):
        def reply(prompt):
            # the first unit answers last
            if "YouTube" in prompt:
                time.sleep(0.2)
                return "RELEVANT: no\nREASONING: first"
            return "RELEVANT: yes\nREASONING: second"

        llm = make_llm(reply)
        verdicts = analyze_units(
            [CONTEXT_UNIT, CONTENT_UNIT], goal, empty_snapshot, llm, now
        )

        assert [v.rationale for v in verdicts] == ["first", "second"]

    def test_requests_run_concurrently(self, goal, empty_snapshot, make_llm, now):
        barrier = threading.Barrier(3, timeout=5)

        def reply(prompt):
            # deadlocks (and times out) unless all three run at once
            barrier.wait()
            return "RELEVANT: yes\nREASONING: ok"

        llm = make_llm(reply)
        units = [CONTEXT_UNIT, CONTENT_UNIT, Unit(UnitKind.CONTENT, "x")]
        verdicts = analyze_units(units, goal, empty_snapshot, llm, now)

        assert all(v.is_relevant for v in verdicts)

    def test_one_failure_does_not_abort(self, goal, empty_snapshot, make_llm, now):
        def reply(prompt):
            if "YouTube" in prompt:
                raise ConnectionError("backend gone")
            return "RELEVANT: yes\nREASONING: fine"

        llm = make_llm(reply)
        verdicts = analyze_units(
            [CONTEXT_UNIT, CONTENT_UNIT], goal, empty_snapshot, llm, now
        )

        assert verdicts[0].rationale == NO_RESPONSE_RATIONALE
        assert verdicts[1].is_relevant is True
