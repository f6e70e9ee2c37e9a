"""Read-only FastAPI app exposing the latest focus judgments."""

from typing import Any

from fastapi import FastAPI
from pydantic import BaseModel

from focusbuddy.api.services.board import JudgmentBoard
from focusbuddy.api.services.context_memory import ContextMemory
from focusbuddy.model.models import FinalJudgment, Goal


class JudgmentOut(BaseModel):
    """Serialized :class:`FinalJudgment`."""

    state: str
    reason: str
    confidence: float
    timestamp: float
    source: str

    @classmethod
    def from_judgment(cls, judgment: FinalJudgment) -> "JudgmentOut":
        return cls(**judgment.to_dict())


class StatusOut(BaseModel):
    goal: str
    quick: JudgmentOut | None = None
    deep: JudgmentOut | None = None


def create_app(board: JudgmentBoard, goal: Goal, memory: ContextMemory) -> FastAPI:
    """Build the status app around the monitor's shared objects."""
    app = FastAPI(
        title="FocusBuddy",
        description="Two-tier focus monitoring status API",
    )

    def _out(judgment: FinalJudgment | None) -> JudgmentOut | None:
        return JudgmentOut.from_judgment(judgment) if judgment else None

    @app.get("/status")
    async def get_current_status() -> StatusOut:
        """Latest quick and deep judgments."""
        return StatusOut(
            goal=goal.text,
            quick=_out(board.latest("quick")),
            deep=_out(board.latest("deep")),
        )

    @app.get("/api/monitoring_data")
    async def get_monitoring_data() -> dict[str, Any]:
        """History plus the current visual context memory."""
        return {
            "goal": goal.text,
            "history": [j.to_dict() for j in board.history()],
            "context_memory": memory.snapshot().as_dict(),
        }

    return app
