"""Line-prefix parser for the two-line answers the models are asked for.

Both models are prompted to reply with::

    <FLAG>: yes/no
    REASONING: one sentence

Small models rarely follow the format exactly, so the parser is lenient:
prefixes match case-insensitively, surrounding whitespace and unknown lines
are ignored. It never raises; callers get either a ``LabeledResponse`` or a
``ParseFailure`` and decide the fallback themselves.
"""

from dataclasses import dataclass
from typing import Literal

_YES = {"yes", "true"}
_NO = {"no", "false"}


@dataclass(frozen=True)
class LabeledResponse:
    flag: bool
    reason: str


@dataclass(frozen=True)
class ParseFailure:
    field: str
    problem: Literal["absent", "malformed"]
    raw_value: str = ""
    reason: str = ""


def _normalize_flag(value: str) -> str:
    # "Yes." / "**no**" style answers
    return value.strip().strip("*_.`'\"").strip().lower()


def parse_labeled_response(
    response: str,
    flag_label: str,
    reason_label: str = "REASONING",
) -> LabeledResponse | ParseFailure:
    """Extract the boolean flag and the reasoning line from a model reply."""
    flag_prefix = f"{flag_label.lower()}:"
    reason_prefix = f"{reason_label.lower()}:"

    flag_raw: str | None = None
    reason = ""
    for line in response.splitlines():
        trimmed = line.strip()
        lowered = trimmed.lower()
        if lowered.startswith(flag_prefix):
            flag_raw = trimmed[len(flag_prefix) :].strip()
        elif lowered.startswith(reason_prefix):
            reason = trimmed[len(reason_prefix) :].strip()

    if flag_raw is None:
        return ParseFailure(field=flag_label, problem="absent", reason=reason)

    value = _normalize_flag(flag_raw)
    if value in _YES:
        return LabeledResponse(flag=True, reason=reason)
    if value in _NO:
        return LabeledResponse(flag=False, reason=reason)
    return ParseFailure(
        field=flag_label, problem="malformed", raw_value=flag_raw, reason=reason
    )
