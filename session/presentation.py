"""
Presentation Boundary

The orchestrator talks to the user only through the Presentation interface:
it hands over immutable chain snapshots, asks for finish-form answers and
reports results or errors. ConsolePresentation is the terminal implementation
used by the CLI.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from recommender.models import PredictionResponse
from session.models import Activity, FormAnswers

logger = logging.getLogger(__name__)

CANCEL_INPUT = "c"


class Presentation:
    """Interface the orchestrator renders through."""

    def render_chain(self, chain: Sequence[Activity]) -> None:
        raise NotImplementedError

    async def collect_finish_form(self, activity_id: str) -> Optional[FormAnswers]:
        """Return the user's answers, or None if the user cancelled."""
        raise NotImplementedError

    def show_result(self, response: PredictionResponse) -> None:
        raise NotImplementedError

    def show_error(self, message: str) -> None:
        raise NotImplementedError


def format_chain(chain: Sequence[Activity]) -> str:
    """Render the chain as numbered cards; the frontier card is starred."""
    if not chain:
        return "(no activities)"
    lines = []
    for index, activity in enumerate(chain, start=1):
        marker = "*" if index == len(chain) else " "
        lines.append(f"{marker}[{index}] {activity.name}")
        lines.append(f"      Weekly Plan: {activity.weekly_plan or '—'}")
    return "\n".join(lines)


def format_recommendation(response: PredictionResponse) -> str:
    """Render a prediction response the way the recommendation dialog shows it."""
    parts = ["Next Task Recommendation"]
    top1 = response.top1
    if top1 is not None:
        parts.append(top1.display_name)
        parts.append(f"ID: {top1.activity_id} • P={top1.prob:.3f}")
        sections = (
            ("Description", top1.description),
            ("Detailed Description", top1.detailed_description),
            ("Weekly Plan", top1.weekly_plan),
        )
        for label, text in sections:
            if text:
                parts.extend(["", label, text])
    else:
        parts.append("No further recommendation available.")

    if response.follow_up_questions:
        parts.extend(["", "Follow-up questions"])
        parts.extend(f"• {question}" for question in response.follow_up_questions)
    return "\n".join(parts)


# (field, label, kind, choices)
FORM_FIELDS: List[Tuple[str, str, str, Tuple[str, ...]]] = [
    ("session_completed", "Session completed", "bool", ()),
    ("engagement_rating", "Engagement rating (1–5)", "rating", ()),
    ("independence_level", "Independence level", "choice", ("low", "medium", "high")),
    ("difficulty_feel", "Difficulty feel", "choice", ("too_easy", "ok", "too_hard")),
    ("behavior_issue", "Behavior issue observed", "bool", ()),
    ("child_preference", "Child preference (e.g., cars, animals)", "text", ()),
    ("time_fit", "Time fit", "choice", ("ok", "too_short", "too_long", "mismatch")),
    ("prompts_used_max", "Prompts used (max)", "choice", ("low", "medium", "high")),
    ("generalization_seen", "Generalization seen", "bool", ()),
]


def parse_form_value(kind: str, raw: str, choices: Tuple[str, ...] = ()) -> Any:
    """
    Parse one typed answer.

    Raises:
        ValueError: If raw is not acceptable for kind
    """
    value = raw.strip()
    if kind == "bool":
        lowered = value.lower()
        if lowered in ("y", "yes", "true", "1"):
            return True
        if lowered in ("n", "no", "false", "0"):
            return False
        raise ValueError("answer yes or no")
    if kind == "rating":
        rating = float(value)
        if not 1.0 <= rating <= 5.0:
            raise ValueError("rating must be between 1 and 5")
        return round(rating, 1)
    if kind == "choice":
        if value not in choices:
            raise ValueError(f"choose one of: {', '.join(choices)}")
        return value
    return value


def _display_default(value: Any) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


class ConsolePresentation(Presentation):
    """Terminal implementation driven by input()/print()."""

    def __init__(
        self,
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = print
    ):
        self._input = input_fn
        self._output = output_fn

    def render_chain(self, chain: Sequence[Activity]) -> None:
        self._output("")
        self._output("Adaptive Tasks")
        self._output("=" * 40)
        self._output(format_chain(chain))

    async def collect_finish_form(self, activity_id: str) -> Optional[FormAnswers]:
        return await asyncio.to_thread(self.prompt_form, activity_id)

    def prompt_form(self, activity_id: str) -> Optional[FormAnswers]:
        """Ask every form question in order. Enter keeps the default, 'c' cancels."""
        defaults = FormAnswers()
        self._output(f"Finish {activity_id}  (Enter keeps default, '{CANCEL_INPUT}' cancels)")

        values: Dict[str, Any] = {}
        for field, label, kind, choices in FORM_FIELDS:
            default = getattr(defaults, field)
            hint = f" ({'/'.join(choices)})" if choices else ""
            while True:
                raw = self._input(f"  {label}{hint} [{_display_default(default)}]: ")
                if raw.strip().lower() == CANCEL_INPUT:
                    logger.info(f"Finish form for {activity_id} cancelled")
                    return None
                if raw.strip() == "":
                    values[field] = default
                    break
                try:
                    values[field] = parse_form_value(kind, raw, choices)
                    break
                except ValueError as e:
                    self._output(f"    Invalid value: {e}")

        try:
            return FormAnswers(**values)
        except ValidationError as e:
            self._output(f"Form rejected: {e}")
            return None

    def show_result(self, response: PredictionResponse) -> None:
        self._output("")
        self._output(format_recommendation(response))

    def show_error(self, message: str) -> None:
        self._output(message)
