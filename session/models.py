"""
Pydantic Models for the Session Orchestrator

Activities in the chain, the finish form, orchestrator states and the outcome
of a finish workflow.
"""

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from recommender.models import PredictionResponse, Top1Recommendation

LevelChoice = Literal["low", "medium", "high"]
DifficultyChoice = Literal["too_easy", "ok", "too_hard"]
TimeFitChoice = Literal["ok", "too_short", "too_long", "mismatch"]


class Activity(BaseModel):
    """One card in the chain. Persisted as {id, name, weeklyPlan}."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = ""
    name: str = ""
    weekly_plan: str = Field(default="", alias="weeklyPlan")

    @field_validator("id", "name", "weekly_plan", mode="before")
    @classmethod
    def _none_is_empty(cls, value):
        return "" if value is None else value

    @classmethod
    def from_recommendation(cls, top1: Top1Recommendation) -> "Activity":
        """Build the next chain card from a top1 recommendation."""
        return cls(
            id=top1.activity_id,
            name=top1.name or top1.activity_id,
            weekly_plan=top1.weekly_plan or ""
        )

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)


class FormAnswers(BaseModel):
    """Self-report collected when the user finishes an activity."""
    session_completed: bool = True
    engagement_rating: float = Field(default=3.0, ge=1.0, le=5.0)
    independence_level: LevelChoice = "medium"
    difficulty_feel: DifficultyChoice = "ok"
    behavior_issue: bool = False
    child_preference: str = ""
    time_fit: TimeFitChoice = "ok"
    prompts_used_max: LevelChoice = "low"
    generalization_seen: bool = False

    @field_validator("engagement_rating", mode="after")
    @classmethod
    def _one_decimal(cls, value: float) -> float:
        return round(value, 1)

    @field_validator("child_preference", mode="before")
    @classmethod
    def _trim(cls, value):
        return value.strip() if isinstance(value, str) else value


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    BOOTSTRAPPED = "bootstrapped"
    AWAITING_FINISH_INPUT = "awaiting_finish_input"
    SUBMITTING = "submitting"


class FinishOutcome(BaseModel):
    """What a finish workflow did."""
    status: Literal["extended", "dead_end", "cancelled", "failed", "busy"]
    activity_id: Optional[str] = None  # frontier activity the workflow acted on
    appended: Optional[Activity] = None
    response: Optional[PredictionResponse] = None
    error: Optional[str] = None
