"""
Pydantic Models for the Recommendation Service

Request/response shapes of POST /predict. Field names match the wire format.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any


class PredictionRequest(BaseModel):
    """Request body for /predict."""
    top_k: int = Field(default=5, ge=1, description="Number of candidates the model ranks")
    followup_n: int = Field(default=3, ge=0, description="Number of follow-up questions wanted")
    context: Dict[str, Any] = Field(default_factory=dict, description="Answers for the finished activity")
    exclude_ids: List[str] = Field(default_factory=list, description="Activity ids the service must not recommend")


class Top1Recommendation(BaseModel):
    """Highest-probability next activity."""
    activity_id: str = Field(..., min_length=1)
    name: Optional[str] = None
    description: Optional[str] = None
    detailed_description: Optional[str] = None
    weekly_plan: Optional[str] = None
    prob: float = 0.0

    @field_validator("prob", mode="before")
    @classmethod
    def _missing_prob_is_zero(cls, value):
        return 0.0 if value is None else value

    @property
    def display_name(self) -> str:
        """Name to show, falling back to the id when the service sent none."""
        return self.name or self.activity_id


class PredictionResponse(BaseModel):
    """Response body from /predict."""
    top1_recommendation: Optional[Top1Recommendation] = None
    follow_up_questions: List[str] = Field(default_factory=list)

    @field_validator("follow_up_questions", mode="before")
    @classmethod
    def _stringify_questions(cls, value):
        if value is None:
            return []
        if isinstance(value, list):
            return [str(item) for item in value]
        return value

    @property
    def top1(self) -> Optional[Top1Recommendation]:
        return self.top1_recommendation
