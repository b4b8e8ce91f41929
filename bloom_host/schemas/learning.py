"""
Pydantic schemas for topics, roadmap nodes and mastery progress
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from bloom_host.models.learning import Mastery
from bloom_host.schemas.ai import AssessmentQuestion


# ============= Topic Schemas =============
class TopicCreate(BaseModel):
    topic: str = Field(..., min_length=1, max_length=500)


class AssessmentComplete(TopicCreate):
    answers: List[int] = Field(..., description="Selected option index per question")
    questions: List[AssessmentQuestion]


class TopicResponse(BaseModel):
    id: str
    topic: str
    description: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============= Roadmap Node Schemas =============
class RoadmapNodeResponse(BaseModel):
    id: str
    topic_id: str
    title: str
    description: Optional[str] = None
    mastery: Mastery
    order_index: int

    model_config = ConfigDict(from_attributes=True)


class TopicWithNodesResponse(TopicResponse):
    nodes: List[RoadmapNodeResponse]


class MasteryUpdate(BaseModel):
    mastery: Mastery


class QuizResult(BaseModel):
    correct: int = Field(..., ge=0)
    total: int = Field(..., gt=0)


class QuizRequest(BaseModel):
    node_title: Optional[str] = None
    difficulty: Literal["easy", "medium", "hard"] = "easy"


# ============= Progress Schemas =============
class ProgressStats(BaseModel):
    """Mastery breakdown for one topic"""

    topic_id: str
    weak: int
    learning: int
    strong: int
    total: int
    progress: int = Field(..., ge=0, le=100, description="Percent of the roadmap mastered")
