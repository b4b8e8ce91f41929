from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class Action(str, Enum):
    GENERATE_ROADMAP = "generate_roadmap"
    GENERATE_ASSESSMENT = "generate_assessment"
    GENERATE_PERSONALIZED_ROADMAP = "generate_personalized_roadmap"
    GENERATE_QUIZ = "generate_quiz"
    EXPLAIN_ANSWER = "explain_answer"
    RECOMMEND_RESOURCES = "recommend_resources"
    MENTOR_CHAT = "mentor_chat"


# Actions whose result must be a JSON array
ARRAY_ACTIONS = frozenset(
    {
        Action.GENERATE_ASSESSMENT,
        Action.GENERATE_ROADMAP,
        Action.GENERATE_PERSONALIZED_ROADMAP,
        Action.GENERATE_QUIZ,
        Action.RECOMMEND_RESOURCES,
    }
)


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    role: MessageRole
    content: str


class AssessmentQuestion(BaseModel):
    question: str
    options: List[str] = Field(..., min_length=4, max_length=4)
    correct_answer: int = Field(..., ge=0, le=3, description="Index into options")
    difficulty: Literal["beginner", "intermediate", "advanced"]
    concept: str
    explanation: Optional[str] = None


class RoadmapNode(BaseModel):
    title: str
    description: str = ""
    order_index: int = 0


class PersonalizedRoadmapNode(RoadmapNode):
    # "strong" is only earned through topic quizzes, never at generation time
    initial_mastery: Literal["weak", "learning"] = "weak"


class QuizQuestion(BaseModel):
    question: str
    options: List[str] = Field(..., min_length=4, max_length=4)
    correct_answer: int = Field(..., ge=0, le=3)
    explanation: str = ""


class LearningResource(BaseModel):
    title: str
    url: Optional[str] = None
    type: Literal["youtube", "website", "article", "course"] = "article"
    description: str = ""


class ActionRequest(BaseModel):
    """Body of a relay request. Fields unrelated to the action are ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    action: str
    topic: Optional[str] = None
    node_title: Optional[str] = Field(None, alias="nodeTitle")
    difficulty: Optional[str] = None
    question: Optional[str] = None
    user_answer: Optional[str] = Field(None, alias="userAnswer")
    correct_answer: Optional[str] = Field(None, alias="correctAnswer")
    chat_history: List[ChatMessage] = Field(default_factory=list, alias="chatHistory")
    user_message: Optional[str] = Field(None, alias="userMessage")
    assessment_answers: Optional[List[int]] = Field(None, alias="assessmentAnswers")
    assessment_questions: Optional[List[AssessmentQuestion]] = Field(
        None, alias="assessmentQuestions"
    )
