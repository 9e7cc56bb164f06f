"""
Quiz Session Models
Session records keep the frozen question snapshots plus a private answer key
that is never serialized to clients
"""
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from timed_quiz.models.question import QuestionSnapshot, QuizConfig

UNANSWERED = -1


class PlayerRecord(BaseModel):
    """Player details captured at session start"""
    id: str = Field(..., description="Generated player identifier")
    name: str = Field(..., description="Display name (trimmed, non-empty)")
    email: Optional[str] = Field(default=None, description="Optional contact email")
    organization: Optional[str] = Field(default=None, description="Optional organization")


class PlayerSummary(BaseModel):
    """Public player view returned with the session payload"""
    id: str
    name: str


class SubmissionResult(BaseModel):
    """Values written by the single submit transition"""
    score: int = Field(..., ge=0)
    timeTakenMs: int = Field(..., ge=0)
    submittedAt: int
    answers: Dict[str, int] = Field(default_factory=dict)


class QuizSession(BaseModel):
    """
    One participant's attempt, from start to submission

    `questions`, `answerKey`, `config`, `startedAt` and `expiresAt` are fixed at
    creation. The submit transition is the only mutation and happens once.
    """
    sessionId: str = Field(..., description="Unguessable session token")
    player: PlayerRecord
    questions: List[QuestionSnapshot] = Field(..., description="Frozen question snapshots")
    answerKey: Dict[str, int] = Field(
        default_factory=dict,
        description="questionId -> correctIndex at start time (PRIVATE)"
    )
    config: QuizConfig = Field(..., description="Quiz config captured at start")
    startedAt: int = Field(..., description="Start time (epoch ms)")
    expiresAt: int = Field(..., description="startedAt + durationMs (epoch ms)")
    submitted: bool = False
    submittedAt: Optional[int] = None
    score: Optional[int] = None
    timeTakenMs: Optional[int] = None
    answers: Dict[str, int] = Field(default_factory=dict)

    @property
    def status(self) -> Literal["active", "submitted"]:
        return "submitted" if self.submitted else "active"

    @property
    def duration_ms(self) -> int:
        return self.config.durationMs

    @property
    def total_questions(self) -> int:
        return len(self.questions)


# ============================================================================
# REQUEST / RESPONSE MODELS
# ============================================================================

class StartSessionRequest(BaseModel):
    """Request model for starting a new quiz session"""
    name: str = Field(..., description="Player display name")
    email: Optional[str] = Field(default=None, description="Optional contact email")
    organization: Optional[str] = Field(default=None, description="Optional organization")

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Ada",
                "email": "ada@example.com",
                "organization": "Analytical Engines Ltd"
            }
        }


class SessionPayload(BaseModel):
    """Session view served by start and fetch"""
    sessionId: str
    questions: List[QuestionSnapshot]
    startedAt: int = Field(..., description="Epoch ms")
    expiresAt: int = Field(..., description="Epoch ms")
    durationMs: int
    serverTime: int = Field(..., description="Server clock at response time (epoch ms)")
    player: PlayerSummary


class AnswerItem(BaseModel):
    """A single (questionId, optionIndex) pair; -1 means unanswered"""
    questionId: str
    optionIndex: int = UNANSWERED


class SubmitSessionRequest(BaseModel):
    """Request model for submitting a session's answers"""
    sessionId: str = Field(..., description="Quiz session ID")
    answers: List[AnswerItem] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "sessionId": "Jx3k9Qm2Vt8LrP0aZbYc1DeFgH4iKlMn",
                "answers": [
                    {"questionId": "q_1a2b3c4d5e6f", "optionIndex": 1},
                    {"questionId": "q_6f5e4d3c2b1a", "optionIndex": 3}
                ]
            }
        }


class SubmitSessionResponse(BaseModel):
    """Final result of a submitted session"""
    score: int = Field(..., ge=0, description="Number of correct answers")
    totalQuestions: int = Field(..., ge=0)
    timeTakenMs: int = Field(..., ge=0)
