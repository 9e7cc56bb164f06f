"""
Question Bank Models
Canonical question records, client-visible snapshots and quiz configuration
FILE: timed_quiz/models/question.py
"""
from typing import List, Optional
import uuid

from pydantic import BaseModel, Field

OPTION_COUNT = 4


class QuestionSnapshot(BaseModel):
    """
    Client-visible copy of a question
    SECURITY: carries no correct index
    """
    id: str = Field(..., description="Question identifier")
    prompt: str = Field(..., description="Question text")
    options: List[str] = Field(..., description="The 4 answer options, in display order")
    category: str = Field(..., description="Category label")

    class Config:
        json_schema_extra = {
            "example": {
                "id": "q_1a2b3c4d5e6f",
                "prompt": "What does ROI stand for?",
                "options": [
                    "Rate of Inflation",
                    "Return on Investment",
                    "Risk of Insolvency",
                    "Revenue over Income"
                ],
                "category": "Finance"
            }
        }


class Question(BaseModel):
    """Canonical question record, owned by the question bank (includes the answer key)"""
    id: str = Field(
        default_factory=lambda: f"q_{uuid.uuid4().hex[:12]}",
        description="Unique question identifier"
    )
    prompt: str = Field(..., description="Question text")
    options: List[str] = Field(..., description="Exactly 4 answer options")
    correctIndex: int = Field(..., ge=0, le=OPTION_COUNT - 1, description="Index of the correct option - PRIVATE")
    category: str = Field(default="General", description="Category label")
    difficulty: Optional[str] = Field(default=None, description="Optional difficulty label")
    createdAt: int = Field(default=0, description="Creation time (epoch ms)")

    def to_snapshot(self) -> QuestionSnapshot:
        """Copy without the correct index"""
        return QuestionSnapshot(
            id=self.id,
            prompt=self.prompt,
            options=list(self.options),
            category=self.category,
        )


class QuestionCreateRequest(BaseModel):
    """Admin request for a new question; value checks happen in the question bank"""
    prompt: str = Field(..., description="Question text")
    options: List[str] = Field(..., description="Exactly 4 answer options")
    correctIndex: int = Field(..., description="Index (0-3) of the correct option")
    category: str = Field(default="General", description="Category label")
    difficulty: Optional[str] = Field(default=None, description="Optional difficulty label")

    class Config:
        json_schema_extra = {
            "example": {
                "prompt": "What does ROI stand for?",
                "options": [
                    "Rate of Inflation",
                    "Return on Investment",
                    "Risk of Insolvency",
                    "Revenue over Income"
                ],
                "correctIndex": 1,
                "category": "Finance",
                "difficulty": "Medium"
            }
        }


class QuizConfig(BaseModel):
    """
    Versioned quiz configuration

    Read once when a session starts and copied into the session record,
    so later edits never reach sessions already in flight.
    """
    questionCount: int = Field(..., gt=0, description="Questions per session")
    durationMs: int = Field(..., gt=0, description="Session time budget (ms)")
    version: int = Field(default=1, ge=1, description="Incremented on every update")
    updatedAt: int = Field(default=0, description="Last update time (epoch ms)")


class QuizConfigUpdate(BaseModel):
    """Admin request replacing the quiz configuration"""
    questionCount: int = Field(..., description="Questions per session")
    durationMs: int = Field(..., description="Session time budget (ms)")

    class Config:
        json_schema_extra = {
            "example": {
                "questionCount": 8,
                "durationMs": 240000
            }
        }


class QuestionListResponse(BaseModel):
    """Admin view of the bank"""
    questions: List[Question]
    config: QuizConfig
