"""
Leaderboard Models
"""
from typing import List

from pydantic import BaseModel, Field


class LeaderboardEntry(BaseModel):
    """Ranking projection of one submitted session"""
    sessionId: str
    playerName: str
    score: int = Field(..., ge=0)
    totalQuestions: int = Field(..., ge=0)
    timeTakenMs: int = Field(..., ge=0)


class LeaderboardResponse(BaseModel):
    """Top entries, best first"""
    entries: List[LeaderboardEntry] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "entries": [
                    {
                        "sessionId": "Jx3k9Qm2Vt8LrP0aZbYc1DeFgH4iKlMn",
                        "playerName": "Ada",
                        "score": 7,
                        "totalQuestions": 8,
                        "timeTakenMs": 93125
                    }
                ]
            }
        }
