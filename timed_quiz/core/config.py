"""
Application configuration settings
FILE: timed_quiz/core/config.py
"""
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Storage Configuration
    storage_backend: Literal["memory", "mongodb"] = "memory"
    mongodb_url: str = "mongodb://localhost:27017"
    database_name: str = "timed_quiz"

    # Quiz defaults (seed the active QuizConfig at startup)
    quiz_question_count: int = 8
    quiz_duration_ms: int = 240000

    # Late submissions: "clamp" accepts and clamps time taken to the duration,
    # "reject" refuses anything later than expiresAt + late_grace_ms
    late_submission_policy: Literal["clamp", "reject"] = "clamp"
    late_grace_ms: int = 5000

    # Leaderboard Configuration
    leaderboard_default_limit: int = 20
    leaderboard_max_limit: int = 100
    stream_keepalive_seconds: float = 15.0
    stream_queue_size: int = 16

    # Admin surface; left unset the admin routes are closed
    admin_code: Optional[str] = None

    # HTTP
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:4000",
    ]
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False  # This allows case-insensitive matching
        extra = "allow"  # This allows extra fields


settings = Settings()
