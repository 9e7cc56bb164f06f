"""
Shared API dependencies
Services are built once in the app lifespan and kept on app.state
"""
import secrets
from typing import Optional

from fastapi import Header, HTTPException, Request, status

from timed_quiz.core.config import Settings
from timed_quiz.core.exceptions import QuizError
from timed_quiz.services.leaderboard import Leaderboard
from timed_quiz.services.question_bank import QuestionBank
from timed_quiz.services.quiz_engine import QuizEngine


def get_settings(request: Request) -> Settings:
    """Dependency to get the active settings"""
    return request.app.state.settings


def get_question_bank(request: Request) -> QuestionBank:
    """Dependency to get the QuestionBank instance"""
    return request.app.state.question_bank


def get_quiz_engine(request: Request) -> QuizEngine:
    """Dependency to get the QuizEngine instance"""
    return request.app.state.quiz_engine


def get_leaderboard(request: Request) -> Leaderboard:
    """Dependency to get the Leaderboard instance"""
    return request.app.state.leaderboard


def require_admin(
    request: Request,
    x_admin_code: Optional[str] = Header(default=None)
) -> None:
    """Gate admin routes on the shared admin code; closed when none is configured"""
    expected = request.app.state.settings.admin_code
    if not expected or not x_admin_code or not secrets.compare_digest(
        x_admin_code.encode(), expected.encode()
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "Invalid admin code", "code": "Forbidden"}
        )


def http_error(error: QuizError) -> HTTPException:
    """Translate a quiz error into the HTTP error body clients read"""
    return HTTPException(
        status_code=error.status_code,
        detail={"error": error.message, "code": error.code}
    )
