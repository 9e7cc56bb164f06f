"""
Quiz API Routes
Start, fetch and submit endpoints consumed by the quiz client
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Path, status

from timed_quiz.api.dependencies import get_quiz_engine, http_error
from timed_quiz.core.exceptions import (
    AlreadySubmittedError,
    InsufficientDataError,
    NotFoundError,
    SubmissionWindowClosedError,
    ValidationError
)
from timed_quiz.models.quiz_sessions import (
    SessionPayload,
    StartSessionRequest,
    SubmitSessionRequest,
    SubmitSessionResponse
)
from timed_quiz.services.quiz_engine import QuizEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quiz", tags=["Quiz"])


@router.post(
    "/start",
    response_model=SessionPayload,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Missing or empty player name"},
        503: {"description": "Question bank cannot fill the configured quiz"}
    },
    summary="Start a new quiz session",
    description="""
    Create a session with a randomized, frozen question set.

    The response carries `serverTime` next to `startedAt`/`expiresAt` so the
    client can run a cosmetic countdown corrected for its own clock offset.
    The server alone decides elapsed time when scoring.
    """
)
async def start_quiz(
    request: StartSessionRequest,
    engine: QuizEngine = Depends(get_quiz_engine)
) -> SessionPayload:
    try:
        return await engine.start_session(request)

    except ValidationError as e:
        logger.warning(f"Rejected start request: {e}")
        raise http_error(e)

    except InsufficientDataError as e:
        logger.error(f"❌ Cannot start session: {e}")
        raise http_error(e)

    except Exception as e:
        logger.error(f"Unexpected error starting session: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while starting the session"
        )


@router.get(
    "/session/{session_id}",
    response_model=SessionPayload,
    responses={
        404: {"description": "Unknown session"},
        409: {"description": "Session already submitted; show results instead"},
        410: {"description": "Submission window closed (reject policy only)"}
    },
    summary="Fetch an active session"
)
async def get_quiz_session(
    session_id: str = Path(..., description="Session token from /quiz/start"),
    engine: QuizEngine = Depends(get_quiz_engine)
) -> SessionPayload:
    """Return the frozen questions and deadline with a refreshed serverTime"""
    try:
        return await engine.get_session(session_id)

    except (NotFoundError, AlreadySubmittedError, SubmissionWindowClosedError) as e:
        raise http_error(e)

    except Exception as e:
        logger.error(f"Unexpected error fetching session {session_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while fetching the session"
        )


@router.post(
    "/submit",
    response_model=SubmitSessionResponse,
    responses={
        404: {"description": "Unknown session"},
        409: {"description": "Session already submitted"},
        410: {"description": "Submission window closed (reject policy only)"}
    },
    summary="Submit answers for a session",
    description="""
    Score a session exactly once.

    Answers are matched to the session's questions by id. Missing questions
    count as unanswered and unknown ids are ignored. Submissions arriving after
    the deadline are accepted with the time taken clamped to the full duration.
    """
)
async def submit_quiz(
    request: SubmitSessionRequest,
    engine: QuizEngine = Depends(get_quiz_engine)
) -> SubmitSessionResponse:
    try:
        return await engine.submit_session(request.sessionId, request.answers)

    except AlreadySubmittedError as e:
        logger.info(f"Duplicate submission for {request.sessionId}")
        raise http_error(e)

    except (NotFoundError, SubmissionWindowClosedError) as e:
        raise http_error(e)

    except Exception as e:
        logger.error(f"Unexpected error submitting {request.sessionId}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while submitting the session"
        )
