"""
Admin API Routes
Question management and quiz config; gated by the X-Admin-Code header
"""
import logging

from fastapi import APIRouter, Depends, Path, status

from timed_quiz.api.dependencies import get_question_bank, http_error, require_admin
from timed_quiz.core.exceptions import NotFoundError, ValidationError
from timed_quiz.models.question import (
    Question,
    QuestionCreateRequest,
    QuestionListResponse,
    QuizConfig,
    QuizConfigUpdate
)
from timed_quiz.services.question_bank import QuestionBank

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/quiz/admin",
    tags=["Admin"],
    dependencies=[Depends(require_admin)]
)


@router.get(
    "/questions",
    response_model=QuestionListResponse,
    summary="List all questions with the active config"
)
async def list_questions(bank: QuestionBank = Depends(get_question_bank)) -> QuestionListResponse:
    questions = [question async for question in bank.list_questions()]
    return QuestionListResponse(questions=questions, config=await bank.get_config())


@router.post(
    "/questions",
    response_model=Question,
    status_code=status.HTTP_201_CREATED,
    summary="Create a question"
)
async def create_question(
    request: QuestionCreateRequest,
    bank: QuestionBank = Depends(get_question_bank)
) -> Question:
    try:
        return await bank.create_question(
            prompt=request.prompt,
            options=request.options,
            correct_index=request.correctIndex,
            category=request.category,
            difficulty=request.difficulty
        )
    except ValidationError as e:
        logger.warning(f"Rejected question: {e}")
        raise http_error(e)


@router.delete(
    "/questions/{question_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a question",
    description="Sessions already started keep their own copy of the question"
)
async def delete_question(
    question_id: str = Path(..., description="Question identifier"),
    bank: QuestionBank = Depends(get_question_bank)
):
    try:
        await bank.delete_question(question_id)
    except NotFoundError as e:
        raise http_error(e)


@router.get("/config", response_model=QuizConfig, summary="Get the quiz config")
async def read_config(bank: QuestionBank = Depends(get_question_bank)) -> QuizConfig:
    return await bank.get_config()


@router.put(
    "/config",
    response_model=QuizConfig,
    summary="Replace the quiz config",
    description="Applies to sessions started afterwards; running sessions keep their captured config"
)
async def update_config(
    request: QuizConfigUpdate,
    bank: QuestionBank = Depends(get_question_bank)
) -> QuizConfig:
    try:
        return await bank.set_config(request.questionCount, request.durationMs)
    except ValidationError as e:
        raise http_error(e)
