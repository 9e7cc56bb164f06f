"""
Quiz Engine
Business logic for starting, fetching and submitting timed quiz sessions
FILE: timed_quiz/services/quiz_engine.py
"""
import logging
import secrets
import uuid
from typing import Dict, Iterable, Optional

from timed_quiz.core.exceptions import (
    AlreadySubmittedError,
    NotFoundError,
    SubmissionWindowClosedError,
    ValidationError
)
from timed_quiz.db.session_store import SessionStore
from timed_quiz.models.quiz_sessions import (
    UNANSWERED,
    AnswerItem,
    PlayerRecord,
    PlayerSummary,
    QuizSession,
    SessionPayload,
    StartSessionRequest,
    SubmissionResult,
    SubmitSessionResponse
)
from timed_quiz.services.leaderboard import Leaderboard
from timed_quiz.services.question_bank import QuestionBank
from timed_quiz.utils.clock import Clock, now_ms

logger = logging.getLogger(__name__)

LATE_POLICY_CLAMP = "clamp"
LATE_POLICY_REJECT = "reject"


def _clean_optional(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def normalize_answers(session: QuizSession, answers: Iterable[AnswerItem]) -> Dict[str, int]:
    """
    Map every question of the session to the submitted option index

    Questions without an answer get -1; ids outside the session are ignored;
    a repeated id keeps its last entry.
    """
    submitted = {}
    for answer in answers:
        submitted[answer.questionId] = answer.optionIndex
    return {
        question.id: submitted.get(question.id, UNANSWERED)
        for question in session.questions
    }


def compute_score(answers: Dict[str, int], answer_key: Dict[str, int]) -> int:
    """Count answers equal to the correct index; unanswered never matches"""
    return sum(
        1 for question_id, option_index in answers.items()
        if option_index != UNANSWERED and answer_key.get(question_id) == option_index
    )


class QuizEngine:
    """
    Orchestrates the session lifecycle

    This service handles:
    1. Starting a session with a frozen, randomized question set and deadline
    2. Serving the session back with a fresh server time for clock-skew correction
    3. Scoring a single submission against the canonical answer key
    4. Recording the result on the leaderboard before returning
    """

    def __init__(
        self,
        bank: QuestionBank,
        sessions: SessionStore,
        leaderboard: Leaderboard,
        clock: Clock = now_ms,
        late_policy: str = LATE_POLICY_CLAMP,
        late_grace_ms: int = 0
    ):
        if late_policy not in (LATE_POLICY_CLAMP, LATE_POLICY_REJECT):
            raise ValueError(f"Unknown late submission policy: {late_policy}")
        self.bank = bank
        self.sessions = sessions
        self.leaderboard = leaderboard
        self.clock = clock
        self.late_policy = late_policy
        self.late_grace_ms = late_grace_ms

    # ==================== START ====================

    async def start_session(self, player: StartSessionRequest) -> SessionPayload:
        """
        Create a new session for a player

        Args:
            player: Name (required) plus optional email and organization

        Returns:
            Session payload with question snapshots and timing

        Raises:
            ValidationError: If the trimmed name is empty
            InsufficientDataError: If the bank cannot fill the configured quiz
        """
        name = (player.name or "").strip()
        if not name:
            raise ValidationError("Player name is required")

        config = await self.bank.get_config()
        questions = await self.bank.sample_questions(config.questionCount)
        answer_key = await self.bank.get_answer_key(q.id for q in questions)

        server_time = self.clock()
        session = QuizSession(
            sessionId=secrets.token_urlsafe(24),
            player=PlayerRecord(
                id=f"player_{uuid.uuid4().hex[:12]}",
                name=name,
                email=_clean_optional(player.email),
                organization=_clean_optional(player.organization)
            ),
            questions=questions,
            answerKey=answer_key,
            config=config,
            startedAt=server_time,
            expiresAt=server_time + config.durationMs
        )
        await self.sessions.insert(session)

        logger.info(
            f"🎬 Started session {session.sessionId} for '{name}' - "
            f"{len(questions)} questions, {config.durationMs} ms (config v{config.version})"
        )
        return self._payload(session, server_time)

    # ==================== FETCH ====================

    async def get_session(self, session_id: str) -> SessionPayload:
        """
        Serve an active session with a refreshed server time

        Raises:
            NotFoundError: Unknown session
            AlreadySubmittedError: Session already submitted
            SubmissionWindowClosedError: Past the grace window under the reject policy
        """
        session = await self._load(session_id)
        if session.submitted:
            raise AlreadySubmittedError(f"Session already submitted: {session_id}")

        now = self.clock()
        self._check_window(session, now)
        return self._payload(session, now)

    # ==================== SUBMIT ====================

    async def submit_session(
        self,
        session_id: str,
        answers: Iterable[AnswerItem]
    ) -> SubmitSessionResponse:
        """
        Score and close a session exactly once

        Args:
            session_id: Session to submit
            answers: (questionId, optionIndex) pairs

        Returns:
            Score, total questions and time taken

        Raises:
            NotFoundError: Unknown session
            AlreadySubmittedError: Session already submitted, including losing a
                concurrent submit race
            SubmissionWindowClosedError: Past the grace window under the reject policy
        """
        session = await self._load(session_id)
        if session.submitted:
            raise AlreadySubmittedError(f"Session already submitted: {session_id}")

        now = self.clock()
        self._check_window(session, now)

        normalized = normalize_answers(session, answers)

        # Canonical key from the bank; the private copy covers deleted questions
        answer_key = dict(session.answerKey)
        answer_key.update(await self.bank.get_answer_key(normalized))

        result = SubmissionResult(
            score=compute_score(normalized, answer_key),
            timeTakenMs=min(session.duration_ms, max(0, now - session.startedAt)),
            submittedAt=now,
            answers=normalized
        )

        updated = await self.sessions.mark_submitted(session_id, result)
        if updated is None:
            if await self.sessions.get(session_id) is None:
                raise NotFoundError(f"Session not found: {session_id}")
            logger.warning(f"⚠️ Lost submit race for session {session_id}")
            raise AlreadySubmittedError(f"Session already submitted: {session_id}")

        await self.leaderboard.record_submission(updated)

        late = " (late, clamped)" if now > session.expiresAt else ""
        logger.info(
            f"✅ Session {session_id} submitted - "
            f"score {result.score}/{updated.total_questions}, "
            f"{result.timeTakenMs} ms{late}"
        )
        return SubmitSessionResponse(
            score=result.score,
            totalQuestions=updated.total_questions,
            timeTakenMs=result.timeTakenMs
        )

    # ==================== HELPERS ====================

    async def _load(self, session_id: str) -> QuizSession:
        session = await self.sessions.get(session_id) if session_id else None
        if session is None:
            logger.warning(f"⚠️ Session not found: {session_id}")
            raise NotFoundError(f"Session not found: {session_id}")
        return session

    def _check_window(self, session: QuizSession, now: int) -> None:
        if self.late_policy != LATE_POLICY_REJECT:
            return
        if now > session.expiresAt + self.late_grace_ms:
            raise SubmissionWindowClosedError(
                f"Submission window closed for session {session.sessionId}"
            )

    @staticmethod
    def _payload(session: QuizSession, server_time: int) -> SessionPayload:
        return SessionPayload(
            sessionId=session.sessionId,
            questions=session.questions,
            startedAt=session.startedAt,
            expiresAt=session.expiresAt,
            durationMs=session.duration_ms,
            serverTime=server_time,
            player=PlayerSummary(id=session.player.id, name=session.player.name)
        )
