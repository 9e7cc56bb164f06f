"""
Question Bank Service
Administrative question management, random sampling and the quiz config
"""
import logging
import random
from typing import AsyncIterator, Dict, Iterable, List, Optional

from timed_quiz.core.exceptions import (
    InsufficientDataError,
    NotFoundError,
    ValidationError
)
from timed_quiz.db.question_store import QuestionStore
from timed_quiz.models.question import (
    OPTION_COUNT,
    Question,
    QuestionSnapshot,
    QuizConfig
)
from timed_quiz.utils.clock import Clock, now_ms

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "General"


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class QuestionBank:
    """
    Service for question records and the process-wide quiz configuration

    This service handles:
    1. Validating and storing new questions
    2. Sampling question snapshots (answer key stripped) for new sessions
    3. Reading and replacing the versioned QuizConfig
    """

    def __init__(
        self,
        store: QuestionStore,
        rng: Optional[random.Random] = None,
        clock: Clock = now_ms
    ):
        """
        Initialize question bank

        Args:
            store: Question storage backend
            rng: Random source for sampling (defaults to SystemRandom)
            clock: Epoch-millisecond clock
        """
        self.store = store
        self.rng = rng or random.SystemRandom()
        self.clock = clock

    # ==================== QUESTIONS ====================

    async def create_question(
        self,
        prompt: str,
        options: List[str],
        correct_index: int,
        category: str = DEFAULT_CATEGORY,
        difficulty: Optional[str] = None
    ) -> Question:
        """
        Validate and store a new question

        Raises:
            ValidationError: If the prompt or any option is empty, there are not
                exactly 4 options, or the correct index is outside 0-3
        """
        prompt = (prompt or "").strip()
        if not prompt:
            raise ValidationError("Question prompt cannot be empty")

        if options is None or len(options) != OPTION_COUNT:
            raise ValidationError(f"A question needs exactly {OPTION_COUNT} options")

        cleaned = [(option or "").strip() for option in options]
        if any(not option for option in cleaned):
            raise ValidationError("Options cannot be empty")

        if isinstance(correct_index, bool) or not isinstance(correct_index, int) \
                or not 0 <= correct_index < OPTION_COUNT:
            raise ValidationError(
                f"correctIndex must be between 0 and {OPTION_COUNT - 1}"
            )

        question = Question(
            prompt=prompt,
            options=cleaned,
            correctIndex=correct_index,
            category=(category or "").strip() or DEFAULT_CATEGORY,
            difficulty=(difficulty or "").strip() or None,
            createdAt=self.clock()
        )
        await self.store.insert(question)

        logger.info(f"✅ Created question {question.id} ({question.category})")
        return question

    async def delete_question(self, question_id: str) -> None:
        """Remove a question; snapshots already frozen in sessions are untouched"""
        if not await self.store.delete(question_id):
            logger.warning(f"⚠️ Question not found: {question_id}")
            raise NotFoundError(f"Question not found: {question_id}")
        logger.info(f"🗑️ Deleted question: {question_id}")

    def list_questions(self) -> AsyncIterator[Question]:
        """Fresh iterator over every question (admin view, includes correct index)"""
        return self.store.iter_all()

    async def count_questions(self) -> int:
        return await self.store.count()

    async def sample_questions(self, n: int) -> List[QuestionSnapshot]:
        """
        Draw n distinct questions uniformly at random without replacement

        Args:
            n: Number of questions to draw

        Returns:
            Snapshots with the correct index stripped, in draw order

        Raises:
            ValidationError: If n is not a positive integer
            InsufficientDataError: If the bank holds fewer than n questions
        """
        if not _is_positive_int(n):
            raise ValidationError("Sample size must be a positive integer")

        ids = await self.store.list_ids()
        if len(ids) < n:
            logger.error(f"❌ Bank has {len(ids)} questions, {n} required")
            raise InsufficientDataError(
                f"Not enough questions: {n} required, {len(ids)} available"
            )

        chosen = self.rng.sample(ids, n)
        questions = await self.store.get_many(chosen)
        if len(questions) < n:
            # A question was deleted between listing and fetching
            raise InsufficientDataError(
                f"Not enough questions: {n} required, {len(questions)} available"
            )

        return [question.to_snapshot() for question in questions]

    async def get_answer_key(self, question_ids: Iterable[str]) -> Dict[str, int]:
        """Canonical correct indices for the ids still present in the bank"""
        questions = await self.store.get_many(list(question_ids))
        return {question.id: question.correctIndex for question in questions}

    # ==================== CONFIG ====================

    async def init_config(self, question_count: int, duration_ms: int) -> QuizConfig:
        """Seed the config from defaults unless one is already stored"""
        config = QuizConfig(
            questionCount=question_count,
            durationMs=duration_ms,
            updatedAt=self.clock()
        )
        active = await self.store.init_config(config)
        logger.info(
            f"⚙️ Quiz config v{active.version}: "
            f"{active.questionCount} questions, {active.durationMs} ms"
        )
        return active

    async def get_config(self) -> QuizConfig:
        config = await self.store.get_config()
        if config is None:
            raise NotFoundError("Quiz config has not been initialised")
        return config

    async def set_config(self, question_count: int, duration_ms: int) -> QuizConfig:
        """
        Replace the quiz config

        Sessions already started keep the config they captured.

        Raises:
            ValidationError: On non-positive values
        """
        if not _is_positive_int(question_count):
            raise ValidationError("questionCount must be a positive integer")
        if not _is_positive_int(duration_ms):
            raise ValidationError("durationMs must be a positive integer")

        config = await self.store.save_config(question_count, duration_ms, self.clock())
        logger.info(
            f"⚙️ Quiz config updated to v{config.version}: "
            f"{config.questionCount} questions, {config.durationMs} ms"
        )
        return config
