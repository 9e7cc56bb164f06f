"""
Question Store
Collection-backed storage for question records and the active quiz config
FILE: timed_quiz/db/question_store.py
"""
import asyncio
import logging
from typing import AsyncIterator, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from timed_quiz.models.question import Question, QuizConfig

logger = logging.getLogger(__name__)

ACTIVE_CONFIG_ID = "active"


class QuestionStore:
    """Storage interface used by the question bank"""

    async def ensure_indexes(self) -> None:
        pass

    async def insert(self, question: Question) -> None:
        raise NotImplementedError

    async def delete(self, question_id: str) -> bool:
        raise NotImplementedError

    async def get_many(self, question_ids: List[str]) -> List[Question]:
        raise NotImplementedError

    async def list_ids(self) -> List[str]:
        raise NotImplementedError

    def iter_all(self) -> AsyncIterator[Question]:
        raise NotImplementedError

    async def count(self) -> int:
        raise NotImplementedError

    async def get_config(self) -> Optional[QuizConfig]:
        raise NotImplementedError

    async def init_config(self, config: QuizConfig) -> QuizConfig:
        """Store `config` only if no config exists yet; return the active one"""
        raise NotImplementedError

    async def save_config(self, question_count: int, duration_ms: int, updated_at: int) -> QuizConfig:
        """Replace the config values and bump its version"""
        raise NotImplementedError


class MemoryQuestionStore(QuestionStore):
    """Process-local store, insertion ordered"""

    def __init__(self):
        self._questions: Dict[str, Question] = {}
        self._config: Optional[QuizConfig] = None
        self._lock = asyncio.Lock()

    async def insert(self, question: Question) -> None:
        self._questions[question.id] = question.model_copy(deep=True)

    async def delete(self, question_id: str) -> bool:
        return self._questions.pop(question_id, None) is not None

    async def get_many(self, question_ids: List[str]) -> List[Question]:
        return [
            self._questions[qid].model_copy(deep=True)
            for qid in question_ids
            if qid in self._questions
        ]

    async def list_ids(self) -> List[str]:
        return list(self._questions)

    async def iter_all(self) -> AsyncIterator[Question]:
        for question in list(self._questions.values()):
            yield question.model_copy(deep=True)

    async def count(self) -> int:
        return len(self._questions)

    async def get_config(self) -> Optional[QuizConfig]:
        return self._config.model_copy() if self._config else None

    async def init_config(self, config: QuizConfig) -> QuizConfig:
        async with self._lock:
            if self._config is None:
                self._config = config.model_copy()
            return self._config.model_copy()

    async def save_config(self, question_count: int, duration_ms: int, updated_at: int) -> QuizConfig:
        async with self._lock:
            version = self._config.version + 1 if self._config else 1
            self._config = QuizConfig(
                questionCount=question_count,
                durationMs=duration_ms,
                version=version,
                updatedAt=updated_at,
            )
            return self._config.model_copy()


class MongoQuestionStore(QuestionStore):
    """MongoDB store: `questions` and `quiz_config` collections"""

    QUESTIONS_COLLECTION = "questions"
    CONFIG_COLLECTION = "quiz_config"

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.questions = db[self.QUESTIONS_COLLECTION]
        self.configs = db[self.CONFIG_COLLECTION]

    async def ensure_indexes(self) -> None:
        await self.questions.create_index("id", unique=True)
        await self.questions.create_index("createdAt")
        logger.info("✓ Question indexes ready")

    async def insert(self, question: Question) -> None:
        await self.questions.insert_one(question.model_dump())

    async def delete(self, question_id: str) -> bool:
        result = await self.questions.delete_one({"id": question_id})
        return result.deleted_count > 0

    async def get_many(self, question_ids: List[str]) -> List[Question]:
        cursor = self.questions.find({"id": {"$in": list(question_ids)}})
        found = {}
        async for doc in cursor:
            doc.pop("_id", None)
            found[doc["id"]] = Question(**doc)
        return [found[qid] for qid in question_ids if qid in found]

    async def list_ids(self) -> List[str]:
        cursor = self.questions.find({}, {"id": 1, "_id": 0})
        return [doc["id"] async for doc in cursor]

    async def iter_all(self) -> AsyncIterator[Question]:
        cursor = self.questions.find().sort("createdAt", 1)
        async for doc in cursor:
            doc.pop("_id", None)
            yield Question(**doc)

    async def count(self) -> int:
        return await self.questions.count_documents({})

    async def get_config(self) -> Optional[QuizConfig]:
        doc = await self.configs.find_one({"_id": ACTIVE_CONFIG_ID})
        if not doc:
            return None
        doc.pop("_id", None)
        return QuizConfig(**doc)

    async def init_config(self, config: QuizConfig) -> QuizConfig:
        await self.configs.update_one(
            {"_id": ACTIVE_CONFIG_ID},
            {"$setOnInsert": config.model_dump()},
            upsert=True
        )
        return await self.get_config()

    async def save_config(self, question_count: int, duration_ms: int, updated_at: int) -> QuizConfig:
        doc = await self.configs.find_one_and_update(
            {"_id": ACTIVE_CONFIG_ID},
            {
                "$set": {
                    "questionCount": question_count,
                    "durationMs": duration_ms,
                    "updatedAt": updated_at
                },
                "$inc": {"version": 1}
            },
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
        doc.pop("_id", None)
        return QuizConfig(**doc)
