"""
Session Store
Keyed quiz session records with a single, atomic submit transition
FILE: timed_quiz/db/session_store.py
"""
import asyncio
import logging
from typing import Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from timed_quiz.models.quiz_sessions import QuizSession, SubmissionResult

logger = logging.getLogger(__name__)


class SessionStore:
    """Storage interface used by the quiz engine"""

    async def ensure_indexes(self) -> None:
        pass

    async def insert(self, session: QuizSession) -> None:
        raise NotImplementedError

    async def get(self, session_id: str) -> Optional[QuizSession]:
        raise NotImplementedError

    async def mark_submitted(self, session_id: str, result: SubmissionResult) -> Optional[QuizSession]:
        """
        Compare-and-set the submitted flag

        Returns:
            The updated session, or None if the session is unknown or was
            already submitted (the caller lost the race)
        """
        raise NotImplementedError

    async def list_submitted(self) -> List[QuizSession]:
        """Submitted sessions, oldest submission first"""
        raise NotImplementedError

    async def count(self) -> int:
        raise NotImplementedError

    async def purge_before(self, cutoff_ms: int) -> int:
        """Delete sessions started before `cutoff_ms`; returns how many went"""
        raise NotImplementedError


class MemorySessionStore(SessionStore):
    """Process-local store; the lock makes check-and-set a single step"""

    def __init__(self):
        self._sessions: Dict[str, QuizSession] = {}
        self._lock = asyncio.Lock()

    async def insert(self, session: QuizSession) -> None:
        async with self._lock:
            if session.sessionId in self._sessions:
                raise ValueError(f"Duplicate session id: {session.sessionId}")
            self._sessions[session.sessionId] = session.model_copy(deep=True)

    async def get(self, session_id: str) -> Optional[QuizSession]:
        session = self._sessions.get(session_id)
        return session.model_copy(deep=True) if session else None

    async def mark_submitted(self, session_id: str, result: SubmissionResult) -> Optional[QuizSession]:
        async with self._lock:
            current = self._sessions.get(session_id)
            if current is None or current.submitted:
                return None
            updated = current.model_copy(
                update={
                    "submitted": True,
                    "submittedAt": result.submittedAt,
                    "score": result.score,
                    "timeTakenMs": result.timeTakenMs,
                    "answers": dict(result.answers),
                },
                deep=True
            )
            self._sessions[session_id] = updated
            return updated.model_copy(deep=True)

    async def list_submitted(self) -> List[QuizSession]:
        submitted = [s for s in self._sessions.values() if s.submitted]
        submitted.sort(key=lambda s: s.submittedAt)
        return [s.model_copy(deep=True) for s in submitted]

    async def count(self) -> int:
        return len(self._sessions)

    async def purge_before(self, cutoff_ms: int) -> int:
        async with self._lock:
            stale = [sid for sid, s in self._sessions.items() if s.startedAt < cutoff_ms]
            for sid in stale:
                del self._sessions[sid]
        return len(stale)


class MongoSessionStore(SessionStore):
    """MongoDB store over the `quiz_sessions` collection"""

    COLLECTION_NAME = "quiz_sessions"

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db[self.COLLECTION_NAME]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index("sessionId", unique=True)
        await self.collection.create_index([("submitted", 1), ("submittedAt", 1)])
        logger.info("✓ Session indexes ready")

    async def insert(self, session: QuizSession) -> None:
        await self.collection.insert_one(session.model_dump())

    async def get(self, session_id: str) -> Optional[QuizSession]:
        doc = await self.collection.find_one({"sessionId": session_id})
        if not doc:
            return None
        doc.pop("_id", None)
        return QuizSession(**doc)

    async def mark_submitted(self, session_id: str, result: SubmissionResult) -> Optional[QuizSession]:
        # The filter on submitted=False is what makes this an atomic CAS
        doc = await self.collection.find_one_and_update(
            {"sessionId": session_id, "submitted": False},
            {
                "$set": {
                    "submitted": True,
                    "submittedAt": result.submittedAt,
                    "score": result.score,
                    "timeTakenMs": result.timeTakenMs,
                    "answers": result.answers
                }
            },
            return_document=ReturnDocument.AFTER
        )
        if not doc:
            return None
        doc.pop("_id", None)
        return QuizSession(**doc)

    async def list_submitted(self) -> List[QuizSession]:
        cursor = self.collection.find({"submitted": True}).sort("submittedAt", 1)
        sessions = []
        async for doc in cursor:
            doc.pop("_id", None)
            sessions.append(QuizSession(**doc))
        return sessions

    async def count(self) -> int:
        return await self.collection.count_documents({})

    async def purge_before(self, cutoff_ms: int) -> int:
        result = await self.collection.delete_many({"startedAt": {"$lt": cutoff_ms}})
        return result.deleted_count
