"""
Leaderboard Service
Ranked projection of submitted sessions with a best-effort push channel
"""
import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

from timed_quiz.models.leaderboard import LeaderboardEntry
from timed_quiz.models.quiz_sessions import QuizSession

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 16


@dataclass
class _RankedEntry:
    entry: LeaderboardEntry
    submitted_at: int
    sequence: int

    @property
    def sort_key(self):
        # Score desc, then faster first, then earlier submission
        return (-self.entry.score, self.entry.timeTakenMs, self.submitted_at, self.sequence)


def to_entry(session: QuizSession) -> LeaderboardEntry:
    """Project a submitted session into its leaderboard entry"""
    return LeaderboardEntry(
        sessionId=session.sessionId,
        playerName=session.player.name,
        score=session.score or 0,
        totalQuestions=session.total_questions,
        timeTakenMs=session.timeTakenMs or 0
    )


class LeaderboardSubscription:
    """
    Async iterator of top-N snapshots for one listener

    Iteration ends once the subscription is closed or dropped for falling behind.
    """

    def __init__(self, leaderboard: "Leaderboard", limit: int, queue_size: int):
        self.limit = limit
        self.last: Optional[List[LeaderboardEntry]] = None
        self.closed = False
        self._leaderboard = leaderboard
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)

    def __aiter__(self):
        return self

    async def __anext__(self) -> List[LeaderboardEntry]:
        entries = await self.get()
        if entries is None:
            raise StopAsyncIteration
        return entries

    async def get(self) -> Optional[List[LeaderboardEntry]]:
        """Next snapshot, or None once the subscription has ended"""
        if self.closed and self._queue.empty():
            return None
        return await self._queue.get()

    def close(self) -> None:
        self._leaderboard.unsubscribe(self)

    def _offer(self, entries: List[LeaderboardEntry]) -> bool:
        if self.closed:
            return False
        try:
            self._queue.put_nowait(entries)
            return True
        except asyncio.QueueFull:
            return False

    def _terminate(self) -> None:
        if self.closed:
            return
        self.closed = True
        while not self._queue.empty():
            self._queue.get_nowait()
        # Wakes a reader blocked in get()
        self._queue.put_nowait(None)


class Leaderboard:
    """
    Service holding the ranking of submitted sessions

    Entries are keyed by sessionId, so recording the same session twice has no
    further effect. Every change is pushed to subscribers whose top-N moved.
    """

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE):
        self.queue_size = queue_size
        self._entries: Dict[str, _RankedEntry] = {}
        self._sequence = itertools.count()
        self._subscribers: Set[LeaderboardSubscription] = set()
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def _ranking(self) -> List[LeaderboardEntry]:
        ranked = sorted(self._entries.values(), key=lambda r: r.sort_key)
        return [r.entry for r in ranked]

    def _add(self, session: QuizSession) -> bool:
        if session.sessionId in self._entries:
            return False
        self._entries[session.sessionId] = _RankedEntry(
            entry=to_entry(session),
            submitted_at=session.submittedAt or 0,
            sequence=next(self._sequence)
        )
        return True

    async def hydrate(self, sessions: Iterable[QuizSession]) -> int:
        """
        Rebuild the ranking from persisted sessions (oldest submission first)

        Returns:
            Number of entries loaded
        """
        async with self._lock:
            self._entries.clear()
            ordered = sorted(
                (s for s in sessions if s.submitted),
                key=lambda s: s.submittedAt or 0
            )
            for session in ordered:
                self._add(session)
        logger.info(f"📊 Leaderboard hydrated with {len(self._entries)} entries")
        return len(self._entries)

    async def record_submission(self, session: QuizSession) -> bool:
        """
        Upsert the session's entry and push the new ranking

        Args:
            session: A submitted session

        Returns:
            True if the ranking changed, False for a repeat or unsubmitted session
        """
        if not session.submitted:
            logger.warning(f"⚠️ Ignoring unsubmitted session {session.sessionId}")
            return False

        async with self._lock:
            if not self._add(session):
                logger.debug(f"Session {session.sessionId} already ranked")
                return False
            ranking = self._ranking()
            self._publish(ranking)

        logger.info(
            f"🏆 Ranked session {session.sessionId} - "
            f"{session.score}/{session.total_questions} in {session.timeTakenMs} ms"
        )
        return True

    def get_leaderboard(self, limit: Optional[int] = None) -> List[LeaderboardEntry]:
        """Top `limit` entries (all when limit is None); never raises"""
        ranking = self._ranking()
        if limit is None:
            return ranking
        return ranking[:max(limit, 0)]

    # ==================== PUSH CHANNEL ====================

    def subscribe(self, limit: int) -> LeaderboardSubscription:
        """Register a listener for top-`limit` updates"""
        subscription = LeaderboardSubscription(self, limit, self.queue_size)
        subscription.last = self.get_leaderboard(limit)
        self._subscribers.add(subscription)
        logger.debug(f"New leaderboard subscriber ({len(self._subscribers)} total)")
        return subscription

    def unsubscribe(self, subscription: LeaderboardSubscription) -> None:
        self._subscribers.discard(subscription)
        subscription._terminate()

    def _publish(self, ranking: List[LeaderboardEntry]) -> None:
        for subscription in list(self._subscribers):
            top = ranking[:subscription.limit]
            if top == subscription.last:
                continue
            subscription.last = top
            if not subscription._offer(top):
                # Best effort: a subscriber that cannot keep up is dropped
                logger.debug("Dropping slow leaderboard subscriber")
                self.unsubscribe(subscription)
