"""
Dashboard storage implementation for the wellness dashboard engine.

This module provides an in-memory record store holding one live dashboard
record per user, the snapshots written over time, and the user's recent
conversation turns. The interface is small enough to be replaced with a
persistent backend (Postgres, Redis) without touching the controller.
"""

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from .models import DashboardData, HistoricalUtterance

# Longest span any reader asks for (the quarterly trend report).
HISTORY_RETENTION = timedelta(days=180)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DashboardStore:
    """
    In-memory dashboard storage.

    Writes for the same user are serialized through a per-user lock and are
    last-write-wins: each write is stamped with the time it was applied.
    Snapshots and utterances older than ``retention`` are dropped on write.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        retention: timedelta = HISTORY_RETENTION,
    ) -> None:
        self._clock = clock
        self.retention = retention
        self._records: dict[str, DashboardData] = {}
        self._snapshots: dict[str, list[DashboardData]] = {}
        self._utterances: dict[str, list[HistoricalUtterance]] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    async def get(self, user_id: str) -> DashboardData | None:
        """
        Get the live dashboard record for a user.

        Returns:
            The current record, or None if the user has none yet
        """
        lock = self._locks.get(user_id)
        if lock is None:
            return None
        async with lock:
            return self._records.get(user_id)

    async def upsert(
        self, user_id: str, data: DashboardData, snapshot: bool = True
    ) -> DashboardData:
        """
        Replace the user's live record.

        Args:
            user_id: Owner of the record
            data: The new dashboard state
            snapshot: Also keep the record in the user's mood history

        Returns:
            The stored record, stamped with the write time
        """
        async with self._lock(user_id):
            now = self._clock()
            record = data.model_copy(update={"last_updated_at": now})
            self._records[user_id] = record
            if snapshot:
                cutoff = now - self.retention
                snapshots = [
                    s for s in self._snapshots.get(user_id, []) if s.last_updated_at >= cutoff
                ]
                snapshots.append(record)
                self._snapshots[user_id] = snapshots
            return record

    async def append_utterance(
        self, user_id: str, text: str, timestamp: datetime | None = None
    ) -> HistoricalUtterance:
        """Record a conversational turn for later trend analysis."""
        utterance = HistoricalUtterance(text=text, timestamp=timestamp or self._clock())
        async with self._lock(user_id):
            cutoff = self._clock() - self.retention
            utterances = [u for u in self._utterances.get(user_id, []) if u.timestamp >= cutoff]
            utterances.append(utterance)
            self._utterances[user_id] = utterances
        return utterance

    async def get_recent_utterances(
        self, user_id: str, since: datetime, limit: int
    ) -> list[HistoricalUtterance]:
        """
        Fetch the user's most recent turns.

        Returns:
            At most ``limit`` utterances newer than ``since``, newest first
        """
        lock = self._locks.get(user_id)
        if lock is None:
            return []
        async with lock:
            recent = [u for u in self._utterances.get(user_id, []) if u.timestamp >= since]
        recent.sort(key=lambda u: u.timestamp, reverse=True)
        return recent[:limit]

    async def get_mood_history(self, user_id: str, since: datetime) -> list[DashboardData]:
        """Dashboard snapshots written since ``since``, oldest first."""
        lock = self._locks.get(user_id)
        if lock is None:
            return []
        async with lock:
            return [
                s for s in self._snapshots.get(user_id, []) if s.last_updated_at >= since
            ]

    def _lock(self, user_id: str) -> asyncio.Lock:
        # Created by writers only.
        return self._locks.setdefault(user_id, asyncio.Lock())
