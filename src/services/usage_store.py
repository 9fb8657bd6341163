"""
Persistent usage counters for metered APIs.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict

from services.database import Database


@dataclass
class UsageState:
    count: int = 0
    first_used_at: int = 0
    last_used_at: int = 0
    disabled: bool = False


class UsageStore(ABC):
    """
    Key-value store for one counter per provider.
    """

    @abstractmethod
    async def load(self, provider: str) -> UsageState:
        raise NotImplementedError

    @abstractmethod
    async def save(self, provider: str, state: UsageState) -> None:
        raise NotImplementedError


class MemoryUsageStore(UsageStore):
    """Process-local store, lost on restart."""

    def __init__(self):
        self._states: Dict[str, UsageState] = {}

    async def load(self, provider: str) -> UsageState:
        state = self._states.get(provider)
        if state is None:
            return UsageState()
        return UsageState(**state.__dict__)

    async def save(self, provider: str, state: UsageState) -> None:
        self._states[provider] = UsageState(**state.__dict__)


class SqliteUsageStore(UsageStore):
    """Store backed by the api_usage table, survives restarts."""

    def __init__(self, db: Database):
        self.db = db
        self._ready = False

    async def _ensure_tables(self) -> None:
        if not self._ready:
            await self.db.init_tables()
            self._ready = True

    async def load(self, provider: str) -> UsageState:
        # Reads never create the database; nothing stored means nothing used.
        if not self.db.exists():
            return UsageState()

        await self._ensure_tables()
        row = await self.db.get_usage(provider)
        if row is None:
            return UsageState()

        count, first_used_at, last_used_at, disabled = row
        return UsageState(
            count=int(count),
            first_used_at=int(first_used_at),
            last_used_at=int(last_used_at),
            disabled=bool(disabled),
        )

    async def save(self, provider: str, state: UsageState) -> None:
        await self._ensure_tables()
        await self.db.save_usage(
            provider,
            state.count,
            state.first_used_at,
            state.last_used_at,
            state.disabled,
        )
