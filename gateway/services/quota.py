"""Fixed-window request quota per user."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable
from uuid import UUID

from gateway.config import QuotaSettings
from gateway.domain.ports import QuotaStore
from gateway.domain.quota import QuotaState
from gateway.logging import logger
from gateway.services.locks import KeyedLock
from gateway.utils.datetime import utc_now


class QuotaTracker:
    def __init__(
        self,
        store: QuotaStore,
        settings: QuotaSettings | None = None,
        *,
        locks: KeyedLock | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        settings = settings or QuotaSettings()
        self.store = store
        self.max_requests = settings.max_requests
        self.window = timedelta(seconds=settings.window_seconds)
        self.locks = locks or KeyedLock()
        self.clock = clock

    async def check_and_increment(self, user_id: UUID) -> bool:
        """Take one request slot for ``user_id``; False means the cap is reached.

        A rejected call leaves the stored counter untouched.
        """

        async with self.locks.hold(user_id):
            now = self.clock()
            state = await self.store.load(user_id)
            if state is None:
                state = QuotaState(user_id=user_id, window_start=now)

            if not state.try_consume(now, self.window, self.max_requests):
                logger.info(
                    "quota_exhausted",
                    user_id=str(user_id),
                    request_count=state.request_count,
                    max_requests=self.max_requests,
                )
                return False

            await self.store.save(state)
            return True


__all__ = ["QuotaTracker"]
