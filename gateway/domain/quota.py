"""Fixed-window request counter state."""

from __future__ import annotations

from datetime import datetime, timedelta
from uuid import UUID

from pydantic import BaseModel, Field


class QuotaState(BaseModel):
    user_id: UUID
    window_start: datetime
    request_count: int = Field(default=0, ge=0)

    def try_consume(self, now: datetime, window: timedelta, cap: int) -> bool:
        """Reset an expired window, then take one slot if the cap allows it."""

        if now - self.window_start > window:
            self.window_start = now
            self.request_count = 0
        if self.request_count >= cap:
            return False
        self.request_count += 1
        return True


__all__ = ["QuotaState"]
