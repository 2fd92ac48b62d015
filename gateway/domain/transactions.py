"""Append-only ledger entries.

A transaction's monetary payload is written once. Only ``status`` moves, and
only out of ``pending``.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from gateway.domain.usage import Usage
from gateway.services.exceptions import TransactionStateError
from gateway.utils.datetime import utc_now


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class TopUp(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["top_up"] = "top_up"
    amount: int = Field(gt=0)


class UsageCharge(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["usage"] = "usage"
    usage: Usage
    cost: int = Field(le=0)


TransactionPayload = Annotated[Union[TopUp, UsageCharge], Field(discriminator="kind")]


class Transaction(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    timestamp: datetime = Field(default_factory=utc_now)
    status: TransactionStatus = TransactionStatus.PENDING
    payload: TransactionPayload

    @classmethod
    def top_up(
        cls,
        user_id: UUID,
        amount: int,
        status: TransactionStatus = TransactionStatus.PENDING,
    ) -> "Transaction":
        return cls(user_id=user_id, status=status, payload=TopUp(amount=amount))

    @classmethod
    def usage(
        cls,
        user_id: UUID,
        usage: Usage,
        cost: int,
        status: TransactionStatus = TransactionStatus.COMPLETED,
    ) -> "Transaction":
        return cls(user_id=user_id, status=status, payload=UsageCharge(usage=usage, cost=cost))

    @property
    def is_completed(self) -> bool:
        return self.status is TransactionStatus.COMPLETED

    def complete(self) -> None:
        self._leave_pending(TransactionStatus.COMPLETED)

    def fail(self) -> None:
        self._leave_pending(TransactionStatus.FAILED)

    def _leave_pending(self, target: TransactionStatus) -> None:
        if self.status is not TransactionStatus.PENDING:
            raise TransactionStateError(
                f"Transaction {self.id} cannot move from {self.status.value} to {target.value}."
            )
        self.status = target


__all__ = [
    "TopUp",
    "Transaction",
    "TransactionPayload",
    "TransactionStatus",
    "UsageCharge",
]
