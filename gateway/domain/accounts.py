"""User account aggregate: identity, API keys and the cached lock flag.

The account never owns a balance. Spendable credit is derived from the ledger
(see ``BalanceCalculator``); ``locked`` only caches "derived balance < 0".
"""

from __future__ import annotations

import hashlib
import hmac
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from gateway.services.exceptions import ApiKeyLimitReached, InvalidRequest
from gateway.utils.datetime import utc_now

MAX_ACTIVE_API_KEYS = 5
API_KEY_PREFIX = "sk-"


class ApiKeyHasher:
    """Issue raw API keys and digest them with a server-side secret."""

    def __init__(self, secret: str) -> None:
        if not secret:
            raise ValueError("API key secret must not be empty.")
        self._secret = secret.encode("utf-8")

    def hash(self, raw_key: str) -> str:
        return hmac.new(self._secret, raw_key.encode("utf-8"), hashlib.sha256).hexdigest()

    def generate(self) -> tuple[str, str]:
        raw_key = f"{API_KEY_PREFIX}{uuid4()}"
        return raw_key, self.hash(raw_key)


class ApiKeyStatus(str, Enum):
    ACTIVE = "active"
    REVOKED = "revoked"


class ApiKeyRecord(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    id: UUID = Field(default_factory=uuid4)
    hashed_key: str = Field(min_length=1)
    status: ApiKeyStatus = ApiKeyStatus.ACTIVE
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def is_active(self) -> bool:
        return self.status is ApiKeyStatus.ACTIVE


class UserAccount(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    telegram_id: int = Field(gt=0)
    api_keys: list[ApiKeyRecord] = Field(default_factory=list)
    locked: bool = False
    created_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def _cap_active_keys(self) -> "UserAccount":
        if len(self.active_keys()) > MAX_ACTIVE_API_KEYS:
            raise ValueError(f"User cannot have more than {MAX_ACTIVE_API_KEYS} active API keys.")
        return self

    @classmethod
    def create(cls, telegram_id: int, hasher: ApiKeyHasher) -> tuple["UserAccount", str]:
        """Build a new account with one active key.

        The raw key is returned exactly once; only its digest is kept.
        """

        raw_key, hashed_key = hasher.generate()
        account = cls(telegram_id=telegram_id, api_keys=[ApiKeyRecord(hashed_key=hashed_key)])
        return account, raw_key

    def active_keys(self) -> list[ApiKeyRecord]:
        return [key for key in self.api_keys if key.is_active]

    def generate_api_key(self, hasher: ApiKeyHasher) -> str:
        if len(self.active_keys()) >= MAX_ACTIVE_API_KEYS:
            raise ApiKeyLimitReached()
        raw_key, hashed_key = hasher.generate()
        self.api_keys.append(ApiKeyRecord(hashed_key=hashed_key))
        return raw_key

    def revoke_api_key(self, key_id: UUID) -> None:
        for key in self.api_keys:
            if key.id == key_id:
                if key.is_active:
                    key.status = ApiKeyStatus.REVOKED
                return
        raise InvalidRequest("API key not found.", param="key_id")

    def revoke_all_active(self) -> int:
        revoked = 0
        for key in self.api_keys:
            if key.is_active:
                key.status = ApiKeyStatus.REVOKED
                revoked += 1
        return revoked

    def is_api_key_valid(self, raw_key: str, hasher: ApiKeyHasher) -> bool:
        candidate = hasher.hash(raw_key)
        matched = False
        # Compare against every active digest so timing does not depend on position.
        for key in self.active_keys():
            if hmac.compare_digest(key.hashed_key, candidate):
                matched = True
        return matched

    def refresh_lock(self, balance: int) -> bool:
        """Sync the cached lock flag with a derived balance; return True if it flipped."""

        locked = balance < 0
        if locked == self.locked:
            return False
        self.locked = locked
        return True


__all__ = [
    "API_KEY_PREFIX",
    "ApiKeyHasher",
    "ApiKeyRecord",
    "ApiKeyStatus",
    "MAX_ACTIVE_API_KEYS",
    "UserAccount",
]
