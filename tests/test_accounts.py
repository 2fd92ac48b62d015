"""Tests for the account aggregate and API key handling."""

from __future__ import annotations

from uuid import uuid4

import pytest
from pydantic import ValidationError

from gateway.domain.accounts import (
    API_KEY_PREFIX,
    MAX_ACTIVE_API_KEYS,
    ApiKeyHasher,
    ApiKeyRecord,
    UserAccount,
)
from gateway.services.exceptions import ApiKeyLimitReached, InvalidRequest


def test_create_returns_account_and_raw_key_once(hasher):
    account, raw_key = UserAccount.create(42, hasher)

    assert raw_key.startswith(API_KEY_PREFIX)
    assert len(account.active_keys()) == 1
    stored = account.api_keys[0].hashed_key
    assert stored != raw_key
    assert raw_key not in stored
    assert account.locked is False


def test_hash_depends_on_secret():
    raw_key = "sk-example"
    assert ApiKeyHasher("one").hash(raw_key) != ApiKeyHasher("two").hash(raw_key)
    assert ApiKeyHasher("one").hash(raw_key) == ApiKeyHasher("one").hash(raw_key)


def test_empty_secret_rejected():
    with pytest.raises(ValueError):
        ApiKeyHasher("")


def test_key_validation(hasher):
    account, raw_key = UserAccount.create(42, hasher)

    assert account.is_api_key_valid(raw_key, hasher)
    assert not account.is_api_key_valid(raw_key[:-1], hasher)
    assert not account.is_api_key_valid(raw_key + "x", hasher)
    assert not account.is_api_key_valid("", hasher)
    assert not account.is_api_key_valid(raw_key, ApiKeyHasher("other-secret"))


def test_revoked_key_is_not_valid(hasher):
    account, raw_key = UserAccount.create(42, hasher)
    account.revoke_api_key(account.api_keys[0].id)

    assert not account.is_api_key_valid(raw_key, hasher)
    assert account.active_keys() == []


def test_revoking_twice_is_noop(hasher):
    account, _ = UserAccount.create(42, hasher)
    key_id = account.api_keys[0].id
    account.revoke_api_key(key_id)
    account.revoke_api_key(key_id)
    assert account.active_keys() == []


def test_revoking_unknown_key_fails(hasher):
    account, _ = UserAccount.create(42, hasher)
    with pytest.raises(InvalidRequest):
        account.revoke_api_key(uuid4())


def test_active_key_cap(hasher):
    account, _ = UserAccount.create(42, hasher)
    for _ in range(MAX_ACTIVE_API_KEYS - 1):
        account.generate_api_key(hasher)

    with pytest.raises(ApiKeyLimitReached):
        account.generate_api_key(hasher)
    assert len(account.active_keys()) == MAX_ACTIVE_API_KEYS


def test_revoked_keys_free_a_slot(hasher):
    account, _ = UserAccount.create(42, hasher)
    for _ in range(MAX_ACTIVE_API_KEYS - 1):
        account.generate_api_key(hasher)
    account.revoke_api_key(account.api_keys[0].id)

    new_key = account.generate_api_key(hasher)
    assert account.is_api_key_valid(new_key, hasher)
    assert len(account.api_keys) == MAX_ACTIVE_API_KEYS + 1


def test_cap_enforced_on_construction():
    keys = [ApiKeyRecord(hashed_key=f"h{i}") for i in range(MAX_ACTIVE_API_KEYS + 1)]
    with pytest.raises(ValidationError):
        UserAccount(telegram_id=42, api_keys=keys)


def test_revoke_all_active(hasher):
    account, _ = UserAccount.create(42, hasher)
    account.generate_api_key(hasher)
    assert account.revoke_all_active() == 2
    assert account.revoke_all_active() == 0


@pytest.mark.parametrize(
    ("balance", "expected_locked", "flipped"),
    [(-1, True, True), (0, False, False), (10, False, False)],
)
def test_refresh_lock(hasher, balance, expected_locked, flipped):
    account, _ = UserAccount.create(42, hasher)
    assert account.refresh_lock(balance) is flipped
    assert account.locked is expected_locked


def test_refresh_lock_unlocks(hasher):
    account, _ = UserAccount.create(42, hasher)
    account.refresh_lock(-5)
    assert account.refresh_lock(5) is True
    assert account.locked is False


def test_telegram_id_must_be_positive(hasher):
    with pytest.raises(ValidationError):
        UserAccount.create(0, hasher)
