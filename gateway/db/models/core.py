"""SQLAlchemy models for accounts, price lists, the ledger and quota windows."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, Enum, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gateway.db.base import Base, CreatedAtMixin
from gateway.utils.datetime import utc_now


class Account(CreatedAtMixin, Base):
    __tablename__ = "accounts"
    __table_args__ = (UniqueConstraint("telegram_id", name="uq_accounts_telegram_id"),)

    telegram_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    # Cache of "derived balance < 0"; the ledger stays authoritative.
    locked: Mapped[bool] = mapped_column(default=False, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)

    api_keys: Mapped[list["AccountApiKey"]] = relationship(
        back_populates="account",
        cascade="all, delete-orphan",
        order_by="AccountApiKey.created_at",
    )


class AccountApiKey(CreatedAtMixin, Base):
    __tablename__ = "account_api_keys"
    __table_args__ = (UniqueConstraint("hashed_key", name="uq_account_api_keys_hashed_key"),)

    account_id: Mapped[str] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    hashed_key: Mapped[str] = mapped_column(String(128), nullable=False)
    status: Mapped[str] = mapped_column(
        Enum("active", "revoked", name="api_key_status"), default="active", nullable=False
    )

    account: Mapped[Account] = relationship(back_populates="api_keys")


class PriceListSnapshot(CreatedAtMixin, Base):
    __tablename__ = "price_lists"

    is_current: Mapped[bool] = mapped_column(default=False, nullable=False)

    entries: Mapped[list["PriceListEntry"]] = relationship(
        back_populates="price_list",
        cascade="all, delete-orphan",
        order_by="PriceListEntry.position",
    )


class PriceListEntry(Base):
    __tablename__ = "price_list_entries"
    __table_args__ = (
        UniqueConstraint("price_list_id", "model_name", name="uq_price_list_entries_model"),
    )

    price_list_id: Mapped[str] = mapped_column(
        ForeignKey("price_lists.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    model_name: Mapped[str] = mapped_column(String(191), nullable=False)
    input_price_per_million: Mapped[int] = mapped_column(BigInteger, nullable=False)
    output_price_per_million: Mapped[int] = mapped_column(BigInteger, nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    price_list: Mapped[PriceListSnapshot] = relationship(back_populates="entries")


class LedgerEntry(CreatedAtMixin, Base):
    """One append-only ledger row; only ``status`` is ever updated."""

    __tablename__ = "ledger_entries"
    __table_args__ = (Index("ix_ledger_entries_account_id", "account_id"),)

    account_id: Mapped[str] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    kind: Mapped[str] = mapped_column(
        Enum("top_up", "usage", name="ledger_entry_kind"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        Enum("pending", "completed", "failed", name="ledger_entry_status"),
        default="pending",
        nullable=False,
    )
    amount: Mapped[int | None] = mapped_column(BigInteger)
    model_name: Mapped[str | None] = mapped_column(String(191))
    prompt_tokens: Mapped[int | None] = mapped_column(BigInteger)
    completion_tokens: Mapped[int | None] = mapped_column(BigInteger)
    cost: Mapped[int | None] = mapped_column(BigInteger)


class QuotaWindow(Base):
    __tablename__ = "quota_windows"
    __table_args__ = (UniqueConstraint("account_id", name="uq_quota_windows_account_id"),)

    account_id: Mapped[str] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    window_start: Mapped[datetime] = mapped_column(nullable=False)
    request_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)


__all__ = [
    "Account",
    "AccountApiKey",
    "LedgerEntry",
    "PriceListEntry",
    "PriceListSnapshot",
    "QuotaWindow",
]
