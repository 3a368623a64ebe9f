from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, DateTime, Index, Integer, Numeric, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from swap_indexer.infrastructure.db.engine import Base


# Raw token amounts are uint256/int256.
AMOUNT = Numeric(78, 0)


class PoolModel(Base):
    __tablename__ = "pools"
    __table_args__ = ({"schema": "public"},)

    pool_address: Mapped[str] = mapped_column(Text, primary_key=True)
    chain_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    token0: Mapped[str] = mapped_column(Text, nullable=False)
    token1: Mapped[str] = mapped_column(Text, nullable=False)
    fee: Mapped[int] = mapped_column(Integer, nullable=False)
    volume: Mapped[Decimal | None] = mapped_column(AMOUNT, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("now()"))


class SwapModel(Base):
    __tablename__ = "swaps"
    __table_args__ = (
        Index("ix_swaps_chain_block", "chain_id", "block_number"),
        Index("ix_swaps_chain_pool", "chain_id", "pool_address"),
        {"schema": "public"},
    )

    transaction_hash: Mapped[str] = mapped_column(Text, primary_key=True)
    chain_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    pool_address: Mapped[str] = mapped_column(Text, nullable=False)
    user_address: Mapped[str] = mapped_column(Text, nullable=False)
    token0: Mapped[str] = mapped_column(Text, nullable=False)
    token1: Mapped[str] = mapped_column(Text, nullable=False)
    amount0: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False)
    amount1: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class UserVolumeModel(Base):
    __tablename__ = "users"
    __table_args__ = ({"schema": "public"},)

    address: Mapped[str] = mapped_column(Text, primary_key=True)
    chain_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    total_volume: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False, server_default=text("0"))
    total_swaps: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default=text("0"))


class TokenVolumeTotalModel(Base):
    __tablename__ = "tokens"
    __table_args__ = ({"schema": "public"},)

    address: Mapped[str] = mapped_column(Text, primary_key=True)
    chain_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    symbol: Mapped[str] = mapped_column(Text, nullable=False)
    total_volume: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False, server_default=text("0"))
    total_swaps: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default=text("0"))


class UserTokenPoolVolumeModel(Base):
    __tablename__ = "token_volumes"
    __table_args__ = ({"schema": "public"},)

    user_address: Mapped[str] = mapped_column(Text, primary_key=True)
    token_address: Mapped[str] = mapped_column(Text, primary_key=True)
    pool_address: Mapped[str] = mapped_column(Text, primary_key=True)
    chain_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    volume: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False, server_default=text("0"))
    swaps: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default=text("0"))


class IndexingGapModel(Base):
    __tablename__ = "indexing_gaps"
    __table_args__ = (
        Index("ix_indexing_gaps_chain", "chain_id", "from_block"),
        {"schema": "public"},
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    chain_id: Mapped[int] = mapped_column(Integer, nullable=False)
    pool_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    from_block: Mapped[int] = mapped_column(BigInteger, nullable=False)
    to_block: Mapped[int] = mapped_column(BigInteger, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("now()"))
