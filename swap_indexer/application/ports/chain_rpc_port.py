from __future__ import annotations

from typing import Protocol

from swap_indexer.application.dto.chain_rpc import CallTrace, ChainTransaction
from swap_indexer.domain.entities.swap import SwapEvent


class ChainRpcPort(Protocol):
    def ping(self) -> int:
        ...

    def get_block_number(self) -> int:
        ...

    def get_pool(self, *, factory_address: str, token0: str, token1: str, fee: int) -> str:
        ...

    def get_swap_events(self, *, pool_address: str, from_block: int, to_block: int) -> list[SwapEvent]:
        ...

    def get_block_timestamp(self, block_number: int) -> int:
        ...

    def get_transaction(self, transaction_hash: str) -> ChainTransaction | None:
        ...

    def get_code(self, address: str) -> str:
        ...

    def trace_transaction(self, transaction_hash: str) -> CallTrace | None:
        ...

    def get_token_decimals(self, token_address: str) -> int:
        ...


class ChainRpcFactoryPort(Protocol):
    def __call__(self, rpc_url: str) -> ChainRpcPort:
        ...
