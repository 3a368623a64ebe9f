from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging
from threading import Lock
import time
from typing import Any

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
import httpx
from web3 import Web3

from swap_indexer.application.dto.chain_rpc import CallTrace, ChainTransaction
from swap_indexer.domain.entities.swap import SwapEvent
from swap_indexer.infrastructure.clients.retry import call_with_retry


logger = logging.getLogger(__name__)


def _hex_prefixed(value: Any) -> str:
    raw = value.hex() if hasattr(value, "hex") else str(value)
    if raw.startswith("0x"):
        return raw
    return f"0x{raw}"


def _selector(signature: str) -> str:
    return _hex_prefixed(Web3.keccak(text=signature))[:10]


SWAP_TOPIC = _hex_prefixed(Web3.keccak(text="Swap(address,address,int256,int256,uint160,uint128,int24)"))
GET_POOL_SELECTOR = _selector("getPool(address,address,uint24)")
DECIMALS_SELECTOR = _selector("decimals()")
SWAP_DATA_TYPES = ["int256", "int256", "uint160", "uint128", "int24"]


class RpcError(RuntimeError):
    """The node answered with a JSON-RPC error object."""

    def __init__(self, method: str, code: Any, message: str):
        super().__init__(f"{method} failed code={code} message={message}")
        self.method = method
        self.code = code
        self.message = message


class RpcTransportError(RuntimeError):
    """The request never produced a usable JSON-RPC response."""


@dataclass(frozen=True)
class EvmRpcClientSettings:
    timeout_seconds: float
    max_retries: int
    retry_base_delay_seconds: float
    trace_max_retries: int
    min_interval_ms: int


def _to_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    text = str(value)
    return int(text, 16) if text.startswith("0x") else int(text)


def _topic_to_address(topic: Any) -> str:
    hex_topic = _hex_prefixed(topic)
    return f"0x{hex_topic[-40:]}".lower()


def _strip_0x(value: str) -> str:
    return value[2:] if value.startswith("0x") else value


class EvmRpcClient:
    """JSON-RPC client bound to one chain endpoint.

    Transaction lookups and log queries retry with exponential backoff, traces
    retry fewer times, and every other call is a single attempt.
    """

    def __init__(
        self,
        rpc_url: str,
        settings: EvmRpcClientSettings,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._rpc_url = rpc_url
        self._settings = settings
        self._sleep = sleep
        self._lock = Lock()
        self._last_request_at = 0.0
        self._request_id = 0

    def ping(self) -> int:
        return _to_int(self._post_rpc("eth_chainId", []))

    def get_block_number(self) -> int:
        return _to_int(self._post_rpc("eth_blockNumber", []))

    def get_pool(self, *, factory_address: str, token0: str, token1: str, fee: int) -> str:
        data = GET_POOL_SELECTOR + encode(
            ["address", "address", "uint24"],
            [token0.lower(), token1.lower(), int(fee)],
        ).hex()
        result = self._eth_call(to=factory_address, data=data)
        (pool_address,) = decode(["address"], result)
        return str(pool_address).lower()

    def get_token_decimals(self, token_address: str) -> int:
        result = self._eth_call(to=token_address, data=DECIMALS_SELECTOR)
        (decimals,) = decode(["uint8"], result)
        return int(decimals)

    def get_swap_events(self, *, pool_address: str, from_block: int, to_block: int) -> list[SwapEvent]:
        params = [
            {
                "address": pool_address,
                "fromBlock": hex(from_block),
                "toBlock": hex(to_block),
                "topics": [SWAP_TOPIC],
            }
        ]
        logs = self._with_retry(
            lambda: self._post_rpc("eth_getLogs", params),
            attempts=self._settings.max_retries,
            operation=f"eth_getLogs pool={pool_address} from={from_block} to={to_block}",
        )
        events = [self._decode_swap_log(log) for log in logs or []]
        logger.debug(
            "evm_rpc_client: swap_logs pool=%s from_block=%s to_block=%s count=%s",
            pool_address,
            from_block,
            to_block,
            len(events),
        )
        return events

    def get_block_timestamp(self, block_number: int) -> int:
        block = self._post_rpc("eth_getBlockByNumber", [hex(block_number), False])
        if not block:
            raise RpcTransportError(f"Block {block_number} not found.")
        return _to_int(block["timestamp"])

    def get_transaction(self, transaction_hash: str) -> ChainTransaction | None:
        tx = self._with_retry(
            lambda: self._post_rpc("eth_getTransactionByHash", [transaction_hash]),
            attempts=self._settings.max_retries,
            operation=f"eth_getTransactionByHash tx={transaction_hash}",
        )
        if not tx:
            return None
        return ChainTransaction(
            hash=str(tx.get("hash") or transaction_hash),
            from_address=tx.get("from"),
            to_address=tx.get("to"),
            input=tx.get("input") or tx.get("data"),
        )

    def get_code(self, address: str) -> str:
        return str(self._post_rpc("eth_getCode", [address, "latest"]) or "0x")

    def trace_transaction(self, transaction_hash: str) -> CallTrace | None:
        trace = self._with_retry(
            lambda: self._post_rpc("debug_traceTransaction", [transaction_hash, {"tracer": "callTracer"}]),
            attempts=self._settings.trace_max_retries,
            operation=f"debug_traceTransaction tx={transaction_hash}",
        )
        if not trace:
            return None
        return CallTrace(from_address=trace.get("from"), to_address=trace.get("to"))

    def _decode_swap_log(self, log: dict) -> SwapEvent:
        block_number = _to_int(log.get("blockNumber") or 0)
        log_index = _to_int(log.get("logIndex") or 0)
        transaction_hash = log.get("transactionHash")
        try:
            topics = log["topics"]
            amount0, amount1, _sqrt_price, _liquidity, _tick = decode(
                SWAP_DATA_TYPES,
                bytes.fromhex(_strip_0x(log["data"])),
            )
            return SwapEvent(
                transaction_hash=transaction_hash,
                block_number=block_number,
                log_index=log_index,
                sender=_topic_to_address(topics[1]),
                recipient=_topic_to_address(topics[2]),
                amount0=int(amount0),
                amount1=int(amount1),
            )
        except (DecodingError, KeyError, IndexError, TypeError, ValueError) as exc:
            logger.warning(
                "evm_rpc_client: swap_log_undecodable tx=%s block=%s log_index=%s error=%s",
                transaction_hash,
                block_number,
                log_index,
                exc,
            )
            return SwapEvent(
                transaction_hash=transaction_hash,
                block_number=block_number,
                log_index=log_index,
                sender=None,
                recipient=None,
                amount0=None,
                amount1=None,
            )

    def _eth_call(self, *, to: str, data: str) -> bytes:
        result = self._post_rpc("eth_call", [{"to": to, "data": data}, "latest"])
        raw = bytes.fromhex(_strip_0x(str(result or "0x")))
        if not raw:
            raise RpcTransportError(f"eth_call to {to} returned no data.")
        return raw

    def _with_retry(self, fn: Callable[[], Any], *, attempts: int, operation: str) -> Any:
        return call_with_retry(
            fn,
            attempts=attempts,
            base_delay_seconds=self._settings.retry_base_delay_seconds,
            operation=operation,
            sleep=self._sleep,
        )

    def _post_rpc(self, method: str, params: list) -> Any:
        self._respect_rate_limit()
        self._request_id += 1
        body = {"jsonrpc": "2.0", "id": self._request_id, "method": method, "params": params}
        try:
            with httpx.Client(timeout=self._settings.timeout_seconds) as client:
                response = client.post(self._rpc_url, json=body)
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise RpcTransportError(f"{method} request failed: {exc}") from exc

        error = payload.get("error")
        if error:
            raise RpcError(method, error.get("code"), str(error.get("message", error)))
        return payload.get("result")

    def _respect_rate_limit(self) -> None:
        min_interval = max(0, self._settings.min_interval_ms) / 1000.0
        if min_interval <= 0:
            return

        with self._lock:
            now = time.monotonic()
            elapsed = now - self._last_request_at
            if elapsed < min_interval:
                time.sleep(min_interval - elapsed)
            self._last_request_at = time.monotonic()


class EvmRpcClientFactory:
    def __init__(self, settings: EvmRpcClientSettings):
        self._settings = settings

    def __call__(self, rpc_url: str) -> EvmRpcClient:
        return EvmRpcClient(rpc_url, self._settings)
