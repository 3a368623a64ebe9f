from __future__ import annotations

from eth_abi import encode
import pytest
from web3 import Web3

from swap_indexer.infrastructure.clients.evm_rpc_client import (
    GET_POOL_SELECTOR,
    SWAP_TOPIC,
    EvmRpcClient,
    EvmRpcClientFactory,
    EvmRpcClientSettings,
    RpcError,
)
from swap_indexer.infrastructure.clients.retry import backoff_delay, call_with_retry
from swap_indexer.infrastructure.clients.router_call_decoder import UniversalRouterCallDecoder


FACTORY = "0x1f98431c8ad98523631ae4a59f267346ea31f984"
WETH = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
POOL = "0x8ad599c3a0ff1de082011efddc58f1908eb6e6d8"
SENDER = "0x66a9893cc07d91d95644aedd05d03f95e1dba8af"
RECIPIENT = "0x4444444444444444444444444444444444444444"


def _settings(**overrides) -> EvmRpcClientSettings:
    payload = {
        "timeout_seconds": 5,
        "max_retries": 3,
        "retry_base_delay_seconds": 2,
        "trace_max_retries": 2,
        "min_interval_ms": 0,
    }
    payload.update(overrides)
    return EvmRpcClientSettings(**payload)


class _Script:
    """Successive results for one RPC method; exceptions are raised."""

    def __init__(self, *items):
        self._items = list(items)

    def next(self):
        item = self._items.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _make_client(monkeypatch: pytest.MonkeyPatch, responses: dict, **overrides):
    sleeps: list[float] = []
    client = EvmRpcClient("http://node", _settings(**overrides), sleep=sleeps.append)
    calls: list[tuple[str, list]] = []

    def fake_post_rpc(method: str, params: list):
        calls.append((method, params))
        value = responses[method]
        if isinstance(value, _Script):
            return value.next()
        return value

    monkeypatch.setattr(client, "_post_rpc", fake_post_rpc)
    return client, calls, sleeps



def _topic(address: str) -> str:
    return "0x" + "00" * 12 + address[2:]


def _swap_log(*, tx: str = "0x" + "ab" * 32, amount0: int = 100, amount1: int = -250) -> dict:
    data = encode(
        ["int256", "int256", "uint160", "uint128", "int24"],
        [amount0, amount1, 2**96, 10**18, -200_000],
    )
    return {
        "address": POOL,
        "topics": [SWAP_TOPIC, _topic(SENDER), _topic(RECIPIENT)],
        "data": "0x" + data.hex(),
        "blockNumber": "0x64",
        "logIndex": "0x2",
        "transactionHash": tx,
    }


def test_swap_topic_matches_uniswap_v3_signature():
    assert SWAP_TOPIC == "0xc42079f94a6350d7e6235f29174924f928cc2ac818eb64fed8004e115fbcca67"


def test_ping_and_block_number_parse_hex(monkeypatch: pytest.MonkeyPatch):
    client, _calls, _sleeps = _make_client(monkeypatch, {"eth_chainId": "0x2105", "eth_blockNumber": "0x10"})

    assert client.ping() == 8453
    assert client.get_block_number() == 16


def test_get_pool_encodes_call_and_lowercases_result(monkeypatch: pytest.MonkeyPatch):
    result = "0x" + encode(["address"], [Web3.to_checksum_address(POOL)]).hex()
    client, calls, _sleeps = _make_client(monkeypatch, {"eth_call": result})

    pool = client.get_pool(factory_address=FACTORY, token0=USDC, token1=WETH, fee=3000)

    assert pool == POOL
    method, params = calls[0]
    assert method == "eth_call"
    assert params[0]["to"] == FACTORY
    assert params[0]["data"].startswith(GET_POOL_SELECTOR)
    assert GET_POOL_SELECTOR == "0x1698ee82"


def test_get_swap_events_decodes_logs(monkeypatch: pytest.MonkeyPatch):
    client, calls, _sleeps = _make_client(monkeypatch, {"eth_getLogs": [_swap_log()]})

    events = client.get_swap_events(pool_address=POOL, from_block=100, to_block=109)

    assert len(events) == 1
    event = events[0]
    assert event.sender == SENDER
    assert event.recipient == RECIPIENT
    assert (event.amount0, event.amount1) == (100, -250)
    assert (event.block_number, event.log_index) == (100, 2)
    _method, params = calls[0]
    assert params[0]["fromBlock"] == "0x64"
    assert params[0]["toBlock"] == "0x6d"
    assert params[0]["topics"] == [SWAP_TOPIC]


def test_undecodable_log_becomes_event_without_amounts(monkeypatch: pytest.MonkeyPatch):
    broken = _swap_log()
    broken["data"] = "0x1234"
    client, _calls, _sleeps = _make_client(monkeypatch, {"eth_getLogs": [broken]})

    (event,) = client.get_swap_events(pool_address=POOL, from_block=100, to_block=109)

    assert event.amount0 is None
    assert event.sender is None
    assert event.block_number == 100


def test_get_logs_retries_with_exponential_backoff(monkeypatch: pytest.MonkeyPatch):
    client, calls, sleeps = _make_client(
        monkeypatch,
        {"eth_getLogs": _Script(RuntimeError("429"), RuntimeError("429"), [_swap_log()])},
    )

    events = client.get_swap_events(pool_address=POOL, from_block=100, to_block=109)

    assert len(events) == 1
    assert sleeps == [2, 4]
    assert len(calls) == 3



def test_get_transaction_gives_up_after_max_retries(monkeypatch: pytest.MonkeyPatch):
    client, calls, sleeps = _make_client(
        monkeypatch,
        {"eth_getTransactionByHash": _Script(RuntimeError("a"), RuntimeError("b"), RuntimeError("c"))},
    )

    with pytest.raises(RuntimeError, match="c"):
        client.get_transaction("0x" + "ab" * 32)

    assert len(calls) == 3
    assert sleeps == [2, 4]


def test_get_transaction_maps_fields(monkeypatch: pytest.MonkeyPatch):
    tx = {"hash": "0xaa", "from": RECIPIENT, "to": SENDER, "input": "0x3593564c"}
    client, _calls, _sleeps = _make_client(monkeypatch, {"eth_getTransactionByHash": tx})

    result = client.get_transaction("0xaa")

    assert result is not None
    assert result.from_address == RECIPIENT
    assert result.to_address == SENDER
    assert result.input == "0x3593564c"


def test_missing_transaction_returns_none(monkeypatch: pytest.MonkeyPatch):
    client, _calls, _sleeps = _make_client(monkeypatch, {"eth_getTransactionByHash": None})

    assert client.get_transaction("0xaa") is None


def test_trace_uses_call_tracer(monkeypatch: pytest.MonkeyPatch):
    client, calls, _sleeps = _make_client(
        monkeypatch,
        {"debug_traceTransaction": {"from": RECIPIENT, "to": SENDER, "calls": []}},
    )

    trace = client.trace_transaction("0xaa")

    assert trace is not None
    assert trace.from_address == RECIPIENT
    assert calls[0][1] == ["0xaa", {"tracer": "callTracer"}]


def test_block_timestamp_and_code(monkeypatch: pytest.MonkeyPatch):
    client, _calls, _sleeps = _make_client(
        monkeypatch,
        {"eth_getBlockByNumber": {"timestamp": "0x6553f100"}, "eth_getCode": "0x"},
    )

    assert client.get_block_timestamp(100) == 0x6553F100
    assert client.get_code(RECIPIENT) == "0x"


def test_factory_builds_client_per_url():
    factory = EvmRpcClientFactory(_settings())

    client = factory("http://other-node")

    assert isinstance(client, EvmRpcClient)


def test_rpc_error_carries_method_and_code():
    error = RpcError("eth_getLogs", -32005, "query returned more than 10000 results")

    assert error.code == -32005
    assert "eth_getLogs" in str(error)


def test_backoff_delay_doubles():
    assert [backoff_delay(2, attempt) for attempt in (1, 2, 3, 4)] == [2, 4, 8, 16]


def test_call_with_retry_returns_first_success():
    sleeps: list[float] = []
    attempts = {"n": 0}

    def flaky():
        attempts["n"] += 1
        if attempts["n"] < 3:
            raise ConnectionError("reset")
        return "ok"

    result = call_with_retry(flaky, attempts=5, base_delay_seconds=2, operation="test", sleep=sleeps.append)

    assert result == "ok"
    assert sleeps == [2, 4]


def test_call_with_retry_uses_module_sleep_by_default(monkeypatch: pytest.MonkeyPatch):
    sleeps: list[float] = []
    monkeypatch.setattr("swap_indexer.infrastructure.clients.retry.time.sleep", sleeps.append)

    def always_fails():
        raise ValueError("x")

    with pytest.raises(ValueError):
        call_with_retry(always_fails, attempts=2, base_delay_seconds=1, operation="t")

    assert sleeps == [1]


def _router_call(signature: str, types: list[str], values: list) -> str:
    selector = Web3.keccak(text=signature).hex().removeprefix("0x")[:8]
    return "0x" + selector + encode(types, values).hex()


def test_router_decoder_recognizes_both_execute_overloads():
    decoder = UniversalRouterCallDecoder()

    with_deadline = _router_call(
        "execute(bytes,bytes[],uint256)",
        ["bytes", "bytes[]", "uint256"],
        [b"\x0b\x00", [b"\x01", b"\x02"], 1_900_000_000],
    )
    without_deadline = _router_call("execute(bytes,bytes[])", ["bytes", "bytes[]"], [b"\x00", [b"\x01"]])

    assert with_deadline.startswith("0x3593564c")
    assert decoder.function_name(with_deadline) == "execute"
    assert decoder.function_name(without_deadline) == "execute"


def test_router_decoder_returns_none_for_unknown_selector():
    decoder = UniversalRouterCallDecoder()

    assert decoder.function_name("0xa9059cbb" + "00" * 64) is None
    assert decoder.function_name("0x") is None


def test_router_decoder_raises_on_truncated_arguments():
    decoder = UniversalRouterCallDecoder()

    with pytest.raises(ValueError):
        decoder.function_name("0x3593564c" + "00" * 4)
