from __future__ import annotations

import logging

from swap_indexer.application.dto.resolve_user import ResolveUserInput
from swap_indexer.application.ports.chain_rpc_port import ChainRpcPort
from swap_indexer.application.ports.router_call_decoder_port import RouterCallDecoderPort


logger = logging.getLogger(__name__)

ROUTER_EXECUTE = "execute"


def _has_no_code(code: str | None) -> bool:
    return code in (None, "", "0x", "0x0")


class ResolveUserUseCase:
    """Attribute a swap to the account that initiated it.

    Swaps routed through a known router report the router as ``sender``. The
    transaction origin is used instead when it is an EOA; when the origin is
    itself a contract calling the router's ``execute``, a call trace is tried
    to reach the top-level EOA. Every failure degrades to the best address
    known so far, so this never raises.
    """

    def __init__(self, *, router_call_decoder: RouterCallDecoderPort):
        self._router_call_decoder = router_call_decoder

    def execute(self, command: ResolveUserInput, *, chain_rpc: ChainRpcPort) -> str:
        sender = command.sender
        tx_hash = command.event.transaction_hash
        if sender.lower() not in command.known_routers:
            return sender

        logger.debug("resolve_user: router_sender tx=%s sender=%s", tx_hash, sender)
        if not tx_hash:
            return sender

        try:
            tx = chain_rpc.get_transaction(tx_hash)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "resolve_user: transaction_fetch_failed tx=%s sender=%s error=%s",
                tx_hash,
                sender,
                exc,
            )
            return sender

        if tx is None or not tx.from_address or not tx.input:
            fallback = tx.from_address if tx is not None and tx.from_address else sender
            logger.warning(
                "resolve_user: transaction_incomplete tx=%s fallback=%s",
                tx_hash,
                fallback,
            )
            return fallback

        origin = tx.from_address
        try:
            if _has_no_code(chain_rpc.get_code(origin)):
                return origin
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "resolve_user: code_lookup_failed tx=%s address=%s error=%s",
                tx_hash,
                origin,
                exc,
            )

        try:
            function_name = self._router_call_decoder.function_name(tx.input)
        except Exception as exc:  # noqa: BLE001
            logger.warning("resolve_user: decode_failed tx=%s origin=%s error=%s", tx_hash, origin, exc)
            return origin
        if function_name != ROUTER_EXECUTE:
            logger.debug(
                "resolve_user: not_execute tx=%s function=%s origin=%s",
                tx_hash,
                function_name,
                origin,
            )
            return origin

        try:
            trace = chain_rpc.trace_transaction(tx_hash)
            if trace is None or not trace.from_address:
                logger.warning("resolve_user: trace_empty tx=%s origin=%s", tx_hash, origin)
                return origin
            if _has_no_code(chain_rpc.get_code(trace.from_address)):
                return trace.from_address
            logger.warning(
                "resolve_user: traced_caller_is_contract tx=%s traced=%s origin=%s",
                tx_hash,
                trace.from_address,
                origin,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("resolve_user: trace_failed tx=%s origin=%s error=%s", tx_hash, origin, exc)

        return origin
