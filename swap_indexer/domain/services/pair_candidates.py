from __future__ import annotations

from collections.abc import Iterable, Sequence

from swap_indexer.domain.entities.pool import PoolCandidate
from swap_indexer.domain.entities.token import TokenListEntry

DEFAULT_FEE_TIERS: tuple[int, ...] = (500, 3000, 10000)


def build_pair_candidates(
    tokens: Sequence[TokenListEntry],
    fee_tiers: Iterable[int] = DEFAULT_FEE_TIERS,
) -> list[PoolCandidate]:
    fees = list(fee_tiers)
    candidates: list[PoolCandidate] = []
    for i, first in enumerate(tokens):
        for second in tokens[i + 1 :]:
            for fee in fees:
                candidates.append(
                    PoolCandidate(token_a=first.address, token_b=second.address, fee=int(fee))
                )
    return candidates
