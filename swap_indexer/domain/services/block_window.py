from __future__ import annotations

from swap_indexer.domain.entities.checkpoint import BlockWindowPlan

CATCHUP_THRESHOLD_BLOCKS = 10_000
CATCHUP_LAG_BLOCKS = 1_000


def plan_block_window(
    *,
    from_block: int,
    head: int,
    batch_size: int,
    catchup_threshold: int = CATCHUP_THRESHOLD_BLOCKS,
    catchup_lag: int = CATCHUP_LAG_BLOCKS,
) -> BlockWindowPlan:
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1.")

    fast_forwarded_from: int | None = None
    if head - from_block > catchup_threshold:
        fast_forwarded_from = from_block
        from_block = head - catchup_lag

    if from_block > head:
        return BlockWindowPlan(
            from_block=from_block,
            head=head,
            to_block=None,
            fast_forwarded_from=fast_forwarded_from,
        )

    return BlockWindowPlan(
        from_block=from_block,
        head=head,
        to_block=min(from_block + batch_size - 1, head),
        fast_forwarded_from=fast_forwarded_from,
    )
