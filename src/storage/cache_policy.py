# src/storage/cache_policy.py

"""Time-to-live freshness checks for cached remote lists."""

import time


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def is_fresh(fetched_at: int | None, ttl_ms: int, now: int) -> bool:
    """Whether a value fetched at *fetched_at* is still within *ttl_ms*.

    Never-fetched (``None``) is stale.  The boundary is exclusive: a value
    exactly *ttl_ms* old is stale.
    """
    if fetched_at is None:
        return False
    return now - fetched_at < ttl_ms
