# src/storage/search_cache.py

"""Offline-first cache of recent searches, trending terms, and views.

Every read or write may fail (storage unavailable, corrupt payload).
Failures are logged and treated as a cache miss so search keeps working
against the remote API alone.
"""

import json
import logging
import math
from typing import Any

from src.config.settings import Settings
from src.filters.deduplicator import ListDeduplicator
from src.filters.text_normalizer import normalize
from src.models.entities import Product, TrendingSnapshot
from src.storage.cache_policy import now_ms
from src.storage.kv_store import KeyValueStore, StorageError

logger = logging.getLogger("storefront_search.cache")

RECENT_SEARCHES_KEY = "search_recent_queries_v1"
TRENDING_SEARCHES_KEY = "search_trending_queries_v1"
RECENTLY_VIEWED_KEY = "search_recently_viewed_products_v1"


def recently_viewed_key(identity: str | None) -> str:
    """Storage key for one identity's recently viewed products."""
    return f"{RECENTLY_VIEWED_KEY}:{identity or Settings.GUEST_IDENTITY}"


class LocalSearchCache:
    """Bounded local lists layered over a :class:`KeyValueStore`."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    # ── Raw JSON access ──────────────────────────────────

    async def _read_json(self, key: str) -> Any:
        try:
            raw = await self.store.get(key)
        except StorageError as exc:
            logger.warning("Failed to read %s: %s", key, exc)
            return None
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Corrupt cache payload at %s: %s", key, exc)
            return None

    async def _write_json(self, key: str, payload: Any) -> bool:
        try:
            await self.store.set(key, json.dumps(payload, ensure_ascii=False))
        except StorageError as exc:
            logger.warning("Failed to persist %s: %s", key, exc)
            return False
        return True

    # ── Recent searches ──────────────────────────────────

    async def get_recent_searches(
        self, limit: int = Settings.RECENT_SEARCH_LIMIT,
    ) -> list[str]:
        """Stored recent searches, most recent first."""
        parsed = await self._read_json(RECENT_SEARCHES_KEY)
        if not isinstance(parsed, list):
            return []
        return ListDeduplicator.dedupe_strings(parsed, limit)

    async def set_recent_searches(
        self,
        searches: list[str],
        limit: int = Settings.RECENT_SEARCH_LIMIT,
    ) -> list[str]:
        """Persist *searches* (deduped, truncated) and return what was kept.

        The returned list is valid even when the write failed.
        """
        deduped = ListDeduplicator.dedupe_strings(searches, limit)
        await self._write_json(RECENT_SEARCHES_KEY, deduped)
        return deduped

    async def save_recent_search(
        self,
        query: str,
        limit: int = Settings.RECENT_SEARCH_LIMIT,
    ) -> list[str]:
        """Move *query* to the front of the recent list and persist it."""
        trimmed = query.strip()
        if not trimmed:
            return await self.get_recent_searches(limit)

        existing = await self.get_recent_searches(limit)
        key = normalize(trimmed)
        updated = [trimmed] + [
            item for item in existing if normalize(item) != key
        ]
        return await self.set_recent_searches(updated, limit)

    async def clear_recent_searches(self) -> None:
        try:
            await self.store.remove(RECENT_SEARCHES_KEY)
        except StorageError as exc:
            logger.warning("Failed to clear recent searches: %s", exc)

    # ── Trending ─────────────────────────────────────────

    async def get_trending_searches(
        self, limit: int = Settings.TRENDING_SEARCH_LIMIT,
    ) -> TrendingSnapshot:
        """Cached trending terms with their fetch timestamp.

        Anything malformed reads as never fetched.
        """
        parsed = await self._read_json(TRENDING_SEARCHES_KEY)
        if not isinstance(parsed, dict):
            return TrendingSnapshot()
        items = parsed.get("items")
        fetched_at = parsed.get("fetchedAt")
        if (
            not isinstance(items, list)
            or not isinstance(fetched_at, (int, float))
            or isinstance(fetched_at, bool)
            or not math.isfinite(fetched_at)
        ):
            return TrendingSnapshot()
        return TrendingSnapshot(
            items=ListDeduplicator.dedupe_strings(items, limit),
            fetched_at=int(fetched_at),
        )

    async def set_trending_searches(
        self,
        items: list[str],
        limit: int = Settings.TRENDING_SEARCH_LIMIT,
    ) -> list[str]:
        """Persist trending terms stamped with the current time."""
        deduped = ListDeduplicator.dedupe_strings(items, limit)
        await self._write_json(
            TRENDING_SEARCHES_KEY,
            {"items": deduped, "fetchedAt": now_ms()},
        )
        return deduped

    # ── Recently viewed ──────────────────────────────────

    async def get_recently_viewed(
        self,
        identity: str | None,
        limit: int = Settings.RECENTLY_VIEWED_LIMIT,
    ) -> list[Product]:
        """Recently viewed products for *identity* (``None`` = guest)."""
        parsed = await self._read_json(recently_viewed_key(identity))
        if not isinstance(parsed, list):
            return []
        products = [
            p
            for p in (
                Product.from_dict(row)
                for row in parsed
                if isinstance(row, dict)
            )
            if p is not None
        ]
        return ListDeduplicator.dedupe_by_id(products)[:limit]

    async def set_recently_viewed(
        self,
        identity: str | None,
        products: list[Product],
        limit: int = Settings.RECENTLY_VIEWED_LIMIT,
    ) -> list[Product]:
        deduped = ListDeduplicator.dedupe_by_id(products)[:limit]
        await self._write_json(
            recently_viewed_key(identity),
            [p.to_dict() for p in deduped],
        )
        return deduped

    async def save_recently_viewed(
        self,
        identity: str | None,
        product: Product,
        limit: int = Settings.RECENTLY_VIEWED_LIMIT,
    ) -> list[Product]:
        """Move *product* to the front of *identity*'s viewed list."""
        existing = await self.get_recently_viewed(identity, limit)
        updated = [product] + [p for p in existing if p.id != product.id]
        return await self.set_recently_viewed(identity, updated, limit)
