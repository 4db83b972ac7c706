# src/services/search_orchestrator.py

"""Search-as-you-type session: debounce, fan-out, ranking, and history.

A session owns one request fence.  Every search captures the fence
value when it starts and re-checks it after each await; once a newer
search (or a reset) has moved the fence, the older search returns
without touching published state.  In-flight HTTP calls are never
aborted, their results are simply dropped.
"""

import asyncio
import functools
import logging
from collections.abc import Callable, Coroutine, Iterable
from dataclasses import replace
from itertools import chain
from typing import Any, Protocol

from src.config.settings import Settings
from src.filters.deduplicator import ListDeduplicator
from src.filters.ranking import RelevanceRanker
from src.filters.text_normalizer import normalize
from src.models.entities import Brand, Category, Product
from src.models.search_state import SearchState, SearchViewState
from src.storage.cache_policy import is_fresh, now_ms
from src.storage.search_cache import LocalSearchCache

logger = logging.getLogger("storefront_search.orchestrator")

Listener = Callable[[SearchViewState], None]


class SearchAPI(Protocol):
    """The remote calls a search session depends on."""

    async def search_products(
        self, query: str, page: int, limit: int,
    ) -> list[Product]: ...

    async def list_brands(self) -> list[Brand]: ...

    async def list_categories(self) -> list[Category]: ...

    async def get_search_history(self, limit: int) -> list[str]: ...

    async def save_search_query(self, query: str) -> None: ...

    async def clear_search_history(self) -> None: ...

    async def get_trending_searches(self, limit: int) -> list[str]: ...

    async def get_recently_viewed_products(
        self, limit: int,
    ) -> list[Product]: ...


class SearchOrchestrator:
    """State holder for one search screen session."""

    def __init__(
        self,
        api: SearchAPI,
        cache: LocalSearchCache,
        identity: str | None = None,
        debounce_seconds: float | None = None,
    ) -> None:
        self.api = api
        self.cache = cache
        self.identity = identity
        self._debounce_seconds = (
            Settings.SEARCH_DEBOUNCE_SECONDS
            if debounce_seconds is None
            else debounce_seconds
        )
        self._fence = 0
        self._state = SearchViewState()
        self._listeners: list[Listener] = []
        self._timer: asyncio.TimerHandle | None = None
        # Set whenever no debounce timer is armed
        self._timer_idle = asyncio.Event()
        self._timer_idle.set()
        # Serializes every read-modify-write of the recent-searches list
        self._recent_lock = asyncio.Lock()
        self._recent_clears = 0
        self._tasks: set[asyncio.Task[Any]] = set()

    # ── Observable state ─────────────────────────────────

    @property
    def state(self) -> SearchViewState:
        return self._state

    @property
    def fence(self) -> int:
        return self._fence

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, **changes: Any) -> None:
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("Search state listener raised")

    def _clear_results(self, status: SearchState) -> None:
        self._publish(
            products=[],
            brands=[],
            categories=[],
            is_searching=False,
            status=status,
        )

    # ── Task bookkeeping ─────────────────────────────────

    def _spawn(
        self, coro: Coroutine[Any, Any, Any], label: str,
    ) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(functools.partial(self._task_done, label))
        return task

    def _task_done(self, label: str, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("%s failed: %s", label, exc, exc_info=exc)

    async def settle(self) -> None:
        """Wait until no debounce timer, search, or sync task is pending."""
        while not self._timer_idle.is_set() or self._tasks:
            if self._tasks:
                await asyncio.gather(
                    *list(self._tasks), return_exceptions=True
                )
            else:
                await self._timer_idle.wait()

    async def close(self) -> None:
        """Drop any pending keystroke and wait for outstanding work."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._timer_idle.set()
        await self.settle()

    # ── Debounced input ──────────────────────────────────

    def set_query(self, text: str) -> None:
        """Record a keystroke and (re)arm the debounce timer.

        Must be called from inside the running event loop.
        """
        if self._timer is not None:
            self._timer.cancel()
        self._publish(query=text, status=SearchState.DEBOUNCING)
        self._timer_idle.clear()
        self._timer = asyncio.get_running_loop().call_later(
            self._debounce_seconds, self._on_debounce_fired, text,
        )

    def select_recent_term(self, term: str) -> None:
        """Tapping a recent or trending chip searches for it."""
        self.set_query(term)

    def _on_debounce_fired(self, query: str) -> None:
        self._timer = None
        if len(normalize(query)) < Settings.MIN_QUERY_LENGTH:
            self._reset()
        else:
            self._spawn(self.search_now(query), f"search '{query}'")
        self._timer_idle.set()

    def _reset(self) -> None:
        """Invalidate in-flight searches and clear results, no network."""
        self._fence += 1
        self._clear_results(SearchState.IDLE)

    # ── Search ───────────────────────────────────────────

    def _is_current(self, my_fence: int, query: str) -> bool:
        if my_fence == self._fence:
            return True
        logger.debug(
            "Search '%s' superseded (fence %d, now %d)",
            query,
            my_fence,
            self._fence,
        )
        return False

    async def search_now(self, query: str) -> SearchState:
        """Run one search immediately and publish it if still current.

        Returns the terminal state of this attempt.  Never raises for
        network failures; they clear the result buckets instead.
        """
        norm_query = normalize(query)
        if len(norm_query) < Settings.MIN_QUERY_LENGTH:
            self._reset()
            return SearchState.IDLE

        self._fence += 1
        my_fence = self._fence
        self._publish(is_searching=True, status=SearchState.FETCHING)
        logger.info("Search '%s' started (fence %d)", norm_query, my_fence)

        try:
            page_one, brands, categories = await asyncio.gather(
                self.api.search_products(
                    norm_query, 1, Settings.PRODUCT_PAGE_SIZE
                ),
                self.api.list_brands(),
                self.api.list_categories(),
            )
            if not self._is_current(my_fence, norm_query):
                return SearchState.SUPERSEDED

            ranked = RelevanceRanker.rank(page_one, norm_query)
            if not any(
                RelevanceRanker.has_exact_match(p, norm_query)
                for p in ranked
            ):
                ranked = await self._fetch_fallback_pages(
                    norm_query, page_one
                )
                if not self._is_current(my_fence, norm_query):
                    return SearchState.SUPERSEDED
        except Exception as exc:
            if not self._is_current(my_fence, norm_query):
                return SearchState.SUPERSEDED
            logger.error(
                "Search '%s' failed: %s", norm_query, exc, exc_info=exc,
            )
            self._clear_results(SearchState.FAILED)
            return SearchState.FAILED

        self._publish(
            products=ranked,
            brands=RelevanceRanker.filter_by_name(
                brands, norm_query, Settings.BRAND_RESULT_LIMIT
            ),
            categories=RelevanceRanker.filter_by_name(
                categories, norm_query, Settings.CATEGORY_RESULT_LIMIT
            ),
            is_searching=False,
            status=SearchState.COMPLETED,
        )
        logger.info(
            "Search '%s' completed: %d products, %d brands, %d categories",
            norm_query,
            len(self._state.products),
            len(self._state.brands),
            len(self._state.categories),
        )
        await self._remember_query(query)
        return SearchState.COMPLETED

    async def _fetch_fallback_pages(
        self, norm_query: str, page_one: list[Product],
    ) -> list[Product]:
        """No exact hit on page 1: pull the next pages and re-rank the union."""
        logger.debug(
            "No exact match for '%s' on page 1, fetching pages %s",
            norm_query,
            Settings.FALLBACK_PAGES,
        )
        extra: Iterable[list[Product]] = await asyncio.gather(
            *(
                self.api.search_products(
                    norm_query, page, Settings.PRODUCT_PAGE_SIZE
                )
                for page in Settings.FALLBACK_PAGES
            )
        )
        union = ListDeduplicator.dedupe_by_id(
            chain(page_one, *extra)
        )
        return RelevanceRanker.rank(union, norm_query)

    async def _remember_query(self, query: str) -> None:
        """Save locally (awaited) and sync remotely (fire-and-forget)."""
        trimmed = query.strip()
        async with self._recent_lock:
            recent = await self.cache.save_recent_search(
                trimmed, Settings.RECENT_SEARCH_LIMIT
            )
            self._publish(recent_searches=recent)
        self._spawn(
            self.api.save_search_query(trimmed),
            f"remote history sync '{trimmed}'",
        )

    async def clear_recent_searches(self) -> None:
        # Remote history fetched before this point is discarded
        self._recent_clears += 1
        async with self._recent_lock:
            self._publish(recent_searches=[])
            await self.cache.clear_recent_searches()
        try:
            await self.api.clear_search_history()
        except Exception as exc:
            logger.warning("Remote history clear failed: %s", exc)

    # ── History / discovery lists ────────────────────────

    async def refresh_history(self) -> None:
        """Reload recent, trending, and recently viewed (mount / focus)."""
        await asyncio.gather(
            self._load_recent_searches(),
            self._load_trending_searches(),
            self._load_recently_viewed(),
        )

    async def _load_recent_searches(self) -> None:
        limit = Settings.RECENT_SEARCH_LIMIT
        async with self._recent_lock:
            self._publish(
                recent_searches=await self.cache.get_recent_searches(limit)
            )
        clears = self._recent_clears
        try:
            remote = await self.api.get_search_history(limit)
        except Exception as exc:
            logger.warning("Remote search history unavailable: %s", exc)
            return
        async with self._recent_lock:
            if clears != self._recent_clears:
                logger.debug("History cleared during refresh, dropping remote")
                return
            # Current state, not the earlier read: a search may have landed
            merged = ListDeduplicator.merge_string_lists(
                self._state.recent_searches, remote, limit
            )
            self._publish(
                recent_searches=await self.cache.set_recent_searches(
                    merged, limit
                )
            )

    async def _load_trending_searches(self) -> None:
        limit = Settings.TRENDING_SEARCH_LIMIT
        cached = await self.cache.get_trending_searches(limit)
        self._publish(trending_searches=cached.items)
        if is_fresh(cached.fetched_at, Settings.TRENDING_CACHE_TTL_MS, now_ms()):
            logger.debug("Trending cache fresh, skipping remote refresh")
            return
        try:
            remote = await self.api.get_trending_searches(limit)
        except Exception as exc:
            logger.warning("Trending refresh failed: %s", exc)
            return
        # Remote is the fresher source, so it leads
        merged = ListDeduplicator.merge_string_lists(
            remote, cached.items, limit
        )
        self._publish(
            trending_searches=await self.cache.set_trending_searches(
                merged, limit
            )
        )

    async def _load_recently_viewed(self) -> None:
        limit = Settings.RECENTLY_VIEWED_LIMIT
        identity = self.identity
        local = await self.cache.get_recently_viewed(identity, limit)
        if identity != self.identity:
            return
        self._publish(recently_viewed=local)
        if identity is None:
            return
        try:
            remote = await self.api.get_recently_viewed_products(limit)
        except Exception as exc:
            logger.warning("Remote recently viewed unavailable: %s", exc)
            return
        if identity != self.identity:
            return
        merged = ListDeduplicator.merge_entities(
            self._state.recently_viewed, remote, limit
        )
        persisted = await self.cache.set_recently_viewed(
            identity, merged, limit
        )
        if identity == self.identity:
            self._publish(recently_viewed=persisted)

    async def record_product_view(self, product: Product) -> None:
        """Product detail opened: move it to the front of recently viewed."""
        identity = self.identity
        viewed = await self.cache.save_recently_viewed(
            identity, product, Settings.RECENTLY_VIEWED_LIMIT
        )
        if identity == self.identity:
            self._publish(recently_viewed=viewed)

    async def set_identity(self, user_id: object | None) -> None:
        """Switch between guest and a signed-in user."""
        self.identity = None if user_id is None else str(user_id)
        self._publish(recently_viewed=[])
        await self._load_recently_viewed()
