# src/services/api_client.py

"""Async JSON client for the storefront search endpoints."""

import asyncio
import logging
from types import TracebackType
from typing import Any, cast

from curl_cffi.requests import AsyncSession

from src.config.settings import Settings
from src.models.entities import Brand, Category, Product

logger = logging.getLogger("storefront_search.api")


class ApiError(Exception):
    """A storefront API call failed (HTTP error or transport failure)."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(f"API Error: {status} - {message}")
        self.status = status
        self.message = message


def _unwrap_list(payload: Any) -> list[Any]:
    """Accept either a bare JSON list or a ``{"data": [...]}`` envelope."""
    if isinstance(payload, dict):
        payload = cast(dict[str, Any], payload).get("data")
    if isinstance(payload, list):
        return cast(list[Any], payload)
    return []


def _strings(rows: list[Any]) -> list[str]:
    """Coerce history/trending rows (plain strings or ``{"query": ...}``)."""
    result: list[str] = []
    for row in rows:
        if isinstance(row, dict):
            row = row.get("query") or row.get("term") or ""
        text = str(row).strip()
        if text:
            result.append(text)
    return result


class StorefrontAPI:
    """Thin async wrapper over the storefront REST API.

    Only idempotent GETs are retried; writes are attempted once because
    callers treat them as best-effort.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        session: AsyncSession | None = None,
    ) -> None:
        self.base_url = (base_url or Settings.API_BASE_URL).rstrip("/")
        self._token = token if token is not None else Settings.API_TOKEN
        self.session = session or AsyncSession(
            impersonate=Settings.IMPERSONATE_BROWSER
        )
        self._timeout = Settings.REQUEST_TIMEOUT

    async def __aenter__(self) -> "StorefrontAPI":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        await self.session.close()

    # ── Transport ────────────────────────────────────────

    def _headers(self) -> dict[str, str]:
        headers = dict(Settings.DEFAULT_HEADERS)
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        attempts = Settings.MAX_RETRIES if method == "GET" else 1
        last_exc: Exception | None = None

        for attempt in range(attempts):
            try:
                resp = await self.session.request(
                    method,
                    url,
                    params=params,
                    json=payload,
                    headers=self._headers(),
                    timeout=self._timeout,
                )
            except Exception as exc:
                last_exc = exc
                logger.warning(
                    "%s %s transport error on attempt %d: %s",
                    method,
                    path,
                    attempt + 1,
                    exc,
                )
                if attempt + 1 < attempts:
                    await asyncio.sleep(
                        Settings.RETRY_BACKOFF * (attempt + 1)
                    )
                continue

            if not 200 <= resp.status_code < 300:
                body = resp.text[:200]
                logger.warning(
                    "%s %s returned HTTP %d", method, path, resp.status_code,
                )
                raise ApiError(resp.status_code, body)
            if resp.status_code == 204 or not resp.content:
                return None
            try:
                return resp.json()
            except ValueError as exc:
                raise ApiError(resp.status_code, f"invalid JSON: {exc}") from exc

        raise ApiError(0, str(last_exc))

    # ── Catalogue ────────────────────────────────────────

    async def search_products(
        self, query: str, page: int = 1, limit: int = 20,
    ) -> list[Product]:
        data = await self._request(
            "GET",
            "/products",
            params={"search": query, "page": page, "limit": limit},
        )
        products = [
            Product.from_dict(row)
            for row in _unwrap_list(data)
            if isinstance(row, dict)
        ]
        found = [p for p in products if p is not None]
        logger.debug(
            "search_products('%s', page=%d) -> %d", query, page, len(found),
        )
        return found

    async def list_brands(self) -> list[Brand]:
        data = await self._request("GET", "/brands")
        brands = [
            Brand.from_dict(row)
            for row in _unwrap_list(data)
            if isinstance(row, dict)
        ]
        return [b for b in brands if b is not None]

    async def list_categories(self) -> list[Category]:
        data = await self._request("GET", "/categories")
        categories = [
            Category.from_dict(row)
            for row in _unwrap_list(data)
            if isinstance(row, dict)
        ]
        return [c for c in categories if c is not None]

    # ── Search history & discovery ───────────────────────

    async def get_search_history(self, limit: int = 10) -> list[str]:
        data = await self._request(
            "GET", "/search/history", params={"limit": limit},
        )
        return _strings(_unwrap_list(data))[:limit]

    async def save_search_query(self, query: str) -> None:
        await self._request(
            "POST", "/search/history", payload={"query": query},
        )

    async def clear_search_history(self) -> None:
        await self._request("DELETE", "/search/history")

    async def get_trending_searches(self, limit: int = 10) -> list[str]:
        data = await self._request(
            "GET", "/search/trending", params={"limit": limit},
        )
        return _strings(_unwrap_list(data))[:limit]

    async def get_recently_viewed_products(
        self, limit: int = 10,
    ) -> list[Product]:
        data = await self._request(
            "GET", "/products/recently-viewed", params={"limit": limit},
        )
        products = [
            Product.from_dict(row)
            for row in _unwrap_list(data)
            if isinstance(row, dict)
        ]
        return [p for p in products if p is not None][:limit]
