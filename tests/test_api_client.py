# tests/test_api_client.py

"""Tests for StorefrontAPI request handling and payload parsing."""

import json
import unittest
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

from src.config.settings import Settings
from src.services.api_client import ApiError, StorefrontAPI


def _response(status: int = 200, payload: Any = None) -> MagicMock:
    """Build a fake curl_cffi response."""
    body = b"" if payload is None else json.dumps(payload).encode()
    resp = MagicMock()
    resp.status_code = status
    resp.content = body
    resp.text = body.decode()
    resp.json.side_effect = lambda: json.loads(body)
    return resp


class TestStorefrontAPI(unittest.IsolatedAsyncioTestCase):
    """StorefrontAPI against a mocked AsyncSession."""

    def setUp(self) -> None:
        self.session = MagicMock()
        self.session.request = AsyncMock()
        self.session.close = AsyncMock()
        self.api = StorefrontAPI(
            base_url="https://shop.test/api/",
            token="secret",
            session=self.session,
        )

    def _last_call(self) -> tuple[tuple[Any, ...], dict[str, Any]]:
        call = self.session.request.await_args
        return call.args, call.kwargs

    async def test_search_products_params_and_parsing(self) -> None:
        self.session.request.return_value = _response(
            payload={
                "data": [
                    {"id": 1, "name": "Shoe", "brand": {"name": "Acme"}},
                    {"name": "missing id"},
                    {"id": "2", "name_en": "Boot", "price": "19.90"},
                ]
            }
        )
        products = await self.api.search_products("shoe", 2, 50)
        args, kwargs = self._last_call()
        self.assertEqual(args, ("GET", "https://shop.test/api/products"))
        self.assertEqual(
            kwargs["params"], {"search": "shoe", "page": 2, "limit": 50}
        )
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer secret")
        self.assertEqual([p.id for p in products], [1, 2])
        self.assertEqual(products[0].brand_name, "Acme")
        self.assertEqual(products[1].display_name, "Boot")
        self.assertEqual(products[1].price, 19.9)

    async def test_bare_list_payload(self) -> None:
        self.session.request.return_value = _response(
            payload=[{"id": 3, "name": "Nike", "name_en": "Nike"}]
        )
        brands = await self.api.list_brands()
        self.assertEqual([b.id for b in brands], [3])

    async def test_categories(self) -> None:
        self.session.request.return_value = _response(
            payload=[{"id": 5, "name": "Bags", "parent_id": 1}]
        )
        categories = await self.api.list_categories()
        self.assertEqual(categories[0].parent_id, 1)

    async def test_history_strings_and_objects(self) -> None:
        self.session.request.return_value = _response(
            payload={"data": ["shoes", {"query": "bags"}, "  ", {"x": 1}]}
        )
        history = await self.api.get_search_history(10)
        self.assertEqual(history, ["shoes", "bags"])

    async def test_trending_limit(self) -> None:
        self.session.request.return_value = _response(
            payload=["a", "b", "c"]
        )
        self.assertEqual(await self.api.get_trending_searches(2), ["a", "b"])

    async def test_save_query_posts_json(self) -> None:
        self.session.request.return_value = _response(status=204)
        await self.api.save_search_query("shoes")
        args, kwargs = self._last_call()
        self.assertEqual(args[0], "POST")
        self.assertEqual(kwargs["json"], {"query": "shoes"})

    async def test_clear_history_deletes(self) -> None:
        self.session.request.return_value = _response(status=204)
        await self.api.clear_search_history()
        args, _kwargs = self._last_call()
        self.assertEqual(args, ("DELETE", "https://shop.test/api/search/history"))

    async def test_http_error_raises(self) -> None:
        self.session.request.return_value = _response(
            status=500, payload={"error": "boom"}
        )
        with self.assertRaises(ApiError) as ctx:
            await self.api.list_brands()
        self.assertEqual(ctx.exception.status, 500)
        self.assertEqual(self.session.request.await_count, 1)

    @patch("src.services.api_client.asyncio.sleep", new_callable=AsyncMock)
    async def test_get_retries_transport_errors(
        self, mock_sleep: AsyncMock,
    ) -> None:
        self.session.request.side_effect = [
            ConnectionError("reset"),
            _response(payload=[{"id": 1, "name": "Shoe"}]),
        ]
        products = await self.api.get_recently_viewed_products(5)
        self.assertEqual([p.id for p in products], [1])
        self.assertEqual(self.session.request.await_count, 2)
        mock_sleep.assert_awaited_once()

    @patch("src.services.api_client.asyncio.sleep", new_callable=AsyncMock)
    async def test_get_gives_up_after_max_retries(
        self, _mock_sleep: AsyncMock,
    ) -> None:
        self.session.request.side_effect = ConnectionError("down")
        with self.assertRaises(ApiError) as ctx:
            await self.api.list_categories()
        self.assertEqual(ctx.exception.status, 0)
        self.assertEqual(
            self.session.request.await_count, Settings.MAX_RETRIES
        )

    async def test_post_not_retried(self) -> None:
        self.session.request.side_effect = ConnectionError("down")
        with self.assertRaises(ApiError):
            await self.api.save_search_query("x")
        self.assertEqual(self.session.request.await_count, 1)

    async def test_no_token_no_auth_header(self) -> None:
        api = StorefrontAPI(
            base_url="https://shop.test", token="", session=self.session
        )
        self.session.request.return_value = _response(payload=[])
        await api.list_brands()
        _args, kwargs = self._last_call()
        self.assertNotIn("Authorization", kwargs["headers"])

    async def test_async_context_closes_session(self) -> None:
        async with self.api:
            pass
        self.session.close.assert_awaited_once()


if __name__ == "__main__":
    unittest.main()
