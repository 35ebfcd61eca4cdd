"""Tests for the asynchronous REST client."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx
import pytest
from pydantic import BaseModel

from resteasy.client import RestClient, compute_cache_key
from resteasy.exceptions import DeserializationError
from resteasy.models import ClientConfig, StorageScope
from resteasy.storage import StorageHelper


URL = "https://api.example.com/users/1"


class User(BaseModel):
    id: int
    name: str


def _cache_file(storage: StorageHelper, url: str = URL):
    return storage.folder(StorageScope.LOCAL) / compute_cache_key(url)


# ---------------------------------------------------------------------------
# Live GET
# ---------------------------------------------------------------------------


class TestGet:
    def test_deserializes_into_model(self, storage: StorageHelper, json_transport) -> None:
        transport = json_transport({"id": 1, "name": "ada"})
        client = RestClient(storage=storage, preview_mode=False, transport=transport)

        user = asyncio.run(client.get(URL, User))

        assert user == User(id=1, name="ada")
        assert transport.requests[0].method == "GET"
        assert str(transport.requests[0].url) == URL

    def test_default_type_returns_plain_json(self, storage: StorageHelper, json_transport) -> None:
        client = RestClient(storage=storage, transport=json_transport([1, 2, 3]))
        assert asyncio.run(client.get(URL)) == [1, 2, 3]

    def test_body_is_trimmed(self, storage: StorageHelper, make_transport) -> None:
        transport = make_transport(lambda request: httpx.Response(200, text='  {"id": 2, "name": "x"}\n\n'))
        client = RestClient(storage=storage, preview_mode=True, transport=transport)

        async def scenario() -> User:
            user = await client.get(URL, User)
            await storage.flush()
            return user

        assert asyncio.run(scenario()).id == 2
        assert _cache_file(storage).read_text(encoding="utf-8") == '{"id": 2, "name": "x"}'

    def test_malformed_body_raises(self, storage: StorageHelper, make_transport) -> None:
        transport = make_transport(lambda request: httpx.Response(200, text="<html>oops</html>"))
        client = RestClient(storage=storage, transport=transport)

        with pytest.raises(DeserializationError):
            asyncio.run(client.get(URL, User))

    def test_error_status_body_still_deserialized(self, storage: StorageHelper, json_transport) -> None:
        client = RestClient(storage=storage, transport=json_transport({"error": "missing"}, status_code=404))
        assert asyncio.run(client.get(URL)) == {"error": "missing"}

    def test_transport_error_propagates_unmodified(self, storage: StorageHelper, make_transport) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = RestClient(storage=storage, transport=make_transport(handler))
        with pytest.raises(httpx.ConnectError, match="connection refused"):
            asyncio.run(client.get(URL))

    def test_no_retry_on_failure(self, storage: StorageHelper, make_transport) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        transport = make_transport(handler)
        client = RestClient(storage=storage, transport=transport)
        with pytest.raises(httpx.ReadTimeout):
            asyncio.run(client.get(URL))
        assert transport.call_count == 1

    def test_context_manager_reuses_client(self, storage: StorageHelper, json_transport) -> None:
        transport = json_transport({"ok": True})

        async def scenario() -> None:
            async with RestClient(storage=storage, transport=transport) as client:
                inner = client._client
                assert inner is not None
                await client.get(URL)
                await client.get(URL)
                assert client._client is inner
            assert client._client is None

        asyncio.run(scenario())
        assert transport.call_count == 2


# ---------------------------------------------------------------------------
# Headers
# ---------------------------------------------------------------------------


class TestHeaders:
    def test_caller_headers_sent(self, storage: StorageHelper, json_transport) -> None:
        transport = json_transport({})
        client = RestClient(storage=storage, transport=transport)

        asyncio.run(client.get(URL, headers={"Authorization": "Bearer t", "X-Req": "1"}))

        sent = transport.requests[0].headers
        assert sent["Authorization"] == "Bearer t"
        assert sent["X-Req"] == "1"

    def test_duplicate_names_are_appended(self, storage: StorageHelper, json_transport) -> None:
        transport = json_transport({})
        config = ClientConfig(default_headers={"X-Trace": "default"})
        client = RestClient(config, storage=storage, transport=transport)

        asyncio.run(client.get(URL, headers={"X-Trace": "caller"}))

        assert transport.requests[0].headers.get_list("X-Trace") == ["default", "caller"]

    def test_httpx_defaults_kept(self, storage: StorageHelper, json_transport) -> None:
        transport = json_transport({})
        client = RestClient(storage=storage, transport=transport)

        asyncio.run(client.get(URL))

        assert "user-agent" in transport.requests[0].headers

    def test_caller_accept_replaces_httpx_default(self, storage: StorageHelper, json_transport) -> None:
        transport = json_transport({})
        client = RestClient(storage=storage, transport=transport)

        asyncio.run(client.get(URL, headers={"Accept": "application/json", "User-Agent": "demo/1.0"}))

        sent = transport.requests[0].headers
        assert sent.get_list("Accept") == ["application/json"]
        assert sent.get_list("User-Agent") == ["demo/1.0"]

    def test_config_default_replaces_httpx_default(self, storage: StorageHelper, json_transport) -> None:
        transport = json_transport({})
        config = ClientConfig(default_headers={"User-Agent": "host-app"})
        client = RestClient(config, storage=storage, transport=transport)

        asyncio.run(client.get(URL))

        assert transport.requests[0].headers.get_list("User-Agent") == ["host-app"]


# ---------------------------------------------------------------------------
# Preview-mode cache
# ---------------------------------------------------------------------------


class TestPreviewCache:
    def test_second_get_served_from_cache(self, storage: StorageHelper, json_transport) -> None:
        transport = json_transport({"id": 1, "name": "ada"})
        client = RestClient(storage=storage, preview_mode=True, transport=transport)

        async def scenario() -> tuple[User, User]:
            first = await client.get(URL, User)
            await storage.flush()
            second = await client.get(URL, User)
            return first, second

        first, second = asyncio.run(scenario())
        assert first == second
        assert transport.call_count == 1
        assert json.loads(_cache_file(storage).read_text(encoding="utf-8")) == {"id": 1, "name": "ada"}

    def test_cached_entry_answers_without_network(self, storage: StorageHelper, make_transport) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("network must not be used")

        asyncio.run(storage.write_file(compute_cache_key(URL), '{"id": 9, "name": "cached"}'))
        client = RestClient(storage=storage, preview_mode=True, transport=make_transport(handler))

        assert asyncio.run(client.get(URL, User)) == User(id=9, name="cached")

    def test_live_mode_ignores_cache(self, storage: StorageHelper, json_transport) -> None:
        asyncio.run(storage.write_file(compute_cache_key(URL), '{"id": 9, "name": "cached"}'))
        transport = json_transport({"id": 1, "name": "live"})
        client = RestClient(storage=storage, preview_mode=False, transport=transport)

        async def scenario() -> list[User]:
            results = [await client.get(URL, User), await client.get(URL, User)]
            await storage.flush()
            return results

        results = asyncio.run(scenario())
        assert [u.name for u in results] == ["live", "live"]
        assert transport.call_count == 2
        assert _cache_file(storage).read_text(encoding="utf-8") == '{"id": 9, "name": "cached"}'

    def test_live_mode_writes_nothing(self, storage: StorageHelper, json_transport) -> None:
        client = RestClient(storage=storage, preview_mode=False, transport=json_transport({}))

        async def scenario() -> list[str]:
            await client.get(URL)
            await storage.flush()
            return await storage.list_files(StorageScope.LOCAL)

        assert asyncio.run(scenario()) == []

    def test_body_persisted_even_when_deserialization_fails(self, storage: StorageHelper, make_transport) -> None:
        transport = make_transport(lambda request: httpx.Response(200, text="not json"))
        client = RestClient(storage=storage, preview_mode=True, transport=transport)

        async def scenario() -> None:
            try:
                await client.get(URL, User)
            finally:
                await storage.flush()

        with pytest.raises(DeserializationError):
            asyncio.run(scenario())
        assert _cache_file(storage).read_text(encoding="utf-8") == "not json"

    def test_key_ignores_headers(self, storage: StorageHelper, json_transport) -> None:
        transport = json_transport({"who": "first"})
        client = RestClient(storage=storage, preview_mode=True, transport=transport)

        async def scenario() -> Any:
            await client.get(URL, headers={"Accept-Language": "en"})
            await storage.flush()
            return await client.get(URL, headers={"Accept-Language": "fr"})

        assert asyncio.run(scenario()) == {"who": "first"}
        assert transport.call_count == 1

    def test_distinct_urls_cached_separately(self, storage: StorageHelper, make_transport) -> None:
        transport = make_transport(
            lambda request: httpx.Response(200, json={"path": request.url.path})
        )
        client = RestClient(storage=storage, preview_mode=True, transport=transport)

        async def scenario() -> list[str]:
            await client.get("https://api.example.com/a")
            await client.get("https://api.example.com/b")
            await storage.flush()
            return await storage.list_files(StorageScope.LOCAL)

        keys = asyncio.run(scenario())
        assert sorted(keys) == sorted(
            [compute_cache_key("https://api.example.com/a"), compute_cache_key("https://api.example.com/b")]
        )

    def test_concurrent_gets_not_deduplicated(self, storage: StorageHelper, make_transport) -> None:
        bodies = iter(['{"n": 1}', '{"n": 2}'])
        transport = make_transport(lambda request: httpx.Response(200, text=next(bodies)))
        client = RestClient(storage=storage, preview_mode=True, transport=transport)

        async def scenario() -> list[Any]:
            results = await asyncio.gather(client.get(URL), client.get(URL))
            await storage.flush()
            return list(results)

        results = asyncio.run(scenario())
        assert transport.call_count == 2
        assert sorted(r["n"] for r in results) == [1, 2]
        assert _cache_file(storage).read_text(encoding="utf-8") in ('{"n": 1}', '{"n": 2}')

    def test_preview_probe_evaluated_per_call(self, storage: StorageHelper, json_transport) -> None:
        state = {"preview": False}
        transport = json_transport({"v": 1})
        client = RestClient(storage=storage, preview_mode=lambda: state["preview"], transport=transport)

        async def scenario() -> None:
            await client.get(URL)
            await storage.flush()
            assert not _cache_file(storage).exists()

            state["preview"] = True
            await client.get(URL)
            await storage.flush()
            assert _cache_file(storage).exists()

        asyncio.run(scenario())

    def test_probe_returning_none_uses_config(self, storage: StorageHelper) -> None:
        client = RestClient(ClientConfig(preview_mode=True), storage=storage, preview_mode=lambda: None)
        assert client.is_preview_mode is True

    def test_flag_defaults_to_config(self, storage: StorageHelper) -> None:
        assert RestClient(ClientConfig(preview_mode=True), storage=storage).is_preview_mode is True
        assert RestClient(storage=storage).is_preview_mode is False


# ---------------------------------------------------------------------------
# POST
# ---------------------------------------------------------------------------


class TestPost:
    def test_form_parameters(self, storage: StorageHelper, json_transport) -> None:
        transport = json_transport({"created": True})
        client = RestClient(storage=storage, transport=transport)

        result = asyncio.run(client.post(URL, parameters={"a": "1", "b": "2"}))

        request = transport.requests[0]
        assert result == {"created": True}
        assert request.method == "POST"
        assert request.content == b"a=1&b=2"
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"

    def test_no_parameters_sends_empty_body(self, storage: StorageHelper, json_transport) -> None:
        transport = json_transport({})
        client = RestClient(storage=storage, transport=transport)

        asyncio.run(client.post(URL))

        assert transport.requests[0].content == b""
        assert transport.requests[0].headers["Content-Type"] == "application/x-www-form-urlencoded"

    def test_raw_content(self, storage: StorageHelper, json_transport) -> None:
        transport = json_transport({"id": 5, "name": "new"})
        client = RestClient(storage=storage, transport=transport)

        user = asyncio.run(client.post_content(URL, User, headers={"X-Req": "1"}, content="name=new"))

        assert user == User(id=5, name="new")
        assert transport.requests[0].content == b"name=new"
        assert transport.requests[0].headers["X-Req"] == "1"

    def test_post_never_uses_cache(self, storage: StorageHelper, json_transport) -> None:
        asyncio.run(storage.write_file(compute_cache_key(URL), '{"source": "cache"}'))
        transport = json_transport({"source": "live"})
        client = RestClient(storage=storage, preview_mode=True, transport=transport)

        async def scenario() -> list[Any]:
            results = [await client.post(URL), await client.post(URL, parameters={"x": "1"})]
            await storage.flush()
            return results

        results = asyncio.run(scenario())
        assert results == [{"source": "live"}, {"source": "live"}]
        assert transport.call_count == 2
        assert asyncio.run(storage.list_files(StorageScope.LOCAL)) == [compute_cache_key(URL)]
        assert _cache_file(storage).read_text(encoding="utf-8") == '{"source": "cache"}'

    def test_post_malformed_raises(self, storage: StorageHelper, make_transport) -> None:
        transport = make_transport(lambda request: httpx.Response(200, text=""))
        client = RestClient(storage=storage, transport=transport)

        with pytest.raises(DeserializationError):
            asyncio.run(client.post(URL, User))
