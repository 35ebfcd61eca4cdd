"""Asynchronous REST client with a design-time response cache.

:class:`RestClient` sends GET and POST requests through
:class:`httpx.AsyncClient` and deserializes the JSON body into the type
the caller asks for.  While the client is in *preview mode* (a
design-time context with no live network), GET responses are stored in
the Local storage scope under :func:`~resteasy.client.request.compute_cache_key`
and later GETs for the same URL are answered from disk without touching
the network.  POST requests are never cached.

No retries are attempted and status codes are not inspected: a 404 body
is deserialized like any other.  Transport failures surface as the
:mod:`httpx` exception that caused them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, Optional, TypeVar, Union

import httpx

from resteasy.client.request import FORM_CONTENT_TYPE, compute_cache_key, format_post_parameters
from resteasy.codec import deserialize
from resteasy.models import ClientConfig, RequestDescriptor, StorageScope
from resteasy.storage import StorageHelper

logger = logging.getLogger(__name__)

T = TypeVar("T")

PreviewFlag = Union[bool, Callable[[], Optional[bool]]]


class RestClient:
    """Typed GET/POST client with a preview-mode GET cache.

    Can be used as an async context manager, in which case one
    :class:`httpx.AsyncClient` serves every request until exit.  Outside
    a context manager each call opens and closes its own client.

    Args:
        config: Client settings (timeout, default headers, redirects and
            the fallback preview flag).
        storage: Storage used for cached GET bodies.  Defaults to a
            :class:`~resteasy.storage.StorageHelper` on the XDG directories.
        preview_mode: ``True``/``False``, or a zero-argument probe
            evaluated on every call.  A probe returning ``None``, or an
            omitted flag, falls back to ``config.preview_mode``.
        transport: Optional :mod:`httpx` transport, e.g.
            :class:`httpx.MockTransport` in tests.

    Example::

        async with RestClient(preview_mode=True) as client:
            user = await client.get("https://api.example.com/users/1", User)
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        storage: Optional[StorageHelper] = None,
        preview_mode: Optional[PreviewFlag] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config or ClientConfig()
        self._storage = storage or StorageHelper()
        self._preview_mode = preview_mode
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> RestClient:
        self._client = self._new_client()
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Properties
    # ------------------------------------------------------------------ #

    @property
    def is_preview_mode(self) -> bool:
        """Whether GET responses are currently served from and saved to the cache."""
        flag = self._preview_mode
        if callable(flag):
            flag = flag()
        if flag is None:
            return self._config.preview_mode
        return bool(flag)

    @property
    def storage(self) -> StorageHelper:
        """The storage helper holding cached GET bodies."""
        return self._storage

    @staticmethod
    def cache_key(uri: str) -> str:
        """Return the cache file name used for GET requests to *uri*."""
        return compute_cache_key(uri)

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def get(
        self,
        uri: str,
        type_: type[T] | Any = Any,
        headers: Optional[Mapping[str, str]] = None,
    ) -> T:
        """Send a GET request and deserialize the body as *type_*.

        In preview mode a cached body for *uri* is returned without any
        network access.  On a miss the live body is fetched, trimmed, and
        saved in the background before being deserialized; a failed save
        is never reported.

        Args:
            uri: Absolute request URL.
            type_: Target type for the JSON body.
            headers: Extra headers appended after the default headers.

        Raises:
            DeserializationError: If the body is not valid JSON for *type_*.
            httpx.HTTPError: On transport failures.
        """
        key = compute_cache_key(uri)
        preview = self.is_preview_mode

        if preview and await self._storage.file_exists(key, StorageScope.LOCAL):
            logger.debug("Cache hit for %s (%s)", uri, key)
            cached = await self._storage.read_file(key, StorageScope.LOCAL)
            return deserialize(cached, type_)

        request = RequestDescriptor(method="GET", url=uri, headers=dict(headers or {}))
        body = (await self._fetch(request)).strip()

        if preview:
            logger.debug("Cache miss for %s, saving as %s", uri, key)
            self._storage.write_file_fire_and_forget(key, body, StorageScope.LOCAL)

        return deserialize(body, type_)

    async def post(
        self,
        uri: str,
        type_: type[T] | Any = Any,
        headers: Optional[Mapping[str, str]] = None,
        parameters: Optional[Mapping[str, str]] = None,
    ) -> T:
        """Send a form POST built from *parameters*.

        *parameters* are joined by :func:`format_post_parameters` without
        escaping.  With no parameters an empty body is sent.
        """
        content = format_post_parameters(parameters) if parameters is not None else None
        return await self.post_content(uri, type_, headers, content)

    async def post_content(
        self,
        uri: str,
        type_: type[T] | Any = Any,
        headers: Optional[Mapping[str, str]] = None,
        content: Optional[str] = None,
    ) -> T:
        """Send a POST with a raw form-encoded body and deserialize the response.

        POST responses never touch the cache, whatever the preview mode.

        Raises:
            DeserializationError: If the body is not valid JSON for *type_*.
            httpx.HTTPError: On transport failures.
        """
        request = RequestDescriptor(
            method="POST",
            url=uri,
            headers=dict(headers or {}),
            content=content or "",
            content_type=FORM_CONTENT_TYPE,
        )
        body = await self._fetch(request)
        return deserialize(body, type_)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers=self._config.default_headers,
            timeout=self._config.timeout,
            follow_redirects=self._config.follow_redirects,
            transport=self._transport,
        )

    def _build_request(self, client: httpx.AsyncClient, descriptor: RequestDescriptor) -> httpx.Request:
        """Build the request with caller headers appended, never overriding.

        httpx's own defaults (``Accept``, ``User-Agent``, ...) are only
        added for names neither the config nor the caller supplied.
        """
        pairs = list(self._config.default_headers.items())
        pairs.extend(descriptor.headers.items())
        if descriptor.content_type is not None:
            pairs.append(("Content-Type", descriptor.content_type))

        supplied = {name.lower() for name, _ in pairs}
        fallbacks = [
            (name, value)
            for name, value in client.headers.multi_items()
            if name.lower() not in supplied
        ]
        pairs = fallbacks + pairs

        content = descriptor.content.encode("utf-8") if descriptor.content is not None else None
        return httpx.Request(
            descriptor.method,
            descriptor.url,
            headers=pairs,
            content=content,
            extensions={"timeout": client.timeout.as_dict()},
        )

    async def _fetch(self, descriptor: RequestDescriptor) -> str:
        """Send *descriptor* and return the full response text."""
        if self._client is not None:
            response = await self._client.send(self._build_request(self._client, descriptor))
            return response.text

        async with self._new_client() as client:
            response = await client.send(self._build_request(client, descriptor))
            return response.text
