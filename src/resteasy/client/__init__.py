"""HTTP client module for resteasy.

Provides :class:`RestClient`, an asynchronous client backed by
:class:`httpx.AsyncClient` that deserializes JSON responses into typed
values and, in preview mode, answers GET requests from a file cache in
the Local storage scope.

Example::

    from resteasy.client import RestClient

    async with RestClient(preview_mode=True) as client:
        items = await client.get("https://api.example.com/items", list[Item])
"""

from resteasy.client.request import compute_cache_key, format_post_parameters
from resteasy.client.rest_client import RestClient

__all__ = ["RestClient", "compute_cache_key", "format_post_parameters"]
