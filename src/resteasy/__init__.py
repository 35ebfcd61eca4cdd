"""resteasy -- a small typed REST client with a design-time response cache.

The package issues GET/POST requests, deserializes JSON responses into
typed values, and while running in *preview mode* keeps GET responses on
local disk so that design-time rendering works without network access.
A companion storage helper offers settings and file primitives over three
scopes (local, roaming, temporary).

Typical use::

    from resteasy import RestClient, StorageHelper
    from resteasy.config import resolve_config

    config = resolve_config()
    storage = StorageHelper(config.storage)
    async with RestClient(config.client, storage) as client:
        user = await client.get("https://api.example.com/users/1", User)

Modules:
    client: :class:`RestClient` and the cache-key/form helpers.
    storage: :class:`StorageHelper` and the diskcache-backed settings store.
    models: Pydantic models and the :class:`StorageScope` enum.
    config: XDG-aware configuration and directory layout.
    codec: JSON serialization through Pydantic.
    exceptions: Exception hierarchy.
    log: Optional Rich logging setup for host applications.
"""

from resteasy.client import RestClient
from resteasy.models import StorageScope
from resteasy.storage import StorageHelper

__version__ = "0.1.0"

__all__ = ["RestClient", "StorageHelper", "StorageScope", "__version__"]
