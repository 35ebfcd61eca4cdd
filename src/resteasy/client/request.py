"""Request helpers -- cache keys and form bodies.

:func:`compute_cache_key` names the file a preview-mode GET response is
stored under.  The key depends on the URL alone: two requests to the same
URL with different headers share one cached entry.  Changing that would
orphan every entry already on disk, so the behaviour is kept as is.
"""

from __future__ import annotations

import hashlib
from collections.abc import Mapping

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def compute_cache_key(uri: str) -> str:
    """Return the lowercase hex MD5 digest of *uri* (UTF-8).

    MD5 is used for key distribution only, not for security.
    """
    return hashlib.md5(uri.encode("utf-8"), usedforsecurity=False).hexdigest()


def format_post_parameters(parameters: Mapping[str, str]) -> str:
    """Join *parameters* as ``key1=value1&key2=value2`` in iteration order.

    Keys and values are inserted verbatim; callers escape them if needed.
    An empty mapping yields ``""``.
    """
    return "&".join(f"{key}={value}" for key, value in parameters.items())
