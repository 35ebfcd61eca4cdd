"""Pydantic models and enums shared across resteasy.

**Configuration models** -- serialised as JSON in the user's config
directory: :class:`ClientConfig`, :class:`StorageConfig` and
:class:`GlobalConfig`.

**Runtime models** -- :class:`StorageScope`, the capability-tagged enum of
storage namespaces, and :class:`RequestDescriptor`, the immutable
description of a single HTTP call.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Storage scopes ---


class StorageScope(str, enum.Enum):
    """Independent persistent storage namespaces.

    Every scope owns its own directory of files.  Only :attr:`LOCAL` and
    :attr:`ROAMING` also own a key/value settings table; check
    :attr:`has_settings` before calling a settings operation.
    """

    LOCAL = "local"
    ROAMING = "roaming"
    TEMPORARY = "temporary"

    @property
    def has_settings(self) -> bool:
        """Whether this scope carries a key/value settings table."""
        return self in _SETTINGS_SCOPES


_SETTINGS_SCOPES = frozenset({StorageScope.LOCAL, StorageScope.ROAMING})


# --- Config ---


class ClientConfig(BaseModel):
    """Settings applied to every request made by :class:`~resteasy.client.RestClient`."""

    preview_mode: bool = Field(
        default=False,
        description="Serve GET requests from the local cache when possible",
    )
    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    default_headers: dict[str, str] = Field(
        default_factory=dict,
        description="Headers sent before any caller-supplied headers",
    )
    follow_redirects: bool = Field(default=True, description="Follow HTTP redirects")


class StorageConfig(BaseModel):
    """Where :class:`~resteasy.storage.StorageHelper` keeps its files and settings."""

    root: Optional[Path] = Field(
        default=None,
        description="Put every scope under this directory instead of the XDG defaults",
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/resteasy/config.json``.

    Loaded and saved by :func:`~resteasy.config.load_global_config` and
    :func:`~resteasy.config.save_global_config`.  See
    :func:`~resteasy.config.resolve_config` for the precedence chain.
    """

    client: ClientConfig = Field(default_factory=ClientConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)


# --- Requests ---


class RequestDescriptor(BaseModel):
    """A single outgoing HTTP request.

    ``headers`` keeps the caller's mapping as given; header names are unique
    within it, but may repeat a default header, in which case both values
    are sent.
    """

    model_config = ConfigDict(frozen=True)

    method: str
    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    content: Optional[str] = None
    content_type: Optional[str] = None
