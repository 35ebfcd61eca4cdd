"""Persistent storage across the Local, Roaming and Temporary scopes.

This package provides :class:`StorageHelper`, which offers file
read/write/delete primitives for every scope and a key/value settings
table for the Local and Roaming scopes (kept by
:class:`~resteasy.storage.settings.SettingsStore` in :mod:`diskcache`).

The helper is consumed by :class:`~resteasy.client.RestClient`, which
stores preview-mode GET responses as files in the Local scope.
"""

from resteasy.storage.helper import StorageHelper, check_key
from resteasy.storage.settings import LookupStatus, SettingLookup, SettingsStore

__all__ = ["StorageHelper", "SettingsStore", "SettingLookup", "LookupStatus", "check_key"]
