"""Scoped key/value settings backed by :mod:`diskcache`.

Each settings-capable scope (see :attr:`~resteasy.models.StorageScope.has_settings`)
owns one :class:`diskcache.Cache` directory.  Values are anything
:mod:`pickle` can handle; ``str``, ``int`` and ``bool`` come back with
their exact type.

Reads go through :meth:`SettingsStore.lookup`, which reports *absent* and
*failed* separately.  :meth:`SettingsStore.get` then collapses both to
the caller's default, which is the public contract.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import diskcache

from resteasy.codec import get_adapter
from resteasy.config import get_settings_dir
from resteasy.exceptions import UnsupportedScopeError
from resteasy.models import StorageScope

logger = logging.getLogger(__name__)

_MISSING = object()


def as_scope(value: StorageScope | str) -> StorageScope:
    """Coerce *value* to a :class:`StorageScope`.

    Raises:
        UnsupportedScopeError: If *value* names no known scope.
    """
    if isinstance(value, StorageScope):
        return value
    try:
        return StorageScope(value)
    except ValueError:
        raise UnsupportedScopeError(f"Unknown storage scope: {value!r}") from None


class LookupStatus(enum.Enum):
    FOUND = "found"
    ABSENT = "absent"
    FAILED = "failed"


@dataclass(frozen=True)
class SettingLookup:
    """Outcome of a single settings read.

    Attributes:
        status: Whether the key was found, absent, or the read failed.
        value: The stored value when ``status`` is ``FOUND``.
        error: The exception raised by the read when ``status`` is ``FAILED``.
    """

    status: LookupStatus
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND


class SettingsStore:
    """Settings tables for the Local and Roaming scopes.

    Tables are opened lazily on first use and stay open until
    :meth:`close`.

    Args:
        root: Optional directory overriding the XDG data directory.
    """

    def __init__(self, root: Optional[Path] = None) -> None:
        self._root = root
        self._tables: dict[StorageScope, diskcache.Cache] = {}

    def _table(self, scope: StorageScope | str) -> diskcache.Cache:
        scope = as_scope(scope)
        if not scope.has_settings:
            raise UnsupportedScopeError(f"Scope '{scope.value}' has no settings table")
        table = self._tables.get(scope)
        if table is None:
            table = diskcache.Cache(str(get_settings_dir(scope, self._root)))
            self._tables[scope] = table
        return table

    def exists(self, key: str, scope: StorageScope | str = StorageScope.LOCAL) -> bool:
        """Return whether *key* is stored in *scope*.

        Raises:
            UnsupportedScopeError: If *scope* has no settings table.
        """
        return key in self._table(scope)

    def lookup(
        self,
        key: str,
        scope: StorageScope | str = StorageScope.LOCAL,
        type_: Any = None,
    ) -> SettingLookup:
        """Read *key* without raising.

        When *type_* is given the stored value must strictly validate
        against it; a mismatch is reported as ``FAILED``.
        """
        try:
            value = self._table(scope).get(key, default=_MISSING)
            if value is _MISSING:
                return SettingLookup(LookupStatus.ABSENT)
            if type_ is not None:
                value = get_adapter(type_).validate_python(value, strict=True)
        except Exception as exc:  # every read failure maps to FAILED
            return SettingLookup(LookupStatus.FAILED, error=exc)
        return SettingLookup(LookupStatus.FOUND, value=value)

    def get(
        self,
        key: str,
        default: Any = None,
        scope: StorageScope | str = StorageScope.LOCAL,
        type_: Any = None,
    ) -> Any:
        """Return the stored value, or *default* when absent or unreadable."""
        result = self.lookup(key, scope, type_)
        if result.found:
            return result.value
        if result.status is LookupStatus.FAILED:
            logger.debug("Setting %r unreadable in %s: %s", key, scope, result.error)
        return default

    def set(self, key: str, value: Any, scope: StorageScope | str = StorageScope.LOCAL) -> None:
        """Store *value* under *key*, replacing any previous value."""
        self._table(scope).set(key, value)

    def delete(self, key: str, scope: StorageScope | str = StorageScope.LOCAL) -> None:
        """Remove *key*; a missing key is not an error."""
        self._table(scope).delete(key)

    def close(self) -> None:
        """Close every open settings table."""
        for table in self._tables.values():
            table.close()
        self._tables.clear()
