"""Scoped file and settings storage.

:class:`StorageHelper` is the single entry point for persistent storage.
Settings operations are synchronous and delegate to
:class:`~resteasy.storage.settings.SettingsStore`.  File operations are
coroutines that run blocking filesystem calls through
:func:`asyncio.to_thread`.

Every file is named by its key inside the scope's directory (see
:func:`~resteasy.config.get_scope_dir`).  Writes replace the whole file
atomically, so concurrent writers to the same key never leave a truncated
file behind; the last writer wins.
"""

from __future__ import annotations

import asyncio
import logging
import os
import threading
from collections.abc import Coroutine
from pathlib import Path
from typing import Any, Optional, TypeVar

from resteasy.codec import deserialize, serialize
from resteasy.config import atomic_write, get_scope_dir
from resteasy.exceptions import InvalidKeyError, NotFoundError
from resteasy.models import StorageConfig, StorageScope
from resteasy.storage.settings import SettingsStore, as_scope

logger = logging.getLogger(__name__)

T = TypeVar("T")

Location = StorageScope | str | Path


def check_key(key: str) -> str:
    """Return *key* unchanged if it is usable as a plain file name.

    Names starting with ``.`` are reserved for in-progress atomic writes.

    Raises:
        InvalidKeyError: If *key* is empty, hidden, or contains a path
            separator or NUL byte.
    """
    if not key or key.startswith("."):
        raise InvalidKeyError(f"Invalid storage key: {key!r}")
    separators = {"/", "\\", "\x00", os.sep}
    if os.altsep:
        separators.add(os.altsep)
    if any(sep in key for sep in separators):
        raise InvalidKeyError(f"Invalid storage key: {key!r}")
    return key


class StorageHelper:
    """Settings and file storage across the Local, Roaming and Temporary scopes.

    Args:
        config: Storage configuration.  With ``config.root`` unset each
            scope lives in its XDG default directory.

    Example::

        storage = StorageHelper()
        storage.set_setting("theme", "dark")
        await storage.write_file("notes.txt", "hello", StorageScope.ROAMING)
        text = await storage.read_file("notes.txt", StorageScope.ROAMING)
    """

    def __init__(self, config: Optional[StorageConfig] = None) -> None:
        self._config = config or StorageConfig()
        self._settings = SettingsStore(self._config.root)
        self._background: set[asyncio.Task[Any]] = set()
        self._threads: set[threading.Thread] = set()
        self._threads_lock = threading.Lock()

    def __enter__(self) -> StorageHelper:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the settings tables.  Pending background tasks are not awaited."""
        self._settings.close()

    # ------------------------------------------------------------------ #
    # Settings
    # ------------------------------------------------------------------ #

    def setting_exists(self, key: str, scope: StorageScope | str = StorageScope.LOCAL) -> bool:
        """Return whether a setting is stored.

        Raises:
            UnsupportedScopeError: If *scope* has no settings table.
        """
        return self._settings.exists(key, scope)

    def get_setting(
        self,
        key: str,
        default: Any = None,
        scope: StorageScope | str = StorageScope.LOCAL,
        type_: Any = None,
    ) -> Any:
        """Return a stored setting, or *default*.

        *default* is returned when the key is absent, the scope has no
        settings table, the stored value fails strict validation against
        *type_*, or the read raises for any other reason.  This method
        never raises.
        """
        return self._settings.get(key, default, scope, type_)

    def set_setting(
        self, key: str, value: Any, scope: StorageScope | str = StorageScope.LOCAL
    ) -> None:
        """Store a setting, overwriting any previous value.

        Raises:
            UnsupportedScopeError: If *scope* has no settings table.
        """
        self._settings.set(key, value, scope)

    def delete_setting(self, key: str, scope: StorageScope | str = StorageScope.LOCAL) -> None:
        """Remove a setting; absent keys are ignored.

        Raises:
            UnsupportedScopeError: If *scope* has no settings table.
        """
        self._settings.delete(key, scope)

    # ------------------------------------------------------------------ #
    # Files
    # ------------------------------------------------------------------ #

    def folder(self, scope: StorageScope | str = StorageScope.LOCAL) -> Path:
        """Return the directory that holds *scope*'s files."""
        return get_scope_dir(as_scope(scope), self._config.root)

    def _resolve(self, location: Location) -> Path:
        if isinstance(location, Path):
            return location
        return self.folder(location)

    def _get_if_file_exists(self, key: str, location: Location) -> Optional[Path]:
        """Return the file's path, or ``None`` when it does not exist."""
        path = self._resolve(location) / check_key(key)
        if not path.is_file():
            logger.debug("File %r not found in %s", key, path.parent)
            return None
        return path

    def _read_text(self, key: str, location: Location) -> Optional[str]:
        path = self._get_if_file_exists(key, location)
        if path is None:
            return None
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            # deleted between the lookup and the read
            return None

    async def file_exists(self, key: str, location: Location = StorageScope.LOCAL) -> bool:
        """Return whether *key* exists in a scope or an explicit directory.

        Args:
            key: File name.
            location: A :class:`StorageScope` (or its value) or a
                :class:`~pathlib.Path` to a directory.
        """
        path = await asyncio.to_thread(self._get_if_file_exists, key, location)
        return path is not None

    async def read_file(self, key: str, scope: StorageScope | str = StorageScope.LOCAL) -> str:
        """Return a file's text.

        Raises:
            NotFoundError: If the file does not exist.
        """
        text = await asyncio.to_thread(self._read_text, key, scope)
        if text is None:
            raise NotFoundError(key, f"scope '{as_scope(scope).value}'")
        return text

    async def read_file_as(
        self,
        key: str,
        type_: type[T] | Any = Any,
        scope: StorageScope | str = StorageScope.LOCAL,
        default: Optional[T] = None,
    ) -> T:
        """Return a file's JSON content validated as *type_*, or *default* if absent.

        Raises:
            DeserializationError: If the file exists but does not hold a
                valid *type_*.
        """
        text = await asyncio.to_thread(self._read_text, key, scope)
        if text is None:
            return default  # type: ignore[return-value]
        return deserialize(text, type_)

    async def write_file(
        self, key: str, body: str, scope: StorageScope | str = StorageScope.LOCAL
    ) -> bool:
        """Create or replace a file with *body*.

        Returns:
            Whether the file exists after the write.
        """
        path = self.folder(scope) / check_key(key)
        await asyncio.to_thread(atomic_write, path, body)
        return await self.file_exists(key, scope)

    async def write_object(
        self, key: str, value: Any, scope: StorageScope | str = StorageScope.LOCAL
    ) -> bool:
        """Serialize *value* as JSON and write it like :meth:`write_file`."""
        return await self.write_file(key, serialize(value), scope)

    async def delete_file(self, key: str, scope: StorageScope | str = StorageScope.LOCAL) -> bool:
        """Delete a file if present.

        Returns:
            ``True`` when the file is absent afterwards, including when it
            never existed.
        """
        path = await asyncio.to_thread(self._get_if_file_exists, key, scope)
        if path is not None:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        return not await self.file_exists(key, scope)

    async def list_files(self, scope: StorageScope | str = StorageScope.LOCAL) -> list[str]:
        """Return the sorted keys of every file in *scope*."""
        folder = self.folder(scope)

        def _scan() -> list[str]:
            return sorted(
                p.name for p in folder.iterdir() if p.is_file() and not p.name.startswith(".")
            )

        return await asyncio.to_thread(_scan)

    # ------------------------------------------------------------------ #
    # Fire-and-forget
    # ------------------------------------------------------------------ #

    def write_file_fire_and_forget(
        self, key: str, body: str, scope: StorageScope | str = StorageScope.LOCAL
    ) -> None:
        """Schedule :meth:`write_file` in the background.

        Inside a running event loop the write becomes a task on that loop;
        from synchronous code it runs on a daemon thread.  Failures are
        logged at debug level and never reach the caller.  The write is lost
        if the process exits first unless the host awaits :meth:`flush`.
        """
        self._spawn(self.write_file(key, body, scope), f"write of {key!r}")

    def write_object_fire_and_forget(
        self, key: str, value: Any, scope: StorageScope | str = StorageScope.LOCAL
    ) -> None:
        """Schedule :meth:`write_object` in the background."""
        self._spawn(self.write_object(key, value, scope), f"write of {key!r}")

    def delete_file_fire_and_forget(
        self, key: str, scope: StorageScope | str = StorageScope.LOCAL
    ) -> None:
        """Schedule :meth:`delete_file` in the background."""
        self._spawn(self.delete_file(key, scope), f"delete of {key!r}")

    async def flush(self) -> None:
        """Wait until every background write and delete has finished.

        Covers both loop tasks and daemon threads started from synchronous
        code; sync hosts can call ``asyncio.run(storage.flush())``.
        """
        while self._background or self._threads:
            if self._background:
                await asyncio.gather(*list(self._background), return_exceptions=True)
            with self._threads_lock:
                threads = list(self._threads)
            for thread in threads:
                await asyncio.to_thread(thread.join)
            with self._threads_lock:
                self._threads.difference_update(threads)

    def _spawn(self, coro: Coroutine[Any, Any, Any], description: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._spawn_thread(coro, description)
            return
        task = loop.create_task(coro)
        self._background.add(task)

        def _done(finished: asyncio.Task[Any]) -> None:
            self._background.discard(finished)
            if finished.cancelled():
                return
            exc = finished.exception()
            if exc is not None:
                logger.debug("Background %s failed: %s", description, exc)

        task.add_done_callback(_done)

    def _spawn_thread(self, coro: Coroutine[Any, Any, Any], description: str) -> None:
        """Run *coro* on its own event loop in a daemon thread."""

        def _run() -> None:
            try:
                asyncio.run(coro)
            except Exception as exc:  # detached: nobody to report to
                logger.debug("Background %s failed: %s", description, exc)

        thread = threading.Thread(target=_run, name=f"resteasy-{description}", daemon=True)
        with self._threads_lock:
            self._threads.add(thread)
        thread.start()
