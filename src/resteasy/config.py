"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for resteasy:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.resteasy/`` on macOS and Windows.  See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`, and the per-scope
  :func:`get_scope_dir` / :func:`get_settings_dir`.
* **Global config** -- A single :class:`~resteasy.models.GlobalConfig`
  JSON file storing client and storage defaults.
* **Precedence resolution** -- :func:`resolve_config` merges explicit
  arguments, environment variables, and the global config file.
* **Preview-mode probe** -- :func:`resolve_preview_mode` reads
  ``RESTEASY_PREVIEW_MODE`` for hosts that switch design-time mode through
  the environment.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) so a reader never sees a half-written file.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from resteasy.exceptions import ConfigError
from resteasy.models import GlobalConfig, StorageScope

_APP_NAME = "resteasy"
_CONFIG_FILENAME = "config.json"

PREVIEW_MODE_ENV = "RESTEASY_PREVIEW_MODE"
STORAGE_ROOT_ENV = "RESTEASY_STORAGE_ROOT"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"", "0", "false", "no", "off"})


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(xdg_var: str, xdg_default: tuple[str, ...], fallback: tuple[str, ...]) -> Path:
    """Return (and create) one of the package's base directories.

    XDG platforms use ``$<xdg_var>/resteasy`` or ``~/<xdg_default>/resteasy``;
    everything else uses ``~/.resteasy/<fallback>``.
    """
    if _is_xdg_platform():
        override = os.environ.get(xdg_var, "")
        base = Path(override) if override else Path.home().joinpath(*xdg_default)
        path = base / _APP_NAME
    else:
        path = Path.home().joinpath(f".{_APP_NAME}", *fallback)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """``~/.config/resteasy`` on XDG platforms, ``~/.resteasy`` elsewhere."""
    return _app_dir("XDG_CONFIG_HOME", (".config",), ())


def get_cache_dir() -> Path:
    """``~/.cache/resteasy`` on XDG platforms, ``~/.resteasy/cache`` elsewhere.

    Home of the Temporary scope; the host may purge it at any time.
    """
    return _app_dir("XDG_CACHE_HOME", (".cache",), ("cache",))


def get_data_dir() -> Path:
    """``~/.local/share/resteasy`` on XDG platforms, ``~/.resteasy/data`` elsewhere."""
    return _app_dir("XDG_DATA_HOME", (".local", "share"), ("data",))


_SCOPE_BASES = {
    StorageScope.LOCAL: get_data_dir,
    StorageScope.ROAMING: get_config_dir,
    StorageScope.TEMPORARY: get_cache_dir,
}


def get_scope_dir(scope: StorageScope, root: Optional[Path] = None) -> Path:
    """Return (and create) the directory holding *scope*'s files.

    Local sits under the data directory, Roaming under the config directory
    and Temporary under the cache directory, unless *root* is given, in
    which case every scope is a subdirectory of *root*.
    """
    base = Path(root) if root is not None else _SCOPE_BASES[scope]()
    path = base / scope.value
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_settings_dir(scope: StorageScope, root: Optional[Path] = None) -> Path:
    """Return (and create) the settings-table directory for *scope*.

    Kept outside the scope's file directory so :meth:`list_files` never
    sees diskcache's own files.
    """
    base = Path(root) if root is not None else get_data_dir()
    path = base / "settings" / scope.value
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* in a single rename.

    The text goes to a hidden sibling (``.<name>.*.tmp``), is fsynced, then
    moved over *path* with :func:`os.replace`.  Readers see either the old
    or the new content; with several writers the last rename wins.  The
    sibling is removed if anything fails.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        mode="w",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
        encoding="utf-8",
    )
    try:
        with handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(handle.name, path)
    except BaseException:
        try:
            os.unlink(handle.name)
        except OSError:
            pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~resteasy.models.GlobalConfig`, or a
        default instance when the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def _parse_bool(name: str, value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigError(f"Environment variable {name} must be a boolean, got {value!r}")


def resolve_preview_mode() -> Optional[bool]:
    """Read the preview-mode switch from ``RESTEASY_PREVIEW_MODE``.

    Suitable as the probe callable handed to
    :class:`~resteasy.client.RestClient`.  Returns ``None`` when the
    variable is unset so callers can fall back to their own default.

    Raises:
        ConfigError: If the variable holds something other than a boolean word.
    """
    value = os.environ.get(PREVIEW_MODE_ENV)
    if value is None:
        return None
    return _parse_bool(PREVIEW_MODE_ENV, value)


def resolve_config(
    preview_mode: Optional[bool] = None,
    storage_root: Optional[str | Path] = None,
) -> GlobalConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. Explicit arguments (``preview_mode``, ``storage_root``)
        2. Environment variables (``RESTEASY_PREVIEW_MODE``,
           ``RESTEASY_STORAGE_ROOT``)
        3. User config (``~/.config/resteasy/config.json``)
        4. Defaults

    Returns:
        The effective :class:`~resteasy.models.GlobalConfig`.
    """
    config = load_global_config()

    if preview_mode is not None:
        config.client.preview_mode = preview_mode
    else:
        env_preview = resolve_preview_mode()
        if env_preview is not None:
            config.client.preview_mode = env_preview

    env_root = os.environ.get(STORAGE_ROOT_ENV)
    if storage_root is not None:
        config.storage.root = Path(storage_root)
    elif env_root:
        config.storage.root = Path(env_root)

    return config
