"""Configuration: XDG cache paths, environment variables and credential sources.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.powerschool/`` on macOS and Windows.  See :func:`get_cache_dir`.
* **Environment** -- :func:`load_credentials` builds
  :class:`~powerschool_api.models.Credentials` from explicit arguments layered
  over ``POWERSCHOOL_*`` environment variables.
* **Credential sources** -- :func:`resolve_credential` reads secrets given as
  ``env:VAR``, ``file:/path`` or a literal value.

Environment variables::

    POWERSCHOOL_ADDRESS        https://district.powerschool.com
    POWERSCHOOL_CLIENT_ID      client id (or env:/file: source)
    POWERSCHOOL_CLIENT_SECRET  client secret (or env:/file: source)
    POWERSCHOOL_CACHE_KEY      token cache key (default ``powerschool_token``)
"""

from __future__ import annotations

import os
import platform
from pathlib import Path
from typing import Optional

from powerschool_api.exceptions import ConfigError, MissingServerAddressError
from powerschool_api.models import Credentials

_APP_NAME = "powerschool"

ENV_ADDRESS = "POWERSCHOOL_ADDRESS"
ENV_CLIENT_ID = "POWERSCHOOL_CLIENT_ID"
ENV_CLIENT_SECRET = "POWERSCHOOL_CLIENT_SECRET"
ENV_CACHE_KEY = "POWERSCHOOL_CACHE_KEY"

DEFAULT_CACHE_KEY = "powerschool_token"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds the on-disk token cache.  Its contents can be deleted at any time;
    the next request simply re-authenticates.

    On Linux/BSD: ``$XDG_CACHE_HOME/powerschool/`` (default
    ``~/.cache/powerschool/``).  On macOS/Windows: ``~/.powerschool/cache/``.

    Returns:
        Absolute path to the cache directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CACHE_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".cache"
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - anything else is returned unchanged

    Raises:
        ConfigError: If the variable is unset or the file cannot be read.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(f"Environment variable '{var_name}' is not set")
        return value

    if source.startswith("file:"):
        file_path = Path(source[5:]).expanduser()
        try:
            return file_path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {file_path}: {exc}") from exc

    return source


def _setting(explicit: Optional[str], env_var: str) -> Optional[str]:
    """Pick the explicit value, else the environment variable, resolving sources."""
    value = explicit if explicit is not None else os.environ.get(env_var)
    if not value:
        return None
    return resolve_credential(value)


def resolve_cache_key(cache_key: Optional[str] = None) -> str:
    """Return the token cache key: *cache_key*, then $POWERSCHOOL_CACHE_KEY, then the default."""
    return _setting(cache_key, ENV_CACHE_KEY) or DEFAULT_CACHE_KEY


def load_credentials(
    server_address: Optional[str] = None,
    client_id: Optional[str] = None,
    client_secret: Optional[str] = None,
    cache_key: Optional[str] = None,
) -> Credentials:
    """Build :class:`~powerschool_api.models.Credentials` from arguments and the environment.

    Explicit arguments win over ``POWERSCHOOL_*`` variables.  The client id
    and secret may be absent: a cached token can still be used, and
    :class:`~powerschool_api.auth.AuthSession` raises when it actually needs
    them.

    Raises:
        MissingServerAddressError: If no server address is configured.
        ConfigError: If an ``env:`` or ``file:`` source cannot be read.
    """
    address = _setting(server_address, ENV_ADDRESS)
    if not address:
        raise MissingServerAddressError(
            f"No PowerSchool server address has been configured (set {ENV_ADDRESS})"
        )

    return Credentials(
        server_address=address.rstrip("/"),
        client_id=_setting(client_id, ENV_CLIENT_ID),
        client_secret=_setting(client_secret, ENV_CLIENT_SECRET),
        cache_key=resolve_cache_key(cache_key),
    )
