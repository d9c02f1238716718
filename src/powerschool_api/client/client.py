"""Client facade that wires credentials, token cache, session and transport.

:class:`PowerSchool` owns the :class:`httpx.Client` (unless one is injected)
and hands out a fresh :class:`~powerschool_api.client.request_builder.RequestBuilder`
for every logical call, so no request state leaks between calls.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

import httpx

from powerschool_api.auth import AuthSession
from powerschool_api.cache import DiskTokenCache, TokenCache
from powerschool_api.client.request_builder import RequestBuilder
from powerschool_api.client.transport import DEFAULT_MAX_ATTEMPTS, Transport
from powerschool_api.exceptions import MissingServerAddressError
from powerschool_api.models import Credentials


class PowerSchool:
    """Entry point for talking to one PowerSchool server.

    Args:
        credentials: Server address, client id/secret and optional cache key.
        cache: Token store used when ``credentials.cache_key`` is set.
        http_client: Pre-configured client.  When omitted, one is created
            with ``base_url`` set to the server address and closed by
            :meth:`close`.
        timeout: Request timeout in seconds for the created client.
        max_attempts: Total attempts per call while the token keeps expiring.

    Raises:
        MissingServerAddressError: If the credentials carry no server address.

    Example::

        with PowerSchool(credentials, cache=DiskTokenCache(get_cache_dir())) as ps:
            students = ps.named_query("com.org.product.students", {"grade": 5})
            school = ps.get("/ws/v1/school/3")
    """

    def __init__(
        self,
        credentials: Credentials,
        cache: Optional[TokenCache] = None,
        http_client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        if not credentials.server_address:
            raise MissingServerAddressError("No PowerSchool server address has been configured")

        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(
            base_url=credentials.server_address,
            timeout=timeout,
        )
        self._cache = cache
        self.session = AuthSession(credentials, self._http, cache)
        self.transport = Transport(self.session, self._http, max_attempts=max_attempts)

    @classmethod
    def from_env(cls, cache: Optional[TokenCache] = None, **kwargs: Any) -> PowerSchool:
        """Build a client from ``POWERSCHOOL_*`` environment variables.

        When no cache is given, the token is cached on disk under
        :func:`~powerschool_api.config.get_cache_dir`.
        """
        from powerschool_api.config import get_cache_dir, load_credentials

        credentials = load_credentials()
        if cache is None:
            cache = DiskTokenCache(get_cache_dir())
        return cls(credentials, cache=cache, **kwargs)

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> PowerSchool:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client if this instance created it, and the disk cache."""
        if self._owns_client:
            self._http.close()
        if isinstance(self._cache, DiskTokenCache):
            self._cache.close()

    # ------------------------------------------------------------------ #
    # Builders
    # ------------------------------------------------------------------ #

    def request(self) -> RequestBuilder:
        """Return a new, empty builder."""
        return RequestBuilder(self.transport)

    def table(self, table: str) -> RequestBuilder:
        return self.request().table(table)

    def named_query(self, query: str, data: Optional[Mapping[str, Any]] = None) -> Any:
        return self.request().named_query(query, data)

    def resource(
        self,
        endpoint: str,
        method: Optional[str] = None,
        data: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        return self.request().resource(endpoint, method, data)

    def endpoint(self, endpoint: str) -> RequestBuilder:
        return self.request().endpoint(endpoint)

    def get(self, endpoint: str) -> Any:
        return self.request().get(endpoint)

    def get_data_subscription_changes(self, application_name: str, version: int) -> Any:
        return self.request().get_data_subscription_changes(application_name, version)

    # ------------------------------------------------------------------ #
    # Token management
    # ------------------------------------------------------------------ #

    def authenticate(self, force: bool = False) -> str:
        """Fetch (or reuse) the bearer token and return its value."""
        return self.session.authenticate(force=force).value

    def forget_token(self) -> None:
        """Drop the token from memory and from the token cache."""
        self.session.forget()
