"""OAuth2 client-credentials session for the PowerSchool API.

This module provides :class:`AuthSession`, which owns the bearer token used
by :class:`~powerschool_api.client.transport.Transport`.  It performs the
client-credentials grant (:rfc:`6749` section 4.4) against the fixed
``/oauth/access_token`` endpoint of the configured server, sending the
client id and secret as an HTTP Basic ``Authorization`` header.

Tokens are kept in memory and, when a cache key is configured, mirrored into
an injected :class:`~powerschool_api.cache.TokenCache` with a TTL of
``expires_in`` seconds.  A token is never distrusted because of the local
clock: the transport forces :meth:`AuthSession.authenticate` when the server
reports it expired.

See Also:
    :class:`powerschool_api.client.transport.Transport` for the retry loop.
"""

from __future__ import annotations

import base64
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import httpx

from powerschool_api.cache import TokenCache
from powerschool_api.exceptions import (
    AuthError,
    ConnectionError_,
    MissingClientCredentialsError,
)
from powerschool_api.models import AccessToken, Credentials
from powerschool_api.output import get_output

TOKEN_ENDPOINT = "/oauth/access_token"


class AuthSession:
    """Holds and refreshes the bearer token for one set of credentials.

    Args:
        credentials: Server address, client id/secret and optional cache key.
        http_client: Client whose ``base_url`` is the PowerSchool server.
        cache: Optional external token store.  Only used when
            ``credentials.cache_key`` is set.

    Example::

        session = AuthSession(credentials, httpx.Client(base_url=address), cache)
        token = session.authenticate()
        session.authenticate(force=True)  # always hits the token endpoint
    """

    def __init__(
        self,
        credentials: Credentials,
        http_client: httpx.Client,
        cache: Optional[TokenCache] = None,
    ) -> None:
        self._credentials = credentials
        self._http = http_client
        self._cache = cache if credentials.cache_key else None
        self._token: Optional[AccessToken] = None

        if self._cache is not None:
            cached = self._cache.get(credentials.cache_key)
            if cached:
                self._token = AccessToken(value=str(cached))

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    @property
    def token(self) -> Optional[AccessToken]:
        """The current token, or ``None`` before the first authentication."""
        return self._token

    @property
    def caching_enabled(self) -> bool:
        """Whether the token is mirrored into an external cache."""
        return self._cache is not None

    def authenticate(self, force: bool = False) -> AccessToken:
        """Return a bearer token, fetching a new one when needed.

        Args:
            force: Fetch a new token even if one is already held.

        Returns:
            The current :class:`~powerschool_api.models.AccessToken`.

        Raises:
            MissingClientCredentialsError: If a token must be fetched but the
                client id or secret is missing.
            AuthError: If the token endpoint rejects the request or returns
                an unusable body.
            ConnectionError_: If the token endpoint cannot be reached.
        """
        if not force and self._token is not None:
            return self._token

        return self._store_token(self._fetch_token())

    def forget(self) -> None:
        """Drop the in-memory token and remove it from the external cache."""
        self._token = None
        if self._cache is not None:
            self._cache.forget(self._credentials.cache_key)

    def _basic_authorization(self) -> str:
        client_id = self._credentials.client_id
        secret = self._credentials.client_secret
        if not client_id or secret is None or not secret.get_secret_value():
            raise MissingClientCredentialsError(
                "Missing either client ID or secret. "
                "Cannot authenticate with PowerSchool API."
            )
        pair = f"{client_id}:{secret.get_secret_value()}".encode("utf-8")
        return "Basic " + base64.b64encode(pair).decode("ascii")

    def _fetch_token(self) -> dict[str, Any]:
        """POST the client-credentials grant and return the decoded JSON body."""
        headers = {
            "Content-Type": "application/x-www-form-urlencoded;charset=UTF-8",
            "Accept": "application/json",
            "Authorization": self._basic_authorization(),
        }

        get_output().debug(f"Requesting access token: POST {TOKEN_ENDPOINT}")
        try:
            response = self._http.post(
                TOKEN_ENDPOINT,
                headers=headers,
                content=b"grant_type=client_credentials",
            )
        except httpx.HTTPError as exc:
            raise ConnectionError_(f"Token request failed: {exc}") from exc

        if response.is_error:
            raise AuthError(
                f"Token request failed with status {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            token_data = response.json()
        except ValueError as exc:
            raise AuthError(
                "Token response is not valid JSON",
                status_code=response.status_code,
                body=response.text,
            ) from exc

        if not isinstance(token_data, dict) or not token_data.get("access_token"):
            raise AuthError(
                "Token response missing 'access_token' field",
                status_code=response.status_code,
                body=response.text,
            )
        return token_data

    def _store_token(self, token_data: dict[str, Any]) -> AccessToken:
        """Keep the token in memory and mirror it into the cache."""
        value = str(token_data["access_token"])
        ttl = _parse_expires_in(token_data.get("expires_in"))

        expires_at = None
        if ttl is not None:
            expires_at = datetime.now(timezone.utc) + timedelta(seconds=ttl)
        self._token = AccessToken(value=value, expires_at=expires_at)

        if self._cache is not None:
            self._cache.put(self._credentials.cache_key, value, ttl=ttl)
            get_output().debug(
                f"Access token cached under '{self._credentials.cache_key}' for {ttl}s"
            )
        return self._token


def _parse_expires_in(value: Any) -> Optional[int]:
    """Return ``expires_in`` as whole seconds, or ``None`` when absent or malformed."""
    if value is None or isinstance(value, bool):
        return None
    try:
        seconds = int(value)
    except (TypeError, ValueError):
        return None
    return seconds if seconds > 0 else None
