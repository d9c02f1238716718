"""Authenticated transport with a bounded re-authentication retry.

This module provides :class:`Transport`, which sends every compiled request
to the PowerSchool server through an injected :class:`httpx.Client`:

- **Auth injection** -- the session's bearer token is set on every request,
  along with JSON ``Accept`` and ``Content-Type`` headers that always
  override anything else.
- **Expired-token retry** -- a 401 whose ``WWW-Authenticate`` header
  contains ``expired`` forces a new token and resends the identical request,
  up to three attempts in total.  Any other 401 is not retried.
- **Error mapping** -- other 4xx and 5xx statuses raise
  :class:`~powerschool_api.exceptions.ClientError` and
  :class:`~powerschool_api.exceptions.ServerError`, carrying the status code
  and decoded body.  There is no backoff and no retry on network errors.

See Also:
    :class:`~powerschool_api.auth.AuthSession` for the token lifecycle.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import httpx

from powerschool_api.auth import AuthSession
from powerschool_api.exceptions import (
    ClientError,
    ConnectionError_,
    ExhaustedRetriesError,
    ServerError,
)
from powerschool_api.models import CompiledRequest
from powerschool_api.output import get_output

DEFAULT_MAX_ATTEMPTS = 3

# Substring of the WWW-Authenticate header that marks an expired token.
EXPIRED_TOKEN_MARKER = "expired"


class Transport:
    """Dispatches requests with auth injection and expired-token retry.

    Args:
        session: Provides and refreshes the bearer token.
        http_client: Client whose ``base_url`` is the PowerSchool server.
        max_attempts: Total attempts per call when the token keeps expiring.

    Example::

        transport = Transport(session, http_client)
        body = transport.dispatch("get", "/ws/v1/district/school")
    """

    def __init__(
        self,
        session: AuthSession,
        http_client: httpx.Client,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._session = session
        self._http = http_client
        self._max_attempts = max_attempts

    @property
    def session(self) -> AuthSession:
        return self._session

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def send(self, request: CompiledRequest) -> Any:
        """Dispatch a :class:`~powerschool_api.models.CompiledRequest`."""
        return self.dispatch(
            request.method.value,
            request.endpoint,
            query=request.query,
            json_body=request.json_body,
        )

    def dispatch(
        self,
        method: str,
        endpoint: str,
        query: Optional[str] = None,
        json_body: Any = None,
    ) -> Any:
        """Send one logical request and return the decoded response body.

        Args:
            method: HTTP method, any case.
            endpoint: Path relative to the server address.
            query: Literal query string (without ``?``), sent unchanged.
            json_body: JSON-serialisable body, or ``None`` for no body.

        Returns:
            The decoded JSON body, the raw text for a non-JSON body, or
            ``None`` for an empty body.

        Raises:
            ExhaustedRetriesError: If the token was still reported expired
                after ``max_attempts`` attempts.
            ClientError: On any other 4xx status.
            ServerError: On a 5xx status.
            ConnectionError_: On network or timeout errors.
        """
        method = method.upper()
        url = f"{endpoint}?{query}" if query else endpoint
        output = get_output()

        token = self._session.authenticate()

        for attempt in range(1, self._max_attempts + 1):
            output.debug(f"{method} {url} (attempt {attempt}/{self._max_attempts})")
            response = self._execute(method, url, token.value, json_body)

            if response.status_code == 401 and _is_expired_token(response):
                if attempt < self._max_attempts:
                    output.debug("Access token expired, re-authenticating")
                    token = self._session.authenticate(force=True)
                    continue
                raise ExhaustedRetriesError(
                    f"Access token still expired after {self._max_attempts} attempts",
                    status_code=response.status_code,
                    body=_decode_body(response),
                )

            self._map_response_error(response)
            body = _decode_body(response)
            output.debug(f"HTTP {response.status_code}: {_preview(body)}")
            return body

        # The loop either returns or raises on its final attempt.
        raise AssertionError("unreachable")  # pragma: no cover

    def _execute(
        self,
        method: str,
        url: str,
        token: str,
        json_body: Any,
    ) -> httpx.Response:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Authorization": f"Bearer {token}",
        }
        kwargs: dict[str, Any] = {"headers": headers}
        if json_body is not None:
            kwargs["json"] = json_body

        try:
            return self._http.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise ConnectionError_(f"{method} {url} failed: {exc}") from exc

    def _map_response_error(self, response: httpx.Response) -> None:
        """Raise a typed exception for error HTTP status codes."""
        status = response.status_code
        if status < 400:
            return

        body = _decode_body(response)
        if isinstance(body, dict):
            detail = body.get("message") or body.get("error") or body.get("detail") or ""
        elif body is None:
            detail = ""
        else:
            detail = str(body)[:200]

        prefix = f"HTTP {status}"
        message = f"{prefix}: {detail}" if detail else prefix

        if status >= 500:
            raise ServerError(message, status_code=status, body=body)
        raise ClientError(message, status_code=status, body=body)


def _is_expired_token(response: httpx.Response) -> bool:
    """Return True when the ``WWW-Authenticate`` header reports an expired token."""
    return EXPIRED_TOKEN_MARKER in response.headers.get("WWW-Authenticate", "")


def _decode_body(response: httpx.Response) -> Any:
    """Decode a response body: JSON first, then text, ``None`` when empty."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _preview(body: Any, limit: int = 500) -> str:
    text = body if isinstance(body, str) else json.dumps(body, default=str)
    return text if len(text) <= limit else text[:limit] + "..."
