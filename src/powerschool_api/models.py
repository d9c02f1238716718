"""Pydantic models shared across powerschool_api.

The models fall into two groups:

**Connection models** -- built once per client:
    :class:`Credentials` and :class:`AccessToken`.

**Wire models** -- produced by the request builder and consumed by the
transport:
    :class:`HTTPMethod` and :class:`CompiledRequest`.

Models that must not change after construction are declared with
``frozen=True``.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr


# --- Connection ---


class Credentials(BaseModel):
    """Server address and OAuth client credentials for one PowerSchool instance.

    ``cache_key`` names the entry under which the bearer token is mirrored
    into an external :class:`~powerschool_api.cache.TokenCache`.  When it is
    ``None`` the token is only held in memory for the life of the session.

    Example::

        Credentials(
            server_address="https://district.powerschool.com",
            client_id="abc",
            client_secret="shh",
            cache_key="powerschool_token",
        )
    """

    model_config = ConfigDict(frozen=True)

    server_address: Optional[str] = Field(
        default=None, description="Fully qualified server URL, including https"
    )
    client_id: Optional[str] = Field(
        default=None, description="Client id from a plugin with <oauth/> enabled"
    )
    client_secret: Optional[SecretStr] = Field(
        default=None, description="Client secret from a plugin with <oauth/> enabled"
    )
    cache_key: Optional[str] = Field(
        default=None, description="Token cache key; None disables the external cache"
    )


class AccessToken(BaseModel):
    """A bearer token issued by ``/oauth/access_token``.

    ``expires_at`` is informational only: tokens loaded from the cache have
    no expiry, and expiry is detected from a 401 response rather than from
    the local clock.
    """

    value: str
    expires_at: Optional[datetime] = None


# --- Wire ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods accepted by the PowerSchool web service."""

    GET = "get"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"


class CompiledRequest(BaseModel):
    """A wire-ready request produced by
    :meth:`~powerschool_api.client.request_builder.RequestBuilder.compile`.

    ``query`` is the literal query string (without ``?``) exactly as it will
    be sent, and ``json_body`` is ``None`` when no body is sent.
    """

    model_config = ConfigDict(frozen=True)

    method: HTTPMethod
    endpoint: str
    query: Optional[str] = None
    json_body: Any = None

    @property
    def url(self) -> str:
        """The endpoint with the query string appended, if any."""
        if self.query:
            return f"{self.endpoint}?{self.query}"
        return self.endpoint
