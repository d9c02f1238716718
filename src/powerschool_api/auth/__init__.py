"""OAuth2 client-credentials authentication for powerschool_api.

The main entry point is :class:`AuthSession`, which exchanges the client id
and secret for a bearer token at ``/oauth/access_token`` and keeps it in
memory and, optionally, in a :class:`~powerschool_api.cache.TokenCache`.

Typical usage::

    from powerschool_api.auth import AuthSession

    session = AuthSession(credentials, http_client, cache)
    token = session.authenticate()
"""

from powerschool_api.auth.session import TOKEN_ENDPOINT, AuthSession

__all__ = ["AuthSession", "TOKEN_ENDPOINT"]
