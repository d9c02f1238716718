"""Exception hierarchy for powerschool_api.

All exceptions inherit from :class:`PowerSchoolError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`powerschool_api.exit_codes`.  The command line entry point in
:func:`powerschool_api.app.main` catches ``PowerSchoolError`` and exits with
the matching code; library callers catch the narrower subclasses.

Only an expired bearer token is handled inside the library (the transport
re-authenticates and resends).  Everything below propagates to the caller.

Subclass hierarchy::

    PowerSchoolError (exit 1)
    +-- InvalidUsageError               (exit 2)
    +-- AuthError                       (exit 3)
    +-- ConfigError                     (exit 4)
    |   +-- MissingServerAddressError
    |   +-- MissingClientCredentialsError
    +-- HTTPStatusError                 (exit 5)
    |   +-- ClientError                 (exit 5)
    |   +-- ServerError                 (exit 6)
    |   +-- ExhaustedRetriesError       (exit 3)
    +-- ConnectionError_                (exit 7)
"""

from __future__ import annotations

from typing import Any

from powerschool_api.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CLIENT_ERROR,
    EXIT_CONFIG_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SERVER_ERROR,
)


class PowerSchoolError(Exception):
    """Base exception for all powerschool_api errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(PowerSchoolError):
    """Raised when a request is compiled without a method or endpoint, or with an unknown method."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(PowerSchoolError):
    """Raised when the OAuth token exchange fails for reasons other than missing credentials.

    Args:
        message: Human-readable error description.
        status_code: HTTP status returned by the token endpoint, if any.
        body: Raw body text returned by the token endpoint, if any.
    """

    exit_code = EXIT_AUTH_FAILURE

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ConfigError(PowerSchoolError):
    """Raised for configuration problems. Never retried."""

    exit_code = EXIT_CONFIG_ERROR


class MissingServerAddressError(ConfigError):
    """Raised when no PowerSchool server address has been configured."""


class MissingClientCredentialsError(ConfigError):
    """Raised when a token is needed but the client id or secret is missing."""


class HTTPStatusError(PowerSchoolError):
    """Base class for errors carrying an HTTP status code and response body.

    Args:
        message: Human-readable error description.
        status_code: The HTTP status code of the failed response.
        body: The decoded response body (JSON value or text).
    """

    exit_code = EXIT_CLIENT_ERROR

    def __init__(self, message: str, status_code: int, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ClientError(HTTPStatusError):
    """Raised when the API returns an HTTP 4xx status (other than an expired token)."""

    exit_code = EXIT_CLIENT_ERROR


class ServerError(HTTPStatusError):
    """Raised when the API returns an HTTP 5xx status."""

    exit_code = EXIT_SERVER_ERROR


class ExhaustedRetriesError(HTTPStatusError):
    """Raised when the token kept expiring after every re-authentication attempt."""

    exit_code = EXIT_AUTH_FAILURE


class ConnectionError_(PowerSchoolError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR
