"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~powerschool_api.exceptions.PowerSchoolError` subclass.
Scripts wrapping the ``powerschool`` command can inspect the exit code to
determine the failure class without parsing stderr.

Example::

    $ powerschool auth
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the client credentials were rejected
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command or request builder was used with invalid arguments."""

EXIT_AUTH_FAILURE = 3
"""The OAuth token exchange failed or the token expired too many times."""

EXIT_CONFIG_ERROR = 4
"""The server address or client credentials are missing."""

EXIT_CLIENT_ERROR = 5
"""The PowerSchool server answered with an HTTP 4xx status."""

EXIT_SERVER_ERROR = 6
"""The PowerSchool server answered with an HTTP 5xx status."""

EXIT_CONNECTION_ERROR = 7
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
