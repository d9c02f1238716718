"""Typer application and CLI entry point for powerschool.

The command line is a thin shell over :class:`~powerschool_api.client.PowerSchool`:

* ``powerschool auth`` -- fetch a new access token and cache it.
* ``powerschool clear`` -- remove the cached access token.
* ``powerschool table NAME`` -- read records from a table.
* ``powerschool query NAME`` -- run a named query.

Connection settings come from ``--address`` / ``--client-id`` /
``--client-secret`` / ``--cache-key`` or the matching ``POWERSCHOOL_*``
environment variables (see :mod:`powerschool_api.config`).  The access token
is cached on disk under :func:`~powerschool_api.config.get_cache_dir`.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.
"""

from __future__ import annotations

import json
import signal
import sys
from typing import Any, Optional

import typer

from powerschool_api import __version__
from powerschool_api.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="powerschool",
    help="Query the PowerSchool SIS web service.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"powerschool {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    address: Optional[str] = typer.Option(
        None, "--address", help="Server address (default: $POWERSCHOOL_ADDRESS)."
    ),
    client_id: Optional[str] = typer.Option(
        None, "--client-id", help="OAuth client id, or env:VAR / file:/path."
    ),
    client_secret: Optional[str] = typer.Option(
        None, "--client-secret", help="OAuth client secret, or env:VAR / file:/path."
    ),
    cache_key: Optional[str] = typer.Option(
        None, "--cache-key", help="Token cache key (default: powerschool_token)."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show requests and token refreshes on stderr."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~powerschool_api.output.OutputManager` from
    the output flags and keeps the connection settings in ``ctx.obj`` for
    the sub-commands.
    """
    from powerschool_api.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.JSON if json_output else OutputFormat.AUTO
    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["address"] = address
    ctx.obj["client_id"] = client_id
    ctx.obj["client_secret"] = client_secret
    ctx.obj["cache_key"] = cache_key


def _make_client(settings: dict[str, Any]) -> Any:
    """Build a :class:`~powerschool_api.client.PowerSchool` from the CLI settings."""
    from powerschool_api.cache import DiskTokenCache
    from powerschool_api.client import PowerSchool
    from powerschool_api.config import get_cache_dir, load_credentials

    credentials = load_credentials(
        server_address=settings.get("address"),
        client_id=settings.get("client_id"),
        client_secret=settings.get("client_secret"),
        cache_key=settings.get("cache_key"),
    )
    return PowerSchool(credentials, cache=DiskTokenCache(get_cache_dir()))


def _fail(exc: Exception) -> typer.Exit:
    from powerschool_api.output import error

    error(str(exc))
    return typer.Exit(code=getattr(exc, "exit_code", EXIT_GENERIC_FAILURE))


# ------------------------------------------------------------------ #
# Token commands
# ------------------------------------------------------------------ #


@app.command("auth")
def auth_command(ctx: typer.Context) -> None:
    """Fetch a new access token and cache it."""
    from powerschool_api.exceptions import PowerSchoolError
    from powerschool_api.output import success

    try:
        with _make_client(ctx.obj) as client:
            client.authenticate(force=True)
    except PowerSchoolError as exc:
        raise _fail(exc) from None

    success("Auth token cached!")


@app.command("clear")
def clear_command(ctx: typer.Context) -> None:
    """Remove the cached access token.

    Does not need a server address: only the cache key is read.
    """
    from powerschool_api.cache import DiskTokenCache
    from powerschool_api.config import get_cache_dir, resolve_cache_key
    from powerschool_api.exceptions import PowerSchoolError
    from powerschool_api.output import debug, success

    try:
        key = resolve_cache_key(ctx.obj.get("cache_key"))
    except PowerSchoolError as exc:
        raise _fail(exc) from None

    with DiskTokenCache(get_cache_dir()) as cache:
        debug(f"Forgetting '{key}' in {cache.directory}")
        cache.forget(key)

    success("Auth token cache cleared!")


# ------------------------------------------------------------------ #
# Data commands
# ------------------------------------------------------------------ #


@app.command("table")
def table_command(
    ctx: typer.Context,
    name: str = typer.Argument(help="Table name, e.g. students or u_customtable."),
    record_id: Optional[str] = typer.Option(None, "--id", help="Fetch a single record."),
    projection: Optional[str] = typer.Option(
        None, "--projection", help="Comma separated columns (default: all)."
    ),
    query: Optional[str] = typer.Option(None, "--q", help="Filter, e.g. 'grade_level==5'."),
    page_size: Optional[int] = typer.Option(None, "--page-size", help="Records per page."),
) -> None:
    """Read records from a table.

    Example::

        powerschool table students --projection id,lastfirst --q "grade_level==5"
    """
    from powerschool_api.exceptions import PowerSchoolError
    from powerschool_api.output import format_response

    try:
        with _make_client(ctx.obj) as client:
            builder = client.table(name)
            if record_id is not None:
                builder.id(record_id)
            if projection:
                builder.projection(projection)
            if query:
                builder.q(query)
            if page_size:
                builder.page_size(page_size)
            response = builder.get()
    except PowerSchoolError as exc:
        raise _fail(exc) from None

    format_response(response.to_list())


@app.command("query")
def query_command(
    ctx: typer.Context,
    name: str = typer.Argument(help="Named query, e.g. com.org.product.area.name."),
    data: Optional[str] = typer.Option(None, "--data", help="Query parameters as a JSON object."),
    page_size: Optional[int] = typer.Option(None, "--page-size", help="Records per page."),
    page: Optional[int] = typer.Option(None, "--page", help="Page number, starting at 1."),
    count: bool = typer.Option(False, "--count", help="Also report the total record count."),
) -> None:
    """Run a named query.

    Example::

        powerschool query com.org.product.students --data '{"grade": 5}' --count
    """
    from powerschool_api.exceptions import InvalidUsageError, PowerSchoolError
    from powerschool_api.output import format_response, info

    try:
        params = _parse_data(data)
        with _make_client(ctx.obj) as client:
            builder = client.request().named_query(name)
            if params:
                builder.data(params)
            if page_size:
                builder.page_size(page_size)
            if page:
                builder.page(page)
            if count:
                builder.include_count()
            response = builder.post()
    except json.JSONDecodeError as exc:
        raise _fail(InvalidUsageError(f"--data is not valid JSON: {exc}")) from None
    except PowerSchoolError as exc:
        raise _fail(exc) from None

    format_response(response.to_list())
    if count and "count" in response.meta:
        info(f"Total records: {response.meta['count']}")


def _parse_data(data: Optional[str]) -> Optional[dict[str, Any]]:
    """Parse the ``--data`` option into a mapping."""
    from powerschool_api.exceptions import InvalidUsageError

    if not data:
        return None
    parsed = json.loads(data)
    if not isinstance(parsed, dict):
        raise InvalidUsageError("--data must be a JSON object")
    return parsed


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``powerschool`` console script.

    Commands report :class:`~powerschool_api.exceptions.PowerSchoolError`
    themselves; anything escaping them is printed and mapped to its
    ``exit_code`` here, or to a generic failure.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from powerschool_api.exceptions import PowerSchoolError
        from powerschool_api.output import error

        if isinstance(exc, PowerSchoolError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
