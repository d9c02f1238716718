"""Fluent request builder for PowerSchool table, named-query and resource endpoints.

This module provides :class:`RequestBuilder`, a mutable accumulator of
endpoint, method, table/id, query variables and body data.  It understands
three endpoint shapes:

1. **Table resources** -- ``/ws/schema/table/{table}[/{id}]``.  GET requests
   get ``projection=*`` unless a projection was given or
   :meth:`~RequestBuilder.exclude_projection` was called.  Write bodies are
   wrapped as ``{"tables": {table: data}}`` (plus ``id`` and ``name`` when an
   id is set).
2. **Named queries** -- ``/ws/schema/query/{name}``, always POSTed with the
   flat data map as the body and no default projection.
3. **Raw resources** -- any other path, with no projection default.

Body values are sanitized once, when data is set, the way the PowerSchool
server expects them: ``None`` becomes ``""``, booleans become ``"1"``/``"0"``
and everything else is stringified, preserving nested structure.

:meth:`~RequestBuilder.compile` is pure and returns a
:class:`~powerschool_api.models.CompiledRequest`; :meth:`~RequestBuilder.send`
compiles, dispatches through the
:class:`~powerschool_api.client.transport.Transport`, and resets the builder
unless told not to.

Example::

    response = (
        builder.table("u_customtable")
        .projection(["id", "column1"])
        .q("column1==value")
        .page_size(5)
        .get()
    )
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional, Union
from urllib.parse import parse_qsl

from powerschool_api.client.response import Response
from powerschool_api.exceptions import InvalidUsageError
from powerschool_api.models import CompiledRequest, HTTPMethod

if TYPE_CHECKING:
    from powerschool_api.client.paginator import Paginator
    from powerschool_api.client.transport import Transport

TABLE_ENDPOINT = "/ws/schema/table/"
NAMED_QUERY_ENDPOINT = "/ws/schema/query/"
DATA_VERSION_ENDPOINT = "/ws/dataversion/"
DEFAULT_KEY = "record"

Columns = Union[str, list[str], tuple[str, ...]]


def cast_value(value: Any) -> str:
    """Stringify a scalar the way PowerSchool expects it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def cast_to_string_values(data: Any) -> Any:
    """Recursively stringify every leaf of *data*, preserving its structure.

    >>> cast_to_string_values({"a": None, "b": True, "c": [1, {"d": False}]})
    {'a': '', 'b': '1', 'c': ['1', {'d': '0'}]}
    """
    if isinstance(data, Mapping):
        return {key: cast_to_string_values(value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [cast_to_string_values(value) for value in data]
    return cast_value(data)


def _join(columns: Columns) -> str:
    if isinstance(columns, str):
        return columns
    return ",".join(str(column) for column in columns)


@dataclass
class PendingRequest:
    """Everything accumulated for the next request.

    ``query`` keeps insertion order, which is the order the variables are
    written to the query string.
    """

    endpoint: Optional[str] = None
    method: Optional[HTTPMethod] = None
    table: Optional[str] = None
    id: Optional[str] = None
    query: dict[str, str] = field(default_factory=dict)
    data: Optional[dict[str, Any]] = None
    include_projection: bool = True
    raw: bool = False
    key: str = DEFAULT_KEY


class RequestBuilder:
    """Fluent builder that compiles and sends PowerSchool requests.

    Every setter returns the builder itself.  A builder holds the state of
    one logical call at a time and is not safe to share between threads.

    Args:
        transport: Sends compiled requests and handles authentication.
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport
        self._state = PendingRequest()
        self._paginator: Optional[Paginator] = None

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def pending(self) -> PendingRequest:
        """A copy of the accumulated state."""
        return copy.deepcopy(self._state)

    def freshen(self) -> RequestBuilder:
        """Discard all accumulated state, ready for the next request."""
        self._state = PendingRequest()
        return self

    # ------------------------------------------------------------------ #
    # Endpoint shapes
    # ------------------------------------------------------------------ #

    def table(self, table: str) -> RequestBuilder:
        """Target ``/ws/schema/table/{table}``."""
        self._state.table = table
        self._state.endpoint = TABLE_ENDPOINT + table
        self._state.key = DEFAULT_KEY
        return self

    def id(self, record_id: Any) -> RequestBuilder:
        """Scope the request to one record by appending ``/{id}`` to the endpoint."""
        self._state.id = str(record_id)
        self._state.endpoint = f"{self._state.endpoint or ''}/{record_id}"
        return self

    def endpoint(self, endpoint: str) -> RequestBuilder:
        """Target an arbitrary resource path, without a default projection.

        The response key becomes the last path segment, so
        ``/ws/v1/school/3/student`` is read from ``{"students": {"student": [...]}}``.
        """
        self._state.endpoint = endpoint
        self._state.include_projection = False
        segments = [part for part in endpoint.split("?")[0].split("/") if part]
        if segments:
            self._state.key = segments[-1].lower()
        return self

    def resource(
        self,
        endpoint: str,
        method: Optional[str] = None,
        data: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Target a raw resource; sends immediately when both *method* and *data* are given.

        Returns:
            The builder, or the result of :meth:`send` when it was sent.
        """
        self.endpoint(endpoint)
        if method is not None:
            self.method(method)
        if data:
            self.data(data)
        if self._state.method is not None and self._state.data:
            return self.send()
        return self

    def named_query(self, query: str, data: Optional[Mapping[str, Any]] = None) -> Any:
        """Target the named query ``/ws/schema/query/{query}`` with method POST.

        Args:
            query: Dotted query name, e.g. ``com.org.product.area.name``.
            data: Query parameters.  When given, the request is sent
                immediately, as ``data(data).post()``.

        Returns:
            The builder, or the result of :meth:`post` when data was given.
        """
        self._state.endpoint = NAMED_QUERY_ENDPOINT + query
        self._state.include_projection = False
        self._state.key = DEFAULT_KEY
        if data:
            return self.data(data).post()
        return self.method(HTTPMethod.POST)

    power_query = named_query
    pq = named_query

    def method(self, method: Union[str, HTTPMethod]) -> RequestBuilder:
        """Set the HTTP method (get, post, put, patch or delete)."""
        try:
            self._state.method = HTTPMethod(str(getattr(method, "value", method)).lower())
        except ValueError:
            raise InvalidUsageError(f"Unsupported HTTP method: {method!r}") from None
        return self

    def key(self, key: str) -> RequestBuilder:
        """Override the key the response records are read from."""
        self._state.key = key.lower()
        return self

    def raw(self) -> RequestBuilder:
        """Return the decoded JSON from :meth:`send` instead of a :class:`Response`."""
        self._state.raw = True
        return self

    def wrapped(self) -> RequestBuilder:
        """Return a :class:`Response` from :meth:`send` (the default)."""
        self._state.raw = False
        return self

    # ------------------------------------------------------------------ #
    # Body
    # ------------------------------------------------------------------ #

    def data(self, data: Mapping[str, Any]) -> RequestBuilder:
        """Set the body data, stringifying every value."""
        self._state.data = cast_to_string_values(data)
        return self

    with_data = data

    def data_version(self, version: int, application_name: str) -> RequestBuilder:
        """Request changes since a data version for a data-subscription application."""
        data = dict(self._state.data or {})
        data["$dataversion"] = cast_value(version)
        data["$dataversion_applicationname"] = cast_value(application_name)
        self._state.data = data
        return self

    # ------------------------------------------------------------------ #
    # Query string
    # ------------------------------------------------------------------ #

    def query_string(self, query: Union[str, Mapping[str, Any]]) -> RequestBuilder:
        """Replace all query variables with a ``a=1&b=2`` string or a mapping."""
        if isinstance(query, str):
            pairs = parse_qsl(query.lstrip("?"), keep_blank_values=True)
        else:
            pairs = list(query.items())
        self._state.query = {}
        for name, value in pairs:
            self.add_query_var(name, value)
        return self

    def add_query_var(self, key: str, value: Any) -> RequestBuilder:
        """Set one query variable. Lists are joined with commas."""
        if isinstance(value, (list, tuple)):
            value = _join(value)
        self._state.query[key] = cast_value(value)
        return self

    query_var = add_query_var

    def has_query_var(self, key: str) -> bool:
        """Whether *key* is set to a non-empty value."""
        return bool(self._state.query.get(key))

    def q(self, expression: str) -> RequestBuilder:
        """Table filter, sent as ``q``."""
        return self.add_query_var("q", expression)

    def filter(self, expression: str) -> RequestBuilder:
        """Ad hoc filter, sent as ``$q``."""
        return self.add_query_var("$q", expression)

    query_expression = filter

    def projection(self, projection: Columns) -> RequestBuilder:
        """Columns to return; a list is joined with commas."""
        return self.add_query_var("projection", _join(projection))

    def exclude_projection(self) -> RequestBuilder:
        """Do not add ``projection=*`` to GET requests."""
        self._state.include_projection = False
        return self

    without_projection = exclude_projection

    def page_size(self, page_size: int) -> RequestBuilder:
        return self.add_query_var("pagesize", page_size)

    def page(self, page: int) -> RequestBuilder:
        return self.add_query_var("page", page)

    def sort(self, columns: Columns, descending: bool = False) -> RequestBuilder:
        """Sort by *columns*, adding ``sortdescending=true`` when *descending*."""
        self.add_query_var("sort", _join(columns))
        if descending:
            self.add_query_var("sortdescending", "true")
        return self

    def order(self, expression: str) -> RequestBuilder:
        """Ad hoc order expression, sent as ``order``."""
        return self.add_query_var("order", expression)

    def include_count(self) -> RequestBuilder:
        """Ask a named query to include the total record count."""
        return self.add_query_var("count", "true")

    def expansions(self, expansions: Columns) -> RequestBuilder:
        return self.add_query_var("expansions", _join(expansions))

    def extensions(self, extensions: Columns) -> RequestBuilder:
        return self.add_query_var("extensions", _join(extensions))

    # ------------------------------------------------------------------ #
    # Compilation
    # ------------------------------------------------------------------ #

    def build_request_json(self) -> Any:
        """Return the JSON body for the accumulated state, or ``None`` for no body."""
        state = self._state
        if state.method in (None, HTTPMethod.GET, HTTPMethod.DELETE):
            return None

        body: dict[str, Any] = {}
        if state.table:
            body["tables"] = {state.table: state.data}
        if state.id is not None:
            body["id"] = state.id
            body["name"] = state.table
        if state.data and not state.table:
            body = dict(state.data)

        return body or None

    def build_request_query(self) -> Optional[str]:
        """Return the literal query string for GET and POST, or ``None``."""
        state = self._state
        if state.method not in (HTTPMethod.GET, HTTPMethod.POST):
            return None

        pairs = [f"{name}={value}" for name, value in state.query.items()]
        if (
            state.method == HTTPMethod.GET
            and state.include_projection
            and not self.has_query_var("projection")
        ):
            pairs.append("projection=*")

        return "&".join(pairs) or None

    def compile(self) -> CompiledRequest:
        """Compile the accumulated state into a wire-ready request.

        Raises:
            InvalidUsageError: If no method or endpoint has been set.
        """
        if self._state.method is None:
            raise InvalidUsageError("No request method set; call method() or get()/post()")
        if not self._state.endpoint:
            raise InvalidUsageError(
                "No endpoint set; call table(), named_query(), endpoint() or resource()"
            )
        return CompiledRequest(
            method=self._state.method,
            endpoint=self._state.endpoint,
            query=self.build_request_query(),
            json_body=self.build_request_json(),
        )

    # ------------------------------------------------------------------ #
    # Sending
    # ------------------------------------------------------------------ #

    def send(self, reset: bool = True) -> Any:
        """Compile and dispatch the request.

        Args:
            reset: Call :meth:`freshen` after a successful dispatch.

        Returns:
            A :class:`~powerschool_api.client.response.Response`, or the
            decoded JSON when :meth:`raw` was called.
        """
        compiled = self.compile()
        raw, key = self._state.raw, self._state.key

        payload = self._transport.send(compiled)

        if reset:
            self.freshen()
        if raw:
            return payload
        return Response(payload, key)

    def get(self, endpoint: Optional[str] = None) -> Any:
        if endpoint is not None:
            self.endpoint(endpoint)
        return self.method(HTTPMethod.GET).send()

    def post(self) -> Any:
        return self.method(HTTPMethod.POST).send()

    def put(self) -> Any:
        return self.method(HTTPMethod.PUT).send()

    def patch(self) -> Any:
        return self.method(HTTPMethod.PATCH).send()

    def delete(self) -> Any:
        return self.method(HTTPMethod.DELETE).send()

    def count(self) -> Any:
        """GET the ``/count`` sub-resource of the current endpoint."""
        self._state.endpoint = f"{self._state.endpoint or ''}/count"
        self._state.include_projection = False
        return self.get()

    def get_data_subscription_changes(self, application_name: str, version: int) -> Any:
        """GET the changes recorded for a data-subscription application since *version*."""
        return self.get(f"{DATA_VERSION_ENDPOINT}{application_name}/{version}")

    def paginate(self, page_size: int = 100) -> Optional[list[Any]]:
        """Return the next page of records, or ``None`` once the pages run out.

        The first call starts a :class:`~powerschool_api.client.paginator.Paginator`
        over the current state; it is released when an empty page is seen,
        so the next call starts again at page 1.
        """
        from powerschool_api.client.paginator import Paginator

        if self._paginator is None:
            self._paginator = Paginator(self, page_size)

        results = self._paginator.page()
        if results is None:
            self._paginator = None
        return results
