"""Response envelope -- schema-less normalization of PowerSchool JSON payloads.

Depending on the endpoint, PowerSchool answers with a list of records under a
``record`` key, a plural wrapper such as ``{"schools": {"school": [...]}}``,
a single-object wrapper such as ``{"school": {...}}``, or a flat record.
Some payloads also carry ``@expansions`` / ``@extensions`` strings naming the
optional data groups the endpoint supports.

:func:`infer_data` finds "the data" in any of those shapes without a schema
and collects everything else as metadata.  It is pure and total: a payload
that matches none of its rules is returned as-is rather than raising.
:class:`Response` wraps the result behind a sequence interface.

Example::

    response = Response(
        {"name": "Students", "record": [{"id": 1}, {"id": 2}], "@extensions": "a,b"},
        "record",
    )
    len(response)          # 2
    response.extensions    # ["a", "b"]
    response.meta          # {"name": "Students"}
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

_NON_WORD = re.compile(r"[^a-zA-Z0-9_]")
_LIST_META = ("expansions", "extensions")
_MISSING = object()


@dataclass
class InferredData:
    """Result of :func:`infer_data`.

    Attributes:
        data: The records (a list), a single record (a dict), or the
            best-effort value for shapes that match no rule.
        meta: Every other top-level value, keyed by its cleaned name.
        expansions: Split ``@expansions`` values.
        extensions: Split ``@extensions`` values.
    """

    data: Any
    meta: dict[str, Any] = field(default_factory=dict)
    expansions: list[str] = field(default_factory=list)
    extensions: list[str] = field(default_factory=list)


def clean_property(name: str) -> str:
    """Strip every character outside ``[A-Za-z0-9_]`` (``"@extensions"`` -> ``"extensions"``)."""
    return _NON_WORD.sub("", name)


def split_comma_string(value: Any) -> list[str]:
    """Split a comma separated string into trimmed, non-empty parts."""
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        parts = [str(part) for part in value]
    else:
        parts = str(value).split(",")
    return [part.strip() for part in parts if part.strip()]


def infer_data(payload: Any, key: str) -> InferredData:
    """Locate the records inside *payload*, keyed by *key*.

    Rules, applied to each object level in turn:

    1. ``expansions``/``extensions`` markers are stripped into lists.
    2. An empty object has no data.
    3. A value under exactly *key* is the data.
    4. A nested object under ``key + "s"`` is searched again with *key*.
    5. A single remaining key is descended into with an empty key.  When
       its value is a scalar and a record key is being searched for, it is
       metadata and there is no data (``{"name": "students"}`` -> ``[]``).
    6. Otherwise the object itself is the data.

    Keys passed over by rules 3 and 4 are kept as metadata.

    Args:
        payload: A decoded JSON value.
        key: The record key.  It is lower-cased before matching; payload
            keys are matched as-is.

    Returns:
        An :class:`InferredData`.  Never raises.
    """
    result = InferredData(data=None)
    result.data = _infer(payload, key.lower(), result)
    return result


def _infer(payload: Any, key: str, result: InferredData) -> Any:
    if payload is None:
        return []
    if not isinstance(payload, dict):
        return payload

    remaining: dict[str, Any] = {}
    for name, value in payload.items():
        cleaned = clean_property(str(name))
        if cleaned in _LIST_META:
            setattr(result, cleaned, split_comma_string(value))
        else:
            remaining[name] = value

    if not remaining:
        return []

    if key and key in remaining:
        _collect_meta(remaining, key, result)
        return remaining[key]

    plural = key + "s" if key else ""
    if plural and isinstance(remaining.get(plural), dict):
        _collect_meta(remaining, plural, result)
        return _infer(remaining[plural], key, result)

    if len(remaining) == 1:
        ((name, only),) = remaining.items()
        if isinstance(only, dict):
            return _infer(only, "", result)
        if isinstance(only, list):
            return only
        if key:
            # A lone scalar beside the record key is an envelope with no records.
            result.meta[clean_property(str(name))] = only
            return []

    return remaining


def _collect_meta(values: dict[str, Any], keep: str, result: InferredData) -> None:
    for name, value in values.items():
        if name != keep:
            result.meta[clean_property(str(name))] = value


class Response:
    """Normalized view over one decoded PowerSchool response.

    Args:
        payload: The decoded JSON body.
        key: The record key used by :func:`infer_data` (``"record"`` for
            table and named-query endpoints, the entity name for resources).

    Records are exposed as a sequence.  Table echoes of the form
    ``{"tables": {"<table>": {...}}}`` are unwrapped during iteration using
    the lower-cased top-level ``name`` of the payload.

    Example::

        response = builder.table("u_table").get()
        for record in response:
            print(record["id"])
    """

    def __init__(self, payload: Any, key: str = "record") -> None:
        self._raw = payload
        self._key = key.lower()

        name = payload.get("name") if isinstance(payload, dict) else None
        self._table_name: Optional[str] = str(name).lower() if name else None

        inferred = infer_data(payload, self._key)
        self._data = inferred.data
        self._meta = inferred.meta
        self._expansions = inferred.expansions
        self._extensions = inferred.extensions

    # ------------------------------------------------------------------ #
    # Attributes
    # ------------------------------------------------------------------ #

    @property
    def raw(self) -> Any:
        """The payload exactly as decoded."""
        return self._raw

    @property
    def key(self) -> str:
        return self._key

    @property
    def data(self) -> Any:
        """The inferred data: a list of records, a single record, or a fallback value."""
        return self._data

    @property
    def records(self) -> list[Any]:
        """The inferred data as a list; a single record becomes a one-item list."""
        if isinstance(self._data, list):
            return self._data
        if isinstance(self._data, dict):
            return [self._data] if self._data else []
        if self._data is None or self._data == "":
            return []
        return [self._data]

    @property
    def meta(self) -> dict[str, Any]:
        return self._meta

    @property
    def expansions(self) -> list[str]:
        return self._expansions

    @property
    def extensions(self) -> list[str]:
        return self._extensions

    @property
    def table_name(self) -> Optional[str]:
        return self._table_name

    # ------------------------------------------------------------------ #
    # Sequence interface
    # ------------------------------------------------------------------ #

    def count(self) -> int:
        return len(self.records)

    def is_empty(self) -> bool:
        return not self.records

    def __len__(self) -> int:
        return self.count()

    def __iter__(self) -> Iterator[Any]:
        for record in self.records:
            yield self._unwrap(record)

    def __getitem__(self, item: Any) -> Any:
        """Index into the records, or look up a dotted path in the data.

        Raises:
            IndexError: For an out-of-range integer index.
            KeyError: For a path that does not exist.
        """
        if isinstance(item, (int, slice)):
            return self.records[item]
        value = self.get(str(item), _MISSING)
        if value is _MISSING:
            raise KeyError(item)
        return value

    def __contains__(self, item: object) -> bool:
        if isinstance(item, str):
            return self.get(item, _MISSING) is not _MISSING
        return item in self.records

    def get(self, path: str, default: Any = None) -> Any:
        """Return the value at a dotted *path* in the data, or *default*.

        List segments are addressed by index (``"0.name"``).  For a single
        record the path starts at the record itself.
        """
        current = self._data
        for segment in path.split("."):
            if isinstance(current, dict) and segment in current:
                current = current[segment]
            elif isinstance(current, list) and segment.lstrip("-").isdigit():
                index = int(segment)
                if not -len(current) <= index < len(current):
                    return default
                current = current[index]
            else:
                return default
        return current

    def first(self) -> Any:
        """The first record (unwrapped), or ``None`` when empty."""
        return next(iter(self), None)

    # ------------------------------------------------------------------ #
    # Conversion
    # ------------------------------------------------------------------ #

    def to_list(self) -> list[Any]:
        """All records, unwrapped from their table echo."""
        return list(self)

    def to_array(self) -> Any:
        """The inferred data, unchanged."""
        return self._data

    def to_json(self) -> str:
        return json.dumps(self._data, default=str)

    def __repr__(self) -> str:
        return f"Response(key={self._key!r}, count={self.count()}, meta={self._meta!r})"

    def _unwrap(self, record: Any) -> Any:
        if not isinstance(record, dict) or not self._table_name:
            return record
        tables = record.get("tables")
        if isinstance(tables, dict) and self._table_name in tables:
            return tables[self._table_name]
        return record
