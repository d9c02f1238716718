"""HTTP client module for powerschool_api.

Provides the pieces between a caller and the PowerSchool web service:

:class:`PowerSchool` -- facade owning the HTTP client, session and transport.
:class:`RequestBuilder` -- fluent builder for table, named-query and
    resource requests.
:class:`Transport` -- authenticated dispatch with the expired-token retry.
:class:`Response` -- normalized view over a decoded payload.
:class:`Paginator` -- page-by-page cursor over a builder.

Example::

    from powerschool_api.client import PowerSchool

    with PowerSchool.from_env() as ps:
        for record in ps.table("u_customtable").q("active==1").get():
            print(record["id"])
"""

from powerschool_api.client.client import PowerSchool
from powerschool_api.client.paginator import Paginator
from powerschool_api.client.request_builder import (
    PendingRequest,
    RequestBuilder,
    cast_to_string_values,
)
from powerschool_api.client.response import InferredData, Response, infer_data
from powerschool_api.client.transport import Transport

__all__ = [
    "InferredData",
    "Paginator",
    "PendingRequest",
    "PowerSchool",
    "RequestBuilder",
    "Response",
    "Transport",
    "cast_to_string_values",
    "infer_data",
]
