"""powerschool_api -- client for the PowerSchool SIS web service.

Talks to PowerSchool table endpoints (``/ws/schema/table``), named queries
(``/ws/schema/query``) and any other resource path, authenticating with the
OAuth2 client-credentials grant.  Responses, whose shape varies by endpoint,
are normalized into a uniform record sequence.

Typical usage::

    from powerschool_api import PowerSchool

    with PowerSchool.from_env() as ps:
        response = ps.named_query("com.org.product.area.students", {"grade": 5})
        for student in response:
            print(student["student_number"])

Modules:
    app: Typer command line (``powerschool auth`` / ``clear`` / ``table`` / ``query``).
    auth: OAuth2 client-credentials session.
    cache: Token cache interface and disk implementation.
    client: Request builder, transport, response envelope and paginator.
    config: Environment variables, credential sources and cache paths.
    exceptions: Exception hierarchy with exit-code mapping.
    models: Pydantic models shared across the package.
    output: stdout/stderr output used for diagnostics.
"""

__version__ = "1.0.0"

from powerschool_api.client import PowerSchool, RequestBuilder, Response  # noqa: E402
from powerschool_api.models import Credentials  # noqa: E402

__all__ = ["Credentials", "PowerSchool", "RequestBuilder", "Response", "__version__"]
