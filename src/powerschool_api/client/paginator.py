"""Page-by-page iteration over a configured request.

PowerSchool does not report how many pages a query has, so
:class:`Paginator` keeps asking for the next page until one comes back empty.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterator, Optional

from powerschool_api.client.response import Response
from powerschool_api.output import get_output

if TYPE_CHECKING:
    from powerschool_api.client.request_builder import RequestBuilder


class Paginator:
    """Cursor over the pages of a :class:`RequestBuilder`.

    The builder keeps its state between pages (it is sent with
    ``reset=False``), so the same table or named query is requested with
    ``page=1``, ``page=2``, ... until an empty page.

    Args:
        builder: A builder configured with an endpoint and method.
        page_size: Records per page, sent as ``pagesize``.

    Example::

        paginator = Paginator(builder.named_query("com.org.students"), page_size=500)
        for record in paginator:
            process(record)
    """

    def __init__(self, builder: RequestBuilder, page_size: int = 100) -> None:
        self._builder = builder.page_size(page_size)
        self._page_size = page_size
        self._page = 1

    @property
    def current_page(self) -> int:
        """The page number the next :meth:`page` call will request."""
        return self._page

    @property
    def page_size(self) -> int:
        return self._page_size

    def page(self) -> Optional[list[Any]]:
        """Fetch the next page.

        Returns:
            The page's records, or ``None`` when the page was empty.  The
            cursor then resets to page 1.
        """
        key = self._builder.pending.key
        payload = self._builder.page(self._page).send(reset=False)
        results = payload if isinstance(payload, Response) else Response(payload, key)

        if results.is_empty():
            get_output().debug(f"Page {self._page} is empty, pagination finished")
            self._page = 1
            return None

        self._page += 1
        return results.to_list()

    def __iter__(self) -> Iterator[Any]:
        """Yield every record of every page."""
        while True:
            records = self.page()
            if records is None:
                return
            yield from records
