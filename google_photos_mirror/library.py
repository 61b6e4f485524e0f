"""Fetches the complete media library page by page."""

import logging
from typing import Iterator, Optional

from google_photos_mirror.models import (
    MEDIA_ITEMS_URL,
    DecodeError,
    Library,
    Page,
    TransportError,
)
from google_photos_mirror.utils.auth import AuthenticatedClient

logger = logging.getLogger(__name__)


class LibraryPaginator:
    """Follows the listing endpoint's continuation cursor until it runs out."""

    def __init__(
        self,
        client: AuthenticatedClient,
        list_url: str = MEDIA_ITEMS_URL,
        page_size: Optional[int] = None,
    ):
        self.client = client
        self.list_url = list_url
        self.page_size = page_size

    def fetch_page(self, page_token: str = "") -> Page:
        """Fetch a single page. An empty token requests the first page."""
        params = {"pageToken": page_token}
        if self.page_size:
            params["pageSize"] = self.page_size
        page = Page.from_api(self.client.get_json(self.list_url, params=params))
        logger.debug(
            "Fetched page (token=%r): %d items, next token %r",
            page_token,
            len(page.items),
            page.next_page_token,
        )
        return page

    def iter_pages(self) -> Iterator[Page]:
        page_token = ""
        while True:
            page = self.fetch_page(page_token)
            yield page
            if page.is_last:
                return
            page_token = page.next_page_token

    def fetch_library(self) -> Library:
        """Accumulate every page into a Library.

        Raises:
            TransportError: If a listing request fails
            DecodeError: If a listing response cannot be parsed

            Either error carries the items gathered so far as ``library``.
        """
        library = Library()
        try:
            for page in self.iter_pages():
                library.add_page(page)
        except (TransportError, DecodeError) as e:
            e.library = library
            raise
        logger.info("Library contains %d items", len(library))
        return library


def fetch_library(client: AuthenticatedClient, **kwargs) -> Library:
    """Fetch the whole library with a default paginator."""
    return LibraryPaginator(client, **kwargs).fetch_library()
