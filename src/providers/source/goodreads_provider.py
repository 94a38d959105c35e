"""Goodreads shelf RSS adapter implementing ISourceAdapter.

Reads a user's public shelf feed (``currently-reading`` by default) and
normalizes the first two items into a :class:`ShelfRecord`.  No API key is
required; the user id is public.  The ``httpx.AsyncClient`` is injected for
testability.

Three outcomes are kept apart because the caching core treats them
differently:

- feed fetched and parsed, with items  -> ``ShelfRecord``
- feed fetched and parsed, no items    -> ``None`` ("nothing to report")
- transport/HTTP failure or bad XML    -> ``FetchError`` / ``ParseError``
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

import httpx

from src.interfaces.source_adapter import ISourceAdapter
from src.models.records import Book, ShelfRecord
from src.utils.errors import FetchError, ParseError
from src.utils.logging import get_logger

_RSS_URL = "https://www.goodreads.com/review/list_rss/{user_id}"
_USER_AGENT = "Mozilla/5.0 (compatible; nowfeed/0.1.0)"
_DEFAULT_SHELF = "currently-reading"


def _item_text(item: ET.Element, tag: str) -> str:
    """Text of a child element, CDATA or plain, stripped; ``""`` if absent."""
    element = item.find(tag)
    if element is None or element.text is None:
        return ""
    return element.text.strip()


def _book_from_item(item: ET.Element) -> Book:
    return Book(
        title=_item_text(item, "title"),
        author=_item_text(item, "author_name"),
        cover=_item_text(item, "book_large_image_url"),
        link=_item_text(item, "link"),
    )


class GoodreadsShelfAdapter(ISourceAdapter):
    """Source adapter for a Goodreads shelf RSS feed.

    Parameters
    ----------
    http_client:
        Shared async HTTP client.
    user_id:
        Numeric Goodreads user id whose shelf is published.
    shelf:
        Shelf name; the newest item on it becomes ``current``.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        user_id: str,
        shelf: str = _DEFAULT_SHELF,
    ) -> None:
        self._http = http_client
        self._user_id = user_id
        self._shelf = shelf
        self._logger = get_logger(__name__)

    def get_provider_name(self) -> str:
        return "goodreads"

    async def fetch_latest(self) -> ShelfRecord | None:
        xml_text = await self._fetch_feed()
        record = self.parse_feed(xml_text)
        self._logger.info(
            "goodreads_feed_parsed",
            shelf=self._shelf,
            current=record.current.title if record else None,
        )
        return record

    async def _fetch_feed(self) -> str:
        url = _RSS_URL.format(user_id=self._user_id)
        try:
            response = await self._http.get(
                url,
                params={"shelf": self._shelf},
                headers={"User-Agent": _USER_AGENT},
                follow_redirects=True,
            )
        except httpx.HTTPError as exc:
            self._logger.warning("goodreads_request_failed", url=url, error=str(exc))
            raise FetchError(
                message=f"Goodreads RSS request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code != 200:
            self._logger.warning("goodreads_http_error", url=url, status=response.status_code)
            raise FetchError(
                message=f"Goodreads RSS returned {response.status_code}",
                provider_name=self.get_provider_name(),
            )
        return response.text

    @staticmethod
    def parse_feed(xml_text: str) -> ShelfRecord | None:
        """Parse an RSS document into a shelf snapshot.

        Raises
        ------
        ParseError
            If the document is not well-formed XML or has no ``<channel>``.
        """
        try:
            root = ET.fromstring(xml_text)
        except ET.ParseError as exc:
            raise ParseError(
                message=f"Goodreads RSS is not well-formed XML: {exc}",
                provider_name="goodreads",
            ) from exc

        channel = root.find("channel")
        if channel is None:
            raise ParseError(
                message="Goodreads RSS has no <channel> element",
                provider_name="goodreads",
            )

        items = channel.findall("item")
        if not items:
            return None

        books = [_book_from_item(item) for item in items[:2]]
        return ShelfRecord(
            current=books[0],
            previous=books[1] if len(books) > 1 else None,
        )
