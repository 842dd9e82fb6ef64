"""
Test suite for the feed ingestor.

Covers document rendering, metadata, positional ids and fetch failures.
HTTP is served by httpx.MockTransport.
"""

import httpx
import pytest

from newschat.core.exceptions import FetchError
from newschat.core.feed import fetch_feed, parse_feed

from conftest import SINGLE_ITEM_RSS, THREE_ITEM_RSS


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestParseFeed:
    """Test suite for parse_feed."""

    def test_single_item_metadata_and_id(self) -> None:
        feed = parse_feed(SINGLE_ITEM_RSS)

        assert feed.ids == ["1"]
        assert feed.metadatas == [{"url": "http://x", "title": "A", "pubDate": "D"}]

    def test_single_item_document_template(self) -> None:
        feed = parse_feed(SINGLE_ITEM_RSS)

        assert feed.docs == [
            "Title: A\n"
            "Published Date: D\n"
            "Link: http://x\n"
            "Content: C"
        ]

    def test_lists_are_index_aligned(self) -> None:
        feed = parse_feed(THREE_ITEM_RSS)

        assert len(feed) == 3
        assert len(feed.docs) == len(feed.metadatas) == len(feed.ids)
        assert feed.ids == ["1", "2", "3"]
        for doc, metadata in zip(feed.docs, feed.metadatas):
            assert metadata["title"] in doc

    def test_full_content_is_used_when_present(self) -> None:
        feed = parse_feed(THREE_ITEM_RSS)

        assert "Content: A powerful storm brought flooding" in feed.docs[1]

    def test_missing_fields_use_placeholders(self) -> None:
        feed = parse_feed(THREE_ITEM_RSS)

        assert "Published Date: No date" in feed.docs[2]
        assert feed.metadatas[2]["pubDate"] == ""

    def test_empty_item_uses_every_placeholder(self) -> None:
        payload = b"""<?xml version="1.0"?>
<rss version="2.0"><channel><title>T</title><item><guid isPermaLink="false">x</guid></item></channel></rss>"""

        feed = parse_feed(payload)

        assert feed.docs == [
            "Title: No title\n"
            "Published Date: No date\n"
            "Link: No link\n"
            "Content: No content"
        ]
        assert feed.metadatas == [{"url": "", "title": "", "pubDate": ""}]

    def test_empty_channel_yields_no_documents(self) -> None:
        payload = b"""<?xml version="1.0"?>
<rss version="2.0"><channel><title>T</title></channel></rss>"""

        feed = parse_feed(payload)

        assert len(feed) == 0

    def test_garbage_raises_fetch_error(self) -> None:
        with pytest.raises(FetchError, match="parse"):
            parse_feed(b"this is <not> a feed <<<")


class TestFetchFeed:
    """Test suite for fetch_feed."""

    @pytest.mark.asyncio
    async def test_fetches_given_url(self) -> None:
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200, content=SINGLE_ITEM_RSS)

        async with _client(handler) as client:
            feed = await fetch_feed("http://feeds.test/rss", client=client)

        assert requested == ["http://feeds.test/rss"]
        assert feed.ids == ["1"]

    @pytest.mark.asyncio
    async def test_falls_back_to_configured_url(self, monkeypatch) -> None:
        from newschat.core import feed as feed_module

        monkeypatch.setattr(feed_module.settings, "RSS_URL", "http://default.test/rss")
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200, content=SINGLE_ITEM_RSS)

        async with _client(handler) as client:
            await fetch_feed(client=client)

        assert requested == ["http://default.test/rss"]

    @pytest.mark.asyncio
    async def test_http_error_raises_fetch_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503)

        async with _client(handler) as client:
            with pytest.raises(FetchError):
                await fetch_feed("http://feeds.test/rss", client=client)

    @pytest.mark.asyncio
    async def test_unreachable_feed_raises_fetch_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(FetchError, match="Failed to fetch"):
                await fetch_feed("http://feeds.test/rss", client=client)
