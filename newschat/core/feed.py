"""
Feed Ingestor
Fetches an RSS feed and normalizes it into documents ready for embedding
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import feedparser
import httpx

from newschat.config import settings
from newschat.core.exceptions import FetchError
from newschat.utils.logger import get_logger


logger = get_logger(__name__)


DOCUMENT_TEMPLATE = """Title: {title}
Published Date: {pub_date}
Link: {link}
Content: {content}"""


@dataclass
class ProcessedFeed:
    """Index-aligned documents, metadata and ids of one feed fetch."""
    docs: List[str] = field(default_factory=list)
    metadatas: List[Dict[str, str]] = field(default_factory=list)
    ids: List[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.docs)


def _entry_content(entry: Any) -> str:
    """Full content when the feed ships it, otherwise the summary."""
    for part in entry.get("content") or []:
        value = part.get("value")
        if value:
            return value
    return entry.get("summary") or ""


def format_item(entry: Any) -> str:
    """Render a feed entry with the fixed document template."""
    return DOCUMENT_TEMPLATE.format(
        title=entry.get("title") or "No title",
        pub_date=entry.get("published") or "No date",
        link=entry.get("link") or "No link",
        content=_entry_content(entry) or "No content",
    )


def build_metadata(entry: Any) -> Dict[str, str]:
    """Metadata stored alongside each document."""
    return {
        "url": entry.get("link") or "",
        "title": entry.get("title") or "",
        "pubDate": entry.get("published") or "",
    }


def parse_feed(raw: bytes) -> ProcessedFeed:
    """
    Parse raw feed bytes.

    ids are the 1-based position of each entry in the feed.

    Raises:
        FetchError: if the payload is not a readable feed
    """
    parsed = feedparser.parse(raw)

    if parsed.bozo and not parsed.entries:
        raise FetchError(f"Failed to parse RSS feed: {parsed.get('bozo_exception')}")

    feed = ProcessedFeed()
    for index, entry in enumerate(parsed.entries, start=1):
        feed.docs.append(format_item(entry))
        feed.metadatas.append(build_metadata(entry))
        feed.ids.append(str(index))

    return feed


async def fetch_feed(
    url: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None
) -> ProcessedFeed:
    """
    Fetch and process an RSS feed.

    Args:
        url: Feed URL (defaults to settings.RSS_URL)
        client: Optional HTTP client, one is created per call otherwise

    Returns:
        ProcessedFeed with equal-length docs, metadatas and ids

    Raises:
        FetchError: if the feed is unreachable or unparsable
    """
    url = url or settings.RSS_URL

    try:
        if client is None:
            async with httpx.AsyncClient(
                timeout=settings.FEED_TIMEOUT_SECONDS,
                follow_redirects=True
            ) as owned_client:
                response = await owned_client.get(url)
        else:
            response = await client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.error("Error fetching RSS feed %s: %s", url, e)
        raise FetchError(f"Failed to fetch RSS feed {url}: {e}") from e

    feed = parse_feed(response.content)
    logger.info("Fetched %d items from %s", len(feed), url)
    return feed
