"""
Shared test fixtures.

Provides: fake embedder, in-memory Qdrant manager, fakeredis-backed session
store, sample RSS payloads and feed loaders.
"""

import hashlib
import math
from typing import List

import fakeredis
import pytest

from newschat.core.embeddings import Embedder
from newschat.core.feed import ProcessedFeed, parse_feed
from newschat.db.qdrant_client import QdrantManager
from newschat.db.redis_client import RedisSessionStore


SINGLE_ITEM_RSS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Top Stories</title>
    <link>http://example.com</link>
    <description>Test feed</description>
    <item>
      <title>A</title>
      <link>http://x</link>
      <pubDate>D</pubDate>
      <description>C</description>
    </item>
  </channel>
</rss>
"""

THREE_ITEM_RSS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/">
  <channel>
    <title>Top Stories</title>
    <link>http://example.com</link>
    <description>Test feed</description>
    <item>
      <title>Markets rally on rate cut</title>
      <link>http://example.com/markets</link>
      <pubDate>Mon, 15 Jan 2024 10:00:00 GMT</pubDate>
      <description>Stocks rose sharply after the central bank cut rates.</description>
    </item>
    <item>
      <title>Storm hits the coast</title>
      <link>http://example.com/storm</link>
      <pubDate>Mon, 15 Jan 2024 11:00:00 GMT</pubDate>
      <content:encoded>A powerful storm brought flooding to coastal towns.</content:encoded>
    </item>
    <item>
      <title>Local team wins final</title>
      <link>http://example.com/sports</link>
      <description>The home team won the championship final last night.</description>
    </item>
  </channel>
</rss>
"""


class FakeEmbedder(Embedder):
    """Deterministic bag-of-words embedder that records its calls."""

    def __init__(self, dimension: int = 256):
        self._dimension = dimension
        self.calls: List[List[str]] = []

    @property
    def dimension(self) -> int:
        return self._dimension

    def _vector(self, text: str) -> List[float]:
        vector = [0.0] * self._dimension
        # Bias component keeps every vector non-zero
        vector[0] = 1.0
        for word in text.lower().split():
            bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % (self._dimension - 1)
            vector[bucket + 1] += 1.0
        norm = math.sqrt(sum(v * v for v in vector))
        return [v / norm for v in vector]

    async def embed(self, texts: List[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        return [self._vector(text) for text in texts]


def make_feed_loader(*payloads: bytes):
    """Feed loader returning each payload in turn, repeating the last one."""
    feeds = [parse_feed(payload) for payload in payloads]
    state = {"calls": 0}

    async def loader() -> ProcessedFeed:
        index = min(state["calls"], len(feeds) - 1)
        state["calls"] += 1
        return feeds[index]

    loader.state = state
    return loader


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
async def qdrant():
    """QdrantManager over Qdrant's local in-memory mode."""
    manager = QdrantManager(url=":memory:")
    await manager.connect()
    yield manager
    await manager.disconnect()


@pytest.fixture
async def redis_client():
    client = fakeredis.FakeAsyncRedis()
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def session_store(redis_client) -> RedisSessionStore:
    return RedisSessionStore(client=redis_client)
