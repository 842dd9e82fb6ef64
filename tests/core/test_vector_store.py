"""
Test suite for NewsVectorStore.

Runs against Qdrant's local in-memory mode with a deterministic fake embedder.
"""

from unittest.mock import AsyncMock

import pytest

from newschat.core.exceptions import CollectionNotInitializedError, FetchError
from newschat.core.feed import ProcessedFeed
from newschat.core.vector_store import NewsVectorStore, point_ids

from conftest import SINGLE_ITEM_RSS, THREE_ITEM_RSS, make_feed_loader


def make_store(qdrant, embedder, *payloads) -> NewsVectorStore:
    return NewsVectorStore(
        qdrant=qdrant,
        embedder=embedder,
        collection_name="news_test",
        feed_loader=make_feed_loader(*payloads)
    )


class TestPointIds:
    """Test suite for content-derived point ids."""

    def test_same_text_gives_same_id_across_batches(self) -> None:
        assert point_ids(["a", "b"])[1] == point_ids(["b"])[0]

    def test_duplicates_within_batch_stay_distinct(self) -> None:
        ids = point_ids(["same", "same", "other"])

        assert len(set(ids)) == 3


class TestInitialize:
    """Test suite for initialize."""

    @pytest.mark.asyncio
    async def test_empty_collection_gets_populated(self, qdrant, fake_embedder) -> None:
        store = make_store(qdrant, fake_embedder, THREE_ITEM_RSS)

        await store.initialize()

        assert store.is_initialized
        assert await store.count() == 3

    @pytest.mark.asyncio
    async def test_second_initialize_performs_no_writes(self, qdrant, fake_embedder) -> None:
        store = make_store(qdrant, fake_embedder, THREE_ITEM_RSS)
        await store.initialize()
        embed_calls = len(fake_embedder.calls)

        await store.initialize()

        assert len(fake_embedder.calls) == embed_calls
        assert store.feed_loader.state["calls"] == 1
        assert await store.count() == 3

    @pytest.mark.asyncio
    async def test_existing_data_is_kept_by_new_gateway(self, qdrant, fake_embedder) -> None:
        await make_store(qdrant, fake_embedder, THREE_ITEM_RSS).initialize()
        fresh = make_store(qdrant, fake_embedder, SINGLE_ITEM_RSS)

        await fresh.initialize()

        assert fresh.feed_loader.state["calls"] == 0
        assert await fresh.count() == 3

    @pytest.mark.asyncio
    async def test_force_refresh_repopulates(self, qdrant, fake_embedder) -> None:
        store = make_store(qdrant, fake_embedder, THREE_ITEM_RSS, SINGLE_ITEM_RSS)
        await store.initialize()

        await store.initialize(force_refresh=True)

        assert await store.count() == 1


class TestPopulate:
    """Test suite for populate."""

    @pytest.mark.asyncio
    async def test_single_item_scenario(self, qdrant, fake_embedder) -> None:
        store = make_store(qdrant, fake_embedder, SINGLE_ITEM_RSS)

        await store.populate()

        documents = await store.documents()
        assert len(documents) == 1
        assert documents[0].id == "1"
        assert documents[0].metadata == {"url": "http://x", "title": "A", "pubDate": "D"}
        assert documents[0].text.startswith("Title: A")

    @pytest.mark.asyncio
    async def test_full_replace_regardless_of_prior_content(self, qdrant, fake_embedder) -> None:
        store = make_store(qdrant, fake_embedder, THREE_ITEM_RSS, SINGLE_ITEM_RSS, THREE_ITEM_RSS)

        await store.populate()
        assert await store.count() == 3
        await store.populate()
        assert await store.count() == 1
        await store.populate()
        assert await store.count() == 3

    @pytest.mark.asyncio
    async def test_embeds_all_documents_in_one_batch(self, qdrant, fake_embedder) -> None:
        store = make_store(qdrant, fake_embedder, THREE_ITEM_RSS)

        await store.populate()

        assert len(fake_embedder.calls) == 1
        assert len(fake_embedder.calls[0]) == 3

    @pytest.mark.asyncio
    async def test_fetch_failure_propagates(self, qdrant, fake_embedder) -> None:
        store = NewsVectorStore(
            qdrant=qdrant,
            embedder=fake_embedder,
            collection_name="news_test",
            feed_loader=AsyncMock(side_effect=FetchError("feed down"))
        )

        with pytest.raises(FetchError):
            await store.populate()

        assert await store.count() == 0


class TestQuery:
    """Test suite for query."""

    @pytest.mark.asyncio
    async def test_lazily_initializes(self, qdrant, fake_embedder) -> None:
        store = make_store(qdrant, fake_embedder, THREE_ITEM_RSS)

        result = await store.query("storm flooding coastal towns", top_k=1)

        assert store.is_initialized
        assert "Storm hits the coast" in result

    @pytest.mark.asyncio
    async def test_joins_top_k_documents_with_newlines(self, qdrant, fake_embedder) -> None:
        store = make_store(qdrant, fake_embedder, THREE_ITEM_RSS)
        await store.initialize()

        result = await store.query("news", top_k=2)

        assert result.count("Title: ") == 2
        documents = {doc.text for doc in await store.documents()}
        assert sum(1 for text in documents if text in result) == 2

    @pytest.mark.asyncio
    async def test_empty_collection_returns_empty_string(self, qdrant, fake_embedder) -> None:
        store = NewsVectorStore(
            qdrant=qdrant,
            embedder=fake_embedder,
            collection_name="news_test",
            feed_loader=AsyncMock(return_value=ProcessedFeed())
        )

        assert await store.query("anything") == ""

    @pytest.mark.asyncio
    async def test_explicit_top_k_is_honored(self, qdrant, fake_embedder) -> None:
        store = make_store(qdrant, fake_embedder, THREE_ITEM_RSS)
        await store.initialize()

        assert (await store.query("news", top_k=3)).count("Title: ") == 3
        assert await store.query("news", top_k=0) == ""

    @pytest.mark.asyncio
    async def test_corrupted_state_raises(self, qdrant, fake_embedder) -> None:
        store = make_store(qdrant, fake_embedder, THREE_ITEM_RSS)
        store.is_initialized = True

        with pytest.raises(CollectionNotInitializedError):
            await store.query("anything")


class TestClear:
    """Test suite for clear."""

    @pytest.mark.asyncio
    async def test_leaves_empty_collection(self, qdrant, fake_embedder) -> None:
        store = make_store(qdrant, fake_embedder, THREE_ITEM_RSS)
        await store.initialize()

        await store.clear()

        assert await qdrant.collection_exists("news_test")
        assert await store.count() == 0
        assert await store.query("storm") == ""
