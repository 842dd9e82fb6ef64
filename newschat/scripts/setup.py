"""
Collection setup
================
Populates the news collection from the RSS feed and runs a test query.

Usage:
    python -m newschat.scripts.setup                   # Refresh and query
    python -m newschat.scripts.setup --query "..."     # Custom test query
    python -m newschat.scripts.setup --clear           # Empty the collection and exit
"""

import argparse
import asyncio
import logging
import sys

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from newschat.core.exceptions import NewsChatError, StoreConnectionError
from newschat.core.vector_store import NewsVectorStore, vector_store
from newschat.db.qdrant_client import QdrantManager
from newschat.utils.logger import get_logger


logger = get_logger(__name__)

DEFAULT_TEST_QUERY = "What is happening in the world?"


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="newschat-setup",
        description="Populate the news collection from the RSS feed."
    )
    parser.add_argument("--clear", action="store_true", default=False,
                        help="Delete every document and leave the collection empty.")
    parser.add_argument("--query", default=DEFAULT_TEST_QUERY,
                        help="Test query to run once the collection is populated.")
    return parser.parse_args(argv)


@retry(
    retry=retry_if_exception_type(StoreConnectionError),
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True
)
async def wait_for_qdrant(manager: QdrantManager):
    """Qdrant may still be starting when the setup runs."""
    await manager.connect()


async def run(args: argparse.Namespace, store: NewsVectorStore = None) -> str:
    """
    Refresh (or clear) the collection.

    Returns:
        The test query result, "" when clearing
    """
    store = store or vector_store

    await wait_for_qdrant(store.qdrant)
    try:
        if args.clear:
            await store.clear()
            logger.info("Collection %s cleared", store.collection_name)
            return ""

        await store.initialize(force_refresh=True)
        logger.info("Embeddings stored: %d documents", await store.count())
        return await store.query(args.query)
    finally:
        await store.qdrant.disconnect()


def main(argv=None) -> int:
    args = _parse_args(argv)

    try:
        result = asyncio.run(run(args))
    except (NewsChatError, ValueError) as e:
        logger.error("Setup failed: %s", e)
        return 1

    if result:
        print(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
