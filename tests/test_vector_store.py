"""Tests for the Qdrant vector store wrapper, against Qdrant's in-memory mode."""

from unittest.mock import AsyncMock, Mock

import pytest

from docs_crawler.embedding_service import l2_normalize
from docs_crawler.errors import IngestionBatchFailure, RetrievalFailure
from docs_crawler.models import IndexedPoint, RetrievalPath
from docs_crawler.vector_store import VectorStore, point_id

from .conftest import bag_of_words_vector, DIMENSION

COLLECTION = "docs_example_com_docs_"


def make_point(file_slug, index, text):
    return IndexedPoint(
        id=point_id(file_slug, index),
        vector=l2_normalize(bag_of_words_vector(text), DIMENSION),
        payload={"pageUrl": f"https://docs.example.com/docs/{file_slug}", "chunk": text},
    )


class TestPointId:
    def test_stable_and_distinct(self):
        assert point_id("page_a", 0) == point_id("page_a", 0)
        assert point_id("page_a", 0) != point_id("page_a", 1)
        assert point_id("page_a", 0) != point_id("page_b", 0)


class TestVectorStore:
    @pytest.mark.asyncio
    async def test_ensure_collection_is_idempotent(self, memory_vector_store):
        assert not await memory_vector_store.collection_exists(COLLECTION)
        await memory_vector_store.ensure_collection(COLLECTION)
        await memory_vector_store.ensure_collection(COLLECTION)
        assert await memory_vector_store.collection_exists(COLLECTION)

    @pytest.mark.asyncio
    async def test_search_ranks_nearest_first(self, memory_vector_store):
        await memory_vector_store.ensure_collection(COLLECTION)
        await memory_vector_store.upsert_batch(COLLECTION, [
            make_point("install", 0, "installation steps for the package"),
            make_point("logging", 0, "configure logging output format"),
        ])

        query = l2_normalize(bag_of_words_vector("installation steps"), DIMENSION)
        results = await memory_vector_store.search(COLLECTION, query, limit=2)

        assert results[0].page_url == "https://docs.example.com/docs/install"
        assert results[0].chunk_text == "installation steps for the package"
        assert results[0].source == RetrievalPath.VECTOR
        assert results[0].score >= results[-1].score

    @pytest.mark.asyncio
    async def test_same_ids_overwrite(self, memory_vector_store):
        await memory_vector_store.ensure_collection(COLLECTION)
        await memory_vector_store.upsert_batch(COLLECTION, [make_point("page_a", 0, "first version")])
        await memory_vector_store.upsert_batch(COLLECTION, [make_point("page_a", 0, "second version")])

        count = await memory_vector_store.client.count(collection_name=COLLECTION)
        assert count.count == 1

    @pytest.mark.asyncio
    async def test_delete_page_keeps_other_pages(self, memory_vector_store):
        await memory_vector_store.ensure_collection(COLLECTION)
        points = [make_point("page_a", 0, "a zero"), make_point("page_a", 1, "a one"), make_point("page_b", 0, "b zero")]
        for point, slug in zip(points, ("page_a", "page_a", "page_b")):
            point.payload["fileSlug"] = slug
        await memory_vector_store.upsert_batch(COLLECTION, points)

        await memory_vector_store.delete_page(COLLECTION, "page_a")

        count = await memory_vector_store.client.count(collection_name=COLLECTION)
        assert count.count == 1

    @pytest.mark.asyncio
    async def test_delete_collection(self, memory_vector_store):
        await memory_vector_store.ensure_collection(COLLECTION)
        assert await memory_vector_store.delete_collection(COLLECTION)
        assert not await memory_vector_store.delete_collection(COLLECTION)

    @pytest.mark.asyncio
    async def test_search_missing_collection_raises(self, memory_vector_store):
        with pytest.raises(RetrievalFailure):
            await memory_vector_store.search("never_crawled", [1.0] + [0.0] * (DIMENSION - 1), limit=3)

    @pytest.mark.asyncio
    async def test_rejected_batch_raises(self):
        client = Mock()
        client.upsert = AsyncMock(side_effect=RuntimeError("timeout"))
        store = VectorStore(client=client)

        with pytest.raises(IngestionBatchFailure) as exc_info:
            await store.upsert_batch(COLLECTION, [make_point("page_a", 0, "text")], batch_number=3)

        assert exc_info.value.batch_number == 3
        assert exc_info.value.collection == COLLECTION
