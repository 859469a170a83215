"""Vector store module: Qdrant collections holding one site's chunk vectors."""

import uuid
from typing import List, Optional

from qdrant_client import AsyncQdrantClient
from qdrant_client.http.models import (
    Distance,
    FieldCondition,
    Filter,
    FilterSelector,
    MatchValue,
    PointStruct,
    VectorParams,
)

from .models import IndexedPoint, SearchResult, RetrievalPath
from .errors import IngestionBatchFailure, RetrievalFailure
from .config import logger, get_qdrant_client, CrawlerConfig


def point_id(file_slug: str, sequence_index: int) -> str:
    """Stable point ID for a chunk, so re-crawling a page overwrites its points."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"{file_slug}:{sequence_index}"))


class VectorStore:
    """Thin async wrapper around a Qdrant client."""

    def __init__(
        self,
        client: Optional[AsyncQdrantClient] = None,
        vector_size: int = CrawlerConfig.VECTOR_SIZE,
    ):
        """
        Initialize the vector store.

        Args:
            client: The Qdrant client to use. If None, creates one from config
            vector_size: Dimensionality of collections created by this store
        """
        self.client = client or get_qdrant_client()
        self.vector_size = vector_size

    async def collection_exists(self, collection: str) -> bool:
        return await self.client.collection_exists(collection_name=collection)

    async def ensure_collection(self, collection: str) -> None:
        """Create the collection with cosine distance if it does not exist yet."""
        try:
            if await self.collection_exists(collection):
                logger.info(f"Collection '{collection}' already exists")
                return
            logger.info(f"Collection '{collection}' not found. Creating...")
            await self.client.create_collection(
                collection_name=collection,
                vectors_config=VectorParams(size=self.vector_size, distance=Distance.COSINE),
            )
            logger.info(f"Collection '{collection}' created successfully")
        except Exception as e:
            logger.error(f"Error ensuring collection '{collection}' exists: {e}")
            raise

    async def delete_collection(self, collection: str) -> bool:
        """
        Delete a collection if present.

        Returns:
            bool: True if a collection was removed
        """
        if not await self.collection_exists(collection):
            logger.info(f"Qdrant collection {collection} did not exist, skipping removal")
            return False
        await self.client.delete_collection(collection_name=collection)
        logger.info(f"Removed old Qdrant collection: {collection}")
        return True

    async def delete_page(self, collection: str, file_slug: str) -> None:
        """Remove every point stored for one page."""
        await self.client.delete(
            collection_name=collection,
            points_selector=FilterSelector(
                filter=Filter(must=[FieldCondition(key="fileSlug", match=MatchValue(value=file_slug))])
            ),
            wait=True,
        )

    async def upsert_batch(self, collection: str, points: List[IndexedPoint], batch_number: int = 1) -> None:
        """
        Upsert one batch of points and wait for it to be applied.

        Raises:
            IngestionBatchFailure: If the store rejects the batch
        """
        logger.info(f"Upserting {len(points)} points to Qdrant collection '{collection}'...")
        try:
            await self.client.upsert(
                collection_name=collection,
                points=[
                    PointStruct(id=point.id, vector=point.vector, payload=point.payload)
                    for point in points
                ],
                wait=True,
            )
        except Exception as e:
            raise IngestionBatchFailure(collection, batch_number, str(e)) from e

    async def search(self, collection: str, vector: List[float], limit: int) -> List[SearchResult]:
        """
        Nearest-neighbour search by cosine similarity.

        Raises:
            RetrievalFailure: If the collection is missing or the store errors
        """
        try:
            response = await self.client.query_points(
                collection_name=collection,
                query=vector,
                limit=limit,
                with_payload=True,
            )
        except Exception as e:
            raise RetrievalFailure(collection, str(e)) from e

        results = []
        for point in response.points:
            payload = point.payload or {}
            results.append(SearchResult(
                chunk_text=payload.get("chunk", "Chunk data missing"),
                page_url=payload.get("pageUrl", "URL missing"),
                score=point.score,
                source=RetrievalPath.VECTOR,
            ))
        return results

    async def close(self) -> None:
        await self.client.close()
