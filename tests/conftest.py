"""
Shared test fixtures.

Provides: fake embedding backend, fake page renderer, recording vector store,
temporary local mirrors and an in-memory Qdrant-backed vector store.
"""

import asyncio
import hashlib
import os
import re
from typing import Dict, List, Optional, Tuple

# Keep test runs from writing crawler.log into the working directory
os.environ.setdefault("DOCS_CRAWLER_LOG_FILE", "")

import numpy as np
import pytest
from qdrant_client import AsyncQdrantClient

from docs_crawler.config import CrawlerConfig
from docs_crawler.data_store import LocalMirror
from docs_crawler.embedding_service import EmbeddingService
from docs_crawler.errors import IngestionBatchFailure, RenderFailure
from docs_crawler.models import MirrorMetadata, MirrorRecord, RenderedPage
from docs_crawler.text_processor import TextProcessor
from docs_crawler.urls import to_slug
from docs_crawler.vector_store import VectorStore

DIMENSION = CrawlerConfig.VECTOR_SIZE


def bag_of_words_vector(text: str, dimension: int = DIMENSION) -> List[float]:
    """Deterministic word-count vector, close enough to semantic for ranking tests."""
    vector = np.zeros(dimension)
    for word in re.findall(r"[a-z0-9]+", text.lower()):
        index = int(hashlib.md5(word.encode("utf-8")).hexdigest(), 16) % dimension
        vector[index] += 1.0
    if not vector.any():
        vector[0] = 1.0
    return vector.tolist()


class FakeBackend:
    """Embedding backend that loads when told to and can be made to fail."""

    def __init__(self, dimension: int = DIMENSION, fail_load: bool = False, gate: Optional[asyncio.Event] = None):
        self.name = "fake-model"
        self.dimension = dimension
        self.fail_load = fail_load
        self.gate = gate
        self.fail_encode = False
        self.encoded: List[str] = []

    async def load(self) -> None:
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_load:
            raise RuntimeError("model download failed")

    async def encode(self, texts: List[str]) -> List[List[float]]:
        if self.fail_encode:
            raise RuntimeError("model crashed")
        self.encoded.extend(texts)
        return [bag_of_words_vector(text, self.dimension) for text in texts]


class FakeRenderer:
    """
    Stand-in for CrawlerService serving canned HTML.

    pages maps a requested URL to (html, final_url, status_code).
    """

    def __init__(self, pages: Dict[str, Tuple[str, str, int]]):
        self.pages = pages
        self.requested: List[str] = []
        self.entered = False
        self.exited = False

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.exited = True

    async def render(self, url: str) -> RenderedPage:
        self.requested.append(url)
        if url not in self.pages:
            raise RenderFailure(url, "net::ERR_NAME_NOT_RESOLVED")
        html, final_url, status = self.pages[url]
        if not 200 <= status < 300:
            raise RenderFailure(url, "non-2xx response", status)
        return RenderedPage(requested_url=url, final_url=final_url, status_code=status, html=html)


class RecordingVectorStore:
    """Vector store double that records upserts and can fail chosen batches."""

    def __init__(self, failing_batches=()):
        self.failing_batches = set(failing_batches)
        self.collections: Dict[str, Dict[str, dict]] = {}
        self.deleted: List[str] = []

    async def collection_exists(self, collection: str) -> bool:
        return collection in self.collections

    async def ensure_collection(self, collection: str) -> None:
        self.collections.setdefault(collection, {})

    async def delete_collection(self, collection: str) -> bool:
        self.deleted.append(collection)
        return self.collections.pop(collection, None) is not None

    async def delete_page(self, collection: str, file_slug: str) -> None:
        points = self.collections[collection]
        for point_id in [pid for pid, payload in points.items() if payload.get("fileSlug") == file_slug]:
            del points[point_id]

    async def upsert_batch(self, collection, points, batch_number=1) -> None:
        if batch_number in self.failing_batches:
            raise IngestionBatchFailure(collection, batch_number, "timeout")
        for point in points:
            self.collections[collection][point.id] = point.payload

    async def search(self, collection, vector, limit):
        return []


def html_page(title: str, body: str, links: List[str] = ()) -> str:
    anchors = "".join(f'<a href="{link}">{link}</a>' for link in links)
    return (
        f"<html><head><title>{title}</title><script>var x = 1;</script></head>"
        f"<body><nav><a href=\"/\">Home</a></nav><main><h1>{title}</h1><p>{body}</p>{anchors}</main></body></html>"
    )


def write_mirror_page(mirror: LocalMirror, collection: str, url: str, chunks: List[str]) -> None:
    records = [
        MirrorRecord(chunk=chunk, metadata=MirrorMetadata(pageUrl=url, sequenceIndex=i))
        for i, chunk in enumerate(chunks)
    ]
    assert mirror.write_page(collection, to_slug(url), records)


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def embedding_service(fake_backend):
    return EmbeddingService(backend=fake_backend)


@pytest.fixture
def text_processor(embedding_service):
    return TextProcessor(embedding_service)


@pytest.fixture
def mirror(tmp_path):
    return LocalMirror(roots=[tmp_path / "data", tmp_path / "home" / "crawled-docs"])


@pytest.fixture
def memory_vector_store():
    return VectorStore(client=AsyncQdrantClient(location=":memory:"))


@pytest.fixture
def recording_vector_store():
    return RecordingVectorStore()
