"""Embedding service for turning chunks and queries into unit vectors.

Vectors come from a model backend when it is loaded. Until then, or when the
model fails, a deterministic vector seeded from the text is returned at once
and cached; a background task swaps in the model's vector when it becomes
available. Points already written to the vector store keep the vector they
were written with.
"""

import asyncio
import hashlib
from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np
from openai import AsyncOpenAI
from sentence_transformers import SentenceTransformer, models as st_models

from .config import logger, OPENAI_API_KEY, EMBEDDING_PROVIDER, EMBEDDING_MODEL, CrawlerConfig
from .errors import EmbeddingFailure


def l2_normalize(values, dimension: int) -> List[float]:
    """Scale a vector to unit length, checking its dimensionality."""
    vector = np.asarray(values, dtype=np.float64)
    if vector.shape != (dimension,):
        raise EmbeddingFailure(f"Expected a vector of dimension {dimension}, got shape {vector.shape}")
    norm = np.linalg.norm(vector)
    if not np.isfinite(norm) or norm == 0:
        raise EmbeddingFailure("Cannot normalize a zero or non-finite vector")
    return (vector / norm).tolist()


class SentenceTransformerBackend:
    """Local transformer model with mean pooling and L2 normalization."""

    def __init__(self, model_name: str = CrawlerConfig.LOCAL_EMBEDDING_MODEL):
        self.name = model_name
        self.model: Optional[SentenceTransformer] = None

    def _build_model(self) -> SentenceTransformer:
        word_embeddings = st_models.Transformer(self.name)
        pooling = st_models.Pooling(
            word_embeddings.get_word_embedding_dimension(),
            pooling_mode="mean",
        )
        return SentenceTransformer(modules=[word_embeddings, pooling, st_models.Normalize()])

    async def load(self) -> None:
        self.model = await asyncio.to_thread(self._build_model)

    async def encode(self, texts: List[str]) -> List[List[float]]:
        if self.model is None:
            raise EmbeddingFailure(f"Model {self.name} is not loaded")
        embeddings = await asyncio.to_thread(self.model.encode, texts, convert_to_numpy=True)
        return embeddings.tolist()


class OpenAIBackend:
    """OpenAI embeddings API, asked for vectors of the collection's dimensionality."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        dimensions: int = CrawlerConfig.VECTOR_SIZE,
    ):
        self.api_key = api_key or OPENAI_API_KEY
        self.name = model or CrawlerConfig.OPENAI_EMBEDDING_MODEL
        self.dimensions = dimensions
        self.client: Optional[AsyncOpenAI] = None

    async def load(self) -> None:
        if not self.api_key:
            raise EmbeddingFailure("OpenAI API key is required")
        self.client = AsyncOpenAI(api_key=self.api_key)

    async def encode(self, texts: List[str]) -> List[List[float]]:
        if self.client is None:
            raise EmbeddingFailure("OpenAI client is not initialized")
        response = await self.client.embeddings.create(
            input=texts,
            model=self.name,
            dimensions=self.dimensions,
        )
        return [item.embedding for item in response.data]


def create_backend(provider: str = EMBEDDING_PROVIDER, model: str = EMBEDDING_MODEL):
    """Build the embedding backend named by the configuration."""
    if provider == "local":
        return SentenceTransformerBackend(model or CrawlerConfig.LOCAL_EMBEDDING_MODEL)
    if provider == "openai":
        return OpenAIBackend(model=model or None)
    raise ValueError(f"Unknown embedding provider: {provider}")


@dataclass
class CacheEntry:
    vector: List[float]
    degraded: bool


class EmbeddingService:
    """Service for generating embeddings from text."""

    def __init__(
        self,
        backend=None,
        dimension: int = CrawlerConfig.VECTOR_SIZE,
        max_chars: int = CrawlerConfig.MAX_EMBED_CHARS,
        cache_key_chars: int = CrawlerConfig.CACHE_KEY_CHARS,
    ):
        """
        Initialize the embedding service.

        Args:
            backend: Object with async load() and encode(texts). If None, built from config
            dimension: Length of every vector this service returns
            max_chars: Texts are truncated to this many characters before embedding
            cache_key_chars: Length of the text prefix used as cache key
        """
        self.backend = backend or create_backend()
        self.dimension = dimension
        self.max_chars = max_chars
        self.cache_key_chars = cache_key_chars

        self.model_ready = False
        self.model_failed = False
        self._cache: Dict[str, CacheEntry] = {}
        self._load_task: Optional[asyncio.Task] = None
        self._upgrade_tasks: Dict[str, asyncio.Task] = {}
        self._encode_lock = asyncio.Lock()

        logger.info(f"Embedding service initialized with model {self.backend.name}")

    def start(self) -> None:
        """Start loading the model in the background. Returns immediately."""
        if self._load_task is None:
            self._load_task = asyncio.get_running_loop().create_task(self._load_model())

    async def _load_model(self) -> None:
        try:
            logger.info(f"Loading embedding model {self.backend.name}")
            await self.backend.load()
            self.model_ready = True
            logger.info(f"Embedding model {self.backend.name} ready")
        except Exception as e:
            self.model_failed = True
            logger.error(f"Failed to load embedding model {self.backend.name}: {e}")
            logger.warning("Using deterministic fallback vectors from now on")

    async def wait_until_ready(self) -> bool:
        """Wait for the model load to finish. Returns True if the model is usable."""
        self.start()
        await self._load_task
        return self.model_ready

    def normalize_text(self, text: str) -> str:
        """Collapse whitespace and truncate to the character budget."""
        normalized = " ".join(text.split())
        if len(normalized) > self.max_chars:
            logger.debug(f"Text too long ({len(normalized)} chars), truncating to {self.max_chars} chars")
            normalized = normalized[:self.max_chars]
        return normalized

    def cache_key(self, normalized: str) -> str:
        return normalized[:self.cache_key_chars]

    def fallback_vector(self, normalized: str) -> List[float]:
        """Deterministic pseudo-random unit vector seeded from a hash of the text."""
        digest = hashlib.sha256(normalized.encode("utf-8")).digest()
        rng = np.random.default_rng(int.from_bytes(digest[:8], "big"))
        return l2_normalize(rng.standard_normal(self.dimension), self.dimension)

    async def _embed_primary(self, normalized: str) -> List[float]:
        async with self._encode_lock:
            vectors = await self.backend.encode([normalized])
        if not vectors:
            raise EmbeddingFailure("Model returned no embedding")
        return l2_normalize(vectors[0], self.dimension)

    async def embed(self, text: str) -> List[float]:
        """
        Get the embedding for a text. Never raises and never waits for the model to load.

        Args:
            text: The text to embed

        Returns:
            List[float]: A unit vector of length self.dimension
        """
        self.start()
        normalized = self.normalize_text(text)
        key = self.cache_key(normalized)

        entry = self._cache.get(key)
        if entry is not None and not entry.degraded:
            return entry.vector

        if self.model_ready:
            try:
                vector = await self._embed_primary(normalized)
                self._cache[key] = CacheEntry(vector=vector, degraded=False)
                return vector
            except Exception as e:
                logger.error(f"Error getting embedding for text of length {len(normalized)}: {e}")

        if entry is not None:
            return entry.vector

        logger.debug(f"Returning fallback vector for text of length {len(normalized)}")
        vector = self.fallback_vector(normalized)
        self._cache[key] = CacheEntry(vector=vector, degraded=True)
        if not self.model_ready and not self.model_failed:
            self._schedule_upgrade(key, normalized)
        return vector

    # Queries and chunks must share one function for similarity to mean anything
    embed_chunk = embed
    embed_query = embed

    def _schedule_upgrade(self, key: str, normalized: str) -> None:
        if key in self._upgrade_tasks:
            return
        task = asyncio.get_running_loop().create_task(self._upgrade(key, normalized))
        self._upgrade_tasks[key] = task
        task.add_done_callback(lambda _: self._upgrade_tasks.pop(key, None))

    async def _upgrade(self, key: str, normalized: str) -> None:
        if not await self.wait_until_ready():
            return
        try:
            vector = await self._embed_primary(normalized)
        except Exception as e:
            logger.warning(f"Could not upgrade cached fallback vector: {e}")
            return
        self._cache[key] = CacheEntry(vector=vector, degraded=False)

    def is_degraded(self, text: str) -> bool:
        """True if the cached vector for this text is still the fallback one."""
        entry = self._cache.get(self.cache_key(self.normalize_text(text)))
        return entry is not None and entry.degraded

    async def drain(self) -> None:
        """Wait for all pending cache upgrades."""
        while self._upgrade_tasks:
            await asyncio.gather(*list(self._upgrade_tasks.values()), return_exceptions=True)

    async def close(self) -> None:
        """Cancel background work."""
        tasks = list(self._upgrade_tasks.values())
        if self._load_task is not None and not self._load_task.done():
            tasks.append(self._load_task)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
