"""Documentation crawler and hybrid retrieval package."""

from .config import logger, get_qdrant_client, CrawlerConfig
from .models import (
    CrawlTask,
    Chunk,
    ProcessedChunk,
    RenderedPage,
    IndexedPoint,
    SearchResult,
    RetrievalPath,
    MirrorRecord,
    MirrorMetadata,
)
from .urls import to_slug, normalize_url, is_in_scope
from .text_processor import TextProcessor
from .embedding_service import EmbeddingService
from .frontier import CrawlFrontier
from .web_crawler import CrawlerService
from .extractor import ContentExtractor
from .data_store import LocalMirror
from .vector_store import VectorStore
from .pipeline import IngestionPipeline
from .retrieval import RetrievalEngine
from .tools import DocsTools, ToolResponse, build_tools

__all__ = [
    "logger",
    "get_qdrant_client",
    "CrawlerConfig",
    "CrawlTask",
    "Chunk",
    "ProcessedChunk",
    "RenderedPage",
    "IndexedPoint",
    "SearchResult",
    "RetrievalPath",
    "MirrorRecord",
    "MirrorMetadata",
    "to_slug",
    "normalize_url",
    "is_in_scope",
    "TextProcessor",
    "EmbeddingService",
    "CrawlFrontier",
    "CrawlerService",
    "ContentExtractor",
    "LocalMirror",
    "VectorStore",
    "IngestionPipeline",
    "RetrievalEngine",
    "DocsTools",
    "ToolResponse",
    "build_tools",
]
