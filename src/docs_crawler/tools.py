"""Tool handlers behind the crawl-docs-website and search-docs operations."""

import traceback
from dataclasses import dataclass
from typing import List

from pydantic import ValidationError

from .models import CrawlRequest, SearchRequest, SearchResult
from .config import logger, CrawlerConfig
from .urls import to_slug
from .web_crawler import CrawlerService
from .text_processor import TextProcessor
from .embedding_service import EmbeddingService
from .data_store import LocalMirror
from .vector_store import VectorStore
from .pipeline import IngestionPipeline
from .retrieval import RetrievalEngine


@dataclass
class ToolResponse:
    """Text returned to the calling agent."""
    text: str
    is_error: bool = False


def format_results(base_url: str, results_by_query: List[tuple]) -> str:
    """Render ranked results for each query as an indented text report."""
    lines = [f"Search Results for {base_url}:", "================================="]
    for query, results in results_by_query:
        lines.append("")
        lines.append(f"--- Query: \"{query}\" ---")
        if not results:
            lines.append("No results found.")
            continue
        for index, result in enumerate(results, start=1):
            chunk = "\n    ".join(result.chunk_text.split("\n"))
            lines.append("")
            lines.append(f"Result {index}:")
            lines.append(f"  Score: {result.score:.4f}")
            lines.append(f"  URL: {result.page_url}")
            lines.append(f"  Chunk:\n    {chunk}")
            lines.append("---")
    return "\n".join(lines).strip()


def _describe_validation_error(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}" for item in error.errors()
    )


class DocsTools:
    """The two operations exposed to agents, rendered as text."""

    def __init__(self, pipeline: IngestionPipeline, retrieval: RetrievalEngine, top_k: int = CrawlerConfig.SEARCH_TOP_K):
        self.pipeline = pipeline
        self.retrieval = retrieval
        self.top_k = top_k

    async def crawl_docs_website(self, base_url: str, force_recrawl: bool = False) -> ToolResponse:
        """Crawl a documentation site up to depth 2 and index it."""
        try:
            request = CrawlRequest(base_url=base_url, force_recrawl=force_recrawl)
        except ValidationError as e:
            return ToolResponse(f"Invalid crawl request: {_describe_validation_error(e)}", is_error=True)

        try:
            logger.info(f"Starting crawl for {request.base_url}...")
            await self.pipeline.run_crawl(request.base_url, force_clear=request.force_recrawl)
            logger.info(f"Completed crawl for {request.base_url}.")
        except Exception as e:
            logger.error(f"Error in crawl-docs-website tool execution: {e}", exc_info=True)
            return ToolResponse(
                f"Error crawling {request.base_url}: {str(e) or 'Unknown error'}\n"
                f"Stack trace: {traceback.format_exc()}",
                is_error=True,
            )

        return ToolResponse(f"Crawl complete for {request.base_url}. Data stored locally and in Qdrant.")

    async def search_docs(self, base_url: str, queries: List[str]) -> ToolResponse:
        """Search a previously crawled site with one or more queries."""
        try:
            request = SearchRequest(base_url=base_url, queries=queries)
        except ValidationError as e:
            return ToolResponse(f"Invalid search request: {_describe_validation_error(e)}", is_error=True)

        collection = to_slug(request.base_url)
        if not self.retrieval.mirror.has_site(collection):
            logger.warning(
                f"No crawl data found locally for {request.base_url}. "
                f"Search might yield limited or no results if Qdrant is also empty."
            )

        results_by_query = []
        for query in request.queries:
            results: List[SearchResult] = await self.retrieval.search(request.base_url, query, self.top_k)
            results_by_query.append((query, results))

        return ToolResponse(format_results(request.base_url, results_by_query))


def build_tools() -> DocsTools:
    """Wire the services from configuration. Each service is created once and shared."""
    embedding_service = EmbeddingService()
    mirror = LocalMirror()
    vector_store = VectorStore()
    pipeline = IngestionPipeline(
        crawler_service=CrawlerService(),
        text_processor=TextProcessor(embedding_service),
        embedding_service=embedding_service,
        mirror=mirror,
        vector_store=vector_store,
    )
    retrieval = RetrievalEngine(embedding_service, vector_store, mirror)
    return DocsTools(pipeline, retrieval)
