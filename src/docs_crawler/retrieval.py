"""Retrieval engine: vector search with a lexical fallback over the local mirror."""

from typing import List

from .models import SearchResult, RetrievalPath
from .config import logger, CrawlerConfig
from .errors import RetrievalFailure
from .urls import to_slug
from .embedding_service import EmbeddingService
from .data_store import LocalMirror
from .vector_store import VectorStore


def lexical_score(chunk: str, terms: List[str]) -> float:
    """Occurrences of all terms in the chunk, per 100 characters of chunk."""
    if not chunk:
        return 0.0
    lowered = chunk.lower()
    hits = sum(lowered.count(term) for term in terms)
    return hits / len(chunk) * 100


class RetrievalEngine:
    """Answers queries against one crawled site."""

    def __init__(self, embedding_service: EmbeddingService, vector_store: VectorStore, mirror: LocalMirror):
        self.embedding_service = embedding_service
        self.vector_store = vector_store
        self.mirror = mirror

    async def search(self, base_url: str, query: str, top_k: int = CrawlerConfig.SEARCH_TOP_K) -> List[SearchResult]:
        """
        Find the passages most relevant to a query.

        Vector search is tried first unless the query only has a fallback
        vector; when it is skipped, fails or returns nothing, the local mirror
        is scanned lexically. Never raises.

        Args:
            base_url: Base URL of the crawled site
            query: Natural-language query
            top_k: Maximum number of results

        Returns:
            List[SearchResult]: Results ranked by descending score
        """
        collection = to_slug(base_url)
        logger.info(f"Searching for query: \"{query}\" in collection \"{collection}\"")

        try:
            vector = await self.embedding_service.embed_query(query)
            if self.embedding_service.is_degraded(query):
                # A fallback query vector has no relation to the stored ones
                logger.warning("Embedding model not available, skipping vector search")
            else:
                results = await self.vector_store.search(collection, vector, top_k)
                logger.info(f"Vector search returned {len(results)} results")
                if results:
                    return results
        except RetrievalFailure as e:
            logger.error(str(e))
        except Exception as e:
            logger.error(f"Error during vector search in collection \"{collection}\": {e}")

        logger.warning(
            f"Vector search failed or returned no results for \"{query}\" in \"{collection}\", "
            f"trying fallback text search"
        )
        try:
            return self.lexical_search(collection, query, top_k)
        except Exception as e:
            logger.error(f"Error during fallback text search: {e}")
            return []

    def lexical_search(self, collection: str, query: str, top_k: int) -> List[SearchResult]:
        """
        Rank every mirrored chunk by query-term frequency normalized by chunk length.

        Args:
            collection: The site's collection key
            query: Query whose whitespace-separated terms are counted
            top_k: Maximum number of results

        Returns:
            List[SearchResult]: Chunks with a positive score, best first
        """
        terms = [term for term in query.lower().split() if term]
        if not terms:
            return []

        matches: List[SearchResult] = []
        for _, records in self.mirror.iter_records(collection):
            for record in records:
                score = lexical_score(record.chunk, terms)
                if score > 0:
                    matches.append(SearchResult(
                        chunk_text=record.chunk,
                        page_url=record.metadata.pageUrl,
                        score=score,
                        source=RetrievalPath.LEXICAL,
                    ))

        logger.info(f"Fallback text search found {len(matches)} potential matches")
        matches.sort(key=lambda result: result.score, reverse=True)
        return matches[:top_k]
