"""Ingestion pipeline: crawl a docs site and index every page."""

from typing import List, Optional

from .models import CrawlTask, IndexedPoint, MirrorMetadata, MirrorRecord, ProcessedChunk
from .config import logger, CrawlerConfig
from .errors import ExtractionFailure, IngestionBatchFailure, RenderFailure
from .urls import to_slug
from .frontier import CrawlFrontier
from .web_crawler import CrawlerService
from .extractor import ContentExtractor
from .text_processor import TextProcessor
from .embedding_service import EmbeddingService
from .data_store import LocalMirror
from .vector_store import VectorStore, point_id


class IngestionPipeline:
    """Drives frontier -> render -> extract -> chunk -> embed -> persist, one page at a time."""

    def __init__(
        self,
        crawler_service: CrawlerService,
        text_processor: TextProcessor,
        embedding_service: EmbeddingService,
        mirror: LocalMirror,
        vector_store: VectorStore,
        extractor: Optional[ContentExtractor] = None,
        max_depth: int = CrawlerConfig.MAX_DEPTH,
        batch_size: int = CrawlerConfig.UPSERT_BATCH_SIZE,
    ):
        self.crawler_service = crawler_service
        self.text_processor = text_processor
        self.embedding_service = embedding_service
        self.mirror = mirror
        self.vector_store = vector_store
        self.extractor = extractor or ContentExtractor()
        self.max_depth = max_depth
        self.batch_size = batch_size

    async def reset_site(self, collection: str) -> None:
        """Remove a site's mirror directories and its vector collection."""
        self.mirror.clear_site(collection)
        try:
            await self.vector_store.delete_collection(collection)
        except Exception as e:
            logger.warning(f"Error during Qdrant collection removal for {collection}: {e}")

    async def run_crawl(self, base_url: str, force_clear: bool = False) -> None:
        """
        Crawl a documentation site breadth-first and index it.

        Args:
            base_url: Seed URL; also defines the site's identity and crawl scope
            force_clear: If True, delete all previously stored data for the site first

        Raises:
            Exception: Only for failures that prevent the whole run, such as
            the vector collection being impossible to create
        """
        collection = to_slug(base_url)

        if force_clear:
            logger.warning(f"Force recrawl enabled for {base_url}. Removing old data...")
            await self.reset_site(collection)

        self.mirror.ensure_site(collection)
        await self.vector_store.ensure_collection(collection)
        self.embedding_service.start()

        frontier = CrawlFrontier(base_url, max_depth=self.max_depth)
        frontier.seed()

        pages = 0
        async with self.crawler_service as renderer:
            while True:
                task = frontier.pop()
                if task is None:
                    break
                if await self._process_task(renderer, frontier, task, collection):
                    pages += 1

        logger.info(
            f"Crawling complete for {base_url}: {pages} pages stored in "
            f"{', '.join(str(path) for path in self.mirror.site_dirs(collection))} "
            f"and Qdrant collection {collection}"
        )

    async def _process_task(
        self,
        renderer: CrawlerService,
        frontier: CrawlFrontier,
        task: CrawlTask,
        collection: str,
    ) -> bool:
        """Process one task to completion. Returns True if the page was stored."""
        logger.info(f"Crawling: {task.url} (depth={task.depth})...")
        try:
            try:
                page = await renderer.render(task.url)
            except RenderFailure as e:
                logger.error(str(e))
                return False

            page_url = frontier.reconcile_redirect(task, page.final_url)
            if page_url is None:
                return False

            links: List[str] = []
            if task.depth < frontier.max_depth:
                # Resolve against the rendered URL; normalization drops the trailing slash
                links = self.extractor.extract_links(page.html, page.final_url or page_url)
                frontier.discover(task, links)

            try:
                markdown = self.extractor.extract_markdown(page.html, page_url)
            except ExtractionFailure as e:
                logger.error(str(e))
                markdown = ""

            if not markdown.strip():
                logger.info(f"No Markdown content extracted for {page_url}, skipping storage")
                return False

            processed_chunks = await self.text_processor.process_document(page_url, markdown)
            if not processed_chunks:
                return False

            file_slug = to_slug(page_url)
            records = [
                MirrorRecord(
                    chunk=item.chunk.text,
                    metadata=MirrorMetadata(
                        pageUrl=page_url,
                        linksFound=links,
                        sectionPath=item.chunk.section_path,
                        sequenceIndex=item.chunk.sequence_index,
                    ),
                )
                for item in processed_chunks
            ]
            if not self.mirror.write_page(collection, file_slug, records):
                return False

            await self.index_chunks(collection, file_slug, processed_chunks)
            logger.info(f"Successfully processed and stored {page_url}")
            return True

        except Exception as e:
            logger.error(f"Error processing {task.url}: {e}", exc_info=True)
            return False

    async def index_chunks(self, collection: str, file_slug: str, processed_chunks: List[ProcessedChunk]) -> int:
        """
        Replace a page's points, upserting in fixed-size batches. Failed batches are logged and skipped.

        Returns:
            int: Number of points written
        """
        points = [
            IndexedPoint(
                id=point_id(file_slug, item.chunk.sequence_index),
                vector=item.embedding,
                payload={
                    "pageUrl": item.chunk.source_url,
                    "chunk": item.chunk.text,
                    "siteKey": collection,
                    "fileSlug": file_slug,
                    "sectionPath": item.chunk.section_path,
                    "sequenceIndex": item.chunk.sequence_index,
                },
            )
            for item in processed_chunks
        ]

        try:
            await self.vector_store.delete_page(collection, file_slug)
        except Exception as e:
            logger.warning(f"Could not remove previous points for {file_slug}: {e}")

        written = 0
        for batch_number, start in enumerate(range(0, len(points), self.batch_size), start=1):
            batch = points[start:start + self.batch_size]
            try:
                await self.vector_store.upsert_batch(collection, batch, batch_number)
                written += len(batch)
            except IngestionBatchFailure as e:
                logger.error(str(e))

        logger.info(f"Indexed {written}/{len(points)} chunks for {file_slug}")
        return written
