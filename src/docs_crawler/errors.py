"""Exceptions raised by the crawl and retrieval pipeline."""


class DocsCrawlerError(Exception):
    """Base class for all crawler errors."""


class RenderFailure(DocsCrawlerError):
    """A page could not be rendered (non-2xx status, network or browser error)."""

    def __init__(self, url: str, reason: str, status_code=None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Failed to render {url} ({status_code or 'unknown status'}): {reason}")


class ExtractionFailure(DocsCrawlerError):
    """Rendered HTML could not be turned into usable content."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to extract content from {url}: {reason}")


class EmbeddingFailure(DocsCrawlerError):
    """The embedding model failed; callers degrade to the fallback vector."""


class IngestionBatchFailure(DocsCrawlerError):
    """One batch of vector-store upserts failed."""

    def __init__(self, collection: str, batch_number: int, reason: str):
        self.collection = collection
        self.batch_number = batch_number
        super().__init__(f"Upsert of batch {batch_number} into '{collection}' failed: {reason}")


class RetrievalFailure(DocsCrawlerError):
    """Vector search against a collection failed."""

    def __init__(self, collection: str, reason: str):
        self.collection = collection
        super().__init__(f"Vector search in '{collection}' failed: {reason}")
