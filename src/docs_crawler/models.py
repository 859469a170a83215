"""Data models for the documentation crawler."""

from dataclasses import dataclass, field
from typing import Dict, List, Any
from urllib.parse import urlparse
from pydantic import BaseModel, Field, field_validator
from enum import Enum


@dataclass(frozen=True)
class CrawlTask:
    """A URL waiting in the frontier, with its BFS depth (seed is 1)."""
    url: str
    depth: int


@dataclass
class RenderedPage:
    """Result of rendering a URL in the browser."""
    requested_url: str
    final_url: str
    status_code: int
    html: str = ""


@dataclass(frozen=True)
class Chunk:
    """A bounded span of page text scoped to one section of the page."""
    text: str
    source_url: str
    section_path: str
    sequence_index: int


@dataclass
class ProcessedChunk:
    """A chunk together with its embedding."""
    chunk: Chunk
    embedding: List[float]


@dataclass
class IndexedPoint:
    """The unit persisted in the vector store."""
    id: str
    vector: List[float]
    payload: Dict[str, Any] = field(default_factory=dict)


class RetrievalPath(str, Enum):
    """Which retrieval path produced a search result."""
    VECTOR = "vector"
    LEXICAL = "lexical"


@dataclass
class SearchResult:
    """A ranked passage returned by the retrieval engine."""
    chunk_text: str
    page_url: str
    score: float
    source: RetrievalPath = RetrievalPath.VECTOR


class MirrorMetadata(BaseModel):
    """Metadata stored next to each chunk in the local mirror."""
    pageUrl: str
    linksFound: List[str] = Field(default_factory=list)
    sectionPath: str = ""
    sequenceIndex: int = 0


class MirrorRecord(BaseModel):
    """One entry of a page's mirror file."""
    chunk: str
    metadata: MirrorMetadata


def _check_absolute_url(value: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"'{value}' is not an absolute http(s) URL")
    return value


class CrawlRequest(BaseModel):
    """Input of the crawl-docs-website tool."""
    base_url: str = Field(..., description="Base URL of the docs website to crawl")
    force_recrawl: bool = Field(False, description="If true, remove old data first and re-crawl")

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        return _check_absolute_url(value)


class SearchRequest(BaseModel):
    """Input of the search-docs tool."""
    base_url: str = Field(..., description="Base URL of the docs website that was crawled")
    queries: List[str] = Field(..., min_length=1, description="Query strings to search for")

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        return _check_absolute_url(value)

    @field_validator("queries")
    @classmethod
    def validate_queries(cls, value: List[str]) -> List[str]:
        if any(not query.strip() for query in value):
            raise ValueError("queries must not contain empty strings")
        return value
