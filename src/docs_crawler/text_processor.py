"""Text processor module for splitting page Markdown into heading-scoped chunks."""

import math
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .models import Chunk, ProcessedChunk
from .config import logger, CrawlerConfig
from .embedding_service import EmbeddingService

HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$")
FENCE_RE = re.compile(r"^\s*(```|~~~)")
PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")
PARAGRAPH_SEPARATOR = "\n\n"
INTRODUCTION = "Introduction"


@dataclass
class SectionNode:
    """A heading and the body text under it. Index 0 of the arena is the document root."""
    title: str
    level: int
    parent: Optional[int]
    body_lines: List[str] = field(default_factory=list)
    children: List[int] = field(default_factory=list)

    @property
    def body(self) -> str:
        return "\n".join(self.body_lines).strip()


class TextProcessor:
    """Service for processing page text into chunks."""

    def __init__(
        self,
        embedding_service: Optional[EmbeddingService] = None,
        max_chunk_size: int = CrawlerConfig.MAX_CHUNK_SIZE,
        min_chunk_size: int = CrawlerConfig.MIN_CHUNK_SIZE,
        chunk_overlap: int = CrawlerConfig.CHUNK_OVERLAP,
    ):
        """
        Initialize the text processor.

        Args:
            embedding_service: The embedding service used by process_document
            max_chunk_size: Upper bound on chunk length in characters
            min_chunk_size: Length a chunk must reach before it is emitted mid-section
            chunk_overlap: Target overlap between consecutive chunks in characters
        """
        if min_chunk_size * 2 + len(PARAGRAPH_SEPARATOR) > max_chunk_size:
            raise ValueError("max_chunk_size must be more than twice min_chunk_size")
        self.embedding_service = embedding_service
        self.max_chunk_size = max_chunk_size
        self.min_chunk_size = min_chunk_size
        self.chunk_overlap = chunk_overlap
        # A buffer shorter than min_chunk_size can always take one more piece
        self.piece_limit = max_chunk_size - min_chunk_size - len(PARAGRAPH_SEPARATOR)

    def parse_sections(self, text: str) -> List[SectionNode]:
        """
        Parse Markdown into an arena of section nodes linked by parent index.

        Args:
            text: The Markdown text

        Returns:
            List[SectionNode]: The nodes, root first, in document order
        """
        nodes = [SectionNode(title="Document Root", level=0, parent=None)]
        open_sections = [0]
        current = 0
        open_fence: Optional[str] = None

        for line in text.splitlines():
            fence_match = FENCE_RE.match(line)
            if fence_match:
                marker = fence_match.group(1)
                # Only the marker that opened a block closes it
                if open_fence is None:
                    open_fence = marker
                elif marker == open_fence:
                    open_fence = None
            match = None if open_fence else HEADING_RE.match(line)
            title = match.group(2).strip() if match else ""

            if not title:
                nodes[current].body_lines.append(line)
                continue

            level = len(match.group(1))
            while nodes[open_sections[-1]].level >= level:
                open_sections.pop()
            parent = open_sections[-1]

            nodes.append(SectionNode(title=title, level=level, parent=parent))
            current = len(nodes) - 1
            nodes[parent].children.append(current)
            open_sections.append(current)

        return nodes

    def chunk_text(self, text: str, source_url: str = "") -> List[Chunk]:
        """
        Chunk a document into heading-scoped pieces bounded by the configured sizes.

        Args:
            text: The document Markdown
            source_url: The URL the document came from

        Returns:
            List[Chunk]: Chunks in emit order, numbered from 0
        """
        if not text or not text.strip():
            return []

        logger.info(f"Chunking text of size {len(text)} characters from {source_url or 'document'}")
        nodes = self.parse_sections(text)
        pieces: List[Tuple[str, str]] = []

        # Depth-first, pre-order, without recursion
        pending = [(child, "") for child in reversed(nodes[0].children)]
        while pending:
            index, parent_path = pending.pop()
            node = nodes[index]
            section_path = f"{parent_path} > {node.title}" if parent_path else node.title

            body = node.body
            if body:
                content = f"{'#' * node.level} {node.title}{PARAGRAPH_SEPARATOR}{body}"
                pieces.extend((piece, section_path) for piece in self.split_section(content))

            pending.extend((child, section_path) for child in reversed(node.children))

        introduction = nodes[0].body
        if introduction:
            pieces.extend((piece, INTRODUCTION) for piece in self.split_section(introduction))

        chunks = [
            Chunk(text=piece, source_url=source_url, section_path=path, sequence_index=i)
            for i, (piece, path) in enumerate(pieces)
        ]
        logger.info(f"Text successfully chunked into {len(chunks)} chunks")
        return chunks

    def split_section(self, content: str) -> List[str]:
        """
        Split one section into overlapping chunks of whole paragraphs.

        Args:
            content: The section text, heading line included

        Returns:
            List[str]: The chunk texts
        """
        if len(content) <= self.max_chunk_size:
            return [content]

        paragraphs: List[str] = []
        for paragraph in PARAGRAPH_SPLIT_RE.split(content):
            paragraph = paragraph.strip()
            if paragraph:
                paragraphs.extend(self._split_long_paragraph(paragraph))

        max_backtrack = max(1, math.ceil(self.chunk_overlap / 100))
        chunks: List[str] = []
        start = 0
        emitted_end = 0

        while start < len(paragraphs):
            end = start
            length = 0
            while end < len(paragraphs):
                added = len(paragraphs[end]) + (len(PARAGRAPH_SEPARATOR) if end > start else 0)
                if length + added > self.max_chunk_size:
                    break
                length += added
                end += 1

            at_end = end >= len(paragraphs)
            # Skip buffers made only of paragraphs an earlier chunk already carries
            if end > emitted_end and (length >= self.min_chunk_size or at_end):
                chunks.append(PARAGRAPH_SEPARATOR.join(paragraphs[start:end]))
                emitted_end = end

            if at_end:
                break

            consumed = end - start
            backtrack = min(consumed // 2, max_backtrack)
            start = end - backtrack

        return chunks

    def _split_long_paragraph(self, paragraph: str) -> List[str]:
        """
        Cut a paragraph that is too long to share a chunk into smaller pieces.

        Prefers a line break, then a sentence end, then a space past 30% of the
        window; cuts hard when none is found.
        """
        limit = self.piece_limit
        pieces: List[str] = []
        start = 0

        while len(paragraph) - start > limit:
            window = paragraph[start:start + limit]
            cut = limit
            for separator in ("\n", ". ", " "):
                position = window.rfind(separator)
                if position > limit * 0.3:  # break past 30% of the window
                    cut = position + (1 if separator == ". " else 0)
                    break

            piece = paragraph[start:start + cut].strip()
            if piece:
                pieces.append(piece)
            start += cut

        tail = paragraph[start:].strip()
        if tail:
            pieces.append(tail)
        return pieces

    async def process_document(self, url: str, text: str) -> List[ProcessedChunk]:
        """
        Process a document by chunking it and embedding each chunk.

        Args:
            url: The URL the document is from
            text: The document text

        Returns:
            List[ProcessedChunk]: The chunks with their embeddings
        """
        if self.embedding_service is None:
            raise ValueError("An embedding service is required to process documents")

        logger.info(f"Processing document from {url} (size: {len(text)} chars)")
        chunks = self.chunk_text(text, source_url=url)

        processed_chunks = []
        for chunk in chunks:
            embedding = await self.embedding_service.embed_chunk(chunk.text)
            processed_chunks.append(ProcessedChunk(chunk=chunk, embedding=embedding))

        logger.info(f"Document processing complete: {len(processed_chunks)} chunks processed")
        return processed_chunks
