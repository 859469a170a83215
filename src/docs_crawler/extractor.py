"""Extracts Markdown content and outbound links from rendered HTML."""

import re
from typing import List, Optional
from urllib.parse import urljoin

import html2text
from bs4 import BeautifulSoup, Tag

from .config import logger
from .errors import ExtractionFailure

# Tried in order; the first match is taken as the page's main content
CONTENT_SELECTORS = [
    "main",
    "article",
    ".content",
    ".documentation",
    "#content",
    ".main-content",
    ".docs-content",
    "div.container div.row div.col:not(.sidebar)",
    "div.right-column",
    "[role='main']",
]

# Stripped from the body when no content selector matches
NON_CONTENT_SELECTORS = [
    "header",
    "footer",
    "nav",
    ".navigation",
    ".sidebar",
    ".menu",
    "#menu",
    ".navbar",
    ".footer",
    ".header",
]

SKIPPED_HREF_PREFIXES = ("javascript:", "mailto:", "#")


class ContentExtractor:
    """Turns a rendered page into Markdown and a list of absolute links."""

    def __init__(self):
        self.converter = html2text.HTML2Text()
        self.converter.body_width = 0
        self.converter.ignore_images = True
        self.converter.ignore_emphasis = False

    def _main_content(self, soup: BeautifulSoup) -> Optional[Tag]:
        for selector in CONTENT_SELECTORS:
            element = soup.select_one(selector)
            if element is not None:
                logger.debug(f"Found content with selector: {selector}")
                return element

        logger.debug("No content selectors matched, falling back to the page body")
        body = soup.body or soup
        for selector in NON_CONTENT_SELECTORS:
            for element in body.select(selector):
                element.decompose()
        return body

    def extract_markdown(self, html: str, url: str = "") -> str:
        """
        Convert the main content of a page to Markdown.

        Args:
            html: Rendered page HTML
            url: Page URL, used in error messages

        Returns:
            str: Cleaned Markdown, possibly empty

        Raises:
            ExtractionFailure: If the HTML cannot be parsed or converted
        """
        if not html or not html.strip():
            return ""

        try:
            soup = BeautifulSoup(html, "html.parser")
            for element in soup(["script", "style", "noscript"]):
                element.decompose()
            content = self._main_content(soup)
            markdown = self.converter.handle(str(content)) if content is not None else ""
        except Exception as e:
            raise ExtractionFailure(url, str(e)) from e

        cleaned = re.sub(r"\n{3,}", "\n\n", markdown).strip()
        logger.info(f"Extracted {len(cleaned)} chars of Markdown from {url or 'page'}")
        return cleaned

    def extract_links(self, html: str, page_url: str) -> List[str]:
        """
        Collect absolute http(s) links from every anchor on the page.

        Args:
            html: Rendered page HTML
            page_url: URL relative links are resolved against

        Returns:
            List[str]: Links in page order, duplicates removed
        """
        if not html:
            return []

        soup = BeautifulSoup(html, "html.parser")
        links: List[str] = []
        seen = set()
        for anchor in soup.find_all("a", href=True):
            href = anchor["href"].strip()
            if not href or href == "/" or href.startswith(SKIPPED_HREF_PREFIXES):
                continue
            absolute = urljoin(page_url, href)
            if not absolute.startswith(("http://", "https://")) or absolute in seen:
                continue
            seen.add(absolute)
            links.append(absolute)

        logger.info(f"Found {len(links)} links on {page_url}")
        return links
