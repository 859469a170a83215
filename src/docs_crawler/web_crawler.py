"""Web crawler module: renders pages in a headless browser."""

from typing import Optional

from crawl4ai import (
    AsyncWebCrawler,
    BrowserConfig,
    CacheMode,
    CrawlerRunConfig,
)

from .models import RenderedPage
from .errors import RenderFailure
from .config import logger, CrawlerConfig


class CrawlerService:
    """
    Service for rendering pages with one shared browser session.

    Use as an async context manager; the browser is released when the block
    exits, including on errors.
    """

    def __init__(self, page_timeout_ms: int = CrawlerConfig.PAGE_TIMEOUT_MS):
        """Initialize the crawler service."""
        self.browser_config = BrowserConfig(
            headless=True,
            verbose=False,
            user_agent=CrawlerConfig.USER_AGENT,
            extra_args=["--disable-dev-shm-usage", "--no-sandbox", "--disable-gpu"],
        )

        self.crawl_config = CrawlerRunConfig(
            cache_mode=CacheMode.BYPASS,
            wait_until="networkidle",
            page_timeout=page_timeout_ms,
            # Give client-side rendering a moment to settle
            delay_before_return_html=CrawlerConfig.PAGE_SETTLE_SECONDS,
            verbose=False,
        )
        self._crawler: Optional[AsyncWebCrawler] = None

    async def __aenter__(self) -> "CrawlerService":
        logger.info("Launching headless browser...")
        crawler = AsyncWebCrawler(config=self.browser_config)
        await crawler.start()
        self._crawler = crawler
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        crawler, self._crawler = self._crawler, None
        if crawler is not None:
            await crawler.close()
            logger.info("Headless browser closed")

    async def render(self, url: str) -> RenderedPage:
        """
        Render a single URL and return its final HTML.

        Args:
            url: The URL to render

        Returns:
            RenderedPage: HTML, final URL after redirects and HTTP status

        Raises:
            RenderFailure: On a non-2xx status, network error or browser error
        """
        if self._crawler is None:
            raise RuntimeError("CrawlerService must be used as an async context manager")

        logger.info(f"Rendering URL: {url}")
        try:
            result = await self._crawler.arun(url=url, config=self.crawl_config)
        except Exception as e:
            raise RenderFailure(url, str(e)) from e

        status = result.status_code
        if not result.success:
            raise RenderFailure(url, result.error_message or "crawl unsuccessful", status)
        if status is not None and not 200 <= status < 300:
            raise RenderFailure(url, "non-2xx response", status)

        return RenderedPage(
            requested_url=url,
            final_url=result.redirected_url or result.url or url,
            status_code=status or 200,
            html=result.html or "",
        )
