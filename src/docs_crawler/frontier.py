"""Breadth-first crawl frontier with a depth bound and a visited set."""

from collections import deque
from typing import Deque, Iterable, Optional, Set

from .models import CrawlTask
from .config import logger, CrawlerConfig
from .urls import normalize_url, is_in_scope


class CrawlFrontier:
    """
    FIFO queue of pending crawl tasks for one site and one crawl run.

    Every normalized URL moves from pending to visited at most once, so no
    page is rendered twice. Tasks deeper than max_depth are never queued.
    """

    def __init__(self, base_url: str, max_depth: int = CrawlerConfig.MAX_DEPTH):
        self.base_url = base_url
        self.max_depth = max_depth
        self.visited: Set[str] = set()
        self._queue: Deque[CrawlTask] = deque()
        self._queued: Set[str] = set()

    def __len__(self) -> int:
        return len(self._queue)

    def __bool__(self) -> bool:
        return bool(self._queue)

    def normalize(self, url: str) -> str:
        return normalize_url(url, self.base_url)

    def add(self, url: str, depth: int) -> bool:
        """
        Queue a URL at the given depth.

        Returns:
            bool: False if the URL was too deep, already visited or already queued
        """
        return self._enqueue(self.normalize(url), depth)

    def _enqueue(self, normalized: str, depth: int) -> bool:
        if depth > self.max_depth:
            return False
        if normalized in self.visited or normalized in self._queued:
            return False
        self._queue.append(CrawlTask(url=normalized, depth=depth))
        self._queued.add(normalized)
        return True

    def seed(self) -> None:
        self.add(self.base_url, 1)

    def pop(self) -> Optional[CrawlTask]:
        """Take the oldest pending task and mark it visited. None when the frontier is empty."""
        while self._queue:
            task = self._queue.popleft()
            self._queued.discard(task.url)
            if task.url in self.visited:
                logger.info(f"Skipping already visited: {task.url}")
                continue
            self.visited.add(task.url)
            return task
        return None

    def reconcile_redirect(self, task: CrawlTask, final_url: str) -> Optional[str]:
        """
        Settle which URL a rendered page is attributed to.

        Returns:
            Optional[str]: The URL to attribute content to, or None if the
            redirect target was already visited and the task should be abandoned
        """
        final = self.normalize(final_url or task.url)
        if final == task.url:
            return task.url

        logger.info(f"Redirected from {task.url} to {final}")
        if final in self.visited:
            logger.info(f"Already visited the redirect target: {final}, skipping")
            return None
        self.visited.add(final)
        self._queued.discard(final)
        return final

    def discover(self, task: CrawlTask, links: Iterable[str]) -> int:
        """
        Queue in-scope links found on a page one level below it.

        Returns:
            int: Number of newly queued links
        """
        if task.depth >= self.max_depth:
            return 0

        added = 0
        seen: Set[str] = set()
        for link in links:
            normalized = self.normalize(link)
            if normalized in seen or not is_in_scope(normalized, self.base_url):
                continue
            seen.add(normalized)
            if self._enqueue(normalized, task.depth + 1):
                added += 1

        logger.info(f"Queued {added} new links from {task.url} at depth {task.depth + 1}")
        return added
