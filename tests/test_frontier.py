"""Tests for the breadth-first crawl frontier."""

from docs_crawler.frontier import CrawlFrontier
from docs_crawler.models import CrawlTask

BASE = "https://docs.example.com/docs/"


def url(path):
    return f"https://docs.example.com/docs/{path}"


class TestCrawlFrontier:
    def test_seed_is_depth_one(self):
        frontier = CrawlFrontier(BASE)
        frontier.seed()

        assert frontier.pop() == CrawlTask(url=BASE, depth=1)
        assert frontier.pop() is None
        assert not frontier

    def test_too_deep_rejected(self):
        frontier = CrawlFrontier(BASE, max_depth=2)
        assert not frontier.add(url("deep"), 3)
        assert len(frontier) == 0

    def test_duplicates_and_visited_rejected(self):
        frontier = CrawlFrontier(BASE)
        assert frontier.add(url("a"), 2)
        assert not frontier.add(url("a/"), 2)
        frontier.pop()
        assert not frontier.add(url("a#section"), 2)

    def test_discover_filters_and_dedups(self):
        frontier = CrawlFrontier(BASE)
        frontier.seed()
        task = frontier.pop()

        added = frontier.discover(task, [
            url("a#install"),
            url("a/"),
            "https://other.example.com/docs/b",
            "https://docs.example.com/blog/post",
            "https://docs.example.com/v1/api/ref",
        ])

        assert added == 2
        assert frontier.pop() == CrawlTask(url=url("a"), depth=2)
        assert frontier.pop() == CrawlTask(url="https://docs.example.com/v1/api/ref", depth=2)

    def test_no_discovery_at_max_depth(self):
        frontier = CrawlFrontier(BASE, max_depth=2)
        assert frontier.discover(CrawlTask(url=url("a"), depth=2), [url("b")]) == 0
        assert len(frontier) == 0

    def test_redirect_marks_target_visited(self):
        frontier = CrawlFrontier(BASE)
        frontier.add(url("old"), 2)
        frontier.add(url("new"), 2)
        task = frontier.pop()

        assert frontier.reconcile_redirect(task, url("new/")) == url("new")
        assert url("new") in frontier.visited
        assert frontier.pop() is None

    def test_redirect_to_visited_page_abandons_task(self):
        frontier = CrawlFrontier(BASE)
        frontier.seed()
        frontier.pop()
        frontier.add(url("alias"), 2)
        task = frontier.pop()

        assert frontier.reconcile_redirect(task, BASE) is None

    def test_no_redirect(self):
        frontier = CrawlFrontier(BASE)
        frontier.seed()
        task = frontier.pop()
        assert frontier.reconcile_redirect(task, BASE) == BASE

    def test_terminates_on_cyclic_links(self):
        pages = [BASE] + [url(name) for name in ("a", "b", "c")]
        frontier = CrawlFrontier(BASE, max_depth=3)
        frontier.seed()

        popped = []
        while True:
            task = frontier.pop()
            if task is None:
                break
            popped.append(task.url)
            frontier.discover(task, pages)

        assert sorted(popped) == sorted(pages)
        assert len(popped) == len(set(popped))
