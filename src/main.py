#!/usr/bin/env python3
"""Main entry point for the documentation crawler."""

import argparse
import asyncio
import sys
from typing import List, Optional

from docs_crawler import logger, build_tools, CrawlerConfig
from docs_crawler.server import run as serve


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Crawl documentation websites and search them')
    subparsers = parser.add_subparsers(dest='command', required=True)

    crawl = subparsers.add_parser('crawl', help='Crawl a docs site up to depth 2 and index it')
    crawl.add_argument('--url', type=str, required=True,
                       help='Base URL to crawl (e.g., https://example.com/docs)')
    crawl.add_argument('--force', action='store_true',
                       help='Remove previously stored data for the site before crawling')

    search = subparsers.add_parser('search', help='Search a previously crawled docs site')
    search.add_argument('--url', type=str, required=True,
                        help='Base URL that was crawled')
    search.add_argument('queries', nargs='+', help='One or more queries')
    search.add_argument('--top-k', type=int, default=CrawlerConfig.SEARCH_TOP_K,
                        help='Results per query')

    subparsers.add_parser('serve', help='Run the MCP server on stdio')
    return parser


async def run(args: argparse.Namespace) -> int:
    """Run a crawl or search command. Returns the process exit code."""
    tools = build_tools()
    tools.top_k = getattr(args, 'top_k', tools.top_k)
    try:
        if args.command == 'crawl':
            response = await tools.crawl_docs_website(args.url, args.force)
        else:
            # Queries embedded before the model is ready would not match stored vectors
            await tools.retrieval.embedding_service.wait_until_ready()
            response = await tools.search_docs(args.url, args.queries)
    finally:
        await tools.retrieval.embedding_service.close()
        await tools.retrieval.vector_store.close()

    print(response.text)
    return 1 if response.is_error else 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    args = build_parser().parse_args(argv)
    try:
        if args.command == 'serve':
            serve()
            return 0

        logger.info(f"Starting docs crawler: {args.command} {args.url}")
        return asyncio.run(run(args))
    except Exception as e:
        logger.critical(f"Unhandled exception in main: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
