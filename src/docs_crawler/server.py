"""MCP server exposing the crawl and search tools over stdio."""

from typing import Annotated, List, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from pydantic import Field

from .config import logger
from .tools import DocsTools, build_tools

SERVER_NAME = "docs-crawler"


def create_server(tools: Optional[DocsTools] = None) -> FastMCP:
    """
    Build the MCP server.

    Args:
        tools: Tool handlers to expose. If None, built from configuration

    Returns:
        FastMCP: A server with crawl-docs-website and search-docs registered
    """
    tools = tools or build_tools()
    server = FastMCP(SERVER_NAME)

    # Parameter names are part of the tool schema agents call with
    @server.tool(
        name="crawl-docs-website",
        description="Crawl a documentation website up to depth=2, store chunks in local Qdrant & disk",
    )
    async def crawl_docs_website(
        baseUrl: Annotated[str, Field(description="Base URL of the docs website to crawl")],
        forceRecrawl: Annotated[bool, Field(description="If true, remove old data first and re-crawl")] = False,
    ) -> str:
        response = await tools.crawl_docs_website(baseUrl, forceRecrawl)
        if response.is_error:
            raise ToolError(response.text)
        return response.text

    @server.tool(
        name="search-docs",
        description="Search the previously crawled docs for relevant chunks",
    )
    async def search_docs(
        baseUrl: Annotated[str, Field(description="Base URL of the docs website that was crawled")],
        queries: Annotated[List[str], Field(description="Array of query strings to search for")],
    ) -> str:
        response = await tools.search_docs(baseUrl, queries)
        if response.is_error:
            raise ToolError(response.text)
        return response.text

    return server


def run() -> None:
    """Serve the tools on stdio until the client disconnects."""
    server = create_server()
    logger.info("Docs Crawler MCP Server running on stdio")
    server.run()
