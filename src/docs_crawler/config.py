"""Configuration module for the documentation crawler."""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv
from typing import Optional
from qdrant_client import AsyncQdrantClient

# Load environment variables
load_dotenv()

# Mirror roots: one inside the project, one in the user's home directory
DATA_DIR = Path(os.environ.get("DOCS_CRAWLER_DATA_DIR", "./data"))
HOME_MIRROR_DIR = Path(
    os.environ.get("DOCS_CRAWLER_HOME_DIR", str(Path.home() / "crawled-docs"))
).expanduser()

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


# Logging configuration
def setup_logging(log_file: Optional[str] = "crawler.log") -> logging.Logger:
    """
    Set up logging for the application.

    Console output goes to stderr because stdout carries the MCP stdio transport.
    Calling this more than once returns the already configured logger.
    """
    logger = logging.getLogger("docs_crawler")
    if logger.handlers:
        return logger
    logger.setLevel(logging.INFO)

    # File handler
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    # Console handler (stderr)
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console_handler)

    return logger


# Create logger instance
logger = setup_logging(os.environ.get("DOCS_CRAWLER_LOG_FILE", "crawler.log"))

# Qdrant configuration
QDRANT_URL = os.environ.get("QDRANT_URL", "http://localhost:6333")
QDRANT_API_KEY = os.environ.get("QDRANT_API_KEY") or None


def get_qdrant_client() -> AsyncQdrantClient:
    """Get an async Qdrant client for the configured endpoint."""
    logger.info(f"Connecting to Qdrant at {QDRANT_URL}")
    return AsyncQdrantClient(url=QDRANT_URL, api_key=QDRANT_API_KEY)


# Embedding configuration
EMBEDDING_PROVIDER = os.environ.get("EMBEDDING_PROVIDER", "local").lower()
EMBEDDING_MODEL = os.environ.get("EMBEDDING_MODEL", "")

OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "")
if EMBEDDING_PROVIDER == "openai" and not OPENAI_API_KEY:
    logger.warning("OPENAI_API_KEY environment variable not set")


# Crawler configuration
class CrawlerConfig:
    """Configuration for the crawler."""
    MAX_DEPTH = 2
    MAX_CHUNK_SIZE = 4000
    MIN_CHUNK_SIZE = 250
    CHUNK_OVERLAP = 500
    VECTOR_SIZE = 384
    LOCAL_EMBEDDING_MODEL = "sentence-transformers/all-MiniLM-L6-v2"
    OPENAI_EMBEDDING_MODEL = "text-embedding-3-small"
    MAX_EMBED_CHARS = 8192
    CACHE_KEY_CHARS = 100
    UPSERT_BATCH_SIZE = 50
    PAGE_TIMEOUT_MS = 60000
    PAGE_SETTLE_SECONDS = 1.0
    SEARCH_TOP_K = 7
    USER_AGENT = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
    )
