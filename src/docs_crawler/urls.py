"""URL normalization, slugs and crawl scope.

Ingestion, retrieval and the local mirror all derive a site's identity from
these functions, so they can never disagree on a collection or file name.
"""

import re
from urllib.parse import urlparse

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_NON_ALNUM_RE = re.compile(r"[^A-Za-z0-9]+")

DOCS_PATH_SEGMENTS = ("/docs/", "/guide/", "/api/")


def to_slug(url: str) -> str:
    """
    Turn a URL into a filesystem- and collection-safe key.

    >>> to_slug("https://example.com/docs/")
    'example_com_docs_'
    """
    without_scheme = _SCHEME_RE.sub("", url)
    return _NON_ALNUM_RE.sub("_", without_scheme).lower()


def normalize_url(url: str, base_url: str) -> str:
    """Strip the fragment and a single trailing slash, except for the base URL itself."""
    normalized = url.split("#", 1)[0]
    if normalized != base_url and normalized.endswith("/"):
        normalized = normalized[:-1]
    return normalized


def is_in_scope(url: str, base_url: str) -> bool:
    """
    Check whether a discovered link belongs to the documentation being crawled.

    The link must live on the base URL's host, and either sit under the base
    path or contain a documentation-like path segment.
    """
    try:
        parsed = urlparse(url)
        base = urlparse(base_url)
    except ValueError:
        return False

    if parsed.scheme not in ("http", "https"):
        return False
    if not parsed.hostname or parsed.hostname != base.hostname:
        return False

    base_path = base.path if base.path.endswith("/") else base.path + "/"
    path = parsed.path or "/"
    in_base_path = path.startswith(base_path) or path == base_path.rstrip("/")
    is_docs_path = any(segment in path for segment in DOCS_PATH_SEGMENTS)
    return in_base_path or is_docs_path
