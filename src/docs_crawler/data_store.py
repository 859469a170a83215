"""Data store module: the local JSON mirror of crawled chunks."""

import json
import shutil
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from .models import MirrorRecord
from .config import logger, DATA_DIR, HOME_MIRROR_DIR


class LocalMirror:
    """
    Per-site directories of per-page JSON files.

    The same files are written under every root. The first root is the
    primary one, read back by the lexical fallback search.
    """

    def __init__(self, roots: Optional[Sequence[Path]] = None):
        """
        Initialize the mirror.

        Args:
            roots: Mirror root directories. If None, uses the configured project and home roots
        """
        self.roots = [Path(root) for root in (roots or (DATA_DIR, HOME_MIRROR_DIR))]
        logger.info(f"Local mirror initialized at {', '.join(str(root) for root in self.roots)}")

    def site_dirs(self, collection_key: str) -> List[Path]:
        return [root / collection_key for root in self.roots]

    def primary_dir(self, collection_key: str) -> Path:
        return self.roots[0] / collection_key

    def has_site(self, collection_key: str) -> bool:
        return self.primary_dir(collection_key).is_dir()

    def ensure_site(self, collection_key: str) -> None:
        for site_dir in self.site_dirs(collection_key):
            site_dir.mkdir(parents=True, exist_ok=True)

    def clear_site(self, collection_key: str) -> None:
        """Delete every mirror directory of a site."""
        for site_dir in self.site_dirs(collection_key):
            if site_dir.exists():
                shutil.rmtree(site_dir)
                logger.info(f"Removed old data folder: {site_dir}")

    def write_page(self, collection_key: str, file_slug: str, records: List[MirrorRecord]) -> bool:
        """
        Write one page's chunk records to every mirror root.

        Args:
            collection_key: The site's collection key
            file_slug: File name (without extension) derived from the page URL
            records: The page's chunk records

        Returns:
            bool: True if every copy was written
        """
        data = json.dumps([record.model_dump() for record in records], indent=2, ensure_ascii=False)
        try:
            for site_dir in self.site_dirs(collection_key):
                site_dir.mkdir(parents=True, exist_ok=True)
                (site_dir / f"{file_slug}.json").write_text(data, encoding="utf-8")
        except OSError as e:
            logger.error(f"Error writing local files for {file_slug}: {e}")
            return False

        logger.info(f"Saved {len(records)} chunks for {file_slug} to local files")
        return True

    def list_pages(self, collection_key: str) -> List[str]:
        """File slugs of every page stored in the primary mirror."""
        site_dir = self.primary_dir(collection_key)
        if not site_dir.is_dir():
            return []
        return sorted(path.stem for path in site_dir.glob("*.json"))

    def iter_records(self, collection_key: str) -> Iterator[Tuple[Path, List[MirrorRecord]]]:
        """
        Yield the records of every page file in the primary mirror.

        Files that cannot be read or parsed are logged and skipped.
        """
        site_dir = self.primary_dir(collection_key)
        if not site_dir.is_dir():
            logger.warning(f"Data folder {site_dir} doesn't exist")
            return

        files = sorted(site_dir.glob("*.json"))
        logger.info(f"Found {len(files)} data files in {site_dir}")
        for path in files:
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
                records = [MirrorRecord.model_validate(item) for item in raw]
            except (OSError, ValueError, TypeError, ValidationError) as e:
                logger.error(f"Error reading or parsing file {path}: {e}")
                continue
            yield path, records
