#################################################################
## This module is solely responsible for keeping sitemaps in sync with
# the files on disk. It can regenerate a sitemap from scratch
# (generate_sitemap) or apply a single file change to an existing one
# (on_file_added, on_file_saved, on_file_removed, on_file_renamed).
# Every call re-reads the sitemap file and rewrites it completely.
#################################################################

import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Optional
from SitemapDocument import SitemapDocument, SitemapEntry
from TreeScanner import TreeScanner
from sitemap_config import SitemapSettings
from utils import calculate_priority, derive_url, url_depth

from logger_config import get_logger
logger = get_logger(__name__)


class SitemapGenerator:
    def __init__(self, workspace_root: Path, clock: Optional[Callable[[], datetime]] = None):
        self.workspace_root = Path(workspace_root).resolve()
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        # One writer per sitemap file, watcher callbacks may overlap
        self._locks: Dict[Path, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def sitemap_path(self, sitemap: str) -> Path:
        """Absolute path of a workspace-relative sitemap."""
        return self.workspace_root / sitemap

    @contextmanager
    def _locked(self, sitemap: str):
        path = self.sitemap_path(sitemap)
        with self._locks_guard:
            lock = self._locks.setdefault(path, threading.Lock())
        with lock:
            yield path

    def get_url(self, settings: SitemapSettings, file_path) -> str:
        """URL for a file given as an absolute path or a path relative to the sitemap root."""
        path = Path(file_path)
        if path.is_absolute():
            root_dir = (self.workspace_root / settings.root).resolve()
            try:
                path = path.resolve().relative_to(root_dir)
            except ValueError:
                raise ValueError(f"{file_path} is outside the sitemap root {root_dir}") from None
        return derive_url(settings, path.as_posix())

    def has_entry(self, sitemap: str, settings: SitemapSettings, file_path) -> bool:
        """Whether the sitemap already lists the page for file_path."""
        url = self.get_url(settings, file_path)
        with self._locked(sitemap) as path:
            return SitemapDocument.load(path).find_entry(url) is not None

    def _write(self, document: SitemapDocument, path: Path, settings: SitemapSettings):
        document.save(path, settings.minimized, settings.tab_characters, settings.tags_to_include)

    def generate_sitemap(self, sitemap: str, settings: SitemapSettings) -> Path:
        """Generate a sitemap from the files under its root, overwriting any existing one."""
        scan = TreeScanner(self.workspace_root, settings).scan()

        with self._locked(sitemap) as path:
            document = SitemapDocument()
            for record in scan.files:
                document.add_url(
                    record.url,
                    last_modified=record.last_modified,
                    priority=calculate_priority(record.depth, scan.max_depth),
                    change_frequency=settings.default_change_frequency,
                )
            self._write(document, path, settings)

        logger.info(f"Generated {sitemap} with {len(scan.files)} URLs")
        return path

    def on_file_added(self, sitemap: str, settings: SitemapSettings, file_path):
        """Add a new page, ranked against the depths already in the sitemap."""
        url = self.get_url(settings, file_path)

        with self._locked(sitemap) as path:
            document = SitemapDocument.load(path)
            depth = url_depth(url)
            max_depth = document.current_max_depth()
            if max_depth < 0:
                # first page of an empty sitemap ranks against itself
                max_depth = depth
            document.add_url(
                url,
                last_modified=self.clock(),
                priority=calculate_priority(depth, max_depth),
                change_frequency=settings.default_change_frequency,
            )
            self._write(document, path, settings)

        logger.info(f"Added {url} to {sitemap}")

    def on_file_saved(self, sitemap: str, settings: SitemapSettings, file_path):
        """Bump lastmod of a saved page. Pages missing from the sitemap are left out."""
        url = self.get_url(settings, file_path)

        with self._locked(sitemap) as path:
            document = SitemapDocument.load(path)
            entry = document.find_entry(url)
            if entry is None:
                logger.warning(f"{url} is not in {sitemap}, nothing to update")
            else:
                entry.last_modified = self.clock()
                logger.info(f"Updated lastmod of {url} in {sitemap}")
            self._write(document, path, settings)

    def on_file_removed(self, sitemap: str, settings: SitemapSettings, file_path):
        url = self.get_url(settings, file_path)

        with self._locked(sitemap) as path:
            document = SitemapDocument.load(path)
            if document.remove_entry(url) is None:
                logger.debug(f"{url} was not in {sitemap}")
            self._write(document, path, settings)

        logger.info(f"Removed {url} from {sitemap}")

    def on_file_renamed(self, sitemap: str, settings: SitemapSettings, old_file_path, new_file_path):
        """Move a page to its new URL, keeping its priority and change frequency."""
        old_url = self.get_url(settings, old_file_path)
        new_url = self.get_url(settings, new_file_path)

        with self._locked(sitemap) as path:
            document = SitemapDocument.load(path)
            old_entry = document.find_entry(old_url)
            if old_entry is None:
                logger.warning(f"{old_url} is not in {sitemap}, adding {new_url} without a priority")
                old_entry = SitemapEntry(old_url)

            # remove first so a rename onto the same identity keeps a single entry
            document.remove_entry(old_url)
            document.add_url(
                new_url,
                last_modified=self.clock(),
                priority=old_entry.priority,
                change_frequency=old_entry.change_frequency,
            )
            self._write(document, path, settings)

        logger.info(f"Renamed {old_url} to {new_url} in {sitemap}")
