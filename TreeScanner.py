##############################################################################
# Walks a sitemap's root directory and collects the URL of every page file,
# applying the IncludeExt / Exclude rules from its settings. Also decides
# whether a single changed file belongs to the sitemap at all.
##############################################################################

import errno
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional
from sitemap_config import SitemapSettings
from utils import derive_url, url_depth
from logger_config import get_logger

logger = get_logger(__name__)

@dataclass
class FileRecord:
    url: str
    last_modified: datetime
    depth: int

@dataclass
class ScanResult:
    files: List[FileRecord]
    max_depth: int

class TreeScanner:
    def __init__(self, workspace_root: Path, settings: SitemapSettings):
        self.workspace_root = Path(workspace_root)
        self.settings = settings
        self.root_dir = self.workspace_root / settings.root
        self.exclude_patterns = settings.exclude_patterns()

    def scan(self) -> ScanResult:
        """Collect every included file under the root. Any OSError aborts the scan."""
        if not self.root_dir.is_dir():
            raise FileNotFoundError(errno.ENOENT, "Sitemap root directory not found", str(self.root_dir))

        files = []
        max_depth = -1
        for path in self._walk(self.root_dir):
            relative_path = path.relative_to(self.root_dir).as_posix()
            if not self.accepts(relative_path):
                continue

            url = derive_url(self.settings, relative_path)
            depth = url_depth(url)
            max_depth = max(max_depth, depth)
            files.append(FileRecord(
                url=url,
                last_modified=datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc),
                depth=depth,
            ))

        logger.info(f"Scanned {self.root_dir}: {len(files)} files, max depth {max_depth}")
        return ScanResult(files=files, max_depth=max_depth)

    def _walk(self, directory: Path) -> Iterator[Path]:
        for path in sorted(directory.iterdir()):
            if path.is_dir():
                if path.is_symlink():
                    logger.debug(f"Not following symlinked directory {path}")
                    continue
                yield from self._walk(path)
            else:
                yield path

    def accepts(self, relative_path: str) -> bool:
        """Check a root-relative posix path against IncludeExt and the Exclude patterns."""
        if os.path.splitext(relative_path)[1] not in self.settings.include_ext:
            return False
        for pattern in self.exclude_patterns:
            if pattern.search(relative_path):
                return False
        return True

    def relative_source_path(self, file_path) -> Optional[str]:
        """
        Root-relative posix path of a changed file, or None when the file is
        outside the root, has an extension we don't track or is excluded.
        """
        path = Path(file_path)
        if path.is_absolute():
            try:
                path = path.resolve().relative_to(self.root_dir.resolve())
            except ValueError:
                return None
        relative_path = path.as_posix()
        if relative_path.startswith("../") or not self.accepts(relative_path):
            return None
        return relative_path
