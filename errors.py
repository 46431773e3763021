"""Error kinds raised by the sitemap tooling.

File-system failures are reported with the builtin ``OSError`` family
(``FileNotFoundError`` for a missing sitemap or root directory) and are never
retried.
"""

from typing import List


class SitemapError(Exception):
    """Base class for sitemap tooling errors."""


class ConfigParseError(SitemapError):
    """The settings file could not be understood."""


class SitemapNotFoundError(SitemapError):
    """No sitemap is configured under the requested name."""


class AmbiguousSelectionError(SitemapError):
    """Several sitemaps are configured and none was named."""

    def __init__(self, candidates: List[str]):
        self.candidates = list(candidates)
        super().__init__(f"{len(self.candidates)} sitemaps configured, pick one of: {', '.join(self.candidates)}")
