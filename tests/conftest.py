"""
Shared fixtures: a small website source tree in a temporary workspace.

    workspace/
        index.html
        about.html
        style.css
        blog/index.html
        blog/post.html
        blog/2024/recap.html
        drafts/post.html
"""

import os
from datetime import datetime, timezone
from pathlib import Path

import pytest

from SitemapGenerator import SitemapGenerator
from sitemap_config import SitemapSettings

FIXED_NOW = datetime(2024, 5, 17, 12, 30, tzinfo=timezone.utc)

# 2024-01-02 00:00:00 UTC
FILE_MTIME = 1704153600

SITE_FILES = [
    "index.html",
    "about.html",
    "style.css",
    "blog/index.html",
    "blog/post.html",
    "blog/2024/recap.html",
    "drafts/post.html",
]


@pytest.fixture
def write_page():
    """Create a file (and its parent directories) with a fixed mtime."""

    def _write(path: Path, content: str = "<html></html>") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        os.utime(path, (FILE_MTIME, FILE_MTIME))
        return path

    return _write


@pytest.fixture
def site(tmp_path, write_page):
    workspace = tmp_path / "workspace"
    for relative_path in SITE_FILES:
        write_page(workspace / relative_path)
    return workspace.resolve()


@pytest.fixture
def settings():
    return SitemapSettings(domain_name="example.com", include_ext=[".html"], exclude=["^drafts/"])


@pytest.fixture
def generator(site):
    return SitemapGenerator(site, clock=lambda: FIXED_NOW)
