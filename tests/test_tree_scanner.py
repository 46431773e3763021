"""Tests for TreeScanner using a real directory tree."""

from datetime import datetime, timezone

import pytest

from TreeScanner import TreeScanner
from sitemap_config import SitemapSettings


class TestScan:
    """Test TreeScanner.scan."""

    def test_collects_included_files(self, site, settings):
        result = TreeScanner(site, settings).scan()

        assert sorted(record.url for record in result.files) == [
            "http://www.example.com",
            "http://www.example.com/about.html",
            "http://www.example.com/blog",
            "http://www.example.com/blog/2024/recap.html",
            "http://www.example.com/blog/post.html",
        ]

    def test_depths_and_max_depth(self, site, settings):
        result = TreeScanner(site, settings).scan()

        depths = {record.url: record.depth for record in result.files}
        assert depths["http://www.example.com"] == 0
        assert depths["http://www.example.com/blog"] == 1
        assert depths["http://www.example.com/blog/2024/recap.html"] == 3
        assert result.max_depth == 3

    def test_exclude_pattern_filters_drafts(self, site):
        settings = SitemapSettings(include_ext=[".html"], exclude=["^drafts/"])
        urls = [record.url for record in TreeScanner(site, settings).scan().files]

        assert "http://www.example.com/drafts/post.html" not in urls
        assert "http://www.example.com/blog/post.html" in urls

    def test_exclude_pattern_is_a_search(self, site):
        settings = SitemapSettings(include_ext=[".html"], exclude=["post"])
        urls = [record.url for record in TreeScanner(site, settings).scan().files]

        assert not [url for url in urls if "post" in url]

    def test_include_ext(self, site):
        settings = SitemapSettings(include_ext=[".css"])
        urls = [record.url for record in TreeScanner(site, settings).scan().files]

        assert urls == ["http://www.example.com/style.css"]

    def test_last_modified_from_mtime(self, site, settings):
        result = TreeScanner(site, settings).scan()

        assert {record.last_modified for record in result.files} == {datetime(2024, 1, 2, tzinfo=timezone.utc)}

    def test_root_subdirectory(self, site):
        settings = SitemapSettings(root="./blog/", include_ext=[".html"])
        result = TreeScanner(site, settings).scan()

        assert sorted(record.url for record in result.files) == [
            "http://www.example.com",
            "http://www.example.com/2024/recap.html",
            "http://www.example.com/post.html",
        ]
        assert result.max_depth == 2

    def test_empty_tree(self, tmp_path):
        result = TreeScanner(tmp_path, SitemapSettings()).scan()

        assert result.files == []
        assert result.max_depth == -1

    def test_missing_root(self, tmp_path):
        settings = SitemapSettings(root="missing")

        with pytest.raises(FileNotFoundError):
            TreeScanner(tmp_path, settings).scan()


class TestRelativeSourcePath:
    """Test deciding whether a changed file belongs to the sitemap."""

    def test_absolute_path_inside_root(self, site, settings):
        scanner = TreeScanner(site, settings)
        assert scanner.relative_source_path(site / "blog" / "post.html") == "blog/post.html"

    def test_relative_path(self, site, settings):
        scanner = TreeScanner(site, settings)
        assert scanner.relative_source_path("blog/post.html") == "blog/post.html"

    def test_deleted_file_still_resolves(self, site, settings):
        scanner = TreeScanner(site, settings)
        assert scanner.relative_source_path(site / "gone.html") == "gone.html"

    def test_outside_root(self, site, settings, tmp_path):
        scanner = TreeScanner(site, settings)
        assert scanner.relative_source_path(tmp_path / "other.html") is None

    def test_excluded_or_other_extension(self, site, settings):
        scanner = TreeScanner(site, settings)
        assert scanner.relative_source_path(site / "drafts" / "post.html") is None
        assert scanner.relative_source_path(site / "style.css") is None
