"""Tests for the command line app with scripted answers instead of a terminal."""

import json

import pytest

from ArgumentHandler import ArgumentHandler, ConsoleHost
from SitemapDocument import SitemapDocument
from main import MainApp


class ScriptedHost(ConsoleHost):
    """Answers prompts from prepared lists and records what was shown."""

    def __init__(self, answers=None, selections=None):
        super().__init__(interactive=False)
        self.answers = list(answers or [])
        self.selections = list(selections or [])
        self.prompts = []
        self.opened = []

    def prompt(self, message, options):
        self.prompts.append(message)
        return self.selections.pop(0) if self.selections else None

    def ask(self, message, default=""):
        return self.answers.pop(0) if self.answers else default

    def open_file(self, path):
        self.opened.append(path)


@pytest.fixture
def configure(site):
    def _configure(data):
        (site / "sitemap-generator.json").write_text(json.dumps(data), encoding="utf-8")
    return _configure


def make_app(site, *argv, host=None):
    args = ArgumentHandler.parse_arguments(["--workspace", str(site), *argv])
    return MainApp(args, host=host or ScriptedHost())


class TestArgumentHandler:
    """Test command line parsing."""

    def test_default_settings_path(self, site):
        args = ArgumentHandler.parse_arguments(["--workspace", str(site), "regenerate"])

        assert args.settings == site / "sitemap-generator.json"
        assert args.sitemap is None
        assert args.all is False

    def test_rename_needs_two_paths(self, site):
        with pytest.raises(SystemExit):
            ArgumentHandler.parse_arguments(["--workspace", str(site), "event", "renamed", "a.html"])

    def test_created_takes_one_path(self, site):
        with pytest.raises(SystemExit):
            ArgumentHandler.parse_arguments(["--workspace", str(site), "event", "created", "a.html", "b.html"])

    def test_non_interactive_host_gives_no_answer(self):
        host = ConsoleHost(interactive=False)
        assert host.prompt("Pick one", ["a", "b"]) is None
        assert host.ask("Name", "default") == "default"


class TestRegenerate:
    """Test the regenerate command."""

    def test_single_sitemap(self, site, configure):
        configure({"sitemap.xml": {"IncludeExt": [".html"]}})

        assert make_app(site, "regenerate").run() == 0
        assert len(SitemapDocument.load(site / "sitemap.xml").entries) == 6

    def test_asks_which_sitemap(self, site, configure):
        configure({"sitemap.xml": {}, "blog/sitemap.xml": {"Root": "blog"}})
        host = ScriptedHost(selections=["blog/sitemap.xml", "Open"])

        assert make_app(site, "regenerate", host=host).run() == 0

        assert (site / "blog" / "sitemap.xml").exists()
        assert not (site / "sitemap.xml").exists()
        assert host.opened == [site / "blog" / "sitemap.xml"]

    def test_choice_declined(self, site, configure):
        configure({"a.xml": {}, "b.xml": {}})

        assert make_app(site, "regenerate").run() == 1
        assert not (site / "a.xml").exists()

    def test_nothing_configured_offers_new_sitemap(self, site):
        host = ScriptedHost(selections=["No"])

        assert make_app(site, "regenerate", host=host).run() == 1
        assert host.prompts == ["No sitemap found, would you like to create a new one?"]

    def test_all(self, site, configure):
        configure({"sitemap.xml": {}, "blog/sitemap.xml": {"Root": "blog"}})

        assert make_app(site, "regenerate", "--all").run() == 0
        assert (site / "sitemap.xml").exists()
        assert (site / "blog" / "sitemap.xml").exists()

    def test_missing_root_fails(self, site, configure):
        configure({"sitemap.xml": {"Root": "missing"}})

        assert make_app(site, "regenerate", "sitemap.xml").run() == 1


class TestNewSitemap:
    """Test the new command."""

    def test_creates_settings_and_sitemap(self, site):
        host = ScriptedHost(answers=["./blog", "mysite.org"], selections=["https"])

        assert make_app(site, "new", host=host).run() == 0

        data = json.loads((site / "sitemap-generator.json").read_text(encoding="utf-8"))
        assert data["blog/sitemap.xml"]["Protocol"] == "https"
        assert data["blog/sitemap.xml"]["DomainName"] == "mysite.org"
        document = SitemapDocument.load(site / "blog" / "sitemap.xml")
        assert document.find_entry("https://www.mysite.org/post.html") is not None
        assert host.opened == [site / "blog" / "sitemap.xml"]

    def test_declined_overwrite(self, site):
        (site / "sitemap.xml").write_text("keep me", encoding="utf-8")
        host = ScriptedHost(answers=["./", "mysite.org"], selections=["http", "Abort"])

        assert make_app(site, "new", host=host).run() == 1
        assert (site / "sitemap.xml").read_text(encoding="utf-8") == "keep me"


class TestEvent:
    """Test the event command."""

    def test_created(self, site, configure):
        configure({"sitemap.xml": {"Exclude": ["^drafts/"]}})
        make_app(site, "regenerate").run()
        (site / "contact.html").write_text("<html></html>", encoding="utf-8")

        assert make_app(site, "event", "created", str(site / "contact.html")).run() == 0
        assert SitemapDocument.load(site / "sitemap.xml").find_entry("http://www.example.com/contact.html")

    def test_renamed(self, site, configure):
        configure({"sitemap.xml": {}})
        make_app(site, "regenerate").run()
        before = SitemapDocument.load(site / "sitemap.xml").find_entry("http://www.example.com/about.html")

        app = make_app(site, "event", "renamed", str(site / "about.html"), str(site / "team.html"))
        assert app.run() == 0

        document = SitemapDocument.load(site / "sitemap.xml")
        assert document.find_entry("http://www.example.com/about.html") is None
        assert document.find_entry("http://www.example.com/team.html").priority == before.priority

    def test_missing_sitemap_fails(self, site, configure):
        configure({"sitemap.xml": {}})

        assert make_app(site, "event", "saved", str(site / "about.html")).run() == 1
