#################################################################
## In-memory model of a sitemap.xml (sitemaps.org 0.9 URL set).
# Parses an existing sitemap tolerantly, lets callers add, find and
# remove entries, and serializes the entries back sorted by priority.
# Tags other than loc, priority, changefreq and lastmod inside a
# <url> block are not kept.
#################################################################

import codecs
import os
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional
from xml.sax.saxutils import escape, unescape
from bs4 import BeautifulSoup
from sitemap_config import CHANGE_FREQUENCIES, SITEMAP_TAGS
from utils import url_depth, url_identity
from logger_config import get_logger

logger = get_logger(__name__)

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
DEFAULT_XML_VERSION = "1.0"
DEFAULT_XML_ENCODING = "UTF-8"

XML_VERSION_RE = re.compile(r"<\?xml\s[^>]*?version\s*=\s*[\"']([^\"']*)[\"']")
XML_ENCODING_RE = re.compile(r"<\?xml\s[^>]*?encoding\s*=\s*[\"']([^\"']*)[\"']")
URLSET_TAG_RE = re.compile(r"<urlset\b([^>]*?)/?>", re.DOTALL)
ATTRIBUTE_RE = re.compile(r"([\w.:-]+)\s*=\s*(?:\"([^\"]*)\"|'([^']*)')")
BETWEEN_TAGS_RE = re.compile(r">\s+<")

ATTRIBUTE_ENTITIES = {'"': "&quot;"}
ATTRIBUTE_ENTITIES_REVERSED = {value: key for key, value in ATTRIBUTE_ENTITIES.items()}

@dataclass
class SitemapEntry:
    location: str
    last_modified: Optional[datetime] = None
    priority: Optional[float] = None
    change_frequency: Optional[str] = None

    def to_xml(self, tab_characters: str = "\t", tags: Iterable[str] = SITEMAP_TAGS) -> str:
        """This entry as a <url> block, indented for its place under <urlset>."""
        values = {
            "loc": self.location,
            "priority": f"{self.priority:.2f}" if self.priority is not None else None,
            "changefreq": self.change_frequency,
            "lastmod": self.last_modified.strftime("%Y-%m-%d") if self.last_modified else None,
        }
        content = f"{tab_characters}<url>\n"
        for tag in SITEMAP_TAGS:
            # loc identifies the entry so it's written no matter what
            if tag != "loc" and tag not in tags:
                continue
            if values[tag] is None:
                continue
            content += f"{tab_characters * 2}<{tag}>{escape(values[tag])}</{tag}>\n"
        return content + f"{tab_characters}</url>"

class SitemapDocument:
    def __init__(self, xml_version: str = DEFAULT_XML_VERSION, xml_encoding: str = DEFAULT_XML_ENCODING,
                 root_attributes: Optional[Dict[str, str]] = None, entries: Optional[List[SitemapEntry]] = None):
        self.xml_version = xml_version
        self.xml_encoding = xml_encoding
        self.root_attributes = dict(root_attributes) if root_attributes else {"xmlns": SITEMAP_NS}
        self.entries = list(entries) if entries else []

    @classmethod
    def parse(cls, content: str) -> "SitemapDocument":
        """
        Build a document from sitemap text. Each field is extracted on its
        own, so a missing or broken value never hides the others; a <url>
        without <loc> is dropped. Malformed input never raises.
        """
        version = XML_VERSION_RE.search(content)
        encoding = XML_ENCODING_RE.search(content)

        root_attributes = None
        urlset_tag = URLSET_TAG_RE.search(content)
        if urlset_tag:
            root_attributes = {
                name: unescape(double or single, ATTRIBUTE_ENTITIES_REVERSED)
                for name, double, single in ATTRIBUTE_RE.findall(urlset_tag.group(1))
            }

        document = cls(
            xml_version=version.group(1) if version else DEFAULT_XML_VERSION,
            xml_encoding=encoding.group(1) if encoding else DEFAULT_XML_ENCODING,
            root_attributes=root_attributes,
        )

        soup = BeautifulSoup(content, "xml")
        urlset = soup.find("urlset")
        blocks = urlset.find_all("url", recursive=False) if urlset else soup.find_all("url")
        for block in blocks:
            location = _child_text(block, "loc")
            if not location:
                logger.debug("Dropping <url> without <loc>")
                continue
            document.add_entry(SitemapEntry(
                location=location,
                last_modified=_parse_lastmod(_child_text(block, "lastmod"), location),
                priority=_parse_priority(_child_text(block, "priority"), location),
                change_frequency=_parse_changefreq(_child_text(block, "changefreq"), location),
            ))
        return document

    @classmethod
    def load(cls, path: Path) -> "SitemapDocument":
        """Parse a sitemap file in its declared encoding. A missing file raises FileNotFoundError."""
        document = cls.parse(_decode(path.read_bytes(), path))
        logger.debug(f"Loaded {len(document.entries)} entries from {path}")
        return document

    def add_entry(self, entry: SitemapEntry) -> SitemapEntry:
        """Append an entry. Duplicate locations are allowed."""
        self.entries.append(entry)
        return entry

    def add_url(self, url: str, last_modified: Optional[datetime] = None, priority: Optional[float] = None,
                change_frequency: Optional[str] = None) -> SitemapEntry:
        return self.add_entry(SitemapEntry(url, last_modified, priority, change_frequency))

    def find_entry(self, url: str) -> Optional[SitemapEntry]:
        """The entry for the same page as url, or None. Changes to it are part of the document."""
        wanted = url_identity(url)
        for entry in self.entries:
            if url_identity(entry.location) == wanted:
                return entry
        return None

    def remove_entry(self, url: str) -> Optional[SitemapEntry]:
        entry = self.find_entry(url)
        if entry is not None:
            # identity, not equality: duplicates with equal fields must not shift
            index = next(i for i, candidate in enumerate(self.entries) if candidate is entry)
            del self.entries[index]
        return entry

    def current_max_depth(self) -> int:
        """The highest depth of any entry, -1 for an empty document."""
        return max((url_depth(entry.location) for entry in self.entries), default=-1)

    def serialize(self, minimized: bool = False, tab_characters: str = "\t",
                  tags: Iterable[str] = SITEMAP_TAGS) -> str:
        tags = set(tags)
        attributes = "".join(
            f' {name}="{escape(value, ATTRIBUTE_ENTITIES)}"' for name, value in self.root_attributes.items()
        )

        content = f'<?xml version="{self.xml_version}" encoding="{self.xml_encoding}"?>\n'
        content += f"<urlset{attributes}>\n"
        # sorted() is stable, reverse=True keeps ties in their current order
        for entry in sorted(self.entries, key=lambda e: e.priority or 0, reverse=True):
            content += entry.to_xml(tab_characters, tags) + "\n"
        content += "</urlset>\n"

        if minimized:
            content = BETWEEN_TAGS_RE.sub("><", content).strip()
        return content

    def save(self, path: Path, minimized: bool = False, tab_characters: str = "\t",
             tags: Iterable[str] = SITEMAP_TAGS):
        """Write in the declared encoding. The old file is replaced only once the new one is complete."""
        content = self.serialize(minimized, tab_characters, tags)
        data = content.encode(_codec_name(self.xml_encoding, path), errors="xmlcharrefreplace")

        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_name(f".{path.name}.tmp")
        try:
            temp_path.write_bytes(data)
            os.replace(temp_path, path)
        except OSError:
            temp_path.unlink(missing_ok=True)
            raise
        logger.info(f"Sitemap saved to {path} ({len(self.entries)} entries)")

def _codec_name(encoding: str, path: Path) -> str:
    try:
        return codecs.lookup(encoding).name
    except LookupError:
        logger.warning(f"Unknown encoding {encoding!r} declared in {path}, using UTF-8")
        return "utf-8"

def _decode(data: bytes, path: Path) -> str:
    if data.startswith(codecs.BOM_UTF8):
        return data[len(codecs.BOM_UTF8):].decode("utf-8", errors="replace")
    # the prolog is plain ASCII in any ASCII-compatible encoding
    declared = XML_ENCODING_RE.search(data[:256].decode("latin-1"))
    encoding = _codec_name(declared.group(1), path) if declared else "utf-8"
    try:
        return data.decode(encoding)
    except UnicodeDecodeError as e:
        logger.warning(f"{path} is not valid {encoding} ({e}), replacing undecodable bytes")
        return data.decode(encoding, errors="replace")

def _child_text(block, name: str) -> Optional[str]:
    child = block.find(name, recursive=False)
    if child is None:
        return None
    text = child.get_text().strip()
    return text or None

def _parse_priority(text: Optional[str], location: str) -> Optional[float]:
    if text is None:
        return None
    try:
        return float(text)
    except ValueError:
        logger.warning(f"Ignoring invalid priority {text!r} for {location}")
        return None

def _parse_lastmod(text: Optional[str], location: str) -> Optional[datetime]:
    """Accepts W3C dates and datetimes; only the calendar date is kept."""
    if text is None:
        return None
    try:
        day = date.fromisoformat(text[:10])
    except ValueError:
        logger.warning(f"Ignoring invalid lastmod {text!r} for {location}")
        return None
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)

def _parse_changefreq(text: Optional[str], location: str) -> Optional[str]:
    if text is None:
        return None
    frequency = text.lower()
    if frequency not in CHANGE_FREQUENCIES:
        logger.warning(f"Ignoring unknown changefreq {text!r} for {location}")
        return None
    return frequency
